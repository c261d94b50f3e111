"""FastAPI application exposing /sync, /migrate and /health."""
from __future__ import annotations

import json
from typing import Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from core.logs import ensure_logger
from core.settings import APP_NAME, SERVER
from services.remote_repository import SnapshotError, pull_snapshot, push_snapshot
from storage import migrations
from storage.db import get_engine


logger = ensure_logger("fieldpulse.server", SERVER.log_path)


def _failure(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def create_app(engine_factory: Optional[Callable[[], Engine]] = None) -> FastAPI:
    app = FastAPI(title=f"{APP_NAME} Sync API", version=SERVER.version)
    app.state.engine_factory = engine_factory or get_engine

    def _engine(request: Request) -> Engine:
        return request.app.state.engine_factory()

    @app.exception_handler(SQLAlchemyError)
    async def _database_error(request: Request, exc: SQLAlchemyError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return _failure(str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.error("%s %s crashed", request.method, request.url.path, exc_info=exc)
        return _failure(f"Internal server error: {exc}", status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.get("/sync")
    async def pull(request: Request):
        """Return the full stored snapshot."""
        data = await run_in_threadpool(pull_snapshot, _engine(request))
        return {"success": True, "data": jsonable_encoder(data)}

    @app.post("/sync")
    async def push(request: Request):
        """Upsert the client snapshot in the request body."""
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Rejected push with malformed body: %s", exc)
            return _failure(f"Malformed JSON body: {exc}", status.HTTP_400_BAD_REQUEST)
        if not isinstance(body, dict):
            return _failure("Sync body must be a JSON object", status.HTTP_400_BAD_REQUEST)

        try:
            await run_in_threadpool(push_snapshot, _engine(request), body)
        except SnapshotError as exc:
            logger.warning("Rejected push: %s", exc)
            return _failure(str(exc), status.HTTP_400_BAD_REQUEST)
        return {"success": True, "message": "Sync complete"}

    @app.post("/migrate")
    async def migrate(request: Request):
        await run_in_threadpool(migrations.run_all, _engine(request))
        logger.info("Database migrations complete")
        return {"success": True, "message": "Migrations complete"}

    @app.get("/migrate")
    async def migrate_info():
        return {"info": "POST to run migrations"}

    @app.get("/health")
    async def health(request: Request):
        def _probe():
            with _engine(request).connect() as conn:
                return conn.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()

        try:
            now = await run_in_threadpool(_probe)
        except SQLAlchemyError as exc:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "error", "database": "disconnected", "error": str(exc)},
            )
        return {
            "status": "ok",
            "database": "connected",
            "timestamp": jsonable_encoder(now),
            "version": SERVER.version,
        }

    return app


__all__ = ["create_app"]
