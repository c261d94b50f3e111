# fieldpulse/storage/db.py
from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from core.settings import SERVER, SERVER_DB_PATH

# Ensure SQLModel metadata is populated
import models  # noqa: F401


_engine: Optional[Engine] = None


def create_db_engine(url: str, *, echo: bool = False) -> Engine:
    """Build an engine for ``url``; in-memory SQLite shares one connection."""

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)
    return create_engine(url, echo=echo, pool_pre_ping=True)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        if SERVER.database_url.startswith("sqlite:///") and ":memory:" not in SERVER.database_url:
            SERVER_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        _engine = create_db_engine(SERVER.database_url, echo=SERVER.echo_sql)
    return _engine


__all__ = ["create_db_engine", "get_engine"]
