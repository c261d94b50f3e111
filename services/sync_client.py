"""HTTP client for the sync server's REST surface."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import httpx

from core.settings import SYNC


class SyncError(RuntimeError):
    """The server answered, but not with a successful sync envelope."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _message(response: httpx.Response, default: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return default
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return default


class SyncClient:
    def __init__(
        self,
        base_url: str = SYNC.base_url,
        *,
        timeout: Optional[float] = SYNC.request_timeout_sec,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def pull(self) -> Dict[str, Any]:
        response = await self._http.get("/sync")
        if not response.is_success:
            raise SyncError(_message(response, "Pull failed"), response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise SyncError(f"Pull returned malformed JSON: {exc}", response.status_code) from exc
        if not isinstance(payload, dict) or not payload.get("success") or not isinstance(payload.get("data"), dict):
            raise SyncError("Pull returned no data", response.status_code)
        return payload["data"]

    async def push(self, snapshot: Mapping[str, Any]) -> str:
        response = await self._http.post("/sync", json=dict(snapshot))
        if not response.is_success:
            raise SyncError(_message(response, "Sync failed"), response.status_code)
        return _message(response, "Sync complete")

    async def migrate(self) -> str:
        response = await self._http.post("/migrate")
        if not response.is_success:
            raise SyncError(_message(response, "Migration failed"), response.status_code)
        return _message(response, "Migrations complete")

    async def health(self) -> Dict[str, Any]:
        response = await self._http.get("/health")
        try:
            return response.json()
        except ValueError:
            return {"status": "error", "database": "unknown"}

    async def aclose(self) -> None:
        await self._http.aclose()


__all__ = ["SyncClient", "SyncError"]
