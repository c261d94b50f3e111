"""Keeps the local store and the sync server convergent.

Pull once on mount (union by id, server wins for profile and settings), then
push the full snapshot a debounce interval after the last local change.
"""
from __future__ import annotations

import asyncio
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional

import httpx

from core.logs import ensure_logger
from core.settings import SYNC
from datetime_utils import utc_now
from services.deferred import DeferredTask
from services.sync_client import SyncClient, SyncError
from storage.local_store import COLLECTION_KEYS, LocalStore


class SyncPhase(str, Enum):
    IDLE = "idle"
    PENDING_PUSH = "pending_push"
    PUSHING = "pushing"
    PULLING = "pulling"


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SUCCESS = "success"
    ERROR = "error"


NETWORK_ERRORS = (SyncError, httpx.HTTPError)

def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


StatusListener = Callable[["SyncEngine"], None]
Notifier = Callable[[str, str], None]


class SyncEngine:
    def __init__(
        self,
        store: LocalStore,
        client: SyncClient,
        *,
        debounce_sec: float = SYNC.debounce_sec,
        notify: Optional[Notifier] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.client = client
        self.notify = notify
        self.logger = ensure_logger("fieldpulse.sync", SYNC.log_path)
        self._clock = clock
        self._debounce = DeferredTask(debounce_sec, self._on_debounce_elapsed)
        self._push_lock = asyncio.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._status_listeners: List[StatusListener] = []
        self._push_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        self._mounted = False
        self._has_pulled = False
        self._pulling = False
        self._pushing = False
        self._push_requested = False
        self._closed = False

        self.status = SyncStatus.IDLE
        self.last_error: Optional[str] = None
        self.last_synced_at: Optional[datetime] = None
        self.push_count = 0

    # ------------------------------------------------------------------
    # Lifecycle
    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_store_change)

    async def mount(self) -> None:
        """Migrate (best effort), pull once, then start pushing on changes."""
        self._loop = asyncio.get_running_loop()
        self._debounce.bind(self._loop)
        self.start()
        try:
            await self.client.migrate()
        except NETWORK_ERRORS as exc:
            self.logger.info("Migration skipped: %s", exc)
        if not self._has_pulled:
            self._has_pulled = True
            await self.pull()
        self._mounted = True

    async def aclose(self) -> None:
        self._closed = True
        self._mounted = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._debounce.cancel()
        if self._push_task is not None and not self._push_task.done():
            await self._push_task
        await self.client.aclose()

    async def __aenter__(self) -> "SyncEngine":
        await self.mount()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Status
    @property
    def phase(self) -> SyncPhase:
        if self._pulling:
            return SyncPhase.PULLING
        if self._pushing:
            return SyncPhase.PUSHING
        if self._debounce.pending:
            return SyncPhase.PENDING_PUSH
        return SyncPhase.IDLE

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    def on_status(self, listener: StatusListener) -> Callable[[], None]:
        self._status_listeners.append(listener)
        return lambda: self._status_listeners.remove(listener) if listener in self._status_listeners else None

    def _set_status(self, status: SyncStatus, error: Optional[str] = None) -> None:
        self.status = status
        self.last_error = error
        if status is SyncStatus.SUCCESS:
            self.last_synced_at = self._clock()
        for listener in list(self._status_listeners):
            try:
                listener(self)
            except Exception:
                self.logger.exception("Sync status listener %r failed", listener)

    # ------------------------------------------------------------------
    # Triggers
    def _on_store_change(self, _store: LocalStore) -> None:
        if not self._mounted or self._closed:
            return
        if _running_loop() is self._loop:
            self._arm_debounce()
        else:
            # mutation made off the engine's loop (another thread)
            self._loop.call_soon_threadsafe(self._arm_debounce)

    def _arm_debounce(self) -> None:
        if self._mounted and not self._closed:
            self._debounce.arm()

    def _on_debounce_elapsed(self) -> None:
        if self._pushing:
            # re-armed once the in-flight push finishes
            self._push_requested = True
            return
        self._push_task = self._loop.create_task(self.push())

    async def sync_now(self) -> bool:
        """Push immediately and report the outcome through ``notify``."""
        self._debounce.cancel()
        ok = await self.push()
        if self.notify is not None:
            if ok:
                self.notify("Synced to server!", "info")
            else:
                self.notify("Sync failed - will retry", "error")
        return ok

    # ------------------------------------------------------------------
    # Pull
    async def pull(self) -> bool:
        self._pulling = True
        self._set_status(SyncStatus.SYNCING)
        try:
            data = await self.client.pull()
            self._merge(data)
        except NETWORK_ERRORS as exc:
            self._pulling = False
            self.logger.warning("Pull failed: %s", exc)
            self._set_status(SyncStatus.ERROR, str(exc) or "Pull failed")
            return False
        except Exception as exc:  # pragma: no cover - defensive
            self._pulling = False
            self.logger.exception("Pull crashed: %s", exc)
            self._set_status(SyncStatus.ERROR, str(exc) or "Pull failed")
            return False
        self._pulling = False
        self._set_status(SyncStatus.SUCCESS)
        return True

    def _merge(self, data: Mapping[str, Any]) -> None:
        profile = data.get("profile")
        if isinstance(profile, Mapping) and profile:
            self.store.replace_profile(profile)

        settings = data.get("settings")
        if isinstance(settings, Mapping):
            self.store.apply_remote_settings(settings)

        added = {}
        for key in COLLECTION_KEYS:
            records = data.get(key)
            if isinstance(records, list):
                added[key] = self.store.merge_remote(key, records)
        self.logger.info("Pull merged: %s", added)

    # ------------------------------------------------------------------
    # Push
    async def push(self) -> bool:
        """Send the full snapshot; pushes never overlap."""
        async with self._push_lock:
            self._pushing = True
            self._set_status(SyncStatus.SYNCING)
            snapshot = self.store.snapshot()
            try:
                await self.client.push(snapshot)
            except NETWORK_ERRORS as exc:
                ok = False
                self.logger.warning("Push failed: %s", exc)
                error = str(exc) or "Sync failed"
            except Exception as exc:  # pragma: no cover - defensive
                ok = False
                self.logger.exception("Push crashed: %s", exc)
                error = str(exc) or "Sync failed"
            else:
                ok = True
                error = None
                self.push_count += 1
            finally:
                self._pushing = False
            self._set_status(SyncStatus.SUCCESS if ok else SyncStatus.ERROR, error)

        if self._push_requested:
            self._push_requested = False
            self._arm_debounce()
        return ok


__all__ = ["SyncEngine", "SyncPhase", "SyncStatus"]
