import copy
import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Settings create their directories on import; keep them out of the real home.
os.environ.setdefault("FIELDPULSE_DATA_DIR", tempfile.mkdtemp(prefix="fieldpulse-tests-"))

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import httpx  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from server import create_app  # noqa: E402
from services.sync_client import SyncError  # noqa: E402
from storage import migrations  # noqa: E402
from storage.db import create_db_engine  # noqa: E402


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeSyncClient:
    """In-memory stand-in for :class:`services.sync_client.SyncClient`."""

    def __init__(self, remote=None, *, push_delay: float = 0.0):
        self.remote = remote or {}
        self.push_delay = push_delay
        self.pushes = []
        self.pulls = 0
        self.migrations = 0
        self.fail_pull = False
        self.fail_push = False
        self.fail_migrate = False
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def migrate(self):
        self.migrations += 1
        if self.fail_migrate:
            raise SyncError("Migration failed", 500)
        return "Migrations complete"

    async def pull(self):
        self.pulls += 1
        if self.fail_pull:
            raise httpx.ConnectError("server unreachable")
        return copy.deepcopy(self.remote)

    async def push(self, snapshot):
        import asyncio

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.push_delay:
                await asyncio.sleep(self.push_delay)
            if self.fail_push:
                raise SyncError("database unavailable", 500)
            self.pushes.append(copy.deepcopy(snapshot))
            return "Sync complete"
        finally:
            self.in_flight -= 1

    async def aclose(self):
        self.closed = True


@pytest.fixture()
def clock():
    return FakeClock(datetime(2024, 3, 4, 8, 0, tzinfo=timezone.utc))


@pytest.fixture()
def db_engine():
    engine = create_db_engine("sqlite:///:memory:")
    migrations.run_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def api(db_engine):
    with TestClient(create_app(lambda: db_engine)) as client:
        yield client


@pytest.fixture()
def fake_client():
    return FakeSyncClient()
