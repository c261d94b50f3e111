"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``.

    ``FIELDPULSE_DATA_DIR`` in ``env`` wins over the platform default.
    """

    platform_id = (platform or sys.platform).lower()
    environ = dict(env if env is not None else os.environ)
    override = environ.get("FIELDPULSE_DATA_DIR")
    if override:
        return Path(override).expanduser()

    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(environ.get("APPDATA") or home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return (base.expanduser() / sanitized)


APP_NAME = "FieldPulse"
APP_VERSION = "2.0.0"


DATA_DIR = get_default_data_dir(APP_NAME)
STORAGE_DIR = DATA_DIR / "storage"
LOG_DIR = DATA_DIR / "logs"

for _dir in (DATA_DIR, STORAGE_DIR, LOG_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


SERVER_DB_PATH = DATA_DIR / "server.db"


@dataclass(frozen=True)
class SyncSettings:
    base_url: str = os.environ.get("FIELDPULSE_API_URL", "http://127.0.0.1:8000")
    debounce_sec: float = 3.0
    # None disables the bound and waits on the transport indefinitely
    request_timeout_sec: Optional[float] = 30.0
    storage_key: str = "fieldpulse-storage"
    log_path: Path = LOG_DIR / "sync.log"

    @property
    def state_path(self) -> Path:
        return STORAGE_DIR / f"{self.storage_key}.json"


SYNC = SyncSettings()


@dataclass(frozen=True)
class ServerSettings:
    database_url: str = os.environ.get("DATABASE_URL", f"sqlite:///{SERVER_DB_PATH.as_posix()}")
    host: str = os.environ.get("FIELDPULSE_HOST", "127.0.0.1")
    port: int = int(os.environ.get("FIELDPULSE_PORT", "8000"))
    version: str = APP_VERSION
    log_path: Path = LOG_DIR / "server.log"
    echo_sql: bool = False


SERVER = ServerSettings()


@dataclass(frozen=True)
class ProfileDefaults:
    name: str = ""
    company: str = ""
    role: str = ""
    default_start_hour: int = 7
    default_end_hour: int = 17
    mileage_unit: str = "miles"
    fuel_unit: str = "gallons"
    onboarding_complete: bool = False
    hourly_rate: float = 0.0
    overtime_threshold: float = 8.0
    overtime_multiplier: float = 1.5
    weekly_goal_hours: int = 40
    weekly_goal_miles: int = 500
    weekly_goal_fuel_budget: int = 200
    currency: str = "USD"
    date_format: str = "US"


PROFILE_DEFAULTS = ProfileDefaults()


DEFAULT_TAGS: tuple[str, ...] = (
    "CA",
    "FL",
    "TX",
    "NY",
    "Advance",
    "Travel",
    "Office",
    "Field",
    "Per Diem",
    "Jobsite",
    "Meeting",
)

MILEAGE_RATE_PER_MILE = 0.67


__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "DATA_DIR",
    "STORAGE_DIR",
    "LOG_DIR",
    "SERVER_DB_PATH",
    "SYNC",
    "SERVER",
    "PROFILE_DEFAULTS",
    "DEFAULT_TAGS",
    "MILEAGE_RATE_PER_MILE",
    "get_default_data_dir",
]
