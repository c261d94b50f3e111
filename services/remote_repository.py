"""Server-side snapshot storage: per-table upsert and full reads.

The wire format uses camel-case keys; this module is the only place where
they are translated to the snake-case columns of the ``fp_*`` tables.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.schema import Table

import models
from core.logs import ensure_logger
from core.settings import PROFILE_DEFAULTS, SERVER
from models.profile import PROFILE_ID


logger = ensure_logger("fieldpulse.server", SERVER.log_path)


class SnapshotError(ValueError):
    """A pushed snapshot is valid JSON but not in the expected shape."""


@dataclass(frozen=True)
class CollectionMapping:
    """Wire collection ``key`` stored in ``table``; ``columns`` maps wire -> column."""

    key: str
    table: Table
    columns: Dict[str, str]
    newest_first: bool = False

    @property
    def reverse(self) -> Dict[str, str]:
        return {column: wire for wire, column in self.columns.items()}


COLLECTIONS: Dict[str, CollectionMapping] = {
    m.key: m
    for m in (
        CollectionMapping(
            "timeEntries",
            models.TimeEntry.__table__,
            {
                "id": "id", "startTime": "start_time", "endTime": "end_time",
                "breakMinutes": "break_minutes", "notes": "notes", "tags": "tags",
                "date": "date", "isOvertime": "is_overtime", "hourlyRate": "hourly_rate",
            },
            newest_first=True,
        ),
        CollectionMapping(
            "mileageEntries",
            models.MileageEntry.__table__,
            {
                "id": "id", "date": "date", "startMileage": "start_mileage",
                "endMileage": "end_mileage", "tripMiles": "trip_miles",
                "startLocation": "start_location", "endLocation": "end_location",
                "notes": "notes", "linkedTimeEntryId": "linked_time_entry_id",
                "purpose": "purpose",
            },
            newest_first=True,
        ),
        CollectionMapping(
            "fuelLogs",
            models.FuelLog.__table__,
            {
                "id": "id", "date": "date", "time": "time", "mileage": "mileage",
                "gallons": "gallons", "costPerGallon": "cost_per_gallon",
                "totalCost": "total_cost", "station": "station", "notes": "notes",
                "receiptPhoto": "receipt_photo", "fuelType": "fuel_type",
            },
            newest_first=True,
        ),
        CollectionMapping(
            "dailyNotes",
            models.DailyNote.__table__,
            {
                "id": "id", "date": "date", "content": "content", "tags": "tags",
                "whatIDid": "what_i_did", "createdAt": "created_at",
                "updatedAt": "updated_at", "mood": "mood", "weather": "weather",
            },
            newest_first=True,
        ),
        CollectionMapping(
            "savedLocations",
            models.SavedLocation.__table__,
            {
                "id": "id", "name": "name", "address": "address",
                "lat": "lat", "lng": "lng", "usageCount": "usage_count",
                "lastUsed": "last_used",
            },
        ),
        CollectionMapping(
            "vehicles",
            models.Vehicle.__table__,
            {
                "id": "id", "name": "name", "make": "make", "model": "model",
                "year": "year", "color": "color", "licensePlate": "license_plate",
                "isDefault": "is_default",
            },
        ),
        CollectionMapping(
            "locationLogs",
            models.LocationLog.__table__,
            {
                "id": "id", "shiftId": "shift_id", "lat": "lat", "lng": "lng",
                "placeName": "place_name", "placeType": "place_type",
                "timestamp": "timestamp",
            },
        ),
    )
}

PROFILE_TABLE: Table = models.Profile.__table__
SETTINGS_TABLE: Table = models.Setting.__table__


def _insert_for(conn: Connection):
    dialect = conn.dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Upsert is not supported for dialect: {dialect}")
    return insert


def upsert_row(conn: Connection, table: Table, values: Mapping[str, Any], key: str = "id") -> bool:
    """``INSERT ... ON CONFLICT (key) DO UPDATE`` for exactly the given columns.

    Returns ``False`` (and writes nothing) when no column besides ``key`` is
    present.
    """

    update_cols = [col for col in values if col != key]
    if not update_cols:
        return False
    insert = _insert_for(conn)
    stmt = insert(table).values(dict(values))
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c[key]],
        set_={col: stmt.excluded[col] for col in update_cols},
    )
    conn.execute(stmt)
    return True


def project_item(mapping: CollectionMapping, item: Mapping[str, Any]) -> Dict[str, Any]:
    """Columns for keys present in ``item``; a present ``None`` is kept."""

    return {column: item[wire] for wire, column in mapping.columns.items() if wire in item}


# ----------------------------------------------------------------------
# Push
def _profile_row(profile: Mapping[str, Any]) -> Dict[str, Any]:
    goal = profile.get("weeklyGoal")
    if goal is None:
        goal = {}
    elif not isinstance(goal, Mapping):
        raise SnapshotError("profile.weeklyGoal must be an object")
    tags = profile.get("tags")
    if tags is None:
        tags = []
    elif not isinstance(tags, list):
        raise SnapshotError("profile.tags must be a list")

    def num(value, default):
        return default if value is None else value

    return {
        "id": PROFILE_ID,
        "name": profile.get("name") or PROFILE_DEFAULTS.name,
        "company": profile.get("company") or PROFILE_DEFAULTS.company,
        "role": profile.get("role") or PROFILE_DEFAULTS.role,
        "default_start_hour": num(profile.get("defaultStartHour"), PROFILE_DEFAULTS.default_start_hour),
        "default_end_hour": num(profile.get("defaultEndHour"), PROFILE_DEFAULTS.default_end_hour),
        "mileage_unit": profile.get("mileageUnit") or PROFILE_DEFAULTS.mileage_unit,
        "fuel_unit": profile.get("fuelUnit") or PROFILE_DEFAULTS.fuel_unit,
        "onboarding_complete": bool(num(profile.get("onboardingComplete"), PROFILE_DEFAULTS.onboarding_complete)),
        "hourly_rate": num(profile.get("hourlyRate"), PROFILE_DEFAULTS.hourly_rate),
        "overtime_threshold": num(profile.get("overtimeThreshold"), PROFILE_DEFAULTS.overtime_threshold),
        "overtime_multiplier": num(profile.get("overtimeMultiplier"), PROFILE_DEFAULTS.overtime_multiplier),
        "weekly_goal_hours": num(goal.get("hoursTarget"), PROFILE_DEFAULTS.weekly_goal_hours),
        "weekly_goal_miles": num(goal.get("milesTarget"), PROFILE_DEFAULTS.weekly_goal_miles),
        "weekly_goal_fuel_budget": num(goal.get("fuelBudget"), PROFILE_DEFAULTS.weekly_goal_fuel_budget),
        "currency": profile.get("currency") or PROFILE_DEFAULTS.currency,
        "date_format": profile.get("dateFormat") or PROFILE_DEFAULTS.date_format,
        "tags": list(tags),
    }


def _upsert_collection(conn: Connection, mapping: CollectionMapping, items: Iterable[Any]) -> int:
    written = 0
    for item in items:
        if not isinstance(item, Mapping):
            continue
        if item.get("id") in (None, ""):
            logger.warning("Skipping %s item without id", mapping.key)
            continue
        if upsert_row(conn, mapping.table, project_item(mapping, item)):
            written += 1
    return written


def push_snapshot(engine: Engine, body: Mapping[str, Any]) -> Dict[str, int]:
    """Upsert a client snapshot; returns rows written per table.

    Tables are written in separate transactions. A failure is logged with the
    table name and re-raised; tables written before it stay written. A
    malformed profile raises :class:`SnapshotError` before anything is written.
    """

    written: Dict[str, int] = {}

    profile = body.get("profile")
    if isinstance(profile, Mapping) and profile:
        row = _profile_row(profile)
        _run_table(engine, PROFILE_TABLE.name, lambda conn: int(upsert_row(conn, PROFILE_TABLE, row)), written)

    for key, mapping in COLLECTIONS.items():
        items = body.get(key)
        if not isinstance(items, list) or not items:
            continue
        _run_table(engine, mapping.table.name, lambda conn, m=mapping, i=items: _upsert_collection(conn, m, i), written)

    settings = body.get("settings")
    if isinstance(settings, Mapping):
        def _write_settings(conn: Connection) -> int:
            for key, value in settings.items():
                upsert_row(conn, SETTINGS_TABLE, {"key": str(key), "value": json.dumps(value)}, key="key")
            return len(settings)

        _run_table(engine, SETTINGS_TABLE.name, _write_settings, written)

    logger.info("Push applied: %s", written)
    return written


def _run_table(engine: Engine, table_name: str, fn, written: Dict[str, int]) -> None:
    try:
        with engine.begin() as conn:
            written[table_name] = fn(conn)
    except SQLAlchemyError as exc:
        logger.error("Push failed on table %s: %s", table_name, exc)
        raise


# ----------------------------------------------------------------------
# Pull
def _profile_from_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    def num(value, default):
        return float(value if value not in (None, "") else default)

    return {
        "name": row["name"],
        "company": row["company"],
        "role": row["role"],
        "defaultStartHour": row["default_start_hour"],
        "defaultEndHour": row["default_end_hour"],
        "mileageUnit": row["mileage_unit"],
        "fuelUnit": row["fuel_unit"],
        "onboardingComplete": bool(row["onboarding_complete"]),
        "hourlyRate": num(row["hourly_rate"], 0),
        "overtimeThreshold": num(row["overtime_threshold"], PROFILE_DEFAULTS.overtime_threshold),
        "overtimeMultiplier": num(row["overtime_multiplier"], PROFILE_DEFAULTS.overtime_multiplier),
        "weeklyGoal": {
            "hoursTarget": row["weekly_goal_hours"],
            "milesTarget": row["weekly_goal_miles"],
            "fuelBudget": row["weekly_goal_fuel_budget"],
        },
        "currency": row["currency"],
        "dateFormat": row["date_format"],
        "tags": list(row["tags"]) if isinstance(row["tags"], list) else [],
    }


def _parse_setting(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return raw


def read_collection(conn: Connection, mapping: CollectionMapping) -> List[Dict[str, Any]]:
    table = mapping.table
    stmt = select(table)
    if mapping.newest_first and "created_at" in table.c:
        stmt = stmt.order_by(table.c.created_at.desc().nulls_last())
    reverse = mapping.reverse
    rows = conn.execute(stmt).mappings().all()
    return [{reverse.get(col, col): value for col, value in row.items()} for row in rows]


def pull_snapshot(engine: Engine) -> Dict[str, Any]:
    """Read every table into one wire-shaped snapshot."""

    data: Dict[str, Any] = {}
    with engine.connect() as conn:
        for key, mapping in COLLECTIONS.items():
            data[key] = read_collection(conn, mapping)

        row = conn.execute(select(PROFILE_TABLE).where(PROFILE_TABLE.c.id == PROFILE_ID)).mappings().first()
        if row is not None:
            data["profile"] = _profile_from_row(row)

        settings: Dict[str, Any] = {}
        for setting in conn.execute(select(SETTINGS_TABLE.c.key, SETTINGS_TABLE.c.value)).mappings():
            settings[setting["key"]] = _parse_setting(setting["value"])
        data["settings"] = settings
    return data


__all__ = [
    "COLLECTIONS",
    "CollectionMapping",
    "SnapshotError",
    "project_item",
    "pull_snapshot",
    "push_snapshot",
    "read_collection",
    "upsert_row",
]
