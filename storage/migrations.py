"""Idempotent schema setup for the sync server."""

from __future__ import annotations

from sqlalchemy import text
from sqlmodel import SQLModel

import models


SYNC_TABLES = [
    models.Profile.__table__,
    models.TimeEntry.__table__,
    models.MileageEntry.__table__,
    models.FuelLog.__table__,
    models.DailyNote.__table__,
    models.SavedLocation.__table__,
    models.Vehicle.__table__,
    models.LocationLog.__table__,
    models.Setting.__table__,
]

INDEXES = {
    "idx_time_entries_date": ("fp_time_entries", "date"),
    "idx_mileage_entries_date": ("fp_mileage_entries", "date"),
    "idx_fuel_logs_date": ("fp_fuel_logs", "date"),
    "idx_daily_notes_date": ("fp_daily_notes", "date"),
    "idx_location_logs_shift": ("fp_location_logs", "shift_id"),
}


def ensure_tables(engine) -> None:
    # create_all checks for existing tables first
    SQLModel.metadata.create_all(engine, tables=SYNC_TABLES)


def ensure_indexes(conn) -> None:
    for name, (table, column) in INDEXES.items():
        conn.execute(text(f"CREATE INDEX IF NOT EXISTS {name} ON {table}({column})"))


def run_all(engine) -> None:
    ensure_tables(engine)
    with engine.begin() as conn:
        ensure_indexes(conn)


__all__ = ["INDEXES", "SYNC_TABLES", "run_all"]
