from sqlalchemy import inspect, text

from storage import migrations
from storage.db import create_db_engine


def test_run_all_creates_tables_and_indexes():
    engine = create_db_engine("sqlite:///:memory:")
    migrations.run_all(engine)

    tables = set(inspect(engine).get_table_names())
    assert {table.name for table in migrations.SYNC_TABLES} <= tables

    with engine.connect() as conn:
        indexes = {row[0] for row in conn.execute(text("SELECT name FROM sqlite_master WHERE type = 'index'"))}
    assert set(migrations.INDEXES) <= indexes


def test_run_all_twice_keeps_existing_rows():
    engine = create_db_engine("sqlite:///:memory:")
    migrations.run_all(engine)
    with engine.begin() as conn:
        conn.execute(text("INSERT INTO fp_vehicles (id, name) VALUES ('v1', 'Truck')"))

    # Should not raise on second run
    migrations.run_all(engine)

    with engine.connect() as conn:
        row = conn.execute(text("SELECT name, year, is_default FROM fp_vehicles WHERE id = 'v1'")).one()
    assert row[0] == "Truck"
    assert row[1] == 2020
    assert not row[2]
