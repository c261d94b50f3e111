# fieldpulse/models/mileage_entry.py
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlmodel import Field, SQLModel


class MileageEntry(SQLModel, table=True):
    __tablename__ = "fp_mileage_entries"

    id: str = Field(primary_key=True)
    date: Optional[str] = None
    start_mileage: Optional[float] = None
    end_mileage: Optional[float] = None
    trip_miles: Optional[float] = Field(default=0, sa_column_kwargs={"server_default": "0"})
    start_location: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    end_location: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    notes: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    linked_time_entry_id: Optional[str] = None
    purpose: Optional[str] = Field(default="work", sa_column_kwargs={"server_default": "work"})  # work / personal / commute
    created_at: Optional[datetime] = Field(default=None, sa_column_kwargs={"server_default": func.now()})


__all__ = ["MileageEntry"]
