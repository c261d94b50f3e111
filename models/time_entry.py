# fieldpulse/models/time_entry.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Column, func
from sqlmodel import Field, SQLModel


class TimeEntry(SQLModel, table=True):
    __tablename__ = "fp_time_entries"

    id: str = Field(primary_key=True)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_minutes: Optional[int] = Field(default=0, sa_column_kwargs={"server_default": "0"})
    notes: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    tags: Optional[List[str]] = Field(default_factory=list, sa_column=Column(JSON, nullable=True, server_default="[]"))
    date: Optional[str] = None
    is_overtime: Optional[bool] = Field(default=False, sa_column_kwargs={"server_default": "0"})
    hourly_rate: Optional[float] = None
    created_at: Optional[datetime] = Field(default=None, sa_column_kwargs={"server_default": func.now()})


__all__ = ["TimeEntry"]
