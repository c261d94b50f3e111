# fieldpulse/models/daily_note.py
from typing import List, Optional

from sqlalchemy import JSON, Column, func
from sqlmodel import Field, SQLModel


class DailyNote(SQLModel, table=True):
    __tablename__ = "fp_daily_notes"

    id: str = Field(primary_key=True)
    date: Optional[str] = None
    content: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    tags: Optional[List[str]] = Field(default_factory=list, sa_column=Column(JSON, nullable=True, server_default="[]"))
    what_i_did: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    # the client sends its own ISO strings for these two
    created_at: Optional[str] = Field(default=None, sa_column_kwargs={"server_default": func.now()})
    updated_at: Optional[str] = Field(default=None, sa_column_kwargs={"server_default": func.now()})
    mood: Optional[str] = None
    weather: Optional[str] = None


__all__ = ["DailyNote"]
