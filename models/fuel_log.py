# fieldpulse/models/fuel_log.py
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlmodel import Field, SQLModel


class FuelLog(SQLModel, table=True):
    __tablename__ = "fp_fuel_logs"

    id: str = Field(primary_key=True)
    date: Optional[str] = None
    time: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    mileage: Optional[float] = None
    gallons: Optional[float] = None
    cost_per_gallon: Optional[float] = None
    total_cost: Optional[float] = None
    station: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    notes: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    receipt_photo: Optional[str] = None
    fuel_type: Optional[str] = Field(default="regular", sa_column_kwargs={"server_default": "regular"})
    created_at: Optional[datetime] = Field(default=None, sa_column_kwargs={"server_default": func.now()})


__all__ = ["FuelLog"]
