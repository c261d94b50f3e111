"""Smaller synchronized tables: saved places, vehicles and shift pins."""

from typing import Optional

from sqlmodel import Field, SQLModel


class SavedLocation(SQLModel, table=True):
    __tablename__ = "fp_saved_locations"

    id: str = Field(primary_key=True)
    name: Optional[str] = None
    address: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    lat: Optional[float] = None
    lng: Optional[float] = None
    usage_count: Optional[int] = Field(default=0, sa_column_kwargs={"server_default": "0"})
    last_used: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})


class Vehicle(SQLModel, table=True):
    __tablename__ = "fp_vehicles"

    id: str = Field(primary_key=True)
    name: Optional[str] = None
    make: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    model: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    year: Optional[int] = Field(default=2020, sa_column_kwargs={"server_default": "2020"})
    color: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    license_plate: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    is_default: Optional[bool] = Field(default=False, sa_column_kwargs={"server_default": "0"})


class LocationLog(SQLModel, table=True):
    __tablename__ = "fp_location_logs"

    id: str = Field(primary_key=True)
    shift_id: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    place_name: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    place_type: Optional[str] = Field(default="", sa_column_kwargs={"server_default": ""})
    timestamp: Optional[str] = None
    weather_temp: Optional[float] = None
    weather_condition: Optional[str] = None
    weather_icon: Optional[str] = None


__all__ = ["LocationLog", "SavedLocation", "Vehicle"]
