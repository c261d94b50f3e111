# fieldpulse/models/profile.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Column, func
from sqlmodel import Field, SQLModel

from core.settings import PROFILE_DEFAULTS

PROFILE_ID = "default"


class Profile(SQLModel, table=True):
    """Singleton user profile, always stored under ``PROFILE_ID``."""

    __tablename__ = "fp_profile"

    id: str = Field(default=PROFILE_ID, primary_key=True)
    name: str = PROFILE_DEFAULTS.name
    company: str = PROFILE_DEFAULTS.company
    role: str = PROFILE_DEFAULTS.role
    default_start_hour: int = PROFILE_DEFAULTS.default_start_hour
    default_end_hour: int = PROFILE_DEFAULTS.default_end_hour
    mileage_unit: str = PROFILE_DEFAULTS.mileage_unit
    fuel_unit: str = PROFILE_DEFAULTS.fuel_unit
    onboarding_complete: bool = PROFILE_DEFAULTS.onboarding_complete
    hourly_rate: float = PROFILE_DEFAULTS.hourly_rate
    overtime_threshold: float = PROFILE_DEFAULTS.overtime_threshold
    overtime_multiplier: float = PROFILE_DEFAULTS.overtime_multiplier
    weekly_goal_hours: int = PROFILE_DEFAULTS.weekly_goal_hours
    weekly_goal_miles: int = PROFILE_DEFAULTS.weekly_goal_miles
    weekly_goal_fuel_budget: int = PROFILE_DEFAULTS.weekly_goal_fuel_budget
    currency: str = PROFILE_DEFAULTS.currency
    date_format: str = PROFILE_DEFAULTS.date_format
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, server_default="[]"))
    updated_at: Optional[datetime] = Field(default=None, sa_column_kwargs={"server_default": func.now()})


__all__ = ["PROFILE_ID", "Profile"]
