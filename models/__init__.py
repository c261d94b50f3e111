"""Server-side tables for the FieldPulse sync API.

Data columns are nullable with server defaults so an item carrying only some
fields can still be inserted; ``id`` is the only required column.
"""
from .daily_note import DailyNote
from .fuel_log import FuelLog
from .mileage_entry import MileageEntry
from .places import LocationLog, SavedLocation, Vehicle
from .profile import PROFILE_ID, Profile
from .setting import Setting
from .time_entry import TimeEntry

__all__ = [
    "DailyNote",
    "FuelLog",
    "LocationLog",
    "MileageEntry",
    "PROFILE_ID",
    "Profile",
    "SavedLocation",
    "Setting",
    "TimeEntry",
    "Vehicle",
]
