"""In-memory working set of the FieldPulse client.

Records are plain ``dict``s in the camel-case wire shape so that a snapshot
can be sent to the server without translation.
"""
from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from core.logs import ensure_logger
from core.settings import DEFAULT_TAGS, LOG_DIR, PROFILE_DEFAULTS
from datetime_utils import day_key, hours_between, parse_iso, previous_day_key, to_iso, utc_now


logger = ensure_logger("fieldpulse.store", LOG_DIR / "store.log")

TIME_ENTRIES = "timeEntries"
MILEAGE_ENTRIES = "mileageEntries"
FUEL_LOGS = "fuelLogs"
DAILY_NOTES = "dailyNotes"
SAVED_LOCATIONS = "savedLocations"
VEHICLES = "vehicles"
LOCATION_LOGS = "locationLogs"

COLLECTION_KEYS = (
    TIME_ENTRIES,
    MILEAGE_ENTRIES,
    FUEL_LOGS,
    DAILY_NOTES,
    SAVED_LOCATIONS,
    VEHICLES,
    LOCATION_LOGS,
)

UNDO_KINDS = {
    "delete-time": TIME_ENTRIES,
    "delete-mileage": MILEAGE_ENTRIES,
    "delete-fuel": FUEL_LOGS,
    "delete-note": DAILY_NOTES,
}
UNDO_LIMIT = 10
RECENT_STATIONS_LIMIT = 5

# kept newest first; merged records are placed by these keys
RECENCY_KEYS = {
    TIME_ENTRIES: ("date", "startTime"),
    MILEAGE_ENTRIES: ("date",),
    FUEL_LOGS: ("date", "time"),
    DAILY_NOTES: ("date", "createdAt"),
}


@dataclass(frozen=True)
class Stopped:
    pass


@dataclass(frozen=True)
class Running:
    """A timer (ISO start timestamp) or trip (start odometer) in progress."""

    start: Any


RunState = Union[Stopped, Running]
STOPPED = Stopped()

Listener = Callable[["LocalStore"], None]


def _new_id() -> str:
    return uuid.uuid4().hex


def default_profile() -> Dict[str, Any]:
    d = PROFILE_DEFAULTS
    return {
        "name": d.name,
        "company": d.company,
        "role": d.role,
        "defaultStartHour": d.default_start_hour,
        "defaultEndHour": d.default_end_hour,
        "mileageUnit": d.mileage_unit,
        "fuelUnit": d.fuel_unit,
        "onboardingComplete": d.onboarding_complete,
        "hourlyRate": d.hourly_rate,
        "overtimeThreshold": d.overtime_threshold,
        "overtimeMultiplier": d.overtime_multiplier,
        "weeklyGoal": {
            "hoursTarget": d.weekly_goal_hours,
            "milesTarget": d.weekly_goal_miles,
            "fuelBudget": d.weekly_goal_fuel_budget,
        },
        "currency": d.currency,
        "dateFormat": d.date_format,
    }


def _trip_miles(start: Any, end: Any) -> float:
    return float(end) - float(start)


def _recency(keys: Iterable[str]) -> Callable[[Mapping[str, Any]], tuple]:
    return lambda record: tuple(str(record.get(key) or "") for key in keys)


class LocalStore:
    """Canonical client state; every mutation notifies subscribers once."""

    def __init__(
        self,
        state: Optional[Mapping[str, Any]] = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._clock = clock
        self._new_id = id_factory
        self._listeners: List[Listener] = []

        self.profile: Dict[str, Any] = default_profile()
        self.collections: Dict[str, List[Dict[str, Any]]] = {key: [] for key in COLLECTION_KEYS}
        self.custom_tags: List[str] = list(DEFAULT_TAGS)
        self.pinned_note_ids: List[str] = []
        self.extra_settings: Dict[str, Any] = {}
        self.timer: RunState = STOPPED
        self.trip: RunState = STOPPED
        self.streak_count = 0
        self.last_log_date: Optional[str] = None
        self.recent_stations: List[str] = []
        self.active_vehicle_id: Optional[str] = None
        self.undo_stack: List[Dict[str, Any]] = []

        if state:
            self._load(state)

    # ------------------------------------------------------------------
    # Observers
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Store listener %r failed", listener)

    # ------------------------------------------------------------------
    # Read helpers
    @property
    def time_entries(self) -> List[Dict[str, Any]]:
        return self.collections[TIME_ENTRIES]

    @property
    def mileage_entries(self) -> List[Dict[str, Any]]:
        return self.collections[MILEAGE_ENTRIES]

    @property
    def fuel_logs(self) -> List[Dict[str, Any]]:
        return self.collections[FUEL_LOGS]

    @property
    def daily_notes(self) -> List[Dict[str, Any]]:
        return self.collections[DAILY_NOTES]

    @property
    def saved_locations(self) -> List[Dict[str, Any]]:
        return self.collections[SAVED_LOCATIONS]

    @property
    def vehicles(self) -> List[Dict[str, Any]]:
        return self.collections[VEHICLES]

    @property
    def location_logs(self) -> List[Dict[str, Any]]:
        return self.collections[LOCATION_LOGS]

    @property
    def is_timer_running(self) -> bool:
        return isinstance(self.timer, Running)

    @property
    def is_trip_running(self) -> bool:
        return isinstance(self.trip, Running)

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        for record in self.collections[collection]:
            if record.get("id") == record_id:
                return record
        return None

    def ids(self, collection: str) -> set:
        return {record.get("id") for record in self.collections[collection]}

    # ------------------------------------------------------------------
    # Generic collection operations
    def _add(self, collection: str, fields: Mapping[str, Any]) -> str:
        record_id = self._new_id()
        record = dict(fields)
        record["id"] = record_id
        self.collections[collection].insert(0, record)
        self._emit()
        return record_id

    def _update(self, collection: str, record_id: str, updates: Mapping[str, Any]) -> bool:
        record = self.get(collection, record_id)
        if record is None:
            return False
        record.update({k: v for k, v in updates.items() if k != "id"})
        self._emit()
        return True

    def _delete(self, collection: str, record_id: str) -> bool:
        records = self.collections[collection]
        remaining = [r for r in records if r.get("id") != record_id]
        if len(remaining) == len(records):
            return False
        self.collections[collection] = remaining
        self._emit()
        return True

    # ----- time entries -----
    def add_time_entry(self, entry: Mapping[str, Any]) -> str:
        return self._add(TIME_ENTRIES, entry)

    def update_time_entry(self, entry_id: str, updates: Mapping[str, Any]) -> None:
        self._update(TIME_ENTRIES, entry_id, updates)

    def delete_time_entry(self, entry_id: str) -> None:
        self._delete(TIME_ENTRIES, entry_id)

    # ----- mileage entries -----
    def add_mileage_entry(self, entry: Mapping[str, Any]) -> str:
        fields = dict(entry)
        if "tripMiles" not in fields:
            end = fields.get("endMileage")
            fields["tripMiles"] = _trip_miles(fields.get("startMileage", 0), end) if end is not None else 0
        return self._add(MILEAGE_ENTRIES, fields)

    def update_mileage_entry(self, entry_id: str, updates: Mapping[str, Any]) -> None:
        record = self.get(MILEAGE_ENTRIES, entry_id)
        if record is None:
            return
        fields = dict(updates)
        if "tripMiles" not in fields and ("startMileage" in fields or "endMileage" in fields):
            start = fields.get("startMileage", record.get("startMileage"))
            end = fields.get("endMileage", record.get("endMileage"))
            if start is not None and end is not None:
                fields["tripMiles"] = _trip_miles(start, end)
        self._update(MILEAGE_ENTRIES, entry_id, fields)

    def delete_mileage_entry(self, entry_id: str) -> None:
        self._delete(MILEAGE_ENTRIES, entry_id)

    # ----- fuel logs -----
    def add_fuel_log(self, log: Mapping[str, Any]) -> str:
        fields = dict(log)
        if "totalCost" not in fields and fields.get("gallons") is not None and fields.get("costPerGallon") is not None:
            fields["totalCost"] = round(float(fields["gallons"]) * float(fields["costPerGallon"]), 2)
        return self._add(FUEL_LOGS, fields)

    def update_fuel_log(self, log_id: str, updates: Mapping[str, Any]) -> None:
        self._update(FUEL_LOGS, log_id, updates)

    def delete_fuel_log(self, log_id: str) -> None:
        self._delete(FUEL_LOGS, log_id)

    # ----- daily notes -----
    def add_daily_note(self, note: Mapping[str, Any]) -> str:
        fields = dict(note)
        now = to_iso(self._clock())
        fields.setdefault("createdAt", now)
        fields.setdefault("updatedAt", now)
        return self._add(DAILY_NOTES, fields)

    def update_daily_note(self, note_id: str, updates: Mapping[str, Any]) -> None:
        self._update(DAILY_NOTES, note_id, updates)

    def delete_daily_note(self, note_id: str) -> None:
        self._delete(DAILY_NOTES, note_id)

    def toggle_pin_note(self, note_id: str) -> None:
        if note_id in self.pinned_note_ids:
            self.pinned_note_ids = [p for p in self.pinned_note_ids if p != note_id]
        else:
            self.pinned_note_ids = self.pinned_note_ids + [note_id]
        self._emit()

    # ----- places & vehicles -----
    def add_location(self, location: Mapping[str, Any]) -> str:
        return self._add(SAVED_LOCATIONS, location)

    def remove_location(self, location_id: str) -> None:
        self._delete(SAVED_LOCATIONS, location_id)

    def add_vehicle(self, vehicle: Mapping[str, Any]) -> str:
        return self._add(VEHICLES, vehicle)

    def update_vehicle(self, vehicle_id: str, updates: Mapping[str, Any]) -> None:
        self._update(VEHICLES, vehicle_id, updates)

    def delete_vehicle(self, vehicle_id: str) -> None:
        if self.active_vehicle_id == vehicle_id:
            self.active_vehicle_id = None
        self._delete(VEHICLES, vehicle_id)

    def set_active_vehicle(self, vehicle_id: Optional[str]) -> None:
        self.active_vehicle_id = vehicle_id
        self._emit()

    def add_location_log(self, log: Mapping[str, Any]) -> str:
        return self._add(LOCATION_LOGS, log)

    def clear_shift_locations(self, shift_id: str) -> None:
        self.collections[LOCATION_LOGS] = [
            log for log in self.collections[LOCATION_LOGS] if log.get("shiftId") != shift_id
        ]
        self._emit()

    # ----- profile, tags, stations -----
    def set_profile(self, **fields: Any) -> None:
        self.profile.update(fields)
        self._emit()

    def set_weekly_goal(self, **fields: Any) -> None:
        goal = dict(self.profile.get("weeklyGoal") or {})
        goal.update(fields)
        self.profile["weeklyGoal"] = goal
        self._emit()

    def replace_profile(self, profile: Mapping[str, Any]) -> None:
        """Wholesale replacement; missing keys fall back to defaults."""
        merged = default_profile()
        merged.update(copy.deepcopy(dict(profile)))
        self.profile = merged
        self._emit()

    def add_tag(self, tag: str) -> None:
        if tag not in self.custom_tags:
            self.custom_tags = self.custom_tags + [tag]
        self._emit()

    def remove_tag(self, tag: str) -> None:
        self.custom_tags = [t for t in self.custom_tags if t != tag]
        self._emit()

    def add_recent_station(self, station: str) -> None:
        stations = [station] + [s for s in self.recent_stations if s != station]
        self.recent_stations = stations[:RECENT_STATIONS_LIMIT]
        self._emit()

    # ------------------------------------------------------------------
    # Timer and trip
    def start_timer(self) -> None:
        self.timer = Running(to_iso(self._clock()))
        self._emit()

    def stop_timer(
        self,
        break_minutes: int = 0,
        notes: str = "",
        tags: Iterable[str] = (),
    ) -> Optional[str]:
        """Finalize the running timer into a time entry and return its id."""

        if not isinstance(self.timer, Running):
            return None
        started = self.timer.start
        end = self._clock()
        worked = max(0.0, hours_between(parse_iso(started), end) - break_minutes / 60)
        threshold = float(self.profile.get("overtimeThreshold", PROFILE_DEFAULTS.overtime_threshold))

        entry_id = self._new_id()
        entry = {
            "id": entry_id,
            "startTime": started,
            "endTime": to_iso(end),
            "breakMinutes": break_minutes,
            "notes": notes,
            "tags": list(tags),
            "date": day_key(end),
            "isOvertime": worked > threshold,
            "hourlyRate": self.profile.get("hourlyRate") or None,
        }
        self.collections[TIME_ENTRIES].insert(0, entry)
        self.timer = STOPPED
        self._touch_streak()
        self._emit()
        return entry_id

    def start_trip(self, start_mileage: float) -> None:
        # a second start overwrites the first
        self.trip = Running(start_mileage)
        self._emit()

    def end_trip(self, end_mileage: float, purpose: str = "work") -> Optional[str]:
        if not isinstance(self.trip, Running):
            return None
        start = self.trip.start
        entry_id = self._new_id()
        entry = {
            "id": entry_id,
            "date": day_key(self._clock()),
            "startMileage": start,
            "endMileage": end_mileage,
            "tripMiles": _trip_miles(start, end_mileage),
            "startLocation": "",
            "endLocation": "",
            "notes": "",
            "linkedTimeEntryId": None,
            "purpose": purpose,
        }
        self.collections[MILEAGE_ENTRIES].insert(0, entry)
        self.trip = STOPPED
        self._touch_streak()
        self._emit()
        return entry_id

    def _touch_streak(self) -> None:
        now = self._clock()
        today = day_key(now)
        if self.last_log_date == today:
            return
        if self.last_log_date == previous_day_key(now):
            self.streak_count += 1
        else:
            self.streak_count = 1
        self.last_log_date = today

    def update_streak(self) -> None:
        self._touch_streak()
        self._emit()

    # ------------------------------------------------------------------
    # Undo
    def push_undo(self, kind: str, data: Mapping[str, Any]) -> None:
        if kind not in UNDO_KINDS:
            raise ValueError(f"Unsupported undo action: {kind}")
        action = {
            "id": self._new_id(),
            "type": kind,
            "data": copy.deepcopy(dict(data)),
            "timestamp": int(self._clock().timestamp() * 1000),
        }
        self.undo_stack = ([action] + self.undo_stack)[:UNDO_LIMIT]
        self._emit()

    def pop_undo(self) -> Optional[Dict[str, Any]]:
        """Restore the most recently deleted record, if any."""
        if not self.undo_stack:
            return None
        action, self.undo_stack = self.undo_stack[0], self.undo_stack[1:]
        collection = UNDO_KINDS.get(action["type"])
        if collection:
            self.collections[collection].insert(0, copy.deepcopy(action["data"]))
        self._emit()
        return action

    def clear_undo(self) -> None:
        self.undo_stack = []
        self._emit()

    # ------------------------------------------------------------------
    # Sync support
    def merge_remote(self, collection: str, records: Iterable[Any]) -> int:
        """Add remote records whose id is not present locally.

        Local records always win on id collision; nothing is field-merged.
        Recency-ordered collections stay newest first; records that tie keep
        local-then-remote order.
        """

        known = self.ids(collection)
        added: List[Dict[str, Any]] = []
        for record in records:
            if not isinstance(record, Mapping):
                continue
            record_id = record.get("id")
            if record_id is None or record_id in known:
                continue
            known.add(record_id)
            added.append(copy.deepcopy(dict(record)))
        if added:
            merged = self.collections[collection] + added
            keys = RECENCY_KEYS.get(collection)
            if keys:
                merged = sorted(merged, key=_recency(keys), reverse=True)
            self.collections[collection] = merged
            self._emit()
        return len(added)

    def apply_remote_settings(self, settings: Mapping[str, Any]) -> None:
        """Server wins for every key it sends."""
        for key, value in settings.items():
            if key == "customTags":
                if isinstance(value, list):
                    self.custom_tags = [str(tag) for tag in value]
            elif key == "pinnedNoteIds":
                if isinstance(value, list):
                    self.pinned_note_ids = [str(pid) for pid in value]
            else:
                self.extra_settings[key] = copy.deepcopy(value)
        self._emit()

    def settings(self) -> Dict[str, Any]:
        payload = copy.deepcopy(self.extra_settings)
        payload["customTags"] = list(self.custom_tags)
        payload["pinnedNoteIds"] = list(self.pinned_note_ids)
        return payload

    def snapshot(self) -> Dict[str, Any]:
        """Everything that is pushed: profile, all collections and settings."""
        data: Dict[str, Any] = {"profile": copy.deepcopy(self.profile)}
        for key in COLLECTION_KEYS:
            data[key] = copy.deepcopy(self.collections[key])
        data["settings"] = self.settings()
        return data

    # ------------------------------------------------------------------
    # Persisted shape
    def to_dict(self) -> Dict[str, Any]:
        state = self.snapshot()
        del state["settings"]
        state.update(
            {
                "customTags": list(self.custom_tags),
                "pinnedNoteIds": list(self.pinned_note_ids),
                "settings": copy.deepcopy(self.extra_settings),
                "activeTimerStart": self.timer.start if isinstance(self.timer, Running) else None,
                "isTimerRunning": self.is_timer_running,
                "activeTripStart": self.trip.start if isinstance(self.trip, Running) else None,
                "isTripRunning": self.is_trip_running,
                "streakCount": self.streak_count,
                "lastLogDate": self.last_log_date,
                "recentStations": list(self.recent_stations),
                "activeVehicleId": self.active_vehicle_id,
                "undoStack": copy.deepcopy(self.undo_stack),
            }
        )
        return state

    def _load(self, state: Mapping[str, Any]) -> None:
        data = copy.deepcopy(dict(state))
        if isinstance(data.get("profile"), dict):
            self.profile = {**default_profile(), **data["profile"]}
        for key in COLLECTION_KEYS:
            if isinstance(data.get(key), list):
                self.collections[key] = [r for r in data[key] if isinstance(r, dict)]
        if isinstance(data.get("customTags"), list):
            self.custom_tags = list(data["customTags"])
        if isinstance(data.get("pinnedNoteIds"), list):
            self.pinned_note_ids = list(data["pinnedNoteIds"])
        if isinstance(data.get("settings"), dict):
            self.extra_settings = data["settings"]
        if data.get("isTimerRunning") and data.get("activeTimerStart"):
            self.timer = Running(data["activeTimerStart"])
        if data.get("isTripRunning") and data.get("activeTripStart") is not None:
            self.trip = Running(data["activeTripStart"])
        self.streak_count = int(data.get("streakCount") or 0)
        self.last_log_date = data.get("lastLogDate")
        self.recent_stations = list(data.get("recentStations") or [])
        self.active_vehicle_id = data.get("activeVehicleId")
        self.undo_stack = list(data.get("undoStack") or [])

    @classmethod
    def from_dict(cls, state: Mapping[str, Any], **kwargs: Any) -> "LocalStore":
        return cls(state, **kwargs)


__all__ = [
    "COLLECTION_KEYS",
    "DAILY_NOTES",
    "FUEL_LOGS",
    "LOCATION_LOGS",
    "LocalStore",
    "MILEAGE_ENTRIES",
    "Running",
    "RunState",
    "SAVED_LOCATIONS",
    "STOPPED",
    "Stopped",
    "TIME_ENTRIES",
    "VEHICLES",
    "default_profile",
]
