"""
Editable form mirrors for the profile and the daily record.

A mirror starts as a copy of the server entity (all values as text/bools),
diverges while the user edits it and is turned back into an API payload on
save. Blank optional values never reach the payload.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from headache_tracker.models import HeadacheRecord, Profile
from headache_tracker.services.validators import (
    blank_to_none,
    format_number,
    parse_float,
    today_key,
    validate_date_key,
    validate_time,
)


@dataclass
class ProfileForm:
    name: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    latitude: str = ""
    longitude: str = ""

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileForm":
        loc = profile.location
        if loc is None:
            return cls(name=profile.name or "")
        return cls(
            name=profile.name or "",
            city=loc.city or "",
            state=loc.state or "",
            country=loc.country or "",
            latitude=format_number(loc.latitude),
            longitude=format_number(loc.longitude),
        )

    def to_payload(self) -> Dict[str, Any]:
        name = blank_to_none(self.name)
        if name is None:
            raise ValueError("Name is required.")
        payload: Dict[str, Any] = {"name": name}
        for key in ("city", "state", "country"):
            value = blank_to_none(getattr(self, key))
            if value is not None:
                payload[key] = value
        for key in ("latitude", "longitude"):
            value = parse_float(getattr(self, key))
            if value is not None:
                payload[key] = value
        return payload


@dataclass
class RecordForm:
    date: str
    had_headache: bool = False
    headache_start_time: str = ""
    headache_end_time: str = ""
    went_outside_yesterday: bool = False
    drank_water_yesterday: bool = False
    notes: str = ""

    @classmethod
    def default(cls, today: Optional[date] = None) -> "RecordForm":
        return cls(date=today_key(today))

    @classmethod
    def from_record(cls, record: HeadacheRecord) -> "RecordForm":
        return cls(
            date=record.date,
            had_headache=record.had_headache,
            headache_start_time=record.headache_start_time or "",
            headache_end_time=record.headache_end_time or "",
            went_outside_yesterday=record.went_outside_yesterday,
            drank_water_yesterday=record.drank_water_yesterday,
            notes=record.notes or "",
        )

    def to_payload(self) -> Dict[str, Any]:
        """Fields shared by create and update (no date)."""
        payload: Dict[str, Any] = {
            "hadHeadache": self.had_headache,
            "wentOutsideYesterday": self.went_outside_yesterday,
            "drankWaterYesterday": self.drank_water_yesterday,
        }
        if self.had_headache:
            start = validate_time(self.headache_start_time)
            end = validate_time(self.headache_end_time)
            if start is not None:
                payload["headacheStartTime"] = start
            if end is not None:
                payload["headacheEndTime"] = end
        notes = blank_to_none(self.notes)
        if notes is not None:
            payload["notes"] = notes
        return payload

    def to_create_payload(self) -> Dict[str, Any]:
        return {"date": validate_date_key(self.date), **self.to_payload()}
