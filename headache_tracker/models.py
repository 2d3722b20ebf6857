from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class StoredCredential(SQLModel, table=True):
    """One saved token (access or refresh) for one browser."""
    __table_args__ = (UniqueConstraint("browser_id", "key"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    browser_id: str = Field(index=True)
    key: str
    value: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


LOCATION_FIELDS = ("city", "state", "country", "latitude", "longitude")


@dataclass
class Location:
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_api(cls, data: Optional[Dict[str, Any]]) -> Optional["Location"]:
        if not data:
            return None
        return cls(
            city=data.get("city"),
            state=data.get("state"),
            country=data.get("country"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )

    def label(self) -> str:
        return ", ".join(p for p in (self.city, self.state, self.country) if p)


@dataclass
class Profile:
    name: str
    location: Optional[Location] = None
    id: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Profile":
        return cls(
            name=data.get("name") or "",
            location=Location.from_api(data.get("location")),
            id=data.get("id") or data.get("_id"),
            email=data.get("email"),
        )

    def merge(self, data: Dict[str, Any]) -> "Profile":
        # Shallow merge: keys present in the server response win, the rest is kept.
        changes: Dict[str, Any] = {}
        if "name" in data:
            changes["name"] = data["name"] or ""
        if "location" in data:
            changes["location"] = Location.from_api(data["location"])
        if "email" in data:
            changes["email"] = data["email"]
        if "id" in data or "_id" in data:
            changes["id"] = data.get("id") or data.get("_id")
        flat = {k: data[k] for k in LOCATION_FIELDS if k in data}
        if flat:
            # Flat location keys, as sent in the update payload, overwrite one by one.
            base = changes.get("location", self.location) or Location()
            changes["location"] = replace(base, **flat)
        return replace(self, **changes)


@dataclass
class HeadacheRecord:
    id: str
    date: str
    had_headache: bool
    went_outside_yesterday: bool
    drank_water_yesterday: bool
    headache_start_time: Optional[str] = None
    headache_end_time: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "HeadacheRecord":
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            # The API returns full ISO timestamps for dates; keep the calendar day.
            date=(data.get("date") or "")[:10],
            had_headache=bool(data.get("hadHeadache")),
            went_outside_yesterday=bool(data.get("wentOutsideYesterday")),
            drank_water_yesterday=bool(data.get("drankWaterYesterday")),
            headache_start_time=data.get("headacheStartTime"),
            headache_end_time=data.get("headacheEndTime"),
            notes=data.get("notes"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


@dataclass
class RecordPage:
    records: List[HeadacheRecord] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10
    total_pages: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RecordPage":
        rows = data.get("records")
        if rows is None:
            rows = data.get("data") or []
        return cls(
            records=[HeadacheRecord.from_api(r) for r in rows],
            total=int(data.get("total") or 0),
            page=int(data.get("page") or 1),
            limit=int(data.get("limit") or 10),
            total_pages=int(data.get("totalPages") or 0),
        )

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages
