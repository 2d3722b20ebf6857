"""Shared fixtures: an in-memory credential store and a fake Headache API."""
import math
from datetime import date

import pytest

from headache_tracker.models import HeadacheRecord, Profile, RecordPage
from headache_tracker.services.api import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, ApiError
from headache_tracker.services.dashboard import Dashboard
from headache_tracker.services.location import GeolocationResolver

TODAY = date(2026, 1, 5)


class MemoryStore:
    def __init__(self, **values):
        self.values = dict(values)

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value

    def clear(self):
        self.values.clear()


class FakeApi:
    """Records every call; methods listed in `failures` raise the given ApiError."""

    def __init__(self):
        self.calls = []
        self.failures = {}
        self.profile = {"id": "u1", "email": "ada@example.com", "name": "Ada", "location": None}
        self.profile_response = None
        self.weather = {"message": "No weather data available yet"}
        self.rows = {}
        self._next_id = 1

    def _hit(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.failures:
            raise self.failures[name]

    def called(self, name):
        return [c for c in self.calls if c[0] == name]

    def add_row(self, day, **fields):
        rid = f"rec-{self._next_id}"
        self._next_id += 1
        row = {
            "_id": rid,
            "date": day,
            "hadHeadache": False,
            "wentOutsideYesterday": False,
            "drankWaterYesterday": False,
            "createdAt": "2026-01-05T08:00:00.000Z",
            "updatedAt": "2026-01-05T08:00:00.000Z",
        }
        row.update(fields)
        self.rows[rid] = row
        return row

    async def sign_up(self, email, password, name):
        self._hit("sign_up", email, name)
        return {"user": {"id": "u1", "email": email, "name": name}, "accessToken": "a", "refreshToken": "r"}

    async def login(self, email, password):
        self._hit("login", email)
        return {"user": {"id": "u1", "email": email, "name": "Ada"}, "accessToken": "a", "refreshToken": "r"}

    async def logout(self):
        self._hit("logout")

    async def get_profile(self):
        self._hit("get_profile")
        return Profile.from_api(self.profile)

    async def update_profile(self, payload):
        self._hit("update_profile", payload)
        if self.profile_response is not None:
            return self.profile_response
        location = {k: payload[k] for k in ("city", "state", "country", "latitude", "longitude") if k in payload}
        return {"name": payload["name"], "location": location or None}

    async def get_latest_weather(self):
        self._hit("get_latest_weather")
        return self.weather

    async def get_records(self, limit=10, page=1):
        self._hit("get_records", limit, page)
        rows = sorted(self.rows.values(), key=lambda r: r["date"], reverse=True)
        total = len(rows)
        chunk = rows[(page - 1) * limit: page * limit]
        return RecordPage.from_api({
            "data": chunk,
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit),
        })

    async def get_record_by_date(self, day):
        self._hit("get_record_by_date", day)
        for row in self.rows.values():
            if row["date"] == day:
                return HeadacheRecord.from_api(row)
        return None

    async def create_record(self, payload):
        self._hit("create_record", payload)
        fields = {k: v for k, v in payload.items() if k != "date"}
        return HeadacheRecord.from_api(self.add_row(payload["date"], **fields))

    async def update_record(self, record_id, payload):
        self._hit("update_record", record_id, payload)
        row = self.rows[record_id]
        for key in ("headacheStartTime", "headacheEndTime", "notes"):
            row.pop(key, None)
        row.update(payload)
        return HeadacheRecord.from_api(row)

    async def delete_record(self, record_id):
        self._hit("delete_record", record_id)
        if record_id not in self.rows:
            raise ApiError("Record not found", status_code=404, payload={"message": "Record not found"})
        del self.rows[record_id]


async def no_place(lat, lon):
    return None


@pytest.fixture
def store():
    return MemoryStore(**{ACCESS_TOKEN_KEY: "access", REFRESH_TOKEN_KEY: "refresh"})


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def dashboard(api, store):
    return Dashboard(api, store, clock=lambda: TODAY, resolver=GeolocationResolver(no_place))
