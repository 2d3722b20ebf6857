"""
Thin async client for the remote Headache API.

Every method opens its own httpx.AsyncClient, attaches the stored access token
as a bearer credential and returns the decoded JSON body. Any failure (error
status or transport problem) surfaces as ApiError.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from headache_tracker.models import HeadacheRecord, Profile, RecordPage

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def server_message(self) -> Optional[str]:
        # Only messages that came from the server body count; transport errors have none.
        if isinstance(self.payload, dict):
            msg = self.payload.get("message")
            if isinstance(msg, list):
                msg = "; ".join(str(m) for m in msg if m)
            return msg or None
        return None


def _decode(r: httpx.Response):
    if not r.content:
        return None
    try:
        return r.json()
    except ValueError:
        return None


def _parse(parser, data, what: str):
    # A 2xx body of the wrong shape is as unusable as an error status.
    if not isinstance(data, dict):
        raise ApiError(f"Unexpected {what} response: {type(data).__name__}")
    try:
        return parser(data)
    except (AttributeError, TypeError, ValueError) as e:
        raise ApiError(f"Unexpected {what} response: {e}") from e


class HeadacheApi:
    def __init__(self, base_url: str, store, *, timeout: Optional[float] = None, transport=None):
        self.base_url = base_url.rstrip("/")
        self.store = store
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        token = self.store.get(ACCESS_TOKEN_KEY)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs):
        try:
            async with self._client() as client:
                r = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(f"Could not reach the server: {e}") from e

        body = _decode(r)
        if r.is_error:
            err = ApiError(f"{method} {path} returned {r.status_code}", status_code=r.status_code, payload=body)
            if err.server_message:
                err.message = err.server_message
            raise err
        return body

    # -- auth ---------------------------------------------------------------

    async def sign_up(self, email: str, password: str, name: str) -> Dict:
        return await self._request("POST", "/auth/signup", json={"email": email, "password": password, "name": name})

    async def login(self, email: str, password: str) -> Dict:
        return await self._request("POST", "/auth/login", json={"email": email, "password": password})

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout")

    async def get_profile(self) -> Profile:
        data = await self._request("GET", "/auth/me")
        return _parse(Profile.from_api, data or {}, "profile")

    async def update_profile(self, payload: Dict[str, Any]) -> Dict:
        data = await self._request("PUT", "/auth/profile", json=payload)
        return _parse(dict, data or {}, "profile")

    # -- weather ------------------------------------------------------------

    async def get_latest_weather(self) -> Dict:
        data = await self._request("GET", "/weather/latest")
        return _parse(dict, data or {}, "weather")

    # -- headache records ---------------------------------------------------

    async def get_records(self, limit: int = 10, page: int = 1) -> RecordPage:
        data = await self._request("GET", "/headache", params={"limit": limit, "page": page})
        return _parse(RecordPage.from_api, data or {}, "record list")

    async def get_record_by_date(self, day: str) -> Optional[HeadacheRecord]:
        try:
            data = await self._request("GET", "/headache/by-date", params={"date": day})
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise
        if not data:
            return None
        return _parse(HeadacheRecord.from_api, data, "record")

    async def create_record(self, payload: Dict[str, Any]) -> HeadacheRecord:
        data = await self._request("POST", "/headache", json=payload)
        record = _parse(HeadacheRecord.from_api, data or {}, "record")
        if not record.id:
            raise ApiError("The server did not return the created record")
        return record

    async def update_record(self, record_id: str, payload: Dict[str, Any]) -> HeadacheRecord:
        data = await self._request("PUT", f"/headache/{record_id}", json=payload)
        return _parse(HeadacheRecord.from_api, data or {}, "record")

    async def delete_record(self, record_id: str) -> None:
        await self._request("DELETE", f"/headache/{record_id}")


def store_tokens(store, tokens: Dict) -> None:
    store.set(ACCESS_TOKEN_KEY, tokens["accessToken"])
    store.set(REFRESH_TOKEN_KEY, tokens["refreshToken"])


def is_authenticated(store) -> bool:
    return bool(store.get(ACCESS_TOKEN_KEY))
