"""
One dashboard page view: load sequence, form mirrors and the actions on them.

Load order is fixed: session check, then profile, then weather and records
side by side. Each call's failure stays inside its own stage; only a failed
profile fetch (treated as an expired session) stops the page.
"""
import asyncio
import logging
from datetime import date
from typing import Callable, List, Optional

from headache_tracker.models import HeadacheRecord, Profile, RecordPage
from headache_tracker.services.api import HeadacheApi, is_authenticated
from headache_tracker.services.forms import ProfileForm, RecordForm
from headache_tracker.services.location import GeolocationResolver
from headache_tracker.services.outcome import Outcome, attempt
from headache_tracker.services.validators import today_key
from headache_tracker.services.weather import HourlyPoint, hourly_slice

logger = logging.getLogger(__name__)

LOGIN_URL = "/login"

PROFILE_SAVED = "Profile updated successfully"
PROFILE_SAVE_FAILED = "Failed to update profile"
RECORD_SAVED = "Record saved successfully"
RECORD_SAVE_FAILED = "Failed to save record"
RECORD_DELETED = "Record deleted"
RECORD_DELETE_FAILED = "Failed to delete record"


def _failure_message(outcome: Outcome, fallback: str) -> str:
    return outcome.error.server_message or fallback


class Dashboard:
    def __init__(
        self,
        api: HeadacheApi,
        store,
        *,
        page_size: int = 10,
        hourly_size: int = 24,
        clock: Callable[[], date] = date.today,
        resolver: Optional[GeolocationResolver] = None,
    ):
        self.api = api
        self.store = store
        self.page_size = page_size
        self.hourly_size = hourly_size
        self.clock = clock
        self.resolver = resolver or GeolocationResolver()

        self.redirect: Optional[str] = None

        self.profile: Optional[Profile] = None
        self.profile_form = ProfileForm()
        self.profile_message = ""
        self.profile_error = ""
        self.saving_profile = False

        self.weather: Optional[dict] = None
        self.hourly: List[HourlyPoint] = []

        self.records: List[HeadacheRecord] = []
        self.record_page: Optional[RecordPage] = None
        self.current_page = 1
        self.today_record: Optional[HeadacheRecord] = None
        self.record_form = RecordForm.default(clock())
        self.record_message = ""
        self.record_error = ""
        self.saving_record = False

    @property
    def today(self) -> str:
        return today_key(self.clock())

    @property
    def total_pages(self) -> int:
        return self.record_page.total_pages if self.record_page else 0

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    # -- session guard ------------------------------------------------------

    async def load(self) -> bool:
        """Run the page-load sequence. Returns False when redirected to login."""
        if not is_authenticated(self.store):
            self.redirect = LOGIN_URL
            return False

        result = await attempt(self.api.get_profile())
        if not result.ok:
            logger.info("Profile fetch failed (%s); sending to login", result.error)
            self.redirect = LOGIN_URL
            return False

        self.profile = result.value
        self.profile_form = ProfileForm.from_profile(self.profile)

        await asyncio.gather(self.load_weather(), self.load_records())
        return True

    async def logout(self) -> None:
        result = await attempt(self.api.logout())
        if not result.ok:
            logger.error("Logout failed: %s", result.error)
        self.store.clear()
        self.redirect = LOGIN_URL

    # -- weather ------------------------------------------------------------

    async def load_weather(self) -> None:
        result = await attempt(self.api.get_latest_weather())
        if not result.ok:
            logger.warning("Weather fetch failed: %s", result.error)
            self.weather = None
            self.hourly = []
            return
        self.weather = result.value
        self.hourly = hourly_slice(self.weather, self.hourly_size)

    # -- records ------------------------------------------------------------

    async def load_records(self) -> None:
        page, today = await asyncio.gather(
            attempt(self.api.get_records(self.page_size, 1)),
            attempt(self.api.get_record_by_date(self.today)),
        )
        if page.ok:
            self._show_page(page.value, 1)
        else:
            logger.warning("Record list fetch failed: %s", page.error)

        if today.ok and today.value is not None:
            self.today_record = today.value
            self.record_form = RecordForm.from_record(today.value)
        elif not today.ok:
            logger.warning("Today's record fetch failed: %s", today.error)

    def _show_page(self, page: RecordPage, number: int) -> None:
        self.record_page = page
        self.records = page.records
        self.current_page = number

    async def go_to_page(self, number: int) -> bool:
        result = await attempt(self.api.get_records(self.page_size, number))
        if not result.ok:
            logger.warning("Fetching page %s failed: %s", number, result.error)
            return False
        self._show_page(result.value, number)
        return True

    async def save_record(self) -> bool:
        self.record_message = ""
        self.record_error = ""
        self.saving_record = True
        try:
            try:
                if self.today_record is not None:
                    call = self.api.update_record(self.today_record.id, self.record_form.to_payload())
                else:
                    call = self.api.create_record(self.record_form.to_create_payload())
            except ValueError as e:
                self.record_error = str(e)
                return False

            result = await attempt(call)
            if not result.ok:
                logger.warning("Saving record failed: %s", result.error)
                self.record_error = _failure_message(result, RECORD_SAVE_FAILED)
                return False

            record = result.value
            if not record.id and self.today_record is not None:
                record.id = self.today_record.id
            self.today_record = record
            self.record_message = RECORD_SAVED
        finally:
            self.saving_record = False

        await self.go_to_page(self.current_page)
        return True

    async def delete_record(self, record_id: str) -> bool:
        self.record_message = ""
        self.record_error = ""
        result = await attempt(self.api.delete_record(record_id))
        if not result.ok:
            logger.warning("Deleting record %s failed: %s", record_id, result.error)
            self.record_error = _failure_message(result, RECORD_DELETE_FAILED)
            return False

        if self.today_record is not None and self.today_record.id == record_id:
            self.today_record = None
            self.record_form = RecordForm.default(self.clock())
        self.record_message = RECORD_DELETED

        if await self.go_to_page(self.current_page):
            # The last row of the last page is gone; step back to what is now the last page.
            if not self.records and 1 <= self.total_pages < self.current_page:
                await self.go_to_page(self.total_pages)
        return True

    # -- profile ------------------------------------------------------------

    async def save_profile(self) -> bool:
        self.profile_message = ""
        self.profile_error = ""
        self.saving_profile = True
        try:
            try:
                payload = self.profile_form.to_payload()
            except ValueError as e:
                self.profile_error = str(e)
                return False

            result = await attempt(self.api.update_profile(payload))
            if not result.ok:
                logger.warning("Profile update failed: %s", result.error)
                self.profile_error = _failure_message(result, PROFILE_SAVE_FAILED)
                return False

            base = self.profile or Profile(name="")
            self.profile = base.merge(result.value or {})
            self.profile_message = PROFILE_SAVED
        finally:
            self.saving_profile = False

        # The location may have changed.
        await self.load_weather()
        return True

    async def use_current_location(self, source) -> None:
        await self.resolver.resolve(self.profile_form, source)

    @property
    def location_status(self) -> str:
        return self.resolver.status
