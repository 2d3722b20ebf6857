import asyncio

import pytest

from headache_tracker.services.forms import ProfileForm
from headache_tracker.services.location import (
    MANUAL_ENTRY_MESSAGE,
    RESOLVED_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    UNSUPPORTED_MESSAGE,
    BrowserPosition,
    Coordinates,
    GeolocationResolver,
    GeoState,
    PositionError,
    error_message,
)


class CountingSource:
    def __init__(self, coords=None, code=None):
        self.coords = coords
        self.code = code
        self.calls = 0

    async def get_current_position(self):
        self.calls += 1
        if self.code is not None:
            raise PositionError(self.code)
        return self.coords


def geocoder(result):
    seen = []

    async def lookup(lat, lon):
        seen.append((lat, lon))
        return result

    lookup.seen = seen
    return lookup


def filled_form():
    return ProfileForm(name="Ada", city="Old City", state="Old State", country="Old Country")


def test_starts_idle():
    assert GeolocationResolver(geocoder(None)).state is GeoState.IDLE


def test_unsupported_fails_without_request():
    resolver = GeolocationResolver(geocoder(None))
    form = filled_form()
    assert asyncio.run(resolver.resolve(form, None)) is GeoState.FAILED
    assert resolver.status == UNSUPPORTED_MESSAGE
    assert form == filled_form()


def test_reverse_geocode_failure_keeps_locality():
    lookup = geocoder(None)
    resolver = GeolocationResolver(lookup)
    form = filled_form()
    source = CountingSource(Coordinates(40.7, -74.0))

    assert asyncio.run(resolver.resolve(form, source)) is GeoState.RESOLVED
    assert source.calls == 1
    assert lookup.seen == [(40.7, -74.0)]
    assert form.latitude == "40.7"
    assert form.longitude == "-74"
    assert (form.city, form.state, form.country) == ("Old City", "Old State", "Old Country")
    assert resolver.status == MANUAL_ENTRY_MESSAGE


def test_partial_lookup_only_overwrites_returned_fields():
    resolver = GeolocationResolver(geocoder({"city": "New York", "state": None, "country": "United States"}))
    form = filled_form()
    asyncio.run(resolver.resolve(form, CountingSource(Coordinates(40.7, -74.0))))
    assert form.city == "New York"
    assert form.state == "Old State"
    assert form.country == "United States"
    assert resolver.status == RESOLVED_MESSAGE
    assert resolver.state is GeoState.RESOLVED


@pytest.mark.parametrize("code,fragment", [
    (1, "permission denied"),
    (2, "unavailable"),
    (3, "timed out"),
    (0, "unknown error"),
    (99, "unknown error"),
])
def test_position_errors_map_to_messages(code, fragment):
    resolver = GeolocationResolver(geocoder(None))
    form = filled_form()
    assert asyncio.run(resolver.resolve(form, CountingSource(code=code))) is GeoState.FAILED
    assert fragment in resolver.status.lower()
    assert form.latitude == ""


def test_error_message_fallback():
    assert error_message(None) == UNKNOWN_ERROR_MESSAGE


class TestBrowserPosition:
    def test_coordinates(self):
        coords = asyncio.run(BrowserPosition(1.5, 2.5).get_current_position())
        assert coords == Coordinates(1.5, 2.5)

    def test_error_code(self):
        with pytest.raises(PositionError) as exc:
            asyncio.run(BrowserPosition(error_code=3).get_current_position())
        assert exc.value.code == 3

    def test_nothing_posted_is_unknown(self):
        with pytest.raises(PositionError) as exc:
            asyncio.run(BrowserPosition().get_current_position())
        assert exc.value.code == 0
