"""Tests for DashboardCoordinator lifecycle and source merging.

These tests drive the coordinator without a running Home Assistant
instance. Timers are captured instead of scheduled, and the HTTP client
is replaced with AsyncMocks so the order in which sources resolve can be
controlled from the test.
"""

import asyncio
import os
import sys
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from custom_components.daily_dashboard.api import (
    DashboardApiError,
    NamedayInfo,
    PlaceInfo,
    Quote,
    TimezoneInfo,
    WeatherInfo,
)
from custom_components.daily_dashboard.const import (
    KEY_BACKGROUND_IMAGE,
    KEY_DATE,
    KEY_DAY_OF_YEAR,
    KEY_DISPLAY_NAME,
    KEY_GREETING,
    KEY_LOADING,
    KEY_NAMEDAY,
    KEY_PART_OF_DAY,
    KEY_PLACE_CITY,
    KEY_QUOTE_AUTHOR,
    KEY_QUOTE_CONTENT,
    KEY_TIME_LABEL,
    KEY_TZ_ABBREVIATION,
    KEY_TZ_REGION,
    KEY_WEATHER_TEMP_C,
    SPLASH_DURATION_S,
    TICK_INTERVAL_S,
    WEATHER_PAIR_KEYS,
)
from custom_components.daily_dashboard.coordinator import (
    CancelToken,
    DashboardCoordinator,
    DashboardRuntime,
)
from custom_components.daily_dashboard.session import SessionStore

MODULE = "custom_components.daily_dashboard.coordinator"
NOW = datetime(2026, 10, 19, 9, 41, 25)

TZ = TimezoneInfo(abbreviation="CEST", region_label="Bratislava, Europe", day_of_year=292)
QUOTE = Quote(author="Seneca", content="Luck is what happens when preparation meets opportunity.")
NAMEDAY = NamedayInfo(name="Lukáš")
WEATHER = WeatherInfo(temp_c=12.0, temp_f=53.6, condition_text="Sunny", icon_url="https://x/113.png")
PLACE = PlaceInfo(city="Bratislava", country="Slovakia")


# ---------------------------------------------------------------------------
# Mock helpers
# ---------------------------------------------------------------------------


def _make_store(data=None):
    store = MagicMock()
    store.async_load = AsyncMock(return_value=data)
    store.async_save = AsyncMock()
    store.async_remove = AsyncMock()
    return store


def _make_api(weather_api_key="secret"):
    api = MagicMock()
    api.weather_api_key = weather_api_key
    api.async_get_timezone = AsyncMock(return_value=TZ)
    api.async_get_quote = AsyncMock(return_value=QUOTE)
    api.async_get_nameday = AsyncMock(return_value=NAMEDAY)
    api.async_get_weather = AsyncMock(return_value=WEATHER)
    api.async_get_place = AsyncMock(return_value=PLACE)
    return api


def _make_coordinator(share_location=True, weather_api_key="secret", stored=None):
    """Create a DashboardCoordinator with mocked HA and HTTP dependencies."""
    hass = MagicMock()
    hass.config.latitude = 48.1486
    hass.config.longitude = 17.1077
    hass.created = []
    hass.async_create_task = lambda coro: hass.created.append(coro)

    # Patch the DataUpdateCoordinator __init__ to avoid HA internals
    with patch.object(DashboardCoordinator, "__init__", lambda self, *a, **kw: None):
        coord = DashboardCoordinator.__new__(DashboardCoordinator)

    coord.hass = hass
    coord.entry_data = {}
    coord.entry_options = {}
    coord.session = SessionStore(hass, store=_make_store(stored))
    coord.api = _make_api(weather_api_key)
    coord.runtime = DashboardRuntime()
    coord.share_location = share_location
    coord.latitude = None
    coord.longitude = None
    coord._state = {}
    coord._unsubs = []
    coord.data = None
    coord.async_set_updated_data = MagicMock(side_effect=lambda d: setattr(coord, "data", d))
    return coord


class _Timers:
    """Captures async_call_later / async_track_time_interval registrations."""

    def __init__(self):
        self.later = []
        self.interval = []

    def call_later(self, hass, delay, action):
        unsub = MagicMock()
        self.later.append((delay, action, unsub))
        return unsub

    def track_interval(self, hass, action, interval):
        unsub = MagicMock()
        self.interval.append((interval, action, unsub))
        return unsub

    def action_after(self, delay):
        return next(a for d, a, _ in self.later if d == delay)


@contextmanager
def _patched_clock(now=NOW):
    timers = _Timers()
    with patch(f"{MODULE}.dt_util") as dt, patch(
        f"{MODULE}.async_call_later", side_effect=timers.call_later
    ), patch(f"{MODULE}.async_track_time_interval", side_effect=timers.track_interval):
        dt.now.return_value = now
        dt.utcnow.return_value = now.replace(tzinfo=timezone.utc)
        yield timers


async def _start_and_settle(coord):
    already = len(coord.hass.created)
    await coord.async_start()
    await asyncio.gather(*coord.hass.created[already:])


def _fired():
    return datetime(2026, 10, 19, 7, 42, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Mount
# ---------------------------------------------------------------------------


class TestStart:
    def test_first_tick_is_synchronous(self):
        coord = _make_coordinator()
        with _patched_clock():
            asyncio.run(coord.async_start())
        for coro in coord.hass.created:
            coro.close()

        assert coord.data[KEY_TIME_LABEL] == "09:41"
        assert coord.data[KEY_GREETING] == "Good Morning"
        assert coord.data[KEY_PART_OF_DAY] == "morning"
        assert coord.data[KEY_BACKGROUND_IMAGE] == "sunrise.jpg"
        assert coord.data[KEY_DATE] == NOW.strftime("%x")
        assert coord.data[KEY_LOADING] is True

    def test_spawns_one_task_per_source(self):
        coord = _make_coordinator()
        with _patched_clock():
            asyncio.run(_start_and_settle(coord))
        assert len(coord.hass.created) == 4
        coord.api.async_get_timezone.assert_awaited_once()
        coord.api.async_get_quote.assert_awaited_once()
        coord.api.async_get_nameday.assert_awaited_once()
        coord.api.async_get_weather.assert_awaited_once_with(48.1486, 17.1077)

    def test_all_sources_merged(self):
        coord = _make_coordinator()
        with _patched_clock():
            asyncio.run(_start_and_settle(coord))
        d = coord.data
        assert d[KEY_TZ_ABBREVIATION] == "CEST"
        assert d[KEY_TZ_REGION] == "Bratislava, Europe"
        assert d[KEY_DAY_OF_YEAR] == 292
        assert d[KEY_QUOTE_AUTHOR] == "Seneca"
        assert d[KEY_NAMEDAY] == "Lukáš"
        assert d[KEY_WEATHER_TEMP_C] == 12.0
        assert d[KEY_PLACE_CITY] == "Bratislava"
        assert coord.runtime.location_shared is True

    def test_stored_name_restored(self):
        coord = _make_coordinator(stored={"display_name": "Al"})
        with _patched_clock():
            asyncio.run(_start_and_settle(coord))
        assert coord.data[KEY_DISPLAY_NAME] == "Al"


# ---------------------------------------------------------------------------
# Clock timers
# ---------------------------------------------------------------------------


class TestClockTimers:
    def test_first_retick_aligned_to_minute(self):
        coord = _make_coordinator()
        with _patched_clock() as timers:
            asyncio.run(_start_and_settle(coord))
        delays = [d for d, _, _ in timers.later]
        assert 35 in delays
        assert SPLASH_DURATION_S in delays

    def test_minute_boundary_starts_interval(self):
        coord = _make_coordinator()
        with _patched_clock() as timers:
            asyncio.run(_start_and_settle(coord))
            timers.action_after(35)(_fired())
        assert len(timers.interval) == 1
        interval, action, _ = timers.interval[0]
        assert interval == timedelta(seconds=TICK_INTERVAL_S)
        assert action == coord._handle_tick

    def test_retick_updates_label(self):
        coord = _make_coordinator()
        with _patched_clock() as timers:
            asyncio.run(_start_and_settle(coord))
        later = datetime(2026, 10, 19, 12, 0, 0)
        with patch(f"{MODULE}.dt_util") as dt:
            dt.now.return_value = later
            coord._handle_tick(_fired())
        assert coord.data[KEY_TIME_LABEL] == "12:00"
        assert coord.data[KEY_GREETING] == "Good Afternoon"
        assert coord.runtime.last_tick == later

    def test_minute_boundary_after_stop_is_noop(self):
        coord = _make_coordinator()
        with _patched_clock() as timers:
            asyncio.run(_start_and_settle(coord))
            asyncio.run(coord.async_stop())
            timers.action_after(35)(_fired())
        assert timers.interval == []


# ---------------------------------------------------------------------------
# Splash
# ---------------------------------------------------------------------------


class TestSplash:
    def test_loading_cleared_after_splash(self):
        coord = _make_coordinator()
        with _patched_clock() as timers:
            asyncio.run(_start_and_settle(coord))
        timers.action_after(SPLASH_DURATION_S)(_fired())
        assert coord.data[KEY_LOADING] is False

    def test_loading_cleared_even_when_every_source_fails(self):
        coord = _make_coordinator()
        err = DashboardApiError("offline")
        for name in ("timezone", "quote", "nameday", "weather", "place"):
            getattr(coord.api, f"async_get_{name}").side_effect = err
        with _patched_clock() as timers:
            asyncio.run(_start_and_settle(coord))
        timers.action_after(SPLASH_DURATION_S)(_fired())

        assert coord.data[KEY_LOADING] is False
        assert KEY_TZ_ABBREVIATION not in coord.data
        assert KEY_QUOTE_CONTENT not in coord.data
        assert not any(k in coord.data for k in WEATHER_PAIR_KEYS)
        assert coord.runtime.failures["timezone"] == 1
        assert coord.runtime.failures["quote"] == 1


# ---------------------------------------------------------------------------
# Weather + place pair
# ---------------------------------------------------------------------------


class TestWeatherPair:
    def test_weather_waits_for_place(self):
        coord = _make_coordinator()
        release = asyncio.Event()
        observed = {}

        async def slow_place(lat, lon):
            await release.wait()
            return PLACE

        coord.api.async_get_place = AsyncMock(side_effect=slow_place)

        async def run():
            task = asyncio.create_task(coord._async_fetch_weather(coord.runtime.token))
            for _ in range(5):
                await asyncio.sleep(0)
            observed["before"] = dict(coord._state)
            release.set()
            await task

        asyncio.run(run())
        assert not any(k in observed["before"] for k in WEATHER_PAIR_KEYS)
        assert all(k in coord.data for k in WEATHER_PAIR_KEYS)

    def test_place_failure_hides_weather(self):
        coord = _make_coordinator()
        coord.api.async_get_place.side_effect = DashboardApiError("geocoder down")
        asyncio.run(coord._async_fetch_weather(coord.runtime.token))
        assert coord.data is None
        assert coord.runtime.failures == {"place": 1}

    def test_weather_failure_hides_place(self):
        coord = _make_coordinator()
        coord.api.async_get_weather.side_effect = DashboardApiError("bad key")
        asyncio.run(coord._async_fetch_weather(coord.runtime.token))
        assert coord.data is None

    def test_unexpected_error_logged_not_raised(self):
        coord = _make_coordinator()
        coord.api.async_get_place.side_effect = RuntimeError("boom")
        with patch(f"{MODULE}._LOGGER") as log:
            asyncio.run(coord._async_fetch_weather(coord.runtime.token))
        log.exception.assert_called_once()
        assert coord.data is None

    def test_location_not_shared(self):
        coord = _make_coordinator(share_location=False)
        asyncio.run(coord._async_fetch_weather(coord.runtime.token))
        coord.api.async_get_weather.assert_not_called()
        coord.api.async_get_place.assert_not_called()
        assert coord.runtime.location_shared is False

    def test_missing_api_key(self):
        coord = _make_coordinator(weather_api_key=None)
        asyncio.run(coord._async_fetch_weather(coord.runtime.token))
        coord.api.async_get_weather.assert_not_called()
        coord.api.async_get_place.assert_not_called()

    def test_override_coordinates_used(self):
        coord = _make_coordinator()
        coord.latitude = 40.7
        coord.longitude = -74.0
        asyncio.run(coord._async_fetch_weather(coord.runtime.token))
        coord.api.async_get_weather.assert_awaited_once_with(40.7, -74.0)
        coord.api.async_get_place.assert_awaited_once_with(40.7, -74.0)

    def test_unset_home_location(self):
        coord = _make_coordinator()
        coord.hass.config.latitude = None
        assert coord._current_position() is None


# ---------------------------------------------------------------------------
# Teardown
# ---------------------------------------------------------------------------


class TestTeardown:
    def test_stop_releases_every_timer(self):
        coord = _make_coordinator()
        with _patched_clock() as timers:
            asyncio.run(_start_and_settle(coord))
            timers.action_after(35)(_fired())
            asyncio.run(coord.async_stop())
        for _, _, unsub in timers.later + timers.interval:
            unsub.assert_called_once()
        assert coord._unsubs == []
        assert coord.runtime.token.cancelled

    def test_late_responses_dropped_after_stop(self):
        coord = _make_coordinator()
        release = asyncio.Event()

        def gated(value):
            async def _inner(*args):
                await release.wait()
                return value
            return _inner

        coord.api.async_get_timezone = AsyncMock(side_effect=gated(TZ))
        coord.api.async_get_quote = AsyncMock(side_effect=gated(QUOTE))
        coord.api.async_get_nameday = AsyncMock(side_effect=gated(NAMEDAY))
        coord.api.async_get_weather = AsyncMock(side_effect=gated(WEATHER))
        coord.api.async_get_place = AsyncMock(side_effect=gated(PLACE))

        async def run():
            await coord.async_start()
            tasks = [asyncio.ensure_future(c) for c in coord.hass.created]
            await asyncio.sleep(0)
            await coord.async_stop()
            snapshot = dict(coord.data)
            release.set()
            await asyncio.gather(*tasks)
            return snapshot

        with _patched_clock():
            snapshot = asyncio.run(run())
        assert coord.data == snapshot
        assert KEY_TZ_ABBREVIATION not in coord.data
        assert KEY_QUOTE_CONTENT not in coord.data
        assert KEY_NAMEDAY not in coord.data

    def test_late_failure_from_stopped_mount_not_counted(self):
        """A request from before a reload failing afterwards leaves the new runtime alone."""
        coord = _make_coordinator()
        release = asyncio.Event()

        async def failing_timezone():
            await release.wait()
            raise DashboardApiError("late")

        coord.api.async_get_timezone = AsyncMock(side_effect=failing_timezone)

        async def run():
            await coord.async_start()
            old = [asyncio.ensure_future(c) for c in coord.hass.created]
            await asyncio.sleep(0)
            await coord.async_stop()

            coord.api.async_get_timezone = AsyncMock(return_value=TZ)
            await coord.async_start()
            await asyncio.gather(*coord.hass.created[len(old):])

            release.set()
            await asyncio.gather(*old)

        with _patched_clock():
            asyncio.run(run())
        assert coord.runtime.failures == {}
        assert coord.data[KEY_TZ_ABBREVIATION] == "CEST"

    def test_stop_tolerates_failing_unsub(self):
        coord = _make_coordinator()
        coord._unsubs = [MagicMock(side_effect=RuntimeError("gone")), MagicMock()]
        second = coord._unsubs[1]
        asyncio.run(coord.async_stop())
        second.assert_called_once()

    def test_restart_uses_fresh_token(self):
        coord = _make_coordinator()
        with _patched_clock():
            asyncio.run(_start_and_settle(coord))
            asyncio.run(coord.async_stop())
            old = coord.runtime.token
            asyncio.run(_start_and_settle(coord))
        assert old.cancelled
        assert not coord.runtime.token.cancelled


# ---------------------------------------------------------------------------
# Quote refresh
# ---------------------------------------------------------------------------


class TestQuoteRefresh:
    def test_newest_request_wins(self):
        coord = _make_coordinator()
        release_first = asyncio.Event()
        first = Quote(author="A", content="first")
        second = Quote(author="B", content="second")
        calls = []

        async def get_quote():
            calls.append(1)
            if len(calls) == 1:
                await release_first.wait()
                return first
            return second

        coord.api.async_get_quote = AsyncMock(side_effect=get_quote)

        async def run():
            t1 = asyncio.create_task(coord.async_refresh_quote())
            await asyncio.sleep(0)
            await coord.async_refresh_quote()
            release_first.set()
            await t1

        asyncio.run(run())
        assert coord.data[KEY_QUOTE_AUTHOR] == "B"
        assert coord.data[KEY_QUOTE_CONTENT] == "second"

    def test_failure_keeps_previous_quote(self):
        coord = _make_coordinator()
        asyncio.run(coord.async_refresh_quote())
        coord.api.async_get_quote.side_effect = DashboardApiError("503")
        asyncio.run(coord.async_refresh_quote())
        assert coord.data[KEY_QUOTE_AUTHOR] == "Seneca"
        assert coord.runtime.failures["quote"] == 1

    def test_failure_count_is_cumulative_for_the_mount(self):
        coord = _make_coordinator()
        coord.api.async_get_quote.side_effect = DashboardApiError("503")
        asyncio.run(coord.async_refresh_quote())
        asyncio.run(coord.async_refresh_quote())
        coord.api.async_get_quote.side_effect = None
        asyncio.run(coord.async_refresh_quote())
        assert coord.data[KEY_QUOTE_AUTHOR] == "Seneca"
        assert coord.runtime.failures["quote"] == 2


# ---------------------------------------------------------------------------
# Cancel token
# ---------------------------------------------------------------------------


class TestCancelToken:
    def test_child_follows_parent(self):
        parent = CancelToken()
        child = parent.child()
        assert not child.cancelled
        parent.cancel()
        assert child.cancelled

    def test_child_does_not_cancel_parent(self):
        parent = CancelToken()
        child = parent.child()
        child.cancel()
        assert child.cancelled
        assert not parent.cancelled

    def test_commit_respects_token(self):
        coord = _make_coordinator()
        token = CancelToken()
        assert coord._commit(token, {KEY_NAMEDAY: "x"}) is True
        token.cancel()
        assert coord._commit(token, {KEY_NAMEDAY: "y"}) is False
        assert coord.data[KEY_NAMEDAY] == "x"
