"""Coordinator for Daily Dashboard.

async_start() is the mount:
  _handle_tick()             Clock reading now, re-ticked on minute boundaries
  _date_fields()             Date strings, computed once per setup (no midnight rollover)
  _handle_splash_done()      Fixed 2 s splash window for ``loading``
  _async_fetch_timezone()    \
  async_refresh_quote()       | concurrent, independent, each commits
  _async_fetch_nameday()      | only its own keys
  _async_fetch_weather()     /  (weather + place committed as one pair)

async_stop() is the unmount: timers are unsubscribed and the mount token
is cancelled, so responses still in flight are dropped by _commit().
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.event import async_call_later, async_track_time_interval
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .api import DashboardApiClient, DashboardApiError
from .clock import clock_reading, date_info, first_tick_delay
from .const import (
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_NAMEDAY_COUNTRY,
    CONF_SHARE_LOCATION,
    CONF_WEATHER_API_KEY,
    DEFAULT_NAMEDAY_COUNTRY,
    DEFAULT_SHARE_LOCATION,
    ENV_WEATHER_API_KEY,
    KEY_BACKGROUND_IMAGE,
    KEY_DATE,
    KEY_DAY_OF_YEAR,
    KEY_DISPLAY_NAME,
    KEY_GREETING,
    KEY_LOADING,
    KEY_MONTH,
    KEY_NAMEDAY,
    KEY_PART_OF_DAY,
    KEY_PLACE_CITY,
    KEY_PLACE_COUNTRY,
    KEY_QUOTE_AUTHOR,
    KEY_QUOTE_CONTENT,
    KEY_TIME_LABEL,
    KEY_TZ_ABBREVIATION,
    KEY_TZ_REGION,
    KEY_WEATHER_CONDITION,
    KEY_WEATHER_ICON,
    KEY_WEATHER_TEMP_C,
    KEY_WEATHER_TEMP_F,
    KEY_WEEKDAY,
    SPLASH_DURATION_S,
    TICK_INTERVAL_S,
)
from .session import SessionStore

_LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

class CancelToken:
    """Cancelled explicitly, or implicitly when its parent is cancelled."""

    def __init__(self, parent: CancelToken | None = None) -> None:
        self._parent = parent
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        if self._cancelled:
            return True
        return self._parent is not None and self._parent.cancelled

    def child(self) -> CancelToken:
        return CancelToken(self)


# ---------------------------------------------------------------------------
# Runtime state
# ---------------------------------------------------------------------------

@dataclass
class DashboardRuntime:
    """Per-mount bookkeeping. Replaced on every async_start()."""

    token: CancelToken = field(default_factory=CancelToken)
    # Token of the newest quote request; older ones are cancelled
    quote_token: CancelToken | None = None

    started_at: Any | None = None
    last_tick: Any | None = None
    location_shared: bool = False

    # source name -> failures during this mount, for diagnostics
    failures: dict[str, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------

class DashboardCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Merges clock, session and remote sources into one dashboard state."""

    def __init__(
        self,
        hass: HomeAssistant,
        entry_data: dict[str, Any],
        entry_options: dict[str, Any] | None = None,
        *,
        session: SessionStore,
        api: DashboardApiClient | None = None,
    ):
        self.hass = hass
        self.entry_data = entry_data
        self.entry_options = entry_options or {}
        self.session = session
        self.runtime = DashboardRuntime()

        def _get(key: str, default: Any) -> Any:
            return self.entry_options.get(key, entry_data.get(key, default))

        self.share_location = bool(_get(CONF_SHARE_LOCATION, DEFAULT_SHARE_LOCATION))
        self.latitude = _get(CONF_LATITUDE, None)
        self.longitude = _get(CONF_LONGITUDE, None)
        weather_api_key = _get(CONF_WEATHER_API_KEY, None) or os.environ.get(ENV_WEATHER_API_KEY)
        nameday_country = str(_get(CONF_NAMEDAY_COUNTRY, DEFAULT_NAMEDAY_COUNTRY))

        self.api = api or DashboardApiClient(
            async_get_clientsession(hass),
            weather_api_key=weather_api_key,
            nameday_country=nameday_country,
        )

        super().__init__(
            hass,
            logger=_LOGGER,
            name="Daily Dashboard",
        )
        self._state: dict[str, Any] = {}
        self._unsubs: list = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_start(self) -> None:
        self.runtime = DashboardRuntime(started_at=dt_util.utcnow())
        token = self.runtime.token

        display_name = await self.session.async_load()
        now = dt_util.now()
        self._state = {
            KEY_DISPLAY_NAME: display_name,
            KEY_LOADING: True,
            **self._date_fields(now),
        }
        self._handle_tick()

        self._unsubs.append(
            async_call_later(self.hass, first_tick_delay(now), self._handle_minute_boundary)
        )
        self._unsubs.append(
            async_call_later(self.hass, SPLASH_DURATION_S, self._handle_splash_done)
        )

        for coro in (
            self._async_fetch_timezone(token),
            self.async_refresh_quote(),
            self._async_fetch_nameday(token),
            self._async_fetch_weather(token),
        ):
            self.hass.async_create_task(coro)

        _LOGGER.info("Daily Dashboard started (location shared: %s)", self.share_location)

    async def async_stop(self) -> None:
        self.runtime.token.cancel()
        for u in self._unsubs:
            try:
                u()
            except Exception:  # noqa: BLE001
                _LOGGER.debug("Timer already released", exc_info=True)
        self._unsubs.clear()

    async def _async_update_data(self) -> dict[str, Any]:
        return dict(self._state)

    @callback
    def _commit(self, token: CancelToken, updates: dict[str, Any]) -> bool:
        """Merge ``updates`` into the state unless ``token`` was cancelled."""
        if token.cancelled:
            _LOGGER.debug("Dropping stale update for %s", ", ".join(updates))
            return False
        self._state.update(updates)
        self.async_set_updated_data(dict(self._state))
        return True

    def _record_failure(self, token: CancelToken, source: str, err: Exception) -> None:
        # A torn-down mount must not touch the current runtime
        if token.cancelled:
            _LOGGER.debug("Ignoring late %s failure from a stopped dashboard", source)
            return
        fails = self.runtime.failures
        fails[source] = fails.get(source, 0) + 1
        _LOGGER.debug("%s unavailable: %s", source, err)

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    @callback
    def _handle_tick(self, _now: datetime | None = None) -> None:
        # Timer callbacks hand us UTC; the dashboard shows local time
        now = dt_util.now()
        reading = clock_reading(now)
        self.runtime.last_tick = now
        self._commit(
            self.runtime.token,
            {
                KEY_TIME_LABEL: reading.time_label,
                KEY_PART_OF_DAY: reading.part_of_day,
                KEY_GREETING: reading.greeting,
                KEY_BACKGROUND_IMAGE: reading.background_image,
            },
        )

    @callback
    def _handle_minute_boundary(self, _now: datetime) -> None:
        if self.runtime.token.cancelled:
            return
        self._handle_tick()
        self._unsubs.append(
            async_track_time_interval(
                self.hass, self._handle_tick, timedelta(seconds=TICK_INTERVAL_S)
            )
        )

    @callback
    def _handle_splash_done(self, _now: datetime) -> None:
        self._commit(self.runtime.token, {KEY_LOADING: False})

    @staticmethod
    def _date_fields(now: datetime) -> dict[str, Any]:
        info = date_info(now)
        return {
            KEY_DATE: info.localized_date,
            KEY_WEEKDAY: info.weekday_name,
            KEY_MONTH: info.month_name,
        }

    # ------------------------------------------------------------------
    # Remote sources
    # ------------------------------------------------------------------

    async def _async_fetch_timezone(self, token: CancelToken) -> None:
        try:
            tz = await self.api.async_get_timezone()
        except DashboardApiError as err:
            self._record_failure(token, "timezone", err)
            return
        self._commit(
            token,
            {
                KEY_TZ_ABBREVIATION: tz.abbreviation,
                KEY_TZ_REGION: tz.region_label,
                KEY_DAY_OF_YEAR: tz.day_of_year,
            },
        )

    async def async_refresh_quote(self) -> None:
        """Fetch a new quote, superseding any request still in flight."""
        rt = self.runtime
        if rt.quote_token is not None:
            rt.quote_token.cancel()
        token = rt.token.child()
        rt.quote_token = token

        try:
            quote = await self.api.async_get_quote()
        except DashboardApiError as err:
            self._record_failure(token, "quote", err)
            return
        self._commit(token, {KEY_QUOTE_AUTHOR: quote.author, KEY_QUOTE_CONTENT: quote.content})

    async def _async_fetch_nameday(self, token: CancelToken) -> None:
        try:
            nameday = await self.api.async_get_nameday()
        except DashboardApiError as err:
            self._record_failure(token, "nameday", err)
            return
        self._commit(token, {KEY_NAMEDAY: nameday.name})

    def _current_position(self) -> tuple[float, float] | None:
        """Coordinate to use for weather, or None when location is not shared."""
        if not self.share_location:
            return None
        lat = self.latitude if self.latitude is not None else getattr(self.hass.config, "latitude", None)
        lon = self.longitude if self.longitude is not None else getattr(self.hass.config, "longitude", None)
        try:
            return float(lat), float(lon)
        except (TypeError, ValueError):
            return None

    async def _async_fetch_weather(self, token: CancelToken) -> None:
        position = self._current_position()
        if position is None:
            _LOGGER.debug("Location not shared; weather stays hidden")
            return
        if not self.api.weather_api_key:
            _LOGGER.debug("No weather API key; weather stays hidden")
            return
        self.runtime.location_shared = True
        lat, lon = position

        weather, place = await asyncio.gather(
            self.api.async_get_weather(lat, lon),
            self.api.async_get_place(lat, lon),
            return_exceptions=True,
        )
        for source, result in (("weather", weather), ("place", place)):
            if isinstance(result, DashboardApiError):
                self._record_failure(token, source, result)
                return
            if isinstance(result, Exception):
                _LOGGER.exception("Unexpected %s error", source, exc_info=result)
                return
            if isinstance(result, BaseException):
                # Task cancellation
                raise result

        self._commit(
            token,
            {
                KEY_WEATHER_TEMP_C: weather.temp_c,
                KEY_WEATHER_TEMP_F: weather.temp_f,
                KEY_WEATHER_CONDITION: weather.condition_text,
                KEY_WEATHER_ICON: weather.icon_url,
                KEY_PLACE_CITY: place.city,
                KEY_PLACE_COUNTRY: place.country,
            },
        )

    # ------------------------------------------------------------------
    # Session gate
    # ------------------------------------------------------------------

    async def async_login(self, raw_name: str | None) -> bool:
        """Adopt ``raw_name`` as the session name. Blank input is ignored."""
        if not await self.session.async_set(raw_name):
            _LOGGER.debug("Blank display name ignored")
            return False
        self._commit(self.runtime.token, {KEY_DISPLAY_NAME: self.session.get()})
        return True

    async def async_logout(self) -> None:
        await self.session.async_clear()
        self._commit(self.runtime.token, {KEY_DISPLAY_NAME: ""})
