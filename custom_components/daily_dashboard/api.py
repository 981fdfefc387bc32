"""HTTP clients for the public services behind Daily Dashboard.

Each ``async_get_*`` method performs exactly one GET and maps the JSON
payload through a pure ``parse_*`` function. Every failure mode (transport
error, timeout, non-200, malformed payload) surfaces as
``DashboardApiError`` so callers only need one except clause.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import aiohttp

from .clock import region_label
from .const import (
    DEFAULT_NAMEDAY_COUNTRY,
    REQUEST_TIMEOUT_S,
    UNKNOWN_AUTHOR,
    URL_NAMEDAY,
    URL_QUOTE,
    URL_REVERSE_GEOCODE,
    URL_TIMEZONE,
    URL_WEATHER,
)

_LOGGER = logging.getLogger(__name__)


class DashboardApiError(Exception):
    """A dashboard data source could not be fetched or understood."""


# ---------------------------------------------------------------------------
# Payload types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimezoneInfo:
    abbreviation: str
    region_label: str
    day_of_year: int


@dataclass(frozen=True)
class Quote:
    author: str
    content: str


@dataclass(frozen=True)
class NamedayInfo:
    name: str


@dataclass(frozen=True)
class WeatherInfo:
    temp_c: float
    temp_f: float
    condition_text: str
    icon_url: str


@dataclass(frozen=True)
class PlaceInfo:
    city: str
    country: str


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def parse_timezone(payload: Any) -> TimezoneInfo:
    """worldtimeapi ``/api/ip`` payload."""
    try:
        day = int(payload["day_of_year"])
        info = TimezoneInfo(
            abbreviation=str(payload["abbreviation"]),
            region_label=region_label(str(payload["timezone"])),
            day_of_year=day,
        )
    except (KeyError, TypeError, ValueError) as err:
        raise DashboardApiError(f"Malformed timezone payload: {err!r}") from err
    if day < 1:
        raise DashboardApiError(f"Invalid day of year: {day}")
    return info


def parse_quote(payload: Any) -> Quote:
    """quotable ``/random`` payload. A null or empty author becomes ``Unknown author``."""
    try:
        content = payload["content"]
        author = payload.get("author")
    except (KeyError, TypeError, AttributeError) as err:
        raise DashboardApiError(f"Malformed quote payload: {err!r}") from err
    if not isinstance(content, str):
        raise DashboardApiError("Quote payload has no content")
    return Quote(author=str(author) if author else UNKNOWN_AUTHOR, content=content)


def parse_nameday(payload: Any, country: str = DEFAULT_NAMEDAY_COUNTRY) -> NamedayInfo:
    """abalin ``/api/V1/today`` payload, picking the configured country."""
    try:
        name = payload["nameday"][country]
    except (KeyError, TypeError) as err:
        raise DashboardApiError(f"No name-day for country '{country}': {err!r}") from err
    if name is None:
        raise DashboardApiError(f"No name-day for country '{country}'")
    return NamedayInfo(name=str(name))


def _absolute_icon_url(icon: str) -> str:
    # weatherapi returns protocol-relative icon paths
    if icon.startswith("//"):
        return f"https:{icon}"
    return icon


def parse_weather(payload: Any) -> WeatherInfo:
    """weatherapi ``current.json`` payload."""
    if not payload:
        raise DashboardApiError("Empty weather payload")
    try:
        current = payload["current"]
        condition = current["condition"]
        return WeatherInfo(
            temp_c=float(current["temp_c"]),
            temp_f=float(current["temp_f"]),
            condition_text=str(condition["text"]),
            icon_url=_absolute_icon_url(str(condition.get("icon") or "")),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as err:
        raise DashboardApiError(f"Malformed weather payload: {err!r}") from err


def parse_place(payload: Any) -> PlaceInfo:
    """bigdatacloud reverse-geocode payload.

    ``city`` is often blank for rural coordinates; ``locality`` is the
    next best label.
    """
    if not payload or not isinstance(payload, dict):
        raise DashboardApiError("Empty reverse-geocode payload")
    city = payload.get("city") or payload.get("locality") or ""
    country = payload.get("countryName") or ""
    return PlaceInfo(city=str(city), country=str(country))


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class DashboardApiClient:
    """Thin wrapper over a shared aiohttp session.

    Holds no per-call state, so every method is safe to call again while a
    previous call is still in flight.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        weather_api_key: str | None = None,
        nameday_country: str = DEFAULT_NAMEDAY_COUNTRY,
    ) -> None:
        self._session = session
        self.weather_api_key = weather_api_key
        self.nameday_country = nameday_country

    async def _async_get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        _LOGGER.debug("GET %s", url)
        try:
            async with self._session.get(
                url,
                params=params,
                timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_S),
            ) as resp:
                if resp.status != 200:
                    raise DashboardApiError(f"{url} returned HTTP {resp.status}")
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise DashboardApiError(f"Request to {url} failed: {err!r}") from err
        except ValueError as err:
            raise DashboardApiError(f"{url} returned invalid JSON") from err

    async def async_get_timezone(self) -> TimezoneInfo:
        return parse_timezone(await self._async_get_json(URL_TIMEZONE))

    async def async_get_quote(self) -> Quote:
        return parse_quote(await self._async_get_json(URL_QUOTE))

    async def async_get_nameday(self) -> NamedayInfo:
        return parse_nameday(await self._async_get_json(URL_NAMEDAY), self.nameday_country)

    async def async_get_weather(self, lat: float, lon: float) -> WeatherInfo:
        if not self.weather_api_key:
            raise DashboardApiError("No weather API key configured")
        params = {"key": self.weather_api_key, "q": f"{lat},{lon}", "aqi": "no"}
        return parse_weather(await self._async_get_json(URL_WEATHER, params))

    async def async_get_place(self, lat: float, lon: float) -> PlaceInfo:
        params = {"latitude": lat, "longitude": lon, "localityLanguage": "en"}
        return parse_place(await self._async_get_json(URL_REVERSE_GEOCODE, params))
