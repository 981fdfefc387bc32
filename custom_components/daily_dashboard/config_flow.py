"""Config flow for Daily Dashboard.

Setup wizard:
  Step 1 (user)     – Dashboard name & entity prefix
  Step 2 (location) – Location sharing for weather, optional coordinate override
  Step 3 (sources)  – Weather API key & name-day country

The Options flow (Configure button) exposes all settings for post-install changes.
"""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import HomeAssistant
from homeassistant.helpers import selector

from .const import (
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_NAME,
    CONF_NAMEDAY_COUNTRY,
    CONF_PREFIX,
    CONF_SHARE_LOCATION,
    CONF_WEATHER_API_KEY,
    CONFIG_VERSION,
    DEFAULT_NAME,
    DEFAULT_NAMEDAY_COUNTRY,
    DEFAULT_PREFIX,
    DEFAULT_SHARE_LOCATION,
    DOMAIN,
    ENV_WEATHER_API_KEY,
    NAMEDAY_COUNTRY_OPTIONS,
)

_LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sanitize_prefix(prefix: str) -> str:
    p = (prefix or "").strip().lower()
    p = "".join(ch if (ch.isalnum() or ch == "_") else "_" for ch in p)
    p = p.strip("_")
    return p or DEFAULT_PREFIX


def _home_coordinates(hass: HomeAssistant) -> tuple[float, float]:
    """Home Assistant's home location, (0, 0) when unset."""
    try:
        return round(float(hass.config.latitude), 4), round(float(hass.config.longitude), 4)
    except (TypeError, ValueError):
        return 0.0, 0.0


def _or(value: Any, fallback: Any) -> Any:
    return fallback if value is None else value


def _validate_coordinates(user_input: dict[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    lat = user_input.get(CONF_LATITUDE)
    lon = user_input.get(CONF_LONGITUDE)
    if lat is not None and not (-90.0 <= float(lat) <= 90.0):
        errors[CONF_LATITUDE] = "latitude_out_of_range"
    if lon is not None and not (-180.0 <= float(lon) <= 180.0):
        errors[CONF_LONGITUDE] = "longitude_out_of_range"
    return errors


def _country_selector() -> selector.SelectSelector:
    return selector.SelectSelector(
        selector.SelectSelectorConfig(
            options=NAMEDAY_COUNTRY_OPTIONS,
            mode="dropdown",
            translation_key="nameday_country",
        )
    )


def _coordinate_selector(limit: float) -> selector.NumberSelector:
    return selector.NumberSelector(
        selector.NumberSelectorConfig(min=-limit, max=limit, step=0.0001, mode="box")
    )


# ---------------------------------------------------------------------------
# Config flow
# ---------------------------------------------------------------------------


class DashboardConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    VERSION = CONFIG_VERSION

    @staticmethod
    def async_get_options_flow(config_entry: config_entries.ConfigEntry):
        return DashboardOptionsFlowHandler()

    def __init__(self):
        self._data: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Step 1: Name & prefix
    # ------------------------------------------------------------------
    async def async_step_user(self, user_input: dict[str, Any] | None = None):
        # The session name lives under a single storage key
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured()

        if user_input is not None:
            self._data[CONF_NAME] = str(user_input.get(CONF_NAME) or DEFAULT_NAME)
            self._data[CONF_PREFIX] = _sanitize_prefix(str(user_input.get(CONF_PREFIX) or DEFAULT_PREFIX))
            return await self.async_step_location()

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_NAME, default=DEFAULT_NAME): str,
                    vol.Required(CONF_PREFIX, default=DEFAULT_PREFIX): str,
                }
            ),
        )

    # ------------------------------------------------------------------
    # Step 2: Location sharing
    # ------------------------------------------------------------------
    async def async_step_location(self, user_input: dict[str, Any] | None = None):
        errors: dict[str, str] = {}
        home_lat, home_lon = _home_coordinates(self.hass)

        if user_input is not None:
            errors = _validate_coordinates(user_input)
            if not errors:
                self._data[CONF_SHARE_LOCATION] = bool(user_input[CONF_SHARE_LOCATION])
                lat = user_input.get(CONF_LATITUDE)
                lon = user_input.get(CONF_LONGITUDE)
                # Only store an override when it differs from the home location
                if lat is not None and lon is not None and (lat, lon) != (home_lat, home_lon):
                    self._data[CONF_LATITUDE] = float(lat)
                    self._data[CONF_LONGITUDE] = float(lon)
                return await self.async_step_sources()

        return self.async_show_form(
            step_id="location",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_SHARE_LOCATION, default=DEFAULT_SHARE_LOCATION): selector.BooleanSelector(),
                    vol.Optional(CONF_LATITUDE, default=home_lat): _coordinate_selector(90),
                    vol.Optional(CONF_LONGITUDE, default=home_lon): _coordinate_selector(180),
                }
            ),
            errors=errors,
        )

    # ------------------------------------------------------------------
    # Step 3: Data sources
    # ------------------------------------------------------------------
    async def async_step_sources(self, user_input: dict[str, Any] | None = None):
        if user_input is not None:
            api_key = str(user_input.get(CONF_WEATHER_API_KEY) or "").strip()
            if api_key:
                self._data[CONF_WEATHER_API_KEY] = api_key
            elif self._data.get(CONF_SHARE_LOCATION):
                _LOGGER.info("No weather API key given; weather will only show if %s is set", ENV_WEATHER_API_KEY)
            self._data[CONF_NAMEDAY_COUNTRY] = user_input.get(CONF_NAMEDAY_COUNTRY, DEFAULT_NAMEDAY_COUNTRY)

            title = self._data.get(CONF_NAME, DEFAULT_NAME)
            return self.async_create_entry(title=title, data=self._data)

        return self.async_show_form(
            step_id="sources",
            data_schema=vol.Schema(
                {
                    vol.Optional(CONF_WEATHER_API_KEY, default=""): selector.TextSelector(
                        selector.TextSelectorConfig(type=selector.TextSelectorType.PASSWORD)
                    ),
                    vol.Required(CONF_NAMEDAY_COUNTRY, default=DEFAULT_NAMEDAY_COUNTRY): _country_selector(),
                }
            ),
            last_step=True,
        )


# ---------------------------------------------------------------------------
# Options flow
# ---------------------------------------------------------------------------


class DashboardOptionsFlowHandler(config_entries.OptionsFlow):
    """Options flow handler. self.config_entry is provided by parent class."""

    def _get(self, key: str, default: Any) -> Any:
        return self.config_entry.options.get(key, self.config_entry.data.get(key, default))

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        if user_input is not None:
            errors = _validate_coordinates(user_input)
            if errors:
                return self.async_show_form(
                    step_id="init",
                    data_schema=self._build_options_schema(),
                    errors=errors,
                )
            out = dict(user_input)
            if CONF_PREFIX in out:
                out[CONF_PREFIX] = _sanitize_prefix(str(out[CONF_PREFIX]))
            out[CONF_WEATHER_API_KEY] = str(out.get(CONF_WEATHER_API_KEY) or "").strip()
            lat = out.get(CONF_LATITUDE)
            lon = out.get(CONF_LONGITUDE)
            if lat is None or lon is None or (float(lat), float(lon)) == _home_coordinates(self.hass):
                # None clears any override so the home location is followed
                out[CONF_LATITUDE] = None
                out[CONF_LONGITUDE] = None
            else:
                out[CONF_LATITUDE] = float(lat)
                out[CONF_LONGITUDE] = float(lon)
            return self.async_create_entry(title="", data=out)

        return self.async_show_form(step_id="init", data_schema=self._build_options_schema())

    def _build_options_schema(self) -> vol.Schema:
        g = self._get
        home_lat, home_lon = _home_coordinates(self.hass)
        return vol.Schema(
            {
                vol.Optional(CONF_PREFIX, default=g(CONF_PREFIX, DEFAULT_PREFIX)): str,
                vol.Optional(
                    CONF_SHARE_LOCATION, default=g(CONF_SHARE_LOCATION, DEFAULT_SHARE_LOCATION)
                ): selector.BooleanSelector(),
                vol.Optional(
                    CONF_LATITUDE, default=_or(g(CONF_LATITUDE, None), home_lat)
                ): _coordinate_selector(90),
                vol.Optional(
                    CONF_LONGITUDE, default=_or(g(CONF_LONGITUDE, None), home_lon)
                ): _coordinate_selector(180),
                vol.Optional(
                    CONF_WEATHER_API_KEY, default=g(CONF_WEATHER_API_KEY, "")
                ): selector.TextSelector(selector.TextSelectorConfig(type=selector.TextSelectorType.PASSWORD)),
                vol.Optional(
                    CONF_NAMEDAY_COUNTRY, default=g(CONF_NAMEDAY_COUNTRY, DEFAULT_NAMEDAY_COUNTRY)
                ): _country_selector(),
            }
        )
