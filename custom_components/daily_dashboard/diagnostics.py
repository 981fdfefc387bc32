"""Diagnostics support for Daily Dashboard."""

from __future__ import annotations

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import (
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_WEATHER_API_KEY,
    DOMAIN,
    KEY_DISPLAY_NAME,
    KEY_PLACE_CITY,
    KEY_PLACE_COUNTRY,
    VERSION,
    WEATHER_PAIR_KEYS,
)

REDACTED = "**REDACTED**"
_PRIVATE_KEYS = (CONF_WEATHER_API_KEY, CONF_LATITUDE, CONF_LONGITUDE)


def _redact(d: dict[str, Any]) -> dict[str, Any]:
    """Redact the API key and location data for privacy."""
    out = dict(d)
    for key in _PRIVATE_KEYS:
        if key in out:
            out[key] = REDACTED
    return out


def _redact_state(d: dict[str, Any]) -> dict[str, Any]:
    out = dict(d)
    for key in (KEY_DISPLAY_NAME, KEY_PLACE_CITY, KEY_PLACE_COUNTRY):
        if out.get(key):
            out[key] = REDACTED
    return out


async def async_get_config_entry_diagnostics(hass: HomeAssistant, entry: ConfigEntry) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coord = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    data = (coord.data if coord else None) or {}

    runtime_info = {}
    if coord:
        rt = coord.runtime
        runtime_info = {
            "started_at": rt.started_at.isoformat() if rt.started_at else None,
            "last_tick": rt.last_tick.isoformat() if rt.last_tick else None,
            "stopped": rt.token.cancelled,
            "location_shared": rt.location_shared,
            "weather_key_configured": bool(coord.api.weather_api_key),
            "failures": dict(rt.failures),
        }

    return {
        "title": entry.title,
        "version": VERSION,
        "entry_data": _redact(dict(entry.data)),
        "entry_options": _redact(dict(entry.options)),
        "runtime": runtime_info,
        "state": _redact_state(data),
        "weather_present": all(k in data for k in WEATHER_PAIR_KEYS),
    }
