"""Persisted display-name session for Daily Dashboard."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.helpers.storage import Store

from .const import STORAGE_KEY, STORAGE_VERSION

_LOGGER = logging.getLogger(__name__)


def normalize_display_name(raw: str | None) -> str:
    """Return the name to store, or ``""`` when the input counts as blank."""
    if raw is None:
        return ""
    return raw if raw.strip() else ""


class SessionStore:
    """Keeps a single display name under one storage key.

    Reads hit the in-memory copy; the store is only read once, in
    ``async_load``. An empty name means logged out and is never written.
    """

    def __init__(self, hass: HomeAssistant, store: Store | None = None) -> None:
        self._store: Store[dict[str, Any]] = store or Store(hass, STORAGE_VERSION, STORAGE_KEY)
        self._display_name = ""

    async def async_load(self) -> str:
        data = await self._store.async_load()
        name = (data or {}).get("display_name")
        self._display_name = normalize_display_name(name if isinstance(name, str) else None)
        return self._display_name

    def get(self) -> str:
        return self._display_name

    @property
    def logged_in(self) -> bool:
        return bool(self._display_name)

    async def async_set(self, name: str | None) -> bool:
        """Persist ``name``. Blank input is rejected and nothing is written."""
        name = normalize_display_name(name)
        if not name:
            return False
        self._display_name = name
        await self._store.async_save({"display_name": name})
        _LOGGER.debug("Display name stored")
        return True

    async def async_clear(self) -> None:
        self._display_name = ""
        await self._store.async_remove()
