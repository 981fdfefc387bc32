"""Display-name capture for Daily Dashboard."""

from __future__ import annotations

from homeassistant.components.text import TextEntity, TextMode
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import CONF_PREFIX, DEFAULT_PREFIX, DISPLAY_NAME_MAX_LEN, DOMAIN, KEY_DISPLAY_NAME


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the display name text entity."""
    coordinator = hass.data[DOMAIN][entry.entry_id]
    prefix = (entry.options.get(CONF_PREFIX) or entry.data.get(CONF_PREFIX) or DEFAULT_PREFIX).strip().lower()
    async_add_entities([DashboardDisplayName(coordinator, entry, prefix)])


class DashboardDisplayName(CoordinatorEntity, TextEntity):
    """The name prompt. Submitting blank text leaves the user logged out."""

    _attr_icon = "mdi:account-edit"
    _attr_mode = TextMode.TEXT
    _attr_native_min = 0
    _attr_native_max = DISPLAY_NAME_MAX_LEN

    def __init__(self, coordinator, entry: ConfigEntry, prefix: str) -> None:
        super().__init__(coordinator)
        self._entry = entry
        self._attr_unique_id = f"{entry.entry_id}_{KEY_DISPLAY_NAME}"
        self._attr_suggested_object_id = f"{prefix}_{KEY_DISPLAY_NAME}"
        self._attr_name = "Dash Display Name"

    @property
    def device_info(self):
        return {"identifiers": {(DOMAIN, self._entry.entry_id)}}

    @property
    def native_value(self) -> str | None:
        return (self.coordinator.data or {}).get(KEY_DISPLAY_NAME, "")

    async def async_set_value(self, value: str) -> None:
        # Blank input is a silent re-prompt; the coordinator ignores it
        await self.coordinator.async_login(value)
