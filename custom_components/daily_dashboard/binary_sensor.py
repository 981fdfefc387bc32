"""Binary sensors for Daily Dashboard."""

from __future__ import annotations

from homeassistant.components.binary_sensor import BinarySensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import CONF_PREFIX, DEFAULT_PREFIX, DOMAIN, KEY_DISPLAY_NAME, KEY_LOADING, KEY_LOGGED_IN


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities) -> None:
    coordinator = hass.data[DOMAIN][entry.entry_id]
    prefix = (entry.options.get(CONF_PREFIX) or entry.data.get(CONF_PREFIX) or DEFAULT_PREFIX).strip().lower()
    async_add_entities(
        [
            DashboardFlag(
                coordinator, entry, prefix,
                key=KEY_LOADING, name="Dash Loading", icon="mdi:timer-sand",
            ),
            DashboardFlag(
                coordinator, entry, prefix,
                key=KEY_LOGGED_IN, name="Dash Logged In", icon="mdi:account-check",
            ),
        ]
    )


class DashboardFlag(CoordinatorEntity, BinarySensorEntity):
    """Splash window and name-gate flags.

    ``loading`` is on for the fixed splash window after start.
    ``logged_in`` is on while a display name is stored; the dashboard
    view should show the name prompt while it is off.
    """

    def __init__(self, coordinator, entry: ConfigEntry, prefix: str, *, key: str, name: str, icon: str):
        super().__init__(coordinator)
        self._entry = entry
        self._key = key
        self._attr_unique_id = f"{entry.entry_id}_{key}"
        self._attr_suggested_object_id = f"{prefix}_{key}"
        self._attr_name = name
        self._attr_icon = icon

    @property
    def device_info(self):
        return {"identifiers": {(DOMAIN, self._entry.entry_id)}}

    @property
    def is_on(self) -> bool | None:
        d = self.coordinator.data or {}
        if self._key == KEY_LOGGED_IN:
            return bool(d.get(KEY_DISPLAY_NAME))
        v = d.get(self._key)
        if v is None:
            return None
        return bool(v)
