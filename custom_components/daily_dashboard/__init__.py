"""Daily Dashboard integration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import voluptuous as vol
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import device_registry as dr

from .const import DISPLAY_NAME_MAX_LEN, DOMAIN, PLATFORMS, VERSION

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)
_LOGGER = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .coordinator import DashboardCoordinator

SERVICE_REFRESH_QUOTE = "refresh_quote"
SERVICE_SET_DISPLAY_NAME = "set_display_name"
SERVICE_LOGOUT = "logout"
ATTR_ENTRY_ID = "entry_id"
ATTR_NAME = "name"

ENTRY_SCHEMA = vol.Schema({vol.Optional(ATTR_ENTRY_ID): cv.string})
SET_DISPLAY_NAME_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_ENTRY_ID): cv.string,
        vol.Required(ATTR_NAME): vol.All(cv.string, vol.Length(max=DISPLAY_NAME_MAX_LEN)),
    }
)


def _targets(hass: HomeAssistant, call: ServiceCall) -> list[DashboardCoordinator]:
    entry_id = call.data.get(ATTR_ENTRY_ID)
    if entry_id:
        coord = hass.data[DOMAIN].get(entry_id)
        return [coord] if coord else []
    return list(hass.data[DOMAIN].values())


async def async_setup(hass: HomeAssistant, config: dict) -> bool:
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    from .coordinator import DashboardCoordinator
    from .session import SessionStore

    coordinator = DashboardCoordinator(
        hass, entry.data, entry.options, session=SessionStore(hass)
    )
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    await coordinator.async_start()

    dev_reg = dr.async_get(hass)
    dev_reg.async_get_or_create(
        config_entry_id=entry.entry_id,
        identifiers={(DOMAIN, entry.entry_id)},
        name=entry.title,
        manufacturer="Daily Dashboard",
        model="Personal Dashboard",
        sw_version=VERSION,
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    _LOGGER.debug("Dashboard entry %s set up", entry.title)

    # Reload the entry whenever the user saves new options
    entry.async_on_unload(entry.add_update_listener(async_update_options))

    async def _refresh_quote(call: ServiceCall) -> None:
        for coord in _targets(hass, call):
            await coord.async_refresh_quote()

    async def _set_display_name(call: ServiceCall) -> None:
        for coord in _targets(hass, call):
            await coord.async_login(call.data[ATTR_NAME])

    async def _logout(call: ServiceCall) -> None:
        for coord in _targets(hass, call):
            await coord.async_logout()

    # Register services once per integration domain (idempotent)
    for name, handler, schema in (
        (SERVICE_REFRESH_QUOTE, _refresh_quote, ENTRY_SCHEMA),
        (SERVICE_SET_DISPLAY_NAME, _set_display_name, SET_DISPLAY_NAME_SCHEMA),
        (SERVICE_LOGOUT, _logout, ENTRY_SCHEMA),
    ):
        if not hass.services.has_service(DOMAIN, name):
            hass.services.async_register(DOMAIN, name, handler, schema=schema)

    return True


async def async_update_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    coordinator: DashboardCoordinator | None = hass.data[DOMAIN].pop(entry.entry_id, None)
    if coordinator is not None:
        await coordinator.async_stop()
    if not hass.data[DOMAIN]:
        for name in (SERVICE_REFRESH_QUOTE, SERVICE_SET_DISPLAY_NAME, SERVICE_LOGOUT):
            hass.services.async_remove(DOMAIN, name)
    return unload_ok
