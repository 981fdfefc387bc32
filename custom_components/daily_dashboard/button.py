"""Button entities for Daily Dashboard."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from homeassistant.components.button import ButtonEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import CONF_PREFIX, DEFAULT_PREFIX, DOMAIN


@dataclass(frozen=True)
class DashboardButtonDesc:
    """Descriptor for a coordinator action button."""

    key: str
    name: str
    icon: str
    press_fn: Callable[..., Awaitable[None]]


BUTTONS: tuple[DashboardButtonDesc, ...] = (
    DashboardButtonDesc(
        key="new_quote",
        name="Dash New Quote",
        icon="mdi:shuffle-variant",
        press_fn=lambda coord: coord.async_refresh_quote(),
    ),
    DashboardButtonDesc(
        key="logout",
        name="Dash Log Out",
        icon="mdi:logout",
        press_fn=lambda coord: coord.async_logout(),
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up button entities."""
    coordinator = hass.data[DOMAIN][entry.entry_id]
    prefix = (entry.options.get(CONF_PREFIX) or entry.data.get(CONF_PREFIX) or DEFAULT_PREFIX).strip().lower()
    async_add_entities([DashboardButton(coordinator, entry, prefix, desc) for desc in BUTTONS])


class DashboardButton(ButtonEntity):
    def __init__(self, coordinator, entry: ConfigEntry, prefix: str, desc: DashboardButtonDesc) -> None:
        self._coordinator = coordinator
        self._entry = entry
        self._desc = desc
        self._attr_unique_id = f"{entry.entry_id}_{desc.key}"
        self._attr_suggested_object_id = f"{prefix}_{desc.key}"
        self._attr_name = desc.name
        self._attr_icon = desc.icon

    @property
    def device_info(self):
        return {"identifiers": {(DOMAIN, self._entry.entry_id)}}

    async def async_press(self) -> None:
        await self._desc.press_fn(self._coordinator)
