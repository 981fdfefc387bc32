"""Sensors for Daily Dashboard.

The date, weekday and month sensors are read once when the entry is set
up and do not roll over at midnight; reloading the entry refreshes them.
The time and greeting sensors follow the minute tick.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import UnitOfTemperature
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity import EntityCategory
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import (
    CONF_PREFIX,
    DEFAULT_PREFIX,
    DOMAIN,
    KEY_BACKGROUND_IMAGE,
    KEY_DATE,
    KEY_DAY_OF_YEAR,
    KEY_DISPLAY_NAME,
    KEY_GREETING,
    KEY_LOCATION_LABEL,
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
    MAX_STATE_LEN,
    PART_OF_DAY_ICONS,
    PART_OF_DAY_OPTIONS,
)


def greeting_text(d: dict[str, Any]) -> str | None:
    """``Good Morning, Al`` once both parts are known."""
    greeting = d.get(KEY_GREETING)
    if not greeting:
        return None
    name = d.get(KEY_DISPLAY_NAME)
    return f"{greeting}, {name}" if name else greeting


def location_label(d: dict[str, Any]) -> str | None:
    """Reverse-geocoded place when available, otherwise the timezone region."""
    city = d.get(KEY_PLACE_CITY)
    if city:
        country = d.get(KEY_PLACE_COUNTRY)
        return f"{city}, {country}" if country else city
    return d.get(KEY_TZ_REGION)


def _truncate(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    if len(text) <= MAX_STATE_LEN:
        return text
    return text[: MAX_STATE_LEN - 1] + "…"


@dataclass(frozen=True, kw_only=True)
class DashboardSensorDescription:
    """Describes Daily Dashboard sensor entities."""

    key: str
    device_class: SensorDeviceClass | None = None
    entity_category: EntityCategory | None = None
    icon: str | None = None
    name: str | None = None
    native_unit: str | None = None
    options: list[str] | None = None
    state_class: SensorStateClass | None = None
    value_fn: Callable[[dict[str, Any]], Any] | None = None
    attrs_fn: Callable[[dict[str, Any]], dict[str, Any]] | None = None


SENSORS: list[DashboardSensorDescription] = [
    # =========================================================================
    # CLOCK
    # =========================================================================
    DashboardSensorDescription(
        key=KEY_TIME_LABEL,
        name="Dash Time",
        icon="mdi:clock-outline",
        attrs_fn=lambda d: {
            "timezone": d.get(KEY_TZ_ABBREVIATION),
            "part_of_day": d.get(KEY_PART_OF_DAY),
        },
    ),
    DashboardSensorDescription(
        key=KEY_GREETING,
        name="Dash Greeting",
        icon="mdi:hand-wave",
        value_fn=greeting_text,
        attrs_fn=lambda d: {
            "part_of_day": d.get(KEY_PART_OF_DAY),
            "display_name": d.get(KEY_DISPLAY_NAME) or None,
        },
    ),
    DashboardSensorDescription(
        key=KEY_PART_OF_DAY,
        name="Dash Part of Day",
        icon="mdi:theme-light-dark",
        device_class=SensorDeviceClass.ENUM,
        options=PART_OF_DAY_OPTIONS,
    ),
    DashboardSensorDescription(
        key=KEY_BACKGROUND_IMAGE,
        name="Dash Background Image",
        icon="mdi:image-outline",
        entity_category=EntityCategory.DIAGNOSTIC,
    ),
    # =========================================================================
    # DATE
    # =========================================================================
    # Set once per entry setup, not rolled over at midnight
    DashboardSensorDescription(
        key=KEY_DATE,
        name="Dash Date",
        icon="mdi:calendar",
    ),
    DashboardSensorDescription(
        key=KEY_WEEKDAY,
        name="Dash Day of Week",
        icon="mdi:calendar-week",
    ),
    DashboardSensorDescription(
        key=KEY_MONTH,
        name="Dash Month",
        icon="mdi:calendar-month",
    ),
    # =========================================================================
    # TIMEZONE
    # =========================================================================
    DashboardSensorDescription(
        key=KEY_TZ_ABBREVIATION,
        name="Dash Timezone",
        icon="mdi:map-clock-outline",
        attrs_fn=lambda d: {
            "region": d.get(KEY_TZ_REGION),
            "day_of_year": d.get(KEY_DAY_OF_YEAR),
        },
    ),
    DashboardSensorDescription(
        key=KEY_DAY_OF_YEAR,
        name="Dash Day of Year",
        icon="mdi:calendar-today",
    ),
    DashboardSensorDescription(
        key=KEY_LOCATION_LABEL,
        name="Dash Location",
        icon="mdi:map-marker",
        value_fn=location_label,
        attrs_fn=lambda d: {
            "city": d.get(KEY_PLACE_CITY),
            "country": d.get(KEY_PLACE_COUNTRY),
            "timezone_region": d.get(KEY_TZ_REGION),
        },
    ),
    # =========================================================================
    # QUOTE / NAME-DAY
    # =========================================================================
    DashboardSensorDescription(
        key=KEY_QUOTE_CONTENT,
        name="Dash Quote",
        icon="mdi:format-quote-open",
        value_fn=lambda d: _truncate(d.get(KEY_QUOTE_CONTENT)),
        attrs_fn=lambda d: {
            "author": d.get(KEY_QUOTE_AUTHOR),
            "content": d.get(KEY_QUOTE_CONTENT),
        },
    ),
    DashboardSensorDescription(
        key=KEY_QUOTE_AUTHOR,
        name="Dash Quote Author",
        icon="mdi:account-voice",
    ),
    DashboardSensorDescription(
        key=KEY_NAMEDAY,
        name="Dash Name Day",
        icon="mdi:cake-variant-outline",
        value_fn=lambda d: _truncate(d.get(KEY_NAMEDAY)),
    ),
    # =========================================================================
    # WEATHER
    # =========================================================================
    DashboardSensorDescription(
        key=KEY_WEATHER_TEMP_C,
        name="Dash Temperature",
        icon="mdi:thermometer",
        device_class=SensorDeviceClass.TEMPERATURE,
        native_unit=UnitOfTemperature.CELSIUS,
        state_class=SensorStateClass.MEASUREMENT,
        attrs_fn=lambda d: {
            "temperature_f": d.get(KEY_WEATHER_TEMP_F),
            "condition": d.get(KEY_WEATHER_CONDITION),
        },
    ),
    DashboardSensorDescription(
        key=KEY_WEATHER_CONDITION,
        name="Dash Weather",
        icon="mdi:weather-partly-cloudy",
        attrs_fn=lambda d: {
            "icon_url": d.get(KEY_WEATHER_ICON),
            "temperature_c": d.get(KEY_WEATHER_TEMP_C),
            "temperature_f": d.get(KEY_WEATHER_TEMP_F),
        },
    ),
]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities) -> None:
    coordinator = hass.data[DOMAIN][entry.entry_id]
    prefix = (entry.options.get(CONF_PREFIX) or entry.data.get(CONF_PREFIX) or DEFAULT_PREFIX).strip().lower()
    async_add_entities([DashboardSensor(coordinator, entry, desc, prefix) for desc in SENSORS])


class DashboardSensor(CoordinatorEntity, SensorEntity):
    """A single dashboard field rendered as a sensor."""

    def __init__(self, coordinator, entry: ConfigEntry, desc: DashboardSensorDescription, prefix: str):
        super().__init__(coordinator)
        self._desc = desc
        self._entry = entry

        self._attr_unique_id = f"{entry.entry_id}_{desc.key}"
        self._attr_suggested_object_id = f"{prefix}_{self._slug_for_key(desc.key)}"
        self._attr_name = desc.name
        self._attr_device_class = desc.device_class
        self._attr_native_unit_of_measurement = desc.native_unit
        self._attr_state_class = desc.state_class
        if desc.options is not None:
            self._attr_options = desc.options
        if desc.entity_category is not None:
            self._attr_entity_category = desc.entity_category

    @property
    def device_info(self):
        return {"identifiers": {(DOMAIN, self._entry.entry_id)}}

    @staticmethod
    def _slug_for_key(key: str) -> str:
        overrides = {
            KEY_TIME_LABEL: "time",
            KEY_TZ_ABBREVIATION: "timezone",
            KEY_WEEKDAY: "day_of_week",
            KEY_QUOTE_CONTENT: "quote",
            KEY_LOCATION_LABEL: "location",
            KEY_WEATHER_TEMP_C: "temperature",
            KEY_WEATHER_CONDITION: "weather",
            KEY_NAMEDAY: "name_day",
        }
        return overrides.get(key, key)

    @property
    def icon(self) -> str | None:
        if self._desc.key == KEY_PART_OF_DAY:
            part = (self.coordinator.data or {}).get(KEY_PART_OF_DAY)
            return PART_OF_DAY_ICONS.get(part, self._desc.icon)
        return self._desc.icon

    @property
    def entity_picture(self) -> str | None:
        if self._desc.key == KEY_WEATHER_CONDITION:
            return (self.coordinator.data or {}).get(KEY_WEATHER_ICON) or None
        return None

    @property
    def native_value(self):
        d = self.coordinator.data or {}
        if self._desc.value_fn is not None:
            try:
                return self._desc.value_fn(d)
            except Exception:
                return None
        return d.get(self._desc.key)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        d = self.coordinator.data or {}
        if self._desc.attrs_fn is None:
            return {}
        try:
            return {k: v for k, v in (self._desc.attrs_fn(d) or {}).items() if v is not None}
        except Exception:
            return {}
