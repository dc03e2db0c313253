# File: sensor.py
"""Sensors for the Daily Todos integration.

Sensors Defined in This File (1):
01. IncompleteTodosSensor - the badge: number of incomplete to-dos
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.sensor import SensorEntity, SensorStateClass

from . import const
from .entity import DailyTodosCoordinatorEntity

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

    from .coordinator import DailyTodosConfigEntry, DailyTodosCoordinator


async def async_setup_entry(
    hass: HomeAssistant,
    entry: DailyTodosConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up sensors for Daily Todos integration."""
    coordinator = entry.runtime_data
    async_add_entities([IncompleteTodosSensor(coordinator)])


class IncompleteTodosSensor(DailyTodosCoordinatorEntity, SensorEntity):
    """Badge sensor: incomplete to-dos across both categories.

    Refreshed whenever the badge is set, to-dos change or a reset happens.
    Attributes break the count down per category and expose the reset
    schedule and reminder authorization state.
    """

    _attr_icon = const.SENSOR_ICON_INCOMPLETE_TODOS
    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(self, coordinator: DailyTodosCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, const.SENSOR_KEY_INCOMPLETE_TODOS)

    @property
    def native_value(self) -> int:
        """Return the number of incomplete to-dos."""
        return (self.coordinator.data or {}).get(const.SENSOR_KEY_INCOMPLETE_TODOS, 0)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Expose per-category counts, reset schedule and authorization."""
        data = self.coordinator.data or {}
        return {
            key: data.get(key)
            for key in (
                const.ATTR_REQUIRED_INCOMPLETE,
                const.ATTR_SUGGESTED_INCOMPLETE,
                const.ATTR_LAST_RESET,
                const.ATTR_NEXT_RESET,
                const.ATTR_AUTHORIZATION_STATUS,
            )
        }
