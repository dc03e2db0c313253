"""Base entity classes for Daily Todos integration."""

from __future__ import annotations

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from . import const
from .coordinator import DailyTodosCoordinator
from .helpers.entity_helpers import build_unique_id


class DailyTodosCoordinatorEntity(CoordinatorEntity[DailyTodosCoordinator]):
    """Base entity class for Daily Todos entities with typed coordinator access.

    All entities of an entry are grouped under one service device.
    """

    _attr_has_entity_name = True

    def __init__(self, coordinator: DailyTodosCoordinator, key: str) -> None:
        """Initialize the entity.

        Args:
            coordinator: DailyTodosCoordinator instance for data access.
            key: Entity key, used for the unique id and translation key.
        """
        super().__init__(coordinator)
        entry = coordinator.config_entry
        self._attr_unique_id = build_unique_id(entry.entry_id, key)
        self._attr_translation_key = key
        self._attr_device_info = DeviceInfo(
            identifiers={(const.DOMAIN, entry.entry_id)},
            name=entry.title,
            manufacturer=const.DAILY_TODOS_TITLE,
            entry_type=DeviceEntryType.SERVICE,
        )
