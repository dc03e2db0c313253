"""Initialization file for the Daily Todos integration.

Handles setting up the integration, including loading configuration entries,
initializing data storage, and wiring the coordinator, its managers and the
companion app events.

Key Features:
- Config entry setup and unload support.
- Coordinator initialization (reset timer chain, reminder registrations).
- Storage management for persistent data handling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.const import EVENT_HOMEASSISTANT_STARTED
from homeassistant.core import CoreState, Event, HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from . import const
from .coordinator import DailyTodosCoordinator
from .exceptions import StoreError
from .helpers.entity_helpers import get_loaded_entries
from .notification_action_handler import (
    async_handle_notification_action,
    async_handle_notification_cleared,
)
from .services import async_setup_services, async_unload_services
from .store import DailyTodosStore
from .utils import dt_utils

if TYPE_CHECKING:
    from .coordinator import DailyTodosConfigEntry


def _storage_key(entry_id: str) -> str:
    """Return the per-entry storage key."""
    return f"{const.STORAGE_KEY}_{entry_id}"


async def async_setup_entry(hass: HomeAssistant, entry: DailyTodosConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("Starting setup for Daily Todos entry: %s", entry.entry_id)

    const.set_default_timezone(hass)
    dt_utils.set_default_timezone(const.DEFAULT_TIME_ZONE)

    store = DailyTodosStore(hass, _storage_key(entry.entry_id))
    try:
        await store.async_initialize()
    except (OSError, StoreError) as err:
        raise ConfigEntryNotReady(f"Failed to load Daily Todos storage: {err}") from err

    coordinator = DailyTodosCoordinator(hass, entry, store)
    entry.runtime_data = coordinator

    await coordinator.async_config_entry_first_refresh()
    await coordinator.async_setup()

    async_setup_services(hass)

    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    async def handle_notification_event(event: Event) -> None:
        """Handle notification action events."""
        await async_handle_notification_action(hass, event)

    async def handle_notification_cleared(event: Event) -> None:
        """Handle notifications cleared on the device."""
        await async_handle_notification_cleared(hass, event)

    entry.async_on_unload(
        hass.bus.async_listen(const.NOTIFICATION_EVENT, handle_notification_event)
    )
    entry.async_on_unload(
        hass.bus.async_listen(
            const.NOTIFICATION_CLEARED_EVENT, handle_notification_cleared
        )
    )
    entry.async_on_unload(entry.add_update_listener(async_update_options))

    # Startup counts as the first app-active transition
    async def _async_on_started(_event: Event | None = None) -> None:
        await coordinator.async_handle_app_active()

    if hass.state is CoreState.running:
        await _async_on_started()
    else:
        entry.async_on_unload(
            hass.bus.async_listen_once(EVENT_HOMEASSISTANT_STARTED, _async_on_started)
        )

    const.LOGGER.info("Daily Todos setup complete for entry: %s", entry.entry_id)
    return True


async def async_update_options(hass: HomeAssistant, entry: DailyTodosConfigEntry) -> None:
    """Apply changed options without reloading."""
    await entry.runtime_data.async_apply_settings()


async def async_unload_entry(hass: HomeAssistant, entry: DailyTodosConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("Unloading Daily Todos entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)

    if unload_ok:
        await entry.runtime_data.async_shutdown()
        remaining = [e for e in get_loaded_entries(hass) if e.entry_id != entry.entry_id]
        if not remaining:
            await async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: DailyTodosConfigEntry) -> None:
    """Handle removal of a config entry."""
    const.LOGGER.info("Removing Daily Todos entry: %s", entry.entry_id)

    store = DailyTodosStore(hass, _storage_key(entry.entry_id))
    await store.async_delete_storage()

    const.LOGGER.info("Daily Todos entry data cleared: %s", entry.entry_id)
