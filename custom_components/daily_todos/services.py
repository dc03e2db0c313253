# File: services.py
"""Defines custom services for the Daily Todos integration.

These services are the UI-layer surface: scripts, automations and dashboards
create and complete to-dos through them, and the companion app signals its
foreground transition with daily_todos.app_active.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError
from homeassistant.helpers import config_validation as cv

from . import const
from .helpers.entity_helpers import get_loaded_entries

if TYPE_CHECKING:
    from .coordinator import DailyTodosCoordinator

_CATEGORY = vol.All(cv.string, vol.In([str(c) for c in const.TodoCategory]))
_TIME_OF_DAY = vol.Any(None, cv.string)

# --- Service Schemas ---
ADD_TODO_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_TITLE): cv.string,
        vol.Optional(
            const.FIELD_CATEGORY, default=str(const.TodoCategory.REQUIRED)
        ): _CATEGORY,
        vol.Optional(const.FIELD_SCHEDULED_TIME): _TIME_OF_DAY,
    }
)

UPDATE_TODO_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_TODO_ID): cv.string,
        vol.Optional(const.FIELD_TITLE): cv.string,
        vol.Optional(const.FIELD_CATEGORY): _CATEGORY,
        vol.Optional(const.FIELD_SCHEDULED_TIME): _TIME_OF_DAY,
    }
)

TODO_ID_SCHEMA = vol.Schema({vol.Required(const.FIELD_TODO_ID): cv.string})

EMPTY_SCHEMA = vol.Schema({})

SERVICES = (
    const.SERVICE_ADD_TODO,
    const.SERVICE_UPDATE_TODO,
    const.SERVICE_DELETE_TODO,
    const.SERVICE_COMPLETE_TODO,
    const.SERVICE_UNCOMPLETE_TODO,
    const.SERVICE_RESET_TODOS,
    const.SERVICE_SYNCHRONIZE_REMINDERS,
    const.SERVICE_APP_ACTIVE,
    const.SERVICE_CLEAR_TODOS,
)


def _get_coordinator(hass: HomeAssistant) -> DailyTodosCoordinator:
    """Return the coordinator of the first loaded entry."""
    entries = get_loaded_entries(hass)
    if not entries:
        raise HomeAssistantError(const.ERROR_NO_ENTRY_FOUND)
    return entries[0].runtime_data


def async_setup_services(hass: HomeAssistant) -> None:
    """Register Daily Todos services (once, shared by all entries)."""
    if hass.services.has_service(const.DOMAIN, const.SERVICE_ADD_TODO):
        return

    async def handle_add_todo(call: ServiceCall) -> ServiceResponse:
        """Handle creating a to-do."""
        coordinator = _get_coordinator(hass)
        try:
            todo = await coordinator.async_add_todo(
                call.data[const.FIELD_TITLE],
                const.TodoCategory(call.data[const.FIELD_CATEGORY]),
                call.data.get(const.FIELD_SCHEDULED_TIME),
            )
        except ValueError as err:
            raise ServiceValidationError(str(err)) from err

        const.LOGGER.info(
            "Todo '%s' added (todo_id=%s)",
            todo[const.DATA_TODO_TITLE],
            todo[const.DATA_TODO_ID],
        )
        if call.return_response:
            return {const.FIELD_TODO_ID: todo[const.DATA_TODO_ID]}
        return None

    async def handle_update_todo(call: ServiceCall) -> None:
        """Handle editing a to-do."""
        coordinator = _get_coordinator(hass)
        kwargs = {}
        if const.FIELD_TITLE in call.data:
            kwargs["title"] = call.data[const.FIELD_TITLE]
        if const.FIELD_CATEGORY in call.data:
            kwargs["category"] = const.TodoCategory(call.data[const.FIELD_CATEGORY])
        if const.FIELD_SCHEDULED_TIME in call.data:
            kwargs["scheduled_time"] = call.data[const.FIELD_SCHEDULED_TIME]

        try:
            await coordinator.async_update_todo(call.data[const.FIELD_TODO_ID], **kwargs)
        except ValueError as err:
            raise ServiceValidationError(str(err)) from err

    async def handle_delete_todo(call: ServiceCall) -> None:
        """Handle deleting a to-do."""
        coordinator = _get_coordinator(hass)
        await coordinator.async_delete_todo(call.data[const.FIELD_TODO_ID])

    async def handle_complete_todo(call: ServiceCall) -> None:
        """Handle marking a to-do completed."""
        coordinator = _get_coordinator(hass)
        await coordinator.async_set_todo_completed(
            call.data[const.FIELD_TODO_ID], True
        )

    async def handle_uncomplete_todo(call: ServiceCall) -> None:
        """Handle marking a to-do incomplete."""
        coordinator = _get_coordinator(hass)
        await coordinator.async_set_todo_completed(
            call.data[const.FIELD_TODO_ID], False
        )

    async def handle_reset_todos(call: ServiceCall) -> None:
        """Handle a manual rollover."""
        coordinator = _get_coordinator(hass)
        if not await coordinator.reset_manager.async_reset_now():
            raise HomeAssistantError("Resetting todos failed, see the log for details")

    async def handle_synchronize_reminders(call: ServiceCall) -> None:
        """Handle a manual reconciliation pass."""
        coordinator = _get_coordinator(hass)
        await coordinator.notification_manager.async_synchronize()

    async def handle_app_active(call: ServiceCall) -> None:
        """Handle the companion app becoming active."""
        coordinator = _get_coordinator(hass)
        await coordinator.async_handle_app_active()

    async def handle_clear_todos(call: ServiceCall) -> ServiceResponse:
        """Handle wiping every to-do and reminder."""
        coordinator = _get_coordinator(hass)
        removed = await coordinator.async_clear_todos()
        if call.return_response:
            return {const.FIELD_REMOVED: removed}
        return None

    # --- Register Services ---
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_ADD_TODO,
        handle_add_todo,
        schema=ADD_TODO_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_UPDATE_TODO,
        handle_update_todo,
        schema=UPDATE_TODO_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_DELETE_TODO,
        handle_delete_todo,
        schema=TODO_ID_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_COMPLETE_TODO,
        handle_complete_todo,
        schema=TODO_ID_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_UNCOMPLETE_TODO,
        handle_uncomplete_todo,
        schema=TODO_ID_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RESET_TODOS,
        handle_reset_todos,
        schema=EMPTY_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SYNCHRONIZE_REMINDERS,
        handle_synchronize_reminders,
        schema=EMPTY_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_APP_ACTIVE,
        handle_app_active,
        schema=EMPTY_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CLEAR_TODOS,
        handle_clear_todos,
        schema=EMPTY_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    const.LOGGER.info("Daily Todos services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Daily Todos services when the last entry unloads."""
    for service in SERVICES:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("Daily Todos services have been unregistered")
