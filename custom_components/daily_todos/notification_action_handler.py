# File: notification_action_handler.py
"""Handle notification actions from HA companion notifications.

This module processes the callbacks of the companion app. When a user taps an
action button (or clears a reminder), the event is parsed and routed through
the entry's reminder dispatcher to the notification manager.

Separation of concerns:
- notification_action_handler.py = "The Router" (INCOMING events)
- NotifyReminderDispatcher = OUTGOING reminders
- NotificationManager = what an action does to the to-dos
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from homeassistant.exceptions import HomeAssistantError

from . import const
from .helpers.entity_helpers import find_entry_by_short_id, get_loaded_entries
from .reminder_dispatcher import (
    NotifyReminderDispatcher,
    ReminderPayload,
    build_reminder_identifier,
    parse_reminder_identifier,
)

if TYPE_CHECKING:
    from homeassistant.core import Event, HomeAssistant

    from .coordinator import DailyTodosCoordinator


# =============================================================================
# ParsedAction Dataclass
# =============================================================================


@dataclass
class ParsedAction:
    """Type-safe parsed notification action.

    Action strings are pipe-separated: "ACTION|entry_id[:8]|todo_id".

    Example:
        parsed = ParsedAction(
            action_type="COMPLETE_TODO",
            entry_id="abc12345",
            todo_id="todo-456",
        )
    """

    action_type: str
    entry_id: str | None
    todo_id: str

    @property
    def reminder_action(self) -> const.ReminderAction:
        """Return the reminder action kind for this button."""
        return const.ACTION_TO_REMINDER_ACTION[self.action_type]

    @property
    def identifier(self) -> str:
        """Return the reminder identifier the action refers to."""
        return build_reminder_identifier(self.todo_id)


def parse_notification_action(action_field: str) -> ParsedAction | None:
    """Parse a notification action string into a ParsedAction.

    Accepts "ACTION|entry_id[:8]|todo_id" and the short "ACTION|todo_id"
    (entry_id is then None and the first loaded entry handles it).

    Returns:
        ParsedAction if valid, None if the string is malformed or not ours.
    """
    if not action_field:
        return None

    parts = action_field.split("|")
    if len(parts) not in (2, 3):
        const.LOGGER.debug("Ignoring foreign action string: %s", action_field)
        return None

    action_type = parts[0]
    if action_type not in const.ACTION_TO_REMINDER_ACTION:
        const.LOGGER.debug("Ignoring unknown action type: %s", action_type)
        return None

    if len(parts) == 3:
        entry_id, todo_id = parts[1] or None, parts[2]
    else:
        entry_id, todo_id = None, parts[1]

    if not todo_id:
        const.LOGGER.warning("Action string without todo id: %s", action_field)
        return None

    return ParsedAction(action_type=action_type, entry_id=entry_id, todo_id=todo_id)


def _get_coordinator(
    hass: HomeAssistant, short_entry_id: str | None
) -> DailyTodosCoordinator | None:
    entry = find_entry_by_short_id(hass, short_entry_id)
    if entry is None:
        const.LOGGER.error(
            "Daily Todos config entry not found for truncated ID: %s", short_entry_id
        )
        return None
    return entry.runtime_data


# =============================================================================
# Action Handlers
# =============================================================================


async def async_handle_notification_action(hass: HomeAssistant, event: Event) -> None:
    """Handle an action button pressed on a reminder.

    Args:
        hass: Home Assistant instance
        event: mobile_app_notification_action event
    """
    action_field = event.data.get(const.NOTIFY_ACTION)
    if not action_field:
        return

    parsed = parse_notification_action(action_field)
    if parsed is None:
        return

    coordinator = _get_coordinator(hass, parsed.entry_id)
    if coordinator is None:
        return

    payload = None
    if isinstance(coordinator.dispatcher, NotifyReminderDispatcher):
        payload = coordinator.dispatcher.payload_for(parsed.identifier)
    if payload is None:
        payload = ReminderPayload(todo_id=parsed.todo_id, category="")

    try:
        await coordinator.dispatcher.async_dispatch_action(
            parsed.identifier, parsed.reminder_action, payload
        )
    except HomeAssistantError as err:
        const.LOGGER.error(
            "Failed processing notification action %s: %s", parsed.action_type, err
        )


async def async_handle_notification_cleared(hass: HomeAssistant, event: Event) -> None:
    """Handle a reminder swiped away by the user (system dismiss).

    The companion app echoes the notification data, so the tag carries the
    reminder identifier. The entry whose dispatcher knows it handles it.
    """
    identifier = event.data.get(const.NOTIFY_TAG)
    if not identifier or parse_reminder_identifier(identifier) is None:
        return

    for entry in get_loaded_entries(hass):
        dispatcher = entry.runtime_data.dispatcher
        if not isinstance(dispatcher, NotifyReminderDispatcher):
            continue
        if not dispatcher.owns(identifier):
            continue

        payload = dispatcher.payload_for(identifier)
        if payload is None:
            return
        try:
            await dispatcher.async_dispatch_action(
                identifier, const.ReminderAction.SYSTEM_DISMISS, payload
            )
        except HomeAssistantError as err:
            const.LOGGER.error(
                "Failed processing cleared reminder %s: %s", identifier, err
            )
        return
