# File: const.py
"""Constants for the Daily Todos integration.

This file centralizes configuration keys, defaults, storage keys, signal
suffixes, notification keys and service names used across the integration.
"""

from enum import StrEnum
import logging

import homeassistant.util.dt as dt_util
from homeassistant.const import Platform


def set_default_timezone(hass):
    """Set the default timezone based on the Home Assistant configuration."""
    global DEFAULT_TIME_ZONE
    DEFAULT_TIME_ZONE = dt_util.get_time_zone(hass.config.time_zone)


# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
DAILY_TODOS_TITLE = "Daily Todos"

# Integration Domain
DOMAIN = "daily_todos"

# Logger
LOGGER = logging.getLogger(__package__)

# Supported Platforms
PLATFORMS = [
    Platform.SENSOR,
]

# Storage and Versioning
STORAGE_KEY = "daily_todos_data"
STORAGE_VERSION = 1

# Default timezone: initially None, to be set once hass is available.
DEFAULT_TIME_ZONE = None


# ------------------------------------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------------------------------------
class TodoCategory(StrEnum):
    """Category of a to-do. Required to-dos gate the "all done" state."""

    REQUIRED = "required"
    SUGGESTED = "suggested"


class AuthorizationStatus(StrEnum):
    """Reminder permission state: not_determined -> authorized | denied."""

    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class ReminderAction(StrEnum):
    """Kinds of inbound reminder interactions."""

    COMPLETE = "complete"
    DISMISS = "dismiss"
    SYSTEM_DISMISS = "system_dismiss"
    OPEN = "open"


# Iteration order for categories (required first)
CATEGORY_SORT_ORDER = {
    TodoCategory.REQUIRED: 0,
    TodoCategory.SUGGESTED: 1,
}


# ------------------------------------------------------------------------------------------------
# Configuration Keys (config entry options)
# ------------------------------------------------------------------------------------------------
CONF_RESET_HOUR = "reset_hour"
CONF_REQUIRED_NOTIFICATIONS_ENABLED = "required_notifications_enabled"
CONF_SUGGESTED_NOTIFICATIONS_ENABLED = "suggested_notifications_enabled"
CONF_NOTIFY_SERVICE = "notify_service"

# Defaults
DEFAULT_RESET_HOUR = 4
DEFAULT_REQUIRED_NOTIFICATIONS_ENABLED = True
DEFAULT_SUGGESTED_NOTIFICATIONS_ENABLED = False
DEFAULT_NOTIFY_SERVICE = ""

# Reset hour bounds
RESET_HOUR_MIN = 0
RESET_HOUR_MAX = 23

# Queued completions older than this are discarded (hours)
PENDING_COMPLETION_MAX_AGE_HOURS = 24


# ------------------------------------------------------------------------------------------------
# Storage Data Keys
# ------------------------------------------------------------------------------------------------
DATA_TODOS = "todos"
DATA_META = "meta"
DATA_REMINDERS = "reminders"

# Todo record fields
DATA_TODO_ID = "id"
DATA_TODO_TITLE = "title"
DATA_TODO_CATEGORY = "category"
DATA_TODO_ORDER = "order"
DATA_TODO_SCHEDULED_TIME = "scheduled_time"
DATA_TODO_IS_COMPLETED = "is_completed"
DATA_TODO_CREATED_AT = "created_at"

# Meta fields
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_META_LAST_RESET_DATE = "last_reset_date"
DATA_META_PENDING_COMPLETIONS = "pending_completions"
DATA_META_PENDING_FOCUS = "pending_focus"

# Pending record fields (completions and focus)
DATA_PENDING_TODO_ID = "todo_id"
DATA_PENDING_REQUESTED_AT = "requested_at"

# Reminder registration buckets (dispatcher-owned)
DATA_REMINDERS_PENDING = "pending"
DATA_REMINDERS_DELIVERED = "delivered"

# Reminder registration fields
DATA_REMINDER_TODO_ID = "todo_id"
DATA_REMINDER_CATEGORY = "category"
DATA_REMINDER_HOUR = "hour"
DATA_REMINDER_MINUTE = "minute"
DATA_REMINDER_REPEATS = "repeats"
DATA_REMINDER_TITLE = "title"
DATA_REMINDER_BODY = "body"

SCHEMA_VERSION = 1


# ------------------------------------------------------------------------------------------------
# Event Signal Suffixes (instance-scoped dispatcher signals)
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_TODOS_RESET = "todos_reset"
SIGNAL_SUFFIX_TODOS_CHANGED = "todos_changed"
SIGNAL_SUFFIX_TODO_CREATED = "todo_created"
SIGNAL_SUFFIX_TODO_UPDATED = "todo_updated"
SIGNAL_SUFFIX_TODO_DELETED = "todo_deleted"
SIGNAL_SUFFIX_TODO_WILL_COMPLETE = "todo_will_complete"
SIGNAL_SUFFIX_TODO_COMPLETED = "todo_completed"
SIGNAL_SUFFIX_SHOW_TODO = "show_todo"
SIGNAL_SUFFIX_OPEN_APP = "open_app"
SIGNAL_SUFFIX_SETTINGS_UPDATED = "settings_updated"
SIGNAL_SUFFIX_BADGE_UPDATED = "badge_updated"
SIGNAL_SUFFIX_APP_ACTIVE = "app_active"


# ------------------------------------------------------------------------------------------------
# Reminders
# ------------------------------------------------------------------------------------------------
# Identifier scheme: "{app-prefix}.todo.{id}"
REMINDER_APP_PREFIX = DOMAIN
REMINDER_IDENTIFIER_PREFIX = f"{REMINDER_APP_PREFIX}.todo."

# Reminder content
REMINDER_TITLE_REQUIRED = "⚠️ Required Todo"
REMINDER_TITLE_SUGGESTED = "💡 Suggested Todo"

# Action identifiers (notify action buttons)
ACTION_COMPLETE_TODO = "COMPLETE_TODO"
ACTION_DISMISS_TODO = "DISMISS_TODO"
ACTION_OPEN_TODO = "OPEN_TODO"

# Action titles for notifications
ACTION_TITLE_COMPLETE = "Complete"
ACTION_TITLE_DISMISS = "Dismiss"
ACTION_TITLE_OPEN = "Open"

# Action string to reminder action mapping
ACTION_TO_REMINDER_ACTION = {
    ACTION_COMPLETE_TODO: ReminderAction.COMPLETE,
    ACTION_DISMISS_TODO: ReminderAction.DISMISS,
    ACTION_OPEN_TODO: ReminderAction.OPEN,
}

# Companion app events
NOTIFICATION_EVENT = "mobile_app_notification_action"
NOTIFICATION_CLEARED_EVENT = "mobile_app_notification_cleared"


# ------------------------------------------------------------------------------------------------
# Notification Keys
# ------------------------------------------------------------------------------------------------
NOTIFY_ACTION = "action"
NOTIFY_ACTIONS = "actions"
NOTIFY_CLEAR_NOTIFICATION = "clear_notification"
NOTIFY_CREATE = "create"
NOTIFY_DATA = "data"
NOTIFY_DISMISS = "dismiss"
NOTIFY_DOMAIN = "notify"
NOTIFY_GROUP = "group"
NOTIFY_MESSAGE = "message"
NOTIFY_NOTIFICATION_ID = "notification_id"
NOTIFY_PERSISTENT_NOTIFICATION = "persistent_notification"
NOTIFY_TAG = "tag"
NOTIFY_TITLE = "title"


# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_ADD_TODO = "add_todo"
SERVICE_UPDATE_TODO = "update_todo"
SERVICE_DELETE_TODO = "delete_todo"
SERVICE_COMPLETE_TODO = "complete_todo"
SERVICE_UNCOMPLETE_TODO = "uncomplete_todo"
SERVICE_RESET_TODOS = "reset_todos"
SERVICE_SYNCHRONIZE_REMINDERS = "synchronize_reminders"
SERVICE_APP_ACTIVE = "app_active"
SERVICE_CLEAR_TODOS = "clear_todos"

# Service fields
FIELD_TODO_ID = "todo_id"
FIELD_TITLE = "title"
FIELD_CATEGORY = "category"
FIELD_SCHEDULED_TIME = "scheduled_time"
FIELD_REMOVED = "removed"


# ------------------------------------------------------------------------------------------------
# Sensors
# ------------------------------------------------------------------------------------------------
SENSOR_KEY_INCOMPLETE_TODOS = "incomplete_todos"
SENSOR_ICON_INCOMPLETE_TODOS = "mdi:checkbox-marked-circle-outline"

ATTR_REQUIRED_INCOMPLETE = "required_incomplete"
ATTR_SUGGESTED_INCOMPLETE = "suggested_incomplete"
ATTR_LAST_RESET = "last_reset"
ATTR_NEXT_RESET = "next_reset"
ATTR_AUTHORIZATION_STATUS = "authorization_status"


# ------------------------------------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------------------------------------
ERROR_TODO_NOT_FOUND_FMT = "Todo '{}' not found"
ERROR_TITLE_EMPTY = "Todo title must not be empty"
ERROR_INVALID_TIME_FMT = "Invalid time of day '{}', expected HH:MM"
ERROR_NO_ENTRY_FOUND = "No loaded Daily Todos entry found"

# Translation keys
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_INVALID_NOTIFY_SERVICE = "invalid_notify_service"
