"""Type definitions for Daily Todos data structures.

TypedDict is used for the persisted records (fixed keys) and for the event
payloads passed between managers. Records travel as plain dicts so they can be
written to Home Assistant's JSON store unchanged.

IMPORTANT: This file must NOT import from coordinator.py or any manager to
avoid circular dependencies. Only import from typing (type machinery).

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime checks (.get() defaults,
validation) remain in the store and managers.
"""

from typing import NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

TodoId = str  # UUID string
ReminderIdentifier = str  # "daily_todos.todo.{todo_id}"
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
TimeOfDay = str  # "HH:MM"


# =============================================================================
# Persisted Records
# =============================================================================


class TodoData(TypedDict):
    """A recurring daily to-do."""

    id: TodoId
    title: str
    category: str  # TodoCategory value
    order: int
    scheduled_time: TimeOfDay | None
    is_completed: bool
    created_at: ISODatetime


class PendingRecord(TypedDict):
    """A queued completion or focus request waiting for its to-do."""

    todo_id: TodoId
    requested_at: ISODatetime


class MetaData(TypedDict, total=False):
    """Process-wide bookkeeping that survives restarts."""

    schema_version: int
    last_reset_date: ISODatetime | None
    pending_completions: list[PendingRecord]
    pending_focus: PendingRecord | None


class ReminderRecord(TypedDict):
    """Dispatcher-owned reminder registration (persisted by the HA adapter)."""

    todo_id: TodoId
    category: str
    hour: int
    minute: int
    repeats: bool
    title: str
    body: str


# =============================================================================
# Event Payload Types (Manager-to-Manager Communication)
# =============================================================================
# Used for type-safe event payloads in BaseManager.emit() calls


class TodosResetEvent(TypedDict):
    """Event payload for SIGNAL_SUFFIX_TODOS_RESET.

    Emitted by: ResetManager.async_reset_all_todos()
    Consumed by: NotificationManager (reconciliation + badge), sensor
    """

    reset_count: int
    reset_at: ISODatetime


class TodosChangedEvent(TypedDict, total=False):
    """Event payload for SIGNAL_SUFFIX_TODOS_CHANGED (generic UI refresh)."""

    reason: str  # "completed", "reset", "created", "updated", "deleted"
    todo_id: NotRequired[TodoId]


class TodoEvent(TypedDict):
    """Event payload for TODO_CREATED / TODO_UPDATED / TODO_DELETED."""

    todo_id: TodoId
    category: str


class TodoCompletionEvent(TypedDict):
    """Event payload for TODO_WILL_COMPLETE (phase 1) and TODO_COMPLETED (phase 2).

    Emitted by: NotificationManager when a reminder's Complete action is handled
    Consumed by: UI layer (animate before commit, refresh after commit)
    """

    todo_id: TodoId
    category: str
    timestamp: ISODatetime


class ShowTodoEvent(TypedDict):
    """Event payload for SIGNAL_SUFFIX_SHOW_TODO and SIGNAL_SUFFIX_OPEN_APP."""

    todo_id: TodoId


class BadgeUpdatedEvent(TypedDict):
    """Event payload for SIGNAL_SUFFIX_BADGE_UPDATED."""

    count: int


class SettingsUpdatedEvent(TypedDict):
    """Event payload for SIGNAL_SUFFIX_SETTINGS_UPDATED.

    Emitted by: DailyTodosCoordinator.async_apply_settings()
    Consumed by: ResetManager (re-arm), NotificationManager (reschedule)
    """

    changed: list[str]


class AppActiveEvent(TypedDict):
    """Event payload for SIGNAL_SUFFIX_APP_ACTIVE (empty)."""
