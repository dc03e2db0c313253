# File: coordinator.py
"""Coordinator for the Daily Todos integration.

Composition root: holds the settings, the store, the to-do store, the reminder
dispatcher and both managers, and exposes the operations used by services and
the app-active lifecycle. Updates are event-driven (no polling): every change
publishes a fresh snapshot to the coordinator entities.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from . import const
from .exceptions import TodoNotFoundError
from .helpers.entity_helpers import get_event_signal
from .managers import NotificationManager, ResetManager
from .reminder_dispatcher import NotifyReminderDispatcher
from .todo_store import TodoStore
from .utils.dt_utils import format_time_of_day, parse_time_of_day

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .reminder_dispatcher import ReminderDispatcher
    from .store import DailyTodosStore
    from .type_defs import TodoData, TodoId

type DailyTodosConfigEntry = ConfigEntry[DailyTodosCoordinator]

# Sentinel for "field not given" in partial updates (None clears a time)
_UNSET: Any = object()


class DailyTodosCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Coordinator for Daily Todos.

    Managers:
    - reset_manager: daily rollover timer chain
    - notification_manager: reminders, badge, inbound actions
    """

    config_entry: DailyTodosConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: DailyTodosConfigEntry,
        store: DailyTodosStore,
        dispatcher: ReminderDispatcher | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            hass: Home Assistant instance
            config_entry: The integration's config entry
            store: Initialized DailyTodosStore
            dispatcher: Reminder dispatcher (defaults to the notify adapter)
        """
        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=const.DOMAIN,
            update_interval=None,
        )
        self.store = store
        self.todo_store = TodoStore(store)
        self.dispatcher: ReminderDispatcher = dispatcher or NotifyReminderDispatcher(
            hass,
            store,
            config_entry.entry_id,
            self.notify_service,
        )
        self.reset_manager = ResetManager(hass, self)
        self.notification_manager = NotificationManager(hass, self)
        self._settings_snapshot = self._current_settings()

    # -------------------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------------------

    @property
    def reset_hour(self) -> int:
        """Return the configured reset hour."""
        return int(
            self.config_entry.options.get(
                const.CONF_RESET_HOUR, const.DEFAULT_RESET_HOUR
            )
        )

    @property
    def notify_service(self) -> str:
        """Return the configured notify service ("" for persistent notifications)."""
        return self.config_entry.options.get(
            const.CONF_NOTIFY_SERVICE, const.DEFAULT_NOTIFY_SERVICE
        )

    def is_category_enabled(self, category: str) -> bool:
        """Return whether reminders are enabled for a category."""
        if category == const.TodoCategory.REQUIRED:
            return bool(
                self.config_entry.options.get(
                    const.CONF_REQUIRED_NOTIFICATIONS_ENABLED,
                    const.DEFAULT_REQUIRED_NOTIFICATIONS_ENABLED,
                )
            )
        if category == const.TodoCategory.SUGGESTED:
            return bool(
                self.config_entry.options.get(
                    const.CONF_SUGGESTED_NOTIFICATIONS_ENABLED,
                    const.DEFAULT_SUGGESTED_NOTIFICATIONS_ENABLED,
                )
            )
        return False

    def _current_settings(self) -> dict[str, Any]:
        return {
            const.CONF_RESET_HOUR: self.reset_hour,
            const.CONF_REQUIRED_NOTIFICATIONS_ENABLED: self.is_category_enabled(
                const.TodoCategory.REQUIRED
            ),
            const.CONF_SUGGESTED_NOTIFICATIONS_ENABLED: self.is_category_enabled(
                const.TodoCategory.SUGGESTED
            ),
            const.CONF_NOTIFY_SERVICE: self.notify_service,
        }

    async def async_apply_settings(self) -> list[str]:
        """Pick up changed options and emit settings_updated.

        Returns:
            The setting keys that changed.
        """
        current = self._current_settings()
        changed = [
            key for key, value in current.items()
            if self._settings_snapshot.get(key) != value
        ]
        self._settings_snapshot = current
        if not changed:
            return changed

        if const.CONF_NOTIFY_SERVICE in changed and isinstance(
            self.dispatcher, NotifyReminderDispatcher
        ):
            self.dispatcher.update_notify_service(self.notify_service)

        const.LOGGER.info("Daily Todos settings changed: %s", changed)
        self._emit(const.SIGNAL_SUFFIX_SETTINGS_UPDATED, changed=changed)
        return changed

    # -------------------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------------------

    async def async_setup(self) -> None:
        """Wire managers and the dispatcher, then run the startup checks."""
        await self.reset_manager.async_setup()
        await self.notification_manager.async_setup()

        self.dispatcher.set_action_handler(
            self.notification_manager.async_handle_action
        )
        if isinstance(self.dispatcher, NotifyReminderDispatcher):
            await self.dispatcher.async_setup()

        for suffix in (
            const.SIGNAL_SUFFIX_TODOS_CHANGED,
            const.SIGNAL_SUFFIX_BADGE_UPDATED,
        ):
            self.config_entry.async_on_unload(
                self._connect(suffix, self._async_on_state_changed)
            )

        await self.reset_manager.async_check_and_reschedule_if_needed()
        self.async_set_updated_data(self._build_snapshot())

    async def _async_update_data(self) -> dict[str, Any]:
        """Return the current snapshot (first refresh only, no polling)."""
        return self._build_snapshot()

    async def async_handle_app_active(self) -> None:
        """Foreground/active transition.

        Refresh authorization, recover a missed rollover and re-arm the timer,
        retry queued completions, then reconcile reminders.
        """
        const.LOGGER.debug("Daily Todos app active for entry %s", self.config_entry.entry_id)
        await self.notification_manager.async_refresh_authorization_status()
        await self.reset_manager.async_check_and_reschedule_if_needed()
        await self.notification_manager.async_retry_pending_completions()
        await self.notification_manager.async_synchronize()
        self._emit(const.SIGNAL_SUFFIX_APP_ACTIVE)
        self.async_set_updated_data(self._build_snapshot())

    async def async_shutdown(self) -> None:
        """Cancel timers and subscriptions and detach the dispatcher."""
        self.reset_manager.async_cancel_timer()
        self.reset_manager.async_unsubscribe_all()
        self.notification_manager.async_unsubscribe_all()
        self.dispatcher.set_action_handler(None)
        if isinstance(self.dispatcher, NotifyReminderDispatcher):
            self.dispatcher.async_shutdown()
        await super().async_shutdown()

    # -------------------------------------------------------------------------------------
    # To-do operations (UI layer)
    # -------------------------------------------------------------------------------------

    async def async_add_todo(
        self,
        title: str,
        category: const.TodoCategory = const.TodoCategory.REQUIRED,
        scheduled_time: str | None = None,
    ) -> TodoData:
        """Create a to-do and register its reminder.

        Raises:
            ValueError: Empty title or invalid time of day.
            StoreError: Persisting failed.
        """
        todo = await self.todo_store.async_add(
            title, category, self._normalize_time(scheduled_time)
        )
        await self.notification_manager.async_schedule(todo)
        self._emit(
            const.SIGNAL_SUFFIX_TODO_CREATED,
            todo_id=todo[const.DATA_TODO_ID],
            category=todo[const.DATA_TODO_CATEGORY],
        )
        self._emit(
            const.SIGNAL_SUFFIX_TODOS_CHANGED,
            reason="created",
            todo_id=todo[const.DATA_TODO_ID],
        )
        await self.notification_manager.async_refresh_badge_count()
        return todo

    async def async_update_todo(
        self,
        todo_id: TodoId,
        *,
        title: str | None = None,
        category: const.TodoCategory | None = None,
        scheduled_time: str | None = _UNSET,
    ) -> TodoData:
        """Edit a to-do and re-register its reminder.

        Passing scheduled_time=None clears the time (and the reminder).

        Raises:
            TodoNotFoundError: No to-do with this id.
            ValueError: Empty title or invalid time of day.
            StoreError: Persisting failed.
        """
        current = self._get_todo_or_raise(todo_id)
        changes: dict[str, Any] = {}

        if title is not None:
            title = title.strip()
            if not title:
                raise ValueError(const.ERROR_TITLE_EMPTY)
            changes[const.DATA_TODO_TITLE] = title
        if category is not None and category != current[const.DATA_TODO_CATEGORY]:
            changes[const.DATA_TODO_CATEGORY] = str(const.TodoCategory(category))
            changes[const.DATA_TODO_ORDER] = self.todo_store.next_order(category)
        if scheduled_time is not _UNSET:
            changes[const.DATA_TODO_SCHEDULED_TIME] = self._normalize_time(
                scheduled_time
            )

        todo = await self._async_update_or_raise(todo_id, **changes)
        await self.notification_manager.async_schedule(todo)
        self._emit(
            const.SIGNAL_SUFFIX_TODO_UPDATED,
            todo_id=todo_id,
            category=todo[const.DATA_TODO_CATEGORY],
        )
        self._emit(const.SIGNAL_SUFFIX_TODOS_CHANGED, reason="updated", todo_id=todo_id)
        await self.notification_manager.async_refresh_badge_count()
        return todo

    async def async_delete_todo(self, todo_id: TodoId) -> None:
        """Delete a to-do and its reminder.

        Raises:
            TodoNotFoundError: No to-do with this id.
            StoreError: Persisting failed.
        """
        removed = await self.todo_store.async_delete(todo_id)
        await self.notification_manager.async_cancel(todo_id)
        self._emit(
            const.SIGNAL_SUFFIX_TODO_DELETED,
            todo_id=todo_id,
            category=removed[const.DATA_TODO_CATEGORY],
        )
        self._emit(const.SIGNAL_SUFFIX_TODOS_CHANGED, reason="deleted", todo_id=todo_id)
        await self.notification_manager.async_refresh_badge_count()

    async def async_set_todo_completed(self, todo_id: TodoId, completed: bool) -> TodoData:
        """Mark a to-do completed or incomplete from the UI.

        Completing drops the reminder; reopening registers it again.

        Raises:
            TodoNotFoundError: No to-do with this id.
            StoreError: Persisting failed.
        """
        todo = self._get_todo_or_raise(todo_id)
        if bool(todo.get(const.DATA_TODO_IS_COMPLETED)) == completed:
            return todo

        todo = await self._async_update_or_raise(
            todo_id, **{const.DATA_TODO_IS_COMPLETED: completed}
        )
        if completed:
            await self.notification_manager.async_cancel(todo_id)
        else:
            await self.notification_manager.async_schedule(todo)

        self._emit(
            const.SIGNAL_SUFFIX_TODOS_CHANGED,
            reason="completed" if completed else "uncompleted",
            todo_id=todo_id,
        )
        await self.notification_manager.async_refresh_badge_count()
        return todo

    async def async_clear_todos(self) -> int:
        """Delete every to-do together with every reminder the entry owns.

        Queued completions and a pending focus request are dropped as well.
        The last reset date and settings are kept.

        Returns:
            Number of to-dos deleted.

        Raises:
            StoreError: Persisting failed.
        """
        await self.notification_manager.async_cancel_all()
        removed = await self.todo_store.async_delete_all()
        await self.store.async_update_meta(
            **{
                const.DATA_META_PENDING_COMPLETIONS: [],
                const.DATA_META_PENDING_FOCUS: None,
            }
        )
        await self.notification_manager.async_synchronize()

        const.LOGGER.info(
            "Cleared %d todo(s) for entry %s", removed, self.config_entry.entry_id
        )
        self._emit(const.SIGNAL_SUFFIX_TODOS_CHANGED, reason="cleared", count=removed)
        await self.notification_manager.async_refresh_badge_count()
        return removed

    def _get_todo_or_raise(self, todo_id: TodoId) -> TodoData:
        todo = self.todo_store.fetch_by_id(todo_id)
        if todo is None:
            raise TodoNotFoundError(const.ERROR_TODO_NOT_FOUND_FMT.format(todo_id))
        return todo

    async def _async_update_or_raise(self, todo_id: TodoId, **fields: Any) -> TodoData:
        todo = await self.todo_store.async_update(todo_id, **fields)
        if todo is None:
            raise TodoNotFoundError(const.ERROR_TODO_NOT_FOUND_FMT.format(todo_id))
        return todo

    @staticmethod
    def _normalize_time(value: Any) -> str | None:
        """Normalize a time of day to "HH:MM" (None stays None).

        Raises:
            ValueError: Not a valid time of day.
        """
        try:
            parsed = parse_time_of_day(value)
        except ValueError as err:
            raise ValueError(const.ERROR_INVALID_TIME_FMT.format(value)) from err
        if parsed is None:
            return None
        return format_time_of_day(*parsed)

    # -------------------------------------------------------------------------------------
    # Snapshot / events
    # -------------------------------------------------------------------------------------

    def _build_snapshot(self) -> dict[str, Any]:
        """Build the state exposed to entities."""
        last_reset = self.reset_manager.last_reset
        next_reset = self.reset_manager.next_reset
        return {
            const.SENSOR_KEY_INCOMPLETE_TODOS: self.todo_store.fetch_incomplete_count(),
            const.ATTR_REQUIRED_INCOMPLETE: self.todo_store.fetch_incomplete_count(
                const.TodoCategory.REQUIRED
            ),
            const.ATTR_SUGGESTED_INCOMPLETE: self.todo_store.fetch_incomplete_count(
                const.TodoCategory.SUGGESTED
            ),
            const.ATTR_LAST_RESET: last_reset.isoformat() if last_reset else None,
            const.ATTR_NEXT_RESET: next_reset.isoformat() if next_reset else None,
            const.ATTR_AUTHORIZATION_STATUS: str(
                self.notification_manager.authorization_status
            ),
        }

    async def _async_on_state_changed(self, payload: dict[str, Any]) -> None:
        """Publish a fresh snapshot after any to-do or badge change."""
        self.async_set_updated_data(self._build_snapshot())

    def _emit(self, suffix: str, **payload: Any) -> None:
        """Emit an instance-scoped event (same channel the managers use)."""
        self.notification_manager.emit(suffix, **payload)

    def _connect(self, suffix: str, target: Any) -> Callable[[], None]:
        return async_dispatcher_connect(
            self.hass, get_event_signal(self.config_entry.entry_id, suffix), target
        )
