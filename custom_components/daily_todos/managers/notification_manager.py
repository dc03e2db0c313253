# File: managers/notification_manager.py
"""Notification Manager for Daily Todos integration.

Keeps the reminder registrations in 1:1 correspondence with the active to-dos
(not completed, scheduled at a time of day, category enabled), owns the
reminder authorization state and the badge count, and routes inbound reminder
actions back to store mutations.

Separation of concerns:
- NotificationManager = registrations, badge, inbound action dispatch table
- ReminderDispatcher = how reminders are registered and shown
- notification_action_handler.py = companion app event parsing

Signals Emitted:
- SIGNAL_SUFFIX_TODO_WILL_COMPLETE: phase 1 of a reminder completion
- SIGNAL_SUFFIX_TODO_COMPLETED: phase 2, after the completion is persisted
- SIGNAL_SUFFIX_TODOS_CHANGED: generic UI refresh
- SIGNAL_SUFFIX_SHOW_TODO / SIGNAL_SUFFIX_OPEN_APP: reminder tapped

Signals Consumed:
- SIGNAL_SUFFIX_TODOS_RESET: reconcile with the refreshed to-do set
- SIGNAL_SUFFIX_TODO_CREATED: retry queued completions
- SIGNAL_SUFFIX_SETTINGS_UPDATED: reschedule on notification preference change
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.util import dt as dt_util

from .. import const
from ..exceptions import ReminderDispatchError, StoreError
from ..reminder_dispatcher import (
    ReminderPayload,
    ReminderRequest,
    ReminderTrigger,
    build_reminder_identifier,
    parse_reminder_identifier,
)
from ..todo_store import is_todo_active
from ..utils.dt_utils import dt_parse_iso, parse_time_of_day
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import DailyTodosCoordinator
    from ..reminder_dispatcher import ReminderDispatcher
    from ..todo_store import TodoStore
    from ..type_defs import PendingRecord, TodoData, TodoId

# Settings whose change invalidates the current registrations
_REMINDER_SETTINGS = (
    const.CONF_REQUIRED_NOTIFICATIONS_ENABLED,
    const.CONF_SUGGESTED_NOTIFICATIONS_ENABLED,
    const.CONF_NOTIFY_SERVICE,
)


class NotificationManager(BaseManager):
    """Reminder registrations, authorization, badge and action routing.

    Failure policy: permission, persistence and dispatcher failures are logged
    and never raised to callers. async_synchronize() repairs whatever a failed
    call left behind.
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self, hass: HomeAssistant, coordinator: DailyTodosCoordinator) -> None:
        """Initialize notification manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator for store and dispatcher access
        """
        super().__init__(hass, coordinator)
        self._authorization_status = const.AuthorizationStatus.NOT_DETERMINED
        self._badge_count = 0

    async def async_setup(self) -> None:
        """Subscribe to the events that require reconciliation."""
        self.listen(const.SIGNAL_SUFFIX_TODOS_RESET, self._async_on_todos_reset)
        self.listen(const.SIGNAL_SUFFIX_TODO_CREATED, self._async_on_todo_created)
        self.listen(
            const.SIGNAL_SUFFIX_SETTINGS_UPDATED, self._async_on_settings_updated
        )
        const.LOGGER.debug(
            "NotificationManager initialized with 3 subscriptions for entry %s",
            self.entry_id,
        )

    @property
    def dispatcher(self) -> ReminderDispatcher:
        """Return the reminder dispatcher."""
        return self.coordinator.dispatcher

    @property
    def todo_store(self) -> TodoStore:
        """Return the to-do store."""
        return self.coordinator.todo_store

    @property
    def authorization_status(self) -> const.AuthorizationStatus:
        """Return the cached authorization status."""
        return self._authorization_status

    @property
    def badge_count(self) -> int:
        """Return the last badge count pushed to the dispatcher."""
        return self._badge_count

    # =========================================================================
    # Authorization
    # =========================================================================

    async def async_refresh_authorization_status(self) -> const.AuthorizationStatus:
        """Re-sync the cached authorization status from the dispatcher."""
        self._authorization_status = (
            await self.dispatcher.async_get_authorization_status()
        )
        return self._authorization_status

    async def _async_ensure_authorized(self) -> bool:
        """Return True when scheduling is permitted, requesting it if undetermined."""
        if self._authorization_status == const.AuthorizationStatus.NOT_DETERMINED:
            await self.async_refresh_authorization_status()

        if self._authorization_status == const.AuthorizationStatus.NOT_DETERMINED:
            granted = await self.dispatcher.async_request_authorization()
            self._authorization_status = (
                const.AuthorizationStatus.AUTHORIZED
                if granted
                else const.AuthorizationStatus.DENIED
            )
            const.LOGGER.info(
                "NotificationManager: Reminder authorization %s",
                self._authorization_status,
            )

        return self._authorization_status == const.AuthorizationStatus.AUTHORIZED

    # =========================================================================
    # Registrations
    # =========================================================================

    async def async_schedule(self, todo: TodoData) -> bool:
        """Register the daily reminder for a to-do, replacing any existing one.

        No-op (returns False) unless authorized. The reminder is only
        registered when the category is enabled, a scheduled time is set and
        the to-do is not completed.

        Returns:
            True if a reminder is now registered for the to-do.
        """
        if not await self._async_ensure_authorized():
            const.LOGGER.debug(
                "Skipping reminder for todo %s: authorization %s",
                todo[const.DATA_TODO_ID],
                self._authorization_status,
            )
            return False

        todo_id = todo[const.DATA_TODO_ID]
        category = todo[const.DATA_TODO_CATEGORY]
        await self.async_cancel(todo_id)

        if not self.coordinator.is_category_enabled(category):
            return False
        if todo.get(const.DATA_TODO_IS_COMPLETED):
            return False

        try:
            time_of_day = parse_time_of_day(todo.get(const.DATA_TODO_SCHEDULED_TIME))
        except ValueError as err:
            const.LOGGER.warning(
                "Skipping reminder for todo %s: %s", todo_id, err
            )
            return False
        if time_of_day is None:
            return False

        hour, minute = time_of_day
        request = ReminderRequest(
            identifier=build_reminder_identifier(todo_id),
            payload=ReminderPayload(todo_id=todo_id, category=category),
            trigger=ReminderTrigger(hour=hour, minute=minute, repeats=True),
            title=(
                const.REMINDER_TITLE_REQUIRED
                if category == const.TodoCategory.REQUIRED
                else const.REMINDER_TITLE_SUGGESTED
            ),
            body=todo[const.DATA_TODO_TITLE],
        )
        try:
            await self.dispatcher.async_register(request)
        except ReminderDispatchError as err:
            const.LOGGER.error(
                "Failed to register reminder for todo %s: %s", todo_id, err
            )
            return False
        return True

    async def async_cancel(self, todo_or_id: TodoData | TodoId) -> None:
        """Remove the pending and delivered reminder of a to-do (idempotent)."""
        todo_id = (
            todo_or_id
            if isinstance(todo_or_id, str)
            else todo_or_id[const.DATA_TODO_ID]
        )
        identifier = build_reminder_identifier(todo_id)
        try:
            await self.dispatcher.async_cancel_pending([identifier])
            await self.dispatcher.async_cancel_delivered([identifier])
        except ReminderDispatchError as err:
            const.LOGGER.error("Failed to cancel reminder %s: %s", identifier, err)

    async def async_cancel_all(self) -> None:
        """Remove every registration the integration owns."""
        try:
            await self.dispatcher.async_cancel_all_pending()
            await self.dispatcher.async_cancel_all_delivered()
        except ReminderDispatchError as err:
            const.LOGGER.error("Failed to cancel all reminders: %s", err)

    async def async_reschedule_all(self, todos: list[TodoData] | None = None) -> int:
        """Cancel everything, then schedule each active to-do.

        Returns:
            Number of reminders registered.
        """
        if todos is None:
            todos = self.todo_store.fetch_all()

        await self.async_cancel_all()
        scheduled = 0
        for todo in todos:
            if is_todo_active(todo) and await self.async_schedule(todo):
                scheduled += 1

        const.LOGGER.debug(
            "NotificationManager: Rescheduled %d reminder(s) for %d todo(s)",
            scheduled,
            len(todos),
        )
        await self.async_refresh_badge_count()
        return scheduled

    async def async_synchronize(self, todos: list[TodoData] | None = None) -> None:
        """Reconcile registrations with the complete to-do set.

        Removes pending and delivered reminders that are orphaned (no such
        to-do), belong to completed or unscheduled to-dos, or to a disabled
        category. Registers missing reminders for active to-dos when
        authorized. Identifiers without the integration prefix are ignored.
        Safe to call any number of times.
        """
        if todos is None:
            todos = self.todo_store.fetch_all()
        todos_by_id = {todo[const.DATA_TODO_ID]: todo for todo in todos}

        try:
            pending = await self.dispatcher.async_list_pending()
            delivered = await self.dispatcher.async_list_delivered()
        except ReminderDispatchError as err:
            const.LOGGER.error("Reconciliation aborted, listing failed: %s", err)
            return

        stale_pending = [i for i in pending if self._is_stale(i, todos_by_id)]
        stale_delivered = [i for i in delivered if self._is_stale(i, todos_by_id)]

        try:
            if stale_pending:
                await self.dispatcher.async_cancel_pending(stale_pending)
            if stale_delivered:
                await self.dispatcher.async_cancel_delivered(stale_delivered)
        except ReminderDispatchError as err:
            const.LOGGER.error("Failed to remove stale reminders: %s", err)

        registered = set(pending) - set(stale_pending)
        repaired = 0
        if await self._async_ensure_authorized():
            for todo_id, todo in todos_by_id.items():
                if build_reminder_identifier(todo_id) in registered:
                    continue
                if self._wants_reminder(todo) and await self.async_schedule(todo):
                    repaired += 1

        if stale_pending or stale_delivered or repaired:
            const.LOGGER.info(
                "NotificationManager: Reconciled reminders "
                "(removed %d pending, %d delivered, registered %d)",
                len(stale_pending),
                len(stale_delivered),
                repaired,
            )
        await self.async_refresh_badge_count()

    def _wants_reminder(self, todo: TodoData) -> bool:
        """Return True for an active to-do in an enabled category."""
        return is_todo_active(todo) and self.coordinator.is_category_enabled(
            todo[const.DATA_TODO_CATEGORY]
        )

    def _is_stale(self, identifier: str, todos_by_id: dict[str, TodoData]) -> bool:
        """Return True if an owned registration should not exist."""
        todo_id = parse_reminder_identifier(identifier)
        if todo_id is None:
            return False
        todo = todos_by_id.get(todo_id)
        return todo is None or not self._wants_reminder(todo)

    # =========================================================================
    # Badge
    # =========================================================================

    async def async_refresh_badge_count(self) -> int:
        """Set the badge to the number of incomplete to-dos (all categories)."""
        count = self.todo_store.fetch_incomplete_count() if self.todo_store.ready else 0
        self._badge_count = count
        try:
            await self.dispatcher.async_set_badge(count)
        except ReminderDispatchError as err:
            const.LOGGER.error("Failed to set badge count: %s", err)
        return count

    # =========================================================================
    # Inbound Actions
    # =========================================================================

    async def async_handle_action(
        self,
        identifier: str,
        action: const.ReminderAction,
        payload: ReminderPayload,
    ) -> None:
        """Route an inbound reminder action.

        - complete: two-phase completion, queued when the to-do is unknown
        - dismiss / system_dismiss: badge refresh only
        - open: focus the to-do; does not complete it
        """
        const.LOGGER.debug(
            "NotificationManager: Action '%s' for %s (todo %s)",
            action,
            identifier,
            payload.todo_id,
        )
        if action == const.ReminderAction.COMPLETE:
            await self._async_handle_complete(payload.todo_id)
        elif action in (
            const.ReminderAction.DISMISS,
            const.ReminderAction.SYSTEM_DISMISS,
        ):
            await self.async_refresh_badge_count()
        elif action == const.ReminderAction.OPEN:
            await self._async_handle_open(payload.todo_id)
        else:
            const.LOGGER.error("Received unknown reminder action: %s", action)

    async def _async_handle_complete(self, todo_id: TodoId) -> None:
        todo = self.todo_store.fetch_by_id(todo_id) if self.todo_store.ready else None
        if todo is None:
            const.LOGGER.warning(
                "Completion requested for unknown todo %s, queued for retry",
                todo_id,
            )
            await self._async_queue_pending_completion(todo_id)
            return
        await self._async_apply_completion(todo)

    async def _async_apply_completion(
        self, todo: TodoData, *, requeue_on_failure: bool = True
    ) -> bool:
        """Complete a to-do in two phases and drop its reminder.

        Phase 1 (todo_will_complete) fires before anything is mutated, phase 2
        (todo_completed) only after the completion was persisted.
        """
        todo_id = todo[const.DATA_TODO_ID]
        category = todo[const.DATA_TODO_CATEGORY]

        if todo.get(const.DATA_TODO_IS_COMPLETED):
            await self.async_cancel(todo_id)
            await self.async_refresh_badge_count()
            return True

        self.emit(
            const.SIGNAL_SUFFIX_TODO_WILL_COMPLETE,
            todo_id=todo_id,
            category=category,
            timestamp=dt_util.now().isoformat(),
        )

        try:
            committed = await self.todo_store.async_update(
                todo_id, **{const.DATA_TODO_IS_COMPLETED: True}
            )
        except StoreError as err:
            const.LOGGER.error("Failed to persist completion of todo %s: %s", todo_id, err)
            if requeue_on_failure:
                await self._async_queue_pending_completion(todo_id)
            self.emit(
                const.SIGNAL_SUFFIX_TODOS_CHANGED,
                reason="completion_failed",
                todo_id=todo_id,
            )
            return False

        if committed is None:
            const.LOGGER.warning(
                "Completion of todo %s dropped: it was deleted meanwhile", todo_id
            )
            return False

        await self.async_cancel(todo_id)
        self.emit(
            const.SIGNAL_SUFFIX_TODO_COMPLETED,
            todo_id=todo_id,
            category=category,
            timestamp=dt_util.now().isoformat(),
        )
        self.emit(const.SIGNAL_SUFFIX_TODOS_CHANGED, reason="completed", todo_id=todo_id)
        await self.async_refresh_badge_count()
        return True

    async def _async_handle_open(self, todo_id: TodoId) -> None:
        """Remember the tapped to-do for focus and bring the app forward."""
        record: PendingRecord = {
            const.DATA_PENDING_TODO_ID: todo_id,
            const.DATA_PENDING_REQUESTED_AT: dt_util.utcnow().isoformat(),
        }  # type: ignore[misc]
        try:
            await self.coordinator.store.async_update_meta(
                **{const.DATA_META_PENDING_FOCUS: record}
            )
        except StoreError as err:
            const.LOGGER.error("Failed to persist focus for todo %s: %s", todo_id, err)

        self.emit(const.SIGNAL_SUFFIX_SHOW_TODO, todo_id=todo_id)
        self.emit(const.SIGNAL_SUFFIX_OPEN_APP, todo_id=todo_id)

    # =========================================================================
    # Pending Completions
    # =========================================================================

    def _pending_completions(self) -> list[PendingRecord]:
        return list(
            self.coordinator.store.meta.get(const.DATA_META_PENDING_COMPLETIONS, [])
        )

    async def _async_queue_pending_completion(self, todo_id: TodoId) -> None:
        """Persist a completion request that could not be applied yet."""

        def _enqueue(meta: dict[str, Any]) -> None:
            pending = meta.setdefault(const.DATA_META_PENDING_COMPLETIONS, [])
            if any(rec.get(const.DATA_PENDING_TODO_ID) == todo_id for rec in pending):
                return
            pending.append(
                {
                    const.DATA_PENDING_TODO_ID: todo_id,
                    const.DATA_PENDING_REQUESTED_AT: dt_util.utcnow().isoformat(),
                }
            )

        try:
            await self.coordinator.store.async_update_data(const.DATA_META, _enqueue)
        except StoreError as err:
            const.LOGGER.error(
                "Failed to queue completion for todo %s: %s", todo_id, err
            )

    async def async_retry_pending_completions(self) -> int:
        """Apply queued completions whose to-do now exists.

        Entries older than PENDING_COMPLETION_MAX_AGE_HOURS are dropped with a
        warning. Entries whose to-do is still unknown are kept. Requests queued
        while the retry runs are left in place.

        Returns:
            Number of completions applied.
        """
        pending = self._pending_completions()
        if not pending or not self.todo_store.ready:
            return 0

        now = dt_util.utcnow()
        max_age = timedelta(hours=const.PENDING_COMPLETION_MAX_AGE_HOURS)
        settled: list[PendingRecord] = []
        applied = 0

        for record in pending:
            todo_id = record.get(const.DATA_PENDING_TODO_ID)
            requested_at = dt_parse_iso(record.get(const.DATA_PENDING_REQUESTED_AT))
            if not todo_id or requested_at is None or now - requested_at > max_age:
                const.LOGGER.warning(
                    "Dropping stale queued completion for todo %s (requested %s)",
                    todo_id,
                    record.get(const.DATA_PENDING_REQUESTED_AT),
                )
                settled.append(record)
                continue

            todo = self.todo_store.fetch_by_id(todo_id)
            if todo is None:
                continue

            if await self._async_apply_completion(todo, requeue_on_failure=False):
                applied += 1
                settled.append(record)

        if settled:

            def _drop_settled(meta: dict[str, Any]) -> None:
                meta[const.DATA_META_PENDING_COMPLETIONS] = [
                    rec
                    for rec in meta.get(const.DATA_META_PENDING_COMPLETIONS, [])
                    if rec not in settled
                ]

            try:
                await self.coordinator.store.async_update_data(
                    const.DATA_META, _drop_settled
                )
            except StoreError as err:
                const.LOGGER.error("Failed to update queued completions: %s", err)

        if applied:
            const.LOGGER.info(
                "NotificationManager: Applied %d queued completion(s)", applied
            )
        return applied

    # =========================================================================
    # Signal Handlers
    # =========================================================================

    async def _async_on_todos_reset(self, payload: dict[str, Any]) -> None:
        """Reconcile against the to-do set the reset just persisted."""
        await self.async_synchronize()

    async def _async_on_todo_created(self, payload: dict[str, Any]) -> None:
        """A queued completion may target the new to-do."""
        await self.async_retry_pending_completions()

    async def _async_on_settings_updated(self, payload: dict[str, Any]) -> None:
        """Rebuild registrations when a reminder preference changed."""
        changed = payload.get("changed", [])
        if not any(key in changed for key in _REMINDER_SETTINGS):
            return
        await self.async_refresh_authorization_status()
        await self.async_reschedule_all()
