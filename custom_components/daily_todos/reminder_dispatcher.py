# File: reminder_dispatcher.py
"""Reminder dispatcher contract and the Home Assistant notify adapter.

The dispatcher owns reminder registrations: pending (armed, waiting for their
daily hour/minute) and delivered (shown to the user, not yet cleared). The
notification manager talks only to the abstract ReminderDispatcher, so the
scheduling core stays independent from how reminders are shown.

Separation of concerns:
- ReminderDispatcher = the contract (register/cancel/list/badge/actions)
- NotifyReminderDispatcher = delivery through HA notify or persistent
  notifications, with daily time-change listeners as triggers
- notification_action_handler.py = parses companion app events and feeds
  them back through async_dispatch_action()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from homeassistant.core import callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.event import async_track_time_change

from . import const
from .exceptions import ReminderDispatchError, StoreError
from .helpers.entity_helpers import get_event_signal

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.core import CALLBACK_TYPE, HomeAssistant

    from .store import DailyTodosStore
    from .type_defs import ReminderIdentifier, ReminderRecord, TodoId

_T = TypeVar("_T")


# =============================================================================
# Identifier scheme
# =============================================================================


def build_reminder_identifier(todo_id: TodoId) -> ReminderIdentifier:
    """Return the reminder identifier for a to-do: 'daily_todos.todo.{id}'."""
    return f"{const.REMINDER_IDENTIFIER_PREFIX}{todo_id}"


def parse_reminder_identifier(identifier: str) -> TodoId | None:
    """Return the to-do id of an identifier, or None if the app does not own it."""
    if not identifier or not identifier.startswith(const.REMINDER_IDENTIFIER_PREFIX):
        return None
    todo_id = identifier[len(const.REMINDER_IDENTIFIER_PREFIX) :]
    return todo_id or None


def split_notify_service(service: str) -> tuple[str, str]:
    """Split 'notify.xyz' into ('notify', 'xyz'); bare names use notify."""
    if "." in service:
        domain, svc = service.split(".", 1)
        return domain, svc
    return const.NOTIFY_DOMAIN, service


async def async_send_notification(
    hass: HomeAssistant,
    service: str,
    title: str,
    message: str,
    actions: list[dict[str, str]] | None = None,
    extra_data: dict[str, Any] | None = None,
) -> None:
    """Send a notification via a notify service call.

    Module-level so tests can patch delivery without a notify platform.
    """
    domain, svc = split_notify_service(service)

    payload: dict[str, Any] = {
        const.NOTIFY_TITLE: title,
        const.NOTIFY_MESSAGE: message,
    }
    if actions:
        data = payload.setdefault(const.NOTIFY_DATA, {})
        data[const.NOTIFY_ACTIONS] = actions
    if extra_data:
        data = payload.setdefault(const.NOTIFY_DATA, {})
        data.update(extra_data)

    const.LOGGER.debug(
        "async_send_notification: %s.%s - title='%s'", domain, svc, title
    )
    await hass.services.async_call(domain, svc, payload, blocking=True)


# =============================================================================
# Value types
# =============================================================================


@dataclass(frozen=True)
class ReminderTrigger:
    """Calendar trigger on hour/minute only, so it recurs every day."""

    hour: int
    minute: int
    repeats: bool = True


@dataclass(frozen=True)
class ReminderPayload:
    """Correlation data carried by a reminder."""

    todo_id: TodoId
    category: str


@dataclass(frozen=True)
class ReminderRequest:
    """Everything needed to register one reminder."""

    identifier: ReminderIdentifier
    payload: ReminderPayload
    trigger: ReminderTrigger
    title: str
    body: str


ActionHandler = Callable[
    [str, const.ReminderAction, ReminderPayload], Awaitable[None]
]


# =============================================================================
# Contract
# =============================================================================


class ReminderDispatcher(ABC):
    """Abstract local reminder dispatcher.

    Registration calls raise ReminderDispatchError on failure. Cancel calls
    are idempotent: removing an unknown identifier is not an error.
    """

    def __init__(self) -> None:
        """Initialize the dispatcher without an action handler."""
        self._action_handler: ActionHandler | None = None

    @abstractmethod
    async def async_get_authorization_status(self) -> const.AuthorizationStatus:
        """Return the current permission state."""

    @abstractmethod
    async def async_request_authorization(self) -> bool:
        """Ask for permission. Returns True when granted."""

    @abstractmethod
    async def async_register(self, request: ReminderRequest) -> None:
        """Register (or replace) a reminder."""

    @abstractmethod
    async def async_cancel_pending(self, identifiers: Iterable[str]) -> None:
        """Remove pending registrations."""

    @abstractmethod
    async def async_cancel_delivered(self, identifiers: Iterable[str]) -> None:
        """Remove delivered reminders from the user's notification list."""

    @abstractmethod
    async def async_cancel_all_pending(self) -> None:
        """Remove every pending registration owned by the app."""

    @abstractmethod
    async def async_cancel_all_delivered(self) -> None:
        """Remove every delivered reminder owned by the app."""

    @abstractmethod
    async def async_list_pending(self) -> list[str]:
        """Return identifiers of pending registrations."""

    @abstractmethod
    async def async_list_delivered(self) -> list[str]:
        """Return identifiers of delivered reminders."""

    @abstractmethod
    async def async_set_badge(self, count: int) -> None:
        """Show count on the badge surface."""

    def set_action_handler(self, handler: ActionHandler | None) -> None:
        """Register the callback that receives inbound reminder actions."""
        self._action_handler = handler

    async def async_dispatch_action(
        self,
        identifier: str,
        action: const.ReminderAction,
        payload: ReminderPayload,
    ) -> None:
        """Route an inbound reminder action to the registered handler."""
        if self._action_handler is None:
            const.LOGGER.warning(
                "Reminder action '%s' for %s dropped: no action handler registered",
                action,
                identifier,
            )
            return
        await self._action_handler(identifier, action, payload)


# =============================================================================
# Home Assistant adapter
# =============================================================================


class NotifyReminderDispatcher(ReminderDispatcher):
    """Deliver reminders through a notify service or persistent notifications.

    Pending registrations are persisted in the store's reminders bucket and
    re-armed on startup, so they survive restarts the way OS-level scheduled
    notifications do. Each pending registration is a daily
    async_track_time_change listener.

    Authorization:
    - not_determined until async_request_authorization() is called
    - authorized when no notify service is configured (persistent
      notifications) or the configured service exists
    - denied when the configured notify service is missing
    """

    def __init__(
        self,
        hass: HomeAssistant,
        store: DailyTodosStore,
        entry_id: str,
        notify_service: str = const.DEFAULT_NOTIFY_SERVICE,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            hass: Home Assistant instance
            store: Store holding the reminders bucket
            entry_id: Config entry id (scopes signals and action strings)
            notify_service: "notify.xyz" service, or "" for persistent notifications
        """
        super().__init__()
        self.hass = hass
        self._store = store
        self._entry_id = entry_id
        self._notify_service = notify_service or ""
        self._status = const.AuthorizationStatus.NOT_DETERMINED
        self._timers: dict[str, CALLBACK_TYPE] = {}
        self._badge_count = 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def async_setup(self) -> None:
        """Re-arm persisted pending registrations."""
        for identifier, record in self._pending.items():
            self._arm(identifier, record)
        const.LOGGER.debug(
            "NotifyReminderDispatcher restored %d pending reminder(s) for entry %s",
            len(self._timers),
            self._entry_id,
        )

    @callback
    def async_shutdown(self) -> None:
        """Disarm all timers (registrations stay persisted)."""
        for unsub in self._timers.values():
            unsub()
        self._timers.clear()

    @property
    def notify_service(self) -> str:
        """Return the configured notify service ("" for persistent notifications)."""
        return self._notify_service

    def update_notify_service(self, notify_service: str) -> None:
        """Switch the delivery target. Authorization must be requested again."""
        notify_service = notify_service or ""
        if notify_service == self._notify_service:
            return
        self._notify_service = notify_service
        self._status = const.AuthorizationStatus.NOT_DETERMINED

    @property
    def badge_count(self) -> int:
        """Return the last badge count that was set."""
        return self._badge_count

    # =========================================================================
    # Authorization
    # =========================================================================

    def _evaluate_authorization(self) -> const.AuthorizationStatus:
        """Check whether the delivery target is currently usable."""
        if not self._notify_service:
            return const.AuthorizationStatus.AUTHORIZED

        domain, service = split_notify_service(self._notify_service)
        if self.hass.services.has_service(domain, service):
            return const.AuthorizationStatus.AUTHORIZED
        return const.AuthorizationStatus.DENIED

    async def async_get_authorization_status(self) -> const.AuthorizationStatus:
        """Return the permission state, re-evaluated once determined."""
        if self._status != const.AuthorizationStatus.NOT_DETERMINED:
            self._status = self._evaluate_authorization()
        return self._status

    async def async_request_authorization(self) -> bool:
        """Determine the permission state from the configured target."""
        self._status = self._evaluate_authorization()
        const.LOGGER.debug(
            "Reminder authorization for entry %s: %s (target '%s')",
            self._entry_id,
            self._status,
            self._notify_service or const.NOTIFY_PERSISTENT_NOTIFICATION,
        )
        return self._status == const.AuthorizationStatus.AUTHORIZED

    # =========================================================================
    # Registrations
    # =========================================================================

    @property
    def _pending(self) -> dict[str, ReminderRecord]:
        return self._store.reminders.get(const.DATA_REMINDERS_PENDING, {})

    @property
    def _delivered(self) -> dict[str, dict[str, str]]:
        return self._store.reminders.get(const.DATA_REMINDERS_DELIVERED, {})

    async def _async_mutate(
        self,
        mutator: Callable[[dict[str, Any], dict[str, Any]], _T],
    ) -> _T:
        """Edit the latest pending and delivered buckets in one locked commit.

        Raises:
            StoreError: Persisting failed; nothing was committed.
        """

        def _apply(reminders: dict[str, Any]) -> _T:
            return mutator(
                reminders.setdefault(const.DATA_REMINDERS_PENDING, {}),
                reminders.setdefault(const.DATA_REMINDERS_DELIVERED, {}),
            )

        return await self._store.async_update_data(const.DATA_REMINDERS, _apply)

    async def async_register(self, request: ReminderRequest) -> None:
        """Persist and arm a reminder, replacing any registration with the same id.

        Raises:
            ReminderDispatchError: The registration could not be persisted.
        """
        record: ReminderRecord = {
            const.DATA_REMINDER_TODO_ID: request.payload.todo_id,
            const.DATA_REMINDER_CATEGORY: request.payload.category,
            const.DATA_REMINDER_HOUR: request.trigger.hour,
            const.DATA_REMINDER_MINUTE: request.trigger.minute,
            const.DATA_REMINDER_REPEATS: request.trigger.repeats,
            const.DATA_REMINDER_TITLE: request.title,
            const.DATA_REMINDER_BODY: request.body,
        }  # type: ignore[misc]

        def _add(pending: dict[str, Any], _delivered: dict[str, Any]) -> None:
            pending[request.identifier] = dict(record)

        try:
            await self._async_mutate(_add)
        except StoreError as err:
            raise ReminderDispatchError(
                f"Could not register reminder {request.identifier}: {err}"
            ) from err

        self._arm(request.identifier, record)
        const.LOGGER.debug(
            "Registered reminder %s at %02d:%02d (repeats=%s)",
            request.identifier,
            request.trigger.hour,
            request.trigger.minute,
            request.trigger.repeats,
        )

    async def async_cancel_pending(self, identifiers: Iterable[str]) -> None:
        """Disarm and forget pending registrations."""
        identifiers = list(identifiers)
        for identifier in identifiers:
            self._disarm(identifier)
        if not any(identifier in self._pending for identifier in identifiers):
            return

        def _remove(pending: dict[str, Any], _delivered: dict[str, Any]) -> int:
            removed = 0
            for identifier in identifiers:
                # Disarm again: a register may have re-armed it while we waited
                self._disarm(identifier)
                if pending.pop(identifier, None) is not None:
                    removed += 1
            return removed

        removed = await self._async_mutate_or_raise(_remove)
        const.LOGGER.debug("Cancelled %d pending reminder(s)", removed)

    async def async_cancel_delivered(self, identifiers: Iterable[str]) -> None:
        """Clear delivered reminders from the device and forget them."""
        to_clear = [i for i in identifiers if i in self._delivered]
        if not to_clear:
            return

        for identifier in to_clear:
            await self._async_clear_on_device(identifier)

        def _forget(_pending: dict[str, Any], delivered: dict[str, Any]) -> None:
            for identifier in to_clear:
                delivered.pop(identifier, None)

        await self._async_mutate_or_raise(_forget)
        const.LOGGER.debug("Cleared %d delivered reminder(s)", len(to_clear))

    async def async_cancel_all_pending(self) -> None:
        """Disarm and forget every pending registration."""
        await self.async_cancel_pending(list(self._pending))

    async def async_cancel_all_delivered(self) -> None:
        """Clear every delivered reminder."""
        await self.async_cancel_delivered(list(self._delivered))

    async def async_list_pending(self) -> list[str]:
        """Return identifiers of pending registrations."""
        return list(self._pending)

    async def async_list_delivered(self) -> list[str]:
        """Return identifiers of delivered reminders."""
        return list(self._delivered)

    async def _async_mutate_or_raise(
        self, mutator: Callable[[dict[str, Any], dict[str, Any]], _T]
    ) -> _T:
        try:
            return await self._async_mutate(mutator)
        except StoreError as err:
            raise ReminderDispatchError(str(err)) from err

    # =========================================================================
    # Badge
    # =========================================================================

    async def async_set_badge(self, count: int) -> None:
        """Store the badge count and notify the badge sensor."""
        self._badge_count = count
        async_dispatcher_send(
            self.hass,
            get_event_signal(self._entry_id, const.SIGNAL_SUFFIX_BADGE_UPDATED),
            {"count": count},
        )

    # =========================================================================
    # Inbound actions
    # =========================================================================

    def owns(self, identifier: str) -> bool:
        """Return True if the identifier is a pending or delivered registration."""
        return identifier in self._pending or identifier in self._delivered

    def payload_for(self, identifier: str) -> ReminderPayload | None:
        """Rebuild the payload of a known (pending or delivered) registration."""
        record = self._delivered.get(identifier) or self._pending.get(identifier)
        todo_id = parse_reminder_identifier(identifier)
        if todo_id is None:
            return None
        category = (record or {}).get(const.DATA_REMINDER_CATEGORY, "")
        return ReminderPayload(todo_id=todo_id, category=category)

    async def async_dispatch_action(
        self,
        identifier: str,
        action: const.ReminderAction,
        payload: ReminderPayload,
    ) -> None:
        """Forget the delivered reminder the user acted on, then route the action."""
        if identifier in self._delivered:
            try:
                await self._async_mutate(
                    lambda _pending, delivered: delivered.pop(identifier, None)
                )
            except StoreError as err:
                const.LOGGER.error(
                    "Failed to forget delivered reminder %s: %s", identifier, err
                )
        await super().async_dispatch_action(identifier, action, payload)

    # =========================================================================
    # Timers and delivery
    # =========================================================================

    def _arm(self, identifier: str, record: ReminderRecord) -> None:
        """(Re)arm the daily time-change listener for one registration."""
        self._disarm(identifier)

        async def _async_on_trigger(_now: datetime) -> None:
            await self._async_deliver(identifier)

        self._timers[identifier] = async_track_time_change(
            self.hass,
            _async_on_trigger,
            hour=record[const.DATA_REMINDER_HOUR],
            minute=record[const.DATA_REMINDER_MINUTE],
            second=0,
        )

    def _disarm(self, identifier: str) -> None:
        unsub = self._timers.pop(identifier, None)
        if unsub is not None:
            unsub()

    def build_actions(self, todo_id: TodoId) -> list[dict[str, str]]:
        """Build the action buttons for a reminder.

        Action strings are pipe-separated: "ACTION|entry_id[:8]|todo_id".
        """
        short_entry_id = self._entry_id[:8]
        return [
            {
                const.NOTIFY_ACTION: f"{action}|{short_entry_id}|{todo_id}",
                const.NOTIFY_TITLE: title,
            }
            for action, title in (
                (const.ACTION_COMPLETE_TODO, const.ACTION_TITLE_COMPLETE),
                (const.ACTION_DISMISS_TODO, const.ACTION_TITLE_DISMISS),
                (const.ACTION_OPEN_TODO, const.ACTION_TITLE_OPEN),
            )
        ]

    async def _async_deliver(self, identifier: str) -> None:
        """Show a due reminder and record it as delivered."""
        record = self._pending.get(identifier)
        if record is None:
            self._disarm(identifier)
            return

        try:
            await self._async_show(identifier, record)
        except HomeAssistantError as err:
            const.LOGGER.error("Failed to deliver reminder %s: %s", identifier, err)
            return

        repeats = record.get(const.DATA_REMINDER_REPEATS, True)
        if not repeats:
            self._disarm(identifier)

        def _record_delivery(
            pending: dict[str, Any], delivered: dict[str, Any]
        ) -> None:
            if not repeats:
                pending.pop(identifier, None)
            delivered[identifier] = {
                const.DATA_REMINDER_TODO_ID: record[const.DATA_REMINDER_TODO_ID],
                const.DATA_REMINDER_CATEGORY: record[const.DATA_REMINDER_CATEGORY],
            }

        try:
            await self._async_mutate(_record_delivery)
        except StoreError as err:
            const.LOGGER.error(
                "Delivered reminder %s but failed to record it: %s", identifier, err
            )
        const.LOGGER.debug("Delivered reminder %s", identifier)

    async def _async_show(self, identifier: str, record: ReminderRecord) -> None:
        """Send the reminder to the configured target."""
        title = record[const.DATA_REMINDER_TITLE]
        message = record[const.DATA_REMINDER_BODY]

        if not self._notify_service:
            await self.hass.services.async_call(
                const.NOTIFY_PERSISTENT_NOTIFICATION,
                const.NOTIFY_CREATE,
                {
                    const.NOTIFY_TITLE: title,
                    const.NOTIFY_MESSAGE: message,
                    const.NOTIFY_NOTIFICATION_ID: identifier,
                },
                blocking=True,
            )
            return

        await async_send_notification(
            self.hass,
            self._notify_service,
            title,
            message,
            actions=self.build_actions(record[const.DATA_REMINDER_TODO_ID]),
            extra_data={
                const.NOTIFY_TAG: identifier,
                const.NOTIFY_GROUP: const.DOMAIN,
            },
        )

    async def _async_clear_on_device(self, identifier: str) -> None:
        """Remove a shown reminder. Failures are logged, never raised."""
        try:
            if not self._notify_service:
                await self.hass.services.async_call(
                    const.NOTIFY_PERSISTENT_NOTIFICATION,
                    const.NOTIFY_DISMISS,
                    {const.NOTIFY_NOTIFICATION_ID: identifier},
                    blocking=True,
                )
                return

            domain, service = split_notify_service(self._notify_service)
            await self.hass.services.async_call(
                domain,
                service,
                {
                    const.NOTIFY_MESSAGE: const.NOTIFY_CLEAR_NOTIFICATION,
                    const.NOTIFY_DATA: {const.NOTIFY_TAG: identifier},
                },
                blocking=True,
            )
        except HomeAssistantError as err:
            const.LOGGER.warning(
                "Failed to clear delivered reminder %s: %s", identifier, err
            )
