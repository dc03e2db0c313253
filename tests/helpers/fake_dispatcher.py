"""In-memory reminder dispatcher for Daily Todos tests.

Records every registration, cancellation and badge update so tests can assert
on the exact pending/delivered sets. Failure flags make individual calls raise
ReminderDispatchError the way a real dispatcher would.
"""

from __future__ import annotations

from collections.abc import Iterable

from custom_components.daily_todos import const
from custom_components.daily_todos.exceptions import ReminderDispatchError
from custom_components.daily_todos.reminder_dispatcher import (
    ReminderDispatcher,
    ReminderPayload,
    ReminderRequest,
)


class FakeReminderDispatcher(ReminderDispatcher):
    """ReminderDispatcher keeping registrations in dicts."""

    def __init__(
        self,
        status: const.AuthorizationStatus = const.AuthorizationStatus.NOT_DETERMINED,
        grant: bool = True,
    ) -> None:
        """Initialize with an authorization status and the answer to requests."""
        super().__init__()
        self.status = status
        self.grant = grant
        self.pending: dict[str, ReminderRequest | None] = {}
        self.delivered: dict[str, ReminderPayload | None] = {}
        self.badge: int | None = None
        self.badge_history: list[int] = []
        self.authorization_requests = 0
        self.register_calls = 0

        self.fail_register = False
        self.fail_cancel = False
        self.fail_list = False
        self.fail_badge = False

    # Authorization

    async def async_get_authorization_status(self) -> const.AuthorizationStatus:
        return self.status

    async def async_request_authorization(self) -> bool:
        self.authorization_requests += 1
        self.status = (
            const.AuthorizationStatus.AUTHORIZED
            if self.grant
            else const.AuthorizationStatus.DENIED
        )
        return self.grant

    # Registrations

    async def async_register(self, request: ReminderRequest) -> None:
        self.register_calls += 1
        if self.fail_register:
            raise ReminderDispatchError(f"register failed for {request.identifier}")
        self.pending[request.identifier] = request

    async def async_cancel_pending(self, identifiers: Iterable[str]) -> None:
        if self.fail_cancel:
            raise ReminderDispatchError("cancel pending failed")
        for identifier in identifiers:
            self.pending.pop(identifier, None)

    async def async_cancel_delivered(self, identifiers: Iterable[str]) -> None:
        if self.fail_cancel:
            raise ReminderDispatchError("cancel delivered failed")
        for identifier in identifiers:
            self.delivered.pop(identifier, None)

    async def async_cancel_all_pending(self) -> None:
        await self.async_cancel_pending(list(self._owned(self.pending)))

    async def async_cancel_all_delivered(self) -> None:
        await self.async_cancel_delivered(list(self._owned(self.delivered)))

    async def async_list_pending(self) -> list[str]:
        if self.fail_list:
            raise ReminderDispatchError("list pending failed")
        return list(self.pending)

    async def async_list_delivered(self) -> list[str]:
        if self.fail_list:
            raise ReminderDispatchError("list delivered failed")
        return list(self.delivered)

    async def async_set_badge(self, count: int) -> None:
        if self.fail_badge:
            raise ReminderDispatchError("badge failed")
        self.badge = count
        self.badge_history.append(count)

    # Test helpers

    @staticmethod
    def _owned(bucket: dict[str, object]) -> list[str]:
        return [
            identifier
            for identifier in bucket
            if identifier.startswith(const.REMINDER_IDENTIFIER_PREFIX)
        ]

    def deliver(self, identifier: str) -> None:
        """Simulate the trigger firing: the reminder is shown and stays armed."""
        request = self.pending[identifier]
        self.delivered[identifier] = request.payload if request else None

    def all_identifiers(self) -> set[str]:
        """Return the union of pending and delivered identifiers."""
        return set(self.pending) | set(self.delivered)
