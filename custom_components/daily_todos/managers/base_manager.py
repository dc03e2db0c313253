"""Shared plumbing for the Daily Todos managers.

Managers never call each other directly. The reset manager announces a
rollover, the notification manager reacts to it, and the coordinator refreshes
its entities, all through dispatcher signals scoped to one config entry
(see helpers.entity_helpers.get_event_signal).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .. import const
from ..helpers.entity_helpers import get_event_signal

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

    from ..coordinator import DailyTodosCoordinator


class BaseManager(ABC):
    """Manager with entry-scoped emit/listen.

    Subscriptions made through listen() are tracked per manager and released
    by async_unsubscribe_all(), which runs on entry unload and on coordinator
    shutdown (whichever comes first; the second call is a no-op).
    """

    def __init__(self, hass: HomeAssistant, coordinator: DailyTodosCoordinator) -> None:
        """Initialize manager.

        Args:
            hass: Home Assistant instance
            coordinator: Coordinator of the config entry this manager serves
        """
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id
        self._unsubs: list[Callable[[], None]] = []
        coordinator.config_entry.async_on_unload(self.async_unsubscribe_all)

    def emit(self, suffix: str, **payload: Any) -> None:
        """Send an event to every listener of this entry.

        Listeners receive the keyword arguments as one dict, e.g.
        emit(SIGNAL_SUFFIX_TODOS_RESET, reset_count=3, reset_at=iso).
        """
        const.LOGGER.debug(
            "%s emits '%s' (%s) for entry %s",
            self.__class__.__name__,
            suffix,
            ", ".join(payload) or "no payload",
            self.entry_id,
        )
        async_dispatcher_send(
            self.hass, get_event_signal(self.entry_id, suffix), payload
        )

    def listen(
        self, suffix: str, target: Callable[[dict[str, Any]], Any]
    ) -> Callable[[], None]:
        """Subscribe to an event of this entry.

        Coroutine targets are scheduled as tasks by the dispatcher, so their
        effects are visible only after the event loop ran them.

        Returns:
            The unsubscribe callable (also tracked for async_unsubscribe_all).
        """
        unsub = async_dispatcher_connect(
            self.hass, get_event_signal(self.entry_id, suffix), target
        )
        self._unsubs.append(unsub)
        const.LOGGER.debug(
            "%s listens to '%s' for entry %s",
            self.__class__.__name__,
            suffix,
            self.entry_id,
        )
        return unsub

    @callback
    def async_unsubscribe_all(self) -> None:
        """Drop every subscription made through listen()."""
        while self._unsubs:
            self._unsubs.pop()()

    @abstractmethod
    async def async_setup(self) -> None:
        """Subscribe to events. Called once by the coordinator."""
