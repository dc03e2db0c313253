# File: managers/reset_manager.py
"""Reset Manager for Daily Todos integration.

Owns the daily rollover: every completed to-do becomes incomplete exactly once
per reset boundary, even when Home Assistant was stopped through it.

Timer strategy:
- A single one-shot async_track_point_in_time timer targets the next
  reset_hour:00:00. When it fires, the reset runs and the next timer is armed
  (self-perpetuating chain, never a repeating timer).
- async_check_and_reschedule_if_needed() covers missed boundaries on startup
  and on every app-active transition.

Signals Emitted:
- SIGNAL_SUFFIX_TODOS_RESET: after the reset batch is persisted
- SIGNAL_SUFFIX_TODOS_CHANGED: generic UI refresh

Signals Consumed:
- SIGNAL_SUFFIX_SETTINGS_UPDATED: re-arm the timer for the new reset hour
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.helpers.event import async_track_point_in_time
from homeassistant.util import dt as dt_util

from .. import const
from ..exceptions import StoreError
from ..utils.dt_utils import calculate_next_reset, dt_parse_iso, should_reset
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.core import CALLBACK_TYPE, HomeAssistant

    from ..coordinator import DailyTodosCoordinator


class ResetManager(BaseManager):
    """Daily rollover scheduler."""

    def __init__(self, hass: HomeAssistant, coordinator: DailyTodosCoordinator) -> None:
        """Initialize reset manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator
        """
        super().__init__(hass, coordinator)
        self._unsub_timer: CALLBACK_TYPE | None = None
        self._next_reset: datetime | None = None

    async def async_setup(self) -> None:
        """Subscribe to settings changes and register timer cleanup.

        The first timer is armed by the coordinator's startup check, not here.
        """
        self.listen(const.SIGNAL_SUFFIX_SETTINGS_UPDATED, self._async_on_settings_updated)
        self.coordinator.config_entry.async_on_unload(self.async_cancel_timer)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def reset_hour(self) -> int:
        """Return the configured reset hour (0-23)."""
        return self.coordinator.reset_hour

    @property
    def next_reset(self) -> datetime | None:
        """Return the instant the armed timer targets, or None."""
        if self._unsub_timer is None:
            return None
        return self._next_reset

    @property
    def last_reset(self) -> datetime | None:
        """Return the persisted last reset instant, or None if never reset."""
        return dt_parse_iso(
            self.coordinator.store.meta.get(const.DATA_META_LAST_RESET_DATE),
            dt_util.get_default_time_zone(),
        )

    def _timer_is_armed(self, now: datetime) -> bool:
        return (
            self._unsub_timer is not None
            and self._next_reset is not None
            and self._next_reset > now
        )

    # =========================================================================
    # Timer
    # =========================================================================

    @callback
    def async_cancel_timer(self) -> None:
        """Cancel the pending reset timer, if any."""
        if self._unsub_timer is not None:
            self._unsub_timer()
            self._unsub_timer = None
        self._next_reset = None

    async def async_schedule_next_reset(self, now: datetime | None = None) -> datetime:
        """Cancel any pending timer and arm one for the next reset instant.

        Args:
            now: Reference time (defaults to the current local time)

        Returns:
            The instant the new timer targets.
        """
        self.async_cancel_timer()
        now = dt_util.as_local(now) if now is not None else dt_util.now()
        target = calculate_next_reset(now, self.reset_hour)

        self._next_reset = target
        self._unsub_timer = async_track_point_in_time(
            self.hass, self._async_on_reset_timer, target
        )
        const.LOGGER.debug(
            "ResetManager: Next reset scheduled for %s (reset_hour=%d)",
            target.isoformat(),
            self.reset_hour,
        )
        return target

    async def _async_on_reset_timer(self, fired_at: datetime) -> None:
        """Run the reset, then arm the next timer in the chain."""
        self._unsub_timer = None
        const.LOGGER.debug("ResetManager: Reset timer fired at %s", fired_at)
        await self.async_reset_all_todos()
        # Never compute from a clock that lags behind the fired instant
        await self.async_schedule_next_reset(max(dt_util.now(), fired_at))

    # =========================================================================
    # Operations
    # =========================================================================

    async def async_reset_all_todos(self) -> bool:
        """Mark every completed to-do incomplete and record the reset.

        The batch is persisted before todos_reset is emitted, so listeners
        reconciling reminders always read the refreshed to-do set.

        Returns:
            True on success, False if persisting failed (logged, not raised).
        """
        now = dt_util.now()
        try:
            committed = await self.coordinator.todo_store.async_reset_completed()
            await self.coordinator.store.async_update_meta(
                **{const.DATA_META_LAST_RESET_DATE: now.isoformat()}
            )
        except StoreError as err:
            const.LOGGER.error("ResetManager: Failed to reset todos: %s", err)
            return False

        const.LOGGER.info(
            "ResetManager: Reset %d completed todo(s) at %s",
            len(committed),
            now.isoformat(),
        )
        self.emit(
            const.SIGNAL_SUFFIX_TODOS_RESET,
            reset_count=len(committed),
            reset_at=now.isoformat(),
        )
        self.emit(const.SIGNAL_SUFFIX_TODOS_CHANGED, reason="reset")
        return True

    async def async_check_and_reschedule_if_needed(self) -> bool:
        """Recover a missed rollover and make sure a timer is armed.

        Returns:
            True if a catch-up reset was performed.
        """
        now = dt_util.now()
        last_reset = self.last_reset
        did_reset = False

        if should_reset(now, last_reset, self.reset_hour):
            const.LOGGER.info(
                "ResetManager: Missed rollover detected (last_reset=%s, now=%s)",
                last_reset.isoformat() if last_reset else "never",
                now.isoformat(),
            )
            did_reset = await self.async_reset_all_todos()

        if not self._timer_is_armed(now):
            await self.async_schedule_next_reset(now)
        return did_reset

    async def async_reset_now(self) -> bool:
        """Manual trigger: reset immediately, then re-arm the timer."""
        result = await self.async_reset_all_todos()
        await self.async_schedule_next_reset()
        return result

    # =========================================================================
    # Signal Handlers
    # =========================================================================

    async def _async_on_settings_updated(self, payload: dict[str, Any]) -> None:
        """Re-arm for the (possibly new) reset hour."""
        const.LOGGER.debug(
            "ResetManager: Settings updated (%s), rescheduling",
            payload.get("changed", []),
        )
        await self.async_schedule_next_reset()
