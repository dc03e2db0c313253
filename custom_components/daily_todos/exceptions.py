"""Exceptions for the Daily Todos integration."""

from homeassistant.exceptions import HomeAssistantError


class DailyTodosError(HomeAssistantError):
    """Base error for Daily Todos."""


class StoreError(DailyTodosError):
    """Persisting or loading to-do data failed. Nothing was committed."""


class ReminderDispatchError(DailyTodosError):
    """Registering or removing a reminder failed at the dispatcher level."""


class TodoNotFoundError(DailyTodosError):
    """A to-do id did not match any stored record."""
