# File: helpers/entity_helpers.py
"""Entity and entry helper functions for Daily Todos.

All functions here require a `hass` object or build names that are scoped to
a config entry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.config_entries import ConfigEntryState

from .. import const

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant


# ==============================================================================
# Event Signal Helpers (Manager Communication)
# ==============================================================================


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Build instance-scoped event signal name for dispatcher.

    Format: 'daily_todos_{entry_id}_{suffix}'

    Args:
        entry_id: ConfigEntry.entry_id from coordinator
        suffix: Signal suffix constant from const.py (e.g., SIGNAL_SUFFIX_TODOS_RESET)

    Returns:
        Fully qualified signal name scoped to this integration instance

    Example:
        >>> get_event_signal("abc123", const.SIGNAL_SUFFIX_TODOS_RESET)
        'daily_todos_abc123_todos_reset'
    """
    return f"{const.DOMAIN}_{entry_id}_{suffix}"


# ==============================================================================
# Entry Lookup
# ==============================================================================


def get_loaded_entries(hass: HomeAssistant) -> list[ConfigEntry]:
    """Return all loaded Daily Todos config entries."""
    return [
        entry
        for entry in hass.config_entries.async_entries(const.DOMAIN)
        if entry.state == ConfigEntryState.LOADED
    ]


def find_entry_by_short_id(
    hass: HomeAssistant, short_entry_id: str | None
) -> ConfigEntry | None:
    """Find a loaded entry by (truncated) entry id, or the first loaded entry.

    Notification action strings carry only the first 8 characters of the
    entry id to keep them short.
    """
    entries = get_loaded_entries(hass)
    if short_entry_id:
        for entry in entries:
            if entry.entry_id.startswith(short_entry_id):
                return entry
        return None
    return entries[0] if entries else None


# ==============================================================================
# Unique IDs
# ==============================================================================


def build_unique_id(entry_id: str, key: str) -> str:
    """Build an entity unique_id scoped to the entry: '{entry_id}_{key}'."""
    return f"{entry_id}_{key}"
