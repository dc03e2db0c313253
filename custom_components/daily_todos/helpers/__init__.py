# File: helpers/__init__.py
"""Home Assistant-bound helper functions for Daily Todos.

This module contains functions that REQUIRE Home Assistant dependencies.

NOTE: Functions that need `hass` object belong here, NOT in utils/.

Submodules:
    - entity_helpers: Event signal names, entry lookup, entity unique ids
"""

from . import entity_helpers

__all__ = ["entity_helpers"]
