"""Test helpers for Daily Todos tests.

    from tests.helpers import (
        FakeReminderDispatcher,
        capture_events, local_dt, make_todo, remove_stored_todo, store_todo,
        yielding_saves,
    )

See individual modules for full documentation:
- fake_dispatcher.py: In-memory ReminderDispatcher
- workflows.py: Storage, write interleaving and signal helpers
"""

from tests.helpers.fake_dispatcher import FakeReminderDispatcher
from tests.helpers.workflows import (
    capture_events,
    local_dt,
    make_todo,
    remove_stored_todo,
    store_todo,
    yielding_saves,
)

__all__ = [
    "FakeReminderDispatcher",
    "capture_events",
    "local_dt",
    "make_todo",
    "remove_stored_todo",
    "store_todo",
    "yielding_saves",
]
