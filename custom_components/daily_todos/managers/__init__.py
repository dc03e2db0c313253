"""Manager modules for Daily Todos integration.

Managers orchestrate workflows and react to each other's events.
They are stateful, event-aware, and own their timers.
"""

from .base_manager import BaseManager
from .notification_manager import NotificationManager
from .reset_manager import ResetManager

__all__ = [
    "BaseManager",
    "NotificationManager",
    "ResetManager",
]
