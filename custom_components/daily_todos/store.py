# File: store.py
"""Handles persistent data storage for the Daily Todos integration.

Uses Home Assistant's Storage helper to save and load to-dos, reset
bookkeeping and reminder registrations, ensuring the state is preserved
across restarts.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import copy
from typing import TYPE_CHECKING, Any, TypeVar

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from . import const
from .exceptions import StoreError

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

_T = TypeVar("_T")


class DailyTodosStore:
    """Handles persistent storage operations for Daily Todos data.

    Thin wrapper around Home Assistant's Store API. Writes are
    copy-then-commit under one lock: the in-memory cache only changes after
    the backing store accepted the new data, and a writer always edits the
    latest committed state.
    """

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).

        """
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] = {}  # In-memory data cache for quick access.
        self._loaded = False
        # Serializes read-modify-write cycles across overlapping operations
        self._write_lock = asyncio.Lock()

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return canonical empty data structure for fresh installations."""
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION,
                const.DATA_META_LAST_RESET_DATE: None,
                const.DATA_META_PENDING_COMPLETIONS: [],
                const.DATA_META_PENDING_FOCUS: None,
            },
            const.DATA_TODOS: {},
            const.DATA_REMINDERS: {
                const.DATA_REMINDERS_PENDING: {},
                const.DATA_REMINDERS_DELIVERED: {},
            },
        }

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no data exists, initializes with an empty structure. Missing
        buckets in older files are filled from the default structure.
        """
        const.LOGGER.debug("DailyTodosStore: Loading data from storage")
        existing_data = await self._store.async_load()

        if existing_data is None:
            const.LOGGER.info("No existing storage found. Initializing new data")
            self._data = DailyTodosStore.get_default_structure()
        else:
            self._data = existing_data
            for key, default in DailyTodosStore.get_default_structure().items():
                self._data.setdefault(key, default)
            const.LOGGER.debug(
                "Loaded existing data from storage: %s",
                {
                    "todos": len(self._data.get(const.DATA_TODOS, {})),
                    "pending_reminders": len(
                        self._data[const.DATA_REMINDERS].get(
                            const.DATA_REMINDERS_PENDING, {}
                        )
                    ),
                    "total_keys": len(self._data.keys()),
                },
            )
        self._loaded = True

    @property
    def loaded(self) -> bool:
        """Return True once async_initialize() has completed."""
        return self._loaded

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    @property
    def todos(self) -> dict[str, Any]:
        """Retrieve the committed to-do records keyed by id."""
        return self._data.get(const.DATA_TODOS, {})

    @property
    def meta(self) -> dict[str, Any]:
        """Retrieve the committed meta bucket."""
        return self._data.get(const.DATA_META, {})

    @property
    def reminders(self) -> dict[str, Any]:
        """Retrieve the committed reminder registration bucket."""
        return self._data.get(const.DATA_REMINDERS, {})

    async def async_update_data(self, key: str, mutator: Callable[[Any], _T]) -> _T:
        """Read-modify-write one top-level bucket under the write lock.

        The mutator receives a private copy of the committed bucket, edits it
        in place and may return a result. The copy is taken after the lock is
        acquired, so concurrent writers never commit over each other. The
        edited bucket reaches memory only after the save succeeded.

        Args:
            key: The bucket to update (const.DATA_TODOS, const.DATA_META, ...).
            mutator: Edits the bucket copy; its return value is passed through.

        Raises:
            StoreError: Unknown key or the backing store rejected the write.
            Any exception raised by the mutator (nothing is written then).
        """
        async with self._write_lock:
            if key not in self._data:
                raise StoreError(f"Unknown data key '{key}'")

            bucket = copy.deepcopy(self._data[key])
            result = mutator(bucket)

            new_data = dict(self._data)
            new_data[key] = bucket
            await self._async_write(new_data)
            self._data = new_data
            return result

    async def async_update_meta(self, **fields: Any) -> None:
        """Merge fields into the meta bucket and persist."""
        await self.async_update_data(const.DATA_META, lambda meta: meta.update(fields))

    async def _async_write(self, data: dict[str, Any]) -> None:
        """Write data to the backing store, mapping failures to StoreError."""
        try:
            await self._store.async_save(data)
        except OSError as err:
            const.LOGGER.error(
                "Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
            raise StoreError(str(err)) from err
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "Failed to save storage due to non-serializable data: %s", err
            )
            raise StoreError(str(err)) from err
        except HomeAssistantError as err:
            const.LOGGER.error("Failed to save storage: %s", err)
            raise StoreError(str(err)) from err
        const.LOGGER.debug("Data saved successfully to storage")

    async def async_delete_storage(self) -> None:
        """Delete the storage file completely from disk."""
        async with self._write_lock:
            self._data = DailyTodosStore.get_default_structure()
            try:
                await self._store.async_remove()
                const.LOGGER.info(
                    "Storage file removed successfully: %s", self._store.path
                )
            except OSError as err:
                const.LOGGER.error(
                    "Failed to remove storage file %s: %s. Check file permissions",
                    self._store.path,
                    err,
                )
