# File: todo_store.py
"""Query/fetch/save contract over the persisted to-do records.

Fetches hand out copies of the committed records. Mutating a fetched handle
has no effect until it is passed to async_save(). Partial edits go through
async_update(), which merges into the latest record. A failed save commits
nothing.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
import copy
from typing import TYPE_CHECKING, Any, cast
import uuid

from . import const
from .exceptions import TodoNotFoundError
from .utils.dt_utils import dt_now_iso

if TYPE_CHECKING:
    from .store import DailyTodosStore
    from .type_defs import TodoData, TodoId


def todo_sort_key(todo: TodoData) -> tuple[int, int, str]:
    """Deterministic ordering: required first, then order, then creation time."""
    return (
        const.CATEGORY_SORT_ORDER.get(todo[const.DATA_TODO_CATEGORY], 99),
        todo.get(const.DATA_TODO_ORDER, 0),
        todo.get(const.DATA_TODO_CREATED_AT, ""),
    )


def is_todo_active(todo: TodoData) -> bool:
    """Return True for to-dos that should carry a reminder.

    Active means not completed and scheduled at a time of day.
    """
    return not todo.get(const.DATA_TODO_IS_COMPLETED, False) and bool(
        todo.get(const.DATA_TODO_SCHEDULED_TIME)
    )


class TodoStore:
    """Record-level access to to-dos backed by DailyTodosStore."""

    def __init__(self, store: DailyTodosStore) -> None:
        """Initialize with the backing store."""
        self._store = store

    @property
    def ready(self) -> bool:
        """Return True when the backing store has been loaded."""
        return self._store.loaded

    # =========================================================================
    # Queries
    # =========================================================================

    def fetch_all(
        self,
        category: const.TodoCategory | None = None,
        predicate: Callable[[TodoData], bool] | None = None,
    ) -> list[TodoData]:
        """Return copies of all to-dos, optionally filtered, in display order."""
        todos = [
            cast("TodoData", copy.deepcopy(record))
            for record in self._store.todos.values()
            if category is None or record.get(const.DATA_TODO_CATEGORY) == category
        ]
        if predicate is not None:
            todos = [todo for todo in todos if predicate(todo)]
        return sorted(todos, key=todo_sort_key)

    def fetch_completed(
        self, category: const.TodoCategory | None = None
    ) -> list[TodoData]:
        """Return completed to-dos (all categories when category is None)."""
        return self.fetch_all(
            category, lambda todo: bool(todo.get(const.DATA_TODO_IS_COMPLETED))
        )

    def fetch_incomplete(
        self, category: const.TodoCategory | None = None
    ) -> list[TodoData]:
        """Return incomplete to-dos (all categories when category is None)."""
        return self.fetch_all(
            category, lambda todo: not todo.get(const.DATA_TODO_IS_COMPLETED)
        )

    def fetch_incomplete_count(
        self, category: const.TodoCategory | None = None
    ) -> int:
        """Return the number of incomplete to-dos."""
        return sum(
            1
            for record in self._store.todos.values()
            if not record.get(const.DATA_TODO_IS_COMPLETED)
            and (category is None or record.get(const.DATA_TODO_CATEGORY) == category)
        )

    def fetch_by_id(self, todo_id: TodoId) -> TodoData | None:
        """Return a copy of one to-do, or None if it does not exist."""
        record = self._store.todos.get(todo_id)
        if record is None:
            return None
        return cast("TodoData", copy.deepcopy(record))

    def next_order(self, category: const.TodoCategory) -> int:
        """Return the order value for a new to-do appended to a category."""
        return _next_order(self._store.todos, category)

    # =========================================================================
    # Mutations
    # =========================================================================

    async def async_save(self, todos: Iterable[TodoData]) -> list[TodoData]:
        """Commit a batch of mutated to-do handles.

        Handles whose record no longer exists are skipped with a warning.

        Returns:
            The handles that were committed.

        Raises:
            StoreError: Persisting failed; nothing was committed.
        """
        handles = list(todos)

        def _apply(records: dict[str, Any]) -> list[TodoData]:
            committed: list[TodoData] = []
            for todo in handles:
                todo_id = todo[const.DATA_TODO_ID]
                if todo_id not in records:
                    const.LOGGER.warning(
                        "Skipping save for todo %s: it no longer exists", todo_id
                    )
                    continue
                records[todo_id] = copy.deepcopy(dict(todo))
                committed.append(todo)
            return committed

        if not handles:
            return []
        committed = await self._store.async_update_data(const.DATA_TODOS, _apply)
        const.LOGGER.debug("Committed %d todo(s)", len(committed))
        return committed

    async def async_update(self, todo_id: TodoId, **fields: Any) -> TodoData | None:
        """Merge fields into the latest stored record of one to-do.

        Unlike async_save(), fields not named here keep whatever value was
        committed last, even if it changed after the caller fetched the to-do.

        Returns:
            A copy of the updated record, or None if the to-do no longer exists.

        Raises:
            StoreError: Persisting failed; nothing was committed.
        """

        def _merge(records: dict[str, Any]) -> TodoData | None:
            record = records.get(todo_id)
            if record is None:
                return None
            record.update(fields)
            return cast("TodoData", copy.deepcopy(record))

        return await self._store.async_update_data(const.DATA_TODOS, _merge)

    async def async_reset_completed(self) -> list[TodoData]:
        """Mark every completed to-do incomplete in one commit.

        Only is_completed changes; every other field is left as stored.

        Returns:
            Copies of the to-dos that were reset.

        Raises:
            StoreError: Persisting failed; nothing was committed.
        """

        def _reset(records: dict[str, Any]) -> list[TodoData]:
            reset: list[TodoData] = []
            for record in records.values():
                if record.get(const.DATA_TODO_IS_COMPLETED):
                    record[const.DATA_TODO_IS_COMPLETED] = False
                    reset.append(cast("TodoData", copy.deepcopy(record)))
            return reset

        return await self._store.async_update_data(const.DATA_TODOS, _reset)

    async def async_add(
        self,
        title: str,
        category: const.TodoCategory = const.TodoCategory.REQUIRED,
        scheduled_time: str | None = None,
    ) -> TodoData:
        """Create and persist a new to-do.

        Raises:
            ValueError: The title is empty.
            StoreError: Persisting failed; nothing was committed.
        """
        title = (title or "").strip()
        if not title:
            raise ValueError(const.ERROR_TITLE_EMPTY)
        category = const.TodoCategory(category)

        todo: TodoData = {
            const.DATA_TODO_ID: str(uuid.uuid4()),
            const.DATA_TODO_TITLE: title,
            const.DATA_TODO_CATEGORY: str(category),
            const.DATA_TODO_ORDER: 0,
            const.DATA_TODO_SCHEDULED_TIME: scheduled_time,
            const.DATA_TODO_IS_COMPLETED: False,
            const.DATA_TODO_CREATED_AT: dt_now_iso(),
        }  # type: ignore[misc]

        def _insert(records: dict[str, Any]) -> None:
            todo[const.DATA_TODO_ORDER] = _next_order(records, category)
            records[todo[const.DATA_TODO_ID]] = dict(todo)

        await self._store.async_update_data(const.DATA_TODOS, _insert)
        const.LOGGER.debug("Added todo %s ('%s')", todo[const.DATA_TODO_ID], title)
        return copy.deepcopy(todo)

    async def async_delete(self, todo_id: TodoId) -> TodoData:
        """Delete a to-do and return the removed record.

        Raises:
            TodoNotFoundError: No to-do with this id.
            StoreError: Persisting failed; nothing was committed.
        """

        def _remove(records: dict[str, Any]) -> TodoData:
            removed = records.pop(todo_id, None)
            if removed is None:
                raise TodoNotFoundError(const.ERROR_TODO_NOT_FOUND_FMT.format(todo_id))
            return cast("TodoData", removed)

        removed = await self._store.async_update_data(const.DATA_TODOS, _remove)
        const.LOGGER.debug("Deleted todo %s", todo_id)
        return removed

    async def async_delete_all(self) -> int:
        """Delete every to-do record.

        Returns:
            The number of records removed.

        Raises:
            StoreError: Persisting failed; nothing was committed.
        """

        def _clear(records: dict[str, Any]) -> int:
            count = len(records)
            records.clear()
            return count

        removed = await self._store.async_update_data(const.DATA_TODOS, _clear)
        const.LOGGER.debug("Deleted all %d todo(s)", removed)
        return removed


def _next_order(records: dict[str, Any], category: str) -> int:
    orders = [
        record.get(const.DATA_TODO_ORDER, 0)
        for record in records.values()
        if record.get(const.DATA_TODO_CATEGORY) == category
    ]
    return max(orders, default=-1) + 1
