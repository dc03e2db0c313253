"""Tests for NotificationManager (registrations, badge, inbound actions)."""

# pylint: disable=protected-access  # Patching _store to simulate write failures
# pylint: disable=redefined-outer-name  # Pytest fixtures redefine names
# pylint: disable=unused-argument  # Autouse fixtures

from datetime import timedelta
from typing import Any
from unittest.mock import patch

from freezegun.api import FrozenDateTimeFactory
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.util import dt as dt_util
import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.daily_todos import const
from custom_components.daily_todos.coordinator import DailyTodosCoordinator
from custom_components.daily_todos.helpers.entity_helpers import get_event_signal
from custom_components.daily_todos.reminder_dispatcher import (
    ReminderPayload,
    build_reminder_identifier,
)
from tests.helpers import (
    FakeReminderDispatcher,
    capture_events,
    local_dt,
    make_todo,
    remove_stored_todo,
    store_todo,
)

T1 = build_reminder_identifier("t1")
T2 = build_reminder_identifier("t2")
T3 = build_reminder_identifier("t3")


@pytest.fixture(autouse=True)
def start_before_reset(freezer: FrozenDateTimeFactory) -> None:
    """Start before the 04:00 reset so setup does not roll over."""
    freezer.move_to(local_dt(2026, 3, 10, 3, 0))


async def _dispatch(
    dispatcher: FakeReminderDispatcher,
    todo_id: str,
    action: const.ReminderAction,
    category: str = const.TodoCategory.REQUIRED,
) -> None:
    await dispatcher.async_dispatch_action(
        build_reminder_identifier(todo_id),
        action,
        ReminderPayload(todo_id=todo_id, category=category),
    )


class TestAuthorization:
    """Permission handling before any registration."""

    async def test_schedule_requests_authorization_once(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """An undetermined status is requested on first use, then cached."""
        manager = coordinator.notification_manager
        assert fake_dispatcher.authorization_requests == 0

        assert await manager.async_schedule(make_todo("t1", scheduled_time="08:00"))
        assert await manager.async_schedule(make_todo("t2", scheduled_time="09:00"))

        assert fake_dispatcher.authorization_requests == 1
        assert manager.authorization_status == const.AuthorizationStatus.AUTHORIZED

    async def test_denied_schedules_nothing(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """A denied request leaves the dispatcher empty and is not repeated."""
        fake_dispatcher.grant = False
        manager = coordinator.notification_manager

        assert not await manager.async_schedule(make_todo("t1", scheduled_time="08:00"))
        assert not await manager.async_schedule(make_todo("t1", scheduled_time="08:00"))

        assert fake_dispatcher.pending == {}
        assert fake_dispatcher.authorization_requests == 1
        assert manager.authorization_status == const.AuthorizationStatus.DENIED

    async def test_already_authorized_is_not_requested(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """A determined status is read, not requested."""
        fake_dispatcher.status = const.AuthorizationStatus.AUTHORIZED

        assert await coordinator.notification_manager.async_schedule(
            make_todo("t1", scheduled_time="08:00")
        )
        assert fake_dispatcher.authorization_requests == 0

    async def test_refresh_picks_up_revocation(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Refreshing re-syncs the cached status from the dispatcher."""
        manager = coordinator.notification_manager
        await manager.async_schedule(make_todo("t1", scheduled_time="08:00"))

        fake_dispatcher.status = const.AuthorizationStatus.DENIED
        assert (
            await manager.async_refresh_authorization_status()
            == const.AuthorizationStatus.DENIED
        )
        assert not await manager.async_schedule(make_todo("t2", scheduled_time="09:00"))


class TestSchedule:
    """Single to-do registration."""

    async def test_schedule_then_complete_and_synchronize(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Scheduling registers a daily trigger; completion plus sync removes it."""
        todo = await store_todo(coordinator.store, "t1", scheduled_time="08:00")
        manager = coordinator.notification_manager

        assert await manager.async_schedule(todo)

        assert list(fake_dispatcher.pending) == [T1]
        request = fake_dispatcher.pending[T1]
        assert (request.trigger.hour, request.trigger.minute) == (8, 0)
        assert request.trigger.repeats is True
        assert request.payload == ReminderPayload(todo_id="t1", category="required")
        assert request.title == const.REMINDER_TITLE_REQUIRED
        assert request.body == "Todo t1"

        todo = await store_todo(
            coordinator.store, "t1", scheduled_time="08:00", completed=True
        )
        await manager.async_synchronize([todo])

        assert fake_dispatcher.all_identifiers() == set()

    async def test_repeated_schedule_keeps_one_registration(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Scheduling the same to-do N times leaves one registration, the latest."""
        manager = coordinator.notification_manager
        for minute in range(5):
            await manager.async_schedule(
                make_todo("t1", scheduled_time=f"08:0{minute}")
            )

        assert list(fake_dispatcher.pending) == [T1]
        assert fake_dispatcher.pending[T1].trigger.minute == 4

    @pytest.mark.parametrize(
        "todo",
        [
            make_todo("t1", scheduled_time="08:00", completed=True),
            make_todo("t1"),
            make_todo("t1", scheduled_time="08:00", category="suggested"),
            make_todo("t1", scheduled_time="25:00"),
        ],
        ids=["completed", "unscheduled", "category-disabled", "invalid-time"],
    )
    async def test_inactive_todo_not_registered(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
        todo: dict[str, Any],
    ) -> None:
        """Only active to-dos in enabled categories get a reminder."""
        assert not await coordinator.notification_manager.async_schedule(todo)
        assert fake_dispatcher.pending == {}

    async def test_schedule_replaces_then_drops_when_completed(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Scheduling a completed to-do removes its previous registration."""
        manager = coordinator.notification_manager
        await manager.async_schedule(make_todo("t1", scheduled_time="08:00"))
        fake_dispatcher.deliver(T1)

        await manager.async_schedule(
            make_todo("t1", scheduled_time="08:00", completed=True)
        )

        assert fake_dispatcher.all_identifiers() == set()

    async def test_register_failure_is_logged(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Dispatcher errors never reach the caller."""
        fake_dispatcher.fail_register = True

        assert not await coordinator.notification_manager.async_schedule(
            make_todo("t1", scheduled_time="08:00")
        )
        assert "Failed to register reminder for todo t1" in caplog.text

    async def test_cancel_is_idempotent(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Cancelling twice, or cancelling an unknown to-do, is harmless."""
        manager = coordinator.notification_manager
        await manager.async_schedule(make_todo("t1", scheduled_time="08:00"))
        fake_dispatcher.deliver(T1)

        await manager.async_cancel("t1")
        await manager.async_cancel("t1")
        await manager.async_cancel("never-existed")

        assert fake_dispatcher.all_identifiers() == set()

    async def test_reschedule_all_counts_active(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Reschedule clears everything and registers each active to-do."""
        await store_todo(coordinator.store, "t1", scheduled_time="08:00")
        await store_todo(coordinator.store, "t2", scheduled_time="09:00", completed=True)
        await store_todo(coordinator.store, "t3")
        fake_dispatcher.pending[T2] = None

        assert await coordinator.notification_manager.async_reschedule_all() == 1
        assert set(fake_dispatcher.pending) == {T1}


class TestSynchronize:
    """Reconciliation against the complete to-do set."""

    async def _schedule_three(
        self, coordinator: DailyTodosCoordinator
    ) -> list[dict[str, Any]]:
        todos = [
            await store_todo(coordinator.store, todo_id, scheduled_time=f"0{hour}:00")
            for todo_id, hour in (("t1", 7), ("t2", 8), ("t3", 9))
        ]
        for todo in todos:
            await coordinator.notification_manager.async_schedule(todo)
        return todos

    async def test_orphan_removed_others_untouched(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """A to-do deleted behind the manager's back loses its reminder."""
        await self._schedule_three(coordinator)
        fake_dispatcher.deliver(T2)
        await remove_stored_todo(coordinator.store, "t2")
        requests_before = dict(fake_dispatcher.pending)
        register_calls_before = fake_dispatcher.register_calls

        await coordinator.notification_manager.async_synchronize(
            coordinator.todo_store.fetch_all()
        )

        assert fake_dispatcher.all_identifiers() == {T1, T3}
        assert fake_dispatcher.pending[T1] is requests_before[T1]
        assert fake_dispatcher.pending[T3] is requests_before[T3]
        assert fake_dispatcher.register_calls == register_calls_before

    async def test_registrations_match_active_todos(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """After any mix of operations, sync leaves exactly the active set."""
        a = await coordinator.async_add_todo("Feed cat", scheduled_time="07:00")
        b = await coordinator.async_add_todo("Water plants", scheduled_time="18:30")
        c = await coordinator.async_add_todo("Read", scheduled_time="20:00")
        d = await coordinator.async_add_todo("Stretch")
        await hass.async_block_till_done()
        fake_dispatcher.deliver(build_reminder_identifier(a[const.DATA_TODO_ID]))
        fake_dispatcher.deliver(build_reminder_identifier(c[const.DATA_TODO_ID]))

        await coordinator.async_delete_todo(a[const.DATA_TODO_ID])
        await store_todo(
            coordinator.store,
            b[const.DATA_TODO_ID],
            scheduled_time="18:30",
            completed=True,
        )
        await remove_stored_todo(coordinator.store, c[const.DATA_TODO_ID])
        e = await coordinator.async_add_todo("Journal", scheduled_time="21:00")
        await hass.async_block_till_done()

        todos = coordinator.todo_store.fetch_all()
        await coordinator.notification_manager.async_synchronize(todos)

        expected = {
            build_reminder_identifier(todo[const.DATA_TODO_ID])
            for todo in todos
            if not todo[const.DATA_TODO_IS_COMPLETED]
            and todo[const.DATA_TODO_SCHEDULED_TIME]
        }
        assert expected == {build_reminder_identifier(e[const.DATA_TODO_ID])}
        assert fake_dispatcher.all_identifiers() == expected
        assert d[const.DATA_TODO_SCHEDULED_TIME] is None

    async def test_missing_registration_is_repaired(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """An active to-do without a reminder gets one again."""
        await store_todo(coordinator.store, "t1", scheduled_time="08:00")

        await coordinator.notification_manager.async_synchronize()

        assert set(fake_dispatcher.pending) == {T1}

    async def test_reset_restores_reminders(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """A to-do completed yesterday gets its reminder back after the reset."""
        todo = await coordinator.async_add_todo("Vitamins", scheduled_time="08:00")
        todo_id = todo[const.DATA_TODO_ID]
        await coordinator.async_set_todo_completed(todo_id, True)
        assert fake_dispatcher.pending == {}

        await coordinator.reset_manager.async_reset_all_todos()
        await hass.async_block_till_done()

        assert set(fake_dispatcher.pending) == {build_reminder_identifier(todo_id)}

    async def test_foreign_identifiers_ignored(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Registrations without the integration prefix are left alone."""
        fake_dispatcher.pending["other_app.alarm.1"] = None
        fake_dispatcher.delivered["other_app.alarm.2"] = None

        await coordinator.notification_manager.async_synchronize([])

        assert fake_dispatcher.all_identifiers() == {
            "other_app.alarm.1",
            "other_app.alarm.2",
        }

    async def test_disabled_category_registrations_removed(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """A suggested reminder left over from when the category was enabled goes away."""
        todo = await store_todo(
            coordinator.store, "t1", scheduled_time="08:00", category="suggested"
        )
        fake_dispatcher.pending[T1] = None

        await coordinator.notification_manager.async_synchronize([todo])

        assert fake_dispatcher.pending == {}

    async def test_denied_still_removes_stale(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Without permission nothing is registered but stale entries still go."""
        fake_dispatcher.grant = False
        fake_dispatcher.pending[T1] = None
        await store_todo(coordinator.store, "t2", scheduled_time="08:00")

        await coordinator.notification_manager.async_synchronize()

        assert fake_dispatcher.pending == {}

    async def test_list_failure_is_logged(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A failing listing aborts the pass without raising."""
        fake_dispatcher.pending[T1] = None
        fake_dispatcher.fail_list = True

        await coordinator.notification_manager.async_synchronize([])

        assert T1 in fake_dispatcher.pending
        assert "Reconciliation aborted" in caplog.text

    async def test_synchronize_twice_is_stable(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """A second pass changes nothing."""
        await self._schedule_three(coordinator)
        await remove_stored_todo(coordinator.store, "t3")
        manager = coordinator.notification_manager

        await manager.async_synchronize()
        snapshot = dict(fake_dispatcher.pending)
        register_calls = fake_dispatcher.register_calls
        await manager.async_synchronize()

        assert fake_dispatcher.pending == snapshot
        assert fake_dispatcher.register_calls == register_calls


class TestBadge:
    """Badge count equals incomplete to-dos across categories."""

    async def test_badge_tracks_incomplete_count(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Completions, deletions and resets keep the badge exact."""
        r1 = await coordinator.async_add_todo("Dishes")
        await coordinator.async_add_todo("Laundry")
        s1 = await coordinator.async_add_todo(
            "Walk", category=const.TodoCategory.SUGGESTED
        )
        assert fake_dispatcher.badge == 3

        await coordinator.async_set_todo_completed(r1[const.DATA_TODO_ID], True)
        assert fake_dispatcher.badge == 2

        await coordinator.async_delete_todo(s1[const.DATA_TODO_ID])
        assert fake_dispatcher.badge == 1

        await coordinator.reset_manager.async_reset_all_todos()
        await hass.async_block_till_done()
        assert fake_dispatcher.badge == 2

        assert await coordinator.notification_manager.async_refresh_badge_count() == 2
        assert coordinator.notification_manager.badge_count == 2

    async def test_update_refreshes_badge(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Editing a to-do pushes the current incomplete count to the badge."""
        todo = await coordinator.async_add_todo("Dishes", scheduled_time="08:00")
        await store_todo(coordinator.store, "t2")
        fake_dispatcher.badge_history.clear()

        await coordinator.async_update_todo(
            todo[const.DATA_TODO_ID], title="Dishes and pans", scheduled_time=None
        )

        assert fake_dispatcher.badge_history == [2]
        assert coordinator.notification_manager.badge_count == 2

    async def test_badge_failure_is_logged(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A failing badge update is not raised."""
        await store_todo(coordinator.store, "t1")
        fake_dispatcher.fail_badge = True

        assert await coordinator.notification_manager.async_refresh_badge_count() == 1
        assert "Failed to set badge count" in caplog.text


class TestCompleteAction:
    """Completion from a reminder button."""

    async def test_two_phase_completion(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Phase one sees the old state, phase two the persisted one."""
        todo = await store_todo(coordinator.store, "t1", scheduled_time="08:00")
        await coordinator.notification_manager.async_schedule(todo)
        fake_dispatcher.deliver(T1)
        entry_id = coordinator.config_entry.entry_id
        seen: list[tuple[str, bool]] = []

        def _recorder(phase: str):
            @callback
            def _record(payload: dict[str, Any]) -> None:
                stored = coordinator.store.todos["t1"]
                seen.append((phase, stored[const.DATA_TODO_IS_COMPLETED]))

            return _record

        for suffix in (
            const.SIGNAL_SUFFIX_TODO_WILL_COMPLETE,
            const.SIGNAL_SUFFIX_TODO_COMPLETED,
        ):
            async_dispatcher_connect(
                hass, get_event_signal(entry_id, suffix), _recorder(suffix)
            )

        await _dispatch(fake_dispatcher, "t1", const.ReminderAction.COMPLETE)
        await hass.async_block_till_done()

        assert seen == [
            (const.SIGNAL_SUFFIX_TODO_WILL_COMPLETE, False),
            (const.SIGNAL_SUFFIX_TODO_COMPLETED, True),
        ]
        assert fake_dispatcher.all_identifiers() == set()
        assert fake_dispatcher.badge == 0

    async def test_already_completed_only_cancels(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Completing a completed to-do drops a leftover reminder without events."""
        await store_todo(coordinator.store, "t1", scheduled_time="08:00", completed=True)
        fake_dispatcher.pending[T1] = None
        completed = capture_events(
            hass, coordinator.config_entry.entry_id, const.SIGNAL_SUFFIX_TODO_COMPLETED
        )

        await _dispatch(fake_dispatcher, "t1", const.ReminderAction.COMPLETE)
        await hass.async_block_till_done()

        assert fake_dispatcher.pending == {}
        assert completed == []

    async def test_store_failure_requeues(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """A failed save keeps the reminder and queues the completion."""
        todo = await store_todo(coordinator.store, "t1", scheduled_time="08:00")
        await coordinator.notification_manager.async_schedule(todo)
        completed = capture_events(
            hass, coordinator.config_entry.entry_id, const.SIGNAL_SUFFIX_TODO_COMPLETED
        )
        changed = capture_events(
            hass, coordinator.config_entry.entry_id, const.SIGNAL_SUFFIX_TODOS_CHANGED
        )

        real_save = coordinator.store._store.async_save
        calls = 0

        async def _fail_first_save(data: dict[str, Any]) -> None:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise OSError("disk full")
            await real_save(data)

        with patch.object(
            coordinator.store._store, "async_save", side_effect=_fail_first_save
        ):
            await _dispatch(fake_dispatcher, "t1", const.ReminderAction.COMPLETE)
        await hass.async_block_till_done()

        assert coordinator.store.todos["t1"][const.DATA_TODO_IS_COMPLETED] is False
        assert T1 in fake_dispatcher.pending
        assert completed == []
        assert changed == [{"reason": "completion_failed", "todo_id": "t1"}]
        pending = coordinator.store.meta[const.DATA_META_PENDING_COMPLETIONS]
        assert [rec[const.DATA_PENDING_TODO_ID] for rec in pending] == ["t1"]

        # The next retry applies it
        assert await coordinator.notification_manager.async_retry_pending_completions() == 1
        assert coordinator.store.todos["t1"][const.DATA_TODO_IS_COMPLETED] is True


class TestPendingCompletions:
    """Completions for to-dos the store does not know yet."""

    async def test_unknown_todo_completed_once_it_exists(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """The queued id is applied once a matching to-do appears."""
        await _dispatch(fake_dispatcher, "late", const.ReminderAction.COMPLETE)
        await _dispatch(fake_dispatcher, "late", const.ReminderAction.COMPLETE)
        await hass.async_block_till_done()

        pending = coordinator.store.meta[const.DATA_META_PENDING_COMPLETIONS]
        assert [rec[const.DATA_PENDING_TODO_ID] for rec in pending] == ["late"]

        await store_todo(coordinator.store, "late", scheduled_time="08:00")
        assert await coordinator.notification_manager.async_retry_pending_completions() == 1

        assert coordinator.store.todos["late"][const.DATA_TODO_IS_COMPLETED] is True
        assert coordinator.store.meta[const.DATA_META_PENDING_COMPLETIONS] == []
        assert fake_dispatcher.badge == 0

    async def test_unknown_todo_kept_until_it_exists(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """A retry with the to-do still missing keeps the entry."""
        await _dispatch(fake_dispatcher, "late", const.ReminderAction.COMPLETE)
        await hass.async_block_till_done()

        assert await coordinator.notification_manager.async_retry_pending_completions() == 0
        assert len(coordinator.store.meta[const.DATA_META_PENDING_COMPLETIONS]) == 1

    async def test_expired_entries_dropped(
        self,
        coordinator: DailyTodosCoordinator,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Entries older than a day are discarded even if the to-do exists."""
        await store_todo(coordinator.store, "old")
        await coordinator.store.async_update_meta(
            **{
                const.DATA_META_PENDING_COMPLETIONS: [
                    {
                        const.DATA_PENDING_TODO_ID: "old",
                        const.DATA_PENDING_REQUESTED_AT: (
                            dt_util.utcnow() - timedelta(hours=25)
                        ).isoformat(),
                    }
                ]
            }
        )

        assert await coordinator.notification_manager.async_retry_pending_completions() == 0

        assert coordinator.store.meta[const.DATA_META_PENDING_COMPLETIONS] == []
        assert coordinator.store.todos["old"][const.DATA_TODO_IS_COMPLETED] is False
        assert "Dropping stale queued completion" in caplog.text

    async def test_todo_created_triggers_retry(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
    ) -> None:
        """Creating any to-do retries the queue."""
        await store_todo(coordinator.store, "t1")
        await coordinator.store.async_update_meta(
            **{
                const.DATA_META_PENDING_COMPLETIONS: [
                    {
                        const.DATA_PENDING_TODO_ID: "t1",
                        const.DATA_PENDING_REQUESTED_AT: dt_util.utcnow().isoformat(),
                    }
                ]
            }
        )

        await coordinator.async_add_todo("Something new")
        await hass.async_block_till_done()

        assert coordinator.store.todos["t1"][const.DATA_TODO_IS_COMPLETED] is True


class TestOtherActions:
    """Dismiss and open."""

    @pytest.mark.parametrize(
        "action",
        [const.ReminderAction.DISMISS, const.ReminderAction.SYSTEM_DISMISS],
    )
    async def test_dismiss_refreshes_badge_only(
        self,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
        action: const.ReminderAction,
    ) -> None:
        """Dismissing never completes the to-do."""
        await store_todo(coordinator.store, "t1", scheduled_time="08:00")
        fake_dispatcher.badge_history.clear()

        await _dispatch(fake_dispatcher, "t1", action)

        assert coordinator.store.todos["t1"][const.DATA_TODO_IS_COMPLETED] is False
        assert fake_dispatcher.badge_history == [1]

    async def test_open_focuses_without_completing(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
    ) -> None:
        """Tapping a reminder records the focus target and brings the app forward."""
        await store_todo(coordinator.store, "t1", scheduled_time="08:00")
        entry_id = coordinator.config_entry.entry_id
        shown = capture_events(hass, entry_id, const.SIGNAL_SUFFIX_SHOW_TODO)
        opened = capture_events(hass, entry_id, const.SIGNAL_SUFFIX_OPEN_APP)

        await _dispatch(fake_dispatcher, "t1", const.ReminderAction.OPEN)
        await hass.async_block_till_done()

        assert shown == [{"todo_id": "t1"}]
        assert opened == [{"todo_id": "t1"}]
        focus = coordinator.store.meta[const.DATA_META_PENDING_FOCUS]
        assert focus[const.DATA_PENDING_TODO_ID] == "t1"
        assert coordinator.store.todos["t1"][const.DATA_TODO_IS_COMPLETED] is False

    async def test_action_without_handler_is_dropped(
        self,
        fake_dispatcher: FakeReminderDispatcher,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A dispatcher with no handler logs and drops the action."""
        await _dispatch(fake_dispatcher, "t1", const.ReminderAction.COMPLETE)
        assert "no action handler registered" in caplog.text


class TestSettingsChanges:
    """Reminder preferences changed through options."""

    async def test_enabling_suggested_registers_reminders(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
        mock_config_entry: MockConfigEntry,
    ) -> None:
        """Turning a category on reschedules its active to-dos."""
        await store_todo(
            coordinator.store, "t1", scheduled_time="08:00", category="suggested"
        )
        await store_todo(coordinator.store, "t2", scheduled_time="09:00")

        hass.config_entries.async_update_entry(
            mock_config_entry,
            options={
                **mock_config_entry.options,
                const.CONF_SUGGESTED_NOTIFICATIONS_ENABLED: True,
            },
        )
        await coordinator.async_apply_settings()
        await hass.async_block_till_done()

        assert set(fake_dispatcher.pending) == {T1, T2}

    async def test_disabling_required_drops_reminders(
        self,
        hass: HomeAssistant,
        coordinator: DailyTodosCoordinator,
        fake_dispatcher: FakeReminderDispatcher,
        mock_config_entry: MockConfigEntry,
    ) -> None:
        """Turning a category off removes its registrations."""
        todo = await store_todo(coordinator.store, "t1", scheduled_time="08:00")
        await coordinator.notification_manager.async_schedule(todo)

        hass.config_entries.async_update_entry(
            mock_config_entry,
            options={
                **mock_config_entry.options,
                const.CONF_REQUIRED_NOTIFICATIONS_ENABLED: False,
            },
        )
        await coordinator.async_apply_settings()
        await hass.async_block_till_done()

        assert fake_dispatcher.pending == {}
