"""Shared fixtures for Daily Todos tests."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from homeassistant.config_entries import ConfigEntryState
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.daily_todos.const import (
    CONF_NOTIFY_SERVICE,
    CONF_REQUIRED_NOTIFICATIONS_ENABLED,
    CONF_RESET_HOUR,
    CONF_SUGGESTED_NOTIFICATIONS_ENABLED,
    DAILY_TODOS_TITLE,
    DOMAIN,
)
from custom_components.daily_todos.coordinator import DailyTodosCoordinator
from custom_components.daily_todos.store import DailyTodosStore
from tests.helpers import FakeReminderDispatcher

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name
# pylint: disable=redefined-outer-name


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def entry_options() -> dict[str, Any]:
    """Return the options of the mock config entry (override per test module)."""
    return {
        CONF_RESET_HOUR: 4,
        CONF_REQUIRED_NOTIFICATIONS_ENABLED: True,
        CONF_SUGGESTED_NOTIFICATIONS_ENABLED: False,
        CONF_NOTIFY_SERVICE: "",
    }


@pytest.fixture
def mock_config_entry(entry_options: dict[str, Any]) -> MockConfigEntry:
    """Return a mock config entry."""
    return MockConfigEntry(
        domain=DOMAIN,
        title=DAILY_TODOS_TITLE,
        data={},
        options=entry_options,
        entry_id="test_entry_id",
        unique_id=DOMAIN,
    )


@pytest.fixture
def fake_dispatcher() -> FakeReminderDispatcher:
    """Return an in-memory dispatcher that grants authorization on request."""
    return FakeReminderDispatcher()


@pytest.fixture
async def daily_store(hass: HomeAssistant, hass_storage: dict[str, Any]) -> DailyTodosStore:
    """Return an initialized store backed by the mocked HA storage."""
    store = DailyTodosStore(hass, "daily_todos_data_test_entry_id")
    await store.async_initialize()
    return store


@pytest.fixture
async def coordinator(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    daily_store: DailyTodosStore,
    fake_dispatcher: FakeReminderDispatcher,
) -> AsyncGenerator[DailyTodosCoordinator, None]:
    """Return a set up coordinator wired to the fake dispatcher."""
    mock_config_entry.add_to_hass(hass)
    coordinator = DailyTodosCoordinator(
        hass, mock_config_entry, daily_store, fake_dispatcher
    )
    mock_config_entry.runtime_data = coordinator
    await coordinator.async_setup()
    await hass.async_block_till_done()

    yield coordinator

    await coordinator.async_shutdown()


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    mock_config_entry: MockConfigEntry,
) -> AsyncGenerator[MockConfigEntry, None]:
    """Set up the integration through the config entry machinery."""
    mock_config_entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    yield mock_config_entry

    if mock_config_entry.state is ConfigEntryState.LOADED:
        await hass.config_entries.async_unload(mock_config_entry.entry_id)
        await hass.async_block_till_done()
