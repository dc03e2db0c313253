# File: config_flow.py
"""Config flow for the Daily Todos integration.

A single step collects the settings; they are stored as entry options so the
options flow can edit them later.
"""

from typing import Any

from homeassistant import config_entries
from homeassistant.core import callback

from . import const
from . import flow_helpers as fh
from .options_flow import DailyTodosOptionsFlowHandler


class DailyTodosConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Daily Todos (single instance)."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Collect the reset hour and reminder settings."""
        if self._async_current_entries():
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_settings_inputs(self.hass, user_input)
            if not errors:
                return self.async_create_entry(
                    title=const.DAILY_TODOS_TITLE,
                    data={},
                    options=fh.build_settings_data(user_input),
                )

        return self.async_show_form(
            step_id="user",
            data_schema=fh.build_settings_schema(self.hass, user_input),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> DailyTodosOptionsFlowHandler:
        """Return the options flow handler."""
        return DailyTodosOptionsFlowHandler()
