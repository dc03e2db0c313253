# File: options_flow.py
"""Options Flow for the Daily Todos integration.

Edits the reset hour, the per-category reminder flags and the notify target.
Saving triggers the entry update listener, which re-arms the reset timer and
rebuilds reminders without a reload.
"""

from typing import Any

from homeassistant import config_entries

from . import flow_helpers as fh


class DailyTodosOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for Daily Todos settings."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Show and apply the settings form."""
        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_settings_inputs(self.hass, user_input)
            if not errors:
                return self.async_create_entry(data=fh.build_settings_data(user_input))

        return self.async_show_form(
            step_id="init",
            data_schema=fh.build_settings_schema(
                self.hass, user_input or dict(self.config_entry.options)
            ),
            errors=errors,
        )
