# File: flow_helpers.py
"""Helpers for the Daily Todos integration's Config and Options flow.

Provides the settings schema builder and input processing shared by both
flows:
- build_settings_schema(hass, default) -> vol.Schema
- validate_settings_inputs(hass, user_input) -> errors_dict
- build_settings_data(user_input) -> options dict

**Example flow:**
```python
errors = validate_settings_inputs(self.hass, user_input)
if not errors:
    return self.async_create_entry(data=build_settings_data(user_input))
```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.helpers import selector

from . import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


def build_settings_schema(
    hass: HomeAssistant, default: dict[str, Any] | None = None
) -> vol.Schema:
    """Build the schema for reset hour, category reminders and notify target."""
    default = default or {}
    return vol.Schema(
        {
            vol.Required(
                const.CONF_RESET_HOUR,
                default=default.get(const.CONF_RESET_HOUR, const.DEFAULT_RESET_HOUR),
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    mode=selector.NumberSelectorMode.BOX,
                    min=const.RESET_HOUR_MIN,
                    max=const.RESET_HOUR_MAX,
                    step=1,
                )
            ),
            vol.Required(
                const.CONF_REQUIRED_NOTIFICATIONS_ENABLED,
                default=default.get(
                    const.CONF_REQUIRED_NOTIFICATIONS_ENABLED,
                    const.DEFAULT_REQUIRED_NOTIFICATIONS_ENABLED,
                ),
            ): selector.BooleanSelector(),
            vol.Required(
                const.CONF_SUGGESTED_NOTIFICATIONS_ENABLED,
                default=default.get(
                    const.CONF_SUGGESTED_NOTIFICATIONS_ENABLED,
                    const.DEFAULT_SUGGESTED_NOTIFICATIONS_ENABLED,
                ),
            ): selector.BooleanSelector(),
            vol.Optional(
                const.CONF_NOTIFY_SERVICE,
                description={
                    "suggested_value": default.get(
                        const.CONF_NOTIFY_SERVICE, const.DEFAULT_NOTIFY_SERVICE
                    )
                },
            ): selector.SelectSelector(
                selector.SelectSelectorConfig(
                    options=get_notify_services(hass),
                    custom_value=True,
                    mode=selector.SelectSelectorMode.DROPDOWN,
                )
            ),
        }
    )


def validate_settings_inputs(
    hass: HomeAssistant, user_input: dict[str, Any]
) -> dict[str, str]:
    """Validate settings inputs.

    Returns:
        Dictionary of errors (empty if validation passes).
    """
    errors: dict[str, str] = {}

    try:
        vol.All(vol.Coerce(int), vol.Range(const.RESET_HOUR_MIN, const.RESET_HOUR_MAX))(
            user_input.get(const.CONF_RESET_HOUR, const.DEFAULT_RESET_HOUR)
        )
    except vol.Invalid:
        errors[const.CONF_RESET_HOUR] = "invalid_reset_hour"

    notify_service = (user_input.get(const.CONF_NOTIFY_SERVICE) or "").strip()
    if notify_service:
        domain, _, service = notify_service.partition(".")
        if (
            domain != const.NOTIFY_DOMAIN
            or not service
            or not hass.services.has_service(domain, service)
        ):
            errors[const.CONF_NOTIFY_SERVICE] = (
                const.TRANS_KEY_ERROR_INVALID_NOTIFY_SERVICE
            )

    return errors


def build_settings_data(user_input: dict[str, Any]) -> dict[str, Any]:
    """Build the options dict from validated form input."""
    return {
        const.CONF_RESET_HOUR: int(
            user_input.get(const.CONF_RESET_HOUR, const.DEFAULT_RESET_HOUR)
        ),
        const.CONF_REQUIRED_NOTIFICATIONS_ENABLED: bool(
            user_input.get(
                const.CONF_REQUIRED_NOTIFICATIONS_ENABLED,
                const.DEFAULT_REQUIRED_NOTIFICATIONS_ENABLED,
            )
        ),
        const.CONF_SUGGESTED_NOTIFICATIONS_ENABLED: bool(
            user_input.get(
                const.CONF_SUGGESTED_NOTIFICATIONS_ENABLED,
                const.DEFAULT_SUGGESTED_NOTIFICATIONS_ENABLED,
            )
        ),
        const.CONF_NOTIFY_SERVICE: (
            user_input.get(const.CONF_NOTIFY_SERVICE) or ""
        ).strip(),
    }


# Get notify services from HA
def get_notify_services(hass: HomeAssistant) -> list[dict[str, str]]:
    """Return all notify.* services as selector options."""
    services_list = []
    all_services = hass.services.async_services()
    if const.NOTIFY_DOMAIN in all_services:
        for service_name in all_services[const.NOTIFY_DOMAIN]:
            fullname = f"{const.NOTIFY_DOMAIN}.{service_name}"
            services_list.append({"value": fullname, "label": fullname})
    return services_list
