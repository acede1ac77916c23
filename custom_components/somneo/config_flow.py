"""Config flow for the Somneo integration."""

import logging
import voluptuous as vol  # pyright: ignore[reportMissingImports]

from homeassistant import config_entries, exceptions  # type: ignore
import homeassistant.helpers.config_validation as cv  # type: ignore
from homeassistant.const import CONF_HOST, CONF_NAME  # type: ignore
from homeassistant.core import callback  # type: ignore

from .api import SomneoClient
from .config import DEFAULTS, RADIO_CHANNELS, SUNSET_SOUNDS, SomneoOptions
from .const import (
    CONF_ALARMS_POLLING,
    CONF_ALARMS_PREFIX,
    CONF_ALARMS_SYNC,
    CONF_DISPLAY_ALWAYS_ON,
    CONF_DISPLAY_BRIGHTNESS,
    CONF_FUNCTIONS_POLLING,
    CONF_RELAX_DURATION,
    CONF_RELAX_GUIDANCE,
    CONF_RELAX_INTENSITY,
    CONF_RELAX_PACE,
    CONF_RELAX_VOLUME,
    CONF_SENSORS_POLLING,
    CONF_SUNRISE_COLOR,
    CONF_SUNSET_COLOR,
    CONF_SUNSET_DURATION,
    CONF_SUNSET_INTENSITY,
    CONF_SUNSET_RADIO,
    CONF_SUNSET_SOUND,
    CONF_SUNSET_VOLUME,
    DOMAIN,
    GUIDANCE_LIGHT,
    GUIDANCE_SOUND,
    MODEL,
)
from .exceptions import ConfigurationError
from .transport import SomneoTransport

_LOGGER = logging.getLogger(__name__)


async def validate_host(hass, host: str) -> None:
    """Raise CannotConnect unless the device answers a status read."""
    transport = await SomneoTransport.create(host, hass, attempts=1)
    client = SomneoClient(transport)
    try:
        if not await client.probe():
            raise CannotConnect(f"No Somneo answering at {host}")
    finally:
        await client.close()


@config_entries.HANDLERS.register(DOMAIN)
class SomneoFlowHandler(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Somneo."""

    VERSION = 1
    CONNECTION_CLASS = config_entries.CONN_CLASS_LOCAL_POLL

    async def async_step_user(self, user_input=None):
        """Handle the initial step."""
        errors = {}
        if user_input is not None:
            host = user_input[CONF_HOST].strip()
            await self.async_set_unique_id(host)
            self._abort_if_unique_id_configured()
            try:
                await validate_host(self.hass, host)
            except CannotConnect as conn_ex:
                _LOGGER.debug("Cannot connect: %s", conn_ex)
                errors["base"] = "cannot_connect"
            except Exception as ex:  # pylint: disable=broad-except
                _LOGGER.exception("Unexpected exception: %s", ex)
                errors["base"] = "unknown"

            if not errors:
                return self.async_create_entry(
                    title=user_input.get(CONF_NAME) or MODEL,
                    data={CONF_HOST: host},
                )

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_HOST): cv.string,
                    vol.Optional(CONF_NAME, default=MODEL): cv.string,
                }
            ),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow."""
        return SomneoOptionsFlowHandler(config_entry)


def _range(low: int, high: int):
    return vol.All(vol.Coerce(int), vol.Range(min=low, max=high))


class SomneoOptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options."""

    VERSION = 1

    def __init__(self, config_entry):
        # Do not assign to self.config_entry (deprecated in HA 2025.12)
        self._entry = config_entry

    @property
    def entry(self):
        # Prefer framework-provided property if available
        return getattr(self, "config_entry", self._entry)

    async def async_step_init(self, user_input=None):
        errors = {}

        if user_input is not None:
            try:
                options = SomneoOptions.from_options(user_input)
            except ConfigurationError as ex:
                _LOGGER.debug("Rejected options: %s", ex)
                errors["base"] = "invalid_option"
            else:
                return self.async_create_entry(title="", data=options.as_dict())

        current = dict(DEFAULTS)
        current.update(self.entry.options)

        def _opt(key, validator):
            return {vol.Required(key, default=current[key]): validator}

        schema = {}
        schema.update(_opt(CONF_SENSORS_POLLING, _range(10, 3600)))
        schema.update(_opt(CONF_FUNCTIONS_POLLING, _range(5, 3600)))
        schema.update(_opt(CONF_ALARMS_POLLING, _range(1, 1440)))
        schema.update(_opt(CONF_ALARMS_SYNC, cv.boolean))
        schema.update(_opt(CONF_ALARMS_PREFIX, cv.string))
        schema.update(_opt(CONF_SUNSET_DURATION, _range(5, 60)))
        schema.update(_opt(CONF_SUNSET_INTENSITY, _range(1, 25)))
        schema.update(_opt(CONF_SUNSET_COLOR, _range(0, 3)))
        schema.update(_opt(CONF_SUNSET_SOUND, vol.In(SUNSET_SOUNDS)))
        schema.update(_opt(CONF_SUNSET_RADIO, vol.In(RADIO_CHANNELS)))
        schema.update(_opt(CONF_SUNSET_VOLUME, _range(1, 25)))
        schema.update(_opt(CONF_RELAX_DURATION, _range(5, 60)))
        schema.update(_opt(CONF_RELAX_PACE, _range(4, 10)))
        schema.update(_opt(CONF_RELAX_GUIDANCE, vol.In([GUIDANCE_LIGHT, GUIDANCE_SOUND])))
        schema.update(_opt(CONF_RELAX_INTENSITY, _range(1, 25)))
        schema.update(_opt(CONF_RELAX_VOLUME, _range(1, 25)))
        schema.update(_opt(CONF_DISPLAY_ALWAYS_ON, cv.boolean))
        schema.update(_opt(CONF_DISPLAY_BRIGHTNESS, _range(1, 6)))
        schema.update(_opt(CONF_SUNRISE_COLOR, _range(0, 3)))

        return self.async_show_form(step_id="init", data_schema=vol.Schema(schema), errors=errors)


class CannotConnect(exceptions.HomeAssistantError):
    """Error to indicate we cannot connect."""
