"""Switches for the Somneo programs and the per-slot alarm toggles."""
from __future__ import annotations

import logging

from homeassistant.components.switch import SwitchEntity  # type: ignore
from homeassistant.exceptions import HomeAssistantError  # type: ignore

from .const import DOMAIN, FUNC_BEDTIME, FUNC_RELAX, FUNC_SUNRISE_PREVIEW, FUNC_SUNSET
from .entity import SomneoEntity
from .exceptions import TransportError

_LOGGER = logging.getLogger(__name__)

FUNCTIONS = {
    FUNC_SUNSET: ("Sunset", "mdi:weather-sunset-down"),
    FUNC_RELAX: ("Relax breathe", "mdi:meditation"),
    FUNC_BEDTIME: ("Bedtime tracking", "mdi:bed-clock"),
    FUNC_SUNRISE_PREVIEW: ("Sunrise preview", "mdi:weather-sunset-up"),
}


async def async_setup_entry(hass, entry, async_add_entities):
    """Set up function switches; alarm switches are added by the capability manager."""
    hub = hass.data[DOMAIN][entry.entry_id]["hub"]
    async_add_entities([SomneoFunctionSwitch(hub, function) for function in FUNCTIONS])
    hub.capabilities.bind(async_add_entities)


class SomneoFunctionSwitch(SomneoEntity, SwitchEntity):
    def __init__(self, hub, function: str):
        super().__init__(hub, function)
        self._function = function
        self._attr_name, self._attr_icon = FUNCTIONS[function]

    @property
    def is_on(self) -> bool:
        return bool(self._hub.state.functions.get(self._function, False))

    async def _async_set(self, enabled: bool) -> None:
        try:
            await self._hub.async_set_function(self._function, enabled)
        except TransportError as ex:
            raise HomeAssistantError(f"Could not switch {self._attr_name}: {ex}") from ex

    async def async_turn_on(self, **kwargs):
        await self._async_set(True)

    async def async_turn_off(self, **kwargs):
        await self._async_set(False)
