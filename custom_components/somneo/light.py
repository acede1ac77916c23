"""Somneo light platform: main light and night light."""
import logging

from homeassistant.components.light import (  # type: ignore
    ATTR_BRIGHTNESS,
    ColorMode,
    LightEntity,
)
from homeassistant.exceptions import HomeAssistantError  # type: ignore

from .const import DOMAIN, FUNC_MAIN_LIGHT, FUNC_NIGHT_LIGHT
from .exceptions import TransportError
from .entity import SomneoEntity

_LOGGER = logging.getLogger(__name__)

DEVICE_LEVEL_MAX = 25


def to_device_level(brightness: int) -> int:
    """Scale a 0..255 brightness to the device's 1..25 levels."""
    return max(1, min(DEVICE_LEVEL_MAX, round(int(brightness) * DEVICE_LEVEL_MAX / 255)))


def from_device_level(level: int) -> int:
    return max(0, min(255, round(int(level) * 255 / DEVICE_LEVEL_MAX)))


async def async_setup_entry(hass, entry, async_add_entities):
    """Set up the Somneo lights."""
    _LOGGER.debug("Setting up Somneo lights")
    hub = hass.data[DOMAIN][entry.entry_id]["hub"]
    async_add_entities([SomneoMainLight(hub), SomneoNightLight(hub)])


class SomneoMainLight(SomneoEntity, LightEntity):
    _attr_name = "Light"
    _attr_color_mode = ColorMode.BRIGHTNESS
    _attr_supported_color_modes = {ColorMode.BRIGHTNESS}

    def __init__(self, hub):
        super().__init__(hub, FUNC_MAIN_LIGHT)

    @property
    def is_on(self) -> bool:
        return bool(self._hub.state.functions.get(FUNC_MAIN_LIGHT, False))

    @property
    def brightness(self) -> int | None:
        level = self._hub.state.light.brightness
        return from_device_level(level) if level else None

    async def async_turn_on(self, **kwargs):
        level = to_device_level(kwargs[ATTR_BRIGHTNESS]) if ATTR_BRIGHTNESS in kwargs else None
        try:
            await self._hub.async_set_main_light(True, level)
        except TransportError as ex:
            raise HomeAssistantError(f"Could not turn on the Somneo light: {ex}") from ex

    async def async_turn_off(self, **kwargs):
        try:
            await self._hub.async_set_main_light(False)
        except TransportError as ex:
            raise HomeAssistantError(f"Could not turn off the Somneo light: {ex}") from ex


class SomneoNightLight(SomneoEntity, LightEntity):
    _attr_name = "Night light"
    _attr_icon = "mdi:weather-night"
    _attr_color_mode = ColorMode.ONOFF
    _attr_supported_color_modes = {ColorMode.ONOFF}

    def __init__(self, hub):
        super().__init__(hub, FUNC_NIGHT_LIGHT)

    @property
    def is_on(self) -> bool:
        return bool(self._hub.state.functions.get(FUNC_NIGHT_LIGHT, False))

    async def async_turn_on(self, **kwargs):
        try:
            await self._hub.async_set_night_light(True)
        except TransportError as ex:
            raise HomeAssistantError(f"Could not turn on the night light: {ex}") from ex

    async def async_turn_off(self, **kwargs):
        try:
            await self._hub.async_set_night_light(False)
        except TransportError as ex:
            raise HomeAssistantError(f"Could not turn off the night light: {ex}") from ex
