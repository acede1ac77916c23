"""FM radio select for the Somneo player."""
from __future__ import annotations

import logging
from typing import List

from homeassistant.components.select import SelectEntity  # type: ignore
from homeassistant.exceptions import HomeAssistantError  # type: ignore

from .const import DOMAIN, SOUND_RADIO
from .entity import SomneoEntity
from .exceptions import TransportError

_LOGGER = logging.getLogger(__name__)

OPTION_OFF = "Off"


def preset_label(channel: str, frequency: str) -> str:
    return f"FM {channel} ({frequency} MHz)"


async def async_setup_entry(hass, entry, async_add_entities):
    """Set up the FM radio select."""
    hub = hass.data[DOMAIN][entry.entry_id]["hub"]
    async_add_entities([SomneoRadioSelect(hub)])


class SomneoRadioSelect(SomneoEntity, SelectEntity):
    """Plays one of the device's FM presets, or stops the player."""

    _attr_name = "Radio"
    _attr_icon = "mdi:radio"

    def __init__(self, hub):
        super().__init__(hub, "radio")

    def _labels(self) -> dict[str, str]:
        presets = self._hub.state.radio_presets
        return {preset_label(channel, presets[channel]): channel for channel in sorted(presets, key=int)}

    @property
    def options(self) -> List[str]:
        return [OPTION_OFF, *self._labels()]

    @property
    def current_option(self) -> str | None:
        state = self._hub.state
        if not state.player_on or state.player_source != SOUND_RADIO:
            return OPTION_OFF
        frequency = state.radio_presets.get(state.player_channel or "")
        if frequency is None:
            return None
        return preset_label(state.player_channel, frequency)

    async def async_select_option(self, option: str) -> None:
        labels = self._labels()
        if option != OPTION_OFF and option not in labels:
            raise HomeAssistantError(f"Radio preset '{option}' is not available")
        try:
            await self._hub.async_play_radio(labels.get(option))
        except TransportError as ex:
            raise HomeAssistantError(f"Unable to control the radio: {ex}") from ex
