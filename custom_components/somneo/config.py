"""Validated options for a Somneo config entry."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Any, Dict, Mapping

import voluptuous as vol  # pyright: ignore[reportMissingImports]

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
    DEFAULT_ALARMS_POLLING,
    DEFAULT_ALARMS_PREFIX,
    DEFAULT_FUNCTIONS_POLLING,
    DEFAULT_SENSORS_POLLING,
    GUIDANCE_LIGHT,
    GUIDANCE_SOUND,
    JOB_ALARMS,
    JOB_FUNCTIONS,
    JOB_SENSORS,
    SOUND_AUX,
    SOUND_DUSK,
    SOUND_OFF,
    SOUND_RADIO,
)
from .exceptions import ConfigurationError
from .models import LightGuidance, RelaxBreatheRequest, SoundGuidance, SunsetRequest

SUNSET_SOUNDS = [SOUND_OFF, SOUND_RADIO, SOUND_AUX, "1", "2", "3", "4"]
RADIO_CHANNELS = ["1", "2", "3", "4", "5"]


def _level(low: int, high: int):
    return vol.All(vol.Coerce(int), vol.Range(min=low, max=high))


DEFAULTS: Dict[str, Any] = {
    CONF_SENSORS_POLLING: DEFAULT_SENSORS_POLLING,
    CONF_FUNCTIONS_POLLING: DEFAULT_FUNCTIONS_POLLING,
    CONF_ALARMS_POLLING: DEFAULT_ALARMS_POLLING,
    CONF_ALARMS_SYNC: False,
    CONF_ALARMS_PREFIX: DEFAULT_ALARMS_PREFIX,
    CONF_SUNSET_DURATION: 30,
    CONF_SUNSET_INTENSITY: 20,
    CONF_SUNSET_COLOR: 0,
    CONF_SUNSET_SOUND: "1",
    CONF_SUNSET_RADIO: "1",
    CONF_SUNSET_VOLUME: 12,
    CONF_RELAX_DURATION: 10,
    CONF_RELAX_PACE: 6,
    CONF_RELAX_GUIDANCE: GUIDANCE_LIGHT,
    CONF_RELAX_INTENSITY: 20,
    CONF_RELAX_VOLUME: 12,
    CONF_DISPLAY_ALWAYS_ON: False,
    CONF_DISPLAY_BRIGHTNESS: 3,
    CONF_SUNRISE_COLOR: 0,
}

OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_SENSORS_POLLING): _level(10, 3600),
        vol.Required(CONF_FUNCTIONS_POLLING): _level(5, 3600),
        vol.Required(CONF_ALARMS_POLLING): _level(1, 1440),
        vol.Required(CONF_ALARMS_SYNC): vol.Coerce(bool),
        vol.Required(CONF_ALARMS_PREFIX): vol.All(str, vol.Strip, vol.Length(min=1, max=40)),
        vol.Required(CONF_SUNSET_DURATION): _level(5, 60),
        vol.Required(CONF_SUNSET_INTENSITY): _level(1, 25),
        vol.Required(CONF_SUNSET_COLOR): _level(0, 3),
        vol.Required(CONF_SUNSET_SOUND): vol.All(vol.Coerce(str), vol.In(SUNSET_SOUNDS)),
        vol.Required(CONF_SUNSET_RADIO): vol.All(vol.Coerce(str), vol.In(RADIO_CHANNELS)),
        vol.Required(CONF_SUNSET_VOLUME): _level(1, 25),
        vol.Required(CONF_RELAX_DURATION): _level(5, 60),
        vol.Required(CONF_RELAX_PACE): _level(4, 10),
        vol.Required(CONF_RELAX_GUIDANCE): vol.In([GUIDANCE_LIGHT, GUIDANCE_SOUND]),
        vol.Required(CONF_RELAX_INTENSITY): _level(1, 25),
        vol.Required(CONF_RELAX_VOLUME): _level(1, 25),
        vol.Required(CONF_DISPLAY_ALWAYS_ON): vol.Coerce(bool),
        vol.Required(CONF_DISPLAY_BRIGHTNESS): _level(1, 6),
        vol.Required(CONF_SUNRISE_COLOR): _level(0, 3),
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True)
class SomneoOptions:
    sensors_polling_frequency: int
    functions_polling_frequency: int
    alarms_polling_frequency: int
    alarms_device_sync: bool
    alarms_generative_name: str
    sunset_duration: int
    sunset_light_intensity: int
    sunset_color_scheme: int
    sunset_ambient_sound: str
    sunset_ambient_radio_channel: str
    sunset_ambient_volume: int
    relax_duration: int
    relax_breathing_pace: int
    relax_guidance_type: str
    relax_light_intensity: int
    relax_sound_intensity: int
    display_always_on: bool
    display_brightness: int
    sunrise_color_scheme: int

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> "SomneoOptions":
        """Merge ``options`` over the defaults and validate.

        Raises ConfigurationError when a value is out of range.
        """
        merged = dict(DEFAULTS)
        merged.update({key: value for key, value in (options or {}).items() if value is not None})
        try:
            validated = OPTIONS_SCHEMA(merged)
        except vol.Invalid as ex:
            raise ConfigurationError(f"Invalid option {'.'.join(str(p) for p in ex.path)}: {ex.msg}") from ex
        return cls(**validated)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def changed_keys(self, other: "SomneoOptions") -> set[str]:
        mine, theirs = self.as_dict(), other.as_dict()
        return {key for key in mine if mine[key] != theirs[key]}

    def intervals(self) -> Dict[str, timedelta]:
        return {
            JOB_SENSORS: timedelta(seconds=self.sensors_polling_frequency),
            JOB_FUNCTIONS: timedelta(seconds=self.functions_polling_frequency),
            JOB_ALARMS: timedelta(minutes=self.alarms_polling_frequency),
        }

    def sunset_request(self, enabled: bool) -> SunsetRequest:
        sound = self.sunset_ambient_sound
        # Numbered entries are the built-in dusk sounds
        device = SOUND_DUSK if sound.isdigit() else sound
        channel = self.sunset_ambient_radio_channel if device == SOUND_RADIO else sound
        return SunsetRequest(
            enabled=enabled,
            duration=self.sunset_duration,
            light_intensity=self.sunset_light_intensity,
            color_scheme=self.sunset_color_scheme,
            sound_device=device,
            sound_channel=channel,
            volume=self.sunset_ambient_volume,
        )

    def relax_request(self, enabled: bool) -> RelaxBreatheRequest:
        if self.relax_guidance_type == GUIDANCE_SOUND:
            guidance = SoundGuidance(volume=self.relax_sound_intensity)
        else:
            guidance = LightGuidance(intensity=self.relax_light_intensity)
        return RelaxBreatheRequest(
            enabled=enabled,
            duration=self.relax_duration,
            pace=self.relax_breathing_pace,
            guidance=guidance,
        )
