"""Tests for option validation."""

from __future__ import annotations

from datetime import timedelta

import pytest

from custom_components.somneo.config import DEFAULTS, SomneoOptions
from custom_components.somneo.const import (
    CONF_ALARMS_POLLING,
    CONF_DISPLAY_BRIGHTNESS,
    CONF_FUNCTIONS_POLLING,
    CONF_SENSORS_POLLING,
    CONF_SUNSET_SOUND,
    JOB_ALARMS,
    JOB_FUNCTIONS,
    JOB_SENSORS,
)
from custom_components.somneo.exceptions import ConfigurationError


class TestSomneoOptions:
    """Test parsing and comparing options."""

    def test_defaults(self) -> None:
        options = SomneoOptions.from_options(None)
        assert options.as_dict() == DEFAULTS
        assert options.intervals() == {
            JOB_SENSORS: timedelta(seconds=60),
            JOB_FUNCTIONS: timedelta(seconds=10),
            JOB_ALARMS: timedelta(minutes=5),
        }

    def test_coerces_and_ignores_unknown_keys(self) -> None:
        options = SomneoOptions.from_options({CONF_SENSORS_POLLING: "120", "legacy": 1})
        assert options.sensors_polling_frequency == 120

    @pytest.mark.parametrize(
        "key,value",
        [
            (CONF_SENSORS_POLLING, 1),
            (CONF_ALARMS_POLLING, 0),
            (CONF_DISPLAY_BRIGHTNESS, 9),
            (CONF_SUNSET_SOUND, "jazz"),
        ],
    )
    def test_out_of_range(self, key, value) -> None:
        with pytest.raises(ConfigurationError):
            SomneoOptions.from_options({key: value})

    def test_changed_keys(self) -> None:
        old = SomneoOptions.from_options(None)
        new = SomneoOptions.from_options({CONF_FUNCTIONS_POLLING: 30, CONF_DISPLAY_BRIGHTNESS: 5})
        assert new.changed_keys(old) == {CONF_FUNCTIONS_POLLING, CONF_DISPLAY_BRIGHTNESS}
        assert old.changed_keys(old) == set()

    def test_sunset_off_sound(self) -> None:
        request = SomneoOptions.from_options({CONF_SUNSET_SOUND: "off"}).sunset_request(True)
        assert request.sound_device == "off"
