"""Room climate sensors of the Somneo."""
from __future__ import annotations

import logging

from homeassistant.components.sensor import (  # type: ignore
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.const import LIGHT_LUX, PERCENTAGE, UnitOfTemperature  # type: ignore

from .const import DOMAIN
from .entity import SomneoEntity

_LOGGER = logging.getLogger(__name__)

# key -> (name, device class, unit, icon)
SENSORS = {
    "temperature": ("Temperature", SensorDeviceClass.TEMPERATURE, UnitOfTemperature.CELSIUS, None),
    "humidity": ("Humidity", SensorDeviceClass.HUMIDITY, PERCENTAGE, None),
    "luminance": ("Luminance", SensorDeviceClass.ILLUMINANCE, LIGHT_LUX, None),
    "noise": ("Noise", None, "dB", "mdi:waveform"),
}


async def async_setup_entry(hass, entry, async_add_entities):
    """Set up the Somneo sensors."""
    hub = hass.data[DOMAIN][entry.entry_id]["hub"]
    async_add_entities([SomneoSensor(hub, key) for key in SENSORS])


class SomneoSensor(SomneoEntity, SensorEntity):
    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(self, hub, key: str):
        super().__init__(hub, key)
        self._key = key
        name, device_class, unit, icon = SENSORS[key]
        self._attr_name = name
        self._attr_device_class = device_class
        self._attr_native_unit_of_measurement = unit
        if icon:
            self._attr_icon = icon

    @property
    def native_value(self):
        return getattr(self._hub.state.sensors, self._key)
