"""Somneo service handlers."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Mapping

import homeassistant.helpers.config_validation as cv  # type: ignore
import voluptuous as vol  # pyright: ignore[reportMissingImports]
from homeassistant.exceptions import HomeAssistantError  # type: ignore
from homeassistant.util import dt as dt_util  # type: ignore

from .const import (
    COLOR_SCHEMES,
    DOMAIN,
    SERVICE_ADD_PLATFORM_ALARM,
    SERVICE_CREATE_ALARM,
    SERVICE_CREATE_NOW_ALARM,
    SERVICE_FORCE_SYNC,
    SERVICE_REMOVE_PLATFORM_ALARM,
    SERVICE_SET_ALWAYS_ON_DISPLAY,
    SOUND_OFF,
    SOUND_RADIO,
    SOUND_WAKEUP,
    WAKEUP_SOUNDS,
)
from .exceptions import SlotExhaustedError, StaleReferenceError, TransportError
from .models import AlarmRequest, parse_time
from .repetition import WEEKDAYS, encode

_LOGGER = logging.getLogger(__name__)

ATTR_ENTRY_ID = "entry_id"
ATTR_ALARM_ID = "alarm_id"

ALARM_SOUNDS = [SOUND_WAKEUP, SOUND_RADIO, SOUND_OFF]


def _time(value: Any) -> str:
    try:
        hour, minute = parse_time(value)
    except ValueError as ex:
        raise vol.Invalid(str(ex)) from ex
    return f"{hour:02d}:{minute:02d}"


def _level(low: int, high: int):
    return vol.All(vol.Coerce(int), vol.Range(min=low, max=high))


_DAYS = vol.All(cv.ensure_list, [vol.All(vol.Lower, vol.In(WEEKDAYS))])

_ALARM_SETTINGS = {
    vol.Optional(ATTR_ENTRY_ID): cv.string,
    vol.Optional("sunrise", default="Sunny Day"): vol.In(list(COLOR_SCHEMES)),
    vol.Optional("light_intensity", default=20): _level(1, 25),
    vol.Optional("duration", default=30): _level(5, 40),
    vol.Optional("sound_source", default=SOUND_WAKEUP): vol.In(ALARM_SOUNDS),
    vol.Optional("sound_channel", default="1"): vol.Coerce(str),
    vol.Optional("volume", default=12): _level(1, 25),
    vol.Optional("power_wake", default=False): cv.boolean,
    vol.Optional("power_wake_offset", default=0): _level(0, 59),
}

CREATE_ALARM_SCHEMA = vol.Schema(
    {
        **_ALARM_SETTINGS,
        vol.Required("time"): _time,
        vol.Optional("days", default=[]): _DAYS,
    }
)

CREATE_NOW_ALARM_SCHEMA = vol.Schema(
    {
        **_ALARM_SETTINGS,
        vol.Optional("minutes", default=1): _level(1, 1440),
    }
)

ADD_PLATFORM_ALARM_SCHEMA = vol.Schema(
    {
        vol.Required("name"): vol.All(cv.string, vol.Length(min=1)),
        vol.Required("time"): _time,
        vol.Optional("enabled", default=True): cv.boolean,
        vol.Optional("days", default=[]): _DAYS,
    }
)

REMOVE_PLATFORM_ALARM_SCHEMA = vol.Schema({vol.Required(ATTR_ALARM_ID): cv.string})

FORCE_SYNC_SCHEMA = vol.Schema({vol.Optional(ATTR_ENTRY_ID): cv.string})

ALWAYS_ON_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_ENTRY_ID): cv.string,
        vol.Required("state"): cv.boolean,
    }
)


def build_alarm_request(data: Mapping[str, Any], hour: int, minute: int, repetition: int) -> AlarmRequest:
    """Turn validated service data into a device alarm write."""
    ctype, curve = COLOR_SCHEMES[data["sunrise"]]
    source = data["sound_source"]
    channel = str(data["sound_channel"])
    if source == SOUND_WAKEUP and channel not in WAKEUP_SOUNDS:
        raise vol.Invalid(f"Unknown wake-up sound {channel}")
    return AlarmRequest(
        hour=hour,
        minute=minute,
        repetition=repetition,
        enabled=True,
        color_scheme=ctype,
        light_intensity=data["light_intensity"] if curve is None else curve,
        duration=data["duration"],
        sound_device=source,
        sound_channel=channel if source != SOUND_OFF else "",
        volume=data["volume"],
        power_wake=data["power_wake_offset"] if data["power_wake"] else None,
    )


def _hubs(hass) -> dict:
    return {
        entry_id: entry_data["hub"]
        for entry_id, entry_data in hass.data.get(DOMAIN, {}).items()
        if isinstance(entry_data, dict) and "hub" in entry_data
    }


def resolve_hub(hass, data: Mapping[str, Any]):
    """Pick the targeted hub; without an entry id there must be exactly one."""
    hubs = _hubs(hass)
    entry_id = data.get(ATTR_ENTRY_ID)
    if entry_id:
        if entry_id not in hubs:
            raise HomeAssistantError(f"No Somneo configured with entry id {entry_id}")
        return hubs[entry_id]
    if len(hubs) != 1:
        raise HomeAssistantError("Several Somneo devices are configured, pass entry_id")
    return next(iter(hubs.values()))


async def _async_create(hub, request: AlarmRequest) -> None:
    try:
        await hub.async_create_alarm(request)
    except SlotExhaustedError as ex:
        raise HomeAssistantError(str(ex)) from ex
    except TransportError as ex:
        raise HomeAssistantError(f"Could not create the alarm: {ex}") from ex


def async_register_services(hass, alarm_manager) -> None:
    """Register the integration services once for all entries."""
    if hass.services.has_service(DOMAIN, SERVICE_FORCE_SYNC):
        return

    async def _create_alarm(call) -> None:
        hour, minute = parse_time(call.data["time"])
        try:
            request = build_alarm_request(call.data, hour, minute, encode(call.data["days"]))
        except vol.Invalid as ex:
            raise HomeAssistantError(str(ex)) from ex
        await _async_create(resolve_hub(hass, call.data), request)

    async def _create_now_alarm(call) -> None:
        when = dt_util.now() + timedelta(minutes=call.data["minutes"])
        try:
            request = build_alarm_request(call.data, when.hour, when.minute, 0)
        except vol.Invalid as ex:
            raise HomeAssistantError(str(ex)) from ex
        await _async_create(resolve_hub(hass, call.data), request)

    async def _add_platform_alarm(call) -> None:
        repetition = {day: day in call.data["days"] for day in WEEKDAYS}
        alarm_id = await alarm_manager.async_create(
            call.data["name"], call.data["time"], call.data["enabled"], repetition
        )
        _LOGGER.info("Added platform alarm %s (%s)", call.data["name"], alarm_id)

    async def _remove_platform_alarm(call) -> None:
        try:
            await alarm_manager.async_delete(call.data[ATTR_ALARM_ID])
        except StaleReferenceError as ex:
            raise HomeAssistantError(f"Unknown alarm {call.data[ATTR_ALARM_ID]}") from ex

    async def _force_sync(call) -> None:
        if call.data.get(ATTR_ENTRY_ID):
            hubs = [resolve_hub(hass, call.data)]
        else:
            hubs = list(_hubs(hass).values())
        for hub in hubs:
            await hub.async_force_sync()

    async def _set_always_on_display(call) -> None:
        hub = resolve_hub(hass, call.data)
        try:
            await hub.async_set_always_on_display(call.data["state"])
        except TransportError as ex:
            raise HomeAssistantError(f"Could not change the display: {ex}") from ex

    hass.services.async_register(DOMAIN, SERVICE_CREATE_ALARM, _create_alarm, schema=CREATE_ALARM_SCHEMA)
    hass.services.async_register(DOMAIN, SERVICE_CREATE_NOW_ALARM, _create_now_alarm, schema=CREATE_NOW_ALARM_SCHEMA)
    hass.services.async_register(
        DOMAIN, SERVICE_ADD_PLATFORM_ALARM, _add_platform_alarm, schema=ADD_PLATFORM_ALARM_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_REMOVE_PLATFORM_ALARM, _remove_platform_alarm, schema=REMOVE_PLATFORM_ALARM_SCHEMA
    )
    hass.services.async_register(DOMAIN, SERVICE_FORCE_SYNC, _force_sync, schema=FORCE_SYNC_SCHEMA)
    hass.services.async_register(
        DOMAIN, SERVICE_SET_ALWAYS_ON_DISPLAY, _set_always_on_display, schema=ALWAYS_ON_SCHEMA
    )


def async_unregister_services(hass) -> None:
    for service in (
        SERVICE_CREATE_ALARM,
        SERVICE_CREATE_NOW_ALARM,
        SERVICE_ADD_PLATFORM_ALARM,
        SERVICE_REMOVE_PLATFORM_ALARM,
        SERVICE_FORCE_SYNC,
        SERVICE_SET_ALWAYS_ON_DISPLAY,
    ):
        hass.services.async_remove(DOMAIN, service)
