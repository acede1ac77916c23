"""Typed Somneo device gateway."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .const import (
    DEVICE_EVENTS,
    MAX_ALARM_SLOTS,
    PATH_ALARM_SLOT,
    PATH_ALARMS_SCHEDULE,
    PATH_ALARMS_STATE,
    PATH_BEDTIME,
    PATH_FACTORY_RESET,
    PATH_LAST_EVENT,
    PATH_LIGHT,
    PATH_PLAYER,
    PATH_RADIO,
    PATH_RELAX,
    PATH_SENSORS,
    PATH_STATUSES,
    PATH_SUNSET,
)
from .exceptions import SlotExhaustedError, TransportError
from .models import (
    AlarmRequest,
    DeviceAlarmSlot,
    LastEvent,
    RelaxBreatheRequest,
    SomneoLight,
    SomneoSensors,
    SomneoStatuses,
    SunsetRequest,
)
from .transport import SomneoTransport

_LOGGER = logging.getLogger(__name__)


def _at(values: List[Any] | None, index: int, default: Any = None) -> Any:
    if not values or index >= len(values):
        return default
    return values[index]


def _power_wake_offset(pwrsv: List[Any], index: int, slots: int, hour: int, minute: int) -> Optional[int]:
    """Decode the power-wake entry for one slot.

    Newer firmware reports (flag, hour, minute) triples per slot, older
    firmware a single flag per slot.
    """
    if not pwrsv:
        return None
    if len(pwrsv) >= 3 * slots:
        flag, psz_hour, psz_minute = pwrsv[3 * index : 3 * index + 3]
        if not flag:
            return None
        return (int(psz_hour) * 60 + int(psz_minute) - (hour * 60 + minute)) % (24 * 60)
    return 0 if _at(pwrsv, index) == 1 else None


def _slot_from_payload(data: Dict[str, Any], fallback_slot: int) -> DeviceAlarmSlot:
    hour = int(data.get("almhr") or 0)
    minute = int(data.get("almmn") or 0)
    power_wake = None
    if data.get("pwrsz"):
        power_wake = (int(data.get("pszhr") or 0) * 60 + int(data.get("pszmn") or 0) - (hour * 60 + minute)) % (24 * 60)
    return DeviceAlarmSlot(
        slot_id=int(data.get("prfnr") or fallback_slot),
        enabled=bool(data.get("prfen", False)),
        activated=bool(data.get("prfvs", True)),
        hour=hour,
        minute=minute,
        repetition=int(data.get("daynm") or 0),
        power_wake=power_wake,
    )


class SomneoClient:
    """Device resources over a single-flight transport."""

    def __init__(self, transport: SomneoTransport):
        self._transport = transport

    @property
    def host(self) -> str:
        return self._transport.host

    async def close(self):
        await self._transport.close()

    # Sensors and display

    async def get_sensors(self) -> SomneoSensors:
        return SomneoSensors.from_payload(await self._transport.get(PATH_SENSORS))

    async def get_statuses(self) -> SomneoStatuses:
        return SomneoStatuses.from_payload(await self._transport.get(PATH_STATUSES))

    async def change_display_settings(self, always_on: bool, brightness: int) -> SomneoStatuses:
        data = await self._transport.put(PATH_STATUSES, {"dspon": bool(always_on), "brght": int(brightness)})
        return SomneoStatuses.from_payload(data)

    async def toggle_always_on_display(self, enabled: bool) -> SomneoStatuses:
        data = await self._transport.put(PATH_STATUSES, {"dspon": bool(enabled)})
        return SomneoStatuses.from_payload(data)

    async def factory_reset(self) -> None:
        await self._transport.put(PATH_FACTORY_RESET, {"reset": 1})

    # Light channel. The device has one light channel: every write that
    # selects a mode also clears the other modes.

    async def get_light(self) -> SomneoLight:
        return SomneoLight.from_payload(await self._transport.get(PATH_LIGHT))

    async def set_main_light(self, enabled: bool, brightness: int | None = None) -> SomneoLight:
        payload: Dict[str, Any] = {"onoff": bool(enabled), "tempy": False, "ngtlt": False}
        if brightness is not None:
            payload["ltlvl"] = int(brightness)
        return SomneoLight.from_payload(await self._transport.put(PATH_LIGHT, payload))

    async def set_main_light_brightness(self, brightness: int) -> SomneoLight:
        return SomneoLight.from_payload(await self._transport.put(PATH_LIGHT, {"ltlvl": int(brightness)}))

    async def set_night_light(self, enabled: bool) -> SomneoLight:
        payload = {"onoff": False, "tempy": False, "ngtlt": bool(enabled)}
        return SomneoLight.from_payload(await self._transport.put(PATH_LIGHT, payload))

    async def set_sunrise_preview(self, enabled: bool, color_scheme: int) -> SomneoLight:
        payload = {"onoff": bool(enabled), "tempy": bool(enabled), "ctype": int(color_scheme), "ngtlt": False}
        return SomneoLight.from_payload(await self._transport.put(PATH_LIGHT, payload))

    # Programs

    async def get_sunset(self) -> bool:
        return bool((await self._transport.get(PATH_SUNSET)).get("onoff", False))

    async def set_sunset(self, request: SunsetRequest) -> bool:
        data = await self._transport.put(PATH_SUNSET, request.payload())
        return bool(data.get("onoff", request.enabled))

    async def get_relax_breathe(self) -> bool:
        return bool((await self._transport.get(PATH_RELAX)).get("onoff", False))

    async def set_relax_breathe(self, request: RelaxBreatheRequest) -> bool:
        data = await self._transport.put(PATH_RELAX, request.payload())
        return bool(data.get("onoff", request.enabled))

    async def get_bedtime_tracking(self) -> bool:
        return bool((await self._transport.get(PATH_BEDTIME)).get("night", False))

    async def set_bedtime_tracking(self, enabled: bool) -> bool:
        data = await self._transport.put(PATH_BEDTIME, {"night": bool(enabled)})
        return bool(data.get("night", enabled))

    # Alarms

    async def _alarm_states(self) -> Dict[str, List[Any]]:
        return await self._transport.get(PATH_ALARMS_STATE)

    async def list_alarms(self) -> List[DeviceAlarmSlot]:
        """Return the activated alarm slots, joined across both alarm endpoints."""
        states = await self._alarm_states()
        schedules = await self._transport.get(PATH_ALARMS_SCHEDULE)

        enabled = states.get("prfen") or []
        activated = states.get("prfvs") or []
        pwrsv = states.get("pwrsv") or []
        count = min(len(activated), MAX_ALARM_SLOTS)

        slots: List[DeviceAlarmSlot] = []
        for index in range(count):
            if not activated[index]:
                continue
            hour = int(_at(schedules.get("almhr"), index, 0))
            minute = int(_at(schedules.get("almmn"), index, 0))
            slots.append(
                DeviceAlarmSlot(
                    slot_id=index + 1,
                    enabled=bool(_at(enabled, index, False)),
                    hour=hour,
                    minute=minute,
                    repetition=int(_at(schedules.get("daynm"), index, 0)),
                    power_wake=_power_wake_offset(pwrsv, index, len(activated), hour, minute),
                )
            )
        return slots

    async def find_free_slot(self) -> int:
        """Return the lowest free slot id."""
        activated = (await self._alarm_states()).get("prfvs") or []
        for index in range(min(len(activated), MAX_ALARM_SLOTS)):
            if not activated[index]:
                return index + 1
        raise SlotExhaustedError(f"All {MAX_ALARM_SLOTS} alarm slots are in use")

    async def set_alarm(self, request: AlarmRequest) -> DeviceAlarmSlot:
        """Write ``request`` into the first free slot (first fit, ascending)."""
        slot_id = await self.find_free_slot()
        data = await self._transport.put(PATH_ALARM_SLOT, request.payload(slot_id))
        _LOGGER.debug("Alarm stored in slot %s", slot_id)
        if data.get("almhr") is None:
            return request.as_slot(slot_id)
        return _slot_from_payload(data, slot_id)

    async def toggle_alarm(self, slot_id: int, enabled: bool) -> DeviceAlarmSlot:
        data = await self._transport.put(
            PATH_ALARM_SLOT, {"prfnr": int(slot_id), "prfen": bool(enabled), "prfvs": True}
        )
        return _slot_from_payload(data, slot_id)

    async def delete_alarm(self, slot_id: int) -> None:
        """Free a slot. The device only deactivates it."""
        await self._transport.put(PATH_ALARM_SLOT, {"prfnr": int(slot_id), "prfen": False, "prfvs": False})

    # Event feed

    async def get_last_event(self) -> LastEvent:
        data = await self._transport.get(PATH_LAST_EVENT)
        return LastEvent(name=str(data.get("event") or ""), light_level=data.get("ltlvl"))

    @staticmethod
    def map_event(event: LastEvent) -> tuple[str, bool] | None:
        """Return (function, value) for a known event name."""
        return DEVICE_EVENTS.get(event.name)

    # Radio and player

    async def get_radio_presets(self) -> Dict[str, str]:
        data = await self._transport.get(PATH_RADIO)
        return {str(key): str(value) for key, value in data.items() if str(key).isdigit() and value}

    async def set_radio_preset(self, channel: str, frequency: str) -> Dict[str, str]:
        data = await self._transport.put(PATH_RADIO, {str(channel): str(frequency)})
        return {str(key): str(value) for key, value in data.items() if str(key).isdigit() and value}

    async def get_player(self) -> Dict[str, Any]:
        return await self._transport.get(PATH_PLAYER)

    async def set_player(
        self,
        enabled: bool,
        source: str | None = None,
        channel: str | None = None,
        volume: int | None = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"onoff": bool(enabled), "tempy": False}
        if source is not None:
            payload["snddv"] = source
        if channel is not None:
            payload["sndch"] = str(channel)
        if volume is not None:
            payload["sdvol"] = int(volume)
        return await self._transport.put(PATH_PLAYER, payload)

    async def probe(self) -> bool:
        """Return True when the device answers a status read."""
        try:
            await self.get_statuses()
        except TransportError as ex:
            _LOGGER.debug("Probe of %s failed: %s", self.host, ex)
            return False
        return True
