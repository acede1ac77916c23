"""Platform-side alarm list consumed by the alarm reconciler."""
from __future__ import annotations

import asyncio
import json
import logging
import os
import uuid
from typing import Dict, List, Optional, Protocol

from .const import STORAGE_SCHEMA_VERSION
from .exceptions import StaleReferenceError
from .models import ExternalAlarm, parse_time

_LOGGER = logging.getLogger(__name__)

ALARMS_FILENAME = "somneo_alarms.json"


class AlarmManager(Protocol):
    """Create/update/delete/list interface of the platform alarm list.

    ``async_update`` and ``async_delete`` raise StaleReferenceError when the
    alarm no longer exists.
    """

    async def async_list(self) -> List[ExternalAlarm]:
        ...

    async def async_create(self, name: str, time: str, enabled: bool, repetition: Dict[str, bool]) -> str:
        ...

    async def async_update(self, alarm_id: str, time: str, enabled: bool, repetition: Dict[str, bool]) -> None:
        ...

    async def async_delete(self, alarm_id: str) -> None:
        ...


class LocalAlarmManager:
    """Alarm list persisted in the Home Assistant config directory.

    Writes are serialized with a lock; reads return copies.
    """

    def __init__(self, config_dir: str, hass=None) -> None:
        self._hass = hass
        self._config_dir = config_dir
        self._alarms: Dict[str, ExternalAlarm] = {}
        self._loaded = False
        self._lock = asyncio.Lock()

    def _path(self) -> str:
        if self._hass is not None:
            return self._hass.config.path(".storage", ALARMS_FILENAME)
        return os.path.join(self._config_dir, ".storage", ALARMS_FILENAME)

    async def _run(self, func, *args):
        if self._hass is not None:
            return await self._hass.async_add_executor_job(func, *args)
        return func(*args)

    async def async_load(self) -> None:
        def _read() -> Dict[str, ExternalAlarm]:
            path = self._path()
            if not os.path.exists(path):
                return {}
            try:
                with open(path, "r", encoding="utf-8") as f_handle:
                    raw = json.load(f_handle)
            except (OSError, ValueError) as ex:
                _LOGGER.warning("Could not read %s: %s", path, ex)
                return {}
            if not isinstance(raw, dict) or raw.get("__schema_version") != STORAGE_SCHEMA_VERSION:
                return {}
            out: Dict[str, ExternalAlarm] = {}
            for item in raw.get("alarms") or []:
                if not isinstance(item, dict) or "id" not in item:
                    continue
                alarm = ExternalAlarm.from_dict(item)
                out[alarm.alarm_id] = alarm
            return out

        async with self._lock:
            if self._loaded:
                return
            self._alarms = await self._run(_read)
            self._loaded = True
            _LOGGER.debug("Loaded %d platform alarms", len(self._alarms))

    async def _save(self) -> None:
        payload = {
            "__schema_version": STORAGE_SCHEMA_VERSION,
            "alarms": [alarm.as_dict() for alarm in self._alarms.values()],
        }

        def _write() -> None:
            path = self._path()
            os.makedirs(os.path.dirname(path), exist_ok=True)
            tmp_path = f"{path}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as f_handle:
                json.dump(payload, f_handle, ensure_ascii=False)
            os.replace(tmp_path, path)

        await self._run(_write)

    async def async_list(self) -> List[ExternalAlarm]:
        await self.async_load()
        return list(self._alarms.values())

    async def async_get(self, alarm_id: str) -> Optional[ExternalAlarm]:
        await self.async_load()
        return self._alarms.get(alarm_id)

    async def async_create(self, name: str, time: str, enabled: bool = True, repetition: Dict[str, bool] | None = None) -> str:
        parse_time(time)
        await self.async_load()
        async with self._lock:
            alarm_id = uuid.uuid4().hex
            self._alarms[alarm_id] = ExternalAlarm(
                alarm_id=alarm_id,
                name=name,
                time=time,
                enabled=enabled,
                repetition=dict(repetition or {}),
            )
            await self._save()
        _LOGGER.debug("Created platform alarm %s (%s)", alarm_id, name)
        return alarm_id

    async def async_update(self, alarm_id: str, time: str, enabled: bool, repetition: Dict[str, bool]) -> None:
        await self.async_load()
        async with self._lock:
            current = self._alarms.get(alarm_id)
            if current is None:
                raise StaleReferenceError(f"Platform alarm {alarm_id} does not exist")
            self._alarms[alarm_id] = ExternalAlarm(
                alarm_id=alarm_id,
                name=current.name,
                time=time,
                enabled=enabled,
                repetition=dict(repetition),
            )
            await self._save()

    async def async_delete(self, alarm_id: str) -> None:
        await self.async_load()
        async with self._lock:
            if self._alarms.pop(alarm_id, None) is None:
                raise StaleReferenceError(f"Platform alarm {alarm_id} does not exist")
            await self._save()
        _LOGGER.debug("Deleted platform alarm %s", alarm_id)
