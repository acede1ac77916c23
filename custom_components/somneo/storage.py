"""Persistent storage for alarm links and the polling flag."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict

from .const import STORAGE_SCHEMA_VERSION
from .models import AlarmLink

_LOGGER = logging.getLogger(__name__)


@dataclass
class StoredState:
    links: Dict[int, AlarmLink] = field(default_factory=dict)
    polling_enabled: bool = True


def _decode(raw) -> StoredState:
    if not isinstance(raw, dict) or raw.get("__schema_version") != STORAGE_SCHEMA_VERSION:
        return StoredState()

    links: Dict[int, AlarmLink] = {}
    payload = raw.get("links")
    if isinstance(payload, dict):
        for key, value in payload.items():
            if not isinstance(value, dict):
                continue
            try:
                slot_id = int(key)
            except (TypeError, ValueError):
                _LOGGER.debug("Ignoring malformed link key %r", key)
                continue
            links[slot_id] = AlarmLink(
                capability_id=value.get("capability_id"),
                external_id=value.get("external_id"),
            )
    return StoredState(links=links, polling_enabled=bool(raw.get("polling_enabled", True)))


class SomneoStorage:
    """JSON document under ``<config>/.storage`` keyed by config entry."""

    def __init__(self, config_dir: str, entry_id: str, hass=None) -> None:
        self._hass = hass
        self._config_dir = config_dir
        self._entry_id = entry_id

    def _path(self) -> str:
        filename = f"somneo_{self._entry_id}.json"
        if self._hass is not None:
            return self._hass.config.path(".storage", filename)
        return os.path.join(self._config_dir, ".storage", filename)

    async def _run(self, func, *args):
        if self._hass is not None:
            return await self._hass.async_add_executor_job(func, *args)
        return func(*args)

    async def async_load(self) -> StoredState:
        def _read() -> StoredState:
            path = self._path()
            if not os.path.exists(path):
                return StoredState()
            try:
                with open(path, "r", encoding="utf-8") as f_handle:
                    raw = json.load(f_handle)
            except (OSError, ValueError) as ex:
                _LOGGER.warning("Could not read %s, starting fresh: %s", path, ex)
                return StoredState()
            return _decode(raw)

        return await self._run(_read)

    async def async_save(self, state: StoredState) -> None:
        def _write() -> None:
            path = self._path()
            payload = {
                "__schema_version": STORAGE_SCHEMA_VERSION,
                "polling_enabled": state.polling_enabled,
                "links": {
                    str(slot_id): {
                        "capability_id": link.capability_id,
                        "external_id": link.external_id,
                    }
                    for slot_id, link in sorted(state.links.items())
                },
            }
            os.makedirs(os.path.dirname(path), exist_ok=True)
            tmp_path = f"{path}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as f_handle:
                json.dump(payload, f_handle, ensure_ascii=False)
            os.replace(tmp_path, path)

        await self._run(_write)

    async def async_remove(self) -> None:
        def _remove() -> None:
            path = self._path()
            if os.path.exists(path):
                os.remove(path)

        await self._run(_remove)
