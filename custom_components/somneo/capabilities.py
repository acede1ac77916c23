"""Lifecycle of the per-alarm toggle entities.

Each activated device slot is mirrored by one switch. The manager keeps an
explicit registry of the switch and its toggle listener per slot id; a
listener is only reachable while its switch exists.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from homeassistant.components.switch import SwitchEntity  # type: ignore
from homeassistant.exceptions import HomeAssistantError  # type: ignore
from homeassistant.helpers import entity_registry as er  # type: ignore

from .const import DOMAIN
from .entity import SomneoEntity
from .exceptions import TransportError
from .models import DeviceAlarmSlot
from .repetition import decode

_LOGGER = logging.getLogger(__name__)

ToggleListener = Callable[[bool], Awaitable[None]]


def capability_id(slot_id: int) -> str:
    return f"alarm_{slot_id}"


class SomneoAlarmSwitch(SomneoEntity, SwitchEntity):
    """Toggle for one device alarm slot; its name is the alarm time."""

    _attr_icon = "mdi:alarm"

    def __init__(self, hub, manager: "CapabilityManager", slot: DeviceAlarmSlot):
        super().__init__(hub, capability_id(slot.slot_id))
        self._manager = manager
        self._slot = slot

    @property
    def slot_id(self) -> int:
        return self._slot.slot_id

    @property
    def slot(self) -> DeviceAlarmSlot:
        return self._slot

    @property
    def name(self) -> str:
        return self._slot.title

    @property
    def is_on(self) -> bool:
        return self._slot.enabled

    @property
    def extra_state_attributes(self) -> Dict[str, Any]:
        return {
            "slot": self._slot.slot_id,
            "time": self._slot.time,
            "days": sorted(decode(self._slot.repetition)),
            "power_wake": self._slot.power_wake,
        }

    def apply(self, slot: DeviceAlarmSlot) -> bool:
        """Mirror ``slot``; returns True when anything visible changed."""
        if slot == self._slot:
            return False
        self._slot = slot
        if self.hass is not None:
            self.async_write_ha_state()
        return True

    async def async_turn_on(self, **kwargs):
        await self._manager.async_dispatch(self._slot.slot_id, True)

    async def async_turn_off(self, **kwargs):
        await self._manager.async_dispatch(self._slot.slot_id, False)


class CapabilityManager:
    """Adds and removes alarm switches and binds their toggle listeners."""

    def __init__(
        self,
        hub,
        toggle: Callable[[int, bool], Awaitable[DeviceAlarmSlot]],
        hass=None,
    ):
        self._hub = hub
        self._hass = hass
        self._toggle = toggle
        self._entities: Dict[int, SomneoAlarmSwitch] = {}
        self._listeners: Dict[int, ToggleListener] = {}
        self._add_entities: Optional[Callable[[list], None]] = None
        self._pending: list[SomneoAlarmSwitch] = []
        self._uid_pattern = re.compile(rf"^{re.escape(hub.entry_id)}_alarm_(\d+)$")

    def bind(self, add_entities: Callable[[list], None]) -> None:
        """Attach the switch platform's add callback and flush queued switches."""
        self._add_entities = add_entities
        if self._pending:
            pending, self._pending = self._pending, []
            add_entities(pending)

    @property
    def slots(self) -> set[int]:
        return set(self._entities)

    def has(self, slot_id: int) -> bool:
        return slot_id in self._entities

    def get(self, slot_id: int) -> Optional[SomneoAlarmSwitch]:
        return self._entities.get(slot_id)

    def listener(self, slot_id: int) -> Optional[ToggleListener]:
        return self._listeners.get(slot_id)

    def _make_listener(self, slot_id: int) -> ToggleListener:
        async def _listener(value: bool) -> None:
            updated = await self._toggle(slot_id, value)
            self.update(updated)

        return _listener

    def create(self, slot: DeviceAlarmSlot) -> str:
        """Add the switch for ``slot`` and register its listener."""
        if slot.slot_id in self._entities:
            self.update(slot)
            return capability_id(slot.slot_id)

        entity = SomneoAlarmSwitch(self._hub, self, slot)
        self._entities[slot.slot_id] = entity
        self._listeners[slot.slot_id] = self._make_listener(slot.slot_id)
        if self._add_entities is not None:
            self._add_entities([entity])
        else:
            self._pending.append(entity)
        _LOGGER.debug("Added alarm switch for slot %s (%s)", slot.slot_id, slot.title)
        return capability_id(slot.slot_id)

    def update(self, slot: DeviceAlarmSlot) -> bool:
        entity = self._entities.get(slot.slot_id)
        if entity is None:
            return False
        return entity.apply(slot)

    async def async_remove(self, slot_id: int) -> bool:
        """Remove the switch and unregister its listener."""
        self._listeners.pop(slot_id, None)
        entity = self._entities.pop(slot_id, None)
        if entity is None:
            return self._remove_registered(slot_id)
        if entity in self._pending:
            self._pending.remove(entity)

        if entity.hass is not None:
            registry = er.async_get(entity.hass)
            if entity.entity_id and registry.async_get(entity.entity_id):
                registry.async_remove(entity.entity_id)
            else:
                await entity.async_remove(force_remove=True)
        _LOGGER.debug("Removed alarm switch for slot %s", slot_id)
        return True

    def _remove_registered(self, slot_id: int) -> bool:
        """Remove a registry entry kept from an earlier run that has no live switch."""
        if self._hass is None:
            return False
        registry = er.async_get(self._hass)
        unique_id = f"{self._hub.entry_id}_{capability_id(slot_id)}"
        entity_id = registry.async_get_entity_id("switch", DOMAIN, unique_id)
        if entity_id is None:
            return False
        registry.async_remove(entity_id)
        _LOGGER.debug("Removed registered alarm switch %s for slot %s", entity_id, slot_id)
        return True

    async def async_dispatch(self, slot_id: int, value: bool) -> None:
        """Route a user toggle to the slot's listener."""
        listener = self._listeners.get(slot_id)
        if listener is None:
            raise HomeAssistantError(f"Alarm slot {slot_id} no longer exists")
        try:
            await listener(value)
        except TransportError as ex:
            raise HomeAssistantError(f"Could not toggle alarm {slot_id}: {ex}") from ex

    async def async_sweep_stale(self, keep: Iterable[int]) -> int:
        """Drop alarm entities left in the registry for slots that are not linked."""
        if self._hass is None:
            return 0
        keep_set = set(keep)
        registry = er.async_get(self._hass)
        removed = 0
        for reg_entry in list(er.async_entries_for_config_entry(registry, self._hub.entry_id)):
            match = self._uid_pattern.match(reg_entry.unique_id or "")
            if not match:
                continue
            slot_id = int(match.group(1))
            if slot_id in keep_set or slot_id in self._entities:
                continue
            registry.async_remove(reg_entry.entity_id)
            removed += 1
        if removed:
            _LOGGER.debug("Swept %d stale alarm entities", removed)
        return removed

    async def async_clear(self) -> None:
        for slot_id in list(self._entities):
            self._listeners.pop(slot_id, None)
            self._entities.pop(slot_id, None)
        self._pending = []
