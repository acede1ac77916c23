"""Two-way alarm sync between device slots and the platform alarm list.

Every pass converges from scratch:

1. read the activated device slots and the persisted slot links
2. prune links and switches whose slot is gone, deleting the mirrored
   platform alarm
3. per slot, ensure the switch, mirror the device values, and (when two-way
   sync is on) create or update the mirrored platform alarm; a platform alarm
   that vanished frees the device slot
4. adopt prefixed platform alarms that are not linked yet into free slots
5. persist the links when they changed

The device owns time/enabled/repetition of an existing slot; the platform
only originates new slots. Failures are contained per slot or alarm.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Set

from .alarm_manager import AlarmManager
from .api import SomneoClient
from .capabilities import CapabilityManager, capability_id
from .config import SomneoOptions
from .const import MAX_ALARM_SLOTS
from .exceptions import SlotExhaustedError, StaleReferenceError, TransportError
from .models import AlarmLink, AlarmRequest, DeviceAlarmSlot, ExternalAlarm, parse_time
from .repetition import from_weekday_map, to_weekday_map

_LOGGER = logging.getLogger(__name__)

MAX_ALARMS_WARNING = "Maximum number of alarms reached on the Somneo; remove an alarm to add new ones."


@dataclass
class ReconcileResult:
    created: int = 0
    removed: int = 0
    exported: int = 0
    updated: int = 0
    adopted: int = 0
    failures: int = 0
    exhausted: bool = False
    links_changed: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.created or self.removed or self.exported or self.updated or self.adopted or self.links_changed)


class AlarmReconciler:
    def __init__(
        self,
        client: SomneoClient,
        capabilities: CapabilityManager,
        alarm_manager: AlarmManager,
        options: Callable[[], SomneoOptions],
        persist: Callable[[Dict[int, AlarmLink]], Awaitable[None]],
        notify: Callable[[str], Awaitable[None]],
        links: Optional[Dict[int, AlarmLink]] = None,
    ):
        self._client = client
        self._capabilities = capabilities
        self._alarm_manager = alarm_manager
        self._options = options
        self._persist = persist
        self._notify = notify
        self._links: Dict[int, AlarmLink] = dict(links or {})
        self._lock = asyncio.Lock()

    @property
    def links(self) -> Dict[int, AlarmLink]:
        return dict(self._links)

    def load_links(self, links: Dict[int, AlarmLink]) -> None:
        self._links = dict(links)

    async def async_reconcile(self) -> Optional[ReconcileResult]:
        """Run one pass. Returns None when the device could not be read."""
        async with self._lock:
            return await self._reconcile()

    async def _reconcile(self) -> Optional[ReconcileResult]:
        options = self._options()
        try:
            slots = await self._client.list_alarms()
        except TransportError as ex:
            _LOGGER.warning("Alarm sync skipped, device unreachable: %s", ex)
            return None

        external: Optional[Dict[str, ExternalAlarm]] = None
        if options.alarms_device_sync:
            try:
                external = {alarm.alarm_id: alarm for alarm in await self._alarm_manager.async_list()}
            except Exception as ex:  # pylint: disable=broad-except
                _LOGGER.warning("Platform alarms unavailable, syncing device side only: %s", ex)

        links = dict(self._links)
        before = dict(links)
        result = ReconcileResult()

        present = {slot.slot_id for slot in slots}
        gone = sorted((set(links) | self._capabilities.slots) - present)
        freed: Set[int] = set()
        await asyncio.gather(*(self._prune(slot_id, links, external, result) for slot_id in gone))
        await asyncio.gather(
            *(self._converge(slot, links, external, options, result, freed) for slot in slots)
        )

        if external is not None:
            occupied = present - freed
            await self._adopt(links, external, options, result, MAX_ALARM_SLOTS - len(occupied))

        if links != before:
            result.links_changed = True
            self._links = links
            await self._persist(dict(links))

        if result.changed:
            _LOGGER.info(
                "Alarm sync: %s added, %s removed, %s exported, %s updated, %s adopted, %s failed",
                result.created,
                result.removed,
                result.exported,
                result.updated,
                result.adopted,
                result.failures,
            )
        else:
            _LOGGER.debug("Alarm sync: no changes (%s slots)", len(slots))
        return result

    async def _delete_external(self, alarm_id: str) -> None:
        try:
            await self._alarm_manager.async_delete(alarm_id)
        except StaleReferenceError:
            _LOGGER.debug("Platform alarm %s was already gone", alarm_id)

    async def _prune(
        self,
        slot_id: int,
        links: Dict[int, AlarmLink],
        external: Optional[Dict[str, ExternalAlarm]],
        result: ReconcileResult,
    ) -> None:
        link = links.get(slot_id)
        try:
            await self._capabilities.async_remove(slot_id)
            if link is not None and link.external_id:
                await self._delete_external(link.external_id)
                # Deleted alarms are no longer adoption candidates
                if external is not None:
                    external.pop(link.external_id, None)
            links.pop(slot_id, None)
            result.removed += 1
            _LOGGER.debug("Slot %s no longer on the device, unlinked", slot_id)
        except Exception as ex:  # pylint: disable=broad-except
            result.failures += 1
            _LOGGER.warning("Could not unlink alarm slot %s: %s", slot_id, ex)

    async def _converge(
        self,
        slot: DeviceAlarmSlot,
        links: Dict[int, AlarmLink],
        external: Optional[Dict[str, ExternalAlarm]],
        options: SomneoOptions,
        result: ReconcileResult,
        freed: Set[int],
    ) -> None:
        try:
            link = links.get(slot.slot_id)
            if not self._capabilities.has(slot.slot_id):
                self._capabilities.create(slot)
                result.created += 1
            else:
                self._capabilities.update(slot)
            if link is None or link.capability_id != capability_id(slot.slot_id):
                link = AlarmLink(
                    capability_id=capability_id(slot.slot_id),
                    external_id=link.external_id if link else None,
                )
                links[slot.slot_id] = link

            if external is None:
                return

            repetition = to_weekday_map(slot.repetition)
            if link.external_id is None:
                name = f"{options.alarms_generative_name} #{slot.slot_id}"
                alarm_id = await self._alarm_manager.async_create(name, slot.time, slot.enabled, repetition)
                links[slot.slot_id] = link.with_external(alarm_id)
                result.exported += 1
                _LOGGER.info("Alarm #%s mirrored to platform alarm %s", slot.slot_id, name)
                await self._notify(f"Alarm **{name}** was created")
                return

            current = external.get(link.external_id)
            if current is None:
                raise StaleReferenceError(link.external_id)
            if current.matches(slot.time, slot.enabled, repetition):
                return
            await self._alarm_manager.async_update(link.external_id, slot.time, slot.enabled, repetition)
            result.updated += 1
        except StaleReferenceError:
            await self._release(slot.slot_id, links, result, freed)
        except Exception as ex:  # pylint: disable=broad-except
            result.failures += 1
            _LOGGER.warning("Could not sync alarm slot %s: %s", slot.slot_id, ex)

    async def _release(
        self, slot_id: int, links: Dict[int, AlarmLink], result: ReconcileResult, freed: Set[int]
    ) -> None:
        """The platform alarm was deleted: free the device slot too."""
        _LOGGER.info("Platform alarm for slot %s was deleted, freeing the slot", slot_id)
        try:
            await self._client.delete_alarm(slot_id)
            freed.add(slot_id)
            await self._capabilities.async_remove(slot_id)
            links.pop(slot_id, None)
            result.removed += 1
        except Exception as ex:  # pylint: disable=broad-except
            result.failures += 1
            _LOGGER.warning("Could not free alarm slot %s: %s", slot_id, ex)

    async def _adopt(
        self,
        links: Dict[int, AlarmLink],
        external: Dict[str, ExternalAlarm],
        options: SomneoOptions,
        result: ReconcileResult,
        free: int,
    ) -> None:
        linked = {link.external_id for link in links.values() if link.external_id}
        candidates: List[ExternalAlarm] = sorted(
            (
                alarm
                for alarm in external.values()
                if alarm.name.startswith(options.alarms_generative_name) and alarm.alarm_id not in linked
            ),
            key=lambda alarm: (alarm.name, alarm.alarm_id),
        )

        # Sequential: each write claims the lowest free slot
        for alarm in candidates:
            if free <= 0:
                await self._exhausted(alarm, result)
                return
            try:
                hour, minute = parse_time(alarm.time)
                request = AlarmRequest(
                    hour=hour,
                    minute=minute,
                    repetition=from_weekday_map(alarm.repetition),
                    enabled=alarm.enabled,
                )
                slot = await self._client.set_alarm(request)
            except SlotExhaustedError:
                await self._exhausted(alarm, result)
                return
            except Exception as ex:  # pylint: disable=broad-except
                result.failures += 1
                _LOGGER.warning("Could not adopt platform alarm %s: %s", alarm.alarm_id, ex)
                continue

            self._capabilities.create(slot)
            links[slot.slot_id] = AlarmLink(capability_id=capability_id(slot.slot_id), external_id=alarm.alarm_id)
            result.adopted += 1
            free -= 1
            _LOGGER.info("Platform alarm %s adopted into slot %s", alarm.name, slot.slot_id)

    async def _exhausted(self, alarm: ExternalAlarm, result: ReconcileResult) -> None:
        result.exhausted = True
        _LOGGER.warning("No free alarm slot for platform alarm %s (%s)", alarm.alarm_id, alarm.name)
        await self._notify(MAX_ALARMS_WARNING)
