"""Device session: owns the transport, polling, alarm sync and state of one Somneo."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from homeassistant.helpers.device_registry import DeviceInfo  # type: ignore
from homeassistant.helpers.event import async_call_later  # type: ignore

from .alarm_manager import AlarmManager
from .api import SomneoClient
from .capabilities import CapabilityManager
from .config import SomneoOptions
from .const import (
    CONF_ALARMS_SYNC,
    CONF_DISPLAY_ALWAYS_ON,
    CONF_DISPLAY_BRIGHTNESS,
    CONF_SUNRISE_COLOR,
    DOMAIN,
    FUNC_BEDTIME,
    FUNC_MAIN_LIGHT,
    FUNC_NIGHT_LIGHT,
    FUNC_RELAX,
    FUNC_SUNRISE_PREVIEW,
    FUNC_SUNSET,
    JOB_ALARMS,
    JOB_FUNCTIONS,
    JOB_SENSORS,
    MANUFACTURER,
    MODEL,
    SOUND_RADIO,
)
from .exceptions import TransportError
from .models import AlarmLink, AlarmRequest, DeviceAlarmSlot, SomneoState
from .reconciler import AlarmReconciler, ReconcileResult
from .scheduler import PollingScheduler
from .storage import SomneoStorage, StoredState
from .transport import SomneoTransport

_LOGGER = logging.getLogger(__name__)

PREVIEW_RESTART_DELAY = 5

# Functions whose state comes from the light read, not the event feed
_LIGHT_FUNCTIONS = {FUNC_MAIN_LIGHT, FUNC_NIGHT_LIGHT, FUNC_SUNRISE_PREVIEW}


class SomneoHub:
    """Long-lived session for one config entry, started and stopped with it."""

    def __init__(
        self,
        hass,
        entry_id: str,
        name: str,
        client: SomneoClient,
        storage: SomneoStorage,
        alarm_manager: AlarmManager,
        options: SomneoOptions,
    ):
        self.hass = hass
        self.entry_id = entry_id
        self.name = name
        self.client = client
        self.options = options
        self.state = SomneoState()
        self._storage = storage
        self._stored = StoredState()
        self._listeners: List[Callable[[], None]] = []
        self._preview_unsub: Optional[Callable[[], None]] = None

        self.capabilities = CapabilityManager(self, self.client.toggle_alarm, hass)
        self.reconciler = AlarmReconciler(
            client,
            self.capabilities,
            alarm_manager,
            options=lambda: self.options,
            persist=self._async_persist_links,
            notify=self.async_notify,
        )
        self.scheduler = self._build_scheduler(enabled=True)

    def _build_scheduler(self, enabled: bool) -> PollingScheduler:
        return PollingScheduler(
            self.hass,
            {
                JOB_SENSORS: self.async_sync_sensors,
                JOB_FUNCTIONS: self.async_sync_functions,
                JOB_ALARMS: self.async_sync_alarms,
            },
            self.options.intervals(),
            persist_enabled=self._async_persist_polling,
            enabled=enabled,
        )

    @classmethod
    async def create(cls, hass, entry, alarm_manager: AlarmManager, options: SomneoOptions) -> "SomneoHub":
        """Async-safe constructor."""
        host = entry.data["host"]
        transport = await SomneoTransport.create(host, hass)
        storage = SomneoStorage(hass.config.config_dir, entry.entry_id, hass)
        return cls(hass, entry.entry_id, entry.title, SomneoClient(transport), storage, alarm_manager, options)

    @property
    def host(self) -> str:
        return self.client.host

    @property
    def device_info(self) -> DeviceInfo:
        return DeviceInfo(
            identifiers={(DOMAIN, self.host)},
            name=self.name,
            manufacturer=MANUFACTURER,
            model=MODEL,
            configuration_url=f"https://{self.host}",
        )

    @property
    def polling_enabled(self) -> bool:
        return self.scheduler.enabled

    # Listeners

    def async_add_listener(self, update_callback: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(update_callback)

        def _remove() -> None:
            if update_callback in self._listeners:
                self._listeners.remove(update_callback)

        return _remove

    def _async_notify_listeners(self) -> None:
        for update_callback in list(self._listeners):
            update_callback()

    # Lifecycle

    async def async_load(self) -> None:
        """Restore persisted links and drop alarm entities nobody links to."""
        self._stored = await self._storage.async_load()
        self.reconciler.load_links(self._stored.links)
        self.scheduler = self._build_scheduler(enabled=self._stored.polling_enabled)
        await self.capabilities.async_sweep_stale(self._stored.links)

    async def async_start(self) -> None:
        await self.async_sync_sensors()
        await self.async_sync_functions()
        await self.async_sync_alarms()
        await self.async_refresh_radio()
        self.scheduler.async_start()
        _LOGGER.debug("Somneo %s started (polling=%s)", self.host, self.scheduler.enabled)

    async def async_stop(self) -> None:
        self.scheduler.async_stop()
        if self._preview_unsub is not None:
            self._preview_unsub()
            self._preview_unsub = None
        await self.client.close()

    async def async_remove_storage(self) -> None:
        await self._storage.async_remove()

    async def _async_persist_links(self, links: Dict[int, AlarmLink]) -> None:
        self._stored.links = dict(links)
        await self._storage.async_save(self._stored)

    async def _async_persist_polling(self, enabled: bool) -> None:
        self._stored.polling_enabled = enabled
        await self._storage.async_save(self._stored)

    async def async_notify(self, message: str) -> None:
        await self.hass.services.async_call(
            "persistent_notification",
            "create",
            {
                "title": self.name,
                "message": message,
                "notification_id": f"{DOMAIN}_{self.entry_id}",
            },
        )

    # Polling jobs

    async def async_sync_sensors(self) -> None:
        """Read the sensors; this read doubles as the availability probe."""
        try:
            sensors = await self.client.get_sensors()
        except TransportError as ex:
            if self.state.available:
                _LOGGER.warning("Somneo %s is not responding: %s", self.host, ex)
            self.state.available = False
            self._async_notify_listeners()
            return

        if not self.state.available:
            _LOGGER.info("Somneo %s is available", self.host)
        self.state.available = True
        self.state.sensors = sensors
        self._async_notify_listeners()

    async def async_sync_functions(self) -> None:
        try:
            light = await self.client.get_light()
            event = await self.client.get_last_event()
        except TransportError as ex:
            _LOGGER.debug("Skipping function refresh: %s", ex)
            return

        self.state.light = light
        functions = self.state.functions
        functions[FUNC_MAIN_LIGHT] = light.main_light
        functions[FUNC_NIGHT_LIGHT] = light.night_light
        functions[FUNC_SUNRISE_PREVIEW] = light.sunrise_preview

        mapped = self.client.map_event(event)
        if mapped is None:
            _LOGGER.debug("Ignoring device event %r", event.name)
        elif mapped[0] not in _LIGHT_FUNCTIONS:
            functions[mapped[0]] = mapped[1]
            _LOGGER.debug("Last device event: %s", event.name)
        self._async_notify_listeners()

    async def async_sync_alarms(self) -> Optional[ReconcileResult]:
        return await self.reconciler.async_reconcile()

    async def async_force_sync(self) -> Optional[ReconcileResult]:
        _LOGGER.debug("Forced alarm sync for %s", self.host)
        return await self.reconciler.async_reconcile()

    async def async_refresh_radio(self) -> Dict[str, str]:
        try:
            self.state.radio_presets = await self.client.get_radio_presets()
            player = await self.client.get_player()
        except TransportError as ex:
            _LOGGER.debug("Radio presets unavailable: %s", ex)
            return self.state.radio_presets
        self.state.player_on = bool(player.get("onoff", False))
        self.state.player_source = player.get("snddv")
        self.state.player_channel = str(player.get("sndch")) if player.get("sndch") is not None else None
        self._async_notify_listeners()
        return self.state.radio_presets

    # Commands

    def _apply_light(self, light) -> None:
        self.state.light = light
        self.state.functions[FUNC_MAIN_LIGHT] = light.main_light
        self.state.functions[FUNC_NIGHT_LIGHT] = light.night_light
        self.state.functions[FUNC_SUNRISE_PREVIEW] = light.sunrise_preview
        self._async_notify_listeners()

    async def async_set_main_light(self, enabled: bool, brightness: int | None = None) -> None:
        self._apply_light(await self.client.set_main_light(enabled, brightness))

    async def async_set_night_light(self, enabled: bool) -> None:
        self._apply_light(await self.client.set_night_light(enabled))

    async def async_set_sunrise_preview(self, enabled: bool) -> None:
        self._apply_light(await self.client.set_sunrise_preview(enabled, self.options.sunrise_color_scheme))

    async def async_set_function(self, function: str, enabled: bool) -> None:
        if function == FUNC_SUNSET:
            value = await self.client.set_sunset(self.options.sunset_request(enabled))
        elif function == FUNC_RELAX:
            value = await self.client.set_relax_breathe(self.options.relax_request(enabled))
        elif function == FUNC_BEDTIME:
            value = await self.client.set_bedtime_tracking(enabled)
        elif function == FUNC_SUNRISE_PREVIEW:
            await self.async_set_sunrise_preview(enabled)
            return
        else:
            raise ValueError(f"Unknown Somneo function {function}")
        self.state.functions[function] = value
        self._async_notify_listeners()

    async def async_factory_reset(self) -> None:
        await self.client.factory_reset()

    async def async_toggle_polling(self) -> bool:
        enabled = await self.scheduler.async_toggle()
        await self.async_notify(f"{self.name} polling interval {'enabled' if enabled else 'disabled'}")
        self._async_notify_listeners()
        return enabled

    async def async_set_always_on_display(self, enabled: bool) -> None:
        self.state.statuses = await self.client.toggle_always_on_display(enabled)
        self._async_notify_listeners()

    async def async_play_radio(self, channel: str | None) -> None:
        if channel is None:
            await self.client.set_player(False)
            self.state.player_on = False
        else:
            await self.client.set_player(True, SOUND_RADIO, channel)
            self.state.player_on = True
            self.state.player_source = SOUND_RADIO
            self.state.player_channel = str(channel)
        self._async_notify_listeners()

    async def async_create_alarm(self, request: AlarmRequest) -> DeviceAlarmSlot:
        """Write a new alarm into the first free slot, then mirror it."""
        slot = await self.client.set_alarm(request)
        _LOGGER.info("Created alarm %s in slot %s", slot.time, slot.slot_id)
        await self.reconciler.async_reconcile()
        return slot

    async def async_apply_options(self, options: SomneoOptions) -> None:
        """React to changed options (already validated)."""
        previous, self.options = self.options, options
        changed = options.changed_keys(previous)
        if not changed:
            return

        if changed & {CONF_DISPLAY_ALWAYS_ON, CONF_DISPLAY_BRIGHTNESS}:
            try:
                self.state.statuses = await self.client.change_display_settings(
                    options.display_always_on, options.display_brightness
                )
            except TransportError as ex:
                _LOGGER.warning("Could not update display settings: %s", ex)

        restarted = self.scheduler.async_update_intervals(options.intervals())
        if restarted:
            _LOGGER.debug("Restarted polling timers: %s", ", ".join(sorted(restarted)))

        if CONF_ALARMS_SYNC in changed and options.alarms_device_sync:
            await self.async_force_sync()

        if CONF_SUNRISE_COLOR in changed and self.state.light.sunrise_preview:
            await self._async_restart_preview()

        _LOGGER.debug("Somneo options changed: %s", ", ".join(sorted(changed)))

    async def _async_restart_preview(self) -> None:
        """Preview only picks up a new scheme after being switched off and on."""
        try:
            await self.client.set_sunrise_preview(False, 0)
        except TransportError as ex:
            _LOGGER.warning("Could not restart sunrise preview: %s", ex)
            return

        if self._preview_unsub is not None:
            self._preview_unsub()

        async def _resume(_now) -> None:
            self._preview_unsub = None
            try:
                await self.async_set_sunrise_preview(True)
            except TransportError as ex:
                _LOGGER.warning("Could not resume sunrise preview: %s", ex)

        self._preview_unsub = async_call_later(self.hass, PREVIEW_RESTART_DELAY, _resume)
