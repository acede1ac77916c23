"""Somneo buttons."""
from __future__ import annotations

import logging

from homeassistant.components.button import ButtonDeviceClass, ButtonEntity  # type: ignore
from homeassistant.const import EntityCategory  # type: ignore
from homeassistant.exceptions import HomeAssistantError  # type: ignore

from .const import DOMAIN
from .entity import SomneoEntity
from .exceptions import TransportError

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(hass, entry, async_add_entities):
    hub = hass.data[DOMAIN][entry.entry_id]["hub"]
    async_add_entities(
        [
            SomneoFactoryResetButton(hub),
            SomneoPollingButton(hub),
            SomneoForceSyncButton(hub),
        ]
    )


class SomneoFactoryResetButton(SomneoEntity, ButtonEntity):
    _attr_name = "Factory reset"
    _attr_device_class = ButtonDeviceClass.RESTART
    _attr_entity_category = EntityCategory.CONFIG
    _attr_entity_registry_enabled_default = False

    def __init__(self, hub):
        super().__init__(hub, "factory_reset")

    async def async_press(self) -> None:
        _LOGGER.warning("Factory reset requested for Somneo %s", self._hub.host)
        try:
            await self._hub.async_factory_reset()
        except TransportError as ex:
            raise HomeAssistantError(f"Factory reset failed: {ex}") from ex


class SomneoPollingButton(SomneoEntity, ButtonEntity):
    """Pauses or resumes every polling timer."""

    _attr_entity_category = EntityCategory.CONFIG

    def __init__(self, hub):
        super().__init__(hub, "toggle_polling")

    @property
    def available(self) -> bool:
        # Resuming must stay possible while the device is offline
        return True

    @property
    def name(self) -> str:
        return "Pause polling" if self._hub.polling_enabled else "Resume polling"

    @property
    def icon(self) -> str:
        return "mdi:pause-circle" if self._hub.polling_enabled else "mdi:play-circle"

    async def async_press(self) -> None:
        await self._hub.async_toggle_polling()


class SomneoForceSyncButton(SomneoEntity, ButtonEntity):
    _attr_name = "Sync alarms"
    _attr_icon = "mdi:alarm-check"

    def __init__(self, hub):
        super().__init__(hub, "force_sync")

    async def async_press(self) -> None:
        result = await self._hub.async_force_sync()
        if result is None:
            raise HomeAssistantError("Alarm sync failed: the Somneo did not respond")
