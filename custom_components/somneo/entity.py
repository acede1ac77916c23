"""Base entity for Somneo platforms."""
from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.core import callback  # type: ignore
from homeassistant.helpers.entity import Entity  # type: ignore

if TYPE_CHECKING:
    from .hub import SomneoHub


class SomneoEntity(Entity):
    """Entity attached to the Somneo device entry and driven by the hub."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(self, hub: "SomneoHub", key: str):
        self._hub = hub
        self._attr_unique_id = f"{hub.entry_id}_{key}"
        self._attr_device_info = hub.device_info

    @property
    def available(self) -> bool:
        return self._hub.state.available

    async def async_added_to_hass(self):
        self.async_on_remove(self._hub.async_add_listener(self._handle_hub_update))

    @callback
    def _handle_hub_update(self):
        self.async_write_ha_state()
