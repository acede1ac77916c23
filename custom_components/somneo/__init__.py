"""The Philips Somneo integration."""
import logging

import homeassistant.helpers.config_validation as cv  # type: ignore
from homeassistant.config_entries import ConfigEntry  # type: ignore
from homeassistant.core import HomeAssistant  # type: ignore
from homeassistant.helpers import device_registry as dr, entity_registry as er  # type: ignore

from .alarm_manager import LocalAlarmManager
from .config import SomneoOptions
from .const import DOMAIN
from .exceptions import ConfigurationError
from .hub import SomneoHub
from .services import async_register_services, async_unregister_services
from .storage import SomneoStorage

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[str] = ["sensor", "light", "switch", "button", "select"]

ALARM_MANAGER = "alarm_manager"

# This integration is config-entry only (no YAML options)
CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)


def _alarm_manager(hass: HomeAssistant) -> LocalAlarmManager:
    domain_data = hass.data.setdefault(DOMAIN, {})
    if ALARM_MANAGER not in domain_data:
        domain_data[ALARM_MANAGER] = LocalAlarmManager(hass.config.config_dir, hass)
    return domain_data[ALARM_MANAGER]


async def async_setup(hass: HomeAssistant, config: dict):
    """Set up the Somneo integration (YAML not supported)."""
    async_register_services(hass, _alarm_manager(hass))
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry):
    """Set up a Somneo from a config entry."""
    try:
        options = SomneoOptions.from_options(entry.options)
    except ConfigurationError as ex:
        _LOGGER.error("Ignoring invalid Somneo options, using defaults: %s", ex)
        options = SomneoOptions.from_options(None)

    alarm_manager = _alarm_manager(hass)
    async_register_services(hass, alarm_manager)

    hub = await SomneoHub.create(hass, entry, alarm_manager, options)
    await hub.async_load()
    hass.data[DOMAIN][entry.entry_id] = {"hub": hub}

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    entry.async_on_unload(entry.add_update_listener(_async_update_listener))
    hass.async_create_task(hub.async_start())
    hass.async_create_task(_async_cleanup_stale_devices(hass, entry))

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry):
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok:
        entry_data = hass.data[DOMAIN].pop(entry.entry_id, {})
        hub = entry_data.get("hub")
        if hub:
            await hub.async_stop()
        if not any(isinstance(value, dict) and "hub" in value for value in hass.data[DOMAIN].values()):
            async_unregister_services(hass)

    return unload_ok


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry):
    """Handle reload of a config entry."""
    await async_unload_entry(hass, entry)
    await async_setup_entry(hass, entry)


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Forget the stored alarm links of a removed Somneo."""
    await SomneoStorage(hass.config.config_dir, entry.entry_id, hass).async_remove()


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Apply changed options without a reload."""
    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if not entry_data:
        return
    try:
        options = SomneoOptions.from_options(entry.options)
    except ConfigurationError as ex:
        _LOGGER.error("Rejected Somneo options, keeping the previous ones: %s", ex)
        return
    await entry_data["hub"].async_apply_options(options)


async def _async_cleanup_stale_devices(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Remove device registry entries of this entry that no entity uses."""

    dev_reg = dr.async_get(hass)
    ent_reg = er.async_get(hass)

    for device_entry in dr.async_entries_for_config_entry(dev_reg, entry.entry_id):
        if er.async_entries_for_device(ent_reg, device_entry.id, include_disabled_entities=True):
            continue
        _LOGGER.debug("Removing orphaned Somneo device %s", device_entry.id)
        dev_reg.async_remove_device(device_entry.id)
