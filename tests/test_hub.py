"""Tests for the device session."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from custom_components.somneo.api import SomneoClient
from custom_components.somneo.config import SomneoOptions
from custom_components.somneo.const import (
    CONF_ALARMS_SYNC,
    CONF_DISPLAY_ALWAYS_ON,
    CONF_FUNCTIONS_POLLING,
    CONF_SUNRISE_COLOR,
    FUNC_MAIN_LIGHT,
    FUNC_SUNSET,
    JOB_FUNCTIONS,
    PATH_LAST_EVENT,
    PATH_LIGHT,
    PATH_SENSORS,
    PATH_STATUSES,
)
from custom_components.somneo.hub import PREVIEW_RESTART_DELAY, SomneoHub
from custom_components.somneo.storage import SomneoStorage


@pytest.fixture
def hass():
    hass = MagicMock()
    hass.services.async_call = AsyncMock()
    return hass


@pytest.fixture
def track():
    with patch("custom_components.somneo.scheduler.async_track_time_interval") as track_mock:
        track_mock.side_effect = lambda hass, action, interval, name=None: MagicMock()
        yield track_mock


@pytest.fixture
def hub(hass, device, alarm_manager, tmp_path) -> SomneoHub:
    storage = SomneoStorage(str(tmp_path), "entry1")
    return SomneoHub(
        hass, "entry1", "Bedroom", SomneoClient(device), storage, alarm_manager, SomneoOptions.from_options(None)
    )


class TestPolling:
    """Test the poll jobs and availability."""

    @pytest.mark.asyncio
    async def test_sensor_poll_drives_availability(self, hub, device) -> None:
        listener = MagicMock()
        hub.async_add_listener(listener)

        await hub.async_sync_sensors()
        assert hub.state.available is True
        assert hub.state.sensors.temperature == 21.5

        device.failing.add(PATH_SENSORS)
        await hub.async_sync_sensors()
        assert hub.state.available is False
        assert listener.call_count == 2

    @pytest.mark.asyncio
    async def test_listener_removal(self, hub) -> None:
        listener = MagicMock()
        remove = hub.async_add_listener(listener)
        remove()

        await hub.async_sync_sensors()

        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_function_poll_uses_events_for_programs(self, hub, device) -> None:
        device.light.update(onoff=False)
        device.resources[PATH_LAST_EVENT] = {"event": "startlight"}
        await hub.async_sync_functions()
        assert hub.state.functions[FUNC_MAIN_LIGHT] is False

        device.resources[PATH_LAST_EVENT] = {"event": "startdusk"}
        await hub.async_sync_functions()
        assert hub.state.functions[FUNC_SUNSET] is True

    @pytest.mark.asyncio
    async def test_preview_supersedes_main_light(self, hub) -> None:
        await hub.async_set_main_light(True)
        await hub.client.set_sunrise_preview(True, 1)

        await hub.async_sync_functions()

        assert hub.state.functions[FUNC_MAIN_LIGHT] is False
        assert hub.state.light.sunrise_preview is True

    @pytest.mark.asyncio
    async def test_function_poll_failure_keeps_state(self, hub, device) -> None:
        hub.state.functions[FUNC_SUNSET] = True
        device.failing.add(PATH_LIGHT)

        await hub.async_sync_functions()

        assert hub.state.functions[FUNC_SUNSET] is True


class TestCommands:
    """Test entity commands."""

    @pytest.mark.asyncio
    async def test_main_light(self, hub, device) -> None:
        await hub.async_set_main_light(True, 15)
        assert hub.state.functions[FUNC_MAIN_LIGHT] is True
        assert device.light["ltlvl"] == 15

    @pytest.mark.asyncio
    async def test_sunset_switch(self, hub) -> None:
        await hub.async_set_function(FUNC_SUNSET, True)
        assert hub.state.functions[FUNC_SUNSET] is True

    @pytest.mark.asyncio
    async def test_unknown_function(self, hub) -> None:
        with pytest.raises(ValueError):
            await hub.async_set_function("espresso", True)

    @pytest.mark.asyncio
    async def test_toggle_polling_persists_and_notifies(self, hub, hass, track, tmp_path) -> None:
        with patch("custom_components.somneo.capabilities.er"):
            await hub.async_load()

        assert await hub.async_toggle_polling() is False

        hass.services.async_call.assert_awaited_once()
        reloaded = await SomneoStorage(str(tmp_path), "entry1").async_load()
        assert reloaded.polling_enabled is False

    @pytest.mark.asyncio
    async def test_radio(self, hub, device) -> None:
        await hub.async_play_radio("2")
        assert device.resources["/wuply"]["sndch"] == "2"
        assert hub.state.player_on is True

        await hub.async_play_radio(None)
        assert hub.state.player_on is False


class TestOptions:
    """Test live option changes."""

    @pytest.mark.asyncio
    async def test_display_change_is_pushed(self, hub, device) -> None:
        await hub.async_apply_options(SomneoOptions.from_options({CONF_DISPLAY_ALWAYS_ON: True}))
        assert device.puts_to(PATH_STATUSES) == [{"dspon": True, "brght": 3}]

    @pytest.mark.asyncio
    async def test_interval_change_restarts_timer(self, hub, track) -> None:
        hub.scheduler.async_start()

        await hub.async_apply_options(SomneoOptions.from_options({CONF_FUNCTIONS_POLLING: 30}))

        assert hub.scheduler.interval(JOB_FUNCTIONS) == timedelta(seconds=30)
        assert track.call_count == 4

    @pytest.mark.asyncio
    async def test_enabling_sync_reconciles(self, hub, device, alarm_manager) -> None:
        device.add_alarm(1, 6, 30)

        await hub.async_apply_options(SomneoOptions.from_options({CONF_ALARMS_SYNC: True}))

        (alarm,) = await alarm_manager.async_list()
        assert alarm.name == "Somneo #1"

    @pytest.mark.asyncio
    async def test_sunrise_color_restarts_preview(self, hub, device) -> None:
        await hub.async_set_sunrise_preview(True)
        with patch("custom_components.somneo.hub.async_call_later") as call_later:
            await hub.async_apply_options(SomneoOptions.from_options({CONF_SUNRISE_COLOR: 2}))

            assert device.light["onoff"] is False
            delay, resume = call_later.call_args.args[1:]
            assert delay == PREVIEW_RESTART_DELAY
            await resume(None)

        assert device.light["onoff"] is True
        assert device.light["tempy"] is True
        assert device.light["ctype"] == 2


@pytest.mark.asyncio
async def test_stop_closes_transport(hub, device, track) -> None:
    hub.scheduler.async_start()
    await hub.async_stop()
    assert device.closed is True
    assert hub.scheduler.active_jobs == set()
