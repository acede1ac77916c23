"""Tests for the local platform alarm list."""

from __future__ import annotations

import pytest

from custom_components.somneo.alarm_manager import LocalAlarmManager
from custom_components.somneo.exceptions import StaleReferenceError


class TestLocalAlarmManager:
    """Test create/update/delete/list."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, alarm_manager) -> None:
        alarm_id = await alarm_manager.async_create("Somneo #1", "06:30", True, {"monday": True})

        (alarm,) = await alarm_manager.async_list()

        assert alarm.alarm_id == alarm_id
        assert alarm.name == "Somneo #1"
        assert alarm.repetition == {"monday": True}

    @pytest.mark.asyncio
    async def test_update_keeps_name(self, alarm_manager) -> None:
        alarm_id = await alarm_manager.async_create("Somneo #1", "06:30", True, {})

        await alarm_manager.async_update(alarm_id, "07:00", False, {"sunday": True})

        alarm = await alarm_manager.async_get(alarm_id)
        assert (alarm.name, alarm.time, alarm.enabled) == ("Somneo #1", "07:00", False)

    @pytest.mark.asyncio
    async def test_stale_references(self, alarm_manager) -> None:
        with pytest.raises(StaleReferenceError):
            await alarm_manager.async_update("missing", "07:00", True, {})
        with pytest.raises(StaleReferenceError):
            await alarm_manager.async_delete("missing")

    @pytest.mark.asyncio
    async def test_invalid_time(self, alarm_manager) -> None:
        with pytest.raises(ValueError):
            await alarm_manager.async_create("Somneo", "25:00", True, {})

    @pytest.mark.asyncio
    async def test_persisted_between_instances(self, tmp_path) -> None:
        first = LocalAlarmManager(str(tmp_path))
        keep = await first.async_create("Somneo a", "06:00", True, {})
        gone = await first.async_create("Somneo b", "06:10", True, {})
        await first.async_delete(gone)

        alarms = await LocalAlarmManager(str(tmp_path)).async_list()

        assert [alarm.alarm_id for alarm in alarms] == [keep]
