"""Shared fixtures for the Somneo tests."""
from __future__ import annotations

import pytest

from custom_components.somneo.alarm_manager import LocalAlarmManager
from custom_components.somneo.api import SomneoClient

from .fakes import FakeDevice


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def client(device) -> SomneoClient:
    return SomneoClient(device)


@pytest.fixture
def alarm_manager(tmp_path) -> LocalAlarmManager:
    return LocalAlarmManager(str(tmp_path))
