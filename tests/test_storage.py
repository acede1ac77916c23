"""Tests for the persisted alarm links."""

from __future__ import annotations

import json
import os

import pytest

from custom_components.somneo.models import AlarmLink
from custom_components.somneo.storage import SomneoStorage, StoredState


@pytest.mark.asyncio
async def test_save_and_load(tmp_path) -> None:
    """Links and the polling flag survive a restart."""
    storage = SomneoStorage(str(tmp_path), "abc")
    state = StoredState(links={2: AlarmLink("alarm_2", "ext-2"), 1: AlarmLink("alarm_1")}, polling_enabled=False)

    await storage.async_save(state)
    loaded = await SomneoStorage(str(tmp_path), "abc").async_load()

    assert loaded.links == {1: AlarmLink("alarm_1"), 2: AlarmLink("alarm_2", "ext-2")}
    assert loaded.polling_enabled is False
    assert os.path.exists(tmp_path / ".storage" / "somneo_abc.json")


@pytest.mark.asyncio
async def test_missing_file_is_empty(tmp_path) -> None:
    state = await SomneoStorage(str(tmp_path), "abc").async_load()
    assert state.links == {}
    assert state.polling_enabled is True


@pytest.mark.asyncio
async def test_unknown_schema_starts_empty(tmp_path) -> None:
    path = tmp_path / ".storage" / "somneo_abc.json"
    path.parent.mkdir()
    path.write_text(json.dumps({"__schema_version": 99, "links": {"1": {"capability_id": "alarm_1"}}}))

    state = await SomneoStorage(str(tmp_path), "abc").async_load()

    assert state.links == {}


@pytest.mark.asyncio
async def test_corrupt_file_starts_empty(tmp_path) -> None:
    path = tmp_path / ".storage" / "somneo_abc.json"
    path.parent.mkdir()
    path.write_text("{not json")

    state = await SomneoStorage(str(tmp_path), "abc").async_load()

    assert state.links == {}


@pytest.mark.asyncio
async def test_remove(tmp_path) -> None:
    storage = SomneoStorage(str(tmp_path), "abc")
    await storage.async_save(StoredState())

    await storage.async_remove()
    await storage.async_remove()

    assert not os.path.exists(tmp_path / ".storage" / "somneo_abc.json")
