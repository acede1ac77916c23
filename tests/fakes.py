"""Test doubles for the Somneo device and its HTTP session."""
from __future__ import annotations

import asyncio
import json
import time
from types import SimpleNamespace
from typing import Any, Dict, List, Tuple

from custom_components.somneo.const import (
    MAX_ALARM_SLOTS,
    PATH_ALARM_SLOT,
    PATH_ALARMS_SCHEDULE,
    PATH_ALARMS_STATE,
    PATH_BEDTIME,
    PATH_LAST_EVENT,
    PATH_LIGHT,
    PATH_PLAYER,
    PATH_RADIO,
    PATH_RELAX,
    PATH_SENSORS,
    PATH_STATUSES,
    PATH_SUNSET,
)
from custom_components.somneo.exceptions import TransportError

_SLOT_KEYS = ("prfen", "prfvs", "almhr", "almmn", "daynm", "pwrsz", "pszhr", "pszmn")


class FakeDevice:
    """In-memory Somneo answering the local API like a transport would."""

    def __init__(self, host: str = "somneo.local"):
        self.host = host
        self.slots: Dict[int, Dict[str, Any]] = {
            slot: {
                "prfen": False,
                "prfvs": False,
                "almhr": 7,
                "almmn": 0,
                "daynm": 0,
                "pwrsz": 0,
                "pszhr": 0,
                "pszmn": 0,
            }
            for slot in range(1, MAX_ALARM_SLOTS + 1)
        }
        self.light: Dict[str, Any] = {"onoff": False, "tempy": False, "ngtlt": False, "ltlvl": 10, "ctype": 0}
        self.resources: Dict[str, Dict[str, Any]] = {
            PATH_SENSORS: {"mstmp": 21.5, "msrhu": 45.0, "mslux": 3.2, "mssnd": 30.0},
            PATH_STATUSES: {"dspon": False, "brght": 3},
            PATH_LAST_EVENT: {"event": ""},
            PATH_RADIO: {"1": "91.80", "2": "100.10", "3": "", "4": "", "5": ""},
            PATH_PLAYER: {"onoff": False, "snddv": "fmr", "sndch": "1"},
            PATH_SUNSET: {"onoff": False},
            PATH_RELAX: {"onoff": False},
            PATH_BEDTIME: {"night": False},
        }
        self.gets: List[str] = []
        self.puts: List[Tuple[str, Dict[str, Any]]] = []
        self.failing: set[str] = set()
        self.closed = False

    def add_alarm(self, slot: int, hour: int, minute: int, enabled: bool = True, daynm: int = 0, power_wake=None):
        entry = self.slots[slot]
        entry.update(prfvs=True, prfen=enabled, almhr=hour, almmn=minute, daynm=daynm)
        if power_wake is not None:
            total = hour * 60 + minute + power_wake
            entry.update(pwrsz=1, pszhr=total // 60 % 24, pszmn=total % 60)

    def activated(self) -> List[int]:
        return [slot for slot, entry in self.slots.items() if entry["prfvs"]]

    def puts_to(self, path: str) -> List[Dict[str, Any]]:
        return [body for put_path, body in self.puts if put_path == path]

    def _check(self, path: str) -> None:
        if path in self.failing:
            raise TransportError(f"GET {path} failed", 500)

    async def get(self, path: str) -> Dict[str, Any]:
        self.gets.append(path)
        self._check(path)
        ordered = [self.slots[slot] for slot in sorted(self.slots)]
        if path == PATH_ALARMS_STATE:
            pwrsv: List[int] = []
            for entry in ordered:
                pwrsv.extend([entry["pwrsz"], entry["pszhr"], entry["pszmn"]])
            return {
                "prfen": [entry["prfen"] for entry in ordered],
                "prfvs": [entry["prfvs"] for entry in ordered],
                "pwrsv": pwrsv,
            }
        if path == PATH_ALARMS_SCHEDULE:
            return {
                "almhr": [entry["almhr"] for entry in ordered],
                "almmn": [entry["almmn"] for entry in ordered],
                "daynm": [entry["daynm"] for entry in ordered],
            }
        if path == PATH_LIGHT:
            return dict(self.light)
        return dict(self.resources.get(path, {}))

    async def put(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self.puts.append((path, dict(body)))
        self._check(path)
        if path == PATH_ALARM_SLOT:
            slot = int(body["prfnr"])
            entry = self.slots[slot]
            entry.update({key: value for key, value in body.items() if key in _SLOT_KEYS})
            return {"prfnr": slot, **entry}
        if path == PATH_LIGHT:
            self.light.update(body)
            return dict(self.light)
        self.resources.setdefault(path, {}).update(body)
        return dict(self.resources[path])

    async def close(self) -> None:
        self.closed = True


def fake_hub(entry_id: str = "entry1", available: bool = True):
    """Minimal stand-in for the hub as seen by entities."""
    return SimpleNamespace(
        entry_id=entry_id,
        device_info={"identifiers": {("somneo", "somneo.local")}},
        state=SimpleNamespace(available=available),
        async_add_listener=lambda update_callback: (lambda: None),
    )


class FakeResponse:
    def __init__(self, status: int = 200, body: Any = None, reason: str = "OK"):
        self.status = status
        self.reason = reason
        if body is None:
            self._text = ""
        elif isinstance(body, str):
            self._text = body
        else:
            self._text = json.dumps(body)

    async def text(self) -> str:
        return self._text


class _RequestContext:
    def __init__(self, session: "FakeSession", response: FakeResponse):
        self._session = session
        self._response = response

    async def __aenter__(self) -> FakeResponse:
        session = self._session
        session.active += 1
        session.max_active = max(session.max_active, session.active)
        session.started.append(time.monotonic())
        await asyncio.sleep(session.latency)
        return self._response

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self._session.active -= 1
        self._session.finished.append(time.monotonic())
        return False


class FakeSession:
    """aiohttp.ClientSession double replaying queued responses or errors."""

    closed = False

    def __init__(self, responses=None, latency: float = 0.0):
        self.responses = list(responses or [])
        self.latency = latency
        self.calls: List[Tuple[str, str, Any, Any]] = []
        self.started: List[float] = []
        self.finished: List[float] = []
        self.active = 0
        self.max_active = 0

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.calls.append((method, url, json, headers))
        item = self.responses.pop(0) if self.responses else FakeResponse(200, {})
        if isinstance(item, BaseException):
            raise item
        return _RequestContext(self, item)
