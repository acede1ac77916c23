"""Weekly repetition codec for Somneo alarms.

The device stores repetition as a bitmask with bit 1 for Monday through
bit 7 for Sunday. Bit 0 is unused. A mask of 0 means the alarm fires once,
on the next occurrence of its time ("tomorrow").
"""
from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Mapping

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DAY_BITS: Dict[str, int] = {day: 1 << (index + 1) for index, day in enumerate(WEEKDAYS)}

TOMORROW = 0
WORKDAYS = 62
WEEKEND = 192
EVERY_DAY = 254

# Presets the device UI writes as literal values
_SENTINELS: Dict[int, FrozenSet[str]] = {
    TOMORROW: frozenset(),
    WORKDAYS: frozenset(WEEKDAYS[:5]),
    WEEKEND: frozenset(WEEKDAYS[5:]),
    EVERY_DAY: frozenset(WEEKDAYS),
}


def decode(mask: int) -> FrozenSet[str]:
    """Return the set of weekdays encoded in ``mask``."""
    mask = int(mask or 0)
    preset = _SENTINELS.get(mask)
    if preset is not None:
        return preset
    return frozenset(day for day, bit in DAY_BITS.items() if mask & bit)


def encode(days: Iterable[str]) -> int:
    mask = 0
    for day in days:
        key = str(day).lower()
        if key not in DAY_BITS:
            raise ValueError(f"Unknown weekday: {day!r}")
        mask |= DAY_BITS[key]
    return mask


def to_weekday_map(mask: int) -> Dict[str, bool]:
    """Expand a mask into the platform's {weekday: bool} repetition form."""
    days = decode(mask)
    return {day: day in days for day in WEEKDAYS}


def from_weekday_map(repetition: Mapping[str, bool] | None) -> int:
    if not repetition:
        return TOMORROW
    return encode(day for day, active in repetition.items() if active)
