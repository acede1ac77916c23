"""Models for the Somneo integration."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from .const import GUIDANCE_LIGHT, GUIDANCE_SOUND, POWER_WAKE_MARKER
from .repetition import from_weekday_map


def format_time(hour: int, minute: int) -> str:
    return f"{int(hour):02d}:{int(minute):02d}"


def parse_time(value: str) -> tuple[int, int]:
    """Parse "HH:MM" (seconds are ignored) into (hour, minute)."""
    parts = str(value).strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time: {value!r}")
    return hour, minute


@dataclass(frozen=True)
class DeviceAlarmSlot:
    """One alarm slot as reported by the device.

    ``activated`` means the slot holds a live alarm; a freed slot is only
    deactivated on the device, never removed.
    """

    slot_id: int
    enabled: bool
    hour: int
    minute: int
    repetition: int = 0
    activated: bool = True
    power_wake: Optional[int] = None

    @property
    def time(self) -> str:
        return format_time(self.hour, self.minute)

    @property
    def power_wake_enabled(self) -> bool:
        return self.power_wake is not None

    @property
    def title(self) -> str:
        if self.power_wake_enabled:
            return f"{self.time} {POWER_WAKE_MARKER}"
        return self.time


@dataclass(frozen=True)
class ExternalAlarm:
    """An alarm owned by the platform alarm manager."""

    alarm_id: str
    name: str
    time: str
    enabled: bool = True
    repetition: Dict[str, bool] = field(default_factory=dict)

    def matches(self, time: str, enabled: bool, repetition: Dict[str, bool]) -> bool:
        return (
            self.time == time
            and self.enabled == enabled
            and from_weekday_map(self.repetition) == from_weekday_map(repetition)
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.alarm_id,
            "name": self.name,
            "time": self.time,
            "enabled": self.enabled,
            "repetition": dict(self.repetition),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExternalAlarm":
        return cls(
            alarm_id=str(data["id"]),
            name=str(data.get("name", "")),
            time=str(data.get("time", "00:00")),
            enabled=bool(data.get("enabled", True)),
            repetition={str(k): bool(v) for k, v in (data.get("repetition") or {}).items()},
        )


@dataclass(frozen=True)
class AlarmLink:
    """Persisted association of a device slot with its capability and external alarm."""

    capability_id: Optional[str] = None
    external_id: Optional[str] = None

    def with_external(self, external_id: Optional[str]) -> "AlarmLink":
        return replace(self, external_id=external_id)


@dataclass
class SomneoSensors:
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    luminance: Optional[float] = None
    noise: Optional[float] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "SomneoSensors":
        return cls(
            temperature=data.get("mstmp"),
            humidity=data.get("msrhu"),
            luminance=data.get("mslux"),
            noise=data.get("mssnd"),
        )


@dataclass
class SomneoLight:
    main_light: bool = False
    brightness: int = 0
    night_light: bool = False
    sunrise_preview: bool = False
    color_scheme: int = 0

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "SomneoLight":
        onoff = bool(data.get("onoff", False))
        preview = bool(data.get("tempy", False))
        return cls(
            # Preview drives the same light channel; it is not the main light
            main_light=onoff and not preview,
            brightness=int(data.get("ltlvl") or 0),
            night_light=bool(data.get("ngtlt", False)),
            sunrise_preview=onoff and preview,
            color_scheme=int(data.get("ctype") or 0),
        )


@dataclass
class SomneoStatuses:
    always_on: Optional[bool] = None
    brightness: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "SomneoStatuses":
        return cls(always_on=data.get("dspon"), brightness=data.get("brght"))


@dataclass(frozen=True)
class SunsetRequest:
    enabled: bool
    duration: int
    light_intensity: int
    color_scheme: int
    sound_device: str
    sound_channel: str
    volume: int

    def payload(self) -> Dict[str, Any]:
        return {
            "onoff": self.enabled,
            "durat": self.duration,
            "curve": self.light_intensity,
            "ctype": self.color_scheme,
            "snddv": self.sound_device,
            "sndch": self.sound_channel,
            "sndlv": self.volume,
        }


@dataclass(frozen=True)
class LightGuidance:
    intensity: int
    kind: str = GUIDANCE_LIGHT


@dataclass(frozen=True)
class SoundGuidance:
    volume: int
    kind: str = GUIDANCE_SOUND


@dataclass(frozen=True)
class RelaxBreatheRequest:
    """Relax-breathe write; the device accepts intensity XOR volume."""

    enabled: bool
    duration: int
    pace: int
    guidance: LightGuidance | SoundGuidance

    def payload(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "durat": self.duration,
            "onoff": self.enabled,
            # Device counts breaths/min from 4
            "progr": self.pace - 3,
        }
        if isinstance(self.guidance, LightGuidance):
            data["rtype"] = 0
            data["intny"] = self.guidance.intensity
        else:
            data["rtype"] = 1
            data["sndlv"] = self.guidance.volume
        return data


@dataclass(frozen=True)
class AlarmRequest:
    """Settings for a new device alarm."""

    hour: int
    minute: int
    repetition: int = 0
    enabled: bool = True
    color_scheme: int = 0
    light_intensity: int = 20
    duration: int = 30
    sound_device: str = "wus"
    sound_channel: str = "1"
    volume: int = 12
    power_wake: Optional[int] = None

    def payload(self, slot_id: int) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "prfnr": slot_id,
            "prfvs": True,
            "prfen": self.enabled,
            "almhr": self.hour,
            "almmn": self.minute,
            "daynm": self.repetition,
            "ctype": self.color_scheme,
            "curve": self.light_intensity,
            "durat": self.duration,
            "snddv": self.sound_device,
            "sndch": self.sound_channel,
            "sndlv": self.volume,
        }
        if self.power_wake is not None:
            total = (self.hour * 60 + self.minute + self.power_wake) % (24 * 60)
            data["pwrsz"] = 1
            data["pszhr"], data["pszmn"] = divmod(total, 60)
        else:
            data["pwrsz"] = 0
        return data

    def as_slot(self, slot_id: int) -> DeviceAlarmSlot:
        return DeviceAlarmSlot(
            slot_id=slot_id,
            enabled=self.enabled,
            hour=self.hour,
            minute=self.minute,
            repetition=self.repetition,
            power_wake=self.power_wake,
        )


@dataclass(frozen=True)
class LastEvent:
    name: str
    light_level: Optional[int] = None


@dataclass
class SomneoState:
    """Latest snapshot of everything polled from the device."""

    available: bool = False
    sensors: SomneoSensors = field(default_factory=SomneoSensors)
    light: SomneoLight = field(default_factory=SomneoLight)
    statuses: SomneoStatuses = field(default_factory=SomneoStatuses)
    functions: Dict[str, bool] = field(default_factory=dict)
    radio_presets: Dict[str, str] = field(default_factory=dict)
    player_source: Optional[str] = None
    player_channel: Optional[str] = None
    player_on: bool = False
