"""Data models and dataclasses."""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

from constants import COLOR_TEMP_DOMAIN_MAX, COLOR_TEMP_DOMAIN_MIN, WIZ_PORT

# Pilot attributes the bulb accepts in setPilot, mapped to their wire keys
CONTROL_FIELDS = {
    "state": "state",
    "scene_id": "sceneId",
    "temp": "temp",
    "dimming": "dimming",
    "r": "r",
    "g": "g",
    "b": "b",
}


@dataclass
class Device:
    """A WiZ bulb reachable on the local network."""
    mac: str
    host: str
    port: int = WIZ_PORT
    name: Optional[str] = None
    model: str = ""  # WiZ module name, e.g. ESP01_SHRGB1C_31

    @property
    def display_name(self) -> str:
        return self.name or self.mac


@dataclass(frozen=True)
class Pilot:
    """Full state vector of one bulb as reported by getPilot."""
    mac: str
    rssi: int = 0
    src: str = ""
    state: Optional[bool] = None
    scene_id: int = 0  # 0 means direct colour / temperature control
    dimming: Optional[int] = None
    temp: Optional[int] = None  # only set in white mode
    r: Optional[int] = None  # r/g/b only set in colour mode
    g: Optional[int] = None
    b: Optional[int] = None

    @classmethod
    def from_result(cls, result: Dict[str, Any]) -> "Pilot":
        """Build a Pilot from the ``result`` object of a getPilot reply."""
        def _int(key: str) -> Optional[int]:
            value = result.get(key)
            return None if value is None else int(value)

        state = result.get("state")
        temp = _int("temp")
        if temp is not None and not COLOR_TEMP_DOMAIN_MIN <= temp <= COLOR_TEMP_DOMAIN_MAX:
            # outside the black-body curve; treat as not in white mode
            temp = None
        return cls(
            mac=str(result["mac"]),
            rssi=int(result.get("rssi", 0)),
            src=str(result.get("src", "")),
            state=None if state is None else bool(state),
            scene_id=int(result.get("sceneId", 0)),
            dimming=_int("dimming"),
            temp=temp,
            r=_int("r"),
            g=_int("g"),
            b=_int("b"),
        )


@dataclass(frozen=True)
class PilotBaseline:
    """Values assumed for fields a cached pilot does not carry."""
    state: bool = False
    dimming: int = 10
    temp: Optional[int] = None
    r: Optional[int] = None
    g: Optional[int] = None
    b: Optional[int] = None


DEFAULT_BASELINE = PilotBaseline()


@dataclass(frozen=True)
class ColorTriple:
    """Hue/saturation plus an estimated colour temperature for presentation."""
    hue: float  # 0-360
    saturation: float  # 0-100
    temp: int  # Kelvin


@dataclass
class PendingGet:
    """Book-keeping for a single in-flight getPilot."""
    delivered: bool = False
    timeout_handle: Optional[asyncio.TimerHandle] = None


@dataclass
class WizCommand:
    """Command received from MQTT."""
    mac: str
    characteristic: str  # "on" | "brightness" | "color_temp" | "hs" | "scene" | "adaptive_lighting"
    payload: str
