"""Translation between pilots and the characteristics published over MQTT."""

from typing import Any, Dict, Optional

from color import (
    clamp_rgb,
    color_temperature_to_rgb,
    hsv_to_rgb,
    kelvin_to_mired,
    mired_to_kelvin,
    rgb_to_color_temperature,
    rgb_to_hsv,
)
from constants import (
    CHAR_BRIGHTNESS,
    CHAR_COLOR_TEMP,
    CHAR_HS,
    CHAR_ON,
    CHAR_SCENE,
    MAX_DIMMING,
    MAX_KELVIN,
    MIN_DIMMING,
    MIN_KELVIN,
    MQTT_PAYLOAD_OFF,
    MQTT_PAYLOAD_ON,
    MQTT_PAYLOAD_TOGGLE,
)
from models import DEFAULT_BASELINE, ColorTriple, Pilot

MIN_MIRED = kelvin_to_mired(MAX_KELVIN)
MAX_MIRED = kelvin_to_mired(MIN_KELVIN)


def pilot_to_color(pilot: Pilot) -> ColorTriple:
    """Derive hue, saturation and a colour temperature from a pilot.

    White mode pilots are converted through their black-body colour; colour
    mode pilots get an estimated temperature from their RGB value.
    """
    if pilot.temp is not None:
        hsv = rgb_to_hsv(*color_temperature_to_rgb(pilot.temp))
        return ColorTriple(hue=hsv.hue, saturation=hsv.saturation, temp=int(pilot.temp))
    rgb = clamp_rgb(pilot.r or 0, pilot.g or 0, pilot.b or 0)
    hsv = rgb_to_hsv(*rgb)
    return ColorTriple(hue=hsv.hue, saturation=hsv.saturation, temp=rgb_to_color_temperature(*rgb))


def clamp_mired(mired: int) -> int:
    return min(MAX_MIRED, max(MIN_MIRED, mired))


def transform_on_off(pilot: Pilot) -> bool:
    return bool(pilot.state)


def transform_dimming(pilot: Pilot) -> int:
    if pilot.dimming is None:
        return DEFAULT_BASELINE.dimming
    return int(pilot.dimming)


def transform_temperature(pilot: Pilot) -> int:
    """Colour temperature in mireds, kept inside the bulbs' white range."""
    return clamp_mired(kelvin_to_mired(pilot_to_color(pilot).temp))


def transform_hue(pilot: Pilot) -> int:
    return round(pilot_to_color(pilot).hue)


def transform_saturation(pilot: Pilot) -> int:
    return round(pilot_to_color(pilot).saturation)


def _parse_int(payload: str) -> int:
    try:
        return round(float(payload))
    except (ValueError, OverflowError):
        raise ValueError(f"Expected a number, got '{payload}'") from None


def change_from_command(characteristic: str, payload: str, cached: Optional[Pilot]) -> Dict[str, Any]:
    """
    Turn an MQTT command into a partial pilot change.
    Raises ValueError for payloads that cannot be applied.
    """
    payload = payload.strip()

    if characteristic == CHAR_ON:
        value = payload.upper()
        if value in (MQTT_PAYLOAD_ON, "1", "TRUE"):
            return {"state": True}
        if value in (MQTT_PAYLOAD_OFF, "0", "FALSE"):
            return {"state": False}
        if value in (MQTT_PAYLOAD_TOGGLE, "T"):
            return {"state": not (cached is not None and cached.state)}
        raise ValueError(f"Unknown power payload '{payload}'")

    if characteristic == CHAR_BRIGHTNESS:
        dimming = min(MAX_DIMMING, max(MIN_DIMMING, _parse_int(payload)))
        return {"dimming": dimming}

    if characteristic == CHAR_COLOR_TEMP:
        mired = _parse_int(payload)
        if mired <= 0:
            raise ValueError(f"Invalid colour temperature '{payload}'")
        kelvin = min(MAX_KELVIN, max(MIN_KELVIN, mired_to_kelvin(mired)))
        return {"temp": kelvin, "r": None, "g": None, "b": None}

    if characteristic == CHAR_HS:
        try:
            hue_s, sat_s = payload.split(",", 1)
            hue, saturation = float(hue_s), float(sat_s)
        except ValueError:
            raise ValueError(f"Expected 'hue,saturation', got '{payload}'") from None
        rgb = hsv_to_rgb(hue, saturation)
        return {"r": rgb.r, "g": rgb.g, "b": rgb.b, "temp": None}

    if characteristic == CHAR_SCENE:
        scene_id = _parse_int(payload)
        if scene_id < 1:
            raise ValueError(f"Invalid scene id '{payload}'")
        return {"scene_id": scene_id}

    raise ValueError(f"Unsupported characteristic '{characteristic}'")
