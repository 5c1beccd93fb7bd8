"""Colour model conversions between RGB, HSV and correlated colour temperature.

All functions are pure. Kelvin inputs must be positive; callers only pass
values that came from a bulb's pilot or from the bridge's own constants.
"""

import colorsys
import math
from typing import NamedTuple

from constants import COLOR_TEMP_DOMAIN_MAX, COLOR_TEMP_DOMAIN_MIN

# Bisection stops once the bracket is narrower than this (hundreds of Kelvin)
_TEMPERATURE_EPSILON = 0.4


class Rgb(NamedTuple):
    r: int
    g: int
    b: int


class Hsv(NamedTuple):
    hue: float  # 0-360
    saturation: float  # 0-100
    value: float  # 0-100


def _clamp_channel(value: float) -> int:
    return int(min(255, max(0, round(value))))


def clamp_rgb(r: float, g: float, b: float) -> Rgb:
    """Round each channel and clamp it into 0-255."""
    return Rgb(_clamp_channel(r), _clamp_channel(g), _clamp_channel(b))


def rgb_to_hsv(r: float, g: float, b: float) -> Hsv:
    r, g, b = clamp_rgb(r, g, b)
    h, s, v = colorsys.rgb_to_hsv(r / 255, g / 255, b / 255)
    return Hsv(hue=h * 360, saturation=s * 100, value=v * 100)


def hsv_to_rgb(hue: float, saturation: float, value: float = 100) -> Rgb:
    """Convert hue (0-360), saturation and value (0-100) to RGB."""
    h = (hue % 360) / 360
    s = min(100, max(0, saturation)) / 100
    v = min(100, max(0, value)) / 100
    r, g, b = colorsys.hsv_to_rgb(h, s, v)
    return clamp_rgb(r * 255, g * 255, b * 255)


def _temperature_to_rgb(temperature: float) -> Rgb:
    # temperature is in hundreds of Kelvin
    if temperature < 66:
        red = 255.0
    else:
        red = temperature - 55
        red = 351.97690566805693 + 0.114206453784165 * red - 40.25366309332127 * math.log(red)

    if temperature < 66:
        green = temperature - 2
        green = -155.25485562709179 - 0.44596950469579133 * green + 104.49216199393888 * math.log(green)
    else:
        green = temperature - 50
        green = 325.4494125711974 + 0.07943456536662342 * green - 28.0852963507957 * math.log(green)

    if temperature >= 66:
        blue = 255.0
    elif temperature <= 20:
        blue = 0.0
    else:
        blue = temperature - 10
        blue = -254.76935184120902 + 0.8274096064007395 * blue + 115.67994401066147 * math.log(blue)

    return clamp_rgb(red, green, blue)


def color_temperature_to_rgb(kelvin: float) -> Rgb:
    """Approximate the colour of a black body at ``kelvin`` (1000-40000 K)."""
    return _temperature_to_rgb(kelvin / 100)


def rgb_to_color_temperature(r: float, g: float, b: float) -> int:
    """Estimate the correlated colour temperature of an RGB colour.

    This is a best-effort inverse of :func:`color_temperature_to_rgb`: it
    bisects on the blue/red ratio only, so round trips are approximate.
    """
    rgb = clamp_rgb(r, g, b)
    if rgb.r == 0:
        return COLOR_TEMP_DOMAIN_MAX
    target = rgb.b / rgb.r

    low = COLOR_TEMP_DOMAIN_MIN / 100
    high = COLOR_TEMP_DOMAIN_MAX / 100
    temperature = (low + high) / 2
    while high - low > _TEMPERATURE_EPSILON:
        temperature = (low + high) / 2
        test = _temperature_to_rgb(temperature)
        if test.b / test.r >= target:
            high = temperature
        else:
            low = temperature
    return round(temperature * 100)


def kelvin_to_mired(kelvin: float) -> int:
    if kelvin <= 0:
        raise ValueError(f"Kelvin must be positive, got {kelvin}")
    return round(1_000_000 / kelvin)


def mired_to_kelvin(mired: float) -> int:
    if mired <= 0:
        raise ValueError(f"Mired must be positive, got {mired}")
    return round(1_000_000 / mired)
