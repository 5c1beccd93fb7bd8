"""Helper functions for classifying WiZ bulbs by module name."""

from models import Device


def _module_type(device: Device) -> str:
    """
    WiZ module names look like: "ESP01_SHRGB1C_31" meaning:
      chip_type_revision
    Returns the upper-cased type part, or "" when the name has no such part.
    """
    parts = (device.model or "").upper().split("_")
    if len(parts) < 2:
        return ""
    return parts[1]


def is_rgb(device: Device) -> bool:
    """Bulb can show arbitrary RGB colours."""
    return "RGB" in _module_type(device)


def is_tw(device: Device) -> bool:
    """Bulb has a tunable white (colour temperature) channel.

    WiZ colour bulbs are RGBTW parts, so every RGB bulb counts as tunable.
    """
    return "TW" in _module_type(device) or is_rgb(device)
