"""Pilot synchronisation between the bridge and WiZ bulbs.

A WiZ bulb resets every field missing from a setPilot to its factory
default, so all writes go through the cached pilot:

- ``PilotGetter`` races a getPilot against a short deadline, falls back to
  the cache and delivers exactly once; the slower of the two still reaches
  the presentation sink.
- ``PilotSetter`` merges a partial change over the cached pilot, writes the
  result to the cache optimistically and rolls back when the bulb fails.
- ``AdaptiveLightingGate`` tells the hub to stop adaptive lighting when a
  bulb's colour was changed behind its back, and keeps the derived colour
  characteristics in step after colour changes.
"""

import asyncio
import dataclasses
import logging
from typing import Any, Callable, Dict, Optional, Union

from characteristics import (
    clamp_mired,
    pilot_to_color,
    transform_dimming,
    transform_hue,
    transform_on_off,
    transform_saturation,
    transform_temperature,
)
from color import kelvin_to_mired
from constants import (
    CHAR_BRIGHTNESS,
    CHAR_COLOR_TEMP,
    CHAR_HS,
    CHAR_HUE,
    CHAR_ON,
    CHAR_SATURATION,
    PILOT_QUERY_TIMEOUT,
)
from device_helpers import is_rgb, is_tw
from exceptions import PilotTimeoutError
from models import CONTROL_FIELDS, DEFAULT_BASELINE, Device, PendingGet, Pilot, PilotBaseline
from pilot_cache import PilotCache

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[Optional[Exception]], None]


def update_pilot(sink, device: Device, pilot: Union[Pilot, Exception]):
    """Push every characteristic of ``pilot`` (or the error) to the sink."""
    def _value(transform):
        return pilot if isinstance(pilot, Exception) else transform(pilot)

    sink.update_value(device, CHAR_ON, _value(transform_on_off))
    sink.update_value(device, CHAR_BRIGHTNESS, _value(transform_dimming))
    if is_tw(device):
        sink.update_value(device, CHAR_COLOR_TEMP, _value(transform_temperature))
    if is_rgb(device):
        hue = _value(transform_hue)
        saturation = _value(transform_saturation)
        sink.update_value(device, CHAR_HUE, hue)
        sink.update_value(device, CHAR_SATURATION, saturation)
        # pushed once both halves are known so the pair is never mixed
        sink.update_value(device, CHAR_HS, _value(lambda _: (hue, saturation)))


class AdaptiveLightingGate:
    """Decide when adaptive lighting must be switched off for a bulb."""

    def __init__(self, cache: PilotCache, registry: Dict[str, Callable[[], None]], sink):
        self.cache = cache
        # mac -> callback disabling adaptive lighting; owned by the application
        self.registry = registry
        self.sink = sink

    @staticmethod
    def should_disable(old: Optional[Pilot], new: Pilot) -> bool:
        if old is None:
            return False
        return (
            new.scene_id != 0
            or new.r != old.r
            or new.g != old.g
            or new.b != old.b
            or new.temp != old.temp
        )

    def check(self, mac: str, old: Optional[Pilot], new: Pilot):
        if not self.should_disable(old, new):
            return
        disable = self.registry.get(mac)
        if disable is not None:
            logger.info(f"Colour of {mac} changed externally, disabling adaptive lighting")
            disable()

    def refresh_color(self, device: Device):
        """Republish colour temperature (and hue/saturation) from the cache."""
        if not is_tw(device):
            return
        pilot = self.cache.get(device.mac)
        if pilot is None:
            return
        color = pilot_to_color(pilot)
        self.sink.update_value(device, CHAR_COLOR_TEMP, clamp_mired(kelvin_to_mired(color.temp)))
        if is_rgb(device):
            hue, saturation = round(color.hue), round(color.saturation)
            self.sink.update_value(device, CHAR_SATURATION, saturation)
            self.sink.update_value(device, CHAR_HUE, hue)
            self.sink.update_value(device, CHAR_HS, (hue, saturation))

    def update_color_temp(self, device: Device, next_callback: ErrorCallback) -> ErrorCallback:
        """Wrap a set callback so derived colour values follow any colour change."""
        def _callback(error: Optional[Exception]):
            if error is None:
                self.refresh_color(device)
            next_callback(error)

        return _callback


class PilotGetter:
    """Fetch a bulb's pilot with a deadline and cache fallback."""

    def __init__(self, transport, cache: PilotCache, gate: AdaptiveLightingGate, sink,
                 timeout: float = PILOT_QUERY_TIMEOUT):
        self.transport = transport
        self.cache = cache
        self.gate = gate
        self.sink = sink
        self.timeout = timeout

    def get_pilot(
        self,
        device: Device,
        on_success: Callable[[Pilot], None],
        on_error: Callable[[Exception], None],
    ) -> PendingGet:
        """
        Query the bulb and resolve exactly once, through ``on_success`` or
        ``on_error``. Whichever of reply and deadline comes second is pushed
        to the presentation sink instead of the caller.
        """
        loop = asyncio.get_running_loop()
        pending = PendingGet()
        mac = device.mac

        def on_done(error: Optional[Exception], pilot: Optional[Pilot]):
            should_callback = not pending.delivered
            pending.delivered = True

            if error is not None:
                self.cache.delete(mac)
                if should_callback:
                    on_error(error)
                else:
                    logger.warning(f"Late error from {device.display_name}: {error}")
                    self.sink.update_value(device, CHAR_ON, error)
                return

            old = self.cache.get(mac)
            self.gate.check(mac, old, pilot)
            self.cache.set(mac, pilot)
            if should_callback:
                on_success(pilot)
            else:
                logger.debug(f"Late pilot from {device.display_name}, updating state directly")
                update_pilot(self.sink, device, pilot)

        def on_timeout():
            cached = self.cache.get(mac)
            if cached is not None:
                logger.debug(f"No reply from {device.display_name} yet, using cached pilot")
                on_done(None, cached)
            else:
                on_done(PilotTimeoutError(f"No response within {self.timeout:g}s"), None)

        def on_reply(error: Optional[Exception], pilot: Optional[Pilot]):
            pending.timeout_handle.cancel()
            on_done(error, pilot)

        pending.timeout_handle = loop.call_later(self.timeout, on_timeout)
        try:
            self.transport.query(device, on_reply)
        except Exception:
            # the caller gets the exception; the deadline must not deliver too
            pending.timeout_handle.cancel()
            pending.delivered = True
            raise
        return pending


def merge_pilot(old: Pilot, change: Dict[str, Any],
                baseline: PilotBaseline = DEFAULT_BASELINE) -> Dict[str, Any]:
    """
    Lay ``change`` over the control fields of ``old``.
    Fields ``old`` does not carry come from ``baseline``; a ``None`` in
    ``change`` clears the field.
    """
    unknown = set(change) - set(CONTROL_FIELDS)
    if unknown:
        raise ValueError(f"Unknown pilot fields: {', '.join(sorted(unknown))}")

    merged = {
        "state": old.state if old.state is not None else baseline.state,
        "dimming": old.dimming if old.dimming is not None else baseline.dimming,
        "temp": old.temp if old.temp is not None else baseline.temp,
        "r": old.r if old.r is not None else baseline.r,
        "g": old.g if old.g is not None else baseline.g,
        "b": old.b if old.b is not None else baseline.b,
    }
    merged.update(change)
    return merged


class PilotSetter:
    """Apply partial changes to a bulb on top of its cached pilot."""

    def __init__(self, transport, cache: PilotCache, baseline: PilotBaseline = DEFAULT_BASELINE):
        self.transport = transport
        self.cache = cache
        self.baseline = baseline

    def set_pilot(self, device: Device, change: Dict[str, Any], callback: ErrorCallback) -> bool:
        """Send ``change`` merged over the cached pilot.

        Without a cached pilot there is no safe baseline, so nothing is sent,
        ``callback`` is not called and False is returned.
        """
        mac = device.mac
        snapshot = self.cache.get(mac)
        if snapshot is None:
            logger.warning(f"No known state for {device.display_name}, ignoring {change}")
            return False

        merged = merge_pilot(snapshot, change, self.baseline)
        params = {key: value for key, value in merged.items() if value is not None}
        self.cache.set(mac, dataclasses.replace(snapshot, **merged))

        def on_sent(error: Optional[Exception]):
            if error is not None:
                logger.warning(f"Failed to set {params} on {device.display_name}: {error}")
                self.cache.set(mac, snapshot)
            callback(error)

        logger.debug(f"Setting pilot on {device.display_name}: {params}")
        self.transport.command(device, params, on_sent)
        return True
