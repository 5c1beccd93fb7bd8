"""Tests for merge_pilot and PilotSetter: optimistic write and rollback."""

import pytest

from exceptions import WizTransportError
from models import DEFAULT_BASELINE, Pilot, PilotBaseline
from pilot import PilotSetter, merge_pilot


class TestMergePilot:
    """Test merging partial changes over a cached pilot."""

    def test_partial_change_keeps_colour(self, red_pilot):
        merged = merge_pilot(red_pilot, {"dimming": 80})
        assert merged == {"state": True, "dimming": 80, "temp": None, "r": 255, "g": 0, "b": 0}

    def test_baseline_fills_missing_fields(self):
        merged = merge_pilot(Pilot(mac="AA"), {"temp": 2700})
        assert merged["state"] is DEFAULT_BASELINE.state is False
        assert merged["dimming"] == DEFAULT_BASELINE.dimming == 10
        assert merged["temp"] == 2700

    def test_custom_baseline(self):
        merged = merge_pilot(Pilot(mac="AA"), {}, PilotBaseline(state=True, dimming=40))
        assert merged["state"] is True
        assert merged["dimming"] == 40

    def test_none_clears_a_field(self, red_pilot):
        merged = merge_pilot(red_pilot, {"temp": 4000, "r": None, "g": None, "b": None})
        assert merged["temp"] == 4000
        assert merged["r"] is None and merged["g"] is None and merged["b"] is None

    def test_scene_change_passes_through(self, red_pilot):
        assert merge_pilot(red_pilot, {"scene_id": 4})["scene_id"] == 4

    def test_unknown_field_rejected(self, red_pilot):
        with pytest.raises(ValueError, match="mac"):
            merge_pilot(red_pilot, {"mac": "BB"})


class TestSetPilot:
    """Test the optimistic write / rollback cycle."""

    def test_sends_full_merged_state(self, setter, transport, cache, rgb_device, red_pilot):
        cache.set("AA", red_pilot)

        assert setter.set_pilot(rgb_device, {"dimming": 80}, lambda error: None) is True

        device, params, _ = transport.commands[0]
        assert device is rgb_device
        assert params == {"state": True, "dimming": 80, "r": 255, "g": 0, "b": 0}
        assert "temp" not in params

    def test_cache_is_updated_before_reply(self, setter, transport, cache, rgb_device, red_pilot):
        cache.set("AA", red_pilot)
        setter.set_pilot(rgb_device, {"dimming": 80}, lambda error: None)

        pending = cache.get("AA")
        assert pending.dimming == 80
        # identity fields survive the optimistic write
        assert pending.mac == "AA"
        assert pending.rssi == -60

    def test_success_keeps_optimistic_value(self, setter, transport, cache, rgb_device, red_pilot):
        cache.set("AA", red_pilot)
        errors = []
        setter.set_pilot(rgb_device, {"dimming": 80}, errors.append)

        transport.commands[0][2](None)

        assert errors == [None]
        assert cache.get("AA").dimming == 80

    def test_failure_restores_snapshot(self, setter, transport, cache, rgb_device, red_pilot):
        cache.set("AA", red_pilot)
        errors = []
        setter.set_pilot(rgb_device, {"dimming": 80}, errors.append)

        error = WizTransportError("unreachable")
        transport.commands[0][2](error)

        assert errors == [error]
        assert cache.get("AA") == Pilot(mac="AA", rssi=-60, state=True, scene_id=0, dimming=50, r=255, g=0, b=0)
        assert cache.get("AA") is red_pilot

    def test_rollback_ignores_interleaved_writes(self, setter, transport, cache, rgb_device, red_pilot):
        cache.set("AA", red_pilot)
        setter.set_pilot(rgb_device, {"dimming": 80}, lambda error: None)
        setter.set_pilot(rgb_device, {"state": False}, lambda error: None)

        # second send succeeds, first one fails afterwards: last rollback wins
        transport.commands[1][2](None)
        transport.commands[0][2](WizTransportError("lost"))

        assert cache.get("AA") is red_pilot

    def test_no_cached_pilot_is_a_silent_noop(self, setter, transport, cache, rgb_device):
        calls = []

        assert setter.set_pilot(rgb_device, {"dimming": 80}, calls.append) is False

        assert transport.commands == []
        assert calls == []
        assert "AA" not in cache

    def test_custom_baseline_is_used(self, transport, cache, rgb_device):
        setter = PilotSetter(transport, cache, baseline=PilotBaseline(dimming=25))
        cache.set("AA", Pilot(mac="AA", state=True))

        setter.set_pilot(rgb_device, {"temp": 3000}, lambda error: None)

        assert transport.commands[0][1] == {"state": True, "dimming": 25, "temp": 3000}
