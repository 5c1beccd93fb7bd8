"""Pytest configuration and fixtures for WiZ2MQTT tests."""

from unittest.mock import MagicMock

import pytest

from models import Device, Pilot
from pilot import AdaptiveLightingGate, PilotGetter, PilotSetter
from pilot_cache import PilotCache

# Short deadline so the timeout paths run quickly
FAST_TIMEOUT = 0.05


class FakeTransport:
    """Records requests; tests answer them by calling the stored callbacks."""

    def __init__(self):
        self.queries = []
        self.commands = []

    def query(self, device, callback):
        self.queries.append((device, callback))

    def command(self, device, params, callback):
        self.commands.append((device, params, callback))


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def cache():
    return PilotCache()


@pytest.fixture
def sink():
    return MagicMock()


@pytest.fixture
def registry():
    return {}


@pytest.fixture
def gate(cache, registry, sink):
    return AdaptiveLightingGate(cache, registry, sink)


@pytest.fixture
def getter(transport, cache, gate, sink):
    return PilotGetter(transport, cache, gate, sink, timeout=FAST_TIMEOUT)


@pytest.fixture
def setter(transport, cache):
    return PilotSetter(transport, cache)


@pytest.fixture
def rgb_device():
    return Device(mac="AA", host="127.0.0.1", name="Desk", model="ESP01_SHRGB1C_31")


@pytest.fixture
def tw_device():
    return Device(mac="BB", host="127.0.0.1", model="ESP56_SHTW3_01")


@pytest.fixture
def white_device():
    return Device(mac="CC", host="127.0.0.1", model="ESP05_SHDW_21")


@pytest.fixture
def red_pilot():
    return Pilot(mac="AA", rssi=-60, src="", state=True, scene_id=0, dimming=50, r=255, g=0, b=0)
