"""Topic utilities for MQTT."""

from constants import HA_DISCOVERY_DEVICE_CLASS, MQTT_TOPIC_ROOT


def topic_state(mac: str, characteristic: str) -> str:
    """Get MQTT topic for a characteristic's state."""
    return f"{MQTT_TOPIC_ROOT}/{mac}/{characteristic}/state"


def topic_command(mac: str, characteristic: str) -> str:
    """Get MQTT topic for a characteristic's commands."""
    return f"{MQTT_TOPIC_ROOT}/{mac}/{characteristic}/set"


def topic_available(mac: str) -> str:
    """Get MQTT topic for bulb availability."""
    return f"{MQTT_TOPIC_ROOT}/{mac}/available"


def ha_discovery_topic(mac: str) -> str:
    """Get Home Assistant discovery topic for a bulb."""
    return f"homeassistant/{HA_DISCOVERY_DEVICE_CLASS}/wiz_{mac}/config"
