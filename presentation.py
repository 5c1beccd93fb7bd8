"""Publishing bulb characteristics to MQTT."""

import logging
from typing import Any, Dict, Tuple

from constants import (
    CHAR_ON,
    MQTT_PAYLOAD_AVAILABLE,
    MQTT_PAYLOAD_OFF,
    MQTT_PAYLOAD_ON,
    MQTT_PAYLOAD_UNAVAILABLE,
)
from models import Device
from topics import topic_available, topic_state

logger = logging.getLogger(__name__)


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return MQTT_PAYLOAD_ON if value else MQTT_PAYLOAD_OFF
    if isinstance(value, float):
        return str(round(value))
    if isinstance(value, tuple):
        # combined values such as hue,saturation
        return ",".join(format_value(v) for v in value)
    return str(value)


class MqttPresentationSink:
    """Characteristic values for the hub, published as retained MQTT messages.

    An error marks the bulb unavailable so the hub shows it as not
    responding; the next good power value marks it available again.
    """

    def __init__(self, mqtt):
        self.mqtt = mqtt

        # Track last published values to avoid spamming
        self.last_value: Dict[Tuple[str, str], str] = {}
        self.last_avail: Dict[str, bool] = {}

    def update_value(self, device: Device, characteristic: str, value: Any):
        mac = device.mac
        if isinstance(value, Exception):
            logger.debug(f"{device.display_name} {characteristic} errored: {value}")
            self._set_available(mac, False)
            return

        if characteristic == CHAR_ON:
            self._set_available(mac, True)
        self._publish(mac, characteristic, format_value(value))

    def publish_extra(self, device: Device, characteristic: str, value: Any):
        """Publish a bridge-side characteristic that no pilot carries."""
        self._publish(device.mac, characteristic, format_value(value))

    def _publish(self, mac: str, characteristic: str, payload: str):
        key = (mac, characteristic)
        if self.last_value.get(key) == payload:
            return
        self.last_value[key] = payload
        self.mqtt.publish_retained(topic_state(mac, characteristic), payload)

    def _set_available(self, mac: str, available: bool):
        if self.last_avail.get(mac) == available:
            return
        self.last_avail[mac] = available
        self.mqtt.publish_retained(
            topic_available(mac),
            MQTT_PAYLOAD_AVAILABLE if available else MQTT_PAYLOAD_UNAVAILABLE,
        )
        logger.info(f"Published availability for {mac}: {available}")
