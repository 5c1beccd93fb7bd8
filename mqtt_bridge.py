"""MQTT bridge implementation."""

import asyncio
import logging

import paho.mqtt.client as mqtt

from constants import (
    MQTT_CMD_TOPIC_PATTERN,
    MQTT_KEEPALIVE,
    MQTT_QOS,
    MQTT_TOPIC_ROOT,
)
from models import WizCommand

logger = logging.getLogger(__name__)


class MqttBridge:
    """Bridge between MQTT and asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop, cmd_queue: asyncio.Queue[WizCommand],
                 host: str = "localhost", port: int = 1883):
        self.loop = loop
        self.cmd_queue = cmd_queue
        self.host = host
        self.port = port
        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message

    def connect(self):
        """Connect to MQTT broker."""
        try:
            self.client.connect(self.host, self.port, keepalive=MQTT_KEEPALIVE)
            self.client.loop_start()
            logger.info(f"Connected to MQTT broker at {self.host}:{self.port}")
        except Exception as e:
            logger.error(f"Failed to connect to MQTT broker: {e}")
            raise

    def close(self):
        """Close MQTT connection."""
        try:
            self.client.loop_stop()
        finally:
            self.client.disconnect()

    def publish_retained(self, topic: str, payload: str):
        """Publish a retained message."""
        # retained so the hub sees the last state after a restart
        self.client.publish(topic, payload=payload, qos=MQTT_QOS, retain=True)
        logger.debug(f"Published to {topic}: {payload}")

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        """Handle MQTT connection."""
        if reason_code == 0:
            logger.info("Connected to MQTT broker successfully")
        else:
            logger.warning(f"Connected to MQTT broker with code {reason_code}")
        client.subscribe(MQTT_CMD_TOPIC_PATTERN, qos=MQTT_QOS)
        logger.info(f"Subscribed to: {MQTT_CMD_TOPIC_PATTERN}")

    def _on_message(self, client, userdata, msg):
        """Handle incoming MQTT message."""
        try:
            topic = msg.topic  # wiz/<mac>/<characteristic>/set
            payload = (msg.payload or b"").decode("utf-8", errors="replace").strip()

            parts = topic.split("/")
            if len(parts) != 4 or parts[0] != MQTT_TOPIC_ROOT or parts[3] != "set":
                logger.debug(f"Ignoring malformed topic: {topic}")
                return
            if not payload:
                logger.warning(f"Empty payload on {topic}")
                return

            cmd = WizCommand(mac=parts[1].lower(), characteristic=parts[2], payload=payload)
            logger.info(f"Received command from MQTT: {cmd.mac} {cmd.characteristic} {payload}")
            # push into asyncio loop safely from MQTT thread
            self.loop.call_soon_threadsafe(self.cmd_queue.put_nowait, cmd)

        except Exception as e:
            logger.error(f"Error handling MQTT message: {e}", exc_info=True)
