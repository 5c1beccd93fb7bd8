"""Main WiZ2MQTT bridge application."""

import asyncio
import json
import logging
import os
from typing import Any, Callable, Dict, Optional

import yaml

from characteristics import MAX_MIRED, MIN_MIRED, change_from_command
from constants import (
    CHAR_ADAPTIVE_LIGHTING,
    CHAR_BRIGHTNESS,
    CHAR_COLOR_TEMP,
    CHAR_HS,
    CHAR_ON,
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_EXAMPLE_FILE,
    DEFAULT_CONFIG_FILE,
    MQTT_PAYLOAD_OFF,
    MQTT_PAYLOAD_ON,
    PILOT_REFRESH_INTERVAL,
    WIZ_PORT,
)
from device_helpers import is_rgb, is_tw
from models import Device, Pilot, WizCommand
from mqtt_bridge import MqttBridge
from pilot import AdaptiveLightingGate, PilotGetter, PilotSetter, update_pilot
from pilot_cache import PilotCache
from presentation import MqttPresentationSink
from topics import ha_discovery_topic, topic_available, topic_command, topic_state
from wiz_transport import WizTransport

logger = logging.getLogger(__name__)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load and validate configuration file."""
    path = path or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE)
    if not os.path.exists(path):
        raise FileNotFoundError(
            f"Configuration file '{path}' not found. "
            f"Please copy '{DEFAULT_CONFIG_EXAMPLE_FILE}' to '{DEFAULT_CONFIG_FILE}' "
            f"and update with your settings."
        )

    try:
        with open(path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in '{path}': {e}")

    if not config:
        raise ValueError(f"'{path}' is empty")

    # Validate required sections
    if 'mqtt' not in config:
        raise ValueError("Missing 'mqtt' section in configuration")
    if not config.get('devices'):
        raise ValueError("Missing 'devices' section in configuration")

    # Validate required keys
    mqtt_config = config.get('mqtt') or {}
    if 'host' not in mqtt_config:
        raise ValueError("Missing 'mqtt.host' in configuration")
    if 'port' not in mqtt_config:
        raise ValueError("Missing 'mqtt.port' in configuration")

    for i, device in enumerate(config['devices']):
        if not isinstance(device, dict):
            raise ValueError(f"'devices[{i}]' must be a mapping")
        if 'mac' not in device:
            raise ValueError(f"Missing 'devices[{i}].mac' in configuration")
        if 'host' not in device:
            raise ValueError(f"Missing 'devices[{i}].host' in configuration")

    return config


def devices_from_config(config: Dict[str, Any]) -> Dict[str, Device]:
    devices: Dict[str, Device] = {}
    for entry in config['devices']:
        mac = str(entry['mac']).replace(":", "").lower()
        devices[mac] = Device(
            mac=mac,
            host=str(entry['host']),
            port=int(entry.get('port', WIZ_PORT)),
            name=entry.get('name'),
            model=str(entry.get('model', "")),
        )
    return devices


class Wiz2MQTT:
    """Main bridge application."""

    def __init__(self, config: Dict[str, Any], transport=None):
        self.loop = asyncio.get_running_loop()
        self.cmd_queue: asyncio.Queue[WizCommand] = asyncio.Queue()
        self.refresh_interval = float(config.get('refresh_interval', PILOT_REFRESH_INTERVAL))
        self.devices = devices_from_config(config)

        mqtt_config = config['mqtt']
        self.mqtt = MqttBridge(self.loop, self.cmd_queue, mqtt_config['host'], int(mqtt_config['port']))
        self.transport = transport if transport is not None else WizTransport()

        self.cache = PilotCache()
        self.sink = MqttPresentationSink(self.mqtt)
        # mac -> callback switching adaptive lighting off; present while it is on
        self.adaptive_lighting: Dict[str, Callable[[], None]] = {}
        self.gate = AdaptiveLightingGate(self.cache, self.adaptive_lighting, self.sink)
        self.getter = PilotGetter(self.transport, self.cache, self.gate, self.sink)
        self.setter = PilotSetter(self.transport, self.cache)

        self.running = True

    async def start(self):
        """Start the bridge."""
        self.mqtt.connect()
        logger.info("MQTT bridge connected")

        for device in self.devices.values():
            self.publish_ha_discovery(device)
            self.sink.publish_extra(device, CHAR_ADAPTIVE_LIGHTING, False)

        self.refresh_all()

        self._tasks = [
            asyncio.create_task(self.periodic_refresh_task(), name="refresh"),
            asyncio.create_task(self.command_consumer_task(), name="cmd_consumer"),
        ]

        # Wait until tasks finish (they won't until stopped)
        await asyncio.gather(*self._tasks)

    async def stop(self):
        """Stop the bridge."""
        if not self.running:
            return
        self.running = False

        # Cancel tasks first
        tasks = getattr(self, "_tasks", [])
        for t in tasks:
            t.cancel()
        for t in tasks:
            try:
                await t
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.debug("Task failed during shutdown", exc_info=True)

        # Then close resources
        try:
            self.mqtt.close()
        except Exception:
            logger.debug("Error closing MQTT connection", exc_info=True)
        if isinstance(self.transport, WizTransport):
            await self.transport.close()

    def publish_ha_discovery(self, device: Device):
        """Publish Home Assistant discovery message."""
        mac = device.mac
        payload = {
            "name": device.display_name,
            "state_topic": topic_state(mac, CHAR_ON),
            "command_topic": topic_command(mac, CHAR_ON),
            "availability_topic": topic_available(mac),
            "payload_on": MQTT_PAYLOAD_ON,
            "payload_off": MQTT_PAYLOAD_OFF,
            "brightness_state_topic": topic_state(mac, CHAR_BRIGHTNESS),
            "brightness_command_topic": topic_command(mac, CHAR_BRIGHTNESS),
            "brightness_scale": 100,
            "on_command_type": "first",
            "unique_id": f"wiz_{mac}",
            "device": {
                "identifiers": [f"wiz_{mac}"],
                "connections": [["mac", mac]],
                "name": device.display_name,
                "manufacturer": "WiZ",
                "model": device.model or "WiZ bulb",
            },
        }
        if is_tw(device):
            payload.update({
                "color_temp_state_topic": topic_state(mac, CHAR_COLOR_TEMP),
                "color_temp_command_topic": topic_command(mac, CHAR_COLOR_TEMP),
                "min_mireds": MIN_MIRED,
                "max_mireds": MAX_MIRED,
            })
        if is_rgb(device):
            payload.update({
                "hs_state_topic": topic_state(mac, CHAR_HS),
                "hs_command_topic": topic_command(mac, CHAR_HS),
            })

        self.mqtt.publish_retained(ha_discovery_topic(mac), json.dumps(payload))
        logger.debug(f"Home Assistant discovery published for {device.display_name}")

    def refresh_all(self):
        """Query every bulb; results land on MQTT through the callbacks."""
        for device in self.devices.values():
            self.refresh_device(device)

    def refresh_device(self, device: Device):
        def on_success(pilot: Pilot):
            update_pilot(self.sink, device, pilot)

        def on_error(error: Exception):
            logger.warning(f"Failed to refresh {device.display_name}: {error}")
            update_pilot(self.sink, device, error)

        self.getter.get_pilot(device, on_success, on_error)

    async def periodic_refresh_task(self):
        """Periodically refresh every bulb's pilot."""
        while self.running:
            await asyncio.sleep(self.refresh_interval)
            if not self.running:
                break
            try:
                self.refresh_all()
            except Exception as e:
                logger.error(f"Pilot refresh error: {e}", exc_info=True)

    async def command_consumer_task(self):
        """Consume commands from MQTT queue and send to the bulbs."""
        while self.running:
            cmd = await self.cmd_queue.get()
            try:
                self.handle_command(cmd)
            except Exception as e:
                logger.error(f"Failed to handle command for {cmd.mac}: {e}", exc_info=True)

    def handle_command(self, cmd: WizCommand) -> bool:
        """Apply one MQTT command. Returns True when something was sent."""
        device = self.devices.get(cmd.mac)
        if device is None:
            logger.warning(f"Command for unknown bulb {cmd.mac}")
            return False
        logger.info(f"Processing MQTT command: {device.display_name} {cmd.characteristic} {cmd.payload}")

        if cmd.characteristic == CHAR_ADAPTIVE_LIGHTING:
            self.set_adaptive_lighting(device, cmd.payload.strip().upper() == MQTT_PAYLOAD_ON)
            return False

        try:
            change = change_from_command(cmd.characteristic, cmd.payload, self.cache.get(device.mac))
        except ValueError as e:
            logger.warning(f"Ignoring command for {device.display_name}: {e}")
            return False

        def on_done(error: Optional[Exception]):
            if error is not None:
                logger.error(f"Failed to set {cmd.characteristic} on {device.display_name}: {error}")
            else:
                logger.info(f"Command sent successfully to {device.display_name}")
            # publish whatever the cache holds now: the new state, or the rolled back one
            pilot = self.cache.get(device.mac)
            if pilot is not None:
                update_pilot(self.sink, device, pilot)

        callback = on_done
        if cmd.characteristic in (CHAR_COLOR_TEMP, CHAR_HS):
            callback = self.gate.update_color_temp(device, on_done)

        sent = self.setter.set_pilot(device, change, callback)
        if not sent:
            # no baseline yet; fetch one so the next command can go through
            self.refresh_device(device)
        return sent

    def set_adaptive_lighting(self, device: Device, enabled: bool):
        mac = device.mac
        if enabled:
            self.adaptive_lighting[mac] = lambda: self.set_adaptive_lighting(device, False)
        else:
            self.adaptive_lighting.pop(mac, None)
        logger.info(f"Adaptive lighting for {device.display_name}: {'on' if enabled else 'off'}")
        self.sink.publish_extra(device, CHAR_ADAPTIVE_LIGHTING, enabled)
