"""Constants for WiZ2MQTT bridge."""

# WiZ local protocol
WIZ_PORT = 38899
WIZ_METHOD_GET_PILOT = "getPilot"
WIZ_METHOD_SET_PILOT = "setPilot"

# Dimming range accepted by the bulbs
MIN_DIMMING = 10
MAX_DIMMING = 100

# Tunable white range (Kelvin)
MIN_KELVIN = 2200
MAX_KELVIN = 6500

# Colour temperature estimation domain (Kelvin)
COLOR_TEMP_DOMAIN_MIN = 1000
COLOR_TEMP_DOMAIN_MAX = 40000

# Default configuration paths
DEFAULT_CONFIG_FILE = "wiz2mqtt.yaml"
DEFAULT_CONFIG_EXAMPLE_FILE = "wiz2mqtt.yaml.example"
CONFIG_ENV_VAR = "WIZ2MQTT_CONFIG"

# Characteristics exposed per bulb
CHAR_ON = "on"
CHAR_BRIGHTNESS = "brightness"
CHAR_COLOR_TEMP = "color_temp"
CHAR_HUE = "hue"
CHAR_SATURATION = "saturation"
CHAR_HS = "hs"
CHAR_SCENE = "scene"
CHAR_ADAPTIVE_LIGHTING = "adaptive_lighting"

# MQTT Topics and Payloads
MQTT_TOPIC_ROOT = "wiz"
MQTT_CMD_TOPIC_PATTERN = "wiz/+/+/set"
MQTT_PAYLOAD_ON = "ON"
MQTT_PAYLOAD_OFF = "OFF"
MQTT_PAYLOAD_TOGGLE = "TOGGLE"
MQTT_PAYLOAD_AVAILABLE = "true"
MQTT_PAYLOAD_UNAVAILABLE = "false"

# Home Assistant Discovery
HA_DISCOVERY_DEVICE_CLASS = "light"

# Timeouts (seconds)
PILOT_QUERY_TIMEOUT = 1.0
WIZ_REQUEST_TIMEOUT = 5.0
WIZ_RESEND_INTERVAL = 0.75

# Refresh interval (seconds)
PILOT_REFRESH_INTERVAL = 30

# MQTT settings
MQTT_QOS = 1
MQTT_KEEPALIVE = 60
