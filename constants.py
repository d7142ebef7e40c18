from enum import Enum


class PowerState(Enum):
    """TV power state as seen from outside the bridge"""
    UNKNOWN = "unknown"
    ON = "on"
    OFF = "off"  # CEC standby and off are not distinguished


# Frames as cec-client prints them (lowercase, colon separated)
FRAME_POWER_REQUEST = "10:8f"
FRAME_POWER_ON = "01:90:00"
FRAME_POWER_STANDBY = "01:90:01"
# Broadcast standby, turns off the TV and every linked device
FRAME_POWER_OFF_BROADCAST = "0f:36"

# cec-client announcing itself as "CEC", and the replacement name "RPi"
FRAME_OSD_NAME_CEC = "10:47:43:45:43"
FRAME_OSD_NAME_RPI = "10:47:52:50:69"

DEFAULT_POLL_INTERVAL_MS = 2500
DEFAULT_DEBOUNCE_WINDOW_MS = 5000
DEFAULT_CEC_CLIENT_COMMAND = "cec-client"
DEFAULT_CEC_CLIENT_ARGS = ("-d", "8")
DEFAULT_NAME = "CEC TV"
