"""Device drivers for emulated bridge lights."""

from .base import BaseDevice, DeviceError, DeviceResult
from .esp_dimmer import EspDimmerChannel, create_http_client
from .mock_dimmer import MockDimmerChannel
from .state import LightProperties, LightState, LightType

__all__ = [
    "BaseDevice",
    "DeviceError",
    "DeviceResult",
    "EspDimmerChannel",
    "LightProperties",
    "LightState",
    "LightType",
    "MockDimmerChannel",
    "create_http_client",
]
