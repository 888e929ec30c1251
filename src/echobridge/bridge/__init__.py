"""Bridge emulation: registry, command translation, discovery and HTTP API."""

from echobridge.bridge.commands import LightCommand, apply_command, parse_command
from echobridge.bridge.config import BridgeConfig, DeviceConfig, load_config
from echobridge.bridge.device_registry import DeviceRegistry, LightNotFoundError
from echobridge.bridge.upnp_server import UPnPServer, determine_outbound_ip
from echobridge.bridge.web_server import create_app

__all__ = [
    "BridgeConfig",
    "DeviceConfig",
    "DeviceRegistry",
    "LightCommand",
    "LightNotFoundError",
    "UPnPServer",
    "apply_command",
    "create_app",
    "determine_outbound_ip",
    "load_config",
    "parse_command",
]
