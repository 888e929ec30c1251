"""Configuration loader for the bridge."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from echobridge.devices.state import LightType

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.echobridge/config.json"
DEFAULT_HTTP_HOST = "0.0.0.0"
DEFAULT_REQUEST_TIMEOUT = 15.0


@dataclass
class DeviceConfig:
    """One dimmer channel exposed as a light."""

    name: str
    address: str
    gpio: int
    light_type: LightType = LightType.DIMMABLE
    unique_id: Optional[str] = None

    def validate(self) -> None:
        """Check the entry is usable.

        Raises:
            ValueError: If a field is invalid
        """
        if not self.name:
            raise ValueError("device name must not be empty")
        if not self.address.startswith(("http://", "https://")):
            raise ValueError(f"{self.name}: address must be an http(s) URL, got {self.address!r}")
        if not self.address.endswith("/"):
            raise ValueError(f"{self.name}: address must end with '/', got {self.address!r}")
        if self.gpio < 0:
            raise ValueError(f"{self.name}: gpio must be >= 0, got {self.gpio}")


@dataclass
class BridgeConfig:
    """Bridge process configuration."""

    devices: list[DeviceConfig] = field(default_factory=list)
    http_host: str = DEFAULT_HTTP_HOST
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    poll_interval: float = 0.0

    def validate(self) -> None:
        """Validate the configuration and every device entry."""
        if not self.devices:
            raise ValueError("at least one device must be configured")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.poll_interval < 0:
            raise ValueError(f"poll_interval must be >= 0, got {self.poll_interval}")
        for device in self.devices:
            device.validate()

    def unique_id_for(self, light_id: int) -> str:
        """Unique ID of the device at 1-based position ``light_id``."""
        device = self.devices[light_id - 1]
        return device.unique_id or f"00:17:88:5E:D3:FF-{light_id:02d}"


def _parse_device(data: dict) -> DeviceConfig:
    try:
        light_type = LightType(str(data.get("type", LightType.DIMMABLE.value)).lower())
    except ValueError:
        raise ValueError(f"unknown light type: {data.get('type')!r}") from None

    try:
        return DeviceConfig(
            name=str(data["name"]),
            address=str(data["address"]),
            gpio=int(data["gpio"]),
            light_type=light_type,
            unique_id=data.get("unique_id"),
        )
    except KeyError as e:
        raise ValueError(f"device entry missing field {e}") from None


def load_config(config_path: Optional[str] = None) -> BridgeConfig:
    """Load bridge configuration from file with environment variable overrides.

    Environment variables:
        ECHOBRIDGE_CONFIG_PATH: Override config file location
        ECHOBRIDGE_HTTP_HOST: Override the HTTP listen address
        ECHOBRIDGE_POLL_INTERVAL: Override the state polling interval (seconds)

    Args:
        config_path: Path to config JSON file. Defaults to ~/.echobridge/config.json

    Returns:
        Validated BridgeConfig

    Raises:
        FileNotFoundError: If the config file does not exist
        ValueError: If the config is invalid
    """
    path_str = config_path or os.environ.get("ECHOBRIDGE_CONFIG_PATH", DEFAULT_CONFIG_PATH)
    config_file = Path(path_str).expanduser()

    if not config_file.exists():
        raise FileNotFoundError(
            f"Bridge config not found at {config_file}. "
            f"Create it with a 'devices' list of name/address/gpio/type entries."
        )

    with open(config_file) as f:
        data = json.load(f)

    config = BridgeConfig(
        devices=[_parse_device(d) for d in data.get("devices", [])],
        http_host=os.environ.get("ECHOBRIDGE_HTTP_HOST", data.get("http_host", DEFAULT_HTTP_HOST)),
        request_timeout=float(data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)),
        poll_interval=float(
            os.environ.get("ECHOBRIDGE_POLL_INTERVAL", data.get("poll_interval", 0.0))
        ),
    )
    config.validate()

    logger.info(f"Loaded bridge config: {len(config.devices)} device(s) from {config_file}")
    return config
