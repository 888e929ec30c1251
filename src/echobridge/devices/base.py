"""Base device interface for emulated bridge lights."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from echobridge.devices.state import LightProperties, LightState


class DeviceError(Enum):
    """Failure kinds a driver can report."""

    UNREACHABLE = "unreachable"
    MALFORMED_RESPONSE = "malformed_response"
    OUT_OF_RANGE = "out_of_range"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DeviceResult:
    """Outcome of a hardware interaction.

    Attributes:
        success: True if the device accepted the request
        message: Human readable summary
        state: Cached device state after the interaction
        error: Failure kind, None on success
        detail: Raw response body or underlying cause for diagnostics
    """

    success: bool
    message: str
    state: LightState
    error: Optional[DeviceError] = None
    detail: str = ""

    @classmethod
    def ok(cls, message: str, state: LightState) -> "DeviceResult":
        return cls(success=True, message=message, state=state)

    @classmethod
    def failed(
        cls, error: DeviceError, message: str, state: LightState, detail: str = ""
    ) -> "DeviceResult":
        return cls(success=False, message=message, state=state, error=error, detail=detail)


class BaseDevice(ABC):
    """Abstract base class for all bridge lights.

    Every driver implements this interface so the registry and the command
    translator can treat heterogeneous hardware uniformly. Drivers own their
    state; the base class holds none.
    """

    @abstractmethod
    def properties(self) -> LightProperties:
        """Return the static properties of the light."""

    @abstractmethod
    def current_state(self) -> LightState:
        """Return the last known state without probing the hardware."""

    @abstractmethod
    async def refresh(self) -> DeviceResult:
        """Query the hardware and overwrite the cached state.

        On failure the cached state is marked unreachable and the failure
        kind is reported. Properties are never touched.
        """

    @abstractmethod
    async def apply_state(self, state: LightState) -> DeviceResult:
        """Send the supported parts of ``state`` to the hardware.

        Args:
            state: Requested state; drivers honor only the fields they support

        Returns:
            DeviceResult distinguishing a rejected request from an
            unreachable device
        """

    def descriptor(self) -> dict[str, Any]:
        """Bridge API descriptor of this light, in API field order."""
        props = self.properties()
        return {
            "name": props.name,
            "type": props.type,
            "modelid": props.model_id,
            "uniqueid": props.unique_id,
            "swversion": props.sw_version,
            "manufacturername": props.manufacturer,
            "state": self.current_state().to_api_dict(),
        }

    def describe(self) -> str:
        """Render the descriptor as JSON text."""
        return json.dumps(self.descriptor())
