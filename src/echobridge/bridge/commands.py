"""Translation of simplified on/brightness commands into device state."""

import json
import logging
from dataclasses import replace
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, ValidationError

from echobridge.devices.base import BaseDevice, DeviceResult
from echobridge.devices.state import MAX_BRIGHTNESS

logger = logging.getLogger(__name__)


class InvalidCommandError(ValueError):
    """Raised when a command body does not have the expected shape.

    Attributes:
        invalid_json: True if the body is not a JSON object at all
    """

    def __init__(self, message: str, invalid_json: bool = False):
        super().__init__(message)
        self.invalid_json = invalid_json


class LightCommand(BaseModel):
    """Body of a set-state request as sent by the voice assistant."""

    model_config = ConfigDict(extra="ignore")

    on: StrictBool = False
    bri: StrictInt = Field(default=0, ge=0, le=MAX_BRIGHTNESS)

    def effective_brightness(self) -> int:
        """Brightness to dispatch; turning on without brightness means full."""
        if self.on and self.bri == 0:
            return MAX_BRIGHTNESS
        return self.bri


def parse_command(body: bytes) -> LightCommand:
    """Parse a raw request body into a LightCommand.

    Raises:
        InvalidCommandError: If the body is not valid JSON or fields are invalid
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidCommandError(f"body contains invalid JSON: {e}", invalid_json=True) from e

    if not isinstance(data, dict):
        raise InvalidCommandError("body contains invalid JSON: expected an object", invalid_json=True)

    try:
        return LightCommand.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidCommandError(f"invalid value: {errors}") from e


async def apply_command(device: BaseDevice, command: LightCommand) -> DeviceResult:
    """Dispatch a command to a device.

    The outgoing state starts from the device's current state so fields the
    command does not carry keep their values.
    """
    state = replace(
        device.current_state(), on=command.on, brightness=command.effective_brightness()
    )
    logger.info(
        f"Applying on={state.on} bri={state.brightness} to {device.properties().name}"
    )
    return await device.apply_state(state)


def success_payload(light_id: int, command: LightCommand) -> list[dict[str, Any]]:
    """Per-field success acknowledgments for an applied command."""
    return [
        {"success": {f"/lights/{light_id}/state/bri": command.effective_brightness()}},
        {"success": {f"/lights/{light_id}/state/on": command.on}},
    ]
