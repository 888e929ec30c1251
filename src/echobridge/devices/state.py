"""Light state and property value types shared by all drivers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

MAX_DUTY = 1023
MAX_BRIGHTNESS = 255

# Duty units per brightness unit on the read path (1024 / 256)
DUTY_PER_BRIGHTNESS = 4

# Switchable channels turn fully on at or above this brightness
SWITCH_THRESHOLD = 127


class LightType(Enum):
    """How a channel reacts to brightness: on/off only or continuous."""

    SWITCHABLE = "switchable"
    DIMMABLE = "dimmable"


@dataclass(frozen=True)
class LightState:
    """Snapshot of a light's state as exposed by the bridge API.

    Only drivers set ``reachable``, from the outcome of the last hardware
    interaction.
    """

    on: bool = False
    brightness: int = 0
    hue: int = 0
    saturation: int = 0
    xy: tuple[float, float] = (0.5, 0.5)
    color_temp: int = 0
    alert: str = "none"
    effect: str = "none"
    color_mode: str = "hs"
    reachable: bool = True

    def to_api_dict(self) -> dict[str, Any]:
        """Render the state subset reported by the bridge, in API field order."""
        return {
            "on": self.on,
            "bri": self.brightness,
            "hue": self.hue,
            "sat": self.saturation,
            "ct": self.color_temp,
            "alert": self.alert,
            "effect": self.effect,
            "reachable": self.reachable,
        }


@dataclass(frozen=True)
class LightProperties:
    """Static descriptive properties of a light."""

    name: str
    unique_id: str
    type: str = "Dimmable light"
    model_id: str = "LCT010"
    sw_version: str = "66012040"
    manufacturer: str = "Philips"


def duty_to_brightness(duty: int) -> int:
    """Convert a duty value in [0, 1023] to brightness (floor division)."""
    return duty // DUTY_PER_BRIGHTNESS


def brightness_to_duty(brightness: int) -> int:
    """Convert brightness in [0, 255] to a fade target, rounding up.

    Not the exact inverse of duty_to_brightness, but reading back a written
    value always yields the original brightness in this range.
    """
    return -(-brightness * MAX_DUTY // MAX_BRIGHTNESS)


def switch_duty(brightness: int) -> int:
    """Binary duty for switchable channels."""
    return MAX_DUTY if brightness >= SWITCH_THRESHOLD else 0


def target_duty(light_type: LightType, state: LightState) -> int:
    """Duty value a channel of ``light_type`` should be driven to.

    Only ``brightness`` is honored; an off request carries the brightness
    to drive to, usually zero.
    """
    if light_type is LightType.DIMMABLE:
        return brightness_to_duty(state.brightness)
    return switch_duty(state.brightness)
