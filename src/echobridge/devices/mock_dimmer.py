"""In-memory dimmer channel for development and testing."""

import asyncio
import logging
from dataclasses import replace

from echobridge.devices.base import BaseDevice, DeviceError, DeviceResult
from echobridge.devices.state import (
    MAX_BRIGHTNESS,
    LightProperties,
    LightState,
    LightType,
    duty_to_brightness,
    target_duty,
)

logger = logging.getLogger(__name__)


class MockDimmerChannel(BaseDevice):
    """Mock implementation of a dimmer channel.

    Simulates the duty register of a real channel using the same
    brightness translation. Set ``simulate_unreachable`` or
    ``reject_commands`` to exercise failure paths.
    """

    def __init__(
        self,
        name: str,
        light_type: LightType = LightType.DIMMABLE,
        unique_id: str = "00:17:88:5E:D3:FF-01",
        duty: int = 0,
    ):
        self.light_type = light_type
        self.duty = duty
        self.simulate_unreachable = False
        self.reject_commands = False
        self._props = LightProperties(name=name, unique_id=unique_id)
        self._state = LightState()
        self._lock = asyncio.Lock()
        logger.info(f"MockDimmerChannel {name!r} initialized with duty {duty}")

    def properties(self) -> LightProperties:
        return self._props

    def current_state(self) -> LightState:
        return self._state

    async def refresh(self) -> DeviceResult:
        async with self._lock:
            if self.simulate_unreachable:
                self._state = replace(self._state, reachable=False)
                return DeviceResult.failed(
                    DeviceError.UNREACHABLE, "Device unreachable (mock)", self._state
                )
            brightness = duty_to_brightness(self.duty)
            self._state = replace(
                self._state, on=brightness > 0, brightness=brightness, reachable=True
            )
            return DeviceResult.ok("State refreshed", self._state)

    async def apply_state(self, state: LightState) -> DeviceResult:
        if not 0 <= state.brightness <= MAX_BRIGHTNESS:
            return DeviceResult.failed(
                DeviceError.OUT_OF_RANGE,
                f"Brightness must be 0-{MAX_BRIGHTNESS}, got {state.brightness}",
                self._state,
            )

        async with self._lock:
            if self.simulate_unreachable:
                self._state = replace(self._state, reachable=False)
                return DeviceResult.failed(
                    DeviceError.UNREACHABLE, "Device unreachable (mock)", self._state
                )
            duty = target_duty(self.light_type, state)
            if self.reject_commands:
                return DeviceResult.failed(
                    DeviceError.REJECTED, "Got erroneous response: Error", self._state, "Error"
                )

            logger.info(f"Setting {self._props.name} duty to {duty} (mock)")
            self.duty = duty
            self._state = replace(
                state, on=duty > 0, brightness=duty_to_brightness(duty), reachable=True
            )
            return DeviceResult.ok(f"Duty set to {duty}", self._state)
