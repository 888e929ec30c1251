"""Dimmer channel on an ESP microcontroller, driven over its HTTP PWM API."""

import asyncio
import logging
from dataclasses import replace
from typing import Optional

import httpx

from echobridge.devices.base import BaseDevice, DeviceError, DeviceResult
from echobridge.devices.state import (
    MAX_BRIGHTNESS,
    MAX_DUTY,
    LightProperties,
    LightState,
    LightType,
    duty_to_brightness,
    target_duty,
)

logger = logging.getLogger(__name__)

# Seconds, applied to connect (including TLS), read, write, pool, keep-alive
# and to each request as a whole
DEFAULT_TIMEOUT = 15.0

# Literal the firmware returns when a duty command was accepted
SUCCESS_MARKER = "Ok"


def create_http_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create the pooled HTTP client shared by dimmer drivers."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        limits=httpx.Limits(max_keepalive_connections=100, keepalive_expiry=timeout),
        trust_env=True,
    )


class EspDimmerChannel(BaseDevice):
    """One GPIO channel of a networked dimmer.

    The firmware exposes ``getPwmDuty``, ``setPwmDuty`` and ``fadePwmDuty``
    endpoints under ``address`` taking a ``gpio`` query parameter. Duty
    values range from 0 to 1023.
    """

    def __init__(
        self,
        name: str,
        address: str,
        gpio: int,
        light_type: LightType = LightType.DIMMABLE,
        client: Optional[httpx.AsyncClient] = None,
        unique_id: str = "00:17:88:5E:D3:FF-01",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the channel.

        Args:
            name: Light name reported to the assistant
            address: Firmware base URL, ending in a slash
            gpio: GPIO number of the channel
            light_type: Whether the channel fades or switches
            client: Shared HTTP client; one is created if omitted
            unique_id: Unique ID reported to the assistant
            timeout: Upper bound in seconds on each whole request
        """
        self.address = address
        self.gpio = gpio
        self.light_type = light_type
        self.timeout = timeout
        self._props = LightProperties(name=name, unique_id=unique_id)
        self._state = LightState()
        self._lock = asyncio.Lock()
        self._owns_client = client is None
        self._client = client if client is not None else create_http_client(timeout)

    def properties(self) -> LightProperties:
        return self._props

    def current_state(self) -> LightState:
        return self._state

    async def refresh(self) -> DeviceResult:
        async with self._lock:
            try:
                response = await self._get("getPwmDuty", {"gpio": self.gpio})
            except (httpx.HTTPError, asyncio.TimeoutError) as e:
                return self._refresh_failed(
                    DeviceError.UNREACHABLE, f"Request failed: {e!r}", self._failure_detail(e)
                )

            body = response.text.strip()
            digits = body[1:] if body.startswith("-") else body
            if not digits.isascii() or not digits.isdigit():
                return self._refresh_failed(
                    DeviceError.MALFORMED_RESPONSE, "Duty value is not an integer", body
                )

            duty = int(body)
            if not 0 <= duty <= MAX_DUTY:
                return self._refresh_failed(
                    DeviceError.OUT_OF_RANGE, f"Duty must be 0-{MAX_DUTY}, got {duty}", body
                )

            brightness = duty_to_brightness(duty)
            self._state = replace(
                self._state, on=brightness > 0, brightness=brightness, reachable=True
            )
            logger.debug(f"{self._props.name}: duty {duty} -> brightness {brightness}")
            return DeviceResult.ok("State refreshed", self._state)

    async def apply_state(self, state: LightState) -> DeviceResult:
        if not 0 <= state.brightness <= MAX_BRIGHTNESS:
            return DeviceResult.failed(
                DeviceError.OUT_OF_RANGE,
                f"Brightness must be 0-{MAX_BRIGHTNESS}, got {state.brightness}",
                self._state,
            )

        duty = target_duty(self.light_type, state)
        # Switch/toggle instead of fade
        endpoint = "fadePwmDuty" if self.light_type is LightType.DIMMABLE else "setPwmDuty"

        async with self._lock:
            logger.info(f"{self._props.name}: {endpoint} gpio={self.gpio} duty={duty}")
            try:
                response = await self._get(endpoint, {"gpio": self.gpio, "duty": duty})
            except (httpx.HTTPError, asyncio.TimeoutError) as e:
                logger.warning(f"{self._props.name} unreachable: {e!r}")
                self._state = replace(self._state, reachable=False)
                return DeviceResult.failed(
                    DeviceError.UNREACHABLE,
                    f"Request failed: {e!r}",
                    self._state,
                    self._failure_detail(e),
                )

            body = response.text
            if SUCCESS_MARKER not in body:
                logger.warning(f"{self._props.name} rejected duty {duty}: {body!r}")
                return DeviceResult.failed(
                    DeviceError.REJECTED, f"Got erroneous response: {body}", self._state, body
                )

            brightness = duty_to_brightness(duty)
            self._state = replace(state, on=duty > 0, brightness=brightness, reachable=True)
            return DeviceResult.ok(f"Duty set to {duty}", self._state)

    async def aclose(self) -> None:
        """Close the HTTP client if this driver created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, endpoint: str, params: dict[str, int]) -> httpx.Response:
        # httpx timeouts bound each phase, not the whole request
        return await asyncio.wait_for(
            self._client.get(f"{self.address}{endpoint}", params=params), self.timeout
        )

    def _failure_detail(self, error: Exception) -> str:
        if isinstance(error, asyncio.TimeoutError):
            return f"no complete response within {self.timeout}s"
        return str(error)

    def _refresh_failed(self, error: DeviceError, message: str, detail: str) -> DeviceResult:
        logger.warning(f"Refresh of {self._props.name} failed: {message}")
        self._state = replace(self._state, reachable=False)
        return DeviceResult.failed(error, message, self._state, detail)
