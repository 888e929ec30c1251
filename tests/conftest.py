"""Shared fixtures for bridge tests."""

import httpx
import pytest

from echobridge.bridge.device_registry import DeviceRegistry
from echobridge.devices import LightType, MockDimmerChannel


class FakeFirmware:
    """Stateful stand-in for the dimmer firmware's HTTP API.

    Records every request and keeps one duty register per GPIO.
    """

    def __init__(self, duty: int = 0):
        self.duties: dict[int, int] = {}
        self.default_duty = duty
        self.requests: list[httpx.Request] = []
        self.reply: str = "Ok"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        gpio = int(request.url.params["gpio"])
        endpoint = request.url.path.rsplit("/", 1)[-1]
        if endpoint == "getPwmDuty":
            return httpx.Response(200, text=str(self.duties.get(gpio, self.default_duty)))
        if endpoint in ("setPwmDuty", "fadePwmDuty"):
            if self.reply == "Ok":
                self.duties[gpio] = int(request.url.params["duty"])
            return httpx.Response(200, text=self.reply)
        return httpx.Response(404, text="Not found")


@pytest.fixture
def firmware():
    return FakeFirmware()


@pytest.fixture
def firmware_client(firmware):
    """AsyncClient whose requests are answered by the fake firmware."""
    return httpx.AsyncClient(transport=httpx.MockTransport(firmware))


@pytest.fixture
def mock_dimmer():
    """Return a dimmable MockDimmerChannel."""
    return MockDimmerChannel("Living Room 1")


@pytest.fixture
def mock_switch():
    """Return a switchable MockDimmerChannel."""
    return MockDimmerChannel("Hallway", LightType.SWITCHABLE, unique_id="00:17:88:5E:D3:FF-02")


@pytest.fixture
def registry(mock_dimmer, mock_switch):
    """Registry with a dimmer at ID 1 and a switch at ID 2."""
    return DeviceRegistry([mock_dimmer, mock_switch])
