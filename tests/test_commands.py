"""Tests for command parsing and translation."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from echobridge.bridge.commands import (
    InvalidCommandError,
    LightCommand,
    apply_command,
    parse_command,
    success_payload,
)
from echobridge.devices import DeviceResult, LightState


class TestParseCommand:
    """Tests for parse_command()."""

    def test_parse_on_and_bri(self):
        command = parse_command(b'{"on": true, "bri": 144}')
        assert command.on is True
        assert command.bri == 144

    def test_missing_fields_default(self):
        command = parse_command(b"{}")
        assert command.on is False
        assert command.bri == 0

    def test_unknown_fields_ignored(self):
        command = parse_command(b'{"on": true, "transitiontime": 4}')
        assert command.on is True

    @pytest.mark.parametrize("body", [b"", b"not json", b'{"on": tru', b"\xff\xfe"])
    def test_invalid_json(self, body):
        with pytest.raises(InvalidCommandError) as exc_info:
            parse_command(body)
        assert exc_info.value.invalid_json is True

    @pytest.mark.parametrize("body", [b"[]", b"42", b'"on"', b"null"])
    def test_non_object(self, body):
        with pytest.raises(InvalidCommandError) as exc_info:
            parse_command(body)
        assert exc_info.value.invalid_json is True

    @pytest.mark.parametrize(
        "body",
        [b'{"on": "true"}', b'{"on": 1}', b'{"bri": 256}', b'{"bri": -1}', b'{"bri": "100"}', b'{"bri": 1.5}'],
    )
    def test_invalid_values(self, body):
        with pytest.raises(InvalidCommandError) as exc_info:
            parse_command(body)
        assert exc_info.value.invalid_json is False
        assert "invalid value" in str(exc_info.value)


class TestEffectiveBrightness:
    """Tests for LightCommand.effective_brightness()."""

    def test_on_without_brightness_is_full(self):
        assert LightCommand(on=True, bri=0).effective_brightness() == 255

    def test_on_with_brightness_kept(self):
        assert LightCommand(on=True, bri=100).effective_brightness() == 100

    @pytest.mark.parametrize("bri", [0, 100])
    def test_off_brightness_not_overridden(self, bri):
        assert LightCommand(on=False, bri=bri).effective_brightness() == bri


class TestApplyCommand:
    """Tests for apply_command()."""

    @pytest.mark.asyncio
    async def test_dispatches_translated_state(self):
        device = MagicMock()
        device.current_state.return_value = LightState()
        device.apply_state = AsyncMock(return_value=DeviceResult.ok("ok", LightState()))

        await apply_command(device, LightCommand(on=True))

        state = device.apply_state.await_args.args[0]
        assert state.on is True
        assert state.brightness == 255

    @pytest.mark.asyncio
    async def test_keeps_fields_command_does_not_carry(self):
        device = MagicMock()
        device.current_state.return_value = LightState(hue=4000, saturation=120, alert="select")
        device.apply_state = AsyncMock(return_value=DeviceResult.ok("ok", LightState()))

        await apply_command(device, LightCommand(on=False, bri=30))

        state = device.apply_state.await_args.args[0]
        assert (state.on, state.brightness) == (False, 30)
        assert state.hue == 4000
        assert state.saturation == 120
        assert state.alert == "select"

    @pytest.mark.asyncio
    async def test_returns_device_result(self, mock_dimmer):
        result = await apply_command(mock_dimmer, LightCommand(on=True, bri=128))

        assert result.success is True
        assert mock_dimmer.duty == 514


def test_success_payload():
    payload = success_payload(1, LightCommand(on=True, bri=0))

    assert payload == [
        {"success": {"/lights/1/state/bri": 255}},
        {"success": {"/lights/1/state/on": True}},
    ]
