"""Tests for bridge configuration loading."""

import json

import pytest

from echobridge.bridge.config import BridgeConfig, DeviceConfig, load_config
from echobridge.devices import LightType


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "poll_interval": 30,
                "devices": [
                    {"name": "Living Room 1", "address": "http://1.1.1.1/", "gpio": 13, "type": "dimmable"},
                    {"name": "Hallway", "address": "http://1.1.1.1/", "gpio": 12, "type": "Switchable"},
                    {
                        "name": "Porch",
                        "address": "http://1.1.1.2/",
                        "gpio": 5,
                        "unique_id": "00:17:88:01:00:AA:BB:CC-0b",
                    },
                ],
            }
        )
    )
    return path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("ECHOBRIDGE_CONFIG_PATH", "ECHOBRIDGE_HTTP_HOST", "ECHOBRIDGE_POLL_INTERVAL"):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load(self, config_file):
        config = load_config(str(config_file))

        assert [d.name for d in config.devices] == ["Living Room 1", "Hallway", "Porch"]
        assert config.devices[0].light_type is LightType.DIMMABLE
        assert config.devices[1].light_type is LightType.SWITCHABLE
        assert config.devices[2].light_type is LightType.DIMMABLE
        assert config.http_host == "0.0.0.0"
        assert config.request_timeout == 15.0
        assert config.poll_interval == 30.0

    def test_env_path(self, config_file, monkeypatch):
        monkeypatch.setenv("ECHOBRIDGE_CONFIG_PATH", str(config_file))
        assert len(load_config().devices) == 3

    def test_env_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("ECHOBRIDGE_HTTP_HOST", "127.0.0.1")
        monkeypatch.setenv("ECHOBRIDGE_POLL_INTERVAL", "5")

        config = load_config(str(config_file))

        assert config.http_host == "127.0.0.1"
        assert config.poll_interval == 5.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.json"))

    def test_unknown_type(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"devices": [{"name": "X", "address": "http://a/", "gpio": 1, "type": "rgb"}]}))

        with pytest.raises(ValueError, match="unknown light type"):
            load_config(str(path))

    def test_missing_field(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"devices": [{"name": "X", "gpio": 1}]}))

        with pytest.raises(ValueError, match="address"):
            load_config(str(path))

    def test_no_devices(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"devices": []}))

        with pytest.raises(ValueError, match="at least one device"):
            load_config(str(path))


class TestValidate:
    """Tests for DeviceConfig/BridgeConfig validation."""

    @pytest.mark.parametrize(
        "device",
        [
            DeviceConfig(name="", address="http://a/", gpio=1),
            DeviceConfig(name="X", address="ftp://a/", gpio=1),
            DeviceConfig(name="X", address="http://a", gpio=1),
            DeviceConfig(name="X", address="http://a/", gpio=-1),
        ],
    )
    def test_invalid_device(self, device):
        with pytest.raises(ValueError):
            device.validate()

    def test_invalid_timeout(self):
        config = BridgeConfig(devices=[DeviceConfig(name="X", address="http://a/", gpio=1)], request_timeout=0)
        with pytest.raises(ValueError):
            config.validate()


def test_unique_id_for(config_file):
    config = load_config(str(config_file))

    assert config.unique_id_for(1) == "00:17:88:5E:D3:FF-01"
    assert config.unique_id_for(2) == "00:17:88:5E:D3:FF-02"
    assert config.unique_id_for(3) == "00:17:88:01:00:AA:BB:CC-0b"
