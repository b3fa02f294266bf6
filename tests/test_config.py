from __future__ import annotations

import os

import pytest

from zpowergraph.config import DEFAULT_DB_PATH, ZPowerGraphConfig, parse_server
from zpowergraph.exceptions import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("ZPOWERGRAPH_"):
            monkeypatch.delenv(key)


def _config(**overrides: object) -> ZPowerGraphConfig:
    values: dict[str, object] = {
        "server": "localhost",
        "port": 1883,
        "topic": "zigbee2mqtt",
        "friendly_names": ("plug-a",),
    }
    values.update(overrides)
    return ZPowerGraphConfig(**values)  # type: ignore[arg-type]


def test_defaults() -> None:
    config = _config()
    assert config.db_path == DEFAULT_DB_PATH
    assert config.staleness_threshold == 30
    assert config.poll_interval == 30.0
    assert config.mqtt_keepalive == 30
    assert config.log_level == "INFO"
    assert not config.has_credentials


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("localhost", "localhost"),
        ("mqtt://localhost", "localhost"),
        ("mqtt://broker.lan/", "broker.lan"),
        ("  10.0.0.2 ", "10.0.0.2"),
    ],
)
def test_parse_server(raw: str, expected: str) -> None:
    assert parse_server(raw) == expected


def test_server_scheme_is_stripped() -> None:
    assert _config(server="mqtt://broker.lan").server == "broker.lan"


def test_friendly_names_are_deduplicated_in_order() -> None:
    config = _config(friendly_names=["plug-b", " plug-a ", "plug-b", ""])
    assert config.friendly_names == ("plug-b", "plug-a")


def test_credentials_require_both_values() -> None:
    assert not _config(user="u").has_credentials
    assert not _config(password="p").has_credentials
    assert _config(user="u", password="p").has_credentials


@pytest.mark.parametrize(
    "overrides",
    [
        {"friendly_names": ()},
        {"friendly_names": (" ",)},
        {"port": 0},
        {"port": 70000},
        {"topic": " "},
        {"server": "mqtt://"},
        {"staleness_threshold": -1},
        {"poll_interval": 0},
        {"mqtt_keepalive": 0},
        {"log_level": "chatty"},
    ],
)
def test_invalid_values_rejected(overrides: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        _config(**overrides)


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZPOWERGRAPH_SERVER", "mqtt://broker.lan")
    monkeypatch.setenv("ZPOWERGRAPH_PORT", "1884")
    monkeypatch.setenv("ZPOWERGRAPH_TOPIC", "zigbee2mqtt")
    monkeypatch.setenv("ZPOWERGRAPH_FRIENDLY_NAMES", "plug-a, plug-b")
    monkeypatch.setenv("ZPOWERGRAPH_USER", "user")
    monkeypatch.setenv("ZPOWERGRAPH_PASS", "secret")
    monkeypatch.setenv("ZPOWERGRAPH_STALENESS_THRESHOLD", "60")
    monkeypatch.setenv("ZPOWERGRAPH_POLL_INTERVAL", "5.5")
    monkeypatch.setenv("ZPOWERGRAPH_LOG_LEVEL", "debug")

    config = ZPowerGraphConfig.from_env()

    assert config.server == "broker.lan"
    assert config.port == 1884
    assert config.friendly_names == ("plug-a", "plug-b")
    assert config.has_credentials
    assert config.staleness_threshold == 60
    assert config.poll_interval == 5.5
    assert config.log_level == "DEBUG"


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZPOWERGRAPH_PORT", "1884")
    monkeypatch.setenv("ZPOWERGRAPH_DB", "/var/lib/zpowergraph.db")

    config = ZPowerGraphConfig.from_env(
        server="localhost",
        port=1883,
        topic="z",
        friendly_names=("a",),
        db_path=None,
    )

    assert config.port == 1883
    # None overrides fall through to the environment
    assert config.db_path == "/var/lib/zpowergraph.db"


def test_from_env_missing_required() -> None:
    with pytest.raises(ConfigError, match="server"):
        ZPowerGraphConfig.from_env(port=1883, topic="z", friendly_names=("a",))


def test_from_env_bad_number(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZPOWERGRAPH_PORT", "eighteen")
    with pytest.raises(ConfigError, match="ZPOWERGRAPH_PORT"):
        ZPowerGraphConfig.from_env(server="localhost", topic="z", friendly_names=("a",))
