"""Process configuration for zpowergraph."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from zpowergraph.exceptions import ConfigError

DEFAULT_DB_PATH = "./zpowergraph.db"
DEFAULT_STALENESS_THRESHOLD = 30
DEFAULT_POLL_INTERVAL = 30.0
DEFAULT_MQTT_KEEPALIVE = 30

_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


def _split_names(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def parse_server(raw_server: str) -> str:
    """Strip an optional ``mqtt://`` style scheme and path from *raw_server*.

    ``"mqtt://localhost"`` and ``"localhost"`` both resolve to ``"localhost"``.
    """
    value = raw_server.strip()
    if "://" in value:
        value = value.split("://", 1)[1]
    if "/" in value:
        value = value.split("/", 1)[0]
    if not value:
        raise ConfigError("MQTT server is empty")
    return value


@dataclasses.dataclass(frozen=True)
class ZPowerGraphConfig:
    """Runtime configuration.

    Parameters
    ----------
    server : str
        MQTT broker host. A leading ``mqtt://`` scheme is accepted.
    port : int
        MQTT broker port (e.g. ``1883``).
    topic : str
        Base topic the smart plugs are exposed under (e.g. ``zigbee2mqtt``).
    friendly_names : tuple of str
        Friendly names of the smart plugs to track. Each one is subscribed
        to as ``<topic>/<friendly_name>``.
    user : str or None
        Username for broker authorization, if applicable.
    password : str or None
        Password for broker authorization, if applicable. Credentials are
        only sent when both ``user`` and ``password`` are set.
    db_path : str
        Path to the SQLite database file. Created if missing.
    staleness_threshold : int
        Seconds without data after which a device is backfilled.
    poll_interval : float
        Seconds the ingestion loop waits for a message before running the
        staleness check.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    log_level : str
        Root log level name.
    """

    server: str
    port: int
    topic: str
    friendly_names: tuple[str, ...]
    user: str | None = None
    password: str | None = None
    db_path: str = DEFAULT_DB_PATH
    staleness_threshold: int = DEFAULT_STALENESS_THRESHOLD
    poll_interval: float = DEFAULT_POLL_INTERVAL
    mqtt_keepalive: int = DEFAULT_MQTT_KEEPALIVE
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        object.__setattr__(self, "server", parse_server(self.server))

        if isinstance(self.friendly_names, str):
            names: tuple[str, ...] = _split_names(self.friendly_names)
        else:
            names = tuple(name.strip() for name in self.friendly_names)
        # dict.fromkeys keeps first-seen order while dropping duplicates
        names = tuple(dict.fromkeys(name for name in names if name))
        object.__setattr__(self, "friendly_names", names)
        object.__setattr__(self, "log_level", str(self.log_level).strip().upper())

        if not names:
            raise ConfigError("At least one friendly name must be configured")
        if not 0 < self.port < 65536:
            raise ConfigError(f"port must be between 1 and 65535, got {self.port}")
        if not self.topic.strip():
            raise ConfigError("topic must be non-empty")
        if self.staleness_threshold < 0:
            raise ConfigError(f"staleness_threshold must be >= 0, got {self.staleness_threshold}")
        if self.poll_interval <= 0:
            raise ConfigError(f"poll_interval must be > 0, got {self.poll_interval}")
        if self.mqtt_keepalive <= 0:
            raise ConfigError(f"mqtt_keepalive must be > 0, got {self.mqtt_keepalive}")
        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(f"Unknown log level {self.log_level!r}")

    @property
    def has_credentials(self) -> bool:
        """Whether both user and password are set."""
        return self.user is not None and self.password is not None

    @classmethod
    def from_env(cls, **overrides: Any) -> ZPowerGraphConfig:
        """Create configuration from environment variables.

        Reads ``ZPOWERGRAPH_SERVER``, ``ZPOWERGRAPH_PORT``,
        ``ZPOWERGRAPH_TOPIC``, ``ZPOWERGRAPH_FRIENDLY_NAMES`` (comma
        separated) and the optional ``ZPOWERGRAPH_*`` variables below.
        Explicit keyword arguments override environment values.

        Raises
        ------
        ConfigError
            When a required value is missing or a numeric value does not parse.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "ZPOWERGRAPH_SERVER": "server",
            "ZPOWERGRAPH_TOPIC": "topic",
            "ZPOWERGRAPH_USER": "user",
            "ZPOWERGRAPH_PASS": "password",
            "ZPOWERGRAPH_DB": "db_path",
            "ZPOWERGRAPH_LOG_LEVEL": "log_level",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        names_env = env.get("ZPOWERGRAPH_FRIENDLY_NAMES")
        if names_env is not None:
            config_kwargs["friendly_names"] = _split_names(names_env)

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "ZPOWERGRAPH_PORT": ("port", int),
            "ZPOWERGRAPH_STALENESS_THRESHOLD": ("staleness_threshold", int),
            "ZPOWERGRAPH_POLL_INTERVAL": ("poll_interval", float),
            "ZPOWERGRAPH_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
        }
        for env_key, (field_name, convert) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or overrides.get(field_name) is not None:
                continue
            try:
                config_kwargs[field_name] = convert(val)
            except ValueError as exc:
                raise ConfigError(f"{env_key} is not a valid number: {val!r}") from exc

        config_kwargs.update({key: value for key, value in overrides.items() if value is not None})

        missing = [name for name in ("server", "port", "topic", "friendly_names") if name not in config_kwargs]
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

        return cls(**config_kwargs)
