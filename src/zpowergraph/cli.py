"""Command line entry point."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import os
from collections.abc import Sequence

from zpowergraph import __version__
from zpowergraph._redact import redact_for_log
from zpowergraph.app import run
from zpowergraph.config import ZPowerGraphConfig
from zpowergraph.exceptions import ConfigError, StorageError

_logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zpowergraph",
        description=(
            "Listen to Zigbee2MQTT smart plug telemetry and store power consumption data in a "
            "SQLite database, backfilling idle rows for silent plugs."
        ),
    )
    parser.add_argument("server", help="The MQTT server URL. Example: mqtt://localhost")
    parser.add_argument("port", type=int, help="The MQTT server port. Example: 1883")
    parser.add_argument("topic", help="Topic where the smart plugs are exposed under")
    parser.add_argument("friendly_names", nargs="+", metavar="friendly_name", help="Friendly names of the smart plugs")
    parser.add_argument("--user", default=None, help="Username for authorization, if applicable")
    parser.add_argument("--pass", dest="password", default=None, help="Password for authorization, if applicable")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database file (default: ./zpowergraph.db)",
    )
    parser.add_argument(
        "--threshold",
        dest="staleness_threshold",
        type=int,
        default=None,
        help="Seconds without data before a plug is backfilled (default: 30)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds to wait for a message before checking for silent plugs (default: 30)",
    )
    parser.add_argument(
        "--keepalive",
        dest="mqtt_keepalive",
        type=int,
        default=None,
        help="MQTT keepalive in seconds (default: 30)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logs.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> ZPowerGraphConfig:
    overrides = {
        "server": args.server,
        "port": args.port,
        "topic": args.topic,
        "friendly_names": tuple(args.friendly_names),
        "user": args.user,
        "password": args.password,
        "db_path": args.db_path,
        "staleness_threshold": args.staleness_threshold,
        "poll_interval": args.poll_interval,
        "mqtt_keepalive": args.mqtt_keepalive,
    }
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return ZPowerGraphConfig.from_env(**overrides)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    level_name = "DEBUG" if args.verbose else os.environ.get("ZPOWERGRAPH_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
    except ConfigError as exc:
        _logger.error("Invalid configuration: %s", exc)
        return 2
    _logger.debug("Parsed configuration: %s", redact_for_log(dataclasses.asdict(config)))

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        return 0
    except StorageError as exc:
        _logger.error("Aborting on storage failure: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
