#!/usr/bin/env python3
"""
Fleet quick-connect launcher.

Connects every configured country's local node to a residential provider in
that country and leaves the tunnels up for whatever crawls through the
dial-out ports next.

Usage:
    python connect.py [--countries US DE] [--retries 3] [--env-file .env] [--info] [--verify-egress]

Nodes are configured through the NODES environment variable:
    NODES=US=4449:10001,DE=4450:10002
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Dict

import dotenv

from helpers.networking import detect_egress_ip, dial_out_proxy_url
from helpers.unified_logger import UnifiedLogger, get_core_logger, log_stage


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Quick-connect each configured country through its local Mysterium node."
    )

    parser.add_argument(
        "--countries",
        "-c",
        nargs="+",
        default=None,
        help="Countries to connect (default: every country in NODES).",
    )

    parser.add_argument(
        "--retries",
        "-r",
        type=positive_int,
        default=None,
        help="Failed attempts allowed per country (default: DEFAULT_RETRIES or 3).",
    )

    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="Path to the environment file (default: .env).",
    )

    parser.add_argument(
        "--log-level",
        "-l",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )

    parser.add_argument(
        "--info",
        action="store_true",
        help="Print the bound identity's balance and registration status for each node.",
    )

    parser.add_argument(
        "--verify-egress",
        action="store_true",
        help="Probe the public IP through each connected dial-out port.",
    )

    return parser.parse_args(argv)


def setup_logging(log_level: str):
    """Quiet standard-library loggers of third-party packages."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.getLogger().setLevel(level)

    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)


async def run(args) -> int:
    from nodes import NodeSettings, close_fleet, connect_countries

    logger = get_core_logger("connect")
    settings = NodeSettings()
    retries = args.retries if args.retries is not None else settings.default_retries

    try:
        assignments = settings.node_assignments(args.countries)
    except KeyError as exc:
        logger.error(str(exc.args[0]))
        return 2
    if not assignments:
        logger.error("No nodes configured (set NODES=COUNTRY=node_port:proxy_port,...)")
        return 2

    log_stage(logger, f"Quick-connecting {len(assignments)} countries (retries: {retries})", icon="🌍")
    connections = await connect_countries(assignments, retries, settings)

    try:
        summary: Dict[str, str] = {}
        for country, connection in connections.items():
            line = connection.describe()

            if args.info and connection.client is not None and connection.client.is_authenticated:
                identity = await connection.client.info()
                logger.debug(f"{country} identity: {identity.to_dict()}")
                line += (
                    f" | identity {identity.id} balance {identity.balance_tokens.human} MYST"
                    f" ({identity.registration_status.value})"
                )

            if args.verify_egress and connection.connected:
                egress = await detect_egress_ip(
                    proxy=dial_out_proxy_url(settings.mysterium_host, connection.assignment.proxy_port)
                )
                line += f" | egress {egress.address}" if egress.address else f" | egress unknown ({egress.error})"

            summary[country] = line

        log_stage(logger, "Summary")
        for country, line in summary.items():
            level = "INFO" if connections[country].connected else "WARNING"
            logger.log(f"{country}: {line}", level=level)
    finally:
        await close_fleet(connections)

    return 0 if all(c.connected for c in connections.values()) else 1


def main(argv=None) -> int:
    args = parse_arguments(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        dotenv.load_dotenv(env_path)
    elif args.env_file != ".env":
        print(f"Env file not found: {env_path.resolve()}")
        return 2

    # UnifiedLogger reads LOG_LEVEL when the first logger is created
    os.environ['LOG_LEVEL'] = args.log_level
    setup_logging(args.log_level)

    try:
        return asyncio.run(run(args))
    finally:
        UnifiedLogger.flush_all_handlers()


if __name__ == "__main__":
    sys.exit(main())
