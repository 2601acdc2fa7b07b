#!/usr/bin/env python3
"""
StreamAlerts - Go-live alerts for Twitch streamers via Helix polling

Usage:
    python main.py --config config/alerts.yaml
"""

import argparse
import asyncio
import logging
import pathlib
import sys

from alerts.client import AlertsClient
from alerts.config import DEFAULT_CONFIG_PATH, load_config
from alerts.dispatcher import LoggingEventHandler
from alerts.errors import ConfigError

LOGGER = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(description="StreamAlerts - Twitch go-live alerts")
    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f'Path to config file (default: {DEFAULT_CONFIG_PATH})'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Console and file log level (default: INFO)'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default='logs/streamalerts.log',
        help='Log file path (default: logs/streamalerts.log)'
    )
    return parser.parse_args(argv)


def setup_logging(log_file='logs/streamalerts.log', level='INFO'):
    """Configure the root logger: one file + console."""
    log_path = pathlib.Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler()
        ],
        force=True  # Override any existing config
    )
    return log_path


async def main(argv=None):
    """Load config, then run the poll loop until interrupted"""
    args = parse_args(argv)
    setup_logging(args.log_file, args.log_level)

    try:
        config = load_config(args.config)
        config.validate()
        if not config.streamers:
            LOGGER.warning("⚠️ No streamers configured, nothing will be monitored")

        LOGGER.info(f"🚀 StreamAlerts starting - {len(config.streamers)} streamers from {args.config}")
        client = AlertsClient(config).event_handler(LoggingEventHandler())
    except (ConfigError, ValueError) as e:
        LOGGER.error(f"❌ {e} ({args.config})")
        return 1

    try:
        await client.run()
    except ConfigError as e:
        LOGGER.error(f"❌ {e}")
        return 1
    except asyncio.CancelledError:
        LOGGER.info("CTRL+C detected, shutting down...")
    finally:
        await client.stop()
        LOGGER.info("Stopped")
    return 0


def cli():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nBye!")


if __name__ == "__main__":
    cli()
