"""
Raidar NAS Monitor - Main Entry Point
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import List, Optional

from .services.monitor_server import MonitorServer

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config/config.yaml'

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Monitor a ReadyNAS over the Raidar protocol")
    parser.add_argument(
        "-c", "--config",
        default=os.environ.get('CONFIG_FILE', DEFAULT_CONFIG_PATH),
        help="Path to the YAML configuration (default: $CONFIG_FILE or %(default)s)"
    )
    return parser.parse_args(argv)

async def run(config_path: str) -> int:
    """Run the monitor until SIGINT/SIGTERM; returns the process exit code"""
    try:
        server = MonitorServer(config_path=config_path)
    except Exception as e:
        logger.error(f"Monitor could not start: {e}")
        return 1

    logger.info(f"Using configuration file: {config_path}")

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, lambda s=signum: _request_stop(server, s))
        except NotImplementedError:
            # Windows event loops have no signal handler support
            signal.signal(signum, lambda s, frame: _request_stop(server, s))

    try:
        await server.start()
    except Exception as e:
        logger.error(f"Monitor failed: {e}")
        return 1
    finally:
        await server.stop()

    return 0

def _request_stop(server: MonitorServer, signum: int) -> None:
    logger.info(f"Received signal {signum}, shutting down...")
    asyncio.create_task(server.stop())

def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    try:
        sys.exit(asyncio.run(run(args.config)))
    except KeyboardInterrupt:
        print("\nMonitor stopped by user")
        sys.exit(0)

if __name__ == "__main__":
    main()
