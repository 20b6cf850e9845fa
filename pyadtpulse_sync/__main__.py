"""
Command line runner.

    python -m pyadtpulse_sync config.json [--debug] [--env-file .env]
"""
import argparse
import asyncio
import logging
import signal
import sys

import aiohttp
from dotenv import load_dotenv

from .config import load_config_file
from .exceptions import ADTPulseConfigError
from .platform import ADTPulsePlatform
from .registry import InMemoryDeviceRegistry

logger = logging.getLogger("pyadtpulse_sync")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pyadtpulse_sync",
        description="Keep a local mirror of ADT Pulse devices in sync with the portal.",
    )
    parser.add_argument("config", help="Platform block or Homebridge config.json")
    parser.add_argument("--env-file", default=None, help="Load credentials from this .env file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # The wire log has its own file handler
    logging.getLogger("pyadtpulse_sync.http").propagate = False


async def run(platform: ADTPulsePlatform) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows: KeyboardInterrupt still ends asyncio.run
            pass

    await platform.start()
    try:
        await stop.wait()
    finally:
        logger.info("Shutting down ...")
        await platform.stop()


async def amain(args: argparse.Namespace) -> int:
    try:
        config = load_config_file(args.config)
    except ADTPulseConfigError as e:
        logger.error("Plugin is unable to initialize due to an invalid platform configuration: %s", e)
        return 1

    async with aiohttp.ClientSession(cookie_jar=aiohttp.CookieJar()) as http_session:
        platform = ADTPulsePlatform(config, InMemoryDeviceRegistry(), http_session=http_session)
        await run(platform)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.debug)
    if args.env_file:
        load_dotenv(args.env_file)
    else:
        load_dotenv()
    return asyncio.run(amain(args))


if __name__ == "__main__":
    sys.exit(main())
