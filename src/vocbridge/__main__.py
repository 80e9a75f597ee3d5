"""Command line entry point: ``python -m vocbridge``."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal

from vocbridge.bridge import MqttBridge
from vocbridge.client import VocClient
from vocbridge.config import BridgeConfig
from vocbridge.exceptions import VocAuthenticationError, VocError

_logger = logging.getLogger("vocbridge")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Bridge Volvo On Call vehicles to an MQTT broker.",
        epilog="Settings are read from the environment (VOCUSERNAME, VOCPASSWORD, MQTTHOST, ...).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


async def _run(config: BridgeConfig) -> int:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    async with VocClient(config.cloud) as client:
        try:
            await client.login()
        except VocAuthenticationError as exc:
            _logger.error("Login to Volvo On Call rejected: %s", exc)
            return 1
        except VocError as exc:
            _logger.error("Could not reach Volvo On Call: %s", exc)
            return 1

        bridge = MqttBridge(config, client)
        await bridge.run(stop)
    return 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        config = BridgeConfig.from_env()
    except VocError as exc:
        _logger.error("Invalid configuration: %s", exc)
        return 2
    return asyncio.run(_run(config))


if __name__ == "__main__":
    raise SystemExit(main())
