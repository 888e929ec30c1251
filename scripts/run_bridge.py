"""Entry point to start the emulated Hue bridge.

Usage:
    uv run python scripts/run_bridge.py                      # Use ~/.echobridge/config.json
    uv run python scripts/run_bridge.py --config bridge.json
    uv run python scripts/run_bridge.py --mock               # In-memory dimmers

The bridge answers SSDP searches on UDP 1900 and serves the lights API on:
    http://<host-ip>:8080/api/<user>/lights
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from echobridge.bridge.config import BridgeConfig, load_config
from echobridge.bridge.device_registry import DeviceRegistry
from echobridge.bridge.upnp_server import HTTP_PORT, UPnPServer, determine_outbound_ip
from echobridge.bridge.web_server import create_app
from echobridge.devices import EspDimmerChannel, MockDimmerChannel, create_http_client
from echobridge.devices.base import BaseDevice

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ENV_FILE = Path.home() / ".echobridge" / ".env"


def create_devices(config: BridgeConfig, client, force_mock: bool) -> list[BaseDevice]:
    """Create one driver per configured channel (real or mock)."""
    devices: list[BaseDevice] = []
    for light_id, entry in enumerate(config.devices, start=1):
        unique_id = config.unique_id_for(light_id)
        if force_mock:
            devices.append(MockDimmerChannel(entry.name, entry.light_type, unique_id=unique_id))
        else:
            devices.append(
                EspDimmerChannel(
                    entry.name,
                    entry.address,
                    entry.gpio,
                    entry.light_type,
                    client=client,
                    unique_id=unique_id,
                    timeout=config.request_timeout,
                )
            )
        logger.info(f"Light {light_id}: {entry.name} ({entry.light_type.value}, gpio {entry.gpio})")
    return devices


async def refresh_devices(registry: DeviceRegistry) -> None:
    """Refresh all devices and log the unreachable ones."""
    results = await registry.refresh_all()
    for light_id, result in results.items():
        if not result.success:
            logger.warning(f"Light {light_id} unreachable: {result.message}")


async def poll_devices(registry: DeviceRegistry, interval: float) -> None:
    """Refresh device state every ``interval`` seconds."""
    while True:
        await asyncio.sleep(interval)
        await refresh_devices(registry)


async def main(args: argparse.Namespace) -> int:
    """Main entry point."""
    if ENV_FILE.exists():
        load_dotenv(ENV_FILE)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    try:
        host_ip = determine_outbound_ip()
    except OSError as e:
        logger.error(f"Could not determine outbound IP address: {e}")
        return 1

    client = create_http_client(config.request_timeout)
    registry = DeviceRegistry(create_devices(config, client, args.mock))
    await refresh_devices(registry)

    app = create_app(registry, host_ip)
    server = uvicorn.Server(
        uvicorn.Config(app, host=config.http_host, port=HTTP_PORT, log_level="info")
    )
    upnp = UPnPServer(host_ip)

    # Set up graceful shutdown
    shutdown_event = asyncio.Event()

    def handle_signal():
        logger.info("Shutdown signal received")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal)

    logger.info(f"Starting bridge on {host_ip}:{HTTP_PORT}...")
    tasks = [
        asyncio.create_task(server.serve()),
        asyncio.create_task(upnp.serve_forever()),
        asyncio.create_task(shutdown_event.wait()),
    ]
    if config.poll_interval > 0:
        tasks.append(asyncio.create_task(poll_devices(registry, config.poll_interval)))
    logger.info("Press Ctrl+C to stop")

    await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)

    # Clean shutdown
    logger.info("Stopping bridge...")
    server.should_exit = True
    await upnp.stop()
    for task in tasks[1:]:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    await client.aclose()
    logger.info("Bridge stopped")

    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Start the emulated Hue bridge for GPIO dimmers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use in-memory mock dimmers instead of real hardware",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to bridge config file (default: ~/.echobridge/config.json)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    sys.exit(asyncio.run(main(args)))
