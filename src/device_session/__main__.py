"""Entry point: python -m device_session"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from rich.logging import RichHandler

from device_session import __version__
from device_session.constants import PIPELINE_BACKENDS

if TYPE_CHECKING:
    from device_session.app import DeviceSessionApp


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with the rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="device-session",
        description="Track the selected input device across processing stage toggles",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--version", action="version", version=f"device-session {__version__}"
    )
    parser.add_argument(
        "--config", type=str, default=None, help="Path to config file"
    )
    parser.add_argument(
        "--backend",
        choices=PIPELINE_BACKENDS,
        default=None,
        help="Pipeline backend (overrides the config file)",
    )
    parser.add_argument(
        "--list-devices", action="store_true", help="List audio input devices and exit"
    )
    parser.add_argument(
        "--serve", action="store_true", help="Serve the session HTTP API"
    )
    parser.add_argument(
        "--repro",
        action="store_true",
        help="Run the device revert reproduction (default when nothing else is asked)",
    )
    return parser.parse_args(argv)


def cmd_list_devices(app: DeviceSessionApp) -> None:
    """Print available audio input devices."""
    devices = app.list_devices()
    if not devices:
        print("No audio input devices found.")
        return
    for dev in devices:
        marker = " *" if dev.is_default else ""
        print(f"  {dev.id}  ({dev.label}){marker}")


def cmd_repro(app: DeviceSessionApp) -> int:
    """Run the reproduction and print its history. Returns the exit code."""
    from device_session.repro import render_result, run_reproduction

    async def _run() -> int:
        try:
            result = await run_reproduction(app)
        finally:
            await app.close()
        render_result(result)
        return 0 if result.device_kept else 1

    return asyncio.run(_run())


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger("device_session")
    logger.debug("device-session v%s", __version__)

    from device_session.app import DeviceSessionApp
    from device_session.config import AppConfig

    config_path = Path(args.config) if args.config else None
    config = AppConfig.load(config_path)
    if args.backend:
        config.pipeline.backend = args.backend

    try:
        app = DeviceSessionApp.from_config(config)
    except OSError as e:
        # sounddevice raises OSError when the PortAudio library is missing
        logger.error("Cannot create %s pipeline: %s", config.pipeline.backend, e)
        sys.exit(1)

    if args.list_devices:
        cmd_list_devices(app)
        return

    try:
        if args.serve or (config.web.enabled and not args.repro):
            from device_session.web.server import run_server

            run_server(app, host=config.web.host, port=config.web.port)
            return

        sys.exit(cmd_repro(app))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
