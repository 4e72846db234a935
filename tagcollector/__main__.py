"""Entry point for tagcollector: python -m tagcollector."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .app import CollectorApp
from .ble.device import DeviceError, InvalidDeviceIDError
from .config import ConfigError


def setup_logging(verbose: bool) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from libraries
    logging.getLogger("bleak").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="tagcollector",
        description="Collect RuuviTag BLE readings and export them",
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    logger = logging.getLogger(__name__)

    config_path = args.config.resolve()
    if not config_path.exists():
        logger.error("Configuration file not found: %s", config_path)
        logger.error("Copy config.example.yaml to config.yaml and edit it")
        return 1

    try:
        app = CollectorApp(config_path)
        asyncio.run(app.run())
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except (ConfigError, InvalidDeviceIDError, DeviceError) as e:
        logger.error("%s", e)
        return 1
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
