"""Command-line entry point for the directory notifier."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .channels import build_channels
from .cipher import conceal
from .config import ConfigError, load_config
from .watcher import DirectoryWatcher


def main() -> None:
    parser = argparse.ArgumentParser(description="Send notifications when watched directories change")
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to the YAML configuration file (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--encode-secret",
        metavar="VALUE",
        help="Print VALUE in the obfuscated 'enc:' form accepted for secrets and exit",
    )
    args = parser.parse_args()

    if args.encode_secret is not None:
        print(conceal(args.encode_secret))
        return

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    config_path = Path(args.config)
    try:
        app_config = load_config(config_path)
        channels = build_channels(app_config)
        watcher = DirectoryWatcher(app_config, channels)
    except (ConfigError, ValueError) as exc:
        logging.error("%s", exc)
        raise SystemExit(2) from exc

    try:
        watcher.run()
    except FileNotFoundError as exc:
        logging.error("%s", exc)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
