"""
Logging configuration for cleaner CLI output.

Usage:
    import logging_config
    logging_config.setup()
"""

import logging
import sys


def setup(level=logging.INFO):
    """
    Configure root logging for the CLI.

    - Uses shorter timestamp format (HH:MM:SS instead of full datetime)
    - Suppresses per-request logs from web3 and urllib3
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    # Suppress noisy loggers unless debugging
    noisy_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    logging.getLogger("web3").setLevel(noisy_level)
    logging.getLogger("urllib3").setLevel(noisy_level)

    logging.getLogger("arb_monitor").setLevel(level)
