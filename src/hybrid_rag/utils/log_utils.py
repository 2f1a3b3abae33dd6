"""
Logging setup for scripts and notebooks.

The library itself only creates module loggers
(logging.getLogger(__name__)) and never touches handlers on import.
Applications that want readable output call configure_logging() once.
"""

import logging
import sys


def configure_logging(level: int = logging.INFO) -> None:
    """Attach a single stdout handler with a timestamped format to the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Provider SDKs log every HTTP request at INFO
    for noisy in ("httpx", "openai", "anthropic", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
