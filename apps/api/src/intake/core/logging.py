"""
Logging Setup

Configures the standard library root logger once at startup.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging. Safe to call more than once."""
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    # httpx logs full request URLs at INFO, which include the bot token
    logging.getLogger("httpx").setLevel(logging.WARNING)
