"""Logging setup shared by the web app and scripts."""

import logging
import sys

from snippetbox.config import Settings

LOG_FORMAT = "[%(levelname)s] %(asctime)s %(name)s: %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def configure_logging(settings: Settings) -> None:
    """Send application logs to stdout at the configured level."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
