"""Logging setup for the sno-iso-generator command."""

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging once. ``LOG_LEVEL`` wins over ``verbose``."""
    level_name = os.getenv("LOG_LEVEL", "DEBUG" if verbose else "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")
    # requests/urllib3 chatter is only useful when debugging downloads
    if level > logging.DEBUG:
        logging.getLogger("urllib3").setLevel(logging.WARNING)
