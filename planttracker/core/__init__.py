"""PlantTracker Core Package — configuration, logging and server-side services."""

import logging
import sys

# Third-party loggers that drown out ours at INFO
NOISY_LOGGERS = ("apscheduler", "httpx", "httpcore", "sqlalchemy.engine")


def setup_logging(level: str | int = "INFO") -> None:
    """Log to stdout with timestamps; safe to call again to change the level."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


logger = logging.getLogger("planttracker")
