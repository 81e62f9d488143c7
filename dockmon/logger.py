"""
Logging for the dockmon daemon

Both loops log every check to stderr so the process supervisor (systemd,
docker logs) keeps the history. LOG_LEVEL selects the verbosity; DEBUG also
shows the resource checks that found nothing.
"""
import logging
import os
from typing import Optional

# Chatty per-request loggers of the Docker SDK transport and the status server
QUIET_LOGGERS = ("docker", "urllib3", "werkzeug")


def setup_logging(level_name: Optional[str] = None) -> int:
    """
    Attach one stderr handler to the root logger

    Args:
        level_name: Level name; LOG_LEVEL or INFO when None. Unknown names
            fall back to INFO.

    Returns:
        The level applied to the root logger
    """
    level_name = (level_name or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return level


__all__ = ["setup_logging"]
