"""
Logging for the Resource Store API.

The service logs under the ``resource_store_api`` namespace: the store
chosen at startup, every mutation made through ``ResourceService``,
store failures together with their cause, and requests abandoned at the
deadline.  ``setup_logging`` sends those records, and anything else that
reaches the root logger, to the console and, when ``LOG_FILE`` is set,
to that file as well.

``create_app`` calls it for every application it builds, so one process
(the test-suite, for instance) may call it many times.  Repeated calls
only adjust the level and attach a file handler for a log file that is
not attached yet.
"""

import logging
import os
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _has_file_handler(logger: logging.Logger, path: str) -> bool:
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == path
        for handler in logger.handlers
    )


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Route service logs to the console and optionally ``logfile``.

    Parameters
    ----------
    level : str
        ``LOG_LEVEL`` name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive; unknown names fall back to ``INFO``.
    logfile : Optional[str]
        ``LOG_FILE`` path.  Each distinct file gets exactly one handler.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if not root.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if logfile:
        log_path = os.path.abspath(Path(logfile).resolve())
        if not _has_file_handler(root, log_path):
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
