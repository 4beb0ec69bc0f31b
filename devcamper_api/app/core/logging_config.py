"""
Logging setup for the DevCamper API and its command line tools.

``setup_logging`` attaches a console handler (and a file handler when
``LOG_FILE`` is set) to the root logger, once per process.  HTTP client
and multipart parser chatter is held at WARNING unless the service runs
at DEBUG, so geocoder calls and photo uploads do not flood the log.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every request or form part at INFO/DEBUG.
NOISY_LOGGERS = ("urllib3", "multipart", "python_multipart")


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger for the API, the seeder and the scripts.

    Parameters
    ----------
    level : str
        Level name such as ``"DEBUG"``; unknown names fall back to INFO.
    logfile : Optional[str]
        File to append to in addition to the console.  Missing parent
        directories are created.
    """
    root = logging.getLogger()
    if root.handlers:
        # A second create_app() or pytest's own capture handler.
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if numeric_level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
