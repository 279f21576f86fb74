"""Configures application-wide logging."""

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional


def get_app_data_dir() -> Path:
    """Returns the application data directory."""
    home = os.getenv("CELLIMG_HOME")
    if home:
        return Path(home)
    app_data = os.getenv("APPDATA")
    if app_data:
        return Path(app_data) / "cellimg"
    return Path.home() / ".cellimg"


def setup_logging(debug: bool = False, level: Optional[str] = None):
    """Sets up logging to a rotating file in the app data directory."""
    log_dir = get_app_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "app.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=10*1024*1024, backupCount=5
    )
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    if debug:
        root_logger.setLevel(logging.DEBUG)
    else:
        root_logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
    root_logger.addHandler(handler)

    # Configure logging for key modules
    if debug:
        logging.getLogger("cellimg.imaging.cache").setLevel(logging.DEBUG)
        logging.getLogger("cellimg.imaging.decode").setLevel(logging.DEBUG)
    logging.getLogger("PIL").setLevel(logging.INFO)
    return log_file
