"""Manages application configuration via an INI file."""

import configparser
import logging
from pathlib import Path
from typing import Optional

from cellimg.logging_setup import get_app_data_dir

log = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "store": {
        "max_megabytes": "256",
    },
    "decode": {
        "workers": "4",
        "max_input_megabytes": "64",  # Larger inputs are kept as encoded files
    },
    "logging": {
        "level": "INFO",
    },
}

class AppConfig:
    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else get_app_data_dir() / "cellimg.ini"
        self.config = configparser.ConfigParser()
        self.load()

    def load(self):
        """Loads the config, creating it with defaults if it doesn't exist."""
        if not self.config_path.exists():
            log.info(f"Creating default config at {self.config_path}")
            self.config.read_dict(DEFAULT_CONFIG)
            self.save()
        else:
            log.info(f"Loading config from {self.config_path}")
            self.config.read(self.config_path)
            # Ensure all sections and keys exist
            missing = False
            for section, keys in DEFAULT_CONFIG.items():
                if not self.config.has_section(section):
                    self.config.add_section(section)
                for key, value in keys.items():
                    if not self.config.has_option(section, key):
                        self.config.set(section, key, value)
                        missing = True
            if missing:
                self.save()

    def save(self):
        """Saves the current configuration to the INI file."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with self.config_path.open("w") as f:
                self.config.write(f)
            log.info(f"Saved config to {self.config_path}")
        except OSError as e:
            log.error(f"Failed to save config to {self.config_path}: {e}")

    def get(self, section, key, fallback=None):
        return self.config.get(section, key, fallback=fallback)

    def getint(self, section, key, fallback=None):
        return self.config.getint(section, key, fallback=fallback)

    def getfloat(self, section, key, fallback=None):
        return self.config.getfloat(section, key, fallback=fallback)

    def getboolean(self, section, key, fallback=None):
        return self.config.getboolean(section, key, fallback=fallback)

    def set(self, section, key, value):
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, key, str(value))

    @property
    def store_max_bytes(self) -> int:
        return int(self.getfloat("store", "max_megabytes", fallback=256) * 1024**2)

    @property
    def decode_workers(self) -> int:
        return max(1, self.getint("decode", "workers", fallback=4))

    @property
    def max_input_bytes(self) -> int:
        return int(self.getfloat("decode", "max_input_megabytes", fallback=64) * 1024**2)

# Global config instance
config = AppConfig()
