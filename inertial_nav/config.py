"""
Configuration manager for the inertial dead reckoning system.
"""

import copy
import json
import logging
import os
from typing import Any, Dict, Optional

from .math.constants import *

logger = logging.getLogger(__name__)


class Config:
    """Configuration manager for the dead reckoning system."""

    DEFAULT_CONFIG = {
        # Heading estimation
        "heading": {
            "alpha": HEADING_FILTER_ALPHA,
            "tilt_threshold_deg": TILT_COMPENSATION_THRESHOLD_DEG,
            "interference_threshold_deg": INTERFERENCE_THRESHOLD_DEG,
            "calibrating_window_s": CALIBRATING_WINDOW_S
        },

        # Motion integration
        "motion": {
            "stationary_threshold_ms2": STATIONARY_THRESHOLD_MS2,
            "stationary_samples": STATIONARY_SAMPLES_REQUIRED,
            "bias_weight": BIAS_LEARNING_WEIGHT,
            "deadzone_ms2": ACCEL_DEADZONE_MS2,
            "damping": VELOCITY_DAMPING,
            "min_delta_time_s": MIN_DELTA_TIME_S
        },

        # Georeferencing
        "geo": {
            "duplicate_radius_m": DUPLICATE_FIX_RADIUS_M
        },

        # Logging
        "enable_logging": True,
        "log_file": None,
        "log_level": "INFO"
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to a JSON configuration file; defaults are
                used when it is None or missing
        """
        self.config_file = config_file
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file is None:
            return

        if os.path.exists(config_file):
            self.load_config()
        else:
            logger.info("Config file %s not found, using defaults", config_file)

    def load_config(self) -> bool:
        """
        Load configuration from file.

        Returns:
            True if loaded successfully
        """
        try:
            with open(self.config_file, 'r') as f:
                file_config = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load config %s: %s", self.config_file, e)
            return False

        if not isinstance(file_config, dict):
            logger.warning("Ignoring config %s: top level must be an object", self.config_file)
            return False

        # File config overrides defaults
        self._merge_config(self.config, file_config)

        logger.info("Configuration loaded from %s", self.config_file)
        return True

    def save_config(self, config_file: Optional[str] = None) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if saved successfully
        """
        path = config_file or self.config_file
        if path is None:
            raise ValueError("No configuration file to save to")

        try:
            with open(path, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            logger.warning("Failed to save config %s: %s", path, e)
            return False

        logger.info("Configuration saved to %s", path)
        return True

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]):
        """Recursively merge configuration dictionaries."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default=None):
        """Get configuration value by dotted key with optional default."""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """Set configuration value by dotted key."""
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    # Property accessors for common configuration values
    @property
    def heading(self) -> Dict[str, float]:
        return self.config["heading"]

    @property
    def motion(self) -> Dict[str, float]:
        return self.config["motion"]

    @property
    def geo(self) -> Dict[str, float]:
        return self.config["geo"]

    @property
    def enable_logging(self) -> bool:
        return self.config["enable_logging"]

    @property
    def log_file(self) -> Optional[str]:
        return self.config["log_file"]

    @property
    def log_level(self) -> str:
        return self.config["log_level"]


def configure_logging(config: Config):
    """
    Configure root logging from the configuration.

    Args:
        config: Loaded configuration
    """
    if not config.enable_logging:
        logging.disable(logging.CRITICAL)
        return

    logging.disable(logging.NOTSET)

    level = getattr(logging, str(config.log_level).upper(), logging.INFO)
    handlers = [logging.StreamHandler()]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True
    )
