"""
Scoring weights and pacing settings, read from TOML.

Every numeric parameter has inclusive bounds; anything missing falls back to
DEFAULT_CONFIG, anything out of range is rejected when the config is built.
"""

import copy
import os
from pathlib import Path
from typing import Dict, Any, Optional
import toml
import logging

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised for unreadable or out-of-bounds configuration."""


class Config:
    """Validated engine settings, grouped by section."""

    # Parameter bounds (inclusive); int bounds mean the value must be an int
    PARAM_BOUNDS = {
        "generation": {
            "top_k": (1, 10),
            "energy_weight": (0.0, 50.0),
            "vocal_weight": (0.0, 50.0),
            "vocal_streak_penalty": (0.0, 100.0),
            "freshness_cap": (0.0, 50.0),
            "freshness_divisor": (1.0, 20.0),
            "flow_preset": None,  # String type
        },
        "pacing": {
            "high_intensity_threshold": (1, 5),
        },
        "freshness": {
            "max_freshness": (1.0, 1000.0),
            "play_count_weight": (0.0, 10.0),
            "play_count_penalty_cap": (0.0, 100.0),
        },
    }

    DEFAULT_CONFIG = {
        "config_version": "1.0",
        "generation": {
            "top_k": 3,
            "energy_weight": 10.0,
            "vocal_weight": 8.0,
            "vocal_streak_penalty": 30.0,
            "freshness_cap": 20.0,
            "freshness_divisor": 5.0,
            "flow_preset": "classic",
        },
        "pacing": {
            "high_intensity_threshold": 4,
        },
        "freshness": {
            "max_freshness": 100.0,
            "play_count_weight": 2.0,
            "play_count_penalty_cap": 30.0,
        },
    }

    def __init__(self, data: Dict[str, Any]):
        """Wrap a parsed config dict, filling gaps from DEFAULT_CONFIG."""
        self.data = data
        self._validate()

    @classmethod
    def default(cls) -> "Config":
        return cls(copy.deepcopy(cls.DEFAULT_CONFIG))

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """
        Read and validate a TOML config file.

        Args:
            path: Config file. When None, SETLIST_ENGINE_CONFIG or
                  configs/setlist.toml is used.

        Returns:
            Validated Config. A missing file yields the defaults.

        Raises:
            ConfigError: On unreadable TOML or out-of-bounds values.
        """
        config_path = Path(path or os.getenv("SETLIST_ENGINE_CONFIG", "configs/setlist.toml"))

        if not config_path.is_file():
            logger.warning(f"No config at {config_path}; falling back to defaults")
            return cls.default()

        try:
            data = toml.load(config_path)
        except (toml.TomlDecodeError, OSError) as e:
            raise ConfigError(f"Failed to load config from {config_path}: {e}") from e

        logger.info(f"Config read from {config_path}")
        return cls(data)

    def _validate(self) -> None:
        """
        Fill missing sections and params, then bounds-check every number.

        Raises:
            ConfigError: On a non-numeric or out-of-bounds parameter.
        """
        for section, bounds_by_param in self.PARAM_BOUNDS.items():
            defaults = self.DEFAULT_CONFIG[section]
            if section not in self.data:
                logger.warning(f"Config section [{section}] absent; using defaults")
                self.data[section] = copy.deepcopy(defaults)
                continue
            self._validate_section(section, self.data[section], bounds_by_param, defaults)

        logger.debug("Config validation passed")

    @staticmethod
    def _validate_section(
        section: str,
        values: Dict[str, Any],
        bounds_by_param: Dict[str, Any],
        defaults: Dict[str, Any],
    ) -> None:
        for param, bounds in bounds_by_param.items():
            if param not in values:
                logger.warning(f"{section}.{param} not set; defaulting to {defaults[param]}")
                values[param] = defaults[param]
                continue
            if bounds is None:
                continue

            value = values[param]
            low, high = bounds
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"Parameter {section}.{param}={value!r} is not numeric")
            if isinstance(low, int) and not isinstance(value, int):
                raise ConfigError(f"Parameter {section}.{param}={value!r} must be an integer")
            if value < low or value > high:
                raise ConfigError(f"Parameter {section}.{param}={value} outside [{low}, {high}]")

    def get(self, section: str, param: str, default: Any = None) -> Any:
        return self.data.get(section, {}).get(param, default)

    def __getitem__(self, section: str) -> Dict[str, Any]:
        """Section dict, e.g. config["generation"]; empty if unknown."""
        return self.data.get(section, {})

    def __repr__(self) -> str:
        return (
            f"Config(version={self.data.get('config_version', 'unknown')}, "
            f"flow_preset={self.get('generation', 'flow_preset')})"
        )
