"""
Engine configuration.

Sampling defaults and runtime options, loaded from an optional YAML file
and overridable from the environment. The defaults reproduce the
dashboard's behaviour: a 10 degree mask, 60 s pass sampling and a
+/-90 minute ground track sampled every 5 s.
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging
import os

import yaml  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

ENV_PREFIX = "ORBIT_VISIBILITY_"


@dataclass
class EngineConfig:
    """Sampling and execution settings for the visibility engine."""

    min_elevation_deg: float = 10.0
    pass_step_ms: int = 60000
    ground_track_half_window_minutes: float = 90.0
    ground_track_step_seconds: float = 5.0
    max_footprint_radius_km: float = 4000.0
    max_workers: Optional[int] = None
    use_parallel: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not -90 <= self.min_elevation_deg <= 90:
            raise ValueError(
                f"min_elevation_deg must be in [-90, 90], got {self.min_elevation_deg}"
            )
        if self.pass_step_ms <= 0:
            raise ValueError(f"pass_step_ms must be positive, got {self.pass_step_ms}")
        if self.ground_track_step_seconds <= 0:
            raise ValueError(
                f"ground_track_step_seconds must be positive, got {self.ground_track_step_seconds}"
            )
        if self.ground_track_half_window_minutes < 0:
            raise ValueError(
                "ground_track_half_window_minutes must not be negative, "
                f"got {self.ground_track_half_window_minutes}"
            )
        if self.max_footprint_radius_km < 0:
            raise ValueError(
                f"max_footprint_radius_km must not be negative, got {self.max_footprint_radius_km}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Build a config, ignoring (and warning about) unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")
        return cls(**{key: value for key, value in data.items() if key in known})


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    overrides = {
        "min_elevation_deg": ("MIN_ELEVATION", float),
        "pass_step_ms": ("PASS_STEP_MS", int),
        "log_level": ("LOG_LEVEL", str),
    }
    result = dict(data)
    for key, (suffix, cast) in overrides.items():
        value = os.environ.get(ENV_PREFIX + suffix)
        if value:
            result[key] = cast(value)
            logger.debug(f"Config override from environment: {key}={value}")
    return result


def load_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load engine configuration.

    Args:
        config_path: Optional YAML file; a missing file falls back to defaults

    Returns:
        EngineConfig with environment overrides applied
    """
    data: Dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Configuration file not found: {path}. Using defaults.")
        else:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Configuration file {path} must contain a mapping")
            logger.info(f"Loaded configuration from {path}")

    return EngineConfig.from_dict(_apply_env_overrides(data))
