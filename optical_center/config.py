"""
Configuration for the optical-center and factory-tilt pipelines.

Loaded from YAML; every key is optional.

Example YAML:
    tilt_threshold_deg: 0.5
    recompute_on_resize: false
    view_mapper: analytic      # or: affine
    default_sensor_orientation: 90
    log_level: INFO
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict

import yaml

from optical_center.types import ConfigurationError

logger = logging.getLogger(__name__)

MAPPERS = ("analytic", "affine")


@dataclass(frozen=True)
class CalibrationConfig:
    tilt_threshold_deg: float = 0.5
    recompute_on_resize: bool = False
    view_mapper: str = "analytic"
    default_sensor_orientation: int = 90
    log_level: str = "INFO"

    def __post_init__(self):
        if self.tilt_threshold_deg < 0:
            raise ConfigurationError(f"tilt_threshold_deg must be >= 0, got {self.tilt_threshold_deg}")
        if self.view_mapper not in MAPPERS:
            raise ConfigurationError(f"view_mapper must be one of {MAPPERS}, got {self.view_mapper!r}")
        if self.default_sensor_orientation % 90 != 0:
            raise ConfigurationError(
                f"default_sensor_orientation must be a multiple of 90, got {self.default_sensor_orientation}"
            )
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ConfigurationError(f"unknown log_level {self.log_level!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalibrationConfig":
        defaults = cls()
        return cls(
            tilt_threshold_deg=float(data.get("tilt_threshold_deg", defaults.tilt_threshold_deg)),
            recompute_on_resize=bool(data.get("recompute_on_resize", defaults.recompute_on_resize)),
            view_mapper=str(data.get("view_mapper", defaults.view_mapper)),
            default_sensor_orientation=int(data.get("default_sensor_orientation", defaults.default_sensor_orientation)),
            log_level=str(data.get("log_level", defaults.log_level)),
        )

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "CalibrationConfig":
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_path}: expected a mapping at top level")

        logger.info(f"Loading configuration from {config_path}")
        return cls.from_dict(data)

    def to_yaml(self, config_path: str | Path) -> None:
        with open(config_path, "w") as f:
            yaml.dump(asdict(self), f, default_flow_style=False, sort_keys=False)
        logger.info(f"Configuration saved to {config_path}")


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
