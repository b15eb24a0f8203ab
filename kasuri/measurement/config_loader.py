"""Configuration loader with Pydantic validation for the measurement engine.

This module provides type-safe configuration loading from YAML files using
Pydantic models for validation and default values.
"""

import logging
from pathlib import Path
from typing import List, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from kasuri.common.types import SESSION_FORMAT_VERSION, CalibrationQuad, GridSpec

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


class RasterConfig(BaseModel):
    """Rectified raster configuration.

    Attributes:
        target_width: Raster width in pixels.
    """

    target_width: int = Field(default=800, gt=0)


class SolverConfig(BaseModel):
    """Linear solver configuration.

    Attributes:
        pivot_epsilon: Minimum pivot magnitude before a system is declared singular.
    """

    pivot_epsilon: float = Field(default=1e-10, gt=0.0)


class ViewportConfig(BaseModel):
    """Viewport configuration.

    Attributes:
        container_width: Initial container width in pixels.
        container_height: Initial container height in pixels.
        min_scale: Smallest zoom factor (at least 1).
        max_scale: Largest zoom factor.
        zoom_step: Scale increment for zoom-in/zoom-out buttons.
    """

    container_width: float = Field(default=800, gt=0)
    container_height: float = Field(default=600, gt=0)
    min_scale: float = Field(default=1.0, ge=1.0)
    max_scale: float = Field(default=5.0, ge=1.0)
    zoom_step: float = Field(default=0.5, gt=0.0)

    @model_validator(mode="after")
    def _check_scale_range(self) -> "ViewportConfig":
        if self.min_scale > self.max_scale:
            raise ValueError(
                f"min_scale ({self.min_scale}) must not exceed max_scale ({self.max_scale})"
            )
        return self


class GridDefaultsConfig(BaseModel):
    """Default grid granularity.

    Attributes:
        default_rows: Row count used for a new session.
        default_cols: Column count used for a new session.
    """

    default_rows: int = Field(default=32, gt=0)
    default_cols: int = Field(default=80, gt=0)

    def to_grid_spec(self) -> GridSpec:
        return GridSpec(rows=self.default_rows, cols=self.default_cols)


class CalibrationConfig(BaseModel):
    """Calibration defaults.

    Attributes:
        default_quad: Corner positions [TL, TR, BR, BL] applied when a photo is loaded.
    """

    default_quad: List[Tuple[float, float]] = Field(
        default_factory=lambda: [(0.2, 0.2), (0.8, 0.2), (0.8, 0.8), (0.2, 0.8)]
    )

    @model_validator(mode="after")
    def _check_quad(self) -> "CalibrationConfig":
        try:
            self.to_quad()
        except ValueError as e:
            raise ValueError(f"Invalid default_quad: {e}") from None
        return self

    def to_quad(self) -> CalibrationQuad:
        return CalibrationQuad(points=[list(p) for p in self.default_quad])


class SessionConfig(BaseModel):
    """Session export configuration.

    Attributes:
        format_version: Version tag written into exported sessions.
    """

    format_version: str = SESSION_FORMAT_VERSION


class KasuriConfig(BaseModel):
    """Complete measurement engine configuration."""

    raster: RasterConfig = Field(default_factory=RasterConfig)
    solver: SolverConfig = Field(default_factory=SolverConfig)
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    grid: GridDefaultsConfig = Field(default_factory=GridDefaultsConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> KasuriConfig:
    """
    Load measurement engine configuration from a YAML file.

    Sections missing from the file fall back to their defaults.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated KasuriConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid.

    Example:
        >>> config = load_config()
        >>> print(config.raster.target_width)
        800
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading measurement config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(f"Invalid configuration file: expected a mapping, got {type(raw_config).__name__}")

    try:
        config = KasuriConfig(**raw_config)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration file: {e}") from e

    logger.info("Successfully loaded measurement configuration")
    return config
