"""
Pydantic models for engine configuration.

These models provide type-safe parsing and validation of the YAML configuration file.
Every section carries defaults, so an empty document yields a working configuration.
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sensor_quality.utils.exceptions import ConfigurationError


class EngineInfo(BaseModel):
    """Basic engine metadata."""
    name: str = Field("sensor_quality_engine", description="Engine name")
    version: str = Field("1.0.0", description="Engine version")


class ValueRange(BaseModel):
    """Acceptable value range for a measurement type."""
    min: float = Field(..., description="Minimum acceptable value")
    max: float = Field(..., description="Maximum acceptable value")


class OutlierSettings(BaseModel):
    """Z-score outlier detection parameters."""
    model_config = ConfigDict(extra='forbid')

    z_score_threshold: float = Field(3.0, description="Z-score above which a reading is an outlier")


class GapSettings(BaseModel):
    """Temporal gap analysis parameters."""
    model_config = ConfigDict(extra='forbid')

    gap_threshold_hours: float = Field(24.0, ge=0, description="Gap length at which a gap is significant")
    match_tolerance_seconds: float = Field(60.0, gt=0, description="Window for matching data buckets to expected hours")


class ScoringSettings(BaseModel):
    """Composite quality score weights."""
    model_config = ConfigDict(extra='forbid')

    missing_weight: float = Field(30.0, ge=0, description="Points deducted when every value is missing")
    anomaly_weight: float = Field(40.0, ge=0, description="Points deducted when every reading is anomalous")


class PreparationSettings(BaseModel):
    """Upstream batch preparation applied before outlier detection."""
    model_config = ConfigDict(extra='forbid')

    enabled: bool = Field(True, description="Run batch preparation in the pipeline")
    remove_duplicates: bool = Field(True, description="Drop repeated (sensor_id, timestamp, reading_type) records")
    flag_range_anomalies: bool = Field(True, description="Flag readings outside the configured ranges as anomalous")
    fill_missing_values: bool = Field(False, description="Fill missing values with per-type defaults")
    ranges: Dict[str, ValueRange] = Field(default_factory=dict, description="Acceptable value ranges per reading type")
    fill_defaults: Dict[str, float] = Field(default_factory=dict, description="Fill value per reading type")
    default_fill_value: float = Field(0.0, description="Fill value for reading types without a default")

    @field_validator('ranges', 'fill_defaults', mode='before')
    @classmethod
    def lowercase_keys(cls, v):
        """Reading types are matched after lowercasing."""
        if isinstance(v, Mapping):
            return {str(k).strip().lower(): val for k, val in v.items()}
        return v


class LoggingSettings(BaseModel):
    """Logging output configuration."""
    model_config = ConfigDict(extra='forbid')

    level: str = Field("INFO", description="Logging level")
    log_file: Optional[str] = Field(None, description="Optional log file path")
    include_timestamp: bool = Field(True, description="Prefix log lines with a timestamp")

    @field_validator('level')
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown logging level: {v}")
        return level


class EngineConfig(BaseModel):
    """Complete engine configuration model."""
    model_config = ConfigDict(extra='forbid')

    engine: EngineInfo = Field(default_factory=EngineInfo, description="Engine metadata")
    outliers: OutlierSettings = Field(default_factory=OutlierSettings, description="Outlier detection")
    gaps: GapSettings = Field(default_factory=GapSettings, description="Gap analysis")
    scoring: ScoringSettings = Field(default_factory=ScoringSettings, description="Quality scoring")
    preparation: PreparationSettings = Field(default_factory=PreparationSettings, description="Batch preparation")
    logging: LoggingSettings = Field(default_factory=LoggingSettings, description="Logging")

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "EngineConfig":
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Configuration file is not valid YAML: {config_path}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        try:
            return cls(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "EngineConfig":
        """
        Build configuration from the flat option names used by callers.

        Recognized options: outlier_z_threshold, gap_threshold_hours,
        gap_match_tolerance_seconds.
        """
        options = dict(options or {})
        known = {"outlier_z_threshold", "gap_threshold_hours", "gap_match_tolerance_seconds"}
        unknown = set(options) - known
        if unknown:
            raise ConfigurationError(f"Unknown options: {sorted(unknown)}")

        outliers = {}
        gaps = {}
        if "outlier_z_threshold" in options:
            outliers["z_score_threshold"] = options["outlier_z_threshold"]
        if "gap_threshold_hours" in options:
            gaps["gap_threshold_hours"] = options["gap_threshold_hours"]
        if "gap_match_tolerance_seconds" in options:
            gaps["match_tolerance_seconds"] = options["gap_match_tolerance_seconds"]

        try:
            return cls(outliers=outliers, gaps=gaps)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid options: {e}") from e

    @property
    def outlier_z_threshold(self) -> float:
        return self.outliers.z_score_threshold

    @property
    def gap_threshold_hours(self) -> float:
        return self.gaps.gap_threshold_hours

    @property
    def gap_match_tolerance_seconds(self) -> float:
        return self.gaps.match_tolerance_seconds

    def get_value_range(self, reading_type: str) -> Optional[ValueRange]:
        """Get value range for a specific reading type."""
        return self.preparation.ranges.get(reading_type.lower())

    def get_fill_value(self, reading_type: str) -> float:
        """Get the default fill value for a specific reading type."""
        return self.preparation.fill_defaults.get(reading_type.lower(), self.preparation.default_fill_value)
