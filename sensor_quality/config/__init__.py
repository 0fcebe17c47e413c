"""Configuration models for the sensor data quality engine."""

from .models import (
    EngineConfig,
    EngineInfo,
    ValueRange,
    OutlierSettings,
    GapSettings,
    ScoringSettings,
    PreparationSettings,
    LoggingSettings,
)

__all__ = [
    "EngineConfig",
    "EngineInfo",
    "ValueRange",
    "OutlierSettings",
    "GapSettings",
    "ScoringSettings",
    "PreparationSettings",
    "LoggingSettings",
]
