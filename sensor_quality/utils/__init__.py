"""Utility modules for the sensor data quality engine."""

from .logging import setup_logging, configure_logging, get_logger
from .exceptions import QualityEngineError, InvalidInputError, ConfigurationError
from .records import coerce_reading, coerce_readings, readings_to_frame

__all__ = [
    "setup_logging",
    "configure_logging",
    "get_logger",
    "QualityEngineError",
    "InvalidInputError",
    "ConfigurationError",
    "coerce_reading",
    "coerce_readings",
    "readings_to_frame",
]
