"""
Custom exceptions for the sensor data quality engine.

These provide specific error types that callers can catch to decide whether
to skip a batch, log it, or abort the surrounding pipeline run.
"""


class QualityEngineError(Exception):
    """Base exception for all quality engine errors."""
    pass


class InvalidInputError(QualityEngineError):
    """Raised when a batch contains a record the engine cannot analyze."""
    pass


class ConfigurationError(QualityEngineError):
    """Raised when configuration is invalid or missing."""
    pass
