"""
Logging configuration for the sensor data quality engine.

All engine loggers live under the ``sensor_quality`` namespace, so setup only
touches that branch of the logging tree and leaves the host application's
root handlers alone.
"""

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from sensor_quality.config import LoggingSettings

ENGINE_LOGGER_NAME = "sensor_quality"


def _build_formatter(include_timestamp: bool) -> logging.Formatter:
    if include_timestamp:
        return logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    return logging.Formatter('%(name)s - %(levelname)s - %(message)s')


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    include_timestamp: bool = True
) -> logging.Logger:
    """
    Set up logging for the engine.

    Handlers are attached to the engine's namespace logger, replacing any
    handlers a previous call attached; records do not propagate to the root.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for logging output
        include_timestamp: Whether to include timestamps in log messages

    Returns:
        The configured engine logger
    """
    formatter = _build_formatter(include_timestamp)

    logger = logging.getLogger(ENGINE_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_logging(settings: "LoggingSettings") -> logging.Logger:
    """Set up engine logging from the ``logging`` configuration section."""
    return setup_logging(settings.level, settings.log_file, settings.include_timestamp)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific component.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger under the engine namespace when ``name`` is an engine module
    """
    return logging.getLogger(name)
