"""
Batch preparation component for the sensor data quality engine.

Runs the upstream steps that precede outlier detection: record
normalization, duplicate removal, range-based anomaly flagging and optional
default filling of missing values.
"""

from typing import Any, Callable, List, Optional, Sequence

from sensor_quality.components.base import PreparationComponent
from sensor_quality.config import EngineConfig, PreparationSettings, ValueRange
from sensor_quality.models import SensorReading
from sensor_quality.utils import InvalidInputError, QualityEngineError, coerce_readings, get_logger

logger = get_logger(__name__)


def remove_duplicates(readings: List[SensorReading]) -> List[SensorReading]:
    """
    Drop repeated readings, keeping the first occurrence.

    Two readings are duplicates when they share sensor_id, timestamp and reading_type.
    """
    seen = set()
    unique = []
    for reading in readings:
        key = (reading.sensor_id, reading.timestamp, reading.reading_type)
        if key in seen:
            continue
        seen.add(key)
        unique.append(reading)
    return unique


def flag_range_anomalies(
    readings: List[SensorReading],
    value_range_for: Callable[[str], Optional[ValueRange]]
) -> List[SensorReading]:
    """
    Flag readings whose value falls outside the range of their reading type.

    Readings without a value, reading types without a range, and readings
    already flagged upstream are returned unchanged.

    Args:
        readings: Readings to check
        value_range_for: Returns the acceptable range for a reading type, or None
    """
    flagged = []
    for reading in readings:
        value_range = value_range_for(reading.reading_type)
        if (
            value_range is not None
            and reading.value is not None
            and not reading.anomalous_reading
            and (reading.value < value_range.min or reading.value > value_range.max)
        ):
            reading = reading.model_copy(update={"anomalous_reading": True})
        flagged.append(reading)
    return flagged


def fill_missing_values(
    readings: List[SensorReading],
    fill_value: Callable[[str], float]
) -> List[SensorReading]:
    """
    Replace missing values with a per-reading-type default.

    Args:
        readings: Readings to fill
        fill_value: Returns the default for a reading type

    Returns:
        Readings with filled copies marked ``missing_value_filled``
    """
    return [
        reading.model_copy(update={"value": fill_value(reading.reading_type), "missing_value_filled": True})
        if reading.value is None else reading
        for reading in readings
    ]


def prepare_batch(records: Sequence[Any], config: Optional[EngineConfig] = None) -> List[SensorReading]:
    """
    Normalize a raw batch and apply the configured preparation steps.

    Args:
        records: Raw readings or reading-shaped mappings
        config: Engine configuration; defaults apply when omitted

    Returns:
        Prepared readings in input order

    Raises:
        InvalidInputError: If any record is invalid
    """
    config = config or EngineConfig()
    settings: PreparationSettings = config.preparation

    readings = coerce_readings(records)

    if settings.remove_duplicates:
        readings = remove_duplicates(readings)
    if settings.flag_range_anomalies and settings.ranges:
        readings = flag_range_anomalies(readings, config.get_value_range)
    if settings.fill_missing_values:
        readings = fill_missing_values(readings, config.get_fill_value)

    return readings


class SensorPreparationComponent(PreparationComponent):
    """Concrete batch preparation driven by the preparation settings."""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize batch preparation component.

        Args:
            config: Engine configuration
        """
        super().__init__(config)
        self.logger = get_logger(__name__)

    def execute(self, records: Sequence[Any]) -> List[SensorReading]:
        """
        Execute batch preparation.

        Args:
            records: Raw readings or reading-shaped mappings

        Returns:
            Prepared readings

        Raises:
            InvalidInputError: If the batch holds an invalid record
            QualityEngineError: If preparation fails unexpectedly
        """
        try:
            self.logger.info("Starting batch preparation")
            readings = coerce_readings(records)

            if not readings:
                self.logger.warning("No data to prepare")
                return readings

            prepared = prepare_batch(readings, self.config)
            self._log_preparation_summary(readings, prepared)
            return prepared

        except InvalidInputError as e:
            self.logger.error(f"Batch preparation rejected batch: {str(e)}")
            raise
        except Exception as e:
            self.logger.error(f"Batch preparation failed: {str(e)}")
            raise QualityEngineError(f"Batch preparation failed: {str(e)}") from e

    def _log_preparation_summary(self, raw: List[SensorReading], prepared: List[SensorReading]) -> None:
        """Log preparation statistics for one run."""
        stats = {
            "input_records": len(raw),
            "output_records": len(prepared),
            "duplicates_removed": len(raw) - len(prepared),
            "anomalies_flagged": sum(1 for r in prepared if r.anomalous_reading),
            "missing_values_filled": sum(1 for r in prepared if r.missing_value_filled),
            "missing_values_remaining": sum(1 for r in prepared if r.value is None),
        }

        self.logger.info("=== Preparation Summary ===")
        for key, value in stats.items():
            self.logger.info(f"{key.replace('_', ' ').title()}: {value}")

        if stats["missing_values_remaining"] > 0:
            self.logger.warning(f"   {stats['missing_values_remaining']} missing values remain after preparation")
