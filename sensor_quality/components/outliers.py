"""
Outlier detection component for the sensor data quality engine.

Flags readings whose z-score within their reading type exceeds a threshold
and replaces their value with the median of the reading type's group.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from sensor_quality.components.base import OutlierDetectionComponent
from sensor_quality.config import EngineConfig
from sensor_quality.models import OutlierResult, SensorReading
from sensor_quality.utils import (
    InvalidInputError,
    QualityEngineError,
    coerce_readings,
    get_logger,
)

logger = get_logger(__name__)

DEFAULT_Z_THRESHOLD = 3.0


def _group_statistics(
    reading_type: str,
    members: List[SensorReading]
) -> Tuple[Optional[np.ndarray], Optional[float]]:
    """
    Compute absolute z-scores and the median for one reading type.

    Returns (None, None) for groups that cannot contain outliers: a single
    member, or members that all share one value.

    Raises:
        InvalidInputError: If a member of a scored group has no value
    """
    if len(members) <= 1:
        return None, None

    missing = sum(1 for member in members if member.value is None)
    if missing:
        raise InvalidInputError(
            f"Cannot score '{reading_type}' readings: {missing} of {len(members)} have no value"
        )

    values = np.array([member.value for member in members], dtype=float)

    # Identical values have no spread; the float std of such a group is not always exactly 0
    if np.all(values == values[0]):
        return None, None

    z_scores = np.abs(stats.zscore(values, ddof=0))
    return z_scores, float(np.median(values))


def detect_outliers(records: Sequence[Any], threshold: float = DEFAULT_Z_THRESHOLD) -> OutlierResult:
    """
    Detect z-score outliers per reading type and correct them with the group median.

    Args:
        records: Readings or reading-shaped mappings
        threshold: A reading is an outlier when its z-score is strictly greater

    Returns:
        OutlierResult whose ``cleaned`` list follows input order and whose
        ``outliers`` list follows group-then-input order

    Raises:
        InvalidInputError: If any record is invalid or a scored group holds a missing value
    """
    readings = coerce_readings(records)
    if not readings:
        return OutlierResult()

    groups: Dict[str, List[int]] = {}
    for index, reading in enumerate(readings):
        groups.setdefault(reading.reading_type, []).append(index)

    # Score every group before building results so a bad group fails the whole call
    scored = {}
    for reading_type, indices in groups.items():
        scored[reading_type] = _group_statistics(reading_type, [readings[i] for i in indices])

    cleaned: List[Optional[SensorReading]] = [None] * len(readings)
    outliers: List[SensorReading] = []

    for reading_type, indices in groups.items():
        z_scores, median = scored[reading_type]
        group_outliers = 0

        for position, index in enumerate(indices):
            reading = readings[index]
            z = float(z_scores[position]) if z_scores is not None else 0.0

            if z_scores is not None and z > threshold:
                cleaned[index] = reading.model_copy(
                    update={"value": median, "outlier_corrected": True, "z_score": z}
                )
                outliers.append(reading.model_copy(update={"z_score": z}))
                group_outliers += 1
            else:
                cleaned[index] = reading.model_copy(
                    update={"outlier_corrected": False, "z_score": None}
                )

        if group_outliers:
            logger.debug(
                f"   {reading_type}: {group_outliers} of {len(indices)} readings corrected to median {median}"
            )

    return OutlierResult(cleaned=cleaned, outliers=outliers)


class ZScoreOutlierComponent(OutlierDetectionComponent):
    """Concrete outlier detection using per-reading-type z-scores."""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize outlier detection component.

        Args:
            config: Engine configuration
        """
        super().__init__(config)
        self.logger = get_logger(__name__)

    def execute(self, records: Sequence[Any]) -> OutlierResult:
        """
        Execute outlier detection with the configured threshold.

        Args:
            records: Readings to analyze

        Returns:
            Cleaned readings and detected outliers

        Raises:
            InvalidInputError: If the batch holds an invalid record
            QualityEngineError: If detection fails unexpectedly
        """
        threshold = self.config.outlier_z_threshold

        try:
            self.logger.info(f"Starting outlier detection (z-score threshold: {threshold})")
            result = detect_outliers(records, threshold)

            if not result.cleaned:
                self.logger.warning("No data for outlier detection")
                return result

            self._log_outlier_summary(result)
            return result

        except InvalidInputError as e:
            self.logger.error(f"Outlier detection rejected batch: {str(e)}")
            raise
        except Exception as e:
            self.logger.error(f"Outlier detection failed: {str(e)}")
            raise QualityEngineError(f"Outlier detection failed: {str(e)}") from e

    def _log_outlier_summary(self, result: OutlierResult) -> None:
        """Log outlier statistics for one run."""
        stats_by_type: Dict[str, int] = {}
        for outlier in result.outliers:
            stats_by_type[outlier.reading_type] = stats_by_type.get(outlier.reading_type, 0) + 1

        self.logger.info("=== Outlier Detection Summary ===")
        self.logger.info(f"Records Analyzed: {len(result.cleaned)}")
        self.logger.info(f"Outliers Corrected: {result.outlier_count}")
        for reading_type, count in stats_by_type.items():
            self.logger.info(f"  - {reading_type}: {count}")

        if result.outlier_count > 0:
            rate = result.outlier_count / len(result.cleaned) * 100
            self.logger.warning(f"Replaced {result.outlier_count} outlier values with group medians ({rate:.1f}%)")
