"""
Quality scoring component for the sensor data quality engine.

Counts missing, anomalous and outlier-corrected readings, derives a
composite 0-100 quality score, profiles the same counts per reading type and
records each sensor's first and last reading with DuckDB.
"""

from datetime import timezone
from typing import Any, Dict, List, Optional, Sequence, Union

import duckdb
import pandas as pd

from sensor_quality.components.base import QualityScoringComponent
from sensor_quality.config import EngineConfig
from sensor_quality.models import (
    CoverageSummary,
    GapAnalysisResult,
    MetricBreakdown,
    QualityDetails,
    QualityReport,
    QualitySummary,
    ReadingTypeQuality,
    SensorReading,
    SensorTimeCoverage,
    TimeGapAnalysis,
)
from sensor_quality.utils import (
    InvalidInputError,
    QualityEngineError,
    coerce_readings,
    get_logger,
    readings_to_frame,
)

logger = get_logger(__name__)

DEFAULT_MISSING_WEIGHT = 30.0
DEFAULT_ANOMALY_WEIGHT = 40.0


def _percentage(count: int, total: int) -> float:
    """Share of total as a percentage rounded to 2 decimals; 0 for an empty batch."""
    if total == 0:
        return 0.0
    return round(count / total * 100, 2)


def _breakdown(count: int, total: int) -> MetricBreakdown:
    return MetricBreakdown(count=count, percentage=_percentage(count, total))


def calculate_quality_score(
    total_records: int,
    missing_values: int,
    anomalous_readings: int,
    missing_weight: float = DEFAULT_MISSING_WEIGHT,
    anomaly_weight: float = DEFAULT_ANOMALY_WEIGHT
) -> float:
    """
    Calculate the composite quality score (0-100).

    Starts at 100 and deducts the missing and anomalous fractions of the batch
    scaled by their weights. Outlier corrections do not affect the score.

    Args:
        total_records: Records in the batch
        missing_values: Records without a value
        anomalous_readings: Records flagged anomalous upstream
        missing_weight: Points deducted when every value is missing
        anomaly_weight: Points deducted when every reading is anomalous

    Returns:
        Score clamped to [0, 100]; 0 for an empty batch
    """
    if total_records == 0:
        return 0.0

    score = 100.0
    score -= missing_values / total_records * missing_weight
    score -= anomalous_readings / total_records * anomaly_weight
    return min(100.0, max(0.0, score))


def _profile_by_reading_type(readings: List[SensorReading]) -> Dict[str, ReadingTypeQuality]:
    """Count quality issues per reading type using DuckDB."""
    frame = readings_to_frame(readings)
    frame['value_missing'] = frame['value'].isna()
    quality_data = frame[['reading_type', 'value_missing', 'anomalous_reading', 'outlier_corrected']].astype({
        'value_missing': bool,
        'anomalous_reading': bool,
        'outlier_corrected': bool,
    })

    conn = duckdb.connect(':memory:')
    try:
        conn.register('quality_data', quality_data)
        rows = conn.execute("""
            SELECT
                reading_type,
                COUNT(*) AS total_records,
                SUM(CASE WHEN value_missing THEN 1 ELSE 0 END) AS missing_values,
                SUM(CASE WHEN anomalous_reading THEN 1 ELSE 0 END) AS anomalous_readings,
                SUM(CASE WHEN outlier_corrected THEN 1 ELSE 0 END) AS outliers_corrected
            FROM quality_data
            GROUP BY reading_type
            ORDER BY reading_type
        """).fetchall()
    finally:
        conn.close()

    profile = {}
    for reading_type, total, missing, anomalous, corrected in rows:
        total = int(total)
        profile[reading_type] = ReadingTypeQuality(
            total_records=total,
            missing_values=_breakdown(int(missing), total),
            anomalous_readings=_breakdown(int(anomalous), total),
            outliers_corrected=_breakdown(int(corrected), total),
        )
    return profile


def _time_coverage_by_sensor(readings: List[SensorReading]) -> Dict[str, SensorTimeCoverage]:
    """First reading, last reading and reading count per sensor using DuckDB."""
    time_data = readings_to_frame(readings)[['sensor_id', 'timestamp']]

    conn = duckdb.connect(':memory:')
    try:
        conn.register('time_data', time_data)
        rows = conn.execute("""
            SELECT
                sensor_id,
                MIN(timestamp) AS first_reading,
                MAX(timestamp) AS last_reading,
                COUNT(*) AS total_readings
            FROM time_data
            GROUP BY sensor_id
            ORDER BY sensor_id
        """).fetchall()
    finally:
        conn.close()

    return {
        sensor_id: SensorTimeCoverage(
            first_reading=pd.Timestamp(first).tz_localize(timezone.utc).to_pydatetime(),
            last_reading=pd.Timestamp(last).tz_localize(timezone.utc).to_pydatetime(),
            total_readings=int(total),
        )
        for sensor_id, first, last, total in rows
    }


def _time_gap_analysis(coverage: CoverageSummary) -> TimeGapAnalysis:
    return TimeGapAnalysis(
        total_gaps=coverage.total_gaps,
        significant_gaps=coverage.significant_gaps,
        longest_gap_hours=coverage.longest_gap_hours,
        overall_coverage_percentage=coverage.overall_coverage_percentage,
    )


def score(
    records: Sequence[Any],
    coverage_summary: Optional[Union[CoverageSummary, GapAnalysisResult]] = None,
    missing_weight: float = DEFAULT_MISSING_WEIGHT,
    anomaly_weight: float = DEFAULT_ANOMALY_WEIGHT
) -> QualityReport:
    """
    Build the quality report for a batch.

    Args:
        records: Corrected readings or reading-shaped mappings
        coverage_summary: Optional gap analysis (or its summary) to embed in the report
        missing_weight: Score weight of the missing-value fraction
        anomaly_weight: Score weight of the anomalous-reading fraction

    Returns:
        QualityReport; an empty batch yields score 0 and zero counts

    Raises:
        InvalidInputError: If any record is invalid
    """
    readings = coerce_readings(records)

    if isinstance(coverage_summary, GapAnalysisResult):
        coverage_summary = coverage_summary.summary
    gap_analysis = _time_gap_analysis(coverage_summary) if coverage_summary is not None else None

    total_records = len(readings)
    if total_records == 0:
        return QualityReport(
            details=QualityDetails(time_gap_analysis=gap_analysis),
            coverage=coverage_summary,
        )

    missing_values = sum(1 for reading in readings if reading.value is None)
    anomalous_readings = sum(1 for reading in readings if reading.anomalous_reading)
    outliers_corrected = sum(1 for reading in readings if reading.outlier_corrected)

    quality_score = calculate_quality_score(
        total_records, missing_values, anomalous_readings, missing_weight, anomaly_weight
    )

    return QualityReport(
        summary=QualitySummary(
            total_records=total_records,
            overall_quality_score=quality_score,
            missing_values=missing_values,
            anomalous_readings=anomalous_readings,
            outliers_corrected=outliers_corrected,
        ),
        details=QualityDetails(
            missing_values=_breakdown(missing_values, total_records),
            anomalous_readings=_breakdown(anomalous_readings, total_records),
            outliers_corrected=_breakdown(outliers_corrected, total_records),
            by_reading_type=_profile_by_reading_type(readings),
            time_coverage=_time_coverage_by_sensor(readings),
            time_gap_analysis=gap_analysis,
        ),
        coverage=coverage_summary,
    )


class WeightedQualityComponent(QualityScoringComponent):
    """Concrete quality scorer using the configured missing/anomaly weights."""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize quality scoring component.

        Args:
            config: Engine configuration
        """
        super().__init__(config)
        self.logger = get_logger(__name__)

    def execute(
        self,
        records: Sequence[Any],
        coverage_summary: Optional[Union[CoverageSummary, GapAnalysisResult]] = None
    ) -> QualityReport:
        """
        Execute quality scoring.

        Args:
            records: Corrected readings
            coverage_summary: Optional gap analysis summary to embed

        Returns:
            Quality report for the batch

        Raises:
            InvalidInputError: If the batch holds an invalid record
            QualityEngineError: If scoring fails unexpectedly
        """
        try:
            self.logger.info("Generating quality report")
            report = score(
                records,
                coverage_summary,
                missing_weight=self.config.scoring.missing_weight,
                anomaly_weight=self.config.scoring.anomaly_weight,
            )

            if report.summary.total_records == 0:
                self.logger.warning("No data to score")
                return report

            self._log_quality_summary(report)
            return report

        except InvalidInputError as e:
            self.logger.error(f"Quality scoring rejected batch: {str(e)}")
            raise
        except Exception as e:
            self.logger.error(f"Quality report generation failed: {str(e)}")
            raise QualityEngineError(f"Quality report generation failed: {str(e)}") from e

    def _log_quality_summary(self, report: QualityReport) -> None:
        """Log headline quality numbers."""
        details = report.details
        self.logger.info("=== Quality Summary ===")
        self.logger.info(f"Total Records: {report.summary.total_records}")
        self.logger.info(f"Missing Values: {details.missing_values.count} ({details.missing_values.percentage}%)")
        self.logger.info(
            f"Anomalous Readings: {details.anomalous_readings.count} ({details.anomalous_readings.percentage}%)"
        )
        self.logger.info(
            f"Outliers Corrected: {details.outliers_corrected.count} ({details.outliers_corrected.percentage}%)"
        )
        if details.time_gap_analysis is not None:
            self.logger.info(
                f"Time Coverage: {details.time_gap_analysis.overall_coverage_percentage}% "
                f"({details.time_gap_analysis.significant_gaps} significant gaps)"
            )
        self.logger.info(f"Data Quality Score: {report.summary.overall_quality_score:.2f}")
