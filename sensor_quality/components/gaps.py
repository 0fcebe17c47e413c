"""
Temporal gap analysis component for the sensor data quality engine.

Measures hourly coverage of every (sensor_id, reading_type) stream and
extracts the periods in which expected hourly samples are missing. Per-stream
time ranges are aggregated with an in-memory DuckDB query; the hour-by-hour
walk uses a hash set of observed hour buckets so it stays linear in the
number of expected hours.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set

import duckdb
import pandas as pd

from sensor_quality.components.base import GapAnalysisComponent
from sensor_quality.config import EngineConfig
from sensor_quality.models import (
    CoverageResult,
    CoverageSummary,
    GapAnalysisResult,
    GapPeriod,
    ReadingTypeCoverage,
    SensorReading,
    StreamKey,
    TimeRange,
)
from sensor_quality.utils import (
    ConfigurationError,
    InvalidInputError,
    QualityEngineError,
    coerce_readings,
    get_logger,
)

logger = get_logger(__name__)

ONE_HOUR = timedelta(hours=1)
DEFAULT_GAP_THRESHOLD_HOURS = 24.0
DEFAULT_MATCH_TOLERANCE_SECONDS = 60.0


def _as_utc(value: Any) -> datetime:
    """Convert a naive UTC timestamp returned by DuckDB to an aware datetime."""
    return pd.Timestamp(value).to_pydatetime().replace(tzinfo=timezone.utc)


def _hourly_range(start: datetime, end: datetime) -> Iterator[datetime]:
    """Yield every hour from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += ONE_HOUR


def _tolerance_offsets(tolerance_seconds: float) -> List[timedelta]:
    """
    Hour offsets at which an observed bucket counts as a match.

    Observed buckets are whole hours, so only offsets strictly inside the
    tolerance window can ever match; for tolerances under an hour that is
    just the expected hour itself.
    """
    reach = int(math.ceil(tolerance_seconds / 3600.0))
    return [
        timedelta(hours=k)
        for k in range(-reach, reach + 1)
        if abs(k) * 3600 < tolerance_seconds
    ]


def _stream_frame(readings: List[SensorReading]) -> pd.DataFrame:
    """Build the per-reading frame used for stream aggregation."""
    return pd.DataFrame({
        "sensor_id": [reading.sensor_id for reading in readings],
        "reading_type": [reading.reading_type for reading in readings],
        "hour_bucket": pd.to_datetime(
            [reading.hour_bucket for reading in readings], utc=True
        ).tz_localize(None),
        "row_order": list(range(len(readings))),
    })


def _aggregate_streams(frame: pd.DataFrame) -> List[tuple]:
    """
    Aggregate hour buckets per stream with DuckDB.

    Returns:
        Rows of (sensor_id, reading_type, min_time, max_time, actual_hours)
        ordered by the stream's first appearance in the batch
    """
    conn = duckdb.connect(':memory:')
    try:
        conn.register('sensor_time_data', frame)
        return conn.execute("""
            SELECT
                sensor_id,
                reading_type,
                MIN(hour_bucket) AS min_time,
                MAX(hour_bucket) AS max_time,
                COUNT(DISTINCT hour_bucket) AS actual_hours
            FROM sensor_time_data
            GROUP BY sensor_id, reading_type
            ORDER BY MIN(row_order)
        """).fetchall()
    finally:
        conn.close()


def _make_gap(start: datetime, end: datetime, threshold_hours: float) -> GapPeriod:
    duration = (end - start) / ONE_HOUR + 1
    return GapPeriod(
        start_time=start,
        end_time=end,
        duration_hours=duration,
        is_significant=duration >= threshold_hours,
    )


def find_gap_periods(
    buckets: Set[datetime],
    min_time: datetime,
    max_time: datetime,
    gap_threshold_hours: float = DEFAULT_GAP_THRESHOLD_HOURS,
    match_tolerance_seconds: float = DEFAULT_MATCH_TOLERANCE_SECONDS
) -> List[GapPeriod]:
    """
    Walk the expected hourly sequence and collect runs of missing hours.

    Args:
        buckets: Hour buckets that hold at least one reading
        min_time: First expected hour
        max_time: Last expected hour
        gap_threshold_hours: Duration at which a gap becomes significant
        match_tolerance_seconds: Window for matching a bucket to an expected hour

    Returns:
        Gap periods in time order
    """
    offsets = _tolerance_offsets(match_tolerance_seconds)
    gaps: List[GapPeriod] = []
    gap_start: Optional[datetime] = None

    for hour in _hourly_range(min_time, max_time):
        has_data = any(hour + offset in buckets for offset in offsets)

        if not has_data:
            if gap_start is None:
                gap_start = hour
        elif gap_start is not None:
            gaps.append(_make_gap(gap_start, hour - ONE_HOUR, gap_threshold_hours))
            gap_start = None

    if gap_start is not None:
        gaps.append(_make_gap(gap_start, max_time, gap_threshold_hours))

    return gaps


def summarize_coverage(
    per_stream: Dict[StreamKey, CoverageResult],
    gap_threshold_hours: float = DEFAULT_GAP_THRESHOLD_HOURS
) -> CoverageSummary:
    """
    Roll per-stream coverage up to batch and reading-type level.

    Args:
        per_stream: Coverage results keyed by stream
        gap_threshold_hours: Threshold the results were computed with

    Returns:
        Coverage summary with percentages rounded to 2 decimals
    """
    total_expected = 0
    total_actual = 0
    total_gaps = 0
    significant_gaps = 0
    longest_gap = 0.0
    by_type: Dict[str, Dict[str, int]] = {}

    for result in per_stream.values():
        total_expected += result.expected_hours
        total_actual += result.actual_hours
        total_gaps += len(result.gaps)
        significant_gaps += len(result.significant_gaps)
        for gap in result.gaps:
            longest_gap = max(longest_gap, gap.duration_hours)

        type_totals = by_type.setdefault(result.reading_type, {"expected": 0, "actual": 0, "sensors": 0})
        type_totals["expected"] += result.expected_hours
        type_totals["actual"] += result.actual_hours
        type_totals["sensors"] += 1

    coverage_by_type = {
        reading_type: ReadingTypeCoverage(
            expected_hours=totals["expected"],
            actual_hours=totals["actual"],
            sensors=totals["sensors"],
            coverage_percentage=round(totals["actual"] / totals["expected"] * 100, 2) if totals["expected"] else 0.0,
        )
        for reading_type, totals in by_type.items()
    }

    return CoverageSummary(
        total_combinations=len(per_stream),
        overall_coverage_percentage=round(total_actual / total_expected * 100, 2) if total_expected else 0.0,
        total_expected_hours=total_expected,
        total_actual_hours=total_actual,
        total_missing_hours=total_expected - total_actual,
        total_gaps=total_gaps,
        significant_gaps=significant_gaps,
        longest_gap_hours=longest_gap,
        gap_threshold_hours=gap_threshold_hours,
        coverage_by_reading_type=coverage_by_type,
    )


def detect_time_gaps(
    records: Sequence[Any],
    gap_threshold_hours: float = DEFAULT_GAP_THRESHOLD_HOURS,
    match_tolerance_seconds: float = DEFAULT_MATCH_TOLERANCE_SECONDS
) -> GapAnalysisResult:
    """
    Analyze hourly coverage for every (sensor_id, reading_type) stream.

    Args:
        records: Readings or reading-shaped mappings
        gap_threshold_hours: Duration at which a gap becomes significant
        match_tolerance_seconds: Window for matching a bucket to an expected hour

    Returns:
        GapAnalysisResult with per-stream coverage and a batch summary

    Raises:
        InvalidInputError: If any record is invalid
        ConfigurationError: If the match tolerance is not positive
    """
    if match_tolerance_seconds <= 0:
        raise ConfigurationError(
            f"match_tolerance_seconds must be positive, got {match_tolerance_seconds}"
        )

    readings = coerce_readings(records)
    if not readings:
        return GapAnalysisResult(summary=CoverageSummary(gap_threshold_hours=gap_threshold_hours))

    buckets: Dict[StreamKey, Set[datetime]] = {}
    for reading in readings:
        buckets.setdefault(reading.stream_key, set()).add(reading.hour_bucket)

    per_stream: Dict[StreamKey, CoverageResult] = {}
    for sensor_id, reading_type, min_time, max_time, actual_hours in _aggregate_streams(_stream_frame(readings)):
        key = StreamKey(sensor_id, reading_type)
        min_time = _as_utc(min_time)
        max_time = _as_utc(max_time)

        expected_hours = (max_time - min_time) // ONE_HOUR + 1
        actual_hours = int(actual_hours)

        per_stream[key] = CoverageResult(
            sensor_id=sensor_id,
            reading_type=reading_type,
            expected_hours=expected_hours,
            actual_hours=actual_hours,
            missing_hours=expected_hours - actual_hours,
            coverage_percentage=actual_hours / expected_hours * 100 if expected_hours else 0.0,
            gaps=find_gap_periods(
                buckets[key], min_time, max_time, gap_threshold_hours, match_tolerance_seconds
            ),
            time_range=TimeRange(start=min_time, end=max_time),
        )

    return GapAnalysisResult(
        per_stream=per_stream,
        summary=summarize_coverage(per_stream, gap_threshold_hours),
    )


class HourlyGapComponent(GapAnalysisComponent):
    """Concrete gap analysis over hourly buckets."""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize gap analysis component.

        Args:
            config: Engine configuration
        """
        super().__init__(config)
        self.logger = get_logger(__name__)

    def execute(self, records: Sequence[Any]) -> GapAnalysisResult:
        """
        Execute gap analysis with the configured thresholds.

        Args:
            records: Readings to analyze

        Returns:
            Per-stream coverage and batch summary

        Raises:
            InvalidInputError: If the batch holds an invalid record
            QualityEngineError: If analysis fails unexpectedly
        """
        try:
            self.logger.info("Starting time gap detection")
            result = detect_time_gaps(
                records,
                gap_threshold_hours=self.config.gap_threshold_hours,
                match_tolerance_seconds=self.config.gap_match_tolerance_seconds,
            )

            if not result.per_stream:
                self.logger.warning("No data for gap detection")
                return result

            self._log_gap_summary(result)
            return result

        except (InvalidInputError, ConfigurationError) as e:
            self.logger.error(f"Gap detection rejected batch: {str(e)}")
            raise
        except Exception as e:
            self.logger.error(f"Gap detection failed: {str(e)}")
            raise QualityEngineError(f"Time gap detection failed: {str(e)}") from e

    def _log_gap_summary(self, result: GapAnalysisResult) -> None:
        """Log coverage statistics and significant gaps."""
        summary = result.summary
        self.logger.info("=== Gap Detection Summary ===")
        self.logger.info(f"Streams Analyzed: {summary.total_combinations}")
        self.logger.info(f"Overall Coverage: {summary.overall_coverage_percentage:.2f}%")
        self.logger.info(f"Missing Hours: {summary.total_missing_hours}")
        self.logger.info(f"Gaps Found: {summary.total_gaps}")

        for coverage in result.per_stream.values():
            for gap in coverage.significant_gaps:
                self.logger.warning(
                    f"Sensor {coverage.sensor_id} ({coverage.reading_type}): {gap.duration_hours:g} hour gap "
                    f"from {gap.start_time.isoformat()} to {gap.end_time.isoformat()}"
                )
