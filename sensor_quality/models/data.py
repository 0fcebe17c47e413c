"""
Pydantic models for data structures used throughout the engine.

These models ensure type safety and validation for data flowing between
components, and render results as plain JSON-safe dictionaries.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from sensor_quality.models.keys import PartitionKey, StreamKey


def _is_missing(value: Any) -> bool:
    """True for None, blank strings and NaN-like scalars."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


class SensorReading(BaseModel):
    """Model for individual sensor readings and the engine's annotations."""
    model_config = ConfigDict(extra='ignore')

    sensor_id: str = Field(..., description="Unique sensor identifier")
    timestamp: datetime = Field(..., description="Reading timestamp (UTC)")
    reading_type: str = Field(..., description="Type of measurement (temperature, humidity, etc.)")
    value: Optional[float] = Field(None, description="Sensor reading value")
    battery_level: Optional[float] = Field(None, description="Battery level percentage (0-100)")

    anomalous_reading: bool = Field(False, description="Flag set upstream for readings outside expected ranges")
    outlier_corrected: bool = Field(False, description="Value was replaced by the group median")
    missing_value_filled: bool = Field(False, description="Value was filled with a default")
    z_score: Optional[float] = Field(None, description="Z-score, present only on detected outliers")

    @field_validator('sensor_id', 'reading_type', mode='before')
    @classmethod
    def require_text(cls, v, info):
        """Reject missing identifiers and coerce numeric ids to text."""
        if _is_missing(v):
            raise ValueError(f"{info.field_name} is required")
        return str(v).strip()

    @field_validator('reading_type')
    @classmethod
    def normalize_reading_type(cls, v: str) -> str:
        return v.lower()

    @field_validator('timestamp', mode='before')
    @classmethod
    def coerce_timestamp(cls, v):
        if _is_missing(v):
            raise ValueError("timestamp is required")
        if isinstance(v, np.datetime64):
            return pd.Timestamp(v).to_pydatetime()
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('timestamp')
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        # Naive timestamps are taken to be UTC already
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator('value', 'battery_level', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        if _is_missing(v):
            return None
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('value', 'battery_level')
    @classmethod
    def nan_to_none(cls, v: Optional[float]) -> Optional[float]:
        if v is None:
            return v
        if math.isnan(v):
            return None
        if math.isinf(v):
            raise ValueError("value must be finite")
        return v

    @property
    def stream_key(self) -> StreamKey:
        return StreamKey(self.sensor_id, self.reading_type)

    @property
    def partition_key(self) -> PartitionKey:
        return PartitionKey(self.timestamp.date().isoformat(), self.sensor_id)

    @property
    def hour_bucket(self) -> datetime:
        """Timestamp rounded down to the hour."""
        return self.timestamp.replace(minute=0, second=0, microsecond=0)


class OutlierResult(BaseModel):
    """Result of z-score outlier detection over one batch."""
    cleaned: List[SensorReading] = Field(default_factory=list, description="All records, outliers replaced by the group median")
    outliers: List[SensorReading] = Field(default_factory=list, description="Detected outliers with original values and z-scores")

    @property
    def outlier_count(self) -> int:
        return len(self.outliers)


class GapPeriod(BaseModel):
    """A contiguous run of missing hourly samples for one stream."""
    model_config = ConfigDict(frozen=True)

    start_time: datetime = Field(..., description="First missing hour")
    end_time: datetime = Field(..., description="Last missing hour")
    duration_hours: float = Field(..., description="Length of the gap in hours, inclusive")
    is_significant: bool = Field(..., description="Whether the gap meets the significance threshold")


class TimeRange(BaseModel):
    """First and last hour bucket observed for a stream."""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime


class CoverageResult(BaseModel):
    """Temporal coverage of one (sensor_id, reading_type) stream."""
    model_config = ConfigDict(frozen=True)

    sensor_id: str
    reading_type: str
    expected_hours: int = Field(..., description="Hours between first and last bucket, inclusive")
    actual_hours: int = Field(..., description="Distinct hour buckets with data")
    missing_hours: int = Field(..., description="Expected hours without data")
    coverage_percentage: float = Field(..., description="actual_hours / expected_hours * 100")
    gaps: List[GapPeriod] = Field(default_factory=list, description="Gap periods in time order")
    time_range: TimeRange

    @property
    def stream_key(self) -> StreamKey:
        return StreamKey(self.sensor_id, self.reading_type)

    @property
    def significant_gaps(self) -> List[GapPeriod]:
        return [gap for gap in self.gaps if gap.is_significant]


class ReadingTypeCoverage(BaseModel):
    """Coverage rolled up across all sensors of one reading type."""
    model_config = ConfigDict(frozen=True)

    expected_hours: int
    actual_hours: int
    sensors: int
    coverage_percentage: float


class CoverageSummary(BaseModel):
    """Batch-level roll-up of the gap analysis."""
    model_config = ConfigDict(frozen=True)

    total_combinations: int = 0
    overall_coverage_percentage: float = 0.0
    total_expected_hours: int = 0
    total_actual_hours: int = 0
    total_missing_hours: int = 0
    total_gaps: int = 0
    significant_gaps: int = 0
    longest_gap_hours: float = 0.0
    gap_threshold_hours: float = 24.0
    coverage_by_reading_type: Dict[str, ReadingTypeCoverage] = Field(default_factory=dict)


class GapAnalysisResult(BaseModel):
    """Per-stream coverage results plus their summary."""
    model_config = ConfigDict(frozen=True)

    per_stream: Dict[StreamKey, CoverageResult] = Field(default_factory=dict)
    summary: CoverageSummary = Field(default_factory=CoverageSummary)

    def to_dict(self) -> Dict[str, Any]:
        """Render as plain nested maps and lists for JSON serialization."""
        return {
            "streams": [result.model_dump(mode="json") for result in self.per_stream.values()],
            "summary": self.summary.model_dump(mode="json"),
        }


class MetricBreakdown(BaseModel):
    """Count of affected records and their share of the batch."""
    model_config = ConfigDict(frozen=True)

    count: int = 0
    percentage: float = 0.0


class ReadingTypeQuality(BaseModel):
    """Quality counts for a single reading type."""
    model_config = ConfigDict(frozen=True)

    total_records: int
    missing_values: MetricBreakdown
    anomalous_readings: MetricBreakdown
    outliers_corrected: MetricBreakdown


class SensorTimeCoverage(BaseModel):
    """First and last reading of one sensor in the batch."""
    model_config = ConfigDict(frozen=True)

    first_reading: datetime
    last_reading: datetime
    total_readings: int


class TimeGapAnalysis(BaseModel):
    """Gap figures carried into the quality report."""
    model_config = ConfigDict(frozen=True)

    total_gaps: int = 0
    significant_gaps: int = 0
    longest_gap_hours: float = 0.0
    overall_coverage_percentage: float = 0.0


class QualitySummary(BaseModel):
    """Headline numbers of a quality report."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_records: int = Field(0, alias="totalRecords")
    overall_quality_score: float = Field(0.0, alias="overallQualityScore", ge=0.0, le=100.0)
    missing_values: int = Field(0, alias="missingValues")
    anomalous_readings: int = Field(0, alias="anomalousReadings")
    outliers_corrected: int = Field(0, alias="outliersCorrected")


class QualityDetails(BaseModel):
    """Per-metric breakdowns of a quality report."""
    model_config = ConfigDict(frozen=True)

    missing_values: MetricBreakdown = Field(default_factory=MetricBreakdown)
    anomalous_readings: MetricBreakdown = Field(default_factory=MetricBreakdown)
    outliers_corrected: MetricBreakdown = Field(default_factory=MetricBreakdown)
    by_reading_type: Dict[str, ReadingTypeQuality] = Field(default_factory=dict)
    time_coverage: Dict[str, SensorTimeCoverage] = Field(default_factory=dict)
    time_gap_analysis: Optional[TimeGapAnalysis] = None


class QualityReport(BaseModel):
    """Quality report for one analysis run."""
    model_config = ConfigDict(frozen=True)

    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    summary: QualitySummary = Field(default_factory=QualitySummary)
    details: QualityDetails = Field(default_factory=QualityDetails)
    coverage: Optional[CoverageSummary] = Field(None, description="Gap analysis summary, when supplied")

    def to_dict(self) -> Dict[str, Any]:
        """Render as plain nested maps and lists for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True)


class AnalysisResult(BaseModel):
    """Everything one engine run hands to its storage and reporting collaborators."""
    cleaned: List[SensorReading] = Field(default_factory=list)
    outliers: List[SensorReading] = Field(default_factory=list)
    partitions: Dict[PartitionKey, List[SensorReading]] = Field(default_factory=dict)
    gap_analysis: GapAnalysisResult = Field(default_factory=GapAnalysisResult)
    report: QualityReport = Field(default_factory=QualityReport)
