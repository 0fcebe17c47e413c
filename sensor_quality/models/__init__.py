"""Data models for the sensor data quality engine."""

from .keys import StreamKey, PartitionKey
from .data import (
    SensorReading,
    OutlierResult,
    GapPeriod,
    TimeRange,
    CoverageResult,
    ReadingTypeCoverage,
    CoverageSummary,
    GapAnalysisResult,
    MetricBreakdown,
    ReadingTypeQuality,
    SensorTimeCoverage,
    TimeGapAnalysis,
    QualitySummary,
    QualityDetails,
    QualityReport,
    AnalysisResult,
)

__all__ = [
    "StreamKey",
    "PartitionKey",
    "SensorReading",
    "OutlierResult",
    "GapPeriod",
    "TimeRange",
    "CoverageResult",
    "ReadingTypeCoverage",
    "CoverageSummary",
    "GapAnalysisResult",
    "MetricBreakdown",
    "ReadingTypeQuality",
    "SensorTimeCoverage",
    "TimeGapAnalysis",
    "QualitySummary",
    "QualityDetails",
    "QualityReport",
    "AnalysisResult",
]
