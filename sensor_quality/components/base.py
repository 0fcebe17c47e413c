"""
Abstract base classes for engine components.

These define the interfaces that all engine components implement. Components
are constructed with configuration and hold no state between calls: every
execute() returns a fresh result object.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from sensor_quality.config import EngineConfig
from sensor_quality.models import (
    CoverageSummary,
    GapAnalysisResult,
    OutlierResult,
    PartitionKey,
    QualityReport,
    SensorReading,
)


class EngineComponent(ABC):
    """Base class for all engine components."""

    def __init__(self, config: Optional[EngineConfig] = None):
        """Initialize component with engine configuration."""
        self.config = config or EngineConfig()

    @abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        """Execute the component's main functionality."""
        pass


class PreparationComponent(EngineComponent):
    """Abstract base for batch preparation components."""

    @abstractmethod
    def execute(self, records: Sequence[Any]) -> List[SensorReading]:
        """
        Normalize and annotate a raw batch.

        Args:
            records: Raw readings or reading-shaped mappings

        Returns:
            Validated readings ready for outlier detection
        """
        pass


class OutlierDetectionComponent(EngineComponent):
    """Abstract base for outlier detection components."""

    @abstractmethod
    def execute(self, records: Sequence[Any]) -> OutlierResult:
        """
        Detect and correct statistical outliers.

        Args:
            records: Readings to analyze

        Returns:
            Cleaned readings and detected outliers
        """
        pass


class GapAnalysisComponent(EngineComponent):
    """Abstract base for temporal coverage components."""

    @abstractmethod
    def execute(self, records: Sequence[Any]) -> GapAnalysisResult:
        """
        Analyze hourly coverage per (sensor_id, reading_type) stream.

        Args:
            records: Readings to analyze

        Returns:
            Per-stream coverage and batch summary
        """
        pass


class PartitionPlanningComponent(EngineComponent):
    """Abstract base for storage partition planning components."""

    @abstractmethod
    def execute(self, records: Sequence[Any]) -> Dict[PartitionKey, List[SensorReading]]:
        """
        Group readings into storage partitions.

        Args:
            records: Corrected readings

        Returns:
            Mapping of partition key to its readings
        """
        pass


class QualityScoringComponent(EngineComponent):
    """Abstract base for quality scoring components."""

    @abstractmethod
    def execute(
        self,
        records: Sequence[Any],
        coverage_summary: Optional[CoverageSummary] = None
    ) -> QualityReport:
        """
        Score the quality of a batch.

        Args:
            records: Corrected readings
            coverage_summary: Optional gap analysis summary to embed

        Returns:
            Quality report for the batch
        """
        pass
