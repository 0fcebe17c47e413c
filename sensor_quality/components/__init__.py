"""Engine components for sensor data quality analysis."""

from .base import (
    EngineComponent,
    PreparationComponent,
    OutlierDetectionComponent,
    GapAnalysisComponent,
    PartitionPlanningComponent,
    QualityScoringComponent
)

from .preparation import SensorPreparationComponent, prepare_batch
from .outliers import ZScoreOutlierComponent, detect_outliers
from .gaps import HourlyGapComponent, detect_time_gaps
from .partitioning import DateSensorPartitionComponent, plan_partitions
from .scoring import WeightedQualityComponent, calculate_quality_score, score

__all__ = [
    "EngineComponent",
    "PreparationComponent",
    "OutlierDetectionComponent",
    "GapAnalysisComponent",
    "PartitionPlanningComponent",
    "QualityScoringComponent",
    "SensorPreparationComponent",
    "ZScoreOutlierComponent",
    "HourlyGapComponent",
    "DateSensorPartitionComponent",
    "WeightedQualityComponent",
    "prepare_batch",
    "detect_outliers",
    "detect_time_gaps",
    "plan_partitions",
    "calculate_quality_score",
    "score"
]
