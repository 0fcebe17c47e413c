"""
Sensor Data Quality & Continuity Analysis Engine

Decides, for each time-stamped sensor reading, whether it is trustworthy and,
for each (sensor, reading type) stream, whether its hourly coverage is adequate.
Produces corrected records, their storage partition map and a quality report.
"""

from sensor_quality.config import EngineConfig
from sensor_quality.components import detect_outliers, detect_time_gaps, plan_partitions, score
from sensor_quality.main import QualityAnalysisPipeline, analyze_batch
from sensor_quality.models import SensorReading
from sensor_quality.utils import ConfigurationError, InvalidInputError, QualityEngineError

__version__ = "1.0.0"

__all__ = [
    "EngineConfig",
    "SensorReading",
    "QualityAnalysisPipeline",
    "analyze_batch",
    "detect_outliers",
    "detect_time_gaps",
    "plan_partitions",
    "score",
    "QualityEngineError",
    "InvalidInputError",
    "ConfigurationError",
]
