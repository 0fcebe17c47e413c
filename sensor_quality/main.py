"""
Main pipeline orchestrator for sensor data quality analysis.

This module coordinates the execution of all engine components:
preparation -> outlier detection -> {gap analysis, partition planning} -> quality scoring
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, List, Optional, Sequence

from sensor_quality.config import EngineConfig
from sensor_quality.models import AnalysisResult
from sensor_quality.components import (
    SensorPreparationComponent,
    ZScoreOutlierComponent,
    HourlyGapComponent,
    DateSensorPartitionComponent,
    WeightedQualityComponent
)
from sensor_quality.utils import ConfigurationError, QualityEngineError, configure_logging, get_logger

DEFAULT_CONFIG_PATH = Path("config/default.yaml")


class QualityAnalysisPipeline:
    """Main pipeline orchestrator that coordinates all components."""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize pipeline with configuration.

        Args:
            config: Engine configuration; defaults apply when omitted
        """
        self.config = config or EngineConfig()
        self.logger = get_logger(__name__)

        # Components are injected through set_components
        self.preparation: Optional[SensorPreparationComponent] = None
        self.outliers: Optional[ZScoreOutlierComponent] = None
        self.gaps: Optional[HourlyGapComponent] = None
        self.partitioning: Optional[DateSensorPartitionComponent] = None
        self.scoring: Optional[WeightedQualityComponent] = None

    @classmethod
    def with_default_components(cls, config: Optional[EngineConfig] = None) -> "QualityAnalysisPipeline":
        """Build a pipeline wired with the standard components."""
        pipeline = cls(config)
        pipeline.set_components(
            SensorPreparationComponent(pipeline.config),
            ZScoreOutlierComponent(pipeline.config),
            HourlyGapComponent(pipeline.config),
            DateSensorPartitionComponent(pipeline.config),
            WeightedQualityComponent(pipeline.config)
        )
        return pipeline

    def set_components(
        self,
        preparation: SensorPreparationComponent,
        outliers: ZScoreOutlierComponent,
        gaps: HourlyGapComponent,
        partitioning: DateSensorPartitionComponent,
        scoring: WeightedQualityComponent
    ):
        """
        Set pipeline components (dependency injection).

        Args:
            preparation: Batch preparation component
            outliers: Outlier detection component
            gaps: Gap analysis component
            partitioning: Partition planning component
            scoring: Quality scoring component
        """
        self.preparation = preparation
        self.outliers = outliers
        self.gaps = gaps
        self.partitioning = partitioning
        self.scoring = scoring

    def execute(self, records: Sequence[Any]) -> AnalysisResult:
        """
        Execute the complete analysis on one batch.

        Args:
            records: Readings or reading-shaped mappings

        Returns:
            Corrected records, outliers, partition map, gap analysis and quality report

        Raises:
            ConfigurationError: If a component has not been set
            InvalidInputError: If the batch holds an invalid record
            QualityEngineError: If a component fails
        """
        if not all([self.preparation, self.outliers, self.gaps, self.partitioning, self.scoring]):
            raise ConfigurationError("All pipeline components must be set before execution")

        start_time = time.time()
        self.logger.info(f"Starting pipeline: {self.config.engine.name}")

        # Step 1: Batch preparation
        if self.config.preparation.enabled:
            self.logger.info("Step 1: Batch Preparation")
            readings = self.preparation.execute(records)
        else:
            self.logger.info("Step 1: Batch Preparation (disabled)")
            readings = records

        # Step 2: Outlier detection
        self.logger.info("Step 2: Outlier Detection")
        outlier_result = self.outliers.execute(readings)
        cleaned = outlier_result.cleaned

        # Step 3: Gap analysis on the corrected batch
        self.logger.info("Step 3: Gap Analysis")
        gap_analysis = self.gaps.execute(cleaned)

        # Step 4: Partition planning
        self.logger.info("Step 4: Partition Planning")
        partitions = self.partitioning.execute(cleaned)

        # Step 5: Quality scoring
        self.logger.info("Step 5: Quality Scoring")
        report = self.scoring.execute(cleaned, gap_analysis.summary)

        execution_time = time.time() - start_time
        self.logger.info(
            f"Pipeline completed in {execution_time:.2f} seconds: {len(cleaned)} records, "
            f"{outlier_result.outlier_count} outliers, {len(partitions)} partitions, "
            f"quality score {report.summary.overall_quality_score:.2f}"
        )

        return AnalysisResult(
            cleaned=cleaned,
            outliers=outlier_result.outliers,
            partitions=partitions,
            gap_analysis=gap_analysis,
            report=report,
        )


def analyze_batch(records: Sequence[Any], config: Optional[EngineConfig] = None) -> AnalysisResult:
    """
    Run the full analysis on one batch with the standard components.

    Args:
        records: Readings or reading-shaped mappings
        config: Engine configuration; defaults apply when omitted

    Returns:
        Analysis result for the batch
    """
    return QualityAnalysisPipeline.with_default_components(config).execute(records)


def _load_records(input_path: Path) -> List[Any]:
    """Read a JSON array of reading objects."""
    try:
        with open(input_path, 'r') as f:
            records = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise QualityEngineError(f"Cannot read batch from {input_path}: {e}") from e

    if not isinstance(records, list):
        raise QualityEngineError(f"Batch file must hold a JSON array: {input_path}")
    return records


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point: analyze a JSON batch and print its quality report."""
    parser = argparse.ArgumentParser(description="Analyze the quality of a sensor reading batch")
    parser.add_argument("input", type=Path, help="JSON array of sensor readings")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    args = parser.parse_args(argv)

    try:
        config_path = args.config or DEFAULT_CONFIG_PATH
        config = EngineConfig.from_yaml(config_path) if config_path.exists() or args.config else EngineConfig()
        configure_logging(config.logging)

        result = analyze_batch(_load_records(args.input), config)
    except QualityEngineError as e:
        print(f"Analysis failed: {e}", file=sys.stderr)
        return 1

    output = {
        "report": result.report.to_dict(),
        "gap_analysis": result.gap_analysis.to_dict(),
        "partitions": {key.path: len(readings) for key, readings in result.partitions.items()},
    }
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
