"""
Partition planning component for the sensor data quality engine.

Groups corrected readings by (UTC date, sensor_id) so the storage
collaborator can write one hive-style partition per key.
"""

from typing import Any, Dict, List, Optional, Sequence

from sensor_quality.components.base import PartitionPlanningComponent
from sensor_quality.config import EngineConfig
from sensor_quality.models import PartitionKey, SensorReading
from sensor_quality.utils import InvalidInputError, QualityEngineError, coerce_readings, get_logger

logger = get_logger(__name__)


def plan_partitions(records: Sequence[Any]) -> Dict[PartitionKey, List[SensorReading]]:
    """
    Group readings by (date, sensor_id).

    Args:
        records: Readings or reading-shaped mappings

    Returns:
        Partitions in order of first appearance, each holding its readings in input order

    Raises:
        InvalidInputError: If any record is invalid, e.g. has an unparseable timestamp
    """
    readings = coerce_readings(records)

    partitions: Dict[PartitionKey, List[SensorReading]] = {}
    for reading in readings:
        partitions.setdefault(reading.partition_key, []).append(reading)

    logger.info(f"Created {len(partitions)} partitions")
    return partitions


class DateSensorPartitionComponent(PartitionPlanningComponent):
    """Concrete partition planner keyed by date and sensor."""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize partition planning component.

        Args:
            config: Engine configuration
        """
        super().__init__(config)
        self.logger = get_logger(__name__)

    def execute(self, records: Sequence[Any]) -> Dict[PartitionKey, List[SensorReading]]:
        """
        Execute partition planning.

        Args:
            records: Corrected readings

        Returns:
            Mapping of partition key to its readings

        Raises:
            InvalidInputError: If the batch holds an invalid record
            QualityEngineError: If planning fails unexpectedly
        """
        try:
            self.logger.info("Starting partition planning")
            partitions = plan_partitions(records)

            if not partitions:
                self.logger.warning("No data to partition")
                return partitions

            dates = sorted({key.date for key in partitions})
            sensors = {key.sensor_id for key in partitions}
            self.logger.info(
                f"Planned {len(partitions)} partitions across {len(dates)} dates "
                f"({dates[0]} to {dates[-1]}) and {len(sensors)} sensors"
            )
            return partitions

        except InvalidInputError as e:
            self.logger.error(f"Partition planning rejected batch: {str(e)}")
            raise
        except Exception as e:
            self.logger.error(f"Partition planning failed: {str(e)}")
            raise QualityEngineError(f"Partition planning failed: {str(e)}") from e
