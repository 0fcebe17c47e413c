"""Typed grouping keys used by the engine's group-by steps."""

from typing import NamedTuple


class StreamKey(NamedTuple):
    """Identifies one (sensor, reading type) time series."""
    sensor_id: str
    reading_type: str


class PartitionKey(NamedTuple):
    """Storage partition of corrected records: UTC calendar date plus sensor."""
    date: str
    sensor_id: str

    @property
    def path(self) -> str:
        """Hive-style relative directory, e.g. ``date=2023-06-01/sensor_id=s1``."""
        return f"date={self.date}/sensor_id={self.sensor_id}"
