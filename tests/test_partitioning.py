"""
Tests for the partition planning component.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from sensor_quality.components.partitioning import DateSensorPartitionComponent, plan_partitions
from sensor_quality.models import PartitionKey
from sensor_quality.utils import InvalidInputError


class TestPlanPartitions:
    """Test suite for plan_partitions."""

    def test_groups_by_date_and_sensor(self, hourly_stream):
        """Readings spanning midnight split into one partition per UTC date."""
        readings = hourly_stream(30) + hourly_stream(2, sensor_id="sensor_2")

        partitions = plan_partitions(readings)

        assert list(partitions) == [
            PartitionKey("2023-06-01", "sensor_1"),
            PartitionKey("2023-06-02", "sensor_1"),
            PartitionKey("2023-06-01", "sensor_2"),
        ]
        assert len(partitions[PartitionKey("2023-06-01", "sensor_1")]) == 24
        assert len(partitions[PartitionKey("2023-06-02", "sensor_1")]) == 6

    def test_every_record_lands_exactly_once(self, hourly_stream):
        """Partition sizes add up to the batch size."""
        readings = hourly_stream(50) + hourly_stream(50, reading_type="humidity")

        partitions = plan_partitions(readings)

        assert sum(len(members) for members in partitions.values()) == len(readings)

    def test_members_keep_input_order(self, make_reading):
        """Members of a partition follow input order."""
        base = datetime(2023, 6, 1, 12, tzinfo=timezone.utc)
        readings = [
            make_reading(value=3.0, timestamp=base + timedelta(hours=3)),
            make_reading(value=1.0, timestamp=base + timedelta(hours=1)),
            make_reading(value=2.0, timestamp=base + timedelta(hours=2)),
        ]

        members = plan_partitions(readings)[PartitionKey("2023-06-01", "sensor_1")]

        assert [m.value for m in members] == [3.0, 1.0, 2.0]

    def test_date_is_taken_in_utc(self):
        """A local evening reading belongs to the next UTC day."""
        records = [
            {"sensor_id": "s1", "timestamp": "2023-06-01T23:30:00-02:00", "reading_type": "humidity", "value": 50.0},
        ]

        partitions = plan_partitions(records)

        assert list(partitions) == [PartitionKey("2023-06-02", "s1")]

    def test_partition_path(self):
        """Partition keys render as hive-style paths."""
        assert PartitionKey("2023-06-01", "s1").path == "date=2023-06-01/sensor_id=s1"

    def test_empty_input(self):
        """Empty batches yield no partitions."""
        assert plan_partitions([]) == {}

    def test_unparseable_timestamp_fails(self, hourly_stream):
        """An invalid record fails the whole call."""
        bad = {"sensor_id": "s1", "timestamp": "yesterday-ish", "reading_type": "humidity", "value": 50.0}

        with pytest.raises(InvalidInputError):
            plan_partitions(hourly_stream(3) + [bad])

    def test_logs_partition_count(self, hourly_stream):
        """The number of partitions is logged."""
        component = DateSensorPartitionComponent()

        with patch.object(component.logger, 'info') as mock_info:
            component.execute(hourly_stream(30))

        messages = [call.args[0] for call in mock_info.call_args_list]
        assert "Created 2 partitions" in messages


class TestDateSensorPartitionComponent:
    """Test suite for DateSensorPartitionComponent."""

    def test_execute(self, sample_config, sample_readings):
        """Component plans partitions for a raw batch."""
        component = DateSensorPartitionComponent(sample_config)

        partitions = component.execute(sample_readings)

        assert set(partitions) == {
            PartitionKey("2023-06-01", "sensor_1"),
            PartitionKey("2023-06-01", "sensor_2"),
            PartitionKey("2023-06-01", "sensor_3"),
        }

    def test_empty_batch_logs_warning(self):
        """Test warning on empty batch."""
        component = DateSensorPartitionComponent()

        with patch.object(component.logger, 'warning') as mock_warning:
            component.execute([])

        mock_warning.assert_called_with("No data to partition")
