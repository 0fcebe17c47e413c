"""
Pytest configuration and shared fixtures for testing.

Provides common test fixtures and setup for all test modules.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from sensor_quality.config import EngineConfig
from sensor_quality.models import SensorReading

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

BASE_TIME = datetime(2023, 6, 1, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def default_config_path():
    """Path of the shipped default configuration."""
    return CONFIG_DIR / "default.yaml"


@pytest.fixture
def sample_config(default_config_path):
    """Engine configuration loaded from the shipped YAML file."""
    return EngineConfig.from_yaml(default_config_path)


@pytest.fixture
def make_reading():
    """Factory for readings with sensible defaults."""
    def _make(
        value=20.0,
        sensor_id="sensor_1",
        reading_type="temperature",
        timestamp=BASE_TIME,
        **extra
    ):
        return SensorReading(
            sensor_id=sensor_id,
            timestamp=timestamp,
            reading_type=reading_type,
            value=value,
            battery_level=extra.pop("battery_level", 90.0),
            **extra
        )
    return _make


@pytest.fixture
def hourly_stream():
    """
    Build an hourly stream of readings for one sensor.

    Hours listed in ``skip`` produce no reading; hours are offsets from ``start``.
    """
    def _build(
        hours,
        sensor_id="sensor_1",
        reading_type="temperature",
        start=BASE_TIME,
        skip=(),
        value=20.0,
        minute=0
    ):
        return [
            SensorReading(
                sensor_id=sensor_id,
                timestamp=start + timedelta(hours=h, minutes=minute),
                reading_type=reading_type,
                value=value,
                battery_level=90.0,
            )
            for h in range(hours)
            if h not in skip
        ]
    return _build


@pytest.fixture
def sample_readings():
    """Mixed raw batch: mappings for two sensors and two reading types."""
    return [
        {"sensor_id": "sensor_1", "timestamp": "2023-06-01T10:00:00Z", "reading_type": "temperature",
         "value": 25.5, "battery_level": 95.5},
        {"sensor_id": "sensor_1", "timestamp": "2023-06-01T10:30:00Z", "reading_type": "humidity",
         "value": 65.2, "battery_level": 95.0},
        {"sensor_id": "sensor_2", "timestamp": "2023-06-01T10:15:00Z", "reading_type": "temperature",
         "value": 24.8, "battery_level": 87.3},
        {"sensor_id": "sensor_2", "timestamp": "2023-06-01T10:45:00Z", "reading_type": "humidity",
         "value": 68.1, "battery_level": 86.8},
        {"sensor_id": "sensor_3", "timestamp": "2023-06-01T11:00:00Z", "reading_type": "temperature",
         "value": 26.2, "battery_level": 92.1},
    ]


@pytest.fixture
def outlier_batch(hourly_stream):
    """Twelve hourly temperature readings at 20.0 with a single 50.0 spike."""
    readings = hourly_stream(12)
    readings[5] = readings[5].model_copy(update={"value": 50.0})
    return readings
