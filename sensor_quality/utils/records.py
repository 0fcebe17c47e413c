"""
Helpers for turning caller-supplied batches into validated readings.

Batches may mix SensorReading instances and plain mappings; either way the
whole batch is validated up front so that a bad record fails the call before
any result is produced.
"""

from typing import Any, Iterable, List, Mapping, Union

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from sensor_quality.models import SensorReading
from sensor_quality.utils.exceptions import InvalidInputError

ReadingLike = Union[SensorReading, Mapping[str, Any]]


def coerce_reading(record: ReadingLike, position: int = 0) -> SensorReading:
    """
    Validate a single record.

    Args:
        record: SensorReading instance or mapping with reading fields
        position: Index of the record in its batch, used in error messages

    Returns:
        Validated SensorReading (the same object when already a SensorReading)

    Raises:
        InvalidInputError: If the record is missing a field or holds an unparseable value
    """
    if isinstance(record, SensorReading):
        return record
    if not isinstance(record, Mapping):
        raise InvalidInputError(
            f"Record {position} is not a sensor reading: {type(record).__name__}"
        )
    try:
        return SensorReading.model_validate(dict(record))
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidInputError(f"Record {position} is invalid: {problems}") from e


def coerce_readings(records: Iterable[ReadingLike]) -> List[SensorReading]:
    """
    Validate a whole batch, all-or-nothing.

    Args:
        records: Ordered collection of readings or reading-shaped mappings

    Returns:
        List of SensorReading in input order

    Raises:
        InvalidInputError: On the first invalid record
    """
    if records is None:
        return []
    if isinstance(records, pd.DataFrame):
        records = records.to_dict(orient="records")
    return [coerce_reading(record, i) for i, record in enumerate(records)]


def readings_to_frame(readings: List[SensorReading]) -> pd.DataFrame:
    """
    Build a DataFrame of readings with naive UTC timestamps.

    Args:
        readings: Validated readings

    Returns:
        DataFrame with one row per reading, in input order
    """
    columns = list(SensorReading.model_fields.keys())
    if not readings:
        return pd.DataFrame(columns=columns)

    frame = pd.DataFrame([reading.model_dump() for reading in readings], columns=columns)
    frame['timestamp'] = pd.to_datetime(frame['timestamp'], utc=True).dt.tz_localize(None)
    return frame
