"""
Tests for the outlier detection component.

Tests cover per-reading-type z-scores, median substitution, ordering,
degenerate groups and atomic failure on invalid input.
"""

import math
from unittest.mock import patch

import pytest

from sensor_quality.components.outliers import ZScoreOutlierComponent, detect_outliers
from sensor_quality.config import EngineConfig
from sensor_quality.models import OutlierResult
from sensor_quality.utils import InvalidInputError


class TestDetectOutliers:
    """Test suite for detect_outliers."""

    def test_spike_replaced_by_group_median(self, outlier_batch):
        """A single spike is corrected to the median of the original values."""
        result = detect_outliers(outlier_batch)

        assert result.outlier_count == 1
        corrected = result.cleaned[5]
        assert corrected.value == 20.0
        assert corrected.outlier_corrected is True
        assert corrected.z_score == pytest.approx(math.sqrt(11))

    def test_outlier_entry_keeps_original_value(self, outlier_batch):
        """The outliers list carries the original value and its z-score."""
        result = detect_outliers(outlier_batch)

        outlier = result.outliers[0]
        assert outlier.value == 50.0
        assert outlier.z_score == pytest.approx(math.sqrt(11))
        assert outlier.timestamp == outlier_batch[5].timestamp

    def test_non_outliers_are_unchanged(self, outlier_batch):
        """Non-outliers keep their value and carry no z-score."""
        result = detect_outliers(outlier_batch)

        for index, reading in enumerate(result.cleaned):
            if index == 5:
                continue
            assert reading.value == 20.0
            assert reading.outlier_corrected is False
            assert reading.z_score is None

    def test_cleaned_preserves_input_order_and_length(self, outlier_batch):
        """Cleaned output has one entry per input, in input order."""
        result = detect_outliers(outlier_batch)

        assert len(result.cleaned) == len(outlier_batch)
        assert [r.timestamp for r in result.cleaned] == [r.timestamp for r in outlier_batch]

    def test_inputs_are_not_mutated(self, outlier_batch):
        """Detection works on copies."""
        detect_outliers(outlier_batch)

        assert outlier_batch[5].value == 50.0
        assert outlier_batch[5].outlier_corrected is False
        assert outlier_batch[5].z_score is None

    def test_threshold_is_strict(self, make_reading):
        """With nine values the largest attainable z is sqrt(8); only a lower threshold flags it."""
        values = [20, 21, 22, 23, 20, 21, 22, 23, 1000]
        readings = [make_reading(value=v) for v in values]

        assert detect_outliers(readings, threshold=3.0).outlier_count == 0

        result = detect_outliers(readings, threshold=2.0)
        assert result.outlier_count == 1
        assert result.outliers[0].value == 1000
        assert result.cleaned[-1].value == 22.0

    def test_default_threshold_is_three(self, outlier_batch):
        """The default threshold matches an explicit 3.0."""
        default = detect_outliers(outlier_batch)
        explicit = detect_outliers(outlier_batch, threshold=3.0)

        assert default.outlier_count == explicit.outlier_count == 1

    def test_groups_are_scored_separately(self, outlier_batch, make_reading):
        """Values are compared only within their reading type."""
        humidity = [make_reading(value=v, reading_type="humidity") for v in (60.0, 61.0, 59.0, 60.5)]
        result = detect_outliers(outlier_batch + humidity)

        assert result.outlier_count == 1
        assert result.outliers[0].reading_type == "temperature"
        assert [r.value for r in result.cleaned[-4:]] == [60.0, 61.0, 59.0, 60.5]

    def test_reading_type_grouping_is_case_insensitive(self, make_reading):
        """Reading types are normalized before grouping."""
        readings = [make_reading(value=20.0, reading_type="Temperature") for _ in range(11)]
        readings.append(make_reading(value=50.0, reading_type=" TEMPERATURE "))

        result = detect_outliers(readings)

        assert result.outlier_count == 1
        assert {r.reading_type for r in result.cleaned} == {"temperature"}

    def test_outliers_follow_group_then_input_order(self, make_reading):
        """Outlier entries are ordered by group first appearance, then input order."""
        humidity = [make_reading(value=50.0, reading_type="humidity") for _ in range(11)]
        humidity.append(make_reading(value=99.0, reading_type="humidity"))
        temperature = [make_reading(value=20.0) for _ in range(11)]
        temperature.append(make_reading(value=50.0))

        batch = [humidity[0]] + temperature + humidity[1:]
        result = detect_outliers(batch)

        assert [o.reading_type for o in result.outliers] == ["humidity", "temperature"]

    def test_single_member_group_has_no_outliers(self, make_reading):
        """A group of one cannot contain outliers, even without a value."""
        result = detect_outliers([make_reading(value=None)])

        assert result.outlier_count == 0
        assert result.cleaned[0].value is None

    def test_zero_variance_group_has_no_outliers(self, make_reading):
        """Identical values have no spread and are never outliers."""
        readings = [make_reading(value=0.1) for _ in range(10)]

        result = detect_outliers(readings, threshold=0.0)

        assert result.outlier_count == 0
        assert all(r.value == 0.1 for r in result.cleaned)

    def test_zero_threshold_flags_every_nonzero_z(self, make_reading):
        """A zero threshold flags every member that deviates from the mean."""
        readings = [make_reading(value=v) for v in (10.0, 20.0, 30.0)]

        result = detect_outliers(readings, threshold=0.0)

        assert result.outlier_count == 2
        assert result.cleaned[1].outlier_corrected is False
        assert [r.value for r in result.cleaned] == [20.0, 20.0, 20.0]

    def test_empty_input(self):
        """Empty batches yield empty results."""
        result = detect_outliers([])

        assert isinstance(result, OutlierResult)
        assert result.cleaned == []
        assert result.outliers == []

    def test_missing_value_in_scored_group_fails(self, make_reading):
        """A missing value in a group of more than one member is rejected."""
        readings = [make_reading(value=20.0), make_reading(value=None), make_reading(value=21.0)]

        with pytest.raises(InvalidInputError, match="temperature"):
            detect_outliers(readings)

    def test_failure_is_atomic_across_groups(self, outlier_batch, make_reading):
        """A bad group fails the call even after a valid group."""
        bad = [make_reading(value=None, reading_type="humidity"), make_reading(value=60.0, reading_type="humidity")]

        with pytest.raises(InvalidInputError):
            detect_outliers(outlier_batch + bad)

    def test_invalid_record_fails(self, outlier_batch):
        """Records missing required fields are rejected."""
        with pytest.raises(InvalidInputError, match="Record 12"):
            detect_outliers(outlier_batch + [{"sensor_id": "sensor_1", "value": 1.0}])

    def test_accepts_mappings(self, sample_readings):
        """Plain mappings are validated into readings."""
        result = detect_outliers(sample_readings)

        assert len(result.cleaned) == 5
        assert result.cleaned[0].sensor_id == "sensor_1"

    @pytest.mark.parametrize("bad_value", [math.inf, -math.inf])
    def test_non_finite_value_fails(self, bad_value):
        """Infinite values are rejected instead of silently disabling the group."""
        records = [
            {"sensor_id": "sensor_1", "timestamp": f"2023-06-01T0{h}:00:00Z", "reading_type": "temperature",
             "value": value}
            for h, value in enumerate([1.0, 2.0, bad_value])
        ]

        with pytest.raises(InvalidInputError, match="Record 2 is invalid: value"):
            detect_outliers(records)

    def test_five_value_example_is_not_flagged_at_two(self, make_reading):
        """Five values cap the population z-score at 2, so 1000 stays just below a threshold of 2."""
        readings = [make_reading(value=v) for v in (20, 21, 22, 23, 1000)]

        result = detect_outliers(readings, threshold=2.0)

        assert result.outlier_count == 0
        assert result.cleaned[-1].value == 1000

    def test_outlier_count_never_drops_as_threshold_lowers(self, make_reading):
        """Lowering the threshold can only add outliers."""
        values = [20, 21, 22, 23, 20, 21, 22, 23, 20, 21, 1000]
        readings = [make_reading(value=v) for v in values]

        counts = [detect_outliers(readings, threshold=t).outlier_count for t in (3, 2, 1, 0.5, 0, -1)]

        assert counts == sorted(counts)
        assert counts[-1] == len(values)

    @pytest.mark.parametrize("higher,lower", [(3, 2), (2, 1), (1, 0.5), (0.5, 0), (0, -1)])
    def test_flagged_set_grows_as_threshold_lowers(self, outlier_batch, make_reading, higher, lower):
        """Every reading flagged at a threshold is still flagged at a lower one."""
        readings = outlier_batch + [make_reading(value=v, reading_type="humidity") for v in (40, 55, 60, 61, 90)]

        def flagged(threshold):
            return {(o.reading_type, o.timestamp, o.value) for o in detect_outliers(readings, threshold).outliers}

        assert flagged(higher) <= flagged(lower)


class TestZScoreOutlierComponent:
    """Test suite for ZScoreOutlierComponent."""

    def test_init(self, sample_config):
        """Test component initialization."""
        component = ZScoreOutlierComponent(sample_config)

        assert component.config == sample_config
        assert component.logger is not None

    def test_uses_configured_threshold(self, make_reading):
        """The configured threshold is applied."""
        values = [20, 21, 22, 23, 20, 21, 22, 23, 1000]
        readings = [make_reading(value=v) for v in values]
        component = ZScoreOutlierComponent(EngineConfig.from_options({"outlier_z_threshold": 2.0}))

        result = component.execute(readings)

        assert result.outlier_count == 1

    def test_repeated_runs_are_independent(self, outlier_batch):
        """Each run returns a fresh result."""
        component = ZScoreOutlierComponent()

        first = component.execute(outlier_batch)
        second = component.execute(outlier_batch)

        assert first is not second
        assert first.outlier_count == second.outlier_count == 1

    def test_empty_batch_logs_warning(self):
        """Test warning on empty batch."""
        component = ZScoreOutlierComponent()

        with patch.object(component.logger, 'warning') as mock_warning:
            result = component.execute([])

        assert result.cleaned == []
        mock_warning.assert_called_with("No data for outlier detection")

    def test_summary_logging(self, outlier_batch):
        """Test that the summary block is logged."""
        component = ZScoreOutlierComponent()

        with patch.object(component.logger, 'info') as mock_info:
            component.execute(outlier_batch)

        messages = [call.args[0] for call in mock_info.call_args_list]
        assert "=== Outlier Detection Summary ===" in messages
        assert "Outliers Corrected: 1" in messages

    def test_invalid_input_propagates(self, make_reading):
        """InvalidInputError is re-raised unchanged."""
        component = ZScoreOutlierComponent()
        readings = [make_reading(value=None), make_reading(value=1.0)]

        with pytest.raises(InvalidInputError):
            component.execute(readings)
