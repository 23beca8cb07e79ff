"""
Unit tests for the Polars views over SampleSets.
"""

from datetime import timedelta

import polars as pl
import pytest

from countermon.analysis import (
    covariance_frame,
    reading_names,
    sample_set_to_frame,
    summarize_sample_sets,
)
from countermon.models import Sample, SampleSet
from countermon.validation import IncompleteSetError, InvalidArgumentError


@pytest.fixture
def incomplete_set(start_time):
    samples = [
        Sample.from_mapping(start_time, {"id process": 1, "a": 1}),
        Sample.from_mapping(start_time + timedelta(seconds=1), {"id process": 1, "b": 2}),
    ]
    return SampleSet("svc#1", samples)


@pytest.mark.unit
class TestSampleSetFrame:
    """Test cases for the per-sample frame."""

    def test_columns_and_rows(self, genuine_samples):
        sample_set = SampleSet("app", genuine_samples)
        df = sample_set_to_frame(sample_set)

        assert df.columns == ["timestamp", "handle count", "id process", "working set"]
        assert df.height == 3
        assert df.schema["timestamp"] == pl.Datetime("us")
        assert df["working set"].to_list() == [100.0, 200.0, 300.0]

    def test_missing_readings_are_null(self, incomplete_set):
        df = sample_set_to_frame(incomplete_set)
        assert df["a"].to_list() == [1.0, None]
        assert df["b"].to_list() == [None, 2.0]

    def test_reading_names(self, incomplete_set):
        assert reading_names(incomplete_set) == ["a", "b", "id process"]

    def test_reading_named_like_timestamp_column_rejected(self, sample_factory, start_time):
        samples = sample_factory.run(start_time, [{"timestamp": 1.0}, {"timestamp": 2.0}])
        with pytest.raises(InvalidArgumentError, match="timestamp"):
            sample_set_to_frame(SampleSet("app", samples))

    def test_differently_cased_timestamp_reading_allowed(self, sample_factory, start_time):
        samples = sample_factory.run(start_time, [{"Timestamp": 1.0}, {"Timestamp": 2.0}])
        df = sample_set_to_frame(SampleSet("app", samples))
        assert df["Timestamp"].to_list() == [1.0, 2.0]


@pytest.mark.unit
class TestSummary:
    """Test cases for the SampleSet summary table."""

    def test_one_row_per_set(self, genuine_samples, incomplete_set):
        summary = summarize_sample_sets(
            {"svc": [incomplete_set], "app": [SampleSet("app", genuine_samples)]}
        )

        assert summary["counter_name"].to_list() == ["app", "svc#1"]
        assert summary["samples"].to_list() == [3, 2]
        assert summary["complete"].to_list() == [True, False]
        assert summary["genuine"].to_list() == [True, True]
        assert summary["mean_interval_s"].to_list() == [1.0, 1.0]

    def test_ingenuine_reason_reported(self, start_time):
        samples = [
            Sample.from_mapping(start_time + timedelta(seconds=i), {"a": 1}) for i in range(2)
        ]
        summary = summarize_sample_sets({"svc": [SampleSet("svc", samples)]})
        assert summary["ingenuine_reason"].to_list() == ["missing PID reading"]

    def test_empty(self):
        summary = summarize_sample_sets({})
        assert summary.height == 0
        assert "counter_name" in summary.columns


@pytest.mark.unit
class TestCovarianceFrame:
    """Test cases for the covariance table."""

    def test_square_table(self, genuine_samples):
        df = covariance_frame(SampleSet("app", genuine_samples))
        assert df.columns == ["reading", "handle count", "id process", "working set"]
        assert df["reading"].to_list() == ["handle count", "id process", "working set"]
        assert df["working set"].to_list()[2] == pytest.approx(20000 / 3)

    def test_incomplete_set(self, incomplete_set):
        with pytest.raises(IncompleteSetError):
            covariance_frame(incomplete_set)

    def test_reading_named_like_label_column_rejected(self, sample_factory, start_time):
        samples = sample_factory.run(start_time, [{"reading": 1.0}, {"reading": 3.0}])
        with pytest.raises(InvalidArgumentError, match="reading"):
            covariance_frame(SampleSet("app", samples))
