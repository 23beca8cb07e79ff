"""
Unit tests for saving and loading sample directories.
"""

from datetime import datetime, timedelta

import pytest

from countermon.models import Sample
from countermon.parsing import CSVCodec, NativeDumpParser
from countermon.storage import create_sample_directory, load_sample_sets, save_samples
from countermon.validation import InvalidArgumentError


@pytest.fixture
def samples_by_counter(native_dump_text):
    """Samples for "app" and "app#1" parsed from the native dump fixture."""
    return NativeDumpParser().parse_by_counter(native_dump_text.splitlines())


def _write_samples(path, samples):
    path.write_text(CSVCodec().encode_many(samples), encoding="utf-8")


@pytest.mark.unit
class TestSaveSamples:
    """Test cases for writing sample files."""

    def test_one_file_per_counter(self, temp_dir, samples_by_counter):
        written = save_samples(temp_dir, samples_by_counter)
        assert sorted(p.name for p in written) == ["app#1.csv", "app.csv"]
        decoded = CSVCodec().decode((temp_dir / "app.csv").read_text(encoding="utf-8"))
        assert decoded == samples_by_counter["app"]

    def test_existing_files_are_not_overwritten(self, temp_dir, samples_by_counter):
        (temp_dir / "app.csv").write_text("keep me", encoding="utf-8")
        written = save_samples(temp_dir, samples_by_counter)
        assert [p.name for p in written] == ["app#1.csv"]
        assert (temp_dir / "app.csv").read_text(encoding="utf-8") == "keep me"

    def test_directory_must_exist(self, temp_dir, samples_by_counter):
        with pytest.raises(InvalidArgumentError):
            save_samples(temp_dir / "missing", samples_by_counter)


@pytest.mark.unit
class TestCreateSampleDirectory:
    """Test cases for run directory creation."""

    def test_named_after_start_time(self, temp_dir):
        directory = create_sample_directory(temp_dir, datetime(2024, 3, 5, 7, 8, 9))
        assert directory == temp_dir / "2024-03-05_07-08-09"
        assert directory.is_dir()

    def test_existing_empty_directory_is_reused(self, temp_dir):
        when = datetime(2024, 3, 5, 7, 8, 9)
        (temp_dir / "2024-03-05_07-08-09").mkdir()
        assert create_sample_directory(temp_dir, when).is_dir()

    def test_existing_non_empty_directory_rejected(self, temp_dir):
        when = datetime(2024, 3, 5, 7, 8, 9)
        existing = temp_dir / "2024-03-05_07-08-09"
        existing.mkdir()
        (existing / "app.csv").write_text("x", encoding="utf-8")
        with pytest.raises(FileExistsError):
            create_sample_directory(temp_dir, when)

    def test_parent_must_be_directory(self, temp_dir):
        with pytest.raises(InvalidArgumentError):
            create_sample_directory(temp_dir / "missing")


@pytest.mark.unit
class TestLoadSampleSets:
    """Test cases for loading sample directories."""

    def test_groups_by_process_name(self, temp_dir, samples_by_counter):
        save_samples(temp_dir, samples_by_counter)
        loaded = load_sample_sets(temp_dir)
        assert list(loaded) == ["app"]
        assert sorted(s.counter_name for s in loaded["app"]) == ["app", "app#1"]
        assert all(s.meta.is_genuine for s in loaded["app"])

    def test_non_csv_files_ignored(self, temp_dir, samples_by_counter):
        save_samples(temp_dir, samples_by_counter)
        (temp_dir / "notes.txt").write_text("not samples", encoding="utf-8")
        loaded = load_sample_sets(temp_dir)
        assert len(loaded["app"]) == 2

    def test_unparseable_file_skipped(self, temp_dir, samples_by_counter, caplog):
        save_samples(temp_dir, samples_by_counter)
        (temp_dir / "broken.csv").write_text("garbage\n", encoding="utf-8")
        loaded = load_sample_sets(temp_dir)
        assert "broken" not in loaded
        assert len(loaded["app"]) == 2
        assert "broken.csv" in caplog.text

    def test_single_sample_file_skipped(self, temp_dir, samples_by_counter):
        _write_samples(temp_dir / "lonely.csv", samples_by_counter["app"][:1])
        assert load_sample_sets(temp_dir) == {}

    def test_strict_loading_skips_ingenuine_sets(self, temp_dir, start_time):
        samples = [
            Sample.from_mapping(start_time, {"id process": 1, "a": 1}),
            Sample.from_mapping(start_time + timedelta(seconds=1), {"id process": 2, "a": 1}),
        ]
        _write_samples(temp_dir / "svc.csv", samples)

        assert load_sample_sets(temp_dir) == {}
        lenient = load_sample_sets(temp_dir, assert_genuine=False)
        assert lenient["svc"][0].meta.genuine == "contains multiple PID values"

    def test_strict_loading_skips_incomplete_sets(self, temp_dir, start_time):
        samples = [
            Sample.from_mapping(start_time, {"id process": 1, "a": 1}),
            Sample.from_mapping(start_time + timedelta(seconds=1), {"id process": 1, "b": 1}),
        ]
        _write_samples(temp_dir / "svc.csv", samples)

        assert load_sample_sets(temp_dir) == {}
        assert not load_sample_sets(temp_dir, assert_complete=False)["svc"][0].meta.complete

    def test_nested_directories_merged(self, temp_dir, samples_by_counter):
        first = temp_dir / "2024-01-01_12-00-00"
        second = temp_dir / "2024-01-02_12-00-00"
        first.mkdir()
        second.mkdir()
        save_samples(first, samples_by_counter)
        save_samples(second, {"app": samples_by_counter["app"]})

        loaded = load_sample_sets(temp_dir)
        assert len(loaded["app"]) == 3

    def test_custom_pid_reading(self, temp_dir, start_time):
        samples = [
            Sample.from_mapping(start_time + timedelta(seconds=i), {"pid": 9, "a": i})
            for i in range(3)
        ]
        _write_samples(temp_dir / "svc.csv", samples)
        assert load_sample_sets(temp_dir) == {}
        assert len(load_sample_sets(temp_dir, pid_reading="pid")["svc"]) == 1

    def test_not_a_directory(self, temp_dir):
        file_path = temp_dir / "file.csv"
        file_path.write_text("", encoding="utf-8")
        with pytest.raises(InvalidArgumentError):
            load_sample_sets(file_path)
