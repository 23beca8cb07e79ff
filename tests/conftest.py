"""
Pytest configuration and shared fixtures for the countermon test suite.

This module provides common fixtures, sample builders and configuration
for all test modules in the countermon project.
"""

import shutil
import sys
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from unittest.mock import Mock

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def start_time():
    """A fixed, whole-second timestamp to build samples from."""
    return datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def sample_config_data():
    """Sample configuration data for testing."""
    return {
        "analysis": {
            "pid_reading": "id process",
            "outlier_tolerance": 3.0,
            "assert_genuine": True,
            "assert_complete": True,
        },
        "collection": {
            "sample_interval": 2,
            "num_samples": 10,
            "data_dir": "data",
            "ignore_trailing_incomplete": True,
        },
    }


# ============================================================================
# Sample Fixtures
# ============================================================================


class SampleFactory:
    """Builders for Samples and regular runs of Samples."""

    @staticmethod
    def sample(timestamp: datetime, **readings: float):
        """Create a Sample; underscores in keyword names become spaces."""
        from countermon.models import Sample

        return Sample.from_mapping(
            timestamp, {name.replace("_", " "): value for name, value in readings.items()}
        )

    @staticmethod
    def run(
        start: datetime,
        values: Sequence[Dict[str, float]],
        interval_seconds: float = 1.0,
        pid: Optional[float] = 1234,
    ) -> List:
        """
        Create samples spaced `interval_seconds` apart, one per entry of
        `values`. Every sample also gets the PID reading unless pid is None.
        """
        from countermon.models import Sample

        samples = []
        for i, readings in enumerate(values):
            readings = dict(readings)
            if pid is not None:
                readings.setdefault("id process", pid)
            samples.append(
                Sample.from_mapping(start + timedelta(seconds=interval_seconds * i), readings)
            )
        return samples


@pytest.fixture
def sample_factory():
    """Provide sample builder functions."""
    return SampleFactory


@pytest.fixture
def genuine_samples(start_time):
    """Three live samples of one process taken one second apart."""
    return SampleFactory.run(
        start_time,
        [
            {"working set": 100.0, "handle count": 10.0},
            {"working set": 200.0, "handle count": 12.0},
            {"working set": 300.0, "handle count": 14.0},
        ],
    )


@pytest.fixture
def native_dump_text():
    """A two-record native dump covering two processes."""
    return "\n".join(
        [
            "",
            "Timestamp : 2024/01/01 12:00:00",
            "Readings  : \\\\host\\process(app)\\id process :",
            "            1234",
            "",
            "            \\\\host\\process(app)\\working set :",
            "            2048",
            "",
            "            \\\\host\\process(app#1)\\id process :",
            "            5678",
            "",
            "            \\\\host\\process(app#1)\\working set :",
            "            4096.5",
            "",
            "End       :",
            "",
            "Timestamp : 2024/01/01 12:00:01",
            "Readings  : \\\\host\\process(app)\\id process :",
            "            1234",
            "",
            "            \\\\host\\process(app)\\working set :",
            "            3072",
            "",
            "            \\\\host\\process(app#1)\\id process :",
            "            5678",
            "",
            "            \\\\host\\process(app#1)\\working set :",
            "            4096.5",
            "",
            "End       :",
            "",
        ]
    )


# ============================================================================
# Mock Fixtures
# ============================================================================


def make_mock_process(pid: int, exe: Optional[str]) -> Mock:
    """Create a mock psutil process with a fixed executable path."""
    process = Mock()
    process.pid = pid
    process.exe.return_value = exe
    process.info = {"pid": pid, "exe": exe}
    return process


@pytest.fixture
def mock_process_factory():
    """Provide the mock process builder."""
    return make_mock_process


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config_file(temp_dir, sample_config_data):
    """Write a temporary config.toml and return its path."""
    import toml

    config_path = temp_dir / "config.toml"
    with open(config_path, "w") as f:
        toml.dump(sample_config_data, f)
    return config_path


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield  # Run the test

    from countermon.config import clear_config_cache, set_config_path

    clear_config_cache()
    # Always reset to original config path
    set_config_path(original_config_path)
