"""
Configuration data models.

This module contains the configuration data structures for analysis and
collection settings, loaded from `config.toml`.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AnalysisConfig:
    """
    How loaded SampleSets are validated, from the `[analysis]` section.
    """

    # Name of the reading holding the process identifier.
    pid_reading: str = "id process"
    # Maximum max/mean and mean/min interval ratio for a genuine set.
    outlier_tolerance: float = 3.0
    # Reject sets that are not genuine instead of reporting them.
    assert_genuine: bool = True
    # Reject sets whose samples do not share the same readings.
    assert_complete: bool = True


@dataclass(frozen=True)
class CollectionConfig:
    """
    How counter samples are collected and stored, from the `[collection]` section.
    """

    # Minimum seconds between samples.
    sample_interval: int = 1
    # Number of samples to gather; negative means run until stopped.
    num_samples: int = -1
    # Root directory under which timestamped sample directories are created.
    data_dir: Path = Path("data")
    # Accept a dump whose last record was cut off when the collector stopped.
    ignore_trailing_incomplete: bool = True


@dataclass(frozen=True)
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    analysis: AnalysisConfig
    collection: CollectionConfig
