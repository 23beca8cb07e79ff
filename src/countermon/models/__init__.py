"""
Data models for the countermon package.

Sample models:
- Reading: one named, non-negative measurement
- Sample: an immutable timestamped snapshot of readings

Series models:
- SampleSet: an ordered run of samples for one counter
- Meta: statistics computed once when a SampleSet is built

Configuration models:
- AnalysisConfig, CollectionConfig, AppConfig
"""

from .sample import Reading, Sample
from .sample_set import (
    INTERVAL_OUTLIER_TOLERANCE,
    PID_READING,
    Meta,
    SampleSet,
    compute_meta,
)
from .config import AnalysisConfig, AppConfig, CollectionConfig

__all__ = [
    # Samples
    "Reading",
    "Sample",
    # Series
    "SampleSet",
    "Meta",
    "compute_meta",
    "PID_READING",
    "INTERVAL_OUTLIER_TOLERANCE",
    # Configuration
    "AnalysisConfig",
    "CollectionConfig",
    "AppConfig",
]
