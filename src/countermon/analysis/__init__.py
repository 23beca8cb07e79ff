"""
Reporting over loaded SampleSets.
"""

from .report import (
    covariance_frame,
    reading_names,
    sample_set_to_frame,
    summarize_sample_sets,
)

__all__ = [
    "covariance_frame",
    "reading_names",
    "sample_set_to_frame",
    "summarize_sample_sets",
]
