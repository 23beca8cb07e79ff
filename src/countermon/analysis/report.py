"""
Tabular views of SampleSets.

These helpers turn SampleSets and their Meta into Polars DataFrames for
printing, filtering and plotting.
"""

import logging
from typing import Dict, List, Mapping, Sequence

import polars as pl

from ..models.sample_set import SampleSet
from ..validation import InvalidArgumentError

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMN = "timestamp"
LABEL_COLUMN = "reading"

SUMMARY_SCHEMA = {
    "process_name": pl.Utf8,
    "counter_name": pl.Utf8,
    "samples": pl.Int64,
    "complete": pl.Boolean,
    "genuine": pl.Boolean,
    "ingenuine_reason": pl.Utf8,
    "min_interval_s": pl.Float64,
    "mean_interval_s": pl.Float64,
    "max_interval_s": pl.Float64,
    "first_timestamp": pl.Datetime("us"),
    "last_timestamp": pl.Datetime("us"),
}


def reading_names(sample_set: SampleSet) -> List[str]:
    """Every reading name seen in the set, in case-insensitive order."""
    return [reading.name for reading in sample_set.meta.mean_sample]


def _check_reserved(names: Sequence[str], reserved: str, counter_name: str) -> None:
    for name in names:
        if name == reserved:
            raise InvalidArgumentError(
                f"Reading '{name}' of '{counter_name}' clashes with the '{reserved}' column",
                field_name="readings",
                value=name,
            )


def sample_set_to_frame(sample_set: SampleSet) -> pl.DataFrame:
    """
    One row per sample: a timestamp column plus one Float64 column per
    reading name. Readings a sample does not carry are null.

    Raises:
        InvalidArgumentError: If a reading is named like the timestamp column
    """
    names = reading_names(sample_set)
    _check_reserved(names, TIMESTAMP_COLUMN, sample_set.counter_name)
    data: Dict[str, list] = {TIMESTAMP_COLUMN: [s.timestamp for s in sample_set]}
    for name in names:
        data[name] = [s.value_of(name) for s in sample_set]
    schema = {TIMESTAMP_COLUMN: pl.Datetime("us"), **{name: pl.Float64 for name in names}}
    return pl.DataFrame(data, schema=schema)


def summarize_sample_sets(sets_by_process: Mapping[str, Sequence[SampleSet]]) -> pl.DataFrame:
    """
    One row per SampleSet with its size, completeness, genuineness and
    interval statistics, sorted by process and counter name.
    """
    rows = []
    for process_name, sample_sets in sets_by_process.items():
        for sample_set in sample_sets:
            meta = sample_set.meta
            rows.append(
                {
                    "process_name": process_name,
                    "counter_name": sample_set.counter_name,
                    "samples": len(sample_set),
                    "complete": meta.complete,
                    "genuine": meta.is_genuine,
                    "ingenuine_reason": meta.genuine,
                    "min_interval_s": meta.min_interval.total_seconds(),
                    "mean_interval_s": meta.mean_interval.total_seconds(),
                    "max_interval_s": meta.max_interval.total_seconds(),
                    "first_timestamp": meta.min_sample.timestamp,
                    "last_timestamp": meta.max_sample.timestamp,
                }
            )
    logger.debug(f"Summarized {len(rows)} SampleSets")
    return pl.DataFrame(rows, schema=SUMMARY_SCHEMA).sort(["process_name", "counter_name"])


def covariance_frame(sample_set: SampleSet) -> pl.DataFrame:
    """
    The covariance matrix as a labelled square table.

    Raises:
        IncompleteSetError: If the set is not complete
        InvalidArgumentError: If a reading is named like the label column
    """
    meta = sample_set.meta
    matrix = meta.cov_matrix
    labels = list(meta.cov_labels)
    _check_reserved(labels, LABEL_COLUMN, sample_set.counter_name)
    data: Dict[str, list] = {LABEL_COLUMN: labels}
    for j, label in enumerate(labels):
        data[label] = [row[j] for row in matrix]
    schema = {LABEL_COLUMN: pl.Utf8, **{label: pl.Float64 for label in labels}}
    return pl.DataFrame(data, schema=schema)
