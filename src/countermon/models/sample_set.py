"""
SampleSet and its derived statistics.

A SampleSet is an ordered run of Samples for one counter identity. Because the
set never changes, everything derived from it is computed once, at
construction, into an immutable Meta object.

The difference between ``counter_name`` and ``process_name``: when several
processes share an executable, the collector disambiguates them with a ``#n``
suffix ("chrome", "chrome#1", "chrome#4"). That number is only meaningful
among samples taken at the same time on the same machine. ``process_name``
strips the suffix so the same program can be correlated across runs.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..validation import (
    IncompleteSetError,
    IngenuineSetError,
    InvalidArgumentError,
)
from .sample import Reading, Sample

logger = logging.getLogger(__name__)

# Name of the reading holding the process identifier.
PID_READING = "id process"

# How many times longer than the mean the longest interval may be (and how
# many times shorter the shortest) before a set is flagged as not genuine.
INTERVAL_OUTLIER_TOLERANCE = 3.0

MIN_SAMPLES = 2


def _total_microseconds(interval: timedelta) -> int:
    return (interval.days * 86400 + interval.seconds) * 1_000_000 + interval.microseconds


@dataclass(frozen=True)
class Meta:
    """
    Statistics derived from the samples of one SampleSet.

    Instances are produced by ``compute_meta`` only; every field is final.

    Attributes:
        intervals: Absolute time between consecutive samples, chronological
        complete: Whether every sample carries the same reading names
        min_interval: Shortest interval
        max_interval: Longest interval
        mean_interval: Mean interval, truncated to whole microseconds
        min_sample: Per-reading minimum values, stamped with the earliest timestamp
        max_sample: Per-reading maximum values, stamped with the latest timestamp
        mean_sample: Per-reading mean values, stamped with ``datetime.min``
        genuine: None when the set looks genuine, else the reason it does not
        cov_labels: Reading names indexing the covariance matrix
    """

    intervals: Tuple[timedelta, ...]
    complete: bool
    min_interval: timedelta
    max_interval: timedelta
    mean_interval: timedelta
    min_sample: Sample
    max_sample: Sample
    mean_sample: Sample
    genuine: Optional[str]
    cov_labels: Tuple[str, ...]
    _cov_matrix: Optional[Tuple[Tuple[float, ...], ...]]

    @property
    def is_genuine(self) -> bool:
        return self.genuine is None

    @property
    def ingenuine_reason(self) -> Optional[str]:
        return self.genuine

    @property
    def cov_matrix(self) -> Tuple[Tuple[float, ...], ...]:
        """
        Population covariance matrix over ``cov_labels``.

        Raises:
            IncompleteSetError: If the set is not complete
        """
        if self._cov_matrix is None:
            raise IncompleteSetError(
                "Covariance matrix is only defined for complete SampleSets"
            )
        return self._cov_matrix


def _calc_intervals(samples: Sequence[Sample]) -> Tuple[timedelta, ...]:
    return tuple(
        abs(samples[i].timestamp - samples[i - 1].timestamp)
        for i in range(1, len(samples))
    )


def _calc_complete(samples: Sequence[Sample]) -> bool:
    names = samples[0].reading_names
    for sample in samples[1:]:
        if len(sample) != len(names) or sample.reading_names != names:
            return False
    return True


def _calc_min_max_mean_intervals(
    intervals: Sequence[timedelta],
) -> Tuple[timedelta, timedelta, timedelta]:
    total = sum(_total_microseconds(d) for d in intervals)
    mean = timedelta(microseconds=total // len(intervals))
    return min(intervals), max(intervals), mean


def _calc_min_max_mean_samples(
    samples: Sequence[Sample],
) -> Tuple[Sample, Sample, Sample]:
    # Keyed by case-folded name; first-seen spelling is kept for display.
    display: Dict[str, str] = {}
    minimums: Dict[str, float] = {}
    maximums: Dict[str, float] = {}
    totals: Dict[str, float] = {}
    counts: Dict[str, int] = {}

    for sample in samples:
        for reading in sample:
            key = reading.key
            if key not in display:
                display[key] = reading.name
                minimums[key] = reading.value
                maximums[key] = reading.value
                totals[key] = 0.0
                counts[key] = 0
            elif reading.value < minimums[key]:
                minimums[key] = reading.value
            elif reading.value > maximums[key]:
                maximums[key] = reading.value
            totals[key] += reading.value
            counts[key] += 1

    min_timestamp = min(s.timestamp for s in samples)
    max_timestamp = max(s.timestamp for s in samples)

    min_sample = Sample(min_timestamp, (Reading(display[k], v) for k, v in minimums.items()))
    max_sample = Sample(max_timestamp, (Reading(display[k], v) for k, v in maximums.items()))
    mean_sample = Sample(
        datetime.min,
        (Reading(display[k], totals[k] / counts[k]) for k in totals),
    )
    return min_sample, max_sample, mean_sample


def _calc_genuine(
    samples: Sequence[Sample],
    min_interval: timedelta,
    max_interval: timedelta,
    mean_interval: timedelta,
    pid_reading: str,
    outlier_tolerance: float,
) -> Optional[str]:
    pid: Optional[float] = None
    died = False
    for sample in samples:
        if sample.is_dead:
            died = True
            continue
        # A process cannot come back after exiting; a restart would have a
        # different PID and counter name anyway.
        if died:
            return "contains non-dead samples taken after dead samples"
        reading = sample.get_reading(pid_reading)
        if reading is None:
            return "missing PID reading"
        if math.copysign(1.0, reading.value) < 0:
            return "illegal PID value"
        if pid is None:
            pid = reading.value
        elif reading.value != pid:
            return "contains multiple PID values"

    min_us = _total_microseconds(min_interval)
    max_us = _total_microseconds(max_interval)
    mean_us = _total_microseconds(mean_interval)
    if mean_us > 0 and max_us / mean_us > outlier_tolerance:
        return "max interval above tolerance"
    if min_us == 0 or mean_us / min_us > outlier_tolerance:
        return "min interval below tolerance"
    return None


def _calc_cov_matrix(
    samples: Sequence[Sample], mean_sample: Sample
) -> Tuple[Tuple[str, ...], Tuple[Tuple[float, ...], ...]]:
    labels = tuple(r.name for r in samples[0])
    size = len(labels)
    n = len(samples)
    means = [mean_sample.value_of(label) for label in labels]
    matrix: List[List[float]] = [[0.0] * size for _ in range(size)]
    for sample in samples:
        deviations = [sample.value_of(label) - means[i] for i, label in enumerate(labels)]
        for i in range(size):
            for j in range(i, size):
                term = deviations[i] * deviations[j] / n
                matrix[i][j] += term
                if i != j:
                    matrix[j][i] += term
    return labels, tuple(tuple(row) for row in matrix)


def compute_meta(
    samples: Sequence[Sample],
    pid_reading: str = PID_READING,
    outlier_tolerance: float = INTERVAL_OUTLIER_TOLERANCE,
) -> Meta:
    """
    Compute the statistics of a chronologically sorted run of samples.

    The stages run in a fixed order because later stages depend on earlier
    ones: intervals, completeness, min/max/mean intervals, min/max/mean
    samples, genuineness, covariance.

    Args:
        samples: At least two samples, sorted ascending by timestamp
        pid_reading: Name of the reading holding the process id
        outlier_tolerance: Maximum max/mean and mean/min interval ratio

    Returns:
        A fully populated Meta
    """
    if len(samples) < MIN_SAMPLES:
        raise InvalidArgumentError(
            f"A valid SampleSet must contain at least {MIN_SAMPLES} Samples",
            field_name="samples",
            value=len(samples),
        )
    intervals = _calc_intervals(samples)
    complete = _calc_complete(samples)
    min_interval, max_interval, mean_interval = _calc_min_max_mean_intervals(intervals)
    min_sample, max_sample, mean_sample = _calc_min_max_mean_samples(samples)
    genuine = _calc_genuine(
        samples, min_interval, max_interval, mean_interval, pid_reading, outlier_tolerance
    )
    if complete:
        cov_labels, cov_matrix = _calc_cov_matrix(samples, mean_sample)
    else:
        cov_labels, cov_matrix = tuple(r.name for r in mean_sample), None

    return Meta(
        intervals=intervals,
        complete=complete,
        min_interval=min_interval,
        max_interval=max_interval,
        mean_interval=mean_interval,
        min_sample=min_sample,
        max_sample=max_sample,
        mean_sample=mean_sample,
        genuine=genuine,
        cov_labels=cov_labels,
        _cov_matrix=cov_matrix,
    )


class SampleSet:
    """
    An immutable, timestamp-ordered run of at least two Samples.

    Args:
        counter_name: Counter identity, e.g. "chrome#2"
        samples: Samples in any order
        assert_genuine: Raise IngenuineSetError if the set is not genuine
        assert_complete: Raise IncompleteSetError if the set is not complete
        pid_reading: Name of the reading holding the process id
        outlier_tolerance: Interval ratio above which the set is not genuine
    """

    __slots__ = ("_counter_name", "_process_name", "_samples", "_meta", "_hash")

    def __init__(
        self,
        counter_name: str,
        samples: Iterable[Sample],
        assert_genuine: bool = False,
        assert_complete: bool = False,
        *,
        pid_reading: str = PID_READING,
        outlier_tolerance: float = INTERVAL_OUTLIER_TOLERANCE,
    ):
        if not isinstance(counter_name, str) or not counter_name:
            raise InvalidArgumentError(
                f"counter_name must be a non-empty string, got {counter_name!r}",
                field_name="counter_name",
                value=counter_name,
            )
        if samples is None:
            raise InvalidArgumentError("samples must not be None", field_name="samples")
        samples = list(samples)
        for sample in samples:
            if not isinstance(sample, Sample):
                raise InvalidArgumentError(
                    f"Expected a Sample, got {type(sample).__name__}",
                    field_name="samples",
                    value=sample,
                )
        if len(samples) < MIN_SAMPLES:
            raise InvalidArgumentError(
                f"A valid SampleSet must contain at least {MIN_SAMPLES} Samples, got {len(samples)}",
                field_name="samples",
                value=len(samples),
            )

        self._counter_name = counter_name
        self._process_name = counter_name.split("#", 1)[0]
        self._samples: Tuple[Sample, ...] = tuple(sorted(samples, key=lambda s: s.timestamp))
        self._meta = compute_meta(self._samples, pid_reading, outlier_tolerance)

        if assert_complete and not self._meta.complete:
            raise IncompleteSetError(f"The Samples of '{counter_name}' are not complete")
        if assert_genuine and not self._meta.is_genuine:
            raise IngenuineSetError(self._meta.genuine, counter_name)

        self._hash = hash((self._counter_name, self._samples))
        logger.debug(
            f"Built SampleSet '{counter_name}' with {len(self._samples)} samples "
            f"(complete={self._meta.complete}, genuine={self._meta.genuine or 'yes'})"
        )

    @property
    def counter_name(self) -> str:
        return self._counter_name

    @property
    def process_name(self) -> str:
        return self._process_name

    @property
    def samples(self) -> Tuple[Sample, ...]:
        return self._samples

    @property
    def meta(self) -> Meta:
        return self._meta

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    def __getitem__(self, index: int) -> Sample:
        return self._samples[index]

    # Only counter_name and samples take part in equality; every other field
    # is derived from them.
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SampleSet):
            return NotImplemented
        return (
            self._hash == other._hash
            and self._counter_name == other._counter_name
            and self._samples == other._samples
        )

    def __hash__(self) -> int:
        return self._hash

    def __setattr__(self, name, value):
        if hasattr(self, "_hash"):
            raise AttributeError("SampleSet is immutable")
        super().__setattr__(name, value)

    def __repr__(self) -> str:
        return f"SampleSet({self._counter_name!r}, {len(self._samples)} samples)"
