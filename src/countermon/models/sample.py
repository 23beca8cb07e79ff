"""
Sample value model.

A Sample is one timestamped snapshot of the counters of a single process. Its
readings are keyed by case-insensitive name and kept sorted so that iteration,
equality and hashing are deterministic. Samples never change after
construction.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Iterator, Optional, Tuple

from ..validation import DuplicateReadingError, InvalidArgumentError


@dataclass(frozen=True)
class Reading:
    """
    A single named, non-negative measurement.

    Readings compare by case-insensitive name first and value second.
    """

    name: str
    value: float

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise InvalidArgumentError(
                f"Reading name must be a non-empty string, got {self.name!r}",
                field_name="name",
                value=self.name,
            )
        # Names are written verbatim as one `name, value` text line.
        if self.name != self.name.strip() or len(self.name.splitlines()) != 1:
            raise InvalidArgumentError(
                f"Reading name must not have surrounding whitespace or line breaks, got {self.name!r}",
                field_name="name",
                value=self.name,
            )
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise InvalidArgumentError(
                f"Reading value must be a number, got {self.value!r}",
                field_name="value",
                value=self.value,
            )
        try:
            value = float(self.value)
        except OverflowError:
            raise InvalidArgumentError(
                f"Reading '{self.name}' must have a finite non-negative value, "
                "got an integer too large for a float",
                field_name="value",
                value=self.value,
            )
        if not math.isfinite(value) or value < 0:
            raise InvalidArgumentError(
                f"Reading '{self.name}' must have a finite non-negative value, got {value}",
                field_name="value",
                value=value,
            )
        object.__setattr__(self, "value", value)

    @property
    def key(self) -> str:
        """The case-folded name readings are keyed by."""
        return self.name.lower()

    def sort_key(self) -> Tuple[str, float]:
        return self.key, self.value

    def __lt__(self, other: "Reading") -> bool:
        if not isinstance(other, Reading):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __le__(self, other: "Reading") -> bool:
        if not isinstance(other, Reading):
            return NotImplemented
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: "Reading") -> bool:
        if not isinstance(other, Reading):
            return NotImplemented
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: "Reading") -> bool:
        if not isinstance(other, Reading):
            return NotImplemented
        return self.sort_key() >= other.sort_key()


def _is_positive_zero(value: float) -> bool:
    # -0.0 == 0.0, so the sign bit has to be checked separately
    return value == 0.0 and math.copysign(1.0, value) > 0


class Sample:
    """
    An immutable snapshot: a timestamp plus uniquely-named readings.

    Readings are stored sorted by (case-insensitive name, value). Lookups by
    name are case-insensitive. A sample whose readings are all exactly zero is
    "dead": the process had exited when it was captured.
    """

    __slots__ = ("_timestamp", "_readings", "_index", "_is_dead", "_hash")

    def __init__(self, timestamp: datetime, readings: Iterable[Reading] = ()):
        if timestamp is None:
            raise InvalidArgumentError("Sample timestamp must not be None", field_name="timestamp")
        if not isinstance(timestamp, datetime):
            raise InvalidArgumentError(
                f"Sample timestamp must be a datetime, got {type(timestamp).__name__}",
                field_name="timestamp",
                value=timestamp,
            )
        if readings is None:
            raise InvalidArgumentError("Sample readings must not be None", field_name="readings")

        index: Dict[str, Reading] = {}
        for reading in readings:
            if not isinstance(reading, Reading):
                raise InvalidArgumentError(
                    f"Expected a Reading, got {type(reading).__name__}",
                    field_name="readings",
                    value=reading,
                )
            existing = index.get(reading.key)
            if existing is not None:
                raise DuplicateReadingError(
                    f"Duplicate reading found: \"{reading.name}\" (already have \"{existing.name}\")"
                )
            index[reading.key] = reading

        self._timestamp = timestamp
        self._readings: Tuple[Reading, ...] = tuple(sorted(index.values()))
        self._index = index
        self._is_dead = all(_is_positive_zero(r.value) for r in self._readings)
        self._hash = hash((self._timestamp, self._readings))

    @classmethod
    def from_mapping(cls, timestamp: datetime, readings: Dict[str, float]) -> "Sample":
        """Build a Sample from a ``{name: value}`` mapping."""
        if readings is None:
            raise InvalidArgumentError("Sample readings must not be None", field_name="readings")
        return cls(timestamp, (Reading(name, value) for name, value in readings.items()))

    @property
    def timestamp(self) -> datetime:
        return self._timestamp

    @property
    def readings(self) -> Tuple[Reading, ...]:
        return self._readings

    @property
    def reading_names(self) -> frozenset:
        """Case-folded names of every reading."""
        return frozenset(self._index)

    @property
    def is_dead(self) -> bool:
        return self._is_dead

    def has_reading(self, name: str) -> bool:
        return isinstance(name, str) and name.lower() in self._index

    def get_reading(self, name: str) -> Optional[Reading]:
        """Return the reading with the given name (any case), or None."""
        if not isinstance(name, str):
            return None
        return self._index.get(name.lower())

    def value_of(self, name: str) -> Optional[float]:
        reading = self.get_reading(name)
        return None if reading is None else reading.value

    def to_dict(self) -> Dict[str, float]:
        return {r.name: r.value for r in self._readings}

    def __len__(self) -> int:
        return len(self._readings)

    def __iter__(self) -> Iterator[Reading]:
        return iter(self._readings)

    def __getitem__(self, index: int) -> Reading:
        return self._readings[index]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_reading(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sample):
            return NotImplemented
        return (
            self._hash == other._hash
            and self._timestamp == other._timestamp
            and self._readings == other._readings
        )

    def __hash__(self) -> int:
        return self._hash

    def __setattr__(self, name, value):
        if hasattr(self, "_hash"):
            raise AttributeError("Sample is immutable")
        super().__setattr__(name, value)

    def __repr__(self) -> str:
        readings = ", ".join(f"{r.name}={r.value:g}" for r in self._readings)
        return f"Sample({self._timestamp.isoformat()}, {{{readings}}})"
