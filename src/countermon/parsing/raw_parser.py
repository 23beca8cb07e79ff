"""
Parsers turning raw counter text into Samples.

Two layouts are supported:

- NativeDumpParser: the collector's native dump. A record is a timestamp line,
  pairs of reading-identity and value lines, and an end marker. One record
  holds readings for many processes and yields one Sample per process label.
- CsvLayoutParser: the line format written by CSVCodec. A record is a
  timestamp line followed by `name, value` lines; the next timestamp (or the
  end of input) closes it.

Both parsers count the timestamps they see and the records they produce and
refuse to return when the two disagree.
"""

import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from ..models.sample import Reading, Sample
from ..validation import (
    DuplicateReadingError,
    DuplicateTimestampError,
    IncompleteSampleError,
    InvalidArgumentError,
    MalformedCounterLineError,
    MalformedTimestampError,
    MalformedValueError,
    SampleCountMismatchError,
)
from .patterns import (
    COUNTER_PATTERN,
    CSV_TIMESTAMP_PATTERN,
    ENTRY_PATTERN,
    NATIVE_TIMESTAMP_PATTERN,
    SAMPLE_END_PATTERN,
    TIMESTAMP_FORMAT,
    VALUE_PATTERN,
)

logger = logging.getLogger(__name__)

# (1-based line number in the original input, line text)
NumberedLine = Tuple[int, str]


class RawSampleParser(ABC):
    """
    Base class for the line-oriented sample parsers.

    Args:
        ignore_trailing_incomplete: Allow the final record of the input to be
            unterminated, e.g. when collection was stopped mid-sample. The
            partial record is dropped.
    """

    def __init__(self, ignore_trailing_incomplete: bool = False):
        self.ignore_trailing_incomplete = ignore_trailing_incomplete

    @abstractmethod
    def parse(self, lines: Iterable[str]) -> List[Sample]:
        """
        Parse an ordered sequence of lines into Samples.

        Raises:
            SampleParseError: If the input breaks the grammar
        """

    def parse_text(self, text: str) -> List[Sample]:
        return self.parse(text.splitlines())

    @staticmethod
    def _number_lines(lines: Iterable[str]) -> List[NumberedLine]:
        """Drop blank lines, keeping the original line numbers."""
        return [
            (number, line.rstrip("\r\n"))
            for number, line in enumerate(lines, start=1)
            if line.strip()
        ]

    @staticmethod
    def _parse_timestamp(text: str, line_number: int, line: str) -> datetime:
        try:
            return datetime.strptime(text.strip(), TIMESTAMP_FORMAT)
        except ValueError:
            raise MalformedTimestampError("Failed to parse timestamp", line_number, line)

    @staticmethod
    def _parse_value(text: str, line_number: int, line: str) -> float:
        value_text = text.strip()
        if not VALUE_PATTERN.fullmatch(value_text):
            raise MalformedValueError("Unexpected value input", line_number, line)
        value = float(value_text)
        # Digit strings beyond the float range parse to inf
        if not math.isfinite(value):
            raise MalformedValueError("Unexpected value input", line_number, line)
        return value

    @staticmethod
    def _make_reading(name: str, value: float, line_number: int, line: str) -> Reading:
        try:
            return Reading(name, value)
        except InvalidArgumentError as e:
            raise MalformedCounterLineError(f"Invalid reading name: {e}", line_number, line)

    @staticmethod
    def _check_counts(expected: int, produced: int) -> None:
        if expected != produced:
            raise SampleCountMismatchError(
                f"Unexpected number of samples parsed. Expected {expected}, received {produced}"
            )


class NativeDumpParser(RawSampleParser):
    """Parser for the collector's native dump format."""

    def parse(self, lines: Iterable[str]) -> List[Sample]:
        """Parse a dump into Samples in record order, one per process label."""
        samples: List[Sample] = []
        for record in self._parse_records(lines):
            samples.extend(record.values())
        return samples

    def parse_by_counter(self, lines: Iterable[str]) -> Dict[str, List[Sample]]:
        """
        Parse a dump and group the Samples by process label.

        Returns:
            Mapping of counter name (e.g. "chrome#1") to its Samples, in the
            order the labels first appear
        """
        grouped: Dict[str, List[Sample]] = {}
        for record in self._parse_records(lines):
            for label, sample in record.items():
                grouped.setdefault(label, []).append(sample)
        logger.debug(f"Parsed native dump into {len(grouped)} counters")
        return grouped

    def _parse_records(self, lines: Iterable[str]) -> List[Dict[str, Sample]]:
        records: List[Dict[str, Sample]] = []
        open_record: Optional[List[NumberedLine]] = None
        timestamps_seen = 0

        for number, line in self._number_lines(lines):
            if NATIVE_TIMESTAMP_PATTERN.fullmatch(line.rstrip()):
                if open_record is not None:
                    raise DuplicateTimestampError(
                        "Two timestamps found within the same sample", number, line
                    )
                open_record = [(number, line)]
                timestamps_seen += 1
            elif SAMPLE_END_PATTERN.match(line):
                if open_record is None:
                    raise IncompleteSampleError(
                        "Sample end found without a timestamp", number, line
                    )
                records.append(self._parse_record(open_record))
                open_record = None
            elif open_record is not None:
                open_record.append((number, line))
            else:
                logger.debug(f"Ignoring line {number} outside of any sample: {line!r}")

        if open_record is not None:
            start_number, start_line = open_record[0]
            if not self.ignore_trailing_incomplete:
                raise IncompleteSampleError("The last sample is incomplete", start_number, start_line)
            logger.info(f"Ignoring incomplete trailing sample starting at line {start_number}")
            timestamps_seen -= 1

        self._check_counts(timestamps_seen, len(records))
        return records

    def _parse_record(self, record: List[NumberedLine]) -> Dict[str, Sample]:
        timestamp_number, timestamp_line = record[0]
        match = NATIVE_TIMESTAMP_PATTERN.fullmatch(timestamp_line.rstrip())
        timestamp = self._parse_timestamp(match.group(1), timestamp_number, timestamp_line)

        # The lines alternate between reading identity and value.
        body = record[1:]
        if len(body) < 2:
            raise IncompleteSampleError(
                "Not enough lines for a full sample", timestamp_number, timestamp_line
            )
        if len(body) % 2 != 0:
            number, line = body[-1]
            raise IncompleteSampleError("Reading without a value", number, line)

        readings: Dict[str, Dict[str, Reading]] = {}
        for i in range(0, len(body), 2):
            counter_number, counter_line = body[i]
            value_number, value_line = body[i + 1]
            counter_match = COUNTER_PATTERN.search(counter_line.rstrip())
            if not counter_match:
                raise MalformedCounterLineError(
                    "Unexpected reading input", counter_number, counter_line
                )
            label, name = counter_match.group(1), counter_match.group(2)
            value = self._parse_value(value_line, value_number, value_line)
            process_readings = readings.setdefault(label, {})
            if name.lower() in process_readings:
                raise DuplicateReadingError(
                    f"Duplicate reading \"{name}\" found for process {label}",
                    counter_number,
                    counter_line,
                )
            process_readings[name.lower()] = self._make_reading(name, value, counter_number, counter_line)

        return {
            label: Sample(timestamp, process_readings.values())
            for label, process_readings in readings.items()
        }


class CsvLayoutParser(RawSampleParser):
    """Parser for the `timestamp` / `name, value` line layout."""

    def parse(self, lines: Iterable[str]) -> List[Sample]:
        numbered = self._number_lines(lines)
        if not numbered:
            return []

        records: List[List[NumberedLine]] = []
        timestamps_seen = 0
        for number, line in numbered:
            if CSV_TIMESTAMP_PATTERN.fullmatch(line.strip()):
                records.append([(number, line)])
                timestamps_seen += 1
            elif not records:
                raise MalformedTimestampError(
                    "The first line does not contain a timestamp", number, line
                )
            else:
                records[-1].append((number, line))

        last = records[-1]
        if len(last) < 2 and self.ignore_trailing_incomplete:
            logger.info(f"Ignoring incomplete trailing sample starting at line {last[0][0]}")
            records.pop()
            timestamps_seen -= 1

        samples = [self._parse_record(record) for record in records]
        self._check_counts(timestamps_seen, len(samples))
        logger.debug(f"Parsed {len(samples)} samples from CSV layout")
        return samples

    def _parse_record(self, record: List[NumberedLine]) -> Sample:
        timestamp_number, timestamp_line = record[0]
        if len(record) < 2:
            raise IncompleteSampleError(
                "Not enough lines for a full sample", timestamp_number, timestamp_line
            )
        timestamp = self._parse_timestamp(timestamp_line, timestamp_number, timestamp_line)

        readings: Dict[str, Reading] = {}
        for number, line in record[1:]:
            match = ENTRY_PATTERN.match(line.strip())
            if not match:
                raise MalformedCounterLineError(
                    "The following line does not constitute a reading entry", number, line
                )
            name = match.group(1)
            value = self._parse_value(match.group(2), number, line)
            if name.lower() in readings:
                raise DuplicateReadingError(f"Duplicate reading \"{name}\" found", number, line)
            readings[name.lower()] = self._make_reading(name, value, number, line)
        return Sample(timestamp, readings.values())
