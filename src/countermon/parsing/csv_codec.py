"""
Line-oriented text encoding of Samples.

Each Sample is written as its timestamp followed by one `name, value` line per
reading; consecutive samples are separated by a blank line:

    2024/01/01 00:00:00
    id process, 1234
    working set - private, 53248.5

Decoding goes through CsvLayoutParser, so the same error taxonomy applies.
"""

import logging
from datetime import datetime
from typing import Iterable, List

from ..models.sample import Sample
from ..validation import InvalidArgumentError
from .patterns import CSV_SEPARATOR, TIMESTAMP_FORMAT
from .raw_parser import CsvLayoutParser

logger = logging.getLogger(__name__)

FILE_EXTENSION = ".csv"

MAX_FRACTION_DIGITS = 8


def format_value(value: float) -> str:
    """
    Render a reading value.

    Whole values are written as integers, others with up to 8 fractional
    digits. Values that 8 digits cannot represent exactly fall back to the
    shortest text that reads back to the same float.
    """
    if value.is_integer():
        return str(int(value))
    text = f"{value:.{MAX_FRACTION_DIGITS}f}".rstrip("0").rstrip(".")
    if float(text) != value:
        text = repr(value)
    return text


def format_timestamp(timestamp: datetime) -> str:
    """Render a timestamp with a zero-padded four-digit year, to whole seconds."""
    return f"{timestamp.year:04d}{timestamp.strftime(TIMESTAMP_FORMAT[2:])}"


class CSVCodec:
    """Encode Samples to the CSV line format and decode them back."""

    def __init__(self):
        self._parser = CsvLayoutParser(ignore_trailing_incomplete=False)

    def encode(self, sample: Sample) -> str:
        """Encode one Sample; the result ends with a newline."""
        if sample is None:
            raise InvalidArgumentError("sample must not be None", field_name="sample")
        lines = [format_timestamp(sample.timestamp)]
        lines.extend(
            f"{reading.name}{CSV_SEPARATOR}{format_value(reading.value)}"
            for reading in sample
        )
        return "\n".join(lines) + "\n"

    def encode_many(self, samples: Iterable[Sample]) -> str:
        """Encode Samples separated by blank lines."""
        if samples is None:
            raise InvalidArgumentError("samples must not be None", field_name="samples")
        return "\n".join(self.encode(sample) for sample in samples)

    def decode(self, text: str) -> List[Sample]:
        """
        Decode text produced by ``encode``/``encode_many``.

        Raises:
            SampleParseError: If the text breaks the line format
        """
        if text is None:
            raise InvalidArgumentError("text must not be None", field_name="text")
        return self._parser.parse_text(text)

    def decode_lines(self, lines: Iterable[str]) -> List[Sample]:
        if lines is None:
            raise InvalidArgumentError("lines must not be None", field_name="lines")
        return self._parser.parse(lines)
