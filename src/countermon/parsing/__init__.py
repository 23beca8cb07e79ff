"""
Parsing of raw counter text and the CSV line encoding.
"""

from .csv_codec import FILE_EXTENSION, CSVCodec, format_timestamp, format_value
from .patterns import SAMPLE_DIRECTORY_FORMAT, TIMESTAMP_FORMAT
from .raw_parser import CsvLayoutParser, NativeDumpParser, RawSampleParser

__all__ = [
    "CSVCodec",
    "FILE_EXTENSION",
    "format_timestamp",
    "format_value",
    "RawSampleParser",
    "NativeDumpParser",
    "CsvLayoutParser",
    "TIMESTAMP_FORMAT",
    "SAMPLE_DIRECTORY_FORMAT",
]
