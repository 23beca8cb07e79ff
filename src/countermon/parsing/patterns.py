"""
Line patterns and formats shared by the raw parsers and the CSV codec.

Native dumps are the `Format-List` output of PowerShell's `Get-Counter`:

    Timestamp : 2024/01/01 00:00:00
    Readings  : \\\\host\\process(chrome#1)\\id process :
                1234

                \\\\host\\process(chrome#1)\\working set - private :
                53248

    End       :
"""

import re

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

# Directory names for saved runs.
SAMPLE_DIRECTORY_FORMAT = "%Y-%m-%d_%H-%M-%S"

# group 1 = the timestamp text
NATIVE_TIMESTAMP_PATTERN = re.compile(r"Timestamp\s+: ([0-9/: ]+)")

# group 1 = process label (e.g. "javaw#2"), group 2 = counter (e.g. "working set - private")
COUNTER_PATTERN = re.compile(r"\\process\((.+)\)\\(.+) :$")

SAMPLE_END_PATTERN = re.compile(r"\s*End\s+:")

CSV_TIMESTAMP_PATTERN = re.compile(r"\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}")

# group 1 = reading name, group 2 = value
ENTRY_PATTERN = re.compile(r"^(.+), (.+)$")

# Bare unsigned integer or decimal, optionally with an exponent.
VALUE_PATTERN = re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

CSV_SEPARATOR = ", "
