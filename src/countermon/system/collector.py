"""
Counter collection process management.

The native dump is produced by PowerShell's `Get-Counter` over the `Process`
counter set, formatted as a list and written to a file. This module builds
that command and launches it; parsing the resulting file is left to
NativeDumpParser.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Union

from ..validation import InvalidArgumentError

logger = logging.getLogger(__name__)

# num_samples value meaning "sample until stopped"
CONTINUOUS = -1

POWERSHELL = "powershell.exe"

# .NET format string matching parsing.patterns.TIMESTAMP_FORMAT
_DOTNET_TIMESTAMP_FORMAT = "yyyy/MM/dd HH:mm:ss"

_SCRIPT_TEMPLATE = (
    "Get-Counter -ListSet Process | Get-Counter -ErrorAction SilentlyContinue "
    "{sample_interval} {num_samples}"
    " | select @{{l=\\\"Timestamp\\\";e={{([datetime]\\\"$($_.timestamp)\\\").tostring(\\\"{timestamp_format}\\\")}}}},Readings,\"End\" | fl"
    " | Out-File -Encoding utf8 -FilePath \\\"{output_file}\\\""
)


def build_counter_command(
    sample_interval: int, num_samples: int, output_file: Union[str, Path]
) -> str:
    """
    Build the PowerShell command that dumps process counters to a file.

    Args:
        sample_interval: Seconds between samples, at least 1
        num_samples: Number of samples; below 1 samples continuously
        output_file: File the dump is written to

    Returns:
        The full command line

    Raises:
        InvalidArgumentError: If output_file is None or sample_interval < 1
    """
    if output_file is None:
        raise InvalidArgumentError("output_file must not be None", field_name="output_file")
    if isinstance(sample_interval, bool) or not isinstance(sample_interval, int) or sample_interval < 1:
        raise InvalidArgumentError(
            "The sample interval must be a positive integer",
            field_name="sample_interval",
            value=sample_interval,
        )
    samples_arg = "-Continuous" if num_samples < 1 else f"-MaxSamples {num_samples}"
    script = _SCRIPT_TEMPLATE.format(
        sample_interval=f"-SampleInterval {sample_interval}",
        num_samples=samples_arg,
        timestamp_format=_DOTNET_TIMESTAMP_FORMAT,
        output_file=Path(output_file).absolute(),
    )
    return f"{POWERSHELL} \"{script}\""


def check_powershell_installed() -> bool:
    """Check if PowerShell is available on the system PATH."""
    return shutil.which(POWERSHELL) is not None


def start_counter_collection(
    sample_interval: int, num_samples: int, output_file: Union[str, Path]
) -> subprocess.Popen:
    """
    Launch the counter collection process.

    The caller owns the returned process and is expected to wait on it or
    terminate it.
    """
    command = build_counter_command(sample_interval, num_samples, output_file)
    logger.info(
        f"Starting counter collection (interval={sample_interval}s, "
        f"samples={'continuous' if num_samples < 1 else num_samples}) into {output_file}"
    )
    logger.debug(f"Executing command: {command}")
    return subprocess.Popen(command)
