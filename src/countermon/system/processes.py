"""
Process enumeration and counter name mapping.

Performance counters name process instances after their executable, adding a
`#n` suffix to tell apart processes that share one ("chrome", "chrome#1",
"chrome#2"). These helpers reproduce that naming for the processes currently
running so live processes can be matched to collected counters.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List

import psutil

from ..validation import InvalidArgumentError

logger = logging.getLogger(__name__)

UNKNOWN_PROCESS_NAME = "unknown"


def _process_exe(process: psutil.Process) -> str:
    try:
        return process.exe() or ""
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return ""


def poll_processes() -> List[psutil.Process]:
    """Return the running processes whose executable path can be read."""
    processes = []
    for proc in psutil.process_iter(["pid", "exe"]):
        if proc.info.get("exe"):
            processes.append(proc)
    logger.debug(f"Polled {len(processes)} processes with a known executable")
    return processes


def get_process_name(process: psutil.Process) -> str:
    """
    Return the counter-style name of a process: its executable's file name
    without the `.exe` extension, or "unknown" when the path is unavailable.
    """
    exe = _process_exe(process)
    if not exe:
        return UNKNOWN_PROCESS_NAME
    # Windows paths are parsed by hand so POSIX hosts treat them the same way.
    file_name = Path(exe.replace("\\", "/")).name
    return file_name.replace(".exe", "")


def map_counter_names(processes: Iterable[psutil.Process]) -> Dict[int, str]:
    """
    Assign each process its counter name.

    The first process seen for an executable path gets the bare name, later
    ones get `#1`, `#2`, ... in iteration order. Processes without a readable
    executable are skipped.

    Returns:
        Mapping of PID to counter name

    Raises:
        InvalidArgumentError: If processes is None or a PID appears twice
    """
    if processes is None:
        raise InvalidArgumentError("processes must not be None", field_name="processes")
    seen_paths: Dict[str, int] = {}
    counter_names: Dict[int, str] = {}
    for process in processes:
        exe = _process_exe(process)
        if not exe:
            continue
        count = seen_paths.get(exe, 0)
        seen_paths[exe] = count + 1
        counter_name = get_process_name(process) + ("" if count == 0 else f"#{count}")
        if process.pid in counter_names:
            raise InvalidArgumentError(
                f"Duplicate process found: {process.pid}",
                field_name="processes",
                value=process.pid,
            )
        counter_names[process.pid] = counter_name
    return counter_names
