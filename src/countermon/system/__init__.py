"""
System interaction: launching the counter collector and mapping live
processes to counter names.
"""

from .collector import (
    CONTINUOUS,
    build_counter_command,
    check_powershell_installed,
    start_counter_collection,
)
from .processes import get_process_name, map_counter_names, poll_processes

__all__ = [
    # Collection
    "CONTINUOUS",
    "build_counter_command",
    "check_powershell_installed",
    "start_counter_collection",
    # Processes
    "poll_processes",
    "get_process_name",
    "map_counter_names",
]
