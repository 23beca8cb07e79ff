"""
Command-line interface for countermon.

Subcommands:
- collect: run the counter collector and save the samples as CSV files
- convert: turn an existing native dump into CSV sample files
- analyze: load a sample directory and report on every SampleSet
- processes: list running processes with their counter names
"""

import argparse
import logging
import sys
import tempfile
import tomllib
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import polars as pl

from ..analysis import covariance_frame, summarize_sample_sets
from ..config import get_config, set_config_path
from ..models.config import AppConfig
from ..parsing import NativeDumpParser
from ..plotter import plot_sample_sets
from ..storage import create_sample_directory, load_sample_sets, save_samples
from ..system import (
    check_powershell_installed,
    map_counter_names,
    poll_processes,
    start_counter_collection,
)
from ..validation import (
    IncompleteSetError,
    InvalidArgumentError,
    SampleParseError,
    ValidationError,
    handle_cli_error,
    validate_non_zero_integer,
    validate_positive_integer,
)

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="countermon",
        description="Collect and analyze per-process performance counter samples.",
    )
    parser.add_argument("--config", type=Path, help="Path to an alternative config.toml.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    collect = subparsers.add_parser("collect", help="Collect counter samples.")
    collect.add_argument(
        "-i", "--interval", type=int,
        help="Minimum seconds between samples. Defaults to collection.sample_interval.",
    )
    collect.add_argument(
        "-n", "--samples", type=int,
        help="Number of samples, or a negative number to sample until interrupted. "
             "Defaults to collection.num_samples.",
    )
    collect.add_argument("-o", "--output-dir", type=Path, help="Root directory for saved runs.")
    collect.add_argument("--no-save", action="store_true", help="Parse the samples without saving them.")

    convert = subparsers.add_parser("convert", help="Convert a native counter dump to CSV sample files.")
    convert.add_argument("dump", type=Path, help="Native dump file to convert.")
    convert.add_argument("-o", "--output-dir", type=Path, help="Root directory for saved runs.")

    analyze = subparsers.add_parser("analyze", help="Report on a directory of sample files.")
    analyze.add_argument("directory", type=Path, help="Sample directory to load (searched recursively).")
    analyze.add_argument(
        "--lenient", action="store_true",
        help="Load sets that are not genuine or not complete and report the problems.",
    )
    analyze.add_argument("--covariance", metavar="COUNTER", help="Print the covariance matrix of a counter.")
    analyze.add_argument("--plot", metavar="DIR", type=Path, help="Write an HTML chart per counter to DIR.")
    analyze.add_argument("--png", action="store_true", help="Also export PNG charts (requires Kaleido).")

    subparsers.add_parser("processes", help="List running processes with their counter names.")
    return parser


def convert_dump(
    dump_path: Path, output_root: Path, when: datetime, ignore_trailing_incomplete: bool
) -> Path:
    """
    Parse a native dump and save it as one CSV file per counter.

    Returns:
        The directory the files were written to
    """
    lines = dump_path.read_text(encoding="utf-8-sig").splitlines()
    samples_by_counter = NativeDumpParser(ignore_trailing_incomplete).parse_by_counter(lines)
    logger.info(f"Parsed {len(samples_by_counter)} counters from {dump_path}")
    output_root.mkdir(parents=True, exist_ok=True)
    sample_directory = create_sample_directory(output_root, when)
    save_samples(sample_directory, samples_by_counter)
    return sample_directory


def _run_collect(args: argparse.Namespace, config: AppConfig) -> int:
    collection = config.collection
    sample_interval = validate_positive_integer(
        args.interval if args.interval is not None else collection.sample_interval,
        min_value=1,
        field_name="--interval",
    )
    num_samples = validate_non_zero_integer(
        args.samples if args.samples is not None else collection.num_samples,
        field_name="--samples",
    )
    if not check_powershell_installed():
        logger.error("PowerShell is required to collect counters but was not found on PATH.")
        return 1

    started = datetime.now()
    with tempfile.TemporaryDirectory() as tmp_dir:
        dump_path = Path(tmp_dir) / "counters.txt"
        process = start_counter_collection(sample_interval, num_samples, dump_path)
        try:
            process.wait()
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping counter collection...")
            process.terminate()
            process.wait()
        logger.info(f"Counter collection finished with exit code {process.returncode}")

        if not dump_path.exists():
            logger.error("The collector did not produce any output.")
            return 1
        if args.no_save:
            lines = dump_path.read_text(encoding="utf-8-sig").splitlines()
            parser = NativeDumpParser(collection.ignore_trailing_incomplete)
            logger.info(f"Collected samples for {len(parser.parse_by_counter(lines))} counters (not saved)")
            return 0
        directory = convert_dump(
            dump_path,
            args.output_dir or collection.data_dir,
            started,
            collection.ignore_trailing_incomplete,
        )
    logger.info(f"Samples saved in: {directory}")
    return 0


def _run_convert(args: argparse.Namespace, config: AppConfig) -> int:
    collection = config.collection
    directory = convert_dump(
        args.dump,
        args.output_dir or collection.data_dir,
        datetime.now(),
        collection.ignore_trailing_incomplete,
    )
    logger.info(f"Samples saved in: {directory}")
    return 0


def _run_analyze(args: argparse.Namespace, config: AppConfig) -> int:
    analysis = config.analysis
    strict = not args.lenient
    sets_by_process = load_sample_sets(
        args.directory,
        assert_genuine=strict and analysis.assert_genuine,
        assert_complete=strict and analysis.assert_complete,
        pid_reading=analysis.pid_reading,
        outlier_tolerance=analysis.outlier_tolerance,
    )
    if not sets_by_process:
        logger.warning(f"No sample sets loaded from {args.directory}")
        return 1

    summary = summarize_sample_sets(sets_by_process)
    with pl.Config(tbl_rows=-1, tbl_cols=-1, fmt_str_lengths=60):
        print(summary)

        if args.covariance:
            matches = [
                s for sets in sets_by_process.values() for s in sets
                if s.counter_name == args.covariance
            ]
            if not matches:
                logger.error(f"Counter '{args.covariance}' not found in {args.directory}")
                return 1
            for sample_set in matches:
                try:
                    print(covariance_frame(sample_set))
                except (IncompleteSetError, InvalidArgumentError) as e:
                    logger.error(f"{sample_set.counter_name}: {e}")
                    return 1

    if args.plot:
        plot_sample_sets(sets_by_process, args.plot, export_png=args.png)
    return 0


def _run_processes(args: argparse.Namespace, config: AppConfig) -> int:
    counter_names = map_counter_names(poll_processes())
    for pid, counter_name in sorted(counter_names.items(), key=lambda item: item[1].lower()):
        print(f"{pid}\t{counter_name}")
    return 0


_COMMANDS = {
    "collect": _run_collect,
    "convert": _run_convert,
    "analyze": _run_analyze,
    "processes": _run_processes,
}


def main_cli(argv: Optional[List[str]] = None) -> int:
    """
    Main command-line entry point.

    Returns:
        Process exit code

    Raises:
        SystemExit: On configuration errors, invalid arguments or unparseable data
    """
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if args.config:
        set_config_path(args.config)

    try:
        app_config = get_config()
    except (FileNotFoundError, ValidationError, tomllib.TOMLDecodeError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            include_traceback=False,
            logger=logger,
        )

    try:
        return _COMMANDS[args.command](args, app_config)
    except (ValidationError, InvalidArgumentError) as e:
        handle_cli_error(error=e, context=f"{args.command} arguments", exit_code=1, logger=logger)
    except SampleParseError as e:
        handle_cli_error(error=e, context=f"{args.command} parsing", exit_code=1, logger=logger)
    except (FileExistsError, FileNotFoundError) as e:
        handle_cli_error(error=e, context=f"{args.command} files", exit_code=1, logger=logger)
