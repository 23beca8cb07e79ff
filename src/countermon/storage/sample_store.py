"""
Saving and loading sample directories.

A sample directory holds one `<counter name>.csv` file per counter, written
with CSVCodec. Directories may be nested; loading walks every subdirectory and
merges the SampleSets by process name so runs of the same program end up
together.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..models.sample import Sample
from ..models.sample_set import INTERVAL_OUTLIER_TOLERANCE, PID_READING, SampleSet
from ..parsing.csv_codec import FILE_EXTENSION, CSVCodec
from ..parsing.patterns import SAMPLE_DIRECTORY_FORMAT
from ..validation import (
    ErrorSeverity,
    InvalidArgumentError,
    handle_file_error,
    validate_directory,
)

logger = logging.getLogger(__name__)


def load_sample_sets(
    directory: Union[str, Path],
    assert_genuine: bool = True,
    assert_complete: bool = True,
    pid_reading: str = PID_READING,
    outlier_tolerance: float = INTERVAL_OUTLIER_TOLERANCE,
) -> Dict[str, List[SampleSet]]:
    """
    Load every `.csv` sample file below a directory.

    A file that cannot be read, parsed or validated is logged and skipped;
    the rest of the directory is still loaded.

    Args:
        directory: Directory to load
        assert_genuine: Skip sets that are not genuine
        assert_complete: Skip sets that are not complete
        pid_reading: Name of the reading holding the process id
        outlier_tolerance: Interval ratio above which a set is not genuine

    Returns:
        SampleSets grouped by process name

    Raises:
        InvalidArgumentError: If directory is not a directory
    """
    directory = validate_directory(directory)
    codec = CSVCodec()
    sample_sets: Dict[str, List[SampleSet]] = {}

    for file_path in sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == FILE_EXTENSION):
        counter_name = file_path.stem
        try:
            text = file_path.read_text(encoding="utf-8")
            samples = SampleSet(
                counter_name,
                codec.decode(text),
                assert_genuine,
                assert_complete,
                pid_reading=pid_reading,
                outlier_tolerance=outlier_tolerance,
            )
        except Exception as e:
            handle_file_error(
                error=e,
                context=f"parsing samples file {file_path.absolute()}",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )
            continue
        sample_sets.setdefault(samples.process_name, []).append(samples)

    for subdirectory in sorted(p for p in directory.iterdir() if p.is_dir()):
        nested = load_sample_sets(
            subdirectory, assert_genuine, assert_complete, pid_reading, outlier_tolerance
        )
        for process_name, nested_sets in nested.items():
            sample_sets.setdefault(process_name, []).extend(nested_sets)

    logger.debug(
        f"Loaded {sum(len(s) for s in sample_sets.values())} SampleSets for "
        f"{len(sample_sets)} processes from {directory}"
    )
    return sample_sets


def create_sample_directory(
    parent_directory: Union[str, Path], when: Optional[datetime] = None
) -> Path:
    """
    Create the directory for one run's samples, named after its start time.

    Raises:
        InvalidArgumentError: If parent_directory is not a directory
        FileExistsError: If the target exists and is not empty
    """
    parent = validate_directory(parent_directory, field_name="parent_directory")
    when = when or datetime.now()
    sample_directory = parent / when.strftime(SAMPLE_DIRECTORY_FORMAT)
    if sample_directory.exists() and any(sample_directory.iterdir()):
        raise FileExistsError(
            f"The directory \"{sample_directory.absolute()}\" already exists and is not empty"
        )
    sample_directory.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created sample directory: {sample_directory}")
    return sample_directory


def save_samples(
    directory: Union[str, Path], samples_by_counter: Mapping[str, Sequence[Sample]]
) -> List[Path]:
    """
    Write one `<counter name>.csv` file per counter.

    Existing files are never overwritten; they are logged and skipped.

    Returns:
        Paths of the files written
    """
    directory = validate_directory(directory)
    if samples_by_counter is None:
        raise InvalidArgumentError("samples_by_counter must not be None", field_name="samples_by_counter")
    codec = CSVCodec()
    written: List[Path] = []
    for counter_name, samples in samples_by_counter.items():
        file_path = directory / f"{counter_name}{FILE_EXTENSION}"
        if file_path.exists():
            logger.warning(f"The file \"{file_path.absolute()}\" already exists in this sample set, skipping")
            continue
        file_path.write_text(codec.encode_many(samples), encoding="utf-8")
        written.append(file_path)
    logger.info(f"Saved {len(written)} sample files to: {directory}")
    return written
