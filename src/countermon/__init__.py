"""
countermon: per-process performance counter collection and analysis.

The package turns raw counter dumps into immutable Samples, groups them into
SampleSets per counter and derives interval, completeness, genuineness and
covariance statistics for each set.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Readings, Samples, SampleSets and their Meta statistics
- validation: Input validation and the error taxonomy
- parsing: Native dump and CSV line parsers, CSV codec
- storage: Sample directories on disk
- system: Counter collector launch and process name mapping
- analysis: Tabular reports over SampleSets
- cli: Command-line interface

Usage:
    From command line:
        countermon analyze data/2024-01-01_12-00-00

    Programmatically:
        from countermon import load_sample_sets
        sets = load_sample_sets(Path("data"))
"""

# Main interfaces
from .config import get_config, clear_config_cache, set_config_path
from .cli import main_cli

# Model classes for external use
from .models import (
    AppConfig,
    AnalysisConfig,
    CollectionConfig,
    Meta,
    Reading,
    Sample,
    SampleSet,
)

# Parsing and storage
from .parsing import CSVCodec, CsvLayoutParser, NativeDumpParser
from .storage import load_sample_sets, save_samples

# Validation utilities
from .validation import (
    ValidationError,
    InvalidArgumentError,
    SampleParseError,
    SampleSetError,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "main_cli",
    # Models
    "AppConfig",
    "AnalysisConfig",
    "CollectionConfig",
    "Meta",
    "Reading",
    "Sample",
    "SampleSet",
    # Parsing and storage
    "CSVCodec",
    "CsvLayoutParser",
    "NativeDumpParser",
    "load_sample_sets",
    "save_samples",
    # Validation
    "ValidationError",
    "InvalidArgumentError",
    "SampleParseError",
    "SampleSetError",
]
