"""
Configuration validation utilities.

Turns the raw `[analysis]` and `[collection]` tables into validated,
frozen configuration models.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import AnalysisConfig, AppConfig, CollectionConfig
from ..validation import (
    ValidationError,
    validate_bool,
    validate_non_empty_string,
    validate_non_zero_integer,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

_DEFAULT_ANALYSIS = AnalysisConfig()
_DEFAULT_COLLECTION = CollectionConfig()


def validate_analysis_config(analysis_data: Dict[str, Any]) -> AnalysisConfig:
    """
    Validate and create an AnalysisConfig from raw configuration data.

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(analysis_data, dict):
        raise ValidationError("[analysis] must be a table", field_name="analysis")

    pid_reading = validate_non_empty_string(
        analysis_data.get("pid_reading", _DEFAULT_ANALYSIS.pid_reading),
        field_name="analysis.pid_reading",
    )
    # A tolerance below 1 would flag every set, regular or not.
    outlier_tolerance = validate_positive_float(
        analysis_data.get("outlier_tolerance", _DEFAULT_ANALYSIS.outlier_tolerance),
        min_value=1.0,
        field_name="analysis.outlier_tolerance",
    )
    assert_genuine = validate_bool(
        analysis_data.get("assert_genuine", _DEFAULT_ANALYSIS.assert_genuine),
        field_name="analysis.assert_genuine",
    )
    assert_complete = validate_bool(
        analysis_data.get("assert_complete", _DEFAULT_ANALYSIS.assert_complete),
        field_name="analysis.assert_complete",
    )
    return AnalysisConfig(
        pid_reading=pid_reading,
        outlier_tolerance=outlier_tolerance,
        assert_genuine=assert_genuine,
        assert_complete=assert_complete,
    )


def validate_collection_config(
    collection_data: Dict[str, Any], config_dir: Optional[Path] = None
) -> CollectionConfig:
    """
    Validate and create a CollectionConfig from raw configuration data.

    Args:
        collection_data: Raw `[collection]` table
        config_dir: Directory relative data_dir values are resolved against

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(collection_data, dict):
        raise ValidationError("[collection] must be a table", field_name="collection")

    sample_interval = validate_positive_integer(
        collection_data.get("sample_interval", _DEFAULT_COLLECTION.sample_interval),
        min_value=1,
        field_name="collection.sample_interval",
    )
    num_samples = validate_non_zero_integer(
        collection_data.get("num_samples", _DEFAULT_COLLECTION.num_samples),
        field_name="collection.num_samples",
    )
    data_dir = Path(validate_non_empty_string(
        str(collection_data.get("data_dir", _DEFAULT_COLLECTION.data_dir)),
        field_name="collection.data_dir",
    ))
    if config_dir is not None and not data_dir.is_absolute():
        data_dir = config_dir / data_dir
    ignore_trailing_incomplete = validate_bool(
        collection_data.get(
            "ignore_trailing_incomplete", _DEFAULT_COLLECTION.ignore_trailing_incomplete
        ),
        field_name="collection.ignore_trailing_incomplete",
    )
    return CollectionConfig(
        sample_interval=sample_interval,
        num_samples=num_samples,
        data_dir=data_dir,
        ignore_trailing_incomplete=ignore_trailing_incomplete,
    )


def validate_app_config(config_data: Dict[str, Any], config_dir: Optional[Path] = None) -> AppConfig:
    """Validate the whole parsed config.toml."""
    return AppConfig(
        analysis=validate_analysis_config(config_data.get("analysis", {})),
        collection=validate_collection_config(config_data.get("collection", {}), config_dir),
    )
