"""
Unit tests for the configuration singleton.
"""

from pathlib import Path

import pytest

from countermon.config import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)
from countermon.validation import ValidationError


@pytest.mark.unit
class TestConfigManager:
    """Test cases for loading and caching configuration."""

    def test_load_from_custom_path(self, config_file):
        set_config_path(config_file)
        config = get_config()
        assert config.collection.sample_interval == 2
        assert config.collection.data_dir == config_file.parent / "data"

    def test_config_is_cached(self, config_file):
        set_config_path(config_file)
        assert get_config() is get_config()
        assert is_config_loaded()

    def test_clear_cache_forces_reload(self, config_file):
        set_config_path(config_file)
        first = get_config()
        clear_config_cache()
        assert not is_config_loaded()
        assert get_config() is not first

    def test_missing_file(self, temp_dir):
        set_config_path(temp_dir / "missing.toml")
        with pytest.raises(FileNotFoundError):
            get_config()

    def test_invalid_values(self, temp_dir):
        config_path = temp_dir / "config.toml"
        config_path.write_text("[analysis]\noutlier_tolerance = 0.1\n", encoding="utf-8")
        set_config_path(config_path)
        with pytest.raises(ValidationError):
            get_config()

    def test_config_info(self, config_file):
        set_config_path(config_file)
        info = get_config_info()
        assert info["config_loaded"] is False
        assert info["config_path"] == str(config_file)

        get_config()
        assert get_config_info()["data_dir"] == str(config_file.parent / "data")

    def test_default_config_file(self):
        config = get_config()
        conf_dir = Path(__file__).parent.parent.parent.parent / "conf"
        assert config.analysis.pid_reading == "id process"
        assert config.analysis.outlier_tolerance == 3.0
        assert config.collection.num_samples == -1
        assert config.collection.data_dir == conf_dir / ".." / "data"
