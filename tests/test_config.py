"""
Unit tests for configuration loading and validation.

Tests strict validation and defaults for tracker configs.
"""

import os
import shutil
import tempfile
from decimal import Decimal

import pytest
import yaml

from value_tracker.config.loader import (
    CalculationConfig,
    TrackerConfig,
    default_config,
    load_tracker_config,
)
from value_tracker.core.amortization import CostBasis


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data: dict, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a valid configuration loads correctly."""
        config_data = {
            "calculation": {
                "cost_basis": "lifetime",
                "default_lifetime_months": 6,
                "target_unit_price": 5000,
                "report_months": 12,
            },
            "storage": {"db_path": "/tmp/tracker.db"},
        }

        config = load_tracker_config(self._write_config(config_data))

        assert config.calculation.cost_basis == CostBasis.LIFETIME
        assert config.calculation.default_lifetime_months == 6
        assert config.calculation.target_unit_price == Decimal("5000")
        assert config.calculation.report_months == 12
        assert config.storage.db_path == "/tmp/tracker.db"

    def test_omitted_keys_take_defaults(self):
        """Test that a partial section falls back to defaults."""
        config = load_tracker_config(self._write_config({"calculation": {"report_months": 3}}))

        assert config.calculation.cost_basis == CostBasis.MONTHLY
        assert config.calculation.default_lifetime_months == 12
        assert config.calculation.target_unit_price == Decimal("3000")
        assert config.calculation.report_months == 3
        assert config.storage == default_config().storage

    def test_cost_basis_case_insensitive(self):
        config = load_tracker_config(self._write_config({"calculation": {"cost_basis": "MONTHLY"}}))
        assert config.calculation.cost_basis == CostBasis.MONTHLY

    def test_missing_file_raises_error(self):
        """Test that missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Tracker config file not found"):
            load_tracker_config(os.path.join(self.temp_dir, "missing.yaml"))

    def test_invalid_yaml_raises_error(self):
        """Test that malformed YAML raises YAMLError."""
        config_path = os.path.join(self.temp_dir, "bad.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("calculation: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            load_tracker_config(config_path)

    def test_empty_file_raises_error(self):
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        open(config_path, 'w').close()

        with pytest.raises(ValueError, match="Configuration file is empty"):
            load_tracker_config(config_path)

    def test_unknown_top_level_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_tracker_config(self._write_config({"budget": {"daily": 1}}))

    def test_unknown_calculation_key_rejected(self):
        """Test that typos are not silently ignored."""
        with pytest.raises(ValueError, match="Unknown keys in calculation"):
            load_tracker_config(self._write_config({"calculation": {"report_month": 3}}))

    def test_invalid_cost_basis_rejected(self):
        with pytest.raises(ValueError, match="'cost_basis' in calculation must be one of"):
            load_tracker_config(self._write_config({"calculation": {"cost_basis": "weekly"}}))

    @pytest.mark.parametrize("value", [0, -3, 1.5, "six", True])
    def test_invalid_months_rejected(self, value):
        with pytest.raises(ValueError, match="report_months"):
            load_tracker_config(self._write_config({"calculation": {"report_months": value}}))

    def test_fractional_unit_price_rejected(self):
        with pytest.raises(ValueError, match="target_unit_price"):
            load_tracker_config(self._write_config({"calculation": {"target_unit_price": 2500.5}}))

    def test_empty_db_path_rejected(self):
        with pytest.raises(ValueError, match="db_path"):
            load_tracker_config(self._write_config({"storage": {"db_path": ""}}))


class TestConfigDefaults:
    """Test in-code defaults."""

    def test_default_config(self):
        config = default_config()
        assert isinstance(config, TrackerConfig)
        assert config.calculation.cost_basis == CostBasis.MONTHLY
        assert config.storage.db_path == "value_tracker.db"

    def test_direct_construction_validates(self):
        with pytest.raises(ValueError):
            CalculationConfig(report_months=0)
