"""
Configuration management and loading.

Handles calculation policy and storage settings.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Dict

import yaml

from value_tracker.core.amortization import CostBasis
from value_tracker.core.progress import DEFAULT_LIFETIME_MONTHS, DEFAULT_TARGET_UNIT_PRICE
from value_tracker.core.reporting import DEFAULT_REPORT_MONTHS
from value_tracker.storage.db import DEFAULT_DB_PATH


@dataclass(frozen=True)
class CalculationConfig:
    """Policy knobs for the value computation engine."""
    cost_basis: CostBasis = CostBasis.MONTHLY
    default_lifetime_months: int = DEFAULT_LIFETIME_MONTHS
    target_unit_price: Decimal = DEFAULT_TARGET_UNIT_PRICE
    report_months: int = DEFAULT_REPORT_MONTHS

    def __post_init__(self):
        """Validate calculation values are positive."""
        if self.default_lifetime_months <= 0:
            raise ValueError("default_lifetime_months must be > 0")
        if self.target_unit_price <= 0:
            raise ValueError("target_unit_price must be > 0")
        if self.report_months <= 0:
            raise ValueError("report_months must be > 0")


@dataclass(frozen=True)
class StorageConfig:
    """Where tracked records are stored."""
    db_path: str = DEFAULT_DB_PATH

    def __post_init__(self):
        if not self.db_path or not self.db_path.strip():
            raise ValueError("db_path cannot be empty")


@dataclass(frozen=True)
class TrackerConfig:
    """Complete tracker configuration."""
    calculation: CalculationConfig = field(default_factory=CalculationConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def default_config() -> TrackerConfig:
    """Configuration used when no file is given."""
    return TrackerConfig()


def load_tracker_config(path: str) -> TrackerConfig:
    """Load and validate tracker configuration from YAML file.

    Both sections are optional and omitted keys take their defaults, but
    unknown keys are rejected so typos do not silently fall back.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated TrackerConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Tracker config file not found: {path}")

    # Load YAML content
    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    # Validate top-level structure
    allowed_top_keys = {'calculation', 'storage'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    calculation = _parse_calculation_config(
        _section(raw_config, 'calculation'), "calculation"
    )
    storage = _parse_storage_config(_section(raw_config, 'storage'), "storage")

    return TrackerConfig(calculation=calculation, storage=storage)


def _section(raw_config: Dict, name: str) -> Dict:
    data = raw_config.get(name) or {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    return data


def _positive_int(data: Dict, key: str, path: str, default: int) -> int:
    value = data.get(key, default)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"'{key}' in {path} must be a positive integer")
    return value


def _parse_calculation_config(data: Dict, path: str) -> CalculationConfig:
    """Parse and validate the calculation section.

    Args:
        data: Calculation configuration data
        path: Path for error messages

    Returns:
        Validated CalculationConfig

    Raises:
        ValueError: If configuration is invalid
    """
    allowed_keys = {'cost_basis', 'default_lifetime_months', 'target_unit_price', 'report_months'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    basis_str = data.get('cost_basis', CostBasis.MONTHLY.value)
    if not isinstance(basis_str, str):
        raise ValueError(f"'cost_basis' in {path} must be a string")
    try:
        basis = CostBasis(basis_str.lower())
    except ValueError:
        valid_bases = [b.value for b in CostBasis]
        raise ValueError(f"'cost_basis' in {path} must be one of: {valid_bases}")

    unit_price = data.get('target_unit_price', int(DEFAULT_TARGET_UNIT_PRICE))
    if isinstance(unit_price, bool) or not isinstance(unit_price, int) or unit_price <= 0:
        raise ValueError(f"'target_unit_price' in {path} must be a positive whole amount")

    return CalculationConfig(
        cost_basis=basis,
        default_lifetime_months=_positive_int(
            data, 'default_lifetime_months', path, DEFAULT_LIFETIME_MONTHS
        ),
        target_unit_price=Decimal(unit_price),
        report_months=_positive_int(data, 'report_months', path, DEFAULT_REPORT_MONTHS),
    )


def _parse_storage_config(data: Dict, path: str) -> StorageConfig:
    """Parse and validate the storage section."""
    allowed_keys = {'db_path'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    db_path = data.get('db_path', DEFAULT_DB_PATH)
    if not isinstance(db_path, str) or not db_path.strip():
        raise ValueError(f"'db_path' in {path} must be a non-empty string")

    return StorageConfig(db_path=db_path)
