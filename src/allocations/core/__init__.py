"""
Core Utilities Package

Shared decimal handling, configuration and JSON I/O used by the engine and CLI.

This package provides:
- Decimal normalization and rounding per amount class (DecimalPolicy)
- Configuration management for environment-specific settings
- JSON snapshot reading and writing without float conversion
"""

from .config import (
    Config,
    DecimalConfig,
    Environment,
    get_config,
    get_decimal_policy,
    is_development,
    is_production,
    is_test,
    reload_config,
)
from .currency import (
    ZERO,
    CentDiffTarget,
    DecimalPolicy,
    divide_amount,
    format_amount,
    multiply_amount,
    round_to,
    subtract_amount,
    sum_amounts,
    to_amount,
    truncate_to,
    with_sign_of,
)

__all__ = [
    # Configuration
    "Config",
    "DecimalConfig",
    "Environment",
    "get_config",
    "get_decimal_policy",
    "is_development",
    "is_production",
    "is_test",
    "reload_config",
    # Currency utilities
    "ZERO",
    "CentDiffTarget",
    "DecimalPolicy",
    "divide_amount",
    "format_amount",
    "multiply_amount",
    "round_to",
    "subtract_amount",
    "sum_amounts",
    "to_amount",
    "truncate_to",
    "with_sign_of",
]
