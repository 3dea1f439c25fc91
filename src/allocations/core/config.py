#!/usr/bin/env python3
"""
Configuration Management for the Allocation Engine

Handles environment-based configuration with validation.
Supports multiple environments (development, test, production) and supplies
the session's default decimal policy when the caller does not provide one.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any

from dotenv import load_dotenv

from .currency import CentDiffTarget, DecimalPolicy

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class DecimalConfig:
    """Default decimal precision settings."""

    amount_decimals: int = 2
    local_amount_decimals: int = 2
    exchange_rate_decimals: int = 6
    cent_diff_target: str = CentDiffTarget.LAST.value

    def to_policy(self) -> DecimalPolicy:
        """Build the immutable policy passed into the engine."""
        return DecimalPolicy(
            amount_decimals=self.amount_decimals,
            local_amount_decimals=self.local_amount_decimals,
            exchange_rate_decimals=self.exchange_rate_decimals,
            cent_diff_target=CentDiffTarget(self.cent_diff_target),
        )


@dataclass
class Config:
    """
    Main configuration class for the allocation engine.

    Loads configuration from environment variables with defaults
    and validation for each environment type.
    """

    environment: Environment
    decimals: DecimalConfig

    # Application settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("ALLOCATIONS_ENV", "development"))

        decimals = DecimalConfig(
            amount_decimals=int(os.getenv("ALLOCATIONS_AMOUNT_DECIMALS", "2")),
            local_amount_decimals=int(os.getenv("ALLOCATIONS_LOCAL_AMOUNT_DECIMALS", "2")),
            exchange_rate_decimals=int(os.getenv("ALLOCATIONS_EXCHANGE_RATE_DECIMALS", "6")),
            cent_diff_target=os.getenv("ALLOCATIONS_CENT_DIFF_TARGET", CentDiffTarget.LAST.value).lower(),
        )

        return cls(
            environment=env,
            decimals=decimals,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of errors."""
        errors = []

        for name in ("amount_decimals", "local_amount_decimals", "exchange_rate_decimals"):
            value = getattr(self.decimals, name)
            if value < 0:
                errors.append(f"{name} must be non-negative")
            elif value > 12:
                errors.append(f"{name} must be at most 12")

        valid_targets = [target.value for target in CentDiffTarget]
        if self.decimals.cent_diff_target not in valid_targets:
            errors.append(
                f"cent_diff_target must be one of {', '.join(valid_targets)}, "
                f"got {self.decimals.cent_diff_target!r}"
            )

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"Unknown log level: {self.log_level}")

        return errors

    def decimal_policy(self) -> DecimalPolicy:
        """Default decimal policy for this environment."""
        return self.decimals.to_policy()

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        # Configure format based on environment
        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

        if self.debug:
            logging.getLogger("allocations").setLevel(logging.DEBUG)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "environment": self.environment.value,
            "decimals": dict(self.decimals.__dict__),
            "debug": self.debug,
            "log_level": self.log_level,
        }


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_environment()

        # Validate configuration
        errors = _config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        # Setup logging
        _config.setup_logging()

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()


# Convenience functions
def get_decimal_policy() -> DecimalPolicy:
    """Get the configured default decimal policy."""
    return get_config().decimal_policy()


def is_development() -> bool:
    """Check if running in development environment."""
    return get_config().environment == Environment.DEVELOPMENT


def is_test() -> bool:
    """Check if running in test environment."""
    return get_config().environment == Environment.TEST


def is_production() -> bool:
    """Check if running in production environment."""
    return get_config().environment == Environment.PRODUCTION
