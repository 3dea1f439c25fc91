"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

from decimal import Decimal

import pytest

from allocations.core.currency import CentDiffTarget, DecimalPolicy


@pytest.fixture
def policy() -> DecimalPolicy:
    """Two-decimal amounts, six-decimal rates, cent diff on the last line."""
    return DecimalPolicy(amount_decimals=2, local_amount_decimals=2, exchange_rate_decimals=6)


@pytest.fixture
def largest_policy() -> DecimalPolicy:
    """Policy that puts cent differences on the largest allocation."""
    return DecimalPolicy(cent_diff_target=CentDiffTarget.LARGEST)


@pytest.fixture
def outstanding_documents() -> list[dict]:
    """Outstanding-transaction records as returned by the lookup service."""
    return [
        {
            "transactionId": 1,
            "documentId": "5001",
            "documentNo": "AP-INV-5001",
            "referenceNo": "PO-77",
            "currencyId": 2,
            "exhRate": Decimal("1.350000"),
            "totAmt": Decimal("1000.00"),
            "totLocalAmt": Decimal("1350.00"),
            "balAmt": Decimal("600.00"),
            "balLocalAmt": Decimal("810.00"),
        },
        {
            "transactionId": 1,
            "documentId": "5002",
            "documentNo": "AP-INV-5002",
            "currencyId": 2,
            "exhRate": "1.360000",
            "totAmt": "250.00",
            "totLocalAmt": "340.00",
            "balAmt": "250.00",
            "balLocalAmt": "340.00",
        },
        {
            "transactionId": 3,
            "documentId": "7100",
            "documentNo": "AP-DN-7100",
            "currencyId": 2,
            "exhRate": 1.34,
            "totAmt": -80,
            "totLocalAmt": -107.2,
            "balAmt": -80,
            "balLocalAmt": -107.2,
        },
    ]


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables and drop any cached configuration."""
    monkeypatch.setenv("ALLOCATIONS_ENV", "test")
    monkeypatch.delenv("ALLOCATIONS_AMOUNT_DECIMALS", raising=False)
    monkeypatch.delenv("ALLOCATIONS_LOCAL_AMOUNT_DECIMALS", raising=False)
    monkeypatch.delenv("ALLOCATIONS_EXCHANGE_RATE_DECIMALS", raising=False)
    monkeypatch.delenv("ALLOCATIONS_CENT_DIFF_TARGET", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setattr("allocations.core.config._config", None)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for complete workflows"
    )
    config.addinivalue_line(
        "markers", "currency: Tests for currency handling and precision"
    )
    config.addinivalue_line(
        "markers", "allocation: Tests for line allocation"
    )
    config.addinivalue_line(
        "markers", "reconciliation: Tests for cent-difference reconciliation"
    )
    config.addinivalue_line(
        "markers", "cli: Tests for the command-line interface"
    )
