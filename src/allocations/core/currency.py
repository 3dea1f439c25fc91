#!/usr/bin/env python3
"""
Currency Arithmetic and Decimal Policy

Decimal handling for the allocation engine.
All amounts are ``decimal.Decimal`` and every rounding goes through one helper
so transaction, local and exchange-rate precision are applied consistently.

Amount Classes:
- Transaction amounts: rounded to ``amount_decimals``
- Local (base currency) amounts: rounded to ``local_amount_decimals``
- Exchange rates: rounded to ``exchange_rate_decimals``

Key Principles:
- Never use floating-point arithmetic for currency calculations
- Normalize loose input once, at the boundary, with ``to_amount``
- Round half away from zero so debit and credit amounts round symmetrically
- A zero divisor yields zero, never an infinity or NaN
"""

from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

ZERO = Decimal("0")


class CentDiffTarget(Enum):
    """Which line absorbs a rounding residue."""

    LAST = "last"  # last line with a non-zero allocation
    LARGEST = "largest"  # line with the largest absolute allocation


@dataclass(frozen=True)
class DecimalPolicy:
    """
    Rounding rules per amount class.

    Supplied by the caller once per session and never mutated by the engine.

    Examples:
        >>> policy = DecimalPolicy(amount_decimals=2, local_amount_decimals=2)
        >>> policy.round_local(Decimal("66.645"))
        Decimal('66.65')
    """

    amount_decimals: int = 2
    local_amount_decimals: int = 2
    exchange_rate_decimals: int = 6
    cent_diff_target: CentDiffTarget = CentDiffTarget.LAST

    def __post_init__(self) -> None:
        for name in ("amount_decimals", "local_amount_decimals", "exchange_rate_decimals"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        if not isinstance(self.cent_diff_target, CentDiffTarget):
            object.__setattr__(self, "cent_diff_target", CentDiffTarget(self.cent_diff_target))

    def round_amount(self, value: Decimal) -> Decimal:
        """Round a transaction-currency amount."""
        return round_to(value, self.amount_decimals)

    def truncate_amount(self, value: Decimal) -> Decimal:
        """Cut a transaction-currency amount to precision without rounding up."""
        return truncate_to(value, self.amount_decimals)

    def round_local(self, value: Decimal) -> Decimal:
        """Round a local-currency amount."""
        return round_to(value, self.local_amount_decimals)

    def round_rate(self, value: Decimal) -> Decimal:
        """Round an exchange rate."""
        return round_to(value, self.exchange_rate_decimals)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "DecimalPolicy":
        """
        Create DecimalPolicy from a settings dict.

        Accepts the wire names used by the accounting UI (``amtDec``,
        ``locAmtDec``, ``exhRateDec``) as well as the attribute names.
        Missing keys fall back to the defaults.
        """
        if not data:
            return cls()
        defaults = cls()
        return cls(
            amount_decimals=int(data.get("amtDec", data.get("amount_decimals", defaults.amount_decimals))),
            local_amount_decimals=int(
                data.get("locAmtDec", data.get("local_amount_decimals", defaults.local_amount_decimals))
            ),
            exchange_rate_decimals=int(
                data.get("exhRateDec", data.get("exchange_rate_decimals", defaults.exchange_rate_decimals))
            ),
            cent_diff_target=CentDiffTarget(
                data.get("centDiffTarget", data.get("cent_diff_target", defaults.cent_diff_target.value))
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format read by ``from_dict``."""
        return {
            "amtDec": self.amount_decimals,
            "locAmtDec": self.local_amount_decimals,
            "exhRateDec": self.exchange_rate_decimals,
            "centDiffTarget": self.cent_diff_target.value,
        }


def to_amount(value: Any) -> Decimal:
    """
    Normalize loose numeric input to Decimal.

    Handles the formats the UI layer hands over and returns zero for
    anything that is not a finite number.

    Args:
        value: Decimal, int, float, or string like '1,234.50' / '$12.34'

    Returns:
        Decimal value, ``Decimal('0')`` for missing or invalid input

    Examples:
        to_amount('1,234.50') -> Decimal('1234.50')
        to_amount(1.005) -> Decimal('1.005')
        to_amount(None) -> Decimal('0')
        to_amount('n/a') -> Decimal('0')
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)

    try:
        # str() keeps the shortest repr, so 1.005 stays 1.005
        clean = str(value).replace("$", "").replace(",", "").strip()
        if not clean:
            return ZERO
        result = Decimal(clean)
    except (ValueError, TypeError, InvalidOperation):
        return ZERO

    return result if result.is_finite() else ZERO


def round_to(value: Decimal, places: int) -> Decimal:
    """
    Round to a fixed number of decimal places, half away from zero.

    Example:
        round_to(Decimal('1.005'), 2) -> Decimal('1.01')
        round_to(Decimal('-1.005'), 2) -> Decimal('-1.01')
    """
    quantum = Decimal(1).scaleb(-places)
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def truncate_to(value: Decimal, places: int) -> Decimal:
    """
    Cut to a fixed number of decimal places, toward zero.

    Used for ceilings that a rounded amount must never exceed.

    Example:
        truncate_to(Decimal('10.005'), 2) -> Decimal('10.00')
        truncate_to(Decimal('0.009'), 2) -> Decimal('0.00')
    """
    quantum = Decimal(1).scaleb(-places)
    return value.quantize(quantum, rounding=ROUND_DOWN)


def multiply_amount(base_amount: Decimal, multiplier: Decimal, places: int) -> Decimal:
    """
    Multiply and round.

    Used for exchange-rate conversions (amount × rate).
    """
    return round_to(base_amount * multiplier, places)


def divide_amount(base_amount: Decimal, divisor: Decimal, places: int) -> Decimal:
    """
    Divide and round, returning zero when the divisor is not positive.

    Used to derive a transaction amount from a pay-currency total.
    """
    if divisor <= 0:
        return round_to(ZERO, places)
    return round_to(base_amount / divisor, places)


def subtract_amount(base_amount: Decimal, subtraction: Decimal, places: int) -> Decimal:
    """Subtract and round."""
    return round_to(base_amount - subtraction, places)


def with_sign_of(magnitude: Decimal, reference: Decimal) -> Decimal:
    """
    Apply the sign of ``reference`` to ``abs(magnitude)``.

    Zero references keep a positive sign, matching how a zero balance is
    treated as a debit item. A zero magnitude stays an unsigned zero.
    """
    if reference < 0 and magnitude:
        return -abs(magnitude)
    return abs(magnitude)


def sum_amounts(amounts: list[Decimal], places: int) -> Decimal:
    """Sum and round once at the end."""
    return round_to(sum(amounts, ZERO), places)


def format_amount(value: Decimal, places: int) -> str:
    """
    Format for display with a fixed number of decimal places.

    Example:
        format_amount(Decimal('1234.5'), 2) -> '1,234.50'
    """
    return f"{round_to(value, places):,.{places}f}"
