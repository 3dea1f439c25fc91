#!/usr/bin/env python3
"""
Currency Converter for Allocation Headers.

Resolves the header's transaction, local and pay-currency totals from
whichever total is authoritative:

- Same currency: the transaction total drives everything
- Different currency: the pay-currency total drives everything, and the
  transaction total is derived from it through the transaction exchange rate
"""

import logging
from dataclasses import replace
from enum import Enum

from ..core.currency import DecimalPolicy, divide_amount, multiply_amount
from .models import AllocationHeader

logger = logging.getLogger(__name__)


class ConversionMode(Enum):
    """How the header totals are resolved."""

    SAME_CURRENCY = "same_currency"
    DIFFERENT_CURRENCY = "different_currency"


def detect_mode(header: AllocationHeader) -> ConversionMode:
    """Pick the conversion mode from the header's currency ids."""
    if header.is_same_currency:
        return ConversionMode.SAME_CURRENCY
    return ConversionMode.DIFFERENT_CURRENCY


def calculate_same_currency(header: AllocationHeader, policy: DecimalPolicy) -> AllocationHeader:
    """
    Resolve totals when settlement happens in the transaction currency.

    Example:
        tot_amt=100, exh_rate=1.333 -> tot_local_amt=133.30,
        pay_tot_amt=100, pay_tot_local_amt=133.30
    """
    exh_rate = policy.round_rate(header.exh_rate)
    tot_amt = policy.round_amount(header.tot_amt)
    tot_local_amt = multiply_amount(tot_amt, exh_rate, policy.local_amount_decimals)

    return replace(
        header,
        exh_rate=exh_rate,
        pay_exh_rate=exh_rate,
        tot_amt=tot_amt,
        tot_local_amt=tot_local_amt,
        pay_tot_amt=tot_amt,
        pay_tot_local_amt=tot_local_amt,
    )


def calculate_diff_currency(header: AllocationHeader, policy: DecimalPolicy) -> AllocationHeader:
    """
    Resolve totals when the pay currency differs from the transaction currency.

    A zero or negative transaction rate means no conversion is possible, so
    the derived transaction totals fall back to zero.

    Example:
        pay_tot_amt=500, pay_exh_rate=1, exh_rate=1.25 -> pay_tot_local_amt=500.00,
        tot_amt=400.00, tot_local_amt=500.00
    """
    exh_rate = policy.round_rate(header.exh_rate)
    pay_exh_rate = policy.round_rate(header.pay_exh_rate)
    pay_tot_amt = policy.round_amount(header.pay_tot_amt)

    pay_tot_local_amt = multiply_amount(pay_tot_amt, pay_exh_rate, policy.local_amount_decimals)
    tot_amt = divide_amount(pay_tot_amt, exh_rate, policy.amount_decimals)
    tot_local_amt = multiply_amount(tot_amt, exh_rate, policy.local_amount_decimals)

    if exh_rate <= 0 and pay_tot_amt != 0:
        logger.warning("Exchange rate is %s; transaction total cannot be derived and is set to zero", exh_rate)

    return replace(
        header,
        exh_rate=exh_rate,
        pay_exh_rate=pay_exh_rate,
        pay_tot_amt=pay_tot_amt,
        pay_tot_local_amt=pay_tot_local_amt,
        tot_amt=tot_amt,
        tot_local_amt=tot_local_amt,
    )


def resolve(
    header: AllocationHeader,
    policy: DecimalPolicy,
    mode: ConversionMode | None = None,
) -> AllocationHeader:
    """
    Resolve header totals for the given (or detected) conversion mode.

    Args:
        header: Header with the authoritative total and exchange rates set
        policy: Decimal precision settings
        mode: Conversion mode; detected from the currency ids when omitted

    Returns:
        New header with transaction, local and pay totals consistent
    """
    mode = mode or detect_mode(header)
    if mode == ConversionMode.SAME_CURRENCY:
        resolved = calculate_same_currency(header, policy)
    else:
        resolved = calculate_diff_currency(header, policy)

    logger.debug(
        "Resolved header (%s): tot_amt=%s tot_local_amt=%s pay_tot_amt=%s",
        mode.value,
        resolved.tot_amt,
        resolved.tot_local_amt,
        resolved.pay_tot_amt,
    )
    return resolved
