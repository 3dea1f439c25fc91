#!/usr/bin/env python3
"""
Local Amount Projector.

Values each line's allocation in local currency at the header's current rate
and measures the exchange gain/loss against the document's original rate.
"""

from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal

from ..core.currency import ZERO, DecimalPolicy, multiply_amount, subtract_amount
from .models import AllocationLine


def project_line(line: AllocationLine, exh_rate: Decimal, policy: DecimalPolicy) -> AllocationLine:
    """
    Recompute one line's local amount and exchange gain/loss.

    The cent difference is cleared because the local amount it corrected
    has just been recomputed.

    Example:
        alloc_amt=50, exh_rate=1.333, doc_exh_rate=1.3
        -> alloc_local_amt=66.65, exh_gain_loss=1.65
    """
    places = policy.local_amount_decimals
    alloc_local_amt = multiply_amount(line.alloc_amt, exh_rate, places)
    doc_local_amt = multiply_amount(line.alloc_amt, line.doc_exh_rate, places)

    return replace(
        line,
        alloc_local_amt=alloc_local_amt,
        exh_gain_loss=subtract_amount(alloc_local_amt, doc_local_amt, places),
        cent_diff=ZERO,
    )


def project(lines: Sequence[AllocationLine], exh_rate: Decimal, policy: DecimalPolicy) -> tuple[AllocationLine, ...]:
    """Project every line at the header's exchange rate."""
    return tuple(project_line(line, exh_rate, policy) for line in lines)
