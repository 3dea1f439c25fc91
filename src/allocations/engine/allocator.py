#!/usr/bin/env python3
"""
Line Allocator.

Decides how much of the header amount each outstanding document receives.

Key Features:
- Auto allocation: first-fit greedy walk in line order, sign follows each
  document's balance so debit and credit items are both supported
- Bottom-up totals: a zero header total allocates every open balance in full
- Manual allocation: single-line edit checked against the remaining header
  amount and the line's open balance, with every correction reported
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum

from ..core.currency import ZERO, DecimalPolicy, with_sign_of
from .errors import LineNotFoundError
from .models import AllocationLine

logger = logging.getLogger(__name__)


class AllocationWarning(Enum):
    """Non-fatal corrections the caller should surface to the user."""

    ZERO_TOTAL = "zero_total"  # manual edit with no header total
    NO_REMAINING = "no_remaining"  # header already fully allocated by other lines
    REMAINING_EXCEEDED = "remaining_exceeded"  # clamped to what is left of the header
    BALANCE_EXCEEDED = "balance_exceeded"  # clamped to the document's open balance

    @property
    def message(self) -> str:
        """User-facing description of the correction."""
        return _WARNING_MESSAGES[self]


_WARNING_MESSAGES = {
    AllocationWarning.ZERO_TOTAL: (
        "Total Amount is zero. Cannot manually allocate. "
        "Please use Auto Allocation or enter Total Amount."
    ),
    AllocationWarning.NO_REMAINING: "Nothing left to allocate. The allocation was set to zero.",
    AllocationWarning.REMAINING_EXCEEDED: "Allocation exceeds the remaining amount. It has been reduced.",
    AllocationWarning.BALANCE_EXCEEDED: "Allocation exceeds the document balance. It has been reduced.",
}


@dataclass(frozen=True)
class AutoAllocation:
    """Result of an automatic allocation pass."""

    lines: tuple[AllocationLine, ...]
    alloc_tot_amt: Decimal
    derived_total: bool  # header total should be taken from alloc_tot_amt


@dataclass(frozen=True)
class ManualAllocation:
    """Result of a single-line manual edit."""

    lines: tuple[AllocationLine, ...]
    alloc_amt: Decimal
    was_auto_zeroed: bool
    corrections: tuple[AllocationWarning, ...] = ()


def auto_allocate(lines: Sequence[AllocationLine], tot_amt: Decimal, policy: DecimalPolicy) -> AutoAllocation:
    """
    Distribute ``tot_amt`` across lines in their current order.

    Each line receives ``min(remaining, abs(doc_bal_amt))`` with the sign of
    its balance. Balances are cut to amount precision first, so a line never
    takes more than its open balance and the shares sum exactly. The walk is
    deterministic and order-dependent: earlier lines are filled first and
    later lines get nothing once the amount runs out.

    Args:
        lines: Ordered allocation lines (existing allocations are discarded)
        tot_amt: Header transaction total; zero means allocate every balance
        policy: Decimal precision settings

    Returns:
        AutoAllocation with the new lines and their allocated sum

    Example:
        balances [100, 50, 30], tot_amt 120 -> allocations [100, 20, 0]
    """
    derived_total = tot_amt == 0
    remaining = abs(policy.round_amount(tot_amt))
    nothing = policy.round_amount(ZERO)
    allocated: list[AllocationLine] = []

    for line in lines:
        capacity = policy.truncate_amount(abs(line.doc_bal_amt))
        if derived_total:
            share = capacity
        elif remaining <= 0:
            share = nothing
        else:
            share = min(remaining, capacity)
            remaining -= share

        allocated.append(replace(line.cleared(), alloc_amt=with_sign_of(share, line.doc_bal_amt)))

    alloc_tot_amt = policy.round_amount(sum((line.alloc_amt for line in allocated), ZERO))

    if not derived_total and remaining > 0:
        logger.info("Auto allocation left %s unallocated: open balances are exhausted", remaining)

    return AutoAllocation(lines=tuple(allocated), alloc_tot_amt=alloc_tot_amt, derived_total=derived_total)


def manual_allocate(
    lines: Sequence[AllocationLine],
    row_index: int,
    requested_amt: Decimal,
    tot_amt: Decimal,
    policy: DecimalPolicy,
) -> ManualAllocation:
    """
    Apply a user-entered allocation to one line.

    Rules, in order:
    1. A zero header total rejects the edit and forces the line to zero
    2. If the other lines already use up the header total, the line is zeroed
    3. Otherwise the request is clamped to the remaining header amount and
       then to the line's open balance; each clamp is reported

    Args:
        lines: Ordered allocation lines
        row_index: Position of the edited line
        requested_amt: Amount the user typed
        tot_amt: Header transaction total
        policy: Decimal precision settings

    Returns:
        ManualAllocation with the updated lines and reported corrections

    Raises:
        LineNotFoundError: If ``row_index`` is outside the line set
    """
    if row_index < 0 or row_index >= len(lines):
        raise LineNotFoundError(f"Row {row_index} is outside the line set of {len(lines)} lines")

    line = lines[row_index]
    requested = policy.round_amount(requested_amt)
    corrections: list[AllocationWarning] = []
    was_auto_zeroed = False

    if tot_amt == 0:
        value = policy.round_amount(ZERO)
        corrections.append(AllocationWarning.ZERO_TOTAL)
    else:
        others = sum((other.alloc_amt for i, other in enumerate(lines) if i != row_index), ZERO)
        remaining = policy.round_amount(tot_amt - others)

        if remaining <= 0:
            value = policy.round_amount(ZERO)
            was_auto_zeroed = True
            corrections.append(AllocationWarning.NO_REMAINING)
        else:
            value = requested
            if abs(value) > remaining:
                value = with_sign_of(remaining, value)
                corrections.append(AllocationWarning.REMAINING_EXCEEDED)

            capacity = policy.truncate_amount(abs(line.doc_bal_amt))
            if abs(value) > capacity:
                value = with_sign_of(capacity, value)
                corrections.append(AllocationWarning.BALANCE_EXCEEDED)

    for correction in corrections:
        logger.warning("Item %s: requested %s, %s -> %s", line.item_no, requested, correction.value, value)

    updated = list(lines)
    updated[row_index] = replace(line, alloc_amt=value)
    return ManualAllocation(
        lines=tuple(updated),
        alloc_amt=value,
        was_auto_zeroed=was_auto_zeroed,
        corrections=tuple(corrections),
    )
