#!/usr/bin/env python3
"""
Cent Difference Reconciler.

Rounding every line's local amount on its own can leave the line sum a cent
or two away from the header's local total. This module computes what is
still unallocated and, when the transaction amount is fully allocated, moves
the whole local residue onto one deterministic line as its ``cent_diff``.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from ..core.currency import ZERO, CentDiffTarget, DecimalPolicy, subtract_amount, sum_amounts
from .models import AllocationLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unallocated:
    """Header amounts not yet covered by the lines."""

    un_alloc_amt: Decimal
    un_alloc_local_amt: Decimal


@dataclass(frozen=True)
class LineTotals:
    """Header aggregates derived from the lines."""

    alloc_tot_amt: Decimal
    alloc_tot_local_amt: Decimal  # includes cent differences
    exh_gain_loss: Decimal
    cent_diff_total: Decimal


def calculate_unallocated(
    tot_amt: Decimal,
    tot_local_amt: Decimal,
    alloc_tot_amt: Decimal,
    alloc_tot_local_amt: Decimal,
    policy: DecimalPolicy,
) -> Unallocated:
    """
    Compute the unallocated transaction and local amounts.

    ``alloc_tot_local_amt`` must already include any cent differences, so a
    reconciled set reports a zero local residue.
    """
    return Unallocated(
        un_alloc_amt=subtract_amount(tot_amt, alloc_tot_amt, policy.amount_decimals),
        un_alloc_local_amt=subtract_amount(tot_local_amt, alloc_tot_local_amt, policy.local_amount_decimals),
    )


def select_target(lines: Sequence[AllocationLine], target: CentDiffTarget) -> int:
    """
    Pick the single line that absorbs a rounding residue.

    Args:
        lines: Ordered allocation lines
        target: LAST picks the last line with a non-zero allocation; LARGEST
            picks the largest absolute allocation, later lines winning ties

    Returns:
        Index of the target line, or -1 when no line is allocated
    """
    candidates = [i for i, line in enumerate(lines) if line.is_allocated]
    if not candidates:
        return -1
    if target == CentDiffTarget.LARGEST:
        return max(candidates, key=lambda i: (abs(lines[i].alloc_amt), i))
    return candidates[-1]


def reconcile(
    lines: Sequence[AllocationLine],
    un_alloc_amt: Decimal,
    un_alloc_local_amt: Decimal,
    policy: DecimalPolicy,
) -> tuple[tuple[AllocationLine, ...], bool]:
    """
    Put the local rounding residue onto one line.

    Nothing happens when the local residue is already zero, or when part of
    the transaction amount is still unallocated (the residue is then real
    money, not rounding noise).

    Args:
        lines: Ordered, projected allocation lines
        un_alloc_amt: Unallocated transaction amount
        un_alloc_local_amt: Unallocated local amount, cent differences included
        policy: Decimal precision and cent-diff target settings

    Returns:
        Tuple of (lines, applied)
    """
    lines = tuple(lines)
    if un_alloc_local_amt == 0 or un_alloc_amt != 0:
        return lines, False

    index = select_target(lines, policy.cent_diff_target)
    if index == -1:
        logger.warning("Local residue %s found but no line is allocated to absorb it", un_alloc_local_amt)
        return lines, False

    line = lines[index]
    cent_diff = policy.round_local(line.cent_diff + un_alloc_local_amt)
    logger.debug("Applying cent difference %s to item %s", un_alloc_local_amt, line.item_no)

    updated = list(lines)
    updated[index] = replace(line, cent_diff=cent_diff)
    return tuple(updated), True


def summarize(lines: Sequence[AllocationLine], policy: DecimalPolicy) -> LineTotals:
    """
    Sum the lines into header aggregates.

    The header gain/loss treats cent differences as rounding noise that
    offsets gain, and never reports below zero.
    """
    cent_diff_total = sum_amounts([line.cent_diff for line in lines], policy.local_amount_decimals)
    gain_loss = sum_amounts([line.exh_gain_loss for line in lines], policy.local_amount_decimals)

    return LineTotals(
        alloc_tot_amt=sum_amounts([line.alloc_amt for line in lines], policy.amount_decimals),
        alloc_tot_local_amt=sum_amounts([line.settled_local_amt for line in lines], policy.local_amount_decimals),
        exh_gain_loss=policy.round_local(max(ZERO, gain_loss - cent_diff_total)),
        cent_diff_total=cent_diff_total,
    )
