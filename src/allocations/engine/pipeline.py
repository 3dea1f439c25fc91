#!/usr/bin/env python3
"""
Allocation Recompute Pipeline

Runs one recompute cycle per user action:

    IDLE -> VALIDATING -> ALLOCATING -> PROJECTING -> RECONCILING -> IDLE

Every operation takes an ``AllocationSnapshot`` and returns a
``RecomputeResult`` holding a new snapshot; the input is never modified.
A failed validation returns the input snapshot untouched. Clamps and other
corrections in later stages still complete the cycle and come back as
warnings.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any

from ..core.currency import ZERO, DecimalPolicy, to_amount
from . import allocator
from .allocator import AllocationWarning
from .converter import resolve
from .errors import AllocationInputError, LineNotFoundError
from .models import AllocationHeader, AllocationLine, AllocationSnapshot
from .projector import project, project_line
from .reconciler import calculate_unallocated, reconcile, summarize
from .validator import check_allocation

logger = logging.getLogger(__name__)


class RecomputeStage(Enum):
    """Stages of one recompute cycle."""

    IDLE = "idle"
    VALIDATING = "validating"
    ALLOCATING = "allocating"
    PROJECTING = "projecting"
    RECONCILING = "reconciling"


@dataclass(frozen=True)
class RecomputeResult:
    """
    Outcome of one recompute cycle.

    ``ok`` is False only when validation blocked the action; in that case
    ``snapshot`` is the caller's input and ``message`` says why.
    """

    snapshot: AllocationSnapshot
    ok: bool = True
    warnings: tuple[AllocationWarning, ...] = ()
    message: str = ""
    cent_diff_applied: bool = False
    stages: tuple[RecomputeStage, ...] = ()

    @property
    def was_auto_zeroed(self) -> bool:
        """True when a manual edit was zeroed because nothing was left to allocate."""
        return AllocationWarning.NO_REMAINING in self.warnings

    @property
    def messages(self) -> list[str]:
        """User-facing messages for every warning, validation failure first."""
        messages = [] if self.ok else [self.message]
        return messages + [warning.message for warning in self.warnings]


class _Cycle:
    """Tracks and logs stage transitions for one recompute."""

    def __init__(self, operation: str):
        self.operation = operation
        self.stages: list[RecomputeStage] = []

    def enter(self, stage: RecomputeStage) -> None:
        previous = self.stages[-1] if self.stages else RecomputeStage.IDLE
        logger.debug("%s: %s -> %s", self.operation, previous.value, stage.value)
        self.stages.append(stage)

    def finish(self) -> tuple[RecomputeStage, ...]:
        self.enter(RecomputeStage.IDLE)
        return tuple(self.stages)


def settle(
    header: AllocationHeader,
    lines: Sequence[AllocationLine],
    policy: DecimalPolicy,
) -> tuple[AllocationHeader, tuple[AllocationLine, ...], bool]:
    """
    Reconcile projected lines and push the aggregates onto the header.

    Existing cent differences are discarded first, so the residue is computed
    once per cycle from freshly rounded local amounts.

    Returns:
        Tuple of (header, lines, cent_diff_applied)
    """
    lines = tuple(replace(line, cent_diff=ZERO) if line.cent_diff else line for line in lines)
    totals = summarize(lines, policy)
    unallocated = calculate_unallocated(
        header.tot_amt,
        header.tot_local_amt,
        totals.alloc_tot_amt,
        totals.alloc_tot_local_amt,
        policy,
    )

    lines, applied = reconcile(lines, unallocated.un_alloc_amt, unallocated.un_alloc_local_amt, policy)
    if applied:
        totals = summarize(lines, policy)

    header = replace(
        header,
        alloc_tot_amt=totals.alloc_tot_amt,
        alloc_tot_local_amt=totals.alloc_tot_local_amt,
        exh_gain_loss=totals.exh_gain_loss,
    )
    return header, lines, applied


def auto_allocate(snapshot: AllocationSnapshot) -> RecomputeResult:
    """
    Validate and auto-allocate the header total across all lines.

    When the header total is zero, every open balance is allocated and the
    header totals (transaction, local and pay legs) are derived from the sum.
    """
    cycle = _Cycle("auto_allocate")
    policy = snapshot.policy

    cycle.enter(RecomputeStage.VALIDATING)
    is_valid, message = check_allocation(snapshot.lines)
    if not is_valid:
        logger.warning("Auto allocation blocked: %s", message)
        return RecomputeResult(snapshot=snapshot, ok=False, message=message, stages=cycle.finish())

    cycle.enter(RecomputeStage.ALLOCATING)
    header = resolve(snapshot.header, policy)
    allocation = allocator.auto_allocate(snapshot.lines, header.tot_amt, policy)

    cycle.enter(RecomputeStage.PROJECTING)
    lines = project(allocation.lines, header.exh_rate, policy)

    if allocation.derived_total:
        sums = summarize(lines, policy)
        header = replace(
            header,
            tot_amt=sums.alloc_tot_amt,
            tot_local_amt=sums.alloc_tot_local_amt,
            pay_tot_amt=sums.alloc_tot_amt,
            pay_tot_local_amt=sums.alloc_tot_local_amt,
        )
        logger.info("Header total derived from selected documents: %s", sums.alloc_tot_amt)

    cycle.enter(RecomputeStage.RECONCILING)
    header, lines, applied = settle(header, lines, policy)

    logger.info(
        "Auto allocated %s (%s local) across %d lines",
        header.alloc_tot_amt,
        header.alloc_tot_local_amt,
        sum(1 for line in lines if line.is_allocated),
    )
    return RecomputeResult(
        snapshot=replace(snapshot, header=header, lines=lines),
        cent_diff_applied=applied,
        stages=cycle.finish(),
    )


def edit_allocation(snapshot: AllocationSnapshot, item_no: int, amount: Any) -> RecomputeResult:
    """
    Apply a manual allocation to the line with ``item_no``.

    Manual edits skip validation because they touch a single line. Header
    totals are resolved first, so a snapshot missing its local total is
    reconciled against the converted one. Re-entering the current value is a
    no-op only while there is a total to allocate against.

    Raises:
        LineNotFoundError: If no line has ``item_no``
    """
    index = snapshot.index_of(item_no)
    if index == -1:
        raise LineNotFoundError(f"No allocation line with item number {item_no}")

    policy = snapshot.policy
    header = resolve(snapshot.header, policy)
    requested = policy.round_amount(to_amount(amount))
    unchanged = header == snapshot.header and snapshot.lines[index].alloc_amt == requested
    if unchanged and header.tot_amt != 0:
        return RecomputeResult(snapshot=snapshot)

    cycle = _Cycle("edit_allocation")
    cycle.enter(RecomputeStage.ALLOCATING)
    manual = allocator.manual_allocate(snapshot.lines, index, requested, header.tot_amt, policy)

    cycle.enter(RecomputeStage.PROJECTING)
    lines = list(manual.lines)
    lines[index] = project_line(lines[index], header.exh_rate, policy)

    cycle.enter(RecomputeStage.RECONCILING)
    header, settled, applied = settle(header, lines, policy)

    return RecomputeResult(
        snapshot=replace(snapshot, header=header, lines=settled),
        warnings=manual.corrections,
        cent_diff_applied=applied,
        stages=cycle.finish(),
    )


def recompute(snapshot: AllocationSnapshot, clear_allocations: bool = False) -> RecomputeResult:
    """
    Resolve header currency totals and recompute every line.

    Args:
        snapshot: Current state
        clear_allocations: True after a total or currency change (the old
            allocations no longer relate to the total); False after an
            exchange-rate-only change (allocations are kept and reprojected)
    """
    cycle = _Cycle("recompute")
    policy = snapshot.policy
    header = resolve(snapshot.header, policy)
    lines: Sequence[AllocationLine] = snapshot.lines

    if clear_allocations:
        cycle.enter(RecomputeStage.ALLOCATING)
        lines = tuple(line.cleared() for line in lines)

    cycle.enter(RecomputeStage.PROJECTING)
    lines = project(lines, header.exh_rate, policy)

    cycle.enter(RecomputeStage.RECONCILING)
    header, lines, applied = settle(header, lines, policy)

    return RecomputeResult(
        snapshot=replace(snapshot, header=header, lines=lines),
        cent_diff_applied=applied,
        stages=cycle.finish(),
    )


def reset_allocations(snapshot: AllocationSnapshot) -> RecomputeResult:
    """Set every line's allocation back to zero."""
    if not snapshot.lines:
        return RecomputeResult(snapshot=snapshot)

    cycle = _Cycle("reset_allocations")
    policy = snapshot.policy
    header = resolve(snapshot.header, policy)

    cycle.enter(RecomputeStage.ALLOCATING)
    lines = tuple(line.cleared() for line in snapshot.lines)

    cycle.enter(RecomputeStage.PROJECTING)
    lines = project(lines, header.exh_rate, policy)

    cycle.enter(RecomputeStage.RECONCILING)
    header, lines, applied = settle(header, lines, policy)

    return RecomputeResult(
        snapshot=replace(snapshot, header=header, lines=lines),
        cent_diff_applied=applied,
        stages=cycle.finish(),
    )


def change_total(
    snapshot: AllocationSnapshot,
    tot_amt: Any = None,
    pay_tot_amt: Any = None,
) -> RecomputeResult:
    """
    Change the header total and clear allocations.

    In same-currency mode ``tot_amt`` is authoritative; in different-currency
    mode ``pay_tot_amt`` is. Clearing ``tot_amt`` to zero clears the pay
    total as well unless one is given.

    Raises:
        AllocationInputError: If neither total is given
    """
    if tot_amt is None and pay_tot_amt is None:
        raise AllocationInputError("change_total needs tot_amt or pay_tot_amt")

    changes: dict[str, Decimal] = {}
    if tot_amt is not None:
        changes["tot_amt"] = to_amount(tot_amt)
        if changes["tot_amt"] == 0:
            changes["pay_tot_amt"] = ZERO
    if pay_tot_amt is not None:
        changes["pay_tot_amt"] = to_amount(pay_tot_amt)

    return recompute(replace(snapshot, header=replace(snapshot.header, **changes)), clear_allocations=True)


def change_currency(
    snapshot: AllocationSnapshot,
    currency_id: int,
    pay_currency_id: int,
    exh_rate: Any = None,
    pay_exh_rate: Any = None,
) -> RecomputeResult:
    """Switch transaction or pay currency (with their rates) and clear allocations."""
    header = replace(snapshot.header, currency_id=int(currency_id), pay_currency_id=int(pay_currency_id))
    if exh_rate is not None:
        header = replace(header, exh_rate=to_amount(exh_rate))
    if pay_exh_rate is not None:
        header = replace(header, pay_exh_rate=to_amount(pay_exh_rate))

    return recompute(replace(snapshot, header=header), clear_allocations=True)


def change_exchange_rate(
    snapshot: AllocationSnapshot,
    exh_rate: Any = None,
    pay_exh_rate: Any = None,
) -> RecomputeResult:
    """Change exchange rates and reproject existing allocations without clearing them."""
    header = snapshot.header
    if exh_rate is not None:
        header = replace(header, exh_rate=to_amount(exh_rate))
    if pay_exh_rate is not None:
        header = replace(header, pay_exh_rate=to_amount(pay_exh_rate))

    return recompute(replace(snapshot, header=header), clear_allocations=False)
