#!/usr/bin/env python3
"""
Line Lifecycle

Attaching, removing and reordering outstanding documents.

Membership changes never redistribute a partial allocation: removing a line
resets every remaining line to zero so no money silently moves between
documents.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Any

from .errors import AllocationInputError
from .models import AllocationLine, AllocationSnapshot
from .pipeline import RecomputeResult, reset_allocations, settle

logger = logging.getLogger(__name__)


def next_item_no(lines: Sequence[AllocationLine]) -> int:
    """Item number for the next attached document."""
    return max((line.item_no for line in lines), default=0) + 1


def add_outstanding(snapshot: AllocationSnapshot, documents: Iterable[Mapping[str, Any]]) -> RecomputeResult:
    """
    Attach outstanding documents as new, unallocated lines.

    Documents already present in the line set (by ``documentId``) are
    skipped. Existing allocations are left as they are.

    Args:
        snapshot: Current state
        documents: Outstanding-transaction records (``documentId``, ``balAmt``, ...)

    Returns:
        RecomputeResult with the extended line set
    """
    existing = {line.document_id for line in snapshot.lines}
    item_no = next_item_no(snapshot.lines)
    added: list[AllocationLine] = []

    for document in documents:
        line = AllocationLine.from_outstanding(item_no, document)
        if line.document_id in existing:
            logger.info("Skipping document %s: already selected", line.document_no or line.document_id)
            continue
        existing.add(line.document_id)
        added.append(line)
        item_no += 1

    if not added:
        return RecomputeResult(snapshot=snapshot)

    logger.info("Added %d outstanding documents", len(added))
    return RecomputeResult(snapshot=snapshot.with_lines(snapshot.lines + tuple(added)))


def remove_lines(snapshot: AllocationSnapshot, item_nos: Iterable[int]) -> RecomputeResult:
    """
    Remove lines by item number and reset the remaining allocations.

    Unknown item numbers are ignored; if nothing matches, the snapshot is
    returned unchanged.
    """
    to_remove = {int(item_no) for item_no in item_nos}
    remaining = tuple(line for line in snapshot.lines if line.item_no not in to_remove)

    if len(remaining) == len(snapshot.lines):
        return RecomputeResult(snapshot=snapshot)

    logger.info("Removed %d lines; remaining allocations reset", len(snapshot.lines) - len(remaining))
    if not remaining:
        header, _, _ = settle(snapshot.header, (), snapshot.policy)
        return RecomputeResult(snapshot=replace(snapshot, header=header, lines=()))
    return reset_allocations(snapshot.with_lines(remaining))


def reorder_lines(snapshot: AllocationSnapshot, item_nos: Sequence[int]) -> RecomputeResult:
    """
    Put lines into a new order (which drives auto-allocation fill order).

    Raises:
        AllocationInputError: If ``item_nos`` is not a permutation of the
            current item numbers
    """
    by_item_no = {line.item_no: line for line in snapshot.lines}
    order = [int(item_no) for item_no in item_nos]
    if sorted(order) != sorted(by_item_no):
        raise AllocationInputError(
            f"Reorder must list every item number exactly once: got {order}, have {sorted(by_item_no)}"
        )
    return RecomputeResult(snapshot=snapshot.with_lines([by_item_no[item_no] for item_no in order]))
