#!/usr/bin/env python3
"""Pre-flight checks run before a line set is (re)allocated."""

import logging
from collections.abc import Sequence

from .models import AllocationLine

logger = logging.getLogger(__name__)


def check_allocation(lines: Sequence[AllocationLine]) -> tuple[bool, str]:
    """
    Check that a line set can be auto-allocated.

    Args:
        lines: Ordered allocation lines

    Returns:
        Tuple of (is_valid, message)
    """
    if not lines:
        return False, "No outstanding documents to allocate against"

    seen: dict[str, int] = {}
    for line in lines:
        if line.document_id in seen:
            return False, (
                f"Document {line.document_no or line.document_id} is selected more than once "
                f"(item {seen[line.document_id]} and item {line.item_no})"
            )
        seen[line.document_id] = line.item_no

    if all(line.doc_bal_amt == 0 for line in lines):
        return False, "Selected documents have no open balance to allocate"

    return True, "Allocation is valid"


def validate_allocation(lines: Sequence[AllocationLine]) -> bool:
    """
    Return True when the line set can be auto-allocated.

    Failures are reported as False rather than raised; the reason is logged.
    """
    is_valid, message = check_allocation(lines)
    if not is_valid:
        logger.warning("Allocation validation failed: %s", message)
    return is_valid
