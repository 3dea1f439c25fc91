"""
Allocation Engine Package

Multi-currency allocation and reconciliation of a payment or refund header
against outstanding document lines.

This package provides:
- Domain models (AllocationLine, AllocationHeader, AllocationSnapshot)
- Currency resolution between transaction, local and pay currency
- Auto (first-fit) and manual (clamped) line allocation
- Local-currency projection with per-line exchange gain/loss
- Cent-difference reconciliation so local totals match the header exactly
- Line lifecycle operations (add, remove, reorder, reset)
"""

from .allocator import AllocationWarning, AutoAllocation, ManualAllocation
from .converter import ConversionMode, detect_mode, resolve
from .errors import AllocationInputError, LineNotFoundError
from .lines import add_outstanding, next_item_no, remove_lines, reorder_lines
from .models import AllocationHeader, AllocationLine, AllocationSnapshot
from .pipeline import (
    RecomputeResult,
    RecomputeStage,
    auto_allocate,
    change_currency,
    change_exchange_rate,
    change_total,
    edit_allocation,
    recompute,
    reset_allocations,
    settle,
)
from .projector import project, project_line
from .reconciler import (
    LineTotals,
    Unallocated,
    calculate_unallocated,
    reconcile,
    select_target,
    summarize,
)
from .validator import check_allocation, validate_allocation

__all__ = [
    # Models
    "AllocationHeader",
    "AllocationLine",
    "AllocationSnapshot",
    # Errors
    "AllocationInputError",
    "LineNotFoundError",
    # Components
    "AllocationWarning",
    "AutoAllocation",
    "ConversionMode",
    "LineTotals",
    "ManualAllocation",
    "Unallocated",
    "calculate_unallocated",
    "check_allocation",
    "detect_mode",
    "project",
    "project_line",
    "reconcile",
    "resolve",
    "select_target",
    "summarize",
    "validate_allocation",
    # Pipeline
    "RecomputeResult",
    "RecomputeStage",
    "auto_allocate",
    "change_currency",
    "change_exchange_rate",
    "change_total",
    "edit_allocation",
    "recompute",
    "reset_allocations",
    "settle",
    # Line lifecycle
    "add_outstanding",
    "next_item_no",
    "remove_lines",
    "reorder_lines",
]
