"""
Allocation Engine - Multi-Currency Allocation and Reconciliation

Distributes a payment or refund amount across outstanding documents,
converts between transaction, local and pay currencies, and forces the
distributed local totals to reconcile exactly with the header.

Domain Packages:
- core: Decimal policy, configuration, JSON I/O
- engine: Allocation, projection and reconciliation pipeline
- cli: Command-line interface over JSON snapshots

Example Usage:
    from allocations import AllocationSnapshot, auto_allocate

    snapshot = AllocationSnapshot.from_dict(data)
    result = auto_allocate(snapshot)
    if result.ok:
        print(result.snapshot.header.alloc_tot_amt)
"""

__version__ = "0.1.0"

from .core.config import Environment, get_config
from .core.currency import DecimalPolicy, to_amount
from .engine import (
    AllocationHeader,
    AllocationLine,
    AllocationSnapshot,
    AllocationWarning,
    RecomputeResult,
    add_outstanding,
    auto_allocate,
    change_currency,
    change_exchange_rate,
    change_total,
    edit_allocation,
    recompute,
    remove_lines,
    reorder_lines,
    reset_allocations,
)

__all__ = [
    # Core
    "DecimalPolicy",
    "Environment",
    "get_config",
    "to_amount",
    # Models
    "AllocationHeader",
    "AllocationLine",
    "AllocationSnapshot",
    "AllocationWarning",
    "RecomputeResult",
    # Operations
    "add_outstanding",
    "auto_allocate",
    "change_currency",
    "change_exchange_rate",
    "change_total",
    "edit_allocation",
    "recompute",
    "remove_lines",
    "reorder_lines",
    "reset_allocations",
]
