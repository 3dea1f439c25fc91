#!/usr/bin/env python3
"""
Engine Exceptions

Business-rule edge cases (duplicates, over-allocation, zero totals) are
reported through return values. These exceptions are reserved for callers
that break the input contract.
"""


class AllocationInputError(ValueError):
    """Raised when a snapshot, line or argument has a malformed shape."""

    pass


class LineNotFoundError(AllocationInputError, KeyError):
    """Raised when an item number or row index does not exist in the line set."""

    def __str__(self) -> str:
        # KeyError quotes its message; keep the ValueError rendering
        return str(self.args[0]) if self.args else ""
