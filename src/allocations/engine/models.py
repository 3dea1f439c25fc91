#!/usr/bin/env python3
"""
Allocation Domain Models

Immutable records exchanged between the accounting UI and the engine.
Every amount is a Decimal with an explicit zero default; loose input from the
UI is normalized once in ``from_dict`` and never re-coerced downstream.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from ..core.currency import ZERO, DecimalPolicy, to_amount
from .errors import AllocationInputError


def _require(data: Mapping[str, Any], key: str, record: str) -> Any:
    """Fetch a required key or fail with a contract error."""
    if not isinstance(data, Mapping):
        raise AllocationInputError(f"{record} must be a mapping, got {type(data).__name__}")
    if data.get(key) in (None, ""):
        raise AllocationInputError(f"{record} is missing required field '{key}'")
    return data[key]


@dataclass(frozen=True)
class AllocationLine:
    """
    One outstanding document being paid or refunded against.

    ``item_no`` is unique within a line set and stays with the line across
    reorders, so edits and deletes correlate by item number rather than
    position.
    """

    item_no: int
    document_id: str
    document_no: str = ""
    transaction_id: int = 0
    reference_no: str = ""
    doc_currency_id: int = 0

    # Source-document amounts (read-only once added)
    doc_tot_amt: Decimal = ZERO
    doc_tot_local_amt: Decimal = ZERO
    doc_bal_amt: Decimal = ZERO  # open balance, the hard ceiling for allocation
    doc_bal_local_amt: Decimal = ZERO
    doc_exh_rate: Decimal = ZERO

    # Allocation state
    alloc_amt: Decimal = ZERO
    alloc_local_amt: Decimal = ZERO
    cent_diff: Decimal = ZERO
    exh_gain_loss: Decimal = ZERO

    @property
    def is_allocated(self) -> bool:
        """True when this line carries a non-zero allocation."""
        return self.alloc_amt != 0

    @property
    def settled_local_amt(self) -> Decimal:
        """Local amount including its rounding correction."""
        return self.alloc_local_amt + self.cent_diff

    def cleared(self) -> "AllocationLine":
        """Return a copy with the allocation reset to zero."""
        return replace(self, alloc_amt=ZERO, alloc_local_amt=ZERO, cent_diff=ZERO, exh_gain_loss=ZERO)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AllocationLine":
        """
        Create AllocationLine from a UI detail row.

        Args:
            data: Row dict with camelCase keys (``itemNo``, ``docBalAmt``, ...)

        Returns:
            AllocationLine instance

        Raises:
            AllocationInputError: If ``itemNo`` or ``documentId`` is missing
        """
        item_no = _require(data, "itemNo", "Allocation line")
        document_id = _require(data, "documentId", "Allocation line")
        try:
            item_no = int(item_no)
        except (TypeError, ValueError):
            raise AllocationInputError(f"Allocation line has a non-integer itemNo: {item_no!r}")

        return cls(
            item_no=item_no,
            document_id=str(document_id),
            document_no=str(data.get("documentNo") or ""),
            transaction_id=int(data.get("transactionId") or 0),
            reference_no=str(data.get("referenceNo") or ""),
            doc_currency_id=int(data.get("docCurrencyId") or 0),
            doc_tot_amt=to_amount(data.get("docTotAmt")),
            doc_tot_local_amt=to_amount(data.get("docTotLocalAmt")),
            doc_bal_amt=to_amount(data.get("docBalAmt")),
            doc_bal_local_amt=to_amount(data.get("docBalLocalAmt")),
            doc_exh_rate=to_amount(data.get("docExhRate")),
            alloc_amt=to_amount(data.get("allocAmt")),
            alloc_local_amt=to_amount(data.get("allocLocalAmt")),
            cent_diff=to_amount(data.get("centDiff")),
            exh_gain_loss=to_amount(data.get("exhGainLoss")),
        )

    @classmethod
    def from_outstanding(cls, item_no: int, document: Mapping[str, Any]) -> "AllocationLine":
        """
        Create a fresh, unallocated line from an outstanding-transaction record.

        Outstanding records use the document's own field names
        (``totAmt``, ``balAmt``, ``exhRate``, ``currencyId``).
        """
        document_id = _require(document, "documentId", "Outstanding document")
        return cls(
            item_no=item_no,
            document_id=str(document_id),
            document_no=str(document.get("documentNo") or ""),
            transaction_id=int(document.get("transactionId") or 0),
            reference_no=str(document.get("referenceNo") or ""),
            doc_currency_id=int(document.get("currencyId") or 0),
            doc_tot_amt=to_amount(document.get("totAmt")),
            doc_tot_local_amt=to_amount(document.get("totLocalAmt")),
            doc_bal_amt=to_amount(document.get("balAmt")),
            doc_bal_local_amt=to_amount(document.get("balLocalAmt")),
            doc_exh_rate=to_amount(document.get("exhRate")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase row format read by ``from_dict``."""
        return {
            "itemNo": self.item_no,
            "documentId": self.document_id,
            "documentNo": self.document_no,
            "transactionId": self.transaction_id,
            "referenceNo": self.reference_no,
            "docCurrencyId": self.doc_currency_id,
            "docTotAmt": self.doc_tot_amt,
            "docTotLocalAmt": self.doc_tot_local_amt,
            "docBalAmt": self.doc_bal_amt,
            "docBalLocalAmt": self.doc_bal_local_amt,
            "docExhRate": self.doc_exh_rate,
            "allocAmt": self.alloc_amt,
            "allocLocalAmt": self.alloc_local_amt,
            "centDiff": self.cent_diff,
            "exhGainLoss": self.exh_gain_loss,
        }


@dataclass(frozen=True)
class AllocationHeader:
    """
    The payment or refund being built.

    ``alloc_tot_amt``, ``alloc_tot_local_amt`` and ``exh_gain_loss`` are
    always recomputed from the lines and never edited directly.
    """

    currency_id: int = 0
    pay_currency_id: int = 0
    tot_amt: Decimal = ZERO
    tot_local_amt: Decimal = ZERO
    exh_rate: Decimal = ZERO
    pay_tot_amt: Decimal = ZERO
    pay_tot_local_amt: Decimal = ZERO
    pay_exh_rate: Decimal = ZERO
    alloc_tot_amt: Decimal = ZERO
    alloc_tot_local_amt: Decimal = ZERO
    exh_gain_loss: Decimal = ZERO

    @property
    def is_same_currency(self) -> bool:
        """True when settlement happens in the transaction currency."""
        return self.currency_id == self.pay_currency_id

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AllocationHeader":
        """Create AllocationHeader from the UI header form values."""
        if not isinstance(data, Mapping):
            raise AllocationInputError(f"Allocation header must be a mapping, got {type(data).__name__}")
        return cls(
            currency_id=int(data.get("currencyId") or 0),
            pay_currency_id=int(data.get("payCurrencyId") or 0),
            tot_amt=to_amount(data.get("totAmt")),
            tot_local_amt=to_amount(data.get("totLocalAmt")),
            exh_rate=to_amount(data.get("exhRate")),
            pay_tot_amt=to_amount(data.get("payTotAmt")),
            pay_tot_local_amt=to_amount(data.get("payTotLocalAmt")),
            pay_exh_rate=to_amount(data.get("payExhRate")),
            alloc_tot_amt=to_amount(data.get("allocTotAmt")),
            alloc_tot_local_amt=to_amount(data.get("allocTotLocalAmt")),
            exh_gain_loss=to_amount(data.get("exhGainLoss")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase format read by ``from_dict``."""
        return {
            "currencyId": self.currency_id,
            "payCurrencyId": self.pay_currency_id,
            "totAmt": self.tot_amt,
            "totLocalAmt": self.tot_local_amt,
            "exhRate": self.exh_rate,
            "payTotAmt": self.pay_tot_amt,
            "payTotLocalAmt": self.pay_tot_local_amt,
            "payExhRate": self.pay_exh_rate,
            "allocTotAmt": self.alloc_tot_amt,
            "allocTotLocalAmt": self.alloc_tot_local_amt,
            "exhGainLoss": self.exh_gain_loss,
        }


@dataclass(frozen=True)
class AllocationSnapshot:
    """
    Everything one recompute needs: header, ordered lines and precision.

    Operations take a snapshot and return a new one; the caller decides
    what to do with it.
    """

    header: AllocationHeader = field(default_factory=AllocationHeader)
    lines: tuple[AllocationLine, ...] = ()
    policy: DecimalPolicy = field(default_factory=DecimalPolicy)

    def __post_init__(self) -> None:
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))
        item_nos = [line.item_no for line in self.lines]
        if len(item_nos) != len(set(item_nos)):
            raise AllocationInputError(f"Duplicate itemNo in line set: {sorted(item_nos)}")

    @property
    def balance_total(self) -> Decimal:
        """Sum of open document balances across all lines."""
        return self.policy.round_amount(sum((line.doc_bal_amt for line in self.lines), ZERO))

    @property
    def un_alloc_amt(self) -> Decimal:
        """Header amount not yet applied to any line."""
        return self.policy.round_amount(self.header.tot_amt - self.header.alloc_tot_amt)

    @property
    def un_alloc_local_amt(self) -> Decimal:
        """Header local amount not yet applied to any line."""
        return self.policy.round_local(self.header.tot_local_amt - self.header.alloc_tot_local_amt)

    @property
    def is_allocated(self) -> bool:
        """True when any line carries a positive allocation."""
        return any(line.alloc_amt > 0 or line.alloc_local_amt > 0 for line in self.lines)

    def index_of(self, item_no: int) -> int:
        """Position of the line with ``item_no``, or -1."""
        for index, line in enumerate(self.lines):
            if line.item_no == item_no:
                return index
        return -1

    def with_lines(self, lines: Sequence[AllocationLine]) -> "AllocationSnapshot":
        """Return a copy with a new line sequence."""
        return replace(self, lines=tuple(lines))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], policy: DecimalPolicy | None = None) -> "AllocationSnapshot":
        """
        Create AllocationSnapshot from ``{"header": ..., "lines": [...], "policy": ...}``.

        Args:
            data: Snapshot dict
            policy: Overrides the policy embedded in ``data`` when given

        Raises:
            AllocationInputError: If the shape is wrong
        """
        if not isinstance(data, Mapping):
            raise AllocationInputError(f"Snapshot must be a mapping, got {type(data).__name__}")
        raw_lines = data.get("lines", [])
        if not isinstance(raw_lines, list):
            raise AllocationInputError("Snapshot 'lines' must be a list")

        return cls(
            header=AllocationHeader.from_dict(data.get("header", {})),
            lines=tuple(AllocationLine.from_dict(row) for row in raw_lines),
            policy=policy if policy is not None else DecimalPolicy.from_dict(data.get("policy")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the format read by ``from_dict``."""
        return {
            "header": self.header.to_dict(),
            "lines": [line.to_dict() for line in self.lines],
            "policy": self.policy.to_dict(),
        }
