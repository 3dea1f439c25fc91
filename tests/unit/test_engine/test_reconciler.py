#!/usr/bin/env python3
"""Tests for cent-difference reconciliation."""

from dataclasses import replace
from decimal import Decimal

import pytest

from allocations.core.currency import CentDiffTarget
from allocations.engine import (
    calculate_unallocated,
    project,
    reconcile,
    select_target,
    summarize,
)
from tests.fixtures.allocation_data import build_lines


def allocated_lines(amounts, rate="1.005"):
    lines = build_lines([abs(Decimal(str(amount))) or 1 for amount in amounts], doc_exh_rate=rate)
    return tuple(replace(line, alloc_amt=Decimal(str(amount))) for line, amount in zip(lines, amounts))


class TestCalculateUnallocated:
    """Test unallocated amount computation."""

    @pytest.mark.reconciliation
    def test_residue(self, policy):
        """Test transaction and local residues are rounded per class."""
        unallocated = calculate_unallocated(
            Decimal("3"), Decimal("3.02"), Decimal("3"), Decimal("3.03"), policy
        )

        assert unallocated.un_alloc_amt == Decimal("0.00")
        assert unallocated.un_alloc_local_amt == Decimal("-0.01")


class TestSelectTarget:
    """Test the choice of line that absorbs the residue."""

    @pytest.mark.reconciliation
    def test_last_allocated_line(self):
        """Test trailing unallocated lines are skipped."""
        lines = allocated_lines([1, 1, 0])
        assert select_target(lines, CentDiffTarget.LAST) == 1

    @pytest.mark.reconciliation
    def test_largest_allocation_later_wins_ties(self):
        """Test the largest absolute allocation, with ties going to the later line."""
        lines = allocated_lines([5, -9, 9, 2])
        assert select_target(lines, CentDiffTarget.LARGEST) == 2

    @pytest.mark.reconciliation
    def test_no_allocated_line(self):
        """Test there is no target without an allocation."""
        assert select_target(allocated_lines([0, 0]), CentDiffTarget.LAST) == -1
        assert select_target((), CentDiffTarget.LARGEST) == -1


class TestReconcile:
    """Test residue placement."""

    @pytest.mark.reconciliation
    def test_residue_lands_on_last_line(self, policy):
        """Test three 1.01 lines reconcile to a 3.02 header."""
        lines = project(allocated_lines([1, 1, 1]), Decimal("1.005"), policy)
        totals = summarize(lines, policy)
        assert totals.alloc_tot_local_amt == Decimal("3.03")

        reconciled, applied = reconcile(lines, Decimal("0"), Decimal("-0.01"), policy)

        assert applied
        assert [line.cent_diff for line in reconciled] == [Decimal("0"), Decimal("0"), Decimal("-0.01")]
        assert summarize(reconciled, policy).alloc_tot_local_amt == Decimal("3.02")

    @pytest.mark.reconciliation
    def test_idempotent(self, policy):
        """Test a reconciled line set produces no further adjustment."""
        lines = project(allocated_lines([1, 1, 1]), Decimal("1.005"), policy)
        reconciled, _ = reconcile(lines, Decimal("0"), Decimal("-0.01"), policy)

        totals = summarize(reconciled, policy)
        unallocated = calculate_unallocated(
            Decimal("3"), Decimal("3.02"), totals.alloc_tot_amt, totals.alloc_tot_local_amt, policy
        )
        again, applied = reconcile(reconciled, unallocated.un_alloc_amt, unallocated.un_alloc_local_amt, policy)

        assert not applied
        assert again == reconciled

    @pytest.mark.reconciliation
    def test_skipped_while_partially_allocated(self, policy):
        """Test a local residue is left alone while transaction amount is unallocated."""
        lines = project(allocated_lines([1, 1, 0]), Decimal("1.005"), policy)

        reconciled, applied = reconcile(lines, Decimal("1"), Decimal("0.99"), policy)

        assert not applied
        assert all(line.cent_diff == 0 for line in reconciled)

    @pytest.mark.reconciliation
    def test_skipped_without_residue(self, policy):
        """Test nothing happens when local totals already agree."""
        lines = project(allocated_lines([50, 50]), Decimal("1.333"), policy)
        _, applied = reconcile(lines, Decimal("0"), Decimal("0"), policy)
        assert not applied

    @pytest.mark.reconciliation
    def test_no_target_line(self, policy, caplog):
        """Test a residue with no allocated line is reported, not applied."""
        _, applied = reconcile(allocated_lines([0]), Decimal("0"), Decimal("0.01"), policy)

        assert not applied
        assert "no line is allocated" in caplog.text

    @pytest.mark.reconciliation
    def test_largest_target_policy(self, largest_policy):
        """Test the policy decides which line absorbs the residue."""
        lines = project(allocated_lines([2, 1]), Decimal("1.005"), largest_policy)

        reconciled, applied = reconcile(lines, Decimal("0"), Decimal("-0.01"), largest_policy)

        assert applied
        assert reconciled[0].cent_diff == Decimal("-0.01")
        assert reconciled[1].cent_diff == 0


class TestSummarize:
    """Test header aggregates derived from lines."""

    @pytest.mark.reconciliation
    def test_gain_offset_by_cent_diff(self, policy):
        """Test cent differences offset the reported gain."""
        lines = (
            replace(allocated_lines([50])[0], alloc_local_amt=Decimal("66.65"), exh_gain_loss=Decimal("1.65")),
            replace(
                allocated_lines([50])[0],
                item_no=2,
                alloc_local_amt=Decimal("66.65"),
                exh_gain_loss=Decimal("1.65"),
                cent_diff=Decimal("-0.01"),
            ),
        )

        totals = summarize(lines, policy)

        assert totals.alloc_tot_amt == Decimal("100.00")
        assert totals.alloc_tot_local_amt == Decimal("133.29")
        assert totals.cent_diff_total == Decimal("-0.01")
        assert totals.exh_gain_loss == Decimal("3.31")

    @pytest.mark.reconciliation
    def test_net_loss_reported_as_zero(self, policy):
        """Test the header gain/loss never goes below zero."""
        lines = (
            replace(allocated_lines([10])[0], exh_gain_loss=Decimal("0.50")),
            replace(allocated_lines([10])[0], item_no=2, exh_gain_loss=Decimal("-1.00")),
        )

        assert summarize(lines, policy).exh_gain_loss == Decimal("0.00")
