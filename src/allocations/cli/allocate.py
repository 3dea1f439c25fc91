#!/usr/bin/env python3
"""
Allocate CLI - Allocation Operations on Snapshot Files

Each command reads a JSON snapshot (``{"header": ..., "lines": [...],
"policy": ...}``), runs one engine operation, and writes the new snapshot to
``--output-file`` or stdout. Warnings go to stderr; a blocked operation exits
with status 1.
"""

from pathlib import Path

import click

from ..core.config import get_decimal_policy
from ..core.currency import format_amount
from ..core.json_utils import format_json, read_json, write_json
from ..engine import (
    AllocationInputError,
    AllocationSnapshot,
    RecomputeResult,
    auto_allocate,
    change_exchange_rate,
    change_total,
    edit_allocation,
    remove_lines,
    reset_allocations,
)

snapshot_argument = click.argument("snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
output_option = click.option(
    "--output-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the resulting snapshot here instead of stdout",
)


def load_snapshot(path: Path) -> AllocationSnapshot:
    """Read a snapshot file, using the configured policy when the file has none."""
    try:
        data = read_json(path)
    except ValueError as e:
        raise click.ClickException(f"Could not parse {path}: {e}")

    try:
        policy = None if isinstance(data, dict) and data.get("policy") else get_decimal_policy()
        return AllocationSnapshot.from_dict(data, policy=policy)
    except AllocationInputError as e:
        raise click.ClickException(f"Invalid snapshot {path}: {e}")


def emit_result(ctx: click.Context, result: RecomputeResult, output_file: Path | None) -> None:
    """Report warnings and write the resulting snapshot."""
    for message in result.messages:
        click.echo(f"Warning: {message}", err=True)

    if not result.ok:
        raise click.ClickException(result.message)

    verbose = (ctx.obj or {}).get("verbose", False)
    payload = result.snapshot.to_dict()

    if output_file:
        write_json(output_file, payload)
        click.echo(f"Snapshot written to {output_file}")
        if verbose:
            _echo_totals(result.snapshot)
    else:
        click.echo(format_json(payload))


def _echo_totals(snapshot: AllocationSnapshot) -> None:
    policy = snapshot.policy
    header = snapshot.header
    click.echo(f"Total Alloc: {format_amount(header.alloc_tot_amt, policy.amount_decimals)}")
    click.echo(f"Total Local: {format_amount(header.alloc_tot_local_amt, policy.local_amount_decimals)}")
    click.echo(f"Exchange Gain/Loss: {format_amount(header.exh_gain_loss, policy.local_amount_decimals)}")
    click.echo(f"Balance Amt: {format_amount(snapshot.balance_total, policy.amount_decimals)}")


@click.group()
def allocate() -> None:
    """Allocation operations on JSON snapshot files."""
    pass


@allocate.command()
@snapshot_argument
@output_option
@click.pass_context
def auto(ctx: click.Context, snapshot: Path, output_file: Path | None) -> None:
    """
    Auto-allocate the header total across lines in order.

    A zero header total allocates every open balance and derives the total.

    Example:
      allocations allocate auto refund.json --output-file refund.allocated.json
    """
    emit_result(ctx, auto_allocate(load_snapshot(snapshot)), output_file)


@allocate.command()
@snapshot_argument
@click.option("--item-no", type=int, required=True, help="Item number of the line to edit")
@click.option("--amount", required=True, help="Allocation amount to apply")
@output_option
@click.pass_context
def edit(ctx: click.Context, snapshot: Path, item_no: int, amount: str, output_file: Path | None) -> None:
    """
    Manually set the allocation of one line.

    Example:
      allocations allocate edit refund.json --item-no 2 --amount 45.50
    """
    try:
        result = edit_allocation(load_snapshot(snapshot), item_no, amount)
    except AllocationInputError as e:
        raise click.ClickException(str(e))
    emit_result(ctx, result, output_file)


@allocate.command()
@snapshot_argument
@output_option
@click.pass_context
def reset(ctx: click.Context, snapshot: Path, output_file: Path | None) -> None:
    """Reset every line's allocation to zero."""
    emit_result(ctx, reset_allocations(load_snapshot(snapshot)), output_file)


@allocate.command()
@snapshot_argument
@click.option("--exh-rate", help="New transaction exchange rate")
@click.option("--pay-exh-rate", help="New pay-currency exchange rate")
@output_option
@click.pass_context
def rate(
    ctx: click.Context, snapshot: Path, exh_rate: str | None, pay_exh_rate: str | None, output_file: Path | None
) -> None:
    """
    Change exchange rates; existing allocations are kept and reprojected.

    Example:
      allocations allocate rate refund.json --exh-rate 1.3425
    """
    if exh_rate is None and pay_exh_rate is None:
        raise click.UsageError("Provide --exh-rate and/or --pay-exh-rate")
    emit_result(ctx, change_exchange_rate(load_snapshot(snapshot), exh_rate, pay_exh_rate), output_file)


@allocate.command()
@snapshot_argument
@click.option("--tot-amt", help="New transaction total (same-currency headers)")
@click.option("--pay-tot-amt", help="New pay-currency total (different-currency headers)")
@output_option
@click.pass_context
def total(
    ctx: click.Context, snapshot: Path, tot_amt: str | None, pay_tot_amt: str | None, output_file: Path | None
) -> None:
    """
    Change the header total; existing allocations are cleared.

    Example:
      allocations allocate total refund.json --tot-amt 1500
    """
    try:
        result = change_total(load_snapshot(snapshot), tot_amt=tot_amt, pay_tot_amt=pay_tot_amt)
    except AllocationInputError as e:
        raise click.UsageError(str(e))
    emit_result(ctx, result, output_file)


@allocate.command()
@snapshot_argument
@click.option("--item-no", "item_nos", type=int, multiple=True, required=True, help="Item number to remove")
@output_option
@click.pass_context
def remove(ctx: click.Context, snapshot: Path, item_nos: tuple[int, ...], output_file: Path | None) -> None:
    """
    Remove lines; remaining allocations are reset to zero.

    Example:
      allocations allocate remove refund.json --item-no 2 --item-no 5
    """
    emit_result(ctx, remove_lines(load_snapshot(snapshot), item_nos), output_file)


@allocate.command()
@snapshot_argument
def summary(snapshot: Path) -> None:
    """Show header totals and per-line allocations of a snapshot."""
    state = load_snapshot(snapshot)
    policy = state.policy

    click.echo("Allocation Summary:")
    click.echo("=" * 60)
    for line in state.lines:
        label = line.document_no or line.document_id
        click.echo(
            f"  {line.item_no:>3}  {label:<20}"
            f" bal {format_amount(line.doc_bal_amt, policy.amount_decimals):>14}"
            f" alloc {format_amount(line.alloc_amt, policy.amount_decimals):>14}"
            f" local {format_amount(line.settled_local_amt, policy.local_amount_decimals):>14}"
        )
    click.echo("-" * 60)
    _echo_totals(state)
    click.echo(f"Unallocated: {format_amount(state.un_alloc_amt, policy.amount_decimals)}")
