#!/usr/bin/env python3
"""
Main CLI Entry Point for the Allocation Engine

Provides a command-line interface over allocation snapshot files.
"""

import logging
import os

import click

from ..core.config import get_config
from .allocate import allocate


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    Allocation Engine - Multi-Currency Allocation and Reconciliation

    Allocates a payment or refund across outstanding documents and keeps
    local-currency totals reconciled with the header.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)

    # Set environment if specified
    if config_env:
        os.environ["ALLOCATIONS_ENV"] = config_env

    # Configure debug logging if requested
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("allocations").setLevel(logging.DEBUG)

    # Store global options
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = get_config()

    if verbose:
        click.echo(f"Environment: {ctx.obj['config'].environment.value}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
def version() -> None:
    """Show version information."""
    from allocations import __version__

    click.echo(f"Allocation Engine v{__version__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj = ctx.obj["config"]
    decimals = config_obj.decimals

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Amount Decimals: {decimals.amount_decimals}")
    click.echo(f"  Local Amount Decimals: {decimals.local_amount_decimals}")
    click.echo(f"  Exchange Rate Decimals: {decimals.exchange_rate_decimals}")
    click.echo(f"  Cent Diff Target: {decimals.cent_diff_target}")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")


main.add_command(allocate)


if __name__ == "__main__":
    main()
