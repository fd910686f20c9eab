#!/usr/bin/env python3
"""
Status ledger management CLI for the statistics exporter.
"""
import asyncio
import click
import os
import sys

# Add the parent directory to the path so we can import from src
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.config import ExporterConfig, load_config
from src.core.datasets import DatasetKind, DatasetRegistry
from src.services.clickhouse import ClickHouse
from src.services.migrations import run_migrations
from src.services.status_ledger import StatusLedger
from src.utils.logger import setup_logger

KIND_CHOICES = [kind.value for kind in DatasetKind]


def get_services(config_path):
    """Initialize database services."""
    exporter_config = load_config(config_path) if config_path else ExporterConfig()
    clickhouse = ClickHouse(exporter_config.clickhouse).connect()
    registry = DatasetRegistry(exporter_config.statistics.status_tables())
    return clickhouse, StatusLedger(clickhouse), registry


@click.group()
@click.option('--config', 'config_path', default='', help='Path to the config file')
@click.pass_context
def cli(ctx, config_path):
    """Statistics exporter status ledger tools."""
    setup_logger()
    ctx.obj = {'config_path': config_path}


@cli.command()
@click.pass_context
def status(ctx):
    """Show the last completed day per dataset."""
    clickhouse, ledger, registry = get_services(ctx.obj['config_path'])
    try:
        for dataset in registry.get_all_datasets():
            last_day = asyncio.run(ledger.last_completed_day(dataset))
            entries = asyncio.run(ledger.get_entries(dataset))
            click.echo(f"\n{dataset.label} ({dataset.status_table}):")
            click.echo(f"  Last completed day: {'none' if last_day is None else last_day}")
            click.echo(f"  Completed days: {len(entries):,}")
    finally:
        clickhouse.close()


@cli.command()
@click.option('--kind', type=click.Choice(KIND_CHOICES), required=True, help='Dataset to check')
@click.option('--up-to-day', type=int, required=True, help='Last day to check (inclusive)')
@click.pass_context
def pending(ctx, kind, up_to_day):
    """List days without a completed entry."""
    clickhouse, ledger, registry = get_services(ctx.obj['config_path'])
    try:
        dataset = registry.get_dataset(DatasetKind(kind))
        missing = asyncio.run(ledger.missing_days(dataset, up_to_day))
    finally:
        clickhouse.close()

    if not missing:
        click.echo(f"No missing days up to {up_to_day}")
        return
    click.echo(f"{len(missing)} missing day(s): {', '.join(str(d) for d in missing)}")


@cli.command()
@click.option('--kind', type=click.Choice(KIND_CHOICES), required=True, help='Dataset to reset')
@click.option('--day', type=int, required=True, help='Day to reset')
@click.confirmation_option(prompt='Reset this day? The next catch-up cycle recomputes it')
@click.pass_context
def reset(ctx, kind, day):
    """Delete one ledger entry."""
    clickhouse, ledger, registry = get_services(ctx.obj['config_path'])
    try:
        dataset = registry.get_dataset(DatasetKind(kind))
        asyncio.run(ledger.delete_day(dataset, day))
    finally:
        clickhouse.close()
    click.echo(f"Reset {kind} day {day}")


@cli.command()
@click.option('--dir', 'migrations_dir', default='migrations', help='Migrations directory')
@click.option('--direction', type=click.Choice(['up', 'down']), default='up')
@click.pass_context
def migrate(ctx, migrations_dir, direction):
    """Apply the ledger and status table migrations."""
    exporter_config = load_config(ctx.obj['config_path']) if ctx.obj['config_path'] else ExporterConfig()
    clickhouse = ClickHouse(exporter_config.clickhouse).connect()
    try:
        applied = run_migrations(clickhouse, migrations_dir, direction)
    finally:
        clickhouse.close()
    click.echo(f"Applied {len(applied)} migration(s)")


if __name__ == '__main__':
    cli()
