"""
"Doctor" command: consolidated config and connectivity diagnostics.

Runs a series of checks and prints a concise, friendly report:
 - Config summary and required keys
 - Shipment store reachability
"""

from __future__ import annotations

import asyncio

import click

from blockship.core.config import (
    get_settings,
    print_configuration_summary,
    validate_required_settings,
)
from blockship.data.shipment_store import ShipmentStoreClient
from blockship.utils.reliability import HealthChecker


async def _check_store(checker: HealthChecker) -> dict:
    cfg = get_settings()
    async with ShipmentStoreClient(cfg.store, timeout=cfg.request_timeout) as store:
        checker.register_check("shipment_store", store.health_check)
        return await checker.check_all()


@click.command()
def doctor():
    """Run Blockship diagnostics and print a summary report."""
    click.echo("Blockship Doctor")
    click.echo("=" * 40)

    print_configuration_summary()

    missing = validate_required_settings()
    if missing:
        click.echo("\nConfiguration issues:")
        for item in missing:
            click.echo(f"  ✗ {item}")
        raise SystemExit(1)

    checker = HealthChecker()
    results = asyncio.run(_check_store(checker))

    store = results.get("shipment_store", {})
    if store.get("status") == "healthy":
        click.echo(f"\n✓ Shipment store reachable ({store.get('response_time_ms', 0):.0f} ms)")
    else:
        click.echo(f"\n✗ Shipment store unreachable: {store.get('error', 'unknown')}")

    raise SystemExit(0 if checker.is_healthy() else 1)
