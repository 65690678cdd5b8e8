"""
Main application entry point for the Blockship receiver.

Provides a CLI for looking up shipments and opening their custody
document and token from a terminal.
"""

import asyncio
import sys
from typing import Optional

import click
from rich.console import Console

from blockship.cli_commands.doctor import doctor
from blockship.core.config import get_settings, print_configuration_summary, validate_required_settings
from blockship.core.exceptions import BlockshipError, ConfigurationError
from blockship.core.logging import set_correlation_id, setup_logging
from blockship.core.models import DisclosureState, DisclosureView
from blockship.gates.providers import HeadlessIdentityProvider
from blockship.services.disclosure_service import create_disclosure_controller
from blockship.services.render_service import create_portal_renderer

console = Console()


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit JSON logs instead of rich console logs")
@click.option("--correlation-id", help="Set correlation ID for request tracing")
@click.pass_context
def main(ctx, debug: bool, json_logs: bool, correlation_id: Optional[str]):
    """Shipment document receiver.

    Finds a shipment by the ID the shipper provided and discloses its custody
    document and NFT.
    """
    ctx.ensure_object(dict)

    setup_logging(debug=debug, rich_output=not json_logs)

    if correlation_id:
        set_correlation_id(correlation_id)

    ctx.obj["debug"] = debug
    ctx.obj["correlation_id"] = correlation_id


main.add_command(doctor)


async def _run_search(
    shipment_id: str, open_document: bool, open_nft: bool
) -> DisclosureView:
    settings = get_settings()
    controller = create_disclosure_controller(settings, HeadlessIdentityProvider())
    try:
        async with controller:
            await controller.search(shipment_id)
            if controller.state == DisclosureState.FOUND:
                if open_document:
                    controller.open_document()
                if open_nft:
                    controller.open_token()
            return controller.view()
    finally:
        await controller.resolver.store.aclose()


@main.command()
@click.argument("shipment_id")
@click.option("--open-document", is_flag=True, help="Open the custody document in a browser")
@click.option("--open-nft", is_flag=True, help="Open the custody token on the explorer")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["rich", "text", "html"]),
    default="rich",
    help="Output format (default: rich)",
)
@click.pass_context
def search(ctx, shipment_id: str, open_document: bool, open_nft: bool, output_format: str):
    """Find a shipment by ID and show its details."""
    try:
        missing = validate_required_settings()
        if missing:
            raise ConfigurationError(f"Missing settings: {', '.join(missing)}")

        view = asyncio.run(_run_search(shipment_id, open_document, open_nft))

        renderer = create_portal_renderer(get_settings().explorer)
        if output_format == "html":
            click.echo(renderer.render_html(view))
        elif output_format == "text":
            click.echo(renderer.render_text(view))
        else:
            console.print(renderer.render_rich(view))

        sys.exit(0 if view.state == DisclosureState.FOUND else 1)

    except ConfigurationError as e:
        console.print(f"[red]Configuration Error:[/red] {e}")
        sys.exit(1)
    except BlockshipError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected Error:[/red] {e}")
        if ctx.obj["debug"]:
            import traceback

            console.print(traceback.format_exc())
        sys.exit(1)


@main.command()
@click.pass_context
def config(ctx):
    """Display current configuration."""
    try:
        console.print("[blue]Blockship Configuration[/blue]")

        missing = validate_required_settings()
        if missing:
            console.print("[red]Configuration Issues:[/red]")
            for item in missing:
                console.print(f"  • {item}")
            console.print()
        else:
            console.print("[green]Configuration Valid[/green]")
            console.print()

        print_configuration_summary()

        sys.exit(0 if not missing else 1)

    except Exception as e:
        console.print(f"[red]Configuration Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
