"""
Render service for the receiver portal.

Renders a DisclosureView as rich console output, plain text or HTML.
"""

from datetime import datetime
from typing import List, Optional

import structlog
from jinja2 import BaseLoader, Environment, TemplateError
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from blockship.core.config import ExplorerConfig
from blockship.core.exceptions import RenderError
from blockship.core.models import DisclosureState, DisclosureView, Notification
from blockship.services.disclosure_service import token_explorer_url

logger = structlog.get_logger(__name__)


TEXT_TEMPLATE = """\
Document Receiver Portal
========================

Authentication
  Account: {{ "Logged in successfully" if view.account_authenticated else "Not signed in" }}
  Wallet:  {% if view.wallet_connected %}Wallet connected: {{ view.wallet_display }}{% elif view.wallet_loading %}Connecting...{% else %}Not connected{% endif %}

Find Your Shipment Document
  Shipment ID: {{ view.search_text or "-" }}{% if view.searching %} (searching...){% endif %}

{% if record %}
Shipment Details
  ID:          {{ record.shipment_id }}
  Source:      {{ record.source }}
  Destination: {{ record.destination }}
  Contents:    {{ record.contents }}
{% if record.status %}
  Status:      {{ record.status }}
{% endif %}
{% if record.timestamp %}
  Recorded:    {{ record.timestamp }}
{% endif %}

Actions
  View Document: {{ record.document_url or "unavailable" }}
{% if token_url %}
  View NFT:      {{ token_url }}
{% endif %}
{% endif %}
{% for n in notifications %}
[{{ "!" if n.destructive else "i" }}] {{ n.title }}: {{ n.description }}
{% endfor %}
"""

HTML_TEMPLATE = """\
<!doctype html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Document Receiver Portal</title>
    <style>
      body { font-family: -apple-system, Segoe UI, Roboto, Helvetica, Arial, sans-serif; line-height: 1.45; color: #111; }
      .card { border: 1px solid #eee; border-radius: 8px; padding: 12px 16px; margin: 12px 0; }
      .ok { color: #0d7044; }
      .destructive { color: #d73a49; }
      .mono { font-family: ui-monospace, SFMono-Regular, Menlo, Consolas, monospace; }
      .footer { margin-top: 24px; font-size: 12px; color: #777; }
    </style>
  </head>
  <body>
    <h1>Document Receiver Portal</h1>

    <div class="card">
      <h2>Authentication</h2>
      <p>Google Account:
        {% if view.account_authenticated %}<span class="ok">Logged in successfully</span>{% else %}Not signed in{% endif %}
      </p>
      <p>Blockchain Wallet:
        {% if view.wallet_connected %}<span class="ok">Wallet connected: <span class="mono">{{ view.wallet_display }}</span></span>{% else %}Not connected{% endif %}
      </p>
    </div>

    {% if record %}
    <div class="card">
      <h2>Shipment Details</h2>
      <p><strong>ID:</strong> <span class="mono">{{ record.shipment_id }}</span></p>
      <p><strong>Source:</strong> {{ record.source }}</p>
      <p><strong>Destination:</strong> {{ record.destination }}</p>
      <p><strong>Contents:</strong> {{ record.contents }}</p>
      <p>
        {% if record.document_url %}<a href="{{ record.document_url }}" target="_blank">View Document</a>{% else %}Document unavailable{% endif %}
        {% if token_url %} | <a href="{{ token_url }}" target="_blank">View NFT</a>{% endif %}
      </p>
    </div>
    {% endif %}

    {% for n in notifications %}
    <div class="card {{ 'destructive' if n.destructive else '' }}"><strong>{{ n.title }}</strong>: {{ n.description }}</div>
    {% endfor %}

    <div class="footer">Rendered {{ now }}</div>
  </body>
</html>
"""


class PortalRenderer:
    """
    Service for rendering the receiver portal view.
    """

    def __init__(self, explorer: ExplorerConfig):
        self.explorer = explorer
        self.text_env = Environment(loader=BaseLoader(), trim_blocks=True, lstrip_blocks=True)
        self.html_env = Environment(loader=BaseLoader(), autoescape=True)

        try:
            self.text_template = self.text_env.from_string(TEXT_TEMPLATE)
            self.html_template = self.html_env.from_string(HTML_TEMPLATE)
        except TemplateError as e:
            logger.error("Failed to initialize templates", error=str(e))
            raise RenderError(f"Template initialization failed: {e}")

    def _token_url(self, view: DisclosureView) -> Optional[str]:
        if not view.show_token_action:
            return None
        return token_explorer_url(self.explorer, view.record.nft_token_id)

    def _context(self, view: DisclosureView) -> dict:
        return {
            "view": view,
            "record": view.record,
            "token_url": self._token_url(view),
            "notifications": view.notifications,
            "now": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        }

    def render_text(self, view: DisclosureView) -> str:
        try:
            return self.text_template.render(**self._context(view))
        except TemplateError as e:
            logger.error("Text rendering failed", error=str(e))
            raise RenderError(f"Template rendering failed: {e}")

    def render_html(self, view: DisclosureView) -> str:
        try:
            html = self.html_template.render(**self._context(view))
        except TemplateError as e:
            logger.error("HTML rendering failed", error=str(e))
            raise RenderError(f"Template rendering failed: {e}")

        logger.debug("Portal rendered", html_length=len(html), state=view.state.value)
        return html

    def render_rich(self, view: DisclosureView) -> Group:
        """Console renderable with one panel per portal section."""
        auth = Table.grid(padding=(0, 2))
        auth.add_column(style="cyan")
        auth.add_column()
        auth.add_row(
            "Account",
            "[green]✓ Logged in successfully[/green]"
            if view.account_authenticated
            else "Not signed in",
        )
        if view.wallet_connected:
            wallet_text = Text(f"✓ Wallet connected: {view.wallet_display}", style="green")
        elif view.wallet_loading:
            wallet_text = "[yellow]Connecting...[/yellow]"
        else:
            wallet_text = "Connect Wallet"
        auth.add_row("Wallet", wallet_text)

        parts = [Panel(auth, title="Authentication", border_style="blue")]

        search = Text(f"Shipment ID: {view.search_text or '-'}")
        if view.searching:
            search.append("  searching...", style="yellow")
        parts.append(Panel(search, title="Find Your Shipment Document", border_style="blue"))

        if view.record is not None:
            parts.append(self._record_panel(view))

        if view.state == DisclosureState.NOT_FOUND_OR_ERROR:
            parts.append(Text("No shipment to display", style="dim"))

        parts.extend(self._notification_lines(view.notifications))
        return Group(*parts)

    def _record_panel(self, view: DisclosureView) -> Panel:
        record = view.record
        table = Table(show_header=False, box=None)
        table.add_column(style="cyan")
        table.add_column(style="white")
        # Record fields are free text; Text() keeps them out of markup parsing
        table.add_row("ID", Text(record.shipment_id))
        table.add_row("Source", Text(record.source))
        table.add_row("Destination", Text(record.destination))
        table.add_row("Contents", Text(record.contents))
        if record.status:
            table.add_row("Status", Text(record.status))
        if record.timestamp:
            table.add_row("Recorded", Text(record.timestamp))
        if record.ipfs_hash:
            table.add_row("IPFS Hash", Text(record.ipfs_hash))
        if record.document_url:
            table.add_row("View Document", Text(record.document_url))
        else:
            table.add_row("View Document", Text("unavailable", style="red"))
        token_url = self._token_url(view)
        if token_url:
            table.add_row("View NFT", Text(token_url))
        return Panel(table, title="Shipment Details", border_style="green")

    def _notification_lines(self, notifications: List[Notification]) -> List[Text]:
        lines = []
        for n in notifications:
            style = "red" if n.destructive else "green"
            lines.append(Text(f"{n.title}: {n.description}", style=style))
        return lines


def create_portal_renderer(explorer: ExplorerConfig) -> PortalRenderer:
    """
    Factory function to create the portal renderer.

    Returns:
        Configured PortalRenderer
    """
    return PortalRenderer(explorer)
