"""Output formatting for CLI and programmatic use."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .local_store import JSONEncoder


class OutputFormatter:
    """Formats output for both Rich terminal and JSON modes."""

    def __init__(self, json_mode: bool = False):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode
        self.console = Console()

    def output(self, data: dict[str, Any], message: str = "") -> None:
        """Output data in appropriate format.

        Args:
            data: Data to output
            message: Optional message for Rich mode
        """
        if self.json_mode:
            self._output_json(data)
        else:
            self._output_rich(data, message)

    def _output_json(self, data: dict[str, Any]) -> None:
        """Output as JSON to stdout."""
        print(json.dumps(data, cls=JSONEncoder, indent=2))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        """Output with Rich formatting."""
        if message:
            self.console.print(f"[green]✓[/green] {message}")

        payload = data.get("data", {})
        if "categories" in payload:
            self._render_categories(payload["categories"])
        elif "items" in payload:
            self._render_items(payload["items"], payload.get("category"))
        elif "category" in payload:
            self._render_category(payload["category"])
        elif "item" in payload:
            self._render_item(payload["item"])

        if data.get("degraded"):
            if "categories" in payload or "items" in payload:
                self.warning("Served from local cache, remote store unavailable")
            else:
                self.warning("Saved locally, remote store unavailable")

        if data.get("warning"):
            self.warning(data["warning"])

    def _render_categories(self, categories: list[dict]) -> None:
        """Render the category list with Rich."""
        if not categories:
            self.console.print("[dim]No categories yet[/dim]")
            return

        table = Table(title="Categories", show_header=True, header_style="bold cyan")
        table.add_column("Name", style="cyan")
        table.add_column("Image", style="dim")
        table.add_column("ID", style="dim")

        for category in categories:
            table.add_row(category["name"], category.get("image_url") or "-", category["id"])

        self.console.print(table)
        self.console.print(f"\nTotal categories: {len(categories)}")

    def _render_items(self, items: list[dict], category: dict | None) -> None:
        """Render one category's items with Rich."""
        title = category["name"] if category else "Items"
        if not items:
            self.console.print(f"[dim]No items in {title}[/dim]")
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Item", style="cyan")
        table.add_column("Qty", style="magenta", justify="right")
        table.add_column("ID", style="dim")

        for item in items:
            table.add_row(item["name"], str(item["quantity"]), item["id"])

        self.console.print(table)
        self.console.print(f"\nTotal items: {len(items)}")

    def _render_category(self, category: dict) -> None:
        """Render a single category with Rich."""
        panel_content = f"""[bold]{category["name"]}[/bold]

Image: {category.get("image_url") or "None"}
ID: {category["id"]}"""

        self.console.print(Panel(panel_content, title="Category", border_style="green"))

    def _render_item(self, item: dict) -> None:
        """Render a single item with Rich."""
        panel_content = f"""[bold]{item["name"]}[/bold]

Quantity: {item["quantity"]}
Category: {item["category_id"]}
ID: {item["id"]}"""

        self.console.print(Panel(panel_content, title="Item Details", border_style="green"))

    def error(self, message: str, error_code: str | None = None) -> None:
        """Output error message.

        Args:
            message: Error message
            error_code: Optional error code
        """
        if self.json_mode:
            output = {"success": False, "error": message}
            if error_code:
                output["error_code"] = error_code
            print(json.dumps(output))
        else:
            self.console.print(f"[red]✗ Error:[/red] {message}")

    def warning(self, message: str) -> None:
        """Output warning message.

        Args:
            message: Warning message
        """
        if self.json_mode:
            print(json.dumps({"warning": message}))
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
