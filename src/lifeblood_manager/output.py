"""Output formatting for the lifeblood manager CLI."""

import json
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .core.version_store import VersionStore

DATE_FORMAT = "%d-%m-%Y %H:%M:%S"


@dataclass
class OutputContext:
    """Context for output formatting."""

    console: Console
    json_mode: bool = False

    def print(self, message: str, style: str | None = None) -> None:
        """Print message unless in JSON mode."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def emit_json(self, data: dict[str, Any]) -> None:
        """Print JSON data in JSON mode."""
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def error(self, message: str, **data: Any) -> None:
        """Report an error in the active format."""
        if self.json_mode:
            self.emit_json({"error": message, **data})
        else:
            self.console.print(f"[red]Error: {escape(message)}[/red]")

    def success(self, message: str, **data: Any) -> None:
        """Report a success in the active format."""
        if self.json_mode:
            self.emit_json({"success": message, **data})
        else:
            self.console.print(f"[green]{message}[/green]")

    def show_store(self, store: VersionStore) -> None:
        """Show the versions of a store, newest first."""
        if self.json_mode:
            self.emit_json(store_to_dict(store))
            return

        self.console.print(f"[bold]Base path:[/bold] {store.base_path}")
        if store.is_base_path_tainted:
            self.console.print(
                "[yellow]Warning: base path contains entries unrelated to lifeblood.\n"
                "It's recommended to choose an empty directory for installations.[/yellow]"
            )
        if store.version_count == 0:
            self.console.print("No installations found")
            return

        table = Table()
        table.add_column("#", justify="right")
        table.add_column("")
        table.add_column("Name")
        table.add_column("Date")
        table.add_column("Commit")
        for i in reversed(range(store.version_count)):
            ver = store.version(i)
            table.add_row(
                str(i),
                "current" if store.current_index == i else "",
                escape(ver.nice_name),
                ver.install_date.strftime(DATE_FORMAT),
                ver.commit_id,
                style="bold" if store.current_index == i else None,
            )
        self.console.print(table)


def store_to_dict(store: VersionStore) -> dict[str, Any]:
    """Serialize a store listing for JSON output."""
    return {
        "base_path": str(store.base_path),
        "current_index": store.current_index,
        "tainted": store.is_base_path_tainted,
        "versions": [ver.model_dump(mode="json") for ver in store.iter_versions()],
    }


# Global output context (set by cli.py main callback)
_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Get the current output context.

    Returns a default OutputContext if not yet initialized by CLI.
    """
    if _ctx is None:
        return OutputContext(Console())
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by CLI main callback."""
    global _ctx
    _ctx = ctx
