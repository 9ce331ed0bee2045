"""
Rich output formatting for Run results.

Renders a HookResponse as a table of task results plus a short summary of
what the host is asked to apply.
"""

from typing import Any

from rich.console import Console
from rich.table import Table

from .reconciler import HookResponse


class RunResultFormatter:
    """Formats sync responses for the terminal."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

        self.phase_colors = {
            "Online": "green",
            "AssertPassed": "green",
            "Completed": "green",
            "Skipped": "dim",
            "AssertFailed": "yellow",
            "InProgress": "yellow",
            "Error": "red",
        }

    def _phase(self, phase: str) -> str:
        color = self.phase_colors.get(phase, "white")
        return f"[{color}]{phase}[/{color}]"

    def task_table(self, status: dict[str, Any]) -> Table:
        table = Table(title="Task Results", show_lines=False)
        table.add_column("Key", style="bright_white")
        table.add_column("Kind", style="cyan")
        table.add_column("Phase")
        table.add_column("Message", style="dim")
        for result in status.get("taskResults", []):
            table.add_row(
                result.get("key", ""),
                result.get("kind", ""),
                self._phase(result.get("phase", "")),
                result.get("message", ""),
            )
        return table

    def print_response(self, response: HookResponse) -> None:
        status = response.status
        if status.get("taskResults"):
            self.console.print(self.task_table(status))

        self.console.print(f"\n[bold]Phase:[/bold] {self._phase(status.get('phase', ''))}")
        if status.get("reason"):
            self.console.print(f"[bold]Reason:[/bold] {status['reason']}")
        if status.get("message"):
            self.console.print(f"[bold]Message:[/bold] {status['message']}")
        for error in status.get("errors", []):
            self.console.print(f"  [red]• {error}[/red]")

        completion = status.get("completion", {})
        self.console.print(
            f"[dim]Completion: state={completion.get('state', False)} "
            f"observed={completion.get('observed', 0)} desired={completion.get('desired', 0)}[/dim]"
        )
        self.console.print(
            f"[dim]Resources: desired {len(response.attachments)} "
            f"~{len(response.explicit_updates)} explicit updates "
            f"-{len(response.explicit_deletes)} explicit deletes[/dim]"
        )
        if response.skip_reconcile:
            self.console.print("[yellow]⚠ Host is asked to skip this reconcile[/yellow]")
