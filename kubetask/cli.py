"""
Kubetask CLI - run Run resources against a snapshot of observed resources.
"""

import json
import logging
from pathlib import Path
from typing import Any

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel

from .errors import DuplicateTaskKeyError, KubetaskError
from .formatters import RunResultFormatter
from .models import ResultPhase, RunSpec
from .reconciler import HookRequest, sync
from .run import to_task
from .settings import get_settings
from .task import validate_task

# Setup
app = typer.Typer(
    name="kubetask",
    help="Declarative task runner for Kubernetes-style resources",
    add_completion=False,
)
console = Console()


def configure_logging():
    """Configure logging based on settings."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# Configure logging on module import
configure_logging()


def load_documents(path: Path) -> list[dict[str, Any]]:
    """Load every resource document in a YAML or JSON file.

    Multi-document YAML is supported, and so are `kind: List` style
    documents carrying an `items` list.

    Raises:
        typer.Exit: If the file is missing or can't be parsed
    """
    if not path.exists():
        console.print(f"[bold red]✗ Error:[/bold red] File not found: {path}")
        raise typer.Exit(code=1)
    try:
        with open(path, encoding="utf-8") as f:
            loaded = list(yaml.safe_load_all(f))
    except yaml.YAMLError as e:
        console.print(f"[bold red]✗ Error:[/bold red] Can't parse {path}: {e}")
        raise typer.Exit(code=1)

    documents = []
    for doc in loaded:
        if doc is None:
            continue
        if isinstance(doc, list):
            documents.extend(doc)
        elif isinstance(doc, dict) and isinstance(doc.get("items"), list) and str(doc.get("kind", "List")).endswith("List"):
            documents.extend(doc["items"])
        else:
            documents.append(doc)
    return [doc for doc in documents if isinstance(doc, dict)]


def _load_run(run_file: Path) -> dict[str, Any]:
    documents = load_documents(run_file)
    if len(documents) != 1:
        console.print(
            f"[bold red]✗ Error:[/bold red] Expected exactly one Run in {run_file}, found {len(documents)}"
        )
        raise typer.Exit(code=1)
    return documents[0]


@app.command()
def run(
    run_file: Path = typer.Argument(..., help="File holding the Run resource"),
    observed: Path = typer.Option(
        None, "--observed", "-o", help="File holding the observed resources"
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the full response as JSON (also: KT_OUTPUT_FORMAT=json)"
    ),
):
    """Execute a Run against observed resources and show the outcome."""
    watch = _load_run(run_file)
    attachments = load_documents(observed) if observed else []

    try:
        response = sync(HookRequest.from_documents(watch, attachments))
    except KubetaskError as e:
        console.print(f"\n[bold red]✗ Run failed:[/bold red] {e}")
        raise typer.Exit(code=1)

    if as_json or get_settings().output_format == "json":
        typer.echo(json.dumps(response.to_dict(), indent=2))
    else:
        console.print(Panel.fit(
            f"[bold blue]Kubetask Run[/bold blue]\n"
            f"Run: {watch.get('metadata', {}).get('name', '')}\n"
            f"Observed: {len(attachments)} resource(s)",
            border_style="blue",
        ))
        RunResultFormatter(console).print_response(response)

    if response.status.get("phase") == ResultPhase.ERROR.value:
        raise typer.Exit(code=1)


@app.command()
def validate(
    run_file: Path = typer.Argument(..., help="File holding the Run resource"),
):
    """Check the configuration of every task without evaluating anything."""
    watch = _load_run(run_file)
    try:
        spec = RunSpec.model_validate(watch.get("spec") or {})
    except (ValidationError, KubetaskError) as e:
        console.print(f"[bold red]✗ Invalid run spec:[/bold red] {e}")
        raise typer.Exit(code=1)

    if not spec.tasks:
        console.print("[bold red]✗ Invalid run:[/bold red] No tasks to run")
        raise typer.Exit(code=1)

    failures = 0
    seen: set[str] = set()
    for raw in spec.tasks:
        key = raw.get("key", "") if isinstance(raw, dict) else ""
        key = key if isinstance(key, str) else str(key)
        try:
            if key and key in seen:
                raise DuplicateTaskKeyError(key)
            seen.add(key)
            validate_task(to_task(raw))
            console.print(f"  [green]✓[/green] {key}")
        except KubetaskError as e:
            failures += 1
            console.print(f"  [red]✗[/red] {key or '<no key>'}: {e}")

    if failures:
        console.print(f"\n[bold red]✗ {failures} task(s) failed validation[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"\n[bold green]✓ All {len(spec.tasks)} task(s) are valid[/bold green]")


@app.command()
def version():
    """Show Kubetask version."""
    from . import __version__

    console.print(f"Kubetask version: [bold]{__version__}[/bold]")


if __name__ == "__main__":
    app()
