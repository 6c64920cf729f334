"""Main CLI entry point using Typer."""

import importlib
import json
from collections.abc import Iterable
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from organic import __version__
from organic.clients.anthropic_client import AnthropicModelClient
from organic.core.config import get_settings
from organic.core.errors import TaskError
from organic.core.logging import configure_logging
from organic.tasks.executor import TaskExecutor
from organic.tasks.models import TaskDescriptor
from organic.tasks.registry import TaskRegistry

app = typer.Typer(
    name="organic",
    help="Organic - resilient execution of symbolic, neural, and hybrid tasks",
    add_completion=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]Organic[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Organic - run tasks with typed contracts, deadlines, and retries.
    """
    pass


# =============================================================================
# HELPERS
# =============================================================================


def _load_registry(target: str) -> TaskRegistry:
    """Import ``module:attribute`` and turn it into a TaskRegistry."""
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise typer.BadParameter(f"Expected MODULE:ATTRIBUTE, got '{target}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"Cannot import module '{module_name}': {e}") from e

    try:
        value: Any = getattr(module, attribute)
    except AttributeError as e:
        raise typer.BadParameter(f"Module '{module_name}' has no attribute '{attribute}'") from e

    if callable(value) and not isinstance(value, (TaskRegistry, TaskDescriptor)):
        value = value()
    if isinstance(value, TaskRegistry):
        return value
    if isinstance(value, TaskDescriptor):
        return TaskRegistry([value])
    if isinstance(value, Iterable):
        return TaskRegistry(value)
    raise typer.BadParameter(f"'{target}' is not a task registry or a list of tasks")


def _parse_inputs(pairs: list[str]) -> dict[str, Any]:
    """Parse ``key=value`` pairs, decoding values as JSON when possible."""
    inputs: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'")
        try:
            inputs[key] = json.loads(raw)
        except json.JSONDecodeError:
            inputs[key] = raw
    return inputs


def _build_executor(registry: TaskRegistry) -> TaskExecutor:
    settings = get_settings()
    client = None
    if settings.anthropic_api_key:
        client = AnthropicModelClient.from_settings(settings)
    return TaskExecutor(registry, client, settings=settings)


# =============================================================================
# COMMANDS
# =============================================================================


@app.command()
def run(
    target: str = typer.Argument(..., help="Task registry as MODULE:ATTRIBUTE"),
    task: str = typer.Argument(..., help="Name of the task to execute"),
    inputs: list[str] = typer.Option(
        [],
        "--input",
        "-i",
        help="Input value as key=value (value parsed as JSON when possible)",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Per-attempt deadline in seconds (0 disables)",
    ),
    max_retries: int | None = typer.Option(
        None,
        "--max-retries",
        "-r",
        help="Retry budget for retryable failures",
    ),
) -> None:
    """
    Execute one task and print its outputs as JSON.

    Example:
        organic run myapp.tasks:registry add -i a=10 -i b=32
    """
    configure_logging()
    executor = _build_executor(_load_registry(target))

    try:
        result = executor.execute(
            task,
            _parse_inputs(inputs),
            timeout=timeout,
            max_retries=max_retries,
        )
    except TaskError as e:
        console.print(
            Panel(
                f"[bold]{e.category.value}[/bold]: {e}",
                title="[bold red]Task failed[/bold red]",
                border_style="red",
            )
        )
        raise typer.Exit(code=1) from e

    console.print_json(json.dumps(result, default=str))


@app.command()
def tasks(
    target: str = typer.Argument(..., help="Task registry as MODULE:ATTRIBUTE"),
) -> None:
    """
    List registered tasks with their kind and deadline.
    """
    registry = _load_registry(target)
    executor = TaskExecutor(registry, settings=get_settings())

    table = Table(title="Tasks")
    table.add_column("Name", style="bold")
    table.add_column("Kind", style="cyan")
    table.add_column("Timeout")
    table.add_column("Inputs")
    table.add_column("Outputs")

    for name, descriptor in registry.items():
        kind = executor.task_kind(name)
        table.add_row(
            name,
            kind.value if kind else "-",
            f"{executor.timeout_for(name)}s",
            ", ".join(f"{k}: {v.value}" for k, v in descriptor.input_schema.items()) or "-",
            ", ".join(f"{k}: {v.value}" for k, v in descriptor.output_schema.items()) or "-",
        )

    console.print(table)


@app.command()
def config() -> None:
    """
    Show effective settings.
    """
    settings = get_settings()

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for name, value in settings.model_dump().items():
        if name == "anthropic_api_key":
            value = "********" if value else "-"
        table.add_row(name, str(value))

    console.print(table)


if __name__ == "__main__":
    app()
