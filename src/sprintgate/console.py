"""Rich console utilities for the sprintgate CLI."""

from collections.abc import Iterable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sprintgate.domain.models import Agent, OrchestrationResult, Pipeline

# Shared console instances
console = Console()
error_console = Console(stderr=True)


def print_header(title: str, subtitle: str | None = None) -> None:
    """Print a styled header panel."""
    content = Text(title, style="bold blue")
    if subtitle:
        content.append(f"\n{subtitle}", style="dim")
    console.print(Panel(content, expand=False))


def print_error(message: str, hint: str | None = None) -> None:
    """Print formatted error message to stderr."""
    content = Text(f"ERROR: {message}", style="bold red")
    if hint:
        content.append(f"\n\nHint: {hint}", style="yellow")
    error_console.print(Panel(content, title="Error", border_style="red"))


def print_text(text: str, title: str | None = None) -> None:
    """Print plain text in a panel (no markup interpretation)."""
    console.print(Panel(Text(text), title=title, expand=False))


def print_agents(agents: Iterable[Agent]) -> None:
    """Print the agent catalogue with routed commands and capabilities."""
    table = Table(title="BMad agents", show_header=True)
    table.add_column("", width=3)
    table.add_column("Agent", style="cyan")
    table.add_column("Title")
    table.add_column("Commands", style="magenta")
    table.add_column("Can", style="green")

    for agent in agents:
        granted = [
            name.removeprefix("can_").replace("_", " ")
            for name, allowed in agent.capabilities.flags().items()
            if allowed
        ]
        table.add_row(
            agent.icon,
            f"{agent.name} ({agent.id})",
            agent.title,
            ", ".join(f"/{c}" for c in agent.commands),
            ", ".join(granted) or "-",
        )

    console.print(table)


def print_pipelines(pipelines: Iterable[Pipeline]) -> None:
    """Print pipelines with their stages and gates."""
    table = Table(title="Pipelines", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Stages")

    for pipeline in pipelines:
        stages = []
        for stage in pipeline.stages:
            gates = f" [{', '.join(stage.required_gates)}]" if stage.required_gates else ""
            stages.append(f"{stage.command}{gates}")
        table.add_row(pipeline.name, Text(" -> ".join(stages)))

    console.print(table)


def print_result(result: OrchestrationResult, text: str) -> None:
    """Print a formatted orchestration result."""
    if result.success:
        console.print(Panel(Text(text), title="Completed", border_style="green"))
    else:
        console.print(Panel(Text(text), title="Blocked", border_style="red"))
