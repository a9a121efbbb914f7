"""
Command-line interface.

Usage:
    sprintgate agents
    sprintgate pipelines
    sprintgate shard docs/prd.md --query "login page"
    sprintgate prompt exec --title "Add login" --priority 1 --subtask "Create form (AC: AC-1)"
    sprintgate run task.json --pipeline quick --responses outputs.json
"""

import json
import logging
import re
from pathlib import Path

import click

from sprintgate import __version__
from sprintgate.application import PipelineOrchestrator, ShardCache, format_orchestration_result
from sprintgate.console import (
    console,
    print_agents,
    print_error,
    print_header,
    print_pipelines,
    print_result,
    print_text,
)
from sprintgate.domain import (
    ConfigurationError,
    DocumentType,
    ProjectDocument,
    PromptContext,
    Subtask,
    build_agent_prompt_for_command,
    format_agent_list,
    get_agents,
)
from sprintgate.domain.sharding import format_shard_overview
from sprintgate.gates import GATE_REGISTRY, GateEngine
from sprintgate.infrastructure import (
    DEFAULT_CONFIG_FILE,
    FilesystemPipelineEventStore,
    InMemoryDocumentStore,
    MockReasoningEngine,
    ReasoningEngineRegistry,
    SprintGateConfig,
    load_config,
    load_project_state,
)
from sprintgate.logging_setup import setup_logging

logger = logging.getLogger("sprintgate.cli")

_SUBTASK = re.compile(r"^\s*(?:\[(?P<box>[ xX])\]\s*)?(?P<title>.+?)(?:\s*\(AC:\s*(?P<ac>[^)]+)\))?\s*$")


def parse_subtask(text: str) -> Subtask:
    """Parse ``[x] title (AC: AC-1)``; the box and the AC part are optional."""
    match = _SUBTASK.match(text)
    if match is None:
        raise click.BadParameter(f"Invalid subtask: {text!r}")
    return Subtask(
        title=match.group("title"),
        done=(match.group("box") or " ").lower() == "x",
        ac_mapping=match.group("ac").strip() if match.group("ac") else None,
    )


def _document_from_file(path: Path, doc_type: str = "prd") -> ProjectDocument:
    return ProjectDocument(
        document_id=path.stem,
        title=path.stem,
        content=path.read_text(),
        doc_type=DocumentType(doc_type),
    )


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"Path to config file (default: ./{DEFAULT_CONFIG_FILE} if present)",
)
@click.option("--log-file", default=None, type=click.Path(), help="Path to log file")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose (DEBUG) logging to console")
@click.version_option(__version__, prog_name="sprintgate")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_file: str | None, verbose: bool) -> None:
    """Gate-checked multi-agent delivery pipelines."""
    setup_logging("sprintgate", log_file=log_file, verbose=verbose)

    if config_path is None and Path(DEFAULT_CONFIG_FILE).exists():
        config_path = Path(DEFAULT_CONFIG_FILE)

    try:
        ctx.obj = load_config(config_path, known_gates=GATE_REGISTRY)
    except ConfigurationError as e:
        print_error(str(e), hint=f"Check {config_path}")
        ctx.exit(2)


@cli.command()
@click.option("--plain", is_flag=True, help="Print the plain-text listing used for notifications")
def agents(plain: bool) -> None:
    """List agents, their commands and capabilities."""
    if plain:
        click.echo(format_agent_list())
        return
    print_agents(get_agents())


@cli.command()
@click.pass_obj
def pipelines(config: SprintGateConfig) -> None:
    """List pipelines with their stages and gates."""
    print_pipelines(config.pipelines.values())


@cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--type",
    "doc_type",
    default="prd",
    type=click.Choice([t.value for t in DocumentType]),
    help="Document type (default: prd)",
)
@click.option("--query", default=None, help="Show the task context built for this query")
@click.option("--budget", default=None, type=click.IntRange(min=1), help="Token budget for --query")
@click.pass_obj
def shard(
    config: SprintGateConfig,
    document: Path,
    doc_type: str,
    query: str | None,
    budget: int | None,
) -> None:
    """Split a markdown document into sections."""
    cache = ShardCache(token_budget=config.token_budget)
    sharded = cache.shard_document("cli", _document_from_file(document, doc_type))
    print_text(format_shard_overview(sharded))

    if query:
        context = cache.build_task_context("cli", query, budget)
        print_text(context or "(no relevant sections)", title=f"Context for '{query}'")


@cli.command()
@click.argument("command")
@click.option("--title", default=None, help="Task title")
@click.option("--description", default=None, help="Task description")
@click.option("--priority", default=None, type=click.IntRange(min=1), help="Priority (1 = P1)")
@click.option("--sprint", default=None, help="Sprint id")
@click.option("--project", default=None, help="Project name")
@click.option("--ac", "acceptance_criteria", default=None, help="Acceptance criteria")
@click.option(
    "--subtask",
    "subtasks",
    multiple=True,
    help='Subtask, e.g. "[x] Add tests" or "Create form (AC: AC-1)"',
)
@click.option("--notes", default=None, help="Dev notes")
@click.option(
    "--docs",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Markdown documents to draw context from",
)
@click.pass_obj
def prompt(
    config: SprintGateConfig,
    command: str,
    title: str | None,
    description: str | None,
    priority: int | None,
    sprint: str | None,
    project: str | None,
    acceptance_criteria: str | None,
    subtasks: tuple[str, ...],
    notes: str | None,
    docs: tuple[Path, ...],
) -> None:
    """Print the prompt the agent owning COMMAND would receive."""
    sharded_context = None
    if docs and title:
        cache = ShardCache(token_budget=config.token_budget)
        for path in docs:
            cache.shard_document("cli", _document_from_file(path))
        sharded_context = cache.build_task_context("cli", title) or None

    context = PromptContext(
        command=command,
        task_title=title,
        task_description=description,
        priority=priority,
        sprint_id=sprint,
        project_name=project,
        acceptance_criteria=acceptance_criteria,
        subtasks=tuple(parse_subtask(s) for s in subtasks),
        sharded_context=sharded_context,
        dev_notes=notes,
    )
    text, agent_id = build_agent_prompt_for_command(command, context)
    if agent_id is None:
        print_error(f"No agent handles command '{command}'", hint="See: sprintgate agents")
        raise SystemExit(1)

    click.echo(text)


@cli.command()
@click.argument("task_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--pipeline", "pipeline_name", default="default", help="Pipeline name (default: default)")
@click.option("--start-stage", default=0, type=click.IntRange(min=0), help="Stage index to resume from")
@click.option("--override", "overrides", multiple=True, help="Gate to override (repeatable)")
@click.option(
    "--docs",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Markdown documents of the project",
)
@click.option(
    "--responses",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON list of canned engine outputs (uses the mock engine)",
)
@click.option("--events-dir", default=None, type=click.Path(file_okay=False, path_type=Path), help="Write the run trace here")
@click.pass_obj
def run(
    config: SprintGateConfig,
    task_file: Path,
    pipeline_name: str,
    start_stage: int,
    overrides: tuple[str, ...],
    docs: tuple[Path, ...],
    responses: Path | None,
    events_dir: Path | None,
) -> None:
    """Run a pipeline for the task in TASK_FILE."""
    pipeline = config.get_pipeline(pipeline_name)
    if pipeline is None:
        print_error(
            f"Unknown pipeline: '{pipeline_name}'",
            hint=f"Available: {', '.join(config.pipelines)}",
        )
        raise SystemExit(2)

    try:
        state = load_project_state(task_file)
    except ConfigurationError as e:
        print_error(str(e))
        raise SystemExit(2) from e

    if start_stage > len(pipeline):
        print_error(f"--start-stage {start_stage} is past the last stage ({len(pipeline)})")
        raise SystemExit(2)

    if responses is not None:
        try:
            outputs = json.loads(responses.read_text())
        except json.JSONDecodeError as e:
            raise click.BadParameter(
                f"{responses} is not valid JSON: {e}", param_hint="'--responses'"
            ) from e
        if not isinstance(outputs, list) or not all(isinstance(o, str) for o in outputs):
            raise click.BadParameter(
                f"{responses} must hold a JSON list of strings", param_hint="'--responses'"
            )
        engine = MockReasoningEngine(outputs)
    else:
        try:
            engine = ReasoningEngineRegistry().create(config.engine, config.engine_config)
        except ConfigurationError as e:
            print_error(str(e))
            raise SystemExit(2) from e

    store = InMemoryDocumentStore()
    for path in docs:
        store.put_document(state.project_id, _document_from_file(path))

    orchestrator = PipelineOrchestrator(
        engine,
        cache=ShardCache(store, token_budget=config.token_budget),
        gate_engine=GateEngine(review_min_score=config.review_min_score),
        event_store=FilesystemPipelineEventStore(events_dir) if events_dir else None,
        on_progress=lambda message: console.print(message, style="dim", markup=False),
    )

    print_header(f"Pipeline: {pipeline.name}", f"Task {state.task.task_id}: {state.task.title}")
    result = orchestrator.run(pipeline, state, start_stage=start_stage, overrides=overrides)
    print_result(result, format_orchestration_result(result))

    if not result.success:
        raise SystemExit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
