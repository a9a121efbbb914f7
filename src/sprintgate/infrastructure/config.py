"""
Configuration loading.

Reads ``sprintgate.json``, validates it against the bundled JSON Schema, then
checks what the schema cannot: every stage command must be routed to an
agent and every gate must exist. Any defect raises ConfigurationError at
load time.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema

from sprintgate.domain.agents import DEFAULT_REGISTRY, AgentRegistry, normalize_command
from sprintgate.domain.exceptions import ConfigurationError
from sprintgate.domain.models import (
    Pipeline,
    PrdRecord,
    PrdStatus,
    ProjectState,
    Stage,
    Subtask,
    TaskRecord,
)
from sprintgate.domain.pipelines import GATE_NAMES, PIPELINES
from sprintgate.schemas import validate_config, validate_task

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "sprintgate.json"
DEFAULT_ENGINE = "CliReasoningEngine"


@dataclass(frozen=True)
class SprintGateConfig:
    """Validated settings."""

    token_budget: int = 3000
    review_min_score: int = 50
    engine: str = DEFAULT_ENGINE
    engine_config: dict[str, Any] = field(default_factory=dict)
    pipelines: dict[str, Pipeline] = field(default_factory=lambda: dict(PIPELINES))

    def get_pipeline(self, name: str) -> Pipeline | None:
        return self.pipelines.get(name)


def _build_pipeline(
    name: str,
    stages: list[dict[str, Any]],
    registry: AgentRegistry,
    known_gates: set[str],
) -> Pipeline:
    built = []
    for position, stage in enumerate(stages, start=1):
        command = normalize_command(stage["command"])
        if registry.get_agent_for_command(command) is None:
            raise ConfigurationError(
                f"Pipeline '{name}' stage {position}: no agent handles command '{command}'"
            )
        gates = tuple(stage.get("gates", ()))
        unknown = [g for g in gates if g not in known_gates]
        if unknown:
            raise ConfigurationError(
                f"Pipeline '{name}' stage {position}: unknown gate(s) {', '.join(unknown)}. "
                f"Valid gates: {', '.join(sorted(known_gates))}"
            )
        built.append(Stage(command, gates, label=stage.get("label", "")))
    return Pipeline(name=name, stages=tuple(built))


def parse_config(
    data: Any,
    registry: AgentRegistry = DEFAULT_REGISTRY,
    known_gates: Iterable[str] = GATE_NAMES,
    source: str = "<config>",
) -> SprintGateConfig:
    """
    Validate a decoded configuration.

    Args:
        data: Decoded JSON document
        registry: Agents that stage commands must route to
        known_gates: Gate names stages may require
        source: Label for error messages

    Returns:
        SprintGateConfig with predefined pipelines merged with custom ones

    Raises:
        ConfigurationError: If the document is invalid
    """
    try:
        validate_config(data)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "(root)"
        raise ConfigurationError(f"Invalid {source} at {location}: {e.message}") from e

    gates = set(known_gates)
    pipelines = dict(PIPELINES)
    for name, stages in data.get("pipelines", {}).items():
        if name in pipelines:
            logger.info(f"{source}: pipeline '{name}' replaces the predefined one")
        pipelines[name] = _build_pipeline(name, stages, registry, gates)

    engine = data.get("engine", {})
    return SprintGateConfig(
        token_budget=data.get("token_budget", SprintGateConfig.token_budget),
        review_min_score=data.get("review_min_score", SprintGateConfig.review_min_score),
        engine=engine.get("name", DEFAULT_ENGINE),
        engine_config=dict(engine.get("config", {})),
        pipelines=pipelines,
    )


def load_config(
    path: Path | None = None,
    registry: AgentRegistry = DEFAULT_REGISTRY,
    known_gates: Iterable[str] = GATE_NAMES,
) -> SprintGateConfig:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to sprintgate.json (None: defaults only)
        registry: Agents that stage commands must route to
        known_gates: Gate names stages may require

    Returns:
        Validated SprintGateConfig

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    if path is None:
        return SprintGateConfig()

    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    config = parse_config(data, registry, known_gates, source=str(path))
    logger.debug(f"Loaded config from {path}: {len(config.pipelines)} pipelines")
    return config


# =============================================================================
# Task files
# =============================================================================


def parse_project_state(data: Any, source: str = "<task>") -> ProjectState:
    """
    Build a ProjectState from a decoded task file.

    Raises:
        ConfigurationError: If the document does not match the task schema
    """
    try:
        validate_task(data)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "(root)"
        raise ConfigurationError(f"Invalid {source} at {location}: {e.message}") from e

    task = data["task"]
    return ProjectState(
        project_id=data["project_id"],
        task=TaskRecord(
            task_id=task["task_id"],
            title=task["title"],
            description=task.get("description"),
            priority=task.get("priority"),
            acceptance_criteria=task.get("acceptance_criteria"),
            subtasks=tuple(
                Subtask(s["title"], s.get("done", False), s.get("ac_mapping"))
                for s in task.get("subtasks", [])
            ),
            dev_notes=task.get("dev_notes"),
            architecture_ref=task.get("architecture_ref"),
            project=task.get("project"),
            sprint_id=task.get("sprint_id"),
        ),
        prds=tuple(
            PrdRecord(
                prd_id=p["prd_id"],
                title=p["title"],
                status=PrdStatus(p.get("status", "draft")),
                content=p.get("content", ""),
            )
            for p in data.get("prds", [])
        ),
        ci_passed=data.get("ci_passed"),
    )


def load_project_state(path: Path) -> ProjectState:
    """
    Load a task file.

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    if not path.exists():
        raise ConfigurationError(f"Task file not found: {path}")

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    return parse_project_state(data, source=str(path))
