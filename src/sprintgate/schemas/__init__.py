"""SprintGate JSON Schema definitions and validation utilities.

Schemas:
    - config.schema.json: sprintgate.json settings and custom pipelines
    - task.schema.json: project snapshot a pipeline run starts from

Usage:
    from sprintgate.schemas import validate_config

    with open("sprintgate.json") as f:
        data = json.load(f)
    validate_config(data)  # Raises jsonschema.ValidationError if invalid
"""

import json
from importlib.resources import files
from typing import Any

import jsonschema


def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'config.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("sprintgate.schemas").joinpath(name).read_text()
    result: dict[str, Any] = json.loads(schema_text)
    return result


def get_config_schema() -> dict[str, Any]:
    """Get the sprintgate.json schema."""
    return _load_schema("config.schema.json")


def validate_config(data: dict[str, Any]) -> None:
    """Validate a configuration dictionary against the schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_config_schema())


def get_task_schema() -> dict[str, Any]:
    """Get the task file schema."""
    return _load_schema("task.schema.json")


def validate_task(data: dict[str, Any]) -> None:
    """Validate a task file against the schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_task_schema())


__all__ = [
    "get_config_schema",
    "validate_config",
    "get_task_schema",
    "validate_task",
]
