"""Gate building factory."""

from typing import Any

from sprintgate.domain.exceptions import ConfigurationError
from sprintgate.domain.interfaces import GateInterface
from sprintgate.gates.prd import PrdGate
from sprintgate.gates.review import DEFAULT_MIN_SCORE, ReviewGate
from sprintgate.gates.task import ArchitectureGate, ExecutionGate, StoryGate

# Registry of available gates by name
GATE_REGISTRY: dict[str, type[GateInterface]] = {
    PrdGate.name: PrdGate,
    ArchitectureGate.name: ArchitectureGate,
    StoryGate.name: StoryGate,
    ExecutionGate.name: ExecutionGate,
    ReviewGate.name: ReviewGate,
}


def register_gate(name: str, gate_class: type[GateInterface]) -> None:
    """
    Register a custom gate.

    Args:
        name: Gate name used in pipeline stages (e.g., "security_scan")
        gate_class: GateInterface implementation class
    """
    GATE_REGISTRY[name] = gate_class


def build_gate(config: str | dict[str, Any]) -> GateInterface:
    """
    Build a gate from its name or a configuration dict.

    Supports:
    - "prd_approved", "architecture_ready", "story_ready", "execution_complete"
    - "review_passed" with an optional "min_score" (default 50)
    - Custom gates registered via register_gate()

    Args:
        config: Gate name, or dict with a "gate" key

    Returns:
        Configured GateInterface instance

    Raises:
        ConfigurationError: If the gate is unknown or the config is invalid
    """
    if isinstance(config, str):
        config = {"gate": config}

    if "gate" not in config:
        raise ConfigurationError("Gate config missing 'gate' key")

    name = config["gate"]
    if name not in GATE_REGISTRY:
        raise ConfigurationError(
            f"Unknown gate: '{name}'. Valid gates: {', '.join(GATE_REGISTRY)}"
        )

    gate_class = GATE_REGISTRY[name]

    if gate_class is ReviewGate:
        min_score = config.get("min_score", DEFAULT_MIN_SCORE)
        if not isinstance(min_score, int) or not 0 <= min_score <= 100:
            raise ConfigurationError(f"Invalid min_score for '{name}': {min_score!r}")
        return ReviewGate(min_score=min_score)

    gate = gate_class()
    if gate.name != name:
        # Registered under an alias
        gate.name = name
    return gate
