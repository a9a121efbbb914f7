"""
Role-scoped capability policy.

Capabilities are read from the agent registry; the isolation text built here
is advisory instructions for the reasoning engine, not enforcement.
"""

from sprintgate.domain.agents import DEFAULT_REGISTRY, AgentRegistry
from sprintgate.domain.models import CAPABILITY_FLAGS, AgentCapabilities

ISOLATION_HEADER = "ROLE LIMITS:"

# One restriction line per flag, emitted only when the flag is false.
RESTRICTION_LINES: dict[str, str] = {
    "can_modify_code": "- You CANNOT modify source code",
    "can_modify_architecture": "- You CANNOT change architecture decisions",
    "can_modify_prd": "- You CANNOT modify PRDs",
    "can_create_tasks": "- You CANNOT create tasks",
    "can_review_code": "- You CANNOT review code",
    "can_deploy_to_production": "- You CANNOT deploy to production",
}


def get_agent_capabilities(
    agent_id: str, registry: AgentRegistry = DEFAULT_REGISTRY
) -> AgentCapabilities:
    """Capabilities of ``agent_id``; unknown ids get the restricted record."""
    agent = registry.get_agent(agent_id)
    if agent is None:
        return AgentCapabilities.restricted()
    return agent.capabilities


def check_agent_permission(
    agent_id: str, capability: str, registry: AgentRegistry = DEFAULT_REGISTRY
) -> bool:
    """
    Whether ``agent_id`` holds ``capability``.

    Unknown capability names are never granted.
    """
    if capability not in CAPABILITY_FLAGS:
        return False
    return bool(getattr(get_agent_capabilities(agent_id, registry), capability))


def build_isolation_instructions(
    agent_id: str, registry: AgentRegistry = DEFAULT_REGISTRY
) -> str:
    """
    Advisory role-limit block for a prompt.

    Example (developer):
        ROLE LIMITS:
        - You CANNOT change architecture decisions
        ...
        - Allowed files: src/**, tests/**, config/**, package.json
    """
    caps = get_agent_capabilities(agent_id, registry)
    lines = [ISOLATION_HEADER]

    for flag, allowed in caps.flags().items():
        if not allowed:
            lines.append(RESTRICTION_LINES[flag])

    if caps.allowed_file_patterns:
        lines.append(f"- Allowed files: {', '.join(caps.allowed_file_patterns)}")

    return "\n".join(lines)
