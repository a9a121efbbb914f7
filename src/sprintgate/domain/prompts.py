"""
Prompt assembly for agent personas.

A prompt is a sequence of sections, each present only when its data is:

    1. role header        5. acceptance criteria
    2. critical actions   6. subtasks
    3. isolation limits   7. document context
    4. command block      8. dev notes / architecture reference

Command blocks come from a table of command families; each family is a pure
function of the PromptContext.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace

from sprintgate.domain.agents import DEFAULT_REGISTRY, AgentRegistry, normalize_command
from sprintgate.domain.capabilities import build_isolation_instructions
from sprintgate.domain.models import Agent, PromptContext, Subtask, TaskRecord

SECTION_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class EnrichedPrompt:
    """Raw prompt wrapped with a persona, or unchanged when no agent owns it."""

    prompt: str
    agent: Agent | None = None


# =============================================================================
# COMMAND FAMILIES
# =============================================================================


def _execution(context: PromptContext) -> list[str]:
    return [
        "EXECUTION INSTRUCTIONS:",
        "- Analyse the existing codebase before any change",
        "- Execute the subtasks in the order given",
        "- Write tests for every feature you implement",
        "- Only mark a subtask done once its tests pass",
        "- Follow the existing code style (linting, naming, patterns)",
        "- Document every technical decision you make",
        "- If you are blocked, explain clearly why",
        "- End with a concise summary of what you did",
    ]


def _code_review(context: PromptContext) -> list[str]:
    return [
        "CODE REVIEW INSTRUCTIONS:",
        "- Adversarial review: look for problems, not compliments",
        "- Report at least 3 findings, even when the code is good",
        "- Categorise findings: critical / important / minor / suggestion",
        "- Check security, performance, maintainability and missing tests",
        "- Check alignment with the architecture and the PRD",
        "- Propose concrete fixes, not just observations",
    ]


def _decomposition(context: PromptContext) -> list[str]:
    return [
        "DECOMPOSITION INSTRUCTIONS:",
        "- Break the work into concrete, atomic technical subtasks",
        "- Each subtask must be executable by an autonomous agent",
        "- Order subtasks by logical dependency",
        "- Estimate priority (P1=critical, P2=important, P3=normal)",
        "- Include acceptance criteria for each subtask",
        "- Identify risks and dependencies",
    ]


def _prd(context: PromptContext) -> list[str]:
    return [
        "PRD INSTRUCTIONS:",
        "- Be concise but precise",
        "- Technical specs must be concrete (file names, APIs, tables)",
        "- Success criteria must be measurable",
        "- The implementation plan must split cleanly into tasks",
        "- Include # Objective, # Scope and # Success Criteria headings",
    ]


def _architecture(context: PromptContext) -> list[str]:
    return [
        "ARCHITECTURE INSTRUCTIONS:",
        "- Document technical decisions with their context (ADR format)",
        "- Make the trade-offs of every choice explicit",
        "- Use text diagrams (ASCII or mermaid) when useful",
        "- Stay aligned with the PRD constraints",
        "- Simplicity first, scalability when needed",
    ]


def _story(context: PromptContext) -> list[str]:
    return [
        "STORY INSTRUCTIONS:",
        "- Write the story with everything the developer needs",
        "- State numbered acceptance criteria (AC-1, AC-2, ...)",
        "- List subtasks in execution order, each mapped to an AC",
        "- Reference the architecture sections the story depends on",
    ]


def _retrospective(context: PromptContext) -> list[str]:
    return [
        "RETROSPECTIVE INSTRUCTIONS:",
        "- Analyse the sprint metrics factually",
        "- Identify positive patterns and points to improve",
        "- Compare with previous sprints when available",
        "- Propose concrete, measurable actions",
        "- Assess whether gates or checkpoints need adjusting",
        "- Focus on the system, not on individuals",
    ]


def _sprint_status(context: PromptContext) -> list[str]:
    return [
        "SPRINT INSTRUCTIONS:",
        "- Give a factual view of progress",
        "- Identify current blockers",
        "- Propose priority adjustments if needed",
        "- Flag delivery risks",
    ]


def _metrics(context: PromptContext) -> list[str]:
    return [
        "METRICS INSTRUCTIONS:",
        "- Analyse the sprint's quantitative data",
        "- Compare with historical trends",
        "- Identify anomalies and patterns",
        "- Recommend data-driven actions",
    ]


def _patterns(context: PromptContext) -> list[str]:
    return [
        "PATTERN ANALYSIS INSTRUCTIONS:",
        "- Analyse trends across sprints",
        "- Identify recurring patterns, positive and negative",
        "- Cross-check with metrics and retrospectives",
        "- Propose data-driven system improvements",
        "- Prioritise by potential impact",
    ]


def _analysis(context: PromptContext) -> list[str]:
    return [
        "ANALYSIS INSTRUCTIONS:",
        "- Factual, structured research",
        "- Verifiable sources when possible",
        "- Explicit analysis framework (SWOT, Porter, etc.)",
        "- Actionable recommendations",
    ]


def _alerts(context: PromptContext) -> list[str]:
    return [
        "ALERT INSTRUCTIONS:",
        "- Diagnose the detected problems",
        "- Prioritise by severity and impact",
        "- Propose concrete corrective actions",
        "- Check for potential regressions",
    ]


FAMILY_FORMATTERS: dict[str, Callable[[PromptContext], list[str]]] = {
    "execution": _execution,
    "code_review": _code_review,
    "decomposition": _decomposition,
    "prd": _prd,
    "architecture": _architecture,
    "story": _story,
    "retrospective": _retrospective,
    "sprint_status": _sprint_status,
    "metrics": _metrics,
    "patterns": _patterns,
    "analysis": _analysis,
    "alerts": _alerts,
}

COMMAND_FAMILIES: dict[str, str] = {
    "exec": "execution",
    "review": "code_review",
    "plan": "decomposition",
    "prd": "prd",
    "architecture": "architecture",
    "story": "story",
    "retro": "retrospective",
    "sprint": "sprint_status",
    "metrics": "metrics",
    "patterns": "patterns",
    "analysis": "analysis",
    "alerts": "alerts",
}


def command_instructions(context: PromptContext) -> list[str]:
    """Instruction lines of the context's command family (empty if none)."""
    family = COMMAND_FAMILIES.get(normalize_command(context.command))
    if family is None:
        return []
    return FAMILY_FORMATTERS[family](context)


# =============================================================================
# SECTIONS
# =============================================================================


def format_priority(priority: int) -> str:
    return f"P{priority}"


def format_subtask(subtask: Subtask) -> str:
    """Checkbox line: ``[x] title`` or ``[ ] title (AC: AC-1)``."""
    box = "[x]" if subtask.done else "[ ]"
    line = f"{box} {subtask.title}"
    if subtask.ac_mapping:
        line += f" (AC: {subtask.ac_mapping})"
    return line


def _role_header(agent: Agent) -> str:
    lines = [f"You are {agent.name}, {agent.title} ({agent.icon}).", ""]
    lines.append(f"ROLE: {agent.role}")
    if agent.identity:
        lines.append(f"IDENTITY: {agent.identity}")
    if agent.communication_style:
        lines.append(f"STYLE: {agent.communication_style}")
    if agent.principles:
        lines.extend(["", "PRINCIPLES:", agent.principles.strip()])
    return "\n".join(lines)


def _critical_actions(agent: Agent) -> str:
    if not agent.critical_actions:
        return ""
    return "\n".join(["CRITICAL ACTIONS:", *(f"- {a}" for a in agent.critical_actions)])


def _task_lines(context: PromptContext) -> list[str]:
    lines = []
    if context.task_title:
        lines.append(f"TASK: {context.task_title}")
    if context.task_description:
        lines.append(f"DESCRIPTION: {context.task_description}")
    if context.project_name:
        lines.append(f"PROJECT: {context.project_name}")
    if context.priority is not None:
        lines.append(f"PRIORITY: {format_priority(context.priority)}")
    if context.sprint_id:
        lines.append(f"SPRINT: {context.sprint_id}")
    return lines


def _command_block(context: PromptContext) -> str:
    instructions = command_instructions(context)
    task = _task_lines(context)
    if instructions and task:
        return "\n".join([*instructions, "", *task])
    return "\n".join(instructions or task)


def _labelled(label: str, body: str | None) -> str:
    if not body:
        return ""
    return f"{label}:\n{body}"


def _subtasks(subtasks: tuple[Subtask, ...]) -> str:
    if not subtasks:
        return ""
    return "\n".join(["SUBTASKS:", *(format_subtask(s) for s in subtasks)])


# =============================================================================
# BUILDERS
# =============================================================================


def build_full_agent_prompt(
    agent_id: str, context: PromptContext, registry: AgentRegistry = DEFAULT_REGISTRY
) -> str:
    """
    Assemble the complete instructions for one agent invocation.

    Args:
        agent_id: Persona to speak as
        context: Task and document data; missing fields omit their section
        registry: Agent catalogue

    Returns:
        The prompt, or "" if ``agent_id`` is unknown
    """
    agent = registry.get_agent(agent_id)
    if agent is None:
        return ""

    sections = [
        _role_header(agent),
        _critical_actions(agent),
        build_isolation_instructions(agent.id, registry),
        _command_block(context),
        _labelled("ACCEPTANCE CRITERIA", context.acceptance_criteria),
        _subtasks(context.subtasks),
        _labelled("DOCUMENT CONTEXT", context.sharded_context),
        _labelled("DEV NOTES", context.dev_notes),
        _labelled("ARCHITECTURE REFERENCE", context.architecture_ref),
    ]
    return SECTION_SEPARATOR.join(s for s in sections if s)


def build_agent_system_prompt(agent: Agent) -> str:
    """Persona prefix: role header plus critical actions."""
    sections = [_role_header(agent), _critical_actions(agent)]
    return SECTION_SEPARATOR.join(s for s in sections if s)


def enrich_prompt_with_agent(
    command: str, raw_prompt: str, registry: AgentRegistry = DEFAULT_REGISTRY
) -> EnrichedPrompt:
    """
    Prefix ``raw_prompt`` with the persona owning ``command``.

    Unmapped commands return the raw prompt unchanged with ``agent=None``.
    """
    agent = registry.get_agent_for_command(command)
    if agent is None:
        return EnrichedPrompt(prompt=raw_prompt)

    system = build_agent_system_prompt(agent)
    return EnrichedPrompt(prompt=f"{system}\n\n---\n\n{raw_prompt}", agent=agent)


def build_agent_prompt_for_command(
    command: str,
    context: PromptContext | None = None,
    registry: AgentRegistry = DEFAULT_REGISTRY,
) -> tuple[str, str | None]:
    """
    Route ``command`` to its agent and build that agent's full prompt.

    Returns:
        ``(prompt, agent_id)``, or ``("", None)`` for an unmapped command
    """
    agent = registry.get_agent_for_command(command)
    if agent is None:
        return "", None

    if context is None:
        context = PromptContext(command=command)
    elif context.command != command:
        context = replace(context, command=command)

    return build_full_agent_prompt(agent.id, context, registry), agent.id


def context_from_task(
    task: TaskRecord, command: str, sharded_context: str | None = None
) -> PromptContext:
    """PromptContext for running ``command`` on a stored task."""
    return PromptContext(
        command=command,
        task_title=task.title,
        task_description=task.description,
        priority=task.priority,
        sprint_id=task.sprint_id,
        project_name=task.project,
        acceptance_criteria=task.acceptance_criteria,
        subtasks=task.subtasks,
        sharded_context=sharded_context,
        dev_notes=task.dev_notes,
        architecture_ref=task.architecture_ref,
    )


def build_exec_prompt(
    task: TaskRecord,
    sharded_context: str | None = None,
    registry: AgentRegistry = DEFAULT_REGISTRY,
) -> str:
    """Developer execution prompt for a stored task."""
    context = context_from_task(task, "exec", sharded_context)
    return build_full_agent_prompt("dev", context, registry)


# Output contract of each persona when it runs inside a pipeline.
ORCHESTRATION_INSTRUCTIONS: dict[str, tuple[str, ...]] = {
    "analyst": (
        "- Analyse the feasibility and risks of the task",
        "- Identify dependencies and points of attention",
        "- Give a concise brief (500 words max) for the following agents",
        "- Format: ANALYSIS, RISKS, RECOMMENDATIONS",
    ),
    "pm": (
        "- Break the task into atomic subtasks if needed",
        "- Define precise acceptance criteria",
        "- Order subtasks by logical dependency",
        "- Format: SUBTASKS (list), ACCEPTANCE CRITERIA, PRIORITIES",
    ),
    "architect": (
        "- Validate technical feasibility",
        "- Propose the architecture or design if needed",
        "- Identify the files to change and the patterns to follow",
        "- Format: DESIGN, IMPACTED FILES, PATTERNS, TECHNICAL RISKS",
    ),
    "sm": (
        "- Summarise the overall outcome of the pipeline",
        "- Identify follow-up points",
        "- Propose next steps",
    ),
    "dev": (
        "- Implement according to the previous agents' specs",
        "- Follow the proposed architecture",
        "- Write tests for every change",
        "- End with a summary of the changed files",
    ),
    "qa": (
        "- Review the developer agent's work",
        "- Check alignment with the PM specs and the architecture",
        "- Identify missing tests",
        "- Give a quality score from 0 to 100 and findings",
        '- Format JSON: {"score", "findings": [{"severity", "description", '
        '"suggestion"}], "summary"}',
    ),
}


def build_orchestration_instructions(
    agent_id: str, registry: AgentRegistry = DEFAULT_REGISTRY
) -> str:
    """Pipeline output-format block for ``agent_id`` ("" if it has none)."""
    lines = ORCHESTRATION_INSTRUCTIONS.get(agent_id)
    if not lines:
        return ""
    agent = registry.get_agent(agent_id)
    label = agent.title if agent else agent_id
    return "\n".join([f"PIPELINE INSTRUCTIONS ({label}):", *lines])
