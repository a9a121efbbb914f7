"""
Domain models for SprintGate.

These are pure data structures: agent personas, prompt context, document
shards, the project state snapshot evaluated by gates, and pipeline results.
All models are immutable (frozen dataclasses) so a snapshot handed to a gate
or a prompt builder can never change underneath it.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

# =============================================================================
# AGENTS
# =============================================================================


@dataclass(frozen=True)
class AgentCapabilities:
    """Permission flags of an agent persona.

    ``allowed_file_patterns`` is advisory text for the prompt, not an
    access-control list.
    """

    can_modify_code: bool = False
    can_modify_architecture: bool = False
    can_modify_prd: bool = False
    can_create_tasks: bool = False
    can_review_code: bool = False
    can_deploy_to_production: bool = False
    allowed_file_patterns: tuple[str, ...] = ()

    @classmethod
    def restricted(cls) -> "AgentCapabilities":
        """The most restrictive record: every flag false, no files."""
        return cls()

    def flags(self) -> dict[str, bool]:
        """Boolean flags in declaration order."""
        return {name: getattr(self, name) for name in CAPABILITY_FLAGS}


CAPABILITY_FLAGS: tuple[str, ...] = (
    "can_modify_code",
    "can_modify_architecture",
    "can_modify_prd",
    "can_create_tasks",
    "can_review_code",
    "can_deploy_to_production",
)


@dataclass(frozen=True)
class AgentMenuItem:
    """Entry of a persona's method menu (display only)."""

    trigger: str  # e.g. "CP", "DS"
    description: str


@dataclass(frozen=True)
class Agent:
    """A fixed persona with a role, routed commands and capability flags."""

    id: str
    name: str
    title: str
    icon: str
    role: str
    identity: str = ""
    communication_style: str = ""
    principles: str = ""
    critical_actions: tuple[str, ...] = ()
    commands: tuple[str, ...] = ()  # Workflow commands routed to this agent
    menu: tuple[AgentMenuItem, ...] = ()
    capabilities: AgentCapabilities = field(default_factory=AgentCapabilities)


# =============================================================================
# PROMPT CONTEXT
# =============================================================================


@dataclass(frozen=True)
class Subtask:
    """Single checklist item of a task."""

    title: str
    done: bool = False
    ac_mapping: str | None = None  # e.g. "AC-1"


@dataclass(frozen=True)
class PromptContext:
    """Per-invocation data for prompt assembly. Only ``command`` is required."""

    command: str
    task_title: str | None = None
    task_description: str | None = None
    priority: int | None = None
    sprint_id: str | None = None
    project_name: str | None = None
    acceptance_criteria: str | None = None
    subtasks: tuple[Subtask, ...] = ()
    sharded_context: str | None = None
    dev_notes: str | None = None
    architecture_ref: str | None = None


# =============================================================================
# DOCUMENTS AND SHARDS
# =============================================================================


class DocumentType(str, Enum):
    """Kind of project document that can be sharded."""

    PRD = "prd"
    ARCHITECTURE = "architecture"
    STORY = "story"
    RESEARCH = "research"
    RETRO = "retro"
    ANALYSIS = "analysis"
    MEMORY = "memory"


@dataclass(frozen=True)
class DocumentShard:
    """Heading-delimited section of a source document."""

    title: str
    content: str
    order: int  # Position within the source document
    level: int = 0  # Heading level, 0 for the preamble
    token_estimate: int = 0
    refs: tuple[str, ...] = ()  # Other section titles mentioned in content


@dataclass(frozen=True)
class ProjectDocument:
    """A project document as held by the persistence collaborator."""

    document_id: str
    title: str
    content: str
    doc_type: DocumentType = DocumentType.PRD


@dataclass(frozen=True)
class ShardedDocument:
    """A document split into shards, derived from one content revision."""

    document: ProjectDocument
    shards: tuple[DocumentShard, ...]
    revision: str  # SHA-256 of the content the shards were derived from

    @property
    def total_tokens(self) -> int:
        return sum(s.token_estimate for s in self.shards)

    @property
    def sections(self) -> tuple[str, ...]:
        return tuple(s.title for s in self.shards)


@dataclass(frozen=True)
class TocEntry:
    """Table-of-contents line of a sharded document, without its content."""

    title: str
    index: int
    tokens: int


@dataclass(frozen=True)
class CrossRef:
    """Section of another document that overlaps a given document."""

    document_id: str
    doc_type: DocumentType
    section_title: str
    overlap_score: int


@dataclass(frozen=True)
class RetroAction:
    """Follow-up action proposed by a retrospective."""

    action: str
    priority: str = "medium"


@dataclass(frozen=True)
class Retrospective:
    """Outcome of a sprint retrospective."""

    sprint_id: str
    what_worked: tuple[str, ...] = ()
    what_didnt: tuple[str, ...] = ()
    patterns_detected: tuple[str, ...] = ()
    actions_proposed: tuple[RetroAction, ...] = ()
    raw_analysis: str | None = None


@dataclass(frozen=True)
class MemoryFact:
    """Fact remembered about a project, grouped by category when sharded."""

    content: str
    category: str | None = None  # None files the fact under "general"


# =============================================================================
# PROJECT STATE (gate snapshot)
# =============================================================================


class PrdStatus(str, Enum):
    """Lifecycle of a PRD record."""

    DRAFT = "draft"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class PrdRecord:
    """Product requirements document record."""

    prd_id: str
    title: str
    status: PrdStatus = PrdStatus.DRAFT
    content: str = ""


@dataclass(frozen=True)
class TaskRecord:
    """Task as stored by the persistence collaborator."""

    task_id: str
    title: str
    description: str | None = None
    priority: int | None = None
    acceptance_criteria: str | None = None
    subtasks: tuple[Subtask, ...] = ()
    dev_notes: str | None = None
    architecture_ref: str | None = None
    project: str | None = None
    sprint_id: str | None = None


@dataclass(frozen=True)
class ProjectState:
    """Snapshot of project/sprint state that gates evaluate."""

    project_id: str
    task: TaskRecord
    prds: tuple[PrdRecord, ...] = ()
    outputs: tuple[tuple[str, str], ...] = ()  # (command, output) pairs
    ci_passed: bool | None = None

    def output_for(self, command: str) -> str | None:
        """Latest recorded output for a command."""
        for cmd, text in reversed(self.outputs):
            if cmd == command:
                return text
        return None

    def with_output(self, command: str, output: str) -> "ProjectState":
        """
        Copy of this state with ``output`` recorded for ``command``.

        Each command keeps a single entry: re-running a stage (e.g. when a
        blocked run is resumed) replaces its earlier output in place.
        """
        if any(cmd == command for cmd, _ in self.outputs):
            outputs = tuple(
                (cmd, output if cmd == command else text) for cmd, text in self.outputs
            )
        else:
            outputs = (*self.outputs, (command, output))
        return replace(self, outputs=outputs)


# =============================================================================
# GATES
# =============================================================================


@dataclass(frozen=True)
class GateResult:
    """Outcome of one named gate."""

    gate: str
    passed: bool
    reasons: tuple[str, ...] = ()
    overridable: bool = True
    overridden: bool = False  # Set by aggregation when listed in overrides


@dataclass(frozen=True)
class GateReport:
    """Aggregate of every gate required by a stage."""

    passed: bool
    results: tuple[GateResult, ...] = ()
    overrides: tuple[str, ...] = ()  # Override names requested by the caller

    @property
    def failures(self) -> tuple[GateResult, ...]:
        """Failing gates that count against the aggregate."""
        return tuple(r for r in self.results if not r.passed and not r.overridden)

    @property
    def overridden(self) -> tuple[GateResult, ...]:
        """Failing gates excluded from the aggregate by an override."""
        return tuple(r for r in self.results if r.overridden)

    @property
    def reasons(self) -> tuple[str, ...]:
        """Every failing gate's reasons, prefixed with the gate name."""
        return tuple(f"{r.gate}: {reason}" for r in self.failures for reason in r.reasons)


# =============================================================================
# PIPELINES
# =============================================================================


@dataclass(frozen=True)
class Stage:
    """One command-driven step of a pipeline."""

    command: str
    required_gates: tuple[str, ...] = ()
    label: str = ""


@dataclass(frozen=True)
class Pipeline:
    """Named, ordered sequence of stages."""

    name: str
    stages: tuple[Stage, ...]

    def __len__(self) -> int:
        return len(self.stages)


class RunStatus(str, Enum):
    """Pipeline run state machine."""

    PENDING = "pending"
    RUNNING = "running"
    ADVANCED = "advanced"  # Stage passed, next stage pending
    BLOCKED = "blocked"  # Gate failure or collaborator failure
    COMPLETED = "completed"  # Last stage passed


@dataclass(frozen=True)
class StageOutcome:
    """Result of running a single stage."""

    stage_index: int
    stage: Stage
    status: RunStatus
    agent_id: str | None = None
    prompt: str = ""
    output: str = ""
    gate_report: GateReport | None = None
    error: str | None = None
    duration_ms: int = 0
    state: ProjectState | None = None  # Snapshot after the stage recorded its output

    @property
    def blocking_reasons(self) -> tuple[str, ...]:
        if self.error:
            return (self.error,)
        if self.gate_report is not None:
            return self.gate_report.reasons
        return ()


@dataclass(frozen=True)
class OrchestrationResult:
    """Outcome of a pipeline run."""

    pipeline: str
    status: RunStatus
    stage_index: int  # Stage reached (len(stages) when completed)
    steps: tuple[StageOutcome, ...]
    state: ProjectState
    run_id: str = ""
    duration_ms: int = 0
    total_stages: int = 0

    @property
    def success(self) -> bool:
        return self.status is RunStatus.COMPLETED

    @property
    def blocked_step(self) -> StageOutcome | None:
        if self.status is RunStatus.BLOCKED and self.steps:
            return self.steps[-1]
        return None
