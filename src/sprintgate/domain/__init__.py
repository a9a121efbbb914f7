"""
Domain layer for SprintGate.

Contains the agent catalogue, capability policy, prompt assembly, document
sharding and pipeline definitions, with no external dependencies.
"""

from sprintgate.domain.agents import (
    BMAD_AGENTS,
    DEFAULT_REGISTRY,
    AgentRegistry,
    format_agent_list,
    get_agent,
    get_agent_for_command,
    get_agents,
)
from sprintgate.domain.capabilities import (
    build_isolation_instructions,
    check_agent_permission,
    get_agent_capabilities,
)
from sprintgate.domain.exceptions import ConfigurationError, ReasoningEngineError
from sprintgate.domain.interfaces import (
    DocumentSourceInterface,
    GateInterface,
    PipelineEventStoreInterface,
    ReasoningEngineInterface,
    StateRecorderInterface,
)
from sprintgate.domain.models import (
    CAPABILITY_FLAGS,
    Agent,
    AgentCapabilities,
    AgentMenuItem,
    CrossRef,
    DocumentShard,
    DocumentType,
    GateReport,
    GateResult,
    MemoryFact,
    OrchestrationResult,
    Pipeline,
    PrdRecord,
    PrdStatus,
    ProjectDocument,
    ProjectState,
    PromptContext,
    RetroAction,
    Retrospective,
    RunStatus,
    ShardedDocument,
    Stage,
    StageOutcome,
    Subtask,
    TaskRecord,
    TocEntry,
)
from sprintgate.domain.pipeline_event import PipelineEvent, PipelineEventType
from sprintgate.domain.pipelines import PIPELINES, get_pipeline
from sprintgate.domain.prompts import (
    COMMAND_FAMILIES,
    EnrichedPrompt,
    build_agent_prompt_for_command,
    build_agent_system_prompt,
    build_exec_prompt,
    build_full_agent_prompt,
    build_orchestration_instructions,
    enrich_prompt_with_agent,
)
from sprintgate.domain.sharding import (
    PREAMBLE_TITLE,
    build_budgeted_context,
    build_sharded_context,
    estimate_tokens,
    find_related_documents,
    format_cross_refs,
    split_into_sections,
)

__all__ = [
    # Models
    "Agent",
    "AgentCapabilities",
    "AgentMenuItem",
    "CAPABILITY_FLAGS",
    "PromptContext",
    "Subtask",
    "TaskRecord",
    "PrdRecord",
    "PrdStatus",
    "ProjectState",
    "DocumentType",
    "DocumentShard",
    "ProjectDocument",
    "ShardedDocument",
    "TocEntry",
    "CrossRef",
    "Retrospective",
    "RetroAction",
    "MemoryFact",
    "GateResult",
    "GateReport",
    "Stage",
    "Pipeline",
    "RunStatus",
    "StageOutcome",
    "OrchestrationResult",
    "PipelineEvent",
    "PipelineEventType",
    # Agents and capabilities
    "AgentRegistry",
    "BMAD_AGENTS",
    "DEFAULT_REGISTRY",
    "get_agents",
    "get_agent",
    "get_agent_for_command",
    "format_agent_list",
    "get_agent_capabilities",
    "check_agent_permission",
    "build_isolation_instructions",
    # Prompts
    "COMMAND_FAMILIES",
    "EnrichedPrompt",
    "build_full_agent_prompt",
    "build_agent_system_prompt",
    "build_agent_prompt_for_command",
    "build_exec_prompt",
    "build_orchestration_instructions",
    "enrich_prompt_with_agent",
    # Sharding
    "PREAMBLE_TITLE",
    "split_into_sections",
    "estimate_tokens",
    "build_sharded_context",
    "build_budgeted_context",
    "find_related_documents",
    "format_cross_refs",
    # Pipelines
    "PIPELINES",
    "get_pipeline",
    # Interfaces
    "ReasoningEngineInterface",
    "GateInterface",
    "DocumentSourceInterface",
    "StateRecorderInterface",
    "PipelineEventStoreInterface",
    # Exceptions
    "ConfigurationError",
    "ReasoningEngineError",
]
