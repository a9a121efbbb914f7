"""
SprintGate: gate-checked multi-agent delivery pipelines.

Routes slash commands to specialised agents, assembles their prompts from
task state and sharded project documents, and chains agents through
pipelines whose stages advance only when deterministic gates pass.

Example:
    from sprintgate import PipelineOrchestrator, ProjectState, TaskRecord, get_pipeline
    from sprintgate.infrastructure import MockReasoningEngine

    engine = MockReasoningEngine(responses=["..."] * 3)
    orchestrator = PipelineOrchestrator(engine)
    state = ProjectState(project_id="p1", task=TaskRecord(task_id="T-1", title="Add login"))
    result = orchestrator.run(get_pipeline("quick"), state)
    print(result.status)
"""

# Application layer (orchestration)
from sprintgate.application import (
    PipelineOrchestrator,
    ShardCache,
    format_orchestration_result,
)

# Domain
from sprintgate.domain import (
    AgentRegistry,
    ConfigurationError,
    DocumentType,
    OrchestrationResult,
    Pipeline,
    PrdRecord,
    PrdStatus,
    ProjectDocument,
    ProjectState,
    PromptContext,
    ReasoningEngineError,
    ReasoningEngineInterface,
    RunStatus,
    Stage,
    Subtask,
    TaskRecord,
    build_agent_prompt_for_command,
    enrich_prompt_with_agent,
    get_agent,
    get_agent_for_command,
    get_agents,
    get_pipeline,
)

# Gates
from sprintgate.gates import GateEngine, GateOverrideLedger

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Application
    "PipelineOrchestrator",
    "ShardCache",
    "format_orchestration_result",
    # Domain
    "AgentRegistry",
    "DocumentType",
    "OrchestrationResult",
    "Pipeline",
    "PrdRecord",
    "PrdStatus",
    "ProjectDocument",
    "ProjectState",
    "PromptContext",
    "RunStatus",
    "Stage",
    "Subtask",
    "TaskRecord",
    "ReasoningEngineInterface",
    "get_agents",
    "get_agent",
    "get_agent_for_command",
    "get_pipeline",
    "build_agent_prompt_for_command",
    "enrich_prompt_with_agent",
    # Gates
    "GateEngine",
    "GateOverrideLedger",
    # Exceptions
    "ConfigurationError",
    "ReasoningEngineError",
]
