"""
PipelineOrchestrator: sequences agent personas through a gated pipeline.

Per stage: resolve the agent, fetch task context from the shard cache,
assemble the prompt, call the reasoning engine, record the output, then
evaluate the stage gates. A failing gate or a collaborator failure blocks the
run; progress resumes only through a new invocation (optionally with gate
overrides) from the blocked stage.
"""

import logging
import time
import uuid
from collections.abc import Callable, Iterable

from sprintgate.application.event_emitter import PipelineEventEmitter
from sprintgate.application.shard_cache import ShardCache
from sprintgate.domain.agents import DEFAULT_REGISTRY, AgentRegistry
from sprintgate.domain.interfaces import (
    PipelineEventStoreInterface,
    ReasoningEngineInterface,
    StateRecorderInterface,
)
from sprintgate.domain.models import (
    Agent,
    GateReport,
    OrchestrationResult,
    Pipeline,
    ProjectState,
    RunStatus,
    Stage,
    StageOutcome,
)
from sprintgate.domain.prompts import (
    build_full_agent_prompt,
    build_orchestration_instructions,
    context_from_task,
)
from sprintgate.gates.engine import GateEngine

logger = logging.getLogger(__name__)

RESULT_EXCERPT_CHARS = 3000


class PipelineOrchestrator:
    """
    Runs pipelines stage by stage.

    Example:
        orchestrator = PipelineOrchestrator(engine=MockReasoningEngine(outputs))
        result = orchestrator.run(DEFAULT_PIPELINE, state)
        if result.status is RunStatus.BLOCKED:
            print(result.blocked_step.blocking_reasons)
    """

    def __init__(
        self,
        engine: ReasoningEngineInterface,
        cache: ShardCache | None = None,
        registry: AgentRegistry = DEFAULT_REGISTRY,
        gate_engine: GateEngine | None = None,
        recorder: StateRecorderInterface | None = None,
        event_store: PipelineEventStoreInterface | None = None,
        on_progress: Callable[[str], None] | None = None,
    ):
        """
        Args:
            engine: Reasoning engine collaborator
            cache: Shard cache supplying document context (None: no context)
            registry: Agent catalogue used for routing
            gate_engine: Gate evaluator (default: every registered gate)
            recorder: Persists stage outputs (None: outputs are kept on the
                in-memory snapshot only)
            event_store: Receives the run trace (None: no trace)
            on_progress: Called with a short line as each stage starts
        """
        self._engine = engine
        self._cache = cache
        self._registry = registry
        self._gates = gate_engine or GateEngine()
        self._recorder = recorder
        self._event_store = event_store
        self._on_progress = on_progress

    def run(
        self,
        pipeline: Pipeline,
        state: ProjectState,
        start_stage: int = 0,
        overrides: Iterable[str] = (),
    ) -> OrchestrationResult:
        """
        Run ``pipeline`` from ``start_stage`` until it completes or blocks.

        A collaborator that raises (document source, reasoning engine, state
        recorder, gate, event store or progress notifier) blocks the stage
        with a reason naming it; ``run`` itself only raises on bad arguments.

        Args:
            pipeline: Stages to run
            state: Snapshot the first stage starts from
            start_stage: Index to resume from (e.g. the stage that blocked)
            overrides: Gate names the user chose to override for this run

        Returns:
            OrchestrationResult; ``stage_index`` is the blocked stage, or
            ``len(pipeline)`` when completed

        Raises:
            ValueError: If ``start_stage`` is outside the pipeline
        """
        if not 0 <= start_stage <= len(pipeline):
            raise ValueError(
                f"start_stage {start_stage} outside pipeline '{pipeline.name}' "
                f"({len(pipeline)} stages)"
            )

        overrides = tuple(overrides)
        run_id = str(uuid.uuid4())
        emitter = (
            PipelineEventEmitter(self._event_store, run_id, pipeline.name)
            if self._event_store is not None
            else None
        )
        started = time.monotonic()
        steps: list[StageOutcome] = []

        logger.info(
            f"Run {run_id}: pipeline '{pipeline.name}' from stage {start_stage} "
            f"for task {state.task.task_id}"
        )

        for index in range(start_stage, len(pipeline)):
            outcome = self.run_stage(pipeline, index, state, overrides, emitter)
            steps.append(outcome)
            if outcome.state is not None:
                state = outcome.state

            if outcome.status is RunStatus.BLOCKED:
                logger.info(
                    f"Run {run_id}: blocked at stage {index} "
                    f"({outcome.stage.command}): {'; '.join(outcome.blocking_reasons)}"
                )
                return OrchestrationResult(
                    pipeline=pipeline.name,
                    status=RunStatus.BLOCKED,
                    stage_index=index,
                    steps=tuple(steps),
                    state=state,
                    run_id=run_id,
                    duration_ms=_elapsed_ms(started),
                    total_stages=len(pipeline),
                )

        if emitter and not steps:
            # Nothing left to run; the last stage emits RUN_COMPLETE otherwise
            _deliver("Event store", lambda: emitter.run_complete(len(pipeline)))
        self._gates.clear_overrides(state.task.task_id)
        logger.info(f"Run {run_id}: pipeline '{pipeline.name}' completed")

        return OrchestrationResult(
            pipeline=pipeline.name,
            status=RunStatus.COMPLETED,
            stage_index=len(pipeline),
            steps=tuple(steps),
            state=state,
            run_id=run_id,
            duration_ms=_elapsed_ms(started),
            total_stages=len(pipeline),
        )

    def run_stage(
        self,
        pipeline: Pipeline,
        index: int,
        state: ProjectState,
        overrides: Iterable[str] = (),
        emitter: PipelineEventEmitter | None = None,
    ) -> StageOutcome:
        """
        Run a single stage.

        Returns:
            StageOutcome with status ADVANCED (COMPLETED for the last stage)
            or BLOCKED; ``state`` holds the snapshot after the stage
        """
        stage = pipeline.stages[index]
        last = index == len(pipeline) - 1
        started = time.monotonic()

        def blocked(
            error: str | None = None,
            agent: Agent | None = None,
            prompt: str = "",
            output: str = "",
            report: GateReport | None = None,
            new_state: ProjectState | None = None,
        ) -> StageOutcome:
            outcome = StageOutcome(
                stage_index=index,
                stage=stage,
                status=RunStatus.BLOCKED,
                agent_id=agent.id if agent else None,
                prompt=prompt,
                output=output,
                gate_report=report,
                error=error,
                duration_ms=_elapsed_ms(started),
                state=new_state or state,
            )
            if emitter:
                # Already blocked: a failing store is only logged
                _deliver(
                    "Event store",
                    lambda: emitter.stage_blocked(
                        index, stage, outcome.agent_id, outcome.blocking_reasons
                    ),
                )
            return outcome

        agent = self._registry.get_agent_for_command(stage.command)
        if agent is None:
            return blocked(error=f"No agent handles command '/{stage.command}'")

        if self._on_progress is not None:
            message = f"{agent.icon} {agent.name} ({stage.label or stage.command})..."
            error = _deliver("Progress notifier", lambda: self._on_progress(message))
            if error:
                return blocked(error=error, agent=agent)
        if emitter:
            error = _deliver("Event store", lambda: emitter.stage_start(index, stage, agent.id))
            if error:
                return blocked(error=error, agent=agent)

        # Document context (the cache releases its locks before returning)
        sharded_context = None
        if self._cache is not None:
            try:
                sharded_context = self._cache.build_task_context(state.project_id, state.task)
            except Exception as e:
                logger.warning(f"Document context unavailable for {state.project_id}: {e}")
                return blocked(error=f"Document source failed: {e}", agent=agent)

        prompt = self._build_prompt(agent, stage, state, sharded_context or None)

        try:
            output = self._engine.complete(prompt)
        except Exception as e:
            logger.warning(f"Reasoning engine failed on /{stage.command}: {e}")
            return blocked(error=f"Reasoning engine failed: {e}", agent=agent, prompt=prompt)

        try:
            if self._recorder is not None:
                new_state = self._recorder.record(state, stage, output)
            else:
                new_state = state.with_output(stage.command, output)
        except Exception as e:
            logger.warning(f"Could not record /{stage.command} output: {e}")
            return blocked(
                error=f"State recorder failed: {e}", agent=agent, prompt=prompt, output=output
            )

        try:
            report = self._gates.check_gates_with_overrides(
                new_state, stage.required_gates, overrides
            )
        except Exception as e:
            logger.warning(f"Gate evaluation failed on /{stage.command}: {e}")
            return blocked(
                error=f"Gate evaluation failed: {e}",
                agent=agent,
                prompt=prompt,
                output=output,
                new_state=new_state,
            )

        events: list[Callable[[], None]] = []
        if emitter and report.overridden:
            events.append(lambda: emitter.gates_overridden(index, stage, report))
        if emitter and report.passed:
            events.append(lambda: emitter.stage_pass(index, stage, agent.id))
            if last:
                events.append(lambda: emitter.run_complete(len(pipeline)))
        for send in events:
            error = _deliver("Event store", send)
            if error:
                return blocked(
                    error=error,
                    agent=agent,
                    prompt=prompt,
                    output=output,
                    report=report,
                    new_state=new_state,
                )

        if not report.passed:
            return blocked(
                agent=agent, prompt=prompt, output=output, report=report, new_state=new_state
            )

        return StageOutcome(
            stage_index=index,
            stage=stage,
            status=RunStatus.COMPLETED if last else RunStatus.ADVANCED,
            agent_id=agent.id,
            prompt=prompt,
            output=output,
            gate_report=report,
            duration_ms=_elapsed_ms(started),
            state=new_state,
        )

    def _build_prompt(
        self,
        agent: Agent,
        stage: Stage,
        state: ProjectState,
        sharded_context: str | None,
    ) -> str:
        context = context_from_task(state.task, stage.command, sharded_context)
        parts = [build_full_agent_prompt(agent.id, context, self._registry)]

        chain = self._chain_context(state)
        if chain:
            parts.append(
                "---\n\nPREVIOUS AGENTS' OUTPUT:\n"
                f"{chain}\n\n"
                "Build on these outputs. Do not repeat work already done."
            )

        instructions = build_orchestration_instructions(agent.id, self._registry)
        if instructions:
            parts.append(instructions)

        return "\n\n".join(parts)

    def _chain_context(self, state: ProjectState) -> str:
        blocks = []
        for command, output in state.outputs:
            agent = self._registry.get_agent_for_command(command)
            label = f"{agent.name} ({agent.id})" if agent else command
            blocks.append(f"--- {label} /{command} ---\n{output}")
        return "\n\n".join(blocks)


def _deliver(description: str, send: Callable[[], object]) -> str | None:
    """Call an observer; a failure is logged and returned as a blocking reason."""
    try:
        send()
    except Exception as e:
        logger.warning(f"{description} failed: {e}")
        return f"{description} failed: {e}"
    return None


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def format_orchestration_result(
    result: OrchestrationResult, registry: AgentRegistry = DEFAULT_REGISTRY
) -> str:
    """
    Notifier text for a run: status, stage reached, one line per stage,
    blocking reasons, and an excerpt of the last successful output.
    """
    status = "COMPLETED" if result.success else result.status.value.upper()
    lines = [f"PIPELINE {result.pipeline}: {status}"]

    blocked = result.blocked_step
    if blocked is not None:
        lines.append(
            f"Blocked at stage {blocked.stage_index + 1}/{result.total_stages} "
            f"(/{blocked.stage.command})"
        )
    else:
        lines.append(f"Stages: {result.stage_index}/{result.total_stages}")
    lines.append(f"Duration: {round(result.duration_ms / 1000)}s")
    lines.append("")

    for step in result.steps:
        agent = registry.get_agent(step.agent_id) if step.agent_id else None
        who = f"{agent.icon} {agent.name}" if agent else "?"
        outcome = "blocked" if step.status is RunStatus.BLOCKED else "ok"
        lines.append(
            f"{who} /{step.stage.command}: {outcome} ({round(step.duration_ms / 1000)}s)"
        )
        if step.gate_report is not None:
            for gate in step.gate_report.overridden:
                lines.append(f"  overridden: {gate.gate}")

    if blocked is not None and blocked.blocking_reasons:
        lines.append("")
        lines.append("Blocking reasons:")
        for reason in blocked.blocking_reasons:
            lines.append(f"  - {reason}")

    last_output = next(
        (s.output for s in reversed(result.steps) if s.status is not RunStatus.BLOCKED and s.output),
        None,
    )
    if last_output:
        lines.append("")
        lines.append("--- Result ---")
        if len(last_output) > RESULT_EXCERPT_CHARS:
            last_output = last_output[:RESULT_EXCERPT_CHARS] + "..."
        lines.append(last_output)

    return "\n".join(lines)
