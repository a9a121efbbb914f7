"""
Task readiness gates.

Pure gates over the task record and recorded stage outputs.
"""

from sprintgate.domain.interfaces import GateInterface
from sprintgate.domain.models import GateResult, ProjectState
from sprintgate.domain.pipelines import ARCHITECTURE_READY, EXECUTION_COMPLETE, STORY_READY

# A description must be longer than this to count as technical context
MIN_DESCRIPTION_CHARS = 20


class ArchitectureGate(GateInterface):
    """Passes when the task carries a detailed description or an architecture ref."""

    name = ARCHITECTURE_READY

    def check(self, state: ProjectState) -> GateResult:
        task = state.task
        described = len(task.description or "") > MIN_DESCRIPTION_CHARS
        if described or task.architecture_ref:
            return GateResult(
                gate=self.name,
                passed=True,
                reasons=(f"Task '{task.title}' is documented, ready for implementation",),
            )
        return GateResult(
            gate=self.name,
            passed=False,
            reasons=(
                f"Task '{task.title}' lacks technical context: add a description longer "
                f"than {MIN_DESCRIPTION_CHARS} characters or an architecture reference",
            ),
        )


class StoryGate(GateInterface):
    """Passes when the story has acceptance criteria and at least one subtask."""

    name = STORY_READY

    def check(self, state: ProjectState) -> GateResult:
        task = state.task
        reasons = []
        if not task.acceptance_criteria:
            reasons.append("Story has no acceptance criteria")
        if not task.subtasks:
            reasons.append("Story has no subtasks")
        return GateResult(gate=self.name, passed=not reasons, reasons=tuple(reasons))


class ExecutionGate(GateInterface):
    """Passes when the exec stage produced output and every subtask is done."""

    name = EXECUTION_COMPLETE

    def check(self, state: ProjectState) -> GateResult:
        reasons = []

        output = state.output_for("exec")
        if not output or not output.strip():
            reasons.append("No execution output recorded")

        pending = [s.title for s in state.task.subtasks if not s.done]
        if pending:
            reasons.append(
                f"{len(pending)} subtask(s) not done: {', '.join(pending)}"
            )

        return GateResult(gate=self.name, passed=not reasons, reasons=tuple(reasons))
