"""
Gate aggregation.

GateEngine evaluates every gate a stage requires and folds the results into
one GateReport. Unlike a short-circuiting composite, every gate runs so that
all failure reasons are reported and attributed.
"""

import logging
from collections.abc import Iterable, Mapping

from sprintgate.domain.interfaces import GateInterface
from sprintgate.domain.models import GateReport, GateResult, ProjectState
from sprintgate.gates.overrides import GateOverrideLedger
from sprintgate.gates.registry import GATE_REGISTRY, build_gate
from sprintgate.gates.review import DEFAULT_MIN_SCORE

logger = logging.getLogger(__name__)


class GateEngine:
    """
    Named gates evaluated as a logical AND, with auditable overrides.

    Example:
        engine = GateEngine()
        report = engine.check_gates_with_overrides(
            state, ["story_ready", "review_passed"], overrides=["review_passed"]
        )
        report.passed        # AND over non-overridden gates
        report.overridden    # failures excluded by an override
    """

    def __init__(
        self,
        gates: Mapping[str, GateInterface] | None = None,
        review_min_score: int = DEFAULT_MIN_SCORE,
        ledger: GateOverrideLedger | None = None,
    ):
        """
        Args:
            gates: Gate instances by name; defaults to every registered gate
            review_min_score: Threshold for the default review gate
            ledger: Remembers applied overrides per task, so later checks of
                the same task honour them without the caller repeating them
                (None: overrides apply to the call that passes them only)
        """
        if gates is None:
            gates = {
                name: build_gate({"gate": name, "min_score": review_min_score})
                for name in GATE_REGISTRY
            }
        self._gates: dict[str, GateInterface] = dict(gates)
        self._ledger = ledger

    @property
    def gate_names(self) -> tuple[str, ...]:
        return tuple(self._gates)

    @property
    def ledger(self) -> GateOverrideLedger | None:
        return self._ledger

    def get_gate(self, name: str) -> GateInterface | None:
        return self._gates.get(name)

    def check_gate(self, state: ProjectState, name: str) -> GateResult:
        """Evaluate one gate; unknown names and raising gates fail without raising."""
        gate = self._gates.get(name)
        if gate is None:
            return GateResult(
                gate=name,
                passed=False,
                reasons=(f"Unknown gate: '{name}'",),
                overridable=False,
            )
        try:
            result = gate.check(state)
        except Exception as e:
            logger.warning(f"Gate '{name}' raised {type(e).__name__}: {e}")
            return GateResult(
                gate=name,
                passed=False,
                reasons=(f"Gate check raised {type(e).__name__}: {e}",),
                overridable=False,
            )
        if result.gate != name:
            return GateResult(
                gate=name,
                passed=result.passed,
                reasons=result.reasons,
                overridable=result.overridable,
            )
        return result

    def check_all_gates(self, state: ProjectState, names: Iterable[str]) -> GateReport:
        """AND of the named gates, every failing reason kept."""
        return self.check_gates_with_overrides(state, names, ())

    def check_gates_with_overrides(
        self,
        state: ProjectState,
        names: Iterable[str],
        overrides: Iterable[str],
    ) -> GateReport:
        """
        AND of the named gates, excluding overridden failures.

        A failing, overridable gate listed in ``overrides`` (or recorded in
        the ledger for this task) is tagged ``overridden`` instead of being
        dropped, so the report shows both the failure and the override that
        let it through. Applied overrides are recorded in the ledger.
        """
        task_id = state.task.task_id
        requested = tuple(overrides)
        if self._ledger is not None:
            recorded = self._ledger.overrides_for(task_id)
            requested += tuple(g for g in recorded if g not in requested)
        results: list[GateResult] = []

        for name in names:
            result = self.check_gate(state, name)
            if not result.passed and result.overridable and name in requested:
                if self._ledger is not None:
                    self._ledger.override_gate(task_id, name)
                logger.info(
                    f"Gate '{name}' overridden for task {state.task.task_id}: "
                    f"{'; '.join(result.reasons)}"
                )
                result = GateResult(
                    gate=result.gate,
                    passed=False,
                    reasons=result.reasons,
                    overridable=True,
                    overridden=True,
                )
            elif not result.passed:
                logger.debug(f"Gate '{name}' failed: {'; '.join(result.reasons)}")
            results.append(result)

        passed = all(r.passed or r.overridden for r in results)
        return GateReport(passed=passed, results=tuple(results), overrides=requested)

    def clear_overrides(self, task_id: str) -> None:
        """Forget the overrides recorded for a task (no-op without a ledger)."""
        if self._ledger is not None:
            self._ledger.clear(task_id)


def format_gate_report(report: GateReport) -> str:
    """Human-readable gate report."""
    lines = [f"GATES: {'PASSED' if report.passed else 'BLOCKED'}"]

    for result in report.results:
        if result.passed:
            lines.append(f"  [ok] {result.gate}")
            continue
        tag = "OVERRIDDEN" if result.overridden else "FAIL"
        lines.append(f"  [{tag}] {result.gate}")
        for reason in result.reasons:
            lines.append(f"      - {reason}")

    if report.overrides:
        lines.append(f"Overrides requested: {', '.join(report.overrides)}")

    return "\n".join(lines)
