"""
PRD approval gate.

Pure gate with no I/O - checks the PRD records of the state snapshot.
"""

import logging
import re

from sprintgate.domain.interfaces import GateInterface
from sprintgate.domain.models import GateResult, PrdRecord, PrdStatus, ProjectState
from sprintgate.domain.pipelines import PRD_APPROVED

logger = logging.getLogger(__name__)

REQUIRED_PRD_SECTIONS: tuple[str, ...] = ("objective", "scope", "success criteria")

_HEADING = re.compile(r"^#{1,6}\s+(.+)$", re.MULTILINE)


def missing_sections(prd: PrdRecord) -> list[str]:
    """Required sections with no matching heading in the PRD content."""
    headings = [h.strip().lower() for h in _HEADING.findall(prd.content)]
    return [
        section
        for section in REQUIRED_PRD_SECTIONS
        if not any(section in heading for heading in headings)
    ]


class PrdGate(GateInterface):
    """
    Passes when the project has an approved PRD with the minimum sections.

    The minimum sections are objective, scope and success criteria, matched
    case-insensitively against the PRD's markdown headings.
    """

    name = PRD_APPROVED

    def check(self, state: ProjectState) -> GateResult:
        approved = [p for p in state.prds if p.status is PrdStatus.APPROVED]
        drafts = [p for p in state.prds if p.status is PrdStatus.DRAFT]

        if not approved:
            reasons = ["No approved PRD for this project"]
            if drafts:
                titles = ", ".join(f"'{p.title}'" for p in drafts)
                reasons.append(f"Draft PRDs awaiting approval: {titles}")
            logger.debug(f"[PrdGate] {state.project_id}: no approved PRD")
            return GateResult(gate=self.name, passed=False, reasons=tuple(reasons))

        reasons = []
        for prd in approved:
            missing = missing_sections(prd)
            if not missing:
                return GateResult(gate=self.name, passed=True)
            reasons.append(f"PRD '{prd.title}' is missing sections: {', '.join(missing)}")

        logger.debug(f"[PrdGate] {state.project_id}: {len(reasons)} incomplete PRD(s)")
        return GateResult(gate=self.name, passed=False, reasons=tuple(reasons))


def check_gate1_prd(state: ProjectState) -> GateResult:
    """Gate 1: an approved, complete PRD exists before planning proceeds."""
    return PrdGate().check(state)
