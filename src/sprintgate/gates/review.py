"""
QA review gate.

The QA persona is instructed to answer with a JSON review report; this gate
parses the latest ``review`` output into a pydantic model and checks it.
"""

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from sprintgate.domain.interfaces import GateInterface
from sprintgate.domain.models import GateResult, ProjectState
from sprintgate.domain.pipelines import REVIEW_PASSED

logger = logging.getLogger(__name__)

DEFAULT_MIN_SCORE = 50

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


# =============================================================================
# Review report (structured QA output)
# =============================================================================


class ReviewFinding(BaseModel):
    """Single finding of a code review."""

    severity: str = "minor"
    description: str
    suggestion: str = ""

    @field_validator("severity")
    @classmethod
    def _normalise_severity(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_critical(self) -> bool:
        return self.severity == "critical"


class ReviewReport(BaseModel):
    """Structured output of the QA review stage."""

    score: int = Field(ge=0, le=100)
    findings: list[ReviewFinding] = Field(default_factory=list)
    summary: str = ""

    @property
    def critical_findings(self) -> list[ReviewFinding]:
        return [f for f in self.findings if f.is_critical]


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Pull a JSON object out of free-form engine output.

    Accepts a bare object, a fenced ```json block, or the outermost
    ``{...}`` span of surrounding prose.

    Raises:
        ValueError: If no JSON object can be decoded
    """
    candidates = [text.strip()]
    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    raise ValueError("no JSON object found")


def parse_review_report(text: str) -> ReviewReport:
    """
    Parse engine output into a ReviewReport.

    Raises:
        ValueError: If the output holds no valid report
    """
    data = extract_json_object(text)
    try:
        return ReviewReport.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"invalid review report: {e.error_count()} error(s)") from e


class ReviewGate(GateInterface):
    """
    Passes when the review scores at least ``min_score``, reports no
    critical finding, and CI has not failed.
    """

    name = REVIEW_PASSED

    def __init__(self, min_score: int = DEFAULT_MIN_SCORE):
        self.min_score = min_score

    def check(self, state: ProjectState) -> GateResult:
        output = state.output_for("review")
        if not output or not output.strip():
            return GateResult(
                gate=self.name, passed=False, reasons=("No review output recorded",)
            )

        try:
            report = parse_review_report(output)
        except ValueError as e:
            logger.debug(f"[ReviewGate] Unparseable review: {e}")
            return GateResult(
                gate=self.name,
                passed=False,
                reasons=(f"Review output is not a valid review report: {e}",),
            )

        reasons = []
        if report.score < self.min_score:
            reasons.append(f"Review score {report.score} is below {self.min_score}")
        for finding in report.critical_findings:
            reasons.append(f"Critical finding: {finding.description}")
        if state.ci_passed is False:
            reasons.append("CI failed")

        logger.debug(
            f"[ReviewGate] score={report.score} findings={len(report.findings)} "
            f"passed={not reasons}"
        )
        return GateResult(gate=self.name, passed=not reasons, reasons=tuple(reasons))
