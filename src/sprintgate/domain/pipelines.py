"""
Predefined pipelines.

Pipelines are static stage lists; they differ only in which stages run and
which gates each stage must pass before the run advances.
"""

from sprintgate.domain.models import Pipeline, Stage

# Gate names
PRD_APPROVED = "prd_approved"
ARCHITECTURE_READY = "architecture_ready"
STORY_READY = "story_ready"
EXECUTION_COMPLETE = "execution_complete"
REVIEW_PASSED = "review_passed"

GATE_NAMES: tuple[str, ...] = (
    PRD_APPROVED,
    ARCHITECTURE_READY,
    STORY_READY,
    EXECUTION_COMPLETE,
    REVIEW_PASSED,
)

DEFAULT_PIPELINE = Pipeline(
    name="default",
    stages=(
        Stage("analysis", label="Analysis"),
        Stage("prd", (PRD_APPROVED,), label="Product requirements"),
        Stage("architecture", (ARCHITECTURE_READY,), label="Architecture"),
        Stage("story", (STORY_READY,), label="Story preparation"),
        Stage("exec", (EXECUTION_COMPLETE,), label="Implementation"),
        Stage("review", (REVIEW_PASSED,), label="Review"),
        Stage("retro", label="Retrospective"),
    ),
)

QUICK_PIPELINE = Pipeline(
    name="quick",
    stages=(
        Stage("story", label="Story preparation"),
        Stage("exec", (EXECUTION_COMPLETE,), label="Implementation"),
        Stage("review", label="Review"),
    ),
)

REVIEW_PIPELINE = Pipeline(
    name="review",
    stages=(
        Stage("exec", (EXECUTION_COMPLETE,), label="Implementation"),
        Stage("review", (REVIEW_PASSED,), label="Review"),
    ),
)

PIPELINES: dict[str, Pipeline] = {
    p.name: p for p in (DEFAULT_PIPELINE, QUICK_PIPELINE, REVIEW_PIPELINE)
}


def get_pipeline(name: str) -> Pipeline | None:
    """Predefined pipeline by name, or None."""
    return PIPELINES.get(name)
