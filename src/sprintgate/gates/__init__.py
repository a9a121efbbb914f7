"""
Gates for SprintGate.

Gates are deterministic checks over a ProjectState snapshot that return a
GateResult. The GateEngine ANDs the gates a stage requires.

Organization:
- prd: PRD approval (gate 1)
- task: architecture, story and execution readiness
- review: QA review report (pydantic)
- engine: aggregation with overrides
- overrides: per-task override ledger
"""

from sprintgate.gates.engine import GateEngine, format_gate_report
from sprintgate.gates.overrides import GateOverrideLedger
from sprintgate.gates.prd import REQUIRED_PRD_SECTIONS, PrdGate, check_gate1_prd
from sprintgate.gates.registry import GATE_REGISTRY, build_gate, register_gate
from sprintgate.gates.review import (
    ReviewFinding,
    ReviewGate,
    ReviewReport,
    parse_review_report,
)
from sprintgate.gates.task import ArchitectureGate, ExecutionGate, StoryGate

__all__ = [
    # Gates
    "PrdGate",
    "ArchitectureGate",
    "StoryGate",
    "ExecutionGate",
    "ReviewGate",
    "check_gate1_prd",
    "REQUIRED_PRD_SECTIONS",
    # Review report
    "ReviewReport",
    "ReviewFinding",
    "parse_review_report",
    # Registry
    "GATE_REGISTRY",
    "register_gate",
    "build_gate",
    # Aggregation
    "GateEngine",
    "GateOverrideLedger",
    "format_gate_report",
]
