"""Shared fixtures for architecture tests."""

from pathlib import Path

import pytest
from pytestarch import (
    EvaluableArchitecture,
    LayeredArchitecture,
    get_evaluable_architecture,
)

SRC_DIR = Path(__file__).resolve().parents[2] / "src"

# Layer name -> top-level modules of the package it owns, innermost first
LAYER_MODULES: dict[str, tuple[str, ...]] = {
    "domain": ("domain",),
    "gates": ("gates",),
    "application": ("application",),
    "infrastructure": ("infrastructure",),
    "interface": ("cli", "console", "logging_setup"),
}


@pytest.fixture(scope="session")
def evaluable() -> EvaluableArchitecture:
    return get_evaluable_architecture(str(SRC_DIR), str(SRC_DIR / "sprintgate"))


@pytest.fixture(scope="session")
def layers() -> LayeredArchitecture:
    """Layers keyed by name; modules resolve relative to the source root ('src.sprintgate.x')."""
    architecture = LayeredArchitecture()
    for name, modules in LAYER_MODULES.items():
        architecture = architecture.layer(name).containing_modules(
            [f"src.sprintgate.{module}" for module in modules]
        )
    return architecture
