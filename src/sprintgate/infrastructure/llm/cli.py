"""
Command-line reasoning engine.

Runs a headless agent CLI (``claude -p`` by default) as a subprocess, one
process per prompt, bounded by a timeout.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sprintgate.domain.exceptions import ReasoningEngineError
from sprintgate.domain.interfaces import ReasoningEngineInterface

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "claude"


@dataclass
class CliReasoningEngineConfig:
    """Configuration for CliReasoningEngine.

    This typed config ensures unknown fields are rejected at construction time.
    """

    command: str = DEFAULT_COMMAND
    timeout: float = 600.0
    cwd: str | None = None
    output_format: str = "text"
    extra_args: tuple[str, ...] = ()


class CliReasoningEngine(ReasoningEngineInterface):
    """Sends each prompt to an agent CLI and returns its stdout."""

    config_class = CliReasoningEngineConfig

    def __init__(self, config: CliReasoningEngineConfig | None = None, **kwargs: Any):
        """
        Args:
            config: Typed configuration object (preferred)
            **kwargs: Fields of CliReasoningEngineConfig
        """
        if config is None:
            config = CliReasoningEngineConfig(**kwargs)
        self._config = config

    def build_args(self, prompt: str) -> list[str]:
        """Command line for one prompt."""
        return [
            self._config.command,
            "-p",
            prompt,
            "--output-format",
            self._config.output_format,
            *self._config.extra_args,
        ]

    def complete(self, prompt: str) -> str:
        """
        Run the CLI on ``prompt``.

        Raises:
            ReasoningEngineError: If the binary is missing, times out or
                exits non-zero
        """
        if shutil.which(self._config.command) is None:
            raise ReasoningEngineError(f"Command not found: {self._config.command}")

        cwd = Path(self._config.cwd) if self._config.cwd else None
        logger.debug(f"Running {self._config.command} ({len(prompt)} chars)")

        try:
            proc = subprocess.run(
                self.build_args(prompt),
                capture_output=True,
                text=True,
                timeout=self._config.timeout,
                cwd=cwd,
            )
        except subprocess.TimeoutExpired as e:
            partial = e.stdout if isinstance(e.stdout, str) else ""
            raise ReasoningEngineError(
                f"{self._config.command} timed out after {self._config.timeout}s",
                output=partial,
            ) from e

        output = proc.stdout.strip()
        if proc.returncode != 0:
            message = proc.stderr.strip() or f"exit code {proc.returncode}"
            raise ReasoningEngineError(
                f"{self._config.command} failed: {message}", output=output
            )
        return output
