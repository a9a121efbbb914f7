"""
Mock reasoning engine for testing without an external engine.

Returns predefined responses in sequence.
"""

from sprintgate.domain.exceptions import ReasoningEngineError
from sprintgate.domain.interfaces import ReasoningEngineInterface


class MockReasoningEngine(ReasoningEngineInterface):
    """Returns predefined responses for testing."""

    def __init__(self, responses: list[str]):
        """
        Args:
            responses: List of response strings to return in sequence
        """
        self._responses = responses
        self._prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        """Return the next predefined response."""
        if len(self._prompts) >= len(self._responses):
            raise ReasoningEngineError("MockReasoningEngine exhausted responses")

        self._prompts.append(prompt)
        return self._responses[len(self._prompts) - 1]

    @property
    def call_count(self) -> int:
        """Number of times complete() has been called."""
        return len(self._prompts)

    @property
    def prompts(self) -> list[str]:
        """Prompts received so far, oldest first."""
        return list(self._prompts)

    def reset(self) -> None:
        """Forget received prompts to reuse responses."""
        self._prompts.clear()
