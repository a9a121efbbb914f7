"""
Domain exceptions for SprintGate.

Lookup misses and gate failures are ordinary results, not exceptions.
Only configuration defects and collaborator failures are raised.
"""


class ConfigurationError(Exception):
    """Raised when static configuration is invalid (caught at startup)."""

    pass


class ReasoningEngineError(Exception):
    """
    Raised by reasoning engine adapters when a completion cannot be produced.

    The orchestrator converts this into a BLOCKED outcome.
    """

    def __init__(self, message: str, output: str = ""):
        """
        Args:
            message: Human-readable error message
            output: Partial output captured before the failure, if any
        """
        super().__init__(message)
        self.output = output
