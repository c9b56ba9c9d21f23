from __future__ import annotations

from viibe.modules.llm_boundary.errors import GenerationFailure


class InvalidRequest(ValueError):
    """Raised when a request breaks vocabulary or mandatory-word rules. Never retried."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class ValidationExhaustion(RuntimeError):
    """Raised when no candidate survives validation after the retry budget."""

    def __init__(self, message: str, *, accepted: list | None = None):
        super().__init__(message)
        self.accepted = list(accepted or [])


class PersistenceFailure(RuntimeError):
    """Raised by the history store when a read or write fails."""


__all__ = [
    "GenerationFailure",
    "InvalidRequest",
    "PersistenceFailure",
    "ValidationExhaustion",
]
