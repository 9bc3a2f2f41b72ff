from __future__ import annotations

from typing import Any, Dict, Optional


class StoryloomError(Exception):
    """Base class for every failure the orchestrator reports to a caller."""

    kind = "error"
    retryable = False

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_json(self) -> Dict[str, Any]:
        return {"kind": self.kind, "detail": self.message, "retryable": self.retryable}


class ValidationError(StoryloomError):
    """Malformed request: bad stage, missing answers, unreadable body."""

    kind = "validation"


class ConfigurationError(StoryloomError):
    """Completion service is not usable as configured (missing credential etc.)."""

    kind = "configuration"


class UpstreamError(StoryloomError):
    """The completion client call failed."""

    kind = "upstream"
    retryable = True


class CompletionTimeout(UpstreamError):
    """The completion client did not answer within the configured bound."""

    kind = "timeout"


class EmptyResultError(StoryloomError):
    """The model returned no usable text and the strict policy is active."""

    kind = "empty_result"
    retryable = True

    def __init__(self, stage: str) -> None:
        super().__init__(f"Model returned no usable text for stage '{stage}'.")
        self.stage = stage


__all__ = [
    "StoryloomError",
    "ValidationError",
    "ConfigurationError",
    "UpstreamError",
    "CompletionTimeout",
    "EmptyResultError",
]
