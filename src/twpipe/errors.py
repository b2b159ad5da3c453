"""
Pipeline Errors

Exception taxonomy for variant selection, hyperparameter resolution and
model artifact reconstruction. Every error is terminal for the run that
raises it; nothing here is meant to be caught and retried.
"""

from typing import Any, Optional


class TwpipeError(Exception):
    """Base class for all twpipe errors."""

    def __init__(self,
                 message: str,
                 stage: Optional[str] = None,
                 field: Optional[str] = None,
                 expected: Any = None,
                 actual: Any = None):
        self.stage = stage
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        context = []
        if self.stage is not None:
            context.append(f"stage={self.stage}")
        if self.field is not None:
            context.append(f"field={self.field}")
        if self.expected is not None:
            context.append(f"expected={self.expected!r}")
        if self.actual is not None:
            context.append(f"actual={self.actual!r}")
        if not context:
            return message
        return f"{message} ({', '.join(context)})"


class UnknownVariant(TwpipeError, ValueError):
    """Raised when a configuration names an architecture the catalog does not know."""

    def __init__(self, name: Any, stage: Optional[str] = None, available: Optional[list] = None):
        self.name = name
        self.available = list(available or [])
        message = f"unknown {stage or 'model'} variant '{name}'"
        if self.available:
            message += f". Available variants: {self.available}"
        super().__init__(message, stage=stage)


class InvalidHyperparameter(TwpipeError, ValueError):
    """Raised when a hyperparameter required by the chosen variant is zero or not an unsigned integer."""


class VocabularyMismatch(TwpipeError, RuntimeError):
    """Raised when a recorded vocabulary size disagrees with the current run's vocabulary."""


class CorruptModelArtifact(TwpipeError, RuntimeError):
    """Raised when a model artifact is missing a field, holds a malformed value or a bad parameter blob."""


class UnreachableVariant(TwpipeError, AssertionError):
    """Raised when a catalogued variant has no registered engine constructor."""
