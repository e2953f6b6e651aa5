"""Exception types shared across the mapping pipeline."""

from typing import Any, Dict


class RhizomeMapError(Exception):
    """Base exception for the package."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class CompletionError(RhizomeMapError):
    """The completion service was unreachable or reported a failure.

    Unlike a malformed response, this aborts the whole pipeline run.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: Dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class PipelineCancelled(RhizomeMapError):
    """The caller abandoned the run before it finished."""


class ExportFormatError(RhizomeMapError):
    """A structured export document could not be read back."""
