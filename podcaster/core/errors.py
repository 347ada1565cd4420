"""
Pipeline error taxonomy.

One exception type tagged with an ErrorKind instead of a subclass tree, so
every failure is-a PipelineError and callers branch on ``error.kind``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    SOURCE = "source"  # Hacker News API: network, status, schema
    EXTRACTION = "extraction"  # per-story content download/parse, never fatal
    GENERATION = "generation"  # any language-model call
    SYNTHESIS = "synthesis"  # any text-to-speech chunk
    VALIDATION = "validation"  # structural precondition violated
    CONFIGURATION = "configuration"  # missing/invalid settings or credentials
    PIPELINE = "pipeline"  # generic wrapper for anything unrecognised


class PipelineError(Exception):
    """A typed pipeline failure carrying its kind, stage and underlying cause."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        stage: str | None = None,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.stage = stage
        self.status_code = status_code
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"PipelineError(kind={self.kind.value!r}, message={self.message!r}, stage={self.stage!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialisable view for structured logs and the runs API."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "stage": self.stage,
            "status_code": self.status_code,
            "cause": str(self.cause) if self.cause is not None else None,
        }

    @classmethod
    def wrap(cls, exc: BaseException, *, stage: str | None = None) -> PipelineError:
        """Pass PipelineErrors through unchanged; wrap anything else as PIPELINE."""
        if isinstance(exc, PipelineError):
            if exc.stage is None:
                exc.stage = stage
            return exc
        where = f" during {stage}" if stage else ""
        return cls(
            ErrorKind.PIPELINE,
            f"Podcast generation failed{where}: {exc}",
            stage=stage,
            cause=exc,
        )
