"""Recoverable capture errors.

Anything that goes wrong while LogPack observes a request is turned into a
CaptureError instead of being raised into the host application. The
middleware collects them in a CaptureOutcome and hands each one to the
configured ErrorReporter.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class CaptureStage(str, Enum):
    """Pipeline stage an error was raised in."""

    REQUEST_BODY = "request_body"
    DECISION = "decision"
    ARCHIVE = "archive"
    ARCHIVE_ENTRY = "archive_entry"
    DISPATCH = "dispatch"
    SINK = "sink"
    NOTIFICATION = "notification"


@dataclass
class CaptureError:
    """
    A failure recorded by the capture pipeline.

    Attributes:
        stage: Where the failure happened
        correlation_id: Request the failure belongs to
        exception: The exception, if one was raised
        detail: Extra context (entry name, sink name...)
    """

    stage: CaptureStage
    correlation_id: str
    exception: Optional[BaseException] = None
    detail: Optional[str] = None

    @property
    def message(self) -> str:
        parts = [f"[{self.stage.value}]"]
        if self.detail:
            parts.append(self.detail)
        if self.exception is not None:
            parts.append(f"{type(self.exception).__name__}: {self.exception}")
        return " ".join(parts)

    def format_traceback(self) -> list[str]:
        """Traceback lines of the underlying exception, if any."""
        if self.exception is None or self.exception.__traceback__ is None:
            return []
        return [
            line.rstrip("\n")
            for chunk in traceback.format_tb(self.exception.__traceback__)
            for line in chunk.splitlines()
        ]


@dataclass
class CaptureOutcome:
    """Result of running the capture pipeline for one request."""

    correlation_id: str
    decided: bool = False
    archived: bool = False
    errors: list[CaptureError] = field(default_factory=list)

    def record(
        self,
        stage: CaptureStage,
        exception: Optional[BaseException] = None,
        detail: Optional[str] = None,
    ) -> CaptureError:
        error = CaptureError(
            stage=stage,
            correlation_id=self.correlation_id,
            exception=exception,
            detail=detail,
        )
        self.errors.append(error)
        return error
