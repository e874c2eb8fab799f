"""Error codes and structured error model for the ingestkit-markup package.

``ErrorCode`` contains all error/warning codes relevant to markup stripping.
``IngestError`` is the structured error model with a ``field_name`` field
for location context, and ``MarkupReadError`` wraps it for ``raise``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for markup stripping.

    Values equal their names so they are stable strings suitable for
    metrics and alerting.  ``E_`` prefix = fatal, ``W_`` prefix = warning.
    """

    # Input
    E_MARKUP_STREAM_READ = "E_MARKUP_STREAM_READ"

    # Warnings (non-fatal)
    W_MARKUP_UNTERMINATED = "W_MARKUP_UNTERMINATED"
    W_ENTITY_UNKNOWN = "W_ENTITY_UNKNOWN"


class IngestError(BaseModel):
    """Structured error with code, message, and field location context.

    The ``code`` field is typed as ``str`` so it accepts ``ErrorCode``
    members as well as plain strings coming back from serialized results.
    """

    code: str
    message: str
    stage: str | None = None
    recoverable: bool = False
    field_name: str | None = None


class MarkupReadError(Exception):
    """Raised when the underlying text stream cannot be read.

    Carries the structured ``IngestError`` as the ``.error`` attribute.
    The original ``OSError`` is available as ``__cause__``.
    """

    def __init__(self, error: IngestError) -> None:
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> str:
        return self.error.code
