"""Pydantic models and enumerations for the ingestkit-markup package.

Contains the scanner output types (``SpanKind``, ``Span``), the stripper's
``StripResult``, the document boundary types (``InputField``,
``InputDocument``), and the processor's ``ProcessingEvent`` and
``ProcessingResult``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ingestkit_markup.errors import IngestError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class SpanKind(str, Enum):
    """Classification of a contiguous run of scanned input.

    ``TEXT``, ``ENTITY`` and ``CDATA`` spans are emitted; the rest are
    markup and get discarded.
    """

    TEXT = "text"
    ENTITY = "entity"
    CDATA = "cdata"
    TAG = "tag"
    COMMENT = "comment"
    OPAQUE_BLOCK = "opaque_block"


class ScanState(str, Enum):
    """Scanner mode; exactly one is active at any input position."""

    TEXT = "text"
    IN_TAG = "in_tag"
    IN_COMMENT = "in_comment"
    IN_CDATA = "in_cdata"
    IN_OPAQUE_BLOCK = "in_opaque_block"
    IN_ENTITY = "in_entity"


_EMITTED_KINDS = frozenset({SpanKind.TEXT, SpanKind.ENTITY, SpanKind.CDATA})


# ---------------------------------------------------------------------------
# Scanner / Stripper Output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Span:
    """A run of input classified by the scanner."""

    kind: SpanKind
    text: str

    @property
    def emitted(self) -> bool:
        """True for spans that contribute to the stripped output."""
        return self.kind in _EMITTED_KINDS


class StripResult(BaseModel):
    """Stripped text plus counters describing what the scanner saw."""

    text: str
    entities_decoded: int = 0
    entities_unknown: list[str] = []
    spans_discarded: int = 0
    unterminated: ScanState | None = None


# ---------------------------------------------------------------------------
# Document Boundary
# ---------------------------------------------------------------------------


class InputField(BaseModel):
    """A named, possibly multi-valued document field.

    ``values`` keeps the caller's order and may mix strings with any other
    type.  ``boost`` is the per-field index weight and is never touched by
    the processor.
    """

    name: str
    values: list[Any] = []
    boost: float = 1.0


class InputDocument(BaseModel):
    """A document travelling through the pipeline."""

    fields: dict[str, InputField] = {}
    boost: float = 1.0

    def get_field(self, name: str) -> InputField | None:
        return self.fields.get(name)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], boost: float = 1.0) -> InputDocument:
        """Build a document from ``{field_name: value_or_values}``.

        Lists and tuples become the field's values; any other value
        (including ``None``) becomes a single-element list.
        """
        fields: dict[str, InputField] = {}
        for name, raw in data.items():
            values = list(raw) if isinstance(raw, (list, tuple)) else [raw]
            fields[name] = InputField(name=name, values=values)
        return cls(fields=fields, boost=boost)

    def to_mapping(self) -> dict[str, list[Any]]:
        return {name: list(field.values) for name, field in self.fields.items()}


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------


class ProcessingEvent(BaseModel):
    """Structured observability event handed to the processor's event hook."""

    name: str
    field_name: str | None = None
    detail: dict[str, Any] = Field(default_factory=dict)


class ProcessingResult(BaseModel):
    """Final result of ``MarkupFieldProcessor.process()``."""

    document: InputDocument
    parser_version: str
    tenant_id: str | None = None
    fields_processed: list[str] = []
    fields_missing: list[str] = []
    values_stripped: int = 0
    values_passed_through: int = 0
    forwarded: bool = False
    warnings: list[str] = []
    error_details: list[IngestError] = []
    processing_time_seconds: float = 0.0
