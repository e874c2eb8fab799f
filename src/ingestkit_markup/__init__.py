"""ingestkit-markup -- markup stripping stage for ingestkit document pipelines.

Public API re-exports for convenient access.
"""

from ingestkit_markup.config import MarkupProcessorConfig
from ingestkit_markup.entities import (
    DEFAULT_ENTITY_TABLE,
    EntityTable,
    decode_entity,
    is_known_entity,
)
from ingestkit_markup.errors import ErrorCode, IngestError, MarkupReadError
from ingestkit_markup.events import EventHook, logging_event_hook
from ingestkit_markup.models import (
    InputDocument,
    InputField,
    ProcessingEvent,
    ProcessingResult,
    ScanState,
    Span,
    SpanKind,
    StripResult,
)
from ingestkit_markup.normalize import normalize_space
from ingestkit_markup.processor import MarkupFieldProcessor
from ingestkit_markup.scanner import MarkupScanner, scan_markup
from ingestkit_markup.stripper import MarkupStripper, strip_markup, strip_markup_stream

__all__ = [
    "MarkupFieldProcessor",
    "MarkupProcessorConfig",
    "MarkupStripper",
    "MarkupScanner",
    "EntityTable",
    "DEFAULT_ENTITY_TABLE",
    "ErrorCode",
    "IngestError",
    "MarkupReadError",
    "EventHook",
    "InputDocument",
    "InputField",
    "ProcessingEvent",
    "ProcessingResult",
    "ScanState",
    "Span",
    "SpanKind",
    "StripResult",
    "decode_entity",
    "is_known_entity",
    "logging_event_hook",
    "normalize_space",
    "scan_markup",
    "strip_markup",
    "strip_markup_stream",
]
