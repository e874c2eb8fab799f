"""Observability hook for the field processor.

The processor never logs directly; it hands ``ProcessingEvent`` objects to
an injected ``EventHook``.  ``logging_event_hook`` is the default and writes
events to the ``ingestkit_markup`` logger in the ingestkit pipe-delimited
format.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ingestkit_markup.models import ProcessingEvent

logger = logging.getLogger("ingestkit_markup")

EventHook = Callable[[ProcessingEvent], None]

_WARNING_EVENTS = frozenset({"markup_unterminated", "entity_unknown"})


def logging_event_hook(event: ProcessingEvent) -> None:
    """Write *event* to the package logger.

    Warnings about malformed input go out at WARNING, the document summary
    at INFO, and per-field chatter at DEBUG.
    """
    if event.name in _WARNING_EVENTS:
        level = logging.WARNING
    elif event.name == "document_processed":
        level = logging.INFO
    else:
        level = logging.DEBUG

    if not logger.isEnabledFor(level):
        return

    detail = " | ".join(f"{key}={value}" for key, value in event.detail.items())
    logger.log(
        level,
        "ingestkit_markup | event=%s | field=%s%s",
        event.name,
        event.field_name or "-",
        f" | {detail}" if detail else "",
    )
