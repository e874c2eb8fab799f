"""Markup stripping -- drive the scanner and assemble visible text.

Provides ``strip_markup()`` for in-memory strings, ``strip_markup_stream()``
for text streams, and ``MarkupStripper`` for callers that hold a configured
instance.  Emitted spans are appended to a private output buffer, entity
spans are decoded on the way, and discarded spans are dropped.
"""

from __future__ import annotations

import io
from collections.abc import Iterable

from ingestkit_markup.config import MarkupProcessorConfig
from ingestkit_markup.entities import DEFAULT_ENTITY_TABLE, EntityTable, is_known_entity
from ingestkit_markup.errors import ErrorCode, IngestError, MarkupReadError
from ingestkit_markup.models import SpanKind, StripResult
from ingestkit_markup.scanner import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_MAX_ENTITY_LENGTH,
    DEFAULT_OPAQUE_ELEMENTS,
    MIN_BUFFER_SIZE,
    MarkupScanner,
    TextReader,
)


class MarkupStripper:
    """Removes tags, comments and opaque blocks and decodes entities.

    Instances hold only immutable options, so one stripper can serve any
    number of threads.

    Parameters
    ----------
    opaque_elements:
        Element names whose content is discarded up to the matching end tag.
    entities:
        Named entity table.  Defaults to the HTML 4 set plus ``apos``.
    buffer_size:
        Characters read from the input per scanner refill.
    max_entity_length:
        Longest entity body examined before ``&`` is kept as text.
    """

    def __init__(
        self,
        opaque_elements: Iterable[str] = DEFAULT_OPAQUE_ELEMENTS,
        entities: EntityTable | None = None,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        max_entity_length: int = DEFAULT_MAX_ENTITY_LENGTH,
    ) -> None:
        if buffer_size < MIN_BUFFER_SIZE:
            raise ValueError(f"buffer_size must be >= {MIN_BUFFER_SIZE}, got {buffer_size}")
        if max_entity_length < 1:
            raise ValueError(f"max_entity_length must be >= 1, got {max_entity_length}")
        self._opaque_elements = tuple(name.lower() for name in opaque_elements)
        self._entities = entities if entities is not None else DEFAULT_ENTITY_TABLE
        self._buffer_size = buffer_size
        self._max_entity_length = max_entity_length

    @classmethod
    def from_config(cls, config: MarkupProcessorConfig) -> MarkupStripper:
        return cls(
            opaque_elements=config.opaque_elements,
            entities=DEFAULT_ENTITY_TABLE.extend(config.extra_entities),
            buffer_size=config.read_buffer_size,
            max_entity_length=config.max_entity_length,
        )

    @property
    def opaque_elements(self) -> tuple[str, ...]:
        return self._opaque_elements

    @property
    def entities(self) -> EntityTable:
        return self._entities

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def strip(self, text: str | None) -> str:
        """Return *text* with markup removed.  ``None`` yields ``""``."""
        return self.strip_detailed(text).text

    def strip_detailed(self, text: str | None) -> StripResult:
        """Strip *text* and report what the scanner encountered."""
        if not text:
            return StripResult(text="")
        # In-memory reads cannot fail.
        return self._run(io.StringIO(text))

    def strip_stream(self, reader: TextReader) -> str:
        """Strip everything readable from *reader*.

        Raises
        ------
        MarkupReadError
            If *reader* raises ``OSError``.  No partial text is returned.
        """
        try:
            return self._run(reader).text
        except OSError as exc:
            raise MarkupReadError(
                IngestError(
                    code=ErrorCode.E_MARKUP_STREAM_READ,
                    message=f"Failed to read markup stream: {exc}",
                    stage="strip",
                )
            ) from exc

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(self, reader: TextReader) -> StripResult:
        scanner = MarkupScanner(
            reader,
            self._opaque_elements,
            buffer_size=self._buffer_size,
            max_entity_length=self._max_entity_length,
        )
        pieces: list[str] = []
        entities_decoded = 0
        entities_unknown: list[str] = []
        spans_discarded = 0

        for span in scanner:
            if span.kind is SpanKind.ENTITY:
                body = span.text[1:-1]
                if is_known_entity(body, self._entities):
                    entities_decoded += 1
                else:
                    entities_unknown.append(span.text)
                pieces.append(self._entities.decode(body))
            elif span.emitted:
                pieces.append(span.text)
            else:
                spans_discarded += 1

        return StripResult(
            text="".join(pieces),
            entities_decoded=entities_decoded,
            entities_unknown=entities_unknown,
            spans_discarded=spans_discarded,
            unterminated=scanner.unterminated,
        )


_DEFAULT_STRIPPER = MarkupStripper()


def strip_markup(text: str | None, stripper: MarkupStripper | None = None) -> str:
    """Remove HTML/XML markup from *text* and decode character entities.

    Parameters
    ----------
    text:
        The raw field value.  ``None`` and ``""`` return ``""``.
    stripper:
        Configured stripper to use.  Defaults to one that treats ``script``
        and ``style`` as opaque and uses the default entity table.

    Returns
    -------
    str
        The visible text content.  Never raises for string input.
    """
    return (stripper or _DEFAULT_STRIPPER).strip(text)


def strip_markup_stream(reader: TextReader, stripper: MarkupStripper | None = None) -> str:
    """Stream variant of :func:`strip_markup`; raises ``MarkupReadError`` on I/O failure."""
    return (stripper or _DEFAULT_STRIPPER).strip_stream(reader)
