"""Single-pass markup scanner.

``MarkupScanner`` reads a text stream through a fixed-size buffer and
lazily yields :class:`~ingestkit_markup.models.Span` objects that classify
every input character as emitted text (``TEXT``, ``ENTITY``, ``CDATA``) or
discarded markup (``TAG``, ``COMMENT``, ``OPAQUE_BLOCK``).

Scanning rules:

- ``<!--`` opens a comment that ends at the nearest ``-->``.
- ``<![CDATA[`` opens a section whose content is emitted verbatim up to
  ``]]>``.
- ``<`` followed by a letter, ``/``, ``!`` or ``?`` opens a tag that ends
  at the next ``>``.  Quoted attribute values are not parsed, so a ``>``
  inside quotes ends the tag.
- A start tag naming an opaque element (``script``/``style`` by default)
  discards everything up to the matching end tag.
- Any other ``<`` is literal text.
- ``&`` followed by a well-formed entity body and ``;`` within
  ``max_entity_length`` characters is an ``ENTITY`` span; otherwise the
  ``&`` is literal text.

Markup still open at end of input is discarded and reported through
:attr:`MarkupScanner.unterminated`.  Work is linear in the input length:
a search that runs off the end of the buffer only keeps back a tail shorter
than the delimiter it is looking for.
"""

from __future__ import annotations

import io
import re
import string
from collections.abc import Generator, Iterable, Iterator
from typing import Protocol

from ingestkit_markup.models import ScanState, Span, SpanKind

DEFAULT_BUFFER_SIZE = 4096
DEFAULT_MAX_ENTITY_LENGTH = 32
DEFAULT_OPAQUE_ELEMENTS = ("script", "style")
MIN_BUFFER_SIZE = 16

_COMMENT_OPEN = "<!--"
_COMMENT_CLOSE = "-->"
_CDATA_OPEN = "<![CDATA["
_CDATA_CLOSE = "]]>"
_TAG_CLOSE = ">"

_TEXT_STOP = re.compile(r"[<&]")
_TAG_START_CHARS = frozenset(string.ascii_letters + "/!?")
_TAG_NAME = re.compile(r"[A-Za-z][A-Za-z0-9:_.-]*")
_ENTITY_BODY = re.compile(r"#[0-9]+|#[xX][0-9A-Fa-f]+|[A-Za-z][A-Za-z0-9]*")

_Spans = Generator[Span, None, None]


class TextReader(Protocol):
    """Anything with a file-like ``read(size)`` returning text."""

    def read(self, size: int = -1, /) -> str: ...


class MarkupScanner:
    """Stateful tokenizer over a character stream.

    Parameters
    ----------
    reader:
        Source of text, read ``buffer_size`` characters at a time.
    opaque_elements:
        Element names (case-insensitive) whose content is discarded up to
        the matching end tag.
    buffer_size:
        Characters requested from *reader* per refill.
    max_entity_length:
        Longest entity body examined before ``&`` is treated as text.
    """

    def __init__(
        self,
        reader: TextReader,
        opaque_elements: Iterable[str] = DEFAULT_OPAQUE_ELEMENTS,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        max_entity_length: int = DEFAULT_MAX_ENTITY_LENGTH,
    ) -> None:
        if buffer_size < MIN_BUFFER_SIZE:
            raise ValueError(f"buffer_size must be >= {MIN_BUFFER_SIZE}, got {buffer_size}")
        if max_entity_length < 1:
            raise ValueError(f"max_entity_length must be >= 1, got {max_entity_length}")

        self._reader = reader
        self._buffer_size = buffer_size
        self._max_entity_length = max_entity_length
        self._end_tags = {
            name.lower(): re.compile(rf"</{re.escape(name)}(?=[\s/>])", re.IGNORECASE)
            for name in opaque_elements
        }
        self._lookahead = max(
            len(_CDATA_OPEN),
            max((len(name) for name in self._end_tags), default=0) + 2,
        )

        self._buf = ""
        self._pos = 0
        self._eof = False
        self._state = ScanState.TEXT
        self._opaque_name: str | None = None
        self.unterminated: ScanState | None = None

    @property
    def state(self) -> ScanState:
        return self._state

    def __iter__(self) -> Iterator[Span]:
        handlers = {
            ScanState.TEXT: self._scan_text,
            ScanState.IN_TAG: self._scan_tag,
            ScanState.IN_COMMENT: self._scan_comment,
            ScanState.IN_CDATA: self._scan_cdata,
            ScanState.IN_OPAQUE_BLOCK: self._scan_opaque_block,
            ScanState.IN_ENTITY: self._scan_entity,
        }
        while self._fill(1):
            yield from handlers[self._state]()

        if self._state is not ScanState.TEXT:
            self.unterminated = self._state
            self._state = ScanState.TEXT
            self._opaque_name = None

    # ------------------------------------------------------------------
    # Buffer management
    # ------------------------------------------------------------------

    def _read_more(self) -> bool:
        """Append one chunk to the buffer, dropping the consumed prefix."""
        if self._eof:
            return False
        chunk = self._reader.read(self._buffer_size)
        if not chunk:
            self._eof = True
            return False
        self._buf = self._buf[self._pos :] + chunk
        self._pos = 0
        return True

    def _fill(self, needed: int) -> bool:
        """Buffer at least *needed* unconsumed characters; False if input ends first."""
        while len(self._buf) - self._pos < needed:
            if not self._read_more():
                return False
        return True

    def _take(self, end: int) -> str:
        text = self._buf[self._pos : end]
        self._pos = end
        return text

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------

    def _scan_text(self) -> _Spans:
        while True:
            match = _TEXT_STOP.search(self._buf, self._pos)
            if match is None:
                if self._pos < len(self._buf):
                    yield Span(SpanKind.TEXT, self._take(len(self._buf)))
                if not self._read_more():
                    return
                continue

            if match.start() > self._pos:
                yield Span(SpanKind.TEXT, self._take(match.start()))
            if match.group() == "&":
                self._state = ScanState.IN_ENTITY
            else:
                yield from self._open_markup()
            return

    def _open_markup(self) -> _Spans:
        """Classify the ``<`` at the current position."""
        self._fill(self._lookahead)
        ahead = self._buf[self._pos : self._pos + len(_CDATA_OPEN)]

        if ahead.startswith(_COMMENT_OPEN):
            yield Span(SpanKind.COMMENT, self._take(self._pos + len(_COMMENT_OPEN)))
            self._state = ScanState.IN_COMMENT
        elif ahead == _CDATA_OPEN:
            yield Span(SpanKind.TAG, self._take(self._pos + len(_CDATA_OPEN)))
            self._state = ScanState.IN_CDATA
        elif ahead[1:2] in _TAG_START_CHARS:
            self._opaque_name = self._opaque_start_tag()
            self._state = ScanState.IN_TAG
        else:
            yield Span(SpanKind.TEXT, self._take(self._pos + 1))

    def _opaque_start_tag(self) -> str | None:
        """Return the opaque element name if a start tag for one begins here."""
        if not self._end_tags:
            return None
        # The lookahead fill guarantees a name this short is fully buffered.
        match = _TAG_NAME.match(self._buf, self._pos + 1)
        if match is None:
            return None
        name = match.group().lower()
        return name if name in self._end_tags else None

    def _scan_tag(self) -> _Spans:
        closing = yield from self._discard_through(_TAG_CLOSE, SpanKind.TAG)
        if closing is None:
            return

        name, self._opaque_name = self._opaque_name, None
        if name is not None and not closing.endswith("/>"):
            self._opaque_name = name
            self._state = ScanState.IN_OPAQUE_BLOCK
        else:
            self._state = ScanState.TEXT

    def _scan_comment(self) -> _Spans:
        closing = yield from self._discard_through(_COMMENT_CLOSE, SpanKind.COMMENT)
        if closing is not None:
            self._state = ScanState.TEXT

    def _scan_cdata(self) -> _Spans:
        keep = len(_CDATA_CLOSE) - 1
        while True:
            end = self._buf.find(_CDATA_CLOSE, self._pos)
            if end != -1:
                if end > self._pos:
                    yield Span(SpanKind.CDATA, self._take(end))
                yield Span(SpanKind.TAG, self._take(end + len(_CDATA_CLOSE)))
                self._state = ScanState.TEXT
                return

            cut = max(self._pos, len(self._buf) - keep)
            if cut > self._pos:
                yield Span(SpanKind.CDATA, self._take(cut))
            if not self._read_more():
                # Unlike other open markup, unterminated CDATA content is still emitted.
                if self._pos < len(self._buf):
                    yield Span(SpanKind.CDATA, self._take(len(self._buf)))
                return

    def _scan_opaque_block(self) -> _Spans:
        if self._opaque_name is None:
            raise RuntimeError("scanner entered IN_OPAQUE_BLOCK without an open element")
        pattern = self._end_tags[self._opaque_name]
        # "</name" may sit at the buffer end waiting for its lookahead char.
        keep = len(self._opaque_name) + 2
        while True:
            match = pattern.search(self._buf, self._pos)
            if match is not None:
                yield Span(SpanKind.OPAQUE_BLOCK, self._take(match.end()))
                self._opaque_name = None
                self._state = ScanState.IN_TAG
                return

            cut = max(self._pos, len(self._buf) - keep)
            if cut > self._pos:
                yield Span(SpanKind.OPAQUE_BLOCK, self._take(cut))
            if not self._read_more():
                if self._pos < len(self._buf):
                    yield Span(SpanKind.OPAQUE_BLOCK, self._take(len(self._buf)))
                return

    def _scan_entity(self) -> _Spans:
        limit = self._max_entity_length
        self._fill(limit + 2)
        window = self._buf[self._pos + 1 : self._pos + limit + 2]
        semicolon = window.find(";")
        self._state = ScanState.TEXT

        if semicolon > 0 and _ENTITY_BODY.fullmatch(window, 0, semicolon):
            yield Span(SpanKind.ENTITY, self._take(self._pos + semicolon + 2))
        else:
            yield Span(SpanKind.TEXT, self._take(self._pos + 1))

    def _discard_through(self, delimiter: str, kind: SpanKind) -> Generator[Span, None, str | None]:
        """Discard input up to and including the next *delimiter*.

        Returns the last ``len(delimiter) + 1`` characters consumed, or
        ``None`` when the input ended first (everything left is discarded).
        """
        keep = len(delimiter) - 1
        previous = ""
        while True:
            end = self._buf.find(delimiter, self._pos)
            if end != -1:
                text = self._take(end + len(delimiter))
                yield Span(kind, text)
                return (previous + text)[-(len(delimiter) + 1) :]

            cut = max(self._pos, len(self._buf) - keep)
            if cut > self._pos:
                text = self._take(cut)
                previous = text[-1]
                yield Span(kind, text)
            if not self._read_more():
                if self._pos < len(self._buf):
                    yield Span(kind, self._take(len(self._buf)))
                return None


def scan_markup(
    text: str,
    opaque_elements: Iterable[str] = DEFAULT_OPAQUE_ELEMENTS,
    *,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    max_entity_length: int = DEFAULT_MAX_ENTITY_LENGTH,
) -> Iterator[Span]:
    """Scan an in-memory string; see :class:`MarkupScanner`."""
    scanner = MarkupScanner(
        io.StringIO(text),
        opaque_elements,
        buffer_size=buffer_size,
        max_entity_length=max_entity_length,
    )
    return iter(scanner)
