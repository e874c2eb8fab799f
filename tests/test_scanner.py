"""Tests for ingestkit_markup.scanner."""

from __future__ import annotations

import io

import pytest

from ingestkit_markup.models import ScanState, SpanKind
from ingestkit_markup.scanner import MarkupScanner, scan_markup

from conftest import SAMPLE_HTML


def _spans(text: str, **options) -> list[tuple[SpanKind, str]]:
    return [(span.kind, span.text) for span in scan_markup(text, **options)]


def _emitted(text: str, **options) -> str:
    return "".join(span.text for span in scan_markup(text, **options) if span.emitted)


class _RecordingReader:
    """Reader that records the sizes requested from it."""

    def __init__(self, text: str) -> None:
        self._inner = io.StringIO(text)
        self.requests: list[int] = []

    def read(self, size: int = -1) -> str:
        self.requests.append(size)
        return self._inner.read(size)


class TestTextAndTags:
    """Classification of plain text and generic tags."""

    def test_plain_text_single_span(self):
        assert _spans("just words") == [(SpanKind.TEXT, "just words")]

    def test_empty_input_yields_nothing(self):
        assert _spans("") == []

    def test_simple_element(self):
        assert _spans("<b>hi</b>") == [
            (SpanKind.TAG, "<b>"),
            (SpanKind.TEXT, "hi"),
            (SpanKind.TAG, "</b>"),
        ]

    def test_tag_with_attributes(self):
        assert _emitted('<a href="/x" class=link>go</a>') == "go"

    def test_gt_inside_quoted_attribute_ends_tag(self):
        spans = _spans('<a title="a > b">link</a>')
        assert spans[0] == (SpanKind.TAG, '<a title="a >')
        assert _emitted('<a title="a > b">link</a>') == ' b">link'

    def test_doctype_and_processing_instruction_are_tags(self):
        text = '<?xml version="1.0"?><!DOCTYPE html><p>body</p>'
        assert _emitted(text) == "body"

    def test_lt_not_followed_by_tag_start_is_text(self):
        assert _emitted("a < b") == "a < b"
        assert _emitted("x<3 y") == "x<3 y"
        assert _emitted("<<<") == "<<<"

    def test_lt_at_end_of_input_is_text(self):
        assert _emitted("tail<") == "tail<"

    def test_end_tag_with_space(self):
        assert _emitted("a</ p>b") == "ab"


class TestComments:
    """Comment handling."""

    def test_comment_discarded(self):
        assert _spans("a <!-- c --> b") == [
            (SpanKind.TEXT, "a "),
            (SpanKind.COMMENT, "<!--"),
            (SpanKind.COMMENT, " c -->"),
            (SpanKind.TEXT, " b"),
        ]

    def test_markup_inside_comment_discarded(self):
        assert _emitted("x<!-- <b>bold</b> & stuff -->y") == "xy"

    def test_comment_closes_at_nearest_terminator(self):
        assert _emitted("<!-- a --> b -->c") == " b -->c"


class TestCData:
    """CDATA sections."""

    def test_cdata_content_emitted(self):
        assert _spans("x<![CDATA[a<b]]>y") == [
            (SpanKind.TEXT, "x"),
            (SpanKind.TAG, "<![CDATA["),
            (SpanKind.CDATA, "a<b"),
            (SpanKind.TAG, "]]>"),
            (SpanKind.TEXT, "y"),
        ]

    def test_empty_cdata(self):
        assert _emitted("a<![CDATA[]]>b") == "ab"

    def test_unterminated_cdata_content_emitted(self):
        scanner = MarkupScanner(io.StringIO("a<![CDATA[" + "x" * 50), buffer_size=16)
        emitted = "".join(span.text for span in scanner if span.emitted)
        assert emitted == "a" + "x" * 50
        assert scanner.unterminated is ScanState.IN_CDATA


class TestOpaqueBlocks:
    """Script/style-like elements."""

    def test_script_content_discarded(self):
        text = "<script>var a = '<b>';</script>after"
        assert _spans(text) == [
            (SpanKind.TAG, "<script>"),
            (SpanKind.OPAQUE_BLOCK, "var a = '<b>';</script"),
            (SpanKind.TAG, ">"),
            (SpanKind.TEXT, "after"),
        ]

    def test_case_insensitive_names(self):
        assert _emitted("<SCRIPT>x</Script >y") == "y"

    def test_style_with_attributes(self):
        assert _emitted('<style type="text/css">p { x: 1 }</style>text') == "text"

    def test_self_closing_opaque_tag_is_empty(self):
        assert _emitted("<script/>visible") == "visible"
        assert _emitted("<script src='a.js' />visible") == "visible"

    def test_longer_name_is_not_opaque(self):
        assert _emitted("<scripts>x</scripts>") == "x"

    def test_end_tag_prefix_does_not_close_block(self):
        assert _emitted("<script>a</scriptx>b</script>c") == "c"

    def test_no_opaque_elements_configured(self):
        assert _emitted("<script>x</script>", opaque_elements=()) == "x"

    def test_custom_opaque_element(self):
        text = "<noscript>hidden</noscript><script>shown</script>"
        assert _emitted(text, opaque_elements=["noscript"]) == "shown"


class TestEntities:
    """Entity span recognition."""

    def test_named_entity_span(self):
        assert _spans("&amp;") == [(SpanKind.ENTITY, "&amp;")]

    def test_numeric_entity_spans(self):
        assert _spans("&#65;&#x41;") == [
            (SpanKind.ENTITY, "&#65;"),
            (SpanKind.ENTITY, "&#x41;"),
        ]

    def test_bare_ampersand_is_text(self):
        assert _spans("& b") == [(SpanKind.TEXT, "&"), (SpanKind.TEXT, " b")]

    def test_missing_semicolon_is_text(self):
        assert _emitted("AT&T rocks") == "AT&T rocks"

    def test_invalid_body_is_text(self):
        assert _emitted("&a-b;") == "&a-b;"
        assert _emitted("&#xZZ;") == "&#xZZ;"

    def test_entity_bound(self):
        long_name = "a" * 40
        assert _spans(f"&{long_name};", max_entity_length=32)[0] == (SpanKind.TEXT, "&")
        assert _spans(f"&{long_name};", max_entity_length=40) == [
            (SpanKind.ENTITY, f"&{long_name};")
        ]

    def test_ampersand_before_tag(self):
        assert _emitted("&<b>x</b>") == "&x"


class TestMalformedInput:
    """Unterminated markup is discarded and reported."""

    @pytest.mark.parametrize(
        "text, expected, state",
        [
            ("before<p unterminated", "before", ScanState.IN_TAG),
            ("before<!-- never closed", "before", ScanState.IN_COMMENT),
            ("before<!--", "before", ScanState.IN_COMMENT),
            ("a<script>alert(1)", "a", ScanState.IN_OPAQUE_BLOCK),
            ("a<script", "a", ScanState.IN_TAG),
            ("a<script>x</script", "a", ScanState.IN_OPAQUE_BLOCK),
            ("a<![CDATA[partial", "apartial", ScanState.IN_CDATA),
        ],
    )
    def test_unterminated(self, text, expected, state):
        scanner = MarkupScanner(io.StringIO(text))
        emitted = "".join(span.text for span in scanner if span.emitted)
        assert emitted == expected
        assert scanner.unterminated is state
        assert scanner.state is ScanState.TEXT

    def test_terminated_input_reports_nothing(self):
        scanner = MarkupScanner(io.StringIO("<b>ok</b>"))
        list(scanner)
        assert scanner.unterminated is None

    def test_many_unmatched_lt(self):
        text = "<" * 1_000_000
        assert _emitted(text) == text

    def test_many_unclosed_tags(self):
        text = "<a" * 200_000
        assert _emitted("x" + text) == "x"

    def test_many_bare_ampersands(self):
        text = "&" * 200_000
        assert _emitted(text) == text

    def test_deeply_nested_tags(self):
        depth = 50_000
        text = "<div>" * depth + "core" + "</div>" * depth
        assert _emitted(text) == "core"


class TestBuffering:
    """Output must not depend on where buffer refills fall."""

    @pytest.mark.parametrize("buffer_size", [16, 17, 19, 23, 31, 64, 4096])
    def test_sample_document_independent_of_buffer_size(self, buffer_size):
        expected = _emitted(SAMPLE_HTML, buffer_size=4096)
        assert _emitted(SAMPLE_HTML, buffer_size=buffer_size) == expected

    @pytest.mark.parametrize("padding", range(0, 20))
    def test_delimiters_split_across_refills(self, padding):
        text = "p" * padding + "a<!--xxxxxxxxxx-->b<script>q</script>c&amp;d<![CDATA[e]]>f"
        expected = "p" * padding + "abc&amp;def"
        assert _emitted(text, buffer_size=16) == expected

    def test_reads_are_bounded(self):
        reader = _RecordingReader("<p>" + "word " * 5000 + "</p>")
        scanner = MarkupScanner(reader, buffer_size=128)
        emitted = "".join(span.text for span in scanner if span.emitted)
        assert emitted == "word " * 5000
        assert reader.requests
        assert all(size == 128 for size in reader.requests)

    def test_long_comment_yields_bounded_spans(self):
        text = "<!--" + "x" * 10_000 + "-->"
        spans = list(scan_markup(text, buffer_size=64))
        assert all(span.kind is SpanKind.COMMENT for span in spans)
        assert max(len(span.text) for span in spans) < 2 * 64
        assert "".join(span.text for span in spans) == text

    def test_buffer_size_too_small(self):
        with pytest.raises(ValueError, match="buffer_size"):
            MarkupScanner(io.StringIO(""), buffer_size=4)

    def test_max_entity_length_must_be_positive(self):
        with pytest.raises(ValueError, match="max_entity_length"):
            MarkupScanner(io.StringIO(""), max_entity_length=0)

    def test_opaque_state_without_element_name(self):
        scanner = MarkupScanner(io.StringIO("x"))
        scanner._state = ScanState.IN_OPAQUE_BLOCK
        with pytest.raises(RuntimeError, match="IN_OPAQUE_BLOCK"):
            list(scanner)
