"""Shared test fixtures for ingestkit-markup tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from ingestkit_markup.config import MarkupProcessorConfig
from ingestkit_markup.models import InputDocument, InputField, ProcessingEvent

SAMPLE_HTML = (
    "<html><head><title>Release notes</title>"
    "<style>body { color: red; }</style></head>"
    "<body><!-- build 42 -->"
    "<h1>Caf&eacute; &amp; Bar</h1>"
    "<p class=\"lead\">Open&nbsp;daily<br/>from 9&ndash;5.</p>"
    "<script type=\"text/javascript\">if (a < b && c > d) { alert('<p>'); }</script>"
    "<![CDATA[x < y]]><p>Price: &#36;10 &#x2014; AT&T</p>"
    "</body></html>"
)

SAMPLE_TEXT = (
    "Release notes"
    "Caf\u00e9 & Bar"
    "Open\u00a0dailyfrom 9\u20135."
    "x < yPrice: $10 \u2014 AT&T"
)


@pytest.fixture
def default_config() -> MarkupProcessorConfig:
    """Return a default MarkupProcessorConfig."""
    return MarkupProcessorConfig()


@pytest.fixture
def body_config() -> MarkupProcessorConfig:
    """Config processing the ``body`` and ``summary`` fields."""
    return MarkupProcessorConfig(fields=["body", "summary"])


@pytest.fixture
def mock_next_stage() -> MagicMock:
    """Return a mock next pipeline stage."""
    return MagicMock()


@pytest.fixture
def event_sink() -> list[ProcessingEvent]:
    """List that collects events when its ``append`` is used as the hook."""
    return []


@pytest.fixture
def sample_document() -> InputDocument:
    """Document with a multi-valued markup field, a scalar field and metadata."""
    return InputDocument(
        fields={
            "body": InputField(
                name="body",
                values=["<p>Hello&nbsp;&nbsp;<b>world</b></p>  ", 42, None, "<i>again</i>"],
                boost=2.5,
            ),
            "summary": InputField(name="summary", values=["  <em>short</em>   text "]),
            "title": InputField(name="title", values=["<i>Untouched</i>"]),
        },
        boost=1.5,
    )


@pytest.fixture
def tmp_config_file(tmp_path: Path):
    """Factory fixture to write a config file and return its path."""

    def _write(content: str, filename: str = "config.json") -> str:
        file_path = tmp_path / filename
        file_path.write_text(content)
        return str(file_path)

    return _write
