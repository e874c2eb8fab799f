"""Whitespace normalization for stripped field values."""

from __future__ import annotations

import re

_NO_BREAK_SPACE = "\u00a0"
_WHITESPACE_RUN = re.compile(r"\s{2,}")


def normalize_space(text: str | None) -> str:
    """Space-normalize *text*.

    Replaces no-break spaces with ordinary spaces, trims leading and
    trailing whitespace, then collapses every run of two or more whitespace
    characters into a single space.  ``None`` yields ``""``.

    Single whitespace characters other than U+00A0 (a lone tab, say) are
    kept as they are.
    """
    if text is None:
        return ""
    trimmed = text.replace(_NO_BREAK_SPACE, " ").strip()
    return _WHITESPACE_RUN.sub(" ", trimmed)
