"""Character entity decoding for stripped text.

Resolves the body of an entity reference (the part between ``&`` and
``;``) into its literal text.  Numeric references map through their code
point; named references are looked up in an immutable ``EntityTable``.
Anything that cannot be resolved is returned as the original ``&body;``
literal.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from html.entities import name2codepoint
from types import MappingProxyType

_MAX_CODE_POINT = 0x10FFFF
_DECIMAL = re.compile(r"[0-9]+")
_HEX = re.compile(r"[xX][0-9A-Fa-f]+")


class EntityTable(Mapping[str, str]):
    """Read-only mapping of entity names to their replacement text.

    Tables are never mutated after construction; ``extend()`` returns a new
    table, so a single instance can be shared between threads.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, str]) -> None:
        self._entries = MappingProxyType(dict(entries))

    def __getitem__(self, name: str) -> str:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"EntityTable({len(self)} entries)"

    def extend(self, extra: Mapping[str, str]) -> EntityTable:
        """Return a new table with *extra* entries added (or overridden)."""
        if not extra:
            return self
        merged = dict(self._entries)
        merged.update(extra)
        return EntityTable(merged)

    def decode(self, body: str) -> str:
        return decode_entity(body, self)


def _build_default_table() -> EntityTable:
    # html.entities covers HTML 4 (Latin-1, symbols, special); XML adds apos.
    entries = {name: chr(cp) for name, cp in name2codepoint.items()}
    entries["apos"] = "'"
    return EntityTable(entries)


DEFAULT_ENTITY_TABLE = _build_default_table()


def decode_entity(body: str, table: Mapping[str, str] = DEFAULT_ENTITY_TABLE) -> str:
    """Decode one entity body into text.

    Parameters
    ----------
    body:
        The entity text between ``&`` and ``;``, e.g. ``"amp"``,
        ``"#233"`` or ``"#x20AC"``.
    table:
        Named entity lookup.  Defaults to the HTML 4 set plus ``apos``.

    Returns
    -------
    str
        The replacement text, or the literal ``&body;`` when the entity is
        unknown or does not name a valid character.
    """
    if body.startswith("#"):
        code_point = _parse_numeric(body[1:])
        if code_point is not None:
            return chr(code_point)
    else:
        replacement = table.get(body)
        if replacement is not None:
            return replacement
    return f"&{body};"


def is_known_entity(body: str, table: Mapping[str, str] = DEFAULT_ENTITY_TABLE) -> bool:
    """Return True if ``decode_entity(body, table)`` resolves *body*."""
    if body.startswith("#"):
        return _parse_numeric(body[1:]) is not None
    return body in table


def _parse_numeric(digits: str) -> int | None:
    # Leading zeros are legal; more significant digits than U+10FFFF needs are not.
    if _HEX.fullmatch(digits):
        significant = digits[1:].lstrip("0")
        if len(significant) > 6:
            return None
        code_point = int(significant or "0", 16)
    elif _DECIMAL.fullmatch(digits):
        significant = digits.lstrip("0")
        if len(significant) > 7:
            return None
        code_point = int(significant or "0")
    else:
        return None
    if code_point <= 0 or code_point > _MAX_CODE_POINT:
        return None
    if 0xD800 <= code_point <= 0xDFFF:
        return None
    return code_point
