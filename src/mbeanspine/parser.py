"""
Key property list parser.

Turns the ``key=value,key=value`` suffix of an object name into an ordered,
read-only mapping. Property order is the order written in the source string,
not the canonical (sorted) order of the name.

Grammar, scanned left to right one pair at a time::

    pair      := name "=" value
    name      := 1*( any char except , = : * ? )
    value     := quoted | unquoted
    quoted    := '"' *( any char except \\ and "  |  \\\\  |  \\n  |  \\"  |  \\?  |  \\* ) '"'
    unquoted  := *( any char except , = : " )

After each pair a single ``,`` is consumed as separator. Any other character
stops the scan; pairs already read are kept and the rest is dropped.

Quoted values are returned verbatim, surrounding quotes and escape sequences
included. A quote that is never closed, or a backslash followed by anything
outside the escape set, makes the quoted form fail; the value is then read in
unquoted form from the same position, which yields ``""`` since unquoted
values cannot contain ``"``.

The parser never raises for a ``str`` argument.

Examples:
    >>> dict(parse_key_property_list('type=GarbageCollector,name="G1 Young"'))
    {'type': 'GarbageCollector', 'name': '"G1 Young"'}
    >>> dict(parse_key_property_list("a=1,b"))
    {'a': '1'}

Tags:
    parser, scanner, object-name, key-properties, mbean-spine
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from mbeanspine.core.logging import get_logger

logger = get_logger(__name__)

NAME_EXCLUDED = frozenset(",=:*?")
UNQUOTED_EXCLUDED = frozenset(',=:"')
QUOTED_ESCAPES = frozenset('\\n"?*')

QUOTE = '"'
BACKSLASH = "\\"
EQUALS = "="
SEPARATOR = ","


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Outcome of scanning a key property list.

    Attributes:
        pairs: (name, value) pairs in source order, duplicates included
        end: Offset of the first character not consumed
        text: The scanned string
    """

    pairs: tuple[tuple[str, str], ...]
    end: int
    text: str

    @property
    def complete(self) -> bool:
        """True when the whole string was consumed."""
        return self.end == len(self.text)

    @property
    def remainder(self) -> str:
        """The unconsumed tail, empty when :attr:`complete`."""
        return self.text[self.end :]

    def to_mapping(self) -> Mapping[str, str]:
        """Collapse pairs into a read-only ordered mapping (last value wins)."""
        properties: dict[str, str] = {}
        for name, value in self.pairs:
            properties[name] = value
        return MappingProxyType(properties)


def _scan_name(text: str, pos: int) -> int:
    end = pos
    length = len(text)
    while end < length and text[end] not in NAME_EXCLUDED:
        end += 1
    return end


def _scan_quoted(text: str, pos: int) -> int:
    """Return the offset just past the closing quote, or -1 if it never closes."""
    length = len(text)
    i = pos + 1
    while i < length:
        char = text[i]
        if char == QUOTE:
            return i + 1
        if char == BACKSLASH:
            if i + 1 < length and text[i + 1] in QUOTED_ESCAPES:
                i += 2
                continue
            return -1
        i += 1
    return -1


def _scan_unquoted(text: str, pos: int) -> int:
    end = pos
    length = len(text)
    while end < length and text[end] not in UNQUOTED_EXCLUDED:
        end += 1
    return end


def _scan_value(text: str, pos: int) -> int:
    if pos < len(text) and text[pos] == QUOTE:
        end = _scan_quoted(text, pos)
        if end != -1:
            return end
    return _scan_unquoted(text, pos)


def scan_key_properties(text: str) -> ScanResult:
    """Scan ``text`` and report every pair read plus where scanning stopped.

    Args:
        text: A key property list string, e.g. ``"type=Memory,name=heap"``.

    Returns:
        A :class:`ScanResult`. ``end`` points just past the last separator or
        value consumed.
    """
    pairs: list[tuple[str, str]] = []
    length = len(text)
    pos = 0

    while pos < length:
        name_end = _scan_name(text, pos)
        if name_end == pos or name_end >= length or text[name_end] != EQUALS:
            break

        value_start = name_end + 1
        value_end = _scan_value(text, value_start)
        pairs.append((text[pos:name_end], text[value_start:value_end]))
        pos = value_end

        if pos < length and text[pos] == SEPARATOR:
            pos += 1
        else:
            break

    return ScanResult(pairs=tuple(pairs), end=pos, text=text)


def parse_key_property_list(text: str) -> Mapping[str, str]:
    """Parse a key property list into a read-only ordered mapping.

    A name that appears twice keeps its first position and takes the later
    value. Unparseable trailing input is dropped and logged at ``debug``.
    """
    result = scan_key_properties(text)
    if not result.complete:
        logger.debug(
            "key_property_list_truncated",
            offset=result.end,
            dropped=len(text) - result.end,
            pairs=len(result.pairs),
        )
    return result.to_mapping()


__all__ = ["ScanResult", "scan_key_properties", "parse_key_property_list"]
