"""String to number/boolean parsers used for configuration values.

All parsers accept surrounding whitespace and reject anything else that is not
part of the literal, raising :class:`ParseError`.
"""

from __future__ import annotations

import re

_INT_RE = re.compile(r"[+-]?\d+")
_DOUBLE_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_BOOLS = {
    "true": True,
    "false": False,
}


class ParseError(ValueError):
    pass


def parse_int(data: str) -> int:
    text = data.strip()
    if not _INT_RE.fullmatch(text):
        raise ParseError(f"not an integer: {data!r}")
    return int(text)


def parse_double(data: str) -> float:
    text = data.strip()
    if not _DOUBLE_RE.fullmatch(text):
        raise ParseError(f"not a number: {data!r}")
    return float(text)


def parse_bool(data: str) -> bool:
    """Parse ``true`` or ``false`` (lower case only)."""
    try:
        return _BOOLS[data.strip()]
    except KeyError:
        raise ParseError(f"not a boolean: {data!r}") from None
