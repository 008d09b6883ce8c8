"""
Extraction of JavaScript literals embedded in Finam pages.

Finam publishes its data as script assignments (``var aEmitentIds = [...];``,
``Main.issue = {...};``). The literals are close enough to YAML flow syntax
(a superset of JSON that also accepts bare identifiers) that a YAML loader
parses them directly.

Helpers
-------
- `extract(pattern, text)`      all literals captured by ``pattern``
- `extract_one(pattern, text)`  exactly one literal, or a typed failure
- `to_display_string(value)`    scalar coercion to a display string
- `LiteralLoader`               the restricted YAML loader used for parsing
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import yaml

from finance_miner.common.errors import (
    AmbiguousRegionError,
    RegionNotFoundError,
    RegionUnreadableError,
)
from finance_miner.common.types import INVALID, LiteralValue

_logger = logging.getLogger(__name__)

PatternLike = str | re.Pattern[str]


class LiteralLoader(yaml.SafeLoader):
    """SafeLoader that resolves only JSON-style booleans and no timestamps.

    Plain YAML 1.1 would turn tokens such as ``ON`` or ``2015-01-01`` into
    booleans and dates; on the site these are names and codes.
    """


_DROPPED_TAGS = {"tag:yaml.org,2002:bool", "tag:yaml.org,2002:timestamp"}

LiteralLoader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers if tag not in _DROPPED_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
LiteralLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def _normalise(value: object) -> LiteralValue:
    """Map loader output onto `LiteralValue`; foreign types become `INVALID`."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, list):
        return [_normalise(v) for v in value]
    if isinstance(value, dict):
        return {_normalise(k): _normalise(v) for k, v in value.items()}  # type: ignore[misc]
    return INVALID


def _separate_tokens(source: str) -> str:
    """
    Lay out token separators the way the YAML scanner expects them.

    Outside quoted strings, tabs become spaces and a ``:`` is always followed
    by a space, so ``{"a":\\t1}`` and bare-key objects such as
    ``{quote:{code:"SBER"}}`` read as mappings. Quoted text is left untouched.
    """
    out: list[str] = []
    quote: Optional[str] = None
    escaped = False
    last = len(source) - 1
    for i, ch in enumerate(source):
        if quote is not None:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
            out.append(ch)
        elif ch == "\t":
            out.append(" ")
        elif ch == ":" and i < last and source[i + 1] not in " \t\r\n":
            out.append(": ")
        else:
            out.append(ch)
    return "".join(out)


def parse_literal(source: str) -> list[LiteralValue]:
    """Parse ``source`` as a literal document stream.

    Raises:
        yaml.YAMLError: If ``source`` is not valid literal syntax.
    """
    return [
        _normalise(doc)
        for doc in yaml.load_all(_separate_tokens(source), Loader=LiteralLoader)
    ]


def _scan(
    pattern: PatternLike, text: str, log: logging.Logger
) -> tuple[list[LiteralValue], int]:
    """Parse every capture of ``pattern``; return the values and the reject count."""
    rx = re.compile(pattern) if isinstance(pattern, str) else pattern

    parsed: list[LiteralValue] = []
    rejected = 0
    for match in rx.finditer(text):
        for capture in match.groups():
            if not capture:
                continue
            try:
                parsed.extend(parse_literal(capture))
            except yaml.YAMLError as exc:
                rejected += 1
                log.warning("Cannot extract literal: %s", exc)
    return parsed, rejected


def extract(
    pattern: PatternLike,
    text: str,
    *,
    logger: Optional[logging.Logger] = None,
) -> list[LiteralValue]:
    """
    Return every literal captured by ``pattern`` in ``text``.

    Every non-empty capturing group of every non-overlapping match is parsed.
    A capture that fails to parse is logged and skipped.

    Args:
        pattern: Regular expression with one or more capturing groups.
        text: Full document text.
        logger: Logger for diagnostics (defaults to this module's logger).

    Returns:
        Parsed top-level values, in match order.
    """
    parsed, _ = _scan(pattern, text, logger or _logger)
    return parsed


def extract_one(
    pattern: PatternLike,
    text: str,
    *,
    label: str,
    logger: Optional[logging.Logger] = None,
) -> LiteralValue:
    """
    Return the single literal captured by ``pattern`` in ``text``.

    Raises:
        RegionNotFoundError: If the pattern matched nothing.
        RegionUnreadableError: If the pattern matched but no capture parsed.
        AmbiguousRegionError: If more than one literal was captured.
    """
    values, rejected = _scan(pattern, text, logger or _logger)
    if not values:
        if rejected:
            raise RegionUnreadableError(label)
        raise RegionNotFoundError(label)
    if len(values) > 1:
        raise AmbiguousRegionError(label, len(values))
    return values[0]


def to_display_string(
    value: LiteralValue, *, logger: Optional[logging.Logger] = None
) -> str:
    """
    Coerce a parsed literal to its display string. Never raises.

    The site writes some fields as quoted strings and others as bare numbers,
    so ids, names and market ids all pass through here.

    - text / real  -> the text / ``str(value)``
    - integer      -> decimal string
    - boolean      -> ``"true"`` / ``"false"``
    - anything else (sequence, mapping, null, `INVALID`) -> ``""`` with a warning
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)

    log = logger or _logger
    log.warning("Unexpected %s value: %r", _shape_name(value), value)
    return ""


def _shape_name(value: object) -> str:
    if value is None:
        return "null"
    if value is INVALID:
        return "invalid"
    if isinstance(value, list):
        return "sequence"
    if isinstance(value, dict):
        return "mapping"
    return type(value).__name__


__all__ = [
    "LiteralLoader",
    "parse_literal",
    "extract",
    "extract_one",
    "to_display_string",
]
