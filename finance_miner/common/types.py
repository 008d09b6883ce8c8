"""
Shared typing utilities for finance-miner.

This module defines `LiteralValue`, a recursive type alias for anything the
literal extractor can hand back after parsing a JavaScript literal embedded in
a Finam page.

- `LiteralScalar` covers the primitive values (real, integer, boolean, text, null).
- `LiteralValue` adds ordered sequences, mappings of value to value, and the
  `INVALID` marker used when a value could not be resolved.

Examples
--------
    ["1", "2", 3]                                   # sequence of text and integer
    {"quote": {"code": "SBER"}}                     # nested mapping
    INVALID                                         # unresolved value

Mapping keys are hashable scalars in practice; duplicate keys are impossible
since a later key replaces an earlier one while the literal is parsed.
"""

from __future__ import annotations

from typing import Final, TypeAlias


class _Invalid:
    """Marker for a literal that could not be resolved to a usable value."""

    _instance: _Invalid | None = None

    def __new__(cls) -> _Invalid:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "INVALID"

    def __bool__(self) -> bool:
        return False


INVALID: Final = _Invalid()

LiteralScalar: TypeAlias = str | int | float | bool | None
LiteralValue: TypeAlias = (
    LiteralScalar | list["LiteralValue"] | dict["LiteralValue", "LiteralValue"] | _Invalid
)

__all__ = ["INVALID", "LiteralScalar", "LiteralValue"]
