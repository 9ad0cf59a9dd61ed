"""Named value converters applied to field substrings."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

Converter = Callable[[str], Any]

BUILTIN_CONVERTERS: dict[str, Converter] = {
    "str": str,
    "stripped": str.strip,
    "int": int,
    "float": float,
    "decimal": Decimal,
}

# Exceptions that mark a substring as unconvertible. ArithmeticError covers
# decimal.InvalidOperation.
CONVERSION_ERRORS = (ValueError, TypeError, ArithmeticError)


def resolve_converter(
    value_type: str | Converter, extra: Mapping[str, Converter] | None = None
) -> Converter:
    """Map a declared value type to a callable; raise KeyError if unknown."""
    if callable(value_type):
        return value_type
    if extra and value_type in extra:
        return extra[value_type]
    return BUILTIN_CONVERTERS[value_type]


def is_known_type(value_type: object, extra: Mapping[str, Converter] | None = None) -> bool:
    if callable(value_type):
        return True
    return isinstance(value_type, str) and (
        value_type in BUILTIN_CONVERTERS or bool(extra and value_type in extra)
    )
