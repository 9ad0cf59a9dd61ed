"""Error taxonomy for compiled record parsers.

Schema defects raise ``SchemaError`` at compile time. Data errors raised by a
compiled parser derive from ``RecordParseError`` and come in two kinds:
``InvalidTag`` and ``FieldParseFailure``. Each compiled schema gets its own
``<Target>ParseError`` class whose kinds subclass both the schema error and
the generic kind, so callers can catch either.
"""

from __future__ import annotations


class SchemaError(ValueError):
    """A schema declaration that cannot be compiled."""

    def __init__(self, message: str, declaration: str | None = None) -> None:
        super().__init__(message)
        self.declaration = declaration


class RecordParseError(Exception):
    """Base class for data errors raised while parsing a line."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordParseError):
            return NotImplemented
        return _kind(self) is _kind(other) and self._payload() == other._payload()

    def __hash__(self) -> int:
        return hash((_kind(self), self._payload()))

    def _payload(self) -> tuple:
        return ()


class InvalidTag(RecordParseError):
    def __init__(self) -> None:
        super().__init__()

    def __str__(self) -> str:
        return "invalid record type"

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class FieldParseFailure(RecordParseError):
    def __init__(self, record_type: str, field: str) -> None:
        super().__init__(record_type, field)
        self.record_type = record_type
        self.field = field

    def __str__(self) -> str:
        return f"failed to parse field `{self.field}` in {self.record_type} record."

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(record_type={self.record_type!r}, field={self.field!r})"
        )

    def _payload(self) -> tuple:
        return (self.record_type, self.field)


def _kind(error: RecordParseError) -> type:
    if isinstance(error, InvalidTag):
        return InvalidTag
    if isinstance(error, FieldParseFailure):
        return FieldParseFailure
    return RecordParseError


def make_error_type(target_name: str) -> type[RecordParseError]:
    """Build the ``<target_name>ParseError`` class with its two kinds attached."""
    name = f"{target_name}ParseError"
    error_type = type(
        name,
        (RecordParseError,),
        {"__doc__": f"Data error raised while parsing a {target_name} line."},
    )
    error_type.InvalidTag = type("InvalidTag", (error_type, InvalidTag), {})
    error_type.FieldParseFailure = type(
        "FieldParseFailure", (error_type, FieldParseFailure), {}
    )
    for kind in (error_type.InvalidTag, error_type.FieldParseFailure):
        kind.__qualname__ = f"{name}.{kind.__name__}"
    return error_type
