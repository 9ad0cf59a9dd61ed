"""Schema model for fixed-length tagged record formats.

Two layers live here:

- the declaration model (``SchemaDecl`` and friends) that a front end hands
  to the compiler, where field positions are only partially specified by
  position hints;
- the resolved model (``RecordFormatSchema``) produced by the compiler, where
  every field carries an absolute half-open ``[start, end)`` range.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class StartsAt:
    value: int


@dataclass(frozen=True)
class EndsAt:
    value: int  # exclusive


@dataclass(frozen=True)
class Length:
    value: int


PositionHint = Union[StartsAt, EndsAt, Length]

ValueType = Union[str, Callable[[str], Any]]


@dataclass(frozen=True)
class Attribute:
    """A raw attribute attached to a variant, as the front end saw it."""

    name: str
    value: Any
    literal: bool = True


@dataclass
class FieldDecl:
    name: str | None
    hints: list[PositionHint] = field(default_factory=list)
    value_type: ValueType = "str"
    # attribute names the front end did not map to hints; ignored
    attributes: tuple[str, ...] = ()


@dataclass
class VariantDecl:
    name: str
    attributes: list[Attribute] = field(default_factory=list)
    fields: list[FieldDecl] = field(default_factory=list)
    discriminant: int | None = None

    @property
    def tags(self) -> list[Attribute]:
        return [attr for attr in self.attributes if attr.name == "tag"]


@dataclass
class SchemaDecl:
    target_name: str
    variants: list[VariantDecl] = field(default_factory=list)
    kind: str = "variants"  # "record" marks a single fixed shape


@dataclass(frozen=True)
class RecordField:
    name: str
    start: int
    end: int
    record_type: str
    value_type: ValueType = "str"

    @property
    def width(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class RecordVariant:
    tag: str
    name: str
    fields: tuple[RecordField, ...]


@dataclass(frozen=True)
class RecordFormatSchema:
    target_name: str
    tag_length: int
    variants: tuple[RecordVariant, ...]

    @property
    def error_name(self) -> str:
        return f"{self.target_name}ParseError"
