"""Offset resolution: turn partial position hints into absolute field ranges.

Each variant keeps a running cursor that starts at 0. A field starts at the
cursor unless a ``StartsAt`` hint pins it; ``EndsAt`` and ``Length`` move the
cursor to the field's end, ``StartsAt`` never does. Hints are folded in
declaration order, so later hints see the values earlier ones produced.
"""

from __future__ import annotations

import logging

from fixedrec.errors import SchemaError
from fixedrec.schema.model import (
    EndsAt,
    FieldDecl,
    Length,
    RecordField,
    StartsAt,
    VariantDecl,
)

LOGGER = logging.getLogger(__name__)


def resolve_field(decl: FieldDecl, cursor: int, record_type: str) -> tuple[RecordField, int]:
    """Resolve one field starting from ``cursor``; return it and the new cursor."""
    start = cursor
    length = 0
    end = cursor

    for hint in decl.hints:
        if isinstance(hint, StartsAt):
            start = hint.value
            end = start + length
        elif isinstance(hint, EndsAt):
            end = hint.value
            length = end - start
            cursor = end
        elif isinstance(hint, Length):
            length = hint.value
            end = start + length
            cursor = end
        else:
            raise SchemaError(
                f"unsupported position hint {hint!r} on field `{decl.name}`",
                declaration=str(decl.name),
            )

    if end < start:
        raise SchemaError(
            f"`{decl.name}` field ends at {end} before it starts at {start}",
            declaration=str(decl.name),
        )
    if end - start == 0:
        raise SchemaError(f"`{decl.name}` field length is zero!", declaration=str(decl.name))

    field = RecordField(
        name=str(decl.name),
        start=start,
        end=end,
        record_type=record_type,
        value_type=decl.value_type,
    )
    return field, cursor


def resolve_variant(variant: VariantDecl, tag: str) -> tuple[RecordField, ...]:
    """Resolve every field of ``variant`` in order with a fresh cursor."""
    cursor = 0
    fields: list[RecordField] = []
    for decl in variant.fields:
        field, cursor = resolve_field(decl, cursor, record_type=tag)
        LOGGER.debug(
            "%s.%s -> [%d, %d) cursor=%d", variant.name, field.name, field.start, field.end, cursor
        )
        fields.append(field)
    return tuple(fields)
