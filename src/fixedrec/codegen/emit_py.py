"""Render a compiled schema as a standalone Python parser module.

The emitted module has no runtime dependency on fixedrec. It contains the
``<Target>ParseError`` class with its two kinds, one frozen dataclass per
variant, and a ``parse(line)`` function that dispatches on the tag with an
``if`` chain in declaration order, so the first declared tag wins exactly as
in ``RecordParser``.
"""

from __future__ import annotations

import builtins

from fixedrec.config import CompilerConfig
from fixedrec.errors import SchemaError
from fixedrec.runtime.converters import BUILTIN_CONVERTERS
from fixedrec.schema.model import RecordFormatSchema, RecordVariant

# converters are bound to private aliases before any record class is defined
CONVERTER_SOURCE = {
    "str": "_str",
    "stripped": "_strip",
    "int": "_int",
    "float": "_float",
    "decimal": "_Decimal",
}
RESERVED_NAMES = {
    *CONVERTER_SOURCE.values(),
    "_FieldParseFailure",
    "_InvalidTag",
    "_field",
    "Any",
    "Decimal",
    "FILL_CHAR",
    "PAD_SHORT_LINES",
    "TAG_LENGTH",
    "annotations",
    "dataclass",
    "parse",
}

HEADER = '''"""Parser for the {target} record format.

Generated by fixedrec from a compiled schema. Do not edit by hand.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

TAG_LENGTH = {tag_length}
PAD_SHORT_LINES = {pad}
FILL_CHAR = {fill!r}

_str = str
_strip = str.strip
_int = int
_float = float
_Decimal = Decimal


class {error}(Exception):
    """Data error raised while parsing a {target} line."""


class _InvalidTag({error}):
    def __str__(self) -> str:
        return "invalid record type"


class _FieldParseFailure({error}):
    def __init__(self, record_type: str, field: str) -> None:
        super().__init__(record_type, field)
        self.record_type = record_type
        self.field = field

    def __str__(self) -> str:
        return f"failed to parse field `{{self.field}}` in {{self.record_type}} record."


_InvalidTag.__name__ = _InvalidTag.__qualname__ = "InvalidTag"
_FieldParseFailure.__name__ = _FieldParseFailure.__qualname__ = "FieldParseFailure"
{error}.InvalidTag = _InvalidTag
{error}.FieldParseFailure = _FieldParseFailure


class {target}:
    """Base class of every {target} record."""

    __slots__ = ()
'''

FIELD_HELPER = '''

def _field(line: str, tag: str, name: str, start: int, end: int, convert: Any) -> Any:
    if end > len(line):
        raise {error}.FieldParseFailure(tag, name)
    try:
        return convert(line[start:end])
    except (ValueError, TypeError, ArithmeticError) as exc:
        raise {error}.FieldParseFailure(tag, name) from exc
'''


def _converter_source(value_type: object, where: str) -> str:
    if isinstance(value_type, str) and value_type in BUILTIN_CONVERTERS:
        return CONVERTER_SOURCE[value_type]
    raise SchemaError(
        f"cannot render value type {value_type!r} for `{where}`; "
        f"only {sorted(CONVERTER_SOURCE)} can be emitted as source",
        declaration=where,
    )


def _check_name(name: str, schema: RecordFormatSchema) -> None:
    if name in RESERVED_NAMES or name == schema.error_name or hasattr(builtins, name):
        raise SchemaError(
            f"name `{name}` clashes with a name in the rendered module",
            declaration=name,
        )


def _render_class(variant: RecordVariant, target: str) -> list[str]:
    lines = ["", "", "@dataclass(frozen=True)", f"class {variant.name}({target}):"]
    if not variant.fields:
        lines.append("    pass")
    for field in variant.fields:
        lines.append(f"    {field.name}: Any")
    return lines


def _render_arm(variant: RecordVariant, config: CompilerConfig) -> list[str]:
    lines = [f"    if tag == {variant.tag!r}:"]
    if config.pad_short_lines:
        width = max((f.end for f in variant.fields), default=len(variant.tag))
        lines.append(f"        line = line.ljust({width}, FILL_CHAR)")
    if not variant.fields:
        lines.append(f"        return {variant.name}()")
        return lines
    lines.append(f"        return {variant.name}(")
    for field in variant.fields:
        convert = _converter_source(field.value_type, f"{variant.name}.{field.name}")
        lines.append(
            f"            {field.name}=_field(line, {variant.tag!r}, {field.name!r}, "
            f"{field.start}, {field.end}, {convert}),"
        )
    lines.append("        )")
    return lines


def render_source(schema: RecordFormatSchema, config: CompilerConfig | None = None) -> str:
    """Return the source text of a parser module for ``schema``."""
    cfg = config or CompilerConfig()
    target = schema.target_name
    error = schema.error_name
    _check_name(target, schema)
    for variant in schema.variants:
        _check_name(variant.name, schema)
    out = [
        HEADER.format(
            target=target,
            error=error,
            tag_length=schema.tag_length,
            pad=cfg.pad_short_lines,
            fill=cfg.fill_char,
        ).rstrip("\n")
    ]

    rendered: set[str] = set()
    for variant in schema.variants:
        if variant.name not in rendered:
            out.extend(_render_class(variant, target))
            rendered.add(variant.name)

    out.append(FIELD_HELPER.format(error=error).rstrip("\n"))
    out.extend(
        [
            "",
            "",
            f"def parse(line: str) -> {target}:",
            f'    """Parse one {target} line or raise {error}."""',
            "    if len(line) < TAG_LENGTH:",
            f"        raise {error}.InvalidTag()",
            "    tag = line[:TAG_LENGTH]",
        ]
    )
    seen: set[str] = set()
    for variant in schema.variants:
        if variant.tag in seen:
            continue
        seen.add(variant.tag)
        out.extend(_render_arm(variant, cfg))
    out.append(f"    raise {error}.InvalidTag()")
    return "\n".join(out) + "\n"
