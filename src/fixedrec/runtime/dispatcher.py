"""Table-driven record parser built from a resolved schema.

The parser stores ``tag -> (record class, [(field, start, end, converter)])``
and interprets it per line: take the leading tag, pick the first variant
declared with that tag, then slice and convert its fields left to right. A
conversion failure is terminal for the line; other variants are not tried.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from fixedrec.config import CompilerConfig
from fixedrec.errors import RecordParseError, make_error_type
from fixedrec.runtime.converters import CONVERSION_ERRORS, Converter, resolve_converter
from fixedrec.schema.model import RecordFormatSchema, RecordVariant

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Column:
    name: str
    start: int
    end: int
    convert: Converter


@dataclass(frozen=True)
class _Arm:
    variant: RecordVariant
    record_class: type
    columns: tuple[_Column, ...]
    width: int


@dataclass
class ParseOutcome:
    line_number: int
    line: str
    record: Any | None = None
    tag: str | None = None
    error: RecordParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _record_classes(schema: RecordFormatSchema) -> tuple[type, dict[str, type]]:
    base = type(
        schema.target_name,
        (),
        {"__doc__": f"Base class of every {schema.target_name} record.", "__slots__": ()},
    )
    classes: dict[str, type] = {}
    for variant in schema.variants:
        if variant.name in classes:
            continue  # tag aliases share the variant's class
        classes[variant.name] = dataclasses.make_dataclass(
            variant.name,
            [(f.name, Any) for f in variant.fields],
            bases=(base,),
            frozen=True,
        )
        classes[variant.name].__qualname__ = f"{schema.target_name}.{variant.name}"
    return base, classes


class RecordParser:
    """Parse lines of one compiled record format."""

    def __init__(self, schema: RecordFormatSchema, config: CompilerConfig | None = None) -> None:
        self.schema = schema
        self.config = config or CompilerConfig()
        self.error_type = make_error_type(schema.target_name)
        self.target_type, self.record_types = _record_classes(schema)

        arms: dict[str, _Arm] = {}
        for variant in schema.variants:
            if variant.tag in arms:
                continue  # first declared wins
            columns = tuple(
                _Column(
                    name=f.name,
                    start=f.start,
                    end=f.end,
                    convert=resolve_converter(f.value_type, self.config.converters),
                )
                for f in variant.fields
            )
            arms[variant.tag] = _Arm(
                variant=variant,
                record_class=self.record_types[variant.name],
                columns=columns,
                width=max((c.end for c in columns), default=schema.tag_length),
            )
        self._arms = arms

    @property
    def tag_length(self) -> int:
        return self.schema.tag_length

    def parse(self, line: str) -> Any:
        """Parse one line into a record or raise the schema's error type."""
        tag_length = self.schema.tag_length
        # lines shorter than the tag cannot carry a record type
        if len(line) < tag_length:
            raise self.error_type.InvalidTag()
        tag = line[:tag_length]
        arm = self._arms.get(tag)
        if arm is None:
            raise self.error_type.InvalidTag()

        if self.config.pad_short_lines and len(line) < arm.width:
            line = line.ljust(arm.width, self.config.fill_char)

        values: dict[str, Any] = {}
        for column in arm.columns:
            if column.end > len(line):
                raise self.error_type.FieldParseFailure(tag, column.name)
            try:
                values[column.name] = column.convert(line[column.start : column.end])
            except CONVERSION_ERRORS as exc:
                raise self.error_type.FieldParseFailure(tag, column.name) from exc
        return arm.record_class(**values)

    def try_parse(self, line: str) -> tuple[Any | None, RecordParseError | None]:
        try:
            return self.parse(line), None
        except RecordParseError as exc:
            return None, exc

    def parse_lines(self, lines: Iterable[str], start: int = 1) -> Iterator[ParseOutcome]:
        """Parse non-blank lines, collecting data errors instead of raising them."""
        for line_number, raw in enumerate(lines, start=start):
            line = raw.rstrip("\r\n")
            if not line.strip():
                continue
            record, error = self.try_parse(line)
            if error is not None:
                LOGGER.debug("line %d: %s", line_number, error)
            yield ParseOutcome(
                line_number=line_number,
                line=line,
                record=record,
                tag=line[: self.schema.tag_length] if record is not None else None,
                error=error,
            )


def record_to_dict(record: Any) -> dict[str, Any]:
    return dataclasses.asdict(record)
