"""Two-phase compiler: validate a declared schema, then resolve its offsets."""

from __future__ import annotations

import logging

from fixedrec.config import CompilerConfig
from fixedrec.runtime.dispatcher import RecordParser
from fixedrec.schema.model import RecordFormatSchema, RecordVariant, SchemaDecl
from fixedrec.schema.resolver import resolve_variant
from fixedrec.schema.validator import validate_schema

LOGGER = logging.getLogger(__name__)


def compile_schema(
    decl: SchemaDecl, config: CompilerConfig | None = None
) -> RecordFormatSchema:
    """Validate ``decl`` and resolve every field range.

    Variants with several tags produce one dispatch arm per tag, in
    declaration order. Raises ``SchemaError`` on any defect.
    """
    cfg = config or CompilerConfig()
    tag_length = validate_schema(decl, converters=cfg.converters)

    variants: list[RecordVariant] = []
    for variant in decl.variants:
        for attr in variant.tags:
            tag = attr.value
            # each alias resolves with a fresh cursor, so aliases share one layout;
            # a cursor carried over from the previous tag would shift every alias after the first
            fields = resolve_variant(variant, tag)
            variants.append(RecordVariant(tag=tag, name=variant.name, fields=fields))

    seen: set[str] = set()
    for variant in variants:
        if variant.tag in seen:
            LOGGER.warning(
                "tag %r is declared more than once; `%s` is unreachable",
                variant.tag,
                variant.name,
            )
        seen.add(variant.tag)

    LOGGER.info(
        "compiled %s: %d record types, tag length %d", decl.target_name, len(variants), tag_length
    )
    return RecordFormatSchema(
        target_name=decl.target_name, tag_length=tag_length, variants=tuple(variants)
    )


def build_parser(
    decl: SchemaDecl | RecordFormatSchema, config: CompilerConfig | None = None
) -> RecordParser:
    """Compile ``decl`` if needed and wrap it in a table-driven parser."""
    cfg = config or CompilerConfig()
    schema = decl if isinstance(decl, RecordFormatSchema) else compile_schema(decl, cfg)
    return RecordParser(schema, cfg)
