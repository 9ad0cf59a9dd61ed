"""Schema-wide consistency checks run before any offsets are resolved."""

from __future__ import annotations

import keyword
import logging
from collections.abc import Mapping

from fixedrec.errors import SchemaError
from fixedrec.runtime.converters import Converter, is_known_type
from fixedrec.schema.model import SchemaDecl, VariantDecl

LOGGER = logging.getLogger(__name__)

ALLOWED_VARIANT_ATTRIBUTES = {"tag"}


def _is_identifier(name: object) -> bool:
    return isinstance(name, str) and name.isidentifier() and not keyword.iskeyword(name)


def _check_fields(variant: VariantDecl, converters: Mapping[str, Converter] | None) -> None:
    seen: set[str] = set()
    for decl in variant.fields:
        if decl.name is None:
            raise SchemaError(
                f"variant `{variant.name}` has an unnamed field; "
                "record variants must name every field",
                declaration=variant.name,
            )
        if not _is_identifier(decl.name):
            raise SchemaError(
                f"field name {decl.name!r} in `{variant.name}` is not a valid identifier",
                declaration=f"{variant.name}.{decl.name}",
            )
        if decl.name in seen:
            raise SchemaError(
                f"duplicate field `{decl.name}` in `{variant.name}`",
                declaration=f"{variant.name}.{decl.name}",
            )
        seen.add(decl.name)
        for hint in decl.hints:
            value = hint.value
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise SchemaError(
                    f"expected a non-negative number for {type(hint).__name__} "
                    f"on `{variant.name}.{decl.name}`, got {value!r}",
                    declaration=f"{variant.name}.{decl.name}",
                )
        if not is_known_type(decl.value_type, converters):
            raise SchemaError(
                f"unknown value type {decl.value_type!r} for `{variant.name}.{decl.name}`",
                declaration=f"{variant.name}.{decl.name}",
            )
        if decl.attributes:
            LOGGER.debug(
                "ignoring attributes %s on `%s.%s`", decl.attributes, variant.name, decl.name
            )


def validate_schema(
    schema: SchemaDecl, converters: Mapping[str, Converter] | None = None
) -> int:
    """Check ``schema`` and return the shared tag length.

    Raises ``SchemaError`` on the first defect found.
    """
    if schema.kind != "variants":
        raise SchemaError(
            f"`{schema.target_name}` can only be built from a set of record variants",
            declaration=schema.target_name,
        )
    if not _is_identifier(schema.target_name):
        raise SchemaError(
            f"target name {schema.target_name!r} is not a valid identifier",
            declaration=str(schema.target_name),
        )

    tag_length = 0
    variant_names: set[str] = set()
    for variant in schema.variants:
        if variant.discriminant is not None:
            raise SchemaError(
                f"variant `{variant.name}` must not set a discriminant",
                declaration=variant.name,
            )
        if (
            not _is_identifier(variant.name)
            or variant.name in variant_names
            or variant.name == schema.target_name
        ):
            raise SchemaError(
                f"variant name {variant.name!r} is not a unique identifier",
                declaration=str(variant.name),
            )
        variant_names.add(variant.name)

        for attr in variant.attributes:
            if attr.name not in ALLOWED_VARIANT_ATTRIBUTES:
                raise SchemaError(
                    f"only the `tag` attribute is expected on a record variant "
                    f"(`{variant.name}` has `{attr.name}`)",
                    declaration=variant.name,
                )
            if not attr.literal or not isinstance(attr.value, str):
                raise SchemaError(
                    f'`tag` must be a string literal, e.g. tag = "HD" (`{variant.name}`)',
                    declaration=variant.name,
                )
            if not attr.value:
                raise SchemaError(
                    f"`{variant.name}` declares an empty tag", declaration=variant.name
                )
            if tag_length == 0:
                tag_length = len(attr.value)
            elif tag_length != len(attr.value):
                raise SchemaError(
                    f"all tags must be the same length: `{variant.name}` has "
                    f"{attr.value!r} ({len(attr.value)}), expected {tag_length}",
                    declaration=variant.name,
                )

        if not variant.tags:
            LOGGER.warning("variant `%s` has no tag and will never be parsed", variant.name)
        _check_fields(variant, converters)

    if tag_length == 0:
        raise SchemaError(
            "no record types specified, so the parser cannot be built",
            declaration=schema.target_name,
        )
    return tag_length
