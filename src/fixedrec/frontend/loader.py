"""Load schema declarations from YAML/JSON files or plain mappings."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from fixedrec.errors import SchemaError
from fixedrec.schema.model import (
    Attribute,
    EndsAt,
    FieldDecl,
    Length,
    PositionHint,
    SchemaDecl,
    StartsAt,
    VariantDecl,
)

LOGGER = logging.getLogger(__name__)

HINT_KEYS: dict[str, type] = {
    "starts_at": StartsAt,
    "starts-at": StartsAt,
    "ends_at": EndsAt,
    "ends-at": EndsAt,
    "length": Length,
}
FIELD_KEYS = {"name", "type", "hints"}
VARIANT_KEYS = {"name", "fields", "discriminant", "description"}


def _hints_from_mapping(payload: Mapping[str, Any]) -> tuple[list[PositionHint], list[str]]:
    hints: list[PositionHint] = []
    ignored: list[str] = []
    for key, value in payload.items():
        if key in HINT_KEYS:
            hints.append(HINT_KEYS[key](value))
        elif key not in FIELD_KEYS:
            ignored.append(key)
    # an explicit hints list is folded after any inline keys
    for entry in payload.get("hints") or []:
        if not isinstance(entry, Mapping) or len(entry) != 1:
            raise SchemaError(
                f"each hint must be a single-key mapping, got {entry!r}",
                declaration=str(payload.get("name")),
            )
        ((key, value),) = entry.items()
        if key not in HINT_KEYS:
            raise SchemaError(f"unknown position hint {key!r}", declaration=str(payload.get("name")))
        hints.append(HINT_KEYS[key](value))
    return hints, ignored


def field_from_mapping(payload: Mapping[str, Any]) -> FieldDecl:
    hints, ignored = _hints_from_mapping(payload)
    return FieldDecl(
        name=payload.get("name"),
        hints=hints,
        value_type=str(payload.get("type", "str")),
        attributes=tuple(ignored),
    )


def variant_from_mapping(payload: Mapping[str, Any]) -> VariantDecl:
    attributes: list[Attribute] = []
    tags = payload.get("tag")
    if tags is not None:
        for tag in tags if isinstance(tags, list) else [tags]:
            attributes.append(
                Attribute(name="tag", value=tag, literal=isinstance(tag, (str, int, float)))
            )
    for key, value in payload.items():
        if key != "tag" and key not in VARIANT_KEYS:
            attributes.append(Attribute(name=key, value=value))
    return VariantDecl(
        name=str(payload.get("name")),
        attributes=attributes,
        fields=[field_from_mapping(f) for f in payload.get("fields") or []],
        discriminant=payload.get("discriminant"),
    )


def schema_from_mapping(payload: Mapping[str, Any]) -> SchemaDecl:
    if "name" not in payload:
        raise SchemaError("schema is missing a `name`")
    if "variants" not in payload and "fields" in payload:
        # a single fixed shape; the validator rejects it with a clear message
        return SchemaDecl(target_name=str(payload["name"]), kind="record")
    return SchemaDecl(
        target_name=str(payload["name"]),
        variants=[variant_from_mapping(v) for v in payload.get("variants") or []],
        kind=str(payload.get("kind", "variants")),
    )


def load_schema(path: Path) -> SchemaDecl:
    if path.suffix.lower() in {".yml", ".yaml"}:
        payload = yaml.safe_load(path.read_text())
    else:
        payload = json.loads(path.read_text())
    if not isinstance(payload, Mapping):
        raise SchemaError(f"schema file {path} must contain a mapping", declaration=str(path))
    LOGGER.debug("loaded schema %s from %s", payload.get("name"), path)
    return schema_from_mapping(payload)


def sample_schema() -> dict[str, Any]:
    return {
        "name": "Transaction",
        "variants": [
            {
                "name": "Header",
                "tag": "HD",
                "fields": [
                    {"name": "name", "starts_at": 2, "length": 10},
                    {"name": "age", "length": 3, "type": "int"},
                ],
            },
            {
                "name": "Detail",
                "tag": "DT",
                "fields": [
                    {"name": "account", "starts_at": 2, "ends_at": 10},
                    {"name": "amount", "length": 9, "type": "decimal"},
                    {"name": "memo", "length": 20, "type": "stripped"},
                ],
            },
            {
                "name": "Trailer",
                "tag": "TR",
                "fields": [{"name": "count", "starts_at": 2, "length": 6, "type": "int"}],
            },
        ],
    }
