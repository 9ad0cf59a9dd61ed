import pytest

from fixedrec.compiler import compile_schema
from fixedrec.config import CompilerConfig
from fixedrec.errors import SchemaError
from fixedrec.schema.model import (
    Attribute,
    FieldDecl,
    Length,
    SchemaDecl,
    StartsAt,
    VariantDecl,
)
from fixedrec.schema.validator import validate_schema


def _variant(name: str, tag: object = "HD", **kwargs) -> VariantDecl:
    fields = kwargs.pop("fields", [FieldDecl("value", [StartsAt(2), Length(3)])])
    return VariantDecl(name=name, attributes=[Attribute("tag", tag)], fields=fields, **kwargs)


def test_equal_tags_compile_and_return_tag_length():
    schema = SchemaDecl("Txn", [_variant("Header", "HD"), _variant("Detail", "DT")])
    assert validate_schema(schema) == 2
    compiled = compile_schema(schema)
    assert compiled.tag_length == 2
    assert [v.tag for v in compiled.variants] == ["HD", "DT"]
    assert compiled.error_name == "TxnParseError"


def test_plain_record_is_rejected():
    with pytest.raises(SchemaError, match="set of record variants"):
        compile_schema(SchemaDecl("Txn", [], kind="record"))


def test_discriminant_is_rejected():
    with pytest.raises(SchemaError, match="discriminant") as info:
        compile_schema(SchemaDecl("Txn", [_variant("Header", discriminant=3)]))
    assert info.value.declaration == "Header"


def test_unknown_variant_attribute_is_rejected():
    variant = _variant("Header")
    variant.attributes.append(Attribute("record_kind", "X"))
    with pytest.raises(SchemaError, match="only the `tag` attribute"):
        compile_schema(SchemaDecl("Txn", [variant]))


def test_non_literal_tag_is_rejected():
    variant = VariantDecl(
        name="Header",
        attributes=[Attribute("tag", "PREFIX + 'D'", literal=False)],
        fields=[FieldDecl("value", [Length(3)])],
    )
    with pytest.raises(SchemaError, match="string literal"):
        compile_schema(SchemaDecl("Txn", [variant]))


def test_non_string_tag_is_rejected():
    with pytest.raises(SchemaError, match="string literal"):
        compile_schema(SchemaDecl("Txn", [_variant("Header", tag=12)]))


def test_mismatched_tag_length_names_the_variant():
    schema = SchemaDecl("Txn", [_variant("Header", "HD"), _variant("Detail", "DTL")])
    with pytest.raises(SchemaError, match="same length") as info:
        compile_schema(schema)
    assert info.value.declaration == "Detail"


def test_empty_tag_is_rejected():
    with pytest.raises(SchemaError, match="empty tag"):
        compile_schema(SchemaDecl("Txn", [_variant("Header", "")]))


def test_no_variants_is_rejected():
    with pytest.raises(SchemaError, match="no record types specified"):
        compile_schema(SchemaDecl("Txn", []))


def test_variants_without_tags_are_rejected_when_none_remain():
    variant = VariantDecl(name="Header", fields=[FieldDecl("value", [Length(3)])])
    with pytest.raises(SchemaError, match="no record types specified"):
        compile_schema(SchemaDecl("Txn", [variant]))


def test_untagged_variant_is_skipped():
    untagged = VariantDecl(name="Orphan", fields=[FieldDecl("value", [Length(3)])])
    compiled = compile_schema(SchemaDecl("Txn", [untagged, _variant("Header")]))
    assert [v.name for v in compiled.variants] == ["Header"]


def test_unnamed_field_is_rejected():
    variant = _variant("Header", fields=[FieldDecl(None, [Length(3)])])
    with pytest.raises(SchemaError, match="unnamed field"):
        compile_schema(SchemaDecl("Txn", [variant]))


def test_duplicate_field_is_rejected():
    variant = _variant(
        "Header",
        fields=[FieldDecl("value", [Length(3)]), FieldDecl("value", [Length(3)])],
    )
    with pytest.raises(SchemaError, match="duplicate field"):
        compile_schema(SchemaDecl("Txn", [variant]))


def test_negative_hint_is_rejected():
    variant = _variant("Header", fields=[FieldDecl("value", [StartsAt(-1), Length(3)])])
    with pytest.raises(SchemaError, match="non-negative"):
        compile_schema(SchemaDecl("Txn", [variant]))


def test_zero_length_fails_at_compile_time():
    variant = _variant("Header", fields=[FieldDecl("value", [StartsAt(2), Length(0)])])
    with pytest.raises(SchemaError, match="length is zero"):
        compile_schema(SchemaDecl("Txn", [variant]))


def test_unknown_value_type_is_rejected():
    variant = _variant("Header", fields=[FieldDecl("value", [Length(3)], value_type="money")])
    with pytest.raises(SchemaError, match="unknown value type"):
        compile_schema(SchemaDecl("Txn", [variant]))


def test_extra_converters_extend_known_types():
    variant = _variant("Header", fields=[FieldDecl("value", [Length(3)], value_type="money")])
    config = CompilerConfig(converters={"money": lambda text: int(text) / 100})
    compiled = compile_schema(SchemaDecl("Txn", [variant]), config)
    assert compiled.variants[0].fields[0].value_type == "money"


def test_ignored_field_attributes_do_not_fail():
    field = FieldDecl("value", [Length(3)], attributes=("description", "pic"))
    compiled = compile_schema(SchemaDecl("Txn", [_variant("Header", fields=[field])]))
    assert compiled.variants[0].fields[0].width == 3


def test_duplicate_variant_names_are_rejected():
    schema = SchemaDecl("Txn", [_variant("Header", "HD"), _variant("Header", "H1")])
    with pytest.raises(SchemaError, match="unique identifier"):
        compile_schema(schema)


def test_tag_aliases_share_fields():
    variant = _variant("Header", "HD")
    variant.attributes.append(Attribute("tag", "H1"))
    compiled = compile_schema(SchemaDecl("Txn", [variant]))
    assert [v.tag for v in compiled.variants] == ["HD", "H1"]
    assert compiled.variants[1].fields[0].record_type == "H1"
    assert compiled.variants[0].fields[0].start == compiled.variants[1].fields[0].start
