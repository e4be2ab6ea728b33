import pytest
import yaml

from structmerge.helpers import ValidationErrors
from structmerge.parser import (
    DEDUCED_PARSEABLE_TYPE,
    SCHEMA_SCHEMA_YAML,
    ParseableType,
    Parser,
    new_parser,
)
from structmerge.schema import TypeRef
from structmerge.typed import ValidationOptions

SIMPLE_PAIR = """types:
- name: stringPair
  map:
    fields:
    - name: key
      type:
        scalar: string
    - name: value
      type:
        namedType: __untyped_atomic_
- name: __untyped_atomic_
  scalar: untyped
  list:
    elementType:
      namedType: __untyped_atomic_
    elementRelationship: atomic
  map:
    elementType:
      namedType: __untyped_atomic_
    elementRelationship: atomic
"""

GRAB_BAG = """types:
- name: myStruct
  map:
    fields:
    - name: numeric
      type:
        scalar: numeric
    - name: string
      type:
        scalar: string
    - name: bool
      type:
        scalar: boolean
    - name: setStr
      type:
        list:
          elementType:
            scalar: string
          elementRelationship: associative
    - name: setBool
      type:
        list:
          elementType:
            scalar: boolean
          elementRelationship: associative
    - name: setNumeric
      type:
        list:
          elementType:
            scalar: numeric
          elementRelationship: associative
"""

INVALID_OVERRIDE = """
    types:
    - name: type
      map:
        fields:
          - name: field
            type:
              scalar: numeric
              elementRelationship: atomic
      """


def test_schema_schema_validates_itself():
    parser = new_parser(SCHEMA_SCHEMA_YAML)
    assert "schema" in parser.type_names()
    assert parser.type("typeDef").is_valid()


def test_type_names_in_schema_order():
    parser = new_parser(SIMPLE_PAIR)
    assert parser.type_names() == ["stringPair", "__untyped_atomic_"]


def test_type_returns_named_reference():
    parser = new_parser(SIMPLE_PAIR)
    pt = parser.type("stringPair")
    assert pt == ParseableType(TypeRef(named_type="stringPair"), parser.schema)
    assert pt.is_valid()
    assert not parser.type("missing").is_valid()


def test_invalid_schema_is_rejected():
    with pytest.raises(ValueError, match="unable to validate schema"):
        new_parser("types:\n- name: x\n  bogus: 1\n")


def test_invalid_override_reports_inlined_type():
    parser = new_parser(INVALID_OVERRIDE)
    with pytest.raises(ValidationErrors, match="no type found matching: inlined type"):
        parser.type("type").from_yaml("field: 1")


@pytest.mark.parametrize(
    "obj",
    [
        '{"key":"foo","value":1}',
        '{"key":"foo","value":{}}',
        '{"key":"foo","value":null}',
        '{"key":"foo"}',
        '{"key":"foo","value":true}',
        '{"key":null}',
    ],
)
def test_valid_pairs(obj):
    tv = new_parser(SIMPLE_PAIR).type("stringPair").from_yaml(obj)
    assert tv.value == yaml.safe_load(obj)


@pytest.mark.parametrize(
    "obj",
    [
        '{"key":true,"value":1}',
        '{"key":1,"value":{}}',
        '{"key":false,"value":null}',
        '{"key":[1, 2]}',
        '{"key":{"foo":true}}',
    ],
)
def test_invalid_pairs(obj):
    pt = new_parser(SIMPLE_PAIR).type("stringPair")
    with pytest.raises(ValidationErrors) as info:
        pt.from_yaml(obj)
    assert "invalid atom" not in str(info.value)


@pytest.mark.parametrize(
    "obj",
    [
        '{"setStr":["a","a"]}',
        '{"setBool":[true,false,true]}',
        '{"setNumeric":[1,2,3,3.14159,1]}',
    ],
)
def test_duplicates_allowed_only_with_option(obj):
    pt = new_parser(GRAB_BAG).type("myStruct")
    with pytest.raises(ValidationErrors, match="duplicate entries"):
        pt.from_yaml(obj)
    tv = pt.from_yaml(obj, ValidationOptions.ALLOW_DUPLICATES)
    assert tv.value == yaml.safe_load(obj)


def test_from_unstructured_validates():
    pt = new_parser(GRAB_BAG).type("myStruct")
    obj = {"numeric": 3.14159, "setStr": ["a", "b", "c"]}
    assert pt.from_unstructured(obj).value == obj
    with pytest.raises(ValidationErrors):
        pt.from_unstructured({"bool": "aoeu"})


def test_from_yaml_on_missing_type_fails():
    pt = new_parser(SIMPLE_PAIR).type("missing")
    with pytest.raises(ValidationErrors, match="no type found matching: missing"):
        pt.from_yaml('{"key":"foo"}')


def test_from_yaml_rejects_malformed_yaml():
    pt = new_parser(SIMPLE_PAIR).type("stringPair")
    with pytest.raises(yaml.YAMLError):
        pt.from_yaml('{"key": [')


def test_parsed_objects_merge():
    pt = new_parser(SIMPLE_PAIR).type("stringPair")
    merged = pt.from_yaml('{"key":"foo"}').merge(pt.from_yaml('{"value":true}'))
    assert merged.value == {"key": "foo", "value": True}


def test_deduced_type_accepts_anything_and_merges_maps():
    assert DEDUCED_PARSEABLE_TYPE.is_valid()
    lhs = DEDUCED_PARSEABLE_TYPE.from_unstructured({"a": 1, "b": [1, 2]})
    rhs = DEDUCED_PARSEABLE_TYPE.from_unstructured({"b": [3], "c": {"d": "x"}})
    assert lhs.merge(rhs).value == {"a": 1, "b": [3], "c": {"d": "x"}}


def test_empty_parser_has_no_types():
    parser = Parser()
    assert parser.type_names() == []
    assert not parser.type("anything").is_valid()