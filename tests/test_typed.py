import pytest

from structmerge.helpers import ValidationErrors
from structmerge.schema import Schema, TypeRef
from structmerge.typed import (
    TypedValue,
    ValidationOptions,
    as_typed,
    as_typed_unvalidated,
)

_UNTYPED_ATOMIC = {
    "name": "__untyped_atomic_",
    "scalar": "untyped",
    "list": {
        "elementType": {"namedType": "__untyped_atomic_"},
        "elementRelationship": "atomic",
    },
    "map": {
        "elementType": {"namedType": "__untyped_atomic_"},
        "elementRelationship": "atomic",
    },
}


def _pair_schema():
    return Schema.from_dict(
        {
            "types": [
                {
                    "name": "stringPair",
                    "map": {
                        "fields": [
                            {"name": "key", "type": {"scalar": "string"}},
                            {"name": "value", "type": {"namedType": "__untyped_atomic_"}},
                        ]
                    },
                },
                _UNTYPED_ATOMIC,
            ]
        }
    )


def _set_schema():
    return Schema.from_dict(
        {
            "types": [
                {
                    "name": "myStruct",
                    "map": {
                        "fields": [
                            {
                                "name": "setStr",
                                "type": {
                                    "list": {
                                        "elementType": {"scalar": "string"},
                                        "elementRelationship": "associative",
                                    }
                                },
                            }
                        ]
                    },
                }
            ]
        }
    )


PAIR = TypeRef(named_type="stringPair")
STRUCT = TypeRef(named_type="myStruct")


def test_as_typed_keeps_value_and_type():
    schema = _pair_schema()
    tv = as_typed({"key": "foo", "value": 1}, schema, PAIR)
    assert tv.value == {"key": "foo", "value": 1}
    assert tv.type_ref == PAIR
    assert tv.schema is schema


@pytest.mark.parametrize(
    "obj",
    [{"key": True, "value": 1}, {"key": 1, "value": {}}, {"key": [1, 2]}, {"key": {"foo": True}}],
)
def test_as_typed_rejects_invalid(obj):
    with pytest.raises(ValidationErrors):
        as_typed(obj, _pair_schema(), PAIR)


def test_unvalidated_defers_errors_to_validate():
    tv = as_typed_unvalidated({"key": 1}, _pair_schema(), PAIR)
    assert tv.value == {"key": 1}
    with pytest.raises(ValidationErrors, match="expected string"):
        tv.validate()


def test_duplicates_need_option():
    schema = _set_schema()
    obj = {"setStr": ["a", "a"]}
    with pytest.raises(ValidationErrors, match="duplicate entries"):
        as_typed(obj, schema, STRUCT)
    tv = as_typed(obj, schema, STRUCT, ValidationOptions.ALLOW_DUPLICATES)
    assert tv.value == obj


@pytest.mark.parametrize(
    "lhs, rhs, out",
    [
        ({"key": "foo", "value": {}}, {"key": "foo", "value": 1}, {"key": "foo", "value": 1}),
        ({"key": "foo"}, {"value": True}, {"key": "foo", "value": True}),
        ({"key": "foo", "value": None}, {"key": "foo", "value": {}}, {"key": "foo", "value": {}}),
    ],
)
def test_merge_pairs(lhs, rhs, out):
    schema = _pair_schema()
    merged = as_typed(lhs, schema, PAIR).merge(as_typed(rhs, schema, PAIR))
    assert merged.value == out
    assert merged.type_ref == PAIR


@pytest.mark.parametrize(
    "lhs, rhs, out",
    [
        (["a", "b", "c"], ["d", "e", "f"], ["a", "b", "c", "d", "e", "f"]),
        (["a", "b"], ["b", "a"], ["b", "a"]),
        (["a", "b", "b"], ["b"], ["a", "b"]),
    ],
)
def test_merge_sets(lhs, rhs, out):
    schema = _set_schema()
    left = as_typed({"setStr": lhs}, schema, STRUCT, ValidationOptions.ALLOW_DUPLICATES)
    right = as_typed({"setStr": rhs}, schema, STRUCT)
    assert left.merge(right).value == {"setStr": out}


def test_merge_requires_same_schema():
    left = as_typed({"key": "foo"}, _pair_schema(), PAIR)
    right = as_typed({"key": "foo"}, _pair_schema(), PAIR)
    with pytest.raises(ValidationErrors, match="expected objects with types from the same schema"):
        left.merge(right)


def test_merge_requires_same_type():
    schema = _pair_schema()
    left = as_typed({"key": "foo"}, schema, PAIR)
    right = as_typed(1, schema, TypeRef(named_type="__untyped_atomic_"))
    with pytest.raises(ValidationErrors, match="expected objects of the same type"):
        left.merge(right)


def test_merge_with_self_is_identity():
    schema = _pair_schema()
    tv = as_typed({"key": "foo", "value": [1, 2]}, schema, PAIR)
    assert tv.merge(tv).value == tv.value


def test_empty_holds_null_and_merges_to_other():
    schema = _pair_schema()
    tv = as_typed({"key": "foo", "value": True}, schema, PAIR)
    empty = tv.empty()
    assert empty.value is None
    assert empty.schema is schema
    assert tv.value == {"key": "foo", "value": True}
    assert empty.merge(tv).value == tv.value


def test_typed_value_is_immutable():
    schema = _pair_schema()
    tv = TypedValue({"key": "foo"}, PAIR, schema)
    with pytest.raises(AttributeError):
        tv.value = None
    assert tv.value == {"key": "foo"}
    assert tv.type_ref == PAIR
    assert tv.schema is schema