"""Validation of plain values against a schema."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .helpers import (
    ValidationErrors,
    _as_list,
    _as_map,
    _errorf,
    _is_number,
    _resolve_schema,
    _to_string,
    list_item_key,
)
from .schema import ElementRelationship, List, Map, Scalar, Schema, TypeRef


def validate_scalar(scalar: Scalar | str, val: Any, prefix: str = "") -> ValidationErrors:
    """Return the errors of checking ``val`` against a scalar type.

    Null is accepted by every scalar type.
    """
    if val is None:
        return ValidationErrors()
    if scalar == Scalar.NUMERIC:
        if not _is_number(val):
            return _errorf(
                f"{prefix}expected numeric (int or float), got {type(val).__name__}"
            )
    elif scalar == Scalar.STRING:
        if not isinstance(val, str):
            return _errorf(f"{prefix}expected string, got {_to_string(val)}")
    elif scalar == Scalar.BOOLEAN:
        if not isinstance(val, bool):
            return _errorf(f"{prefix}expected boolean, got {_to_string(val)}")
    elif scalar == Scalar.UNTYPED:
        if not (_is_number(val) or isinstance(val, (str, bool))):
            return _errorf(f"{prefix}expected any scalar, got {_to_string(val)}")
    else:
        return _errorf(f"{prefix}unexpected scalar type in schema: {scalar}")
    return ValidationErrors()


@dataclass
class _Validator:
    schema: Schema
    type_ref: TypeRef
    value: Any
    allow_duplicates: bool

    def validate(self) -> ValidationErrors:
        return _resolve_schema(self.schema, self.type_ref, self.value, self)

    def _descend(self, type_ref: TypeRef, value: Any, prefix: str) -> ValidationErrors:
        child = replace(self, type_ref=type_ref, value=value)
        return child.validate().with_prefix(prefix)

    def do_scalar(self, scalar: Scalar | str) -> ValidationErrors:
        return validate_scalar(scalar, self.value, "")

    def do_list(self, list_type: List) -> ValidationErrors:
        try:
            items = _as_list(self.value)
        except ValueError as exc:
            return _errorf(str(exc))
        if items is None:
            return ValidationErrors()
        associative = list_type.element_relationship == ElementRelationship.ASSOCIATIVE
        errors = ValidationErrors()
        observed = set()
        for index, child in enumerate(items):
            if not associative:
                prefix = f"[{index}]"
            else:
                try:
                    key = list_item_key(self.schema, list_type, child)
                except ValueError as exc:
                    # Without a key nothing deeper can be reported for this list.
                    return errors + _errorf(f"element {index}: {exc}")
                if key in observed and not self.allow_duplicates:
                    errors += _errorf(f"duplicate entries for key {key}")
                observed.add(key)
                prefix = str(key)
            errors += self._descend(list_type.element_type, child, prefix)
        return errors

    def do_map(self, map_type: Map) -> ValidationErrors:
        try:
            mapping = _as_map(self.value)
        except ValueError as exc:
            return _errorf(str(exc))
        if mapping is None:
            return ValidationErrors()
        undeclared_allowed = map_type.element_type != TypeRef()
        errors = ValidationErrors()
        for key, child in mapping.items():
            name = str(key)
            struct_field = map_type.find_field(name)
            if struct_field is not None:
                type_ref = struct_field.type
            elif undeclared_allowed:
                type_ref = map_type.element_type
            else:
                errors += _errorf("field not declared in schema").with_prefix(f".{name}")
                break
            errors += self._descend(type_ref, child, f".{name}")
        return errors


def validate_value(
    schema: Schema, type_ref: TypeRef, val: Any, allow_duplicates: bool = False
) -> ValidationErrors:
    """Return every violation of the schema found in ``val``.

    The result is empty when the value conforms. With ``allow_duplicates``,
    sets and associative lists may hold repeated items.
    """
    return _Validator(schema, type_ref, val, allow_duplicates).validate()