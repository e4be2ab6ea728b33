"""Values paired with the schema type they conform to."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from .helpers import ValidationErrors, _errorf
from .merge import merge_values
from .schema import Schema, TypeRef
from .validate import validate_value


class ValidationOptions(Enum):
    """Options that relax validation."""

    # Sets and associative lists may hold repeated items.
    ALLOW_DUPLICATES = 0


def _describe(type_ref: TypeRef) -> str:
    if type_ref.named_type is not None:
        return type_ref.named_type
    return "inlined type"


@dataclass(frozen=True)
class TypedValue:
    """A plain value together with its type in a schema."""

    value: Any
    type_ref: TypeRef
    schema: Schema

    def validate(self, *args: ValidationOptions) -> None:
        """Raise ValidationErrors listing every violation of the schema."""
        allow_duplicates = ValidationOptions.ALLOW_DUPLICATES in args
        errors = validate_value(self.schema, self.type_ref, self.value, allow_duplicates)
        if errors:
            raise errors

    def merge(self, pso: TypedValue) -> TypedValue:
        """Merge a partially specified object into this one.

        No field is removed; leaves set by ``pso`` take its value. Both values
        must share the same schema object and type, otherwise ValidationErrors
        is raised.
        """
        if self.schema is not pso.schema:
            raise _errorf("expected objects with types from the same schema")
        if self.type_ref != pso.type_ref:
            raise _errorf(
                "expected objects of the same type, but got "
                f"{_describe(self.type_ref)} and {_describe(pso.type_ref)}"
            )
        merged = merge_values(self.schema, self.type_ref, self.value, pso.value)
        return TypedValue(merged, self.type_ref, self.schema)

    def empty(self) -> TypedValue:
        """Return a value of the same type holding null."""
        return replace(self, value=None)


def as_typed(
    value: Any, schema: Schema, type_ref: TypeRef, *args: ValidationOptions
) -> TypedValue:
    """Pair ``value`` with its type, raising ValidationErrors if it does not fit."""
    typed_value = TypedValue(value, type_ref, schema)
    typed_value.validate(*args)
    return typed_value


def as_typed_unvalidated(value: Any, schema: Schema, type_ref: TypeRef) -> TypedValue:
    """Pair ``value`` with its type without checking that it conforms."""
    return TypedValue(value, type_ref, schema)