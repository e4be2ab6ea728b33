"""Building schemas from YAML and parsing objects of their types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml

from .helpers import ValidationErrors
from .schema import Schema, TypeRef
from .typed import TypedValue, ValidationOptions, as_typed

SCHEMA_SCHEMA_YAML = """types:
- name: schema
  map:
    fields:
      - name: types
        type:
          list:
            elementRelationship: associative
            elementType:
              namedType: typeDef
            keys:
            - name
- name: typeDef
  map:
    fields:
    - name: name
      type:
        scalar: string
    - name: scalar
      type:
        scalar: string
    - name: map
      type:
        namedType: map
    - name: list
      type:
        namedType: list
    - name: untyped
      type:
        namedType: untyped
- name: typeRef
  map:
    fields:
    - name: namedType
      type:
        scalar: string
    - name: scalar
      type:
        scalar: string
    - name: map
      type:
        namedType: map
    - name: list
      type:
        namedType: list
    - name: untyped
      type:
        namedType: untyped
    - name: elementRelationship
      type:
        scalar: string
- name: scalar
  scalar: string
- name: map
  map:
    fields:
    - name: fields
      type:
        list:
          elementType:
            namedType: structField
          elementRelationship: associative
          keys: [ "name" ]
    - name: unions
      type:
        list:
          elementType:
            namedType: union
          elementRelationship: atomic
    - name: elementType
      type:
        namedType: typeRef
    - name: elementRelationship
      type:
        scalar: string
- name: unionField
  map:
    fields:
    - name: fieldName
      type:
        scalar: string
    - name: discriminatorValue
      type:
        scalar: string
- name: union
  map:
    fields:
    - name: discriminator
      type:
        scalar: string
    - name: deduceInvalidDiscriminator
      type:
        scalar: boolean
    - name: fields
      type:
        list:
          elementRelationship: associative
          elementType:
            namedType: unionField
          keys:
          - fieldName
- name: structField
  map:
    fields:
    - name: name
      type:
        scalar: string
    - name: type
      type:
        namedType: typeRef
    - name: default
      type:
        namedType: __untyped_atomic_
- name: list
  map:
    fields:
    - name: elementType
      type:
        namedType: typeRef
    - name: elementRelationship
      type:
        scalar: string
    - name: keys
      type:
        list:
          elementType:
            scalar: string
          elementRelationship: atomic
- name: untyped
  map:
    fields:
    - name: elementRelationship
      type:
        scalar: string
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

_DEDUCED_SCHEMA_YAML = """types:
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
- name: __untyped_deduced_
  scalar: untyped
  list:
    elementType:
      namedType: __untyped_atomic_
    elementRelationship: atomic
  map:
    elementType:
      namedType: __untyped_deduced_
    elementRelationship: separable
"""


class _Loader(yaml.SafeLoader):
    """A safe loader that leaves dates and times as strings."""


_Loader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _load(text: str | bytes) -> Any:
    return yaml.load(text, Loader=_Loader)


@dataclass(frozen=True)
class ParseableType:
    """A type in a schema that objects can be parsed into.

    Errors about the type itself surface when an object is parsed.
    """

    type_ref: TypeRef
    schema: Schema

    def is_valid(self) -> bool:
        """Return True if the type can be resolved in the schema."""
        return self.schema.resolve(self.type_ref) is not None

    def from_yaml(self, obj: str | bytes, *args: ValidationOptions) -> TypedValue:
        """Parse a YAML document into a validated value of this type."""
        return as_typed(_load(obj), self.schema, self.type_ref, *args)

    def from_unstructured(self, obj: Any, *args: ValidationOptions) -> TypedValue:
        """Wrap plain Python data as a validated value of this type."""
        return as_typed(obj, self.schema, self.type_ref, *args)


@dataclass
class Parser:
    """Holds a schema and hands out the types it defines."""

    schema: Schema = field(default_factory=Schema)

    def type_names(self) -> list[str]:
        """Return the names of the schema's types, in order."""
        return [type_def.name for type_def in self.schema.types]

    def type(self, name: str) -> ParseableType:
        """Return the named type of this schema."""
        return ParseableType(TypeRef(named_type=name), self.schema)


def _create(schema_yaml: str | bytes) -> Parser:
    try:
        data = _load(schema_yaml)
    except yaml.YAMLError as exc:
        raise ValueError(f"failed to parse schema: {exc}") from exc
    return Parser(Schema.from_dict(data))


_SCHEMA_PARSER = _create(SCHEMA_SCHEMA_YAML)


def new_parser(schema_yaml: str | bytes) -> Parser:
    """Build a parser from a YAML schema after validating the schema.

    Raises ValueError when the schema is not valid.
    """
    try:
        _SCHEMA_PARSER.type("schema").from_yaml(schema_yaml)
    except (ValidationErrors, yaml.YAMLError) as exc:
        raise ValueError(f"unable to validate schema: {exc}") from exc
    return _create(schema_yaml)


DEDUCED_PARSEABLE_TYPE = _create(_DEDUCED_SCHEMA_YAML).type("__untyped_deduced_")