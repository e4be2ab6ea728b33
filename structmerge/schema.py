"""A targeted schema language for structured merges and diffs.

The model holds everything needed to merge and diff structured objects:
named types built from atoms (scalars, lists and maps), references to those
types, and the relationship between the elements of container types.

Schemas and maps index their contents lazily on first lookup, so they should
be treated as immutable once in use.
"""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Scalar(str, Enum):
    """The primitive kinds a scalar value may have."""

    NUMERIC = "numeric"
    STRING = "string"
    BOOLEAN = "boolean"
    UNTYPED = "untyped"


class ElementRelationship(str, Enum):
    """How the elements of a container type relate to one another."""

    # Only meaningful for lists.
    ASSOCIATIVE = "associative"
    # The container behaves as a single leaf value.
    ATOMIC = "atomic"
    # Elements are independent of each other (the default for maps).
    SEPARABLE = "separable"


@dataclass
class Atom:
    """The smallest piece of the type system.

    Each member that is set is a possible form of the value. An atom with no
    member set accepts nothing.
    """

    scalar: Scalar | str | None = None
    list: List | None = None
    map: Map | None = None


@dataclass
class TypeRef:
    """Either the name of a type in a schema or an inlined type.

    ``element_relationship``, when set, overrides the relationship of the
    referred map or list type when the reference is resolved.
    """

    named_type: str | None = None
    inlined: Atom = field(default_factory=Atom)
    element_relationship: ElementRelationship | str | None = None


@dataclass
class TypeDef:
    """A named type in a schema."""

    name: str = ""
    atom: Atom = field(default_factory=Atom)


@dataclass
class StructField:
    """A field name paired with its type and optional default value."""

    name: str = ""
    type: TypeRef = field(default_factory=TypeRef)
    default: Any = None


@dataclass
class UnionField:
    """A union member and the discriminator value selecting it."""

    field_name: str = ""
    discriminator_value: str = ""


@dataclass
class Union:
    """A group of fields of which only one may be set at a time."""

    discriminator: str | None = None
    deduce_invalid_discriminator: bool = False
    fields: list[UnionField] = field(default_factory=list)


@dataclass
class List:
    """A sequence of elements that all share one type.

    For an associative list of maps, ``keys`` names the fields of the element
    type that identify each element.
    """

    element_type: TypeRef = field(default_factory=TypeRef)
    element_relationship: ElementRelationship | str | None = None
    keys: list[str] = field(default_factory=list)


@dataclass
class Map:
    """A string-keyed mapping, possibly a struct with declared fields.

    Undeclared keys take ``element_type``. The order of ``fields`` is the
    canonical field order.
    """

    fields: list[StructField] = field(default_factory=list)
    unions: list[Union] = field(default_factory=list)
    element_type: TypeRef = field(default_factory=TypeRef)
    element_relationship: ElementRelationship | str | None = None
    _field_index: dict[str, StructField] | None = field(
        default=None, init=False, repr=False, compare=False
    )

    def find_field(self, name: str) -> StructField | None:
        """Return the declared field called ``name``, or None."""
        index = self._field_index
        if index is None:
            index = {sf.name: sf for sf in self.fields}
            self._field_index = index
        return index.get(name)

    def copy(self) -> Map:
        """Return a shallow copy that shares the field index."""
        duplicate = dataclasses.replace(self)
        duplicate._field_index = self._field_index
        return duplicate


@dataclass
class Schema:
    """A list of named types."""

    types: list[TypeDef] = field(default_factory=list)
    _type_index: dict[str, TypeDef] | None = field(
        default=None, init=False, repr=False, compare=False
    )
    _resolved: dict[tuple[str, str], Atom] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def find_named_type(self, name: str) -> TypeDef | None:
        """Return the type definition called ``name``, or None."""
        index = self._type_index
        if index is None:
            index = {td.name: td for td in self.types}
            self._type_index = index
        return index.get(name)

    def _resolve_plain(self, type_ref: TypeRef) -> Atom | None:
        if type_ref.named_type is not None:
            td = self.find_named_type(type_ref.named_type)
            return None if td is None else td.atom
        return type_ref.inlined

    def _resolve_override(self, type_ref: TypeRef) -> Atom | None:
        atom = self._resolve_plain(type_ref)
        if atom is None:
            return None
        relationship = type_ref.element_relationship
        if atom.map is not None:
            overridden = atom.map.copy()
            overridden.element_relationship = relationship
            return dataclasses.replace(atom, map=overridden)
        if atom.list is not None:
            overridden_list = dataclasses.replace(
                atom.list, element_relationship=relationship
            )
            return dataclasses.replace(atom, list=overridden_list)
        # Relationships cannot be overridden on scalars or empty atoms.
        return None

    def resolve(self, type_ref: TypeRef) -> Atom | None:
        """Return the atom a reference points at, or None if unresolvable.

        A relationship override on the reference is applied to the referred
        map or list; overriding anything else cannot be resolved.
        """
        if type_ref.element_relationship is None:
            return self._resolve_plain(type_ref)
        if type_ref.named_type is None or type_ref.inlined != Atom():
            return self._resolve_override(type_ref)
        key = (type_ref.named_type, str(getattr(
            type_ref.element_relationship, "value", type_ref.element_relationship
        )))
        with self._lock:
            cached = self._resolved.get(key)
            if cached is not None:
                return cached
            result = self._resolve_override(type_ref)
            if result is not None:
                self._resolved[key] = result
            return result

    def copy(self) -> Schema:
        """Return a shallow copy that shares the type index."""
        duplicate = Schema(types=self.types)
        duplicate._type_index = self._type_index
        return duplicate

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Schema:
        """Build a schema from its decoded YAML or JSON form."""
        body = _mapping(data, "schema")
        types = [_type_def(item) for item in _sequence(body.get("types"), "types")]
        return cls(types=types)


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{what}: expected a mapping, got {type(data).__name__}")
    return data


def _sequence(data: Any, what: str) -> list[Any]:
    if data is None:
        return []
    if isinstance(data, (str, bytes)) or not isinstance(data, (list, tuple)):
        raise ValueError(f"{what}: expected a list, got {type(data).__name__}")
    return list(data)


def _string(data: Any, what: str) -> str | None:
    if data is None:
        return None
    if isinstance(data, bool):
        return "true" if data else "false"
    if isinstance(data, (str, int, float)):
        return str(data)
    raise ValueError(f"{what}: expected a string, got {type(data).__name__}")


def _boolean(data: Any, what: str) -> bool:
    if data is None:
        return False
    if not isinstance(data, bool):
        raise ValueError(f"{what}: expected a boolean, got {type(data).__name__}")
    return data


def _scalar(data: Any) -> Scalar | str | None:
    text = _string(data, "scalar")
    if not text:
        return None
    try:
        return Scalar(text)
    except ValueError:
        return text


def _relationship(data: Any) -> ElementRelationship | str | None:
    text = _string(data, "elementRelationship")
    if not text:
        return None
    try:
        return ElementRelationship(text)
    except ValueError:
        return text


def _atom(body: Mapping[str, Any]) -> Atom:
    list_body = body.get("list")
    map_body = body.get("map")
    return Atom(
        scalar=_scalar(body.get("scalar")),
        list=None if list_body is None else _list(_mapping(list_body, "list")),
        map=None if map_body is None else _map(_mapping(map_body, "map")),
    )


def _type_def(data: Any) -> TypeDef:
    body = _mapping(data, "typeDef")
    return TypeDef(name=_string(body.get("name"), "name") or "", atom=_atom(body))


def _type_ref(data: Any) -> TypeRef:
    body = _mapping(data, "typeRef")
    return TypeRef(
        named_type=_string(body.get("namedType"), "namedType"),
        inlined=_atom(body),
        element_relationship=_relationship(body.get("elementRelationship")),
    )


def _struct_field(data: Any) -> StructField:
    body = _mapping(data, "structField")
    return StructField(
        name=_string(body.get("name"), "name") or "",
        type=_type_ref(body.get("type")),
        default=body.get("default"),
    )


def _union_field(data: Any) -> UnionField:
    body = _mapping(data, "unionField")
    return UnionField(
        field_name=_string(body.get("fieldName"), "fieldName") or "",
        discriminator_value=_string(body.get("discriminatorValue"), "discriminatorValue") or "",
    )


def _union(data: Any) -> Union:
    body = _mapping(data, "union")
    return Union(
        discriminator=_string(body.get("discriminator"), "discriminator"),
        deduce_invalid_discriminator=_boolean(
            body.get("deduceInvalidDiscriminator"), "deduceInvalidDiscriminator"
        ),
        fields=[_union_field(item) for item in _sequence(body.get("fields"), "fields")],
    )


def _list(body: Mapping[str, Any]) -> List:
    keys = [_string(k, "keys") or "" for k in _sequence(body.get("keys"), "keys")]
    return List(
        element_type=_type_ref(body.get("elementType")),
        element_relationship=_relationship(body.get("elementRelationship")),
        keys=keys,
    )


def _map(body: Mapping[str, Any]) -> Map:
    return Map(
        fields=[_struct_field(item) for item in _sequence(body.get("fields"), "fields")],
        unions=[_union(item) for item in _sequence(body.get("unions"), "unions")],
        element_type=_type_ref(body.get("elementType")),
        element_relationship=_relationship(body.get("elementRelationship")),
    )