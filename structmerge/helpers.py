"""Errors and shared helpers for working with values that have a schema.

Values are plain Python data: ``None`` (null), booleans, integers, floats,
strings, lists (or tuples) and mappings.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Protocol

from .schema import Atom, ElementRelationship, List, Map, Scalar, Schema, TypeRef


@dataclass(frozen=True)
class ValidationError:
    """One problem found at a particular path of a value."""

    message: str
    path: str = ""

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{self.path}: {self.message}"


class ValidationErrors(Exception):
    """A collection of validation errors, raisable as one exception."""

    def __init__(self, errors: Iterable[ValidationError] = ()) -> None:
        self.errors: tuple[ValidationError, ...] = tuple(errors)
        super().__init__(*self.errors)

    def __str__(self) -> str:
        if len(self.errors) == 1:
            return str(self.errors[0])
        return "\n".join(["errors:", *(f"  {error}" for error in self.errors)])

    def __iter__(self) -> Iterator[ValidationError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return bool(self.errors)

    def __add__(self, other: Iterable[ValidationError]) -> ValidationErrors:
        return ValidationErrors(self.errors + tuple(other))

    def with_path(self, path: str) -> ValidationErrors:
        """Return the errors with every path replaced by ``path``."""
        return ValidationErrors(replace(error, path=path) for error in self.errors)

    def with_prefix(self, prefix: str) -> ValidationErrors:
        """Return the errors with ``prefix`` put in front of every path."""
        return ValidationErrors(
            replace(error, path=prefix + error.path) for error in self.errors
        )


def _errorf(message: str) -> ValidationErrors:
    return ValidationErrors((ValidationError(message),))


def _to_string(val: Any) -> str:
    try:
        return json.dumps(val, separators=(",", ":"), ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(val)


def _is_number(val: Any) -> bool:
    return isinstance(val, (int, float)) and not isinstance(val, bool)


def _is_scalar(val: Any) -> bool:
    return isinstance(val, (bool, int, float, str))


def _is_list(val: Any) -> bool:
    return isinstance(val, (list, tuple))


def _is_map(val: Any) -> bool:
    return isinstance(val, Mapping)


def _as_list(val: Any) -> Sequence[Any] | None:
    """Return the list held by ``val``; null is a valid (absent) list."""
    if val is None:
        return None
    if not _is_list(val):
        raise ValueError(f"expected list, got {_to_string(val)}")
    return val


def _as_map(val: Any) -> Mapping[Any, Any] | None:
    """Return the mapping held by ``val``; null is a valid (absent) map."""
    if val is None:
        return None
    if not _is_map(val):
        raise ValueError(f"expected map, got {_to_string(val)}")
    return val


def _freeze(val: Any) -> tuple[Any, ...]:
    """A hashable form of a value that keeps booleans apart from numbers."""
    if val is None:
        return ("null",)
    if isinstance(val, bool):
        return ("bool", val)
    if isinstance(val, (int, float)):
        return ("number", val)
    if isinstance(val, str):
        return ("string", val)
    if _is_list(val):
        return ("list", tuple(_freeze(item) for item in val))
    if _is_map(val):
        items = sorted(((str(k), _freeze(v)) for k, v in val.items()), key=lambda kv: kv[0])
        return ("map", tuple(items))
    return ("other", repr(val))


@dataclass(frozen=True)
class _ListItemKey:
    """The identity of an element of an associative list."""

    identity: tuple[Any, ...]
    text: str = field(compare=False)

    def __str__(self) -> str:
        return self.text


class _AtomHandler(Protocol):
    def do_scalar(self, scalar: Scalar | str) -> ValidationErrors: ...

    def do_list(self, list_type: List) -> ValidationErrors: ...

    def do_map(self, map_type: Map) -> ValidationErrors: ...


def deduce_atom(atom: Atom, val: Any) -> Atom:
    """Narrow ``atom`` to the single form that ``val`` takes.

    If ``val`` is null or of a form the atom does not allow, the atom is
    returned unchanged so that validation fails later with a useful error.
    """
    if val is None:
        return atom
    if _is_scalar(val):
        if atom.scalar is not None:
            return Atom(scalar=atom.scalar)
    elif _is_list(val):
        if atom.list is not None:
            return Atom(list=atom.list)
    elif _is_map(val):
        if atom.map is not None:
            return Atom(map=atom.map)
    return atom


def _handle_atom(atom: Atom, type_ref: TypeRef, handler: _AtomHandler) -> ValidationErrors:
    if atom.map is not None:
        return handler.do_map(atom.map)
    if atom.scalar is not None:
        return handler.do_scalar(atom.scalar)
    if atom.list is not None:
        return handler.do_list(atom.list)
    name = "inlined" if type_ref.named_type is None else f"named type: {type_ref.named_type}"
    return _errorf(f"schema error: invalid atom: {name}")


def _resolve_schema(
    schema: Schema, type_ref: TypeRef, val: Any, handler: _AtomHandler
) -> ValidationErrors:
    atom = schema.resolve(type_ref)
    if atom is None:
        name = type_ref.named_type if type_ref.named_type is not None else "inlined type"
        return _errorf(f"schema error: no type found matching: {name}")
    return _handle_atom(deduce_atom(atom, val), type_ref, handler)


def _key_default(schema: Schema, list_type: List, field_name: str) -> Any:
    atom = schema.resolve(list_type.element_type)
    if atom is None:
        raise ValueError("invalid elementType for list")
    if atom.map is None:
        raise ValueError("associative list may not have non-map types")
    struct_field = atom.map.find_field(field_name)
    return None if struct_field is None else struct_field.default


def _keyed_item_key(schema: Schema, list_type: List, child: Any) -> _ListItemKey:
    if child is None:
        raise ValueError("associative list with keys may not have a null element")
    if not _is_map(child):
        raise ValueError("associative list with keys may not have non-map elements")
    pairs: list[tuple[str, Any]] = []
    for name in list_type.keys:
        if name in child:
            pairs.append((name, child[name]))
            continue
        try:
            default = _key_default(schema, list_type, name)
        except ValueError as exc:
            raise ValueError(f"couldn't find default value for {name}: {exc}") from exc
        # A key without a value or default is left out: that is a distinct entry.
        if default is not None:
            pairs.append((name, default))
    if not pairs:
        quoted = " ".join(json.dumps(k) for k in list_type.keys)
        raise ValueError(
            f"associative list with keys has an element that omits all key fields "
            f"[{quoted}] (and doesn't have default values for any key fields)"
        )
    pairs.sort(key=lambda pair: pair[0])
    identity = ("key", tuple((name, _freeze(v)) for name, v in pairs))
    text = "[" + ",".join(f"{name}={_to_string(v)}" for name, v in pairs) + "]"
    return _ListItemKey(identity, text)


def _set_item_key(child: Any) -> _ListItemKey:
    if _is_map(child):
        raise ValueError("associative list without keys has an element that's a map type")
    if _is_list(child):
        raise ValueError("not supported: associative list with lists as elements")
    if child is None:
        raise ValueError("associative list without keys has an element that's an explicit null")
    return _ListItemKey(("value", _freeze(child)), f"[={_to_string(child)}]")


def list_item_key(schema: Schema, list_type: List, child: Any) -> _ListItemKey:
    """Return the hashable identity of ``child`` within an associative list.

    Keyed lists identify elements by their key fields (falling back to the
    declared defaults); lists without keys are sets of scalars. Raises
    ValueError when the element cannot be identified.
    """
    if list_type.element_relationship != ElementRelationship.ASSOCIATIVE:
        raise ValueError("invalid indexing of non-associative list")
    if list_type.keys:
        return _keyed_item_key(schema, list_type, child)
    return _set_item_key(child)