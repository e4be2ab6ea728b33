"""Merging of two values that share a schema.

The right-hand value wins on every leaf it sets. Maps are merged key by key,
and associative lists item by item, keeping an order that respects both
sides. Atomic containers, and containers that are empty or null on both
sides, are treated as leaves.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from .helpers import (
    ValidationErrors,
    _as_list,
    _as_map,
    _errorf,
    _handle_atom,
    _ListItemKey,
    deduce_atom,
    list_item_key,
)
from .schema import ElementRelationship, List, Map, Scalar, Schema, TypeRef
from .validate import validate_scalar


class _Absent:
    """Marks a side that holds no value at all, as opposed to an explicit null."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<absent>"


_ABSENT: Any = _Absent()


def _present(val: Any) -> Any:
    """The value to inspect for a side: absent sides look like null."""
    return None if val is _ABSENT else val


def _deref_list(val: Any) -> Sequence[Any] | None:
    if val is _ABSENT:
        return None
    try:
        return _as_list(val)
    except ValueError:
        return None


def _deref_map(val: Any) -> Mapping[Any, Any] | None:
    if val is _ABSENT:
        return None
    try:
        return _as_map(val)
    except ValueError:
        return None


@dataclass
class _Merger:
    schema: Schema
    type_ref: TypeRef
    lhs: Any = _ABSENT
    rhs: Any = _ABSENT
    in_leaf: bool = False
    out: Any = _ABSENT

    def merge(self, prefix: str = "") -> ValidationErrors:
        if self.lhs is _ABSENT and self.rhs is _ABSENT:
            return _errorf("at least one of lhs and rhs must be provided")
        atom = self.schema.resolve(self.type_ref)
        if atom is None:
            name = (
                self.type_ref.named_type
                if self.type_ref.named_type is not None
                else "inlined type"
            )
            return _errorf(f"schema error: no type found matching: {name}")

        lhs_atom = deduce_atom(atom, _present(self.lhs))
        rhs_atom = deduce_atom(atom, _present(self.rhs))

        # An absent side is a wildcard that takes the form of the other side.
        errors = ValidationErrors()
        if self.rhs is _ABSENT:
            errors += _handle_atom(lhs_atom, self.type_ref, self)
        elif self.lhs is _ABSENT or lhs_atom == rhs_atom:
            errors += _handle_atom(rhs_atom, self.type_ref, self)
        else:
            shadow = replace(self)
            errors += _handle_atom(lhs_atom, self.type_ref, shadow)
            errors += _handle_atom(rhs_atom, self.type_ref, self)
        return errors.with_prefix(prefix) if errors else errors

    def _do_leaf(self) -> None:
        if self.in_leaf:
            return
        self.in_leaf = True
        if self.rhs is not _ABSENT:
            self.out = self.rhs
        elif self.lhs is not _ABSENT:
            self.out = self.lhs

    def _descend(self, type_ref: TypeRef, lhs: Any, rhs: Any) -> _Merger:
        return _Merger(self.schema, type_ref, lhs, rhs, in_leaf=self.in_leaf)

    def do_scalar(self, scalar: Scalar | str) -> ValidationErrors:
        lhs_errors = validate_scalar(scalar, _present(self.lhs), "lhs: ")
        rhs_errors = validate_scalar(scalar, _present(self.rhs), "rhs: ")
        if lhs_errors and rhs_errors:
            return lhs_errors + rhs_errors
        self._do_leaf()
        return ValidationErrors()

    def do_list(self, list_type: List) -> ValidationErrors:
        lhs = _deref_list(self.lhs)
        rhs = _deref_list(self.rhs)
        both_empty = not lhs and not rhs
        if list_type.element_relationship == ElementRelationship.ATOMIC or both_empty:
            self._do_leaf()
            return ValidationErrors()
        return self._visit_list_items(list_type, lhs or (), rhs or ())

    def _index(
        self, list_type: List, items: Sequence[Any], allow_duplicates: bool
    ) -> tuple[list[_ListItemKey], dict[_ListItemKey, Any], ValidationErrors]:
        keys: list[_ListItemKey] = []
        observed: dict[_ListItemKey, Any] = {}
        errors = ValidationErrors()
        for index, child in enumerate(items):
            try:
                key = list_item_key(self.schema, list_type, child)
            except ValueError as exc:
                errors += _errorf(f"element {index}: {exc}")
                continue
            if key in observed:
                if not allow_duplicates:
                    errors += _errorf(f"duplicate entries for key {key}")
                    continue
                # Duplicated items are not merged with the new value.
                observed[key] = None
            else:
                observed[key] = child
            keys.append(key)
        return keys, observed, errors

    def _merge_item(self, list_type: List, lhs: Any, rhs: Any) -> Any:
        child = self._descend(list_type.element_type, lhs, rhs)
        # Item errors are not reported here; inputs are validated beforehand.
        child.merge()
        return child.out

    def _visit_list_items(
        self, list_type: List, lhs: Sequence[Any], rhs: Sequence[Any]
    ) -> ValidationErrors:
        rhs_keys, observed_rhs, rhs_errors = self._index(list_type, rhs, False)
        lhs_keys, observed_lhs, lhs_errors = self._index(list_type, lhs, True)
        errors = rhs_errors + lhs_errors
        if errors:
            return errors

        shared = iter([key for key in rhs_keys if key in observed_lhs])
        next_shared = next(shared, None)

        out: list[Any] = []

        def emit(merged: Any) -> None:
            if merged is not _ABSENT:
                out.append(merged)

        merged_rhs: set[_ListItemKey] = set()
        l_len, r_len = len(lhs_keys), len(rhs_keys)
        li = ri = 0
        while li < l_len or ri < r_len:
            if li < l_len and ri < r_len:
                key = lhs_keys[li]
                if key == rhs_keys[ri]:
                    merged_rhs.add(key)
                    emit(self._merge_item(
                        list_type,
                        observed_lhs.get(key, _ABSENT),
                        observed_rhs.get(key, _ABSENT),
                    ))
                    li += 1
                    ri += 1
                    next_shared = next(shared, None)
                    continue
                if key in observed_rhs and next_shared is not None and next_shared != key:
                    # A shared item, but not the one due in this round.
                    li += 1
                    continue
            if li < l_len:
                key = lhs_keys[li]
                if key not in observed_rhs:
                    emit(self._merge_item(list_type, lhs[li], _ABSENT))
                    li += 1
                    continue
                if key in merged_rhs:
                    li += 1
            if ri < r_len:
                key = rhs_keys[ri]
                merged_rhs.add(key)
                emit(self._merge_item(
                    list_type,
                    observed_lhs.get(key, _ABSENT),
                    observed_rhs.get(key, _ABSENT),
                ))
                ri += 1
                if next_shared is not None and next_shared == key:
                    next_shared = next(shared, None)

        if out:
            self.out = out
        return ValidationErrors()

    def do_map(self, map_type: Map) -> ValidationErrors:
        lhs = _deref_map(self.lhs)
        rhs = _deref_map(self.rhs)
        both_empty = not lhs and not rhs
        if map_type.element_relationship == ElementRelationship.ATOMIC or both_empty:
            self._do_leaf()
            return ValidationErrors()
        return self._visit_map_items(map_type, lhs or {}, rhs or {})

    def _visit_map_items(
        self, map_type: Map, lhs: Mapping[Any, Any], rhs: Mapping[Any, Any]
    ) -> ValidationErrors:
        keys = list(lhs)
        keys.extend(key for key in rhs if key not in lhs)
        errors = ValidationErrors()
        out: dict[Any, Any] = {}
        for key in keys:
            name = str(key)
            struct_field = map_type.find_field(name)
            type_ref = struct_field.type if struct_field is not None else map_type.element_type
            child = self._descend(type_ref, lhs.get(key, _ABSENT), rhs.get(key, _ABSENT))
            errors += child.merge(f".{name}")
            if child.out is not _ABSENT:
                out[key] = child.out
        if out:
            self.out = out
        return errors


def merge_values(schema: Schema, type_ref: TypeRef, lhs: Any, rhs: Any) -> Any:
    """Merge ``rhs`` into ``lhs`` following the type ``type_ref`` of ``schema``.

    Returns the merged value, or None when the merge produced nothing.
    Raises ValidationErrors when the values do not fit the schema.
    """
    merger = _Merger(schema, type_ref, lhs, rhs)
    errors = merger.merge()
    if errors:
        raise errors
    return None if merger.out is _ABSENT else merger.out