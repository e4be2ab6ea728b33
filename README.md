# structmerge

`structmerge` checks plain Python data against a small, targeted schema
language. Plain data here means `None`, booleans, numbers, strings, lists and
mappings, the kind you get from parsing YAML or JSON. It can also merge two
such documents in a way that follows the schema.

The schema language describes three kinds of type:

- **scalars**: `numeric`, `string`, `boolean` or `untyped`.
- **lists**: `atomic`, which are replaced as a whole, or `associative`. An
  associative list is either a set of scalars or a list of maps keyed by one
  or more fields. A key field that is missing from an element falls back to
  the default declared for that field.
- **maps**: structs with named fields, or maps with an element type. A map
  may be `separable` (the default) or `atomic`.

A reference to a type can name a type or describe it inline. It can also
override the element relationship of the map or list type it refers to.

## Installation

```
pip install structmerge
```

## Defining a schema and validating objects

```python
from structmerge.parser import new_parser

parser = new_parser("""
types:
- name: myRoot
  map:
    fields:
    - name: list
      type:
        namedType: myList
- name: myList
  list:
    elementType:
      namedType: myElement
    elementRelationship: associative
    keys:
    - key
- name: myElement
  map:
    fields:
    - name: key
      type:
        scalar: string
    - name: value
      type:
        scalar: numeric
""")

print(parser.type_names())   # ['myRoot', 'myList', 'myElement']

root = parser.type("myRoot")
print(root.is_valid())       # True
obj = root.from_yaml('{"list": [{"key": "a", "value": 1}]}')
print(obj.value)             # {'list': [{'key': 'a', 'value': 1}]}
```

`new_parser` first checks the schema document against the built-in schema for
schemas, `SCHEMA_SCHEMA_YAML`. If the schema is not valid, it raises
`ValueError`.

`ParseableType.from_yaml` parses a YAML document and checks it against the
chosen type. `from_unstructured` does the same for data you already hold. Both
return a `TypedValue`. YAML dates and times are kept as strings.

When validation fails, a `ValidationErrors` exception from
`structmerge.helpers` is raised. It can be iterated, and each
`ValidationError` in it carries a `message` and the `path` of the field that
failed, for example `.list[key="a"]`. A type name the schema does not define
is reported as a validation error when an object is parsed.

Associative lists must not have two entries with the same key. To accept such
duplicates, pass `ValidationOptions.ALLOW_DUPLICATES` from `structmerge.typed`:

```python
from structmerge.typed import ValidationOptions

root.from_yaml('{"list": [{"key": "a"}, {"key": "a"}]}',
               ValidationOptions.ALLOW_DUPLICATES)
```

`structmerge.parser.DEDUCED_PARSEABLE_TYPE` is a type that accepts any
document. Its maps are separable and its lists are atomic.

## Merging

`TypedValue.merge` takes a partially specified object and merges it on top of
the current value:

```python
base = root.from_yaml('{"list": [{"key": "a", "value": 1}, {"key": "b", "value": 2}]}')
patch = root.from_yaml('{"list": [{"key": "b", "value": 3}, {"key": "c", "value": 4}]}')

merged = base.merge(patch)
print(merged.value)
# {'list': [{'key': 'a', 'value': 1}, {'key': 'b', 'value': 3}, {'key': 'c', 'value': 4}]}
```

The merge follows these rules:

- It never removes a field.
- When both sides set a leaf (a scalar, an atomic list or an atomic map), the
  right-hand value wins.
- Maps are merged key by key. Entries of associative lists are matched by
  their key. Entries that appear only on the left keep their place relative
  to their neighbours. Entries that the right-hand side holds follow its
  order.
- A container that is empty or null on both sides is treated as a leaf, so an
  empty value and a null value stay distinct.

Both values must share the same `Schema` object and the same type reference.
Otherwise `merge` raises `ValidationErrors`. `TypedValue.empty()` returns a
value of the same type that holds `None`.

## Lower-level pieces

- `structmerge.schema` holds the schema data model: `Schema`, `TypeDef`,
  `TypeRef`, `Atom`, `Scalar`, `List`, `Map`, `StructField`, `Union`,
  `UnionField` and `ElementRelationship`.
  - `Schema.from_dict` builds a schema from data that is already parsed.
  - `Schema.find_named_type` and `Map.find_field` look up definitions by
    name.
  - `Schema.resolve` turns a type reference into an atom, or returns `None`
    when the reference cannot be resolved.
- `structmerge.validate` provides `validate_value` and `validate_scalar`.
  Both return a (possibly empty) `ValidationErrors` and do not raise it.
- `structmerge.merge` provides `merge_values`, which merges raw values under a
  schema type.
- `structmerge.typed` provides `TypedValue`, `as_typed` (which validates) and
  `as_typed_unvalidated`.
- `structmerge.helpers` provides the error types, `deduce_atom` and
  `list_item_key`. `list_item_key` gives the identity of an element of an
  associative list.

## What it does not do

`structmerge` validates and merges. It does not:

- compare two values to list added, removed or modified fields;
- turn a value into a set of field paths;
- remove or extract parts of a value by path;
- track field ownership between managers.

It has no command-line tool. Union definitions are read and kept in the schema
model, but validation and merging do not enforce them.