"""Resolve raw schema objects into the :data:`~openapi_sync.models.SchemaType` union.

Resolution is recursive and identical for both dialects.  ``$ref`` pointers
are *not* followed: a reference becomes a :class:`~openapi_sync.models.RefType`
naming its target, so circular schemas need no special handling here.

Precedence, first match wins:

1. ``$ref`` -> ``ref``
2. ``oneOf`` / ``anyOf`` / ``allOf`` arrays -> variant lists
3. ``type`` of ``string`` / ``number`` / ``integer`` / ``boolean``
4. ``type: array`` -> ``array`` of the resolved ``items`` (``unknown`` if absent)
5. ``type: object``, or no ``type`` but a ``properties`` map -> ``object``
6. anything else -> ``unknown``

The single public function is :func:`resolve_schema_type`.  Malformed input
resolves to ``unknown``; only nesting beyond the recursion limit escapes, as
:class:`RecursionError`, which the normalizer reports as a format error.
"""

from __future__ import annotations

from typing import Any

from openapi_sync.models import (
    AllOfType,
    AnyOfType,
    ArrayType,
    BooleanType,
    IntegerType,
    NumberType,
    ObjectType,
    OneOfType,
    RefType,
    SchemaType,
    StringType,
    UnknownType,
)
from openapi_sync.parser.hashing import strip_ref_prefix

_VARIANT_TYPES = (
    ("oneOf", OneOfType),
    ("anyOf", AnyOfType),
    ("allOf", AllOfType),
)


def resolve_schema_type(schema: Any) -> SchemaType:
    """Resolve a raw schema object into its structural type.

    Args:
        schema: A raw schema value.  Non-dict values resolve to ``unknown``.

    Returns:
        One member of the :data:`~openapi_sync.models.SchemaType` union.

    Example::

        resolve_schema_type({"type": "array", "items": {"$ref": "#/definitions/Pet"}})
        # ArrayType(items=RefType(target="Pet"))
    """
    if not isinstance(schema, dict):
        return UnknownType()

    ref = schema.get("$ref")
    if isinstance(ref, str):
        return RefType(target=strip_ref_prefix(ref))

    for keyword, variant_cls in _VARIANT_TYPES:
        members = schema.get(keyword)
        if isinstance(members, list):
            return variant_cls(variants=[resolve_schema_type(m) for m in members])

    type_name = primary_type(schema.get("type"))
    schema_format = _optional_str(schema.get("format"))

    if type_name == "string":
        return StringType(format=schema_format, enum_values=_string_enum(schema.get("enum")))
    if type_name == "number":
        return NumberType(format=schema_format)
    if type_name == "integer":
        return IntegerType(format=schema_format)
    if type_name == "boolean":
        return BooleanType()
    if type_name == "array":
        items = schema.get("items")
        return ArrayType(
            items=resolve_schema_type(items) if items is not None else UnknownType()
        )
    if type_name == "object" or (type_name is None and "properties" in schema):
        return _resolve_object(schema)

    return UnknownType()


def _resolve_object(schema: dict[str, Any]) -> ObjectType:
    properties = schema.get("properties")
    if not isinstance(properties, dict):
        properties = {}
    required = schema.get("required")
    if not isinstance(required, list):
        required = []
    return ObjectType(
        properties={
            str(name): resolve_schema_type(prop) for name, prop in properties.items()
        },
        required=[name for name in required if isinstance(name, str)],
    )


def primary_type(type_value: Any) -> str | None:
    """Return the declared type, taking the first non-null entry of a 3.1 type array."""
    if isinstance(type_value, str):
        return type_value
    if isinstance(type_value, list):
        for entry in type_value:
            if isinstance(entry, str) and entry != "null":
                return entry
    return None


def _string_enum(values: Any) -> list[str] | None:
    if not isinstance(values, list):
        return None
    return [value for value in values if isinstance(value, str)]


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None
