"""Schema inference: derive a JsonSchema from a concrete JSON value.

Shape only. Nothing here checks that a value conforms to a schema.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from quipubase.types import JsonSchema

# Stand-in for the element of an empty array.
_MISSING = object()

_TYPE_LABELS: dict[type, str] = {
    bool: "boolean",
    int: "number",
    float: "number",
    str: "string",
}


def _type_label(value: Any) -> str:
    if value is _MISSING:
        return "undefined"
    return _TYPE_LABELS.get(type(value), type(value).__name__)


def infer_schema(value: Any) -> JsonSchema:
    """Infer a schema node for a single JSON value.

    Arrays sample their first element only. Objects take their first key as
    title and require every key whose value is not null. ``None`` maps to an
    empty object schema.
    """
    if isinstance(value, (list, tuple)):
        return JsonSchema(
            type="array",
            items=infer_schema(value[0] if value else _MISSING),
        )
    if isinstance(value, Mapping):
        properties, required = _infer_properties(value)
        return JsonSchema(
            title=next(iter(value), None),
            type="object",
            properties=properties,
            required=required,
        )
    if value is None:
        return JsonSchema(type="object", properties={}, required=[])
    return JsonSchema(type=_type_label(value))


def _infer_properties(
    value: Mapping[str, Any],
) -> tuple[dict[str, JsonSchema], list[str]]:
    properties: dict[str, JsonSchema] = {}
    required: list[str] = []
    for key, item in value.items():
        properties[key] = infer_schema(item)
        if item is not None:
            required.append(key)
    return properties, required


def generate_json_schema(
    data: Mapping[str, Any], collection_id: str, type_name: str = "data"
) -> JsonSchema:
    """Build the top-level schema advertising the shape of ``data``.

    Titled ``"{type_name}:{collection_id}"``. Each call starts from a fresh
    schema.
    """
    if not isinstance(data, Mapping):
        raise TypeError(
            f"expected a mapping to infer a schema from, got {type(data).__name__}"
        )
    properties, required = _infer_properties(data)
    return JsonSchema(
        title=f"{type_name}:{collection_id}",
        type="object",
        properties=properties,
        required=required,
    )
