from __future__ import annotations

import importlib.resources
import json
import re
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SchemaError:
    path: str
    message: str


def json_type_name(v: Any) -> str:
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "boolean"
    if isinstance(v, int):
        return "integer"
    if isinstance(v, float):
        return "number"
    if isinstance(v, str):
        return "string"
    if isinstance(v, list):
        return "array"
    if isinstance(v, dict):
        return "object"
    return type(v).__name__


def _type_matches(value: Any, expected: str) -> bool:
    actual = json_type_name(value)
    if expected == "number":
        return actual in ("integer", "number")
    return actual == expected


def _resolve_ref(root: dict[str, Any], ref: str) -> Any:
    # Internal refs only: '#/definitions/Name'.
    if not ref.startswith("#/"):
        raise ValueError(f"unsupported $ref (internal refs only): {ref}")
    cur: Any = root
    for raw in ref[2:].split("/"):
        part = raw.replace("~1", "/").replace("~0", "~")
        if not isinstance(cur, dict) or part not in cur:
            raise KeyError(f"missing ref path segment: {part}")
        cur = cur[part]
    return cur


def _walk(value: Any, sch: Any, path: str, root: dict[str, Any], errors: list[SchemaError]) -> None:
    if not isinstance(sch, dict):
        errors.append(SchemaError(path, "schema node is not an object"))
        return

    ref = sch.get("$ref")
    if isinstance(ref, str):
        try:
            target = _resolve_ref(root, ref)
        except (KeyError, ValueError) as e:
            errors.append(SchemaError(path, f"unresolvable $ref: {e}"))
            return
        _walk(value, target, path, root, errors)
        return

    expected = sch.get("type")
    if isinstance(expected, str) and not _type_matches(value, expected):
        errors.append(SchemaError(path, f"expected type {expected}, got {json_type_name(value)}"))
        return
    if isinstance(expected, list) and not any(_type_matches(value, str(t)) for t in expected):
        errors.append(SchemaError(path, f"expected type in {expected}, got {json_type_name(value)}"))
        return

    if "const" in sch and value != sch["const"]:
        errors.append(SchemaError(path, "const mismatch"))
        return
    enum_vals = sch.get("enum")
    if isinstance(enum_vals, list) and value not in enum_vals:
        errors.append(SchemaError(path, "enum mismatch"))
        return

    if isinstance(value, str):
        min_len = sch.get("minLength")
        if isinstance(min_len, int) and len(value) < min_len:
            errors.append(SchemaError(path, f"minLength {min_len}"))
        pattern = sch.get("pattern")
        if isinstance(pattern, str) and re.search(pattern, value) is None:
            errors.append(SchemaError(path, "pattern mismatch"))

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        minimum = sch.get("minimum")
        if minimum is not None and value < minimum:
            errors.append(SchemaError(path, f"minimum {minimum}"))
        maximum = sch.get("maximum")
        if maximum is not None and value > maximum:
            errors.append(SchemaError(path, f"maximum {maximum}"))

    if isinstance(value, dict):
        for k in sch.get("required") or []:
            if k not in value:
                errors.append(SchemaError(path, f"missing required '{k}'"))
        props = sch.get("properties")
        if isinstance(props, dict):
            for k in sorted(props):
                if k in value:
                    _walk(value[k], props[k], f"{path}.{k}", root, errors)
            if sch.get("additionalProperties") is False:
                for k in sorted(k for k in value if k not in props):
                    errors.append(SchemaError(f"{path}.{k}", "additionalProperties not allowed"))

    if isinstance(value, list):
        min_items = sch.get("minItems")
        if isinstance(min_items, int) and len(value) < min_items:
            errors.append(SchemaError(path, f"minItems {min_items}"))
        items = sch.get("items")
        if isinstance(items, dict):
            for i, item in enumerate(value):
                _walk(item, items, f"{path}[{i}]", root, errors)


def validate_schema(obj: Any, schema: dict[str, Any], *, path: str) -> list[SchemaError]:
    """Deterministic, stdlib-only validator for the Channel A schemas.

    Supported keywords: $ref (internal), type, const, enum, minLength,
    pattern, minimum, maximum, required, properties,
    additionalProperties=false, items, minItems.

    Returns a stable (sorted) list of SchemaError objects.
    """

    errors: list[SchemaError] = []
    _walk(obj, schema, path, schema, errors)
    errors.sort(key=lambda e: (e.path, e.message))
    return errors


def load_schema(name: str) -> dict[str, Any]:
    """Load a schema shipped as package data under channel_a/schemas/."""

    resource = importlib.resources.files("channel_a.schemas").joinpath(f"{name}.schema.json")
    obj = json.loads(resource.read_text(encoding="utf-8"))
    if not isinstance(obj, dict):
        raise ValueError(f"Schema is not a JSON object: {name}")
    return obj
