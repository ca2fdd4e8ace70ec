"""
Structural JSON-Schema validator for action payloads.

Only the subset used by the catalog is interpreted: object/array/primitive
types, ``properties``, ``required``, ``enum``, ``minimum``/``maximum``,
``minLength``/``maxLength``, ``minItems``/``maxItems``, ``items``,
``pattern``, ``default`` and ``additionalProperties``. Other keywords are
ignored. A schema that cannot be interpreted compiles to a validator that
only accepts an empty object.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Dict, List, Optional

from seitrace_mcp.errors import SchemaValidationError, ValidationIssue

logger = logging.getLogger(__name__)

JSON_TYPES = ("object", "array", "string", "number", "integer", "boolean", "null")

FAIL_SAFE_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}, "additionalProperties": False}


class MalformedSchemaError(ValueError):
    """Raised internally when a schema node cannot be interpreted."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_node(node: Any, path: str) -> None:
    if not isinstance(node, dict):
        raise MalformedSchemaError(f"{path or '(root)'}: schema must be an object")

    declared = node.get("type")
    if declared is not None:
        types = declared if isinstance(declared, list) else [declared]
        if not types or any(t not in JSON_TYPES for t in types):
            raise MalformedSchemaError(f"{path or '(root)'}: unknown type {declared!r}")

    properties = node.get("properties")
    if properties is not None:
        if not isinstance(properties, dict):
            raise MalformedSchemaError(f"{path or '(root)'}: properties must be an object")
        for name, child in properties.items():
            _check_node(child, f"{path}.{name}" if path else name)

    required = node.get("required")
    if required is not None:
        if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
            raise MalformedSchemaError(f"{path or '(root)'}: required must be a list of strings")

    if "enum" in node and not isinstance(node["enum"], list):
        raise MalformedSchemaError(f"{path or '(root)'}: enum must be a list")

    for keyword in ("minimum", "maximum", "minLength", "maxLength", "minItems", "maxItems"):
        if keyword in node and not _is_number(node[keyword]):
            raise MalformedSchemaError(f"{path or '(root)'}: {keyword} must be numeric")

    if "pattern" in node:
        try:
            re.compile(node["pattern"])
        except (re.error, TypeError) as exc:
            raise MalformedSchemaError(f"{path or '(root)'}: bad pattern ({exc})") from exc

    items = node.get("items")
    if items is not None:
        _check_node(items, f"{path}[]")

    extra = node.get("additionalProperties")
    if extra is not None and not isinstance(extra, bool):
        _check_node(extra, f"{path}.*")


def _describe(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _matches(value: Any, json_type: str) -> bool:
    if json_type == "object":
        return isinstance(value, dict)
    if json_type == "array":
        return isinstance(value, (list, tuple))
    if json_type == "string":
        return isinstance(value, str)
    if json_type == "number":
        return _is_number(value)
    if json_type == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if json_type == "boolean":
        return isinstance(value, bool)
    if json_type == "null":
        return value is None
    return False


def _join(path: str, key: Any) -> str:
    return f"{path}.{key}" if path else str(key)


class Validator:
    """A compiled schema; ``validate`` returns a fresh, default-filled copy."""

    def __init__(self, schema: Dict[str, Any], *, fail_safe: bool = False) -> None:
        self.schema = schema
        self.fail_safe = fail_safe

    def validate(self, payload: Any) -> Dict[str, Any]:
        issues: List[ValidationIssue] = []
        result = self._walk(payload, self.schema, "", issues)
        if issues:
            raise SchemaValidationError(issues)
        return result

    def _walk(self, value: Any, node: Dict[str, Any], path: str, issues: List[ValidationIssue]) -> Any:
        declared = node.get("type")
        if declared is None and "properties" in node:
            declared = "object"
        if declared is not None:
            types = declared if isinstance(declared, list) else [declared]
            if not any(_matches(value, t) for t in types):
                issues.append(
                    ValidationIssue(path, "invalid_type", f"Expected {' | '.join(types)}, received {_describe(value)}")
                )
                return value

        if "enum" in node and value not in node["enum"]:
            options = " | ".join(repr(option) for option in node["enum"])
            issues.append(
                ValidationIssue(path, "invalid_enum_value", f"Invalid enum value. Expected {options}, received {value!r}")
            )
            return value

        if isinstance(value, str):
            self._check_string(value, node, path, issues)
            return value
        if _is_number(value):
            self._check_number(value, node, path, issues)
            return value
        if isinstance(value, (list, tuple)):
            return self._walk_array(list(value), node, path, issues)
        if isinstance(value, dict):
            return self._walk_object(value, node, path, issues)
        return copy.deepcopy(value)

    def _check_string(self, value: str, node: Dict[str, Any], path: str, issues: List[ValidationIssue]) -> None:
        min_length = node.get("minLength")
        if min_length is not None and len(value) < min_length:
            issues.append(
                ValidationIssue(path, "too_small", f"String must contain at least {min_length} character(s)")
            )
        max_length = node.get("maxLength")
        if max_length is not None and len(value) > max_length:
            issues.append(
                ValidationIssue(path, "too_big", f"String must contain at most {max_length} character(s)")
            )
        pattern = node.get("pattern")
        if pattern is not None and re.search(pattern, value) is None:
            issues.append(ValidationIssue(path, "invalid_string", f"String does not match pattern {pattern}"))

    def _check_number(self, value: float, node: Dict[str, Any], path: str, issues: List[ValidationIssue]) -> None:
        minimum = node.get("minimum")
        if minimum is not None and value < minimum:
            issues.append(
                ValidationIssue(path, "too_small", f"Number must be greater than or equal to {minimum}")
            )
        maximum = node.get("maximum")
        if maximum is not None and value > maximum:
            issues.append(ValidationIssue(path, "too_big", f"Number must be less than or equal to {maximum}"))

    def _walk_array(self, value: List[Any], node: Dict[str, Any], path: str, issues: List[ValidationIssue]) -> List[Any]:
        min_items = node.get("minItems")
        if min_items is not None and len(value) < min_items:
            issues.append(
                ValidationIssue(path, "too_small", f"Array must contain at least {min_items} element(s)")
            )
        max_items = node.get("maxItems")
        if max_items is not None and len(value) > max_items:
            issues.append(ValidationIssue(path, "too_big", f"Array must contain at most {max_items} element(s)"))
        items = node.get("items")
        if not items:
            return copy.deepcopy(value)
        return [self._walk(item, items, _join(path, index), issues) for index, item in enumerate(value)]

    def _walk_object(
        self, value: Dict[str, Any], node: Dict[str, Any], path: str, issues: List[ValidationIssue]
    ) -> Dict[str, Any]:
        properties: Dict[str, Any] = node.get("properties") or {}
        required = node.get("required") or []
        extra = node.get("additionalProperties")
        out: Dict[str, Any] = {}

        for name in required:
            if name not in value:
                issues.append(ValidationIssue(_join(path, name), "missing_required", "Required"))

        for name, child in properties.items():
            if name in value:
                out[name] = self._walk(value[name], child, _join(path, name), issues)
            elif name not in required and "default" in child:
                out[name] = copy.deepcopy(child["default"])

        for key, item in value.items():
            if key in properties:
                continue
            if extra is False:
                issues.append(ValidationIssue(_join(path, key), "unrecognized_keys", f"Unrecognized key '{key}'"))
            elif isinstance(extra, dict):
                out[key] = self._walk(item, extra, _join(path, key), issues)
            else:
                out[key] = copy.deepcopy(item)
        return out


def compile_schema(schema: Any, *, name: Optional[str] = None) -> Validator:
    """Compile ``schema`` into a Validator, failing safe on malformed input."""
    try:
        _check_node(schema, "")
    except MalformedSchemaError as exc:
        logger.warning("schema for %s is malformed, rejecting all non-empty payloads: %s", name or "<unnamed>", exc)
        return Validator(FAIL_SAFE_SCHEMA, fail_safe=True)
    return Validator(schema)
