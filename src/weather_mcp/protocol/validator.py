"""Input validation for tool arguments.

Tool input schemas are JSON Schema (draft 2020-12) documents checked with
``jsonschema``. Descriptors are limited to a top-level ``object`` whose
properties use the primitive types in :data:`SUPPORTED_TYPES`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from jsonschema import Draft202012Validator, SchemaError

from weather_mcp.protocol.errors import ArgumentValidationError, InvalidParamsError

if TYPE_CHECKING:
    from jsonschema import ValidationError

SUPPORTED_TYPES = frozenset({"number", "integer", "string", "boolean", "object", "array"})


def check_schema(schema: dict[str, Any]) -> None:
    """Raise ``ValueError`` if *schema* is not a usable tool input schema."""
    try:
        Draft202012Validator.check_schema(schema)
    except SchemaError as exc:
        msg = f"invalid tool input schema: {exc.message}"
        raise ValueError(msg) from exc

    if schema.get("type", "object") != "object":
        msg = f"tool input schema must be of type 'object', got {schema.get('type')!r}"
        raise ValueError(msg)

    properties: dict[str, Any] = schema.get("properties", {})
    for name, prop in properties.items():
        prop_type = prop.get("type")
        if prop_type not in SUPPORTED_TYPES:
            msg = f"property '{name}' has unsupported type {prop_type!r}"
            raise ValueError(msg)

    for name in schema.get("required", []):
        if name not in properties:
            msg = f"required field '{name}' is not declared in properties"
            raise ValueError(msg)


def _to_argument_error(
    error: ValidationError, properties: dict[str, Any], payload: dict[str, Any]
) -> ArgumentValidationError:
    if error.validator == "required" and not error.path:
        field = next(name for name in error.validator_value if name not in payload)
        expected = properties.get(field, {}).get("type", "value")
        return ArgumentValidationError(field, expected, "required field missing")

    field = str(error.path[0]) if error.path else ""
    if error.validator == "type" and len(error.path) == 1:
        expected = error.validator_value
    else:
        expected = properties.get(field, {}).get("type", "value")
    return ArgumentValidationError(field, str(expected), error.message)


def validate(schema: dict[str, Any], payload: Any) -> dict[str, Any]:
    """Check *payload* against *schema* and return the typed arguments.

    Missing required fields are reported before any other violation. Fields
    the schema does not declare are ignored and not forwarded.

    Raises:
        InvalidParamsError: *payload* is not a JSON object.
        ArgumentValidationError: for the first violation found.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise InvalidParamsError("Tool arguments must be an object")

    properties: dict[str, Any] = schema.get("properties", {})

    errors = list(Draft202012Validator(schema).iter_errors(payload))
    if errors:
        first = next((e for e in errors if e.validator == "required" and not e.path), errors[0])
        raise _to_argument_error(first, properties, payload)

    return {name: payload[name] for name in properties if name in payload}
