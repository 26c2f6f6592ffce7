"""Input validation against a tool's declared input schema (JSON Schema)."""

import copy
from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from relay_tools.exceptions import ConfigurationError, ToolValidationError
from relay_tools.schemas import ToolConfig


def normalize_input_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Return a Draft 7 object schema for a tool's inputSchema.

    Accepts either a full object schema or a bare ``properties`` map, and
    folds per-property ``required: true`` flags into the top-level
    ``required`` array.
    """
    if not schema:
        return {"type": "object"}

    schema = copy.deepcopy(schema)
    if "properties" not in schema and schema.get("type") != "object":
        schema = {"type": "object", "properties": schema}
    schema.setdefault("type", "object")

    required = list(schema.get("required") or [])
    for name, prop in (schema.get("properties") or {}).items():
        if isinstance(prop, dict) and isinstance(prop.get("required"), bool):
            if prop.pop("required") and name not in required:
                required.append(name)
    if required:
        schema["required"] = required
    return schema


def check_input_schema(config: ToolConfig) -> None:
    """Fail fast on an invalid inputSchema (registration time).

    Raises:
        ConfigurationError: Schema is not valid JSON Schema
    """
    try:
        Draft7Validator.check_schema(normalize_input_schema(config.input_schema))
    except SchemaError as e:
        raise ConfigurationError(
            f"Tool '{config.id}' has an invalid inputSchema: {e.message}",
            details={"path": "/".join(str(p) for p in e.path)},
        ) from e


def validate_input(config: ToolConfig, params: Any) -> dict[str, Any]:
    """Validate input parameters for a tool.

    Args:
        config: Tool configuration
        params: Raw input parameters from the caller

    Returns:
        The validated parameters

    Raises:
        ToolValidationError: One or more parameters are missing or malformed
    """
    if not isinstance(params, dict):
        raise ToolValidationError(
            "Input validation failed.",
            details=[{"path": "/", "message": "parameters must be a JSON object"}],
        )

    validator = Draft7Validator(normalize_input_schema(config.input_schema))
    errors = sorted(validator.iter_errors(params), key=lambda e: [str(p) for p in e.path])
    if errors:
        raise ToolValidationError(
            "Input validation failed.",
            details=[
                {
                    "path": "/" + "/".join(str(p) for p in error.path),
                    "message": error.message,
                }
                for error in errors
            ],
        )
    return params
