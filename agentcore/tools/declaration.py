"""Tool declarations and argument validation.

A declaration's `parameters` is a JSON-Schema-like structure (`type`,
`properties`, `required`, nested `items`/`properties`, `enum`, `default`).
It is compiled once into a pydantic model that validates model-supplied
arguments before a tool runs.
"""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from agentcore.errors import ToolValidationError
from agentcore.platform.observability import get_logger

logger = get_logger(__name__)

_JSON_TYPES: dict[str, Any] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "object": dict[str, Any],
    "array": list[Any],
    "null": type(None),
}


@dataclass(frozen=True)
class FunctionDeclaration:
    """Provider-neutral description of a tool offered to a model.

    Attributes:
        name: Tool name the model calls
        description: What the tool does
        parameters: JSON-Schema-like object schema, or None for no arguments
    """

    name: str
    description: str = ""
    parameters: dict[str, Any] | None = None


def _model_name(name: str) -> str:
    return "".join(chunk.title() for chunk in name.replace("-", "_").split("_")) + "Args"


def _python_type(name: str, schema: dict[str, Any]) -> Any:
    """Resolve a JSON schema node to a Python type annotation.

    Args:
        name: Name used for generated nested models
        schema: Schema node

    Returns:
        A type usable in a pydantic field definition
    """
    if "enum" in schema and schema["enum"]:
        return Literal[tuple(schema["enum"])]

    json_type = schema.get("type")
    if isinstance(json_type, list):
        members = [_python_type(name, {**schema, "type": t}) for t in json_type]
        union = members[0]
        for member in members[1:]:
            union = union | member
        return union
    if json_type is None:
        if "properties" in schema:
            json_type = "object"
        elif "items" in schema:
            json_type = "array"
        else:
            return Any

    if json_type == "object" and schema.get("properties"):
        return build_args_model(name, schema)
    if json_type == "array" and isinstance(schema.get("items"), dict):
        return list[_python_type(f"{name}_item", schema["items"])]
    if json_type not in _JSON_TYPES:
        logger.warning("unknown_schema_type", field=name, json_type=json_type)
        return Any
    return _JSON_TYPES[json_type]


def build_args_model(name: str, schema: dict[str, Any] | None) -> type[BaseModel] | None:
    """Build a pydantic model from an object schema.

    Property names that are not valid Python identifiers, or that would
    shadow pydantic attributes, are stored under a generated field name with
    the original name as alias.

    Args:
        name: Tool (or nested object) name, used for the model name
        schema: Object schema with `properties` and optional `required`

    Returns:
        Model class, or None when the schema declares no properties
    """
    if not isinstance(schema, dict) or not schema.get("properties"):
        return None

    required = set(schema.get("required", []))
    fields: dict[str, Any] = {}
    for index, (prop_name, info) in enumerate(schema["properties"].items()):
        info = info if isinstance(info, dict) else {}
        field_type = _python_type(f"{name}_{prop_name}", info)
        description = info.get("description", "")

        if prop_name in required:
            default = ...
        else:
            default = info.get("default")
            field_type = field_type | None

        field_name = prop_name
        if not prop_name.isidentifier() or prop_name.startswith("_") or hasattr(BaseModel, prop_name):
            field_name = f"field_{index}"
        fields[field_name] = (
            field_type,
            Field(default=default, alias=prop_name, description=description),
        )

    return create_model(  # type: ignore[call-overload]
        _model_name(name),
        __config__=ConfigDict(populate_by_name=True),
        **fields,
    )


def validate_args(
    tool_name: str,
    args_model: type[BaseModel] | None,
    args: Any,
    *,
    as_json: bool = True,
) -> dict[str, Any]:
    """Validate tool arguments against a compiled declaration.

    Args:
        tool_name: Tool name, used in error messages
        args_model: Compiled model, or None when the tool takes free-form args
        args: Arguments supplied by the model
        as_json: Return plain JSON values; otherwise return parsed Python objects

    Returns:
        The validated arguments that were supplied, keyed by their declared names

    Raises:
        ToolValidationError: If the arguments do not match the declaration
    """
    if args_model is None:
        if args is None:
            return {}
        if not isinstance(args, dict):
            raise ToolValidationError(tool_name, [f"arguments: expected an object, got {type(args).__name__}"])
        return args

    try:
        validated = args_model.model_validate(args if args is not None else {})
    except ValidationError as e:
        details = [
            f"{'.'.join(str(loc) for loc in error['loc']) or 'arguments'}: {error['msg']}"
            for error in e.errors()
        ]
        raise ToolValidationError(tool_name, details) from e

    if as_json:
        return validated.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return {
        (field.alias or field_name): getattr(validated, field_name)
        for field_name, field in type(validated).model_fields.items()
        if field_name in validated.model_fields_set
    }
