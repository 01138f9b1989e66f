"""Action input access with pydantic validation and a YAML fallback decode.

Inputs arrive as plain strings (``INPUT_<NAME>`` environment variables). A
schema promotes the string into a typed value; when the schema wants a list or
an object and only got the raw string, the string is decoded as YAML (which
also accepts JSON) and validated again.
"""
from __future__ import annotations

import os
from typing import Any, Dict, Iterable, Optional, Union

import yaml
from pydantic import StrictBool, StrictFloat, StrictInt, StrictStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

JsonScalar = Union[StrictStr, StrictBool, StrictInt, StrictFloat, None]
FlatJsonObject = Dict[str, JsonScalar]

# pydantic error types meaning "expected a structured value, got something else"
STRUCTURED_ERROR_TYPES = frozenset(
    {
        "list_type",
        "tuple_type",
        "set_type",
        "frozen_set_type",
        "dict_type",
        "model_type",
        "model_attributes_type",
        "dataclass_type",
        "iterable_type",
    }
)


def input_env_name(name: str) -> str:
    return "INPUT_" + name.replace(" ", "_").upper()


def format_issue(issue: Dict[str, Any]) -> str:
    path = ".".join(str(part) for part in issue.get("loc", ()))
    if not path:
        return issue["msg"]
    return f"{path}: {issue['msg']}"


def invalid_input_error(name: str, raw: str, issues: Iterable[str]) -> ValidationError:
    lines = [f"Invalid value for input '{name}': {raw}"]
    lines.extend(f"  - {issue}" for issue in issues)
    return ValidationError("\n".join(lines))


def _is_plain_string_mismatch(exc: PydanticValidationError, raw: str) -> bool:
    issues = exc.errors()
    return bool(issues) and all(
        issue["type"] in STRUCTURED_ERROR_TYPES and issue.get("input") == raw for issue in issues
    )


def validate_input(name: str, raw: str, schema: Any) -> Any:
    """Validate ``raw`` against ``schema``, decoding it as YAML when a structure is expected."""
    adapter = schema if isinstance(schema, TypeAdapter) else TypeAdapter(schema)
    try:
        return adapter.validate_python(raw)
    except PydanticValidationError as exc:
        if not _is_plain_string_mismatch(exc, raw):
            raise invalid_input_error(name, raw, map(format_issue, exc.errors())) from exc

    try:
        decoded = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        reason = " ".join(str(exc).split())
        raise invalid_input_error(name, raw, [f"Invalid YAML: {reason}"]) from exc

    try:
        return adapter.validate_python(decoded)
    except PydanticValidationError as exc:
        raise invalid_input_error(name, raw, map(format_issue, exc.errors())) from exc


def get_input(
    name: str,
    schema: Any = None,
    *,
    required: bool = False,
    trim_whitespace: bool = True,
) -> Optional[Any]:
    """Return the value of action input ``name``.

    Empty inputs yield ``None`` whatever the schema. Without a schema the
    (trimmed) string is returned as-is.
    """
    raw = os.environ.get(input_env_name(name), "")
    if trim_whitespace:
        raw = raw.strip()
    if not raw.strip():
        if required:
            raise ValidationError(f"Input required and not supplied: {name}")
        return None
    if schema is None:
        return raw
    return validate_input(name, raw, schema)
