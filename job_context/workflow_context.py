"""Reusable workflow caller chains and GitHub's absolute job display names.

A job running inside a reusable workflow shows up in the run's job list as
``<caller job> / <job>``; matrix jobs additionally carry their matrix values,
e.g. ``deploy (prod) / build (linux, 3.12)``. The called workflow cannot see
its callers, so they are passed in through the ``workflow-context`` input::

    "build", {"os": "linux"}, "deploy"

which lists the immediate caller first and the root caller last.
"""
from __future__ import annotations

import json
from typing import Any, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .inputs import FlatJsonObject, format_issue, invalid_input_error

CHAIN_SHAPE_MESSAGE = 'Value must match the schema: "<JOB_NAME>", [<MATRIX_JSON>], ...'


class WorkflowContext(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    job: str = Field(min_length=1)
    matrix: Optional[FlatJsonObject] = None


_CHAIN_ADAPTER = TypeAdapter(List[WorkflowContext])


def parse_workflow_context_chain(raw: str, name: str = "workflow-context") -> List[WorkflowContext]:
    """Decode a ``"job", {matrix}, "job", ...`` string into a list of contexts."""
    try:
        elements = json.loads(f"[{raw}]")
    except json.JSONDecodeError as exc:
        raise invalid_input_error(name, raw, [f"Invalid JSON: {exc.msg}", CHAIN_SHAPE_MESSAGE]) from exc
    if not isinstance(elements, list):
        raise invalid_input_error(name, raw, [CHAIN_SHAPE_MESSAGE])

    chain: List[dict] = []
    while elements:
        job = elements.pop(0)
        if not isinstance(job, str):
            raise invalid_input_error(name, raw, [CHAIN_SHAPE_MESSAGE])
        matrix = None
        # null stands for "no matrix" just like a missing object
        if elements and (elements[0] is None or isinstance(elements[0], dict)):
            matrix = elements.pop(0)
        chain.append({"job": job, "matrix": matrix})

    try:
        return _CHAIN_ADAPTER.validate_python(chain)
    except PydanticValidationError as exc:
        raise invalid_input_error(name, raw, map(format_issue, exc.errors())) from exc


def _format_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def get_flat_values(value: Any) -> List[str]:
    """Leaf values of a JSON structure, depth first, in key order."""
    if isinstance(value, Mapping):
        return [leaf for item in value.values() for leaf in get_flat_values(item)]
    if isinstance(value, (list, tuple)):
        return [leaf for item in value for leaf in get_flat_values(item)]
    return [_format_scalar(value)]


def absolute_job_name(
    job: str,
    matrix: Optional[Mapping[str, Any]] = None,
    workflow_context_chain: Optional[Sequence[WorkflowContext]] = None,
) -> str:
    name = job
    if matrix:
        flat_values = get_flat_values(matrix)
        if flat_values:
            name = f"{name} ({', '.join(flat_values)})"

    for context in workflow_context_chain or ():
        name = f"{absolute_job_name(context.job, context.matrix)} / {name}"
    return name
