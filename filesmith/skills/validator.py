"""Parameter validation against a skill's :class:`ParamDef` schema.

:func:`validate_params` is pure: it either returns a complete, new parameter
map (defaults filled in, schema order) or raises
:class:`ParamValidationError` for the first offending field.  It never
returns a partially validated map.
"""

from __future__ import annotations

import math
from typing import Any

from filesmith.skills.models import ParamDef, ParamType
from filesmith.utils.exceptions import ParamValidationError


def validate_params(
    schema: list[ParamDef],
    supplied: dict[str, Any] | None,
) -> dict[str, Any]:
    supplied = supplied or {}

    known = {p.name for p in schema}
    for key in supplied:
        if key not in known:
            raise ParamValidationError(key, "unknown parameter")

    validated: dict[str, Any] = {}
    for param in schema:
        if param.name in supplied:
            value = supplied[param.name]
        elif param.default is not None:
            value = param.default
        else:
            raise ParamValidationError(param.name, "required parameter is missing")

        validated[param.name] = _check(param, value)

    return validated


def _check(param: ParamDef, value: Any) -> Any:
    if param.type == ParamType.NUMBER:
        # bool is a subclass of int; reject it explicitly.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ParamValidationError(param.name, "must be a number")
        if not math.isfinite(value):
            raise ParamValidationError(param.name, "must be a finite number")
        if param.min is not None and value < param.min:
            raise ParamValidationError(
                param.name, f"{value} is below minimum {_fmt(param.min)}"
            )
        if param.max is not None and value > param.max:
            raise ParamValidationError(
                param.name, f"{value} is above maximum {_fmt(param.max)}"
            )
        return value

    if param.type == ParamType.STRING:
        if not isinstance(value, str):
            raise ParamValidationError(param.name, "must be a string")
        return value

    if param.type == ParamType.BOOLEAN:
        if not isinstance(value, bool):
            raise ParamValidationError(param.name, "must be a boolean")
        return value

    if param.type == ParamType.ENUM:
        if not isinstance(value, str) or value not in param.options:
            raise ParamValidationError(
                param.name, f"must be one of {param.options}"
            )
        return value

    raise ParamValidationError(param.name, f"unsupported parameter type {param.type}")


def _fmt(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)
