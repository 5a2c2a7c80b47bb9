"""Request parameter handling.

Converts `:name` parameter syntax to driver-specific format and shapes
request parameter maps for single-row and multi-row submission.

A request parameter is multi-valued when its value is a ``list``. Every
helper here returns a new map; the caller's map is never modified.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

# Matches :name but not ::typecast and not inside words
_PARAM_PATTERN = re.compile(r"(?<![:\w]):([a-zA-Z_]\w*)")

# Matches single-quoted string literals (with escaped quotes handled)
_STRING_LITERAL_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'")


def normalize_params(sql: str, paramstyle: str) -> str:
    """Convert :name parameters to the target param style.

    Args:
        sql: SQL string with :name parameters.
        paramstyle: Target style - 'named' (no conversion) or 'pyformat' (%(name)s).
    """
    if paramstyle == "named":
        return sql
    return _convert_to_pyformat(sql)


@lru_cache(maxsize=256)
def _convert_to_pyformat(sql: str) -> str:
    """Convert :name params to %(name)s, preserving string literals."""
    parts: list[str] = []
    last_end = 0

    for match in _STRING_LITERAL_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            parts.append(_PARAM_PATTERN.sub(r"%(\1)s", sql[last_end:start]))
        parts.append(match.group())
        last_end = end

    if last_end < len(sql):
        parts.append(_PARAM_PATTERN.sub(r"%(\1)s", sql[last_end:]))

    return "".join(parts)


def has_multi_values(params: dict[str, Any]) -> bool:
    """True if any parameter holds a non-empty list."""
    return any(isinstance(value, list) and value for value in params.values())


def is_only_multi_value_param(params: dict[str, Any], name: str) -> bool:
    """True if *name* is list-valued and no other parameter is."""
    if not isinstance(params.get(name), list):
        return False
    return not any(
        isinstance(value, list) for key, value in params.items() if key != name
    )


def max_list_size(params: dict[str, Any]) -> int:
    """Length of the longest list value, or 1 when no parameter is a list."""
    sizes = [len(value) for value in params.values() if isinstance(value, list)]
    return max([1, *sizes])


def balanced_value(value: Any, size: int) -> Any:
    """Balance one parameter value to *size* entries.

    * size 1: a list collapses to its first element (None when empty),
      anything else is returned as-is.
    * size > 1: a longer list is truncated, a shorter list is padded with its
      last element, a scalar is repeated *size* times.
    """
    if size == 1:
        if isinstance(value, list):
            return value[0] if value else None
        return value

    if isinstance(value, list):
        if len(value) >= size:
            return list(value[:size])
        if not value:
            return [None] * size
        return list(value) + [value[-1]] * (size - len(value))
    return [value] * size


def balanced_params(params: dict[str, Any], size: int) -> dict[str, Any]:
    """Copy of *params* with every value balanced to *size* entries."""
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}")
    return {name: balanced_value(value, size) for name, value in params.items()}


def truncated_params(params: dict[str, Any]) -> dict[str, Any]:
    """Copy of *params* with every list collapsed to its first element."""
    return balanced_params(params, 1)


def control_size(params: dict[str, Any], control_param: str) -> int:
    """Number of rows described by *control_param*.

    Raises:
        KeyError: If the control parameter is not present.
    """
    value = params[control_param]
    if isinstance(value, list) and value:
        return len(value)
    return 1


def expand_rows(values: dict[str, Any]) -> list[dict[str, Any]]:
    """Zip list values into aligned rows; scalars repeat on every row.

    ``{"a": [1, 2], "b": "x"}`` -> ``[{"a": 1, "b": "x"}, {"a": 2, "b": "x"}]``.
    A list shorter than the row count contributes None to the missing rows.
    """
    size = max_list_size(values)
    rows: list[dict[str, Any]] = []
    for index in range(size):
        row: dict[str, Any] = {}
        for name, value in values.items():
            if isinstance(value, list):
                row[name] = value[index] if index < len(value) else None
            else:
                row[name] = value
        rows.append(row)
    return rows
