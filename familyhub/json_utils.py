"""Helpers for moving records between Python (snake_case) and stored JSON (camelCase)."""

import re
from typing import Any, Literal

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def snake_to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def camel_to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def convert_keys(
    data: Any, direction: Literal["snake_to_camel", "camel_to_snake"]
) -> Any:
    """
    Recursively converts dictionary keys of ``data``.

    Lists are walked element by element; scalars are returned unchanged.
    """
    if direction == "snake_to_camel":
        convert = snake_to_camel
    elif direction == "camel_to_snake":
        convert = camel_to_snake
    else:
        raise ValueError(f"Unknown direction: {direction}")

    if isinstance(data, dict):
        return {
            convert(key) if isinstance(key, str) else key: convert_keys(value, direction)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [convert_keys(item, direction) for item in data]
    return data


def drop_none(data: dict) -> dict:
    """Returns a copy of ``data`` without keys whose value is None."""
    return {key: value for key, value in data.items() if value is not None}
