"""Conversion between simple key/value mappings and CloudFormation list form.

CloudFormation takes parameters as ``[{"ParameterKey": ..., "ParameterValue":
...}]`` and tags as ``[{"Key": ..., "Value": ...}]``. Callers usually have a
plain dict (loaded from a YAML file, or built from ``KEY=VALUE`` overrides),
so everything here accepts either form.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .exceptions import UsageError


class _UsePreviousValue:
    """Marker: keep the parameter's current value on update."""

    _instance: _UsePreviousValue | None = None

    def __new__(cls) -> _UsePreviousValue:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "USE_PREVIOUS_VALUE"


USE_PREVIOUS_VALUE = _UsePreviousValue()

ParameterInput = Mapping[str, Any] | Sequence[Mapping[str, Any]] | None


def is_use_previous_value(value: Any) -> bool:
    """True if ``value`` asks CloudFormation to keep the current value."""
    if value is USE_PREVIOUS_VALUE:
        return True
    if isinstance(value, Mapping):
        return bool(value.get("UsePreviousValue") or value.get("use_previous_value"))
    return False


def format_value(value: Any) -> str:
    """Render a parameter/tag value the way CloudFormation expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(v) for v in value)
    return str(value)


def _is_remote_form(values: Any) -> bool:
    return isinstance(values, Sequence) and not isinstance(values, (str, bytes))


def to_remote_form(parameters: ParameterInput) -> list[dict[str, Any]]:
    """
    Convert parameters to CloudFormation's list-of-structs form.

    Args:
        parameters: Mapping of key to value, or a list already in remote form

    Returns:
        List of ``ParameterKey``/``ParameterValue`` (or ``UsePreviousValue``)
        dicts. A list input is returned unchanged.
    """
    if parameters is None:
        return []
    if _is_remote_form(parameters):
        return parameters  # type: ignore[return-value]

    result: list[dict[str, Any]] = []
    for key, value in parameters.items():  # type: ignore[union-attr]
        if is_use_previous_value(value):
            result.append({"ParameterKey": key, "UsePreviousValue": True})
        else:
            result.append({"ParameterKey": key, "ParameterValue": format_value(value)})
    return result


def from_remote_form(parameters: ParameterInput) -> dict[str, Any]:
    """
    Convert CloudFormation parameters back into a plain mapping.

    ``UsePreviousValue`` entries map to ``USE_PREVIOUS_VALUE``.
    """
    if parameters is None:
        return {}
    if not _is_remote_form(parameters):
        return dict(parameters)  # type: ignore[arg-type]

    result: dict[str, Any] = {}
    for param in parameters:
        key = param["ParameterKey"]
        if param.get("UsePreviousValue"):
            result[key] = USE_PREVIOUS_VALUE
        else:
            result[key] = param.get("ParameterValue")
    return result


def merge(file_values: ParameterInput, override_values: ParameterInput) -> dict[str, Any]:
    """
    Merge two parameter sets; ``override_values`` wins on key collision.

    Either argument may be a mapping or a list in remote form.
    """
    merged = from_remote_form(file_values)
    merged.update(from_remote_form(override_values))
    return merged


def tags_to_remote_form(tags: ParameterInput) -> list[dict[str, str]]:
    """Convert tags to CloudFormation's ``Key``/``Value`` list form."""
    if tags is None:
        return []
    if _is_remote_form(tags):
        return tags  # type: ignore[return-value]
    return [{"Key": key, "Value": format_value(value)} for key, value in tags.items()]  # type: ignore[union-attr]


def tags_from_remote_form(tags: ParameterInput) -> dict[str, Any]:
    """Convert CloudFormation tags back into a plain mapping."""
    if tags is None:
        return {}
    if not _is_remote_form(tags):
        return dict(tags)  # type: ignore[arg-type]
    return {tag["Key"]: tag["Value"] for tag in tags}


def parse_overrides(overrides: Iterable[str]) -> dict[str, str]:
    """
    Parse ``KEY=VALUE`` strings (from the command line) into a mapping.

    Raises:
        UsageError: If an entry has no ``=`` or an empty key
    """
    result: dict[str, str] = {}
    for item in overrides:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise UsageError(f"Invalid override {item!r}: expected KEY=VALUE")
        result[key] = value
    return result
