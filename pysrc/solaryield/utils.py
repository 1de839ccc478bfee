"""Attribute-style access to JSON parameter trees."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any


def dict_to_namespace(value: dict[str, Any] | list | Any) -> SimpleNamespace | list | Any:
    """
    Wrap a parsed JSON tree so sections read as attributes.

    ``{"Simulation": {"times_per_hour": 4}}`` becomes an object on which
    ``params.Simulation.times_per_hour`` is 4. Objects nested in lists are
    wrapped too; numbers, strings and booleans pass through.
    """
    if isinstance(value, dict):
        return SimpleNamespace(**{key: dict_to_namespace(item) for key, item in value.items()})
    if isinstance(value, list):
        return [dict_to_namespace(item) for item in value]
    return value


def namespace_to_dict(value: SimpleNamespace | Any) -> dict | list | Any:
    """Plain JSON-ready tree from a :func:`dict_to_namespace` result or any branch of one."""
    if isinstance(value, SimpleNamespace):
        return {key: namespace_to_dict(item) for key, item in vars(value).items()}
    if isinstance(value, list):
        return [namespace_to_dict(item) for item in value]
    return value
