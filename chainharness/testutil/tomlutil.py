"""Helpers for modifying decoded TOML documents."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

Toml = dict[str, Any]


def recursive_modify(config: dict[str, Any], modifications: Mapping[str, Any]) -> None:
    """Apply ``modifications`` to ``config`` in place.

    Mapping values are merged into the matching table, which is created when it
    is missing or not a table; any other value replaces the existing one.
    """
    for key, value in modifications.items():
        if isinstance(value, Mapping):
            section = config.get(key)
            if not isinstance(section, dict):
                section = {}
            recursive_modify(section, value)
            config[key] = section
        else:
            config[key] = value