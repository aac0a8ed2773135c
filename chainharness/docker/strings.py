"""String helpers for docker container names, host names and ports."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_INVALID_CONTAINER_CHARS = re.compile(r"[^a-zA-Z0-9_.-]")
_MAX_HOST_NAME_LENGTH = 64
_HOST_NAME_KEEP = 30


def _join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def get_host_port(container: Mapping[str, Any], port_id: str) -> str:
    """Return the first published "host:port" for ``port_id`` from container inspect JSON.

    Returns an empty string when the port is not published.
    """
    settings = container.get("NetworkSettings")
    if not settings:
        return ""
    bindings = (settings.get("Ports") or {}).get(port_id)
    if not bindings:
        return ""
    first = bindings[0]
    return _join_host_port(first.get("HostIp", ""), first.get("HostPort", ""))


def condense_host_name(name: str) -> str:
    """Shorten names of 64 characters or more by cutting out the middle."""
    if len(name) < _MAX_HOST_NAME_LENGTH:
        return name
    # "_._" rather than "..." keeps the name resolvable by other hosts.
    return name[:_HOST_NAME_KEEP] + "_._" + name[-_HOST_NAME_KEEP:]


def sanitize_container_name(name: str) -> str:
    """Replace characters not allowed in container names with underscores."""
    return _INVALID_CONTAINER_CHARS.sub("_", name)