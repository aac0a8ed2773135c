"""Find free local ports and build docker port bindings for them."""

from __future__ import annotations

import socket
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

_LOCK = threading.Lock()


@dataclass(frozen=True)
class PortBinding:
    """A host address and port that a container port is published on."""

    host_ip: str = ""
    host_port: str = ""


class Listeners(list[socket.socket]):
    """Open listening sockets that reserve ports until closed."""

    def close_all(self) -> None:
        """Close every listener."""
        for listener in self:
            listener.close()


def open_listener(port: int) -> socket.socket:
    """Open a TCP listener on 127.0.0.1; port 0 picks a free port."""
    with _LOCK:
        return socket.create_server(("127.0.0.1", port))


def get_port(port: int) -> tuple[PortBinding, socket.socket]:
    """Reserve ``port`` (or a free one if 0) and return its binding and open listener.

    The listener is left open so several ports can be reserved before any is used.
    """
    listener = open_listener(port)
    bound_port = listener.getsockname()[1]
    return PortBinding(host_ip="0.0.0.0", host_port=str(bound_port)), listener


def generate_port_bindings(
    pairs: Mapping[str, Sequence[PortBinding]],
) -> tuple[dict[str, list[PortBinding]], Listeners]:
    """Reserve a local port for every container port in ``pairs``.

    A port with no binding gets a free port; otherwise its first binding's host
    port is used. On failure every listener opened so far is closed.
    """
    bindings: dict[str, list[PortBinding]] = {}
    listeners = Listeners()
    try:
        for container_port, requested in pairs.items():
            host_port = int(requested[0].host_port) if requested else 0
            binding, listener = get_port(host_port)
            listeners.append(listener)
            bindings[container_port] = [binding]
    except BaseException:
        listeners.close_all()
        raise
    return bindings, listeners