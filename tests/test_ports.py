import socket

import pytest

from chainharness.docker.ports import (
    Listeners,
    PortBinding,
    generate_port_bindings,
    get_port,
    open_listener,
)


def test_open_listener_accepts_connections():
    listener = open_listener(0)
    try:
        host, port = listener.getsockname()
        assert host == "127.0.0.1"
        assert port > 0
        with socket.create_connection((host, port), timeout=2):
            conn, _ = listener.accept()
            conn.close()
    finally:
        listener.close()


def test_get_port_binding_matches_listener():
    binding, listener = get_port(0)
    try:
        assert binding.host_ip == "0.0.0.0"
        assert binding.host_port == str(listener.getsockname()[1])
    finally:
        listener.close()


def test_get_port_in_use_raises():
    busy = open_listener(0)
    try:
        with pytest.raises(OSError):
            get_port(busy.getsockname()[1])
    finally:
        busy.close()


def test_generate_port_bindings_random_ports():
    pairs = {"26657/tcp": [], "9090/tcp": []}
    bindings, listeners = generate_port_bindings(pairs)
    try:
        assert set(bindings) == set(pairs)
        assert all(len(v) == 1 for v in bindings.values())
        ports = {v[0].host_port for v in bindings.values()}
        assert len(ports) == 2
        assert ports == {str(listener.getsockname()[1]) for listener in listeners}
    finally:
        listeners.close_all()


def test_generate_port_bindings_uses_requested_port():
    free, probe = get_port(0)
    probe.close()
    bindings, listeners = generate_port_bindings({"80/tcp": [PortBinding("0.0.0.0", free.host_port)]})
    try:
        assert bindings == {"80/tcp": [PortBinding("0.0.0.0", free.host_port)]}
    finally:
        listeners.close_all()


def test_generate_port_bindings_invalid_port():
    with pytest.raises(ValueError):
        generate_port_bindings({"80/tcp": [PortBinding("0.0.0.0", "not-a-port")]})


def test_generate_port_bindings_port_in_use():
    busy = open_listener(0)
    try:
        with pytest.raises(OSError):
            generate_port_bindings({"80/tcp": [PortBinding("0.0.0.0", str(busy.getsockname()[1]))]})
    finally:
        busy.close()


def test_close_all_closes_every_listener():
    listeners = Listeners([open_listener(0), open_listener(0)])
    listeners.close_all()
    assert [listener.fileno() for listener in listeners] == [-1, -1]