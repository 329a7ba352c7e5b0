import socket

import pytest

from proxy_supervisor import port_allocator as port_allocator_module
from proxy_supervisor.errors import NoPortsAvailableError
from proxy_supervisor.port_allocator import PortAllocator


class FakeSocket:
    occupied: set = set()
    closed = 0

    def __init__(self, family, kind):
        assert family == socket.AF_INET
        assert kind == socket.SOCK_STREAM

    def bind(self, address):
        _host, port = address
        if port in FakeSocket.occupied:
            raise OSError(98, "Address already in use")

    def close(self):
        FakeSocket.closed += 1


@pytest.fixture
def fake_socket(monkeypatch):
    FakeSocket.occupied = set()
    FakeSocket.closed = 0
    monkeypatch.setattr(port_allocator_module.socket, "socket", FakeSocket)
    return FakeSocket


def test_returns_first_port_when_free(fake_socket):
    assert PortAllocator((8080, 8090)).find_available_port() == 8080


def test_skips_occupied_ports_in_ascending_order(fake_socket):
    fake_socket.occupied = set(range(8080, 8090))

    assert PortAllocator((8080, 8090)).find_available_port() == 8090


def test_raises_when_every_port_is_taken(fake_socket):
    fake_socket.occupied = set(range(8080, 8091))

    with pytest.raises(NoPortsAvailableError) as exc_info:
        PortAllocator((8080, 8090)).find_available_port()

    assert exc_info.value.first_port == 8080
    assert exc_info.value.last_port == 8090
    assert "8080-8090" in str(exc_info.value)


def test_probe_sockets_are_always_closed(fake_socket):
    fake_socket.occupied = {8080, 8081}

    PortAllocator((8080, 8090)).find_available_port()

    assert fake_socket.closed == 3


def test_socket_creation_failure_counts_as_unavailable(monkeypatch):
    def broken_socket(*args):
        raise OSError("too many open files")

    monkeypatch.setattr(port_allocator_module.socket, "socket", broken_socket)

    assert PortAllocator((8080, 8080)).is_port_available(8080) is False


def test_candidate_ports_cover_closed_range():
    assert list(PortAllocator((8080, 8083)).candidate_ports()) == [8080, 8081, 8082, 8083]


def test_rejects_inverted_range():
    with pytest.raises(ValueError):
        PortAllocator((8090, 8080))


def test_detects_real_listener():
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        listener.bind(("", 0))
        listener.listen(1)
        port = listener.getsockname()[1]

        assert PortAllocator((port, port)).is_port_available(port) is False
    finally:
        listener.close()
