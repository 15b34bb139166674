"""
Pytest configuration and shared fixtures for Battleship Sync.
"""

import os
import socket
import sys
import time

import pytest

# Add src to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from battleship_sync.server.network import NetworkServer  # noqa: E402


class LineClient:
    """Raw line-oriented socket used to speak the protocol directly."""

    def __init__(self, address, timeout=5.0):
        self.sock = socket.create_connection(address, timeout=timeout)
        self.reader = self.sock.makefile("r", encoding="utf-8", newline="\n")

    def send(self, text):
        self.sock.sendall((text + "\n").encode("utf-8"))

    def readline(self):
        """Next line without the newline, or None once the server closed the connection."""
        line = self.reader.readline()
        if not line:
            return None
        return line.rstrip("\n")

    def request(self, text):
        self.send(text)
        return self.readline()

    def close(self):
        self.reader.close()
        self.sock.close()


def wait_until(predicate, timeout=3.0, interval=0.01):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def make_server():
    """Factory starting servers on an ephemeral port; all are stopped at teardown."""
    servers = []

    def _make(**kwargs):
        server = NetworkServer("127.0.0.1", 0, **kwargs)
        server.start()
        servers.append(server)
        return server

    yield _make
    for server in servers:
        server.stop()


@pytest.fixture
def server(make_server):
    return make_server()


@pytest.fixture
def line_client():
    """Factory for raw protocol clients; all are closed at teardown."""
    clients = []

    def _connect(server):
        client = LineClient(server.address)
        clients.append(client)
        return client

    yield _connect
    for client in clients:
        client.close()


@pytest.fixture
def wait():
    return wait_until


@pytest.fixture
def sample_board():
    """A 3x3 board string."""
    return "BEHMEBEHM"
