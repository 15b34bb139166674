"""
Basic server tests.
"""


def test_server_import():
    """Test server module import."""
    from battleship_sync.server.main import main

    assert callable(main)


def test_server_from_settings():
    """Test server configuration."""
    from battleship_sync.server.network import NetworkServer
    from battleship_sync.shared.config import ServerSettings

    settings = ServerSettings(host="127.0.0.1", port=0, auto_shutdown=True, recv_timeout=1.5, exchange_scope="shared")
    server = NetworkServer.from_settings(settings)
    assert server.auto_shutdown is True
    assert server.recv_timeout == 1.5
    assert server.exchange.scope == "shared"
    assert server.running is False
