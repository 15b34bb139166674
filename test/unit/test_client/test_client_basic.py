"""
Basic client tests.
"""


def test_client_import():
    """Test client module import."""
    from battleship_sync.client.main import main

    assert callable(main)


def test_client_not_connected():
    from battleship_sync.client.network import NetworkClient

    client = NetworkClient("127.0.0.1", 0)
    assert client.connected is False
    assert client.client_id is None
    # disconnecting an unconnected client is a no-op
    client.disconnect()
