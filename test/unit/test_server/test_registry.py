"""
Tests for client id assignment and active-session counting.
"""

import threading

from battleship_sync.server.registry import ConnectionRegistry


def test_ids_start_at_one_and_increase():
    registry = ConnectionRegistry()
    assert [registry.next_id() for _ in range(3)] == [1, 2, 3]


def test_connected_and_disconnected_return_new_count():
    registry = ConnectionRegistry()
    assert registry.client_connected() == 1
    assert registry.client_connected() == 2
    assert registry.client_disconnected() == 1
    assert registry.client_disconnected() == 0
    assert registry.active_count == 0


def test_count_never_goes_negative():
    registry = ConnectionRegistry()
    assert registry.client_disconnected() == 0
    assert registry.active_count == 0


def test_reset():
    registry = ConnectionRegistry()
    registry.next_id()
    registry.client_connected()
    registry.reset()
    assert registry.next_id() == 1
    assert registry.active_count == 0


def test_concurrent_ids_are_unique():
    registry = ConnectionRegistry()
    ids = []
    lock = threading.Lock()

    def worker():
        for _ in range(200):
            i = registry.next_id()
            with lock:
                ids.append(i)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(ids) == list(range(1, 1601))
