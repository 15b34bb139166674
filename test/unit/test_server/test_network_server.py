"""
End-to-end tests for NetworkServer over real sockets.
"""

import threading

import pytest

from battleship_sync.server.network import GameResult, NetworkServer, ServerError


def test_ids_follow_connection_order(server, line_client):
    a = line_client(server)
    assert a.readline() == "1"
    b = line_client(server)
    assert b.readline() == "2"
    c = line_client(server)
    assert c.readline() == "3"


def test_sendgame_replies_ack(server, line_client):
    a = line_client(server)
    a.readline()
    assert a.request("1#P1#3,BEHM BEH") == "ACK"


def test_peer_receives_board_verbatim(server, line_client):
    a = line_client(server)
    a.readline()
    b = line_client(server)
    b.readline()
    assert a.request("1#P1#3,BEHM BEH") == "ACK"
    assert b.request("2#P2") == "BEHM BEH"


def test_recvgame_returns_boards_in_fifo_order(server, line_client):
    a = line_client(server)
    a.readline()
    b = line_client(server)
    b.readline()
    assert a.request("1#P1#2,BBEE") == "ACK"
    assert a.request("1#P1#2,HHMM") == "ACK"
    assert b.request("2#P2") == "BBEE"
    assert b.request("2#P2") == "HHMM"


def test_recvgame_blocks_until_peer_sends(server, line_client, wait):
    a = line_client(server)
    a.readline()
    b = line_client(server)
    b.readline()
    received = []
    b.send("2#P2")
    reader = threading.Thread(target=lambda: received.append(b.readline()), daemon=True)
    reader.start()
    assert wait(lambda: server.exchange.inbox(2).waiting == 1)
    assert a.request("1#P1#2,BEHM") == "ACK"
    reader.join(3)
    assert received == ["BEHM"]


def test_session_scope_returns_own_board(make_server, line_client):
    server = make_server(exchange_scope="session")
    a = line_client(server)
    a.readline()
    assert a.request("1#P1#2,BEHM") == "ACK"
    assert a.request("1#P2") == "BEHM"


def test_data_replies_ack_game_results(server, line_client, wait):
    a = line_client(server)
    a.readline()
    assert a.request("1#P3#Alice,7") == "ACK_GAME_RESULTS"
    assert a.request("1#P3#Bob#12") == "ACK_GAME_RESULTS"
    assert server.results == [GameResult(1, "Alice", 7), GameResult(1, "Bob", 12)]


@pytest.mark.parametrize(
    "bad_line",
    [
        "1#GARBAGE",
        "GARBAGE",
        "x#P1#3,BEH",
        "1#P1#three,BEHMEBEHM",
        "1#P1",
        "1#P3#Alice,seven",
        "1#P3",
        "",
    ],
)
def test_bad_lines_get_no_reply_and_keep_session(server, line_client, bad_line):
    a = line_client(server)
    a.readline()
    a.send(bad_line)
    # the next line read belongs to the following valid request
    assert a.request("1#P3#Alice,7") == "ACK_GAME_RESULTS"
    assert server.active_clients == 1


def test_end_closes_session_and_decrements(server, line_client, wait):
    a = line_client(server)
    a.readline()
    b = line_client(server)
    b.readline()
    assert wait(lambda: server.active_clients == 2)
    assert a.request("1#P0") == "ACK_END"
    assert a.readline() is None
    assert wait(lambda: server.active_clients == 1)
    assert server.running


def test_abrupt_disconnect_decrements(server, line_client, wait):
    a = line_client(server)
    a.readline()
    assert wait(lambda: server.active_clients == 1)
    a.close()
    assert wait(lambda: server.active_clients == 0)
    assert server.running


def test_closed_sessions_leave_no_exchange_state(make_server, line_client, wait):
    server = make_server(exchange_scope="session")
    for _ in range(20):
        c = line_client(server)
        cid = c.readline()
        assert c.request(f"{cid}#P1#3,BEHMEBEHM") == "ACK"
        assert c.request(f"{cid}#P2") == "BEHMEBEHM"
        assert c.request(f"{cid}#P0") == "ACK_END"
        assert wait(lambda: server.active_clients == 0)
    assert len(server.exchange) == 0
    assert server.exchange._cancelled == set()


def test_peer_scope_keeps_only_undelivered_boards(server, line_client, wait):
    for _ in range(20):
        c = line_client(server)
        cid = c.readline()
        assert c.request(f"{cid}#P1#3,BEHMEBEHM") == "ACK"
        c.close()
        assert wait(lambda: server.active_clients == 0)
    # the later client of each pair drops its partner's queue on leaving; only its own board stays
    assert len(server.exchange) == 10
    assert server.exchange._cancelled == set()
    assert all(not q._cancelled for q in server.exchange._queues.values())


def test_mismatched_client_id_is_tolerated(server, line_client):
    a = line_client(server)
    a.readline()
    assert a.request("99#P3#Alice,1") == "ACK_GAME_RESULTS"
    assert server.results[0].client_id == 1


def test_recv_timeout_sends_no_reply(make_server, line_client):
    server = make_server(recv_timeout=0.1)
    a = line_client(server)
    a.readline()
    a.send("1#P2")
    assert a.request("1#P3#Alice,7") == "ACK_GAME_RESULTS"


def test_stop_unblocks_waiting_recvgame(server, line_client, wait):
    a = line_client(server)
    a.readline()
    a.send("1#P2")
    inbox = server.exchange.inbox(1)
    assert wait(lambda: inbox.waiting == 1)
    server.stop()
    assert a.readline() is None
    assert wait(lambda: server.active_clients == 0)
    assert inbox.waiting == 0
    assert server.wait_stopped(1)


def test_auto_shutdown_after_last_client(make_server, line_client):
    server = make_server(auto_shutdown=True)
    a = line_client(server)
    a.readline()
    b = line_client(server)
    b.readline()
    a.request("1#P0")
    assert not server.wait_stopped(0.2)
    b.request("2#P0")
    assert server.wait_stopped(3)
    assert not server.running


def test_no_auto_shutdown_by_default(server, line_client, wait):
    a = line_client(server)
    a.readline()
    a.request("1#P0")
    assert wait(lambda: server.active_clients == 0)
    assert server.running


def test_restart_resets_ids(server, line_client, wait):
    a = line_client(server)
    assert a.readline() == "1"
    server.stop()
    server.port = 0
    server.start()
    b = line_client(server)
    assert b.readline() == "1"


def test_start_twice_fails(server):
    with pytest.raises(ServerError):
        server.start()


def test_stop_is_idempotent():
    server = NetworkServer("127.0.0.1", 0)
    server.stop()
    server.start()
    server.stop()
    server.stop()
    assert not server.running
