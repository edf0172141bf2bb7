import json

import pytest
from hanabi_session.game_logic import messages as m
from hanabi_session.game_logic.errors import ProtocolViolation
from hanabi_session.game_logic.match import Match, MatchState
from hanabi_session.server.server import SocketTransport, decode, encode


class FakeConn:
    def __init__(self, broken=False):
        self.broken = broken
        self.sent = []
        self.shut = False

    def sendall(self, data: bytes):
        if self.broken:
            raise ConnectionResetError("peer went away")
        self.sent.extend(json.loads(line) for line in data.decode().splitlines())

    def shutdown(self, how):
        self.shut = True

    def types(self):
        return [msg["type"] for msg in self.sent]


def seated(names=("P1", "P2")):
    transport = SocketTransport()
    match = Match(transport)
    transport.match = match
    players, conns = [], []
    for name in names:
        player = match.join(name)
        conn = FakeConn()
        transport.clients[player] = conn
        players.append(player)
        conns.append(conn)
    return transport, match, players, conns


def test_encode_decode():
    assert encode({"type": "READY"}) == b'{"type": "READY"}\n'
    assert decode('{"type": "QUIT"}\n') == {"type": "QUIT"}
    with pytest.raises(ProtocolViolation):
        decode("{nope")
    with pytest.raises(ProtocolViolation):
        decode("[1, 2]")


def test_ready_lines_start_the_match():
    transport, match, (p1, p2), (c1, c2) = seated()
    assert transport.handle_line(p1, c1, '{"type": "READY"}') is True
    assert transport.handle_line(p2, c2, '{"type": "READY"}') is True
    assert match.state == MatchState.IN_PROGRESS
    assert c1.types()[0] == m.MATCH_STARTED
    assert c1.types()[-1] == m.TURN_STARTED
    assert m.TURN_STARTED not in c2.types()
    # each player only sees the other hand
    assert [msg["player"] for msg in c1.sent if msg["type"] == m.HAND_UPDATE] == [p2.number]


def test_action_line_reaches_the_match():
    transport, match, (p1, p2), (c1, c2) = seated()
    for p, c in ((p1, c1), (p2, c2)):
        transport.handle_line(p, c, '{"type": "READY"}')
    line = json.dumps({"type": "GIVE_NUMBER_HINT", "target": p2.number, "number": 1})
    transport.handle_line(p1, c1, line)
    assert match.current_player is p2
    assert match.resources.hint_tokens == 7
    assert c2.types()[-1] == m.TURN_STARTED


def test_bad_lines_get_an_error_and_keep_the_connection():
    transport, match, (p1, _), (c1, c2) = seated()
    assert transport.handle_line(p1, c1, "not json") is True
    assert transport.handle_line(p1, c1, '{"type": "DANCE"}') is True
    assert c1.types() == [m.ERROR, m.ERROR]
    assert c2.sent == []


def test_quit_line_ends_the_connection_loop():
    transport, _, (p1, _), (c1, _) = seated()
    assert transport.handle_line(p1, c1, '{"type": "QUIT"}') is False


def test_broadcast_skips_excluded_and_drops_dead_connections():
    transport, _, (p1, p2, p3), (c1, c2, c3) = seated(("P1", "P2", "P3"))
    c3.broken = True
    transport.broadcast(m.deck_remaining(3), excluding=(p1,))
    assert c1.sent == []
    assert c2.sent == [m.deck_remaining(3)]
    assert p3 not in transport.clients
    assert c3.shut
    transport.send_to(p3, m.deck_remaining(2))  # gone, nothing happens
