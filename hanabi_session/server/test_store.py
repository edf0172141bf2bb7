import json

import redis
from hanabi_session import config
from hanabi_session.game_logic.match import Match, MatchState, Transport
from hanabi_session.game_logic.messages import Action
from hanabi_session.server.store import SnapshotStore, LATEST_KEY


class FakeRedis:
    def __init__(self, fail_with=None):
        self.data = {}
        self.fail_with = fail_with

    def set(self, key, value):
        if self.fail_with:
            raise self.fail_with
        self.data[key] = value

    def get(self, key):
        if self.fail_with:
            raise self.fail_with
        return self.data.get(key)


class FakeSentinel:
    def __init__(self, *clients):
        self.clients = list(clients)
        self.calls = []

    def master_for(self, name, **kwargs):
        self.calls.append((name, kwargs))
        return self.clients.pop(0)


SNAP = {"game_id": "g1", "tokens": 8}


def test_save_and_load():
    client = FakeRedis()
    sentinel = FakeSentinel(client)
    store = SnapshotStore(sentinel, "mymaster")
    assert store.save(SNAP) is True
    assert json.loads(client.data["hanabi:state:g1"]) == SNAP
    assert json.loads(client.data[LATEST_KEY]) == SNAP
    assert store.load("g1") == SNAP
    assert store.load("other") is None
    assert sentinel.calls[0] == ("mymaster", {"socket_timeout": 0.1, "decode_responses": True})


def test_save_rediscovers_master_once():
    demoted = FakeRedis(fail_with=redis.exceptions.ReadOnlyError("readonly"))
    fresh = FakeRedis()
    store = SnapshotStore(FakeSentinel(demoted, fresh), "mymaster")
    assert store.save(SNAP) is True
    assert store.r is fresh
    assert "hanabi:state:g1" in fresh.data


def test_save_gives_up_after_retry():
    down = redis.exceptions.ConnectionError("down")
    store = SnapshotStore(FakeSentinel(FakeRedis(down), FakeRedis(down), FakeRedis(down)), "m")
    assert store.save(SNAP) is False


def test_load_failure_returns_none():
    store = SnapshotStore(FakeSentinel(FakeRedis(redis.exceptions.ConnectionError("down"))), "m")
    assert store.load("g1") is None


def test_no_sentinel_nodes_means_no_store(monkeypatch):
    monkeypatch.setattr(config, "SENTINEL_NODES", [])
    assert SnapshotStore.from_config() is None


def test_sentinel_endpoints_parsing():
    assert config.sentinel_endpoints(["sentinel:26379", " other:1 "]) == [("sentinel", 26379), ("other", 1)]


def test_save_timeout_is_logged_not_raised():
    slow = redis.exceptions.TimeoutError("Timeout reading from socket")
    store = SnapshotStore(FakeSentinel(FakeRedis(slow), FakeRedis(slow), FakeRedis(slow)), "m")
    assert store.save(SNAP) is False


def test_save_other_redis_errors_return_false():
    store = SnapshotStore(FakeSentinel(FakeRedis(redis.exceptions.ResponseError("OOM"))), "m")
    assert store.save(SNAP) is False


class SilentTransport(Transport):
    def send_to(self, player, message):
        pass

    def broadcast(self, message, excluding=()):
        pass


def test_unreachable_redis_does_not_break_the_match():
    slow = redis.exceptions.TimeoutError("Timeout reading from socket")
    store = SnapshotStore(FakeSentinel(*[FakeRedis(slow) for _ in range(10)]), "m")
    match = Match(SilentTransport(), store=store)
    p1, p2 = match.join("P1"), match.join("P2")
    match.ready(p1)
    match.ready(p2)
    assert match.state == MatchState.IN_PROGRESS
    assert match.submit_action(p1, Action.number_hint(p2.number, 1)) is True
    assert match.current_player is p2
