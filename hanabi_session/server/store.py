import json
import logging

import redis
from redis.sentinel import Sentinel

from hanabi_session import config

logger = logging.getLogger(__name__)

STATE_KEY = "hanabi:state:{game_id}"
LATEST_KEY = "hanabi:state"


class SnapshotStore():
    '''Keeps match snapshots in redis so a crashed server can pick a game up again.
    Talks to the current master through sentinel and rediscovers it when the
    master changes under us.'''

    def __init__(self, sentinel, master_name: str, socket_timeout: float = 0.1):
        self.sentinel = sentinel
        self.master_name = master_name
        self.socket_timeout = socket_timeout
        self.r = self.get_master_client()

    @classmethod
    def from_config(cls):
        if not config.SENTINEL_NODES:
            return None
        endpoints = config.sentinel_endpoints()
        sent = Sentinel(endpoints, socket_timeout=config.REDIS_SOCKET_TIMEOUT)
        store = cls(sent, config.SENTINEL_MASTER, config.REDIS_SOCKET_TIMEOUT)
        logger.info("Connected to Redis master via Sentinel '%s' at %s", config.SENTINEL_MASTER, endpoints)
        return store

    def get_master_client(self):
        """
        Return a fresh Redis client pointing to the current master.
        """
        return self.sentinel.master_for(
            self.master_name,
            socket_timeout=self.socket_timeout,
            decode_responses=True
        )

    def save(self, snapshot: dict) -> bool:
        snap_json = json.dumps(snapshot)
        state_key = STATE_KEY.format(game_id=snapshot["game_id"])
        for attempt in range(2):
            try:
                self.r.set(state_key, snap_json)
                self.r.set(LATEST_KEY, snap_json)
                return True
            except (redis.exceptions.ReadOnlyError, redis.exceptions.ConnectionError,
                    redis.exceptions.TimeoutError) as e:
                # Master has been demoted or is unreachable, re-fetch the new one
                logger.warning("Master changed, re-discovering via Sentinel: %s", e)
                self.r = self.get_master_client()
            except redis.exceptions.RedisError as e:
                logger.error("Could not write snapshot of game %s: %s", snapshot["game_id"], e)
                return False
        logger.error("Could not write snapshot of game %s to Redis master after retry", snapshot["game_id"])
        return False

    def load(self, game_id: str) -> dict:
        try:
            raw = self.r.get(STATE_KEY.format(game_id=game_id))
        except redis.exceptions.RedisError as e:
            logger.error("Could not read game %s from Redis: %s", game_id, e)
            return None
        if not raw:
            return None
        return json.loads(raw)
