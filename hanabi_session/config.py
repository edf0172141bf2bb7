import os

HOST = os.getenv("HANABI_HOST", "0.0.0.0")
PORT = int(os.getenv("HANABI_PORT", "12345"))

# seconds a player gets for a turn before it is passed for them, 0 turns it off
TURN_TIMEOUT = float(os.getenv("HANABI_TURN_TIMEOUT", "0"))

# empty list means no persistence
SENTINEL_NODES = [n for n in os.getenv("SENTINEL_NODES", "").split(",") if n.strip()]
SENTINEL_MASTER = os.getenv("SENTINEL_MASTER_NAME", "mymaster")
REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "0.1"))

RESUME_GAME_ID = os.getenv("HANABI_RESUME_GAME_ID") or None

LOG_LEVEL = os.getenv("HANABI_LOG_LEVEL", "INFO").upper()


def sentinel_endpoints(nodes=None) -> list:
    '''Parse "host:port" list into tuples'''
    endpoints = []
    for node in (SENTINEL_NODES if nodes is None else nodes):
        host, port = node.strip().split(":")
        endpoints.append((host, int(port)))
    return endpoints
