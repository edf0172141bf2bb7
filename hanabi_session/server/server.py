import json
import logging
import socket
import threading

from hanabi_session import config
from hanabi_session.game_logic import messages as m
from hanabi_session.game_logic.errors import IllegalAction, ProtocolViolation, MALFORMED_MESSAGE
from hanabi_session.game_logic.match import Match, Transport
from hanabi_session.server.store import SnapshotStore

logger = logging.getLogger(__name__)


def encode(msg: dict) -> bytes:
    return (json.dumps(msg) + "\n").encode()


def decode(line: str) -> dict:
    try:
        msg = json.loads(line)
    except json.JSONDecodeError as e:
        raise ProtocolViolation(MALFORMED_MESSAGE, f"invalid json: {e.msg}")
    if not isinstance(msg, dict):
        raise ProtocolViolation(MALFORMED_MESSAGE, "message must be a json object")
    return msg


class SocketTransport(Transport):
    '''one thread per connection, newline separated json both ways. every call
    into the match goes through the match's own lock'''

    def __init__(self, host: str = config.HOST, port: int = config.PORT):
        self.host = host
        self.port = port
        self.match = None
        self.clients = {}  # player -> conn
        self.clients_lock = threading.Lock()

    # ---- Transport ----
    def send_to(self, player, message: dict):
        with self.clients_lock:
            conn = self.clients.get(player)
        if conn is not None:
            self._send(player, conn, message)

    def broadcast(self, message: dict, excluding=()):
        with self.clients_lock:
            receivers = [(p, c) for p, c in self.clients.items() if p not in excluding]
        for player, conn in receivers:
            self._send(player, conn, message)

    def _send(self, player, conn, message: dict):
        try:
            conn.sendall(encode(message))
        except OSError as e:
            # the reader thread of that connection notices and calls leave
            logger.warning("dropping connection of %s: %s", player.name, e)
            self._drop(player)
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

    def _drop(self, player):
        with self.clients_lock:
            self.clients.pop(player, None)

    # ---- connections ----
    def handle_client(self, conn, addr):
        conn_file = conn.makefile('r')
        player = None
        try:
            line = conn_file.readline()
            if not line:
                return
            try:
                join = decode(line)
                if join.get("type", m.JOIN) != m.JOIN or not isinstance(join.get("player"), str):
                    raise ProtocolViolation(MALFORMED_MESSAGE, "first message must be JOIN with a player name")
                player = self.match.join(join["player"])
            except (IllegalAction, ProtocolViolation) as e:
                logger.info("refused connection from %s: %s", addr, e)
                conn.sendall(encode(m.error(e.message)))
                return

            with self.clients_lock:
                self.clients[player] = conn
            conn.sendall(encode(m.assign_idx(player.number)))

            while True:
                line = conn_file.readline()
                if not line:
                    break
                if not self.handle_line(player, conn, line):
                    break
        except OSError as e:
            logger.info("connection from %s closed: %s", addr, e)
        finally:
            if player is not None:
                self._drop(player)
                self.match.leave(player)
            conn_file.close()
            conn.close()

    def handle_line(self, player, conn, line: str) -> bool:
        '''returns False when the player wants to leave'''
        try:
            msg = decode(line)
            kind = msg.get("type")
            if kind == m.QUIT:
                return False
            if kind == m.READY:
                self.match.ready(player)
            else:
                self.match.submit_action(player, m.parse_action(msg))
        except ProtocolViolation as e:
            logger.warning("protocol violation from %s: %s", player.name, e)
            conn.sendall(encode(m.error(e.message)))
        return True

    def serve_forever(self):
        with socket.socket() as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((self.host, self.port))
            s.listen()
            logger.info("Server listening on %s:%d, waiting for players...", self.host, self.port)
            while True:
                conn, addr = s.accept()
                threading.Thread(target=self.handle_client, args=(conn, addr), daemon=True).start()


def build_match(transport: Transport) -> Match:
    store = SnapshotStore.from_config()
    resume = None
    if store is not None and config.RESUME_GAME_ID:
        resume = store.load(config.RESUME_GAME_ID)
        if resume is None:
            logger.warning("no stored game %s, starting fresh", config.RESUME_GAME_ID)
    return Match(transport, store=store, turn_timeout=config.TURN_TIMEOUT, resume=resume)


def main():
    logging.basicConfig(level=config.LOG_LEVEL,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    transport = SocketTransport()
    transport.match = build_match(transport)
    transport.serve_forever()


if __name__ == "__main__":
    main()
