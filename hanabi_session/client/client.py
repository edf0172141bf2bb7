import json
import socket
import sys
import threading

from hanabi_session import config
from hanabi_session.game_logic import messages as m
from hanabi_session.game_logic.cards import Color

USAGE = "Commands: PLAY idx / DISC idx / HINT player color|number / QUIT"


def parse_command(line: str) -> dict:
    ''' turn what the user typed into a message for the server.
    raises ValueError with a usage hint when the command makes no sense '''
    parts = line.split()
    if not parts:
        raise ValueError("Empty command - try again")
    action = parts[0].upper()

    if action in ("PLAY", "DISC", "DISCARD"):
        if len(parts) != 2 or not parts[1].isdigit():
            raise ValueError(f"Usage: {action} <card_idx>")
        make = m.Action.play if action == "PLAY" else m.Action.discard
        return m.action_to_message(make(int(parts[1])))

    if action == "HINT":
        # must be exactly 3 parts: HINT <player> <val>
        if len(parts) != 3 or not parts[1].isdigit():
            raise ValueError("Usage: HINT <player_idx> <color|number>")
        target, val = int(parts[1]), parts[2]
        if val.isdigit():
            return m.action_to_message(m.Action.number_hint(target, int(val)))
        if val.upper() not in Color.__members__:
            raise ValueError(f"Unknown color {val}, use one of " + ", ".join(Color.__members__))
        return m.action_to_message(m.Action.color_hint(target, Color[val.upper()]))

    if action == "QUIT":
        return {"type": m.QUIT}
    raise ValueError(f"Unknown command. {USAGE}")


def _card(card: dict) -> str:
    return f"{card['color']} {card['number']}"


def describe(msg: dict, my_idx: int = None) -> str:
    '''one line of text for a server message, None for messages not worth printing'''
    kind = msg.get("type")

    def who(number):
        return "you" if number == my_idx else f"Player {number}"

    if kind == m.ASSIGN_IDX:
        return f"Assigned player index: {msg['idx']}"
    if kind == m.MATCH_STARTED:
        return "All players ready. Game is starting! Players: " + ", ".join(msg["players"])
    if kind == m.HAND_UPDATE:
        return f"{who(msg['player'])}: " + ", ".join(_card(c) for c in msg["cards"])
    if kind == m.CARD_PLAYED:
        outcome = "fits" if msg["success"] else "misfires"
        return f"{who(msg['player'])} played {_card(msg['card'])} - {outcome}"
    if kind == m.CARD_DISCARDED:
        return f"{who(msg['player'])} discarded {_card(msg['card'])}"
    if kind in (m.COLOR_HINT_GIVEN, m.NUMBER_HINT_GIVEN):
        value = msg.get("color", msg.get("number"))
        return f"Hint for {who(msg['target'])}: {value} at positions {msg['positions']}"
    if kind == m.RESOURCE_COUNTS:
        return f"Tokens: {msg['tokens']} Misfires: {msg['misfires']}"
    if kind == m.BOARD_STATE:
        return "Board: " + " ".join(f"{c}={v}" for c, v in msg["board"].items())
    if kind == m.DECK_REMAINING:
        return f"Cards left in deck: {msg['count']}"
    if kind == m.TURN_STARTED:
        return f"Your turn. {USAGE}"
    if kind == m.TURN_TIMED_OUT:
        return f"{who(msg['player'])} ran out of time"
    if kind == m.ACTION_REJECTED:
        return f"Not possible: {msg['msg']}"
    if kind == m.GAME_OVER:
        return f"Game over! Score: {msg['score']}"
    if kind == m.PLAYER_LEFT:
        return f"{msg['name']} left the game"
    if kind == m.ERROR:
        return f"Error from server: {msg['msg']}"
    return None


class Client:
    def __init__(self, host: str, port: int):
        '''Connect to server and create file-like reader'''
        self.sock = socket.socket()
        self.sock.connect((host, port))
        self.sock_file = self.sock.makefile('r')
        self.idx = None  # assigned by server in first message
        self.closed = threading.Event()

    def send(self, msg: dict):
        self.sock.sendall((json.dumps(msg) + "\n").encode())

    def receive_loop(self):
        while True:
            line = self.sock_file.readline()
            if not line:
                print("Connection closed by server.")
                break
            msg = json.loads(line)
            if msg.get("type") == m.ASSIGN_IDX:
                self.idx = msg["idx"]
            text = describe(msg, self.idx)
            if text:
                print(text)
            if msg.get("type") == m.GAME_OVER:
                break
        self.closed.set()

    def run(self, name: str):
        threading.Thread(target=self.receive_loop, daemon=True).start()
        self.send({"type": m.JOIN, "player": name})
        input("Press enter when you are ready> ")
        self.send({"type": m.READY})
        while not self.closed.is_set():
            try:
                line = input()
            except EOFError:
                line = "QUIT"
            try:
                msg = parse_command(line)
            except ValueError as e:
                print(e)
                continue
            self.send(msg)
            if msg["type"] == m.QUIT:
                break
        self.sock.close()


def main():
    host = sys.argv[1] if len(sys.argv) > 1 else "localhost"
    name = input("Your name> ")
    Client(host, config.PORT).run(name)


if __name__ == "__main__":
    main()
