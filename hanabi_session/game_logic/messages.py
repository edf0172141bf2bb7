from hanabi_session.game_logic.cards import Card, Color, MAX_NUMBER
from hanabi_session.game_logic.errors import violation, MALFORMED_MESSAGE, UNKNOWN_MESSAGE
'''
Message vocabulary between the match and the transport. Every message is a plain
dict with a "type" key so the server can json.dumps it straight onto the wire.
'''
# inbound control
JOIN = "JOIN"
READY = "READY"
QUIT = "QUIT"
# inbound actions
PLAY_CARD = "PLAY_CARD"
DISCARD = "DISCARD"
GIVE_COLOR_HINT = "GIVE_COLOR_HINT"
GIVE_NUMBER_HINT = "GIVE_NUMBER_HINT"
ACTION_TYPES = (PLAY_CARD, DISCARD, GIVE_COLOR_HINT, GIVE_NUMBER_HINT)

# outbound
ASSIGN_IDX = "ASSIGN_IDX"
MATCH_STARTED = "MATCH_STARTED"
HAND_UPDATE = "HAND_UPDATE"
CARD_PLAYED = "CARD_PLAYED"
CARD_DISCARDED = "CARD_DISCARDED"
COLOR_HINT_GIVEN = "COLOR_HINT_GIVEN"
NUMBER_HINT_GIVEN = "NUMBER_HINT_GIVEN"
RESOURCE_COUNTS = "RESOURCE_COUNTS"
BOARD_STATE = "BOARD_STATE"
DECK_REMAINING = "DECK_REMAINING"
TURN_STARTED = "TURN_STARTED"
TURN_ENDED = "TURN_ENDED"
TURN_TIMED_OUT = "TURN_TIMED_OUT"
ACTION_REJECTED = "ACTION_REJECTED"
GAME_OVER = "GAME_OVER"
PLAYER_LEFT = "PLAYER_LEFT"
ERROR = "ERROR"


class Action():
    '''one validated turn action. position / target / color / number are set
    depending on the kind'''

    def __init__(self, kind: str, position: int = None, target: int = None,
                 color: Color = None, number: int = None):
        self.kind = kind
        self.position = position
        self.target = target
        self.color = color
        self.number = number

    def __repr__(self):
        return (f"Action({self.kind}, position={self.position}, target={self.target}, "
                f"color={self.color}, number={self.number})")

    def __eq__(self, other):
        if not isinstance(other, Action):
            return NotImplemented
        return vars(self) == vars(other)

    @classmethod
    def play(cls, position: int):
        return cls(PLAY_CARD, position=position)

    @classmethod
    def discard(cls, position: int):
        return cls(DISCARD, position=position)

    @classmethod
    def color_hint(cls, target: int, color: Color):
        return cls(GIVE_COLOR_HINT, target=target, color=color)

    @classmethod
    def number_hint(cls, target: int, number: int):
        return cls(GIVE_NUMBER_HINT, target=target, number=number)


def _int_field(msg: dict, key: str) -> int:
    value = msg.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        violation(MALFORMED_MESSAGE, f"{msg.get('type')} needs an integer '{key}'")
    return value


def parse_action(msg: dict) -> Action:
    ''' turn an inbound json message into an Action, raises ProtocolViolation if it
    is not one of the four turn actions or a field is missing / has the wrong type.
    whether the action is legal is decided later by the match '''
    if not isinstance(msg, dict):
        violation(MALFORMED_MESSAGE, "message must be a json object")
    kind = msg.get("type")
    if kind not in ACTION_TYPES:
        violation(UNKNOWN_MESSAGE, f"unknown action type {kind!r}")
    if kind == PLAY_CARD:
        return Action.play(_int_field(msg, "position"))
    if kind == DISCARD:
        return Action.discard(_int_field(msg, "position"))
    target = _int_field(msg, "target")
    if kind == GIVE_COLOR_HINT:
        name = msg.get("color")
        if not isinstance(name, str) or name.upper() not in Color.__members__:
            violation(MALFORMED_MESSAGE, f"unknown color {name!r}")
        return Action.color_hint(target, Color[name.upper()])
    number = _int_field(msg, "number")
    if not 1 <= number <= MAX_NUMBER:
        violation(MALFORMED_MESSAGE, f"number must be between 1 and {MAX_NUMBER}")
    return Action.number_hint(target, number)


def action_to_message(action: Action) -> dict:
    msg = {"type": action.kind}
    if action.kind in (PLAY_CARD, DISCARD):
        msg["position"] = action.position
    elif action.kind == GIVE_COLOR_HINT:
        msg.update(target=action.target, color=action.color.name)
    else:
        msg.update(target=action.target, number=action.number)
    return msg


# outbound builders
def assign_idx(idx: int) -> dict:
    return {"type": ASSIGN_IDX, "idx": idx}

def match_started(player_names: list) -> dict:
    return {"type": MATCH_STARTED, "players": list(player_names)}

def hand_update(player, cards: list) -> dict:
    return {"type": HAND_UPDATE, "player": player.number, "cards": [c.to_dict() for c in cards]}

def card_played(player, card: Card, success: bool) -> dict:
    return {"type": CARD_PLAYED, "player": player.number, "card": card.to_dict(), "success": success}

def card_discarded(player, card: Card) -> dict:
    return {"type": CARD_DISCARDED, "player": player.number, "card": card.to_dict()}

def color_hint_given(color: Color, positions: list, target) -> dict:
    return {"type": COLOR_HINT_GIVEN, "color": color.name, "positions": positions, "target": target.number}

def number_hint_given(number: int, positions: list, target) -> dict:
    return {"type": NUMBER_HINT_GIVEN, "number": number, "positions": positions, "target": target.number}

def resource_counts(mistakes: int, hint_tokens: int) -> dict:
    return {"type": RESOURCE_COUNTS, "misfires": mistakes, "tokens": hint_tokens}

def board_state(board) -> dict:
    return {"type": BOARD_STATE, "board": board.to_dict()}

def deck_remaining(count: int) -> dict:
    return {"type": DECK_REMAINING, "count": count}

def turn_started(player) -> dict:
    return {"type": TURN_STARTED, "player": player.number}

def turn_ended(player) -> dict:
    return {"type": TURN_ENDED, "player": player.number}

def turn_timed_out(player) -> dict:
    return {"type": TURN_TIMED_OUT, "player": player.number}

def action_rejected(code: str, reason: str) -> dict:
    return {"type": ACTION_REJECTED, "code": code, "msg": reason}

def game_over(score: int) -> dict:
    return {"type": GAME_OVER, "score": score}

def player_left(player) -> dict:
    return {"type": PLAYER_LEFT, "player": player.number, "name": player.name}

def error(reason: str) -> dict:
    return {"type": ERROR, "msg": reason}
