class MatchError(Exception):
    """Base exception for match errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class IllegalAction(MatchError):
    """The move is well formed but not allowed right now. Goes back to the
    player who tried it, nothing else happens."""


class ProtocolViolation(MatchError):
    """Malformed message, or a message that makes no sense in the current state."""


# IllegalAction codes
NOT_YOUR_TURN = "NOT_YOUR_TURN"
INVALID_POSITION = "INVALID_POSITION"
NO_HINT_TOKENS = "NO_HINT_TOKENS"
HINT_TOKENS_FULL = "HINT_TOKENS_FULL"
INVALID_TARGET = "INVALID_TARGET"
GAME_IN_PROGRESS = "GAME_IN_PROGRESS"
LOBBY_FULL = "LOBBY_FULL"
NAME_TAKEN = "NAME_TAKEN"

# ProtocolViolation codes
MALFORMED_MESSAGE = "MALFORMED_MESSAGE"
UNKNOWN_MESSAGE = "UNKNOWN_MESSAGE"
WRONG_STATE = "WRONG_STATE"


def illegal(code: str, message: str):
    raise IllegalAction(code, message)


def violation(code: str, message: str):
    raise ProtocolViolation(code, message)
