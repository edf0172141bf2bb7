import random
from enum import Enum
# 1 -> 3
# 2 -> 2
# 3 -> 2
# 4 -> 2
# 5 -> 1
COPIES_PER_NUMBER = {1: 3, 2: 2, 3: 2, 4: 2, 5: 1}
DECK_SIZE = 50 # 5 colors with 10 cards each
MAX_NUMBER = 5


class DeckEmpty(AssertionError):
    '''raised when something draws from an exhausted deck. the match never does this
    on purpose, so seeing it means the bookkeeping is broken'''


class Color(Enum):
    RED, YELLOW, GREEN, BLUE, WHITE = range(5)


class Card():
    __slots__ = ("uid", "number", "color")

    def __init__(self, number: int, color: Color, uid: int = -1):
        self.uid = uid # stable id, the hand position is only worked out at the edges
        self.number = number
        self.color = color

    def __repr__(self): # returns printable representation of the card
        return f"Card({self.number}, {self.color.name})"

    def __eq__(self, other):
        if not isinstance(other, Card):
            return NotImplemented
        return (self.uid, self.number, self.color) == (other.uid, other.number, other.color)

    def __hash__(self):
        return hash((self.uid, self.number, self.color))

    def to_dict(self) -> dict:
        return {"number": self.number, "color": self.color.name}


def starting_hand_size(player_count: int) -> int:
    # 5 cards to 2 or 3 players
    # 4 cards to 4 or 5 players
    return 4 if player_count >= 4 else 5


class Deck:
    def __init__(self, cards=None):
        if cards is None:
            cards = [
                Card(num, col)
                for col in Color
                for num, cnt in COPIES_PER_NUMBER.items()
                for _ in range(cnt)
            ]
            for uid, card in enumerate(cards):
                card.uid = uid
        self.cards = list(cards) # the end of the list is the top of the deck

    def __len__(self):
        return len(self.cards)

    def shuffle(self, rng=None):
        (rng or random).shuffle(self.cards)

    def draw(self) -> Card:
        if not self.cards:
            raise DeckEmpty("draw from an empty deck")
        return self.cards.pop()

    def is_empty(self) -> bool:
        return not self.cards
