from hanabi_session.game_logic.board import Board
from hanabi_session.game_logic.cards import Card, Color, Deck, DECK_SIZE, starting_hand_size
import uuid
'''
Shared game state lives here: the hands, the deck, the discards, the towers and
the token counters. The match is the only thing that is supposed to change it.
'''
MAX_HINT_TOKENS = 8
MAX_MISTAKES = 3
COUNTDOWN_NOT_STARTED = -1


class Hand():
    '''cards held by one player. positions are just list indices, a card keeps
    its slot until it leaves the hand'''

    def __init__(self, cards=None):
        self.cards = list(cards or [])

    def __len__(self):
        return len(self.cards)

    def __iter__(self):
        return iter(self.cards)

    def is_valid_position(self, position) -> bool:
        return isinstance(position, int) and not isinstance(position, bool) \
            and 0 <= position < len(self.cards)

    def card_at(self, position: int) -> Card:
        return self.cards[position]

    def position_of(self, card: Card) -> int:
        for idx, held in enumerate(self.cards):
            if held.uid == card.uid:
                return idx
        raise ValueError(f"{card!r} is not in this hand")

    def add(self, card: Card):
        self.cards.append(card)

    def remove(self, card: Card):
        del self.cards[self.position_of(card)]

    def replace(self, card: Card, new_card: Card):
        self.cards[self.position_of(card)] = new_card

    def positions_with_color(self, color: Color) -> list:
        return [idx for idx, card in enumerate(self.cards) if card.color == color]

    def positions_with_number(self, number: int) -> list:
        return [idx for idx, card in enumerate(self.cards) if card.number == number]

    def to_list(self) -> list:
        return [card.to_dict() for card in self.cards]


class Player():
    def __init__(self, number: int, name: str):
        self.number = number
        self.name = name
        self.hand = Hand()
        self.ready = False

    def __repr__(self):
        return f"Player({self.number}, {self.name!r})"


class GameResources():
    def __init__(self, game_id: str = None, deck: Deck = None):
        self.game_id = game_id or str(uuid.uuid4())
        if deck is None:
            deck = Deck()
            deck.shuffle()
        self.deck = deck
        self.discards = []
        self.board = Board()
        self.hint_tokens = MAX_HINT_TOKENS
        self.mistakes = 0
        self.final_round_countdown = COUNTDOWN_NOT_STARTED

    def deal(self, players: list):
        '''hand out the starting cards player by player in turn order'''
        hand_size = starting_hand_size(len(players))
        for player in players:
            for _ in range(hand_size):
                player.hand.add(self.deck.draw())

    def draw_replacement(self):
        # None once the deck ran out, the hand just gets shorter then
        if self.deck.is_empty():
            return None
        return self.deck.draw()

    def can_discard(self) -> bool:
        return self.hint_tokens < MAX_HINT_TOKENS

    def can_hint(self) -> bool:
        return self.hint_tokens > 0

    def use_hint_token(self):
        assert self.hint_tokens > 0, "no hint tokens left"
        self.hint_tokens -= 1

    def regain_hint_token(self):
        self.hint_tokens = min(self.hint_tokens + 1, MAX_HINT_TOKENS)

    def add_mistake(self):
        self.mistakes = min(self.mistakes + 1, MAX_MISTAKES)

    def countdown_started(self) -> bool:
        return self.final_round_countdown != COUNTDOWN_NOT_STARTED

    def card_count(self, players: list) -> int:
        '''every card is somewhere: deck, a hand, the discards or a tower'''
        return (len(self.deck) + sum(len(p.hand) for p in players)
                + len(self.discards) + self.board.total_played())

    def check_invariant(self, players: list):
        assert self.card_count(players) == DECK_SIZE, "cards went missing"
        assert 0 <= self.hint_tokens <= MAX_HINT_TOKENS
        assert 0 <= self.mistakes <= MAX_MISTAKES

    def serialize_state(self, players: list, current_turn: int) -> dict:
        return {
            "game_id":      self.game_id,
            "player_names": [p.name for p in players],
            "board":        self.board.to_dict(),
            "tokens":       self.hint_tokens,
            "misfires":     self.mistakes,
            "countdown":    self.final_round_countdown,
            "deck_count":   len(self.deck),
            "deck":         [_card_to_dict(c) for c in self.deck.cards],
            "discards":     [_card_to_dict(c) for c in self.discards],
            "hands":        [[_card_to_dict(c) for c in p.hand] for p in players],
            "current_turn": current_turn,
        }

    @classmethod
    def from_serialized(cls, data: dict):
        '''rebuild the resources and the players from serialize_state output.
        returns (resources, players, current_turn)'''
        deck = Deck([_card_from_dict(item) for item in data["deck"]])
        res = cls(game_id=data["game_id"], deck=deck)
        res.board = Board.from_dict(data["board"])
        res.hint_tokens = data["tokens"]
        res.mistakes = data["misfires"]
        res.final_round_countdown = data.get("countdown", COUNTDOWN_NOT_STARTED)
        res.discards = [_card_from_dict(item) for item in data["discards"]]

        players = []
        for number, (name, hand_data) in enumerate(zip(data["player_names"], data["hands"])):
            player = Player(number, name)
            player.hand = Hand(_card_from_dict(item) for item in hand_data)
            players.append(player)
        return res, players, data["current_turn"]


def _card_to_dict(card: Card) -> dict:
    return {"uid": card.uid, "number": card.number, "color": card.color.name}


def _card_from_dict(item: dict) -> Card:
    return Card(item["number"], Color[item["color"]], item.get("uid", -1))
