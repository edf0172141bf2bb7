from hanabi_session.game_logic.cards import Card, Color, MAX_NUMBER


class Board():
    '''The five towers in the middle. Each tower only remembers the highest
    number played on it, 0 means nothing has been built yet.'''

    def __init__(self, piles: dict = None):
        self.piles = {c: 0 for c in Color} # dict Color -> number of cards in tower, all start at 0
        if piles:
            self.piles.update(piles)

    def __getitem__(self, color: Color) -> int:
        return self.piles[color]

    def try_play(self, card: Card) -> bool:
        ''' return true and raise the tower if the card is the next number for its color.
        on false nothing changes here, the caller puts the card in the discards '''
        if card.number != self.piles[card.color] + 1:
            return False
        self.piles[card.color] += 1 # if fitting, tower goes up
        return True

    def total_played(self) -> int:
        return sum(self.piles.values())

    def is_complete(self) -> bool:
        return self.total_played() == len(Color) * MAX_NUMBER

    def to_dict(self) -> dict:
        return {c.name: v for c, v in self.piles.items()}

    @classmethod
    def from_dict(cls, data: dict):
        return cls({Color[name]: v for name, v in data.items()})
