import random

import pytest
from hanabi_session.game_logic.cards import Card, Color, Deck, DeckEmpty, starting_hand_size
from hanabi_session.game_logic.board import Board


def test_deck_count_and_draw():
    deck = Deck()
    # total cards: 5 colors * (3+2+2+2+1) = 5*10 = 50
    assert len(deck) == 50
    drawn = [deck.draw() for _ in range(50)]
    assert all(isinstance(c, Card) for c in drawn)
    assert deck.is_empty()
    with pytest.raises(DeckEmpty):
        deck.draw()


def test_deck_distribution_per_color():
    deck = Deck()
    for color in Color:
        numbers = sorted(c.number for c in deck.cards if c.color == color)
        assert numbers == [1, 1, 1, 2, 2, 3, 3, 4, 4, 5]
    assert sorted(c.uid for c in deck.cards) == list(range(50))


def test_draw_takes_from_the_top():
    deck = Deck()
    top = deck.cards[-1]
    assert deck.draw() is top
    assert len(deck) == 49


def test_shuffle_with_seeded_rng_is_repeatable():
    a, b = Deck(), Deck()
    a.shuffle(random.Random(3))
    b.shuffle(random.Random(3))
    assert [c.uid for c in a.cards] == [c.uid for c in b.cards]


@pytest.mark.parametrize("players,size", [(2, 5), (3, 5), (4, 4), (5, 4)])
def test_starting_hand_size(players, size):
    assert starting_hand_size(players) == size


def test_board_accepts_only_next_number():
    board = Board()
    assert board.try_play(Card(2, Color.RED)) is False
    assert board[Color.RED] == 0
    assert board.try_play(Card(1, Color.RED)) is True
    assert board.try_play(Card(1, Color.RED)) is False
    assert board.try_play(Card(2, Color.RED)) is True
    assert board[Color.RED] == 2
    assert board.total_played() == 2


def test_board_complete_at_25():
    board = Board({c: 5 for c in Color})
    assert board.total_played() == 25
    assert board.is_complete()
    assert board.try_play(Card(5, Color.BLUE)) is False
    assert not Board().is_complete()
