import logging
import threading
from enum import Enum

from hanabi_session.game_logic import errors
from hanabi_session.game_logic import messages as m
from hanabi_session.game_logic.cards import Deck
from hanabi_session.game_logic.errors import IllegalAction, illegal
from hanabi_session.game_logic.state import GameResources, Hand, Player, MAX_MISTAKES
'''
The match drives one game from lobby to score. The transport threads call the
public methods; each of them holds the match lock for the whole call, so the
rule code below is written as if only one thread ever touches the state.
'''
logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
MAX_PLAYERS = 5


class MatchState(Enum):
    WAITING_FOR_PLAYERS = "WAITING_FOR_PLAYERS"
    IN_PROGRESS = "IN_PROGRESS"
    FINAL_ROUND = "FINAL_ROUND"
    ENDED = "ENDED"


class Transport():
    '''what the match needs from the network side'''

    def send_to(self, player: Player, message: dict):
        raise NotImplementedError

    def broadcast(self, message: dict, excluding=()):
        raise NotImplementedError


class Match():
    def __init__(self, transport: Transport, store=None, turn_timeout: float = 0,
                 resume: dict = None, timer_factory=threading.Timer, rng=None):
        self.transport = transport
        self.store = store # anything with save(snapshot), optional
        self.turn_timeout = turn_timeout
        self.resume = resume # snapshot to continue from once the same names are seated
        self.timer_factory = timer_factory
        self.rng = rng
        self.players = [] # turn order = join order
        self.current_idx = 0
        self.resources = None
        self.state = MatchState.WAITING_FOR_PLAYERS
        self.score = None
        self.turn_serial = 0 # bumped every time a turn finishes, stale timers compare against it
        self.lock = threading.RLock()
        self._timer = None
        self._next_number = 0

    # ---- lobby ----
    def join(self, name: str) -> Player:
        with self.lock:
            if self.state != MatchState.WAITING_FOR_PLAYERS:
                illegal(errors.GAME_IN_PROGRESS, "Game already in progress")
            if len(self.players) >= MAX_PLAYERS:
                illegal(errors.LOBBY_FULL, f"Lobby already has {MAX_PLAYERS} players")
            if any(p.name == name for p in self.players):
                illegal(errors.NAME_TAKEN, "Name already taken")
            player = Player(self._next_number, name)
            self._next_number += 1
            self.players.append(player)
            logger.info("%s joined as player %d", name, player.number)
            return player

    def ready(self, player: Player):
        with self.lock:
            if self.state != MatchState.WAITING_FOR_PLAYERS or player not in self.players:
                logger.warning("ignoring READY from %s in state %s", player.name, self.state.name)
                return
            player.ready = True
            self._maybe_start()

    def leave(self, player: Player):
        with self.lock:
            if player not in self.players:
                return
            idx = self.players.index(player)
            was_current = self.is_active() and idx == self.current_idx
            self.players.remove(player)
            logger.info("%s left the match", player.name)
            if self.is_active():
                # their cards are out of the game for good
                self.resources.discards.extend(player.hand.cards)
                player.hand = Hand()
            self.transport.broadcast(m.player_left(player), excluding=(player,))

            if self.state == MatchState.WAITING_FOR_PLAYERS:
                self._maybe_start()
                return
            if not self.is_active():
                return
            if len(self.players) < MIN_PLAYERS:
                self._finish()
            elif was_current:
                self._cancel_timer()
                self.turn_serial += 1
                # whoever slid into the vacated seat is up next
                self.current_idx = idx % len(self.players)
                self._begin_turn()
                self._save()
            else:
                if idx < self.current_idx:
                    self.current_idx -= 1
                self._save()

    # ---- turns ----
    def submit_action(self, player: Player, action: m.Action) -> bool:
        ''' apply one turn action for player. returns True if the turn was played,
        False if it got rejected or ignored '''
        with self.lock:
            if not self.is_active():
                logger.warning("protocol violation from %s: [%s] %s while match is %s",
                               player.name, errors.WRONG_STATE, action.kind, self.state.name)
                return False
            try:
                if player is not self.current_player:
                    illegal(errors.NOT_YOUR_TURN, "It is not your turn")
                handler = self._handlers[action.kind]
                handler(self, player, action)
            except IllegalAction as e:
                logger.info("rejected %s from %s: %s", action.kind, player.name, e.message)
                self.transport.send_to(player, m.action_rejected(e.code, e.message))
                return False
            self._end_turn(player)
            return True

    def expire_turn(self, serial: int):
        '''called by the turn timer. the turn is passed without an action'''
        with self.lock:
            if serial != self.turn_serial or not self.is_active():
                return
            player = self.current_player
            logger.info("turn of %s timed out", player.name)
            self.transport.broadcast(m.turn_timed_out(player))
            self._end_turn(player)

    # ---- queries ----
    @property
    def current_player(self) -> Player:
        if not self.is_active():
            return None
        return self.players[self.current_idx]

    def is_active(self) -> bool:
        return self.state in (MatchState.IN_PROGRESS, MatchState.FINAL_ROUND)

    def player_by_number(self, number: int) -> Player:
        for p in self.players:
            if p.number == number:
                return p
        return None

    def snapshot(self) -> dict:
        snap = self.resources.serialize_state(self.players, self.current_idx)
        snap["state"] = self.state.name
        snap["score"] = self.score
        return snap

    # ---- action handlers, validate everything before touching state ----
    def _check_position(self, player: Player, position: int):
        if not player.hand.is_valid_position(position):
            illegal(errors.INVALID_POSITION, f"No card at position {position}")

    def _hint_target(self, player: Player, action: m.Action) -> Player:
        if not self.resources.can_hint():
            illegal(errors.NO_HINT_TOKENS, "No hint tokens left")
        target = self.player_by_number(action.target)
        if target is None or target is player:
            illegal(errors.INVALID_TARGET, "Hints must go to another player in the match")
        return target

    def _replace_card(self, player: Player, card):
        replacement = self.resources.draw_replacement()
        if replacement is None:
            player.hand.remove(card)
        else:
            player.hand.replace(card, replacement)

    def _play_card(self, player: Player, action: m.Action):
        self._check_position(player, action.position)
        res = self.resources
        card = player.hand.card_at(action.position)
        success = res.board.try_play(card)
        if not success:
            res.add_mistake()
            res.discards.append(card) # card is discarded if it doesnt fit
        self.transport.broadcast(m.card_played(player, card, success))
        # have to draw replacement in any case
        self._replace_card(player, card)
        self.transport.broadcast(m.deck_remaining(len(res.deck)))
        self._send_hands()
        self._send_counts()

    def _discard(self, player: Player, action: m.Action):
        self._check_position(player, action.position)
        res = self.resources
        if not res.can_discard():
            illegal(errors.HINT_TOKENS_FULL, "Cannot discard while all hint tokens are available")
        card = player.hand.card_at(action.position)
        res.discards.append(card)
        self.transport.broadcast(m.card_discarded(player, card))
        self._replace_card(player, card)
        res.regain_hint_token()
        self.transport.broadcast(m.deck_remaining(len(res.deck)))
        self._send_hands()
        self._send_counts()

    def _color_hint(self, player: Player, action: m.Action):
        target = self._hint_target(player, action)
        self.resources.use_hint_token()
        positions = target.hand.positions_with_color(action.color)
        self.transport.broadcast(m.color_hint_given(action.color, positions, target))
        self._send_counts()

    def _number_hint(self, player: Player, action: m.Action):
        target = self._hint_target(player, action)
        self.resources.use_hint_token()
        positions = target.hand.positions_with_number(action.number)
        self.transport.broadcast(m.number_hint_given(action.number, positions, target))
        self._send_counts()

    _handlers = {
        m.PLAY_CARD: _play_card,
        m.DISCARD: _discard,
        m.GIVE_COLOR_HINT: _color_hint,
        m.GIVE_NUMBER_HINT: _number_hint,
    }

    # ---- internals ----
    def _maybe_start(self):
        if len(self.players) >= MIN_PLAYERS and all(p.ready for p in self.players):
            self._start()

    def _can_resume(self, names: list) -> bool:
        if not self.resume or self.resume.get("player_names") != names:
            return False
        if self.resume.get("state") == MatchState.ENDED.name:
            logger.warning("game %s is already over, starting a new one", self.resume["game_id"])
            return False
        return True

    def _start(self):
        names = [p.name for p in self.players]
        if self._can_resume(names):
            logger.info("resuming game %s", self.resume["game_id"])
            res, restored, current = GameResources.from_serialized(self.resume)
            for player, saved in zip(self.players, restored):
                player.hand = saved.hand
            self.resources = res
            self.current_idx = current % len(self.players)
        else:
            deck = Deck()
            deck.shuffle(self.rng)
            self.resources = GameResources(deck=deck)
            self.resources.deal(self.players)
            self.current_idx = 0
        self.state = (MatchState.FINAL_ROUND if self.resources.countdown_started()
                      else MatchState.IN_PROGRESS)
        logger.info("game %s started with %s", self.resources.game_id, ", ".join(names))

        self.transport.broadcast(m.match_started(names))
        self._send_hands()
        self.transport.broadcast(m.deck_remaining(len(self.resources.deck)))
        self._send_counts()
        self.transport.broadcast(m.board_state(self.resources.board))
        self._begin_turn()
        self._save()

    def _end_turn(self, player: Player):
        self._cancel_timer()
        self.turn_serial += 1
        self.transport.broadcast(m.board_state(self.resources.board))
        self.transport.send_to(player, m.turn_ended(player))
        if self._game_ended():
            self._finish()
            return
        self.current_idx = (self.current_idx + 1) % len(self.players)
        self._begin_turn()
        self._save()

    def _game_ended(self) -> bool:
        res = self.resources
        if res.mistakes >= MAX_MISTAKES:
            return True
        if res.countdown_started():
            res.final_round_countdown -= 1
            if res.final_round_countdown <= 0:
                return True
        elif res.deck.is_empty():
            res.final_round_countdown = len(self.players)
            self.state = MatchState.FINAL_ROUND
            logger.info("deck is empty, %d turns left", res.final_round_countdown)
        return res.board.is_complete()

    def _final_score(self) -> int:
        if self.resources.mistakes >= MAX_MISTAKES:
            return 0
        return self.resources.board.total_played()

    def _finish(self):
        self._cancel_timer()
        self.state = MatchState.ENDED
        self.score = self._final_score()
        logger.info("game %s over, score %d", self.resources.game_id, self.score)
        self.transport.broadcast(m.game_over(self.score))
        self._save()

    def _begin_turn(self):
        player = self.current_player
        logger.info("turn %d: %s", self.turn_serial, player.name)
        self.transport.send_to(player, m.turn_started(player))
        if self.turn_timeout and self.turn_timeout > 0:
            self._timer = self.timer_factory(self.turn_timeout, self.expire_turn,
                                             args=(self.turn_serial,))
            self._timer.daemon = True
            self._timer.start()

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _send_hands(self):
        # nobody gets to see their own cards
        for p in self.players:
            self.transport.broadcast(m.hand_update(p, p.hand.cards), excluding=(p,))

    def _send_counts(self):
        self.transport.broadcast(m.resource_counts(self.resources.mistakes,
                                                   self.resources.hint_tokens))

    def _save(self):
        if self.store is not None:
            self.store.save(self.snapshot())
