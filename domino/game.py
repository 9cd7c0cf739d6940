"""
Domino Match Engine

Main game logic for block dominoes: dealing, the turn loop, and resolving
the end of a match by domino (a hand emptied) or by block.
"""

import logging
import threading
from enum import IntEnum
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

import numpy as np

from .board import Board, BoardSnapshot, End
from .boneyard import Boneyard
from .errors import (
    ChoiceCancelled,
    IllegalPlacement,
    InsufficientTiles,
    InvariantViolation,
    MatchStateError,
    NotInHand,
    RejectedAction,
    SetupError,
)
from .player import Player
from .rules import RuleSet, CLASSIC_RULES
from .tiles import Tile, NUM_TILES

logger = logging.getLogger(__name__)


class MatchState(IntEnum):
    """Lifecycle of a match"""
    NOT_STARTED = 0
    DEALING = 1       # Transient, inside deal()
    IN_PROGRESS = 2
    PLAYER_WON = 3    # A hand was emptied
    BLOCKED = 4       # Nobody can move and the boneyard is empty
    FINISHED = 5


class TurnOutcome(IntEnum):
    """What a single turn attempt did"""
    PLAYED = 0
    DREW = 1
    PASSED = 2
    REJECTED = 3     # Same player must act again
    CANCELLED = 4    # Choice abandoned, nothing changed


TERMINAL_STATES = (MatchState.PLAYER_WON, MatchState.BLOCKED, MatchState.FINISHED)


@dataclass(frozen=True)
class TurnResult:
    """
    Record of one turn attempt.

    Attributes:
        turn: Number of resolved turns before this attempt
        player_idx: Seat of the acting player
        player_name: Name of the acting player
        outcome: What happened
        tile: Pips of the played tile (as placed) or the drawn tile
        end: End the tile was played on
        reason: Why the action was rejected or cancelled
        state: Match state after the attempt
    """
    turn: int
    player_idx: int
    player_name: str
    outcome: TurnOutcome
    tile: Optional[Tuple[int, int]] = None
    end: Optional[End] = None
    reason: Optional[str] = None
    state: MatchState = MatchState.IN_PROGRESS

    def __str__(self) -> str:
        if self.outcome == TurnOutcome.PLAYED:
            return f"{self.player_name} played [{self.tile[0]}|{self.tile[1]}] on the {self.end.name.lower()}"
        if self.outcome == TurnOutcome.DREW:
            return f"{self.player_name} drew a piece"
        if self.outcome == TurnOutcome.PASSED:
            return f"{self.player_name} passes (no pieces to draw)"
        return f"{self.player_name}: {self.outcome.name.lower()} ({self.reason})"


@dataclass(frozen=True)
class RankingEntry:
    player_idx: int
    name: str
    score: int
    tiles_left: int


@dataclass(frozen=True)
class MatchResult:
    """
    Final outcome of a match.

    Attributes:
        ending: PLAYER_WON or BLOCKED
        winners: Seats of the winner(s); several only on a tied block
        ranking: Winners first, then by ascending hand score
        turns: Number of resolved turns
    """
    ending: MatchState
    winners: Tuple[int, ...]
    ranking: Tuple[RankingEntry, ...]
    turns: int

    @property
    def winner_names(self) -> List[str]:
        by_idx = {entry.player_idx: entry.name for entry in self.ranking}
        return [by_idx[i] for i in self.winners]


PlayerRef = Union[int, str, Player]
Listener = Callable[[TurnResult], None]


class Match:
    """
    Block dominoes match.

    Owns the board, the boneyard and the seating order, and is the only
    writer of all of them. One turn is resolved at a time: applying a turn
    holds the turn lock and every state change also holds the state lock,
    so queries from other threads always see a consistent match.

    A player's choice is made outside both locks, so a UI can still play
    or draw for the current player while a choice is pending. Such a
    command interrupts the pending choice, and a choice that returns after
    its turn was resolved is rejected as stale.

    A Player sits in one match at a time: seats must arrive with empty
    hands.
    """

    def __init__(
        self,
        players: List[Player],
        initial_hand_size: Optional[int] = None,
        seed: Optional[int] = None,
        rules: RuleSet = CLASSIC_RULES,
    ):
        """
        Create a match. Nothing is dealt until deal().

        Args:
            players: Players in seating order; the first one leads
            initial_hand_size: Tiles per hand, overriding the rule set
            seed: Seed for the match's random generator
            rules: Table configuration

        Raises:
            SetupError: wrong player count or hand size
            InsufficientTiles: the hands would need more than 28 tiles
        """
        players = list(players)
        if not rules.min_players <= len(players) <= rules.max_players:
            raise SetupError(
                f"{rules.name} rules need {rules.min_players}-{rules.max_players} players, got {len(players)}")
        if len({id(p) for p in players}) != len(players):
            raise SetupError("The same player cannot take two seats")
        for player in players:
            if player.hand.has_tiles():
                raise SetupError(f"{player.name} already holds tiles from another match")

        hand_size = rules.initial_hand_size if initial_hand_size is None else int(initial_hand_size)
        if hand_size < 1:
            raise SetupError(f"Initial hand size must be positive, got {hand_size}")
        if hand_size * len(players) > NUM_TILES:
            raise InsufficientTiles(
                f"Cannot deal {hand_size} tiles to {len(players)} players from {NUM_TILES} tiles")

        self.rules = rules
        self.players = players
        self.initial_hand_size = hand_size
        self.seed = seed
        self.rng = np.random.default_rng(seed)

        self.board = Board()
        self.boneyard = Boneyard()
        for player in self.players:
            player.strategy.bind_rng(self.rng)

        self.state = MatchState.NOT_STARTED
        self.current_player_index = 0
        self.turn_count = 0
        self.history: List[TurnResult] = []

        self._winners: Tuple[int, ...] = ()
        self._result: Optional[MatchResult] = None
        self._listeners: List[Listener] = []
        self._choosing: Optional[int] = None
        self._interrupt_choice: Optional[Callable[[], None]] = None
        self._choice_lock = threading.Lock()
        self._turn_lock = threading.Lock()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def deal(self) -> None:
        """Shuffle the boneyard and deal the initial hands round-robin"""
        with self._turn_lock, self._lock:
            if self.state != MatchState.NOT_STARTED:
                raise MatchStateError(f"Cannot deal in state {self.state.name}")

            self.state = MatchState.DEALING
            self.boneyard.shuffle(self.rng)
            for _ in range(self.initial_hand_size):
                for player in self.players:
                    tile = self.boneyard.draw_one()
                    if tile is None:
                        raise InvariantViolation("Boneyard ran out while dealing")
                    player.hand.add(tile)
            self._check_conservation()

            self.state = MatchState.IN_PROGRESS
            logger.info(
                f"Dealt {self.initial_hand_size} tiles to {len(self.players)} players, "
                f"{self.boneyard.remaining} left in the boneyard")

    def attempt_turn(self) -> TurnResult:
        """
        Resolve one turn for the current player.

        The player chooses a tile or to draw. A playable choice is placed;
        a rejected choice leaves the same player to act again; a draw adds
        one tile from the boneyard (or passes when it is empty) and ends
        the turn. Terminal conditions are checked after every action.

        If play_tile() or force_draw_for_current_player() resolves the turn
        while the choice is pending, the choice is dropped and the result
        is REJECTED as stale.
        """
        with self._choice_lock:
            with self._lock:
                self._require_in_progress()
                player_idx = self.current_player_index
                player = self.players[player_idx]
                turn = self.turn_count
                board = self.board.snapshot()
                self._choosing = player_idx
                self._interrupt_choice = player.strategy.interrupter()

            cancelled = None
            try:
                tile = player.choose_move(board)
            except ChoiceCancelled as e:
                tile, cancelled = None, str(e)
            finally:
                with self._lock:
                    self._choosing = None
                    self._interrupt_choice = None

            with self._turn_lock, self._lock:
                # Another command may have resolved this turn while the player chose
                if (self.state != MatchState.IN_PROGRESS
                        or self.turn_count != turn
                        or self.current_player_index != player_idx):
                    return self._reject(player_idx, "Stale choice: the turn was already resolved.")
                if cancelled is not None:
                    return self._record(self._result_for(player_idx, TurnOutcome.CANCELLED, reason=cancelled))
                if tile is None:
                    return self._draw_or_pass(player_idx)
                return self._play(player_idx, tile, None)

    def play_tile(self, tile: Tile, end: Optional[End] = None) -> TurnResult:
        """Play a chosen tile for the current player, optionally on a chosen end"""
        with self._turn_lock, self._lock:
            self._require_in_progress()
            result = self._play(self.current_player_index, tile, end)
            self._interrupt_pending_choice(result)
            return result

    def force_draw_for_current_player(self) -> TurnResult:
        """Draw for the current player even if they hold a playable tile"""
        with self._turn_lock, self._lock:
            self._require_in_progress()
            result = self._draw_or_pass(self.current_player_index)
            self._interrupt_pending_choice(result)
            return result

    def finish(self) -> MatchResult:
        """Close a match that ended by domino or block and compute the ranking"""
        with self._lock:
            if self.state == MatchState.FINISHED:
                return self._result
            if self.state not in (MatchState.PLAYER_WON, MatchState.BLOCKED):
                raise MatchStateError(f"Cannot finish a match in state {self.state.name}")

            ranking = tuple(sorted(
                (RankingEntry(i, p.name, p.hand.score(), len(p.hand)) for i, p in enumerate(self.players)),
                key=lambda e: (e.player_idx not in self._winners, e.score, e.player_idx),
            ))
            self._result = MatchResult(
                ending=self.state,
                winners=self._winners,
                ranking=ranking,
                turns=self.turn_count,
            )
            self.state = MatchState.FINISHED
            logger.info(f"Match finished: {self._result.ending.name}, winners {self._result.winner_names}")
            return self._result

    def play_to_completion(self, max_turns: Optional[int] = None) -> MatchResult:
        """
        Deal if needed, run turns until the match ends, then finish it.

        Raises:
            ChoiceCancelled: a player's choice was cancelled; the match is
                left in progress and can be resumed
            MatchStateError: the match did not end within max_turns attempts
        """
        limit = self.rules.max_turns if max_turns is None else max_turns
        if self.state == MatchState.NOT_STARTED:
            self.deal()

        attempts = 0
        while self.state == MatchState.IN_PROGRESS:
            if attempts >= limit:
                raise MatchStateError(f"Match did not end within {limit} turns")
            result = self.attempt_turn()
            attempts += 1
            if result.outcome == TurnOutcome.CANCELLED:
                raise ChoiceCancelled(result.reason)

        return self.finish()

    def subscribe(self, listener: Listener) -> None:
        """Call listener with every TurnResult from now on"""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Turn internals (called with the state lock held)
    # ------------------------------------------------------------------

    def _play(self, player_idx: int, tile: Tile, end: Optional[End]) -> TurnResult:
        player = self.players[player_idx]
        try:
            if tile not in player.hand:
                raise NotInHand(f"{tile} is not in {player.name}'s hand")
            if not self.board.can_place(tile):
                raise IllegalPlacement(
                    f"{tile} cannot be placed on ends {self.board.left_end}|{self.board.right_end}")
            placed_end = self.board.place(tile, end)
        except RejectedAction as e:
            return self._reject(player_idx, e.reason)

        player.hand.remove(tile)
        self.turn_count += 1
        self._check_conservation()

        if not player.hand.has_tiles():
            self.state = MatchState.PLAYER_WON
            self._winners = (player_idx,)
            logger.info(f"{player.name} dominoes after {self.turn_count} turns")
        else:
            self._check_blocked()
            self._advance()

        return self._record(self._result_for(
            player_idx, TurnOutcome.PLAYED, tile=(tile.a, tile.b), end=placed_end))

    def _draw_or_pass(self, player_idx: int) -> TurnResult:
        player = self.players[player_idx]

        if self.boneyard.is_empty():
            if player.hand.has_playable(self.board):
                return self._reject(player_idx, "Nothing left to draw; you must play a tile.")
            drawn = None
            outcome = TurnOutcome.PASSED
        else:
            drawn = self.boneyard.draw_one()
            player.hand.add(drawn)
            outcome = TurnOutcome.DREW

        self.turn_count += 1
        self._check_conservation()
        self._check_blocked()

        keeps_turn = (
            drawn is not None
            and self.rules.draw_then_play
            and self.board.can_place(drawn)
        )
        if not keeps_turn:
            self._advance()

        pips = (drawn.a, drawn.b) if drawn is not None else None
        return self._record(self._result_for(player_idx, outcome, tile=pips))

    def _reject(self, player_idx: int, reason: str) -> TurnResult:
        self.players[player_idx].notify(reason)
        return self._record(self._result_for(player_idx, TurnOutcome.REJECTED, reason=reason))

    def _interrupt_pending_choice(self, result: TurnResult) -> None:
        if self._interrupt_choice is None or result.outcome == TurnOutcome.REJECTED:
            return
        self._interrupt_choice()

    def _advance(self) -> None:
        if self.state == MatchState.IN_PROGRESS:
            self.current_player_index = (self.current_player_index + 1) % len(self.players)

    def _check_blocked(self) -> None:
        if self.state != MatchState.IN_PROGRESS or not self.boneyard.is_empty():
            return
        if any(p.hand.has_playable(self.board) for p in self.players):
            return

        self.state = MatchState.BLOCKED
        lowest = min(p.hand.score() for p in self.players)
        self._winners = tuple(i for i, p in enumerate(self.players) if p.hand.score() == lowest)
        logger.info(f"Match blocked after {self.turn_count} turns; lowest hand score {lowest}")

    def _check_conservation(self) -> None:
        tiles = list(self.board.tiles) + list(self.boneyard.tiles)
        for player in self.players:
            tiles.extend(player.hand.tiles)
        if len(tiles) != NUM_TILES:
            raise InvariantViolation(f"Expected {NUM_TILES} tiles in play, found {len(tiles)}")
        if len({id(t) for t in tiles}) != NUM_TILES or len({t.pips for t in tiles}) != NUM_TILES:
            raise InvariantViolation("A tile is held in two places at once")

    def _result_for(self, player_idx: int, outcome: TurnOutcome, **kwargs) -> TurnResult:
        return TurnResult(
            turn=self.turn_count,
            player_idx=player_idx,
            player_name=self.players[player_idx].name,
            outcome=outcome,
            state=self.state,
            **kwargs,
        )

    def _record(self, result: TurnResult) -> TurnResult:
        self.history.append(result)
        if result.outcome in (TurnOutcome.REJECTED, TurnOutcome.CANCELLED):
            logger.info(str(result))
        else:
            logger.debug(str(result))
        for listener in list(self._listeners):
            listener(result)
        return result

    def _require_in_progress(self) -> None:
        if self.state != MatchState.IN_PROGRESS:
            raise MatchStateError(f"No turn can be played in state {self.state.name}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_over(self) -> bool:
        return self.state in TERMINAL_STATES

    def board_snapshot(self) -> BoardSnapshot:
        with self._lock:
            return self.board.snapshot()

    def current_player(self) -> Player:
        with self._lock:
            return self.players[self.current_player_index]

    def hand_of(self, player: PlayerRef) -> Tuple[Tile, ...]:
        with self._lock:
            return self.players[self._seat_of(player)].hand.tiles

    def pending_choice(self) -> Optional[Player]:
        """Player whose choice attempt_turn() is waiting on, if any"""
        with self._lock:
            return None if self._choosing is None else self.players[self._choosing]

    def boneyard_count(self) -> int:
        with self._lock:
            return self.boneyard.remaining

    def winners(self) -> Tuple[int, ...]:
        """Seats of the winner(s), once the match has ended"""
        with self._lock:
            if not self.is_over:
                raise MatchStateError(f"No winner yet in state {self.state.name}")
            return self._winners

    def final_ranking(self) -> List[RankingEntry]:
        with self._lock:
            if self.state != MatchState.FINISHED:
                raise MatchStateError(f"Ranking is only available once finished, not {self.state.name}")
            return list(self._result.ranking)

    def _seat_of(self, player: PlayerRef) -> int:
        if isinstance(player, Player):
            for i, p in enumerate(self.players):
                if p is player:
                    return i
        elif isinstance(player, str):
            for i, p in enumerate(self.players):
                if p.name == player:
                    return i
        elif 0 <= int(player) < len(self.players):
            return int(player)
        raise KeyError(f"Unknown player: {player!r}")

    def render(self) -> str:
        """Text summary of the match"""
        with self._lock:
            lines = [f"=== Dominoes - Turn {self.turn_count} ({self.state.name}) ==="]
            lines.append(f"Board: {self.board}")
            if not self.board.is_empty():
                lines.append(f"Ends: {self.board.left_end} | {self.board.right_end}")
            lines.append(f"Boneyard: {self.boneyard.remaining} ({self.boneyard.drawn_count} drawn)")
            for i, p in enumerate(self.players):
                marker = ">" if i == self.current_player_index and self.state == MatchState.IN_PROGRESS else " "
                lines.append(f"{marker} {p.name} ({len(p.hand)} tiles, {p.hand.score()} pips)")
            return "\n".join(lines)

    def __repr__(self) -> str:
        return (f"Match(state={self.state.name}, current={self.current_player_index}, "
                f"boneyard={self.boneyard.remaining})")
