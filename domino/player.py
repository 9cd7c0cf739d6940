"""
Domino Player Module

Handles hands, players and the two ways a player picks a move:
interactively (a person answering prompts) or automatically.
"""

import logging
import queue
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple, Union

import numpy as np

from .board import BoardSnapshot
from .errors import ChoiceCancelled, NotInHand, RejectedAction
from .tiles import Tile

logger = logging.getLogger(__name__)


class Hand:
    """
    Tiles held by one player.

    Membership is by identity, so removing a tile removes that exact piece.
    """

    def __init__(self, tiles: Optional[List[Tile]] = None):
        self._tiles: List[Tile] = list(tiles) if tiles else []

    def add(self, tile: Tile) -> None:
        self._tiles.append(tile)

    def remove(self, tile: Tile) -> None:
        """Remove exactly this tile. Raises NotInHand if it is not held."""
        for i, held in enumerate(self._tiles):
            if held is tile:
                del self._tiles[i]
                return
        raise NotInHand(f"{tile} is not in hand")

    def playable_tiles(self, board) -> Iterator[Tile]:
        """Held tiles the board (or a BoardSnapshot) would accept"""
        return (t for t in list(self._tiles) if board.can_place(t))

    def has_playable(self, board) -> bool:
        return next(self.playable_tiles(board), None) is not None

    def has_tiles(self) -> bool:
        return bool(self._tiles)

    def score(self) -> int:
        """Sum of pip totals over all held tiles"""
        return sum(t.pip_total() for t in self._tiles)

    @property
    def tiles(self) -> Tuple[Tile, ...]:
        return tuple(self._tiles)

    def clear(self) -> None:
        self._tiles = []

    def __contains__(self, tile: Tile) -> bool:
        return any(held is tile for held in self._tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(list(self._tiles))

    def __len__(self) -> int:
        return len(self._tiles)

    def __repr__(self) -> str:
        return f"Hand({len(self._tiles)} tiles, score={self.score()})"

    def __str__(self) -> str:
        return " ".join(str(t) for t in self._tiles)


class Strategy(ABC):
    """How a player selects a move. Match never looks past this interface."""

    interactive = False

    @abstractmethod
    def choose_move(self, board: BoardSnapshot, hand: Hand) -> Optional[Tile]:
        """
        Pick a tile from the hand to play, or None to draw instead.

        Args:
            board: Read-only view of the line of play
            hand: The player's hand

        Returns:
            A tile held in ``hand`` or None
        """

    def notify(self, message: str) -> None:
        """Receive a message from the match (rejections, game events)"""
        logger.debug(message)

    def bind_rng(self, rng: np.random.Generator) -> None:
        """Receive the match's random generator"""

    def interrupter(self) -> Callable[[], None]:
        """
        Return a callable that abandons the next choice (or the one in
        progress) and nothing after it. Used when another command resolves
        the turn first.
        """
        return lambda: None


Response = Union[int, str, None]
DRAW_WORDS = ("d", "draw")
_CANCEL = object()


class _Interrupt:
    # Only cancels the wait it was issued for
    def __init__(self, generation: int):
        self.generation = generation


def parse_choice(response: Response, hand_size: int) -> int:
    """
    Turn a raw answer into a choice number.

    0 (or "d"/"draw") means draw; 1..hand_size picks that tile in hand order.
    Raises RejectedAction for anything else.
    """
    if isinstance(response, str):
        text = response.strip().lower()
        if text in DRAW_WORDS:
            return 0
        if not text.lstrip("-").isdigit():
            raise RejectedAction("Please enter a valid number.")
        response = int(text)
    if not isinstance(response, (int, np.integer)):
        raise RejectedAction("Please enter a valid number.")
    choice = int(response)
    if not 0 <= choice <= hand_size:
        raise RejectedAction(f"Invalid choice. Enter 1-{hand_size}, or 0 to draw.")
    return choice


class InteractiveStrategy(Strategy):
    """
    A person picks the move.

    Answers come from ``prompt`` (e.g. ``input`` on a console) when given,
    otherwise from responses pushed with ``submit()``, typically by a UI
    thread. Invalid numbers and unplayable tiles are reported via
    ``notify`` and the player is asked again; the turn is never dropped.

    Waiting on submitted responses honours ``timeout``; on timeout, or
    after ``cancel()``, ChoiceCancelled is raised and nothing is played.
    A callable from ``interrupter()`` does the same for one choice only;
    the match uses it when a UI resolves the turn first.
    """

    interactive = True

    def __init__(
        self,
        prompt: Optional[Callable[[str], str]] = None,
        output: Optional[Callable[[str], None]] = None,
        timeout: Optional[float] = None,
    ):
        self.prompt = prompt
        self.output = output
        self.timeout = timeout
        self._responses: "queue.Queue" = queue.Queue()
        self._choice_lock = threading.Lock()
        self._generation = 0

    def submit(self, response: Response) -> None:
        """Answer the current (or next) question"""
        self._responses.put(response)

    def cancel(self) -> None:
        """Abandon the current (or next) choice"""
        self._responses.put(_CANCEL)

    def interrupter(self) -> Callable[[], None]:
        with self._choice_lock:
            generation = self._generation
        return lambda: self._responses.put(_Interrupt(generation))

    def notify(self, message: str) -> None:
        logger.debug(message)
        if self.output is not None:
            self.output(message)

    def _read(self, question: str, generation: int) -> Response:
        if self.prompt is not None:
            return self.prompt(question)

        while True:
            try:
                response = self._responses.get(timeout=self.timeout)
            except queue.Empty:
                raise ChoiceCancelled(f"No choice made within {self.timeout} seconds")
            if isinstance(response, _Interrupt):
                if response.generation == generation:
                    raise ChoiceCancelled("Turn resolved elsewhere")
                continue
            if response is _CANCEL:
                raise ChoiceCancelled("Choice cancelled")
            return response

    def choose_move(self, board: BoardSnapshot, hand: Hand) -> Optional[Tile]:
        with self._choice_lock:
            generation = self._generation
        try:
            return self._choose(board, hand, generation)
        finally:
            with self._choice_lock:
                self._generation += 1

    def _choose(self, board: BoardSnapshot, hand: Hand, generation: int) -> Optional[Tile]:
        tiles = hand.tiles
        self.notify(self.describe(board, hand))
        question = f"Choose a piece to play (1-{len(tiles)}) or 0 to draw: "

        while True:
            try:
                choice = parse_choice(self._read(question, generation), len(tiles))
            except RejectedAction as e:
                self.notify(e.reason)
                continue

            if choice == 0:
                return None

            tile = tiles[choice - 1]
            if board.can_place(tile):
                return tile
            self.notify(f"{tile} cannot be placed. Choose another or draw.")

    @staticmethod
    def describe(board: BoardSnapshot, hand: Hand) -> str:
        lines = [f"Board: {board}"]
        if not board.is_empty():
            lines.append(f"Board ends: {board.left_end} | {board.right_end}")
        for i, tile in enumerate(hand.tiles, start=1):
            mark = "*" if board.can_place(tile) else " "
            lines.append(f"  {i}: {tile}{mark}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return "InteractiveStrategy()"


class AutomaticStrategy(Strategy):
    """
    Plays the first playable tile found while scanning the hand in a random
    order. Returns immediately; any "thinking" delay belongs to the UI.

    Without a seed the strategy uses the generator bound by the match.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng: Optional[np.random.Generator] = (
            np.random.default_rng(seed) if seed is not None else None
        )

    def bind_rng(self, rng: np.random.Generator) -> None:
        if self.rng is None:
            self.rng = rng

    def choose_move(self, board: BoardSnapshot, hand: Hand) -> Optional[Tile]:
        if self.rng is None:
            self.rng = np.random.default_rng()
        tiles = hand.tiles
        for i in self.rng.permutation(len(tiles)):
            tile = tiles[int(i)]
            if board.can_place(tile):
                return tile
        return None

    def __repr__(self) -> str:
        return f"AutomaticStrategy(seed={self.seed})"


@dataclass(eq=False)
class Player:
    """
    A seat at the table.

    Attributes:
        name: Display name
        strategy: How this player picks moves
        hand: Tiles currently held
    """
    name: str
    strategy: Strategy
    hand: Hand = field(default_factory=Hand)

    @classmethod
    def human(cls, name: str, **kwargs) -> "Player":
        return cls(name, InteractiveStrategy(**kwargs))

    @classmethod
    def computer(cls, name: str = "Computer", seed: Optional[int] = None) -> "Player":
        return cls(name, AutomaticStrategy(seed))

    @property
    def is_interactive(self) -> bool:
        return self.strategy.interactive

    def choose_move(self, board: BoardSnapshot) -> Optional[Tile]:
        return self.strategy.choose_move(board, self.hand)

    def notify(self, message: str) -> None:
        self.strategy.notify(message)

    def score(self) -> int:
        return self.hand.score()

    def __repr__(self) -> str:
        kind = "human" if self.is_interactive else "computer"
        return f"Player({self.name!r}, {kind}, hand={len(self.hand)})"

    def __str__(self) -> str:
        return f"{self.name}: Hand[{self.hand}]"
