"""
Domino Board Module

The line of play: placed tiles in order plus the two open ends.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Tuple

from .errors import IllegalPlacement, InvariantViolation
from .tiles import Tile

logger = logging.getLogger(__name__)


class End(IntEnum):
    """The two extremities of the line of play"""
    LEFT = 0
    RIGHT = 1


def fits(tile: Tile, left_end: Optional[int], right_end: Optional[int]) -> bool:
    """True if tile can join a line with the given ends (None ends = empty line)"""
    if left_end is None:
        return True
    return tile.matches(left_end) or tile.matches(right_end)


@dataclass(frozen=True)
class BoardSnapshot:
    """
    Read-only copy of the board handed to players and UIs.

    Attributes:
        tiles: Placed tiles as (left, right) pips in placed orientation
        left_end: Pip exposed on the left, None while the board is empty
        right_end: Pip exposed on the right, None while the board is empty
    """
    tiles: Tuple[Tuple[int, int], ...] = ()
    left_end: Optional[int] = None
    right_end: Optional[int] = None

    def is_empty(self) -> bool:
        return not self.tiles

    def can_place(self, tile: Tile) -> bool:
        return fits(tile, self.left_end, self.right_end)

    @property
    def ends(self) -> Tuple[Optional[int], Optional[int]]:
        return (self.left_end, self.right_end)

    def __len__(self) -> int:
        return len(self.tiles)

    def __str__(self) -> str:
        if not self.tiles:
            return "Empty"
        return "".join(f"[{a}|{b}]" for a, b in self.tiles)


class Board:
    """
    The placed tiles, leftmost first.

    While empty, both ends are None: 0 is a real pip value, so "no end" is
    kept distinct from "end shows 0". Once a tile is placed the ends always
    equal the outward pips of the first and last tiles.

    The board validates placements but never picks a side on its own when
    the caller names one. Without an explicit end a tile that fits both
    ends goes to the left.
    """

    def __init__(self):
        self.tiles: List[Tile] = []
        self.left_end: Optional[int] = None
        self.right_end: Optional[int] = None

    def is_empty(self) -> bool:
        return not self.tiles

    def can_place(self, tile: Tile) -> bool:
        return fits(tile, self.left_end, self.right_end)

    def playable_ends(self, tile: Tile) -> List[End]:
        """Ends the tile could be attached to (both ends on an empty board)"""
        if self.is_empty():
            return [End.LEFT, End.RIGHT]
        ends = []
        if tile.matches(self.left_end):
            ends.append(End.LEFT)
        if tile.matches(self.right_end):
            ends.append(End.RIGHT)
        return ends

    def place(self, tile: Tile, end: Optional[End] = None) -> End:
        """
        Attach a tile to the line of play, flipping it if needed.

        Args:
            tile: Tile to place
            end: Requested end, or None to use the first end that fits

        Returns:
            The end the tile was attached to

        Raises:
            IllegalPlacement: if the tile fits neither end (or not the
                requested one)
        """
        if any(t is tile for t in self.tiles):
            raise IllegalPlacement(f"{tile} is already on the board")

        if self.is_empty():
            self.tiles.append(tile)
            self.left_end, self.right_end = tile.a, tile.b
            self._check_invariant()
            logger.debug(f"Opened board with {tile}")
            return End.LEFT if end is None else End(end)

        ends = self.playable_ends(tile)
        if not ends:
            raise IllegalPlacement(
                f"{tile} matches neither end ({self.left_end}|{self.right_end})")
        if end is None:
            end = ends[0]
        elif End(end) not in ends:
            value = self.left_end if end == End.LEFT else self.right_end
            raise IllegalPlacement(f"{tile} does not match the {End(end).name.lower()} end ({value})")
        end = End(end)

        if end == End.LEFT:
            # Matching pip must face right, toward the current first tile
            if tile.b != self.left_end:
                tile.flip()
            self.tiles.insert(0, tile)
            self.left_end = tile.a
        else:
            if tile.a != self.right_end:
                tile.flip()
            self.tiles.append(tile)
            self.right_end = tile.b

        self._check_invariant()
        logger.debug(f"Placed {tile} on the {end.name.lower()}; ends {self.left_end}|{self.right_end}")
        return end

    def _check_invariant(self) -> None:
        first, last = self.tiles[0], self.tiles[-1]
        if self.left_end != first.a or self.right_end != last.b:
            raise InvariantViolation(
                f"Board ends {self.left_end}|{self.right_end} do not match "
                f"exposed pips {first.a}|{last.b}")
        for left, right in zip(self.tiles, self.tiles[1:]):
            if left.b != right.a:
                raise InvariantViolation(f"Adjacent tiles {left}{right} do not join")

    def snapshot(self) -> BoardSnapshot:
        return BoardSnapshot(
            tiles=tuple((t.a, t.b) for t in self.tiles),
            left_end=self.left_end,
            right_end=self.right_end,
        )

    def __len__(self) -> int:
        return len(self.tiles)

    def __repr__(self) -> str:
        return f"Board({len(self.tiles)} tiles, ends={self.left_end}|{self.right_end})"

    def __str__(self) -> str:
        if not self.tiles:
            return "Empty"
        return "".join(str(t) for t in self.tiles)
