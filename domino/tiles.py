"""
Domino Tiles

Defines the 28 tiles of a double-six set:
- 7 doubles ([0|0] .. [6|6])
- 21 non-doubles, one for each unordered pair of distinct pips
Total: C(7+1, 2) = 28 tiles
"""

from numbers import Integral
from typing import List, Tuple

from .errors import InvalidTileValue, InvalidBoneyard

MAX_PIP = 6
NUM_TILES = 28


def _canonical_index(low: int, high: int) -> int:
    # Position of (low, high) in the row-major enumeration of build_full_set()
    return low * (2 * MAX_PIP + 3 - low) // 2 + (high - low)


class Tile:
    """
    A single domino piece.

    The unordered pair of pips never changes. What does change is the
    current orientation: ``a`` is the value shown on the left (first) side
    and ``b`` the value on the right (second) side. Board placement may
    flip a tile so that its matching pip faces the end it joins.

    Tiles compare by identity: two Tile objects are the same piece only
    if they are the same object. Use ``same_pips`` for value comparison.
    """

    __slots__ = ("a", "b")

    def __init__(self, a: int, b: int):
        for value in (a, b):
            if isinstance(value, bool) or not isinstance(value, Integral) or not 0 <= value <= MAX_PIP:
                raise InvalidTileValue(f"Pip values must be 0-{MAX_PIP}, got {a}|{b}")
        self.a = int(a)
        self.b = int(b)

    def matches(self, value: int) -> bool:
        """True if either pip equals value (independent of orientation)"""
        return self.a == value or self.b == value

    def flip(self) -> None:
        """Swap which pip is exposed on the left and on the right"""
        self.a, self.b = self.b, self.a

    def is_double(self) -> bool:
        return self.a == self.b

    def pip_total(self) -> int:
        return self.a + self.b

    @property
    def pips(self) -> Tuple[int, int]:
        """Orientation-free (low, high) pair"""
        return (self.a, self.b) if self.a <= self.b else (self.b, self.a)

    @property
    def index(self) -> int:
        """Unique index of this tile's pip pair in the full set (0-27)"""
        low, high = self.pips
        return _canonical_index(low, high)

    def same_pips(self, other: "Tile") -> bool:
        return self.pips == other.pips

    @classmethod
    def from_index(cls, index: int) -> "Tile":
        """Create the tile whose canonical index is ``index``"""
        if not 0 <= index < NUM_TILES:
            raise InvalidTileValue(f"Tile index must be 0-{NUM_TILES - 1}, got {index}")
        for low in range(MAX_PIP + 1):
            for high in range(low, MAX_PIP + 1):
                if _canonical_index(low, high) == index:
                    return cls(low, high)
        raise InvalidTileValue(f"No tile with index {index}")

    @classmethod
    def from_string(cls, s: str) -> "Tile":
        """
        Parse a tile from text.

        Accepts "[3|5]", "3|5", "3-5", "3,5" and "35". The orientation of
        the text is kept.
        """
        text = (s or "").strip().replace("[", "").replace("]", "").replace(" ", "")
        for sep in ("|", "-", ","):
            if sep in text:
                left, right = text.split(sep, 1)
                break
        else:
            if len(text) != 2:
                raise InvalidTileValue(f"Cannot parse tile: {s!r}")
            left, right = text[0], text[1]
        if not (left.isdigit() and right.isdigit()):
            raise InvalidTileValue(f"Cannot parse tile: {s!r}")
        return cls(int(left), int(right))

    def __repr__(self) -> str:
        return f"Tile({self.a}, {self.b})"

    def __str__(self) -> str:
        return f"[{self.a}|{self.b}]"


def build_full_set() -> List[Tile]:
    """
    Create one of each of the 28 tiles, ordered by canonical index.

    Raises InvalidBoneyard if the generated set is not exactly 28 unique
    pip pairs.
    """
    tiles = [Tile(low, high)
             for low in range(MAX_PIP + 1)
             for high in range(low, MAX_PIP + 1)]
    if len(tiles) != NUM_TILES or len({t.pips for t in tiles}) != NUM_TILES:
        raise InvalidBoneyard(f"Full set must hold {NUM_TILES} unique tiles, got {len(tiles)}")
    return tiles
