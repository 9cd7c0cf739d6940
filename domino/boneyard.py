"""
Domino Boneyard Module

Handles the boneyard (draw pile), shuffling and drawing.
"""

import logging
from typing import List, Optional

import numpy as np

from .errors import InvalidBoneyard
from .tiles import Tile, build_full_set, NUM_TILES

logger = logging.getLogger(__name__)


class Boneyard:
    """
    The pile of tiles not yet dealt or drawn.

    Starts with the full set of 28 tiles and is only ever drained. Tiles
    are drawn front-to-back in the order left by the last shuffle.

    Attributes:
        tiles: Remaining tiles, next draw first
        drawn_count: Number of tiles that have been dealt or drawn
    """

    def __init__(self, tiles: Optional[List[Tile]] = None):
        if tiles is None:
            tiles = build_full_set()
            self._check_full_set(tiles)
        self.tiles: List[Tile] = list(tiles)
        self.drawn_count = 0

    @staticmethod
    def _check_full_set(tiles: List[Tile]) -> None:
        if len(tiles) != NUM_TILES or len({t.pips for t in tiles}) != NUM_TILES:
            raise InvalidBoneyard(f"Boneyard must start with {NUM_TILES} unique tiles, got {len(tiles)}")

    def shuffle(self, rng: np.random.Generator) -> None:
        """Uniformly permute the remaining tiles using the given generator"""
        order = rng.permutation(len(self.tiles))
        self.tiles = [self.tiles[i] for i in order]
        logger.debug(f"Boneyard shuffled ({len(self.tiles)} tiles)")

    def draw_one(self) -> Optional[Tile]:
        """
        Draw the next tile.
        Returns None once the boneyard is exhausted.
        """
        if not self.tiles:
            return None
        tile = self.tiles.pop(0)
        self.drawn_count += 1
        return tile

    def is_empty(self) -> bool:
        return not self.tiles

    @property
    def remaining(self) -> int:
        """Number of tiles left to draw"""
        return len(self.tiles)

    def __len__(self) -> int:
        return len(self.tiles)

    def __repr__(self) -> str:
        return f"Boneyard({self.remaining} tiles remaining)"
