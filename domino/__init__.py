"""
Domino Game Engine
Block dominoes with a double-six set (28 tiles)
"""

from .tiles import Tile, build_full_set, NUM_TILES
from .boneyard import Boneyard
from .board import Board, BoardSnapshot, End
from .player import Hand, Player, Strategy, InteractiveStrategy, AutomaticStrategy
from .rules import RuleSet, CLASSIC_RULES, PARTNER_RULES, DRAW_THEN_PLAY_RULES
from .game import Match, MatchState, MatchResult, RankingEntry, TurnOutcome, TurnResult
from .errors import (
    DominoError,
    RejectedAction,
    IllegalPlacement,
    NotInHand,
    InvalidTileValue,
    SetupError,
    InsufficientTiles,
    InvalidBoneyard,
    InvariantViolation,
    MatchStateError,
    ChoiceCancelled,
)

__version__ = "0.1.0"
__all__ = [
    "Tile",
    "build_full_set",
    "NUM_TILES",
    "Boneyard",
    "Board",
    "BoardSnapshot",
    "End",
    "Hand",
    "Player",
    "Strategy",
    "InteractiveStrategy",
    "AutomaticStrategy",
    "RuleSet",
    "CLASSIC_RULES",
    "PARTNER_RULES",
    "DRAW_THEN_PLAY_RULES",
    "Match",
    "MatchState",
    "MatchResult",
    "RankingEntry",
    "TurnOutcome",
    "TurnResult",
    "DominoError",
    "RejectedAction",
    "IllegalPlacement",
    "NotInHand",
    "InvalidTileValue",
    "SetupError",
    "InsufficientTiles",
    "InvalidBoneyard",
    "InvariantViolation",
    "MatchStateError",
    "ChoiceCancelled",
]
