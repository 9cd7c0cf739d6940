"""
Domino Engine Errors

Rejected actions are recoverable: the Match turns them into a REJECTED turn
and asks the same player again. Setup errors abort game creation before the
first turn. Invariant violations mean the engine itself is broken.
"""


class DominoError(Exception):
    """Base class for all engine errors"""


class RejectedAction(DominoError):
    """An action that was refused; the actor may try again"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class IllegalPlacement(RejectedAction):
    """Tile does not match the requested (or any) open end"""


class NotInHand(RejectedAction):
    """Tile is not held by the acting player"""


class InvalidTileValue(RejectedAction, ValueError):
    """Pip value outside 0-6"""


class SetupError(DominoError):
    """Match cannot be created or dealt"""


class InsufficientTiles(SetupError):
    """Not enough tiles to deal the requested hands"""


class InvalidBoneyard(SetupError):
    """Boneyard does not hold exactly the 28 unique tiles"""


class InvariantViolation(DominoError):
    """Internal consistency check failed"""


class MatchStateError(DominoError, RuntimeError):
    """Command issued in a state that does not allow it"""


class ChoiceCancelled(DominoError):
    """Interactive choice was cancelled or timed out"""
