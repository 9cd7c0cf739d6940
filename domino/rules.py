"""
Domino Rule Sets

Table configurations for block dominoes with a double-six set.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RuleSet:
    """
    Rule configuration for a block dominoes match.

    The engine itself is fixed to one 28-tile set; a rule set only tunes
    the table around it.
    """

    name: str = "Classic"

    # Tiles dealt to each player before the first turn
    initial_hand_size: int = 7

    # Seats at the table
    min_players: int = 2
    max_players: int = 4

    # After drawing, False ends the turn (draw-then-pass); True lets the
    # player keep the turn when the drawn tile is playable (draw-then-play)
    draw_then_play: bool = False

    # Safety cap for play_to_completion()
    max_turns: int = 1000

    def __repr__(self) -> str:
        return f"RuleSet({self.name})"


CLASSIC_RULES = RuleSet()

# Four players, the whole set dealt out: the boneyard starts empty
PARTNER_RULES = RuleSet(
    name="Partner",
    initial_hand_size=7,
    min_players=4,
    max_players=4,
)

DRAW_THEN_PLAY_RULES = RuleSet(
    name="DrawThenPlay",
    draw_then_play=True,
)
