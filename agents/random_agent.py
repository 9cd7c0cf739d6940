"""
Random Agent for Dominoes

Baseline agents that pick a random legal action from the environment's mask.
"""

import numpy as np
from typing import Dict, Optional

from envs.domino_env import DominoEnv


class RandomAgent:
    """
    Random agent over the valid-action mask.

    By default it behaves like the engine's automatic players: it plays a
    random placeable tile (on a random fitting end) and only draws when
    nothing fits. With ``play_first=False`` drawing is just one more
    equally likely action.
    """

    def __init__(self, seed: Optional[int] = None, play_first: bool = True):
        """
        Initialize the random agent.

        Args:
            seed: Random seed for reproducibility
            play_first: Never draw while a tile can be played
        """
        self.rng = np.random.default_rng(seed)
        self.play_first = play_first

    def act(self, observation: Dict[str, np.ndarray]) -> int:
        """
        Select an action given the current observation.

        Args:
            observation: Dictionary observation from the environment

        Returns:
            Action index
        """
        valid_actions = observation["valid_actions"]
        valid_indices = np.flatnonzero(valid_actions == 1)

        if len(valid_indices) == 0:
            # Match over; any action is ignored
            return DominoEnv.ACTION_DRAW

        if self.play_first:
            plays = valid_indices[valid_indices != DominoEnv.ACTION_DRAW]
            if len(plays) > 0:
                valid_indices = plays

        return int(self.rng.choice(valid_indices))

    def predict(self, observation: Dict[str, np.ndarray], deterministic: bool = True):
        """SB3-style interface: returns (action, state)."""
        return self.act(observation), None

    def reset(self):
        pass

    def __repr__(self) -> str:
        return f"RandomAgent(play_first={self.play_first})"
