"""
Domino Gymnasium Environment

A Gymnasium-compatible environment where an agent plays one seat of a
block dominoes match against automatic opponents.
"""

import gymnasium as gym
from gymnasium import spaces
import numpy as np
from typing import Optional, Tuple, Dict, Any

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from domino.board import End
from domino.game import Match, MatchState, TurnOutcome
from domino.player import Player, InteractiveStrategy
from domino.rules import RuleSet, CLASSIC_RULES
from domino.tiles import NUM_TILES


class DominoEnv(gym.Env):
    """
    Block Dominoes Environment.

    The agent controls one seat; every other seat is an automatic player
    choosing a random legal tile.

    Observation Space:
        A dictionary containing:
        - hand: (28,) int8 - 1 for each tile held by the agent
        - board: (28,) int8 - 1 for each tile on the board
        - ends: (2,) int8 - Left and right open ends, -1 while the board is empty
        - opponent_hand_sizes: (num_players - 1,) int8 - Tiles held by each opponent
        - valid_actions: (57,) int8 - Binary mask of valid actions
        - game_info: (4,) float32 - [boneyard_remaining, turn_count,
                                     hand_size, hand_score]

    Action Space:
        Discrete(57):
        - 0-55: Play tile (action // 2) on the left (even) or right (odd) end
        - 56: Draw from the boneyard, or pass when it is empty
    """

    metadata = {"render_modes": ["human", "ansi"], "render_fps": 1}

    ACTION_DRAW = 2 * NUM_TILES
    NUM_ACTIONS = 2 * NUM_TILES + 1

    def __init__(
        self,
        num_players: int = 2,
        player_idx: int = 0,
        hand_size: Optional[int] = None,
        rules: RuleSet = CLASSIC_RULES,
        seed: Optional[int] = None,
        render_mode: Optional[str] = None,
        max_steps: int = 1000,
    ):
        """
        Initialize the domino environment.

        Args:
            num_players: Seats at the table, agent included
            player_idx: Seat of the agent
            hand_size: Initial hand size (defaults to the rule set's)
            rules: Table configuration
            seed: Random seed for reproducibility
            render_mode: Rendering mode ("human" or "ansi")
            max_steps: Agent steps before the episode is truncated
        """
        super().__init__()

        if not 0 <= player_idx < num_players:
            raise ValueError(f"player_idx must be in 0-{num_players - 1}, got {player_idx}")

        self.num_players = num_players
        self.player_idx = player_idx
        self.hand_size = hand_size
        self.rules = rules
        self._initial_seed = seed
        self.render_mode = render_mode
        self.max_steps = max_steps

        self.match: Optional[Match] = None

        self.observation_space = spaces.Dict({
            "hand": spaces.Box(low=0, high=1, shape=(NUM_TILES,), dtype=np.int8),
            "board": spaces.Box(low=0, high=1, shape=(NUM_TILES,), dtype=np.int8),
            "ends": spaces.Box(low=-1, high=6, shape=(2,), dtype=np.int8),
            "opponent_hand_sizes": spaces.Box(
                low=0, high=NUM_TILES, shape=(num_players - 1,), dtype=np.int8),
            "valid_actions": spaces.Box(low=0, high=1, shape=(self.NUM_ACTIONS,), dtype=np.int8),
            "game_info": spaces.Box(low=0, high=1000, shape=(4,), dtype=np.float32),
        })
        self.action_space = spaces.Discrete(self.NUM_ACTIONS)

        self._episode_reward = 0.0
        self._episode_length = 0

    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[Dict] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict]:
        """
        Reset the environment to start a new match.

        Args:
            seed: Random seed
            options: Additional options (unused)

        Returns:
            Tuple of (observation, info)
        """
        super().reset(seed=seed)

        if seed is None:
            seed = self._initial_seed
        if seed is None:
            seed = int(self.np_random.integers(0, 2**31 - 1))
        self._initial_seed = None  # only the first reset reuses the constructor seed

        players = []
        for i in range(self.num_players):
            if i == self.player_idx:
                # Agent moves come through step(), never through this strategy
                players.append(Player("Agent", InteractiveStrategy(timeout=0)))
            else:
                players.append(Player.computer(f"Computer {i}"))

        self.match = Match(players, initial_hand_size=self.hand_size, seed=seed, rules=self.rules)
        self.match.deal()

        self._episode_reward = 0.0
        self._episode_length = 0

        self._run_opponents_until_agent_turn()

        return self._get_observation(), self._get_info()

    def step(self, action: int) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict]:
        """
        Take a step in the environment.

        Args:
            action: Action index from action space

        Returns:
            Tuple of (observation, reward, terminated, truncated, info)
        """
        if self.match is None:
            raise RuntimeError("Call reset() before step()")
        self._episode_length += 1
        reward = 0.0

        if not self.match.is_over:
            mask = self._get_valid_actions_mask()
            action = int(action)
            if not 0 <= action < self.NUM_ACTIONS or mask[action] != 1:
                # Invalid action - apply penalty and choose a random valid action
                reward -= 1.0
                action = int(self.np_random.choice(np.flatnonzero(mask)))

            result = self._apply(action)
            if result.outcome == TurnOutcome.REJECTED:
                # Mask and engine disagree; never expected
                raise RuntimeError(f"Engine rejected a masked action: {result.reason}")

            self._run_opponents_until_agent_turn()

        terminated = self.match.is_over
        truncated = not terminated and self._episode_length >= self.max_steps

        if terminated:
            reward += self._final_reward()

        self._episode_reward += reward
        obs = self._get_observation()
        info = self._get_info()

        if terminated or truncated:
            info["episode"] = {
                "r": self._episode_reward,
                "l": self._episode_length,
                "winners": list(self.match.winners()) if terminated else [],
            }

        return obs, reward, terminated, truncated, info

    def _apply(self, action: int):
        if action == self.ACTION_DRAW:
            return self.match.force_draw_for_current_player()
        tile_idx, end = divmod(action, 2)
        tile = self._held_tile(tile_idx)
        return self.match.play_tile(tile, End(end))

    def _held_tile(self, tile_idx: int):
        for tile in self.match.hand_of(self.player_idx):
            if tile.index == tile_idx:
                return tile
        raise ValueError(f"Agent does not hold tile {tile_idx}")

    def _run_opponents_until_agent_turn(self) -> None:
        """Let automatic seats act until the agent must move or the match ends."""
        max_turns = self.rules.max_turns
        turns = 0
        while (self.match.state == MatchState.IN_PROGRESS
               and self.match.current_player_index != self.player_idx
               and turns < max_turns):
            self.match.attempt_turn()
            turns += 1

    def _final_reward(self) -> float:
        winners = self.match.winners()
        if self.player_idx not in winners:
            return -1.0
        return 1.0 / len(winners)

    def _get_observation(self) -> Dict[str, np.ndarray]:
        """Get current observation for the agent."""
        match = self.match
        agent = match.players[self.player_idx]

        hand = np.zeros(NUM_TILES, dtype=np.int8)
        for tile in agent.hand:
            hand[tile.index] = 1

        board = np.zeros(NUM_TILES, dtype=np.int8)
        for tile in match.board.tiles:
            board[tile.index] = 1

        snapshot = match.board_snapshot()
        ends = np.array([
            -1 if snapshot.left_end is None else snapshot.left_end,
            -1 if snapshot.right_end is None else snapshot.right_end,
        ], dtype=np.int8)

        opponent_hand_sizes = np.array(
            [len(p.hand) for i, p in enumerate(match.players) if i != self.player_idx],
            dtype=np.int8)

        game_info = np.array([
            match.boneyard_count(),
            match.turn_count,
            len(agent.hand),
            agent.hand.score(),
        ], dtype=np.float32)

        return {
            "hand": hand,
            "board": board,
            "ends": ends,
            "opponent_hand_sizes": opponent_hand_sizes,
            "valid_actions": self._get_valid_actions_mask(),
            "game_info": game_info,
        }

    def _get_valid_actions_mask(self) -> np.ndarray:
        """Get binary mask of valid actions."""
        mask = np.zeros(self.NUM_ACTIONS, dtype=np.int8)
        match = self.match
        if match.state != MatchState.IN_PROGRESS or match.current_player_index != self.player_idx:
            return mask

        hand = match.players[self.player_idx].hand
        can_play = False
        for tile in hand:
            for end in match.board.playable_ends(tile):
                mask[2 * tile.index + int(end)] = 1
                can_play = True

        # Drawing is always allowed while tiles remain; passing only when stuck
        if match.boneyard_count() > 0 or not can_play:
            mask[self.ACTION_DRAW] = 1
        return mask

    def _get_info(self) -> Dict[str, Any]:
        """Get additional info about the environment state."""
        return {
            "turn": self.match.turn_count,
            "state": self.match.state.name,
            "current_player": self.match.current_player_index,
            "boneyard_remaining": self.match.boneyard_count(),
        }

    def render(self) -> Optional[str]:
        """Render the environment."""
        if self.render_mode == "human":
            print(self._render_ansi())
        elif self.render_mode == "ansi":
            return self._render_ansi()
        return None

    def _render_ansi(self) -> str:
        lines = [self.match.render(), ""]
        agent = self.match.players[self.player_idx]
        lines.append(f"--- Your Hand (Player {self.player_idx}) ---")
        lines.append(f"Hand: {agent.hand}")
        return "\n".join(lines)

    def close(self):
        """Clean up resources."""
        self.match = None


def register_envs():
    """Register the domino environment with Gymnasium."""
    gym.register(
        id="Domino-v0",
        entry_point="envs.domino_env:DominoEnv",
        max_episode_steps=1000,
    )
