"""
Tests for the Domino Gymnasium environment
"""

import pytest
import numpy as np

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from envs.domino_env import DominoEnv, register_envs
from agents.random_agent import RandomAgent
from domino.game import MatchState
from domino.rules import DRAW_THEN_PLAY_RULES


def run_episode(env, agent, seed=None, limit=500):
    obs, info = env.reset(seed=seed)
    total = 0.0
    for _ in range(limit):
        obs, reward, terminated, truncated, info = env.step(agent.act(obs))
        total += reward
        if terminated or truncated:
            return obs, total, terminated, info
    raise AssertionError("Episode did not end")


class TestDominoEnv:
    """Test the environment"""

    def test_env_creation(self):
        env = DominoEnv()
        assert env.action_space.n == 57
        assert env.ACTION_DRAW == 56

    def test_bad_seat(self):
        with pytest.raises(ValueError):
            DominoEnv(num_players=2, player_idx=2)

    def test_env_reset(self):
        env = DominoEnv(seed=42)
        obs, info = env.reset()

        assert obs["hand"].shape == (28,)
        assert obs["board"].shape == (28,)
        assert obs["ends"].shape == (2,)
        assert obs["opponent_hand_sizes"].shape == (1,)
        assert obs["valid_actions"].shape == (57,)
        assert obs["game_info"].shape == (4,)
        assert obs["hand"].sum() == 7
        assert list(obs["ends"]) == [-1, -1]
        assert info["state"] == "IN_PROGRESS"
        assert env.observation_space.contains(obs)

    def test_opening_mask(self):
        env = DominoEnv(seed=1)
        obs, _ = env.reset()
        held = np.flatnonzero(obs["hand"])
        playable = np.flatnonzero(obs["valid_actions"][:56])
        # Any held tile opens the board, on either side
        assert sorted(set(playable // 2)) == sorted(held)
        assert len(playable) == 14
        assert obs["valid_actions"][56] == 1

    def test_agent_second_seat(self):
        env = DominoEnv(num_players=3, player_idx=1, seed=5)
        obs, info = env.reset()
        assert obs["board"].sum() == 1
        assert obs["opponent_hand_sizes"].shape == (2,)
        assert info["current_player"] == 1

    def test_valid_step(self):
        env = DominoEnv(seed=3)
        obs, _ = env.reset()
        action = int(np.flatnonzero(obs["valid_actions"])[0])
        obs, reward, terminated, truncated, info = env.step(action)

        assert obs["board"].sum() >= 1
        assert reward == 0.0 or terminated
        assert not truncated

    def test_invalid_action_penalty(self):
        env = DominoEnv(seed=3)
        obs, _ = env.reset()
        invalid = int(np.flatnonzero(obs["valid_actions"] == 0)[0])
        _, reward, _, _, _ = env.step(invalid)
        assert reward <= 0.0
        assert reward < 0.0 or env.match.is_over

    def test_full_episode(self):
        env = DominoEnv(seed=11)
        agent = RandomAgent(seed=11)
        obs, total, terminated, info = run_episode(env, agent)

        assert terminated
        assert env.match.state in (MatchState.PLAYER_WON, MatchState.BLOCKED)
        assert -1.0 <= total <= 1.0
        assert info["episode"]["r"] == total
        assert obs["valid_actions"].sum() == 0

    def test_reward_follows_winners(self):
        for seed in range(10):
            env = DominoEnv(num_players=3, seed=seed)
            _, total, _, info = run_episode(env, RandomAgent(seed=seed))
            winners = info["episode"]["winners"]
            if 0 in winners:
                assert total == pytest.approx(1.0 / len(winners))
            else:
                assert total == -1.0

    def test_draw_then_play_episode(self):
        env = DominoEnv(rules=DRAW_THEN_PLAY_RULES, seed=2)
        _, _, terminated, _ = run_episode(env, RandomAgent(seed=2))
        assert terminated

    def test_reset_is_reproducible(self):
        first, _ = DominoEnv().reset(seed=9)
        second, _ = DominoEnv().reset(seed=9)
        assert np.array_equal(first["hand"], second["hand"])

    def test_render(self):
        env = DominoEnv(seed=4, render_mode="ansi")
        env.reset()
        text = env.render()
        assert "Your Hand" in text
        assert "Boneyard" in text

    def test_register(self):
        import gymnasium as gym
        register_envs()
        env = gym.make("Domino-v0")
        obs, _ = env.reset(seed=0)
        assert obs["valid_actions"].sum() > 0
        env.close()


class TestRandomAgent:
    """Test the baseline agent"""

    def test_picks_valid_action(self):
        agent = RandomAgent(seed=0)
        mask = np.zeros(57, dtype=np.int8)
        mask[[4, 9, 56]] = 1
        for _ in range(20):
            assert agent.act({"valid_actions": mask}) in (4, 9, 56)

    def test_play_first(self):
        mask = np.zeros(57, dtype=np.int8)
        mask[[4, 9, 56]] = 1
        eager = RandomAgent(seed=0)
        assert 56 not in {eager.act({"valid_actions": mask}) for _ in range(50)}
        relaxed = RandomAgent(seed=0, play_first=False)
        assert 56 in {relaxed.act({"valid_actions": mask}) for _ in range(50)}

        stuck = np.zeros(57, dtype=np.int8)
        stuck[56] = 1
        assert eager.act({"valid_actions": stuck}) == 56

    def test_empty_mask(self):
        agent = RandomAgent(seed=0)
        action, state = agent.predict({"valid_actions": np.zeros(57, dtype=np.int8)})
        assert action == 56
        assert state is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
