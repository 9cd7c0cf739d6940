"""
Domino Gymnasium Environments
"""

from .domino_env import DominoEnv, register_envs

__all__ = ["DominoEnv", "register_envs"]
