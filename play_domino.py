#!/usr/bin/env python3
"""
Play block dominoes on the console.

Usage:
    python play_domino.py --name Alice
    python play_domino.py --name Alice --opponents 3 --hand-size 5
    python play_domino.py --simulate 100 --seed 7
"""

import argparse
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import List, Optional

import numpy as np

sys.path.insert(0, str(Path(__file__).parent))

from domino.errors import ChoiceCancelled, DominoError
from domino.game import Match, MatchResult, MatchState, TurnOutcome, TurnResult
from domino.player import Player, InteractiveStrategy
from domino.rules import CLASSIC_RULES, DRAW_THEN_PLAY_RULES

logger = logging.getLogger(__name__)


def console_prompt(question: str) -> str:
    """Read one answer from stdin; 'q' abandons the game."""
    try:
        answer = input(question)
    except EOFError:
        raise ChoiceCancelled("Input closed")
    if answer.strip().lower() == "q":
        raise ChoiceCancelled("Player quit")
    return answer


def print_result(result: MatchResult) -> None:
    print()
    print("=" * 60)
    if result.ending == MatchState.PLAYER_WON:
        print(f"🎉 {result.winner_names[0]} wins the game!")
    elif len(result.winners) == 1:
        print(f"Game blocked! 🏆 {result.winner_names[0]} wins with the lowest score.")
    else:
        print(f"Game blocked! Tie between {', '.join(result.winner_names)}.")
    print("=" * 60)
    print("\nFinal Scores:")
    for entry in result.ranking:
        print(f"  {entry.name}: {entry.score} ({entry.tiles_left} tiles left)")


def play_game(name: str, opponents: int = 1, hand_size: Optional[int] = None,
              seed: Optional[int] = None, draw_then_play: bool = False):
    """
    Play one match against computer opponents.

    Args:
        name: Human player's name
        opponents: Number of computer players
        hand_size: Tiles dealt to each player
        seed: Random seed for the shuffle and the computers
        draw_then_play: Keep the turn after drawing a playable tile
    """
    print("=" * 60)
    print("Dominoes - Play Against the Computer")
    print("=" * 60)
    print("Type a piece number to play it, 0 to draw, or 'q' to quit.")
    print("Playable pieces are marked with *.")

    human = Player(name, InteractiveStrategy(prompt=console_prompt, output=print))
    players: List[Player] = [human]
    players += [Player.computer(f"Computer {i + 1}") for i in range(opponents)]

    rules = DRAW_THEN_PLAY_RULES if draw_then_play else CLASSIC_RULES
    match = Match(players, initial_hand_size=hand_size, seed=seed, rules=rules)

    def announce(result: TurnResult) -> None:
        if result.outcome in (TurnOutcome.PLAYED, TurnOutcome.DREW, TurnOutcome.PASSED):
            print(result)

    match.subscribe(announce)
    match.deal()

    while match.state == MatchState.IN_PROGRESS:
        current = match.current_player()
        if current is human:
            print(f"\n=== {current.name}'s Turn ===")
        result = match.attempt_turn()
        if result.outcome == TurnOutcome.CANCELLED:
            print("Thanks for playing!")
            return None

    result = match.finish()
    print()
    print(match.render())
    print_result(result)
    return result


def simulate(num_games: int, num_players: int = 2, hand_size: Optional[int] = None,
             seed: Optional[int] = None, draw_then_play: bool = False):
    """Play automatic matches and report how they ended."""
    rules = DRAW_THEN_PLAY_RULES if draw_then_play else CLASSIC_RULES
    seeds = np.random.default_rng(seed).integers(0, 2**31 - 1, size=num_games)

    endings = Counter()
    wins = Counter()
    turns = []
    for game, game_seed in enumerate(seeds):
        players = [Player.computer(f"Computer {i + 1}") for i in range(num_players)]
        match = Match(players, initial_hand_size=hand_size, seed=int(game_seed), rules=rules)
        result = match.play_to_completion()
        endings[result.ending.name] += 1
        for name in result.winner_names:
            wins[name] += 1
        turns.append(result.turns)
        logger.debug(f"Game {game + 1}: {result.ending.name}, winners {result.winner_names}")

    print(f"=== {num_games} games, {num_players} players ===")
    for ending, count in endings.most_common():
        print(f"  {ending}: {count} ({100 * count / num_games:.1f}%)")
    print(f"  Average turns: {np.mean(turns):.1f}")
    print("Wins (shared blocks count for every winner):")
    for name, count in sorted(wins.items()):
        print(f"  {name}: {count}")
    return endings


def main():
    parser = argparse.ArgumentParser(description="Play block dominoes")

    parser.add_argument("--name", type=str, default="Player 1",
                        help="Your name")
    parser.add_argument("--opponents", type=int, default=1,
                        help="Number of computer opponents (1-3)")
    parser.add_argument("--hand-size", type=int, default=None,
                        help="Tiles dealt to each player (default 7)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed")
    parser.add_argument("--draw-then-play", action="store_true",
                        help="Keep the turn after drawing a playable tile")
    parser.add_argument("--simulate", type=int, default=0, metavar="N",
                        help="Play N all-computer games instead")
    parser.add_argument("--verbose", action="store_true",
                        help="Log every turn")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        if args.simulate:
            simulate(args.simulate, args.opponents + 1, args.hand_size, args.seed, args.draw_then_play)
        else:
            play_game(args.name, args.opponents, args.hand_size, args.seed, args.draw_then_play)
    except DominoError as e:
        logger.error(f"Game aborted: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
