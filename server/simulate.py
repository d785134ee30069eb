"""
Column Golf AI Simulation Runner

Runs four-CPU games to check how the decision engine plays.
No server/websocket needed - runs games directly through the turn controller
with pacing disabled.

Usage:
    python simulate.py [num_games] [seed]
    python simulate.py detail [seed]

Examples:
    python simulate.py 100        # Run 100 games
    python simulate.py 50 7       # Run 50 reproducible games
    python simulate.py detail 3   # Play one game and print every round
"""

import asyncio
import random
import sys
from typing import Optional

from card_source import LocalCardSource
from config import CPUTiming
from controller import HeadlessUI, TurnController
from game import Game


NO_PACING = CPUTiming(pacing_delay=0, thinking_delay=0)


class SimulationStats:
    """Track simulation statistics."""

    def __init__(self):
        self.games_played = 0
        self.games_failed = 0
        self.total_rounds = 0
        self.player_wins: dict[str, int] = {}
        self.player_scores: dict[str, list[int]] = {}
        self.round_scores: dict[str, list[int]] = {}
        self.decisions: dict[str, dict[str, int]] = {}  # player -> {action: count}

    def record_game(self, game: Game, controller: TurnController):
        if controller.error is not None:
            self.games_failed += 1
            return

        self.games_played += 1
        self.total_rounds += game.current_round

        winner_name = game.players[game.winner_index].name
        self.player_wins[winner_name] = self.player_wins.get(winner_name, 0) + 1

        for i, player in enumerate(game.players):
            self.player_scores.setdefault(player.name, []).append(game.scores[i])
            for round_result in game.round_scores:
                self.round_scores.setdefault(player.name, []).append(round_result[i])

            counts = self.decisions.setdefault(player.name, {})
            for action, count in controller.actions_taken.get(i, {}).items():
                counts[action] = counts.get(action, 0) + count

    def report(self) -> str:
        lines = [
            "=" * 50,
            "SIMULATION RESULTS",
            "=" * 50,
            f"Games played: {self.games_played}",
            f"Games stopped by card source errors: {self.games_failed}",
            f"Total rounds: {self.total_rounds}",
            f"Avg rounds/game: {self.total_rounds / max(1, self.games_played):.1f}",
            "",
            "WIN RATES:",
        ]

        total_wins = sum(self.player_wins.values())
        for name, wins in sorted(self.player_wins.items(), key=lambda x: -x[1]):
            pct = wins / max(1, total_wins) * 100
            lines.append(f"  {name}: {wins} wins ({pct:.1f}%)")

        lines.append("")
        lines.append("AVERAGE FINAL SCORES (lower is better):")

        for name, scores in sorted(
            self.player_scores.items(),
            key=lambda x: sum(x[1]) / len(x[1]) if x[1] else 999
        ):
            avg = sum(scores) / len(scores) if scores else 0
            per_round = self.round_scores.get(name, [])
            round_avg = sum(per_round) / len(per_round) if per_round else 0
            lines.append(f"  {name}: {avg:.1f} ({round_avg:.1f} per round)")

        lines.append("")
        lines.append("DECISION BREAKDOWN:")

        for name, actions in sorted(self.decisions.items()):
            total = sum(actions.values())
            lines.append(f"  {name}:")
            for action, count in sorted(actions.items()):
                pct = count / max(1, total) * 100
                lines.append(f"    {action}: {count} ({pct:.1f}%)")

        return "\n".join(lines)


class VerboseUI(HeadlessUI):
    """Headless UI that prints each round summary."""

    async def render_round_over(self, game: Game) -> None:
        await super().render_round_over(game)
        print(f"\nRound {game.current_round} (dealer: {game.players[game.dealer_index].name})")
        for i, player in enumerate(game.players):
            cards = " ".join(card.rank.value for card in player.cards)
            print(f"  {player.name:8} [{cards}] = {game.round_scores[-1][i]:3}  total {game.scores[i]}")

    async def render_game_over(self, game: Game) -> None:
        await super().render_game_over(game)
        winner = game.players[game.winner_index]
        print(f"\nWinner: {winner.name} with {game.scores[game.winner_index]} points")


async def play_game(
    seed: Optional[int] = None,
    ui: Optional[HeadlessUI] = None,
) -> tuple[Game, TurnController]:
    """
    Play one four-CPU game to completion.

    Args:
        seed: Seed for both the deck and the decision engine.
        ui: UI to render through (defaults to a silent HeadlessUI).

    Returns:
        The finished game and the controller that ran it.
    """
    rng = random.Random(seed)
    card_source = LocalCardSource(seed=rng.randrange(2**31))
    game = Game.create(card_source, all_cpu=True, rng=rng)
    controller = TurnController(game, ui or HeadlessUI(), rng=rng, timing=NO_PACING)
    await controller.run()
    return game, controller


def run_simulation(num_games: int = 10, seed: Optional[int] = None, verbose: bool = True) -> SimulationStats:
    """Run multiple games and report statistics."""

    print(f"\nRunning {num_games} games...")
    print("=" * 50)

    stats = SimulationStats()
    seeder = random.Random(seed)

    for i in range(num_games):
        game, controller = asyncio.run(play_game(seed=seeder.randrange(2**31)))
        stats.record_game(game, controller)

        if verbose and controller.error is None:
            winner = game.players[game.winner_index]
            print(f"Game {i+1}/{num_games}: {winner.name} wins "
                  f"({game.scores[game.winner_index]} after {game.current_round} rounds)")

    print("\n")
    print(stats.report())
    return stats


def run_detailed_game(seed: Optional[int] = None):
    """Run a single game, printing every round."""
    print("\nRunning detailed game...")
    print("=" * 50)
    asyncio.run(play_game(seed=seed, ui=VerboseUI()))


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "detail":
        # Detailed single game
        seed = int(sys.argv[2]) if len(sys.argv) > 2 else None
        run_detailed_game(seed)
    else:
        # Batch simulation
        num_games = int(sys.argv[1]) if len(sys.argv) > 1 else 10
        seed = int(sys.argv[2]) if len(sys.argv) > 2 else None
        run_simulation(num_games, seed)
