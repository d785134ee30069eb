"""
Turn controller for Column Golf.

The controller drives a Game from the first deal to game over: it asks the
decision engine for computer moves, waits on the UI for human moves, and
calls the UI's render hooks as the table changes. It only suspends while
waiting for a human event, for a card source call, or during the pacing
pauses inserted around computer turns.
"""

import asyncio
import logging
import random
from typing import Optional

from actions import Action, DrawDeck, DrawDiscard, Flip, Take, describe
from ai import GolfAI
from card_source import CardSourceError
from config import CPUTiming, config
from game import Card, Game, Player
from logging_config import game_id_var, round_var

logger = logging.getLogger(__name__)


class GameUI:
    """
    Hooks the controller calls into, and the source of human events.

    Render hooks default to doing nothing so a UI only overrides what it
    displays.
    """

    async def render_state(self, game: Game) -> None:
        """Render card faces and hands."""

    async def render_turn(self, game: Game, player_index: int) -> None:
        """Render the turn indicator."""

    async def render_drawn_card(self, game: Game, player_index: int, card: Card) -> None:
        """Show a freshly drawn card."""

    async def render_round_over(self, game: Game) -> None:
        """Render the round score summary."""

    async def render_game_over(self, game: Game) -> None:
        """Render the final standings."""

    async def render_error(self, message: str, fatal: bool = False) -> None:
        """Tell the human something went wrong."""

    async def next_action(self, game: Game, player_index: int) -> Action:
        """Wait for the human's next move."""
        raise NotImplementedError

    async def wait_for_next_round(self, game: Game) -> None:
        """Wait until the human is ready for the next deal."""


class HeadlessUI(GameUI):
    """
    UI for tables without a human (simulations, tests).

    Records every hook call as (event, details) in `events`.
    """

    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    async def render_state(self, game: Game) -> None:
        self.events.append(("state", {"phase": game.phase.value}))

    async def render_turn(self, game: Game, player_index: int) -> None:
        self.events.append(("turn", {"player_index": player_index}))

    async def render_drawn_card(self, game: Game, player_index: int, card: Card) -> None:
        self.events.append(("drawn", {"player_index": player_index, "rank": card.rank.value}))

    async def render_round_over(self, game: Game) -> None:
        self.events.append(("round_over", {"round": game.current_round, "scores": list(game.scores)}))

    async def render_game_over(self, game: Game) -> None:
        self.events.append(("game_over", {"winner_index": game.winner_index}))

    async def render_error(self, message: str, fatal: bool = False) -> None:
        self.events.append(("error", {"message": message, "fatal": fatal}))

    async def next_action(self, game: Game, player_index: int) -> Action:
        raise RuntimeError("HeadlessUI has no human player")

    def event_names(self) -> list[str]:
        return [name for name, _ in self.events]


class TurnController:
    """
    Runs a game session to completion.

    Attributes:
        game: The game being played.
        ui: Render hooks and human event source.
        rng: Random source shared by every computer decision.
        timing: Pacing pauses for computer turns.
        error: The card source failure that stopped the game, if any.
        actions_taken: Count of applied actions by seat and action type.
    """

    def __init__(
        self,
        game: Game,
        ui: GameUI,
        rng: Optional[random.Random] = None,
        timing: Optional[CPUTiming] = None,
    ) -> None:
        self.game = game
        self.ui = ui
        self.rng = rng or random.Random()
        self.timing = timing or config.cpu_timing
        self.error: Optional[CardSourceError] = None
        self.actions_taken: dict[int, dict[str, int]] = {}

    async def run(self) -> None:
        """
        Play rounds until the game is over.

        A card source failure stops the game: it is logged, shown to the
        human as a fatal error, and kept in `self.error`.
        """
        game_id_var.set(self.game.game_id)
        try:
            await self.game.start_game()
            while True:
                round_var.set(self.game.current_round)
                await self.play_round()
                await self.ui.render_round_over(self.game)
                if self.game.game_over:
                    await self.ui.render_game_over(self.game)
                    return
                await self.ui.wait_for_next_round(self.game)
                await self.game.start_next_round()
        except CardSourceError as e:
            logger.exception("Card source failed, stopping game")
            self.error = e
            await self.ui.render_error(f"Card source unavailable: {e}", fatal=True)

    async def play_round(self) -> None:
        """Run initial flips and then turns until the round is scored."""
        await self.ui.render_state(self.game)
        await self.initial_flips()
        while not self.game.round_over:
            await self.play_turn()

    async def initial_flips(self) -> None:
        """Let every seat that owes starting flips make them, computers first."""
        game = self.game
        for seat, player in enumerate(game.players):
            if not player.is_cpu:
                continue
            while game.needs_initial_flip(seat):
                game.flip_initial_card(seat, GolfAI.choose_initial_flip(player, self.rng))
                self._count(seat, "initial_flip")
            await self._pause(self.timing.pacing_delay)
            await self.ui.render_state(game)

        for seat, player in enumerate(game.players):
            if player.is_cpu:
                continue
            while game.needs_initial_flip(seat):
                action = await self._next_legal_action(seat)
                game.flip_initial_card(seat, action.index)
                self._count(seat, "initial_flip")
                await self.ui.render_state(game)

    async def play_turn(self) -> None:
        """Play the current seat's whole turn."""
        seat = self.game.current_player_index
        player = self.game.current_player()
        await self.ui.render_turn(self.game, seat)
        if player.is_cpu:
            await self.cpu_turn(seat, player)
        else:
            await self.human_turn(seat, player)
        await self.ui.render_state(self.game)

    async def cpu_turn(self, seat: int, player: Player) -> None:
        """Ask the decision engine for a turn, pausing between steps."""
        await self._pause(self.timing.pacing_delay)
        choice = GolfAI.choose_draw_or_flip(self.game, player, self.rng)

        if isinstance(choice, Flip):
            await self._apply(seat, choice)
            return

        if isinstance(choice, DrawDiscard):
            # Pick up first so the UI shows the card before it is placed
            await self._apply(seat, DrawDiscard())
            await self._show_drawn(seat, player)
            await self._pause(self.timing.thinking_delay)
            await self._apply(seat, Take(choice.index))
            return

        await self._apply(seat, choice)
        await self._show_drawn(seat, player)
        await self._pause(self.timing.thinking_delay)
        decision = GolfAI.choose_take_or_discard(self.game, player, self.rng)
        await self._apply(seat, decision)

    async def human_turn(self, seat: int, player: Player) -> None:
        """Apply human events until the turn passes or the round ends."""
        while self.game.current_player_index == seat and not self.game.round_over:
            action = await self._next_legal_action(seat)
            await self._apply(seat, action)
            if isinstance(action, (DrawDeck, DrawDiscard)) and player.drawn_card is not None:
                await self._show_drawn(seat, player)

    async def _next_legal_action(self, seat: int) -> Action:
        """Wait for a human event the game accepts, rejecting the rest."""
        while True:
            action = await self.ui.next_action(self.game, seat)
            reason = self.game.check_action(seat, action)
            if reason is None:
                return action
            logger.debug(f"Rejected {describe(action)} from seat {seat}: {reason}")
            await self.ui.render_error(reason)

    async def _apply(self, seat: int, action: Action) -> None:
        logger.debug(
            f"{describe(action)}",
            extra={"player": self.game.players[seat].name},
        )
        await self.game.apply(action)
        self._count(seat, action.type.value)

    async def _show_drawn(self, seat: int, player: Player) -> None:
        await self.ui.render_drawn_card(self.game, seat, player.drawn_card)
        await self.ui.render_state(self.game)

    async def _pause(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)

    def _count(self, seat: int, name: str) -> None:
        counts = self.actions_taken.setdefault(seat, {})
        counts[name] = counts.get(name, 0) + 1
