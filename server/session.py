"""
Session management for Column Golf.

A GameSession binds one websocket connection (the human at seat 0) to one
Game and the TurnController playing it. The controller runs as its own
asyncio task; websocket handlers feed it human moves through the UI's
queue.

A GameSession contains:
    - The websocket and its WebSocketUI (render hooks + human event queue)
    - A Game instance with the actual game state
    - The TurnController task driving the game
"""

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import WebSocket

from actions import Action
from card_source import CardSource, LocalCardSource
from controller import GameUI, TurnController
from game import Card, Game

logger = logging.getLogger(__name__)


class WebSocketUI(GameUI):
    """
    UI boundary over a websocket.

    Render hooks become JSON messages; human moves arrive through `actions`
    and next-round acknowledgements through `ready_for_next_round`.
    """

    def __init__(self, websocket: WebSocket, player_index: int = 0) -> None:
        self.websocket = websocket
        self.player_index = player_index
        self.actions: asyncio.Queue[Action] = asyncio.Queue()
        self.ready_for_next_round = asyncio.Event()

    async def send(self, message: dict) -> None:
        """Send a message, tolerating a connection that already went away."""
        try:
            await self.websocket.send_json(message)
        except Exception as e:
            logger.debug(f"Dropped {message.get('type')} message: {e}")

    async def render_state(self, game: Game) -> None:
        await self.send({
            "type": "game_state",
            "game_state": game.get_state(self.player_index),
        })

    async def render_turn(self, game: Game, player_index: int) -> None:
        await self.send({
            "type": "turn",
            "player_index": player_index,
            "player_name": game.players[player_index].name,
            "is_you": player_index == self.player_index,
        })

    async def render_drawn_card(self, game: Game, player_index: int, card: Card) -> None:
        # A deck draw stays private to its owner; a discard pickup was already public
        visible = player_index == self.player_index or game.drawn_from_discard
        await self.send({
            "type": "card_drawn",
            "player_index": player_index,
            "from_discard": game.drawn_from_discard,
            "card": card.to_dict() if visible else None,
        })

    async def render_round_over(self, game: Game) -> None:
        await self.send({
            "type": "round_over",
            "round": game.current_round,
            "round_scores": game.round_scores,
            "scores": game.scores,
            "game_state": game.get_state(self.player_index),
        })

    async def render_game_over(self, game: Game) -> None:
        await self.send({
            "type": "game_over",
            "scores": game.scores,
            "winner_index": game.winner_index,
            "winner_name": game.players[game.winner_index].name,
        })

    async def render_error(self, message: str, fatal: bool = False) -> None:
        await self.send({
            "type": "fatal_error" if fatal else "error",
            "message": message,
        })

    async def next_action(self, game: Game, player_index: int) -> Action:
        return await self.actions.get()

    async def wait_for_next_round(self, game: Game) -> None:
        await self.ready_for_next_round.wait()
        self.ready_for_next_round.clear()


@dataclass
class GameSession:
    """
    One human's table.

    Attributes:
        session_id: Unique identifier, also used as the connection id.
        ui: WebSocket UI for the connected human.
        game: The current Game, once started.
        controller: The controller driving `game`.
        task: asyncio task running the controller.
    """

    session_id: str
    ui: WebSocketUI
    game: Optional[Game] = None
    controller: Optional[TurnController] = None
    task: Optional[asyncio.Task] = None
    games_started: int = 0

    @property
    def running(self) -> bool:
        """Whether a game is currently being played."""
        return self.task is not None and not self.task.done()

    def start(
        self,
        player_name: Optional[str] = None,
        card_source: Optional[CardSource] = None,
        rng: Optional[random.Random] = None,
    ) -> Game:
        """
        Seat the human with three computer players and start playing.

        Args:
            player_name: Display name for the human (defaults to config).
            card_source: Card source for the game (defaults to an in-memory deck).
            rng: Random source for the dealer choice and computer decisions.

        Returns:
            The new Game.
        """
        if self.running:
            raise RuntimeError(f"Session {self.session_id} already has a game running")

        rng = rng or random.Random()
        self.game = Game.create(card_source or LocalCardSource(), human_name=player_name, rng=rng)
        self.controller = TurnController(self.game, self.ui, rng=rng)
        self.ui.actions = asyncio.Queue()
        self.ui.ready_for_next_round.clear()
        self.task = asyncio.create_task(self._run_safe())
        self.games_started += 1

        logger.info(f"Session {self.session_id[:8]} started game {self.game.game_id[:8]}")
        return self.game

    async def _run_safe(self) -> None:
        """
        Run the controller as a fire-and-forget task.

        Card source failures are reported by the controller itself; anything
        else would end the task unseen, so it is logged and shown to the
        human as a fatal error here.
        """
        try:
            await self.controller.run()
        except Exception as e:
            logger.exception(f"Game {self.game.game_id[:8]} in session {self.session_id[:8]} crashed")
            await self.ui.render_error(f"Game stopped unexpectedly: {e}", fatal=True)

    def submit(self, action: Action) -> None:
        """Queue a human move for the controller."""
        self.ui.actions.put_nowait(action)

    def request_next_round(self) -> None:
        """Acknowledge the round summary so the next deal can start."""
        self.ui.ready_for_next_round.set()

    async def stop(self) -> None:
        """Cancel the running game, if any."""
        if self.task is None or self.task.done():
            return
        self.task.cancel()
        try:
            await self.task
        except asyncio.CancelledError:
            pass
        logger.info(f"Session {self.session_id[:8]} stopped")


class SessionManager:
    """
    Manages all active sessions.

    A single SessionManager instance is used by the server.
    """

    def __init__(self, max_sessions: int = 50) -> None:
        """Initialize an empty session manager."""
        self.sessions: dict[str, GameSession] = {}
        self.max_sessions = max_sessions

    def create_session(self, websocket: WebSocket) -> Optional[GameSession]:
        """
        Create a session for a newly connected websocket.

        Returns:
            The new GameSession, or None when the server is full.
        """
        if len(self.sessions) >= self.max_sessions:
            logger.warning(f"Session limit reached ({self.max_sessions}), refusing connection")
            return None
        session_id = str(uuid.uuid4())
        session = GameSession(session_id=session_id, ui=WebSocketUI(websocket))
        self.sessions[session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[GameSession]:
        """Get a session by id, or None if not found."""
        return self.sessions.get(session_id)

    async def remove_session(self, session_id: str) -> None:
        """Stop and forget a session."""
        session = self.sessions.pop(session_id, None)
        if session:
            await session.stop()

    def games_in_progress(self) -> int:
        return sum(1 for s in self.sessions.values() if s.running)

    async def close_all(self) -> None:
        """Stop every session and close their websockets."""
        for session_id in list(self.sessions):
            session = self.sessions[session_id]
            await self.remove_session(session_id)
            try:
                await session.ui.websocket.close(code=1001, reason="Server shutting down")
            except Exception as e:
                logger.debug(f"Websocket for session {session_id[:8]} already closed: {e}")
        logger.info("All sessions closed")
