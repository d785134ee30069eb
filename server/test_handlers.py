"""
Test suite for WebSocket message handlers.

Tests event validation and handler flows using a mock WebSocket and a
session whose controller task is replaced by an idle task.

Run with: pytest test_handlers.py -v
"""

import asyncio
import random

import pytest
from pydantic import ValidationError

from actions import DrawDiscard, Flip
from card_source import LocalCardSource
from game import Game, GamePhase
from handlers import (
    ConnectionContext,
    DrawEvent,
    FlipEvent,
    StartGameEvent,
    dispatch,
    parse_event,
)
from session import GameSession, WebSocketUI


# =============================================================================
# Mock helpers
# =============================================================================

class MockWebSocket:
    """Mock WebSocket that collects sent messages."""

    def __init__(self):
        self.messages: list[dict] = []

    async def send_json(self, data: dict):
        self.messages.append(data)

    def last_message(self) -> dict:
        return self.messages[-1] if self.messages else {}

    def messages_of_type(self, msg_type: str) -> list[dict]:
        return [m for m in self.messages if m.get("type") == msg_type]


def make_ctx(websocket=None, session=None):
    """Create a ConnectionContext with sensible defaults."""
    ws = websocket or MockWebSocket()
    session = session or GameSession(session_id="session_123", ui=WebSocketUI(ws))
    return ConnectionContext(websocket=ws, connection_id="conn_123", session=session)


async def make_running_ctx(dealer=2):
    """Context whose session holds a dealt game and an idle task."""
    ctx = make_ctx()
    game = Game.create(LocalCardSource(seed=1), rng=random.Random(1))
    game.dealer_index = dealer
    await game.start_game()
    ctx.session.game = game
    ctx.session.task = asyncio.create_task(asyncio.Event().wait())
    return ctx


async def finish(ctx):
    await ctx.session.stop()


# =============================================================================
# Event validation
# =============================================================================

class TestParseEvent:

    def test_flip(self):
        event = parse_event({"type": "flip", "position": 4})
        assert isinstance(event, FlipEvent)
        assert event.position == 4

    def test_draw_sources(self):
        assert parse_event({"type": "draw", "source": "deck"}) == DrawEvent(type="draw", source="deck")
        assert parse_event({"type": "draw", "source": "discard"}).source == "discard"

    def test_start_game_name_optional(self):
        event = parse_event({"type": "start_game"})
        assert isinstance(event, StartGameEvent)
        assert event.player_name is None

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_event({"type": "swap", "position": 1})

    def test_position_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            parse_event({"type": "take", "position": 6})

    def test_bad_draw_source_rejected(self):
        with pytest.raises(ValidationError):
            parse_event({"type": "draw", "source": "hand"})


class TestDispatch:

    @pytest.mark.asyncio
    async def test_invalid_message(self):
        ctx = make_ctx()
        await dispatch({"type": "flip"}, ctx)
        assert ctx.websocket.last_message() == {"type": "error", "message": "Invalid message"}

    @pytest.mark.asyncio
    async def test_move_without_game(self):
        ctx = make_ctx()
        await dispatch({"type": "discard"}, ctx)
        assert ctx.websocket.last_message() == {"type": "error", "message": "No game in progress"}


# =============================================================================
# Game handlers
# =============================================================================

class TestHandleStartGame:

    @pytest.mark.asyncio
    async def test_starts_game(self):
        ctx = make_ctx()
        await dispatch({"type": "start_game", "player_name": "Alice"}, ctx)
        try:
            started = ctx.websocket.messages_of_type("game_started")
            assert len(started) == 1
            assert started[0]["players"][0] == "Alice"
            assert len(started[0]["players"]) == 4
            assert ctx.session.running
        finally:
            await finish(ctx)

    @pytest.mark.asyncio
    async def test_second_start_rejected(self):
        ctx = make_ctx()
        await dispatch({"type": "start_game"}, ctx)
        try:
            await dispatch({"type": "start_game"}, ctx)
            assert len(ctx.websocket.messages_of_type("game_started")) == 1
            assert {"type": "error", "message": "Game already in progress"} in ctx.websocket.messages
        finally:
            await finish(ctx)


class TestMoveHandlers:

    @pytest.mark.asyncio
    async def test_legal_flip_is_queued(self):
        ctx = await make_running_ctx()
        try:
            await dispatch({"type": "flip", "position": 3}, ctx)
            assert ctx.session.ui.actions.get_nowait() == Flip(3)
            assert not ctx.websocket.messages_of_type("error")
        finally:
            await finish(ctx)

    @pytest.mark.asyncio
    async def test_draw_during_initial_flips_rejected(self):
        ctx = await make_running_ctx()
        try:
            await dispatch({"type": "draw", "source": "deck"}, ctx)
            assert ctx.session.ui.actions.empty()
            assert ctx.websocket.last_message()["message"] == "Flip your starting cards first"
        finally:
            await finish(ctx)

    @pytest.mark.asyncio
    async def test_draw_from_discard_when_playing(self):
        ctx = await make_running_ctx()
        game = ctx.session.game
        for seat in game.seats_needing_initial_flips():
            game.flip_initial_card(seat, 0)
            game.flip_initial_card(seat, 1)
        game.current_player_index = 0
        try:
            await dispatch({"type": "draw", "source": "discard"}, ctx)
            assert ctx.session.ui.actions.get_nowait() == DrawDiscard()
        finally:
            await finish(ctx)

    @pytest.mark.asyncio
    async def test_take_out_of_turn_rejected(self):
        ctx = await make_running_ctx()
        game = ctx.session.game
        for seat in game.seats_needing_initial_flips():
            game.flip_initial_card(seat, 0)
            game.flip_initial_card(seat, 1)
        game.current_player_index = 1
        try:
            await dispatch({"type": "take", "position": 2}, ctx)
            assert ctx.websocket.last_message()["message"] == "Not your turn"
        finally:
            await finish(ctx)


class TestHandleNextRound:

    @pytest.mark.asyncio
    async def test_rejected_mid_round(self):
        ctx = await make_running_ctx()
        try:
            await dispatch({"type": "next_round"}, ctx)
            assert ctx.websocket.last_message()["message"] == "The round is not over"
            assert not ctx.session.ui.ready_for_next_round.is_set()
        finally:
            await finish(ctx)

    @pytest.mark.asyncio
    async def test_acknowledged_after_round(self):
        ctx = await make_running_ctx()
        ctx.session.game.phase = GamePhase.ROUND_OVER
        try:
            await dispatch({"type": "next_round"}, ctx)
            assert ctx.session.ui.ready_for_next_round.is_set()
            assert not ctx.websocket.messages_of_type("error")
        finally:
            await finish(ctx)
