"""WebSocket message handlers for Column Golf.

Each handler corresponds to a single message type from the client.
Messages are validated into pydantic event models first; handlers are
then dispatched via the HANDLERS dict. Moves the game would refuse are
answered with an error here and never reach the turn controller.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Literal, Optional, Union

from fastapi import WebSocket
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from actions import Action, Discard, DrawDeck, DrawDiscard, Flip, Take, describe
from constants import HAND_SIZE
from game import GamePhase
from session import GameSession

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Client events
# ---------------------------------------------------------------------------

class StartGameEvent(BaseModel):
    type: Literal["start_game"]
    player_name: Optional[str] = Field(default=None, min_length=1, max_length=24)


class FlipEvent(BaseModel):
    type: Literal["flip"]
    position: int = Field(ge=0, lt=HAND_SIZE)


class DrawEvent(BaseModel):
    type: Literal["draw"]
    source: Literal["deck", "discard"]


class TakeEvent(BaseModel):
    type: Literal["take"]
    position: int = Field(ge=0, lt=HAND_SIZE)


class DiscardEvent(BaseModel):
    type: Literal["discard"]


class NextRoundEvent(BaseModel):
    type: Literal["next_round"]


ClientEvent = Annotated[
    Union[StartGameEvent, FlipEvent, DrawEvent, TakeEvent, DiscardEvent, NextRoundEvent],
    Field(discriminator="type"),
]

client_event_adapter = TypeAdapter(ClientEvent)


def parse_event(data: dict) -> ClientEvent:
    """
    Validate a raw websocket message.

    Raises:
        ValidationError: Unknown type or malformed fields.
    """
    return client_event_adapter.validate_python(data)


@dataclass
class ConnectionContext:
    """State tracked per WebSocket connection."""

    websocket: WebSocket
    connection_id: str
    session: GameSession


async def send_error(ctx: ConnectionContext, message: str) -> None:
    await ctx.websocket.send_json({"type": "error", "message": message})


# ---------------------------------------------------------------------------
# Game handlers
# ---------------------------------------------------------------------------

async def handle_start_game(event: StartGameEvent, ctx: ConnectionContext, **kw) -> None:
    if ctx.session.running:
        await send_error(ctx, "Game already in progress")
        return

    game = ctx.session.start(player_name=event.player_name)
    await ctx.websocket.send_json({
        "type": "game_started",
        "game_id": game.game_id,
        "players": [player.name for player in game.players],
    })


async def submit_action(ctx: ConnectionContext, action: Action) -> None:
    """Queue a human move if the game would accept it right now."""
    session = ctx.session
    if not session.running:
        await send_error(ctx, "No game in progress")
        return

    reason = session.game.check_action(session.ui.player_index, action)
    if reason:
        logger.debug(f"Rejected {describe(action)} from {ctx.connection_id[:8]}: {reason}")
        await send_error(ctx, reason)
        return

    session.submit(action)


async def handle_flip(event: FlipEvent, ctx: ConnectionContext, **kw) -> None:
    await submit_action(ctx, Flip(event.position))


async def handle_draw(event: DrawEvent, ctx: ConnectionContext, **kw) -> None:
    action = DrawDeck() if event.source == "deck" else DrawDiscard()
    await submit_action(ctx, action)


async def handle_take(event: TakeEvent, ctx: ConnectionContext, **kw) -> None:
    await submit_action(ctx, Take(event.position))


async def handle_discard(event: DiscardEvent, ctx: ConnectionContext, **kw) -> None:
    await submit_action(ctx, Discard())


async def handle_next_round(event: NextRoundEvent, ctx: ConnectionContext, **kw) -> None:
    session = ctx.session
    if not session.running or session.game.phase != GamePhase.ROUND_OVER:
        await send_error(ctx, "The round is not over")
        return
    session.request_next_round()


HANDLERS = {
    "start_game": handle_start_game,
    "flip": handle_flip,
    "draw": handle_draw,
    "take": handle_take,
    "discard": handle_discard,
    "next_round": handle_next_round,
}


async def dispatch(data: dict, ctx: ConnectionContext) -> None:
    """Validate a raw message and run its handler."""
    try:
        event = parse_event(data)
    except ValidationError as e:
        logger.debug(f"Invalid message from {ctx.connection_id[:8]}: {e.errors()}")
        await send_error(ctx, "Invalid message")
        return

    await HANDLERS[event.type](event, ctx)
