"""
Turn actions for Column Golf.

Every move a player can make is one of five small immutable records.
The turn controller, the websocket boundary, and the CPU decision engine
all speak in these types, so a move always carries the data it needs
(e.g. a discard-pile draw names the hand slot it will be taken into).

Turn shape:
    Flip(index)                     -> turn over
    DrawDeck()      -> Take(index) | Discard()
    DrawDiscard(i)  -> Take(i)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ActionType(str, Enum):
    """Wire names for each action, used in logs and websocket messages."""

    FLIP = "flip"
    DRAW_DECK = "draw_deck"
    DRAW_DISCARD = "draw_discard"
    TAKE = "take"
    DISCARD = "discard"


@dataclass(frozen=True)
class Flip:
    """Turn a face-down card in the hand face-up; ends the turn."""

    index: int
    type: ActionType = ActionType.FLIP


@dataclass(frozen=True)
class DrawDeck:
    """Draw the top card of the deck into the drawn-card slot."""

    type: ActionType = ActionType.DRAW_DECK


@dataclass(frozen=True)
class DrawDiscard:
    """
    Pick up the visible discard.

    Attributes:
        index: Hand slot the card will be taken into. The websocket boundary
            may leave this as -1 when the human has not chosen a slot yet.
    """

    index: int = -1
    type: ActionType = ActionType.DRAW_DISCARD


@dataclass(frozen=True)
class Take:
    """Put the drawn card into the hand at `index`; the old card is discarded."""

    index: int
    type: ActionType = ActionType.TAKE


@dataclass(frozen=True)
class Discard:
    """Throw the drawn card onto the discard pile."""

    type: ActionType = ActionType.DISCARD


# Choices available at the start of a turn
TurnChoice = Union[Flip, DrawDeck, DrawDiscard]

# Choices available while holding a drawn card
DrawnChoice = Union[Take, Discard]

Action = Union[Flip, DrawDeck, DrawDiscard, Take, Discard]


def describe(action: Action) -> str:
    """Short human-readable form for logs, e.g. 'take@3'."""
    index = getattr(action, "index", None)
    if index is None or index < 0:
        return action.type.value
    return f"{action.type.value}@{index}"
