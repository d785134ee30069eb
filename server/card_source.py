"""
Card source for Column Golf.

The game never shuffles or stores the physical deck itself. It talks to a
card source through a four-call contract:

    new_shuffled_deck()             -> deck_id
    draw(deck_id, count)            -> DrawResult (raises DeckExhaustedError)
    reshuffle(deck_id)              -> discard history back into the deck
    send_to_discard_history(deck_id, code)

The single face-up top discard is tracked by the game, not by the source.
Only cards that have been pushed *under* it are part of the discard history.

LocalCardSource is the in-process implementation used by the server and
the simulation runner.
"""

import logging
import random
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from config import config

logger = logging.getLogger(__name__)


class CardSourceError(Exception):
    """The card source failed; the game cannot continue without it."""


class DeckExhaustedError(CardSourceError):
    """A draw was requested from a deck with no cards left."""


@dataclass(frozen=True)
class CardData:
    """Raw card as handed out by a card source."""

    rank: str
    code: str
    image: str = ""


@dataclass
class DrawResult:
    """
    Result of a successful draw.

    Attributes:
        cards: The drawn cards, in draw order.
        remaining: Cards left in the deck after this draw.
    """

    cards: list[CardData]
    remaining: int


class CardSource(ABC):
    """Abstract contract the game core depends on."""

    @abstractmethod
    async def new_shuffled_deck(self) -> str:
        """Create a freshly shuffled 52-card deck and return its handle."""

    @abstractmethod
    async def draw(self, deck_id: str, count: int) -> DrawResult:
        """
        Draw `count` cards.

        Raises:
            DeckExhaustedError: If the deck holds fewer than `count` cards.
            CardSourceError: If the deck handle is unknown.
        """

    @abstractmethod
    async def reshuffle(self, deck_id: str) -> None:
        """Return all discard history to the deck and shuffle it."""

    @abstractmethod
    async def send_to_discard_history(self, deck_id: str, code: str) -> None:
        """Record a card as discarded (pushed under the visible top discard)."""


# Rank names and code letters in the format card sources report them
RANKS = ["ACE", "2", "3", "4", "5", "6", "7", "8", "9", "10", "JACK", "QUEEN", "KING"]
RANK_CODES = {"ACE": "A", "10": "0", "JACK": "J", "QUEEN": "Q", "KING": "K"}
SUIT_CODES = ["S", "D", "C", "H"]


def card_code(rank: str, suit_code: str) -> str:
    """Two-character code for a card, e.g. ('10', 'H') -> '0H'."""
    return f"{RANK_CODES.get(rank, rank)}{suit_code}"


@dataclass
class _LocalDeck:
    """Server-side state for one deck handle."""

    cards: list[CardData] = field(default_factory=list)
    discards: list[CardData] = field(default_factory=list)
    # Every card ever dealt from this deck, by code, so history can be resolved
    dealt: dict[str, CardData] = field(default_factory=dict)


class LocalCardSource(CardSource):
    """
    In-memory card source.

    Shuffling uses its own random.Random so a seed makes every deal of a
    session reproducible without touching the global random state.
    """

    def __init__(self, seed: Optional[int] = None, image_base: Optional[str] = None) -> None:
        """
        Initialize the card source.

        Args:
            seed: Optional seed for deterministic shuffles.
            image_base: Prefix for image references (defaults to config).
        """
        self.seed: int = seed if seed is not None else random.randint(0, 2**31 - 1)
        self._rng = random.Random(self.seed)
        self._image_base = image_base if image_base is not None else config.CARD_IMAGE_BASE
        self._decks: dict[str, _LocalDeck] = {}

    def _build_cards(self) -> list[CardData]:
        cards = []
        for suit in SUIT_CODES:
            for rank in RANKS:
                code = card_code(rank, suit)
                cards.append(CardData(rank=rank, code=code, image=f"{self._image_base}/{code}.png"))
        return cards

    def _get_deck(self, deck_id: str) -> _LocalDeck:
        deck = self._decks.get(deck_id)
        if deck is None:
            raise CardSourceError(f"Unknown deck {deck_id}")
        return deck

    def remaining(self, deck_id: str) -> int:
        """Number of cards left to draw."""
        return len(self._get_deck(deck_id).cards)

    def discard_count(self, deck_id: str) -> int:
        """Number of cards in the discard history."""
        return len(self._get_deck(deck_id).discards)

    async def new_shuffled_deck(self) -> str:
        deck_id = uuid.uuid4().hex[:12]
        deck = _LocalDeck(cards=self._build_cards())
        self._rng.shuffle(deck.cards)
        self._decks[deck_id] = deck
        logger.debug(f"New shuffled deck {deck_id}")
        return deck_id

    async def draw(self, deck_id: str, count: int) -> DrawResult:
        deck = self._get_deck(deck_id)
        if count > len(deck.cards):
            raise DeckExhaustedError(
                f"Deck {deck_id} has {len(deck.cards)} cards, {count} requested"
            )
        drawn = [deck.cards.pop() for _ in range(count)]
        for card in drawn:
            deck.dealt[card.code] = card
        return DrawResult(cards=drawn, remaining=len(deck.cards))

    async def reshuffle(self, deck_id: str) -> None:
        deck = self._get_deck(deck_id)
        returned = len(deck.discards)
        deck.cards.extend(deck.discards)
        deck.discards = []
        self._rng.shuffle(deck.cards)
        logger.debug(f"Deck {deck_id} reshuffled {returned} discards, {len(deck.cards)} cards in deck")

    async def send_to_discard_history(self, deck_id: str, code: str) -> None:
        deck = self._get_deck(deck_id)
        card = deck.dealt.get(code)
        if card is None:
            raise CardSourceError(f"Card {code} was never dealt from deck {deck_id}")
        deck.discards.append(card)
