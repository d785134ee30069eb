"""
Game logic for Column Golf.

This module implements the rules of the four-seat Golf variant played
here: dealing, flipping, drawing, taking/discarding, column locking, the
end-of-round countdown, scoring, and game-over detection.

Rules Summary:
    - Each player has 6 cards arranged in a 2x3 grid (2 rows, 3 columns)
    - Goal: lowest cumulative score; the game ends once anyone reaches the threshold
    - On your turn: flip a face-down card, OR draw (deck or discard) and then
      take the drawn card into your hand or discard it
    - Once both cards of a column are face-up the column is locked for the round
    - Equal ranks in a column cancel out (score 0)
    - When a player's hand is fully face-up, every seat plays one more turn

Card Layout:
    [0] [1] [2]   <- top row
    [3] [4] [5]   <- bottom row

    Columns: (0,3), (1,4), (2,5)
"""

import logging
import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from actions import Action, Discard, DrawDeck, DrawDiscard, Flip, Take, describe
from card_source import CardData, CardSource, CardSourceError, DeckExhaustedError
from constants import (
    CPU_PLAYER_NAMES,
    GAME_OVER_THRESHOLD,
    HAND_SIZE,
    HUMAN_PLAYER_NAME,
    INITIAL_FLIPS,
    NUM_COLUMNS,
    NUM_PLAYERS,
    get_card_value_for_rank,
)

logger = logging.getLogger(__name__)


class Rank(Enum):
    """
    Card ranks, valued as the card source names them.

    Scoring:
        - King: 0 points
        - Ace: 1 point
        - 2-10: Face value
        - Jack/Queen: 10 points
    """

    KING = "KING"
    ACE = "ACE"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "JACK"
    QUEEN = "QUEEN"


# Map Rank enum to point values (derived from constants.py as single source of truth)
RANK_VALUES: dict[Rank, int] = {rank: get_card_value_for_rank(rank.value) for rank in Rank}


class IllegalActionError(ValueError):
    """An action was applied that the current phase does not allow."""


@dataclass
class Card:
    """
    A playing card with identity and per-round state.

    Attributes:
        code: Opaque identifier from the card source (e.g. "KH").
        rank: The card's rank.
        image: Image reference from the card source.
        flipped: Face-up. Never reset within a round.
        locked: Part of a locked column. Never reset within a round.
    """

    code: str
    rank: Rank
    image: str = ""
    flipped: bool = False
    locked: bool = False

    @classmethod
    def from_data(cls, data: CardData) -> "Card":
        """Build a face-down, unlocked card from card source data."""
        return cls(code=data.code, rank=Rank(data.rank), image=data.image)

    def value(self) -> int:
        """Get point value."""
        return RANK_VALUES[self.rank]

    def to_dict(self) -> dict:
        """Full card info for JSON serialization."""
        return {
            "code": self.code,
            "rank": self.rank.value,
            "image": self.image,
            "flipped": self.flipped,
            "locked": self.locked,
        }

    def to_client_dict(self) -> dict:
        """Card info for display; face-down cards hide their identity."""
        if self.flipped:
            return self.to_dict()
        return {"flipped": False, "locked": self.locked}


# =============================================================================
# Hand / Column Model
# =============================================================================

COLUMNS: list[tuple[int, int]] = [(col, col + NUM_COLUMNS) for col in range(NUM_COLUMNS)]


def column_partner(index: int) -> int:
    """Index of the other card in the same column."""
    return index + NUM_COLUMNS if index < NUM_COLUMNS else index - NUM_COLUMNS


def lock_column(cards: list[Card], index: int) -> Optional[tuple[int, int]]:
    """
    Lock the column of a just-flipped card if its partner is face-up too.

    Locking is atomic across the pair. Calling this again on an already
    locked column, or while the partner is still face-down, does nothing.

    Args:
        cards: The 6-card hand.
        index: Index of the card that was just flipped or taken.

    Returns:
        The locked column as (top, bottom) indices, or None if nothing changed.
    """
    partner = column_partner(index)
    card, other = cards[index], cards[partner]
    if not (card.flipped and other.flipped):
        return None
    if card.locked and other.locked:
        return None
    card.locked = True
    other.locked = True
    return (min(index, partner), max(index, partner))


def score_hand(cards: list[Card]) -> int:
    """
    Score a hand, face-down cards included at face value.

    Each column scores 0 when both ranks match, otherwise the sum of both
    card values.
    """
    total = 0
    for top_idx, bottom_idx in COLUMNS:
        top, bottom = cards[top_idx], cards[bottom_idx]
        if top.rank == bottom.rank:
            continue
        total += top.value() + bottom.value()
    return total


def unflipped_indices(cards: list[Card]) -> list[int]:
    """Indices of face-down cards, ascending."""
    return [i for i, card in enumerate(cards) if not card.flipped]


def flipped_unlocked_indices(cards: list[Card]) -> list[int]:
    """Indices of face-up cards whose column is still open."""
    return [i for i, card in enumerate(cards) if card.flipped and not card.locked]


def empty_column_indices(cards: list[Card]) -> list[int]:
    """Indices of cards in columns where neither card is face-up, column by column."""
    result = []
    for top_idx, bottom_idx in COLUMNS:
        if not cards[top_idx].flipped and not cards[bottom_idx].flipped:
            result.extend([top_idx, bottom_idx])
    return result


def check_game_over(scores: list[int], threshold: int = GAME_OVER_THRESHOLD) -> bool:
    """True once any cumulative score has reached the threshold."""
    return any(score >= threshold for score in scores)


def get_winner_index(scores: list[int]) -> int:
    """Index of the lowest cumulative score; ties go to the lowest index."""
    return min(range(len(scores)), key=lambda i: scores[i])


# =============================================================================
# Player
# =============================================================================

@dataclass
class Player:
    """
    A seat at the table.

    Attributes:
        name: Display name.
        is_cpu: Whether the decision engine plays this seat.
        cards: The 6-card hand in grid order.
        drawn_card: Card held between a draw and the following take/discard.
    """

    name: str
    is_cpu: bool = False
    cards: list[Card] = field(default_factory=list)
    drawn_card: Optional[Card] = None

    def all_flipped(self) -> bool:
        """Check if every card in the hand is face-up."""
        return bool(self.cards) and all(card.flipped for card in self.cards)

    def flip_card(self, index: int) -> Optional[tuple[int, int]]:
        """
        Turn a card face-up and run the locking check.

        Returns:
            The newly locked column, if the flip completed one.
        """
        self.cards[index].flipped = True
        return lock_column(self.cards, index)

    def swap_in(self, index: int, new_card: Card) -> tuple[Card, Optional[tuple[int, int]]]:
        """
        Place a card face-up at `index`.

        Returns:
            The replaced card and the newly locked column, if any.
        """
        old_card = self.cards[index]
        new_card.flipped = True
        self.cards[index] = new_card
        return old_card, lock_column(self.cards, index)

    def reveal_all(self) -> None:
        """Turn every face-down card up for the round summary."""
        for card in self.cards:
            card.flipped = True

    def unflipped_indices(self) -> list[int]:
        return unflipped_indices(self.cards)

    def open_indices(self) -> list[int]:
        """Slots a drawn card may be taken into (not locked)."""
        return [i for i, card in enumerate(self.cards) if not card.locked]

    def flipped_unlocked_indices(self) -> list[int]:
        return flipped_unlocked_indices(self.cards)

    def empty_column_indices(self) -> list[int]:
        return empty_column_indices(self.cards)

    def has_empty_column(self) -> bool:
        return bool(self.empty_column_indices())

    def wanted_ranks(self) -> set[Rank]:
        """Ranks that would pair one of this player's open face-up cards."""
        return {self.cards[i].rank for i in self.flipped_unlocked_indices()}

    def hand_score(self) -> int:
        return score_hand(self.cards)

    def cards_to_dict(self, reveal: bool = False) -> list[dict]:
        if reveal:
            return [card.to_dict() for card in self.cards]
        return [card.to_client_dict() for card in self.cards]


# =============================================================================
# Game
# =============================================================================

class GamePhase(Enum):
    """
    Phases of a Column Golf game.

    Flow: WAITING -> DEALING -> INITIAL_FLIP -> PLAYING -> COUNTDOWN -> ROUND_OVER
    Next round: ROUND_OVER -> DEALING. Threshold reached: GAME_OVER.
    """

    WAITING = "waiting"
    DEALING = "dealing"
    INITIAL_FLIP = "initial_flip"
    PLAYING = "playing"
    COUNTDOWN = "countdown"        # Someone is fully face-up; every seat gets one more turn
    ROUND_OVER = "round_over"
    GAME_OVER = "game_over"


class TurnStep(Enum):
    """Where the current player is within their turn."""

    CHOOSE_DRAW_OR_FLIP = "choose_draw_or_flip"
    CHOOSE_TAKE_OR_DISCARD = "choose_take_or_discard"


TURN_PHASES = (GamePhase.PLAYING, GamePhase.COUNTDOWN)


@dataclass
class Game:
    """
    Main game state and rules controller.

    A Game lives for a whole session and is passed explicitly to every
    collaborator; it owns turn order, the deck handle, the visible top
    discard, the countdown, and cumulative scores.

    Attributes:
        card_source: Collaborator that shuffles, deals, and reshuffles.
        players: The four seats, in turn order.
        deck_id: Handle of this round's deck.
        current_player_index: Seat whose turn it is.
        dealer_index: Seat that dealt this round.
        top_discard: The single face-up discard, if any.
        deck_exhausted: The last draw emptied the deck.
        discard_pile_has_cards: Cards are buried under the top discard.
        drawn_from_discard: The pending drawn card came off the discard pile.
        countdown_active: A hand went fully face-up this round.
        turns_remaining: Turns left before the round ends (countdown only).
        scores: Cumulative scores by seat.
        round_scores: Hand scores by round, by seat.
        current_round: Round number (1-indexed, 0 before the first deal).
        threshold: Cumulative score that ends the game.
        winner_index: Seat of the winner once the game is over.
    """

    card_source: CardSource
    players: list[Player] = field(default_factory=list)
    deck_id: Optional[str] = None
    current_player_index: int = 0
    dealer_index: int = 0
    top_discard: Optional[Card] = None
    deck_exhausted: bool = False
    discard_pile_has_cards: bool = False
    drawn_from_discard: bool = False
    countdown_active: bool = False
    turns_remaining: int = 0
    scores: list[int] = field(default_factory=list)
    round_scores: list[list[int]] = field(default_factory=list)
    current_round: int = 0
    phase: GamePhase = GamePhase.WAITING
    threshold: int = GAME_OVER_THRESHOLD
    initial_flips: int = INITIAL_FLIPS
    initial_flip_counts: dict[int, int] = field(default_factory=dict)
    winner_index: Optional[int] = None
    game_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def create(
        cls,
        card_source: CardSource,
        human_name: Optional[str] = None,
        cpu_names: Optional[list[str]] = None,
        threshold: Optional[int] = None,
        all_cpu: bool = False,
        rng: Optional[random.Random] = None,
    ) -> "Game":
        """
        Seat one human and three computer players.

        Args:
            card_source: Card source for every round of the session.
            human_name: Name for seat 0 (defaults to config).
            cpu_names: Names for the computer seats (defaults to config).
            threshold: Game-over score (defaults to config).
            all_cpu: Let the decision engine play seat 0 too (simulations).
            rng: Random source for choosing the first dealer.

        Returns:
            A Game in WAITING phase.
        """
        cpu = list(cpu_names or CPU_PLAYER_NAMES)[:NUM_PLAYERS - 1]
        # Short name lists still fill every computer seat
        cpu += [f"CPU {seat}" for seat in range(len(cpu) + 1, NUM_PLAYERS)]
        names = [human_name or HUMAN_PLAYER_NAME] + cpu
        players = [
            Player(name=name, is_cpu=all_cpu or i > 0)
            for i, name in enumerate(names)
        ]
        rng = rng or random.Random()
        return cls(
            card_source=card_source,
            players=players,
            scores=[0] * len(players),
            dealer_index=rng.randrange(len(players)),
            threshold=threshold if threshold is not None else GAME_OVER_THRESHOLD,
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def round_over(self) -> bool:
        return self.phase in (GamePhase.ROUND_OVER, GamePhase.GAME_OVER)

    @property
    def game_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    @property
    def turn_step(self) -> Optional[TurnStep]:
        """Step of the current turn, or None outside turn play."""
        if self.phase not in TURN_PHASES:
            return None
        if self.current_player().drawn_card is None:
            return TurnStep.CHOOSE_DRAW_OR_FLIP
        return TurnStep.CHOOSE_TAKE_OR_DISCARD

    def current_player(self) -> Player:
        """Get the player whose turn it currently is."""
        return self.players[self.current_player_index]

    def next_player_index(self, index: Optional[int] = None) -> int:
        """Seat after `index` (default: the current player), wrapping around."""
        if index is None:
            index = self.current_player_index
        return (index + 1) % len(self.players)

    def next_player(self, index: Optional[int] = None) -> Player:
        return self.players[self.next_player_index(index)]

    def player_index(self, player: Player) -> int:
        return self.players.index(player)

    def needs_initial_flip(self, index: int) -> bool:
        """
        Whether a seat still owes initial flips this round.

        The human always flips; computer players flip unless they dealt.
        """
        player = self.players[index]
        if player.is_cpu and index == self.dealer_index:
            return False
        return self.initial_flip_counts.get(index, 0) < self.initial_flips

    def seats_needing_initial_flips(self) -> list[int]:
        return [i for i in range(len(self.players)) if self.needs_initial_flip(i)]

    # -------------------------------------------------------------------------
    # Action legality (boundary checks)
    # -------------------------------------------------------------------------

    def check_action(self, player_index: int, action: Action) -> Optional[str]:
        """
        Check whether a seat may apply an action right now.

        Args:
            player_index: Seat attempting the action.
            action: The action to check.

        Returns:
            None if legal, otherwise a short reason suitable for display.
        """
        if not (0 <= player_index < len(self.players)):
            return "Unknown seat"
        player = self.players[player_index]

        if self.phase == GamePhase.INITIAL_FLIP:
            if not isinstance(action, Flip):
                return "Flip your starting cards first"
            if not self.needs_initial_flip(player_index):
                return "No starting flips left"
            return self._check_flip_index(player, action.index)

        if self.phase not in TURN_PHASES:
            return "No turn in progress"
        if player_index != self.current_player_index:
            return "Not your turn"

        if isinstance(action, (Flip, DrawDeck, DrawDiscard)) and player.drawn_card is not None:
            return "Take or discard the drawn card first"

        if isinstance(action, Flip):
            return self._check_flip_index(player, action.index)
        if isinstance(action, DrawDeck):
            return None
        if isinstance(action, DrawDiscard):
            if self.top_discard is None:
                return "The discard pile is empty"
            if action.index < 0:
                return None
            return self._check_take_index(player, action.index)

        if player.drawn_card is None:
            return "Draw a card first"
        if isinstance(action, Take):
            return self._check_take_index(player, action.index)
        if isinstance(action, Discard):
            return None
        return "Unknown action"

    @staticmethod
    def _check_flip_index(player: Player, index: int) -> Optional[str]:
        if not (0 <= index < HAND_SIZE):
            return "No such card"
        if player.cards[index].flipped:
            return "That card is already face-up"
        return None

    @staticmethod
    def _check_take_index(player: Player, index: int) -> Optional[str]:
        if not (0 <= index < HAND_SIZE):
            return "No such card"
        if player.cards[index].locked:
            return "That column is locked"
        return None

    def _require(self, player_index: int, action: Action) -> None:
        reason = self.check_action(player_index, action)
        if reason:
            raise IllegalActionError(f"{self.players[player_index].name}: {describe(action)} rejected ({reason})")

    # -------------------------------------------------------------------------
    # Game Lifecycle
    # -------------------------------------------------------------------------

    async def start_game(self) -> None:
        """Reset cumulative state and deal the first round."""
        self.scores = [0] * len(self.players)
        self.round_scores = []
        self.current_round = 0
        self.winner_index = None
        await self.start_round()

    async def start_round(self) -> None:
        """
        Deal a fresh round.

        Requests a new shuffled deck, deals 6 face-down cards per seat and one
        top discard, clears the countdown, and moves to INITIAL_FLIP. The seat
        after the dealer plays first.
        """
        self.phase = GamePhase.DEALING
        self.current_round += 1
        self.deck_id = await self.card_source.new_shuffled_deck()

        remaining = 0
        for player in self.players:
            result = await self.card_source.draw(self.deck_id, HAND_SIZE)
            player.cards = [Card.from_data(data) for data in result.cards]
            player.drawn_card = None
            remaining = result.remaining

        result = await self.card_source.draw(self.deck_id, 1)
        self.top_discard = Card.from_data(result.cards[0])
        self.top_discard.flipped = True
        remaining = result.remaining

        self.deck_exhausted = remaining == 0
        self.discard_pile_has_cards = False
        self.drawn_from_discard = False
        self.countdown_active = False
        self.turns_remaining = 0
        self.initial_flip_counts = {}
        self.current_player_index = self.next_player_index(self.dealer_index)

        logger.info(
            f"Round {self.current_round} dealt by {self.players[self.dealer_index].name}, "
            f"{self.current_player().name} plays first"
        )

        self.phase = GamePhase.INITIAL_FLIP
        if not self.seats_needing_initial_flips():
            self.phase = GamePhase.PLAYING

    def flip_initial_card(self, player_index: int, index: int) -> Optional[tuple[int, int]]:
        """
        Flip one starting card for a seat.

        Moves to PLAYING once every seat that owes flips has made them.

        Returns:
            The newly locked column, if any.
        """
        self._require(player_index, Flip(index))
        locked = self.players[player_index].flip_card(index)
        self.initial_flip_counts[player_index] = self.initial_flip_counts.get(player_index, 0) + 1

        if not self.seats_needing_initial_flips():
            self.phase = GamePhase.PLAYING
        return locked

    async def start_next_round(self) -> None:
        """Rotate the dealer and deal again."""
        if self.phase != GamePhase.ROUND_OVER:
            raise IllegalActionError(f"Cannot start a new round during {self.phase.value}")
        self.dealer_index = self.next_player_index(self.dealer_index)
        await self.start_round()

    # -------------------------------------------------------------------------
    # Turn Actions
    # -------------------------------------------------------------------------

    async def apply(self, action: Action) -> None:
        """
        Apply an action for the current player.

        A DrawDiscard carrying a take index is drawn and taken in one step.
        """
        if isinstance(action, Flip):
            self.flip_card(action.index)
        elif isinstance(action, DrawDeck):
            await self.draw_from_deck()
        elif isinstance(action, DrawDiscard):
            self.draw_from_discard()
            if action.index >= 0:
                await self.take_drawn(action.index)
        elif isinstance(action, Take):
            await self.take_drawn(action.index)
        elif isinstance(action, Discard):
            await self.discard_drawn()
        else:
            raise IllegalActionError(f"Unknown action {action!r}")

    def flip_card(self, index: int) -> Optional[tuple[int, int]]:
        """
        Flip a face-down card as the whole turn.

        Returns:
            The newly locked column, if any.
        """
        self._require(self.current_player_index, Flip(index))
        locked = self.current_player().flip_card(index)
        self.end_turn()
        return locked

    async def draw_from_deck(self) -> Card:
        """
        Draw the top card of the deck into the current player's drawn slot.

        An exhausted deck is reshuffled from the discard history first. If the
        card source reports exhaustion anyway, the discards are reshuffled
        once and the draw retried once.

        Raises:
            CardSourceError: The deck and the discard history are both empty,
                or the card source failed.
        """
        self._require(self.current_player_index, DrawDeck())
        player = self.current_player()

        if self.deck_exhausted:
            await self.reshuffle()

        try:
            result = await self.card_source.draw(self.deck_id, 1)
        except DeckExhaustedError:
            logger.info("Deck ran out mid-draw, reshuffling discards")
            await self.reshuffle()
            result = await self.card_source.draw(self.deck_id, 1)

        self.deck_exhausted = result.remaining == 0
        card = Card.from_data(result.cards[0])
        player.drawn_card = card
        self.drawn_from_discard = False
        return card

    def draw_from_discard(self) -> Card:
        """Pick up the visible top discard into the current player's drawn slot."""
        self._require(self.current_player_index, DrawDiscard())
        card = self.top_discard
        self.top_discard = None
        self.current_player().drawn_card = card
        self.drawn_from_discard = True
        return card

    async def take_drawn(self, index: int) -> Card:
        """
        Put the drawn card into the hand; the replaced card becomes the top discard.

        Returns:
            The card that was replaced.
        """
        self._require(self.current_player_index, Take(index))
        player = self.current_player()

        if self.top_discard is not None:
            await self._send_to_history(self.top_discard)

        old_card, _ = player.swap_in(index, player.drawn_card)
        old_card.flipped = True
        self.top_discard = old_card
        player.drawn_card = None
        self.drawn_from_discard = False

        self.end_turn()
        return old_card

    async def discard_drawn(self) -> Card:
        """
        Throw the drawn card onto the discard pile.

        After a discard-pile pickup there is no top discard, so nothing is
        buried and the card simply goes back on top.
        """
        self._require(self.current_player_index, Discard())
        player = self.current_player()

        if self.top_discard is not None:
            await self._send_to_history(self.top_discard)

        card = player.drawn_card
        card.flipped = True
        self.top_discard = card
        player.drawn_card = None
        self.drawn_from_discard = False

        self.end_turn()
        return card

    async def reshuffle(self) -> None:
        """
        Shuffle the discard history back into the deck.

        The visible top discard stays where it is.

        Raises:
            CardSourceError: There is nothing under the top discard to reshuffle.
        """
        if not self.discard_pile_has_cards:
            raise CardSourceError("Deck is exhausted and there are no discards to reshuffle")
        await self.card_source.reshuffle(self.deck_id)
        self.deck_exhausted = False
        self.discard_pile_has_cards = False
        logger.info(f"Reshuffled discards into deck (round {self.current_round})")

    async def _send_to_history(self, card: Card) -> None:
        await self.card_source.send_to_discard_history(self.deck_id, card.code)
        self.discard_pile_has_cards = True

    # -------------------------------------------------------------------------
    # Turn & Round Flow
    # -------------------------------------------------------------------------

    def end_turn(self) -> None:
        """
        Close the current turn and advance to the next seat.

        Starts the countdown the first time a hand is fully face-up; while the
        countdown runs, every completed turn uses one of the remaining turns
        and the round ends when none are left.
        """
        player = self.current_player()

        if self.countdown_active:
            self.turns_remaining -= 1
            if self.turns_remaining <= 0:
                self._end_round()
                return
        elif player.all_flipped():
            self.countdown_active = True
            self.turns_remaining = len(self.players)
            self.phase = GamePhase.COUNTDOWN
            logger.info(f"{player.name} is fully face-up, {self.turns_remaining} turns left in round")

        self.current_player_index = self.next_player_index()

    def _end_round(self) -> None:
        """Reveal hands, score every seat, and check for game over."""
        for player in self.players:
            player.reveal_all()

        hand_scores = [player.hand_score() for player in self.players]
        self.round_scores.append(hand_scores)
        self.scores = [total + score for total, score in zip(self.scores, hand_scores)]
        self.countdown_active = False
        self.turns_remaining = 0

        logger.info(f"Round {self.current_round} scores {hand_scores}, totals {self.scores}")

        if check_game_over(self.scores, self.threshold):
            self.phase = GamePhase.GAME_OVER
            self.winner_index = get_winner_index(self.scores)
            logger.info(
                f"Game over after {self.current_round} rounds, "
                f"{self.players[self.winner_index].name} wins with {self.scores[self.winner_index]}"
            )
        else:
            self.phase = GamePhase.ROUND_OVER

    # -------------------------------------------------------------------------
    # State Snapshot
    # -------------------------------------------------------------------------

    def get_state(self, for_index: Optional[int] = None) -> dict:
        """
        Get the table state as seen from one seat.

        Face-down cards stay hidden until the round is scored; the drawn card
        is visible only to the seat holding it.

        Args:
            for_index: Seat receiving the state, or None for a neutral view.

        Returns:
            Dict suitable for JSON serialization.
        """
        reveal = self.round_over
        players_data = []
        for i, player in enumerate(self.players):
            drawn = None
            if player.drawn_card is not None and (reveal or i == for_index):
                drawn = player.drawn_card.to_dict()
            players_data.append({
                "index": i,
                "name": player.name,
                "is_cpu": player.is_cpu,
                "cards": player.cards_to_dict(reveal=reveal),
                "has_drawn_card": player.drawn_card is not None,
                "drawn_card": drawn,
                "score": self.scores[i] if self.scores else 0,
            })

        turn_step = self.turn_step
        return {
            "game_id": self.game_id,
            "phase": self.phase.value,
            "turn_step": turn_step.value if turn_step else None,
            "players": players_data,
            "you": for_index,
            "current_player_index": self.current_player_index,
            "dealer_index": self.dealer_index,
            "top_discard": self.top_discard.to_dict() if self.top_discard else None,
            "deck_exhausted": self.deck_exhausted,
            "discard_pile_has_cards": self.discard_pile_has_cards,
            "countdown_active": self.countdown_active,
            "turns_remaining": self.turns_remaining,
            "current_round": self.current_round,
            "round_scores": self.round_scores,
            "scores": self.scores,
            "threshold": self.threshold,
            "needs_initial_flip": (
                for_index is not None
                and self.phase == GamePhase.INITIAL_FLIP
                and self.needs_initial_flip(for_index)
            ),
            "winner_index": self.winner_index,
        }
