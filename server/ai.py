"""
Decision engine for computer players in Column Golf.

Every decision is an ordered list of rules. Each rule has a predicate, a
probability gate, and the action it produces. Rules are tried top to
bottom against one shared random source; the first rule whose predicate
holds and whose gate passes wins. A rule whose gate fails is skipped and
never reconsidered for that decision.

All literal probabilities live in constants.py.
"""

import logging
from dataclasses import dataclass
from functools import cached_property
from random import Random
from typing import Callable, Optional

from actions import Action, Discard, DrawDeck, DrawDiscard, DrawnChoice, Flip, Take, TurnChoice, describe
from config import config
from constants import (
    DENY_NEXT_PLAYER_CHANCE,
    DISCARD_PICKUP_CHANCE,
    EMPTY_COLUMN_BASE_CHANCE,
    EMPTY_COLUMN_TAKE_CHANCE,
    FLIP_INSTEAD_OF_DRAW_CHANCE,
    IGNORE_WANTED_SWAP_CHANCE,
    KEEP_FROM_NEXT_PLAYER_CHANCE,
    LOW_COLUMN_ALWAYS_BELOW,
    LOW_COLUMN_CHANCE,
    MATCH_DISCARD_CHANCE,
    MATCH_TAKE_CHANCE,
    PINCH_DISCARD_CHANCE,
    PINCH_HIGH_VALUE,
    SWAP_GAP_ALWAYS,
    SWAP_GAP_CHANCE,
    SWAP_WANTED_CARD_CHANCE,
)
from game import Card, Game, Player, column_partner


# Dedicated logger for AI decisions, enabled with AI_DEBUG=1
ai_logger = logging.getLogger("golf.ai")


def ai_log(message: str):
    """Log AI decision info when AI_DEBUG is enabled."""
    if config.AI_DEBUG:
        ai_logger.debug(message)


# =============================================================================
# Helper Queries
# =============================================================================

def matching_partner_index(player: Player, card: Card) -> Optional[int]:
    """
    Find a face-up open card of the same rank.

    Returns:
        The column partner's index (where the card would complete a pair),
        or None if nothing matches.
    """
    for i in player.flipped_unlocked_indices():
        if player.cards[i].rank == card.rank:
            return column_partner(i)
    return None


def low_column(player: Player, card: Card) -> tuple[int, Optional[int]]:
    """
    Best column total reachable by pairing `card` with an open face-up card.

    Returns:
        (column total, index to take into). The index is None when the
        player has no open face-up cards.
    """
    value = card.value()
    best_points = 21
    best_index = None
    for i in player.flipped_unlocked_indices():
        points = player.cards[i].value() + value
        if points < best_points:
            best_points = points
            best_index = column_partner(i)
    return best_points, best_index


def sorted_open_cards(player: Player) -> list[int]:
    """Indices of open face-up cards, highest value first."""
    return sorted(
        player.flipped_unlocked_indices(),
        key=lambda i: player.cards[i].value(),
        reverse=True,
    )


def find_best_to_swap(player: Player, next_player: Player, rng: Random) -> Optional[int]:
    """
    Pick the open face-up card most worth swapping out.

    Walks the open cards from highest value down, passing over any card the
    next player wants (it would land on the discard pile for them) unless a
    small override chance fires.

    Returns:
        Index of the card to replace, or None if every candidate was passed over.
    """
    unwanted = next_player.wanted_ranks()
    for i in sorted_open_cards(player):
        if player.cards[i].rank not in unwanted:
            return i
        if rng.random() < IGNORE_WANTED_SWAP_CHANCE:
            return i
    return None


def pinch_index(player: Player) -> Optional[int]:
    """Index across from the lowest open face-up card, or None without one."""
    ordered = sorted_open_cards(player)
    if not ordered:
        return None
    return column_partner(ordered[-1])


def choose_safe_flip(player: Player, rng: Random) -> int:
    """
    Choose a card to flip without forcing a column lock.

    Prefers cards in fully face-down columns, falling back to any face-down
    card.
    """
    candidates = player.empty_column_indices() or player.unflipped_indices()
    return rng.choice(candidates)


def fallback_take_index(player: Player, card: Card) -> int:
    """
    Deterministic slot for a planned discard pickup the take rules would pass on.

    Replaces the worst open face-up card if it is worse than `card`, otherwise
    starts an empty column, otherwise fills any face-down slot, otherwise
    replaces the worst open card anyway.
    """
    ordered = sorted_open_cards(player)
    if ordered and player.cards[ordered[0]].value() > card.value():
        return ordered[0]
    empties = player.empty_column_indices()
    if empties:
        return empties[0]
    unflipped = player.unflipped_indices()
    if unflipped:
        return unflipped[0]
    if ordered:
        return ordered[0]
    return player.open_indices()[0]


# =============================================================================
# Rules
# =============================================================================

@dataclass
class Situation:
    """
    Everything one decision looks at.

    Attributes:
        game: The game being played.
        player: The deciding player.
        rng: Shared random source for every gate in this decision.
        card: The card under consideration (drawn card or top discard).
    """

    game: Game
    player: Player
    rng: Random
    card: Optional[Card] = None

    @cached_property
    def next_player(self) -> Player:
        return self.game.next_player(self.game.player_index(self.player))

    @cached_property
    def next_wanted(self) -> set:
        return self.next_player.wanted_ranks()

    @cached_property
    def match_index(self) -> Optional[int]:
        if self.card is None:
            return None
        return matching_partner_index(self.player, self.card)

    @cached_property
    def low_column(self) -> tuple[int, Optional[int]]:
        return low_column(self.player, self.card)

    @cached_property
    def best_to_swap(self) -> Optional[int]:
        # Cached so its override draws happen at most once per decision
        return find_best_to_swap(self.player, self.next_player, self.rng)

    def card_wanted_by_next(self) -> bool:
        return self.card is not None and self.card.rank in self.next_wanted


@dataclass(frozen=True)
class Rule:
    """One probability-gated step of a decision policy."""

    name: str
    applies: Callable[[Situation], bool]
    chance: Callable[[Situation], float]
    action: Callable[[Situation], Action]


def always(_: Situation) -> float:
    return 1.0


def decide(rules: list[Rule], situation: Situation) -> tuple[Optional[Rule], Optional[Action]]:
    """
    Evaluate rules in order.

    The gate draw happens only for rules whose predicate holds.

    Returns:
        The winning rule and its action, or (None, None) if no rule fired.
    """
    for rule in rules:
        if not rule.applies(situation):
            continue
        if situation.rng.random() < rule.chance(situation):
            return rule, rule.action(situation)
    return None, None


# -----------------------------------------------------------------------------
# Take-or-discard (holding a drawn card)
# -----------------------------------------------------------------------------

def _low_column_chance(s: Situation) -> float:
    points, _ = s.low_column
    if points < LOW_COLUMN_ALWAYS_BELOW:
        return 1.0
    return LOW_COLUMN_CHANCE.get(points, 0.0)


def _empty_column_index(s: Situation) -> int:
    return s.rng.choice(s.player.empty_column_indices())


def _swap_gap_chance(s: Situation) -> float:
    gap = s.player.cards[s.best_to_swap].value() - s.card.value()
    if gap >= SWAP_GAP_ALWAYS:
        return 1.0
    return SWAP_GAP_CHANCE.get(gap, 0.0)


def _pinch_chance(s: Situation) -> float:
    if s.card.value() > PINCH_HIGH_VALUE:
        return 1.0 - PINCH_DISCARD_CHANCE
    return 1.0


TAKE_OR_DISCARD_RULES: list[Rule] = [
    Rule(
        name="match_pair",
        applies=lambda s: s.match_index is not None,
        chance=lambda s: MATCH_TAKE_CHANCE,
        action=lambda s: Take(s.match_index),
    ),
    Rule(
        name="low_column",
        applies=lambda s: s.low_column[1] is not None and _low_column_chance(s) > 0,
        chance=_low_column_chance,
        action=lambda s: Take(s.low_column[1]),
    ),
    Rule(
        name="empty_column",
        applies=lambda s: s.player.has_empty_column(),
        chance=lambda s: EMPTY_COLUMN_TAKE_CHANCE.get(s.card.rank.value, EMPTY_COLUMN_BASE_CHANCE),
        action=lambda s: Take(_empty_column_index(s)),
    ),
    Rule(
        name="empty_column_keep_from_next",
        applies=lambda s: s.player.has_empty_column() and s.card_wanted_by_next(),
        chance=lambda s: KEEP_FROM_NEXT_PLAYER_CHANCE,
        action=lambda s: Take(_empty_column_index(s)),
    ),
    Rule(
        name="swap_worse_card",
        applies=lambda s: s.best_to_swap is not None
        and s.card.value() < s.player.cards[s.best_to_swap].value(),
        chance=_swap_gap_chance,
        action=lambda s: Take(s.best_to_swap),
    ),
    Rule(
        name="swap_keep_from_next",
        applies=lambda s: s.best_to_swap is not None and s.card_wanted_by_next(),
        chance=lambda s: SWAP_WANTED_CARD_CHANCE,
        action=lambda s: Take(s.best_to_swap),
    ),
    Rule(
        name="pinch",
        applies=lambda s: s.best_to_swap is None
        and pinch_index(s.player) is not None
        and s.card_wanted_by_next(),
        chance=_pinch_chance,
        action=lambda s: Take(pinch_index(s.player)),
    ),
]


# -----------------------------------------------------------------------------
# Draw-or-flip (start of turn)
# -----------------------------------------------------------------------------

def _can_take_discard(s: Situation) -> bool:
    return s.card is not None and bool(s.player.open_indices())


def _take_discard(s: Situation) -> DrawDiscard:
    """Plan where the top discard goes before picking it up."""
    plan = Situation(game=s.game, player=s.player, rng=s.rng, card=s.card)
    rule, action = decide(TAKE_OR_DISCARD_RULES, plan)
    if isinstance(action, Take):
        return DrawDiscard(action.index)
    return DrawDiscard(fallback_take_index(s.player, s.card))


DRAW_OR_FLIP_RULES: list[Rule] = [
    Rule(
        name="discard_matches",
        applies=lambda s: _can_take_discard(s) and s.match_index is not None,
        chance=lambda s: MATCH_DISCARD_CHANCE,
        action=lambda s: DrawDiscard(s.match_index),
    ),
    Rule(
        name="discard_pickup",
        applies=lambda s: _can_take_discard(s) and s.card.rank.value in DISCARD_PICKUP_CHANCE,
        chance=lambda s: DISCARD_PICKUP_CHANCE[s.card.rank.value],
        action=_take_discard,
    ),
    Rule(
        name="bury_for_next",
        applies=lambda s: s.card_wanted_by_next(),
        chance=lambda s: DENY_NEXT_PLAYER_CHANCE,
        action=lambda s: DrawDeck(),
    ),
    Rule(
        name="no_empty_column",
        applies=lambda s: not s.player.has_empty_column(),
        chance=always,
        action=lambda s: DrawDeck(),
    ),
    Rule(
        name="flip_instead",
        applies=lambda s: True,
        chance=lambda s: FLIP_INSTEAD_OF_DRAW_CHANCE,
        action=lambda s: Flip(choose_safe_flip(s.player, s.rng)),
    ),
]


# =============================================================================
# Public entry points
# =============================================================================

class GolfAI:
    """AI decision-making for Column Golf."""

    @staticmethod
    def choose_initial_flip(player: Player, rng: Random) -> int:
        """Choose one starting card to flip."""
        index = choose_safe_flip(player, rng)
        ai_log(f"{player.name} initial flip @{index}")
        return index

    @staticmethod
    def choose_draw_or_flip(game: Game, player: Player, rng: Random) -> TurnChoice:
        """
        Decide how to start a turn.

        Returns:
            Flip(index), DrawDeck(), or DrawDiscard(index) naming the slot the
            discard will be taken into.
        """
        situation = Situation(game=game, player=player, rng=rng, card=game.top_discard)
        rule, action = decide(DRAW_OR_FLIP_RULES, situation)
        if action is None:
            action = DrawDeck()
        discard_str = game.top_discard.rank.value if game.top_discard else "empty"
        ai_log(
            f"{player.name} (discard {discard_str}): "
            f"{rule.name if rule else 'default'} -> {describe(action)}"
        )
        return action

    @staticmethod
    def choose_take_or_discard(
        game: Game, player: Player, rng: Random, card: Optional[Card] = None
    ) -> DrawnChoice:
        """
        Decide what to do with a drawn card.

        Args:
            game: The game being played.
            player: The deciding player.
            rng: Shared random source.
            card: Card to place (defaults to the player's drawn card).

        Returns:
            Take(index) or Discard().
        """
        card = card or player.drawn_card
        situation = Situation(game=game, player=player, rng=rng, card=card)
        rule, action = decide(TAKE_OR_DISCARD_RULES, situation)
        if action is None:
            action = Discard()
        ai_log(
            f"{player.name} holding {card.rank.value}: "
            f"{rule.name if rule else 'default'} -> {describe(action)}"
        )
        return action
