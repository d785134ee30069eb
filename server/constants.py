"""
Card values, table layout, and AI probability tables for Column Golf.

This module is the single source of truth for point values and for every
literal threshold the computer players use. Tuning the CPU players means
editing the tables here as a whole; the decision order lives in ai.py.

Scoring:
    - King: 0 points
    - Ace: 1 point
    - 2-10: Face value
    - Jack, Queen: 10 points
    - Two equal ranks in a column cancel out (0 points)
"""

from config import config


# =============================================================================
# Card Values - Single Source of Truth
# =============================================================================

DEFAULT_CARD_VALUES: dict[str, int] = {
    "KING": 0,
    "ACE": 1,
    "2": 2,
    "3": 3,
    "4": 4,
    "5": 5,
    "6": 6,
    "7": 7,
    "8": 8,
    "9": 9,
    "10": 10,
    "JACK": 10,
    "QUEEN": 10,
}


# =============================================================================
# Table Constants
# =============================================================================

NUM_PLAYERS = 4
HAND_SIZE = 6
NUM_COLUMNS = 3
INITIAL_FLIPS = config.game_defaults.initial_flips
GAME_OVER_THRESHOLD = config.game_defaults.game_over_threshold
HUMAN_PLAYER_NAME = config.game_defaults.human_player_name
CPU_PLAYER_NAMES = config.game_defaults.cpu_player_names


# =============================================================================
# AI Probability Tables
# =============================================================================

# Draw-or-flip: take the discard when it pairs a flipped, unlocked card
MATCH_DISCARD_CHANCE = 0.98

# Draw-or-flip: chance to take the discard by rank alone
DISCARD_PICKUP_CHANCE: dict[str, float] = {
    "ACE": 1.0,
    "KING": 1.0,
    "2": 0.95,
    "3": 0.85,
    "4": 0.75,
    "5": 0.65,
    "6": 0.30,
}

# Draw-or-flip: draw from the deck when the discard is a card the next player wants
DENY_NEXT_PLAYER_CHANCE = 0.9

# Draw-or-flip: coin flip between flipping and drawing when an empty column exists
FLIP_INSTEAD_OF_DRAW_CHANCE = 0.5

# Take-or-discard: drawn card pairs a flipped, unlocked card
MATCH_TAKE_CHANCE = 0.98

# Take-or-discard: column total reached by pairing with a flipped card
LOW_COLUMN_ALWAYS_BELOW = 4
LOW_COLUMN_CHANCE: dict[int, float] = {
    4: 0.6,
    5: 0.3,
}

# Take-or-discard: chance to start an empty column with the drawn card
EMPTY_COLUMN_TAKE_CHANCE: dict[str, float] = {
    "KING": 1.0,
    "ACE": 1.0,
    "2": 1.0,
    "3": 0.9,
    "4": 0.8,
    "5": 0.7,
    "6": 0.6,
}
EMPTY_COLUMN_BASE_CHANCE = 0.55

# Take-or-discard: keep a card the next player wants instead of feeding it to them
KEEP_FROM_NEXT_PLAYER_CHANCE = 0.9
SWAP_WANTED_CARD_CHANCE = 0.95

# Take-or-discard: pass over a card the next player wants when choosing what to swap out
IGNORE_WANTED_SWAP_CHANCE = 0.05

# Take-or-discard: chance to swap out a worse card, keyed by the point gap
SWAP_GAP_CHANCE: dict[int, float] = {
    1: 0.4,
    2: 0.6,
    3: 0.8,
    4: 0.9,
}
SWAP_GAP_ALWAYS = 5

# Take-or-discard: last resort when every swappable card is wanted by the next player
PINCH_HIGH_VALUE = 7
PINCH_DISCARD_CHANCE = 0.75


def get_card_value_for_rank(rank_str: str) -> int:
    """
    Get point value for a rank string as reported by the card source.

    Args:
        rank_str: Card rank ('KING', 'ACE', '2'..'10', 'JACK', 'QUEEN').

    Returns:
        Point value for the card.

    Raises:
        KeyError: If the rank is not part of a standard deck.
    """
    return DEFAULT_CARD_VALUES[rank_str]
