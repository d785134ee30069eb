"""
Tests for the computer player decision engine.

Rule gates are driven by a scripted random source so each test pins down
exactly which rule fires; one statistical test checks a gate's probability
with a seeded Random.

Run with: pytest test_ai_decisions.py -v
"""

import random

import pytest

from actions import Discard, DrawDeck, DrawDiscard, Flip, Take
from ai import (
    DRAW_OR_FLIP_RULES,
    TAKE_OR_DISCARD_RULES,
    GolfAI,
    Situation,
    choose_safe_flip,
    decide,
    fallback_take_index,
    find_best_to_swap,
    low_column,
    matching_partner_index,
    pinch_index,
)
from card_source import LocalCardSource
from game import Card, Game, GamePhase, Player, Rank


# =============================================================================
# Helpers
# =============================================================================

class ScriptedRandom:
    """Random source that replays fixed values; choice() takes the first item."""

    def __init__(self, values=()):
        self.values = list(values)

    def random(self) -> float:
        if not self.values:
            raise AssertionError("Decision drew more random values than scripted")
        return self.values.pop(0)

    def choice(self, seq):
        return seq[0]


def card(rank: str) -> Card:
    return Card(code=f"x-{rank}", rank=Rank(rank))


def set_hand(player: Player, ranks: list[str], flipped=()) -> None:
    player.cards = [Card(code=f"{player.name}{i}", rank=Rank(r)) for i, r in enumerate(ranks)]
    for index in flipped:
        player.flip_card(index)


def make_game() -> Game:
    """Seat 0 decides, seat 1 is the next player; every hand starts face down."""
    game = Game.create(LocalCardSource(seed=1), rng=random.Random(0))
    for player in game.players:
        set_hand(player, ["8", "8", "8", "8", "8", "8"])
    game.current_player_index = 0
    return game


def take_decision(game: Game, drawn: str, values=()):
    situation = Situation(game=game, player=game.players[0], rng=ScriptedRandom(values), card=card(drawn))
    rule, action = decide(TAKE_OR_DISCARD_RULES, situation)
    return (rule.name if rule else None), action


def draw_decision(game: Game, top: str, values=()):
    game.top_discard = card(top)
    game.top_discard.flipped = True
    situation = Situation(game=game, player=game.players[0], rng=ScriptedRandom(values), card=game.top_discard)
    rule, action = decide(DRAW_OR_FLIP_RULES, situation)
    return (rule.name if rule else None), action


# =============================================================================
# Helper Queries
# =============================================================================

class TestHelperQueries:

    def test_matching_partner_index(self):
        player = Player(name="P")
        set_hand(player, ["9", "ACE", "5", "7", "8", "6"], flipped=(1,))
        assert matching_partner_index(player, card("ACE")) == 4
        assert matching_partner_index(player, card("9")) is None

    def test_locked_cards_do_not_match(self):
        player = Player(name="P")
        set_hand(player, ["9", "ACE", "5", "7", "8", "6"], flipped=(1, 4))
        assert matching_partner_index(player, card("ACE")) is None

    def test_low_column(self):
        player = Player(name="P")
        set_hand(player, ["9", "3", "5", "7", "8", "6"], flipped=(0, 1, 2))
        assert low_column(player, card("ACE")) == (4, 4)

    def test_low_column_without_open_cards(self):
        player = Player(name="P")
        set_hand(player, ["9", "3", "5", "7", "8", "6"])
        assert low_column(player, card("ACE")) == (21, None)

    def test_best_to_swap_skips_wanted_rank(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "5", "2", "2", "2"], flipped=(0, 1, 2))
        set_hand(game.players[1], ["QUEEN", "3", "3", "3", "3", "3"], flipped=(0,))

        assert find_best_to_swap(game.players[0], game.players[1], ScriptedRandom([0.5])) == 1
        assert find_best_to_swap(game.players[0], game.players[1], ScriptedRandom([0.01])) == 0

    def test_pinch_index(self):
        player = Player(name="P")
        set_hand(player, ["QUEEN", "9", "5", "2", "2", "2"], flipped=(0, 1, 2))
        assert pinch_index(player) == 5

    def test_fallback_take_index(self):
        player = Player(name="P")
        set_hand(player, ["QUEEN", "9", "5", "2", "2", "2"], flipped=(0, 1, 2))
        assert fallback_take_index(player, card("3")) == 0
        assert fallback_take_index(player, card("JACK")) == 3


# =============================================================================
# Safe Flip
# =============================================================================

class TestSafeFlip:

    def test_prefers_empty_columns(self):
        player = Player(name="P")
        set_hand(player, ["2", "3", "4", "5", "6", "7"], flipped=(0,))
        rng = random.Random(7)
        picks = {choose_safe_flip(player, rng) for _ in range(300)}
        assert picks == {1, 2, 4, 5}

    def test_any_face_down_card_without_empty_column(self):
        player = Player(name="P")
        set_hand(player, ["2", "3", "4", "5", "6", "7"], flipped=(0, 1, 2))
        rng = random.Random(7)
        picks = {choose_safe_flip(player, rng) for _ in range(300)}
        assert picks == {3, 4, 5}


# =============================================================================
# Take or Discard
# =============================================================================

class TestTakeOrDiscard:

    def test_match_completes_pair(self):
        game = make_game()
        set_hand(game.players[0], ["ACE", "9", "QUEEN", "8", "7", "6"], flipped=(0,))
        assert take_decision(game, "ACE", [0.5]) == ("match_pair", Take(3))

    def test_failed_match_gate_falls_through(self):
        game = make_game()
        set_hand(game.players[0], ["ACE", "9", "QUEEN", "8", "7", "6"], flipped=(0,))
        assert take_decision(game, "ACE", [0.99, 0.5]) == ("low_column", Take(3))

    def test_match_rate(self):
        """A matching drawn card is taken by the match rule 98% of the time."""
        game = make_game()
        set_hand(game.players[0], ["ACE", "9", "QUEEN", "8", "7", "6"], flipped=(0,))
        rng = random.Random(1234)
        trials = 20000
        matched = 0
        for _ in range(trials):
            situation = Situation(game=game, player=game.players[0], rng=rng, card=card("ACE"))
            rule, action = decide(TAKE_OR_DISCARD_RULES, situation)
            assert action == Take(3)
            if rule.name == "match_pair":
                matched += 1
        assert matched / trials == pytest.approx(0.98, abs=0.005)

    def test_low_column_always_below_four(self):
        game = make_game()
        set_hand(game.players[0], ["2", "9", "QUEEN", "8", "7", "6"], flipped=(0,))
        assert take_decision(game, "ACE", [0.999]) == ("low_column", Take(3))

    def test_low_column_of_four(self):
        game = make_game()
        set_hand(game.players[0], ["3", "9", "QUEEN", "8", "7", "6"], flipped=(0,))
        assert take_decision(game, "ACE", [0.59]) == ("low_column", Take(3))
        # Gate fails; an ACE always starts an empty column
        assert take_decision(game, "ACE", [0.61, 0.99]) == ("empty_column", Take(1))

    def test_low_column_of_five(self):
        game = make_game()
        set_hand(game.players[0], ["3", "9", "QUEEN", "8", "7", "6"], flipped=(0,))
        assert take_decision(game, "2", [0.29]) == ("low_column", Take(3))

    def test_empty_column_baseline(self):
        game = make_game()
        assert take_decision(game, "QUEEN", [0.54]) == ("empty_column", Take(0))
        assert take_decision(game, "QUEEN", [0.56]) == (None, None)

    def test_empty_column_keeps_card_from_next_player(self):
        game = make_game()
        set_hand(game.players[1], ["QUEEN", "3", "3", "3", "3", "3"], flipped=(0,))
        assert take_decision(game, "QUEEN", [0.56, 0.89]) == ("empty_column_keep_from_next", Take(0))

    def test_swap_worse_card(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "5", "2", "2", "2"], flipped=(0, 1, 2))
        assert take_decision(game, "4", [0.99]) == ("swap_worse_card", Take(0))

    def test_swap_gap_chance(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "5", "2", "2", "2"], flipped=(0, 1, 2))
        assert take_decision(game, "8", [0.59]) == ("swap_worse_card", Take(0))
        assert take_decision(game, "8", [0.61]) == (None, None)

    def test_swap_skips_card_next_player_wants(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "5", "2", "2", "2"], flipped=(0, 1, 2))
        set_hand(game.players[1], ["QUEEN", "3", "3", "3", "3", "3"], flipped=(0,))
        # First draw passes on the override, second is the gap gate
        assert take_decision(game, "4", [0.5, 0.99]) == ("swap_worse_card", Take(1))

    def test_swap_to_keep_card_from_next_player(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "5", "2", "2", "2"], flipped=(0, 1, 2))
        set_hand(game.players[1], ["JACK", "3", "3", "3", "3", "3"], flipped=(0,))
        assert take_decision(game, "JACK", [0.9]) == ("swap_keep_from_next", Take(0))

    def test_pinch_takes_across_from_lowest_card(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "4", "2", "2", "6"], flipped=(0, 1, 2, 5))
        set_hand(game.players[1], ["QUEEN", "9", "3", "2", "2", "2"], flipped=(0, 1, 2))
        assert take_decision(game, "3", [0.5, 0.5, 0.99]) == ("pinch", Take(4))

    def test_pinch_usually_discards_high_card(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "4", "2", "2", "6"], flipped=(0, 1, 2, 5))
        set_hand(game.players[1], ["QUEEN", "9", "10", "2", "2", "2"], flipped=(0, 1, 2))
        assert take_decision(game, "10", [0.5, 0.5, 0.2]) == ("pinch", Take(4))
        assert take_decision(game, "10", [0.5, 0.5, 0.3]) == (None, None)

    def test_fully_locked_hand_discards(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "4", "2", "2", "6"], flipped=range(6))
        assert GolfAI.choose_take_or_discard(game, game.players[0], ScriptedRandom(), card("ACE")) == Discard()

    def test_card_from_discard_pile_can_go_back(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "5", "2", "2", "2"], flipped=(0, 1, 2))
        game.drawn_from_discard = True
        action = GolfAI.choose_take_or_discard(game, game.players[0], ScriptedRandom(), card("JACK"))
        assert action == Discard()


# =============================================================================
# Draw or Flip
# =============================================================================

class TestDrawOrFlip:

    def test_take_matching_discard(self):
        game = make_game()
        set_hand(game.players[0], ["7", "9", "QUEEN", "8", "2", "6"], flipped=(0,))
        assert draw_decision(game, "7", [0.5]) == ("discard_matches", DrawDiscard(3))

    def test_pickup_king_plans_slot(self):
        game = make_game()
        assert draw_decision(game, "KING", [0.5, 0.5]) == ("discard_pickup", DrawDiscard(0))

    def test_failed_pickup_then_flip(self):
        game = make_game()
        assert draw_decision(game, "6", [0.5, 0.4]) == ("flip_instead", Flip(0))

    def test_default_is_draw(self):
        game = make_game()
        assert draw_decision(game, "6", [0.5, 0.6]) == (None, None)
        assert GolfAI.choose_draw_or_flip(game, game.players[0], ScriptedRandom([0.5, 0.6])) == DrawDeck()

    def test_bury_card_next_player_wants(self):
        game = make_game()
        set_hand(game.players[1], ["9", "3", "3", "3", "3", "3"], flipped=(0,))
        assert draw_decision(game, "9", [0.5]) == ("bury_for_next", DrawDeck())

    def test_no_empty_column_draws(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "5", "2", "2", "2"], flipped=(0, 1, 2))
        assert draw_decision(game, "8", [0.0]) == ("no_empty_column", DrawDeck())

    def test_fully_locked_hand_never_takes_discard(self):
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "5", "2", "2", "2"], flipped=range(6))
        assert draw_decision(game, "KING", [0.0]) == ("no_empty_column", DrawDeck())

    def test_discard_pickup_uses_fallback_slot(self):
        """A picked-up discard the take rules would not keep still gets a slot."""
        game = make_game()
        set_hand(game.players[0], ["QUEEN", "9", "JACK", "2", "2", "2"], flipped=(0, 1, 2))
        # Pickup gate passes, then the swap gate fails while planning the slot
        name, action = draw_decision(game, "6", [0.1, 0.99])
        assert name == "discard_pickup"
        assert isinstance(action, DrawDiscard)
        assert action.index == 0

    def test_choices_are_always_legal(self):
        """Random hands never produce an action the game would reject."""
        rng = random.Random(99)
        ranks = [rank.value for rank in Rank]
        for _ in range(300):
            game = make_game()
            for player in game.players:
                flips = rng.sample(range(6), rng.randint(0, 6))
                set_hand(player, [rng.choice(ranks) for _ in range(6)], flipped=flips)
            game.phase = GamePhase.PLAYING
            game.top_discard = card(rng.choice(ranks))
            game.top_discard.flipped = True

            choice = GolfAI.choose_draw_or_flip(game, game.players[0], rng)
            assert game.check_action(0, choice) is None, choice
