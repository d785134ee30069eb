"""
Tests for the in-memory card source.

Run with: pytest test_card_source.py -v
"""

import pytest

from card_source import (
    CardSourceError,
    DeckExhaustedError,
    LocalCardSource,
    RANKS,
    card_code,
)


class TestCardCodes:

    def test_codes(self):
        assert card_code("10", "H") == "0H"
        assert card_code("ACE", "S") == "AS"
        assert card_code("QUEEN", "D") == "QD"
        assert card_code("7", "C") == "7C"


class TestLocalCardSource:

    @pytest.mark.asyncio
    async def test_new_deck_has_52_unique_cards(self):
        source = LocalCardSource(seed=1, image_base="/cards")
        deck_id = await source.new_shuffled_deck()

        result = await source.draw(deck_id, 52)

        assert result.remaining == 0
        assert len({card.code for card in result.cards}) == 52
        assert {card.rank for card in result.cards} == set(RANKS)
        assert all(card.image == f"/cards/{card.code}.png" for card in result.cards)

    @pytest.mark.asyncio
    async def test_draw_reports_remaining(self):
        source = LocalCardSource(seed=1)
        deck_id = await source.new_shuffled_deck()

        result = await source.draw(deck_id, 6)

        assert len(result.cards) == 6
        assert result.remaining == 46
        assert source.remaining(deck_id) == 46

    @pytest.mark.asyncio
    async def test_draw_past_end_raises(self):
        source = LocalCardSource(seed=1)
        deck_id = await source.new_shuffled_deck()
        await source.draw(deck_id, 50)

        with pytest.raises(DeckExhaustedError):
            await source.draw(deck_id, 3)
        assert source.remaining(deck_id) == 2

    @pytest.mark.asyncio
    async def test_same_seed_same_order(self):
        first = LocalCardSource(seed=42)
        second = LocalCardSource(seed=42)
        a = await first.draw(await first.new_shuffled_deck(), 10)
        b = await second.draw(await second.new_shuffled_deck(), 10)
        assert [c.code for c in a.cards] == [c.code for c in b.cards]

    @pytest.mark.asyncio
    async def test_reshuffle_returns_discard_history(self):
        source = LocalCardSource(seed=3)
        deck_id = await source.new_shuffled_deck()
        result = await source.draw(deck_id, 52)
        for card in result.cards[:5]:
            await source.send_to_discard_history(deck_id, card.code)
        assert source.discard_count(deck_id) == 5

        await source.reshuffle(deck_id)

        assert source.remaining(deck_id) == 5
        assert source.discard_count(deck_id) == 0
        again = await source.draw(deck_id, 5)
        assert {c.code for c in again.cards} == {c.code for c in result.cards[:5]}

    @pytest.mark.asyncio
    async def test_unknown_card_rejected(self):
        source = LocalCardSource(seed=3)
        deck_id = await source.new_shuffled_deck()
        with pytest.raises(CardSourceError):
            await source.send_to_discard_history(deck_id, "ZZ")

    @pytest.mark.asyncio
    async def test_unknown_deck_rejected(self):
        source = LocalCardSource(seed=3)
        with pytest.raises(CardSourceError):
            await source.draw("missing", 1)
