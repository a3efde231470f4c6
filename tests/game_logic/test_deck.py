"""Tests for the card supply strategies."""

import pytest

from finanzweg_backend.game_logic import (
    Card,
    Choice,
    DeckContent,
    DrawDeckProvider,
    ScheduledDeckProvider,
    build_deck_provider,
    placeholder_content,
)
from finanzweg_backend.shared import (
    CARD_TYPES,
    CardType,
    DeckStrategy,
    DeterministicRandomService,
)


def test_schedule_is_generated_once_and_stays_fixed(
    branching_content: DeckContent,
) -> None:
    provider = ScheduledDeckProvider(
        branching_content, DeterministicRandomService(3), max_turns=42
    )

    first = [provider.cards_for_turn(turn) for turn in range(1, 43)]
    second = [provider.cards_for_turn(turn) for turn in range(1, 43)]

    assert first == second
    assert len(provider.schedule) == 42
    assert [bundle.turn for bundle in provider.schedule] == list(range(1, 43))
    with pytest.raises(NotImplementedError):
        provider.redraw(5)
    with pytest.raises(ValueError, match="outside"):
        provider.cards_for_turn(43)
    assert provider.peek(5) is provider.cards_for_turn(5)
    assert provider.peek(43) is None


def test_same_seed_produces_the_same_schedule(branching_content: DeckContent) -> None:
    left = ScheduledDeckProvider(
        branching_content, DeterministicRandomService(11), max_turns=10
    )
    right = ScheduledDeckProvider(
        branching_content, DeterministicRandomService(11), max_turns=10
    )
    assert left.schedule == right.schedule


def test_cards_do_not_repeat_until_a_pool_is_exhausted(
    branching_content: DeckContent,
) -> None:
    provider = ScheduledDeckProvider(
        branching_content, DeterministicRandomService(5), max_turns=10
    )

    for card_type in CARD_TYPES:
        first_round = [
            provider.cards_for_turn(turn).card(card_type).id for turn in range(1, 6)
        ]
        assert len(set(first_round)) == 5


def test_empty_pools_fall_back_to_placeholders() -> None:
    only_events = DeckContent(
        cards=(
            Card(
                id="event-only",
                type=CardType.EVENT,
                title="Einziges Ereignis",
                choices=(Choice(id="ok", label="OK"),),
            ),
        )
    )
    provider = build_deck_provider(
        DeckStrategy.SCHEDULE, only_events, DeterministicRandomService(1), max_turns=3
    )

    bundle = provider.cards_for_turn(1)

    assert bundle.event is not None
    assert bundle.event.id == "event-only"
    placeholders = placeholder_content()
    for card_type in (CardType.PROPOSITION, CardType.CONSTRAINT, CardType.BONUS):
        card = bundle.card(card_type)
        assert card is not None
        assert card in placeholders.pool(card_type)


def test_bare_install_is_playable() -> None:
    provider = build_deck_provider(
        DeckStrategy.SCHEDULE, None, DeterministicRandomService(1), max_turns=2
    )
    bundle = provider.cards_for_turn(2)
    assert len(bundle.cards()) == 4
    assert bundle.required_types() == frozenset(
        {CardType.EVENT, CardType.PROPOSITION, CardType.BONUS}
    )


def test_draw_provider_memoises_until_redrawn(branching_content: DeckContent) -> None:
    provider = build_deck_provider(
        DeckStrategy.DRAW,
        branching_content,
        DeterministicRandomService(9),
        max_turns=5,
    )
    assert isinstance(provider, DrawDeckProvider)
    assert provider.strategy is DeckStrategy.DRAW

    assert provider.peek(2) is None
    first = provider.cards_for_turn(2)
    assert provider.peek(2) is first
    assert provider.cards_for_turn(2) is first

    replaced = provider.redraw(2)
    assert provider.cards_for_turn(2) is replaced
    assert replaced.turn == 2
    with pytest.raises(ValueError, match="outside"):
        provider.redraw(6)


def test_weighted_draw_never_picks_zero_weight_cards() -> None:
    content = DeckContent(
        cards=(
            Card(
                id="heavy",
                type=CardType.EVENT,
                title="Häufig",
                weight=5,
                choices=(Choice(id="ok", label="OK"),),
            ),
            Card(
                id="never",
                type=CardType.EVENT,
                title="Nie",
                weight=0,
                choices=(Choice(id="ok", label="OK"),),
            ),
        )
    )
    rng = DeterministicRandomService(2)
    picks = [
        rng.weighted_choice(content.pool(CardType.EVENT), [5, 0]).id
        for _ in range(50)
    ]
    assert set(picks) == {"heavy"}
