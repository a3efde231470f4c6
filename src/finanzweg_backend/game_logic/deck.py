"""Card supply strategies for sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from finanzweg_backend.game_logic.cards import Card, CardBundle, Choice, EffectSpec
from finanzweg_backend.game_logic.configuration import DeckContent
from finanzweg_backend.shared.enums import CARD_TYPES, CardType, DeckStrategy

if TYPE_CHECKING:
    from finanzweg_backend.shared.rng import DeterministicRandomService


class DeckProvider(Protocol):
    """Protocol describing how a session obtains the cards for a turn."""

    @property
    def strategy(self) -> DeckStrategy:
        """Return the strategy implemented by the provider."""

    def cards_for_turn(self, turn: int) -> CardBundle:
        """Return the bundle shown to every player who reaches *turn*."""

    def peek(self, turn: int) -> CardBundle | None:
        """Return the bundle for *turn* if it exists, without dealing one."""

    def redraw(self, turn: int) -> CardBundle:
        """Replace the bundle for *turn*; only on-demand providers support it."""


def placeholder_content() -> DeckContent:
    """Return a minimal playable deck used when no content is configured."""
    return DeckContent(
        cards=(
            Card(
                id="placeholder-event",
                type=CardType.EVENT,
                title="Waschmaschine kaputt",
                text="Eine Reparatur wird fällig.",
                mandatory=True,
                choices=(
                    Choice(
                        id="repair",
                        label="Reparieren",
                        effects=EffectSpec(one_time_expense=400),
                    ),
                    Choice(
                        id="replace",
                        label="Neu kaufen",
                        effects=EffectSpec(one_time_expense=700),
                    ),
                ),
                default_choice_id="repair",
            ),
            Card(
                id="placeholder-proposition",
                type=CardType.PROPOSITION,
                title="Weiterbildung",
                text="Ein Abendkurs kostet Geld, verbessert aber das Gehalt.",
                choices=(
                    Choice(
                        id="accept",
                        label="Annehmen",
                        effects=EffectSpec(one_time_expense=1_500, salary_pct=0.03),
                    ),
                    Choice(id="refuse", label="Ablehnen"),
                ),
            ),
            Card(
                id="placeholder-constraint",
                type=CardType.CONSTRAINT,
                title="Mieterhöhung",
                text="Die Lebenshaltungskosten steigen.",
                effects=EffectSpec(cost_of_living_pct=0.02),
            ),
            Card(
                id="placeholder-bonus",
                type=CardType.BONUS,
                title="Betriebliche Altersvorsorge",
                text="Der Arbeitgeber bietet eine bAV an.",
                requires_investment=True,
                marker="bAV",
                choices=(
                    Choice(
                        id="accept",
                        label="Abschließen",
                        accepts_investment=True,
                        effects=EffectSpec(pension_bonus=0.1),
                    ),
                    Choice(id="refuse", label="Verzichten"),
                ),
            ),
        )
    )


def _complete(content: DeckContent) -> DeckContent:
    """Fill every empty card pool with the matching placeholder card."""
    fallback = placeholder_content()
    cards = list(content.cards)
    for card_type in CARD_TYPES:
        if not content.pool(card_type):
            cards.extend(fallback.pool(card_type))
    return DeckContent(cards=tuple(cards))


class _CardDrawer:
    """Roulette selection per card type that avoids repeats until exhausted."""

    def __init__(self, content: DeckContent, rng: DeterministicRandomService) -> None:
        self._content = _complete(content)
        self._rng = rng
        self._seen: set[str] = set()

    def draw(self, card_type: CardType) -> Card | None:
        pool = self._content.pool(card_type)
        if not pool:
            return None
        fresh = [card for card in pool if card.id not in self._seen]
        if not fresh:
            self._seen.difference_update(card.id for card in pool)
            fresh = list(pool)
        card = self._rng.weighted_choice(fresh, [card.weight for card in fresh])
        self._seen.add(card.id)
        return card

    def bundle(self, turn: int) -> CardBundle:
        return CardBundle(
            turn=turn,
            **{card_type.value: self.draw(card_type) for card_type in CARD_TYPES},
        )


class ScheduledDeckProvider:
    """Precomputed schedule: one immutable bundle per turn, built once."""

    def __init__(
        self,
        content: DeckContent,
        rng: DeterministicRandomService,
        *,
        max_turns: int,
    ) -> None:
        drawer = _CardDrawer(content, rng)
        self._schedule = tuple(drawer.bundle(turn) for turn in range(1, max_turns + 1))

    @property
    def strategy(self) -> DeckStrategy:
        """Return the strategy implemented by the provider."""
        return DeckStrategy.SCHEDULE

    @property
    def schedule(self) -> tuple[CardBundle, ...]:
        """Return the whole schedule in turn order."""
        return self._schedule

    def cards_for_turn(self, turn: int) -> CardBundle:
        """Return the precomputed bundle for *turn*."""
        if not 1 <= turn <= len(self._schedule):
            msg = f"Turn {turn} is outside the deck schedule."
            raise ValueError(msg)
        return self._schedule[turn - 1]

    def peek(self, turn: int) -> CardBundle | None:
        """Return the precomputed bundle for *turn*, ``None`` outside the game."""
        if not 1 <= turn <= len(self._schedule):
            return None
        return self._schedule[turn - 1]

    def redraw(self, turn: int) -> CardBundle:
        """Schedules are immutable once generated."""
        msg = f"Cannot redraw turn {turn} of a precomputed schedule."
        raise NotImplementedError(msg)


class DrawDeckProvider:
    """On-demand draw: a turn's bundle is drawn on first use and memoised."""

    def __init__(
        self,
        content: DeckContent,
        rng: DeterministicRandomService,
        *,
        max_turns: int,
    ) -> None:
        self._drawer = _CardDrawer(content, rng)
        self._max_turns = max_turns
        self._drawn: dict[int, CardBundle] = {}

    @property
    def strategy(self) -> DeckStrategy:
        """Return the strategy implemented by the provider."""
        return DeckStrategy.DRAW

    def cards_for_turn(self, turn: int) -> CardBundle:
        """Return the memoised bundle for *turn*, drawing it if necessary."""
        if turn not in self._drawn:
            return self.redraw(turn)
        return self._drawn[turn]

    def peek(self, turn: int) -> CardBundle | None:
        """Return the bundle drawn for *turn* so far; never draws."""
        return self._drawn.get(turn)

    def redraw(self, turn: int) -> CardBundle:
        """Draw a fresh bundle for *turn*, replacing any previous one."""
        if not 1 <= turn <= self._max_turns:
            msg = f"Turn {turn} is outside the game."
            raise ValueError(msg)
        bundle = self._drawer.bundle(turn)
        self._drawn[turn] = bundle
        return bundle


def build_deck_provider(
    strategy: DeckStrategy,
    content: DeckContent | None,
    rng: DeterministicRandomService,
    *,
    max_turns: int,
) -> DeckProvider:
    """Instantiate the provider selected by *strategy*."""
    content = content or DeckContent()
    if strategy is DeckStrategy.DRAW:
        return DrawDeckProvider(content, rng, max_turns=max_turns)
    return ScheduledDeckProvider(content, rng, max_turns=max_turns)


__all__ = [
    "DeckProvider",
    "DrawDeckProvider",
    "ScheduledDeckProvider",
    "build_deck_provider",
    "placeholder_content",
]
