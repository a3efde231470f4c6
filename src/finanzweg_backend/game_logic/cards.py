"""Card content models presented to players every turn."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from finanzweg_backend.shared.enums import CARD_TYPES, CardType


class EffectSpec(BaseModel):
    """Effect tags attached to a choice, a card default, or an automatic card.

    Percentages are expressed as fractions (``0.05`` is five percent); amounts
    are in whole currency units per simulated year.
    """

    model_config = ConfigDict(frozen=True)

    salary_pct: float | None = None
    cost_of_living_pct: float | None = None
    one_time_expense: float | None = Field(default=None, ge=0)
    one_time_gain: float | None = Field(default=None, ge=0)
    fixed_expense: float | None = Field(default=None, ge=0)
    wealth_pct: float | None = None
    pension_bonus: float | None = None
    markers: tuple[str, ...] = ()


class Choice(BaseModel):
    """Selectable option on a card."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    label: str
    effects: EffectSpec = Field(default_factory=EffectSpec)
    accepts_investment: bool = Field(
        default=False,
        description="Selecting this option on an investment card commits funds.",
    )


class Card(BaseModel):
    """A single decision prompt of one of the four card types."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    type: CardType
    title: str
    text: str = ""
    mandatory: bool = False
    requires_investment: bool = False
    choices: tuple[Choice, ...] = ()
    effects: EffectSpec = Field(default_factory=EffectSpec)
    default_effects: EffectSpec | None = None
    default_choice_id: str | None = None
    marker: str | None = None
    weight: float = Field(default=1.0, ge=0)

    @model_validator(mode="after")
    def _validate_choices(self) -> Card:
        """Ensure choice identifiers are unique and the default points at one."""
        identifiers = [choice.id for choice in self.choices]
        if len(identifiers) != len(set(identifiers)):
            msg = f"Card {self.id} declares duplicate choice identifiers."
            raise ValueError(msg)
        if self.default_choice_id is not None and (
            self.default_choice_id not in identifiers
        ):
            msg = f"Card {self.id} default choice is not one of its choices."
            raise ValueError(msg)
        return self

    @property
    def requires_answer(self) -> bool:
        """Cards without choices or an investment prompt resolve on their own."""
        return bool(self.choices) or self.requires_investment

    def find_choice(self, choice_id: str) -> Choice | None:
        """Return the choice identified by *choice_id* if present."""
        return next((choice for choice in self.choices if choice.id == choice_id), None)

    def default_resolution(self) -> EffectSpec | None:
        """Return the effects applied when a mandatory card stays unanswered."""
        if not self.mandatory:
            return None
        if self.default_effects is not None:
            return self.default_effects
        if self.default_choice_id is not None:
            choice = self.find_choice(self.default_choice_id)
            return choice.effects if choice is not None else None
        if self.choices:
            return self.choices[0].effects
        return None


class CardBundle(BaseModel):
    """The (up to) four cards active for one turn."""

    model_config = ConfigDict(frozen=True)

    turn: int = Field(..., ge=1)
    event: Card | None = None
    proposition: Card | None = None
    constraint: Card | None = None
    bonus: Card | None = None

    @model_validator(mode="after")
    def _validate_slots(self) -> CardBundle:
        """Ensure each slot holds a card of the matching type."""
        for card_type in CARD_TYPES:
            card = getattr(self, card_type.value)
            if card is not None and card.type is not card_type:
                msg = f"Slot {card_type.value} holds a {card.type.value} card."
                raise ValueError(msg)
        return self

    def card(self, card_type: CardType) -> Card | None:
        """Return the card in the *card_type* slot."""
        return getattr(self, card_type.value)

    def cards(self) -> tuple[Card, ...]:
        """Return the present cards in canonical slot order."""
        return tuple(
            card
            for card_type in CARD_TYPES
            if (card := self.card(card_type)) is not None
        )

    def required_types(self) -> frozenset[CardType]:
        """Card types a player has to answer for this bundle."""
        return frozenset(card.type for card in self.cards() if card.requires_answer)


class InvestmentPayload(BaseModel):
    """Structured numeric input collected for investment cards."""

    model_config = ConfigDict(frozen=True)

    initial: float = Field(default=0.0, ge=0)
    monthly: float = Field(default=0.0, ge=0)


__all__ = [
    "Card",
    "CardBundle",
    "Choice",
    "EffectSpec",
    "InvestmentPayload",
]
