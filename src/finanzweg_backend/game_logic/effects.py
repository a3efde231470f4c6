"""Effect table and once-per-turn settlement of player finances.

Card content decides *which* effect tags apply; the rules below decide *how*
each tag changes a :class:`FinancialState`. The rule table is injectable so
a session can run with a different ruleset without touching the resolver.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from finanzweg_backend.game_logic.state import FinancialState

if TYPE_CHECKING:
    from finanzweg_backend.game_logic.cards import (
        Card,
        CardBundle,
        EffectSpec,
        InvestmentPayload,
    )
    from finanzweg_backend.game_logic.configuration import SimulationConfiguration
    from finanzweg_backend.game_logic.state import Decision, Player, TurnDecisions

EffectRule = Callable[[FinancialState, float], None]

MONTHS_PER_TURN = 12


def _money(value: float) -> float:
    return round(max(0.0, value), 2)


def _salary_pct(state: FinancialState, value: float) -> None:
    state.salary = _money(state.salary * (1 + value))


def _cost_of_living_pct(state: FinancialState, value: float) -> None:
    state.cost_of_living = _money(state.cost_of_living * (1 + value))


def _one_time_expense(state: FinancialState, value: float) -> None:
    state.wealth = _money(state.wealth - value)


def _one_time_gain(state: FinancialState, value: float) -> None:
    state.wealth = _money(state.wealth + value)


def _fixed_expense(state: FinancialState, value: float) -> None:
    state.wealth = _money(state.wealth - value)


def _wealth_pct(state: FinancialState, value: float) -> None:
    state.wealth = _money(state.wealth * (1 + value))


def _pension_bonus(state: FinancialState, value: float) -> None:
    state.pension_points = round(state.pension_points + max(0.0, value), 2)


DEFAULT_EFFECT_RULES: Mapping[str, EffectRule] = {
    "salary_pct": _salary_pct,
    "cost_of_living_pct": _cost_of_living_pct,
    "one_time_expense": _one_time_expense,
    "one_time_gain": _one_time_gain,
    "fixed_expense": _fixed_expense,
    "wealth_pct": _wealth_pct,
    "pension_bonus": _pension_bonus,
}


class EffectTable:
    """Translate cards and decisions into financial state changes."""

    def __init__(self, rules: Mapping[str, EffectRule] | None = None) -> None:
        self._rules = dict(DEFAULT_EFFECT_RULES if rules is None else rules)

    def apply(self, state: FinancialState, effects: EffectSpec) -> None:
        """Apply every tag set on *effects* to *state*."""
        for tag, rule in self._rules.items():
            value = getattr(effects, tag, None)
            if value:
                rule(state, value)
        for marker in effects.markers:
            state.add_marker(marker)

    def invest(
        self, state: FinancialState, card: Card, payload: InvestmentPayload
    ) -> None:
        """Commit the initial contribution and the recurring monthly savings."""
        state.wealth = _money(state.wealth - payload.initial)
        state.cost_of_living = _money(
            state.cost_of_living + payload.monthly * MONTHS_PER_TURN
        )
        if card.marker:
            state.add_marker(card.marker)

    def resolve(
        self, state: FinancialState, card: Card, decision: Decision | None
    ) -> None:
        """Apply the consequences of *decision* (or its absence) for *card*."""
        if not card.requires_answer:
            self.apply(state, card.effects)
            return
        if decision is None:
            default = card.default_resolution()
            if default is not None:
                self.apply(state, default)
            return
        choice = card.find_choice(decision.choice_id) if decision.choice_id else None
        if card.requires_investment and decision.extra is not None:
            if choice is None or choice.accepts_investment:
                self.invest(state, card, decision.extra)
        if choice is not None:
            self.apply(state, choice.effects)


class Settlement:
    """Once-per-turn bookkeeping: card effects, net income, pension accrual."""

    def __init__(
        self,
        configuration: SimulationConfiguration,
        effect_table: EffectTable | None = None,
    ) -> None:
        self._configuration = configuration
        self._effects = effect_table or EffectTable()

    def apply_turn(
        self, state: FinancialState, bundle: CardBundle, decisions: TurnDecisions
    ) -> None:
        """Mutate *state* with the full outcome of one turn."""
        for card in bundle.cards():
            self._effects.resolve(state, card, decisions.get(card.type))
        state.wealth = _money(state.wealth + state.salary - state.cost_of_living)
        ratio = state.salary / self._configuration.reference_average_salary
        accrued = max(0.0, min(self._configuration.pension_points_cap, ratio))
        state.pension_points = round(state.pension_points + accrued, 2)

    def settle(
        self,
        player: Player,
        turn: int,
        bundle: CardBundle,
        decisions: TurnDecisions,
    ) -> bool:
        """Settle *turn* for *player*; returns False if it was already settled."""
        if turn in player.settled_turns:
            return False
        self.apply_turn(player.financials, bundle, decisions)
        player.settled_turns.add(turn)
        return True

    def replay(
        self,
        player: Player,
        bundle_for: Callable[[int], CardBundle],
        decisions_for: Callable[[int], TurnDecisions],
    ) -> FinancialState:
        """Recompute the player's finances from the start over settled turns."""
        state = player.starting.model_copy(deep=True)
        for turn in sorted(player.settled_turns):
            self.apply_turn(state, bundle_for(turn), decisions_for(turn))
        player.financials = state
        return state


__all__ = [
    "DEFAULT_EFFECT_RULES",
    "MONTHS_PER_TURN",
    "EffectRule",
    "EffectTable",
    "Settlement",
]
