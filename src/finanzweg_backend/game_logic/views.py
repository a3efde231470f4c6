"""Recipient-scoped projections of a session.

The host sees the cards of the global turn. A student sees the cards of
their own personal turn while an autonomous phase runs and the cards of the
global turn otherwise, so two students in the same autonomous phase at
different personal turns receive different cards.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TC003
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from finanzweg_backend.game_logic.cards import CardBundle  # noqa: TC001
from finanzweg_backend.game_logic.state import Decision  # noqa: TC001
from finanzweg_backend.shared.enums import (
    CardType,
    ConnectionRole,
    DeckStrategy,
    GameMode,
    PlayerStatus,
    SessionStatus,
)

if TYPE_CHECKING:
    from finanzweg_backend.game_logic.session import GameSession
    from finanzweg_backend.game_logic.state import Player


@dataclass(frozen=True, slots=True)
class Viewer:
    """Who a projection is rendered for."""

    role: ConnectionRole
    player_id: str | None = None

    @classmethod
    def host(cls) -> Viewer:
        return cls(role=ConnectionRole.HOST)

    @classmethod
    def student(cls, player_id: str) -> Viewer:
        return cls(role=ConnectionRole.STUDENT, player_id=player_id)


class PhaseInfo(BaseModel):
    """Phase block of a snapshot."""

    label: str | None
    start: int
    end: int
    host_controlled: bool


class PlayerSummary(BaseModel):
    """Compact per-player snapshot shared with every client of the session."""

    id: str
    name: str
    profile_key: str | None
    profile_name: str | None
    age: int
    personal_turn: int
    wealth: float
    salary: float
    cost_of_living: float
    pension_points: float
    markers: list[str]
    answered: bool
    status: PlayerStatus


class SessionView(BaseModel):
    """Full snapshot pushed to one connection."""

    code: str
    mode: GameMode
    status: SessionStatus
    turn: int
    max_turns: int
    created_at: datetime
    phase: PhaseInfo | None
    paused: bool
    deadline: datetime | None
    deck_strategy: DeckStrategy
    viewer: ConnectionRole
    player_id: str | None = None
    active_turn: int
    active: CardBundle | None
    own_decisions: dict[CardType, Decision] = Field(default_factory=dict)
    players: list[PlayerSummary]


def summarize_player(
    session: GameSession, player: Player, *, now: datetime
) -> PlayerSummary:
    """Return the shared summary of *player*."""
    profile = player.profile
    financials = player.financials
    turn = max(player.personal_turn, 1)
    return PlayerSummary(
        id=player.id,
        name=player.name,
        profile_key=profile.key if profile else None,
        profile_name=profile.name if profile else None,
        age=session.configuration.age_start + turn - 1,
        personal_turn=player.personal_turn,
        wealth=financials.wealth,
        salary=financials.salary,
        cost_of_living=financials.cost_of_living,
        pension_points=financials.pension_points,
        markers=list(financials.markers),
        answered=session.is_answered(player),
        status=session.player_status(player, now),
    )


def build_view(
    session: GameSession, viewer: Viewer, *, now: datetime | None = None
) -> SessionView:
    """Project *session* for *viewer* without mutating anything."""
    moment = now or session.now()
    phase = session.phase

    own_decisions: dict[CardType, Decision] = {}
    if viewer.role is ConnectionRole.STUDENT:
        if viewer.player_id is None:
            msg = "Student views need a player id."
            raise ValueError(msg)
        player = session.get_player(viewer.player_id)
        active_turn = session.active_turn_for(player)
        own_decisions = session.decisions_for(player.id, active_turn)
    else:
        active_turn = session.turn

    return SessionView(
        code=session.code,
        mode=session.mode,
        status=session.status,
        turn=session.turn,
        max_turns=session.max_turns,
        created_at=session.created_at,
        phase=PhaseInfo(**phase.model_dump()) if phase is not None else None,
        paused=session.paused,
        deadline=session.deadline,
        deck_strategy=session.deck_strategy,
        viewer=viewer.role,
        player_id=viewer.player_id,
        active_turn=active_turn,
        active=session.cards_for_turn(active_turn),
        own_decisions=own_decisions,
        players=[
            summarize_player(session, player, now=moment)
            for player in session.players.values()
        ],
    )


__all__ = [
    "PhaseInfo",
    "PlayerSummary",
    "SessionView",
    "Viewer",
    "build_view",
    "summarize_player",
]
