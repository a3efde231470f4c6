"""Player-centric state containers used by the game logic layer."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from finanzweg_backend.game_logic.cards import InvestmentPayload  # noqa: TC001
from finanzweg_backend.game_logic.configuration import Profile  # noqa: TC001
from finanzweg_backend.shared.enums import CardType, PlayerStatus

if TYPE_CHECKING:
    from collections.abc import Collection

    from finanzweg_backend.shared.rng import DeterministicRandomService


def _now() -> datetime:
    return datetime.now(tz=UTC)


class FinancialState(BaseModel):
    """Wealth, income and pension trajectory of a single player.

    Instances are mutated in place by the effect table; every mutation keeps
    wealth at or above zero and pension points never decrease.
    """

    wealth: float = Field(default=0.0, ge=0)
    salary: float = Field(default=0.0, ge=0)
    cost_of_living: float = Field(default=0.0, ge=0)
    pension_points: float = Field(default=0.0, ge=0)
    markers: list[str] = Field(default_factory=list)

    @classmethod
    def from_profile(cls, profile: Profile) -> FinancialState:
        """Return the starting state described by *profile*."""
        return cls(
            wealth=profile.wealth,
            salary=profile.salary,
            cost_of_living=profile.cost_of_living,
        )

    def add_marker(self, marker: str) -> None:
        """Record *marker* unless it is already present."""
        if marker not in self.markers:
            self.markers.append(marker)


class Decision(BaseModel):
    """A player's answer to one card of one turn."""

    choice_id: str | None = None
    extra: InvestmentPayload | None = None
    submitted_at: datetime = Field(default_factory=_now)
    edited: bool = False


TurnDecisions = dict[CardType, Decision]


class Player(BaseModel):
    """Participant of a session together with their financial trajectory."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    profile: Profile | None = None
    starting: FinancialState = Field(default_factory=FinancialState)
    financials: FinancialState = Field(default_factory=FinancialState)
    personal_turn: int = Field(default=0, ge=0)
    settled_turns: set[int] = Field(default_factory=set)
    joined_at: datetime = Field(default_factory=_now)
    last_active_at: datetime = Field(default_factory=_now)

    def assign_profile(self, profile: Profile) -> None:
        """Adopt *profile* and reset the financial trajectory to its values."""
        self.profile = profile
        self.starting = FinancialState.from_profile(profile)
        self.financials = self.starting.model_copy(deep=True)
        self.settled_turns = set()

    def touch(self, now: datetime | None = None) -> None:
        """Refresh the activity timestamp used by the status indicator."""
        self.last_active_at = now or _now()

    def status(
        self, *, answered: bool, now: datetime, fresh_seconds: int
    ) -> PlayerStatus:
        """Derive the traffic-light status shown to the host."""
        if answered:
            return PlayerStatus.COMPLETE
        if now - self.last_active_at < timedelta(seconds=fresh_seconds):
            return PlayerStatus.IN_PROGRESS
        return PlayerStatus.NOT_STARTED


class ProfilePool:
    """Hands out profiles nobody holds yet, reshuffling once all are taken."""

    def __init__(
        self, profiles: tuple[Profile, ...], rng: DeterministicRandomService
    ) -> None:
        self._profiles = profiles
        self._rng = rng
        self._remaining: list[Profile] = []

    @property
    def configured(self) -> bool:
        """Return True if at least one profile is available."""
        return bool(self._profiles)

    def find(self, key: str) -> Profile | None:
        """Return the profile registered under *key*."""
        return next((profile for profile in self._profiles if profile.key == key), None)

    def draw(self, taken: Collection[str] = ()) -> Profile:
        """Return a profile whose key is not in *taken*.

        Once every profile is held by someone, profiles repeat in the order of
        a shuffled bag.
        """
        if not self._profiles:
            msg = "No profiles configured."
            raise LookupError(msg)
        free = [profile for profile in self._profiles if profile.key not in taken]
        if free:
            return self._rng.choice(free)
        if not self._remaining:
            self._remaining = list(self._rng.shuffle(self._profiles))
        return self._remaining.pop()


__all__ = [
    "Decision",
    "FinancialState",
    "Player",
    "ProfilePool",
    "TurnDecisions",
]
