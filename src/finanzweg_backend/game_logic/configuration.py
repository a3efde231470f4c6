"""Simulation parameters and externally supplied content for sessions."""

from __future__ import annotations

from functools import cache
from pathlib import Path  # noqa: TC003

from pydantic import BaseModel, Field, TypeAdapter, model_validator
from pydantic.config import ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from finanzweg_backend.game_logic.cards import Card
from finanzweg_backend.game_logic.phases import LONG_MAX_TURNS
from finanzweg_backend.shared.enums import CardType, DeckStrategy, GameMode

_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class Profile(BaseModel):
    """Named starting financial condition assigned to a player."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    name: str
    salary: float = Field(..., ge=0)
    wealth: float = Field(..., ge=0)
    cost_of_living: float = Field(..., ge=0)


class SimulationDefaults(BaseSettings):
    """Load default simulation parameters from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FINANZWEG_SIMULATION_",
        extra="ignore",
    )

    default_mode: GameMode = GameMode.LONG
    blitz_max_turns: int = Field(default=10, ge=1)
    reference_average_salary: float = Field(default=42_000, gt=0)
    pension_points_cap: float = Field(default=2.0, ge=0)
    starting_wealth: float = Field(default=2_000, ge=0)
    starting_salary: float = Field(default=24_000, ge=0)
    starting_cost_of_living: float = Field(default=15_000, ge=0)
    age_start: int = Field(default=25, ge=0)
    max_players: int = Field(default=12, ge=1)
    name_max_length: int = Field(default=24, ge=1)
    status_fresh_seconds: int = Field(default=15, ge=0)
    turn_timer_seconds: int = Field(default=90, ge=0)
    deck_strategy: DeckStrategy = DeckStrategy.SCHEDULE
    code_length: int = Field(default=4, ge=3)
    code_alphabet: str = Field(default=_CODE_ALPHABET, min_length=2)
    rng_seed: int | None = None

    def to_config(self) -> SimulationConfiguration:
        """Convert defaults into an immutable configuration object."""
        return SimulationConfiguration(**self.model_dump())


class SimulationConfiguration(BaseModel):
    """Immutable representation of the parameters a session runs with."""

    model_config = ConfigDict(frozen=True)

    default_mode: GameMode = GameMode.LONG
    blitz_max_turns: int = Field(default=10, ge=1)
    reference_average_salary: float = Field(default=42_000, gt=0)
    pension_points_cap: float = Field(default=2.0, ge=0)
    starting_wealth: float = Field(default=2_000, ge=0)
    starting_salary: float = Field(default=24_000, ge=0)
    starting_cost_of_living: float = Field(default=15_000, ge=0)
    age_start: int = Field(default=25, ge=0)
    max_players: int = Field(default=12, ge=1)
    name_max_length: int = Field(default=24, ge=1)
    status_fresh_seconds: int = Field(default=15, ge=0)
    turn_timer_seconds: int = Field(default=90, ge=0)
    deck_strategy: DeckStrategy = DeckStrategy.SCHEDULE
    code_length: int = Field(default=4, ge=3)
    code_alphabet: str = Field(default=_CODE_ALPHABET, min_length=2)
    rng_seed: int | None = None

    def max_turns(self, mode: GameMode) -> int:
        """Return the number of turns played in *mode*."""
        return LONG_MAX_TURNS if mode is GameMode.LONG else self.blitz_max_turns

    def default_profile(self) -> Profile:
        """Starting conditions used when no profile pool is configured."""
        return Profile(
            key="default",
            name="Standard",
            salary=self.starting_salary,
            wealth=self.starting_wealth,
            cost_of_living=self.starting_cost_of_living,
        )


class DeckContent(BaseModel):
    """Card pools per card type supplied as configuration data."""

    model_config = ConfigDict(frozen=True)

    cards: tuple[Card, ...] = ()

    @model_validator(mode="after")
    def _validate_unique(self) -> DeckContent:
        """Ensure each card identifier appears at most once."""
        identifiers = [card.id for card in self.cards]
        if len(identifiers) != len(set(identifiers)):
            msg = "Deck content must not contain duplicate card identifiers."
            raise ValueError(msg)
        return self

    def pool(self, card_type: CardType) -> tuple[Card, ...]:
        """Return every configured card of *card_type*."""
        return tuple(card for card in self.cards if card.type is card_type)


_PROFILES_ADAPTER = TypeAdapter(tuple[Profile, ...])


def load_deck_content(path: Path) -> DeckContent:
    """Parse a JSON deck file (``{"cards": [...]}``) from *path*."""
    return DeckContent.model_validate_json(path.read_text(encoding="utf-8"))


def load_profiles(path: Path) -> tuple[Profile, ...]:
    """Parse a JSON list of profiles from *path*."""
    return _PROFILES_ADAPTER.validate_json(path.read_text(encoding="utf-8"))


@cache
def get_default_simulation_configuration() -> SimulationConfiguration:
    """Return the cached default simulation configuration."""
    return SimulationDefaults().to_config()


__all__ = [
    "DeckContent",
    "Profile",
    "SimulationConfiguration",
    "SimulationDefaults",
    "get_default_simulation_configuration",
    "load_deck_content",
    "load_profiles",
]
