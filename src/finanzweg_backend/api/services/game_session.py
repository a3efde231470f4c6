"""Game session service exposed to the API layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from uuid import uuid4

from finanzweg_backend.game_logic import (
    DeckContent,
    GameRuleError,
    GameSession,
    InMemorySessionStore,
    SimulationConfiguration,
    Viewer,
    build_view,
    get_default_simulation_configuration,
)
from finanzweg_backend.shared import DeterministicRandomService, FailureReason

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from finanzweg_backend.game_logic import (
        Decision,
        EffectTable,
        Player,
        Profile,
        SessionStore,
        SessionView,
    )
    from finanzweg_backend.game_logic.session import Clock
    from finanzweg_backend.shared import CardType, GameMode

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

MAX_CODE_ATTEMPTS = 64


@dataclass(frozen=True, slots=True)
class Failure:
    """Machine-readable description of a rejected command."""

    reason: FailureReason
    message: str
    detail: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_error(cls, error: GameRuleError) -> Failure:
        """Build a failure from a rule violation raised by the game logic."""
        return cls(reason=error.reason, message=str(error), detail=dict(error.detail))

    @classmethod
    def unknown_session(cls, code: str) -> Failure:
        """Build the failure reported for a code nobody registered."""
        return cls(
            reason=FailureReason.SESSION_NOT_FOUND,
            message=f"Unknown session '{code}'.",
            detail={"code": code},
        )


@dataclass(frozen=True, slots=True)
class CommandResult(Generic[_T]):
    """Either the value produced by a command or the reason it was rejected."""

    value: _T | None = None
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        """Return True if the command was applied."""
        return self.failure is None

    @classmethod
    def success(cls, value: _T) -> CommandResult[_T]:
        return cls(value=value)

    @classmethod
    def rejected(cls, failure: Failure) -> CommandResult[_T]:
        return cls(failure=failure)


class GameSessionService:
    """Own the running sessions and translate rule violations into results.

    Every method is synchronous and mutates at most one session; the caller
    serialises access per session code.
    """

    def __init__(
        self,
        *,
        store: SessionStore,
        configuration: SimulationConfiguration,
        deck_content: DeckContent | None = None,
        profiles: tuple[Profile, ...] = (),
        rng: DeterministicRandomService | None = None,
        effect_table: EffectTable | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._configuration = configuration
        self._deck_content = deck_content
        self._profiles = profiles
        self._rng = rng or DeterministicRandomService(configuration.rng_seed)
        self._effect_table = effect_table
        self._clock = clock

    @classmethod
    def create_default(
        cls,
        *,
        deck_content: DeckContent | None = None,
        profiles: tuple[Profile, ...] = (),
    ) -> GameSessionService:
        """Return a service backed by an in-memory store and default rules."""
        return cls(
            store=InMemorySessionStore(),
            configuration=get_default_simulation_configuration(),
            deck_content=deck_content,
            profiles=profiles,
        )

    @property
    def configuration(self) -> SimulationConfiguration:
        """Return the configuration new sessions are created with."""
        return self._configuration

    def get_session(self, code: str) -> GameSession | None:
        """Return the session registered under *code* if it exists."""
        return self._store.get(code)

    # ------------------------------------------------------------------
    # Host commands
    # ------------------------------------------------------------------
    def create_session(self, mode: GameMode | None = None) -> GameSession:
        """Create a lobby under a fresh join code."""
        code = self._generate_code()
        seed = self._configuration.rng_seed
        session = GameSession(
            code,
            self._configuration,
            mode=mode,
            deck_content=self._deck_content,
            profiles=self._profiles,
            rng=DeterministicRandomService(seed) if seed is not None else None,
            effect_table=self._effect_table,
            clock=self._clock,
        )
        self._store.add(session)
        logger.info("Created session %s in %s mode", code, session.mode.value)
        return session

    def resume_host(self, code: str) -> CommandResult[GameSession]:
        """Look up *code* for a host reconnecting to its session."""
        return self._execute(code, lambda session: session)

    def start(
        self, code: str, mode: GameMode | None = None
    ) -> CommandResult[GameSession]:
        """Start the session registered under *code*."""
        return self._apply(code, lambda session: session.start(mode))

    def advance(self, code: str) -> CommandResult[GameSession]:
        """Apply the host advance command."""
        return self._apply(code, GameSession.advance)

    def continue_session(self, code: str) -> CommandResult[GameSession]:
        """Resume the session after the checkpoint pause."""
        return self._apply(code, GameSession.continue_after_pause)

    def draw(self, code: str) -> CommandResult[GameSession]:
        """Redraw the cards of the global turn."""
        return self._apply(code, GameSession.redraw)

    def edit_decision(
        self,
        code: str,
        player_id: str,
        turn: int,
        card_type: CardType | str,
        *,
        choice_id: str | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> CommandResult[Decision]:
        """Overwrite a decision on behalf of the host."""
        return self._execute(
            code,
            lambda session: session.edit_decision(
                player_id, turn, card_type, choice_id=choice_id, extra=extra
            ),
        )

    def close(self, code: str) -> CommandResult[GameSession]:
        """Remove the session from the store."""
        session = self._store.remove(code)
        if session is None:
            return CommandResult.rejected(Failure.unknown_session(code))
        logger.info("Closed session %s", session.code)
        return CommandResult.success(session)

    # ------------------------------------------------------------------
    # Student commands
    # ------------------------------------------------------------------
    def join(
        self, code: str, name: str, *, profile_key: str | None = None
    ) -> CommandResult[Player]:
        """Register a student under a freshly issued player id."""
        player_id = uuid4().hex[:12]
        return self._execute(
            code,
            lambda session: session.join(
                name, player_id=player_id, profile_key=profile_key
            ),
        )

    def resume_player(self, code: str, player_id: str) -> CommandResult[Player]:
        """Rebind a reconnecting student to their player."""

        def _resume(session: GameSession) -> Player:
            session.heartbeat(player_id)
            return session.get_player(player_id)

        return self._execute(code, _resume)

    def submit_decision(
        self,
        code: str,
        player_id: str,
        card_type: CardType | str,
        *,
        choice_id: str | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> CommandResult[Decision]:
        """Record a decision for the player's active turn."""
        return self._execute(
            code,
            lambda session: session.submit_decision(
                player_id, card_type, choice_id=choice_id, extra=extra
            ),
        )

    def heartbeat(self, code: str, player_id: str) -> CommandResult[GameSession]:
        """Refresh the activity timestamp of a player."""
        return self._apply(code, lambda session: session.heartbeat(player_id))

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------
    def view(self, code: str, viewer: Viewer) -> CommandResult[SessionView]:
        """Render the snapshot of *code* for *viewer*."""
        return self._execute(code, lambda session: build_view(session, viewer))

    def host_view(self, code: str) -> CommandResult[SessionView]:
        """Render the host snapshot of *code*."""
        return self.view(code, Viewer.host())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _execute(
        self, code: str, action: Callable[[GameSession], _T]
    ) -> CommandResult[_T]:
        session = self._store.get(code)
        if session is None:
            return CommandResult.rejected(Failure.unknown_session(code))
        try:
            value = action(session)
        except GameRuleError as exc:
            logger.debug("Rejected command for session %s: %s", code, exc)
            return CommandResult.rejected(Failure.from_error(exc))
        return CommandResult.success(value)

    def _apply(
        self, code: str, action: Callable[[GameSession], object]
    ) -> CommandResult[GameSession]:
        def _run(session: GameSession) -> GameSession:
            action(session)
            return session

        return self._execute(code, _run)

    def _generate_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = self._rng.token(
                self._configuration.code_alphabet, self._configuration.code_length
            )
            if code not in self._store:
                return code
        msg = "Could not allocate a free session code."
        raise RuntimeError(msg)


__all__ = ["CommandResult", "Failure", "GameSessionService"]
