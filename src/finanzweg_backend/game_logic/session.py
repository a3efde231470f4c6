"""Session state machine driving turns, phases and decisions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import ValidationError

from finanzweg_backend.game_logic.cards import CardBundle, InvestmentPayload
from finanzweg_backend.game_logic.configuration import (
    DeckContent,
    Profile,
    SimulationConfiguration,
)
from finanzweg_backend.game_logic.deck import DeckProvider, build_deck_provider
from finanzweg_backend.game_logic.effects import EffectTable, Settlement
from finanzweg_backend.game_logic.errors import (
    DecisionRejectedError,
    JoinRejectedError,
    PlayerNotFoundError,
    TurnFlowError,
)
from finanzweg_backend.game_logic.phases import (
    PhaseRange,
    is_checkpoint,
    next_range,
    phase_for,
)
from finanzweg_backend.game_logic.state import (
    Decision,
    FinancialState,
    Player,
    ProfilePool,
    TurnDecisions,
)
from finanzweg_backend.shared.enums import (
    CardType,
    DeckStrategy,
    FailureReason,
    GameMode,
    PlayerStatus,
    SessionStatus,
)
from finanzweg_backend.shared.events import AuditKind, DecisionAuditEntry
from finanzweg_backend.shared.rng import DeterministicRandomService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class GameSession:
    """One classroom run: players, turn/phase progression and decisions.

    Host-controlled phases move the whole class in lock-step and only advance
    on an explicit host command. In autonomous phases every player works
    through the range at their own pace; the personal turn moves forward as
    soon as all required cards of the current one are answered and stops at
    the end of the range. The end of phase B is a checkpoint that pauses the
    session until the host continues.

    All mutations are synchronous; callers serialise access per session.
    """

    def __init__(
        self,
        code: str,
        configuration: SimulationConfiguration,
        *,
        mode: GameMode | None = None,
        deck_content: DeckContent | None = None,
        profiles: tuple[Profile, ...] = (),
        rng: DeterministicRandomService | None = None,
        effect_table: EffectTable | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._code = code
        self._configuration = configuration
        self._mode = mode or configuration.default_mode
        self._deck_content = deck_content
        self._rng = rng or DeterministicRandomService(configuration.rng_seed)
        self._profiles = ProfilePool(profiles, self._rng)
        self._settlement = Settlement(configuration, effect_table)
        self._clock = clock or _utcnow
        self._status = SessionStatus.LOBBY
        self._turn = 0
        self._paused = False
        self._deck: DeckProvider | None = None
        self._players: dict[str, Player] = {}
        self._decisions: dict[str, dict[int, TurnDecisions]] = {}
        self._audit_log: list[DecisionAuditEntry] = []
        self._created_at = self._clock()
        self._deadline: datetime | None = None

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def code(self) -> str:
        """Return the join code."""
        return self._code

    @property
    def configuration(self) -> SimulationConfiguration:
        """Return the parameters the session runs with."""
        return self._configuration

    @property
    def mode(self) -> GameMode:
        """Return the game length preset."""
        return self._mode

    @property
    def status(self) -> SessionStatus:
        """Return the lifecycle stage."""
        return self._status

    @property
    def turn(self) -> int:
        """Return the global turn (0 while in the lobby)."""
        return self._turn

    @property
    def max_turns(self) -> int:
        """Return the final turn of the configured mode."""
        return self._configuration.max_turns(self._mode)

    @property
    def paused(self) -> bool:
        """Return True while waiting at the checkpoint."""
        return self._paused

    @property
    def deadline(self) -> datetime | None:
        """Indicative countdown for clients; never enforced."""
        return self._deadline

    @property
    def created_at(self) -> datetime:
        """Return the creation timestamp."""
        return self._created_at

    @property
    def players(self) -> Mapping[str, Player]:
        """Return the players keyed by id."""
        return self._players

    @property
    def audit_log(self) -> tuple[DecisionAuditEntry, ...]:
        """Return every decision write in order."""
        return tuple(self._audit_log)

    @property
    def deck_strategy(self) -> DeckStrategy:
        """Return how cards are assigned to turns."""
        if self._deck is not None:
            return self._deck.strategy
        return self._configuration.deck_strategy

    @property
    def phase(self) -> PhaseRange | None:
        """Return the phase containing the global turn, if started."""
        if self._turn == 0:
            return None
        return phase_for(
            self._turn, self._mode, blitz_turns=self._configuration.blitz_max_turns
        )

    def now(self) -> datetime:
        """Return the current time according to the session clock."""
        return self._clock()

    def get_player(self, player_id: str) -> Player:
        """Return the player registered under *player_id*."""
        player = self._players.get(player_id)
        if player is None:
            msg = f"Unknown player '{player_id}' in session {self._code}."
            raise PlayerNotFoundError(msg, detail={"player_id": player_id})
        return player

    def cards_for_turn(self, turn: int) -> CardBundle | None:
        """Return the bundle for *turn*, or ``None`` if it was never dealt."""
        if self._deck is None or not 1 <= turn <= self.max_turns:
            return None
        return self._deck.peek(turn)

    def active_turn_for(self, player: Player) -> int:
        """Return the turn whose cards *player* is currently answering."""
        phase = self.phase
        if phase is None:
            return 0
        if phase.host_controlled or self._paused:
            return self._turn
        return player.personal_turn

    def active_bundle_for(self, player: Player) -> CardBundle | None:
        """Return the cards *player* currently sees."""
        return self.cards_for_turn(self.active_turn_for(player))

    def decisions_for(self, player_id: str, turn: int) -> TurnDecisions:
        """Return the decisions *player_id* made for *turn*."""
        return dict(self._decisions.get(player_id, {}).get(turn, {}))

    def is_answered(self, player: Player, turn: int | None = None) -> bool:
        """True iff a decision exists for every required card of the turn."""
        target = self.active_turn_for(player) if turn is None else turn
        bundle = self.cards_for_turn(target)
        if bundle is None:
            return False
        answered = self._decisions.get(player.id, {}).get(target, {})
        return bundle.required_types().issubset(answered)

    def player_status(
        self, player: Player, now: datetime | None = None
    ) -> PlayerStatus:
        """Derive the traffic-light indicator for *player*."""
        return player.status(
            answered=self.is_answered(player),
            now=now or self._clock(),
            fresh_seconds=self._configuration.status_fresh_seconds,
        )

    # ------------------------------------------------------------------
    # Lobby and lifecycle
    # ------------------------------------------------------------------
    def join(
        self, name: str, *, player_id: str, profile_key: str | None = None
    ) -> Player:
        """Register a new student and return the created player."""
        if self._status is SessionStatus.FINISHED:
            msg = f"Session {self._code} has already finished."
            raise TurnFlowError(msg, reason=FailureReason.SESSION_FINISHED)
        display_name = name.strip()
        if not display_name or len(display_name) > self._configuration.name_max_length:
            msg = "Name must be non-empty and at most "
            msg += f"{self._configuration.name_max_length} characters."
            raise JoinRejectedError(msg, reason=FailureReason.INVALID_NAME)
        taken = {player.name.casefold() for player in self._players.values()}
        if display_name.casefold() in taken:
            msg = f"Name '{display_name}' is already taken."
            raise JoinRejectedError(
                msg, reason=FailureReason.NAME_TAKEN, detail={"name": display_name}
            )
        if len(self._players) >= self._configuration.max_players:
            msg = "Session is full"
            raise JoinRejectedError(
                msg,
                reason=FailureReason.SESSION_FULL,
                detail={"max_players": self._configuration.max_players},
            )

        profile: Profile | None = None
        if profile_key is not None:
            profile = self._profiles.find(profile_key)
            if profile is None:
                msg = f"Unknown profile '{profile_key}'."
                raise JoinRejectedError(
                    msg,
                    reason=FailureReason.PROFILE_NOT_FOUND,
                    detail={"profile_key": profile_key},
                )
        elif self._status is SessionStatus.RUNNING and self._profiles.configured:
            profile = self._profiles.draw(self._assigned_profile_keys())

        now = self._clock()
        player = Player(
            id=player_id, name=display_name, joined_at=now, last_active_at=now
        )
        if profile is not None:
            player.assign_profile(profile)
        else:
            default = self._configuration.default_profile()
            starting = FinancialState.from_profile(default)
            player.starting = starting
            player.financials = starting.model_copy(deep=True)

        phase = self.phase
        if phase is not None:
            player.personal_turn = (
                self._turn if phase.host_controlled or self._paused else phase.start
            )
        self._players[player.id] = player
        self._progress(player)
        logger.info(
            "Player %s joined session %s as '%s'", player.id, self._code, display_name
        )
        return player

    def start(self, mode: GameMode | None = None) -> None:
        """Leave the lobby: turn 1, deck generation, profile assignment."""
        if self._status is not SessionStatus.LOBBY:
            msg = f"Session {self._code} has already been started."
            raise TurnFlowError(msg, reason=FailureReason.ALREADY_STARTED)
        if mode is not None:
            self._mode = mode
        self._deck = build_deck_provider(
            self._configuration.deck_strategy,
            self._deck_content,
            self._rng,
            max_turns=self.max_turns,
        )
        self._status = SessionStatus.RUNNING
        for player in self._players.values():
            if player.profile is None and self._profiles.configured:
                player.assign_profile(
                    self._profiles.draw(self._assigned_profile_keys())
                )
        self._enter_turn(1)
        logger.info(
            "Session %s started in %s mode with %d players",
            self._code,
            self._mode.value,
            len(self._players),
        )

    def advance(self) -> None:
        """Host advance: next turn, checkpoint, range transition or game end."""
        phase = self._require_running()
        if self._paused:
            msg = "Session is paused at the checkpoint; continue first."
            raise TurnFlowError(msg, reason=FailureReason.SESSION_PAUSED)

        if phase.host_controlled:
            self._settle_all(self._turn)
            if self._turn >= self.max_turns:
                self._finish()
                return
            self._enter_turn(self._turn + 1)
            return

        pending = [
            player.id
            for player in self._players.values()
            if not self._completed_range(player, phase)
        ]
        if pending:
            msg = f"Players have not finished phase {phase.label} yet."
            raise TurnFlowError(
                msg,
                reason=FailureReason.PLAYERS_NOT_READY,
                detail={"pending_players": pending},
            )
        for turn in range(phase.start, phase.end + 1):
            self._settle_all(turn)

        if is_checkpoint(phase.end, self._mode):
            self._turn = phase.end
            self._paused = True
            for player in self._players.values():
                player.personal_turn = self._turn
            self._deadline = None
            logger.info(
                "Session %s reached the checkpoint at turn %d", self._code, self._turn
            )
            return

        following = self._next_range(phase)
        if following is None:
            self._turn = phase.end
            self._finish()
            return
        self._enter_turn(following.start)

    def continue_after_pause(self) -> None:
        """Clear the checkpoint pause and enter the next range."""
        phase = self._require_running()
        if not self._paused:
            msg = "Session is not paused."
            raise TurnFlowError(msg, reason=FailureReason.NOT_PAUSED)
        following = self._next_range(phase)
        self._paused = False
        if following is None:
            self._finish()
            return
        self._enter_turn(following.start)
        logger.info("Session %s continued after the checkpoint", self._code)

    def redraw(self) -> CardBundle:
        """Host draw: replace the bundle of the global turn (draw strategy)."""
        self._require_running()
        if self._paused:
            msg = "Session is paused at the checkpoint; continue first."
            raise TurnFlowError(msg, reason=FailureReason.SESSION_PAUSED)
        if self._deck is None or self._deck.strategy is not DeckStrategy.DRAW:
            msg = "The session uses a precomputed schedule."
            raise TurnFlowError(msg, reason=FailureReason.DRAW_NOT_SUPPORTED)
        if any(self._turn in turns for turns in self._decisions.values()):
            msg = f"Decisions already exist for turn {self._turn}."
            raise TurnFlowError(msg, reason=FailureReason.DECISIONS_RECORDED)
        if any(self._turn in player.settled_turns for player in self._players.values()):
            msg = f"Turn {self._turn} has already been settled."
            raise TurnFlowError(msg, reason=FailureReason.TURN_SETTLED)
        bundle = self._deck.redraw(self._turn)
        for player in self._players.values():
            self._progress(player)
        return bundle

    def heartbeat(self, player_id: str) -> None:
        """Record activity for the status indicator only."""
        self.get_player(player_id).touch(self._clock())

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------
    def submit_decision(
        self,
        player_id: str,
        card_type: CardType | str,
        *,
        choice_id: str | None = None,
        extra: InvestmentPayload | Mapping[str, Any] | None = None,
    ) -> Decision:
        """Record a student's decision for their active turn."""
        self._require_running()
        if self._paused:
            msg = "Session is paused at the checkpoint."
            raise TurnFlowError(msg, reason=FailureReason.SESSION_PAUSED)
        player = self.get_player(player_id)
        turn = self.active_turn_for(player)
        slot, decision = self._build_decision(
            turn, card_type, choice_id=choice_id, extra=extra, edited=False
        )
        self._store(player, turn, slot, decision, AuditKind.SUBMISSION)
        player.touch(self._clock())
        self._progress(player)
        return decision

    def edit_decision(
        self,
        player_id: str,
        turn: int,
        card_type: CardType | str,
        *,
        choice_id: str | None = None,
        extra: InvestmentPayload | Mapping[str, Any] | None = None,
    ) -> Decision:
        """Host correction of any decision on a turn the player has reached."""
        if self._status is SessionStatus.LOBBY:
            msg = f"Session {self._code} has not been started."
            raise TurnFlowError(msg, reason=FailureReason.NOT_STARTED)
        player = self.get_player(player_id)
        reached = max(self.active_turn_for(player), *player.settled_turns, 0)
        if not 1 <= turn <= reached:
            msg = f"Player has not reached turn {turn}."
            raise DecisionRejectedError(
                msg, reason=FailureReason.INVALID_TURN, detail={"turn": turn}
            )
        slot, decision = self._build_decision(
            turn, card_type, choice_id=choice_id, extra=extra, edited=True
        )
        self._store(player, turn, slot, decision, AuditKind.EDIT)
        if turn in player.settled_turns:
            self._settlement.replay(
                player,
                self._require_bundle,
                lambda settled: self.decisions_for(player.id, settled),
            )
        elif self._status is SessionStatus.RUNNING and not self._paused:
            self._progress(player)
        logger.info(
            "Host edited %s decision of player %s for turn %d in session %s",
            decision.choice_id,
            player.id,
            turn,
            self._code,
        )
        return decision

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _require_running(self) -> PhaseRange:
        if self._status is SessionStatus.LOBBY:
            msg = f"Session {self._code} has not been started."
            raise TurnFlowError(msg, reason=FailureReason.NOT_STARTED)
        if self._status is SessionStatus.FINISHED:
            msg = f"Session {self._code} has already finished."
            raise TurnFlowError(msg, reason=FailureReason.SESSION_FINISHED)
        phase = self.phase
        if phase is None:  # pragma: no cover - running sessions always have a turn
            msg = "Running session without a turn."
            raise TurnFlowError(msg, reason=FailureReason.NOT_STARTED)
        return phase

    def _require_bundle(self, turn: int) -> CardBundle:
        if self._deck is None or not 1 <= turn <= self.max_turns:
            msg = f"No cards exist for turn {turn}."
            raise DecisionRejectedError(msg, reason=FailureReason.INVALID_TURN)
        return self._deck.cards_for_turn(turn)

    def _assigned_profile_keys(self) -> set[str]:
        return {
            player.profile.key
            for player in self._players.values()
            if player.profile is not None
        }

    def _next_range(self, phase: PhaseRange) -> PhaseRange | None:
        return next_range(
            phase, self._mode, blitz_turns=self._configuration.blitz_max_turns
        )

    def _build_decision(
        self,
        turn: int,
        card_type: CardType | str,
        *,
        choice_id: str | None,
        extra: InvestmentPayload | Mapping[str, Any] | None,
        edited: bool,
    ) -> tuple[CardType, Decision]:
        try:
            slot = CardType(card_type)
        except ValueError as exc:
            msg = f"Unknown card type '{card_type}'."
            raise DecisionRejectedError(
                msg,
                reason=FailureReason.INVALID_CARD_TYPE,
                detail={"card_type": str(card_type)},
            ) from exc

        card = self._require_bundle(turn).card(slot)
        if card is None or not card.requires_answer:
            msg = f"No {slot.value} card awaits an answer on turn {turn}."
            raise DecisionRejectedError(
                msg,
                reason=FailureReason.CARD_NOT_ACTIVE,
                detail={"card_type": slot.value, "turn": turn},
            )

        choice = None
        if choice_id is not None:
            choice = card.find_choice(choice_id)
            if choice is None:
                msg = f"Card {card.id} has no choice '{choice_id}'."
                raise DecisionRejectedError(
                    msg,
                    reason=FailureReason.INVALID_CHOICE,
                    detail={"card_id": card.id, "choice_id": choice_id},
                )
        elif card.choices:
            msg = f"Card {card.id} requires a choice."
            raise DecisionRejectedError(
                msg, reason=FailureReason.INVALID_CHOICE, detail={"card_id": card.id}
            )

        payload: InvestmentPayload | None = None
        if extra is not None:
            try:
                payload = InvestmentPayload.model_validate(extra)
            except ValidationError as exc:
                msg = "Investment payload is invalid."
                raise DecisionRejectedError(
                    msg,
                    reason=FailureReason.INVALID_PAYLOAD,
                    detail={"errors": exc.errors(include_url=False)},
                ) from exc

        accepting = card.requires_investment and (
            choice is None or choice.accepts_investment
        )
        if accepting and payload is None:
            msg = f"Card {card.id} needs an investment payload."
            raise DecisionRejectedError(
                msg, reason=FailureReason.INVALID_PAYLOAD, detail={"card_id": card.id}
            )
        if not accepting and payload is not None:
            msg = f"Card {card.id} does not take an investment payload here."
            raise DecisionRejectedError(
                msg, reason=FailureReason.INVALID_PAYLOAD, detail={"card_id": card.id}
            )
        return slot, Decision(
            choice_id=choice_id,
            extra=payload,
            submitted_at=self._clock(),
            edited=edited,
        )

    def _store(
        self,
        player: Player,
        turn: int,
        card_type: CardType,
        decision: Decision,
        kind: AuditKind,
    ) -> None:
        turn_decisions = self._decisions.setdefault(player.id, {}).setdefault(turn, {})
        previous = turn_decisions.get(card_type)
        turn_decisions[card_type] = decision
        self._audit_log.append(
            DecisionAuditEntry(
                kind=kind,
                player_id=player.id,
                turn=turn,
                card_type=card_type,
                choice_id=decision.choice_id,
                extra=decision.extra.model_dump() if decision.extra else None,
                previous_choice_id=previous.choice_id if previous else None,
                recorded_at=decision.submitted_at,
            )
        )

    def _completed_range(self, player: Player, phase: PhaseRange) -> bool:
        return player.personal_turn == phase.end and self.is_answered(player, phase.end)

    def _progress(self, player: Player) -> None:
        """Move *player* through an autonomous range while turns are answered."""
        phase = self.phase
        if phase is None or phase.host_controlled or self._paused:
            return
        if self._status is not SessionStatus.RUNNING:
            return
        player.personal_turn = phase.clamp(player.personal_turn)
        while player.personal_turn < phase.end and self.is_answered(
            player, player.personal_turn
        ):
            turn = player.personal_turn
            self._settle(player, turn)
            player.personal_turn = turn + 1
            self._require_bundle(player.personal_turn)

    def _settle(self, player: Player, turn: int) -> None:
        bundle = self._require_bundle(turn)
        self._settlement.settle(
            player, turn, bundle, self.decisions_for(player.id, turn)
        )

    def _settle_all(self, turn: int) -> None:
        for player in self._players.values():
            self._settle(player, turn)

    def _enter_turn(self, turn: int) -> None:
        self._turn = turn
        self._require_bundle(turn)
        for player in self._players.values():
            player.personal_turn = turn
        self._reset_deadline()
        for player in self._players.values():
            self._progress(player)

    def _reset_deadline(self) -> None:
        seconds = self._configuration.turn_timer_seconds
        self._deadline = self._clock() + timedelta(seconds=seconds) if seconds else None

    def _finish(self) -> None:
        self._status = SessionStatus.FINISHED
        self._deadline = None
        logger.info("Session %s finished at turn %d", self._code, self._turn)


__all__ = ["Clock", "GameSession"]
