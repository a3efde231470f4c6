"""Core rules and mechanics that drive Finanz-Weg sessions."""

from finanzweg_backend.game_logic.cards import (
    Card,
    CardBundle,
    Choice,
    EffectSpec,
    InvestmentPayload,
)
from finanzweg_backend.game_logic.configuration import (
    DeckContent,
    Profile,
    SimulationConfiguration,
    SimulationDefaults,
    get_default_simulation_configuration,
    load_deck_content,
    load_profiles,
)
from finanzweg_backend.game_logic.deck import (
    DeckProvider,
    DrawDeckProvider,
    ScheduledDeckProvider,
    build_deck_provider,
    placeholder_content,
)
from finanzweg_backend.game_logic.effects import EffectTable, Settlement
from finanzweg_backend.game_logic.errors import (
    DecisionRejectedError,
    GameRuleError,
    JoinRejectedError,
    PlayerNotFoundError,
    SessionNotFoundError,
    TurnFlowError,
)
from finanzweg_backend.game_logic.persistence import (
    InMemorySessionStore,
    SessionStore,
)
from finanzweg_backend.game_logic.phases import (
    CHECKPOINT_TURN,
    LONG_MAX_TURNS,
    PhaseRange,
    next_range,
    phase_for,
)
from finanzweg_backend.game_logic.session import GameSession
from finanzweg_backend.game_logic.state import (
    Decision,
    FinancialState,
    Player,
    ProfilePool,
)
from finanzweg_backend.game_logic.views import (
    PlayerSummary,
    SessionView,
    Viewer,
    build_view,
)

__all__ = [
    "CHECKPOINT_TURN",
    "LONG_MAX_TURNS",
    "Card",
    "CardBundle",
    "Choice",
    "Decision",
    "DecisionRejectedError",
    "DeckContent",
    "DeckProvider",
    "DrawDeckProvider",
    "EffectSpec",
    "EffectTable",
    "FinancialState",
    "GameRuleError",
    "GameSession",
    "InMemorySessionStore",
    "InvestmentPayload",
    "JoinRejectedError",
    "PhaseRange",
    "Player",
    "PlayerNotFoundError",
    "PlayerSummary",
    "Profile",
    "ProfilePool",
    "ScheduledDeckProvider",
    "SessionNotFoundError",
    "SessionStore",
    "SessionView",
    "Settlement",
    "SimulationConfiguration",
    "SimulationDefaults",
    "TurnFlowError",
    "Viewer",
    "build_deck_provider",
    "build_view",
    "get_default_simulation_configuration",
    "load_deck_content",
    "load_profiles",
    "next_range",
    "phase_for",
    "placeholder_content",
]
