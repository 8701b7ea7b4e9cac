"""Core turn-processing modules for the season engine."""

from season_engine.core.contracts import (
    ContractResult,
    DriverContractResult,
    ManufacturerContractResult,
    NegotiationUpdate,
    SponsorContractResult,
    StaffContractResult,
    apply_negotiation_updates,
    finalize_negotiation,
    negotiation_update_email,
)
from season_engine.core.errors import (
    PreconditionError,
    RaceOutcomeError,
    SeasonEngineError,
)
from season_engine.core.mutation import (
    DriverStateChange,
    TeamStateChange,
    apply_driver_state_changes,
    apply_team_state_changes,
    clamp_percentage,
)
from season_engine.core.negotiation import (
    DriverContractTerms,
    DriverNegotiation,
    ManufacturerContractTerms,
    ManufacturerNegotiation,
    NegotiationPhase,
    NegotiationRound,
    SponsorContractTerms,
    SponsorNegotiation,
    StaffContractTerms,
    StaffNegotiation,
    StakeholderType,
    advance_phase,
)
from season_engine.core.news import (
    append_calendar_event,
    create_email,
    create_news_headline,
    drain_news_events,
    pick_random,
    push_news_event,
)
from season_engine.core.outcome import (
    RaceOutcomeEngine,
    StubRaceOutcomeEngine,
    validate_race_result,
)
from season_engine.core.race_weekend import (
    RaceWeekendOrchestrator,
    RaceWeekendReport,
    RaceWeekendStage,
    find_current_race,
    format_winner_margin,
    process_current_race,
)
from season_engine.core.repairs import (
    CarRepairCost,
    TeamRepairBill,
    process_post_race_repairs,
)
from season_engine.core.scoring import (
    RaceProcessingResult,
    RaceScorer,
    StandardRaceScorer,
)
from season_engine.core.standings import (
    ChampionshipStandings,
    compute_updated_standings,
    update_championship_standings,
)
from season_engine.core.state import WorldState
from season_engine.core.telemetry import (
    calculate_true_power,
    effective_engine_stats,
    generate_engine_analytics_data,
    generate_estimated_power,
)

__all__ = [
    "CarRepairCost",
    "ChampionshipStandings",
    "ContractResult",
    "DriverContractResult",
    "DriverContractTerms",
    "DriverNegotiation",
    "DriverStateChange",
    "ManufacturerContractResult",
    "ManufacturerContractTerms",
    "ManufacturerNegotiation",
    "NegotiationPhase",
    "NegotiationRound",
    "NegotiationUpdate",
    "PreconditionError",
    "RaceOutcomeEngine",
    "RaceOutcomeError",
    "RaceProcessingResult",
    "RaceScorer",
    "RaceWeekendOrchestrator",
    "RaceWeekendReport",
    "RaceWeekendStage",
    "SeasonEngineError",
    "SponsorContractResult",
    "SponsorContractTerms",
    "SponsorNegotiation",
    "StaffContractResult",
    "StaffContractTerms",
    "StaffNegotiation",
    "StakeholderType",
    "StandardRaceScorer",
    "StubRaceOutcomeEngine",
    "TeamRepairBill",
    "TeamStateChange",
    "WorldState",
    "advance_phase",
    "append_calendar_event",
    "apply_driver_state_changes",
    "apply_negotiation_updates",
    "apply_team_state_changes",
    "calculate_true_power",
    "clamp_percentage",
    "compute_updated_standings",
    "create_email",
    "create_news_headline",
    "drain_news_events",
    "effective_engine_stats",
    "finalize_negotiation",
    "find_current_race",
    "format_winner_margin",
    "generate_engine_analytics_data",
    "generate_estimated_power",
    "negotiation_update_email",
    "pick_random",
    "process_current_race",
    "process_post_race_repairs",
    "push_news_event",
    "update_championship_standings",
    "validate_race_result",
]
