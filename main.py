"""CLI entrypoint for the Grand Prix season turn engine."""

from __future__ import annotations

import logging
import sys

import numpy as np

from season_engine import __version__
from season_engine.calendar import load_calendar
from season_engine.config import load_rules
from season_engine.core.contracts import finalize_negotiation
from season_engine.core.negotiation import (
    NegotiationPhase,
    NegotiationRound,
    SponsorContractTerms,
    SponsorNegotiation,
    advance_phase,
)
from season_engine.core.news import drain_news_events
from season_engine.core.outcome import StubRaceOutcomeEngine
from season_engine.core.race_weekend import RaceWeekendOrchestrator, process_current_race
from season_engine.core.state import (
    ActiveManufacturerContract,
    Chief,
    ChiefRole,
    Driver,
    DriverRole,
    DriverRuntimeState,
    EngineStats,
    GameDate,
    Manufacturer,
    ManufacturerDealType,
    ManufacturerSpecState,
    ManufacturerType,
    PlayerInfo,
    SeasonData,
    Sponsor,
    SponsorTier,
    Team,
    TeamRuntimeState,
    WorldState,
)
from season_engine.reports import (
    constructor_standings_frame,
    driver_standings_frame,
    engine_analytics_frame,
    parts_spend_by_team,
)

SEASON: int = 1
DEMO_SEED: int = 2026

# (team id, name, budget, manufacturer id, drivers)
_TEAMS: list[tuple[str, str, float, str, list[tuple[str, str, DriverRole]]]] = [
    ("apex", "Apex Racing", 60_000_000, "vortex",
     [("Luca", "Moretti", DriverRole.FIRST), ("Sam", "Whitlock", DriverRole.SECOND)]),
    ("meridian", "Meridian GP", 45_000_000, "vortex",
     [("Jonas", "Falk", DriverRole.EQUAL), ("Rafael", "Ortiz", DriverRole.EQUAL)]),
    ("kestrel", "Kestrel Motorsport", 38_000_000, "halden",
     [("Aiko", "Tanaka", DriverRole.FIRST), ("Noah", "Brandt", DriverRole.SECOND)]),
    ("solstice", "Solstice F1", 30_000_000, "halden",
     [("Emile", "Roux", DriverRole.FIRST), ("Marco", "Bellini", DriverRole.SECOND)]),
]


def build_demo_world() -> WorldState:
    """Assemble a four-team world on the bundled calendar."""
    circuits, calendar = load_calendar()
    state = WorldState(
        player=PlayerInfo(name="Demo Principal", team_id="apex"),
        current_date=GameDate(season=SEASON, week=1),
        current_season=SeasonData(season_number=SEASON, calendar=calendar),
        circuits=circuits,
    )

    state.manufacturers = [
        Manufacturer("vortex", "Vortex", ManufacturerType.ENGINE, 82, 12_000_000,
                     EngineStats(power=88, fuel_efficiency=74, reliability=80, heat=70,
                                 predictability=75)),
        Manufacturer("halden", "Halden", ManufacturerType.ENGINE, 70, 8_000_000,
                     EngineStats(power=79, fuel_efficiency=82, reliability=86, heat=77,
                                 predictability=80)),
    ]
    state.manufacturer_specs = [
        ManufacturerSpecState("vortex", latest_spec_version=2,
                              spec_bonuses=[EngineStats(power=2, heat=1)]),
        ManufacturerSpecState("halden"),
    ]
    state.sponsors = [Sponsor("orbital", "Orbital Telecom", SponsorTier.TITLE)]

    for team_id, name, budget, manufacturer_id, line_up in _TEAMS:
        state.teams.append(Team(team_id, name, budget))
        state.team_states[team_id] = TeamRuntimeState()
        manufacturer = state.find_manufacturer(manufacturer_id)
        state.manufacturer_contracts.append(
            ActiveManufacturerContract(
                manufacturer_id=manufacturer_id,
                team_id=team_id,
                type=ManufacturerType.ENGINE,
                deal_type=ManufacturerDealType.CUSTOMER,
                annual_cost=manufacturer.annual_cost,
                start_season=SEASON,
                end_season=SEASON + 1,
            )
        )
        for idx, (first, last, role) in enumerate(line_up, start=1):
            driver_id = f"{team_id}-{idx}"
            state.drivers.append(
                Driver(driver_id, first, last, team_id, role, reputation=60,
                       salary=2_000_000, contract_end=SEASON + 1)
            )
            state.driver_states[driver_id] = DriverRuntimeState()

    state.chiefs.append(
        Chief("apex-designer", "Helena", "Voss", ChiefRole.DESIGNER, 84, "apex",
              1_500_000, SEASON + 1)
    )
    return state


def sign_demo_sponsor(state: WorldState) -> None:
    negotiation = SponsorNegotiation(
        id="demo-sponsor",
        team_id=state.player_team_id,
        sponsor_id="orbital",
        for_season=SEASON + 1,
        rounds=[
            NegotiationRound(
                round_number=1,
                offered_by="counterparty",
                terms=SponsorContractTerms(
                    monthly_payment=750_000, duration=2, signing_bonus=2_000_000
                ),
            )
        ],
    )
    advance_phase(negotiation, NegotiationPhase.COMPLETED)
    state.negotiations.append(negotiation)
    finalize_negotiation(state, negotiation)


def main() -> int:
    """Run a demonstration season with seeded stub engines."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print(f"Grand Prix Season Engine v{__version__}")
    print("=" * 56)

    rules = load_rules()
    rng = np.random.default_rng(DEMO_SEED)
    state = build_demo_world()
    orchestrator = RaceWeekendOrchestrator(
        StubRaceOutcomeEngine(rules, rng), rules=rules, rng=rng
    )

    # -- Race the calendar ----------------------------------------------------
    print(f"\nSeason {SEASON}: {len(state.current_season.calendar)} races\n")
    for race in state.current_season.calendar:
        state.current_date = GameDate(season=SEASON, week=race.week_number)
        process_current_race(state, orchestrator)
        for event in drain_news_events(state):
            data = event.data
            if "winnerName" in data:
                print(
                    f"  R{data['raceNumber']:02d} {data['circuitName']:<36} "
                    f"{data['winnerName']} ({data['winnerMargin']})"
                )
            elif "newLeaderName" in data:
                print(f"      lead -> {data['newLeaderName']} (+{data['pointsGap']})")

    sign_demo_sponsor(state)

    # -- Tables ---------------------------------------------------------------
    print("\nDriver standings")
    print(driver_standings_frame(state).to_string(index=False))
    print("\nConstructor standings")
    print(constructor_standings_frame(state).to_string(index=False))
    print("\nEstimated engine power")
    print(engine_analytics_frame(state).to_string())
    print("\nParts spend")
    print(parts_spend_by_team(state).to_string(index=False))

    print("\nTeam budgets")
    for team in state.teams:
        print(f"  {team.name:<20} ${team.budget:>14,.0f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
