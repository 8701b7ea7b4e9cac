"""Shared fixtures: a small three-team world and a seeded generator."""

from __future__ import annotations

import numpy as np
import pytest

from season_engine.core.state import (
    ActiveManufacturerContract,
    CalendarEntry,
    Chief,
    ChiefRole,
    Circuit,
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

SEASON = 3
PLAYER_TEAM = "alpha"


def _driver(driver_id: str, first: str, last: str, team_id: str | None, role: DriverRole) -> Driver:
    return Driver(
        id=driver_id,
        first_name=first,
        last_name=last,
        team_id=team_id,
        role=role,
        reputation=50,
        salary=1_000_000,
        contract_end=SEASON + 1,
    )


def build_world() -> WorldState:
    """Three teams with two race drivers each, plus one test driver."""
    state = WorldState(
        player=PlayerInfo(name="Player", team_id=PLAYER_TEAM),
        current_date=GameDate(season=SEASON, week=10),
        current_season=SeasonData(
            season_number=SEASON,
            calendar=[
                CalendarEntry(race_number=1, circuit_id="monza", week_number=10),
                CalendarEntry(race_number=2, circuit_id="spa", week_number=12),
            ],
        ),
        circuits=[
            Circuit(id="monza", name="Monza", country="Italy"),
            Circuit(id="spa", name="Spa-Francorchamps", country="Belgium"),
        ],
    )
    state.teams = [
        Team(id="alpha", name="Alpha Racing", budget=20_000_000),
        Team(id="beta", name="Beta Motorsport", budget=15_000_000),
        Team(id="gamma", name="Gamma GP", budget=10_000_000),
    ]
    state.drivers = [
        _driver("a1", "Anna", "Alder", "alpha", DriverRole.FIRST),
        _driver("a2", "Ben", "Birch", "alpha", DriverRole.SECOND),
        _driver("a3", "Cleo", "Cedar", "alpha", DriverRole.TEST),
        _driver("b1", "Dan", "Dogwood", "beta", DriverRole.FIRST),
        _driver("b2", "Eve", "Elm", "beta", DriverRole.SECOND),
        _driver("g1", "Finn", "Fir", "gamma", DriverRole.EQUAL),
        _driver("g2", "Gia", "Gum", "gamma", DriverRole.EQUAL),
        _driver("fa", "Hal", "Hazel", None, DriverRole.SECOND),
    ]
    state.driver_states = {d.id: DriverRuntimeState() for d in state.drivers}
    state.team_states = {t.id: TeamRuntimeState() for t in state.teams}
    for runtime in state.team_states.values():
        runtime.sponsor_satisfaction = {"acme": 60.0}

    state.chiefs = [
        Chief("c-alpha", "Ivy", "Ingram", ChiefRole.DESIGNER, 80, "alpha", 800_000, SEASON),
        Chief("c-beta", "Jon", "Jansen", ChiefRole.ENGINEER, 90, "beta", 900_000, SEASON + 1),
        Chief("c-free", "Kai", "Keller", ChiefRole.MECHANIC, 70, None, 0, SEASON),
    ]
    state.sponsors = [
        Sponsor(id="acme", name="Acme Corp", tier=SponsorTier.MAJOR),
        Sponsor(id="zenith", name="Zenith Bank", tier=SponsorTier.TITLE),
    ]
    state.manufacturers = [
        Manufacturer(
            id="forge",
            name="Forge",
            type=ManufacturerType.ENGINE,
            reputation=80,
            annual_cost=10_000_000,
            engine_stats=EngineStats(power=80, fuel_efficiency=70, reliability=75, heat=60),
        ),
        Manufacturer(
            id="nova",
            name="Nova",
            type=ManufacturerType.ENGINE,
            reputation=70,
            annual_cost=8_000_000,
            engine_stats=EngineStats(power=70, fuel_efficiency=80, reliability=85, heat=70),
        ),
    ]
    state.manufacturer_specs = [
        ManufacturerSpecState(manufacturer_id="forge"),
        ManufacturerSpecState(manufacturer_id="nova"),
    ]
    state.manufacturer_contracts = [
        ActiveManufacturerContract(
            manufacturer_id="forge",
            team_id="alpha",
            type=ManufacturerType.ENGINE,
            deal_type=ManufacturerDealType.CUSTOMER,
            annual_cost=10_000_000,
            start_season=SEASON - 1,
            end_season=SEASON + 3,
        ),
        ActiveManufacturerContract(
            manufacturer_id="nova",
            team_id="beta",
            type=ManufacturerType.ENGINE,
            deal_type=ManufacturerDealType.CUSTOMER,
            annual_cost=8_000_000,
            start_season=SEASON,
            end_season=SEASON,
        ),
    ]
    return state


@pytest.fixture
def world() -> WorldState:
    return build_world()


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)
