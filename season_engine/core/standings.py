"""Championship standings ledger for the season turn engine.

The ledger's job at turn time is atomic replacement: driver and
constructor tables are swapped together so that no reader can see one
table from race N and the other from race N-1.

:func:`compute_updated_standings` is the default scorer used by
:class:`~season_engine.core.scoring.StandardRaceScorer`.  Tables are
ordered by points (descending) with wins as the tie-break; remaining ties
keep their previous relative order.  Positions are dense and 1-based.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TypeVar

from season_engine.core.state import (
    ConstructorStanding,
    DriverStanding,
    RacePositionResult,
    WorldState,
)

_PODIUM_THRESHOLD: int = 3

_S = TypeVar("_S", DriverStanding, ConstructorStanding)


@dataclass
class ChampionshipStandings:
    drivers: list[DriverStanding] = field(default_factory=list)
    constructors: list[ConstructorStanding] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


def update_championship_standings(
    state: WorldState, standings: ChampionshipStandings
) -> None:
    """Replace both standings tables of the current season in one step."""
    drivers = list(standings.drivers)
    constructors = list(standings.constructors)
    season = state.current_season
    season.driver_standings, season.constructor_standings = drivers, constructors


def snapshot_driver_standings(state: WorldState) -> list[DriverStanding]:
    """Return a detached copy of the current driver standings."""
    return [replace(s) for s in state.current_season.driver_standings]


# ---------------------------------------------------------------------------
# Default scorer
# ---------------------------------------------------------------------------


def _is_podium(finish_position: int | None) -> bool:
    return finish_position is not None and finish_position <= _PODIUM_THRESHOLD


def _update_common_stats(
    standing: DriverStanding | ConstructorStanding, result: RacePositionResult
) -> None:
    if result.finish_position == 1:
        standing.wins += 1
    if _is_podium(result.finish_position):
        standing.podiums += 1
    if result.grid_position == 1:
        standing.pole_positions += 1


def sort_and_assign_positions(standings: list[_S]) -> list[_S]:
    """Return a new list ordered by points then wins, with positions set."""
    ranked = sorted(standings, key=lambda s: (-s.points, -s.wins))
    return [replace(s, position=idx + 1) for idx, s in enumerate(ranked)]


def compute_updated_standings(
    current: ChampionshipStandings, race_results: list[RacePositionResult]
) -> ChampionshipStandings:
    """Fold one race's results into *current* without mutating it.

    Drivers and teams absent from *current* are added with zeroed
    statistics before their results are counted.
    """
    drivers: dict[str, DriverStanding] = {
        s.driver_id: replace(s) for s in current.drivers
    }
    constructors: dict[str, ConstructorStanding] = {
        s.team_id: replace(s) for s in current.constructors
    }

    for result in race_results:
        drv = drivers.get(result.driver_id)
        if drv is None:
            drv = DriverStanding(driver_id=result.driver_id, team_id=result.team_id)
            drivers[result.driver_id] = drv
        drv.points += result.points
        _update_common_stats(drv, result)
        if result.fastest_lap:
            drv.fastest_laps += 1
        if result.status.is_dnf:
            drv.dnfs += 1

        con = constructors.get(result.team_id)
        if con is None:
            con = ConstructorStanding(team_id=result.team_id)
            constructors[result.team_id] = con
        con.points += result.points
        _update_common_stats(con, result)

    return ChampionshipStandings(
        drivers=sort_and_assign_positions(list(drivers.values())),
        constructors=sort_and_assign_positions(list(constructors.values())),
    )
