"""Tests for the championship standings ledger and default standings fold."""

from season_engine.core.standings import (
    ChampionshipStandings,
    compute_updated_standings,
    snapshot_driver_standings,
    sort_and_assign_positions,
    update_championship_standings,
)
from season_engine.core.state import (
    ConstructorStanding,
    DriverStanding,
    RaceFinishStatus,
    RacePositionResult,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _result(
    driver_id: str,
    team_id: str,
    position: int | None,
    points: int = 0,
    grid: int = 5,
    status: RaceFinishStatus = RaceFinishStatus.FINISHED,
    fastest_lap: bool = False,
) -> RacePositionResult:
    return RacePositionResult(
        driver_id=driver_id,
        team_id=team_id,
        finish_position=position,
        grid_position=grid,
        status=status,
        points=points,
        fastest_lap=fastest_lap,
    )


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


def test_update_replaces_both_tables(world) -> None:
    """Driver and constructor tables are swapped together."""
    standings = ChampionshipStandings(
        drivers=[DriverStanding(driver_id="a1", team_id="alpha", points=10, position=1)],
        constructors=[ConstructorStanding(team_id="alpha", points=10, position=1)],
    )
    update_championship_standings(world, standings)
    assert [s.driver_id for s in world.current_season.driver_standings] == ["a1"]
    assert [s.team_id for s in world.current_season.constructor_standings] == ["alpha"]


def test_update_does_not_alias_input_lists(world) -> None:
    """Later edits to the input lists do not leak into the world."""
    standings = ChampionshipStandings(
        drivers=[DriverStanding(driver_id="a1", team_id="alpha")],
        constructors=[],
    )
    update_championship_standings(world, standings)
    standings.drivers.append(DriverStanding(driver_id="b1", team_id="beta"))
    assert len(world.current_season.driver_standings) == 1


def test_snapshot_is_detached(world) -> None:
    """Mutating the live table does not change an earlier snapshot."""
    world.current_season.driver_standings = [
        DriverStanding(driver_id="a1", team_id="alpha", points=5, position=1)
    ]
    snap = snapshot_driver_standings(world)
    world.current_season.driver_standings[0].points = 99
    assert snap[0].points == 5


# ---------------------------------------------------------------------------
# Default fold
# ---------------------------------------------------------------------------


def test_points_wins_and_dnfs_accumulate() -> None:
    """One race adds points, wins, podiums, poles, fastest laps, and DNFs."""
    results = [
        _result("a1", "alpha", 1, points=10, grid=1, fastest_lap=True),
        _result("b1", "beta", 2, points=6),
        _result("a2", "alpha", 3, points=4),
        _result("b2", "beta", None, status=RaceFinishStatus.RETIRED),
    ]
    updated = compute_updated_standings(ChampionshipStandings(), results)

    by_driver = {s.driver_id: s for s in updated.drivers}
    assert by_driver["a1"].wins == 1
    assert by_driver["a1"].pole_positions == 1
    assert by_driver["a1"].fastest_laps == 1
    assert by_driver["a2"].podiums == 1
    assert by_driver["b2"].dnfs == 1

    by_team = {s.team_id: s for s in updated.constructors}
    assert by_team["alpha"].points == 14
    assert by_team["alpha"].podiums == 2
    assert [s.team_id for s in updated.constructors] == ["alpha", "beta"]


def test_input_standings_not_mutated() -> None:
    """The fold works on copies."""
    current = ChampionshipStandings(
        drivers=[DriverStanding(driver_id="a1", team_id="alpha", points=3, position=1)]
    )
    compute_updated_standings(current, [_result("a1", "alpha", 1, points=10)])
    assert current.drivers[0].points == 3


def test_ties_break_on_wins_then_previous_order() -> None:
    """Equal points rank by wins; full ties keep their prior order."""
    table = [
        DriverStanding(driver_id="x", team_id="t", points=10, wins=0),
        DriverStanding(driver_id="y", team_id="t", points=10, wins=1),
        DriverStanding(driver_id="z", team_id="t", points=10, wins=0),
    ]
    ranked = sort_and_assign_positions(table)
    assert [s.driver_id for s in ranked] == ["y", "x", "z"]
    assert [s.position for s in ranked] == [1, 2, 3]
