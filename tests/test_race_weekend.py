"""Tests for the race-weekend orchestrator."""

import copy

import numpy as np
import pytest

from season_engine.core.errors import PreconditionError, RaceOutcomeError
from season_engine.core.outcome import StubRaceOutcomeEngine
from season_engine.core.race_weekend import (
    NO_PREVIOUS_LEADER,
    RaceWeekendOrchestrator,
    RaceWeekendReport,
    RaceWeekendStage,
    find_current_race,
    format_winner_margin,
    process_current_race,
)
from season_engine.core.scoring import RaceProcessingResult
from season_engine.core.standings import ChampionshipStandings
from season_engine.core.state import (
    DriverStanding,
    GameDate,
    NewsEventType,
    PartsLogEntryType,
    RaceFinishStatus,
    RacePositionResult,
    RaceWeekendResult,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_ORDER = [
    ("a1", "alpha"),
    ("b1", "beta"),
    ("g1", "gamma"),
    ("a2", "alpha"),
    ("b2", "beta"),
    ("g2", "gamma"),
]


def _pos(
    driver_id: str,
    team_id: str,
    position: int | None,
    gap_ms: float | None = None,
    laps_behind: int | None = None,
    status: RaceFinishStatus = RaceFinishStatus.FINISHED,
) -> RacePositionResult:
    return RacePositionResult(
        driver_id=driver_id,
        team_id=team_id,
        finish_position=position,
        grid_position=position or 20,
        status=status,
        gap_to_winner_ms=gap_ms,
        laps_behind=laps_behind,
    )


def _scripted_result(race_number: int = 1, circuit_id: str = "monza") -> RaceWeekendResult:
    race = [
        _pos(driver_id, team_id, idx + 1, gap_ms=0.0 if idx == 0 else 1500.0 * idx)
        for idx, (driver_id, team_id) in enumerate(_ORDER)
    ]
    points = [10, 6, 4, 3, 2, 1]
    for entry, pts in zip(race, points):
        entry.points = pts
    return RaceWeekendResult(
        race_number=race_number, circuit_id=circuit_id, season_number=3, race=race
    )


class _ScriptedEngine:
    def __init__(self, result: RaceWeekendResult) -> None:
        self.result = result
        self.calls = 0

    def simulate(self, state, circuit_id, race_number) -> RaceWeekendResult:
        self.calls += 1
        return self.result


class _FailingEngine:
    def simulate(self, state, circuit_id, race_number) -> RaceWeekendResult:
        raise ConnectionError("simulator offline")


class _FixedScorer:
    def __init__(self, drivers: list[DriverStanding]) -> None:
        self.drivers = drivers

    def process_race(self, state, race_result) -> RaceProcessingResult:
        return RaceProcessingResult(
            updated_standings=ChampionshipStandings(drivers=list(self.drivers))
        )


def _orchestrator(engine, scorer=None) -> RaceWeekendOrchestrator:
    return RaceWeekendOrchestrator(engine, scorer=scorer, rng=np.random.default_rng(11))


def _events(state, event_type: NewsEventType) -> list:
    return [e for e in state.news_events if e.type is event_type]


# ---------------------------------------------------------------------------
# Winner margin
# ---------------------------------------------------------------------------


def test_margin_in_seconds_on_lead_lap() -> None:
    """A 1,500 ms gap reads +1.500s."""
    winner = _pos("a1", "alpha", 1, gap_ms=0.0)
    second = _pos("b1", "beta", 2, gap_ms=1500.0)
    assert format_winner_margin(winner, second) == "+1.500s"


def test_margin_in_laps() -> None:
    """Lapped runners-up are described in laps."""
    winner = _pos("a1", "alpha", 1, gap_ms=0.0)
    assert format_winner_margin(winner, _pos("b1", "beta", 2, laps_behind=1)) == "+1 lap"
    assert format_winner_margin(winner, _pos("b1", "beta", 2, laps_behind=3)) == "+3 laps"


def test_margin_defaults_to_zero_gap() -> None:
    """Without a usable gap the margin is +0.000s."""
    winner = _pos("a1", "alpha", 1)
    second = _pos("b1", "beta", 2)
    assert format_winner_margin(winner, second) == "+0.000s"


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------


def test_stages_run_in_order(world) -> None:
    """A normal run visits every stage once, in sequence."""
    race = world.current_season.calendar[0]
    report = _orchestrator(_ScriptedEngine(_scripted_result())).process(world, race)
    assert report.stages == list(RaceWeekendStage)
    assert report.stage is RaceWeekendStage.COMPLETE


def test_calendar_entry_completed_with_result(world) -> None:
    """The race is marked completed and carries its result."""
    race = world.current_season.calendar[0]
    result = _scripted_result()
    _orchestrator(_ScriptedEngine(result)).process(world, race)
    assert race.completed is True
    assert race.result is result
    assert find_current_race(world) is None


def test_race_result_event_payload(world) -> None:
    """The podium and margin reach the race-result event."""
    race = world.current_season.calendar[0]
    _orchestrator(_ScriptedEngine(_scripted_result())).process(world, race)

    (event,) = _events(world, NewsEventType.RACE_RESULT)
    assert event.importance.value == "high"
    assert event.data["winnerName"] == "Anna Alder"
    assert event.data["winnerTeamName"] == "Alpha Racing"
    assert event.data["secondName"] == "Dan Dogwood"
    assert event.data["thirdName"] == "Finn Fir"
    assert event.data["winnerMargin"] == "+1.500s"
    assert event.data["circuitName"] == "Monza"
    assert event.data["circuitCountry"] == "Italy"


def test_state_standings_repairs_and_analytics_applied(world) -> None:
    """Every downstream stage leaves its mark on the world."""
    race = world.current_season.calendar[0]
    report = _orchestrator(_ScriptedEngine(_scripted_result())).process(world, race)

    leader = world.current_season.driver_standings[0]
    assert (leader.driver_id, leader.points, leader.position) == ("a1", 10, 1)
    assert world.current_season.constructor_standings[0].team_id == "alpha"
    assert world.driver_states["a1"].morale == 80.0
    assert len(report.repair_bills) == 3
    assert len([e for e in world.parts_log if e.type is PartsLogEntryType.REPAIR]) == 6
    assert report.analytics_recorded == 2


def test_fewer_than_three_finishers_skips_race_news_only(world) -> None:
    """An incomplete podium drops the race-result event but not repairs."""
    result = _scripted_result()
    for entry in result.race[2:]:
        entry.finish_position = None
        entry.status = RaceFinishStatus.RETIRED
        entry.points = 0
    race = world.current_season.calendar[0]
    report = _orchestrator(_ScriptedEngine(result)).process(world, race)

    assert _events(world, NewsEventType.RACE_RESULT) == []
    assert report.stage is RaceWeekendStage.COMPLETE
    assert len(report.repair_bills) == 3


def test_missing_circuit_skips_race_news(world) -> None:
    """Without a circuit record there is no race-result event."""
    world.circuits = []
    race = world.current_season.calendar[0]
    _orchestrator(_ScriptedEngine(_scripted_result())).process(world, race)
    assert _events(world, NewsEventType.RACE_RESULT) == []
    assert race.completed is True


# ---------------------------------------------------------------------------
# Championship lead
# ---------------------------------------------------------------------------


def test_lead_change_event(world) -> None:
    """A new leader fires an event naming both leaders and the gap."""
    world.current_season.driver_standings = [
        DriverStanding(driver_id="a1", team_id="alpha", points=80, position=1),
        DriverStanding(driver_id="b1", team_id="beta", points=78, position=2),
    ]
    scorer = _FixedScorer(
        [
            DriverStanding(driver_id="b1", team_id="beta", points=85, position=1),
            DriverStanding(driver_id="a1", team_id="alpha", points=80, position=2),
        ]
    )
    race = world.current_season.calendar[0]
    _orchestrator(_ScriptedEngine(_scripted_result()), scorer).process(world, race)

    (event,) = _events(world, NewsEventType.CHAMPIONSHIP_LEAD)
    assert event.data["previousLeaderName"] == "Anna Alder"
    assert event.data["newLeaderName"] == "Dan Dogwood"
    assert event.data["newLeaderTeam"] == "Beta Motorsport"
    assert event.data["newLeaderPoints"] == 85
    assert event.data["pointsGap"] == 5


def test_first_leader_has_no_previous_leader(world) -> None:
    """The first race of the season always produces a lead event."""
    race = world.current_season.calendar[0]
    _orchestrator(_ScriptedEngine(_scripted_result())).process(world, race)

    (event,) = _events(world, NewsEventType.CHAMPIONSHIP_LEAD)
    assert event.data["previousLeaderName"] == NO_PREVIOUS_LEADER
    assert event.data["pointsGap"] == 4


def test_sole_leader_gap_is_own_points(world) -> None:
    """With only one driver in the table the gap is the leader's points."""
    scorer = _FixedScorer([DriverStanding(driver_id="g2", team_id="gamma", points=7, position=1)])
    race = world.current_season.calendar[0]
    _orchestrator(_ScriptedEngine(_scripted_result()), scorer).process(world, race)
    (event,) = _events(world, NewsEventType.CHAMPIONSHIP_LEAD)
    assert event.data["pointsGap"] == 7


def test_same_leader_emits_nothing(world) -> None:
    """No lead event when the leader keeps the lead."""
    race = world.current_season.calendar[0]
    orchestrator = _orchestrator(_ScriptedEngine(_scripted_result()))
    orchestrator.process(world, race)

    second_race = world.current_season.calendar[1]
    orchestrator.outcome_engine = _ScriptedEngine(_scripted_result(2, "spa"))
    orchestrator.process(world, second_race)
    assert len(_events(world, NewsEventType.CHAMPIONSHIP_LEAD)) == 1


# ---------------------------------------------------------------------------
# Failure semantics
# ---------------------------------------------------------------------------


def test_engine_failure_leaves_state_untouched(world) -> None:
    """An outcome engine exception aborts the turn before any write."""
    before = copy.deepcopy(world)
    race = world.current_season.calendar[0]
    with pytest.raises(RaceOutcomeError, match="simulator offline") as excinfo:
        _orchestrator(_FailingEngine()).process(world, race)
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert world == before


def test_invalid_result_leaves_state_untouched(world) -> None:
    """A result for the wrong race is rejected before any write."""
    before = copy.deepcopy(world)
    race = world.current_season.calendar[0]
    with pytest.raises(RaceOutcomeError, match="circuit"):
        _orchestrator(_ScriptedEngine(_scripted_result(1, "spa"))).process(world, race)
    assert world == before


def test_completed_race_cannot_be_processed_again(world) -> None:
    """A finished race is refused without touching standings or budgets."""
    race = world.current_season.calendar[0]
    engine = _ScriptedEngine(_scripted_result())
    orchestrator = _orchestrator(engine)
    orchestrator.process(world, race)

    before = copy.deepcopy(world)
    with pytest.raises(PreconditionError, match="already completed"):
        orchestrator.process(world, race)
    assert engine.calls == 1
    assert world == before


def test_cancelled_race_cannot_be_processed(world) -> None:
    """A cancelled race never reaches the outcome engine."""
    race = world.current_season.calendar[0]
    race.cancelled = True
    engine = _ScriptedEngine(_scripted_result())
    before = copy.deepcopy(world)
    with pytest.raises(PreconditionError, match="already cancelled"):
        _orchestrator(engine).process(world, race)
    assert engine.calls == 0
    assert world == before


def test_stage_skipping_is_rejected() -> None:
    """Stages cannot be skipped or repeated."""
    report = RaceWeekendReport(race_number=1, circuit_id="monza")
    with pytest.raises(PreconditionError):
        report.advance(RaceWeekendStage.STATE_APPLIED)
    report.advance(RaceWeekendStage.RESULTS_OBTAINED)
    with pytest.raises(PreconditionError):
        report.advance(RaceWeekendStage.RESULTS_OBTAINED)


# ---------------------------------------------------------------------------
# Current race
# ---------------------------------------------------------------------------


def test_process_current_race_uses_active_week(world) -> None:
    """The race in the current week is the one processed."""
    engine = _ScriptedEngine(_scripted_result())
    report = process_current_race(world, _orchestrator(engine))
    assert report.race_number == 1
    assert engine.calls == 1


def test_no_current_race_is_precondition_error(world) -> None:
    """A week without a race cannot be processed."""
    world.current_date = GameDate(season=3, week=11)
    with pytest.raises(PreconditionError, match="No race"):
        process_current_race(world, _orchestrator(_ScriptedEngine(_scripted_result())))


def test_cancelled_race_is_not_current(world) -> None:
    """Cancelled races are never current."""
    world.current_season.calendar[0].cancelled = True
    assert find_current_race(world) is None


def test_stub_engine_season_runs_end_to_end(world) -> None:
    """The stub engine drives the whole calendar without errors."""
    rng = np.random.default_rng(21)
    orchestrator = RaceWeekendOrchestrator(StubRaceOutcomeEngine(rng=rng), rng=rng)
    for race in world.current_season.calendar:
        world.current_date = GameDate(season=3, week=race.week_number)
        report = process_current_race(world, orchestrator)
        assert report.stage is RaceWeekendStage.COMPLETE
    assert all(r.completed for r in world.current_season.calendar)
    alpha = next(s for s in world.engine_analytics if s.team_id == "alpha")
    assert [p.race_number for p in alpha.data_points] == [1, 2]
