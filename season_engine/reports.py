"""Tabular exports of the season state.

Each function flattens part of a :class:`WorldState` into a
:class:`pandas.DataFrame` with display names resolved, for the demo CLI
and for ad-hoc analysis.  Unknown ids are shown as-is.
"""

from __future__ import annotations

import pandas as pd

from season_engine.core.state import PartsLogEntryType, WorldState

# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------


def _team_name(state: WorldState, team_id: str) -> str:
    team = state.find_team(team_id)
    return team.name if team is not None else team_id


def _driver_name(state: WorldState, driver_id: str) -> str:
    driver = state.find_driver(driver_id)
    return driver.full_name if driver is not None else driver_id


# ---------------------------------------------------------------------------
# Standings
# ---------------------------------------------------------------------------


def driver_standings_frame(state: WorldState) -> pd.DataFrame:
    """Driver championship table ordered by position.

    Returns:
        Columns ``position``, ``driver``, ``team``, ``points``, ``wins``,
        ``podiums``, ``poles``, ``fastest_laps``, ``dnfs``.
    """
    columns = [
        "position",
        "driver",
        "team",
        "points",
        "wins",
        "podiums",
        "poles",
        "fastest_laps",
        "dnfs",
    ]
    rows = [
        {
            "position": s.position,
            "driver": _driver_name(state, s.driver_id),
            "team": _team_name(state, s.team_id),
            "points": s.points,
            "wins": s.wins,
            "podiums": s.podiums,
            "poles": s.pole_positions,
            "fastest_laps": s.fastest_laps,
            "dnfs": s.dnfs,
        }
        for s in state.current_season.driver_standings
    ]
    df = pd.DataFrame(rows, columns=columns)
    return df.sort_values("position").reset_index(drop=True)


def constructor_standings_frame(state: WorldState) -> pd.DataFrame:
    columns = ["position", "team", "points", "wins", "podiums", "poles"]
    rows = [
        {
            "position": s.position,
            "team": _team_name(state, s.team_id),
            "points": s.points,
            "wins": s.wins,
            "podiums": s.podiums,
            "poles": s.pole_positions,
        }
        for s in state.current_season.constructor_standings
    ]
    df = pd.DataFrame(rows, columns=columns)
    return df.sort_values("position").reset_index(drop=True)


# ---------------------------------------------------------------------------
# Engine analytics and spend
# ---------------------------------------------------------------------------


def engine_analytics_frame(state: WorldState) -> pd.DataFrame:
    """Estimated engine power per race, one column per team.

    The index is the race number; races a team has no reading for are
    ``NaN``.
    """
    records = [
        {
            "race_number": point.race_number,
            "team": _team_name(state, series.team_id),
            "estimated_power": point.estimated_power,
        }
        for series in state.engine_analytics
        for point in series.data_points
    ]
    if not records:
        return pd.DataFrame()
    long_df = pd.DataFrame(records)
    return long_df.pivot_table(
        index="race_number",
        columns="team",
        values="estimated_power",
        aggfunc="first",
    ).sort_index()


def parts_spend_by_team(state: WorldState) -> pd.DataFrame:
    """Total parts-log spend per team, split by entry type.

    Entries are attributed to a team through their driver.  Entries
    without a resolvable driver are grouped under ``"Unassigned"``.
    """
    columns = ["team"] + [t.value for t in PartsLogEntryType] + ["total"]
    records = []
    for entry in state.parts_log:
        driver = state.find_driver(entry.driver_id)
        team = (
            _team_name(state, driver.team_id)
            if driver is not None and driver.team_id is not None
            else "Unassigned"
        )
        records.append({"team": team, "type": entry.type.value, "cost": entry.cost})
    if not records:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(records)
    spend = df.pivot_table(
        index="team", columns="type", values="cost", aggfunc="sum", fill_value=0
    )
    for entry_type in PartsLogEntryType:
        if entry_type.value not in spend.columns:
            spend[entry_type.value] = 0
    spend = spend[[t.value for t in PartsLogEntryType]]
    spend["total"] = spend.sum(axis=1)
    spend = spend.sort_values("total", ascending=False).reset_index()
    spend.columns.name = None
    return spend[columns]
