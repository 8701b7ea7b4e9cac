"""Season calendar loader."""

from __future__ import annotations

from pathlib import Path

import yaml

from season_engine.config import DATA_DIR
from season_engine.core.state import CalendarEntry, Circuit

CALENDAR_PATH: Path = DATA_DIR / "calendar.yaml"

_REQUIRED_FIELDS: tuple[str, ...] = ("id", "name", "week")


def load_calendar(
    path: Path | None = None,
) -> tuple[list[Circuit], list[CalendarEntry]]:
    """Load circuits and race slots from a YAML calendar.

    Race numbers follow file order, starting at 1.

    Args:
        path: Optional override for the calendar file path.

    Returns:
        The circuits and the matching calendar entries.

    Raises:
        FileNotFoundError: If the calendar file does not exist.
        ValueError: If an entry is missing fields, has a non-positive
            week, or weeks are not strictly increasing.
    """
    calendar_path = path or CALENDAR_PATH
    if not calendar_path.exists():
        raise FileNotFoundError(f"Calendar file not found: {calendar_path}")

    with open(calendar_path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    races: list[dict] = data["races"]
    circuits: list[Circuit] = []
    entries: list[CalendarEntry] = []
    last_week = 0

    for idx, entry in enumerate(races):
        # --- Validate required fields ---
        for field in _REQUIRED_FIELDS:
            if field not in entry:
                raise ValueError(
                    f"Race entry {idx} ({entry.get('name', '<unknown>')}) "
                    f"is missing required field '{field}'"
                )

        week = entry["week"]
        if isinstance(week, bool) or not isinstance(week, int) or week < 1:
            raise ValueError(
                f"Race entry {idx} ({entry['name']}): "
                f"'week' must be a positive integer, got {week!r}"
            )
        if week <= last_week:
            raise ValueError(
                f"Race entry {idx} ({entry['name']}): weeks must be strictly increasing"
            )
        last_week = week

        circuits.append(
            Circuit(
                id=str(entry["id"]),
                name=str(entry["name"]),
                country=str(entry.get("country", "")),
            )
        )
        entries.append(
            CalendarEntry(race_number=idx + 1, circuit_id=str(entry["id"]), week_number=week)
        )

    return circuits, entries
