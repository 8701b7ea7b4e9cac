"""News and event bus for the season turn engine.

Two kinds of output are written to the world state:

* reactive news events (:class:`NewsEvent`) -- structured payloads that
  record *that* something happened.  A downstream content generator turns
  them into headlines later; pushing one never creates visible text.
* calendar events (:class:`CalendarEvent`) -- concrete headlines and
  emails whose wording the caller already knows.

Only emails can be critical (blocking turn advancement).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar

from numpy.random import Generator

from season_engine.core.rng import new_id, resolve_rng
from season_engine.core.state import (
    CalendarEvent,
    CalendarEventType,
    GameDate,
    Importance,
    NewsEvent,
    NewsEventType,
    WorldState,
)

_T = TypeVar("_T")

# ---------------------------------------------------------------------------
# Reactive events
# ---------------------------------------------------------------------------


def push_news_event(
    state: WorldState,
    event_type: NewsEventType,
    importance: Importance | str,
    data: dict[str, Any],
) -> NewsEvent:
    """Record a reactive news event and return it.

    Raises:
        ValueError: If *importance* is not a known level.
    """
    event = NewsEvent(
        id=new_id(),
        type=NewsEventType(event_type),
        date=state.current_date,
        importance=Importance(importance),
        data=dict(data),
    )
    state.news_events.append(event)
    return event


def drain_news_events(state: WorldState) -> list[NewsEvent]:
    """Return unprocessed reactive events and mark them processed."""
    pending = [e for e in state.news_events if not e.processed]
    for event in pending:
        event.processed = True
    return pending


# ---------------------------------------------------------------------------
# Calendar events
# ---------------------------------------------------------------------------


def create_news_headline(
    date: GameDate,
    subject: str,
    body: str,
    importance: Importance = Importance.MEDIUM,
    data: dict[str, Any] | None = None,
) -> CalendarEvent:
    """Build a headline.  Headlines never stop the simulation."""
    return CalendarEvent(
        id=new_id(),
        date=date,
        type=CalendarEventType.HEADLINE,
        subject=subject,
        body=body,
        critical=False,
        importance=importance,
        data=data,
    )


def create_email(
    date: GameDate,
    subject: str,
    body: str,
    critical: bool = False,
    sender: str | None = None,
    data: dict[str, Any] | None = None,
) -> CalendarEvent:
    """Build an email.  Pass ``critical=True`` only for decisions the
    player must acknowledge before the turn can advance."""
    return CalendarEvent(
        id=new_id(),
        date=date,
        type=CalendarEventType.EMAIL,
        subject=subject,
        body=body,
        critical=critical,
        sender=sender,
        data=data,
    )


def append_calendar_event(state: WorldState, event: CalendarEvent) -> CalendarEvent:
    state.calendar_events.append(event)
    return event


# ---------------------------------------------------------------------------
# Content selection
# ---------------------------------------------------------------------------


def pick_random(items: Sequence[_T], rng: Generator | None = None) -> _T:
    """Pick one item uniformly at random.

    Raises:
        ValueError: If *items* is empty.
    """
    if not items:
        raise ValueError("items must not be empty.")
    idx = int(resolve_rng(rng).integers(0, len(items)))
    return items[idx]
