"""
Query window planning.

Turns the bounds of what is already archived into the since:/until: filters
of the next search. The search service only filters by calendar day, so
boundaries are computed and formatted at day granularity.
"""

import enum
from dataclasses import dataclass
from datetime import timedelta, tzinfo
from pathlib import Path
from typing import Optional

from .archive import ArchiveState, scan
from .errors import ConfigurationError

QUERY_DATE_FORMAT = "%Y-%m-%d"
BOUNDARY_STEP = timedelta(days=1)


class Mode(enum.Enum):
    DECREMENTAL = "decremental"
    INCREMENTAL = "incremental"
    EXPLICIT = "explicit"


@dataclass(frozen=True)
class WindowBoundary:
    since: Optional[str] = None
    until: Optional[str] = None


def resolve_mode(decremental: bool, incremental: bool) -> Mode:
    """Pick the run mode from the two resume flags."""
    if decremental and incremental:
        raise ConfigurationError("both --decremental and --incremental is specified")
    if decremental:
        return Mode.DECREMENTAL
    if incremental:
        return Mode.INCREMENTAL
    return Mode.EXPLICIT


def plan(
    mode: Mode,
    state: ArchiveState,
    since: Optional[str] = None,
    until: Optional[str] = None,
) -> WindowBoundary:
    """
    Compute the search window for one account.

    Decremental walks backwards: ``until`` is the day after the oldest archived
    file, since the service treats until: as exclusive. Incremental walks
    forwards from the newest file's day, re-including that day so media
    posted later on it are picked up. Explicit returns the given bounds as-is.
    """
    if mode is Mode.DECREMENTAL:
        if state.oldest is None:
            return WindowBoundary()
        day = state.oldest.date() + BOUNDARY_STEP
        return WindowBoundary(until=day.strftime(QUERY_DATE_FORMAT))
    if mode is Mode.INCREMENTAL:
        if state.newest is None:
            return WindowBoundary()
        return WindowBoundary(since=state.newest.date().strftime(QUERY_DATE_FORMAT))
    return WindowBoundary(since=since, until=until)


def plan_for_directory(
    mode: Mode,
    directory: Path,
    since: Optional[str] = None,
    until: Optional[str] = None,
    tz: Optional[tzinfo] = None,
) -> WindowBoundary:
    """Plan a window, scanning ``directory`` only when the mode needs it."""
    if mode is Mode.EXPLICIT:
        return plan(mode, ArchiveState(), since, until)
    return plan(mode, scan(directory, tz), since, until)


def build_query(user: str, boundary: WindowBoundary) -> str:
    """
    Build the search query text for an account's media.

    Empty filters are left out, e.g. ``from:alice filter:media until:2023-05-11``.
    """
    filters = [
        ("from", user),
        ("filter", "media"),
        ("since", boundary.since),
        ("until", boundary.until),
    ]
    return " ".join(f"{key}:{value}" for key, value in filters if value)
