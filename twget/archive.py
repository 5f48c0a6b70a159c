"""
Archive inspection.

The files already present in an account directory are the only record of
previous runs: once a download completes its mtime is set to the media's
creation time, so the oldest and newest mtimes bound what is archived.
"""

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import Iterator, Optional

from .errors import DirectoryUnavailable
from .snowflake import UNIX_EPOCH


@dataclass(frozen=True)
class ArchiveState:
    """Bounds of the content timestamps found in one account directory."""

    oldest: Optional[datetime] = None
    newest: Optional[datetime] = None


def mtime_of(stat_result: os.stat_result, tz: Optional[tzinfo] = None) -> datetime:
    """Convert a stat result's mtime to an aware datetime (local zone when tz is None)."""
    ts = UNIX_EPOCH + timedelta(microseconds=stat_result.st_mtime_ns // 1000)
    return ts.astimezone(tz)


def iter_file_times(directory: Path, tz: Optional[tzinfo] = None) -> Iterator[datetime]:
    """Yield the modification time of every plain entry in ``directory``."""
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    continue
                yield mtime_of(entry.stat(follow_symlinks=False), tz)
    except OSError as e:
        raise DirectoryUnavailable(f"Cannot read archive directory {directory}: {e}") from e


def scan(directory: Path, tz: Optional[tzinfo] = None) -> ArchiveState:
    """
    Derive the archive bounds of a directory.

    Args:
        directory: Account directory (must already exist)
        tz: Zone used to express the result; defaults to the local zone

    Returns:
        ArchiveState, with both bounds None when there are no plain files

    Raises:
        DirectoryUnavailable: If the directory cannot be listed or stat'ed
    """
    times = sorted(iter_file_times(Path(directory), tz))
    if not times:
        return ArchiveState()
    return ArchiveState(oldest=times[0], newest=times[-1])
