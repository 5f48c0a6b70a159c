"""
Movie header patching for MP4/QuickTime containers.

Downloaded videos carry the time they were transcoded, not the time they
were posted. The movie header ('moov/mvhd') holds the container-level
creation and modification times; both are rewritten with the post time.
No other box is touched.
"""

import struct
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, Tuple

from .errors import ContainerFormatError

MVHD_EPOCH = datetime(1904, 1, 1, tzinfo=timezone.utc)

_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")


def container_seconds(ts: datetime) -> int:
    """Whole seconds between the container epoch (1904-01-01 UTC) and ``ts``."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    seconds = (ts - MVHD_EPOCH) // timedelta(seconds=1)
    if seconds < 0:
        raise ContainerFormatError(f"Timestamp predates the container epoch: {ts.isoformat()}")
    return seconds


def iter_boxes(data: bytes, start: int, end: int) -> Iterator[Tuple[bytes, int, int]]:
    """
    Walk the boxes laid out between ``start`` and ``end``.

    Yields:
        (box type, payload offset, box end offset)
    """
    offset = start
    while offset < end:
        if end - offset < 8:
            raise ContainerFormatError(f"Truncated box header at offset {offset}")
        size = _U32.unpack_from(data, offset)[0]
        box_type = data[offset + 4:offset + 8]
        header = 8
        if size == 1:
            if end - offset < 16:
                raise ContainerFormatError(f"Truncated large box header at offset {offset}")
            size = _U64.unpack_from(data, offset + 8)[0]
            header = 16
        elif size == 0:
            size = end - offset
        if size < header or offset + size > end:
            raise ContainerFormatError(
                f"Invalid size {size} for box {box_type!r} at offset {offset}"
            )
        yield box_type, offset + header, offset + size
        offset += size


def find_box(data: bytes, start: int, end: int, box_type: bytes) -> Tuple[int, int]:
    for found, payload, box_end in iter_boxes(data, start, end):
        if found == box_type:
            return payload, box_end
    raise ContainerFormatError(f"No {box_type.decode('ascii')!r} box found")


def set_movie_times(data: bytearray, seconds: int) -> None:
    """Overwrite creation and modification time of the movie header in place."""
    moov_start, moov_end = find_box(data, 0, len(data), b"moov")
    mvhd_start, mvhd_end = find_box(data, moov_start, moov_end, b"mvhd")

    version = data[mvhd_start] if mvhd_start < mvhd_end else None
    fields = mvhd_start + 4  # skip version and flags
    if version == 1:
        if fields + 16 > mvhd_end:
            raise ContainerFormatError("Truncated version 1 mvhd box")
        _U64.pack_into(data, fields, seconds)
        _U64.pack_into(data, fields + 8, seconds)
    elif version == 0:
        if fields + 8 > mvhd_end:
            raise ContainerFormatError("Truncated version 0 mvhd box")
        if seconds > 0xFFFFFFFF:
            raise ContainerFormatError("Timestamp does not fit a version 0 mvhd box")
        _U32.pack_into(data, fields, seconds)
        _U32.pack_into(data, fields + 4, seconds)
    else:
        raise ContainerFormatError(f"Unsupported mvhd version: {version}")


def patch(path: Path, ts: datetime) -> None:
    """
    Stamp a video file's movie header with ``ts``.

    The whole container is read, patched and written back over the same
    path. A failure while writing can leave the file partially rewritten.

    Raises:
        ContainerFormatError: If the file is not a parseable container or cannot be rewritten
    """
    path = Path(path)
    seconds = container_seconds(ts)
    try:
        data = bytearray(path.read_bytes())
    except OSError as e:
        raise ContainerFormatError(f"Cannot read container {path}: {e}") from e

    set_movie_times(data, seconds)

    try:
        path.write_bytes(bytes(data))
    except OSError as e:
        raise ContainerFormatError(f"Cannot rewrite container {path}: {e}") from e
