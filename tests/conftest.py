"""
Pytest configuration and shared fixtures.
"""

import struct
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import requests

from twget.logger import StructuredLogger, reset_logger
from twget.snowflake import TWITTER_EPOCH_MS, TIMESTAMP_SHIFT, UNIX_EPOCH


def snowflake_for(ts: datetime, sequence: int = 0) -> str:
    """Build an id whose time bits encode ``ts``."""
    ms = (ts - UNIX_EPOCH) // timedelta(milliseconds=1)
    return str(((ms - TWITTER_EPOCH_MS) << TIMESTAMP_SHIFT) | sequence)


def box(box_type: bytes, payload: bytes) -> bytes:
    return struct.pack(">I", 8 + len(payload)) + box_type + payload


def mvhd_payload(version: int = 0, creation: int = 0, modification: int = 0) -> bytes:
    if version == 1:
        times = struct.pack(">QQIQ", creation, modification, 1000, 5000)
    else:
        times = struct.pack(">IIII", creation, modification, 1000, 5000)
    rest = struct.pack(">IH", 0x00010000, 0x0100) + bytes(10) + bytes(36) + bytes(24) + struct.pack(">I", 2)
    return bytes([version, 0, 0, 0]) + times + rest


def make_mp4(version: int = 0, creation: int = 123, modification: int = 456) -> bytes:
    """Minimal container: ftyp, moov/mvhd and a small mdat."""
    ftyp = box(b"ftyp", b"isom" + struct.pack(">I", 512) + b"isomiso2")
    moov = box(b"moov", box(b"mvhd", mvhd_payload(version, creation, modification)))
    mdat = box(b"mdat", b"\x00" * 32)
    return ftyp + moov + mdat


def read_mvhd_times(data: bytes):
    """Return (version, creation, modification) of the first moov/mvhd."""
    offset = data.index(b"mvhd") + 4
    version = data[offset]
    if version == 1:
        return (version,) + struct.unpack_from(">QQ", data, offset + 4)
    return (version,) + struct.unpack_from(">II", data, offset + 4)


class FakeResponse:
    def __init__(self, body: bytes = b"", status: int = 200, fail_after: Optional[int] = None):
        self.body = body
        self.status_code = status
        self.fail_after = fail_after

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.body), chunk_size):
            if self.fail_after is not None and i >= self.fail_after:
                raise requests.exceptions.ConnectionError("connection reset")
            yield self.body[i:i + chunk_size]


class FakeSession:
    """Stands in for requests.Session; records every requested URL."""

    def __init__(self, responses: Optional[Dict[str, FakeResponse]] = None, default: bytes = b"data"):
        self.responses = responses or {}
        self.default = default
        self.calls: List[str] = []

    def get(self, url, stream=False, timeout=None):
        self.calls.append(url)
        return self.responses.get(url, FakeResponse(self.default))


class FakeSearch:
    def __init__(self, tweets):
        self.tweets = list(tweets)
        self.queries: List[str] = []

    def search(self, query, limit):
        self.queries.append(query)
        yield from self.tweets[:limit]


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    """Logger with no handlers attached, for metric assertions."""
    return StructuredLogger(name="twget-test", enable_file=False, enable_console=False)


@pytest.fixture(autouse=True)
def fresh_global_logger():
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def account_dir(tmp_path) -> Path:
    d = tmp_path / "archive" / "alice"
    d.mkdir(parents=True)
    return d


@pytest.fixture
def may_tenth() -> datetime:
    return datetime(2023, 5, 10, tzinfo=timezone.utc)
