"""
Snowflake identifier decoding.

Media and tweet ids on X/Twitter are 64-bit counters whose high bits hold the
milliseconds elapsed since a platform epoch. The low bits are worker and
sequence numbers, so shifting them away yields the creation time without
asking the remote service.
"""

import re
from datetime import datetime, timedelta, timezone

from .errors import InvalidIdentifier

# 2010-11-04T01:42:54.657Z
TWITTER_EPOCH_MS = 1288834974657
TIMESTAMP_SHIFT = 22
MAX_ID = 2 ** 64 - 1

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_DIGITS = re.compile(r"[0-9]+")


def parse_id(value: str) -> int:
    """Parse a decimal identifier, rejecting signs, spaces and anything above 64 bits."""
    if not isinstance(value, str) or not _DIGITS.fullmatch(value):
        raise InvalidIdentifier(f"Not a numeric identifier: {value!r}")
    n = int(value)
    if n > MAX_ID:
        raise InvalidIdentifier(f"Identifier exceeds 64 bits: {value}")
    return n


def decode_ms(value: str) -> int:
    """Return the Unix-epoch milliseconds encoded in a snowflake id."""
    return TWITTER_EPOCH_MS + (parse_id(value) >> TIMESTAMP_SHIFT)


def decode(value: str) -> datetime:
    """
    Decode a snowflake id into its creation time.

    Args:
        value: Decimal identifier as delivered by the search results

    Returns:
        Timezone-aware UTC datetime with millisecond precision

    Raises:
        InvalidIdentifier: If the value is not an unsigned 64-bit decimal
    """
    # timedelta arithmetic keeps the result exact; float timestamps would drift
    return UNIX_EPOCH + timedelta(milliseconds=decode_ms(value))

