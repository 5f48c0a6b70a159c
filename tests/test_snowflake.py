"""
Tests for snowflake id decoding.
"""

from datetime import datetime, timezone

import pytest

from twget.errors import InvalidIdentifier
from twget.snowflake import decode, decode_ms, parse_id, TWITTER_EPOCH_MS

from conftest import snowflake_for


class TestDecode:

    def test_zero_is_platform_epoch(self):
        assert decode("0") == datetime(2010, 11, 4, 1, 42, 54, 657000, tzinfo=timezone.utc)

    def test_known_time(self, may_tenth):
        """Time bits 2023-05-10T00:00:00Z decode back exactly."""
        assert decode(snowflake_for(may_tenth)) == may_tenth
        assert decode_ms(snowflake_for(may_tenth)) == 1683676800000

    def test_sequence_bits_ignored(self, may_tenth):
        assert decode(snowflake_for(may_tenth, sequence=(1 << 22) - 1)) == may_tenth

    def test_real_media_id(self):
        # pbs media id from 2022-11-25
        ts = decode("1596074427474382848")
        assert ts.tzinfo == timezone.utc
        assert ts.date().isoformat() == "2022-11-25"

    def test_monotonic(self):
        ids = sorted(
            [1, 4194304, 1596074427474382848, 1288834974657 << 22, 2 ** 63, 2 ** 64 - 1]
        )
        times = [decode(str(i)) for i in ids]
        assert times == sorted(times)

    def test_pure(self):
        assert decode("1596074427474382848") == decode("1596074427474382848")

    def test_max_unsigned(self):
        assert decode_ms(str(2 ** 64 - 1)) == TWITTER_EPOCH_MS + ((2 ** 64 - 1) >> 22)

    @pytest.mark.parametrize("value", ["", "abc", "-1", "+5", " 12", "1_000", "1.5", str(2 ** 64)])
    def test_invalid(self, value):
        with pytest.raises(InvalidIdentifier):
            decode(value)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            parse_id("x")

