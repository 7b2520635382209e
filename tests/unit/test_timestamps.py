"""Unit tests for sitesync.timestamps and sitesync.checksums."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from sitesync.checksums import checksum
from sitesync.timestamps import derive_timestamp


class TestDeriveTimestamp:
    def test_http_date(self) -> None:
        assert derive_timestamp("Wed, 21 Oct 2015 07:28:00 GMT") == 20151021072800

    def test_aware_datetime_converted_to_utc(self) -> None:
        cest = timezone(timedelta(hours=2))
        assert derive_timestamp(datetime(2015, 10, 21, 9, 28, 0, tzinfo=cest)) == 20151021072800

    def test_naive_datetime_taken_as_utc(self) -> None:
        assert derive_timestamp(datetime(2015, 10, 21, 7, 28, 0)) == 20151021072800

    def test_none_means_now(self) -> None:
        before = int(datetime.now(UTC).strftime("%Y%m%d%H%M%S"))
        derived = derive_timestamp(None)
        after = int(datetime.now(UTC).strftime("%Y%m%d%H%M%S"))
        assert before <= derived <= after

    def test_unparsable_header_means_now(self) -> None:
        before = int(datetime.now(UTC).strftime("%Y%m%d%H%M%S"))
        assert derive_timestamp("yesterday-ish") >= before

    def test_later_times_compare_greater(self) -> None:
        earlier = derive_timestamp("Wed, 21 Oct 2015 07:28:00 GMT")
        later = derive_timestamp("Wed, 21 Oct 2015 07:28:01 GMT")
        assert later > earlier


class TestChecksum:
    def test_sha1_hex(self) -> None:
        assert checksum(b"") == "da39a3ee5e6b4b0d3255bfef95601890afd80709"

    def test_independent_calls(self) -> None:
        assert checksum(b"abc") == checksum(b"abc")
        assert checksum(b"abc") != checksum(b"abd")
