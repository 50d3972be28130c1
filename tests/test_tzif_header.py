import struct

import pytest

from tzif_builder import BlockSpec
from zoneinfo_compiled.errors import (
    BadMagicError,
    CorruptHeaderError,
    LimitExceededError,
    UnexpectedEofError,
    UnsupportedVersionError,
)
from zoneinfo_compiled.reader import ByteReader
from zoneinfo_compiled.tzif_header import HEADER_SIZE, Limits, TZifHeader, TZifVersion


def _header_bytes(version=b"2", counts=(0, 0, 0, 0, 1, 4), magic=b"TZif"):
    return struct.pack(">4sc15x6I", magic, version, *counts)


@pytest.mark.parametrize(
    "version_byte, expected",
    [(b"\x00", TZifVersion.V1), (b"2", TZifVersion.V2), (b"3", TZifVersion.V3)],
)
def test_read_header_versions(version_byte, expected):
    header = TZifHeader.read(ByteReader(_header_bytes(version_byte)))
    assert header.version is expected
    assert header.version.has_extended_block == (expected is not TZifVersion.V1)


def test_read_header_counts_in_file_order():
    reader = ByteReader(_header_bytes(counts=(1, 2, 3, 4, 5, 6)))
    header = TZifHeader.read(reader)

    assert reader.position == HEADER_SIZE
    assert header.is_utc_flag_count == 1
    assert header.wall_standard_flag_count == 2
    assert header.leap_second_count == 3
    assert header.transitions_count == 4
    assert header.local_time_type_count == 5
    assert header.timezone_abbrev_byte_count == 6
    assert header.offset == 0


def test_read_header_bad_magic():
    with pytest.raises(BadMagicError) as exc_info:
        TZifHeader.read(ByteReader(_header_bytes(magic=b"TZiF")))
    assert exc_info.value.offset == 0


@pytest.mark.parametrize("version_byte", [b"1", b"4", b" ", b"\xff"])
def test_read_header_unsupported_version(version_byte):
    with pytest.raises(UnsupportedVersionError) as exc_info:
        TZifHeader.read(ByteReader(_header_bytes(version_byte)))
    assert exc_info.value.offset == 4


@pytest.mark.parametrize("length", [0, 3, 4, 5, 20, 43])
def test_read_header_truncated(length):
    with pytest.raises(UnexpectedEofError):
        TZifHeader.read(ByteReader(_header_bytes()[:length]))


def test_section_sizes_depend_on_time_width():
    header = TZifHeader(TZifVersion.V2, 3, 3, 2, 10, 3, 12)
    legacy = dict(header.section_sizes(4))
    extended = dict(header.section_sizes(8))

    assert legacy["transition times"] == 40
    assert extended["transition times"] == 80
    assert legacy["leap seconds"] == 16
    assert extended["leap seconds"] == 24
    assert legacy["local time types"] == extended["local time types"] == 18
    assert header.body_size(4) == 40 + 10 + 18 + 12 + 16 + 3 + 3


def test_check_bounds_accepts_exact_fit():
    spec = BlockSpec(transitions=[(0, 0)], leap_seconds=[(10, 1)])
    data = spec.pack(b"\x00", 4)
    reader = ByteReader(data)
    header = TZifHeader.read(reader)
    header.check_bounds(reader.remaining, 4)
    assert header.body_size(4) == reader.remaining


def test_check_bounds_rejects_counts_past_end():
    header = TZifHeader(TZifVersion.V1, 0, 0, 0, 2**32 - 1, 1, 4)
    with pytest.raises(CorruptHeaderError) as exc_info:
        header.check_bounds(100, 4)
    assert "transition times" in str(exc_info.value)
    assert exc_info.value.offset == HEADER_SIZE


def test_check_bounds_names_first_overflowing_section():
    header = TZifHeader(TZifVersion.V1, 0, 0, 5, 0, 1, 4)
    # types (6) + abbreviations (4) fit, leap seconds (40) do not
    with pytest.raises(CorruptHeaderError, match="leap seconds"):
        header.check_bounds(20, 4)


def test_limits_none_accepts_anything():
    header = TZifHeader(TZifVersion.V2, 999, 999, 999, 99999, 999, 999)
    Limits.none().verify(header)


@pytest.mark.parametrize(
    "counts, message",
    [
        ((0, 0, 0, 2001, 1, 4), "transitions"),
        ((0, 0, 0, 0, 257, 4), "local time types"),
        ((0, 0, 51, 0, 1, 4), "leap seconds"),
        ((0, 0, 0, 0, 1, 51), "abbreviation chars"),
        ((300, 0, 0, 0, 1, 4), "UT/local flags"),
        ((0, 300, 0, 0, 1, 4), "standard/wall flags"),
    ],
)
def test_limits_sensible_rejects_large_counts(counts, message):
    header = TZifHeader(TZifVersion.V2, *counts)
    with pytest.raises(LimitExceededError, match=message):
        Limits.sensible().verify(header)
    assert issubclass(LimitExceededError, CorruptHeaderError)
