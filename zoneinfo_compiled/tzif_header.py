import enum
import logging
from dataclasses import dataclass

from .errors import (
    BadMagicError,
    CorruptHeaderError,
    LimitExceededError,
    UnsupportedVersionError,
)
from .reader import ByteReader

_LOGGER = logging.getLogger(__name__)

MAGIC = b"TZif"
HEADER_SIZE = 44
_RESERVED_SIZE = 15

# utoff (4 bytes), dst (1 byte), idx (1 byte)
LOCAL_TIME_TYPE_SIZE = 6
LEAP_CORRECTION_SIZE = 4


class TZifVersion(enum.Enum):
    """Version byte of a TZif header."""

    V1 = (b"\x00", 1)
    V2 = (b"2", 2)
    V3 = (b"3", 3)

    def __init__(self, version_byte: bytes, number: int) -> None:
        self.version_byte = version_byte
        self.number = number

    @property
    def has_extended_block(self) -> bool:
        return self is not TZifVersion.V1

    @classmethod
    def from_byte(cls, version_byte: bytes, offset: int | None = None) -> "TZifVersion":
        for version in cls:
            if version.version_byte == version_byte:
                return version
        raise UnsupportedVersionError(
            f"Unsupported TZif version byte {version_byte!r}", offset
        )


@dataclass(frozen=True)
class Limits:
    """
    Upper bounds on the header counts, checked before any section is read.
    None means unlimited.
    """

    max_transitions: int | None = None
    max_local_time_types: int | None = None
    max_abbreviation_chars: int | None = None
    max_leap_seconds: int | None = None

    @classmethod
    def none(cls) -> "Limits":
        return cls()

    @classmethod
    def sensible(cls) -> "Limits":
        # TZ_MAX_TIMES, TZ_MAX_TYPES, TZ_MAX_CHARS and TZ_MAX_LEAPS from tzfile.h
        return cls(
            max_transitions=2000,
            max_local_time_types=256,
            max_abbreviation_chars=50,
            max_leap_seconds=50,
        )

    def verify(self, header: "TZifHeader") -> None:
        checks = [
            ("transitions", header.transitions_count, self.max_transitions),
            (
                "local time types",
                header.local_time_type_count,
                self.max_local_time_types,
            ),
            ("leap seconds", header.leap_second_count, self.max_leap_seconds),
            ("UT/local flags", header.is_utc_flag_count, self.max_local_time_types),
            (
                "standard/wall flags",
                header.wall_standard_flag_count,
                self.max_local_time_types,
            ),
            (
                "abbreviation chars",
                header.timezone_abbrev_byte_count,
                self.max_abbreviation_chars,
            ),
        ]
        for name, count, limit in checks:
            if limit is not None and count > limit:
                raise LimitExceededError(
                    f"Too many {name} (tried to read {count}, limit was {limit})",
                    header.offset,
                )


@dataclass(frozen=True)
class TZifHeader:
    version: TZifVersion
    is_utc_flag_count: int
    wall_standard_flag_count: int
    leap_second_count: int
    transitions_count: int
    local_time_type_count: int
    timezone_abbrev_byte_count: int
    offset: int = 0
    """Byte offset of the header's magic in the input buffer."""

    @classmethod
    def read(cls, reader: ByteReader) -> "TZifHeader":
        offset = reader.position
        magic = bytes(reader.read_bytes(len(MAGIC)))
        if magic != MAGIC:
            raise BadMagicError(
                f"Invalid TZif file: expected magic {MAGIC!r}, found {magic!r}",
                offset,
            )
        version_offset = reader.position
        version = TZifVersion.from_byte(bytes(reader.read_bytes(1)), version_offset)
        reader.skip(_RESERVED_SIZE)

        # isutcnt, isstdcnt, leapcnt, timecnt, typecnt, charcnt
        counts = [reader.read_be_u32() for _ in range(6)]
        header = cls(version, *counts, offset=offset)
        _LOGGER.debug("Read TZif header at offset %d: %r", offset, header)
        return header

    def section_sizes(self, time_width: int) -> list[tuple[str, int]]:
        """Byte length of each data block section, in file order."""
        return [
            ("transition times", self.transitions_count * time_width),
            ("transition types", self.transitions_count),
            ("local time types", self.local_time_type_count * LOCAL_TIME_TYPE_SIZE),
            ("abbreviations", self.timezone_abbrev_byte_count),
            (
                "leap seconds",
                self.leap_second_count * (time_width + LEAP_CORRECTION_SIZE),
            ),
            ("standard/wall flags", self.wall_standard_flag_count),
            ("UT/local flags", self.is_utc_flag_count),
        ]

    def body_size(self, time_width: int) -> int:
        return sum(size for _, size in self.section_sizes(time_width))

    def check_bounds(self, remaining: int, time_width: int) -> None:
        """
        Reject counts whose sections cannot fit in the `remaining` bytes
        that follow the header.
        """
        end = 0
        for name, size in self.section_sizes(time_width):
            end += size
            if end > remaining:
                raise CorruptHeaderError(
                    f"Declared {name} section ends {end - remaining} bytes "
                    f"past the end of the buffer",
                    self.offset + HEADER_SIZE,
                )
