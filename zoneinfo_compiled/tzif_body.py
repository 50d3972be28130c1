import logging
from dataclasses import dataclass

from .errors import (
    AbbrevIndexOutOfRangeError,
    NonMonotonicLeapSecondsError,
    TypeIndexOutOfRangeError,
)
from .models import LeapSecond, LocalTimeType, TimeTypeInfo, TransitionKind
from .reader import ByteReader
from .tzif_header import LOCAL_TIME_TYPE_SIZE, Limits, TZifHeader

_LOGGER = logging.getLogger(__name__)

LEGACY_TIME_WIDTH = 4
EXTENDED_TIME_WIDTH = 8

_TIME_FORMATS = {
    LEGACY_TIME_WIDTH: "i",  # 32-bit in the v1 block
    EXTENDED_TIME_WIDTH: "q",  # 64-bit in the v2+ block
}


@dataclass(frozen=True)
class RawBlock:
    """
    The undecorated contents of one TZif data block. Transition types and
    abbreviation indices are already bounds-checked.
    """

    header: TZifHeader
    transition_times: tuple[int, ...]
    transition_types: tuple[int, ...]
    local_time_types: tuple[TimeTypeInfo, ...]
    abbreviations: bytes
    leap_seconds: tuple[LeapSecond, ...]
    wall_standard_flags: tuple[bool, ...]
    is_utc_flags: tuple[bool, ...]

    def get_abbrev_by_index(self, index: int) -> str:
        if index < 0 or index >= len(self.abbreviations):
            raise IndexError("Index out of range")
        end = self.abbreviations.find(b"\x00", index)
        if end == -1:
            end = len(self.abbreviations)
        return self.abbreviations[index:end].decode("utf-8", errors="replace")

    def resolve_type(self, type_index: int) -> LocalTimeType:
        ttinfo = self.local_time_types[type_index]
        return LocalTimeType(
            ttinfo.utc_offset_secs,
            ttinfo.is_dst,
            self.get_abbrev_by_index(ttinfo.abbrev_index),
        )

    def transition_kind(self, type_index: int) -> TransitionKind:
        return TransitionKind.from_flags(
            self.wall_standard_flags[type_index], self.is_utc_flags[type_index]
        )

    @classmethod
    def read(
        cls, reader: ByteReader, header: TZifHeader, time_width: int
    ) -> "RawBlock":
        time_format = _TIME_FORMATS[time_width]

        # Parse transition times
        transition_times = reader.read_array(time_format, header.transitions_count)

        # Parse local time type indices; validated once the type table is known
        types_offset = reader.position
        transition_types = reader.read_array("B", header.transitions_count)

        # Parse ttinfo structures
        local_time_types = cls._read_ttinfo_structures(
            reader, header.local_time_type_count, header.timezone_abbrev_byte_count
        )
        cls._check_transition_types(
            transition_types, len(local_time_types), types_offset
        )

        # Parse time zone designation strings
        abbreviations = reader.read_cstring_table(header.timezone_abbrev_byte_count)

        # Parse leap second data
        leap_seconds = cls._read_leap_seconds(
            reader, header.leap_second_count, time_format
        )

        # Parse standard/wall and UT/local indicators
        wall_standard_flags = cls._read_indicators(
            reader, header.wall_standard_flag_count, header.local_time_type_count
        )
        is_utc_flags = cls._read_indicators(
            reader, header.is_utc_flag_count, header.local_time_type_count
        )

        return cls(
            header,
            transition_times,
            transition_types,
            local_time_types,
            abbreviations,
            leap_seconds,
            wall_standard_flags,
            is_utc_flags,
        )

    @classmethod
    def _check_transition_types(
        cls, transition_types: tuple[int, ...], typecnt: int, offset: int
    ) -> None:
        for i, type_index in enumerate(transition_types):
            if type_index >= typecnt:
                raise TypeIndexOutOfRangeError(
                    f"Transition {i} references local time type {type_index} "
                    f"but only {typecnt} are defined",
                    offset + i,
                )

    @classmethod
    def _read_ttinfo_structures(
        cls, reader: ByteReader, typecnt: int, charcnt: int
    ) -> tuple[TimeTypeInfo, ...]:
        ttinfos = []
        for _ in range(typecnt):
            offset = reader.position
            utc_offset_secs = reader.read_be_i32()
            is_dst = reader.read_u8() != 0
            abbrev_index = reader.read_u8()
            if abbrev_index >= charcnt:
                raise AbbrevIndexOutOfRangeError(
                    f"Abbreviation index {abbrev_index} is outside the "
                    f"{charcnt}-byte abbreviation table",
                    offset + LOCAL_TIME_TYPE_SIZE - 1,
                )
            ttinfos.append(TimeTypeInfo(utc_offset_secs, is_dst, abbrev_index))
        return tuple(ttinfos)

    @classmethod
    def _read_leap_seconds(
        cls, reader: ByteReader, count: int, time_format: str
    ) -> tuple[LeapSecond, ...]:
        # Each leap-second entry is a pair: (transition_time, correction)
        leaps: list[LeapSecond] = []
        for _ in range(count):
            offset = reader.position
            (transition_time,) = reader.read_array(time_format, 1)
            correction = reader.read_be_i32()
            if leaps and transition_time <= leaps[-1].transition_time:
                raise NonMonotonicLeapSecondsError(
                    f"Leap second at {transition_time} does not follow "
                    f"{leaps[-1].transition_time}",
                    offset,
                )
            leaps.append(LeapSecond(transition_time, correction))
        return tuple(leaps)

    @classmethod
    def _read_indicators(
        cls, reader: ByteReader, count: int, typecnt: int
    ) -> tuple[bool, ...]:
        # One flag per local time type; a count of zero means all false
        flags = [flag != 0 for flag in reader.read_bytes(count)]
        flags.extend([False] * (typecnt - count))
        return tuple(flags[:typecnt])


def decode_block(
    reader: ByteReader, time_width: int, limits: Limits | None = None
) -> RawBlock:
    """
    Decode one header plus data block starting at the reader's position.
    `time_width` is 4 for the legacy block and 8 for the extended block.
    """
    if time_width not in _TIME_FORMATS:
        raise ValueError(f"Unsupported time width: {time_width}")

    header = TZifHeader.read(reader)
    (limits or Limits.none()).verify(header)
    header.check_bounds(reader.remaining, time_width)
    block = RawBlock.read(reader, header, time_width)
    _LOGGER.debug(
        "Decoded %d-byte-time block: %d transitions, %d types, %d leap seconds",
        time_width,
        len(block.transition_times),
        len(block.local_time_types),
        len(block.leap_seconds),
    )
    return block
