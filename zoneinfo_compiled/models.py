from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MIN_UTC = datetime.min.replace(tzinfo=timezone.utc)
_MAX_UTC = datetime.max.replace(tzinfo=timezone.utc)


def timestamp_to_utc(timestamp: int) -> datetime:
    """Aware UTC datetime for `timestamp`, clamped to the datetime range."""
    try:
        return _EPOCH + timedelta(seconds=timestamp)
    except OverflowError:
        return _MIN_UTC if timestamp < 0 else _MAX_UTC


class TransitionKind(Enum):
    """
    How a transition time was expressed when the zone was compiled, from the
    standard/wall and UT/local indicators of its local time type.
    """

    WALL = "wall"
    STANDARD = "standard"
    UTC = "utc"

    @classmethod
    def from_flags(cls, is_standard: bool, is_utc: bool) -> "TransitionKind":
        if is_utc:
            return cls.UTC
        if is_standard:
            return cls.STANDARD
        return cls.WALL


@dataclass(frozen=True)
class TimeTypeInfo:
    """
    Represents a ttinfo structure in a TZif file.
    """

    utc_offset_secs: int
    is_dst: bool
    abbrev_index: int


@dataclass(frozen=True)
class LocalTimeType:
    """
    A ttinfo with its abbreviation resolved to text.
    """

    utc_offset_secs: int
    is_dst: bool
    abbreviation: str

    @property
    def utc_offset(self) -> timedelta:
        return timedelta(seconds=self.utc_offset_secs)

    @property
    def utc_offset_hours(self) -> float:
        return self.utc_offset_secs / 3600


@dataclass(frozen=True)
class LeapSecond:
    """
    Represents a leap second entry in a TZif file: from `transition_time`
    onward the total correction is `correction` seconds.
    """

    transition_time: int
    correction: int


@dataclass(frozen=True)
class Transition:
    at: int
    type: LocalTimeType
    kind: TransitionKind = TransitionKind.WALL

    @property
    def transition_time_utc(self) -> datetime:
        return timestamp_to_utc(self.at)

    @property
    def utc_offset_secs(self) -> int:
        return self.type.utc_offset_secs

    @property
    def is_dst(self) -> bool:
        return self.type.is_dst

    @property
    def abbreviation(self) -> str:
        return self.type.abbreviation
