"""
Parser for the POSIX TZ string stored in the footer of version 2+ TZif files.

The grammar is::

    std offset [dst [offset] ,start[/time],end[/time]]

where ``std``/``dst`` are either an alphabetic run or a ``<...>`` quoted name,
``offset`` is ``[+|-]hh[:mm[:ss]]`` counted positive WEST of UTC, and
``start``/``end`` take one of three forms:

    Jn     julian day 1..365, February 29th is never counted
    n      zero-based day of the year 0..365, February 29th is counted
    Mm.w.d day d (0 = Sunday) of week w (1..5, 5 = last) of month m

The transition ``time`` defaults to 02:00:00 local time and may range from
-167 to 167 hours.
"""

import logging
import string
from dataclasses import dataclass
from datetime import datetime, timedelta

from .errors import MalformedRuleError
from .models import LocalTimeType, timestamp_to_utc

_LOGGER = logging.getLogger(__name__)

_DEFAULT_TRANSITION_TIME_SECS = 2 * 3600
_DEFAULT_DST_SAVE_SECS = 3600
_MAX_OFFSET_HOURS = 24
_MAX_TRANSITION_HOURS = 167
_QUOTED_NAME_CHARS = string.ascii_letters + string.digits + "+-"
_OFFSET_START_CHARS = string.digits + "+-"


def _is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


@dataclass(frozen=True)
class PosixTzJulianDateTime:
    day_of_year: int  # 1..365, never counts Feb 29
    time_secs: int = _DEFAULT_TRANSITION_TIME_SECS

    def to_datetime(self, year: int) -> datetime:
        # Jn excludes Feb 29. On leap years, days >= 60 are shifted by +1.
        day_index = self.day_of_year - 1
        if _is_leap_year(year) and self.day_of_year >= 60:
            day_index += 1
        return datetime(year, 1, 1) + timedelta(days=day_index, seconds=self.time_secs)


@dataclass(frozen=True)
class PosixTzOrdinalDateTime:
    day_index: int  # 0..365 (includes Feb 29)
    time_secs: int = _DEFAULT_TRANSITION_TIME_SECS

    def to_datetime(self, year: int) -> datetime:
        return datetime(year, 1, 1) + timedelta(
            days=self.day_index, seconds=self.time_secs
        )


@dataclass(frozen=True)
class PosixTzDateTime:
    month: int
    week: int  # 1..5 (5 = last)
    weekday: int  # POSIX: Sunday=0 ... Saturday=6
    time_secs: int = _DEFAULT_TRANSITION_TIME_SECS

    def to_datetime(self, year: int) -> datetime:
        # Convert POSIX weekday (Sun=0..Sat=6) to Python weekday (Mon=0..Sun=6)
        py_weekday = (self.weekday - 1) % 7

        first_of_month = datetime(year, self.month, 1)
        delta = (py_weekday - first_of_month.weekday()) % 7
        first_occurrence = first_of_month + timedelta(days=delta)

        if self.week < 5:
            target = first_occurrence + timedelta(days=7 * (self.week - 1))
        else:
            # Last occurrence: step to next month, back up to the last py_weekday
            if self.month == 12:
                next_month_first = datetime(year + 1, 1, 1)
            else:
                next_month_first = datetime(year, self.month + 1, 1)
            last_of_month = next_month_first - timedelta(days=1)
            back = (last_of_month.weekday() - py_weekday) % 7
            target = last_of_month - timedelta(days=back)

        return target + timedelta(seconds=self.time_secs)


RuleDate = PosixTzDateTime | PosixTzJulianDateTime | PosixTzOrdinalDateTime


@dataclass(frozen=True)
class FixedRule:
    """One offset forever, no daylight saving time."""

    standard: LocalTimeType
    posix_string: str = ""

    def local_time_type_at(self, timestamp: int) -> LocalTimeType:
        return self.standard


@dataclass(frozen=True)
class AlternatingRule:
    """
    Standard and daylight saving time alternating every year. `dst_start` is
    expressed in local standard time, `dst_end` in local daylight time.
    """

    standard: LocalTimeType
    daylight: LocalTimeType
    dst_start: RuleDate
    dst_end: RuleDate
    save_secs: int
    posix_string: str = ""

    def is_dst_at(self, timestamp: int) -> bool:
        # Compare in naive local standard time
        local_std = timestamp_to_utc(
            timestamp + self.standard.utc_offset_secs
        ).replace(tzinfo=None)
        start = self.dst_start.to_datetime(local_std.year)
        end = self.dst_end.to_datetime(local_std.year) - timedelta(
            seconds=self.save_secs
        )
        if start < end:
            return start <= local_std < end
        # wrap over new year (southern hemisphere rule)
        return local_std >= start or local_std < end

    def local_time_type_at(self, timestamp: int) -> LocalTimeType:
        return self.daylight if self.is_dst_at(timestamp) else self.standard


PosixRule = FixedRule | AlternatingRule


class _RuleParser:
    """Recursive-descent parser over an isolated TZ string."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def _error(self, message: str) -> MalformedRuleError:
        return MalformedRuleError(f"{message} in TZ string {self._text!r}", self._pos)

    def _peek(self) -> str:
        return self._text[self._pos : self._pos + 1]

    def _accept(self, char: str) -> bool:
        if self._peek() == char:
            self._pos += 1
            return True
        return False

    def _expect(self, char: str) -> None:
        if not self._accept(char):
            raise self._error(f"Expected {char!r}")

    def _at_end(self) -> bool:
        return self._pos >= len(self._text)

    def parse(self) -> PosixRule:
        std_name = self._name()
        if self._at_end() or self._peek() not in _OFFSET_START_CHARS:
            raise self._error(f"Missing standard offset after {std_name!r}")
        std_offset = self._offset()
        standard = LocalTimeType(std_offset, False, std_name)
        if self._at_end():
            return FixedRule(standard, self._text)

        dst_name = self._name()
        if not self._at_end() and self._peek() != ",":
            dst_offset = self._offset()
        else:
            dst_offset = std_offset + _DEFAULT_DST_SAVE_SECS
        daylight = LocalTimeType(dst_offset, True, dst_name)

        if self._at_end():
            raise self._error(f"Missing DST start and end dates for {dst_name!r}")
        self._expect(",")
        dst_start = self._rule_date()
        self._expect(",")
        dst_end = self._rule_date()
        if not self._at_end():
            raise self._error("Unexpected trailing data")

        return AlternatingRule(
            standard,
            daylight,
            dst_start,
            dst_end,
            dst_offset - std_offset,
            self._text,
        )

    def _name(self) -> str:
        start = self._pos
        if self._accept("<"):
            while not self._at_end() and self._peek() in _QUOTED_NAME_CHARS:
                self._pos += 1
            name = self._text[start + 1 : self._pos]
            self._expect(">")
        else:
            while not self._at_end() and self._peek() in string.ascii_letters:
                self._pos += 1
            name = self._text[start : self._pos]
        if not name:
            raise self._error("Expected a time zone name")
        return name

    def _number(self, max_digits: int) -> int:
        start = self._pos
        while (
            not self._at_end()
            and self._peek() in string.digits
            and self._pos - start < max_digits
        ):
            self._pos += 1
        if self._pos == start:
            raise self._error("Expected a number")
        return int(self._text[start : self._pos])

    def _hms(self, max_hour_digits: int, max_hours: int) -> int:
        """[+|-]hh[:mm[:ss]] as signed seconds."""
        sign = -1 if self._peek() == "-" else 1
        if self._peek() in ("+", "-"):
            self._pos += 1
        hours = self._number(max_hour_digits)
        minutes = seconds = 0
        if self._accept(":"):
            minutes = self._two_digits()
            if self._accept(":"):
                seconds = self._two_digits()
        if hours > max_hours:
            raise self._error(f"Hours must be in [0, {max_hours}]")
        if not (0 <= minutes < 60 and 0 <= seconds < 60):
            raise self._error("Minutes/seconds must be in [0, 59]")
        return sign * (hours * 3600 + minutes * 60 + seconds)

    def _two_digits(self) -> int:
        start = self._pos
        value = self._number(2)
        if self._pos - start != 2:
            raise self._error("Expected two digits")
        return value

    def _offset(self) -> int:
        # POSIX sign convention: positive means WEST of UTC => negative seconds
        return -self._hms(2, _MAX_OFFSET_HOURS)

    def _rule_date(self) -> RuleDate:
        date: RuleDate
        if self._accept("M"):
            month = self._number(2)
            self._expect(".")
            week = self._number(1)
            self._expect(".")
            weekday = self._number(1)
            if not (1 <= month <= 12 and 1 <= week <= 5 and 0 <= weekday <= 6):
                raise self._error(f"Invalid M{month}.{week}.{weekday}")
            date = PosixTzDateTime(month, week, weekday)
        elif self._accept("J"):
            day = self._number(3)
            if not 1 <= day <= 365:
                raise self._error(f"J<n> must be 1..365, got {day}")
            date = PosixTzJulianDateTime(day)
        else:
            day = self._number(3)
            if not 0 <= day <= 365:
                raise self._error(f"<n> must be 0..365, got {day}")
            date = PosixTzOrdinalDateTime(day)

        if self._accept("/"):
            time_secs = self._hms(3, _MAX_TRANSITION_HOURS)
            date = _with_time(date, time_secs)
        return date


def _with_time(date: RuleDate, time_secs: int) -> RuleDate:
    if isinstance(date, PosixTzDateTime):
        return PosixTzDateTime(date.month, date.week, date.weekday, time_secs)
    if isinstance(date, PosixTzJulianDateTime):
        return PosixTzJulianDateTime(date.day_of_year, time_secs)
    return PosixTzOrdinalDateTime(date.day_index, time_secs)


def parse_rule(text: bytes | str) -> PosixRule | None:
    """
    Parse the TZ string found between the two newlines of a TZif footer.
    An empty string means the zone has no rule beyond its last transition.
    """
    if isinstance(text, (bytes, bytearray, memoryview)):
        try:
            text = bytes(text).decode("ascii")
        except UnicodeDecodeError as exc:
            raise MalformedRuleError(
                f"TZ string is not ASCII: {bytes(text)!r}", exc.start
            ) from exc
    if not text:
        return None
    rule = _RuleParser(text).parse()
    _LOGGER.debug("Parsed TZ string %r as %r", text, rule)
    return rule
