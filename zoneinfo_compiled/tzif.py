import bisect
import logging
import os
from dataclasses import dataclass
from operator import attrgetter

from .errors import MalformedRuleError
from .models import LeapSecond, LocalTimeType, Transition
from .posix import PosixRule, parse_rule
from .reader import ByteReader
from .tzif_body import (
    EXTENDED_TIME_WIDTH,
    LEGACY_TIME_WIDTH,
    RawBlock,
    decode_block,
)
from .tzif_header import Limits

_LOGGER = logging.getLogger(__name__)

_NEWLINE = 0x0A


@dataclass(frozen=True)
class Zone:
    """
    The decoded contents of a TZif file. Holds no references into the input
    buffer.
    """

    version: int
    transitions: tuple[Transition, ...]
    local_time_types: tuple[LocalTimeType, ...]
    leap_seconds: tuple[LeapSecond, ...]
    rule: PosixRule | None = None
    """Behavior strictly after the last transition, if known."""

    @property
    def initial_type(self) -> LocalTimeType | None:
        """
        The type in effect before the first transition: the first standard
        time type if present, otherwise the first type.
        """
        if not self.local_time_types:
            return None
        return next(
            (tt for tt in self.local_time_types if not tt.is_dst),
            self.local_time_types[0],
        )

    @property
    def abbreviations(self) -> list[str]:
        seen: list[str] = []
        for tt in self.local_time_types:
            if tt.abbreviation not in seen:
                seen.append(tt.abbreviation)
        return seen

    def find_transition_index(self, timestamp: int) -> int | None:
        # Index of the last transition at or before the given timestamp
        index = bisect.bisect_right(self.transitions, timestamp, key=attrgetter("at"))
        if index == 0:
            return None
        return index - 1

    def local_time_type_at(self, timestamp: int) -> LocalTimeType | None:
        index = self.find_transition_index(timestamp)
        if index is None:
            if not self.transitions and self.rule is not None:
                return self.rule.local_time_type_at(timestamp)
            return self.initial_type

        transition = self.transitions[index]
        if (
            index == len(self.transitions) - 1
            and timestamp > transition.at
            and self.rule is not None
        ):
            return self.rule.local_time_type_at(timestamp)
        return transition.type


def assemble(
    legacy_block: RawBlock,
    extended_block: RawBlock | None = None,
    rule: PosixRule | None = None,
) -> Zone:
    """
    Merge decoded blocks into a Zone. The extended block, when present,
    supersedes the legacy block entirely.
    """
    block = extended_block if extended_block is not None else legacy_block
    local_time_types = tuple(
        block.resolve_type(i) for i in range(len(block.local_time_types))
    )

    transitions: list[Transition] = []
    for at, type_index in zip(block.transition_times, block.transition_types):
        if transitions and at <= transitions[-1].at:
            # Out of order or repeated instant: the later record wins
            _LOGGER.warning(
                "Transition at %d does not follow %d; keeping the later record",
                at,
                transitions[-1].at,
            )
            while transitions and transitions[-1].at >= at:
                transitions.pop()
        transitions.append(
            Transition(
                at,
                local_time_types[type_index],
                block.transition_kind(type_index),
            )
        )

    return Zone(
        version=legacy_block.header.version.number,
        transitions=tuple(transitions),
        local_time_types=local_time_types,
        leap_seconds=block.leap_seconds,
        rule=rule,
    )


def _read_footer(reader: ByteReader) -> bytes:
    """The TZ string enclosed by the two newlines after the extended block."""
    offset = reader.position
    if reader.read_u8() != _NEWLINE:
        raise MalformedRuleError("Footer does not start with a newline", offset)
    rest = bytes(reader.read_bytes(reader.remaining))
    end = rest.find(b"\n")
    if end == -1:
        raise MalformedRuleError("Footer is not terminated by a newline", offset)
    return rest[:end]


def parse_tzif(data: bytes, limits: Limits | None = None) -> Zone:
    """Decode a complete TZif buffer."""
    reader = ByteReader(data)
    legacy_block = decode_block(reader, LEGACY_TIME_WIDTH, limits)
    if not legacy_block.header.version.has_extended_block:
        return assemble(legacy_block)

    extended_block = decode_block(reader, EXTENDED_TIME_WIDTH, limits)
    rule_text = _read_footer(reader)
    _LOGGER.debug("Footer TZ string: %r", rule_text)
    return assemble(legacy_block, extended_block, parse_rule(rule_text))


def from_path(path: str | os.PathLike, limits: Limits | None = None) -> Zone:
    """Read a TZif file directly from a filesystem path."""
    with open(path, "rb") as file:
        return parse_tzif(file.read(), limits)
