from .errors import (
    AbbrevIndexOutOfRangeError,
    BadMagicError,
    CorruptHeaderError,
    DecodeError,
    LimitExceededError,
    MalformedRuleError,
    NonMonotonicLeapSecondsError,
    TypeIndexOutOfRangeError,
    UnexpectedEofError,
    UnsupportedVersionError,
)
from .models import LeapSecond, LocalTimeType, Transition, TransitionKind
from .posix import AlternatingRule, FixedRule, PosixRule, parse_rule
from .tzif import Zone, assemble, from_path, parse_tzif
from .tzif_header import Limits

__all__ = [
    "AbbrevIndexOutOfRangeError",
    "AlternatingRule",
    "BadMagicError",
    "CorruptHeaderError",
    "DecodeError",
    "FixedRule",
    "LeapSecond",
    "LimitExceededError",
    "Limits",
    "LocalTimeType",
    "MalformedRuleError",
    "NonMonotonicLeapSecondsError",
    "PosixRule",
    "Transition",
    "TransitionKind",
    "TypeIndexOutOfRangeError",
    "UnexpectedEofError",
    "UnsupportedVersionError",
    "Zone",
    "assemble",
    "from_path",
    "parse_rule",
    "parse_tzif",
]
