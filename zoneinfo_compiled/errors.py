class DecodeError(ValueError):
    """
    Raised when a TZif buffer cannot be decoded.
    """

    def __init__(self, message: str, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)
        self.offset = offset


class UnexpectedEofError(DecodeError):
    pass


class BadMagicError(DecodeError):
    pass


class UnsupportedVersionError(DecodeError):
    pass


class CorruptHeaderError(DecodeError):
    pass


class LimitExceededError(CorruptHeaderError):
    pass


class TypeIndexOutOfRangeError(DecodeError):
    pass


class AbbrevIndexOutOfRangeError(DecodeError):
    pass


class NonMonotonicLeapSecondsError(DecodeError):
    pass


class MalformedRuleError(DecodeError):
    """
    Raised when the POSIX TZ string in the footer does not follow the grammar.
    The offset is a character position inside the rule text.
    """
