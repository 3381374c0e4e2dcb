# bnd/errors.py

"""Exception hierarchy for archive operations."""
from typing import Optional


class BNDError(Exception):
    """Base class for every error raised while handling a BND archive."""

    def __init__(self, message: str, offset: Optional[int] = None,
                 entry_index: Optional[int] = None, name: Optional[str] = None):
        self.offset = offset
        self.entry_index = entry_index
        self.name = name
        context = []
        if entry_index is not None:
            context.append(f"entry {entry_index}")
        if name:
            context.append(f"'{name}'")
        if offset is not None:
            context.append(f"offset 0x{offset:X}" if offset >= 0 else f"offset {offset}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class FormatError(BNDError):
    """The byte source is not a well-formed BND archive."""
    pass


class InvalidMagicError(FormatError):
    pass


class TruncatedHeaderError(FormatError):
    pass


class TruncatedNameError(FormatError):
    pass


class SourceReadError(BNDError):
    """A requested byte range lies beyond the end of the source."""
    pass


class DestinationWriteError(BNDError):
    """Writing output (extracted file or new archive) failed."""
    pass
