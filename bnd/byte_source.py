# bnd/byte_source.py

"""Random-access reads and writes over a seekable binary stream."""
import os
import struct
from typing import BinaryIO, Tuple

from bnd.errors import SourceReadError, DestinationWriteError


class ByteSource:
    """
    Thin positional wrapper around an open binary file object.

    Works with real files as well as io.BytesIO, which keeps the archive
    logic independent of where the bytes live.
    """

    def __init__(self, stream: BinaryIO, name: str = ""):
        self.stream = stream
        self.name = name or getattr(stream, 'name', '<memory>')

    def size(self) -> int:
        current = self.stream.tell()
        end = self.stream.seek(0, os.SEEK_END)
        self.stream.seek(current)
        return end

    def read_at(self, offset: int, length: int) -> bytes:
        """Reads up to length bytes at offset (may return fewer at EOF)."""
        if offset < 0:
            raise SourceReadError(f"Negative read position in {self.name}", offset=offset)
        self.stream.seek(offset)
        return self.stream.read(length)

    def read_exact(self, offset: int, length: int) -> bytes:
        data = self.read_at(offset, length)
        if len(data) != length:
            raise SourceReadError(
                f"Expected {length} bytes but only {len(data)} available in {self.name}",
                offset=offset)
        return data

    def unpack_at(self, fmt: str, offset: int) -> Tuple:
        return struct.unpack(fmt, self.read_exact(offset, struct.calcsize(fmt)))

    def write_at(self, offset: int, data: bytes) -> None:
        try:
            self.stream.seek(offset)
            self.stream.write(data)
        except OSError as e:
            raise DestinationWriteError(f"Failed to write {len(data)} bytes to {self.name}: {e}",
                                        offset=offset) from e

    def set_length(self, length: int) -> None:
        try:
            self.stream.truncate(length)
        except OSError as e:
            raise DestinationWriteError(f"Failed to truncate {self.name}: {e}", offset=length) from e
