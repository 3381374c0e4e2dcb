# bnd/data_structures.py

"""Core data structures for BND archives."""
from pathlib import Path
from typing import List, NamedTuple, Optional

# "BND\0" read as a little-endian u32
BND_MAGIC = 0x00444E42
DEFAULT_ALIGNMENT = 16

HEADER_FORMAT = '<Iiii'        # magic, version, info_offset, table_offset
INFO_FORMAT = '<ii'            # entry_info_area, chunks
INFO_PADDING_SIZE = 8
TOC_HEADER_FORMAT = '<ii'      # total_files, total_entries
TOC_RECORD_FORMAT = '<Iiii'    # hash, entry_info_offset, file_offset, file_size
TOC_RECORD_SIZE = 16
ENTRY_INFO_RESERVED_SIZE = 3
BACK_POINTER_FORMAT = '<i'


class BNDHeader(NamedTuple):
    """Fixed header at offset 0."""
    magic: int
    version: int
    info_offset: int
    table_offset: int


class InfoSection(NamedTuple):
    """Data layout pointers stored at header.info_offset."""
    entry_info_area: int
    chunks: int
    padding: bytes = b'\x00' * INFO_PADDING_SIZE


class EntryIdentity(NamedTuple):
    """The part of an entry that never changes, not even during repacking."""
    index: int
    table_position: int
    hash: int
    entry_info_offset: int
    reserved: bytes
    back_pointer: int
    name: str


class BNDEntry:
    """
    A TOC record joined with its entry-info record.

    Identity is frozen; only the placement (file_offset, file_size) may be
    rewritten, and only by the repacker.
    """
    __slots__ = ('identity', 'file_offset', 'file_size')

    def __init__(self, identity: EntryIdentity, file_offset: int, file_size: int):
        self.identity = identity
        self.file_offset = file_offset
        self.file_size = file_size

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def hash(self) -> int:
        return self.identity.hash

    @property
    def is_directory(self) -> bool:
        return self.file_size == 0

    def place(self, file_offset: int, file_size: int):
        self.file_offset = file_offset
        self.file_size = file_size

    def __repr__(self) -> str:
        kind = 'DIR' if self.is_directory else 'FILE'
        return (f"BNDEntry({self.identity.index}, {self.name!r}, hash=0x{self.hash:08X}, "
                f"offset=0x{self.file_offset:X}, size={self.file_size}, {kind})")


class ResolvedPath(NamedTuple):
    """Result of matching a file entry's hash against candidate paths."""
    hashed: str      # exact string whose CRC32 equals the stored hash
    relative: str    # forward-slash path used on disk
    matched: bool    # False when falling back to the bare stored name


class ExtractReport(NamedTuple):
    output_root: Path
    written: List[Path]
    unresolved: List[str]
    total_bytes: int


class RepackReport(NamedTuple):
    output_path: Optional[Path]
    replaced: List[str]
    preserved: List[str]
    final_size: int
