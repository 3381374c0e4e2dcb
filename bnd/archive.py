# bnd/archive.py

"""BND archive model: header, info section, TOC and entry-info parsing."""
import struct
import sys
from pathlib import Path
from typing import Dict, List

from bnd.byte_source import ByteSource
from bnd.data_structures import (
    BND_MAGIC, HEADER_FORMAT, INFO_FORMAT, INFO_PADDING_SIZE, TOC_HEADER_FORMAT,
    TOC_RECORD_FORMAT, TOC_RECORD_SIZE, ENTRY_INFO_RESERVED_SIZE, BACK_POINTER_FORMAT,
    BNDHeader, InfoSection, EntryIdentity, BNDEntry
)
from bnd.errors import (
    FormatError, InvalidMagicError, TruncatedHeaderError, TruncatedNameError, SourceReadError
)
from utils.file_utils import format_size

NAME_READ_CHUNK = 64


class BNDArchive:
    """
    In-memory view of a BND archive.

    Layout:
      header        u32 magic, i32 version, i32 info_offset, i32 table_offset
      info section  i32 entry_info_area, i32 chunks, 8 bytes padding
      TOC           i32 total_files, i32 total_entries,
                    total_entries * (u32 hash, i32 entry_info_offset,
                                     i32 file_offset, i32 file_size)
      entry info    3 reserved bytes, i32 back pointer, UTF-8 name, NUL
      data region   raw payloads starting at chunks
    """

    def __init__(self, header: BNDHeader, info: InfoSection, total_files: int,
                 entries: List[BNDEntry], source_name: str = "", source_size: int = 0):
        self.header = header
        self.info = info
        self.total_files = total_files
        self.entries = entries
        self.source_name = source_name
        self.source_size = source_size

    @property
    def chunks(self) -> int:
        """Start of the data region."""
        return self.info.chunks

    @property
    def total_entries(self) -> int:
        return len(self.entries)

    @classmethod
    def load(cls, source: ByteSource) -> 'BNDArchive':
        """Parses header, info section, TOC and names from a byte source."""
        header = BNDHeader(*cls._unpack_structure(source, HEADER_FORMAT, 0, "header"))
        if header.magic != BND_MAGIC:
            raise InvalidMagicError(
                f"Invalid BND magic value 0x{header.magic:08X}, expected 0x{BND_MAGIC:08X}", offset=0)

        entry_info_area, chunks = cls._unpack_structure(source, INFO_FORMAT, header.info_offset,
                                                        "info section")
        padding_offset = header.info_offset + struct.calcsize(INFO_FORMAT)
        padding = source.read_at(padding_offset, INFO_PADDING_SIZE)
        if len(padding) != INFO_PADDING_SIZE:
            raise TruncatedHeaderError("Archive ends inside the info section padding",
                                       offset=padding_offset)
        info = InfoSection(entry_info_area, chunks, padding)

        total_files, total_entries = cls._unpack_structure(source, TOC_HEADER_FORMAT,
                                                           header.table_offset, "TOC header")
        if total_entries < 0:
            raise TruncatedHeaderError(f"Negative TOC entry count {total_entries}",
                                       offset=header.table_offset)

        # Read each record in TOC
        records = []
        position = header.table_offset + struct.calcsize(TOC_HEADER_FORMAT)
        for i in range(total_entries):
            raw = source.read_at(position, TOC_RECORD_SIZE)
            if len(raw) != TOC_RECORD_SIZE:
                raise TruncatedHeaderError("Archive ends inside the TOC", offset=position, entry_index=i)
            record = struct.unpack(TOC_RECORD_FORMAT, raw)
            if record[3] < 0 or record[2] < 0:
                raise FormatError("Negative file offset or size in TOC record", offset=position,
                                  entry_index=i)
            if record[1] < 0:
                raise FormatError(f"Negative entry-info offset {record[1]} in TOC record",
                                  offset=position, entry_index=i)
            records.append((position, record))
            position += TOC_RECORD_SIZE

        # Parse entry info for each record
        entries = []
        for i, (table_position, (hash_value, entry_info_offset, file_offset, file_size)) in enumerate(records):
            reserved, back_pointer, name = cls._read_entry_info(source, entry_info_offset, i)
            identity = EntryIdentity(
                index=i,
                table_position=table_position,
                hash=hash_value,
                entry_info_offset=entry_info_offset,
                reserved=reserved,
                back_pointer=back_pointer,
                name=name
            )
            # Raw on-disk offset is kept; write_toc zeroes it for directories
            entries.append(BNDEntry(identity, file_offset, file_size))

        archive = cls(header, info, total_files, entries, source.name, source.size())
        print(f"[BND] Loaded {len(entries)} entries ({len(archive.files())} files, "
              f"{len(archive.directories())} directories) from {source.name} "
              f"({format_size(archive.source_size)})", file=sys.stderr)
        return archive

    @classmethod
    def load_from_file(cls, path: Path) -> 'BNDArchive':
        with Path(path).open('rb') as stream:
            return cls.load(ByteSource(stream, str(path)))

    @staticmethod
    def _unpack_structure(source: ByteSource, fmt: str, offset: int, what: str):
        try:
            return source.unpack_at(fmt, offset)
        except SourceReadError as e:
            raise TruncatedHeaderError(f"Archive ends inside the {what}", offset=offset) from e

    @staticmethod
    def _read_entry_info(source: ByteSource, offset: int, index: int):
        prefix_size = ENTRY_INFO_RESERVED_SIZE + struct.calcsize(BACK_POINTER_FORMAT)
        prefix = source.read_at(offset, prefix_size)
        if len(prefix) != prefix_size:
            raise TruncatedNameError("Archive ends inside an entry-info record",
                                     offset=offset, entry_index=index)
        reserved = prefix[:ENTRY_INFO_RESERVED_SIZE]
        back_pointer = struct.unpack(BACK_POINTER_FORMAT, prefix[ENTRY_INFO_RESERVED_SIZE:])[0]

        # Null-terminated name, read in small chunks
        name_bytes = bytearray()
        position = offset + prefix_size
        while True:
            chunk = source.read_at(position, NAME_READ_CHUNK)
            if not chunk:
                raise TruncatedNameError("Name is not null-terminated before end of archive",
                                         offset=offset + prefix_size, entry_index=index)
            terminator = chunk.find(b'\x00')
            if terminator >= 0:
                name_bytes.extend(chunk[:terminator])
                break
            name_bytes.extend(chunk)
            position += len(chunk)
        return reserved, back_pointer, name_bytes.decode('utf-8', errors='replace')

    # --- Views ---

    def directories(self) -> List[BNDEntry]:
        return [e for e in self.entries if e.is_directory]

    def files(self) -> List[BNDEntry]:
        return [e for e in self.entries if not e.is_directory]

    def files_by_offset(self) -> List[BNDEntry]:
        """File entries in ascending original payload offset (stable for ties)."""
        return sorted(self.files(), key=lambda e: e.file_offset)

    # --- TOC serialization ---

    def write_toc(self, sink: ByteSource):
        """
        Rewrites every TOC record in place. Hash and entry-info offset are
        written back unchanged; directories always get offset 0 and size 0.
        """
        for entry in self.entries:
            if entry.is_directory:
                entry.place(0, 0)
            record = struct.pack(TOC_RECORD_FORMAT, entry.hash, entry.identity.entry_info_offset,
                                 entry.file_offset, entry.file_size)
            sink.write_at(entry.identity.table_position, record)

    # --- Reporting ---

    def describe(self) -> List[str]:
        """Human-readable dump of header, info section and all entries."""
        h, info = self.header, self.info
        lines = [
            f"[0x{h.magic:08X}] | [{h.version}] | [0x{h.info_offset:X}] | [0x{h.table_offset:X}]",
            f"[0x{info.entry_info_area:X}] | [0x{info.chunks:X}]",
        ]
        for entry in self.entries:
            ident = entry.identity
            reserved_hex = ' '.join(f"{b:02X}" for b in ident.reserved)
            kind = "[DIR]" if entry.is_directory else "[FILE]"
            lines.append(
                f"Entry({ident.index + 1}) -> Hash: 0x{ident.hash:08X} | EntryInfo: 0x{ident.entry_info_offset:X} | "
                f"FileOff: 0x{entry.file_offset:X} | Size: {entry.file_size} | Unk: {reserved_hex} | "
                f"Back: 0x{ident.back_pointer:X} | Name: \"{ident.name}\" {kind}"
            )
        return lines

    def to_dict(self) -> Dict:
        return {
            "source": self.source_name,
            "size": self.source_size,
            "header": {
                "magic": self.header.magic,
                "version": self.header.version,
                "info_offset": self.header.info_offset,
                "table_offset": self.header.table_offset,
            },
            "info": {
                "entry_info_area": self.info.entry_info_area,
                "chunks": self.info.chunks,
            },
            "total_files": self.total_files,
            "total_entries": self.total_entries,
            "entries": [
                {
                    "index": e.identity.index,
                    "name": e.name,
                    "hash": f"0x{e.hash:08X}",
                    "entry_info_offset": e.identity.entry_info_offset,
                    "file_offset": e.file_offset,
                    "file_size": e.file_size,
                    "reserved": e.identity.reserved.hex(),
                    "back_pointer": e.identity.back_pointer,
                    "type": "dir" if e.is_directory else "file",
                }
                for e in self.entries
            ],
        }
