# bnd/repacker.py

"""Rebuilds the data region of an archive from a replacement folder."""
import shutil
import sys
from pathlib import Path
from typing import Dict, List, Optional

from tqdm import tqdm

from bnd.archive import BNDArchive
from bnd.byte_source import ByteSource
from bnd.config import Config
from bnd.data_structures import DEFAULT_ALIGNMENT, RepackReport
from bnd.errors import SourceReadError, DestinationWriteError
from bnd.path_resolver import PathMap, resolve, path_for
from utils.file_utils import list_files_recursive, normalize_relative_path, get_repacked_path


def build_disk_index(input_root: Path) -> Dict[str, Path]:
    """Maps lower-cased forward-slash relative paths to files under input_root."""
    index = {normalize_relative_path(rel): absolute
             for rel, absolute in list_files_recursive(input_root)}
    print(f"[REPACK] Found {len(index)} files in input folder for repacking.", file=sys.stderr)
    return index


def align(offset: int, alignment: int) -> int:
    """Rounds offset up to the next multiple of alignment (a power of two)."""
    return (offset + alignment - 1) & ~(alignment - 1)


def repack(archive: BNDArchive, original: ByteSource, target: ByteSource, input_root: Path,
           path_map: Optional[PathMap] = None, alignment: int = DEFAULT_ALIGNMENT,
           show_progress: bool = False) -> RepackReport:
    """
    Rewrites the data region of target, which must start as a copy of original.

    Payloads are laid out from the archive's data start in their original
    order, each aligned; files found in input_root replace the stored bytes,
    all others are copied from original. The TOC is patched last and the
    target is cut at the end of the last payload.
    """
    if alignment <= 0 or alignment & (alignment - 1):
        raise ValueError(f"Alignment must be a power of two, got {alignment}")

    disk_index = build_disk_index(input_root)
    if path_map is None:
        path_map = resolve(archive)

    replaced: List[str] = []
    preserved: List[str] = []
    cursor = archive.chunks

    file_entries = archive.files_by_offset()
    for entry in tqdm(file_entries, desc="Repacking", unit="file", file=sys.stderr, disable=not show_progress):
        relative = path_for(entry, path_map).relative
        disk_path = disk_index.get(normalize_relative_path(relative))

        data = None
        if disk_path is not None:
            try:
                data = disk_path.read_bytes()
            except OSError as e:
                raise SourceReadError(f"Cannot read replacement file {disk_path}: {e}",
                                      entry_index=entry.identity.index, name=relative) from e
            if data:
                replaced.append(relative)
                print(f"[MATCH] >> {relative} = 0x{entry.hash:08X} -> [File Found]", file=sys.stderr)
            else:
                # A zero size record reads back as a directory
                print(f"[WARN] >> {relative} is empty, keeping original data", file=sys.stderr)
                data = None

        if data is None:
            try:
                data = original.read_exact(entry.file_offset, entry.file_size)
            except SourceReadError as e:
                raise SourceReadError(f"Original payload is truncated: {e}",
                                      offset=entry.file_offset, entry_index=entry.identity.index,
                                      name=entry.name) from e
            preserved.append(relative)
            print(f"[NO MATCH] >> {relative} = 0x{entry.hash:08X} -> [Using Original Data]", file=sys.stderr)

        # Zero-fill up to the aligned position
        aligned = align(cursor, alignment)
        if aligned > cursor:
            target.write_at(cursor, b'\x00' * (aligned - cursor))
        cursor = aligned

        entry.place(cursor, len(data))
        target.write_at(cursor, data)
        cursor += len(data)

    # Remove stale bytes left over from the copied archive
    target.set_length(cursor)

    print("[UPDATE] Writing updated Table of Contents...", file=sys.stderr)
    archive.write_toc(target)

    return RepackReport(None, replaced, preserved, cursor)


def repack_file(archive_path: Path, input_dir: Path, output_path: Optional[Path] = None,
                config: Optional[Config] = None) -> RepackReport:
    """
    Writes <stem>_new.bnd beside the original archive with the payloads of
    input_dir. A failed run may leave a malformed output file behind.
    """
    config = config or Config()
    archive_path = Path(archive_path)
    if output_path is None:
        output_path = get_repacked_path(archive_path, config.output_suffix)
    output_path = Path(output_path)
    if output_path.resolve() == archive_path.resolve():
        raise DestinationWriteError(f"Output would overwrite the original archive {archive_path}")

    with archive_path.open('rb') as original_stream:
        original = ByteSource(original_stream, str(archive_path))
        archive = BNDArchive.load(original)
        print(f"[INDEX] Indexed {archive.total_entries} entries from '{archive_path.name}'.", file=sys.stderr)

        try:
            shutil.copyfile(archive_path, output_path)
        except OSError as e:
            raise DestinationWriteError(f"Cannot create {output_path}: {e}") from e
        print(f"[INIT] Created temporary file '{output_path.name}'.", file=sys.stderr)

        try:
            target_stream = output_path.open('r+b')
        except OSError as e:
            raise DestinationWriteError(f"Cannot open {output_path} for writing: {e}") from e
        with target_stream:
            target = ByteSource(target_stream, str(output_path))
            report = repack(archive, original, target, input_dir,
                            alignment=config.alignment, show_progress=config.show_progress)

    print(f"[SUCCESS] Repacked BND saved to '{output_path.name}'.", file=sys.stderr)
    return report._replace(output_path=output_path)
