# bnd/extractor.py

"""Writes the payload of every file entry to a directory tree."""
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from bnd.archive import BNDArchive
from bnd.byte_source import ByteSource
from bnd.config import Config
from bnd.data_structures import ExtractReport
from bnd.errors import DestinationWriteError
from bnd.path_resolver import PathMap, resolve, path_for
from utils.file_utils import safe_output_path, ensure_parent, get_extract_root, format_size


def extract(archive: BNDArchive, source: ByteSource, output_root: Path,
            path_map: Optional[PathMap] = None, show_progress: bool = False) -> ExtractReport:
    """
    Extracts every file entry, in TOC order, below output_root.

    Directory entries are not created on their own; only the parents of
    written files are. A short read aborts the whole extraction, files
    already written stay on disk.
    """
    output_root = Path(output_root)
    if path_map is None:
        path_map = resolve(archive)

    try:
        output_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DestinationWriteError(f"Cannot create output folder {output_root}: {e}") from e
    print(f"[BND] Starting extraction to folder: {output_root}", file=sys.stderr)

    written: List[Path] = []
    unresolved: List[str] = []
    total_bytes = 0

    files = archive.files()
    for entry in tqdm(files, desc="Extracting", unit="file", file=sys.stderr, disable=not show_progress):
        resolved = path_for(entry, path_map)
        if not resolved.matched:
            unresolved.append(entry.name)

        target = safe_output_path(output_root, resolved.relative)
        if target is None:
            raise DestinationWriteError(f"Refusing to write outside {output_root}",
                                        entry_index=entry.identity.index, name=resolved.relative)

        data = source.read_exact(entry.file_offset, entry.file_size)
        try:
            ensure_parent(target)
            target.write_bytes(data)
        except OSError as e:
            raise DestinationWriteError(f"Failed to write {target}: {e}",
                                        entry_index=entry.identity.index, name=entry.name) from e

        written.append(target)
        total_bytes += len(data)

    print(f"[BND] Extraction completed: {len(written)} files, {format_size(total_bytes)}"
          f" ({len(unresolved)} unresolved)", file=sys.stderr)
    return ExtractReport(output_root, written, unresolved, total_bytes)


def extract_file(archive_path: Path, output_root: Optional[Path] = None,
                 config: Optional[Config] = None) -> ExtractReport:
    """Loads an archive from disk and extracts it next to the working directory."""
    config = config or Config()
    archive_path = Path(archive_path)
    if output_root is None:
        output_root = get_extract_root(archive_path, config.extract_root)

    with archive_path.open('rb') as stream:
        source = ByteSource(stream, str(archive_path))
        archive = BNDArchive.load(source)
        return extract(archive, source, output_root, show_progress=config.show_progress)
