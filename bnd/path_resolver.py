# bnd/path_resolver.py

"""
Recovers the full relative path of every file entry.

Stored names are often bare file names while the TOC hash covers the whole
relative path, and the format keeps no parent pointer for files. The path is
recovered by hashing "directory name + file name" candidates until one
matches the stored hash.
"""
import re
import sys
from typing import Callable, Dict, Optional, Sequence, Tuple

from bnd.archive import BNDArchive
from bnd.crc32 import Crc32, default_engine
from bnd.data_structures import BNDEntry, ResolvedPath

# hash -> resolved path, built once per loaded archive
PathMap = Dict[int, ResolvedPath]

CandidateGenerator = Callable[[str, str], str]


def concat_plain(dir_name: str, file_name: str) -> str:
    return dir_name + file_name


def concat_with_separator(dir_name: str, file_name: str) -> str:
    return dir_name + "/" + file_name


# Tried in this order for every directory; the first hash match wins
DEFAULT_CANDIDATE_GENERATORS: Tuple[CandidateGenerator, ...] = (
    concat_plain,
    concat_with_separator,
)

_SLASH_RUN = re.compile(r'/{2,}')


def to_relative_path(*parts: str) -> str:
    """Joins name parts with single forward slashes."""
    joined = "/".join(p.replace("\\", "/").strip("/") for p in parts if p.strip("/\\"))
    return _SLASH_RUN.sub("/", joined)


def resolve_entry(entry: BNDEntry, directories: Sequence[BNDEntry], crc: Crc32,
                  generators: Sequence[CandidateGenerator] = DEFAULT_CANDIDATE_GENERATORS) -> ResolvedPath:
    """Finds the path whose CRC32 equals the entry's stored hash."""
    # Identity candidate: the stored name alone
    if crc.compute_text(entry.name) == entry.hash:
        return ResolvedPath(entry.name, to_relative_path(entry.name), True)

    for directory in directories:
        for generate in generators:
            candidate = generate(directory.name, entry.name)
            if crc.compute_text(candidate) == entry.hash:
                return ResolvedPath(candidate, to_relative_path(directory.name, entry.name), True)

    # No match: fall back to the bare stored name
    return ResolvedPath(entry.name, to_relative_path(entry.name), False)


def resolve(archive: BNDArchive,
            generators: Sequence[CandidateGenerator] = DEFAULT_CANDIDATE_GENERATORS,
            crc: Optional[Crc32] = None) -> PathMap:
    """
    Builds the hash -> path map for every file entry of an archive.

    Directories are scanned in TOC order, so the result is the same across
    runs and identical for extraction and repacking.
    """
    crc = crc or default_engine
    directories = archive.directories()
    path_map: PathMap = {}
    matched = 0

    for entry in archive.files():
        if entry.hash in path_map:
            continue
        resolved = resolve_entry(entry, directories, crc, generators)
        path_map[entry.hash] = resolved
        if resolved.matched:
            matched += 1
            print(f"[MATCH] >> {resolved.hashed} = 0x{entry.hash:08X}", file=sys.stderr)
        else:
            print(f"[NO MATCH] >> {entry.name} = 0x{entry.hash:08X}, using stored name", file=sys.stderr)

    print(f"[BND] Resolved {matched}/{len(path_map)} file paths against "
          f"{len(directories)} directories", file=sys.stderr)
    return path_map


def path_for(entry: BNDEntry, path_map: PathMap) -> ResolvedPath:
    """Looks up an entry's resolved path, defaulting to its stored name."""
    resolved = path_map.get(entry.hash)
    if resolved is None:
        return ResolvedPath(entry.name, to_relative_path(entry.name), False)
    return resolved
