# utils/file_utils.py

"""File operation utilities."""
import os
from pathlib import Path, PurePosixPath
from typing import Iterator, Optional, Tuple


def format_size(size_bytes: int) -> str:
    """Formats bytes into a human-readable string (KB, MB, GB)."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


def normalize_relative_path(path: str) -> str:
    """Forward slashes, no leading './' or '/', lower-cased lookup key."""
    normalized = path.replace("\\", "/").lstrip("/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lower()


def list_files_recursive(root: Path) -> Iterator[Tuple[str, Path]]:
    """Yields (relative posix path, absolute path) for every file under root, sorted."""
    root = Path(root).resolve()
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        base = Path(dirpath)
        for filename in sorted(filenames):
            absolute = base / filename
            yield absolute.relative_to(root).as_posix(), absolute


def safe_output_path(root: Path, relative: str) -> Optional[Path]:
    """
    Maps an archive-relative path below root.
    Returns None for empty, absolute or parent-escaping paths.
    """
    parts = PurePosixPath(relative.replace("\\", "/")).parts
    if not parts or parts[0] == "/" or ".." in parts or ":" in parts[0]:
        return None
    return Path(root).joinpath(*parts)


def ensure_parent(path: Path) -> None:
    """Create parent directory for path."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OSError(f"Cannot create parent directory for {path}: {e}") from e


def get_repacked_path(archive_path: Path, suffix: str = "_new") -> Path:
    """Sibling output path for a repacked archive: <stem><suffix>.bnd"""
    return archive_path.parent / f"{archive_path.stem}{suffix}.bnd"


def get_extract_root(archive_path: Path, base_dir: Optional[Path] = None) -> Path:
    """Extraction folder named after the archive, under base_dir or the cwd."""
    base = Path(base_dir) if base_dir else Path.cwd()
    return base / archive_path.stem
