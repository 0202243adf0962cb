"""Shared utilities for annotext."""

import contextlib
import os
from pathlib import Path


def atomic_write_text(filepath: Path, text: str, encoding: str = "utf-8") -> None:
    """Write *text* next to *filepath* first, then rename it into place.

    Readers see either the old contents or the new ones, never a partial
    JSON dump.
    """
    filepath.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = filepath.with_suffix(filepath.suffix + ".tmp")
    try:
        tmp_path.write_text(text, encoding=encoding)
        os.replace(tmp_path, filepath)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise


def iter_sources(paths: list[Path], extensions: list[str]) -> list[Path]:
    """Expand files and directories into the sorted list of sources to scan.

    Directories are searched recursively for files whose suffix is in
    *extensions* (case-insensitive).  Files named explicitly are always kept.
    """
    wanted = {e.lower() for e in extensions}
    found: set[Path] = set()
    for path in paths:
        if path.is_dir():
            for child in path.rglob("*"):
                if child.is_file() and child.suffix.lower() in wanted:
                    found.add(child)
        elif path.is_file():
            found.add(path)
    return sorted(found)
