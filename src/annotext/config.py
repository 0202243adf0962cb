"""Project configuration loader for annotext.

Reads ``annotext.toml`` from the project root and exposes the extraction
settings as plain attributes.  The file is optional; without it every
setting keeps its default::

    [extract]
    extensions = [".cpp", ".h"]
    workers = 4
    require_context = true

    [aliases]
    myTr = "tr"          # treat myTr(...) like tr(...)

Usage::

    from annotext.config import load_config

    cfg = load_config()
    markers = cfg.marker_table()
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from annotext.errors import ConfigError
from annotext.markers import MarkerTable

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[import,no-redef]

CONFIG_NAME = "annotext.toml"

DEFAULT_EXTENSIONS = (".cpp", ".cc", ".cxx", ".c++", ".h", ".hpp", ".hh", ".hxx")


@dataclass
class ExtractConfig:
    """Parsed ``annotext.toml`` settings."""

    # Directory holding annotext.toml (cwd when no file was found)
    root: Path = field(default_factory=Path.cwd)

    # --- [extract] ---
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    workers: int = 4
    # tr()-style sites outside any class or namespace produce no record
    require_context: bool = True

    # --- [aliases] ---
    aliases: Dict[str, str] = field(default_factory=dict)

    def marker_table(self) -> MarkerTable:
        """Build the marker table for this project (validates aliases)."""
        return MarkerTable(self.aliases)


def _find_root(start: Optional[Path] = None) -> Optional[Path]:
    """Walk up from *start* (or cwd) to the first directory with annotext.toml."""
    candidate = (start or Path.cwd()).resolve()
    while True:
        if (candidate / CONFIG_NAME).exists():
            return candidate
        if candidate == candidate.parent:
            return None
        candidate = candidate.parent


def _expect(value: object, kind: type, key: str, toml_path: Path) -> object:
    # bool is an int subclass; "workers = true" must not pass as a count.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigError(f"{toml_path}: '{key}' must be of type {kind.__name__}")
    return value


def load_config(root: Optional[Path] = None, required: bool = False) -> ExtractConfig:
    """Load annotext.toml.

    Args:
        root: Directory to start the upward search from.  Defaults to cwd.
        required: Raise :class:`ConfigError` instead of returning defaults
                  when no config file exists.
    """
    found = _find_root(root)
    if found is None:
        if required:
            raise ConfigError(
                f"Could not find {CONFIG_NAME} in {root or Path.cwd()} or any parent directory."
            )
        return ExtractConfig(root=(root or Path.cwd()).resolve())

    toml_path = found / CONFIG_NAME
    try:
        with open(toml_path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{toml_path}: {exc}") from exc

    extract = raw.get("extract", {})
    cfg = ExtractConfig(root=found)
    if "extensions" in extract:
        exts = _expect(extract["extensions"], list, "extract.extensions", toml_path)
        for ext in exts:
            _expect(ext, str, "extract.extensions", toml_path)
        cfg.extensions = [e if e.startswith(".") else f".{e}" for e in exts]
    if "workers" in extract:
        cfg.workers = _expect(extract["workers"], int, "extract.workers", toml_path)
        if cfg.workers < 1:
            raise ConfigError(f"{toml_path}: 'extract.workers' must be at least 1")
    if "require_context" in extract:
        cfg.require_context = _expect(
            extract["require_context"], bool, "extract.require_context", toml_path
        )

    aliases = raw.get("aliases", {})
    for name, target in aliases.items():
        cfg.aliases[name] = _expect(target, str, f"aliases.{name}", toml_path)
    # Fail on an unknown alias target now rather than at first use.
    cfg.marker_table()
    return cfg
