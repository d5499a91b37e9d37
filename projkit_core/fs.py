"""Path helpers shared by the resolver, workspace discovery and registry."""

from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

__all__ = [
    "parse_path",
    "is_glob",
    "expand_member",
    "read_text",
    "unique_paths",
]

_GLOB_CHARS = ("*", "?", "[")
# never workspace members, even under a "**" pattern
_SKIPPED_DIRS = frozenset({"node_modules", ".git", "target", "vendor"})


def parse_path(target: str | Path, *, base: Path | None = None) -> Path:
    """Return an absolute, user-expanded path for ``target``.

    Relative paths are anchored on ``base`` (or the current directory). The
    path does not need to exist; symlinks are resolved where possible.
    """

    raw = str(target).strip()
    if not raw:
        raise ValueError("path cannot be empty")
    # entries copied from shells or registry files may carry quotes
    raw = raw.strip("\"'")
    candidate = Path(raw).expanduser()
    if not candidate.is_absolute():
        candidate = (base or Path.cwd()) / candidate
    return candidate.resolve()


def is_glob(entry: str) -> bool:
    return any(char in entry for char in _GLOB_CHARS)


def expand_member(root: Path, entry: str) -> list[Path]:
    """Expand one declared workspace member against ``root``.

    Globs are matched against the filesystem; literal entries are kept when
    they exist. Anything that is not a directory is dropped.
    """

    entry = entry.strip()
    if not entry:
        return []
    # leading "./" breaks Path.glob on some patterns
    if entry.startswith("./"):
        entry = entry[2:]
    if is_glob(entry):
        pattern = str(root / entry)
        matches = sorted(Path(match) for match in glob.glob(pattern, recursive=True))
        return [
            match.resolve()
            for match in matches
            if match.is_dir() and not _SKIPPED_DIRS.intersection(match.relative_to(root).parts)
        ]
    candidate = (root / entry).resolve()
    return [candidate] if candidate.is_dir() else []


def read_text(path: Path) -> str | None:
    """Read ``path`` as UTF-8, returning ``None`` when it cannot be read."""

    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("unable to read %s: %s", path, exc)
        return None


def unique_paths(paths: Iterable[Path]) -> list[Path]:
    seen: set[Path] = set()
    ordered: list[Path] = []
    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        ordered.append(path)
    return ordered
