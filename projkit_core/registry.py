"""Tracked-project list stored as one absolute path per line."""

from __future__ import annotations

import glob
import logging
from enum import Enum
from pathlib import Path
from typing import Callable

from .environment import try_resolve
from .errors import (
    AmbiguousEnvironmentError,
    NoManifestError,
    ProjectErrorCode,
    ProjectNotFoundError,
    UnparsableManifestError,
)
from .events import EventBus
from .fs import is_glob, parse_path
from .interop.normalize import CARGO_UNKNOWN_NAME, CARGO_UNKNOWN_VERSION
from .interop.parsers import DENO_MISSING_NAME
from .paths import AppPaths
from .settings import load_settings
from .vcs import VersionControl

logger = logging.getLogger(__name__)

__all__ = ["ProjectFilter", "ProjectRegistry", "Confirm"]

Confirm = Callable[[str], bool]

_MISSING_NAMES = frozenset({"", DENO_MISSING_NAME, CARGO_UNKNOWN_NAME})
_MISSING_VERSIONS = frozenset({"", CARGO_UNKNOWN_VERSION})


class ProjectFilter(str, Enum):
    ALL = "all"
    ONLY_IGNORED = "only-ignored"
    EXCLUDE_IGNORED = "exclude-ignored"


def _normalize(entry: str | Path) -> Path | None:
    try:
        return parse_path(entry)
    except ValueError:
        return None


class ProjectRegistry:
    """Ordered list of project roots; duplicates are reported, never merged silently."""

    def __init__(
        self,
        paths: AppPaths | None = None,
        *,
        events: EventBus | None = None,
        vcs: VersionControl | None = None,
    ) -> None:
        self.paths = paths or AppPaths()
        self.projects_file = self.paths.projects_file
        self.events = events
        self._vcs = vcs

    # ---- storage ----

    def entries(self) -> list[str]:
        if not self.projects_file.exists():
            return []
        lines = self.projects_file.read_text(encoding="utf-8").splitlines()
        return [line.strip() for line in lines if line.strip()]

    def _write(self, entries: list[str]) -> None:
        self.projects_file.parent.mkdir(parents=True, exist_ok=True)
        content = "\n".join(entries)
        self.projects_file.write_text(content + ("\n" if entries else ""), encoding="utf-8")

    def _emit(self, name: str, **payload: object) -> None:
        if self.events is not None:
            self.events.emit(name, **payload)

    # ---- queries ----

    def list(self, project_filter: ProjectFilter = ProjectFilter.ALL) -> list[str]:
        entries = self.entries()
        if project_filter is ProjectFilter.ALL:
            return entries
        kept: list[str] = []
        for entry in entries:
            root = _normalize(entry)
            ignored = bool(root and root.is_dir() and load_settings(root).ignored)
            if ignored == (project_filter is ProjectFilter.ONLY_IGNORED):
                kept.append(entry)
        return kept

    def count(self, root: Path) -> int:
        return sum(1 for entry in self.entries() if _normalize(entry) == root)

    def spot(self, target: str) -> Path | None:
        """Find a tracked project by path or by the name in its manifest."""

        root = _normalize(target)
        if root is not None and root.is_dir() and self.count(root):
            return root
        for entry in self.entries():
            resolution = try_resolve(entry, vcs=self._vcs)
            if resolution.is_ok and resolution.value.name == target:
                return resolution.value.root
        return None

    # ---- validation ----

    def diagnose(self, entry: str | Path) -> ProjectErrorCode | None:
        """Validate ``entry`` without looking at the registry contents."""

        root = _normalize(entry)
        if root is None or not root.is_dir():
            return ProjectErrorCode.NOT_FOUND

        resolution = try_resolve(root, vcs=self._vcs)
        if not resolution.is_ok:
            error = resolution.error
            if isinstance(error, ProjectNotFoundError):
                return ProjectErrorCode.NOT_FOUND
            if isinstance(error, NoManifestError):
                return ProjectErrorCode.NO_PKG_FILE
            if isinstance(error, AmbiguousEnvironmentError):
                return ProjectErrorCode.TOO_MANY_LOCKFILES
            if isinstance(error, UnparsableManifestError) and error.field == "name":
                return ProjectErrorCode.NO_NAME
            if isinstance(error, UnparsableManifestError) and error.field == "version":
                return ProjectErrorCode.NO_VERSION
            return ProjectErrorCode.CANT_GET_ENV

        cpf = resolution.value.cpf
        if cpf.name.strip() in _MISSING_NAMES:
            return ProjectErrorCode.NO_NAME
        if cpf.version.strip() in _MISSING_VERSIONS:
            return ProjectErrorCode.NO_VERSION
        return None

    def validate(self, entry: str | Path, *, existing: bool = False) -> ProjectErrorCode | None:
        """Validate ``entry``; ``existing`` tells whether it is expected to be listed once."""

        code = self.diagnose(entry)
        if code is not None:
            return code
        root = _normalize(entry)
        if self.count(root) > (1 if existing else 0):
            return ProjectErrorCode.IS_DUPLICATE
        return None

    # ---- mutation ----

    def _expand_target(self, target: str) -> list[Path]:
        if is_glob(target):
            pattern = str(Path(target.strip()).expanduser())
            matches = sorted(glob.glob(pattern, recursive=True))
            return [Path(match).resolve() for match in matches if Path(match).is_dir()]
        root = _normalize(target)
        return [root] if root is not None else []

    def add(self, target: str, *, confirm: Confirm | None = None) -> list[str]:
        """Track ``target`` (a path or glob); returns the entries actually added."""

        added: list[str] = []
        candidates = self._expand_target(target)
        if not candidates:
            logger.warning("%s did not match any directory", target)
        for root in candidates:
            code = self.validate(root)
            if code is not None:
                logger.warning("not adding %s: %s", root, code.value)
                continue
            self._append(root)
            added.append(str(root))

            resolution = try_resolve(root, vcs=self._vcs)
            members = resolution.value.workspaces if resolution.is_ok else ()
            if not members or confirm is None:
                continue
            prompt = f"{root} declares {len(members)} workspace member(s). Add them too?"
            if not confirm(prompt):
                continue
            for member in members:
                member_code = self.validate(member)
                if member_code is not None:
                    logger.warning("not adding workspace member %s: %s", member, member_code.value)
                    continue
                self._append(member)
                added.append(str(member))
        return added

    def _append(self, root: Path) -> None:
        entries = self.entries()
        entries.append(str(root))
        self._write(entries)
        self._emit("project_added", path=str(root))

    def remove(self, target: str) -> str:
        """Remove the first entry matching ``target`` (path or project name)."""

        # deleted directories can still be removed by path
        root = self.spot(target) or _normalize(target)
        entries = self.entries()
        for index, entry in enumerate(entries):
            if root is not None and _normalize(entry) == root:
                removed = entries.pop(index)
                self._write(entries)
                self._emit("project_removed", path=removed)
                return removed
        raise ProjectNotFoundError(f"{target} is not a tracked project")

    def cleanup(self) -> list[tuple[str, ProjectErrorCode]]:
        """Drop invalid entries and repeated paths; the first occurrence is kept."""

        kept: list[str] = []
        removed: list[tuple[str, ProjectErrorCode]] = []
        seen: set[Path] = set()
        for entry in self.entries():
            root = _normalize(entry)
            if root is not None and root in seen:
                removed.append((entry, ProjectErrorCode.IS_DUPLICATE))
                continue
            code = self.diagnose(entry)
            if code is not None:
                removed.append((entry, code))
                continue
            seen.add(root)
            kept.append(entry)
        if removed:
            self._write(kept)
            for entry, code in removed:
                self._emit("project_removed", path=entry, reason=code.value)
        return removed
