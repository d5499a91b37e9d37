"""Error kinds raised by the projkit core and the result type used by batch flows."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeVar

__all__ = [
    "ErrorCode",
    "ProjectErrorCode",
    "ProjkitError",
    "UnparsableManifestError",
    "NoManifestError",
    "AmbiguousEnvironmentError",
    "GenerationError",
    "ProjectNotFoundError",
    "MissingToolError",
    "FeatureError",
    "MigrationError",
    "ReleaseError",
    "Resolution",
]


class ErrorCode(str, Enum):
    """Machine-readable tag carried by every :class:`ProjkitError`."""

    UNPARSABLE_MANIFEST = "unparsable-manifest"
    CANNOT_DETERMINE_ENV = "cannot-determine-environment"
    AMBIGUOUS_ENV = "ambiguous-environment"
    MISSING_GENERATION_FIELD = "missing-generation-field"
    NOT_FOUND = "not-found"
    MISSING_TOOL = "missing-tool"
    FEATURE_FAILED = "feature-failed"
    INVALID_MIGRATION = "invalid-migration"
    RELEASE_FAILED = "release-failed"


class ProjectErrorCode(str, Enum):
    """Outcome of validating a registry entry."""

    IS_DUPLICATE = "IsDuplicate"
    NO_PKG_FILE = "NoPkgFile"
    NOT_FOUND = "NotFound"
    NO_NAME = "NoName"
    NO_VERSION = "NoVersion"
    TOO_MANY_LOCKFILES = "TooManyLockfiles"
    CANT_GET_ENV = "CantGetProjectEnv"


class ProjkitError(Exception):
    """Base class for projkit errors; carries a code and an optional hint."""

    code: ErrorCode = ErrorCode.CANNOT_DETERMINE_ENV
    default_hint: str | None = None

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        path: Path | str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint if hint is not None else self.default_hint
        self.path = Path(path) if path is not None else None

    def render(self) -> str:
        """Return the message followed by the hint, when there is one."""

        if self.hint:
            return f"{self.message}\n  hint: {self.hint}"
        return self.message


class UnparsableManifestError(ProjkitError):
    """Raised when a native manifest cannot be decoded or lacks required fields."""

    code = ErrorCode.UNPARSABLE_MANIFEST
    default_hint = "Check the manifest for syntax errors and make sure it declares a name."

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        path: Path | str | None = None,
        manager: Any = None,
        field: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint, path=path)
        self.manager = manager
        self.field = field


class NoManifestError(ProjkitError):
    """Raised when no recognizable manifest or lockfile exists in a project."""

    code = ErrorCode.CANNOT_DETERMINE_ENV
    default_hint = (
        "Add a manifest (package.json, deno.json, Cargo.toml, go.mod) or set "
        "'env_override' in projkit.yaml."
    )


class AmbiguousEnvironmentError(ProjkitError):
    """Raised when lockfiles from more than one manager coexist."""

    code = ErrorCode.AMBIGUOUS_ENV
    default_hint = (
        "Remove the lockfiles you no longer use, or set 'env_override' in projkit.yaml "
        "to pick the manager explicitly."
    )

    def __init__(self, message: str, lockfiles: tuple[str, ...] = (), **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.lockfiles = tuple(lockfiles)


class GenerationError(ProjkitError):
    """Raised when a CPF lacks a field the target generator requires."""

    code = ErrorCode.MISSING_GENERATION_FIELD


class ProjectNotFoundError(ProjkitError):
    """Raised when a path or project name does not resolve to a directory."""

    code = ErrorCode.NOT_FOUND
    default_hint = "Double check the path, or use 'projkit list' to see tracked projects."


class MissingToolError(ProjkitError):
    """Raised when a package manager binary is not installed."""

    code = ErrorCode.MISSING_TOOL

    def __init__(self, tool: str, **kwargs: Any) -> None:
        kwargs.setdefault("hint", f"Install {tool} and make sure it is on your PATH.")
        super().__init__(f"{tool} is not installed.", **kwargs)
        self.tool = tool


class FeatureError(ProjkitError):
    """Raised when a maintenance task fails or cannot run for a project."""

    code = ErrorCode.FEATURE_FAILED

    def __init__(self, task: str, message: str, *, output: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.task = task
        self.output = output


class MigrationError(ProjkitError):
    """Raised when a migration between managers is not possible."""

    code = ErrorCode.INVALID_MIGRATION
    default_hint = "Only JavaScript managers (npm, pnpm, yarn, bun, deno) support migrate."


class ReleaseError(ProjkitError):
    """Raised when a version cannot be released."""

    code = ErrorCode.RELEASE_FAILED

    def __init__(self, message: str, *, output: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.output = output


T = TypeVar("T")


@dataclass(frozen=True)
class Resolution(Generic[T]):
    """Either a value or the error that prevented producing it."""

    target: str
    value: T | None = None
    error: ProjkitError | None = None

    @classmethod
    def ok(cls, target: str, value: T) -> "Resolution[T]":
        return cls(target=target, value=value)

    @classmethod
    def failed(cls, target: str, error: ProjkitError) -> "Resolution[T]":
        return cls(target=target, error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None
