"""Project environment resolution and Common Package Format interoperability."""

from .app import ProjkitApp
from .environment import resolve_environment, resolve_many, try_resolve
from .errors import ErrorCode, ProjectErrorCode, ProjkitError, Resolution
from .events import Event, EventBus
from .interop import CPF, Dependency, Manager, ProjectEnvironment, Relationship, Runtime
from .paths import AppPaths
from .registry import ProjectFilter, ProjectRegistry
from .settings import ProjectSettings, load_settings
from .workspaces import find_workspaces

__all__ = [
    "ProjkitApp",
    "resolve_environment",
    "resolve_many",
    "try_resolve",
    "ErrorCode",
    "ProjectErrorCode",
    "ProjkitError",
    "Resolution",
    "Event",
    "EventBus",
    "CPF",
    "Dependency",
    "Manager",
    "ProjectEnvironment",
    "Relationship",
    "Runtime",
    "AppPaths",
    "ProjectFilter",
    "ProjectRegistry",
    "ProjectSettings",
    "load_settings",
    "find_workspaces",
]
