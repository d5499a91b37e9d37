"""Built-in projkit commands."""

from __future__ import annotations

from typing import Sequence, Type

from projkit_core.api import AbstractCommand, command_name

from .delivery import BuildCommand, LaunchCommand, ReleaseCommand
from .inspection import EnvCommand, ExportCommand, StatsCommand, UpgradeCommand
from .maintenance import CleanCommand, MigrateCommand
from .projects import AddCommand, CleanupCommand, ListCommand, RemoveCommand

__all__ = ["BUILTIN_COMMANDS", "builtin_commands"]

BUILTIN_COMMANDS: Sequence[Type[AbstractCommand]] = (
    AddCommand,
    RemoveCommand,
    ListCommand,
    CleanupCommand,
    EnvCommand,
    StatsCommand,
    ExportCommand,
    CleanCommand,
    MigrateCommand,
    BuildCommand,
    LaunchCommand,
    ReleaseCommand,
    UpgradeCommand,
)


def builtin_commands() -> dict[str, Type[AbstractCommand]]:
    """Map command names to their classes, rejecting duplicate names."""

    table: dict[str, Type[AbstractCommand]] = {}
    for command in BUILTIN_COMMANDS:
        name = command_name(command)
        if name in table:
            raise ValueError(f"{name} is already registered.")
        table[name] = command
    return table
