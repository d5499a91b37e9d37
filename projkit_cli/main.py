"""projkit CLI entrypoint backed by the built-in command table."""

from __future__ import annotations

import argparse
import inspect
import logging
import sys
from typing import Mapping, Sequence, Type

from projkit_core.api import AbstractCommand
from projkit_core.app import ProjkitApp
from projkit_core.interop.models import generator_version

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def main(argv: Sequence[str] | None = None, *, app: ProjkitApp | None = None) -> int:
    """Resolve and run a projkit command."""

    tokens = list(argv) if argv is not None else list(sys.argv[1:])
    verbose = False
    while tokens and tokens[0] in ("-v", "--verbose"):
        verbose = True
        tokens.pop(0)
    _configure_logging(verbose)

    if tokens and tokens[0] == "--version":
        print(f"projkit v{generator_version()}")
        return 0

    app = app or ProjkitApp()
    if not tokens or tokens[0] in ("-h", "--help", "help"):
        return _print_overview(app.commands)

    name, *command_args = tokens
    target = app.commands.get(name)
    if target is None:
        print(f"{name} is not a projkit command. Run 'projkit help' for the list.")
        return 1

    parser = argparse.ArgumentParser(
        prog=f"projkit {name}",
        description=_command_description(target),
    )
    target.configure(parser)
    try:
        parsed_args = parser.parse_args(command_args)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0

    return to_int(target(app).run(parsed_args))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )


def _print_overview(commands: Mapping[str, Type[AbstractCommand]]) -> int:
    print("Usage: projkit [-v] <command> [args...]\n")
    print("Commands:")
    for name in sorted(commands):
        description = _command_description(commands[name])
        short = description.splitlines()[0] if description else ""
        print(f"  {name:<12} {short}")
    print("\nRun 'projkit <command> --help' for command options.")
    return 0


def _command_description(target: type) -> str:
    return (inspect.getdoc(target) or "").strip()


def to_int(result: int | None) -> int:
    return 0 if result is None else result
