"""Decorator that marks command classes with their CLI name."""

from __future__ import annotations

from typing import Callable, Type, TypeVar

from .abc import AbstractCommand

_Command = TypeVar("_Command", bound=Type[AbstractCommand])


def projkitcommand(*, name: str) -> Callable[[_Command], _Command]:
    if not name or ":" in name or " " in name:
        raise ValueError(f"invalid command name {name!r}")

    def wrap(target: _Command) -> _Command:
        if not isinstance(target, type) or not issubclass(target, AbstractCommand):
            raise TypeError(
                f"{getattr(target, '__name__', target)!r} must subclass AbstractCommand "
                "to be registered as a command."
            )
        setattr(target, "__projkit_command__", {"name": name})
        return target

    return wrap


def command_name(target: type) -> str:
    metadata = getattr(target, "__projkit_command__", None)
    if not metadata:
        raise TypeError(f"{target.__name__} is not decorated with @projkitcommand")
    return metadata["name"]
