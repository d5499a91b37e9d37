"""Convenience imports for the command API."""

from .abc import AbstractCommand
from .decorators import command_name, projkitcommand

__all__ = ["AbstractCommand", "projkitcommand", "command_name"]
