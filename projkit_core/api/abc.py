"""Abstract base class for projkit commands."""

from __future__ import annotations

from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from projkit_core.app import ProjkitApp


class AbstractCommand(ABC):
    """Base interface for projkit commands."""

    def __init__(self, app: "ProjkitApp") -> None:
        self.app = app

    @classmethod
    @abstractmethod
    def configure(cls, parser: ArgumentParser) -> None:
        """Let the command configure CLI arguments."""

    @abstractmethod
    def run(self, args: Namespace) -> int:
        """Execute the command with parsed arguments."""
