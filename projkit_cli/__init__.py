"""Command line interface for projkit."""

from .main import main

__all__ = ["main"]
