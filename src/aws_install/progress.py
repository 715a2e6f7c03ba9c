"""Hierarchical progress output for long-running stack operations."""

from abc import ABC, abstractmethod

import click


class ProgressLogger(ABC):
    """Emit progress lines, optionally nested in indented groups."""

    @abstractmethod
    def info(self, message: str) -> None:
        """Emit a single line."""

    @abstractmethod
    def group(self, message: str) -> None:
        """Emit a line and indent everything after it."""

    @abstractmethod
    def group_end(self) -> None:
        """Close the innermost group."""


class ConsoleProgressLogger(ProgressLogger):
    """Write ``- message`` lines to the terminal, two spaces per group level."""

    def __init__(self, indent: str = "  ", err: bool = False) -> None:
        self.indent = indent
        self.err = err
        self.depth = 0

    def _echo(self, message: str) -> None:
        click.echo(f"{self.indent * self.depth}- {message}", err=self.err)

    def info(self, message: str) -> None:
        self._echo(message)

    def group(self, message: str) -> None:
        self._echo(message)
        self.depth += 1

    def group_end(self) -> None:
        if self.depth:
            self.depth -= 1


class NullProgressLogger(ProgressLogger):
    """Silent progress logger."""

    def info(self, message: str) -> None:
        pass

    def group(self, message: str) -> None:
        pass

    def group_end(self) -> None:
        pass
