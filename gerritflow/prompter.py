"""Interactive prompts (confirm, choose, free text)."""

from abc import ABC, abstractmethod
from typing import Sequence

import click


class Prompter(ABC):
    """Blocking questions to the user. Operations never continue past an
    unanswered prompt."""

    @abstractmethod
    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question."""
        ...

    @abstractmethod
    def choose(self, message: str, options: Sequence[str]) -> str:
        """Ask the user to pick one of options."""
        ...

    @abstractmethod
    def text(self, message: str, default: str | None = None) -> str:
        """Ask for a line of text."""
        ...


class ClickPrompter(Prompter):
    """Terminal prompts rendered by click."""

    def confirm(self, message: str, default: bool = False) -> bool:
        return click.confirm(message, default=default)

    def choose(self, message: str, options: Sequence[str]) -> str:
        return click.prompt(message, type=click.Choice(list(options)), show_choices=True)

    def text(self, message: str, default: str | None = None) -> str:
        return click.prompt(message, default=default, show_default=default is not None)
