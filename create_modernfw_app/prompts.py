"""Interactive prompting.

The resolver only talks to the small :class:`Prompter` protocol, so tests can
script answers and the terminal implementation stays in one place.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

from rich.console import Console
from rich.prompt import Confirm, Prompt

from create_modernfw_app.utils import console as default_console

# A validator returns True when the answer is acceptable, or an error message.
Validator = Callable[[str], "bool | str"]


class PromptAborted(Exception):
    """The user cancelled a prompt (Ctrl-C or end of input)."""


class Prompter(Protocol):
    def select(self, message: str, choices: Sequence[tuple[str, str]], default: str) -> str:
        """Ask the user to pick one of ``(value, title)`` *choices*; return the value."""
        ...

    def confirm(self, message: str, default: bool) -> bool:
        ...

    def text(self, message: str, default: str, validate: Validator | None = None) -> str:
        ...


class RichPrompter:
    """Terminal prompts backed by :mod:`rich.prompt`."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or default_console

    def select(self, message: str, choices: Sequence[tuple[str, str]], default: str) -> str:
        titles = {value: title for value, title in choices}
        for value, title in choices:
            self.console.print(f"  [cyan]{value}[/cyan]  {title}")
        try:
            answer = Prompt.ask(
                message,
                choices=list(titles),
                default=default,
                console=self.console,
            )
        except (KeyboardInterrupt, EOFError) as exc:
            raise PromptAborted() from exc
        return answer

    def confirm(self, message: str, default: bool) -> bool:
        try:
            return Confirm.ask(message, default=default, console=self.console)
        except (KeyboardInterrupt, EOFError) as exc:
            raise PromptAborted() from exc

    def text(self, message: str, default: str, validate: Validator | None = None) -> str:
        while True:
            try:
                answer = Prompt.ask(message, default=default, console=self.console)
            except (KeyboardInterrupt, EOFError) as exc:
                raise PromptAborted() from exc
            answer = (answer or "").strip()
            if validate is None:
                return answer
            outcome = validate(answer)
            if outcome is True:
                return answer
            self.console.print(f"[red]{outcome}[/red]")
