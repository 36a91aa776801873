"""Interactive console prompts."""

from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from scaffoldhub.models import IndexEntry
from scaffoldhub.templates.manifest import ManifestError, TemplateParameter

SELECT_PROMPT = (
    "Several templates match your search. Enter a number to select, "
    "or press Enter to cancel"
)
CANCEL_ANSWERS = {"", "q", "quit"}


def select_entry(entries: Sequence[IndexEntry], console: Console) -> IndexEntry | None:
    """Ask the user to pick one entry; None when they cancel."""
    for position, entry in enumerate(entries, start=1):
        console.print(f"  [bold]{position}[/bold]) {escape(entry.title)}")

    while True:
        try:
            answer = Prompt.ask(SELECT_PROMPT, console=console, default="", show_default=False)
        except (EOFError, KeyboardInterrupt):
            console.print()
            return None

        answer = answer.strip().lower()
        if answer in CANCEL_ANSWERS:
            return None
        if answer.isdigit() and 1 <= int(answer) <= len(entries):
            return entries[int(answer) - 1]
        console.print(f"[red]Please enter a number between 1 and {len(entries)}[/red]")


class ConsolePrompter:
    """Asks for template parameter values until they validate."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def ask(self, parameter: TemplateParameter) -> str:
        while True:
            if parameter.type == "bool":
                default = parameter.default is not None and parameter.validate(parameter.default) == "true"
                confirmed = Confirm.ask(parameter.prompt, console=self.console, default=default)
                answer = "true" if confirmed else "false"
            else:
                answer = Prompt.ask(
                    parameter.prompt,
                    console=self.console,
                    default=parameter.default if parameter.default is not None else ...,
                    choices=list(parameter.allowed_values) or None,
                )
            try:
                return parameter.validate(answer)
            except ManifestError as exc:
                self.console.print(f"[red]{escape(str(exc))}[/red]")
