"""Tiny terminal UI helpers (prompt_toolkit-based).

Kept apart from the orchestration core so they are easy to test in
isolation. ``parse_command`` is pure; the ``async`` helpers drive a
``PromptSession`` with ``prompt_async`` so they can run inside the event loop
that also runs the orchestrator.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, TypeAlias

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.validation import Validator

from .models import FilterOption

CommandKind: TypeAlias = Literal["filter", "toggle", "more", "help", "quit"]

_ALIASES: dict[str, CommandKind] = {
    "f": "filter",
    "filter": "filter",
    "t": "toggle",
    "toggle": "toggle",
    "m": "more",
    "more": "more",
    "h": "help",
    "help": "help",
    "?": "help",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
}

HELP_TEXT = (
    "Commands:\n"
    "  filter [name|id|all]  choose the employee filter (prompts when omitted)\n"
    "  toggle <txn-id>       flip the approval of a visible transaction\n"
    "  more                  view more transactions\n"
    "  help                  show this help\n"
    "  quit                  leave the review"
)


class CommandError(ValueError):
    """Raised for input that is not a known command."""


@dataclass(frozen=True, slots=True)
class Command:
    kind: CommandKind
    argument: str | None = None


def parse_command(text: str) -> Command:
    head, _, rest = text.strip().partition(" ")
    if not head:
        raise CommandError("Empty command; type 'help' for the list of commands.")
    kind = _ALIASES.get(head.lower())
    if kind is None:
        raise CommandError(f"Unknown command: {head!r}; type 'help' for the list of commands.")
    argument = rest.strip() or None
    if kind == "toggle" and argument is None:
        raise CommandError("toggle needs a transaction id, e.g. 'toggle txn-001'.")
    return Command(kind=kind, argument=argument)


def match_filter_option(options: Sequence[FilterOption], text: str) -> FilterOption | None:
    """Resolve typed text to an option by label (case-insensitive) or employee id.

    ``"all"`` always resolves to the no-filter option when present.
    """

    needle = text.strip().lower()
    if not needle:
        return None
    for opt in options:
        if opt.label.lower() == needle:
            return opt
        if opt.employee_id is not None and opt.employee_id.lower() == needle:
            return opt
    if needle == "all":
        for opt in options:
            if opt.employee_id is None:
                return opt
    return None


async def select_employee_filter(
    options: Sequence[FilterOption],
    *,
    default: str = "",
    message: str = "Filter by employee: ",
    session: PromptSession | None = None,
) -> FilterOption:
    """Prompt until the user picks one of ``options`` and return it."""

    if not options:
        raise ValueError("no filter options available (employees not loaded yet)")

    completer = WordCompleter(
        [opt.label for opt in options],
        ignore_case=True,
        match_middle=True,
        sentence=True,
    )
    validator = Validator.from_callable(
        lambda t: match_filter_option(options, t) is not None,
        error_message="Pick an employee from the list (Tab to complete).",
        move_cursor_to_end=True,
    )
    sess = session or PromptSession()
    text = await sess.prompt_async(
        message,
        completer=completer,
        validator=validator,
        default=default,
    )
    choice = match_filter_option(options, text)
    if choice is None:  # validator should have prevented this
        raise ValueError(f"unknown filter option: {text!r}")
    return choice


__all__ = [
    "Command",
    "CommandError",
    "HELP_TEXT",
    "match_filter_option",
    "parse_command",
    "select_employee_filter",
]
