"""Interactive approval review driving a :class:`ViewOrchestrator`.

The flow is presentation glue: it renders the orchestrator's snapshot,
reads one command per prompt and forwards the intent (filter, toggle,
view more). Fetch failures are reported on the console and the loop keeps
going with whatever state the orchestrator retained.
"""

from __future__ import annotations

from prompt_toolkit import PromptSession
from rich.console import Console
from rich.markup import escape

from ..errors import FetchError
from ..logging_setup import get_logger
from ..models import ALL_EMPLOYEES_LABEL, ViewSnapshot
from ..orchestrator import ViewOrchestrator
from ..render import render_view
from ..term_ui import (
    HELP_TEXT,
    Command,
    CommandError,
    match_filter_option,
    parse_command,
    select_employee_filter,
)

_logger = get_logger("transaction_approvals.workflows.approval_flow")


def _current_filter_label(orchestrator: ViewOrchestrator) -> str:
    for opt in orchestrator.filter_options:
        if opt.employee_id == orchestrator.selected_employee_id:
            return opt.label
    return ALL_EMPLOYEES_LABEL


async def _handle(
    cmd: Command,
    orchestrator: ViewOrchestrator,
    *,
    session: PromptSession,
    console: Console,
) -> bool:
    """Apply one command; return ``False`` when the flow should stop."""

    match cmd.kind:
        case "quit":
            return False
        case "help":
            console.print(HELP_TEXT, markup=False)
        case "filter":
            options = orchestrator.filter_options
            if not options:
                console.print("[yellow]Employees are not loaded yet.[/yellow]")
                return True
            if cmd.argument is not None:
                choice = match_filter_option(options, cmd.argument)
                if choice is None:
                    console.print(f"[red]Unknown employee:[/red] {escape(cmd.argument)}")
                    return True
            else:
                choice = await select_employee_filter(
                    options,
                    default=_current_filter_label(orchestrator),
                    session=session,
                )
            await orchestrator.select_employee(choice.employee_id)
        case "toggle":
            if cmd.argument is None:
                console.print("[red]toggle needs a transaction id.[/red]")
                return True
            updated = orchestrator.toggle_approval(cmd.argument)
            if updated is None:
                console.print(f"[red]No visible transaction with id[/red] {escape(cmd.argument)}")
            else:
                state = "approved" if updated.approved else "not approved"
                console.print(f"[green]{escape(updated.id)}[/green] is now {state}.")
        case "more":
            if not await orchestrator.load_more():
                console.print("[yellow]Nothing more to load in this view.[/yellow]")
    return True


async def run_approval_flow(
    orchestrator: ViewOrchestrator,
    *,
    session: PromptSession | None = None,
    console: Console | None = None,
    message: str = "> ",
) -> ViewSnapshot:
    """Run the review loop until ``quit`` (or EOF) and return the final snapshot."""

    sess = session or PromptSession()
    out = console or Console()

    try:
        await orchestrator.mount()
    except FetchError as e:
        out.print(f"[red]Error:[/red] {escape(str(e))}")
    render_view(out, orchestrator.snapshot())
    out.print("[dim]Type 'help' for commands.[/dim]")

    while True:
        try:
            text = await sess.prompt_async(message)
        except (EOFError, KeyboardInterrupt):
            break

        try:
            cmd = parse_command(text)
        except CommandError as e:
            out.print(f"[red]{escape(str(e))}[/red]")
            continue

        try:
            keep_going = await _handle(cmd, orchestrator, session=sess, console=out)
        except FetchError as e:
            _logger.warning("flow:fetch_failed command=%s error=%s", cmd.kind, e)
            out.print(f"[red]Error:[/red] {escape(str(e))}")
            keep_going = True
        if not keep_going:
            break
        if cmd.kind != "help":
            render_view(out, orchestrator.snapshot())

    return orchestrator.snapshot()


__all__ = ["run_approval_flow"]
