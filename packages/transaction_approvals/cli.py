"""CLI for the ``transaction_approvals`` package.

A Typer-based console interface over :class:`ViewOrchestrator`. Environment
variables (see :mod:`transaction_approvals.config`) are loaded from a local
``.env`` using ``python-dotenv`` before any command runs.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from .config import load_settings
from .errors import FetchError
from .logging_setup import configure_logging
from .orchestrator import ViewOrchestrator
from .render import employees_table, render_view
from .term_ui import match_filter_option

app = typer.Typer(
    name="transaction-approvals",
    help="Browse transactions by employee and toggle approvals locally.",
    no_args_is_help=True,
)
console = Console()


def _build_orchestrator() -> ViewOrchestrator:
    try:
        settings = load_settings()
    except ValueError as e:
        console.print(f"[red]Error:[/red] invalid configuration: {escape(str(e))}")
        raise typer.Exit(1) from e
    try:
        return ViewOrchestrator.from_settings(settings)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] dataset not found: {settings.data_path}")
        raise typer.Exit(1) from e
    except (OSError, ValueError) as e:
        console.print(f"[red]Error:[/red] failed to load dataset: {escape(str(e))}")
        raise typer.Exit(1) from e


@app.command("employees")
def employees_cmd() -> None:
    """List the employee directory."""

    orchestrator = _build_orchestrator()
    try:
        asyncio.run(orchestrator.employees.fetch_all())
    except FetchError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e
    console.print(employees_table(orchestrator.employees.value or []))


@app.command("transactions")
def transactions_cmd(
    employee: Annotated[
        str | None,
        typer.Option(
            "--employee", "-e", help="Only show this employee's transactions (id or full name)."
        ),
    ] = None,
    pages: Annotated[
        int,
        typer.Option(min=1, help="Pages of the all-transactions feed to load."),
    ] = 1,
) -> None:
    """Print transactions for everyone (paged) or for one employee."""

    orchestrator = _build_orchestrator()

    async def _run() -> bool:
        """Return ``False`` when ``--employee`` names nobody in the directory."""
        await orchestrator.mount()
        if employee:
            choice = match_filter_option(orchestrator.filter_options, employee)
            if choice is None:
                return False
            await orchestrator.select_employee(choice.employee_id)
            return True
        for _ in range(pages - 1):
            if not await orchestrator.load_more():
                break
        return True

    try:
        found = asyncio.run(_run())
    except FetchError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e
    if not found:
        console.print(f"[red]Error:[/red] unknown employee: {escape(employee or '')}")
        raise typer.Exit(1)
    render_view(console, orchestrator.snapshot())


@app.command("review")
def review_cmd() -> None:
    """Interactive review: filter by employee, toggle approvals, view more."""

    from .workflows.approval_flow import run_approval_flow

    orchestrator = _build_orchestrator()
    asyncio.run(run_approval_flow(orchestrator, console=console))


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # override=False keeps already-set environment variables
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
