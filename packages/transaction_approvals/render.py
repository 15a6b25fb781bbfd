"""Rich renderables for the terminal shell.

Rendering is read-only: functions take a :class:`ViewSnapshot` (or a list of
employees) and never talk to the orchestrator.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import ALL_EMPLOYEES_LABEL, Employee, Transaction, ViewSnapshot


def _format_amount(amount: float | None) -> str:
    if amount is None:
        return ""
    return f"${amount:,.2f}"


def _employee_label(t: Transaction) -> str:
    return t.employee.display_name if t.employee is not None else ""


def transactions_table(snapshot: ViewSnapshot) -> Table:
    title = ALL_EMPLOYEES_LABEL
    for opt in snapshot.filter_options:
        if opt.employee_id is not None and opt.employee_id == snapshot.selected_employee_id:
            title = opt.label
            break
    else:
        if snapshot.selected_employee_id is not None:
            title = snapshot.selected_employee_id

    table = Table(title=f"Transactions: {escape(title)}")
    table.add_column("ID", no_wrap=True)
    table.add_column("Date", no_wrap=True)
    table.add_column("Employee", overflow="fold")
    table.add_column("Merchant", overflow="fold")
    table.add_column("Amount", justify="right", no_wrap=True)
    table.add_column("Approved", justify="center", no_wrap=True)
    for t in snapshot.transactions:
        table.add_row(
            escape(t.id),
            t.date or "",
            escape(_employee_label(t)),
            escape(t.merchant or ""),
            _format_amount(t.amount),
            "yes" if t.approved else "no",
        )
    return table


def employees_table(employees: Sequence[Employee]) -> Table:
    table = Table(title="Employees")
    table.add_column("ID", no_wrap=True)
    table.add_column("Name")
    for e in employees:
        table.add_row(escape(e.id), escape(e.display_name))
    return table


def render_view(console: Console, snapshot: ViewSnapshot) -> None:
    """Print the transaction table plus a one-line status footer."""

    console.print(transactions_table(snapshot))
    if snapshot.loading or snapshot.transactions_loading:
        console.print("[yellow]Loading...[/yellow]")
    elif snapshot.can_view_more:
        console.print("[cyan]More transactions available: type 'more' to view more.[/cyan]")
    elif snapshot.selected_employee_id is None and snapshot.transactions:
        console.print("[dim]No more transactions.[/dim]")


__all__ = ["employees_table", "render_view", "transactions_table"]
