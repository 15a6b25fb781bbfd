"""Small state types shared by the caches and the orchestrator.

- ``LoadStatus`` tags the lifecycle of a single cache.
- ``AllView`` / ``EmployeeView`` form the ``ViewState`` union that selects
  how incoming results are merged into the visible list.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TypeAlias


class LoadStatus(StrEnum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class AllView:
    """Accumulated paginated feed across all employees."""


@dataclass(frozen=True, slots=True)
class EmployeeView:
    """Full (unpaginated) transaction list of one employee."""

    employee_id: str

    def __post_init__(self) -> None:
        if not self.employee_id or not self.employee_id.strip():
            raise ValueError("EmployeeView requires a non-empty employee_id")


ViewState: TypeAlias = AllView | EmployeeView


def selected_employee_id(view: ViewState) -> str | None:
    """Return the filtered employee id, or ``None`` for the all-transactions view."""

    match view:
        case AllView():
            return None
        case EmployeeView(employee_id=employee_id):
            return employee_id


__all__ = ["AllView", "EmployeeView", "LoadStatus", "ViewState", "selected_employee_id"]
