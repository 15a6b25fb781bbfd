"""Data models for ``transaction_approvals``.

Wire payloads use camelCase keys (``firstName``, ``nextPage``); the models
expose snake_case attributes and accept either spelling on input. All models
are frozen: a local approval edit produces a new ``Transaction`` via
``model_copy`` rather than mutating the instance held by a cache.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Opaque page token. The bundled in-memory service uses integer page numbers;
# other providers may hand out strings. Kept as a plain alias so pydantic can
# resolve it inside field annotations.
Cursor = int | str


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )


class Employee(_WireModel):
    id: str
    first_name: str
    last_name: str

    @field_validator("id")
    @classmethod
    def _id_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("employee id must be non-empty")
        return v

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Transaction(_WireModel):
    """A single transaction row.

    Only ``id`` and ``approved`` carry meaning for the orchestration core; the
    descriptive fields are passed through for display. Unknown keys are kept
    (``extra="allow"``) so providers can attach additional columns.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    approved: bool = False
    amount: float | None = None
    merchant: str | None = None
    date: str | None = None
    employee: Employee | None = None

    def with_approval(self, approved: bool) -> Transaction:
        return self.model_copy(update={"approved": approved})


class PageResult(_WireModel):
    """One page of the global transaction feed."""

    data: list[Transaction] = Field(default_factory=list)
    next_page: Cursor | None = None


class Dataset(_WireModel):
    """On-disk fixture shape consumed by ``InMemoryTransactionService``."""

    employees: list[Employee] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Outbound view for the presentation shell
# ---------------------------------------------------------------------------

ALL_EMPLOYEES_LABEL = "All Employees"


@dataclass(frozen=True, slots=True)
class FilterOption:
    """An entry of the employee filter control.

    ``employee_id`` is ``None`` for the "no filter" option; it never doubles as
    a real employee record.
    """

    employee_id: str | None
    label: str

    @classmethod
    def all_employees(cls) -> FilterOption:
        return cls(employee_id=None, label=ALL_EMPLOYEES_LABEL)

    @classmethod
    def for_employee(cls, employee: Employee) -> FilterOption:
        return cls(employee_id=employee.id, label=employee.display_name)


@dataclass(frozen=True, slots=True)
class ViewSnapshot:
    """Immutable picture of everything the shell needs to render."""

    transactions: tuple[Transaction, ...]
    selected_employee_id: str | None
    filter_options: tuple[FilterOption, ...]
    loading: bool
    employees_loading: bool
    transactions_loading: bool
    has_more_pages: bool
    can_view_more: bool


def build_filter_options(employees: Sequence[Employee] | None) -> tuple[FilterOption, ...]:
    """Return ``[All Employees, *employees]``, or nothing until the directory loads."""

    if employees is None:
        return ()
    return (FilterOption.all_employees(), *(FilterOption.for_employee(e) for e in employees))


__all__ = [
    "ALL_EMPLOYEES_LABEL",
    "Cursor",
    "Dataset",
    "Employee",
    "FilterOption",
    "PageResult",
    "Transaction",
    "ViewSnapshot",
    "build_filter_options",
]
