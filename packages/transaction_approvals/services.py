"""Capability contracts consumed by the caches, plus an in-memory provider.

``TransactionService`` is the only seam between the orchestration core and
whatever actually serves employees and transactions. Transport,
authentication and persistence live behind it and are out of scope here.

``InMemoryTransactionService`` is a reference implementation backed by a
:class:`~transaction_approvals.models.Dataset`. It pages the global feed with
integer cursors starting at ``0`` and can simulate latency so the
cooperative interleavings of the orchestrator are observable.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from .errors import FetchError
from .logging_setup import get_logger
from .models import Cursor, Dataset, Employee, PageResult, Transaction

DEFAULT_PAGE_SIZE = 5

SAMPLE_DATA_PATH = Path(__file__).resolve().parent / "data" / "sample_data.json"

_logger = get_logger("transaction_approvals.services")


@runtime_checkable
class TransactionService(Protocol):
    async def get_employees(self) -> Sequence[Employee]: ...

    async def get_transactions_page(self, cursor: Cursor | None) -> PageResult: ...

    async def get_transactions_for_employee(self, employee_id: str) -> Sequence[Transaction]: ...


class InMemoryTransactionService:
    """Serve a fixed dataset through the three capability contracts."""

    def __init__(
        self,
        dataset: Dataset,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        latency_seconds: float = 0.0,
    ) -> None:
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
            raise ValueError("page_size must be a positive integer")
        if latency_seconds < 0:
            raise ValueError("latency_seconds must be >= 0")
        self._dataset = dataset
        self._page_size = page_size
        self._latency = latency_seconds

    @classmethod
    def from_json(
        cls,
        path: str | os.PathLike[str] = SAMPLE_DATA_PATH,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        latency_seconds: float = 0.0,
    ) -> InMemoryTransactionService:
        """Load a dataset file (``{"employees": [...], "transactions": [...]}``).

        Raises ``FileNotFoundError`` for a missing file and ``ValueError`` when
        the content does not match the dataset schema.
        """

        p = Path(path)
        text = p.read_text(encoding="utf-8")
        try:
            dataset = Dataset.model_validate_json(text)
        except ValidationError as e:
            raise ValueError(f"Invalid dataset file {os.fspath(p)}: {e}") from e
        _logger.debug(
            "dataset:loaded path=%s employees=%d transactions=%d",
            os.fspath(p),
            len(dataset.employees),
            len(dataset.transactions),
        )
        return cls(dataset, page_size=page_size, latency_seconds=latency_seconds)

    @property
    def page_size(self) -> int:
        return self._page_size

    async def _simulate_latency(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)

    async def get_employees(self) -> list[Employee]:
        await self._simulate_latency()
        return list(self._dataset.employees)

    async def get_transactions_page(self, cursor: Cursor | None) -> PageResult:
        await self._simulate_latency()
        page = 0 if cursor is None else cursor
        if isinstance(page, bool) or not isinstance(page, int) or page < 0:
            raise FetchError(f"Invalid page cursor: {cursor!r}")

        items = self._dataset.transactions
        start = page * self._page_size
        end = start + self._page_size
        next_page = page + 1 if end < len(items) else None
        return PageResult(data=list(items[start:end]), next_page=next_page)

    async def get_transactions_for_employee(self, employee_id: str) -> list[Transaction]:
        await self._simulate_latency()
        if not employee_id:
            raise FetchError("Employee id cannot be empty")
        return [
            t
            for t in self._dataset.transactions
            if t.employee is not None and t.employee.id == employee_id
        ]


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "InMemoryTransactionService",
    "SAMPLE_DATA_PATH",
    "TransactionService",
]
