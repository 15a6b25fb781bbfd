"""View orchestration over the employee and transaction caches.

The orchestrator owns which view is active (all transactions, or one
employee's) and the ordered list of visible transactions. It merges cache
results into that list and keeps the two transaction caches mutually
exclusive: entering one view invalidates the other view's cache.

Merge rules
-----------
- ``AllView``: the first page after a switch replaces the list; each later
  page is appended after dropping ids that are already visible. Earlier
  entries are never reordered, so local approval edits on them survive.
- ``EmployeeView``: every result replaces the list wholesale.

Transitions are coroutines. Failures propagate to the caller as
:class:`~transaction_approvals.errors.FetchError`; the selected view is not
rolled back and the visible list keeps its last good value.

Each transition bumps a view token. When stale responses are discarded
(the default), a result whose transition has been superseded is not applied.
"""

from __future__ import annotations

from collections.abc import Iterable

from .caches import EmployeeDirectoryCache, EmployeeTransactionsCache, PaginatedTransactionsCache
from .config import Settings
from .logging_setup import get_logger
from .models import (
    FilterOption,
    PageResult,
    Transaction,
    ViewSnapshot,
    build_filter_options,
)
from .services import InMemoryTransactionService, TransactionService
from .state import AllView, EmployeeView, ViewState, selected_employee_id

_logger = get_logger("transaction_approvals.orchestrator")


def _dedupe(items: Iterable[Transaction], seen: set[str]) -> list[Transaction]:
    out: list[Transaction] = []
    for t in items:
        if t.id in seen:
            continue
        seen.add(t.id)
        out.append(t)
    return out


class ViewOrchestrator:
    def __init__(
        self, service: TransactionService, *, discard_stale_responses: bool = True
    ) -> None:
        self.employees = EmployeeDirectoryCache(
            service, discard_stale_responses=discard_stale_responses
        )
        self.paginated = PaginatedTransactionsCache(
            service, discard_stale_responses=discard_stale_responses
        )
        self.by_employee = EmployeeTransactionsCache(
            service, discard_stale_responses=discard_stale_responses
        )
        self._discard_stale = discard_stale_responses
        self._view: ViewState = AllView()
        self._transactions: list[Transaction] = []
        self._view_token = 0
        self._cycles: dict[int, int] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> ViewOrchestrator:
        service = InMemoryTransactionService.from_json(
            settings.data_path,
            page_size=settings.page_size,
            latency_seconds=settings.latency_seconds,
        )
        return cls(service, discard_stale_responses=settings.discard_stale_responses)

    # ------------------------------------------------------------------
    # Outbound state
    # ------------------------------------------------------------------

    @property
    def view(self) -> ViewState:
        return self._view

    @property
    def selected_employee_id(self) -> str | None:
        return selected_employee_id(self._view)

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    @property
    def loading(self) -> bool:
        """Composite flag covering whole all-transactions fetch cycles.

        When stale responses are discarded only cycles started for the current
        view count; a superseded cycle can no longer change what is shown.
        """
        if self._discard_stale:
            return self._cycles.get(self._view_token, 0) > 0
        return any(self._cycles.values())

    @property
    def has_more_pages(self) -> bool:
        match self._view:
            case AllView():
                return self.paginated.next_page is not None
            case EmployeeView():
                return False

    @property
    def can_view_more(self) -> bool:
        return self.has_more_pages and not (self.loading or self.paginated.loading)

    @property
    def filter_options(self) -> tuple[FilterOption, ...]:
        return build_filter_options(self.employees.value)

    def snapshot(self) -> ViewSnapshot:
        return ViewSnapshot(
            transactions=self.transactions,
            selected_employee_id=self.selected_employee_id,
            filter_options=self.filter_options,
            loading=self.loading,
            employees_loading=self.employees.loading,
            transactions_loading=self.paginated.loading or self.by_employee.loading,
            has_more_pages=self.has_more_pages,
            can_view_more=self.can_view_more,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _enter(self, view: ViewState) -> int:
        self._view = view
        self._view_token += 1
        return self._view_token

    def _is_current(self, token: int) -> bool:
        return token == self._view_token

    async def mount(self) -> bool:
        """Initial load: switch to all transactions unless the directory was ever loaded."""

        if self.employees.value is None and not self.employees.loading:
            await self.load_all_transactions()
            return True
        return False

    async def load_all_transactions(self) -> None:
        """Switch to the all-transactions view and load its first page.

        Invalidates the employee-scoped cache and restarts the paginated feed
        from page one. The employee directory is fetched first (when not yet
        loaded), then the page; the two calls never overlap.
        """

        token = self._enter(AllView())
        self.by_employee.invalidate_data()
        self.paginated.invalidate_data()
        _logger.info("view:switch mode=all token=%d", token)
        await self._run_all_cycle(token, fresh=True)

    async def load_more(self) -> bool:
        """Fetch and append the next page of the all-transactions feed.

        Only runs while :attr:`can_view_more` holds; returns whether a fetch
        was performed.
        """

        if not self.can_view_more:
            _logger.debug(
                "view:load_more_skipped mode=%s loading=%s next_page=%r",
                type(self._view).__name__,
                self.loading,
                self.paginated.next_page,
            )
            return False
        await self._run_all_cycle(self._view_token, fresh=False)
        return True

    async def _run_all_cycle(self, token: int, *, fresh: bool) -> None:
        self._cycles[token] = self._cycles.get(token, 0) + 1
        try:
            if self.employees.value is None:
                await self.employees.fetch_all()
                if self._discard_stale and not self._is_current(token):
                    _logger.info("view:cycle_superseded token=%d current=%d", token, self._view_token)
                    return
            page = await self.paginated.fetch_all()
        finally:
            remaining = self._cycles.pop(token) - 1
            if remaining:
                self._cycles[token] = remaining

        if page is None:
            return
        if not self._is_current(token):
            if self._discard_stale:
                _logger.info("view:page_dropped token=%d current=%d", token, self._view_token)
                return
            # A late page lands in whatever view is showing, appended.
            fresh = False
        self._apply_page(page, fresh=fresh)

    async def load_transactions_by_employee(self, employee_id: str) -> None:
        """Switch to one employee's transactions.

        ``employee_id`` must be a real id; use :meth:`load_all_transactions`
        (or :meth:`select_employee` with ``None``) for "no filter".
        """

        if employee_id is None or not str(employee_id).strip():
            raise ValueError(
                "load_transactions_by_employee requires an employee id; "
                "use load_all_transactions() for no filter"
            )
        token = self._enter(EmployeeView(employee_id))
        self.paginated.invalidate_data()
        _logger.info("view:switch mode=employee employee_id=%s token=%d", employee_id, token)

        result = await self.by_employee.fetch_by_id(employee_id)
        if result is None:
            return
        if self._discard_stale and not self._is_current(token):
            _logger.info(
                "view:employee_result_dropped employee_id=%s token=%d current=%d",
                employee_id,
                token,
                self._view_token,
            )
            return
        match self._view:
            case EmployeeView():
                self._transactions = _dedupe(result, set())
            case AllView():
                # Only reachable when stale responses are kept.
                pass

    async def select_employee(self, employee_id: str | None) -> None:
        """Filter-control intent: ``None`` means "All Employees"."""

        if employee_id is None:
            await self.load_all_transactions()
        else:
            await self.load_transactions_by_employee(employee_id)

    def toggle_approval(self, transaction_id: str) -> Transaction | None:
        """Flip ``approved`` on the visible transaction with ``transaction_id``.

        Purely local: neither cache is touched and nothing is sent anywhere.
        Returns the updated transaction, or ``None`` when it is not visible.
        """

        for i, t in enumerate(self._transactions):
            if t.id == transaction_id:
                updated = t.with_approval(not t.approved)
                self._transactions[i] = updated
                _logger.debug("approval:toggled id=%s approved=%s", transaction_id, updated.approved)
                return updated
        _logger.debug("approval:not_visible id=%s", transaction_id)
        return None

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def _apply_page(self, page: PageResult, *, fresh: bool) -> None:
        base = [] if fresh else self._transactions
        added = _dedupe(page.data, {t.id for t in base})
        self._transactions = [*base, *added]
        _logger.debug(
            "view:page_applied fresh=%s received=%d added=%d visible=%d next_page=%r",
            fresh,
            len(page.data),
            len(added),
            len(self._transactions),
            page.next_page,
        )


__all__ = ["ViewOrchestrator"]
