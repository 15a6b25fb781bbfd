"""Client-side caches for the three capability contracts.

Each cache owns one slice of remote state and exposes:

- ``value``: the last stored result, ``None`` while "not yet loaded" (an empty
  list is a valid loaded value);
- ``status``: a :class:`~transaction_approvals.state.LoadStatus` tag;
- ``loading``: ``True`` while a fetch whose result would still be used is in
  flight;
- ``invalidate_data()``: synchronous reset to "not yet loaded".

Invalidation does not cancel an in-flight request. Instead every fetch takes a
ticket from a per-cache generation counter (bumped by each new fetch and by
``invalidate_data``). With ``discard_stale_responses`` enabled, a response whose
ticket is no longer current is dropped and the fetch returns ``None``. With it
disabled the response is stored regardless, so a late response overwrites
whatever the cache holds.

Failures from the service are re-raised as :class:`FetchError` and leave the
stored value untouched; there is no retry at this layer.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter

from .errors import FetchError
from .logging_setup import get_logger
from .models import Cursor, Employee, PageResult, Transaction
from .services import TransactionService
from .state import LoadStatus

T = TypeVar("T")

_logger = get_logger("transaction_approvals.caches")

_EMPLOYEES: TypeAdapter[list[Employee]] = TypeAdapter(list[Employee])
_PAGE: TypeAdapter[PageResult] = TypeAdapter(PageResult)
_TRANSACTIONS: TypeAdapter[list[Transaction]] = TypeAdapter(list[Transaction])


class _Cache(Generic[T]):
    name = "cache"

    def __init__(
        self, service: TransactionService, *, discard_stale_responses: bool = True
    ) -> None:
        self._service = service
        self._discard_stale = discard_stale_responses
        self._value: T | None = None
        self._status = LoadStatus.NOT_LOADED
        self._error: FetchError | None = None
        self._generation = 0
        self._in_flight: set[int] = set()

    # ---- read side ----------------------------------------------------------

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def status(self) -> LoadStatus:
        if self.loading:
            return LoadStatus.LOADING
        return self._status

    @property
    def loading(self) -> bool:
        # Superseded tickets are ignored when their responses will be dropped.
        if self._discard_stale:
            return self._generation in self._in_flight
        return bool(self._in_flight)

    @property
    def error(self) -> FetchError | None:
        return self._error

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loaded(self) -> bool:
        return self._value is not None

    # ---- write side ---------------------------------------------------------

    def invalidate_data(self) -> None:
        self._generation += 1
        self._value = None
        self._status = LoadStatus.NOT_LOADED
        self._error = None
        _logger.debug(
            "%s:invalidated generation=%d in_flight=%d",
            self.name,
            self._generation,
            len(self._in_flight),
        )

    def _store(self, value: T) -> None:
        self._value = value
        self._status = LoadStatus.LOADED
        self._error = None

    async def _fetch(
        self,
        call: Callable[[], Awaitable[Any]],
        adapter: TypeAdapter[T],
        *,
        describe: str,
    ) -> T | None:
        """Run ``call``, validate its payload and store it when still current."""

        self._generation += 1
        ticket = self._generation
        self._in_flight.add(ticket)
        _logger.debug("%s:fetch_start %s generation=%d", self.name, describe, ticket)
        try:
            raw = await call()
            value = adapter.validate_python(raw)
        except Exception as e:
            err = e if isinstance(e, FetchError) else FetchError(f"{self.name}: {describe} failed: {e}")
            if ticket == self._generation:
                self._status = LoadStatus.FAILED
                self._error = err
            _logger.warning("%s:fetch_failed %s error=%s", self.name, describe, err)
            if err is e:
                raise
            raise err from e
        finally:
            self._in_flight.discard(ticket)

        if ticket != self._generation:
            if self._discard_stale:
                _logger.info(
                    "%s:stale_response_discarded %s ticket=%d generation=%d",
                    self.name,
                    describe,
                    ticket,
                    self._generation,
                )
                return None
            _logger.info(
                "%s:stale_response_stored %s ticket=%d generation=%d",
                self.name,
                describe,
                ticket,
                self._generation,
            )
        self._store(value)
        return value


class EmployeeDirectoryCache(_Cache[list[Employee]]):
    """Full employee list, fetched once."""

    name = "employees"

    async def fetch_all(self) -> list[Employee] | None:
        return await self._fetch(self._service.get_employees, _EMPLOYEES, describe="all")


class PaginatedTransactionsCache(_Cache[PageResult]):
    """The most recent page of the global feed plus its forward cursor.

    Pagination is strictly forward: an empty cache requests page one, a loaded
    cache requests its ``next_page``. Re-fetching after ``invalidate_data``
    starts again from page one.
    """

    name = "paginated_transactions"

    @property
    def next_page(self) -> Cursor | None:
        return None if self._value is None else self._value.next_page

    @property
    def has_more(self) -> bool:
        return self.next_page is not None

    async def fetch_all(self) -> PageResult | None:
        """Fetch the next page (or the first one when nothing is cached)."""

        if self._value is not None and self._value.next_page is None:
            _logger.debug("%s:no_more_pages", self.name)
            return self._value

        cursor = self.next_page

        async def _call() -> Any:
            return await self._service.get_transactions_page(cursor)

        return await self._fetch(_call, _PAGE, describe=f"page={cursor!r}")


class EmployeeTransactionsCache(_Cache[list[Transaction]]):
    """Complete transaction list of a single employee."""

    name = "employee_transactions"

    def __init__(
        self, service: TransactionService, *, discard_stale_responses: bool = True
    ) -> None:
        super().__init__(service, discard_stale_responses=discard_stale_responses)
        self._employee_id: str | None = None

    @property
    def employee_id(self) -> str | None:
        """Employee the stored value belongs to."""
        return self._employee_id

    def invalidate_data(self) -> None:
        super().invalidate_data()
        self._employee_id = None

    async def fetch_by_id(self, employee_id: str) -> list[Transaction] | None:
        if employee_id is None or not str(employee_id).strip():
            raise ValueError("fetch_by_id requires a real employee id")

        async def _call() -> Any:
            return await self._service.get_transactions_for_employee(employee_id)

        result = await self._fetch(_call, _TRANSACTIONS, describe=f"employee_id={employee_id}")
        if result is not None:
            self._employee_id = employee_id
        return result


__all__ = [
    "EmployeeDirectoryCache",
    "EmployeeTransactionsCache",
    "PaginatedTransactionsCache",
]
