from __future__ import annotations

import asyncio

import pytest

from tests.helpers.fake_service import ScriptedService, employee, settle, txn
from transaction_approvals.caches import (
    EmployeeDirectoryCache,
    EmployeeTransactionsCache,
    PaginatedTransactionsCache,
)
from transaction_approvals.errors import FetchError
from transaction_approvals.models import Employee, PageResult
from transaction_approvals.state import LoadStatus


def _pages_service() -> ScriptedService:
    return ScriptedService(
        pages={
            None: {"data": [txn("T1"), txn("T2")], "nextPage": "p2"},
            "p2": {"data": [txn("T3")], "nextPage": None},
        }
    )


# ---- Employee directory --------------------------------------------------------


def test_directory_starts_not_loaded_and_distinguishes_loaded_empty() -> None:
    cache = EmployeeDirectoryCache(ScriptedService(employees=[]))
    assert cache.value is None
    assert cache.status is LoadStatus.NOT_LOADED
    assert not cache.is_loaded

    result = asyncio.run(cache.fetch_all())

    assert result == []
    assert cache.value == []
    assert cache.is_loaded
    assert cache.status is LoadStatus.LOADED


def test_directory_parses_camel_case_payload() -> None:
    svc = ScriptedService(employees=[employee("E1", "Ada", "Lovelace")])
    cache = EmployeeDirectoryCache(svc)

    asyncio.run(cache.fetch_all())

    assert cache.value == [Employee(id="E1", first_name="Ada", last_name="Lovelace")]
    assert cache.value[0].display_name == "Ada Lovelace"


def test_directory_loading_flag_brackets_the_call() -> None:
    svc = ScriptedService(employees=[employee("E1")])
    cache = EmployeeDirectoryCache(svc)

    async def scenario() -> None:
        gate = svc.hold("get_employees")
        task = asyncio.create_task(cache.fetch_all())
        await settle()
        assert cache.loading
        assert cache.status is LoadStatus.LOADING
        gate.set()
        await task
        assert not cache.loading

    asyncio.run(scenario())
    assert cache.status is LoadStatus.LOADED


def test_directory_failure_keeps_previous_value() -> None:
    svc = ScriptedService(employees=[employee("E1")])
    cache = EmployeeDirectoryCache(svc)
    asyncio.run(cache.fetch_all())

    svc.fail_next("get_employees", ConnectionError("boom"))
    with pytest.raises(FetchError) as excinfo:
        asyncio.run(cache.fetch_all())

    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert [e.id for e in cache.value or []] == ["E1"]
    assert cache.status is LoadStatus.FAILED
    assert cache.error is excinfo.value
    assert not cache.loading


def test_fetch_error_from_service_is_not_rewrapped() -> None:
    svc = ScriptedService(employees=[])
    original = FetchError("upstream said no")
    svc.fail_next("get_employees", original)
    cache = EmployeeDirectoryCache(svc)

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(cache.fetch_all())
    assert excinfo.value is original


def test_malformed_payload_surfaces_as_fetch_error() -> None:
    svc = ScriptedService(employees=[{"id": "E1"}])  # names missing
    cache = EmployeeDirectoryCache(svc)

    with pytest.raises(FetchError):
        asyncio.run(cache.fetch_all())
    assert cache.value is None


# ---- Paginated transactions ----------------------------------------------------


def test_paginated_first_fetch_requests_first_page() -> None:
    svc = _pages_service()
    cache = PaginatedTransactionsCache(svc)

    page = asyncio.run(cache.fetch_all())

    assert svc.calls == [("get_transactions_page", None)]
    assert isinstance(page, PageResult)
    assert [t.id for t in page.data] == ["T1", "T2"]
    assert cache.next_page == "p2"
    assert cache.has_more


def test_paginated_follows_next_page_cursor() -> None:
    svc = _pages_service()
    cache = PaginatedTransactionsCache(svc)

    async def scenario() -> None:
        await cache.fetch_all()
        await cache.fetch_all()

    asyncio.run(scenario())

    assert svc.calls == [("get_transactions_page", None), ("get_transactions_page", "p2")]
    assert [t.id for t in cache.value.data] == ["T3"]
    assert cache.next_page is None
    assert not cache.has_more


def test_paginated_does_not_refetch_after_last_page() -> None:
    svc = _pages_service()
    cache = PaginatedTransactionsCache(svc)

    async def scenario() -> PageResult | None:
        await cache.fetch_all()
        await cache.fetch_all()
        return await cache.fetch_all()

    last = asyncio.run(scenario())

    assert svc.count("get_transactions_page") == 2
    assert last is cache.value


def test_paginated_invalidate_restarts_from_first_page() -> None:
    svc = _pages_service()
    cache = PaginatedTransactionsCache(svc)

    async def scenario() -> None:
        await cache.fetch_all()
        cache.invalidate_data()
        assert cache.value is None
        assert cache.status is LoadStatus.NOT_LOADED
        await cache.fetch_all()

    asyncio.run(scenario())

    assert svc.calls == [("get_transactions_page", None), ("get_transactions_page", None)]


def test_paginated_failure_leaves_cursor_untouched() -> None:
    svc = _pages_service()
    cache = PaginatedTransactionsCache(svc)
    asyncio.run(cache.fetch_all())

    svc.fail_next("get_transactions_page", TimeoutError("slow"))
    with pytest.raises(FetchError):
        asyncio.run(cache.fetch_all())

    assert cache.next_page == "p2"
    assert [t.id for t in cache.value.data] == ["T1", "T2"]


def test_stale_page_is_discarded_after_invalidate() -> None:
    svc = _pages_service()
    cache = PaginatedTransactionsCache(svc)

    async def scenario() -> PageResult | None:
        gate = svc.hold("get_transactions_page")
        task = asyncio.create_task(cache.fetch_all())
        await settle()
        cache.invalidate_data()
        gate.set()
        return await task

    result = asyncio.run(scenario())

    assert result is None
    assert cache.value is None
    assert cache.status is LoadStatus.NOT_LOADED


def test_stale_page_is_stored_when_discarding_is_disabled() -> None:
    svc = _pages_service()
    cache = PaginatedTransactionsCache(svc, discard_stale_responses=False)

    async def scenario() -> PageResult | None:
        gate = svc.hold("get_transactions_page")
        task = asyncio.create_task(cache.fetch_all())
        await settle()
        cache.invalidate_data()
        gate.set()
        return await task

    result = asyncio.run(scenario())

    assert result is not None
    assert [t.id for t in cache.value.data] == ["T1", "T2"]
    assert cache.status is LoadStatus.LOADED


@pytest.mark.parametrize(("discard", "loading_after_invalidate"), [(True, False), (False, True)])
def test_invalidated_fetch_only_counts_as_loading_when_it_can_still_land(
    discard: bool, loading_after_invalidate: bool
) -> None:
    svc = _pages_service()
    cache = PaginatedTransactionsCache(svc, discard_stale_responses=discard)

    async def scenario() -> None:
        gate = svc.hold("get_transactions_page")
        task = asyncio.create_task(cache.fetch_all())
        await settle()
        assert cache.loading
        cache.invalidate_data()
        assert cache.loading is loading_after_invalidate
        assert (cache.status is LoadStatus.LOADING) is loading_after_invalidate
        gate.set()
        await task
        assert not cache.loading

    asyncio.run(scenario())


# ---- Employee-scoped transactions ----------------------------------------------


def test_fetch_by_id_overwrites_previous_employee() -> None:
    svc = ScriptedService(
        by_employee={"E1": [txn("T5", emp_id="E1")], "E2": [txn("T6", emp_id="E2")]}
    )
    cache = EmployeeTransactionsCache(svc)

    async def scenario() -> None:
        await cache.fetch_by_id("E1")
        assert cache.employee_id == "E1"
        await cache.fetch_by_id("E2")

    asyncio.run(scenario())

    assert [t.id for t in cache.value or []] == ["T6"]
    assert cache.employee_id == "E2"


@pytest.mark.parametrize("bad_id", ["", "   ", None])
def test_fetch_by_id_rejects_missing_id_without_calling_service(bad_id) -> None:
    svc = ScriptedService()
    cache = EmployeeTransactionsCache(svc)

    with pytest.raises(ValueError):
        asyncio.run(cache.fetch_by_id(bad_id))
    assert svc.calls == []


def test_employee_cache_invalidate_clears_owner() -> None:
    svc = ScriptedService(by_employee={"E1": [txn("T5", emp_id="E1")]})
    cache = EmployeeTransactionsCache(svc)
    asyncio.run(cache.fetch_by_id("E1"))

    cache.invalidate_data()

    assert cache.value is None
    assert cache.employee_id is None


def test_latest_employee_request_wins() -> None:
    svc = ScriptedService(
        by_employee={"E1": [txn("T5", emp_id="E1")], "E2": [txn("T6", emp_id="E2")]}
    )
    cache = EmployeeTransactionsCache(svc)

    async def scenario() -> None:
        gate = svc.hold("get_transactions_for_employee")
        slow = asyncio.create_task(cache.fetch_by_id("E1"))
        await settle()
        await cache.fetch_by_id("E2")
        gate.set()
        assert await slow is None

    asyncio.run(scenario())

    assert [t.id for t in cache.value or []] == ["T6"]
    assert cache.employee_id == "E2"
