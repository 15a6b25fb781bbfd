"""Public interface for the ``transaction_approvals`` package.

Re-exports the orchestration core, its caches and models as the stable import
surface. There is no runtime logic here, only symbol re-exports.
"""

from .caches import EmployeeDirectoryCache, EmployeeTransactionsCache, PaginatedTransactionsCache
from .config import Settings, load_settings
from .errors import FetchError
from .models import (
    Cursor,
    Dataset,
    Employee,
    FilterOption,
    PageResult,
    Transaction,
    ViewSnapshot,
)
from .orchestrator import ViewOrchestrator
from .services import InMemoryTransactionService, TransactionService
from .state import AllView, EmployeeView, LoadStatus, ViewState

__all__ = [
    # Core
    "ViewOrchestrator",
    "EmployeeDirectoryCache",
    "PaginatedTransactionsCache",
    "EmployeeTransactionsCache",
    # Services / config
    "TransactionService",
    "InMemoryTransactionService",
    "Settings",
    "load_settings",
    # Models / state
    "Cursor",
    "Dataset",
    "Employee",
    "Transaction",
    "PageResult",
    "FilterOption",
    "ViewSnapshot",
    "AllView",
    "EmployeeView",
    "LoadStatus",
    "ViewState",
    # Errors
    "FetchError",
]
