"""Error types raised by the caches and the view orchestrator."""

from __future__ import annotations


class FetchError(RuntimeError):
    """A capability call (employees, transaction page, employee transactions) failed.

    Covers transport failures, non-success responses and payloads rejected by
    validation alike; callers do not get a finer taxonomy. The underlying
    exception, when there is one, is chained as ``__cause__``.
    """


__all__ = ["FetchError"]
