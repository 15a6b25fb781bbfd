"""Runtime settings resolved from environment variables.

Variables
---------
- ``TA_DATA_PATH``: dataset file served by the in-memory provider
  (default: the bundled sample dataset).
- ``TA_PAGE_SIZE``: transactions per page of the global feed (default 5).
- ``TA_LATENCY_MS``: simulated provider latency in milliseconds (default 0).
- ``TA_DISCARD_STALE_RESPONSES``: drop responses that resolve after their
  cache was invalidated or refetched (default true). Set to ``0`` to store
  late responses as they arrive.
- ``TA_LOG_LEVEL``: read by :mod:`transaction_approvals.logging_setup`.

The CLI loads a ``.env`` file from the working directory before calling
:func:`load_settings`; already-set variables win.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .services import DEFAULT_PAGE_SIZE, SAMPLE_DATA_PATH

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class Settings:
    data_path: Path = SAMPLE_DATA_PATH
    page_size: int = DEFAULT_PAGE_SIZE
    latency_ms: int = 0
    discard_stale_responses: bool = True

    @property
    def latency_seconds(self) -> float:
        return self.latency_ms / 1000.0


def _int_var(env: Mapping[str, str], name: str, default: int, *, minimum: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _bool_var(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (1/0, true/false, yes/no), got {raw!r}")


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``)."""

    env = os.environ if env is None else env

    data_path = SAMPLE_DATA_PATH
    raw_path = env.get("TA_DATA_PATH")
    if raw_path and raw_path.strip():
        data_path = Path(raw_path.strip()).expanduser().resolve()

    return Settings(
        data_path=data_path,
        page_size=_int_var(env, "TA_PAGE_SIZE", DEFAULT_PAGE_SIZE, minimum=1),
        latency_ms=_int_var(env, "TA_LATENCY_MS", 0, minimum=0),
        discard_stale_responses=_bool_var(env, "TA_DISCARD_STALE_RESPONSES", True),
    )


__all__ = ["Settings", "load_settings"]
