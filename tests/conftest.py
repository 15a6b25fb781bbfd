"""Pytest configuration for test isolation.

Puts ``packages/`` first on ``sys.path`` so ``transaction_approvals`` resolves
from the working tree even without an editable install, and clears every
``TA_*`` variable per test so settings never leak in from the developer's
shell or a local ``.env``.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in list(os.environ):
        if name.startswith("TA_"):
            monkeypatch.delenv(name, raising=False)
    # The CLI loads ``.env`` from the working directory.
    monkeypatch.chdir(tmp_path)
