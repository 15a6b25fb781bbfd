from __future__ import annotations

import io
import logging

import pytest

from transaction_approvals import logging_setup
from transaction_approvals.logging_setup import _parse_level, configure_logging, get_logger


def test_parse_level_accepts_names_and_numbers() -> None:
    assert _parse_level("debug") == logging.DEBUG
    assert _parse_level(" WARNING ") == logging.WARNING
    assert _parse_level("15") == 15
    assert _parse_level(logging.ERROR) == logging.ERROR


def test_parse_level_falls_back_to_env_then_info(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TA_LOG_LEVEL", "warning")
    assert _parse_level(None) == logging.WARNING

    monkeypatch.setenv("TA_LOG_LEVEL", "chatty")
    assert _parse_level(None) == logging.INFO

    monkeypatch.delenv("TA_LOG_LEVEL")
    assert _parse_level(None) == logging.INFO


def test_get_logger_returns_child_of_package_logger() -> None:
    logger = get_logger("transaction_approvals.orchestrator")

    assert logger.name == "transaction_approvals.orchestrator"
    assert logging.getLogger("transaction_approvals").handlers


def test_configure_logging_writes_package_records_once(monkeypatch: pytest.MonkeyPatch) -> None:
    pkg_logger = logging.getLogger("transaction_approvals")
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    monkeypatch.setattr(pkg_logger, "handlers", [logging.NullHandler()])
    monkeypatch.setattr(pkg_logger, "propagate", True)
    saved_level = pkg_logger.level
    first, second = io.StringIO(), io.StringIO()

    try:
        configure_logging("debug", stream=first)
        configure_logging("error", stream=second)
        get_logger("transaction_approvals.caches").debug("employees:fetch_start all generation=%d", 1)
    finally:
        pkg_logger.setLevel(saved_level)

    assert len(pkg_logger.handlers) == 1
    assert not pkg_logger.propagate
    assert "transaction_approvals.caches DEBUG employees:fetch_start all generation=1" in first.getvalue()
    assert second.getvalue() == ""
