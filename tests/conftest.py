"""Shared test fixtures."""

from __future__ import annotations

import os
import sys

import pytest

from realitycheck.ledger.backends import MemoryLedgerBackend
from realitycheck.ledger.store import LedgerStore

ECHO_ORACLE_COMMAND = f"{sys.executable} -m realitycheck.judge.backend.echo_oracle"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep developer REALITYCHECK_* overrides out of the tests."""
    for name in list(os.environ):
        if name.startswith("REALITYCHECK_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def memory_backend() -> MemoryLedgerBackend:
    return MemoryLedgerBackend()


@pytest.fixture()
def ledger(memory_backend: MemoryLedgerBackend) -> LedgerStore:
    store = LedgerStore(memory_backend)
    store.initialize()
    return store


@pytest.fixture()
def echo_oracle(monkeypatch):
    """Point the configured judge executable at the local echo oracle."""
    monkeypatch.setenv("REALITYCHECK_CLAUDE_EXECUTABLE", ECHO_ORACLE_COMMAND)

    def _set_mode(mode: str) -> None:
        monkeypatch.setenv("REALITYCHECK_ECHO_ORACLE_MODE", mode)

    return _set_mode
