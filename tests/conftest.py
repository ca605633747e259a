"""
conftest.py - Shared pytest fixtures for ledger replay tests

Provides common fixtures used across unit, functional and conformance tests:
- Fresh ledgers and registries
- Pre-funded and disputed ledgers
- A CSV file writer for boundary and CLI tests
"""

import pytest
from decimal import Decimal
from pathlib import Path
from typing import Callable

from ledger_replay import (
    Ledger, Registry,
    Deposit, Dispute, Chargeback,
)


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def empty_ledger():
    """Fresh ledger for client 1."""
    return Ledger(1)


@pytest.fixture
def funded_ledger(empty_ledger):
    """Client 1 with a 10.0 deposit as tx 1."""
    empty_ledger.apply(Deposit(1, 1, Decimal("10.0")))
    return empty_ledger


@pytest.fixture
def disputed_ledger(funded_ledger):
    """Client 1 with tx 1 (10.0) under dispute."""
    funded_ledger.apply(Dispute(1, 1))
    return funded_ledger


@pytest.fixture
def locked_ledger(disputed_ledger):
    """Client 1 frozen by a chargeback of tx 1."""
    disputed_ledger.apply(Chargeback(1, 1))
    return disputed_ledger


@pytest.fixture
def registry():
    """Empty registry."""
    return Registry()


# =============================================================================
# CSV FIXTURES
# =============================================================================

@pytest.fixture
def write_csv(tmp_path) -> Callable[..., Path]:
    """
    Write CSV lines to a temporary file and return its path.

    Usage:
        path = write_csv("type, client, tx, amount", "deposit, 1, 1, 1.0")
    """
    counter = {"n": 0}

    def _write(*lines: str, name: str = None) -> Path:
        counter["n"] += 1
        path = tmp_path / (name or f"transactions_{counter['n']}.csv")
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def header() -> str:
    return "type, client, tx, amount"
