"""
ledger.py - Per-Client Account State Machine

The Ledger class holds one client's balances and every deposit or withdrawal
it has accepted. It is the only class that mutates balances.

Key responsibilities:
    - Applies one record at a time via apply(), dispatching on the record kind
    - Tracks the dispute lifecycle of each stored transaction
    - Freezes the account on chargeback; a locked account ignores every
      further balance-changing record
    - Keeps total == available + held, rounded to four decimal places

Invalid instructions (unknown tx, wrong dispute stage, locked account,
missing amount, unknown kind) are silent no-ops. apply() reports them as
ApplyResult.IGNORED; it never raises for them.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Callable, Dict, Optional

from .core import (
    # Types
    TransactionRecord, TransferRecord, StoredTransaction, AccountBalances,
    TransactionKind, ApplyResult,
    # Constants
    ZERO,
    # Helper functions
    round_amount,
)
from .logging_setup import get_logger

logger = get_logger("ledger_replay.ledger")


class Ledger:
    """
    Balances and dispute state for a single client.

    Design Principles:
        - One entry point: apply(record) is the only mutating method.
        - No-op on invalid input: domain-level problems never raise.
        - Rounding only on success: a no-op leaves balances untouched.

    Thread Safety:
        Not thread-safe. Each ledger is driven by exactly one registry.

    Example:
        ledger = Ledger(1)
        ledger.apply(Deposit(1, 1, Decimal("10.0")))
        ledger.apply(Dispute(1, 1))
        ledger.balances  # AccountBalances(available=0.0000, held=10.0000, ...)
    """

    def __init__(self, client: int):
        """
        Create an empty, unlocked ledger.

        Args:
            client: Client identifier this ledger belongs to
        """
        self.client = client
        self._available: Decimal = ZERO
        self._held: Decimal = ZERO
        self._total: Decimal = ZERO
        self._locked: bool = False
        self._transactions: Dict[int, StoredTransaction] = {}
        self._handlers: Dict[TransactionKind, Callable[[TransactionRecord], bool]] = {
            TransactionKind.DEPOSIT: self._deposit,
            TransactionKind.WITHDRAWAL: self._withdraw,
            TransactionKind.DISPUTE: self._dispute,
            TransactionKind.RESOLVE: self._resolve,
            TransactionKind.CHARGEBACK: self._chargeback,
        }

    # ========================================================================
    # READ-ONLY ACCESS
    # ========================================================================

    @property
    def available(self) -> Decimal:
        return self._available

    @property
    def held(self) -> Decimal:
        return self._held

    @property
    def total(self) -> Decimal:
        return self._total

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def balances(self) -> AccountBalances:
        """Immutable snapshot of the current balances."""
        return AccountBalances(
            available=self._available,
            held=self._held,
            total=self._total,
            locked=self._locked,
        )

    @property
    def transactions(self) -> Dict[int, StoredTransaction]:
        """Shallow copy of the stored transactions, keyed by tx id."""
        return dict(self._transactions)

    def get_transaction(self, tx: int) -> Optional[StoredTransaction]:
        """Return the stored deposit/withdrawal for tx, or None."""
        return self._transactions.get(tx)

    def __repr__(self) -> str:
        return (
            f"Ledger(client={self.client}, available={self._available}, "
            f"held={self._held}, total={self._total}, locked={self._locked})"
        )

    # ========================================================================
    # RECORD APPLICATION (Mutating)
    # ========================================================================

    def apply(self, record: TransactionRecord) -> ApplyResult:
        """
        Apply one record to this account.

        Unknown kinds are ignored without touching balances. For every other
        kind the matching handler runs; if it changed state, available and
        held are rounded to four decimal places and total is recomputed.

        Args:
            record: Record addressed to this client

        Returns:
            ApplyResult.APPLIED if balances or dispute state changed
            ApplyResult.IGNORED if the record was a no-op
        """
        handler = self._handlers.get(record.kind)
        if handler is None:
            logger.debug("client %s: ignoring unrecognized record %r", self.client, record)
            return ApplyResult.IGNORED

        if not handler(record):
            return ApplyResult.IGNORED

        self._settle()
        return ApplyResult.APPLIED

    def _settle(self) -> None:
        """Round available and held, then recompute total from them."""
        self._available = round_amount(self._available)
        self._held = round_amount(self._held)
        self._total = round_amount(self._available + self._held)

    def _ignore(self, record: TransactionRecord, reason: str) -> bool:
        logger.debug(
            "client %s: ignoring %s tx=%s (%s)",
            self.client, record.kind.value, record.tx, reason,
        )
        return False

    def _accept_transfer(self, record: TransferRecord) -> bool:
        if self._locked:
            return self._ignore(record, "account locked")
        if record.amount is None:
            return self._ignore(record, "missing amount")
        # Duplicate tx ids replace the earlier stored transaction.
        if record.tx in self._transactions:
            logger.debug("client %s: tx=%s overwrites an earlier transaction", self.client, record.tx)
        self._transactions[record.tx] = StoredTransaction(record)
        return True

    def _deposit(self, record: TransferRecord) -> bool:
        if not self._accept_transfer(record):
            return False
        self._available += record.amount
        return True

    def _withdraw(self, record: TransferRecord) -> bool:
        # No sufficiency check: available may go negative.
        if not self._accept_transfer(record):
            return False
        self._available -= record.amount
        return True

    def _dispute(self, record: TransactionRecord) -> bool:
        if self._locked:
            return self._ignore(record, "account locked")
        stored = self._transactions.get(record.tx)
        if stored is None:
            return self._ignore(record, "unknown tx")
        if stored.disputed:
            return self._ignore(record, "already disputed")
        self._available -= stored.amount
        self._held += stored.amount
        stored.disputed = True
        return True

    def _resolve(self, record: TransactionRecord) -> bool:
        if self._locked:
            return self._ignore(record, "account locked")
        stored = self._transactions.get(record.tx)
        if stored is None:
            return self._ignore(record, "unknown tx")
        if not stored.disputed:
            return self._ignore(record, "not disputed")
        self._available += stored.amount
        self._held -= stored.amount
        stored.disputed = False
        return True

    def _chargeback(self, record: TransactionRecord) -> bool:
        # Gated on locked as well as disputed so that held never changes
        # once the account is frozen.
        if self._locked:
            return self._ignore(record, "account locked")
        stored = self._transactions.get(record.tx)
        if stored is None:
            return self._ignore(record, "unknown tx")
        if not stored.disputed:
            return self._ignore(record, "not disputed")
        self._held -= stored.amount
        stored.charged_back = True
        self._locked = True
        logger.info("client %s: account locked by chargeback of tx=%s", self.client, record.tx)
        return True
