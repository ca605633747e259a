"""
Core types and pure functions for the ledger replay engine.

This module provides the foundational data structures for the replay:
1. Enums: TransactionKind, TransactionStatus, ApplyResult
2. Immutable records: one frozen dataclass per transaction kind
3. Mutable per-ledger state: StoredTransaction
4. Value snapshots: AccountBalances
5. Exceptions: LedgerError and boundary error types
6. Rounding: round_amount() for 4dp half-away-from-zero quantization

Nothing in this module mutates ledger state. The Ledger class in ledger.py
is the only place balances change.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, getcontext, localcontext
from enum import Enum
from typing import ClassVar, Dict, Optional, Type


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Replay arithmetic is done entirely in Decimal. The global context is set
# once at import time; rounding to the reporting precision is always done
# with an explicit quantize() so the context rounding mode never leaks into
# balances.
#
_REPLAY_DECIMAL_CONTEXT = getcontext()
_REPLAY_DECIMAL_CONTEXT.prec = 50


# ============================================================================
# CONSTANTS
# ============================================================================

# Balances are reported to four decimal places.
ROUNDING_PLACES = 4
ROUNDING_MODE = ROUND_HALF_UP  # half away from zero
_QUANTIZER = Decimal(10) ** -ROUNDING_PLACES

# Largest adjusted exponent an input amount may have and still be held
# exactly to ROUNDING_PLACES within the context precision (46 integer digits).
MAX_AMOUNT_EXPONENT = _REPLAY_DECIMAL_CONTEXT.prec - ROUNDING_PLACES - 1

ZERO = Decimal("0")

# Identifier ranges (u16 client ids, u32 transaction ids).
MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TX_ID = 2 ** 32 - 1

# Column order for both the input and the output CSV files.
CSV_HEADER = ("type", "client", "tx", "amount")
SNAPSHOT_HEADER = ("client", "available", "held", "total", "locked")


def round_amount(value: Decimal) -> Decimal:
    """
    Round a balance to ROUNDING_PLACES using half-away-from-zero.

    Decimal("1.00005") -> Decimal("1.0001")
    Decimal("-1.00005") -> Decimal("-1.0001")

    Precision is widened for the quantize so balances with more integer
    digits than the context precision still round instead of raising.

    Raises:
        TypeError: If value is not a Decimal
    """
    if not isinstance(value, Decimal):
        raise TypeError(f"round_amount expects Decimal, got {type(value)}")
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, max(value.adjusted(), 0) + ROUNDING_PLACES + 1)
        return value.quantize(_QUANTIZER, rounding=ROUNDING_MODE)


# ============================================================================
# ENUMS
# ============================================================================

class TransactionKind(Enum):
    """
    Closed set of record kinds understood by the replay.

    UNKNOWN is the catch-all for any type text that is not one of the five
    operational kinds. Such records are accepted and ignored.
    """
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, text: str) -> TransactionKind:
        """Map the exact (case-sensitive) type text to a kind, else UNKNOWN."""
        try:
            return cls(text)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_transfer(self) -> bool:
        """True for the kinds that carry an amount and are stored."""
        return self in (TransactionKind.DEPOSIT, TransactionKind.WITHDRAWAL)


class TransactionStatus(Enum):
    """
    Dispute lifecycle of a stored transaction.

    ACTIVE -> DISPUTED (dispute)
    DISPUTED -> ACTIVE (resolve)
    DISPUTED -> CHARGEDBACK (chargeback, terminal)
    """
    ACTIVE = "active"
    DISPUTED = "disputed"
    CHARGEDBACK = "chargedback"


class ApplyResult(Enum):
    """
    Outcome of applying one record to a ledger.

    APPLIED: The record was accepted and balances were recomputed and rounded.
    IGNORED: The record was a no-op (unknown kind, unknown tx, wrong dispute
             stage, locked account or missing amount). Never an error.
    """
    APPLIED = "applied"
    IGNORED = "ignored"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all fatal replay errors."""
    pass


class MalformedRecord(LedgerError):
    """Raised when an input row cannot be turned into a record."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class InputUnavailable(LedgerError):
    """Raised when the input file cannot be opened or read."""
    pass


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """
    One instruction from the input stream.

    Subclasses fix the kind and add a payload where the kind needs one.
    Only Deposit and Withdrawal carry an amount.

    Attributes:
        client: Client identifier (u16)
        tx: Transaction identifier (u32)
    """
    client: int
    tx: int

    kind: ClassVar[TransactionKind] = TransactionKind.UNKNOWN

    def __post_init__(self):
        if isinstance(self.client, bool) or not isinstance(self.client, int):
            raise ValueError(f"client must be int, got {type(self.client)}")
        if isinstance(self.tx, bool) or not isinstance(self.tx, int):
            raise ValueError(f"tx must be int, got {type(self.tx)}")
        if not 0 <= self.client <= MAX_CLIENT_ID:
            raise ValueError(f"client {self.client} out of range 0..{MAX_CLIENT_ID}")
        if not 0 <= self.tx <= MAX_TX_ID:
            raise ValueError(f"tx {self.tx} out of range 0..{MAX_TX_ID}")


@dataclass(frozen=True, slots=True)
class TransferRecord(TransactionRecord):
    """
    A record that moves funds in or out of an account.

    amount is None when the input row left it blank; the ledger ignores
    such records.
    """
    amount: Optional[Decimal] = None

    def __post_init__(self):
        TransactionRecord.__post_init__(self)
        if self.amount is not None:
            if not isinstance(self.amount, Decimal):
                raise ValueError(f"amount must be Decimal, got {type(self.amount)}")
            if not self.amount.is_finite():
                raise ValueError(f"amount must be finite, got {self.amount}")
            if self.amount.adjusted() > MAX_AMOUNT_EXPONENT:
                raise ValueError(
                    f"amount {self.amount} exceeds {MAX_AMOUNT_EXPONENT + 1} integer digits"
                )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={self.client}, tx={self.tx}, amount={self.amount})"


@dataclass(frozen=True, slots=True, repr=False)
class Deposit(TransferRecord):
    kind: ClassVar[TransactionKind] = TransactionKind.DEPOSIT


@dataclass(frozen=True, slots=True, repr=False)
class Withdrawal(TransferRecord):
    kind: ClassVar[TransactionKind] = TransactionKind.WITHDRAWAL


@dataclass(frozen=True, slots=True)
class Dispute(TransactionRecord):
    kind: ClassVar[TransactionKind] = TransactionKind.DISPUTE


@dataclass(frozen=True, slots=True)
class Resolve(TransactionRecord):
    kind: ClassVar[TransactionKind] = TransactionKind.RESOLVE


@dataclass(frozen=True, slots=True)
class Chargeback(TransactionRecord):
    kind: ClassVar[TransactionKind] = TransactionKind.CHARGEBACK


@dataclass(frozen=True, slots=True)
class UnknownRecord(TransactionRecord):
    """A record whose type text is not recognized. Kept for diagnostics only."""
    raw_kind: str = ""


RECORD_TYPES: Dict[TransactionKind, Type[TransactionRecord]] = {
    TransactionKind.DEPOSIT: Deposit,
    TransactionKind.WITHDRAWAL: Withdrawal,
    TransactionKind.DISPUTE: Dispute,
    TransactionKind.RESOLVE: Resolve,
    TransactionKind.CHARGEBACK: Chargeback,
    TransactionKind.UNKNOWN: UnknownRecord,
}


def make_record(
    kind: TransactionKind,
    client: int,
    tx: int,
    amount: Optional[Decimal] = None,
    raw_kind: str = "",
) -> TransactionRecord:
    """
    Build the record shape that matches a kind.

    The amount is only kept for deposits and withdrawals; it is dropped for
    every other kind.

    Args:
        kind: Parsed record kind
        client: Client identifier
        tx: Transaction identifier
        amount: Optional amount (transfers only)
        raw_kind: Original type text, kept on UnknownRecord

    Returns:
        A TransactionRecord subclass instance

    Raises:
        ValueError: If an identifier is out of range or the amount is invalid
    """
    if kind.is_transfer:
        return RECORD_TYPES[kind](client, tx, amount)
    if kind is TransactionKind.UNKNOWN:
        return UnknownRecord(client, tx, raw_kind)
    return RECORD_TYPES[kind](client, tx)


# ============================================================================
# LEDGER STATE
# ============================================================================

@dataclass(slots=True)
class StoredTransaction:
    """
    An accepted deposit or withdrawal retained by a ledger.

    The record itself is immutable; only the dispute flags change.

    Attributes:
        record: The accepted transfer record
        disputed: True while the transaction is under dispute
        charged_back: True once the transaction was charged back (terminal)
    """
    record: TransferRecord
    disputed: bool = False
    charged_back: bool = False

    @property
    def tx(self) -> int:
        return self.record.tx

    @property
    def amount(self) -> Decimal:
        return self.record.amount

    @property
    def kind(self) -> TransactionKind:
        return self.record.kind

    @property
    def status(self) -> TransactionStatus:
        if self.charged_back:
            return TransactionStatus.CHARGEDBACK
        if self.disputed:
            return TransactionStatus.DISPUTED
        return TransactionStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class AccountBalances:
    """
    Immutable balance snapshot of one account.

    Attributes:
        available: Funds the client can use
        held: Funds frozen pending dispute resolution
        total: available + held
        locked: True once a chargeback froze the account
    """
    available: Decimal = ZERO
    held: Decimal = ZERO
    total: Decimal = ZERO
    locked: bool = False
