"""
ledger_replay - Transaction Ledger Replay Engine

Replays an ordered stream of per-client transaction records (deposits,
withdrawals, disputes, resolutions and chargebacks) and reports each
client's final balances.

Usage:
    from decimal import Decimal
    from ledger_replay import Registry, Deposit, Dispute

    registry = Registry()
    registry.process(Deposit(client=1, tx=1, amount=Decimal("10.0")))
    registry.process(Dispute(client=1, tx=1))

    for client, balances in registry.snapshot():
        print(client, balances.available, balances.held, balances.locked)

    # Or straight from a CSV file
    from ledger_replay import read_records, write_snapshot
    registry = Registry()
    registry.process_all(read_records("transactions.csv"))
    write_snapshot(registry.snapshot())
"""

# Core types
from .core import (
    TransactionKind,
    TransactionStatus,
    ApplyResult,
    TransactionRecord,
    TransferRecord,
    Deposit,
    Withdrawal,
    Dispute,
    Resolve,
    Chargeback,
    UnknownRecord,
    make_record,
    StoredTransaction,
    AccountBalances,
    round_amount,
    LedgerError,
    MalformedRecord,
    InputUnavailable,
    ROUNDING_PLACES,
    ROUNDING_MODE,
    MAX_CLIENT_ID,
    MAX_TX_ID,
    MAX_AMOUNT_EXPONENT,
)

# State machine and routing
from .ledger import Ledger
from .registry import Registry

# CSV boundary
from .csv_io import (
    parse_row,
    iter_records,
    read_records,
    write_snapshot,
)

# Logging
from .logging_setup import configure_logging, get_logger

__all__ = [
    # Core
    'TransactionKind', 'TransactionStatus', 'ApplyResult',
    'TransactionRecord', 'TransferRecord',
    'Deposit', 'Withdrawal', 'Dispute', 'Resolve', 'Chargeback', 'UnknownRecord',
    'make_record', 'StoredTransaction', 'AccountBalances', 'round_amount',
    'LedgerError', 'MalformedRecord', 'InputUnavailable',
    'ROUNDING_PLACES', 'ROUNDING_MODE', 'MAX_CLIENT_ID', 'MAX_TX_ID', 'MAX_AMOUNT_EXPONENT',
    # Ledger / Registry
    'Ledger', 'Registry',
    # CSV
    'parse_row', 'iter_records', 'read_records', 'write_snapshot',
    # Logging
    'configure_logging', 'get_logger',
]

__version__ = '1.0.0'
