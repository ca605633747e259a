"""
csv_io.py - CSV Input and Output Boundary

Reads the transaction CSV into typed records and writes the final account
snapshot back out as CSV.

Input format (header row required, 4 columns, fields trimmed):

    type, client, tx, amount
    deposit, 1, 1, 1.0
    dispute, 1, 1,

Output format:

    client,available,held,total,locked
    1,0.0000,1.0000,1.0000,false

Any malformed row is fatal (MalformedRecord); nothing is recovered.
"""

from __future__ import annotations

import csv
import sys
from collections.abc import Iterable, Iterator, Sequence
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import IO, Optional, Tuple, Union

from .core import (
    TransactionRecord, AccountBalances, TransactionKind,
    MalformedRecord, InputUnavailable,
    CSV_HEADER, SNAPSHOT_HEADER, MAX_CLIENT_ID, MAX_TX_ID,
    make_record, round_amount,
)
from .logging_setup import get_logger

logger = get_logger("ledger_replay.csv_io")


def _parse_id(value: str, name: str, upper: int, line: Optional[int]) -> int:
    if not (value.isascii() and value.isdigit()):
        raise MalformedRecord(f"{name} must be an unsigned integer, got {value!r}", line)
    parsed = int(value)
    if parsed > upper:
        raise MalformedRecord(f"{name} {parsed} out of range 0..{upper}", line)
    return parsed


def _parse_amount(value: str, line: Optional[int]) -> Optional[Decimal]:
    if value == "":
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise MalformedRecord(f"amount is not a decimal number: {value!r}", line) from None
    if not amount.is_finite():
        raise MalformedRecord(f"amount must be finite, got {value!r}", line)
    return amount


def parse_row(fields: Sequence[str], line: Optional[int] = None) -> TransactionRecord:
    """
    Convert one CSV row into a record.

    Fields are trimmed. An empty amount means "absent". The amount column is
    only parsed for deposits and withdrawals; other kinds ignore it.

    Args:
        fields: The row's fields in CSV_HEADER order
        line: 1-based line number for error messages

    Returns:
        The matching TransactionRecord subclass

    Raises:
        MalformedRecord: If the row has the wrong shape or a bad numeric field
    """
    if len(fields) != len(CSV_HEADER):
        raise MalformedRecord(
            f"expected {len(CSV_HEADER)} fields, found {len(fields)}", line
        )
    raw_kind, raw_client, raw_tx, raw_amount = (f.strip() for f in fields)

    kind = TransactionKind.parse(raw_kind)
    client = _parse_id(raw_client, "client", MAX_CLIENT_ID, line)
    tx = _parse_id(raw_tx, "tx", MAX_TX_ID, line)
    amount = _parse_amount(raw_amount, line) if kind.is_transfer else None

    try:
        return make_record(kind, client, tx, amount, raw_kind=raw_kind)
    except ValueError as exc:
        raise MalformedRecord(str(exc), line) from exc


def iter_records(rows: Iterable[Sequence[str]]) -> Iterator[TransactionRecord]:
    """
    Parse rows (header first) into records, lazily and in order.

    The header names are compared to CSV_HEADER ignoring case and padding, so
    a file whose first row is data is rejected instead of losing that row.
    Blank rows are skipped. Every other row must have exactly as many fields
    as the header.

    Raises:
        MalformedRecord: On a missing or mismatched header or any bad row
    """
    iterator = iter(rows)
    header = None
    line = 0
    for row in iterator:
        line += 1
        if row:
            header = [f.strip() for f in row]
            break
    if header is None:
        raise MalformedRecord("input is empty, expected a header row", line or 1)
    if len(header) != len(CSV_HEADER):
        raise MalformedRecord(
            f"header must have {len(CSV_HEADER)} columns {CSV_HEADER}, found {len(header)}",
            line,
        )
    if tuple(name.lower() for name in header) != CSV_HEADER:
        raise MalformedRecord(
            f"header must be {', '.join(CSV_HEADER)}, found {', '.join(header)}",
            line,
        )

    for row in iterator:
        line += 1
        if not row:
            continue
        yield parse_row(row, line)


def read_records(path: Union[str, Path]) -> Iterator[TransactionRecord]:
    """
    Stream records from a CSV file.

    The file is opened when iteration starts and closed when it ends.

    Args:
        path: Path of the input CSV file

    Raises:
        InputUnavailable: If the file cannot be opened or read
        MalformedRecord: On the first malformed row
    """
    path = Path(path)
    try:
        handle = open(path, newline="", encoding="utf-8-sig")
    except OSError as exc:
        raise InputUnavailable(f"cannot open {path}: {exc.strerror or exc}") from exc

    with handle:
        logger.debug("reading records from %s", path)
        try:
            yield from iter_records(csv.reader(handle))
        except csv.Error as exc:
            raise MalformedRecord(f"invalid CSV: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise InputUnavailable(f"cannot decode {path}: {exc}") from exc


def format_amount(value) -> str:
    """Fixed-point text with exactly four decimal places."""
    return format(round_amount(value), "f")


def snapshot_row(client: int, balances: AccountBalances) -> Tuple[str, ...]:
    """Render one account as a CSV row in SNAPSHOT_HEADER order."""
    return (
        str(client),
        format_amount(balances.available),
        format_amount(balances.held),
        format_amount(balances.total),
        "true" if balances.locked else "false",
    )


def write_snapshot(
    snapshot: Iterable[Tuple[int, AccountBalances]],
    stream: Optional[IO[str]] = None,
) -> int:
    """
    Write a header row followed by one row per account.

    Args:
        snapshot: (client, balances) pairs, e.g. Registry.snapshot()
        stream: Text stream to write to (default: sys.stdout at call time)

    Returns:
        Number of account rows written
    """
    out = stream if stream is not None else sys.stdout
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(SNAPSHOT_HEADER)
    count = 0
    for client, balances in snapshot:
        writer.writerow(snapshot_row(client, balances))
        count += 1
    return count
