"""
cli.py - Console entry point for ``ledger-replay``

Usage:
    ledger-replay transactions.csv > accounts.csv

Reads the whole input file, replays it into a fresh Registry and only then
writes the account snapshot to stdout. A malformed input aborts the run with
a message on stderr and exit code 1; nothing is written to stdout.
"""

from __future__ import annotations

from pathlib import Path

import typer

from .core import LedgerError
from .csv_io import read_records, write_snapshot
from .logging_setup import configure_logging, get_logger
from .registry import Registry

logger = get_logger("ledger_replay.cli")

app = typer.Typer(
    add_completion=False,
    help="Replay a transaction CSV and print the final account balances as CSV.",
)


def replay_file(path: Path) -> Registry:
    """
    Replay every record of a CSV file into a new Registry.

    Raises:
        LedgerError: If the file cannot be read or any row is malformed
    """
    registry = Registry()
    registry.process_all(read_records(path))
    return registry


@app.command()
def run(
    input_path: Path = typer.Argument(
        ...,
        metavar="INPUT",
        help="Transaction CSV file (header: type, client, tx, amount).",
    ),
) -> None:
    configure_logging()
    try:
        registry = replay_file(input_path)
    except LedgerError as exc:
        logger.debug("replay of %s aborted", input_path, exc_info=True)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(1)

    write_snapshot(registry.snapshot())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
