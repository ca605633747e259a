"""
registry.py - Client Routing and Final Snapshot

The Registry owns every Ledger created during a run. It routes each record to
the ledger of its client, creating that ledger on first sight, and exposes
the final balances once the stream has been consumed.

A Registry is a plain value owned by whoever drives the replay; there is no
module-level instance.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .core import (
    TransactionRecord, AccountBalances, ApplyResult,
    round_amount,
)
from .ledger import Ledger
from .logging_setup import get_logger

logger = get_logger("ledger_replay.registry")


class Registry:
    """
    Mapping from client id to Ledger.

    Entries are created lazily by process() and never removed.

    Example:
        registry = Registry()
        registry.process_all(read_records("transactions.csv"))
        for client, balances in registry.snapshot():
            ...
    """

    def __init__(self):
        self._ledgers: Dict[int, Ledger] = {}

    def __len__(self) -> int:
        return len(self._ledgers)

    def __contains__(self, client: object) -> bool:
        return client in self._ledgers

    def get(self, client: int) -> Optional[Ledger]:
        """Return the ledger for client, or None if it was never seen."""
        return self._ledgers.get(client)

    def clients(self) -> List[int]:
        """Client ids in first-seen order."""
        return list(self._ledgers)

    def _ledger_for(self, client: int) -> Ledger:
        ledger = self._ledgers.get(client)
        if ledger is None:
            ledger = Ledger(client)
            self._ledgers[client] = ledger
            logger.debug("created ledger for client %s", client)
        return ledger

    def process(self, record: TransactionRecord) -> ApplyResult:
        """
        Route one record to its client's ledger.

        Never fails: invalid instructions are absorbed by the ledger.

        Returns:
            The ApplyResult reported by the ledger
        """
        return self._ledger_for(record.client).apply(record)

    def process_all(self, records: Iterable[TransactionRecord]) -> int:
        """
        Apply a stream of records strictly in order.

        Errors raised by the record source (e.g. a malformed row) propagate
        to the caller unchanged.

        Returns:
            Number of records consumed
        """
        count = 0
        ignored = 0
        for record in records:
            if self.process(record) is ApplyResult.IGNORED:
                ignored += 1
            count += 1
        logger.info(
            "processed %d records (%d ignored) across %d clients",
            count, ignored, len(self._ledgers),
        )
        return count

    def snapshot(self) -> Iterator[Tuple[int, AccountBalances]]:
        """
        Yield (client, balances) for every ledger ever created.

        Ordering is not part of the contract (currently first-seen order).
        Balances are immutable snapshots; reading them has no side effects.
        """
        for client, ledger in self._ledgers.items():
            yield client, ledger.balances

    def verify_balances(self) -> Dict[str, Any]:
        """
        Check the balance invariants of every account.

        For each ledger: total == available + held, and every value is
        already quantized to four decimal places.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every account satisfies the invariants
            - 'discrepancies': List[Dict] - one entry per failing account with
              client, available, held, total and a reason
        """
        discrepancies = []
        for client, balances in self.snapshot():
            reason = None
            if balances.total != balances.available + balances.held:
                reason = "total != available + held"
            else:
                for value in (balances.available, balances.held, balances.total):
                    if round_amount(value) != value:
                        reason = "value not rounded to 4 decimal places"
                        break
            if reason:
                discrepancies.append({
                    'client': client,
                    'available': balances.available,
                    'held': balances.held,
                    'total': balances.total,
                    'reason': reason,
                })

        return {
            'valid': len(discrepancies) == 0,
            'discrepancies': discrepancies,
        }
