"""
test_ledger_operations.py - Unit tests for the Ledger state machine

Tests:
- Ledger creation
- Deposits and withdrawals (including missing amount and overdraft)
- Dispute, resolve and chargeback transitions and their no-op cases
- Lock semantics
- Rounding behavior and the total invariant
- Unrecognized record kinds
"""

import pytest
from decimal import Decimal

from ledger_replay import (
    Ledger, ApplyResult, TransactionStatus, AccountBalances,
    Deposit, Withdrawal, Dispute, Resolve, Chargeback, UnknownRecord,
)


D = Decimal


class TestLedgerCreation:
    """Tests for Ledger initialization."""

    def test_new_ledger_is_zero_and_unlocked(self, empty_ledger):
        assert empty_ledger.client == 1
        assert empty_ledger.available == 0
        assert empty_ledger.held == 0
        assert empty_ledger.total == 0
        assert empty_ledger.locked is False
        assert empty_ledger.transactions == {}

    def test_balances_snapshot(self, funded_ledger):
        snap = funded_ledger.balances
        assert snap == AccountBalances(D("10"), D("0"), D("10"), False)
        funded_ledger.apply(Deposit(1, 2, D("5")))
        # Earlier snapshot is unaffected by later mutations
        assert snap.available == D("10")

    def test_repr(self, funded_ledger):
        assert "client=1" in repr(funded_ledger)


class TestDeposit:
    """Tests for deposits."""

    def test_deposit_increases_available(self, empty_ledger):
        result = empty_ledger.apply(Deposit(1, 1, D("10.0")))
        assert result is ApplyResult.APPLIED
        assert empty_ledger.available == D("10")
        assert empty_ledger.total == D("10")
        assert empty_ledger.held == 0

    def test_deposit_is_stored(self, empty_ledger):
        empty_ledger.apply(Deposit(1, 1, D("10.0")))
        stored = empty_ledger.get_transaction(1)
        assert stored is not None
        assert stored.amount == D("10.0")
        assert stored.disputed is False
        assert stored.status is TransactionStatus.ACTIVE

    def test_deposit_missing_amount_is_noop(self, empty_ledger):
        assert empty_ledger.apply(Deposit(1, 1)) is ApplyResult.IGNORED
        assert empty_ledger.available == 0
        assert empty_ledger.get_transaction(1) is None

    def test_duplicate_tx_overwrites_stored(self, empty_ledger):
        empty_ledger.apply(Deposit(1, 1, D("10")))
        empty_ledger.apply(Deposit(1, 1, D("3")))
        assert empty_ledger.available == D("13")
        assert empty_ledger.get_transaction(1).amount == D("3")

    def test_deposit_on_locked_is_noop(self, locked_ledger):
        assert locked_ledger.apply(Deposit(1, 2, D("5"))) is ApplyResult.IGNORED
        assert locked_ledger.available == 0
        assert locked_ledger.get_transaction(2) is None


class TestWithdrawal:
    """Tests for withdrawals."""

    def test_withdrawal_decreases_available(self, funded_ledger):
        assert funded_ledger.apply(Withdrawal(1, 2, D("3"))) is ApplyResult.APPLIED
        assert funded_ledger.available == D("7")
        assert funded_ledger.total == D("7")

    def test_withdrawal_can_overdraw(self, empty_ledger):
        empty_ledger.apply(Withdrawal(1, 1, D("50.0")))
        assert empty_ledger.available == D("-50")
        assert empty_ledger.total == D("-50")
        assert empty_ledger.locked is False

    def test_withdrawal_is_stored(self, funded_ledger):
        funded_ledger.apply(Withdrawal(1, 2, D("3")))
        assert funded_ledger.get_transaction(2).amount == D("3")

    def test_withdrawal_missing_amount_is_noop(self, funded_ledger):
        assert funded_ledger.apply(Withdrawal(1, 2)) is ApplyResult.IGNORED
        assert funded_ledger.available == D("10")

    def test_withdrawal_on_locked_is_noop(self, locked_ledger):
        assert locked_ledger.apply(Withdrawal(1, 2, D("5"))) is ApplyResult.IGNORED
        assert locked_ledger.available == 0


class TestDispute:
    """Tests for disputes."""

    def test_dispute_moves_funds_to_held(self, funded_ledger):
        assert funded_ledger.apply(Dispute(1, 1)) is ApplyResult.APPLIED
        assert funded_ledger.available == 0
        assert funded_ledger.held == D("10")
        assert funded_ledger.total == D("10")
        assert funded_ledger.get_transaction(1).status is TransactionStatus.DISPUTED

    def test_dispute_unknown_tx_is_noop(self, funded_ledger):
        assert funded_ledger.apply(Dispute(1, 99)) is ApplyResult.IGNORED
        assert funded_ledger.available == D("10")
        assert funded_ledger.held == 0

    def test_double_dispute_is_noop(self, disputed_ledger):
        assert disputed_ledger.apply(Dispute(1, 1)) is ApplyResult.IGNORED
        assert disputed_ledger.available == 0
        assert disputed_ledger.held == D("10")

    def test_dispute_withdrawal(self, funded_ledger):
        funded_ledger.apply(Withdrawal(1, 2, D("4")))
        funded_ledger.apply(Dispute(1, 2))
        assert funded_ledger.available == D("2")
        assert funded_ledger.held == D("4")
        assert funded_ledger.total == D("6")

    def test_dispute_on_locked_is_noop(self, empty_ledger):
        empty_ledger.apply(Deposit(1, 1, D("10")))
        empty_ledger.apply(Deposit(1, 2, D("5")))
        empty_ledger.apply(Dispute(1, 1))
        empty_ledger.apply(Chargeback(1, 1))
        assert empty_ledger.apply(Dispute(1, 2)) is ApplyResult.IGNORED
        assert empty_ledger.available == D("5")
        assert empty_ledger.held == 0


class TestResolve:
    """Tests for resolutions."""

    def test_resolve_restores_available(self, disputed_ledger):
        assert disputed_ledger.apply(Resolve(1, 1)) is ApplyResult.APPLIED
        assert disputed_ledger.available == D("10")
        assert disputed_ledger.held == 0
        assert disputed_ledger.total == D("10")
        assert disputed_ledger.get_transaction(1).status is TransactionStatus.ACTIVE

    def test_resolve_undisputed_is_noop(self, funded_ledger):
        assert funded_ledger.apply(Resolve(1, 1)) is ApplyResult.IGNORED
        assert funded_ledger.available == D("10")

    def test_resolve_unknown_tx_is_noop(self, disputed_ledger):
        assert disputed_ledger.apply(Resolve(1, 42)) is ApplyResult.IGNORED
        assert disputed_ledger.held == D("10")

    def test_resolved_tx_can_be_disputed_again(self, disputed_ledger):
        disputed_ledger.apply(Resolve(1, 1))
        assert disputed_ledger.apply(Dispute(1, 1)) is ApplyResult.APPLIED
        assert disputed_ledger.held == D("10")

    def test_resolve_on_locked_is_noop(self, empty_ledger):
        empty_ledger.apply(Deposit(1, 1, D("10")))
        empty_ledger.apply(Deposit(1, 2, D("5")))
        empty_ledger.apply(Dispute(1, 1))
        empty_ledger.apply(Dispute(1, 2))
        empty_ledger.apply(Chargeback(1, 1))
        assert empty_ledger.apply(Resolve(1, 2)) is ApplyResult.IGNORED
        assert empty_ledger.available == 0
        assert empty_ledger.held == D("5")


class TestChargeback:
    """Tests for chargebacks."""

    def test_chargeback_removes_held_and_locks(self, disputed_ledger):
        assert disputed_ledger.apply(Chargeback(1, 1)) is ApplyResult.APPLIED
        assert disputed_ledger.available == 0
        assert disputed_ledger.held == 0
        assert disputed_ledger.total == 0
        assert disputed_ledger.locked is True
        stored = disputed_ledger.get_transaction(1)
        assert stored.status is TransactionStatus.CHARGEDBACK

    def test_chargeback_undisputed_is_noop(self, funded_ledger):
        assert funded_ledger.apply(Chargeback(1, 1)) is ApplyResult.IGNORED
        assert funded_ledger.available == D("10")
        assert funded_ledger.locked is False

    def test_chargeback_unknown_tx_is_noop(self, disputed_ledger):
        assert disputed_ledger.apply(Chargeback(1, 5)) is ApplyResult.IGNORED
        assert disputed_ledger.locked is False

    def test_second_chargeback_on_locked_is_noop(self, empty_ledger):
        empty_ledger.apply(Deposit(1, 1, D("10")))
        empty_ledger.apply(Deposit(1, 2, D("5")))
        empty_ledger.apply(Dispute(1, 1))
        empty_ledger.apply(Dispute(1, 2))
        empty_ledger.apply(Chargeback(1, 1))
        assert empty_ledger.apply(Chargeback(1, 2)) is ApplyResult.IGNORED
        assert empty_ledger.held == D("5")
        assert empty_ledger.locked is True

    def test_chargeback_keeps_disputed_flag(self, locked_ledger):
        assert locked_ledger.get_transaction(1).disputed is True


class TestRounding:
    """Tests for 4dp rounding after successful operations."""

    def test_deposit_rounds_half_away_from_zero(self, empty_ledger):
        empty_ledger.apply(Deposit(1, 1, D("1.00005")))
        assert empty_ledger.available == D("1.0001")
        assert empty_ledger.total == D("1.0001")

    def test_values_have_four_places(self, empty_ledger):
        empty_ledger.apply(Deposit(1, 1, D("10")))
        assert str(empty_ledger.available) == "10.0000"
        assert str(empty_ledger.total) == "10.0000"
        assert str(empty_ledger.held) == "0.0000"

    def test_noop_does_not_round(self, empty_ledger):
        empty_ledger.apply(Dispute(1, 1))
        assert str(empty_ledger.available) == "0"

    def test_total_invariant_with_extra_precision(self, empty_ledger):
        empty_ledger.apply(Deposit(1, 1, D("0.00005")))
        empty_ledger.apply(Dispute(1, 1))
        assert empty_ledger.total == empty_ledger.available + empty_ledger.held

    def test_balance_wider_than_context_precision(self, empty_ledger):
        assert empty_ledger.apply(Deposit(1, 1, D("1E+45"))) == ApplyResult.APPLIED
        assert empty_ledger.apply(Deposit(1, 2, D("9E+45"))) == ApplyResult.APPLIED
        assert empty_ledger.available == D("1E+46")
        assert empty_ledger.available.as_tuple().exponent == -4

        assert empty_ledger.apply(Dispute(1, 2)) == ApplyResult.APPLIED
        assert empty_ledger.available == D("1E+45")
        assert empty_ledger.held == D("9E+45")
        assert empty_ledger.total == D("1E+46")

    def test_accumulating_largest_amounts_never_raises(self, empty_ledger):
        largest = D("9" * 46 + ".9999")
        for tx in range(1, 21):
            assert empty_ledger.apply(Deposit(1, tx, largest)) == ApplyResult.APPLIED
        assert empty_ledger.available > largest * 19
        assert empty_ledger.total.as_tuple().exponent == -4


class TestUnknownKind:
    """Tests for records with an unrecognized type."""

    def test_unknown_is_noop(self, empty_ledger):
        assert empty_ledger.apply(UnknownRecord(1, 1, "foo")) is ApplyResult.IGNORED
        assert empty_ledger.balances == AccountBalances()

    def test_unknown_does_not_round(self, empty_ledger):
        empty_ledger.apply(UnknownRecord(1, 1, "foo"))
        assert str(empty_ledger.total) == "0"

    def test_unknown_on_funded_is_noop(self, funded_ledger):
        before = funded_ledger.balances
        funded_ledger.apply(UnknownRecord(1, 1, "transfer"))
        assert funded_ledger.balances == before
