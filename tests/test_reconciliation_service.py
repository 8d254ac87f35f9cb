"""Tests for bank reconciliation."""

import threading
from datetime import date
from decimal import Decimal

import pytest

from cashrecon.domain.entities import ReconciliationStatus, TransactionFilter
from cashrecon.domain.errors import ConcurrencyConflict, NotFoundError, ValidationError
from cashrecon.domain.reconciliation import compute_book_balance


def _income(transaction_service, account_id, amount, day, **kwargs):
    return transaction_service.append(
        type="income", amount=amount, account_id=account_id, date=day, **kwargs
    )


class TestCleanReconciliation:
    def test_matching_statement_completes(
        self, bank_service, transaction_service, account_service, sample_account
    ):
        txn = _income(transaction_service, sample_account.id, "500.00", date(2024, 10, 25))

        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 25),
            statement_balance="10500.00",
            reconciled_by="alice",
        )

        assert rec.status is ReconciliationStatus.COMPLETED
        assert rec.book_balance == Decimal("10500.00")
        assert rec.difference == Decimal("0.00")
        assert rec.matched_transaction_ids == (txn.id,)
        assert rec.unmatched_book_transaction_ids == ()
        assert rec.reconciled_by == "alice"
        assert rec.account_name == "Main Checking"

        account = account_service.get_account(sample_account.id)
        assert account.current_balance == Decimal("10500.00")
        assert account.last_reconciled_balance == Decimal("10500.00")
        assert account.last_reconciled_at is not None

        stored = transaction_service.get_transaction(txn.id)
        assert stored.is_reconciled
        assert stored.reconciled_by == "alice"

    def test_sub_cent_difference_completes(self, bank_service, account_service, sample_account):
        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 1),
            statement_balance=Decimal("10000.009"),
            reconciled_by="alice",
        )

        assert rec.status is ReconciliationStatus.COMPLETED
        assert rec.statement_balance == Decimal("10000.009")
        assert rec.difference == Decimal("0.009")
        # The account itself holds whole cents.
        assert account_service.get_account(sample_account.id).current_balance == Decimal(
            "10000.01"
        )

    def test_statement_compared_before_rounding(self, bank_service, sample_account):
        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 1),
            statement_balance=Decimal("10000.006"),
            reconciled_by="alice",
        )

        assert rec.status is ReconciliationStatus.COMPLETED
        assert rec.difference == Decimal("0.006")

    def test_one_cent_is_a_discrepancy(self, bank_service, account_service, sample_account):
        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 1),
            statement_balance=Decimal("10000.010"),
            reconciled_by="alice",
        )

        assert rec.difference == Decimal("0.01")
        assert rec.status is ReconciliationStatus.DISCREPANCY
        assert account_service.get_account(sample_account.id).current_balance == Decimal(
            "10000.00"
        )

    def test_flags_match_transaction_reconcile(
        self, bank_service, transaction_service, sample_account
    ):
        txn = _income(transaction_service, sample_account.id, "25.00", date(2024, 10, 2))
        bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 2),
            statement_balance="10025.00",
            reconciled_by="alice",
        )

        # Same batch again through the store: nothing new, original stamp kept.
        assert transaction_service.reconcile([txn.id, 999], "bob") == 0
        assert transaction_service.get_transaction(txn.id).reconciled_by == "alice"

    def test_reconciling_twice_without_activity(self, bank_service, sample_account):
        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 25),
            statement_balance="10000.00",
            reconciled_by="bob",
        )

        assert rec.status is ReconciliationStatus.COMPLETED
        assert rec.matched_transaction_ids == ()

    def test_expenses_reduce_book_balance(
        self, bank_service, transaction_service, sample_account
    ):
        _income(transaction_service, sample_account.id, "250.00", date(2024, 10, 3))
        transaction_service.append(
            type="expense", amount="75.25", account_id=sample_account.id, date=date(2024, 10, 4)
        )
        transaction_service.append(
            type="transfer", amount="100.00", account_id=sample_account.id, date=date(2024, 10, 5)
        )

        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 31),
            statement_balance="10074.75",
            reconciled_by="alice",
        )

        assert rec.status is ReconciliationStatus.COMPLETED
        assert len(rec.matched_transaction_ids) == 3


class TestDiscrepancy:
    def test_mismatch_leaves_state_untouched(
        self, bank_service, transaction_service, account_service, sample_account
    ):
        txn = _income(transaction_service, sample_account.id, "500.00", date(2024, 10, 25))

        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 25),
            statement_balance="10490.00",
            reconciled_by="alice",
            notes="Bank fee?",
            unmatched_bank_transactions=["Monthly fee 10.00"],
        )

        assert rec.status is ReconciliationStatus.DISCREPANCY
        assert rec.difference == Decimal("10.00")
        assert rec.book_balance == Decimal("10500.00")
        assert rec.matched_transaction_ids == ()
        assert rec.unmatched_book_transaction_ids == (txn.id,)
        assert rec.unmatched_bank_transactions == ("Monthly fee 10.00",)
        assert rec.notes == "Bank fee?"

        account = account_service.get_account(sample_account.id)
        assert account.current_balance == Decimal("10000.00")
        assert account.last_reconciled_balance == Decimal("10000.00")
        assert not transaction_service.get_transaction(txn.id).is_reconciled

    def test_difference_is_absolute(self, bank_service, sample_account):
        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 25),
            statement_balance="10012.50",
            reconciled_by="alice",
        )
        assert rec.difference == Decimal("12.50")

    def test_retry_after_discrepancy(self, bank_service, transaction_service, sample_account):
        _income(transaction_service, sample_account.id, "500.00", date(2024, 10, 25))
        bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 25),
            statement_balance="10490.00",
            reconciled_by="alice",
        )
        transaction_service.append(
            type="expense",
            amount="10.00",
            account_id=sample_account.id,
            date=date(2024, 10, 25),
            category="bank fees",
        )

        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 25),
            statement_balance="10490.00",
            reconciled_by="alice",
        )
        assert rec.status is ReconciliationStatus.COMPLETED
        assert len(rec.matched_transaction_ids) == 2


class TestBookBalanceWindow:
    def test_transactions_after_statement_date_excluded(
        self, bank_service, transaction_service, sample_account
    ):
        _income(transaction_service, sample_account.id, "100.00", date(2024, 10, 10))
        late = _income(transaction_service, sample_account.id, "900.00", date(2024, 10, 11))

        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 10),
            statement_balance="10100.00",
            reconciled_by="alice",
        )

        assert rec.status is ReconciliationStatus.COMPLETED
        assert late.id not in rec.matched_transaction_ids
        assert not transaction_service.get_transaction(late.id).is_reconciled

    def test_pending_transactions_excluded(
        self, bank_service, transaction_service, sample_account
    ):
        pending = _income(
            transaction_service, sample_account.id, "40.00", date(2024, 10, 2), status="pending"
        )

        rec = bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 25),
            statement_balance="10000.00",
            reconciled_by="alice",
        )

        assert rec.status is ReconciliationStatus.COMPLETED
        assert pending.id not in rec.matched_transaction_ids

    def test_never_reconciled_account_starts_at_zero(
        self, bank_service, account_service, transaction_service
    ):
        account_id = account_service.create_account(
            name="Fresh", bank_name="Bank", opening_balance="300.00"
        )
        _income(transaction_service, account_id, "20.00", date(2024, 10, 1))

        rec = bank_service.create_bank_reconciliation(
            account_id=account_id,
            statement_date=date(2024, 10, 1),
            statement_balance="20.00",
            reconciled_by="alice",
        )
        assert rec.book_balance == Decimal("20.00")
        assert rec.status is ReconciliationStatus.COMPLETED

    def test_compute_book_balance(self, transaction_service, sample_account):
        _income(transaction_service, sample_account.id, "5.00", date(2024, 10, 1))
        transaction_service.append(
            type="expense", amount="2.50", account_id=sample_account.id, date=date(2024, 10, 1)
        )
        open_items = transaction_service.query(
            TransactionFilter(account_id=sample_account.id, is_reconciled=False)
        )

        assert compute_book_balance(sample_account, open_items) == Decimal("10002.50")


class TestValidation:
    def test_unknown_account(self, bank_service):
        with pytest.raises(NotFoundError):
            bank_service.create_bank_reconciliation(
                account_id=77,
                statement_date=date(2024, 10, 1),
                statement_balance="1.00",
                reconciled_by="alice",
            )

    def test_identity_required(self, bank_service, sample_account):
        with pytest.raises(ValidationError):
            bank_service.create_bank_reconciliation(
                account_id=sample_account.id,
                statement_date=date(2024, 10, 1),
                statement_balance="1.00",
                reconciled_by="  ",
            )

    def test_non_numeric_balance(self, bank_service, sample_account):
        with pytest.raises(ValidationError):
            bank_service.create_bank_reconciliation(
                account_id=sample_account.id,
                statement_date=date(2024, 10, 1),
                statement_balance="lots",
                reconciled_by="alice",
            )

    def test_lock_held_elsewhere(self, bank_service, locks, sample_account):
        held = threading.Event()
        release = threading.Event()

        def hold_lock():
            with locks.hold(sample_account.id):
                held.set()
                release.wait(5)

        holder = threading.Thread(target=hold_lock)
        holder.start()
        held.wait(5)
        try:
            with pytest.raises(ConcurrencyConflict):
                bank_service.create_bank_reconciliation(
                    account_id=sample_account.id,
                    statement_date=date(2024, 10, 1),
                    statement_balance="10000.00",
                    reconciled_by="alice",
                )
        finally:
            release.set()
            holder.join()


class TestQueries:
    def test_get_missing(self, bank_service):
        with pytest.raises(NotFoundError):
            bank_service.get_bank_reconciliation(999)

    def test_list_newest_first_with_filters(self, bank_service, clock, sample_account):
        clock.advance(days=1)
        bank_service.create_bank_reconciliation(
            account_id=sample_account.id,
            statement_date=date(2024, 10, 25),
            statement_balance="1.00",
            reconciled_by="alice",
        )

        listed = bank_service.get_bank_reconciliations(account_id=sample_account.id)
        assert [r.status for r in listed] == [
            ReconciliationStatus.DISCREPANCY,
            ReconciliationStatus.COMPLETED,
        ]

        completed = bank_service.get_bank_reconciliations(status="completed")
        assert len(completed) == 1
        assert completed[0].reconciled_by == "setup"

        assert bank_service.get_bank_reconciliations(start_date=date(2024, 10, 26))[0].status is (
            ReconciliationStatus.DISCREPANCY
        )

    def test_inverted_date_filter(self, bank_service):
        with pytest.raises(ValidationError):
            bank_service.get_bank_reconciliations(
                start_date=date(2024, 10, 2), end_date=date(2024, 10, 1)
            )

    def test_unknown_status_filter(self, bank_service):
        with pytest.raises(ValidationError):
            bank_service.get_bank_reconciliations(status="lost")
