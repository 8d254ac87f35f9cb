"""Tests for account locks, cancellation and the fixed clock."""

import threading
from datetime import date, datetime, UTC

import pytest

from cashrecon.domain.cancellation import CancellationToken, check_cancelled
from cashrecon.domain.clock import FixedClock
from cashrecon.domain.errors import ConcurrencyConflict, OperationCancelled
from cashrecon.domain.locking import AccountLockRegistry, DEFAULT_LOCK_TIMEOUT, lock_timeout_from_env


class TestAccountLockRegistry:
    def test_reentrant_in_same_thread(self):
        locks = AccountLockRegistry(timeout=0.1)
        with locks.hold(1):
            with locks.hold(1):
                pass

    def test_other_thread_times_out(self):
        locks = AccountLockRegistry(timeout=0.05)
        errors = []

        def contend():
            try:
                with locks.hold(1):
                    pass
            except ConcurrencyConflict as e:
                errors.append(e)

        with locks.hold(1):
            worker = threading.Thread(target=contend)
            worker.start()
            worker.join()

        assert len(errors) == 1
        assert "account 1" in str(errors[0]).lower()

    def test_different_accounts_do_not_block(self):
        locks = AccountLockRegistry(timeout=0.05)
        acquired = []

        def other_account():
            with locks.hold(2):
                acquired.append(2)

        with locks.hold(1):
            worker = threading.Thread(target=other_account)
            worker.start()
            worker.join()

        assert acquired == [2]

    def test_released_after_error(self):
        locks = AccountLockRegistry(timeout=0.05)
        with pytest.raises(RuntimeError):
            with locks.hold(3):
                raise RuntimeError("boom")

        acquired = []

        def retry():
            with locks.hold(3):
                acquired.append(3)

        worker = threading.Thread(target=retry)
        worker.start()
        worker.join()
        assert acquired == [3]

    def test_timeout_from_environment(self, monkeypatch):
        monkeypatch.setenv("CASHRECON_LOCK_TIMEOUT", "2.5")
        assert lock_timeout_from_env() == 2.5
        assert AccountLockRegistry().timeout == 2.5

        monkeypatch.setenv("CASHRECON_LOCK_TIMEOUT", "soon")
        assert lock_timeout_from_env() == DEFAULT_LOCK_TIMEOUT


class TestCancellationToken:
    def test_cancel(self):
        token = CancellationToken()
        assert not token.cancelled
        token.cancel()
        with pytest.raises(OperationCancelled, match="report was cancelled"):
            token.raise_if_cancelled("report")

    def test_expired_deadline(self):
        assert CancellationToken(timeout=0).cancelled

    def test_none_token_is_ignored(self):
        check_cancelled(None, "query")

    def test_cancelled_query_returns_nothing(self, transaction_service, account_service):
        account_service.create_account(name="Till", bank_name="Cash", is_primary=True)
        transaction_service.append(type="income", amount="5.00", date=date(2024, 10, 1))
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelled):
            transaction_service.query(cancel_token=token)


def test_fixed_clock_advance():
    clock = FixedClock(datetime(2024, 12, 31, 23, 30, tzinfo=UTC))
    clock.advance(hours=1)
    assert clock.today() == date(2025, 1, 1)
