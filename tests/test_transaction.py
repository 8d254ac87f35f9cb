"""Tests for transaction commands."""

from datetime import date

from cashrecon.cli.main import cli
from cashrecon.domain.entities import TransactionFilter


def _invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def test_add_to_primary_account(cli_runner, temp_db, sample_account):
    result = _invoke(
        cli_runner, temp_db, "transaction", "add", "expense", "1,200.00",
        "--date", "2024-10-02", "--category", "rent", "--method", "bank_transfer",
        "--description", "October rent",
    )

    assert result.exit_code == 0
    assert "Recorded TXN-2024-" in result.output
    assert "other_operating_expenses" in result.output

    txns = temp_db.list_transactions(TransactionFilter(start_date=date(2024, 10, 2)))
    assert len(txns) == 1
    assert txns[0].account_id == sample_account.id
    assert str(txns[0].amount) == "1200.00"


def test_add_rejects_negative_amount(cli_runner, temp_db, sample_account):
    result = _invoke(cli_runner, temp_db, "transaction", "add", "income", "(5.00)",
                     "--date", "2024-10-02")

    assert result.exit_code == 1
    assert "negative" in result.output.lower()


def test_add_rejects_mismatched_cash_flow_category(cli_runner, temp_db, sample_account):
    result = _invoke(
        cli_runner, temp_db, "transaction", "add", "expense", "10",
        "--cash-flow-category", "loan_proceeds",
    )

    assert result.exit_code == 1
    assert "does not fit" in result.output


def test_add_unknown_account(cli_runner, temp_db, sample_account):
    result = _invoke(cli_runner, temp_db, "transaction", "add", "income", "10",
                     "--account", "Elsewhere")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_add_bad_date(cli_runner, temp_db, sample_account):
    result = _invoke(cli_runner, temp_db, "transaction", "add", "income", "10",
                     "--date", "the day after never")

    assert result.exit_code == 1
    assert "Invalid date" in result.output


def test_list_and_filters(cli_runner, temp_db, sample_account, transaction_service):
    transaction_service.append(type="income", amount="45.00", date=date(2024, 10, 3),
                               description="Yoga class", payment_method="card")

    result = _invoke(cli_runner, temp_db, "transaction", "list", "--start-date", "2024-10-01")
    assert result.exit_code == 0
    assert "Found 1 transaction(s)" in result.output
    assert "Yoga class" in result.output

    result = _invoke(cli_runner, temp_db, "transaction", "list", "--method", "card",
                     "--unreconciled")
    assert "Found 1 transaction(s)" in result.output

    result = _invoke(cli_runner, temp_db, "transaction", "list", "--search", "pilates")
    assert "No transactions found" in result.output


def test_list_conflicting_periods(cli_runner, temp_db, sample_account):
    result = _invoke(cli_runner, temp_db, "transaction", "list", "--this-month", "--last-month")

    assert result.exit_code == 1
    assert "Only one period option" in result.output


def test_show(cli_runner, temp_db, sample_account):
    opening = temp_db.list_transactions(TransactionFilter())[0]

    result = _invoke(cli_runner, temp_db, "transaction", "show", str(opening.id))

    assert result.exit_code == 0
    assert "owner_contributions (financing)" in result.output
    assert "by setup" in result.output


def test_show_missing(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "transaction", "show", "404")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_reconcile_counts_new_marks(cli_runner, temp_db, sample_account, transaction_service):
    first = transaction_service.append(type="income", amount="1", date=date(2024, 10, 3))
    second = transaction_service.append(type="income", amount="2", date=date(2024, 10, 3))

    result = _invoke(cli_runner, temp_db, "transaction", "reconcile", str(first.id), "--by", "ops")
    assert "Reconciled 1 transaction(s)" in result.output

    result = _invoke(cli_runner, temp_db, "transaction", "reconcile", str(first.id),
                     str(second.id), "999", "--by", "ops")
    assert result.exit_code == 0
    assert "Reconciled 1 transaction(s)" in result.output


def test_set_status(cli_runner, temp_db, sample_account, transaction_service):
    pending = transaction_service.append(type="income", amount="80", date=date(2024, 10, 3),
                                         status="pending")

    result = _invoke(cli_runner, temp_db, "transaction", "set-status", str(pending.id), "completed")
    assert result.exit_code == 0
    assert "is now completed" in result.output

    result = _invoke(cli_runner, temp_db, "transaction", "set-status", str(pending.id), "failed")
    assert result.exit_code == 1
    assert "cannot move" in result.output


def test_stats(cli_runner, temp_db, sample_account, transaction_service):
    transaction_service.append(type="expense", amount="250", date=date(2024, 10, 3))

    result = _invoke(cli_runner, temp_db, "transaction", "stats", "--start-date", "2024-09-01",
                     "--end-date", "2024-10-31")

    assert result.exit_code == 0
    assert "Transactions: 2" in result.output
    assert "9,750.00" in result.output
