"""Tests for cash flow, bank, end-of-day and report commands."""

from datetime import date

import pytest

from cashrecon.cli.main import cli
from cashrecon.domain.entities import EndOfDayStatus, ReconciliationStatus


def _invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


@pytest.fixture
def october(sample_account, transaction_service):
    add = transaction_service.append
    add(type="income", amount="450.00", date=date(2024, 10, 25), payment_method="cash",
        description="Drop-in classes")
    add(type="income", amount="50.00", date=date(2024, 10, 25), payment_method="card",
        description="Retail")
    add(type="expense", amount="300.00", date=date(2024, 10, 10), category="Payroll",
        payment_method="bank_transfer")
    return sample_account


class TestCashFlowCommands:
    def test_statement(self, cli_runner, temp_db, october):
        result = _invoke(
            cli_runner, temp_db, "cashflow", "statement",
            "--start-date", "2024-10-01", "--end-date", "2024-10-31",
            "--opening-balance", "10000", "--entries",
        )

        assert result.exit_code == 0
        assert "Employee salaries" in result.output
        assert "10,200.00" in result.output
        assert "employee_salaries" in result.output

    def test_statement_without_primary(self, cli_runner, temp_db, account_service):
        account_service.create_account(name="Savings", bank_name="Bank")

        result = _invoke(cli_runner, temp_db, "cashflow", "statement",
                         "--start-date", "2024-10-01", "--end-date", "2024-10-31")

        assert result.exit_code == 1
        assert "primary" in result.output

    def test_summary(self, cli_runner, temp_db, october):
        result = _invoke(cli_runner, temp_db, "cashflow", "summary",
                         "--start-date", "2024-10-01", "--end-date", "2024-10-31")

        assert result.exit_code == 0
        assert "Main Checking (checking)" in result.output
        assert "Net cash flow" in result.output


class TestBankCommands:
    def test_clean_reconciliation(self, cli_runner, temp_db, october, bank_service):
        result = _invoke(
            cli_runner, temp_db, "bank", "reconcile", "Main Checking", "10200.00",
            "--statement-date", "2024-10-25", "--by", "admin",
        )

        assert result.exit_code == 0
        assert "Status: completed" in result.output
        assert "account was not updated" not in result.output
        assert str(temp_db.get_account(october.id).current_balance) == "10200.00"

    def test_discrepancy_is_reported(self, cli_runner, temp_db, october):
        result = _invoke(
            cli_runner, temp_db, "bank", "reconcile", str(october.id), "10190",
            "--statement-date", "2024-10-25", "--by", "admin", "--bank-line", "Fee 10.00",
        )

        assert result.exit_code == 0
        assert "Status: discrepancy" in result.output
        assert "Difference:        $10.00" in result.output
        assert "Unmatched bank line: Fee 10.00" in result.output
        assert "account was not updated" in result.output

    def test_show_and_list(self, cli_runner, temp_db, october, bank_service):
        rec = bank_service.get_bank_reconciliations(status=ReconciliationStatus.COMPLETED)[0]

        shown = _invoke(cli_runner, temp_db, "bank", "show", str(rec.id))
        assert shown.exit_code == 0
        assert "Main Checking as of 2024-09-30" in shown.output

        listed = _invoke(cli_runner, temp_db, "bank", "list", "--status", "completed")
        assert listed.exit_code == 0
        assert "completed" in listed.output

    def test_missing_reconciliation(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "bank", "show", "12")
        assert result.exit_code == 1


class TestEndOfDayCommands:
    def test_generate_with_variance(self, cli_runner, temp_db, october):
        result = _invoke(
            cli_runner, temp_db, "eod", "generate", "--date", "2024-10-25",
            "--cashier", "admin", "--opening-balance", "500", "--counted", "948.50",
        )

        assert result.exit_code == 0
        assert "(open)" in result.output
        assert "$    950.00" in result.output
        assert "$     -1.50" in result.output

    def test_full_lifecycle(self, cli_runner, temp_db, october, eod_service):
        _invoke(
            cli_runner, temp_db, "eod", "generate", "--date", "2024-10-25",
            "--cashier", "admin", "--opening-balance", "500",
        )
        report = eod_service.get_end_of_day_reports()[0]

        closed = _invoke(cli_runner, temp_db, "eod", "close", str(report.id), "--counted", "949")
        assert closed.exit_code == 0
        assert "difference $-1.00" in closed.output

        reconciled = _invoke(
            cli_runner, temp_db, "eod", "reconcile", str(report.id),
            "--counted", "950", "--by", "manager", "--notes", "Found coins",
        )
        assert reconciled.exit_code == 0
        assert "(reconciled)" in reconciled.output
        assert eod_service.get_end_of_day_report(report.id).status is EndOfDayStatus.RECONCILED

        again = _invoke(
            cli_runner, temp_db, "eod", "reconcile", str(report.id),
            "--counted", "950", "--by", "manager",
        )
        assert again.exit_code == 1

        listed = _invoke(cli_runner, temp_db, "eod", "list", "--status", "reconciled")
        assert "reconciled" in listed.output

    def test_show_missing(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "eod", "show", "3")
        assert result.exit_code == 1


class TestReportCommands:
    def test_profit_loss(self, cli_runner, temp_db, october):
        result = _invoke(cli_runner, temp_db, "report", "profit-loss",
                         "--start-date", "2024-10-01", "--end-date", "2024-10-31")

        assert result.exit_code == 0
        assert "policy default@1" in result.output
        assert "Total revenue" in result.output
        assert "500.00" in result.output

    def test_tax(self, cli_runner, temp_db, october):
        result = _invoke(cli_runner, temp_db, "report", "tax",
                         "--start-date", "2024-10-01", "--end-date", "2024-10-31")

        assert result.exit_code == 0
        assert "Tax at 10%" in result.output
        assert "45.00" in result.output

    def test_summary_and_margins(self, cli_runner, temp_db, october):
        summary = _invoke(cli_runner, temp_db, "report", "summary",
                          "--start-date", "2024-10-01", "--end-date", "2024-10-31")
        assert summary.exit_code == 0
        assert "Cash balance" in summary.output

        margins = _invoke(cli_runner, temp_db, "report", "margins",
                          "--start-date", "2024-10-01", "--end-date", "2024-10-31")
        assert margins.exit_code == 0
        assert margins.output.index("Memberships") < margins.output.index("Classes")

    def test_inverted_range(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "report", "tax",
                         "--start-date", "2024-10-31", "--end-date", "2024-10-01")
        assert result.exit_code == 1


def test_bad_allocation_file(cli_runner, temp_db, tmp_path, monkeypatch):
    path = tmp_path / "allocation.json"
    path.write_text('{"ratios": {"tax_rate": 4}}')
    monkeypatch.setenv("CASHRECON_ALLOCATION_PATH", str(path))

    result = _invoke(cli_runner, temp_db, "report", "tax")

    assert result.exit_code == 1
    assert "between 0 and 1" in result.output
