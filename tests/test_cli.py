"""End-to-end tests for the click command line."""

from __future__ import annotations

import re

import pytest
from click.testing import CliRunner

from budgetcycle.cli import main


@pytest.fixture
def cli(tmp_path, monkeypatch):
    monkeypatch.setenv("BUDGETCYCLE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("BUDGETCYCLE_DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("BUDGETCYCLE_DEV_MODE", "false")
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(main, list(args), catch_exceptions=False)

    return _invoke


def _seed(cli) -> int:
    result = cli("init-budget", "Household", "--month", "2025-01", "--income", "50000")
    assert result.exit_code == 0, result.output
    period_id = int(re.search(r"active period (\d+)", result.output).group(1))
    assert cli("allocate", str(period_id), "Groceries", "50000").exit_code == 0
    assert cli("spend", str(period_id), "Groceries", "32500", "--note", "weekly shop").exit_code == 0
    return period_id


def test_balance_reports_remaining(cli):
    period_id = _seed(cli)

    result = cli("balance", str(period_id))

    assert result.exit_code == 0
    assert "Remaining: 17500.00" in result.output
    assert "Expenses: 1" in result.output


def test_reset_requires_rollover_choice_when_balance_remains(cli):
    period_id = _seed(cli)

    result = cli("reset", str(period_id), "--income", "60000")

    assert result.exit_code != 0
    assert "Please choose whether to include remaining balance" in result.output


def test_reset_with_include_then_history(cli):
    period_id = _seed(cli)

    result = cli("reset", str(period_id), "--income", "60000", "--rollover", "include")

    assert result.exit_code == 0, result.output
    assert "This will archive 1 current expense" in result.output
    assert "income 77500.00" in result.output

    history = cli("history", "1")
    lines = [line for line in history.output.splitlines() if "\t" in line]
    assert len(lines) == 2
    assert "archived" in lines[0] and "included 17500.00" in lines[0]
    assert lines[1].endswith("active")


def test_reset_rejects_bad_income(cli):
    period_id = _seed(cli)

    result = cli("reset", str(period_id), "--income", "-10", "--rollover", "exclude")

    assert result.exit_code != 0
    assert "Please enter a valid income amount" in result.output


def test_spend_on_archived_period_fails(cli):
    period_id = _seed(cli)
    cli("reset", str(period_id), "--income", "60000", "--rollover", "exclude")

    result = cli("spend", str(period_id), "Groceries", "10")

    assert result.exit_code != 0
    assert "archived" in result.output


def test_export_writes_three_files(cli, tmp_path):
    period_id = _seed(cli)
    cli("reset", str(period_id), "--income", "60000", "--rollover", "exclude")

    result = cli("export", str(period_id), "--out", str(tmp_path / "exports"))

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in (tmp_path / "exports").iterdir()) == [
        "budget_1_rollovers.csv",
        f"period_{period_id}_allocations.csv",
        f"period_{period_id}_expenses.csv",
    ]


def test_unknown_period_is_reported(cli):
    result = cli("balance", "99")

    assert result.exit_code != 0
    assert "does not exist" in result.output
