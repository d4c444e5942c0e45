from __future__ import annotations

import json
from pathlib import Path

import pytest
from household_ledger import cli
from typer.testing import CliRunner

runner = CliRunner()

CSV = """Date,Description,Amount
01/01/26,Whole Foods Market,-82.10
03/01/26,ACME Payroll,2500.00
"""


@pytest.fixture(autouse=True)
def _no_handler_install(monkeypatch: pytest.MonkeyPatch) -> None:
    # configure_logging detaches the package logger from the root logger,
    # which would hide records from caplog in later tests.
    monkeypatch.setattr(cli, "configure_logging", lambda *a, **k: None)


@pytest.fixture
def csv_file(tmp_path: Path) -> Path:
    path = tmp_path / "bank.csv"
    path.write_text(CSV, encoding="utf-8")
    return path


def _ok(*args: str):
    result = runner.invoke(cli.app, list(args))
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_import_review_commit_cycle(csv_file: Path):
    staged = _ok("import-csv", "--csv-path", str(csv_file))

    assert [s["description"] for s in staged] == ["Whole Foods Market", "ACME Payroll"]
    assert set(staged[0]) == {
        "tempId",
        "date",
        "description",
        "amount",
        "flow",
        "suggestedCategory",
    }
    assert staged[0]["flow"] == "debit"

    inbox = _ok("inbox")
    assert [i["date"] for i in inbox] == ["2026-01-03", "2026-01-01"]

    groceries = staged[0]["tempId"]
    assert _ok("set-category", groceries, "Groceries") == {"applied": True}
    assert _ok("commit") == {"committedCount": 2}
    assert _ok("inbox") == []

    summary = _ok("summary", "--month", "2026-01")
    assert summary["totalSpend"] == "82.10"
    assert summary["byCategory"] == [{"category": "Groceries", "amount": "82.10"}]

    curve = _ok("net-worth")
    assert len(curve) == 12
    assert set(curve[0]) == {"date", "netWorth", "cash", "invested", "debt"}


def test_budgets_and_settings_commands():
    assert len(_ok("budgets")) == 5

    assert _ok("set-budget", "Pets", "45") == {"category": "Pets", "cap": "45"}
    assert {"category": "Pets", "cap": "45.00"} in _ok("budgets")

    assert _ok("settings") == {"theme": "system", "accounts": None}
    assert _ok("set-setting", "theme", "dark") == {"theme": "dark", "accounts": None}


def test_vault_lives_where_the_environment_says(tmp_path: Path):
    _ok("budgets")

    assert (tmp_path / "ledger-home" / "vault.db").exists()
    assert len((tmp_path / "ledger-home" / "vault.key").read_bytes()) == 32


def test_dotenv_in_working_directory_is_loaded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("LEDGER_VAULT_PATH")
    monkeypatch.delenv("LEDGER_KEY_FILE")
    target = tmp_path / "from-dotenv" / "vault.db"
    (tmp_path / ".env").write_text(f"LEDGER_VAULT_PATH={target}\n", encoding="utf-8")

    _ok("budgets")

    assert target.exists()
    assert (target.parent / "vault.key").exists()


@pytest.mark.parametrize(
    "args",
    [
        ["summary", "--month", "2026-13"],
        ["set-budget", "--", "Dining", "-5"],
        ["set-budget", "Dining", "lots"],
        ["import-csv", "--csv-path", "missing.csv"],
    ],
)
def test_errors_exit_one_with_message(args):
    result = runner.invoke(cli.app, args)

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_set_category_unknown_id_reports_not_applied():
    assert _ok("set-category", "no-such-id", "Dining") == {"applied": False}


def test_import_error_is_reported(tmp_path: Path):
    empty = tmp_path / "empty.csv"
    empty.write_text("Date,Description,Amount\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["import-csv", "--csv-path", str(empty)])

    assert result.exit_code == 1
    assert "Error: CSV produced zero usable rows" in result.output


def test_no_arguments_shows_help():
    result = runner.invoke(cli.app, [])

    assert "import-csv" in result.output
