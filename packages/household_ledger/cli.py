"""Command-line interface for the household ledger.

Every command opens the vault named by ``LEDGER_VAULT_PATH`` (see
:mod:`household_ledger.config`), runs one operation and prints the result as
camelCase JSON on stdout. Errors are reported as ``Error: <message>`` on
stderr with exit status 1.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from concurrent.futures import Future
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from pydantic import BaseModel
from typer.models import ArgumentInfo, OptionInfo

from .api import Vault
from .config import LedgerConfig
from .errors import LedgerError
from .keys import FileKeyProvider
from .logging_setup import configure_logging

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank CSV exports into an encrypted local ledger, review and "
        "commit them, and report on spending. Loads a local .env before running."
    ),
)

# Module-level option objects keep calls out of parameter defaults (ruff B008).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a bank-export CSV file to stage",
    dir_okay=False,
    file_okay=True,
    exists=False,  # reported as a normal error below
    readable=True,
)
MONTH_OPTION: OptionInfo = typer.Option(
    None, "--month", help="Month to summarise as YYYY-MM (defaults to the current UTC month)."
)
TEMP_ID_ARGUMENT: ArgumentInfo = typer.Argument(..., help="Temp id of the staged row.")
CATEGORY_ARGUMENT: ArgumentInfo = typer.Argument(..., help="Category name.")
CAP_ARGUMENT: ArgumentInfo = typer.Argument(..., help="Monthly cap (non-negative).")
KEY_ARGUMENT: ArgumentInfo = typer.Argument(..., help="Setting key (e.g. theme).")
VALUE_ARGUMENT: ArgumentInfo = typer.Argument(..., help="Setting value.")


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", by_alias=True)
    if isinstance(result, list):
        return [_to_jsonable(r) for r in result]
    return result


def _echo_json(result: Any) -> None:
    typer.echo(json.dumps(_to_jsonable(result), indent=2, ensure_ascii=False))


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


@contextmanager
def _open_vault() -> Iterator[Vault]:
    cfg = LedgerConfig.from_env()
    with Vault.open(
        cfg.vault_path, FileKeyProvider(cfg.key_file), max_workers=cfg.max_workers
    ) as vault:
        yield vault


def _run(operation: Callable[[Vault], Future[Any]]) -> Any:
    """Open the vault, wait for ``operation`` and translate domain errors."""

    try:
        with _open_vault() as vault:
            return operation(vault).result()
    except (LedgerError, ValueError) as exc:
        raise _fail(str(exc)) from exc


@app.command("import-csv")
def import_csv_cmd(csv_path: Path = CSV_PATH_OPTION) -> None:
    """Stage every usable row of a CSV into the inbox."""

    try:
        raw = csv_path.read_bytes()
    except OSError as exc:
        raise _fail(f"could not read CSV {csv_path}: {exc}") from exc
    _echo_json(_run(lambda v: v.import_csv(raw)))


@app.command("inbox")
def inbox_cmd() -> None:
    """List staged rows, newest first."""

    _echo_json(_run(lambda v: v.list_inbox()))


@app.command("set-category")
def set_category_cmd(
    temp_id: str = TEMP_ID_ARGUMENT,
    category: str = CATEGORY_ARGUMENT,
) -> None:
    """Override the category of one staged row; ``applied`` is false for an unknown id."""

    _echo_json(_run(lambda v: v.set_inbox_category(temp_id, category)))


@app.command("commit")
def commit_cmd() -> None:
    """Move every staged row into the ledger."""

    _echo_json(_run(lambda v: v.commit_inbox()))


@app.command("summary")
def summary_cmd(month: str | None = MONTH_OPTION) -> None:
    """Spending by category and against budgets for one month."""

    month = month or datetime.now(timezone.utc).strftime("%Y-%m")
    _echo_json(_run(lambda v: v.monthly_summary(month)))


@app.command("net-worth")
def net_worth_cmd() -> None:
    """Twelve-month net-worth trend."""

    _echo_json(_run(lambda v: v.net_worth_curve()))


@app.command("budgets")
def budgets_cmd() -> None:
    _echo_json(_run(lambda v: v.get_budgets()))


@app.command("set-budget")
def set_budget_cmd(
    category: str = CATEGORY_ARGUMENT,
    cap: str = CAP_ARGUMENT,
) -> None:
    """Create or replace a monthly budget cap."""

    _echo_json(_run(lambda v: v.set_budget(category, cap)))


@app.command("settings")
def settings_cmd() -> None:
    _echo_json(_run(lambda v: v.get_app_settings()))


@app.command("set-setting")
def set_setting_cmd(
    key: str = KEY_ARGUMENT,
    value: str = VALUE_ARGUMENT,
) -> None:
    """Store one application setting."""

    def operation(vault: Vault) -> Future[Any]:
        vault.update_setting(key, value).result()
        return vault.get_app_settings()

    _echo_json(_run(operation))


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory (never overriding set
    variables) and configure package logging before any command runs."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    main()
