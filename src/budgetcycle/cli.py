"""Command line entry point for BudgetCycle."""

from __future__ import annotations

from pathlib import Path

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .errors import BudgetCycleError, PeriodNotFound
from .logging_config import setup_logging
from .services.export_csv import (
    export_period_allocations_csv,
    export_period_expenses_csv,
    export_rollover_history_csv,
)


def _period_or_fail(ctx: AppContext, period_id: int):
    period = ctx.period_repo.get_period(period_id)
    if period is None:
        raise click.ClickException(PeriodNotFound.default_message)
    return period


@click.group()
@click.option(
    "--database-url",
    envvar="BUDGETCYCLE_DATABASE_URL",
    default=None,
    help="SQLAlchemy URL; defaults to a SQLite file in the data directory.",
)
@click.pass_context
def main(click_ctx: click.Context, database_url: str | None) -> None:
    """Manage budget periods and month-end resets."""

    config = BaseConfig()
    if database_url:
        config.DATABASE_URL = database_url
    setup_logging(config)
    click_ctx.obj = create_app_context(config)


@main.command("init-budget")
@click.argument("name")
@click.option("--month", "month_label", required=True, help="First period, YYYY-MM")
@click.option("--income", required=True, help="Opening income")
@click.option("--currency", default=None, help="ISO-4217 code shown next to amounts")
@click.pass_obj
def init_budget(ctx: AppContext, name: str, month_label: str, income: str, currency: str | None) -> None:
    """Create a budget and its first active period."""

    try:
        budget, period = ctx.period_repo.create_budget(
            name,
            month_label=month_label,
            income=income,
            currency=currency or ctx.config.CURRENCY,
        )
    except (ValueError, ArithmeticError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Budget {budget.id} created; active period {period.id} ({period.month_label})")


@main.command()
@click.argument("period_id", type=int)
@click.argument("category")
@click.argument("amount")
@click.pass_obj
def allocate(ctx: AppContext, period_id: int, category: str, amount: str) -> None:
    """Allocate AMOUNT to CATEGORY in an active period."""

    period = _period_or_fail(ctx, period_id)
    cat = ctx.period_repo.get_or_create_category(period.budget_id, category)
    try:
        allocation = ctx.period_repo.add_allocation(period_id, cat.id, amount)
    except (BudgetCycleError, ValueError, ArithmeticError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Allocated {allocation.amount} to {cat.name}")


@main.command()
@click.argument("period_id", type=int)
@click.argument("category")
@click.argument("amount")
@click.option("--note", default="", help="Expense description")
@click.pass_obj
def spend(ctx: AppContext, period_id: int, category: str, amount: str, note: str) -> None:
    """Record an expense of AMOUNT under CATEGORY."""

    period = _period_or_fail(ctx, period_id)
    cat = ctx.period_repo.get_or_create_category(period.budget_id, category)
    try:
        expense = ctx.period_repo.record_expense(period_id, cat.id, amount, description=note)
    except (BudgetCycleError, ValueError, ArithmeticError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Recorded {expense.amount} under {cat.name}")


@main.command()
@click.argument("period_id", type=int)
@click.pass_obj
def balance(ctx: AppContext, period_id: int) -> None:
    """Show the rollover-eligible balance of a period."""

    _period_or_fail(ctx, period_id)
    try:
        summary = ctx.calculator.compute(period_id)
    except BudgetCycleError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"Allocated: {summary.total_allocated}")
    click.echo(f"Spent: {summary.total_spent}")
    click.echo(f"Remaining: {summary.remaining_balance}")
    click.echo(f"Expenses: {summary.expense_count}")


@main.command()
@click.argument("period_id", type=int)
@click.option("--income", required=True, help="Income for the new period")
@click.option(
    "--rollover",
    type=click.Choice(["include", "exclude"]),
    default=None,
    help="Carry the remaining balance into the new income; required when a balance remains.",
)
@click.pass_obj
def reset(ctx: AppContext, period_id: int, income: str, rollover: str | None) -> None:
    """Archive a period and start the next one."""

    controller = ctx.reset_controller(period_id)
    try:
        gate = controller.open()
    except BudgetCycleError as exc:
        raise click.ClickException(exc.message) from exc

    click.echo(controller.archive_notice)
    if gate.required:
        click.echo(f"Remaining balance: {controller.remaining_balance}")
        if rollover == "include":
            gate.include()
        elif rollover == "exclude":
            gate.exclude()

    outcome = controller.submit(income)
    if outcome is None:
        raise click.ClickException(
            controller.validation_error or "Failed to reset budget. Please try again."
        )
    click.echo(
        f"Period {outcome.archived_period_id} archived; "
        f"period {outcome.new_period_id} active with income {outcome.new_income} "
        f"({outcome.decision}, rollover {outcome.rollover_amount})"
    )


@main.command()
@click.argument("budget_id", type=int)
@click.pass_obj
def history(ctx: AppContext, budget_id: int) -> None:
    """List the periods of a budget and their rollovers."""

    records = {r.source_period_id: r for r in ctx.period_repo.list_rollover_records(budget_id)}
    periods = ctx.period_repo.list_periods(budget_id)
    if not periods:
        raise click.ClickException(f"Budget {budget_id} has no periods.")
    for period in periods:
        status = "archived" if period.is_archived else "active"
        line = f"{period.id}\t{period.month_label}\t{period.income}\t{status}"
        record = records.get(period.id)
        if record is not None:
            line += f"\t{record.decision} {record.amount} -> {record.destination_period_id}"
        click.echo(line)


@main.command()
@click.argument("period_id", type=int)
@click.option(
    "--out",
    "out_dir",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to write CSV files into",
)
@click.pass_obj
def export(ctx: AppContext, period_id: int, out_dir: Path) -> None:
    """Export a period's allocations, expenses and the budget's rollover history."""

    period = _period_or_fail(ctx, period_id)
    written = [
        export_period_allocations_csv(
            allocations=ctx.period_repo.get_allocations(period_id),
            output_path=out_dir / f"period_{period_id}_allocations.csv",
        ),
        export_period_expenses_csv(
            expenses=ctx.period_repo.get_expenses(period_id),
            output_path=out_dir / f"period_{period_id}_expenses.csv",
        ),
        export_rollover_history_csv(
            records=ctx.period_repo.list_rollover_records(period.budget_id),
            output_path=out_dir / f"budget_{period.budget_id}_rollovers.csv",
        ),
    ]
    for path in written:
        click.echo(f"Export written: {path}")


if __name__ == "__main__":  # pragma: no cover
    main()
