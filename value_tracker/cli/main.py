"""
CLI interface for Value Tracker.

Provides command-line access to tracking and value reports.
"""

import logging
import sys
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from value_tracker.config.loader import TrackerConfig, default_config, load_tracker_config
from value_tracker.core.amortization import CostBasis, CostTier
from value_tracker.core.calendar_grid import build_month, legend
from value_tracker.core.errors import TrackerError
from value_tracker.core.investment_metrics import compute_investment_metrics
from value_tracker.core.labels import category_name, investment_glyph, subscription_glyph
from value_tracker.core.periods import month_bounds
from value_tracker.core.progress import ProgressStatus, project_progress
from value_tracker.core.reporting import build_report
from value_tracker.core.subscription_metrics import count_usage_between, summarise_subscriptions
from value_tracker.demo.seed_demo_data import seed_demo_data
from value_tracker.storage.models import Investment, InvestmentUsage, Subscription
from value_tracker.storage.repository import get_repository

app = typer.Typer()
console = Console()
logger = logging.getLogger(__name__)

EXIT_CODE_OK = 0
EXIT_CODE_FAIL = 1

DATE_FORMATS = ["%Y-%m-%d"]
WEEKDAY_HEADERS = ["일", "월", "화", "수", "목", "금", "토"]

TIER_STYLES = {
    CostTier.GOOD: "green",
    CostTier.NORMAL: "yellow",
    CostTier.WARNING: "red",
}

STATUS_STYLES = {
    ProgressStatus.GOOD: "green",
    ProgressStatus.NORMAL: "yellow",
    ProgressStatus.WARNING: "red",
}


@dataclass
class CliState:
    """Options shared by all commands."""
    db_path: str
    config: TrackerConfig
    user_id: str

    @property
    def repository(self):
        return get_repository(self.db_path)


def configure_logging(verbose: bool) -> None:
    """Route log records through Rich; DEBUG when verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _as_date(value: Optional[datetime]) -> date:
    if value is None:
        return date.today()
    return value.date()


def _format_won(amount: Decimal) -> str:
    """Format a whole-unit amount with thousands separators."""
    sign = "-" if amount < 0 else ""
    return f"{sign}₩{abs(amount):,}"


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/] {escape(str(error))}")
    sys.exit(EXIT_CODE_FAIL)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(None, "--db", help="SQLite database path"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
    user: str = typer.Option("local", "--user", "-u", help="User identifier"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Value Tracker CLI."""
    configure_logging(verbose)
    try:
        config = load_tracker_config(config_path) if config_path else default_config()
    except (OSError, ValueError, yaml.YAMLError) as e:
        _fail(e)
    ctx.obj = CliState(db_path=db or config.storage.db_path, config=config, user_id=user)
    logger.debug("Using database %s for user %s", ctx.obj.db_path, user)
    if ctx.invoked_subcommand is None:
        console.print("Value Tracker - Use --help to see available commands")


@app.command()
def init(ctx: typer.Context):
    """Initialize the Value Tracker database."""
    try:
        ctx.obj.repository.initialize_schema()
        console.print("[green]✓[/] Database initialized successfully")
    except Exception as e:
        _fail(e)


@app.command("seed-demo")
def seed_demo(
    ctx: typer.Context,
    today: Optional[datetime] = typer.Option(None, "--today", formats=DATE_FORMATS),
):
    """Insert sample subscriptions and an investment."""
    try:
        counts = seed_demo_data(ctx.obj.repository, ctx.obj.user_id, _as_date(today))
    except Exception as e:
        _fail(e)
    summary = ", ".join(f"{count} {kind.replace('_', ' ')}" for kind, count in counts.items())
    console.print(f"[green]✓[/] Demo data inserted: {summary}")


@app.command("add-subscription")
def add_subscription(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Display name"),
    monthly: int = typer.Option(..., "--monthly", "-m", help="Monthly amount"),
    total: Optional[int] = typer.Option(None, "--total", "-t", help="Total amount paid (defaults to monthly)"),
    period: str = typer.Option("1개월", "--period", "-p", help="Period label"),
    emoji: str = typer.Option("default", "--emoji", "-e", help="Glyph code"),
    start: Optional[datetime] = typer.Option(None, "--start", formats=DATE_FORMATS),
    end: Optional[datetime] = typer.Option(None, "--end", formats=DATE_FORMATS),
    target: Optional[int] = typer.Option(None, "--target", help="Monthly usage goal"),
):
    """Register a subscription."""
    try:
        subscription = ctx.obj.repository.add_subscription(Subscription(
            user_id=ctx.obj.user_id,
            name=name,
            emoji_code=emoji,
            period_label=period,
            total_amount=Decimal(total if total is not None else monthly),
            monthly_amount=Decimal(monthly),
            start_date=_as_date(start),
            end_date=end.date() if end else None,
            monthly_target_usage=target,
        ))
    except (TrackerError, ValueError) as e:
        _fail(e)
    console.print(f"[green]✓[/] Added subscription #{subscription.id} {subscription.name}")


@app.command()
def subscriptions(
    ctx: typer.Context,
    today: Optional[datetime] = typer.Option(None, "--today", formats=DATE_FORMATS),
):
    """List current subscriptions with this month's cost per use."""
    state = ctx.obj
    day = _as_date(today)
    try:
        subs = state.repository.list_current_subscriptions(state.user_id, day)
        logs = state.repository.fetch_usage_logs([s.id for s in subs])
    except Exception as e:
        _fail(e)

    if not subs:
        console.print("\n[dim]No current subscriptions.[/]")
        return

    table = Table(title="Subscriptions")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Monthly", justify="right")
    table.add_column("Uses this month", justify="right")
    table.add_column("Cost/use", justify="right")
    table.add_column("Today")
    for sub, metrics in summarise_subscriptions(subs, logs, day, state.config.calculation.cost_basis):
        style = TIER_STYLES[metrics.tier]
        table.add_row(
            str(sub.id),
            f"{subscription_glyph(sub.emoji_code)} {sub.name}",
            _format_won(sub.monthly_amount),
            str(metrics.monthly_usage_count),
            f"[{style}]{_format_won(metrics.cost_per_use)}[/]",
            "✓" if metrics.checked_in_today else "",
        )
    console.print(table)


@app.command("cancel-subscription")
def cancel_subscription(ctx: typer.Context, subscription_id: int = typer.Argument(...)):
    """Deactivate a subscription (history is kept)."""
    try:
        ctx.obj.repository.deactivate_subscription(subscription_id, ctx.obj.user_id)
    except TrackerError as e:
        _fail(e)
    console.print(f"[green]✓[/] Subscription #{subscription_id} deactivated")


@app.command("check-in")
def check_in(
    ctx: typer.Context,
    subscription_id: int = typer.Argument(...),
    on: Optional[datetime] = typer.Option(None, "--date", "-d", formats=DATE_FORMATS),
    strict: bool = typer.Option(False, "--strict", help="Fail instead of toggling off"),
):
    """Toggle the check-in of a subscription for a day."""
    state = ctx.obj
    day = _as_date(on)
    try:
        if strict:
            state.repository.check_in(subscription_id, state.user_id, day)
            checked_in = True
        else:
            checked_in = state.repository.toggle_check_in(subscription_id, state.user_id, day)
    except TrackerError as e:
        _fail(e)
    if checked_in:
        console.print(f"[green]✓[/] Checked in #{subscription_id} on {day.isoformat()}")
    else:
        console.print(f"[yellow]↺[/] Check-in for #{subscription_id} on {day.isoformat()} cancelled")


@app.command()
def calendar(
    ctx: typer.Context,
    year: Optional[int] = typer.Option(None, "--year", "-y"),
    month: Optional[int] = typer.Option(None, "--month", "-m", min=1, max=12),
    today: Optional[datetime] = typer.Option(None, "--today", formats=DATE_FORMATS),
):
    """Show a month of check-ins with the cost of each use."""
    state = ctx.obj
    day = _as_date(today)
    year = year or day.year
    month = month or day.month
    first, last = month_bounds(date(year, month, 1))
    try:
        subs = state.repository.list_active_subscriptions(state.user_id)
        basis = state.config.calculation.cost_basis
        # Lifetime amortization needs the history before the month
        start = None if basis == CostBasis.LIFETIME else first
        logs = state.repository.fetch_usage_logs([s.id for s in subs], start, last)
        cells = build_month(subs, logs, year, month, day, basis)
    except Exception as e:
        _fail(e)

    table = Table(title=f"{year}년 {month}월", show_lines=True)
    for header in WEEKDAY_HEADERS:
        table.add_column(header, justify="left", min_width=8)
    for week_start in range(0, len(cells), 7):
        row = []
        for cell in cells[week_start:week_start + 7]:
            label = str(cell.day_of_month)
            if not cell.is_current_month:
                label = f"[dim]{label}[/]"
            elif cell.is_today:
                label = f"[reverse]{label}[/]"
            lines = [label]
            for usage in cell.usages:
                style = TIER_STYLES[usage.tier]
                lines.append(f"{usage.glyph} [{style}]{_format_won(usage.cost_per_use)}[/]")
            row.append("\n".join(lines))
        table.add_row(*row)
    console.print(table)

    items = legend(subs, day)
    if items:
        console.print("  ".join(f"{item.glyph} {item.name}" for item in items))


@app.command()
def progress(
    ctx: typer.Context,
    today: Optional[datetime] = typer.Option(None, "--today", formats=DATE_FORMATS),
):
    """Compare usage pace with elapsed time for each subscription."""
    state = ctx.obj
    day = _as_date(today)
    calc = state.config.calculation
    try:
        subs = state.repository.list_current_subscriptions(state.user_id, day)
        logs = state.repository.fetch_usage_logs([s.id for s in subs], end=day)
    except Exception as e:
        _fail(e)

    if not subs:
        console.print("\n[dim]No current subscriptions.[/]")
        return

    for sub in subs:
        result = project_progress(
            sub,
            count_usage_between(logs, sub.id, sub.start_date, day),
            day,
            default_lifetime_months=calc.default_lifetime_months,
            target_unit_price=calc.target_unit_price,
        )
        style = STATUS_STYLES[result.status]
        console.print(f"\n[bold]{subscription_glyph(sub.emoji_code)} {sub.name}[/bold]")
        console.print(
            f"Period: {result.period_progress}% "
            f"({result.elapsed_months}/{result.total_months} months)"
        )
        console.print(
            f"Usage: {result.usage_progress}% "
            f"({result.current_total_usage}/{result.target_total_usage}, "
            f"{result.monthly_target}/month)"
        )
        console.print(f"Status: [{style}]{result.status_message}[/]")


@app.command("add-investment")
def add_investment(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    price: int = typer.Option(..., "--price", help="Purchase price"),
    baseline: int = typer.Option(0, "--baseline", help="Per-use price of what it replaces"),
    category: str = typer.Option("OTHER", "--category"),
    emoji: str = typer.Option("default", "--emoji", "-e"),
    purchased: Optional[datetime] = typer.Option(None, "--purchased", formats=DATE_FORMATS),
):
    """Register a one-time investment purchase."""
    try:
        investment = ctx.obj.repository.add_investment(Investment(
            user_id=ctx.obj.user_id,
            name=name,
            emoji_code=emoji,
            category=category,
            purchase_price=Decimal(price),
            purchase_date=_as_date(purchased),
            comparison_baseline=Decimal(baseline),
        ))
    except (TrackerError, ValueError) as e:
        _fail(e)
    console.print(f"[green]✓[/] Added investment #{investment.id} {investment.name}")


@app.command("log-saving")
def log_saving(
    ctx: typer.Context,
    investment_id: int = typer.Argument(...),
    item: str = typer.Argument(..., help="What was used"),
    original: int = typer.Option(..., "--original", help="Price without the investment"),
    actual: int = typer.Option(0, "--actual", help="Price actually paid"),
    on: Optional[datetime] = typer.Option(None, "--date", "-d", formats=DATE_FORMATS),
):
    """Record a use of an investment and what it saved."""
    try:
        usage = ctx.obj.repository.add_investment_usage(InvestmentUsage(
            investment_id=investment_id,
            used_at=_as_date(on),
            item_name=item,
            original_price=Decimal(original),
            actual_price=Decimal(actual),
        ), ctx.obj.user_id)
    except (TrackerError, ValueError) as e:
        _fail(e)
    console.print(f"[green]✓[/] Saved {_format_won(usage.saved_amount)} on {usage.item_name}")


@app.command()
def investments(ctx: typer.Context):
    """List investments with break-even progress."""
    state = ctx.obj
    try:
        items = state.repository.list_active_investments(state.user_id)
        usages = state.repository.fetch_investment_usages([i.id for i in items])
    except Exception as e:
        _fail(e)

    if not items:
        console.print("\n[dim]No investments.[/]")
        return

    table = Table(title="Investments")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Price", justify="right")
    table.add_column("Saved", justify="right")
    table.add_column("Break-even", justify="right")
    table.add_column("Avg/use", justify="right")
    for inv in items:
        metrics = compute_investment_metrics(inv, usages)
        if metrics.break_even_reached:
            status = f"[green]+{_format_won(metrics.net_profit)}[/]"
        else:
            status = f"{metrics.break_even_progress}% ({_format_won(metrics.break_even_remaining)} left)"
        table.add_row(
            str(inv.id),
            f"{investment_glyph(inv.emoji_code)} {inv.name}",
            category_name(inv.category),
            _format_won(inv.purchase_price),
            _format_won(metrics.total_savings),
            status,
            _format_won(metrics.avg_savings_per_use),
        )
    console.print(table)


@app.command()
def report(
    ctx: typer.Context,
    today: Optional[datetime] = typer.Option(None, "--today", formats=DATE_FORMATS),
):
    """Show summary totals and monthly trends."""
    state = ctx.obj
    day = _as_date(today)
    try:
        subs = state.repository.list_active_subscriptions(state.user_id)
        logs = state.repository.fetch_usage_logs([s.id for s in subs])
        invs = state.repository.list_active_investments(state.user_id)
        inv_usages = state.repository.fetch_investment_usages([i.id for i in invs])
    except Exception as e:
        _fail(e)

    result = build_report(
        subs, logs, invs, inv_usages, day, months=state.config.calculation.report_months
    )
    _display_report(result)


def _display_report(result) -> None:
    """Display the report in a compact financial format."""
    summary = result.summary
    console.print("\n[bold]Value Report[/bold]")
    console.print("-" * 40)
    console.print(f"Active subscriptions: {summary.subscription_count}")
    console.print(f"Total monthly fee: {_format_won(summary.total_monthly_fee)}")
    console.print(f"Uses this month: {summary.total_usage_count}")
    console.print(f"Average cost/use: {_format_won(summary.avg_cost_per_use)}")
    console.print(f"Investments: {summary.investment_count}")

    table = Table(title="Monthly trend")
    table.add_column("Month")
    table.add_column("Uses", justify="right")
    table.add_column("Savings", justify="right")
    for (label, uses), savings in zip(result.monthly_usage.points(), result.investment_savings.data):
        table.add_row(label, str(uses), _format_won(savings))
    console.print(table)

    if result.cost_comparison.labels:
        console.print("\n[bold]Monthly fee by subscription[/bold]")
        for name, amount in result.cost_comparison.points():
            console.print(f"{name}: {_format_won(amount)}")


if __name__ == "__main__":
    app()
