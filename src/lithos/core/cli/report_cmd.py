"""lithos balances / history / holdings / debts / bills: text reports over a snapshot."""

from __future__ import annotations

import json

import click

_snapshot_arg = click.argument("snapshot_file", type=click.Path(exists=True, dir_okay=False))
_base_option = click.option(
    "--base-currency",
    type=click.Choice(["GBP", "USD", "EUR"], case_sensitive=False),
    default=None,
    help="Reporting currency (default: ledger.base_currency).",
)
_fx_option = click.option("--fx-rate", type=float, default=None, help="GBP->USD rate override.")
_today_option = click.option(
    "--today",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Valuation date (YYYY-MM-DD, default: today).",
)


def _open(ctx: click.Context, snapshot_file: str, base_currency: str | None, fx_rate: float | None):
    from lithos.core.cli.common import load_config, open_snapshot

    config = load_config(ctx.obj.get("config_file"))
    return config, open_snapshot(snapshot_file, config, base_currency=base_currency, fx_rate=fx_rate)


@click.command()
@_snapshot_arg
@_base_option
@_fx_option
@click.pass_context
def balances(ctx: click.Context, snapshot_file: str, base_currency: str | None, fx_rate: float | None) -> None:
    """Show the current balance of every account and debt."""
    from lithos.financial.calculators.currency import format_money

    _, snapshot = _open(ctx, snapshot_file, base_currency, fx_rate)
    current = snapshot.balances()
    base = snapshot.base_currency

    click.echo(f"{'Account':<28} {'Type':<12} {'Balance':>16}")
    click.echo("-" * 58)
    for account in snapshot.accounts:
        name = (account.name or account.id)[:28]
        click.echo(f"{name:<28} {account.type:<12} {format_money(current[account.id], base):>16}")
    for debt in snapshot.debts:
        click.echo(f"{(debt.name or debt.id)[:28]:<28} {'debt':<12} {format_money(-current[debt.id], base):>16}")
    click.echo("-" * 58)
    click.echo(f"{'Net worth':<41} {format_money(snapshot.net_worth(), base):>16}")


@click.command()
@_snapshot_arg
@click.option(
    "--range",
    "history_range",
    type=click.Choice(["1W", "1M", "3M", "6M", "1Y", "all"]),
    default=None,
    help="History window (default: history.default_range).",
)
@click.option(
    "--max-points", type=click.IntRange(min=2), default=None, help="Sampling cap (default: history.max_points)."
)
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table.")
@click.option("--output", type=click.Path(dir_okay=False), default=None, help="Write the report to a file.")
@_base_option
@_fx_option
@_today_option
@click.pass_context
def history(
    ctx: click.Context,
    snapshot_file: str,
    history_range: str | None,
    max_points: int | None,
    as_json: bool,
    output: str | None,
    base_currency: str | None,
    fx_rate: float | None,
    today,
) -> None:
    """Show net worth over time."""
    from lithos.core.cli.common import resolve_today
    from lithos.core.utils.file_io import safe_write
    from lithos.financial.calculators.currency import format_money

    config, snapshot = _open(ctx, snapshot_file, base_currency, fx_rate)
    settings = config.validated()
    today = resolve_today(today)
    snapshot, synthetic = snapshot.with_synthetic_histories(
        today,
        days=settings.prices.synthetic_days,
        volatility=settings.prices.synthetic_volatility,
    )
    points = list(
        snapshot.history(
            history_range or settings.history.default_range,
            today=today,
            max_points=max_points or settings.history.max_points,
        )
    )

    if as_json:
        report = json.dumps([p.to_dict() for p in points], indent=2)
    else:
        base = snapshot.base_currency
        lines = [f"{'Date':<12} {'Net worth':>16} {'Assets':>16} {'Debts':>14}", "-" * 61]
        for p in points:
            lines.append(
                f"{p.date.isoformat():<12} {format_money(p.net_worth, base):>16} "
                f"{format_money(p.assets, base):>16} {format_money(p.debts, base):>14}"
            )
        report = "\n".join(lines)
        if synthetic:
            report += f"\n\nSimulated prices (no history on record): {', '.join(sorted(synthetic))}"

    if output:
        safe_write(output, report + "\n")
        click.echo(f"Wrote {len(points)} points to {output}")
    else:
        click.echo(report)


@click.command()
@_snapshot_arg
@click.option("--account", "account_id", default=None, help="Investment account id (default: whole portfolio).")
@_base_option
@_fx_option
@_today_option
@click.pass_context
def holdings(
    ctx: click.Context,
    snapshot_file: str,
    account_id: str | None,
    base_currency: str | None,
    fx_rate: float | None,
    today,
) -> None:
    """Show holdings with cost basis, value and gain."""
    from lithos.core.cli.common import resolve_today
    from lithos.financial.calculators.currency import format_money

    _, snapshot = _open(ctx, snapshot_file, base_currency, fx_rate)
    valuations = snapshot.valuations(account_id, today=resolve_today(today))
    if not valuations:
        click.echo("No holdings.")
        return

    base = snapshot.base_currency
    click.echo(f"{'Symbol':<10} {'Qty':>12} {'Avg cost':>12} {'Price':>12} {'Value':>14} {'Gain':>9}")
    click.echo("-" * 74)
    for v in valuations:
        gain = "n/a" if v.is_zero_cost else f"{v.profit_percent:+.1f}%"
        click.echo(
            f"{v.symbol[:10]:<10} {v.quantity:>12,.4f} {format_money(v.average_price, base):>12} "
            f"{format_money(v.display_price, base):>12} {format_money(v.current_value, base):>14} {gain:>9}"
        )
    click.echo("-" * 74)
    click.echo(f"{'Total':<49} {format_money(sum(v.current_value for v in valuations), base):>14}")


@click.command()
@_snapshot_arg
@_base_option
@_fx_option
@_today_option
@click.pass_context
def debts(ctx: click.Context, snapshot_file: str, base_currency: str | None, fx_rate: float | None, today) -> None:
    """Show debt utilization, minimum payments and payoff projections."""
    from lithos.core.cli.common import resolve_today
    from lithos.financial.calculators.currency import currency_symbol

    _, snapshot = _open(ctx, snapshot_file, base_currency, fx_rate)
    if not snapshot.debts:
        click.echo("No debts.")
        return
    summary = snapshot.debt_summary(resolve_today(today))
    click.echo(summary.format_table(currency_symbol(snapshot.base_currency)))


@click.command()
@_snapshot_arg
@click.option("--limit", type=int, default=6, show_default=True, help="How many bills to show.")
@_today_option
@click.pass_context
def bills(ctx: click.Context, snapshot_file: str, limit: int, today) -> None:
    """Show upcoming bills, soonest first."""
    from lithos.core.cli.common import resolve_today
    from lithos.financial.calculators.currency import format_money

    _, snapshot = _open(ctx, snapshot_file, None, None)
    upcoming = snapshot.upcoming_bills(resolve_today(today), limit=limit)
    if not upcoming:
        click.echo("No upcoming bills.")
        return
    for bill, due in upcoming:
        click.echo(f"{due.isoformat():<12} {bill.name[:30]:<30} {format_money(bill.amount, snapshot.base_currency):>12}")
