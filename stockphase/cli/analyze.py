"""Analyze commands for stockphase CLI.

Runs the phase classifier, target calculator and recommendation scorer on a
CSV of daily bars and renders the result.
"""

import json
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stockphase.analysis import analyze_symbol, find_key_levels, sum_recent_net_flow
from stockphase.config import Settings
from stockphase.data import DataLoadError, load_bars_and_flows
from stockphase.indicators import calculate_indicators
from stockphase.models import Action, AnalysisReport, Phase, Signal

console = Console()

PHASE_COLORS = {
    Phase.ACCUMULATION: "green",
    Phase.MARKUP: "bright_green",
    Phase.DISTRIBUTION: "yellow",
    Phase.MARKDOWN: "red",
}

ACTION_COLORS = {
    Action.STRONG_BUY: "bold green",
    Action.BUY: "green",
    Action.HOLD: "yellow",
    Action.SELL: "red",
    Action.STRONG_SELL: "bold red",
}

SIGNAL_COLORS = {
    Signal.BULLISH: "green",
    Signal.BEARISH: "red",
    Signal.NEUTRAL: "dim",
}


def _settings(ctx: click.Context) -> Settings:
    obj = ctx.find_object(dict) or {}
    return obj.get("settings") or Settings()


def _load(path: str):
    """Load bars and daily flows or exit with an error panel."""
    try:
        return load_bars_and_flows(path)
    except DataLoadError as e:
        console.print(Panel(
            f"[red]{e}[/red]",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)


def _fmt(value: Optional[float], currency: str = "", digits: int = 2) -> str:
    if value is None:
        return "N/A"
    return f"{currency}{value:,.{digits}f}"


def render_report(report: AnalysisReport, currency: str) -> None:
    """Print an AnalysisReport as rich panels and tables."""
    phase = report.phase
    rec = report.recommendation
    targets = report.targets
    color = PHASE_COLORS[phase.phase]

    header = [
        f"[bold]{report.symbol}[/bold] - {_fmt(report.current_price, currency)}",
        f"[dim]Based on {report.bar_count} daily bars"
        + (f" up to {report.as_of.isoformat()}" if report.as_of else "")
        + "[/dim]\n",
        f"[bold]Phase:[/bold] [{color}]{phase.phase.value.title()} {phase.sub_phase.value}[/{color}]"
        f"  (strength {phase.strength:.0f}/100)",
        f"[dim]{phase.reasoning}[/dim]\n",
        f"[bold]Support:[/bold] {_fmt(phase.support, currency)} | "
        f"[bold]Resistance:[/bold] {_fmt(phase.resistance, currency)}",
        f"[bold]Target:[/bold] {_fmt(targets.target_price, currency)} "
        f"({targets.potential_gain_percent:+.2f}%) | "
        f"[bold]Cut loss:[/bold] {_fmt(targets.cut_loss_price, currency)} "
        f"({-targets.potential_loss_percent:+.2f}%) | "
        f"[bold]R/R:[/bold] {targets.risk_reward_ratio:.2f}",
        f"[bold]Setup grade:[/bold] {report.setup.grade}"
        + (" [green](favorable)[/green]" if report.setup.favorable else ""),
    ]
    console.print(Panel("\n".join(header), title="Wyckoff Analysis", border_style=color))

    table = Table(title="Recommendation Factors")
    table.add_column("Factor", style="bold")
    table.add_column("Signal")
    table.add_column("Weight", justify="right")
    table.add_column("Description")

    for factor in rec.factors:
        signal_color = SIGNAL_COLORS[factor.signal]
        table.add_row(
            factor.name,
            f"[{signal_color}]{factor.signal.value}[/{signal_color}]",
            f"{factor.weight:g}",
            factor.description,
        )
    console.print(table)

    action_color = ACTION_COLORS[rec.action]
    if rec.entry_price_max > 0:
        entry = f"{_fmt(rec.entry_price_min, currency)} - {_fmt(rec.entry_price_max, currency)}"
    else:
        entry = "No entry"
    console.print(Panel(
        f"[{action_color}]{rec.action.value.replace('_', ' ')}[/{action_color}]"
        f"  confidence {rec.confidence}%  score {rec.score:+.1f}\n"
        f"[bold]Entry:[/bold] {entry}\n\n{rec.summary}",
        title="Recommendation",
        border_style=action_color.split()[-1],
    ))


@click.command()
@click.argument("csv_file", type=click.Path(dir_okay=False))
@click.option("--symbol", "-s", default=None, help="Symbol label (default: file name)")
@click.option("--flow", type=float, default=None,
              help="Recent net foreign flow in shares (default: summed from a foreign_net column)")
@click.option("--breadth", type=click.FloatRange(0, 100), default=None,
              help="Percent of the market above its MA200")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the report as JSON")
@click.pass_context
def analyze(
    ctx: click.Context,
    csv_file: str,
    symbol: Optional[str],
    flow: Optional[float],
    breadth: Optional[float],
    as_json: bool,
) -> None:
    """Classify the Wyckoff phase and score a recommendation.

    CSV_FILE holds daily bars with date, open, high, low, close and
    volume columns.

    \b
    Examples:
      stockphase analyze AAPL.csv
      stockphase analyze bbca.csv -s BBCA.JK --flow 2500000 --breadth 62
      stockphase analyze AAPL.csv --json
    """
    settings = _settings(ctx)
    bars, daily_flows = _load(csv_file)
    symbol = (symbol or Path(csv_file).stem).upper()

    if flow is None:
        flow = sum_recent_net_flow(daily_flows, settings.analysis.flow_days)

    report = analyze_symbol(symbol, bars, foreign_net_flow=flow, market_breadth_percent=breadth)

    if as_json:
        click.echo(json.dumps(report.model_dump(mode="json"), indent=2))
        return

    render_report(report, settings.display.currency)


@click.command()
@click.argument("csv_file", type=click.Path(dir_okay=False))
@click.pass_context
def indicators(ctx: click.Context, csv_file: str) -> None:
    """Show technical indicators and key levels for a CSV of bars."""
    currency = _settings(ctx).display.currency
    bars, _ = _load(csv_file)

    values = calculate_indicators(bars)
    levels = find_key_levels(bars)

    table = Table(title=f"{Path(csv_file).stem.upper()} Indicators ({len(bars)} bars)")
    table.add_column("Indicator", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("MA20", _fmt(values.ma20, currency))
    table.add_row("MA50", _fmt(values.ma50, currency))
    table.add_row("MA200", _fmt(values.ma200, currency))
    table.add_row("RSI (14)", _fmt(values.rsi14))
    table.add_row("MFI (14)", _fmt(values.mfi14))
    table.add_row("MACD", _fmt(values.macd_line, digits=4))
    table.add_row("MACD Signal", _fmt(values.macd_signal, digits=4))
    table.add_row("MACD Histogram", _fmt(values.macd_histogram, digits=4))
    table.add_row("Volume Avg (20)", _fmt(values.volume_avg20, digits=0))
    table.add_row("Volume Ratio", _fmt(values.volume_ratio))
    table.add_row("Support", _fmt(levels.support, currency))
    table.add_row("Resistance", _fmt(levels.resistance, currency))
    table.add_row("Pivots", str(len(levels.pivot_points)))

    console.print(table)
