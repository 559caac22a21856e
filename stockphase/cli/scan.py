"""Scan command for stockphase CLI.

Analyzes many CSV files at once, deriving market breadth from the batch.
"""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from stockphase.analysis import analyze_batch, sum_recent_net_flow
from stockphase.analysis.pipeline import breadth_for
from stockphase.cli.analyze import ACTION_COLORS, PHASE_COLORS, _settings
from stockphase.data import DataLoadError, load_bars_and_flows
from stockphase.models import AnalysisReport, PriceBar

console = Console()
logger = logging.getLogger(__name__)


def load_histories(
    paths: list[str],
    flow_days: int,
) -> tuple[dict[str, list[PriceBar]], dict[str, Optional[float]]]:
    """Load each CSV keyed by its upper-cased file stem, skipping bad files.

    Returns:
        Tuple of (bars per symbol, recent net flow per symbol from the
        foreign_net column, None where the file has none).
    """
    histories = {}
    flows = {}
    for path in paths:
        symbol = Path(path).stem.upper()
        try:
            bars, daily_flows = load_bars_and_flows(path)
        except DataLoadError as e:
            logger.warning("Skipping %s: %s", path, e)
            console.print(f"[dim]Skipping {path}: {e}[/dim]")
            continue
        histories[symbol] = bars
        flows[symbol] = sum_recent_net_flow(daily_flows, flow_days)
    return histories, flows


def _sort_key(report: AnalysisReport) -> float:
    return -report.recommendation.score


@click.command()
@click.argument("csv_files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("--workers", "-w", type=click.IntRange(1, 64), default=None,
              help="Parallel workers (default: from config)")
@click.option("--breadth", type=click.FloatRange(0, 100), default=None,
              help="Override market breadth instead of deriving it from the batch")
@click.pass_context
def scan(ctx: click.Context, csv_files: tuple[str, ...], workers: Optional[int], breadth: Optional[float]) -> None:
    """Analyze several symbols and rank them by recommendation score.

    Each CSV_FILE is one symbol, named after the file.

    \b
    Examples:
      stockphase scan data/*.csv
      stockphase scan AAPL.csv MSFT.csv -w 8
    """
    settings = _settings(ctx)
    histories, flows = load_histories(list(csv_files), settings.analysis.flow_days)

    if not histories:
        raise click.ClickException("No readable CSV files")

    market = breadth_for(histories)
    if breadth is None:
        breadth = market.percent_above

    reports = analyze_batch(
        histories,
        foreign_flows=flows,
        market_breadth_percent=breadth,
        max_workers=workers or settings.analysis.max_workers,
    )

    breadth_text = f"{breadth:g}%" if breadth is not None else "N/A"
    table = Table(title=f"Scan Results ({len(reports)} symbols, breadth {breadth_text})")
    table.add_column("Symbol", style="bold")
    table.add_column("Price", justify="right")
    table.add_column("Phase")
    table.add_column("Strength", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Cut Loss", justify="right")
    table.add_column("Action")
    table.add_column("Score", justify="right")

    currency = settings.display.currency
    for report in sorted(reports.values(), key=_sort_key):
        phase_color = PHASE_COLORS[report.phase.phase]
        action_color = ACTION_COLORS[report.recommendation.action]
        table.add_row(
            report.symbol,
            f"{currency}{report.current_price:,.2f}",
            f"[{phase_color}]{report.phase.phase.value} {report.phase.sub_phase.value}[/{phase_color}]",
            f"{report.phase.strength:.0f}",
            f"{currency}{report.targets.target_price:,.2f}",
            f"{currency}{report.targets.cut_loss_price:,.2f}",
            f"[{action_color}]{report.recommendation.action.value}[/{action_color}]",
            f"{report.recommendation.score:+.1f}",
        )

    console.print(table)
    console.print(
        f"[dim]Above MA200: {market.above_ma200} | Below: {market.below_ma200} | "
        f"No MA200 yet: {market.no_data}[/dim]"
    )
