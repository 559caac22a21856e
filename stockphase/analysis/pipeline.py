"""End-to-end analysis of one symbol and fan-out across many.

The single-symbol path is a pure function. The batch path computes market
breadth from the batch itself, then analyzes every symbol on a thread pool;
the only shared inputs are the breadth and flow scalars.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Mapping, Optional

from stockphase.analysis.market import calculate_market_breadth
from stockphase.analysis.phase import detect_phase
from stockphase.analysis.recommendation import RecommendationInput, generate_recommendation
from stockphase.analysis.targets import calculate_targets, evaluate_trade_setup
from stockphase.indicators.technical import calculate_sma
from stockphase.models import AnalysisReport, MarketBreadth, PriceBar
from stockphase.series import closes, latest_close, prepare_series

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


def analyze_symbol(
    symbol: str,
    bars: list[PriceBar],
    foreign_net_flow: Optional[float] = None,
    market_breadth_percent: Optional[float] = None,
) -> AnalysisReport:
    """Run phase, target and recommendation analysis for one symbol.

    Args:
        symbol: Ticker symbol.
        bars: Daily bars; sorted here, duplicates rejected.
        foreign_net_flow: Recent net flow scalar, if known.
        market_breadth_percent: Percent of the universe above MA200, if known.

    Returns:
        AnalysisReport for the latest bar.

    Raises:
        PriceSeriesError: If two bars share a date.
    """
    ordered = prepare_series(bars)
    price = latest_close(ordered)

    phase = detect_phase(ordered)
    indicators = phase.indicators

    targets = calculate_targets(
        price,
        phase.phase,
        phase.support,
        phase.resistance,
        ma20=indicators.ma20,
        ma50=indicators.ma50,
    )

    recommendation = generate_recommendation(RecommendationInput(
        current_price=price,
        phase=phase.phase,
        sub_phase=phase.sub_phase,
        strength=phase.strength,
        target_price=targets.target_price,
        cut_loss_price=targets.cut_loss_price,
        support=phase.support,
        resistance=phase.resistance,
        ma200=indicators.ma200,
        rsi14=indicators.rsi14,
        foreign_net_flow=foreign_net_flow,
        market_breadth_percent=market_breadth_percent,
    ))

    setup = evaluate_trade_setup(phase.phase, phase.strength, targets.risk_reward_ratio)

    return AnalysisReport(
        symbol=symbol.upper(),
        as_of=ordered[-1].date if ordered else None,
        current_price=price,
        bar_count=len(ordered),
        phase=phase,
        targets=targets,
        recommendation=recommendation,
        setup=setup,
    )


def breadth_for(histories: Mapping[str, list[PriceBar]]) -> MarketBreadth:
    """Market breadth across a batch of histories."""
    snapshots = []
    for bars in histories.values():
        ordered = sorted(bars, key=lambda b: b.date)
        snapshots.append((latest_close(ordered), calculate_sma(closes(ordered), 200)))
    return calculate_market_breadth(snapshots)


def analyze_batch(
    histories: Mapping[str, list[PriceBar]],
    foreign_flows: Optional[Mapping[str, Optional[float]]] = None,
    market_breadth_percent: Optional[float] = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> dict[str, AnalysisReport]:
    """Analyze many symbols concurrently.

    Args:
        histories: Bars per symbol.
        foreign_flows: Optional flow scalar per symbol.
        market_breadth_percent: Breadth override; computed from `histories`
            when None.
        max_workers: Thread pool size.

    Returns:
        Reports keyed by symbol as given. Symbols whose analysis raises are
        logged and left out.
    """
    flows = foreign_flows or {}

    if market_breadth_percent is None:
        market_breadth_percent = breadth_for(histories).percent_above

    logger.info(
        "Analyzing %d symbols with %d workers (breadth=%s)",
        len(histories), max_workers, market_breadth_percent,
    )

    reports: dict[str, AnalysisReport] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_symbol = {
            executor.submit(
                analyze_symbol,
                symbol,
                bars,
                flows.get(symbol),
                market_breadth_percent,
            ): symbol
            for symbol, bars in histories.items()
        }

        for future in as_completed(future_to_symbol):
            symbol = future_to_symbol[future]
            try:
                reports[symbol] = future.result()
            except ValueError as e:
                logger.warning("Skipping %s: %s", symbol, e)
            except Exception:
                logger.exception("Error analyzing %s", symbol)

    # Keep caller order regardless of completion order
    return {symbol: reports[symbol] for symbol in histories if symbol in reports}
