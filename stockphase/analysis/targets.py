"""Target price, cut-loss and trade-setup calculations."""

import math
from typing import Optional, Union

from stockphase.models import Phase, PositionSize, TargetResult, TradeSetup


def _as_phase(phase: Union[Phase, str]) -> Optional[Phase]:
    try:
        return Phase(phase)
    except ValueError:
        return None


def calculate_targets(
    current_price: float,
    phase: Union[Phase, str],
    support: float,
    resistance: float,
    ma20: Optional[float] = None,
    ma50: Optional[float] = None,
) -> TargetResult:
    """Calculate target price and cut-loss for a phase.

    Args:
        current_price: Latest close
        phase: Classified phase; anything unrecognised uses +10% / -5%
        support: Nearest support level
        resistance: Nearest resistance level
        ma20: 20-day SMA, used to trail the stop in trend phases
        ma50: 50-day SMA (accepted for callers passing a full IndicatorSet)

    Returns:
        TargetResult with every value rounded to 2 decimals.
    """
    phase = _as_phase(phase)

    if phase is Phase.ACCUMULATION:
        # Measured move: half the range above resistance
        target = resistance + 0.5 * (resistance - support)
        stop = support * 0.97
    elif phase is Phase.MARKUP:
        target = current_price * 1.18
        stop = max(ma20 * 0.98 if ma20 is not None else -math.inf, current_price * 0.92)
    elif phase is Phase.DISTRIBUTION:
        target = support - 0.5 * (resistance - support)
        stop = resistance * 1.03
    elif phase is Phase.MARKDOWN:
        target = current_price * 0.82
        stop = min(ma20 * 1.02 if ma20 is not None else math.inf, current_price * 1.08)
    else:
        target = current_price * 1.10
        stop = current_price * 0.95

    if current_price > 0:
        gain_percent = (target - current_price) / current_price * 100
        loss_percent = (current_price - stop) / current_price * 100
    else:
        gain_percent = loss_percent = 0.0

    risk_reward = abs(gain_percent) / abs(loss_percent) if loss_percent != 0 else 0.0

    return TargetResult(
        target_price=round(target, 2),
        cut_loss_price=round(stop, 2),
        risk_reward_ratio=round(risk_reward, 2),
        potential_gain_percent=round(gain_percent, 2),
        potential_loss_percent=round(loss_percent, 2),
    )


def calculate_position_size(
    account_size: float,
    risk_percentage: float,
    entry_price: float,
    cut_loss_price: float,
) -> PositionSize:
    """Size a position so hitting the cut-loss loses `risk_percentage` of the account.

    Args:
        account_size: Total account value
        risk_percentage: Percent of the account to risk (e.g. 1 for 1%)
        entry_price: Planned entry
        cut_loss_price: Planned stop

    Returns:
        PositionSize with whole shares; zero shares when entry equals stop.
    """
    risk_amount = account_size * (risk_percentage / 100)
    risk_per_share = abs(entry_price - cut_loss_price)

    if risk_per_share == 0 or risk_amount <= 0:
        return PositionSize(shares=0, position_value=0.0, risk_amount=risk_amount)

    shares = math.floor(risk_amount / risk_per_share)
    return PositionSize(
        shares=shares,
        position_value=shares * entry_price,
        risk_amount=risk_amount,
    )


def _grade(score: int) -> str:
    if score >= 80:
        return "A"
    if score >= 65:
        return "B"
    if score >= 50:
        return "C"
    if score >= 35:
        return "D"
    return "F"


def evaluate_trade_setup(
    phase: Union[Phase, str],
    strength: float,
    risk_reward_ratio: float,
) -> TradeSetup:
    """Grade a setup from phase confirmation, risk/reward and phase preference.

    Scoring: strength contributes up to 40 points, risk/reward up to 30 and
    phase preference up to 30. Only long phases (accumulation, markup) with
    a score of 50+ are favorable. An unrecognised phase earns no phase
    preference points and is never favorable.
    """
    phase = _as_phase(phase)
    score = 0
    reasons = []

    if strength >= 70:
        score += 40
        reasons.append("Strong phase confirmation")
    elif strength >= 50:
        score += 30
        reasons.append("Moderate phase confirmation")
    elif strength >= 30:
        score += 20
        reasons.append("Weak phase confirmation")
    else:
        score += 10
        reasons.append("Phase not well defined")

    if risk_reward_ratio >= 3:
        score += 30
        reasons.append("Excellent R/R ratio (3:1+)")
    elif risk_reward_ratio >= 2:
        score += 20
        reasons.append("Good R/R ratio (2:1+)")
    elif risk_reward_ratio >= 1.5:
        score += 10
        reasons.append("Acceptable R/R ratio (1.5:1+)")
    else:
        reasons.append("Poor R/R ratio")

    if phase is Phase.ACCUMULATION and strength >= 50:
        score += 30
        reasons.append("Accumulation is ideal for entry")
    elif phase is Phase.MARKUP and strength >= 60:
        score += 25
        reasons.append("Markup with momentum")
    elif phase is Phase.DISTRIBUTION:
        score += 10
        reasons.append("Distribution - consider taking profits")
    elif phase is Phase.MARKDOWN:
        score += 5
        reasons.append("Markdown - avoid or short")

    is_long = phase in (Phase.ACCUMULATION, Phase.MARKUP)

    return TradeSetup(
        favorable=score >= 50 and is_long,
        grade=_grade(score),
        reason=". ".join(reasons),
    )
