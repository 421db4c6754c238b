"""Summary statistics over a performance snapshot series."""

import math
from collections.abc import Sequence

from src.wt_common.cents import percent

TRADING_DAYS = 252


def max_drawdown(values: Sequence[int]) -> float:
    """Largest peak-to-trough decline, in percent of the peak."""
    peak = 0
    worst = 0.0
    for value in values:
        peak = max(peak, value)
        if peak > 0:
            worst = max(worst, (peak - value) / peak)
    return worst * 100


def period_returns(values: Sequence[int]) -> list[float]:
    return [
        (curr - prev) / prev
        for prev, curr in zip(values, values[1:])
        if prev != 0
    ]


def sharpe_ratio(values: Sequence[int], risk_free_annual: float) -> float:
    """Simplified annualized Sharpe: population stddev, daily risk-free rate, x sqrt(252)."""
    returns = period_returns(values)
    if not returns:
        return 0.0
    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / len(returns)
    std = math.sqrt(variance)
    if std == 0:
        return 0.0
    daily_rf = risk_free_annual / TRADING_DAYS
    return (mean - daily_rf) / std * math.sqrt(TRADING_DAYS)


def win_rate(realized: Sequence[int | None]) -> float:
    """Percent of closing trades with a positive realized P&L."""
    closed = [pnl for pnl in realized if pnl is not None]
    wins = sum(1 for pnl in closed if pnl > 0)
    return percent(wins, len(closed))
