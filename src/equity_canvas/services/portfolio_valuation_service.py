"""Portfolio valuation and harm aggregation.

The weighted harm metric is intentionally simple and explainable:

    weighted_harm = (weight_pct / 100) * (100 - security_mean_score)

Mean scores are 0-100 with higher meaning LESS harmful, so a holding with a
perfect score contributes no harm regardless of its weight.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from equity_canvas.data_models.holding import BondHolding, StockHolding


def total_portfolio_value(
    stocks: Optional[Iterable[StockHolding]] = None,
    bonds: Optional[Iterable[BondHolding]] = None,
) -> float:
    """Sum stock `current_value` and bond `market_value`; missing values count as 0."""
    stock_total = sum(float(s.current_value or 0.0) for s in (stocks or []))
    bond_total = sum(float(b.market_value or 0.0) for b in (bonds or []))
    return float(stock_total + bond_total)


def weighted_harm_score(weight_pct: float, mean_score: float) -> float:
    """Scale a holding's harm (100 - mean score) by its portfolio weight.

    Inputs outside [0, 100] are not rejected; the arithmetic simply runs.
    """
    return (weight_pct / 100.0) * (100.0 - mean_score)


def holding_weighted_harm(holding: StockHolding | BondHolding) -> float:
    return weighted_harm_score(float(holding.weight or 0.0), float(holding.security_mean_score or 0.0))


def harm_contribution(all_weighted_harms: Sequence[float], this_weighted_harm: float) -> float:
    """Share (%) of total portfolio harm attributable to one holding.

    Returns 0.0 when the total harm is not positive (empty portfolio or every
    holding scored 100).
    """
    total_harm = float(sum(all_weighted_harms))
    if total_harm > 0:
        return (this_weighted_harm / total_harm) * 100.0
    return 0.0


def portfolio_weighted_harms(
    stocks: Optional[Iterable[StockHolding]] = None,
    bonds: Optional[Iterable[BondHolding]] = None,
) -> List[float]:
    """Weighted harm of every holding across both books, stocks first."""
    harms = [holding_weighted_harm(s) for s in (stocks or [])]
    harms.extend(holding_weighted_harm(b) for b in (bonds or []))
    return harms


def total_weighted_harm(
    stocks: Optional[Iterable[StockHolding]] = None,
    bonds: Optional[Iterable[BondHolding]] = None,
) -> float:
    return float(sum(portfolio_weighted_harms(stocks, bonds)))
