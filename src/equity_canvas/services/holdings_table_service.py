"""Holdings table computations.

Projects stock and bond records into `NormalizedHolding` rows and renders
them as the dashboard's holdings table.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence, Union
import logging

import pandas as pd

from equity_canvas.data_models.holding import (
    BondHolding,
    HoldingKind,
    NormalizedHolding,
    StockHolding,
)
from equity_canvas.services.formatting_service import format_percent, format_price, safe_format
from equity_canvas.services.portfolio_valuation_service import (
    harm_contribution,
    holding_weighted_harm,
    portfolio_weighted_harms,
    total_portfolio_value,
)

logger = logging.getLogger(__name__)


class AllocationPolicy(str, Enum):
    """How the "portfolio allocation" column is derived.

    SUPPLIED_WEIGHT echoes the weight the user entered (and the API echoed).
    VALUE_RATIO recomputes it from current value over total portfolio value,
    which needs the legacy valuation fields.
    """

    SUPPLIED_WEIGHT = "supplied_weight"
    VALUE_RATIO = "value_ratio"


def _allocation(weight: Optional[float], current_value: float, total_value: float, policy: AllocationPolicy) -> float:
    if policy is AllocationPolicy.VALUE_RATIO:
        if total_value > 0:
            return (current_value / total_value) * 100.0
        return 0.0
    return float(weight or 0.0)


def normalize_holding(
    holding: Union[StockHolding, BondHolding],
    kind: HoldingKind,
    total_portfolio_value: float,
    portfolio_harm_contribution: Optional[float],
    allocation_policy: AllocationPolicy = AllocationPolicy.SUPPLIED_WEIGHT,
) -> NormalizedHolding:
    """Project a raw holding into the display row.

    Never raises on partially populated records: counts and values default
    to 0, prices and scores shown as "N/A" stay None. A holding whose type
    does not match `kind` is a programming error and raises TypeError.
    """
    kind = HoldingKind(kind)
    weighted_harm = holding_weighted_harm(holding)
    security_mean = float(holding.security_mean_score or 0.0)

    if kind is HoldingKind.STOCK:
        if not isinstance(holding, StockHolding):
            raise TypeError(f"Expected StockHolding for kind={kind.value}, got {type(holding).__name__}")
        current_value = float(holding.current_value or 0.0)
        return NormalizedHolding(
            kind=kind,
            identifier=holding.stock or "",
            units=float(holding.units or 0.0),
            purchase_date=holding.purchase_date or "",
            current_price=holding.current_price,
            initial_investment=holding.initial_investment,
            gain_loss=holding.gain_loss,
            gain_loss_percent=holding.gain_loss_percentage,
            portfolio_allocation=_allocation(holding.weight, current_value, total_portfolio_value, allocation_policy),
            sector=holding.sector or "",
            purchase_price=holding.purchase_price,
            current_value=current_value,
            weighted_harm_score=weighted_harm,
            portfolio_harm_contribution=portfolio_harm_contribution,
            sector_mean_score=holding.sector_mean_score,
            security_total_score=holding.security_total_score,
            security_mean_score=security_mean,
        )

    if not isinstance(holding, BondHolding):
        raise TypeError(f"Expected BondHolding for kind={kind.value}, got {type(holding).__name__}")
    current_value = float(holding.market_value or 0.0)
    total_cost = holding.total_cost
    if total_cost is not None and total_cost > 0:
        gain_loss_percent = (float(holding.total_return or 0.0) / total_cost) * 100.0
    else:
        gain_loss_percent = 0.0
    return NormalizedHolding(
        kind=kind,
        identifier=holding.cusip or "",
        units=float(holding.units or 0.0),
        purchase_date=holding.purchase_date or "",
        current_price=holding.current_price,
        initial_investment=total_cost,
        gain_loss=holding.total_return,
        gain_loss_percent=gain_loss_percent,
        portfolio_allocation=_allocation(holding.weight, current_value, total_portfolio_value, allocation_policy),
        sector=holding.industry_group or "",
        purchase_price=holding.purchase_price,
        current_value=current_value,
        weighted_harm_score=weighted_harm,
        portfolio_harm_contribution=portfolio_harm_contribution,
        sector_mean_score=holding.sector_mean_score,
        security_total_score=holding.security_total_score,
        security_mean_score=security_mean,
    )


def build_holdings_table(
    holdings: Sequence[Union[StockHolding, BondHolding]],
    kind: HoldingKind,
    all_stocks: Optional[Sequence[StockHolding]] = None,
    all_bonds: Optional[Sequence[BondHolding]] = None,
    allocation_policy: AllocationPolicy = AllocationPolicy.SUPPLIED_WEIGHT,
    include_harm_contribution: bool = True,
) -> List[NormalizedHolding]:
    """Normalise one book against the combined (stocks + bonds) portfolio.

    Total value and total harm are taken over both books so that a stock's
    harm contribution is its share of the whole portfolio's harm. When
    neither book is passed, `holdings` is taken as the whole portfolio.
    """
    if not holdings:
        return []

    kind = HoldingKind(kind)
    if all_stocks is None and all_bonds is None:
        if kind is HoldingKind.STOCK:
            all_stocks = list(holdings)
        else:
            all_bonds = list(holdings)

    total_value = total_portfolio_value(all_stocks, all_bonds)
    all_harms = portfolio_weighted_harms(all_stocks, all_bonds)

    rows: List[NormalizedHolding] = []
    for h in holdings:
        contribution = harm_contribution(all_harms, holding_weighted_harm(h)) if include_harm_contribution else None
        rows.append(normalize_holding(h, kind, total_value, contribution, allocation_policy))

    logger.debug(
        "Normalised %d %s holdings (total value %.2f, %d holdings in portfolio)",
        len(rows),
        kind.value,
        total_value,
        len(all_harms),
    )
    return rows


def holdings_table_columns(kind: HoldingKind) -> List[str]:
    is_stock = HoldingKind(kind) is HoldingKind.STOCK
    return [
        "#",
        "Stock" if is_stock else "CUSIP",
        "Weight (%)",
        "Current Price",
        "Sector" if is_stock else "Industry Group",
        "Weighted Harm Score",
        "Sector Mean Score",
        "Portfolio Harm Contribution",
        "Security Mean Score",
    ]


def holdings_table_frame(rows: Sequence[NormalizedHolding], kind: HoldingKind) -> pd.DataFrame:
    """Render normalised rows as the display table (all cells are strings)."""
    columns = holdings_table_columns(kind)
    records = []
    for i, r in enumerate(rows, start=1):
        contribution = (
            format_percent(r.portfolio_harm_contribution)
            if r.portfolio_harm_contribution is not None
            else "N/A"
        )
        records.append(
            [
                str(i),
                r.identifier,
                format_percent(r.portfolio_allocation),
                format_price(r.current_price),
                r.sector,
                safe_format(r.weighted_harm_score),
                safe_format(r.sector_mean_score),
                contribution,
                safe_format(r.security_mean_score),
            ]
        )
    return pd.DataFrame(records, columns=columns)
