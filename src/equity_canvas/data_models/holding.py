"""Portfolio holding models.

`StockHolding` and `BondHolding` mirror the records returned by the scoring
service's `/stocks/info` and `/bonds/info` endpoints. They form a tagged
union (`Holding`) on the `kind` field so that downstream code can match on
the variant instead of probing for field names.

`NormalizedHolding` is the single display shape both variants are projected
into by the holding normalizer.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class HoldingKind(str, Enum):
    """Which book a holding belongs to."""

    STOCK = "stock"
    BOND = "bond"


class StockInfoRequest(BaseModel):
    ticker: str
    weight: float


class BondInfoRequest(BaseModel):
    cusip: str
    weight: float


class StockHolding(BaseModel):
    """An equity position enriched by the scoring service.

    `weight` is a percentage (2.18 means 2.18%), not a fraction. The legacy
    valuation fields are optional because newer API versions omit them.
    """

    model_config = ConfigDict(extra="ignore")

    kind: Literal["stock"] = "stock"

    stock: str
    weight: Optional[float] = None
    sector: Optional[str] = None

    sector_total_score: Optional[float] = None
    sector_mean_score: Optional[float] = None
    security_total_score: Optional[float] = None
    security_mean_score: Optional[float] = None

    # Legacy valuation fields
    units: Optional[float] = None
    purchase_date: Optional[str] = None
    purchase_price: Optional[float] = None
    current_price: Optional[float] = None
    initial_investment: Optional[float] = None
    current_value: Optional[float] = None
    gain_loss: Optional[float] = None
    gain_loss_percentage: Optional[float] = None


class BondHolding(BaseModel):
    """A fixed-income position identified by its 9-character CUSIP."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["bond"] = "bond"

    cusip: str
    weight: Optional[float] = None
    industry_group: Optional[str] = None

    sector_total_score: Optional[float] = None
    sector_mean_score: Optional[float] = None
    security_total_score: Optional[float] = None
    security_mean_score: Optional[float] = None

    # Legacy descriptive / valuation fields
    name: Optional[str] = None
    issuer: Optional[str] = None
    units: Optional[float] = None
    purchase_price: Optional[float] = None
    purchase_date: Optional[str] = None
    current_price: Optional[float] = None
    coupon: Optional[float] = None
    maturity_date: Optional[str] = None
    ytm: Optional[float] = None
    market_value: Optional[float] = None
    total_cost: Optional[float] = None
    price_return: Optional[float] = None
    income_return: Optional[float] = None
    total_return: Optional[float] = None


Holding = Annotated[Union[StockHolding, BondHolding], Field(discriminator="kind")]


class NormalizedHolding(BaseModel):
    """Unified display row for one holding.

    Recomputed from the raw holdings on every render; `None` values are
    rendered as "N/A" (prices) or the numeric fallback by the table layer.
    """

    kind: HoldingKind
    identifier: str
    units: float = 0.0
    purchase_date: str = ""
    current_price: Optional[float] = None
    initial_investment: Optional[float] = None
    gain_loss: Optional[float] = None
    gain_loss_percent: Optional[float] = None
    portfolio_allocation: float = 0.0
    sector: str = ""
    purchase_price: Optional[float] = None
    current_value: float = 0.0

    weighted_harm_score: float = 0.0
    # None when the harm-contribution column is switched off
    portfolio_harm_contribution: Optional[float] = None

    sector_mean_score: Optional[float] = None
    security_total_score: Optional[float] = None
    security_mean_score: float = 0.0


class PortfolioBooks(BaseModel):
    """Both books of a portfolio, as held by a dashboard session."""

    stocks: List[StockHolding] = Field(default_factory=list)
    bonds: List[BondHolding] = Field(default_factory=list)


class PortfolioRequests(BaseModel):
    """Securities to enrich, as read from a portfolio input file."""

    stocks: List[StockInfoRequest] = Field(default_factory=list)
    bonds: List[BondInfoRequest] = Field(default_factory=list)
