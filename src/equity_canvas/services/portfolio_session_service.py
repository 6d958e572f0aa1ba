"""Dashboard portfolio session.

Holds the user's two books, validates sidebar input before calling the
scoring service, and guards against applying harm scores that were fetched
for an older version of a book.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple
import logging

from equity_canvas.data_models.harm_scores import (
    QUARTILE_UNKNOWN,
    HarmSummary,
    PortfolioHarmScores,
    quartile_range_label,
)
from equity_canvas.data_models.holding import (
    BondHolding,
    HoldingKind,
    NormalizedHolding,
    PortfolioBooks,
    StockHolding,
)
from equity_canvas.services.formatting_service import safe_format
from equity_canvas.services.holdings_table_service import AllocationPolicy, build_holdings_table
from equity_canvas.services.scoring_api_client import ScoringApiClient

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Please fill in all required fields"
INVALID_WEIGHT_MESSAGE = "Weight must be a number between 0 and 100"


class PortfolioInputError(ValueError):
    """Sidebar input rejected before any API call."""


def parse_weight(weight_text: str) -> float:
    """Parse a percentage weight; must be in (0, 100]."""
    try:
        weight = float(str(weight_text).strip())
    except ValueError:
        raise PortfolioInputError(INVALID_WEIGHT_MESSAGE) from None
    if weight != weight or weight <= 0 or weight > 100:
        raise PortfolioInputError(INVALID_WEIGHT_MESSAGE)
    return weight


def _require(identifier: Optional[str], weight_text: Optional[str]) -> Tuple[str, str]:
    identifier = (identifier or "").strip()
    weight_text = "" if weight_text is None else str(weight_text).strip()
    if not identifier or not weight_text:
        raise PortfolioInputError(MISSING_FIELDS_MESSAGE)
    return identifier.upper(), weight_text


def harm_summary(scores: Optional[PortfolioHarmScores]) -> HarmSummary:
    """Values for the "Average Portfolio Harm Score" and quartile cards."""
    if scores is None:
        return HarmSummary(average_score_text="0.0", quartile=QUARTILE_UNKNOWN)
    average_text = safe_format(scores.average_score) if scores.average_score is not None else "0.0"
    quartile = scores.quartile or QUARTILE_UNKNOWN
    return HarmSummary(
        average_score_text=average_text,
        quartile=quartile,
        quartile_range=quartile_range_label(quartile),
    )


class PortfolioSession:
    """One user's portfolio for the lifetime of a dashboard view.

    Each book carries a generation counter bumped on every add/remove. A
    harm-score fetch records the generation it started from; its result is
    applied only if the book is unchanged and the session still open.
    """

    def __init__(self, client: ScoringApiClient):
        self.client = client
        self.books = PortfolioBooks()
        self.harm_scores: Dict[HoldingKind, Optional[PortfolioHarmScores]] = {
            HoldingKind.STOCK: None,
            HoldingKind.BOND: None,
        }
        self._generation: Dict[HoldingKind, int] = {HoldingKind.STOCK: 0, HoldingKind.BOND: 0}
        self._closed = False

    @property
    def stocks(self) -> List[StockHolding]:
        return self.books.stocks

    @property
    def bonds(self) -> List[BondHolding]:
        return self.books.bonds

    def _touch(self, kind: HoldingKind) -> None:
        self._generation[kind] += 1
        self.harm_scores[kind] = None

    def add_stock(self, ticker: str, weight_text: str) -> StockHolding:
        ticker, weight_text = _require(ticker, weight_text)
        weight = parse_weight(weight_text)
        stock = self.client.get_stock_info(ticker, weight)
        self.books.stocks.append(stock)
        self._touch(HoldingKind.STOCK)
        logger.info("Added %s to portfolio (%.2f%%)", stock.stock, weight)
        return stock

    def add_bond(self, cusip: str, weight_text: str) -> BondHolding:
        cusip, weight_text = _require(cusip, weight_text)
        weight = parse_weight(weight_text)
        bond = self.client.get_bond_info(cusip, weight)
        self.books.bonds.append(bond)
        self._touch(HoldingKind.BOND)
        logger.info("Added bond %s to portfolio (%.2f%%)", bond.cusip, weight)
        return bond

    def remove_stock(self, index: int) -> StockHolding:
        if index < 0 or index >= len(self.books.stocks):
            raise IndexError(f"No stock at position {index}")
        stock = self.books.stocks.pop(index)
        self._touch(HoldingKind.STOCK)
        logger.info("Removed %s from portfolio", stock.stock)
        return stock

    def remove_bond(self, index: int) -> BondHolding:
        if index < 0 or index >= len(self.books.bonds):
            raise IndexError(f"No bond at position {index}")
        bond = self.books.bonds.pop(index)
        self._touch(HoldingKind.BOND)
        logger.info("Removed bond %s from portfolio", bond.cusip)
        return bond

    def stable_key(self, kind: HoldingKind) -> str:
        """Order-independent key of a book; harm scores are refetched when it changes."""
        kind = HoldingKind(kind)
        if kind is HoldingKind.STOCK:
            parts = [f"{s.stock}-{s.units}-{s.purchase_date}" for s in self.books.stocks]
        else:
            parts = [f"{b.cusip}-{b.units}-{b.purchase_date}" for b in self.books.bonds]
        return ",".join(sorted(parts)) if parts else "empty"

    def begin_fetch(self, kind: HoldingKind) -> int:
        return self._generation[HoldingKind(kind)]

    def apply_harm_scores(self, kind: HoldingKind, token: int, scores: PortfolioHarmScores) -> bool:
        """Store fetched scores unless they are stale. Returns whether they were applied."""
        kind = HoldingKind(kind)
        if self._closed:
            logger.warning("Discarding %s harm scores: session closed", kind.value)
            return False
        if token != self._generation[kind]:
            logger.warning(
                "Discarding stale %s harm scores (fetched at generation %d, now %d)",
                kind.value,
                token,
                self._generation[kind],
            )
            return False
        self.harm_scores[kind] = scores
        return True

    def refresh_harm_scores(self, kind: HoldingKind) -> Optional[PortfolioHarmScores]:
        """Fetch and apply harm scores for one book. An empty book makes no call."""
        kind = HoldingKind(kind)
        token = self.begin_fetch(kind)
        if kind is HoldingKind.STOCK:
            if not self.books.stocks:
                return None
            scores = self.client.calculate_stock_harm_scores(list(self.books.stocks))
        else:
            if not self.books.bonds:
                return None
            scores = self.client.calculate_bond_harm_scores(list(self.books.bonds))
        self.apply_harm_scores(kind, token, scores)
        return self.harm_scores[kind]

    def holdings_view(
        self,
        kind: HoldingKind,
        allocation_policy: AllocationPolicy = AllocationPolicy.SUPPLIED_WEIGHT,
        include_harm_contribution: bool = True,
    ) -> List[NormalizedHolding]:
        kind = HoldingKind(kind)
        book = self.books.stocks if kind is HoldingKind.STOCK else self.books.bonds
        return build_holdings_table(
            book,
            kind,
            all_stocks=self.books.stocks,
            all_bonds=self.books.bonds,
            allocation_policy=allocation_policy,
            include_harm_contribution=include_harm_contribution,
        )

    def summary(self, kind: HoldingKind) -> HarmSummary:
        return harm_summary(self.harm_scores[HoldingKind(kind)])

    def close(self) -> None:
        self._closed = True
