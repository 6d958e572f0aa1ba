"""Portfolio input file loading.

Reads a CSV of `kind,identifier,weight` rows into enrichment requests. The
loader is tolerant to Markdown code fences around the CSV and to Swiss
thousands separators in the weight column.
"""
from __future__ import annotations

from io import StringIO
from pathlib import Path
from typing import List
import csv
import logging

from equity_canvas.data_models.holding import (
    BondInfoRequest,
    HoldingKind,
    PortfolioRequests,
    StockInfoRequest,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"kind", "identifier", "weight"}


def safe_float(val: str | None) -> float | None:
    if val is None:
        return None
    s = str(val).strip()
    if s == "" or s.lower() in {"unknown", "na", "n/a", "-"}:
        return None
    s = s.replace("'", "").rstrip("%")
    try:
        return float(s)
    except ValueError:
        return None


def load_portfolio_requests_from_csv(csv_path: Path | str) -> PortfolioRequests:
    """Load a portfolio CSV into stock and bond enrichment requests.

    Rows with an unknown kind, a blank identifier, or an unparseable or
    out-of-range weight are skipped with a warning.
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Portfolio CSV file not found: {path}")

    text = path.read_text(encoding="utf-8")
    cleaned_lines = [ln for ln in text.splitlines() if not ln.strip().startswith("```")]
    reader = csv.DictReader(StringIO("\n".join(cleaned_lines)))

    header = {(c or "").strip().lower() for c in (reader.fieldnames or [])}
    missing = REQUIRED_COLUMNS - header
    if missing:
        raise ValueError(f"Missing required columns in portfolio CSV {path}: {sorted(missing)}")

    stocks: List[StockInfoRequest] = []
    bonds: List[BondInfoRequest] = []

    for line_no, raw in enumerate(reader, start=2):
        r = {(k or "").strip().lower(): (v or "").strip() for k, v in raw.items() if k is not None}
        identifier = r.get("identifier", "").upper()
        kind = r.get("kind", "").lower()
        weight = safe_float(r.get("weight"))

        if not identifier:
            logger.warning("Skipping row %d in %s: blank identifier", line_no, path)
            continue
        if weight is None or weight <= 0 or weight > 100:
            logger.warning("Skipping %s (row %d): unparseable or out-of-range weight %r", identifier, line_no, r.get("weight"))
            continue

        if kind == HoldingKind.STOCK.value:
            stocks.append(StockInfoRequest(ticker=identifier, weight=weight))
        elif kind == HoldingKind.BOND.value:
            bonds.append(BondInfoRequest(cusip=identifier, weight=weight))
        else:
            logger.warning("Skipping %s (row %d): unknown kind %r", identifier, line_no, kind)

    if not stocks and not bonds:
        raise ValueError(f"No usable rows found in {path}")

    total_weight = sum(s.weight for s in stocks) + sum(b.weight for b in bonds)
    if not (95.0 <= total_weight <= 105.0):
        logger.warning(
            "Total portfolio weight is %.2f, which is outside [95, 105]. Weights are used as entered.",
            total_weight,
        )

    logger.info("Loaded %d stocks and %d bonds from %s (total weight %.2f%%)", len(stocks), len(bonds), path, total_weight)
    return PortfolioRequests(stocks=stocks, bonds=bonds)
