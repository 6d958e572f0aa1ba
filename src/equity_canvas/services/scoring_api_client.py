"""HTTP client for the remote scoring service.

Every method maps to one backend endpoint and returns typed models. A non-2xx
response, a transport failure, or a 2xx body that is not JSON or does not
match the expected shape raises `ScoringApiError`; callers decide whether to
surface it (the dashboard shows the message in place of the affected panel).
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar
from urllib.parse import quote
import logging

import httpx
from pydantic import ValidationError

from equity_canvas.config import ApiSettings
from equity_canvas.data_models.harm_scores import PortfolioHarmScores
from equity_canvas.data_models.holding import (
    BondHolding,
    BondInfoRequest,
    StockHolding,
    StockInfoRequest,
)
from equity_canvas.data_models.sankey import SankeyGraph
from equity_canvas.data_models.sector_research import (
    ResearchAlert,
    SectorData,
    SectorInfo,
    SectorProfileRow,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScoringApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def _sector_path(sector: str, suffix: str) -> str:
    return f"/api/sectors/{quote(sector, safe='')}/{suffix}"


def _holding_payload(holding: StockHolding | BondHolding) -> Dict[str, Any]:
    return holding.model_dump(mode="json", exclude={"kind"})


class ScoringApiClient:
    """Thin typed wrapper over the scoring service's JSON API.

    Pass `http_client` to reuse a configured `httpx.Client` (tests pass one
    built on `httpx.MockTransport`); otherwise the client owns its own
    connection pool and should be closed, or used as a context manager.
    """

    def __init__(self, settings: Optional[ApiSettings] = None, http_client: Optional[httpx.Client] = None):
        self.settings = settings or ApiSettings()
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(
            base_url=self.settings.api_base_url.rstrip("/"),
            timeout=self.settings.api_timeout_seconds,
        )

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "ScoringApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        action: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        retries: int = 0,
        include_body: bool = False,
    ) -> httpx.Response:
        attempts = max(0, retries) + 1
        last_error = ScoringApiError(f"Failed to {action}")

        for attempt in range(1, attempts + 1):
            try:
                response = self._http.request(method, path, params=params, json=json)
            except httpx.HTTPError as exc:
                logger.exception("Request to %s failed (attempt %d/%d)", path, attempt, attempts)
                last_error = ScoringApiError(f"Failed to {action}: {exc}")
                continue

            if response.is_success:
                logger.debug("%s %s -> %d", method, path, response.status_code)
                return response

            body = response.text
            message = f"Failed to {action}: {response.reason_phrase}"
            if include_body:
                message = f"{message} - {body}"
            logger.warning(
                "%s %s returned %d (attempt %d/%d): %s",
                method,
                path,
                response.status_code,
                attempt,
                attempts,
                body[:500],
            )
            last_error = ScoringApiError(message, status_code=response.status_code, body=body)

        raise last_error

    def _decode(self, response: httpx.Response, path: str, action: str, parse: Callable[[Any], T]) -> T:
        """Decode a 2xx body with `parse`; a non-JSON or off-contract body raises ScoringApiError."""
        try:
            return parse(response.json())
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning("Unexpected response body from %s: %s", path, exc)
            raise ScoringApiError(
                f"Failed to {action}: invalid response",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    def _get_json(self, path: str, action: str, parse: Callable[[Any], T], **kwargs: Any) -> T:
        response = self._request("GET", path, action, **kwargs)
        return self._decode(response, path, action, parse)

    def _post_json(self, path: str, action: str, parse: Callable[[Any], T], **kwargs: Any) -> T:
        response = self._request("POST", path, action, **kwargs)
        return self._decode(response, path, action, parse)

    # Portfolio enrichment

    def get_stock_info(self, ticker: str, weight: float) -> StockHolding:
        request = StockInfoRequest(ticker=ticker, weight=weight)
        return self._post_json(
            "/api/portfolio/stocks/info", "get stock info", StockHolding.model_validate, json=request.model_dump()
        )

    def get_bond_info(self, cusip: str, weight: float) -> BondHolding:
        request = BondInfoRequest(cusip=cusip, weight=weight)
        return self._post_json(
            "/api/portfolio/bonds/info", "get bond info", BondHolding.model_validate, json=request.model_dump()
        )

    def calculate_stock_harm_scores(self, stocks: Sequence[StockHolding]) -> PortfolioHarmScores:
        scores = self._post_json(
            "/api/portfolio/harm-scores/stocks",
            "calculate stock harm scores",
            PortfolioHarmScores.model_validate,
            json={"stocks": [_holding_payload(s) for s in stocks]},
            retries=self.settings.harm_score_retries,
            include_body=True,
        )
        logger.info("Stock harm scores for %d holdings: %s", len(stocks), scores.quartile)
        return scores

    def calculate_bond_harm_scores(self, bonds: Sequence[BondHolding]) -> PortfolioHarmScores:
        scores = self._post_json(
            "/api/portfolio/harm-scores/bonds",
            "calculate bond harm scores",
            PortfolioHarmScores.model_validate,
            json={"bonds": [_holding_payload(b) for b in bonds]},
            retries=self.settings.harm_score_retries,
            include_body=True,
        )
        logger.info("Bond harm scores for %d holdings: %s", len(bonds), scores.quartile)
        return scores

    # Sector research

    def get_sectors(self) -> List[str]:
        sectors = self._get_json("/api/sectors/list", "get sectors", lambda data: [str(s) for s in data])
        logger.info("Loaded %d sectors", len(sectors))
        return sectors

    def get_sector_data(self, sector: str) -> List[SectorData]:
        return self._get_json(
            _sector_path(sector, "data"),
            "get sector data",
            lambda data: [SectorData.model_validate(row) for row in data],
        )

    def get_sector_profile(self, sector: str) -> List[SectorProfileRow]:
        rows = self._get_json(
            _sector_path(sector, "profile"),
            "get sector profile",
            lambda data: [SectorProfileRow.from_record(row) for row in data],
        )
        logger.info("Loaded %d sector profile rows for %s", len(rows), sector)
        return rows

    def get_sankey_data(self, sector: str, subtract_max: bool = True, max_value: float = 15) -> SankeyGraph:
        params = {
            "subtract_max": "true" if subtract_max else "false",
            "max_value": f"{max_value:g}",
        }
        return self._get_json(
            _sector_path(sector, "sankey"), "get sankey data", SankeyGraph.model_validate, params=params
        )

    def get_sector_info(self, sector: str) -> SectorInfo:
        return self._get_json(_sector_path(sector, "info"), "get sector info", SectorInfo.model_validate)

    def get_research_alerts(self) -> List[ResearchAlert]:
        return self._get_json(
            "/api/research-alerts",
            "get research alerts",
            lambda data: [ResearchAlert.model_validate(row) for row in data],
        )

    # Reports and reference holdings

    def generate_pdf_report(self, sector: str, portfolio_harm_scores: PortfolioHarmScores) -> bytes:
        response = self._request(
            "POST",
            "/api/reports/pdf",
            "generate PDF report",
            json={"sector": sector, "portfolio_harm_scores": portfolio_harm_scores.model_dump()},
        )
        return response.content

    def get_kataly_holdings(self) -> List[Dict[str, Any]]:
        return self._get_json(
            "/api/holdings/kataly",
            "get Kataly holdings",
            lambda data: [dict(row) for row in data],
        )
