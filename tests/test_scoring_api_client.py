import json

import httpx
import pytest

from equity_canvas.config import ApiSettings
from equity_canvas.data_models.harm_scores import PortfolioHarmScores
from equity_canvas.data_models.holding import StockHolding
from equity_canvas.services.scoring_api_client import ScoringApiClient, ScoringApiError


def _client(handler, **settings_kwargs) -> ScoringApiClient:
    settings = ApiSettings(api_base_url="http://scoring.test", **settings_kwargs)
    http = httpx.Client(base_url=settings.api_base_url, transport=httpx.MockTransport(handler))
    return ScoringApiClient(settings, http_client=http)


def test_get_stock_info_posts_request_and_tags_result():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "stock": "AAPL",
                "weight": 12.5,
                "sector": "Information Technology",
                "sector_total_score": 400,
                "sector_mean_score": 55.0,
                "security_total_score": 390,
                "security_mean_score": 61.0,
            },
        )

    stock = _client(handler).get_stock_info("AAPL", 12.5)

    assert seen == {"method": "POST", "path": "/api/portfolio/stocks/info", "body": {"ticker": "AAPL", "weight": 12.5}}
    assert stock.kind == "stock"
    assert stock.security_mean_score == pytest.approx(61.0)
    assert stock.current_value is None


def test_get_bond_info():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/portfolio/bonds/info"
        return httpx.Response(200, json={"cusip": "910047AG4", "weight": 5, "industry_group": "Airlines"})

    bond = _client(handler).get_bond_info("910047AG4", 5)
    assert bond.kind == "bond"
    assert bond.industry_group == "Airlines"


def test_harm_scores_payload_drops_kind_tag():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"average_score": 45.2, "total_score": 60.1, "quartile": "Quartile 2"})

    scores = _client(handler).calculate_stock_harm_scores([StockHolding(stock="AAPL", weight=10.0)])

    assert scores == PortfolioHarmScores(average_score=45.2, total_score=60.1, quartile="Quartile 2")
    sent = seen["body"]["stocks"][0]
    assert sent["stock"] == "AAPL"
    assert "kind" not in sent


def test_harm_scores_retry_then_raise_with_body():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(500, text="boom")

    client = _client(handler, harm_score_retries=1)
    with pytest.raises(ScoringApiError) as excinfo:
        client.calculate_bond_harm_scores([])

    assert len(calls) == 2
    assert excinfo.value.status_code == 500
    assert str(excinfo.value) == "Failed to calculate bond harm scores: Internal Server Error - boom"


def test_harm_scores_retry_recovers():
    responses = iter([httpx.Response(503), httpx.Response(200, json={"average_score": 1, "total_score": 2, "quartile": "Quartile 1"})])

    def handler(request: httpx.Request) -> httpx.Response:
        return next(responses)

    scores = _client(handler, harm_score_retries=1).calculate_stock_harm_scores([])
    assert scores.quartile == "Quartile 1"


def test_plain_errors_are_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(404, text="missing")

    with pytest.raises(ScoringApiError) as excinfo:
        _client(handler).get_sectors()
    assert len(calls) == 1
    assert str(excinfo.value) == "Failed to get sectors: Not Found"


def test_transport_errors_are_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ScoringApiError) as excinfo:
        _client(handler).get_research_alerts()
    assert excinfo.value.status_code is None
    assert "Failed to get research alerts" in str(excinfo.value)


def test_sankey_request_encodes_sector_and_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["raw_path"] = request.url.raw_path.decode()
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={"node_list": ["Health Care", "Access"], "source": [0], "target": [1], "value": [9.5]},
        )

    graph = _client(handler).get_sankey_data("Health Care/Pharma", subtract_max=True, max_value=15)

    assert seen["raw_path"].startswith("/api/sectors/Health%20Care%2FPharma/sankey")
    assert seen["params"] == {"subtract_max": "true", "max_value": "15"}
    assert graph.node_list == ["Health Care", "Access"]


def test_sector_profile_accepts_both_key_styles():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {"SDH Indicator": "Uninsured rate", "Equity Description": "Coverage gaps", "Total Score": 8.5},
                {"sdh_indicator": "Wage gap", "harm_description": "Pay disparity"},
            ],
        )

    rows = _client(handler).get_sector_profile("Financials")
    assert rows[0].sdh_indicator == "Uninsured rate"
    assert rows[0].total_score == pytest.approx(8.5)
    assert rows[1].sdh_indicator == "Wage gap"
    assert rows[1].equity_description == "Pay disparity"


def test_sectors_info_alerts_and_holdings():
    routes = {
        "/api/sectors/list": ["Energy", "Financials"],
        "/api/sectors/Energy/info": {"sector": "Energy", "total_score": 320.0, "mean_score": 42.0},
        "/api/sectors/Energy/data": [{"sector": "Energy", "sdh_category": "Environment", "total_score": 9}],
        "/api/research-alerts": [{"Sector": "Energy", "SDH_Category": "Environment", "New_Evidence": "study"}],
        "/api/holdings/kataly": [{"ticker": "AXP"}],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=routes[request.url.path])

    client = _client(handler)
    assert client.get_sectors() == ["Energy", "Financials"]
    assert client.get_sector_info("Energy").mean_score == pytest.approx(42.0)
    assert client.get_sector_data("Energy")[0].sdh_category == "Environment"
    assert client.get_research_alerts()[0].New_Evidence == "study"
    assert client.get_kataly_holdings() == [{"ticker": "AXP"}]


def test_generate_pdf_report_returns_bytes():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=b"%PDF-1.4 fake", headers={"Content-Type": "application/pdf"})

    scores = PortfolioHarmScores(average_score=50.0, total_score=55.0, quartile="Quartile 2")
    pdf = _client(handler).generate_pdf_report("Energy", scores)

    assert pdf.startswith(b"%PDF")
    assert seen["body"] == {
        "sector": "Energy",
        "portfolio_harm_scores": {"average_score": 50.0, "total_score": 55.0, "quartile": "Quartile 2"},
    }


def test_non_json_success_body_raises_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(ScoringApiError) as excinfo:
        _client(handler).get_sankey_data("Energy")
    assert str(excinfo.value) == "Failed to get sankey data: invalid response"
    assert excinfo.value.status_code == 200
    assert excinfo.value.body == "<html>gateway</html>"


def test_off_contract_sankey_payload_raises_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"node_list": ["A"], "source": [0], "target": [3], "value": [1.0]})

    with pytest.raises(ScoringApiError) as excinfo:
        _client(handler).get_sankey_data("Energy")
    assert str(excinfo.value) == "Failed to get sankey data: invalid response"


def test_wrong_shape_list_payload_raises_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"detail": "not a list"})

    with pytest.raises(ScoringApiError):
        _client(handler).get_research_alerts()
    with pytest.raises(ScoringApiError):
        _client(handler).get_stock_info("AAPL", 10)
