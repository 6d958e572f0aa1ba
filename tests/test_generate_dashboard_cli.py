import json

from equity_canvas.cli import generate_dashboard
from equity_canvas.data_models.harm_scores import PortfolioHarmScores
from equity_canvas.data_models.holding import BondHolding, StockHolding
from equity_canvas.data_models.sankey import SankeyGraph
from equity_canvas.data_models.sector_research import ResearchAlert, SectorProfileRow
from equity_canvas.services.scoring_api_client import ScoringApiError


class _StubClient:
    def __init__(self, settings=None, http_client=None):
        self.settings = settings

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None

    def get_stock_info(self, ticker, weight):
        return StockHolding(stock=ticker, weight=weight, sector="Energy", security_mean_score=40.0)

    def get_bond_info(self, cusip, weight):
        return BondHolding(cusip=cusip, weight=weight, industry_group="Airlines", security_mean_score=60.0)

    def calculate_stock_harm_scores(self, stocks):
        return PortfolioHarmScores(average_score=40.0, total_score=45.0, quartile="Quartile 2")

    def calculate_bond_harm_scores(self, bonds):
        return PortfolioHarmScores(average_score=60.0, total_score=65.0, quartile="Quartile 3")

    def get_sankey_data(self, sector, subtract_max=True, max_value=15):
        return SankeyGraph(node_list=[sector, "Access"], source=[0], target=[1], value=[5.0])

    def get_sector_profile(self, sector):
        return [SectorProfileRow(sdh_indicator="Uninsured rate", total_score=8.0)]

    def get_research_alerts(self):
        return [ResearchAlert(Sector="Energy")]

    def generate_pdf_report(self, sector, scores):
        return b"%PDF-1.4"


def test_cli_writes_snapshot_and_pdf(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(generate_dashboard, "ScoringApiClient", _StubClient)
    portfolio = tmp_path / "portfolio.csv"
    portfolio.write_text("kind,identifier,weight\nstock,XOM,60\nbond,910047AG4,40\n", encoding="utf-8")
    out_json = tmp_path / "dashboard.json"
    out_pdf = tmp_path / "report.pdf"

    code = generate_dashboard.main(
        [
            "--portfolio-file", str(portfolio),
            "--sector", "Energy",
            "--output-json", str(out_json),
            "--output-pdf", str(out_pdf),
            "--env-file", str(tmp_path / "missing.env"),
        ]
    )

    assert code == 0
    snapshot = json.loads(out_json.read_text(encoding="utf-8"))
    assert snapshot["books"]["stock"]["harm_summary"]["quartile"] == "Quartile 2"
    assert snapshot["books"]["bond"]["holdings"][0]["identifier"] == "910047AG4"
    assert snapshot["sector"]["sankey"]["node_order"] == [0, 1]
    assert snapshot["disclaimer"] is None
    assert out_pdf.read_bytes() == b"%PDF-1.4"
    assert "Average Portfolio Harm Score: 40.00" in capsys.readouterr().out


def test_cli_missing_portfolio_returns_error(tmp_path, monkeypatch):
    monkeypatch.setattr(generate_dashboard, "ScoringApiClient", _StubClient)
    code = generate_dashboard.main(
        ["--portfolio-file", str(tmp_path / "nope.csv"), "--env-file", str(tmp_path / "missing.env")]
    )
    assert code == 1


class _BrokenSectorClient(_StubClient):
    def get_sankey_data(self, sector, subtract_max=True, max_value=15):
        raise ScoringApiError("Failed to get sankey data: invalid response", status_code=200)


def test_cli_reports_bad_sector_payload_without_traceback(tmp_path, monkeypatch):
    monkeypatch.setattr(generate_dashboard, "ScoringApiClient", _BrokenSectorClient)
    portfolio = tmp_path / "portfolio.csv"
    portfolio.write_text("kind,identifier,weight\nstock,XOM,100\n", encoding="utf-8")

    code = generate_dashboard.main(
        [
            "--portfolio-file", str(portfolio),
            "--sector", "Energy",
            "--env-file", str(tmp_path / "missing.env"),
        ]
    )

    assert code == 1
