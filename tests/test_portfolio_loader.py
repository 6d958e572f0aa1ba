import logging

import pytest

from equity_canvas.services.portfolio_loader_service import (
    load_portfolio_requests_from_csv,
    safe_float,
)


def test_safe_float():
    assert safe_float("1'250.5") == pytest.approx(1250.5)
    assert safe_float("12.5%") == pytest.approx(12.5)
    assert safe_float("n/a") is None
    assert safe_float("") is None
    assert safe_float(None) is None
    assert safe_float("abc") is None


def test_loads_stocks_and_bonds(tmp_path):
    csv_path = tmp_path / "portfolio.csv"
    csv_path.write_text(
        "```csv\n"
        "Kind,Identifier,Weight\n"
        "stock,aapl,60\n"
        "bond,910047ag4,40\n"
        "```\n",
        encoding="utf-8",
    )

    requests = load_portfolio_requests_from_csv(csv_path)

    assert [s.ticker for s in requests.stocks] == ["AAPL"]
    assert requests.stocks[0].weight == pytest.approx(60.0)
    assert [b.cusip for b in requests.bonds] == ["910047AG4"]


def test_bad_rows_are_skipped(tmp_path, caplog):
    csv_path = tmp_path / "portfolio.csv"
    csv_path.write_text(
        "kind,identifier,weight\n"
        "stock,AAPL,50\n"
        "stock,,10\n"
        "stock,MSFT,abc\n"
        "stock,GOOG,150\n"
        "option,SPY,10\n"
        "bond,910047AG4,50\n",
        encoding="utf-8",
    )

    with caplog.at_level(logging.WARNING):
        requests = load_portfolio_requests_from_csv(csv_path)

    assert [s.ticker for s in requests.stocks] == ["AAPL"]
    assert [b.cusip for b in requests.bonds] == ["910047AG4"]
    assert "unknown kind" in caplog.text


def test_weight_total_warning(tmp_path, caplog):
    csv_path = tmp_path / "portfolio.csv"
    csv_path.write_text("kind,identifier,weight\nstock,AAPL,20\n", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        load_portfolio_requests_from_csv(csv_path)

    assert "outside [95, 105]" in caplog.text


def test_missing_file_and_columns(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_portfolio_requests_from_csv(tmp_path / "missing.csv")

    csv_path = tmp_path / "portfolio.csv"
    csv_path.write_text("ticker,weight\nAAPL,10\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_portfolio_requests_from_csv(csv_path)


def test_no_usable_rows(tmp_path):
    csv_path = tmp_path / "portfolio.csv"
    csv_path.write_text("kind,identifier,weight\nstock,AAPL,0\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_portfolio_requests_from_csv(csv_path)
