"""CLI to build a dashboard snapshot for a portfolio file.

Enriches every holding through the scoring service, prints the holdings
tables and harm metrics, and optionally writes a JSON snapshot (plus the
sector Sankey and research views) and the PDF report.
"""
# Example:
#
# equity-canvas-report --portfolio-file data/portfolio.csv --sector "Health Care" \
#   --output-json out/dashboard.json --output-pdf out/health-care-report.pdf
from __future__ import annotations

from pathlib import Path
from typing import List, Optional
import argparse
import json
import logging

from equity_canvas.config import load_settings
from equity_canvas.data_models.holding import HoldingKind
from equity_canvas.services.disclaimer_service import load_disclaimer_text
from equity_canvas.services.holdings_table_service import AllocationPolicy, holdings_table_frame
from equity_canvas.services.portfolio_loader_service import load_portfolio_requests_from_csv
from equity_canvas.services.portfolio_session_service import PortfolioInputError, PortfolioSession
from equity_canvas.services.research_view_service import research_alert_frame, sector_profile_frame
from equity_canvas.services.sankey_service import build_sankey_chart, sankey_legend
from equity_canvas.services.scoring_api_client import ScoringApiClient, ScoringApiError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build a racial-equity portfolio dashboard snapshot.")
    parser.add_argument("--portfolio-file", dest="portfolio_file", type=str, required=True,
                        help="CSV with kind,identifier,weight rows (kind is 'stock' or 'bond').")
    parser.add_argument("--sector", dest="sector", type=str, default=None,
                        help="Sector for the Sankey diagram, equity profile and PDF report.")
    parser.add_argument("--output-json", dest="output_json", type=str, default=None,
                        help="If provided, write the dashboard snapshot JSON to this path.")
    parser.add_argument("--output-pdf", dest="output_pdf", type=str, default=None,
                        help="If provided (with --sector), write the backend's PDF report to this path.")
    parser.add_argument("--disclaimer", dest="disclaimer", type=str, default=None,
                        help="Path to the legal disclaimer .docx to include as text.")
    parser.add_argument("--env-file", dest="env_file", type=str, default=None,
                        help="Optional .env file with API_BASE_URL and related settings.")
    parser.add_argument(
        "--allocation-policy",
        dest="allocation_policy",
        choices=[p.value for p in AllocationPolicy],
        default=AllocationPolicy.SUPPLIED_WEIGHT.value,
        help="How the Weight (%%) column is derived (default: supplied_weight).",
    )
    parser.add_argument("--no-harm-contribution", dest="harm_contribution", action="store_false",
                        help="Omit the Portfolio Harm Contribution column.")
    return parser


def _enrich(session: PortfolioSession, portfolio_file: str) -> None:
    requests = load_portfolio_requests_from_csv(portfolio_file)
    for req in requests.stocks:
        try:
            session.add_stock(req.ticker, str(req.weight))
        except (ScoringApiError, PortfolioInputError) as exc:
            logger.error("Could not add stock %s: %s", req.ticker, exc)
    for req in requests.bonds:
        try:
            session.add_bond(req.cusip, str(req.weight))
        except (ScoringApiError, PortfolioInputError) as exc:
            logger.error("Could not add bond %s: %s", req.cusip, exc)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = load_settings(args.env_file)
    policy = AllocationPolicy(args.allocation_policy)
    snapshot = {"books": {}, "sector": None, "disclaimer": None}

    with ScoringApiClient(settings) as client:
        session = PortfolioSession(client)
        try:
            _enrich(session, args.portfolio_file)
        except (FileNotFoundError, ValueError) as exc:
            logger.error("Could not load portfolio: %s", exc)
            return 1

        for kind in (HoldingKind.STOCK, HoldingKind.BOND):
            error = None
            try:
                session.refresh_harm_scores(kind)
            except ScoringApiError as exc:
                logger.error("Error calculating %s harm scores: %s", kind.value, exc)
                error = str(exc)

            rows = session.holdings_view(kind, policy, include_harm_contribution=args.harm_contribution)
            summary = session.summary(kind)
            print(f"\n== {kind.value.title()} holdings ==")
            if rows:
                print(holdings_table_frame(rows, kind).to_string(index=False))
            else:
                print("No holdings to display")
            print(f"Average Portfolio Harm Score: {summary.average_score_text}")
            print(f"Total Portfolio Harm Quartile: {summary.quartile} {summary.quartile_range}".rstrip())

            snapshot["books"][kind.value] = {
                "holdings": [r.model_dump(mode="json") for r in rows],
                "harm_summary": summary.model_dump(),
                "harm_scores": session.harm_scores[kind].model_dump() if session.harm_scores[kind] else None,
                "error": error,
            }

        if args.sector:
            try:
                graph = client.get_sankey_data(args.sector, subtract_max=True, max_value=settings.sankey_max_value)
                chart = build_sankey_chart(graph, settings.sankey_max_value)
                profile = client.get_sector_profile(args.sector)
                alerts = client.get_research_alerts()
            except ScoringApiError as exc:
                logger.error("Could not load sector views for %s: %s", args.sector, exc)
                return 1

            print(f"\n== Corporate Racial Equity Canvas for {args.sector} Sector ==")
            print(f"Sankey: {len(chart.edges)} links across {len(chart.node_order)} nodes")
            print(sector_profile_frame(profile).to_string(index=False))
            print("\n== New Racial Justice Research Alert ==")
            print(research_alert_frame(alerts).to_string(index=False))

            snapshot["sector"] = {
                "name": args.sector,
                "sankey": chart.model_dump(),
                "legend": sankey_legend(),
                "profile": [r.model_dump() for r in profile],
                "research_alerts": [a.model_dump() for a in alerts],
            }

            if args.output_pdf:
                scores = session.harm_scores[HoldingKind.STOCK] or session.harm_scores[HoldingKind.BOND]
                if scores is None:
                    logger.warning("No harm scores available; skipping PDF report")
                else:
                    try:
                        pdf = client.generate_pdf_report(args.sector, scores)
                    except ScoringApiError as exc:
                        logger.error("Could not generate PDF report: %s", exc)
                    else:
                        Path(args.output_pdf).write_bytes(pdf)
                        logger.info("Wrote PDF report to %s", args.output_pdf)

        session.close()

    if args.disclaimer:
        snapshot["disclaimer"] = load_disclaimer_text(args.disclaimer).model_dump()

    if args.output_json:
        Path(args.output_json).write_text(json.dumps(snapshot, indent=2, default=str), encoding="utf-8")
        logger.info("Wrote dashboard snapshot to %s", args.output_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
