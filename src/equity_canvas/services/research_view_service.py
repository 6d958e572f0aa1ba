"""Research alert and sector profile tables."""
from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

import pandas as pd

from equity_canvas.data_models.sector_research import ResearchAlert, SectorProfileRow
from equity_canvas.services.formatting_service import safe_format

EVIDENCE_TRUNCATE_AT = 100
PROFILE_TEXT_TRUNCATE_AT = 80
MISSING_TEXT = "-"

RESEARCH_ALERT_COLUMNS = [
    "Sector",
    "SDH_Category",
    "SDH_Indicator",
    "Harm_Description",
    "Original_Claim_Quantification",
]

SECTOR_PROFILE_COLUMNS = [
    "SDH Indicator",
    "SDH Category",
    "Equity Description",
    "Equity Typology",
    "Claim Quantification",
    "Total Magnitude",
    "Reach",
    "Equity Direction",
    "Equity Duration",
    "Total Score",
    "Citation_1",
    "Citation_2",
]


def truncate_text(text: Optional[str], limit: int) -> Tuple[str, bool]:
    """Cut `text` to `limit` characters plus an ellipsis.

    Returns the display text and whether it was shortened (the dashboard
    offers a full-text dialog in that case).
    """
    if not text:
        return "", False
    if len(text) > limit:
        return text[:limit] + "...", True
    return text, False


def _text_or_dash(value: Optional[str]) -> str:
    return value if value else MISSING_TEXT


def _number_or_dash(value: Any) -> str:
    return MISSING_TEXT if value is None else safe_format(value)


def research_alert_frame(alerts: Sequence[ResearchAlert]) -> pd.DataFrame:
    """Table of research alerts.

    The New_Evidence column is only present when at least one alert carries
    new evidence; evidence text is truncated for display.
    """
    has_evidence = any(a.New_Evidence for a in alerts)
    columns: List[str] = RESEARCH_ALERT_COLUMNS + (["New_Evidence"] if has_evidence else [])

    records = []
    for a in alerts:
        row = [
            a.Sector,
            a.SDH_Category or "",
            a.SDH_Indicator or "",
            a.Harm_Description or "",
            a.Original_Claim_Quantification or "",
        ]
        if has_evidence:
            row.append(truncate_text(a.New_Evidence, EVIDENCE_TRUNCATE_AT)[0])
        records.append(row)
    return pd.DataFrame(records, columns=columns)


def sector_profile_frame(rows: Sequence[SectorProfileRow]) -> pd.DataFrame:
    records = []
    for r in rows:
        description, _ = truncate_text(r.equity_description, PROFILE_TEXT_TRUNCATE_AT)
        records.append(
            [
                _text_or_dash(r.sdh_indicator),
                _text_or_dash(r.sdh_category),
                _text_or_dash(description),
                _text_or_dash(r.equity_typology),
                _text_or_dash(r.claim_quantification),
                _number_or_dash(r.total_magnitude),
                _number_or_dash(r.reach),
                _number_or_dash(r.equity_direction),
                _number_or_dash(r.equity_duration),
                _number_or_dash(r.total_score),
                _text_or_dash(r.citation_1),
                _text_or_dash(r.citation_2),
            ]
        )
    return pd.DataFrame(records, columns=SECTOR_PROFILE_COLUMNS)
