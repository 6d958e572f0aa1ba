from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel


# Upper bound (inclusive) of each quartile band. Higher scores mean LESS harm,
# so Quartile 1 is the most harmful band.
QUARTILE_UPPER_BOUNDS = (
    ("Quartile 1", 38.80),
    ("Quartile 2", 50.00),
    ("Quartile 3", 82.40),
)
QUARTILE_TOP = "Quartile 4"
QUARTILE_UNKNOWN = "N/A"

QUARTILE_RANGES: Dict[str, str] = {
    "Quartile 1": "(1.00-38.80)",
    "Quartile 2": "(38.81-50.00)",
    "Quartile 3": "(50.01-82.40)",
    "Quartile 4": "(82.41-100.00)",
}


class PortfolioHarmScores(BaseModel):
    """Aggregate harm scores for one book, as computed by the scoring service."""

    average_score: Optional[float] = None
    total_score: Optional[float] = None
    quartile: Optional[str] = None


class HarmSummary(BaseModel):
    """Display values for the two harm metric cards."""

    average_score_text: str
    quartile: str
    quartile_range: str = ""


def classify_quartile(score: Optional[float]) -> str:
    """Assign the quartile band for an average portfolio score.

    Mirrors the backend's banding: `<= 38.80` is Quartile 1, `<= 50.00`
    Quartile 2, `<= 82.40` Quartile 3, anything above is Quartile 4.
    A missing score has no band.
    """
    if score is None:
        return QUARTILE_UNKNOWN
    for label, upper in QUARTILE_UPPER_BOUNDS:
        if score <= upper:
            return label
    return QUARTILE_TOP


def quartile_range_label(quartile: Optional[str]) -> str:
    return QUARTILE_RANGES.get(quartile or "", "")
