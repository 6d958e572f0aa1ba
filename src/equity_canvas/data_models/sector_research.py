"""Sector research models.

`SectorProfileRow` uses the display column names returned by the
`/sectors/{sector}/profile` endpoint ("SDH Indicator", "Total Score", ...);
`SectorData` uses the snake_case names of the raw `/data` endpoint.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SectorInfo(BaseModel):
    sector: str
    total_score: Optional[float] = None
    mean_score: Optional[float] = None


class SectorData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sector: str
    sdh_category: Optional[str] = None
    sdh_indicator: Optional[str] = None
    harm_description: Optional[str] = None
    harm_typology: Optional[str] = None
    claim_quantification: Optional[str] = None
    total_magnitude: Optional[float] = None
    reach: Optional[float] = None
    harm_direction: Optional[float] = None
    harm_duration: Optional[float] = None
    direct_indirect_1: Optional[str] = None
    direct_indirect: Optional[str] = None
    core_peripheral: Optional[str] = None
    total_score: Optional[float] = None
    citation_1: Optional[str] = None
    citation_2: Optional[str] = None


class SectorProfileRow(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    sdh_indicator: Optional[str] = Field(default=None, alias="SDH Indicator")
    sdh_category: Optional[str] = Field(default=None, alias="SDH Category")
    equity_description: Optional[str] = Field(default=None, alias="Equity Description")
    equity_typology: Optional[str] = Field(default=None, alias="Equity Typology")
    claim_quantification: Optional[str] = Field(default=None, alias="Claim Quantification")
    total_magnitude: Optional[float] = Field(default=None, alias="Total Magnitude")
    reach: Optional[float] = Field(default=None, alias="Reach")
    equity_direction: Optional[float] = Field(default=None, alias="Equity Direction")
    equity_duration: Optional[float] = Field(default=None, alias="Equity Duration")
    total_score: Optional[float] = Field(default=None, alias="Total Score")
    direct_indirect: Optional[str] = Field(default=None, alias="Direct_Indirect")
    direct_indirect_1: Optional[str] = Field(default=None, alias="Direct_Indirect_1")
    core_peripheral: Optional[str] = Field(default=None, alias="Core_Peripheral")
    citation_1: Optional[str] = Field(default=None, alias="Citation_1")
    citation_2: Optional[str] = Field(default=None, alias="Citation_2")

    @classmethod
    def from_record(cls, record: dict) -> "SectorProfileRow":
        """Build a row from either the formatted `/profile` or the raw `/data` shape."""
        data = dict(record)
        fallbacks = {
            "Equity Description": "harm_description",
            "Equity Typology": "harm_typology",
            "Equity Direction": "harm_direction",
            "Equity Duration": "harm_duration",
        }
        for display_key, raw_key in fallbacks.items():
            if not data.get(display_key) and data.get(raw_key) is not None:
                data[display_key] = data[raw_key]
        return cls.model_validate(data)


class ResearchAlert(BaseModel):
    """A newly published piece of evidence against a sector's harm claim."""

    model_config = ConfigDict(extra="ignore")

    Sector: str
    SDH_Category: Optional[str] = None
    SDH_Indicator: Optional[str] = None
    Harm_Description: Optional[str] = None
    Original_Claim_Quantification: Optional[str] = None
    New_Evidence: Optional[str] = None
