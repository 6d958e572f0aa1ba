"""Sankey graph models.

The scoring service describes a sector's harm flow as parallel arrays:
`node_list` holds the labels and `source[i] -> target[i]` carries
`value[i]`. Values arrive pre-transformed as `max_value - total_score` so
that low-harm links render thin.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class LevelColors(BaseModel):
    """One colour per depth tier of the Sankey graph."""

    sector: str = "#2563eb"          # depth 0 (root)
    harm_typology: str = "#ea580c"   # depth 1
    sdh_category: str = "#16a34a"    # depth 2
    sdh_indicator: str = "#dc2626"   # depth >= 3 or unreachable


class SankeyGraph(BaseModel):
    node_list: List[str] = Field(default_factory=list)
    source: List[int] = Field(default_factory=list)
    target: List[int] = Field(default_factory=list)
    value: List[float] = Field(default_factory=list)

    # Colours suggested by the API. The preprocessor ignores them and derives
    # colours from node depth instead.
    node_colors: Optional[List[str]] = None
    level_colors: Optional[Dict[str, str]] = None

    @model_validator(mode="after")
    def _check_edges(self) -> "SankeyGraph":
        if not (len(self.source) == len(self.target) == len(self.value)):
            raise ValueError(
                f"source/target/value lengths differ: {len(self.source)}, {len(self.target)}, {len(self.value)}"
            )
        n = len(self.node_list)
        for idx in self.source + self.target:
            if idx < 0 or idx >= n:
                raise ValueError(f"Edge index {idx} out of range for {n} nodes")
        return self

    def is_empty(self) -> bool:
        return not self.node_list or not self.source


class SankeyEdge(BaseModel):
    from_label: str
    to_label: str
    weight: float
    tooltip: str


class SankeyChart(BaseModel):
    """Chart-ready Sankey data.

    `node_colors[i]` is the colour of the node `node_order[i]`; the chart
    renderer assigns colours to nodes in order of first appearance in
    `edges`, not in `node_list` order.
    """

    edges: List[SankeyEdge] = Field(default_factory=list)
    node_order: List[int] = Field(default_factory=list)
    node_colors: List[str] = Field(default_factory=list)
