"""Sankey graph preprocessing.

Turns the scoring service's parallel-array graph into chart rows and a
colour per node. Colours are derived from node depth (root sectors, harm
typologies, SDH categories, SDH indicators) and emitted in the order in
which nodes first appear in the edge list, which is how the chart renderer
indexes node colours.
"""
from __future__ import annotations

from collections import deque
from typing import List, Optional, Tuple
import logging

from equity_canvas.data_models.sankey import LevelColors, SankeyChart, SankeyEdge, SankeyGraph

logger = logging.getLogger(__name__)

DEFAULT_MAX_VALUE = 15.0
UNASSIGNED_DEPTH = -1

LEGEND_LABELS = (
    ("Economic Sector (GICS)", "sector"),
    ("Harm Typology", "harm_typology"),
    ("SDH Category", "sdh_category"),
    ("SDH Indicator", "sdh_indicator"),
)


def preprocess_sankey(
    graph: Optional[SankeyGraph],
    max_value: float = DEFAULT_MAX_VALUE,
) -> Tuple[List[SankeyEdge], List[int]]:
    """Build chart edges and the first-appearance node order.

    Edge values arrive as `max_value - total_score`; the tooltip reverses
    that transform to show the original total score. A missing or empty
    graph yields two empty lists.
    """
    if graph is None or graph.is_empty():
        return [], []

    edges: List[SankeyEdge] = []
    seen = set()
    node_order: List[int] = []

    for src, tgt, weight in zip(graph.source, graph.target, graph.value):
        for idx in (src, tgt):
            if idx not in seen:
                seen.add(idx)
                node_order.append(idx)

        from_label = graph.node_list[src]
        to_label = graph.node_list[tgt]
        original_score = max_value - weight
        edges.append(
            SankeyEdge(
                from_label=from_label,
                to_label=to_label,
                weight=float(weight),
                tooltip=f"{from_label} → {to_label}\nTotal Score: {original_score:.2f}",
            )
        )

    return edges, node_order


def compute_node_depths(graph: SankeyGraph) -> List[int]:
    """Breadth-first depth of every node, seeded from the root nodes.

    Roots are nodes never targeted by an edge (depth 0). A node takes the
    depth of the first predecessor that reaches it, plus one. Nodes not
    reachable from any root (e.g. on a cycle) keep `UNASSIGNED_DEPTH`.
    """
    node_count = len(graph.node_list)
    depths = [UNASSIGNED_DEPTH] * node_count

    adjacency: List[List[int]] = [[] for _ in range(node_count)]
    for src, tgt in zip(graph.source, graph.target):
        adjacency[src].append(tgt)

    targets = set(graph.target)
    queue = deque()
    for i in range(node_count):
        if i not in targets:
            depths[i] = 0
            queue.append(i)

    while queue:
        current = queue.popleft()
        for neighbor in adjacency[current]:
            if depths[neighbor] == UNASSIGNED_DEPTH:
                depths[neighbor] = depths[current] + 1
                queue.append(neighbor)

    unreachable = sum(1 for d in depths if d == UNASSIGNED_DEPTH)
    if unreachable:
        logger.warning("%d Sankey node(s) unreachable from any root; colouring as deepest tier", unreachable)
    return depths


def depth_to_color(depth: int, level_colors: Optional[LevelColors] = None) -> str:
    colors = level_colors or LevelColors()
    if depth == 0:
        return colors.sector
    if depth == 1:
        return colors.harm_typology
    if depth == 2:
        return colors.sdh_category
    return colors.sdh_indicator


def compute_node_colors(
    graph: Optional[SankeyGraph],
    node_order: List[int],
    level_colors: Optional[LevelColors] = None,
) -> List[str]:
    """Colour sequence aligned with `node_order`.

    Without node or edge data there is nothing to colour; the four tier
    colours are returned so the renderer still has a palette.
    """
    colors = level_colors or LevelColors()
    if graph is None or graph.is_empty():
        return [colors.sector, colors.harm_typology, colors.sdh_category, colors.sdh_indicator]

    depths = compute_node_depths(graph)
    return [depth_to_color(depths[idx], colors) for idx in node_order]


def build_sankey_chart(
    graph: Optional[SankeyGraph],
    max_value: float = DEFAULT_MAX_VALUE,
    level_colors: Optional[LevelColors] = None,
) -> SankeyChart:
    edges, node_order = preprocess_sankey(graph, max_value)
    if not edges:
        return SankeyChart()
    node_colors = compute_node_colors(graph, node_order, level_colors)
    logger.info("Prepared Sankey chart with %d edges and %d nodes", len(edges), len(node_order))
    return SankeyChart(edges=edges, node_order=node_order, node_colors=node_colors)


def sankey_legend(level_colors: Optional[LevelColors] = None) -> List[Tuple[str, str]]:
    colors = level_colors or LevelColors()
    return [(label, getattr(colors, field)) for label, field in LEGEND_LABELS]
