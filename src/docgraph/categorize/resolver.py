"""Category resolution: ranked categories and primary category per node.

A pure aggregation over the full set of per-node scores of a run. Counts
for the same (node, category) pair are summed; the score kept for the pair
is the highest one seen. Ranking is by summed count, descending, with the
vocabulary's declaration order breaking ties.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docgraph.types import CategoryScore, NodeCategories

if TYPE_CHECKING:
    from collections.abc import Iterable

    from docgraph.categorize.vocabulary import Vocabulary

__all__ = ["resolve_categories"]

logger = logging.getLogger(__name__)


def resolve_categories(
    scores: Iterable[CategoryScore],
    vocabulary: Vocabulary,
) -> dict[str, NodeCategories]:
    """Resolve primary categories for every scored node.

    Args:
        scores: All (node, category, count, score) records of a run, or the
            rows of the store's aggregation view.
        vocabulary: Vocabulary whose declaration order breaks count ties.

    Returns:
        Mapping of node id → NodeCategories, in first-seen node order.
        Nodes whose records all have a zero count are absent.
    """
    totals: dict[str, dict[str, tuple[int, float]]] = {}
    for s in scores:
        if s.count <= 0:
            continue
        per_node = totals.setdefault(s.node_id, {})
        count, best = per_node.get(s.category, (0, 0.0))
        per_node[s.category] = (count + s.count, max(best, s.score))

    resolved: dict[str, NodeCategories] = {}
    for node_id, per_node in totals.items():
        ranked = sorted(
            per_node.items(),
            key=lambda item: (-item[1][0], vocabulary.rank(item[0]), item[0]),
        )
        categories = tuple(
            CategoryScore(node_id=node_id, category=name, count=count, score=score)
            for name, (count, score) in ranked
        )
        resolved[node_id] = NodeCategories(
            node_id=node_id,
            primary=categories[0].category,
            categories=categories,
        )

    logger.debug("Resolved primary categories for %d nodes", len(resolved))
    return resolved
