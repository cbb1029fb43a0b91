"""Graph export: project the persisted index onto a node/edge payload.

Documents become nodes of size 20, sections nodes of size 10. Every node
carries its primary category, that category's score and the full ranked
category list, recomputed from the store's aggregation view. Every
persisted relationship becomes an edge; dangling targets are kept and
left to the client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docgraph.categorize.resolver import resolve_categories
from docgraph.categorize.vocabulary import Vocabulary
from docgraph.exceptions import ExportError, StoreError
from docgraph.types import GraphData, GraphEdge, GraphNode

if TYPE_CHECKING:
    from docgraph.store.base import BaseIndexStore
    from docgraph.types import NodeCategories

__all__ = ["DOCUMENT_NODE_SIZE", "SECTION_NODE_SIZE", "GraphExporter"]

logger = logging.getLogger(__name__)

DOCUMENT_NODE_SIZE = 20
SECTION_NODE_SIZE = 10


def _category_fields(
    resolved: NodeCategories | None,
) -> tuple[str | None, float, tuple[tuple[str, float], ...]]:
    if resolved is None:
        return None, 0.0, ()
    ranked = tuple((c.category, c.score) for c in resolved.categories)
    return resolved.primary, resolved.primary_score, ranked


class GraphExporter:
    """Reads the whole index back from a store and builds ``GraphData``.

    Usage::

        payload = GraphExporter(store).export().to_dict()
    """

    def __init__(self, store: BaseIndexStore) -> None:
        self.store = store

    def catalog_vocabulary(self) -> Vocabulary | None:
        """Rebuild the vocabulary order from the keyword catalog (by id)."""
        rows = self.store.keywords()
        if not rows:
            return None
        return Vocabulary.from_mapping({category: [term] for _, term, category in rows})

    def export(self) -> GraphData:
        """Build the graph payload.

        Raises:
            ExportError: If the store cannot be read.
        """
        try:
            documents = self.store.documents()
            sections = self.store.sections()
            relationships = self.store.relationships()
            vocabulary = self.catalog_vocabulary()
            resolved = (
                resolve_categories(self.store.category_rankings(), vocabulary)
                if vocabulary is not None
                else {}
            )
        except StoreError as e:
            raise ExportError(f"Failed to read index for graph export: {e}") from e

        nodes: list[GraphNode] = []
        for doc in documents:
            category, score, ranked = _category_fields(resolved.get(doc.path))
            nodes.append(
                GraphNode(
                    id=doc.path,
                    name=doc.title or doc.path,
                    val=DOCUMENT_NODE_SIZE,
                    group="document",
                    section_path=doc.section_path,
                    category=category,
                    category_score=score,
                    categories=ranked,
                )
            )
        for section in sections:
            category, score, ranked = _category_fields(resolved.get(section.section_id))
            nodes.append(
                GraphNode(
                    id=section.section_id,
                    name=section.title,
                    val=SECTION_NODE_SIZE,
                    group="section",
                    section_path=section.section_path,
                    doc_path=section.doc_path,
                    level=section.level,
                    category=category,
                    category_score=score,
                    categories=ranked,
                )
            )

        edges = tuple(
            GraphEdge(source=r.source_id, target=r.target_id, type=r.relationship_type.value)
            for r in relationships
        )

        logger.info("Exported graph: %d nodes, %d edges", len(nodes), len(edges))
        return GraphData(nodes=tuple(nodes), edges=edges)
