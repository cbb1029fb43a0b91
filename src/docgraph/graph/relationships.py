"""Relationship synthesis: typed edges between documents and sections.

Four edge families are produced, in this order:

1. ``link``: document → target for each internal markdown hyperlink
2. ``contains``: document ↔ section
3. ``parent-child``: parent section ↔ child section
4. ``category``: capped clusters of documents sharing a primary category,
   plus a bounded number of document ↔ section bridges across documents

Symmetric relationships are stored as two directed rows. Link targets are
not checked against the indexed corpus; dangling edges are kept.
"""

from __future__ import annotations

import logging
import posixpath
import re
from typing import TYPE_CHECKING

from docgraph.types import Relationship, RelationshipType

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from docgraph.types import Document, NodeCategories, Section

__all__ = ["RelationshipSynthesizer", "find_internal_links"]

logger = logging.getLogger(__name__)

DEFAULT_DOC_LIMIT = 10
DEFAULT_SECTION_LIMIT = 5

# Inline markdown link: [text](target)
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

# URL scheme prefix (http:, https:, mailto:, ...)
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def _is_external(target: str) -> bool:
    return bool(_SCHEME_RE.match(target)) or target.startswith("//")


def _resolve_target(doc_path: str, target: str) -> str:
    """Normalize a link target against the linking document's directory."""
    if target.startswith("/"):
        return posixpath.normpath(target.lstrip("/"))
    return posixpath.normpath(posixpath.join(posixpath.dirname(doc_path), target))


def find_internal_links(doc_path: str, content: str, extension: str = ".md") -> list[str]:
    """Return normalized targets of internal links to ``extension`` files, in order."""
    suffix = extension.lower()
    targets: list[str] = []
    for match in _LINK_RE.finditer(content):
        target = match.group(2).strip()
        if not target or _is_external(target):
            continue
        if not target.lower().endswith(suffix):
            continue
        targets.append(_resolve_target(doc_path, target))
    return targets


def _pair(source: str, target: str, kind: RelationshipType) -> tuple[Relationship, Relationship]:
    return Relationship(source, target, kind), Relationship(target, source, kind)


class RelationshipSynthesizer:
    """Derives all relationship families for one indexing run.

    Usage::

        synthesizer = RelationshipSynthesizer(doc_limit=10, section_limit=5)
        edges = synthesizer.synthesize(documents, sections, resolved)
    """

    def __init__(
        self,
        doc_limit: int = DEFAULT_DOC_LIMIT,
        section_limit: int = DEFAULT_SECTION_LIMIT,
        extension: str = ".md",
    ) -> None:
        self.doc_limit = max(doc_limit, 0)
        self.section_limit = max(section_limit, 0)
        self.extension = extension

    def synthesize(
        self,
        documents: Sequence[Document],
        sections: Sequence[Section],
        categories: Mapping[str, NodeCategories],
    ) -> list[Relationship]:
        """Build every edge family.

        Must only be called once ``categories`` holds the resolved primary
        category of every node in the run.
        """
        edges: list[Relationship] = []
        edges.extend(self.link_edges(documents))
        edges.extend(self.containment_edges(sections))
        edges.extend(self.hierarchy_edges(sections))
        edges.extend(self.category_edges(documents, sections, categories))

        logger.info(
            "Synthesized %d relationships for %d documents and %d sections",
            len(edges),
            len(documents),
            len(sections),
        )
        return edges

    def link_edges(self, documents: Sequence[Document]) -> list[Relationship]:
        edges: list[Relationship] = []
        for doc in documents:
            for target in find_internal_links(doc.path, doc.content, self.extension):
                edges.append(Relationship(doc.path, target, RelationshipType.LINK))
        return edges

    def containment_edges(self, sections: Sequence[Section]) -> list[Relationship]:
        edges: list[Relationship] = []
        for section in sections:
            edges.extend(_pair(section.doc_path, section.section_id, RelationshipType.CONTAINS))
        return edges

    def hierarchy_edges(self, sections: Sequence[Section]) -> list[Relationship]:
        edges: list[Relationship] = []
        for section in sections:
            if section.parent_id is not None:
                edges.extend(
                    _pair(section.parent_id, section.section_id, RelationshipType.PARENT_CHILD)
                )
        return edges

    def category_edges(
        self,
        documents: Sequence[Document],
        sections: Sequence[Section],
        categories: Mapping[str, NodeCategories],
    ) -> list[Relationship]:
        """Connect documents (and bridge sections) sharing a primary category.

        Per category at most ``doc_limit`` documents are clustered, giving at
        most ``doc_limit * (doc_limit - 1)`` directed document edges however
        large the group is.
        """
        doc_groups: dict[str, list[str]] = {}
        for doc in documents:
            resolved = categories.get(doc.path)
            if resolved is not None:
                doc_groups.setdefault(resolved.primary, []).append(doc.path)

        section_groups: dict[str, list[Section]] = {}
        for section in sections:
            resolved = categories.get(section.section_id)
            if resolved is not None:
                section_groups.setdefault(resolved.primary, []).append(section)

        edges: list[Relationship] = []
        for category, doc_paths in doc_groups.items():
            capped = doc_paths[: self.doc_limit]
            for i, source in enumerate(capped):
                for target in capped[i + 1 :]:
                    edges.extend(_pair(source, target, RelationshipType.CATEGORY))

            candidates = section_groups.get(category, [])
            for doc_path in capped:
                bridges = [s for s in candidates if s.doc_path != doc_path][: self.section_limit]
                for section in bridges:
                    edges.extend(_pair(doc_path, section.section_id, RelationshipType.CATEGORY))

            logger.debug(
                "Category %s: %d documents (%d clustered)", category, len(doc_paths), len(capped)
            )
        return edges
