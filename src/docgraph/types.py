"""Indexing data contracts for docgraph.

Frozen dataclasses that flow between indexing stages:
  Path → SourceDocument → (Document, list[Section]) → list[CategoryScore]
  → dict[str, NodeCategories] → list[Relationship] → stored → GraphData
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "BuildReport",
    "CategoryMatch",
    "CategoryScore",
    "Document",
    "GraphData",
    "GraphEdge",
    "GraphNode",
    "NodeCategories",
    "Relationship",
    "RelationshipType",
    "SearchHit",
    "Section",
    "SourceDocument",
]


class RelationshipType(str, Enum):
    """Kinds of edges between graph nodes."""

    LINK = "link"
    CONTAINS = "contains"
    PARENT_CHILD = "parent-child"
    CATEGORY = "category"


@dataclass(frozen=True)
class SourceDocument:
    """One markdown file as read from disk, before sectioning."""

    path: str
    content: str
    title: str = ""
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Document:
    """A top-level indexed document, keyed by its relative path."""

    path: str
    title: str
    content: str
    tags: str = ""
    section_path: str = ""


@dataclass(frozen=True)
class Section:
    """A header-delimited sub-unit of a document."""

    section_id: str
    doc_path: str
    title: str
    content: str
    level: int
    parent_id: str | None = None
    section_path: str = ""


@dataclass(frozen=True)
class Relationship:
    """A directed, typed edge between two node ids."""

    source_id: str
    target_id: str
    relationship_type: RelationshipType


@dataclass(frozen=True)
class CategoryMatch:
    """Raw match count and normalized score of one category in one text."""

    count: int
    score: float


@dataclass(frozen=True)
class CategoryScore:
    """Association of a node with a category (NodeCategoryScore)."""

    node_id: str
    category: str
    count: int
    score: float


@dataclass(frozen=True)
class NodeCategories:
    """Ranked categories of a node; ``primary`` is the top entry."""

    node_id: str
    primary: str
    categories: tuple[CategoryScore, ...] = ()

    @property
    def primary_score(self) -> float:
        return self.categories[0].score if self.categories else 0.0


@dataclass(frozen=True)
class GraphNode:
    """A node of the exported graph payload."""

    id: str
    name: str
    val: int
    group: str
    section_path: str = ""
    doc_path: str = ""
    level: int = 0
    category: str | None = None
    category_score: float = 0.0
    categories: tuple[tuple[str, float], ...] = ()

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "val": self.val,
            "group": self.group,
            "section_path": self.section_path,
            "categories": [{"category": c, "score": s} for c, s in self.categories],
            "primaryCategory": self.category,
            "categoryScore": self.category_score,
        }
        if self.group == "document":
            data["path"] = self.id
        else:
            data["doc_path"] = self.doc_path
            data["level"] = self.level
        return data


@dataclass(frozen=True)
class GraphEdge:
    """An edge of the exported graph payload."""

    source: str
    target: str
    type: str

    def to_dict(self) -> dict[str, object]:
        return {"source": self.source, "target": self.target, "type": self.type}


@dataclass(frozen=True)
class GraphData:
    """Whole-graph payload consumed by the visualization client."""

    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()

    def to_dict(self) -> dict[str, list[dict[str, object]]]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [e.to_dict() for e in self.edges],
        }


@dataclass(frozen=True)
class SearchHit:
    """A full-text search result for a document or a section."""

    kind: str
    node_id: str
    doc_path: str
    title: str
    section_path: str = ""
    snippet: str = ""


@dataclass(frozen=True)
class BuildReport:
    """Summary of one full indexing run."""

    documents: int = 0
    sections: int = 0
    relationships: int = 0
    scores: int = 0
    skipped: tuple[tuple[str, str], ...] = field(default_factory=tuple)
