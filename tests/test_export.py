"""Tests for docgraph.graph.export: graph payload projection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from docgraph.exceptions import ExportError, StoreError
from docgraph.graph import GraphExporter
from docgraph.graph.export import DOCUMENT_NODE_SIZE, SECTION_NODE_SIZE
from docgraph.types import SourceDocument

if TYPE_CHECKING:
    from pathlib import Path

    from docgraph.pipeline import Indexer
    from docgraph.store import SqliteIndexStore


@pytest.fixture
def exporter(store: SqliteIndexStore) -> GraphExporter:
    return GraphExporter(store)


class TestRoundTrip:
    def test_node_and_link_counts(
        self, indexer: Indexer, docs_dir: Path, exporter: GraphExporter
    ):
        report = indexer.build(docs_dir)
        data = exporter.export()
        assert len(data.nodes) == report.documents + report.sections
        assert len(data.edges) == report.relationships

    def test_documents_before_sections(
        self, indexer: Indexer, docs_dir: Path, exporter: GraphExporter
    ):
        indexer.build(docs_dir)
        groups = [n.group for n in exporter.export().nodes]
        assert groups == ["document"] * 4 + ["section"] * 8

    def test_node_sizes(self, indexer: Indexer, docs_dir: Path, exporter: GraphExporter):
        indexer.build(docs_dir)
        for node in exporter.export().nodes:
            expected = DOCUMENT_NODE_SIZE if node.group == "document" else SECTION_NODE_SIZE
            assert node.val == expected

    def test_empty_index(self, exporter: GraphExporter):
        assert exporter.export().to_dict() == {"nodes": [], "links": []}


class TestNodeFields:
    def test_document_label_and_category(
        self, indexer: Indexer, docs_dir: Path, exporter: GraphExporter
    ):
        indexer.build(docs_dir)
        nodes = {n.id: n for n in exporter.export().nodes}
        payments = nodes["api/payments.md"]
        assert payments.name == "Payments API"
        assert payments.category == "Integration"
        assert 0.0 < payments.category_score <= 1.0
        assert payments.categories[0][0] == "Integration"

    def test_uncategorized_document(
        self, indexer: Indexer, docs_dir: Path, exporter: GraphExporter
    ):
        indexer.build(docs_dir)
        guide = {n.id: n for n in exporter.export().nodes}["guide.md"]
        assert guide.category is None
        assert guide.category_score == 0.0
        assert guide.categories == ()

    def test_untitled_document_labelled_by_path(
        self, indexer: Indexer, exporter: GraphExporter
    ):
        indexer.build_sources([SourceDocument(path="notes.md", content="no heading here")])
        assert exporter.export().nodes[0].name == "notes.md"

    def test_section_fields(self, indexer: Indexer, docs_dir: Path, exporter: GraphExporter):
        indexer.build(docs_dir)
        nodes = {n.id: n for n in exporter.export().nodes}
        auth = nodes["api/payments.md#authentication"]
        assert auth.doc_path == "api/payments.md"
        assert auth.level == 2
        assert auth.section_path == "Payments API > Authentication"

    def test_category_tie_follows_vocabulary_order(
        self, indexer: Indexer, exporter: GraphExporter
    ):
        indexer.build_sources([SourceDocument(path="t.md", content="dashboard api")])
        node = exporter.export().nodes[0]
        assert node.category == "Integration"
        assert [c for c, _ in node.categories] == ["Integration", "UI"]


class TestEdges:
    def test_dangling_links_exported(self, indexer: Indexer, exporter: GraphExporter):
        indexer.build_sources([SourceDocument(path="a.md", content="[gone](missing.md)")])
        links = exporter.export().to_dict()["links"]
        assert {"source": "a.md", "target": "missing.md", "type": "link"} in links

    def test_edge_types_are_wire_values(
        self, indexer: Indexer, docs_dir: Path, exporter: GraphExporter
    ):
        indexer.build(docs_dir)
        types = {e.type for e in exporter.export().edges}
        assert types == {"link", "contains", "parent-child", "category"}


class TestErrors:
    def test_store_failure_raises_export_error(
        self, exporter: GraphExporter, store: SqliteIndexStore, monkeypatch: pytest.MonkeyPatch
    ):
        def _fail() -> None:
            raise StoreError("database is locked")

        monkeypatch.setattr(store, "documents", _fail)
        with pytest.raises(ExportError, match="database is locked"):
            exporter.export()
