"""Indexing orchestrator for docgraph.

Composes parser → section parser → categorizer → resolver → synthesizer →
store via constructor injection. One call to :meth:`Indexer.build` is one
full rebuild of the index.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docgraph.categorize.resolver import resolve_categories
from docgraph.exceptions import ParseError, PipelineError, SectionError
from docgraph.ingest import discover_documents
from docgraph.section.markdown import PATH_SEPARATOR
from docgraph.types import BuildReport, Document

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from docgraph.categorize.scorer import KeywordCategorizer
    from docgraph.config import DocgraphConfig
    from docgraph.graph.relationships import RelationshipSynthesizer
    from docgraph.ingest.base import BaseParser
    from docgraph.section.base import BaseSectionParser
    from docgraph.store.base import BaseIndexStore
    from docgraph.types import CategoryScore, Relationship, Section, SourceDocument

__all__ = ["Indexer"]

logger = logging.getLogger(__name__)


def section_text(section: Section) -> str:
    """Text a section is scored on: its title followed by its body."""
    return f"{section.title}\n{section.content}"


class Indexer:
    """Orchestrates a full rebuild of the document index.

    All dependencies are injected via the constructor, making the indexer
    fully testable with mock implementations.

    Usage::

        indexer = Indexer(
            parser=MarkdownParser(),
            section_parser=MarkdownSectionParser(),
            categorizer=KeywordCategorizer(vocabulary),
            synthesizer=RelationshipSynthesizer(),
            store=sqlite_store,
            config=config,
        )
        report = indexer.build(project_root / "docs")
    """

    def __init__(
        self,
        parser: BaseParser,
        section_parser: BaseSectionParser,
        categorizer: KeywordCategorizer,
        synthesizer: RelationshipSynthesizer,
        store: BaseIndexStore,
        config: DocgraphConfig,
    ) -> None:
        self.parser = parser
        self.section_parser = section_parser
        self.categorizer = categorizer
        self.synthesizer = synthesizer
        self.store = store
        self.config = config

    def build(self, docs_dir: Path) -> BuildReport:
        """Read every document under ``docs_dir`` and rebuild the index.

        Unreadable files are logged, reported in ``BuildReport.skipped``
        and left out of the run.

        Raises:
            PipelineError: If the index cannot be written.
        """
        sources: list[SourceDocument] = []
        skipped: list[tuple[str, str]] = []
        for path in discover_documents(docs_dir, self.config.source.extension):
            try:
                sources.append(self.parser.parse(path, docs_dir))
            except ParseError as e:
                logger.warning("Skipping %s: %s", path, e)
                skipped.append((str(path), str(e)))

        return self.build_sources(sources, skipped=skipped)

    def build_sources(
        self,
        sources: Iterable[SourceDocument],
        skipped: Iterable[tuple[str, str]] = (),
    ) -> BuildReport:
        """Rebuild the index from already-read sources.

        Args:
            sources: Documents of the run, keyed by their relative path.
            skipped: Inputs already rejected upstream, carried into the report.

        Returns:
            Counts of everything written.

        Raises:
            PipelineError: If the index cannot be written.
        """
        skipped_list = list(skipped)
        documents: list[Document] = []
        sections: list[Section] = []
        scores: list[CategoryScore] = []

        try:
            for source in sources:
                try:
                    doc_sections = self.section_parser.parse(source.path, source.content)
                except SectionError as e:
                    logger.warning("Skipping %s: %s", source.path, e)
                    skipped_list.append((source.path, str(e)))
                    continue

                document = Document(
                    path=source.path,
                    title=source.title,
                    content=source.content,
                    tags=", ".join(source.tags),
                    section_path=PATH_SEPARATOR.join(s.title for s in doc_sections),
                )
                documents.append(document)
                sections.extend(doc_sections)

                scores.extend(self.categorizer.score_node(document.path, document.content))
                for section in doc_sections:
                    scores.extend(
                        self.categorizer.score_node(section.section_id, section_text(section))
                    )
                logger.debug("Analysed %s: %d sections", source.path, len(doc_sections))

            # Category edges need every node's primary category.
            resolved = resolve_categories(scores, self.categorizer.vocabulary)
            relationships = self.synthesizer.synthesize(documents, sections, resolved)

            self._write(documents, sections, relationships, scores)

        except PipelineError:
            raise
        except Exception as e:
            raise PipelineError(f"Indexing run failed: {e}") from e

        report = BuildReport(
            documents=len(documents),
            sections=len(sections),
            relationships=len(relationships),
            scores=len(scores),
            skipped=tuple(skipped_list),
        )
        logger.info(
            "Indexed %d documents, %d sections, %d relationships (%d skipped)",
            report.documents,
            report.sections,
            report.relationships,
            len(report.skipped),
        )
        return report

    def _write(
        self,
        documents: list[Document],
        sections: list[Section],
        relationships: list[Relationship],
        scores: list[CategoryScore],
    ) -> None:
        with self.store.batch():
            keyword_ids = {
                name: self.store.insert_keyword(name) for name in self.categorizer.vocabulary.names
            }
            for document in documents:
                self.store.insert_document(document)
            for section in sections:
                self.store.insert_section(section)
            for relationship in relationships:
                self.store.insert_relationship(relationship)
            for score in scores:
                self.store.insert_node_category_score(score, keyword_ids[score.category])
