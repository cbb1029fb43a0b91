"""Abstract base class for index stores.

An index store is the storage collaborator of the indexer: it receives
every record of a rebuild inside one atomic batch and answers the read
queries used by search, category resolution and graph export.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING

from docgraph.exceptions import StoreError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from docgraph.types import (
        CategoryScore,
        Document,
        Relationship,
        SearchHit,
        Section,
    )

__all__ = ["BaseIndexStore"]

logger = logging.getLogger(__name__)


class BaseIndexStore(ABC):
    """Base class for all index stores.

    Writes happen between ``begin_batch()`` and ``commit()``/``rollback()``.
    ``begin_batch()`` discards the previous index inside the same unit of
    work, so readers see either the old index or the complete new one.
    """

    # ── write side ──────────────────────────────────────────────────

    @abstractmethod
    def begin_batch(self) -> None:
        """Start the atomic unit of work of a full rebuild.

        Raises:
            StoreError: If a batch is already open or the store fails.
        """

    @abstractmethod
    def insert_document(self, document: Document) -> None:
        """Insert one document record."""

    @abstractmethod
    def insert_section(self, section: Section) -> None:
        """Insert one section record."""

    @abstractmethod
    def insert_relationship(self, relationship: Relationship) -> None:
        """Insert one directed relationship row."""

    @abstractmethod
    def insert_keyword(self, category: str) -> int:
        """Insert a catalog row for ``category`` if missing.

        Idempotent: inserting the same category twice returns the same id
        and creates one row.

        Returns:
            The keyword id of the category.
        """

    @abstractmethod
    def insert_node_category_score(self, score: CategoryScore, keyword_id: int) -> None:
        """Insert one node/category score row."""

    @abstractmethod
    def commit(self) -> None:
        """Make the open batch visible to readers."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard the open batch; the previous index stays in place."""

    @contextmanager
    def batch(self) -> Iterator[BaseIndexStore]:
        """Run a rebuild as one unit of work.

        Commits when the block completes, rolls back on any exception.
        Store failures surface as ``StoreError``.

        Usage::

            with store.batch():
                store.insert_document(doc)
        """
        self.begin_batch()
        try:
            yield self
        except BaseException:
            logger.warning("Rolling back index batch")
            self.rollback()
            raise
        else:
            try:
                self.commit()
            except StoreError:
                self.rollback()
                raise

    # ── read side ───────────────────────────────────────────────────

    @abstractmethod
    def documents(self) -> list[Document]:
        """Return all documents in insertion order."""

    @abstractmethod
    def sections(self) -> list[Section]:
        """Return all sections in insertion order."""

    @abstractmethod
    def relationships(self) -> list[Relationship]:
        """Return all relationships in insertion order."""

    @abstractmethod
    def keywords(self) -> list[tuple[int, str, str]]:
        """Return the keyword catalog as ``(id, term, category)`` rows ordered by id."""

    @abstractmethod
    def category_rankings(self) -> list[CategoryScore]:
        """Per node, categories with summed count and score, count descending."""

    @abstractmethod
    def category_usage(self) -> list[tuple[str, int]]:
        """Catalog categories with the number of nodes scored in each."""

    @abstractmethod
    def search_documents(
        self, query: str, category: str | None = None, limit: int = 10
    ) -> list[SearchHit]:
        """Full-text match over documents.

        Raises:
            StoreError: If the query cannot be executed (e.g. bad syntax).
        """

    @abstractmethod
    def search_sections(
        self, query: str, category: str | None = None, limit: int = 10
    ) -> list[SearchHit]:
        """Full-text match over sections.

        Raises:
            StoreError: If the query cannot be executed (e.g. bad syntax).
        """

    @abstractmethod
    def scan_documents(
        self, text: str, category: str | None = None, limit: int = 10
    ) -> list[SearchHit]:
        """Plain substring match over document titles and content."""

    @abstractmethod
    def scan_sections(
        self, text: str, category: str | None = None, limit: int = 10
    ) -> list[SearchHit]:
        """Plain substring match over section titles and content."""

    @abstractmethod
    def counts(self) -> dict[str, int]:
        """Row counts keyed by ``documents``, ``sections``, ``relationships``,
        ``keywords`` and ``scores``."""

    def close(self) -> None:  # noqa: B027
        """Release underlying resources."""
