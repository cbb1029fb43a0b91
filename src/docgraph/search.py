"""Full-text search over the persisted index.

Query text is turned into an FTS5 ``MATCH`` expression; when the store
rejects it, the search is repeated as a plain substring scan.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docgraph.exceptions import SearchError, StoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from docgraph.store.base import BaseIndexStore
    from docgraph.types import SearchHit

    _Query = Callable[..., list[SearchHit]]

__all__ = ["SCOPES", "Searcher", "build_match_query", "list_categories"]

logger = logging.getLogger(__name__)

SCOPES = ("all", "docs", "sections")


def _quote(term: str) -> str:
    return '"' + term.replace('"', '""') + '"'


def build_match_query(terms: str, exact: bool = False) -> str:
    """Build an FTS5 match expression from user input.

    ``exact`` searches the whole input as one phrase. Otherwise every
    whitespace-separated token becomes a prefix query and the tokens are
    OR-ed together: ``api flow`` → ``"api"* OR "flow"*``.

    Raises:
        SearchError: If the input contains no searchable text.
    """
    text = " ".join(terms.split())
    if not text:
        raise SearchError("Search terms must not be empty")
    if exact:
        return _quote(text)
    return " OR ".join(f"{_quote(token)}*" for token in text.split(" "))


class Searcher:
    """Runs document and section queries against an index store.

    Usage::

        hits = Searcher(store).search("webhook", scope="sections", category="Integration")
    """

    def __init__(self, store: BaseIndexStore) -> None:
        self.store = store

    def search(
        self,
        terms: str,
        scope: str = "all",
        category: str | None = None,
        limit: int = 10,
        exact: bool = False,
    ) -> list[SearchHit]:
        """Search documents and/or sections.

        Args:
            terms: Free-text query.
            scope: ``"all"``, ``"docs"`` or ``"sections"``.
            category: Restrict hits to nodes scored in this category.
            limit: Maximum hits per scope.
            exact: Match the whole input as a phrase.

        Returns:
            Document hits first, then section hits, each in relevance order.

        Raises:
            SearchError: On empty terms, unknown scope, or store failure.
        """
        if scope not in SCOPES:
            raise SearchError(f"Unknown search scope '{scope}'. Available: {list(SCOPES)}")
        if limit < 1:
            raise SearchError("Search limit must be at least 1")

        query = build_match_query(terms, exact=exact)
        text = " ".join(terms.split())
        hits: list[SearchHit] = []
        try:
            if scope in ("all", "docs"):
                hits.extend(
                    self._run(
                        self.store.search_documents,
                        self.store.scan_documents,
                        query,
                        text,
                        category,
                        limit,
                    )
                )
            if scope in ("all", "sections"):
                hits.extend(
                    self._run(
                        self.store.search_sections,
                        self.store.scan_sections,
                        query,
                        text,
                        category,
                        limit,
                    )
                )
        except StoreError as e:
            raise SearchError(f"Search failed: {e}") from e

        logger.info("Search %r (%s) returned %d hits", text, scope, len(hits))
        return hits

    @staticmethod
    def _run(
        match: _Query,
        scan: _Query,
        query: str,
        text: str,
        category: str | None,
        limit: int,
    ) -> list[SearchHit]:
        try:
            return match(query, category=category, limit=limit)
        except StoreError as e:
            logger.warning(
                "Full-text query %r failed (%s), falling back to substring scan", query, e
            )
            return scan(text, category=category, limit=limit)


def list_categories(store: BaseIndexStore) -> list[tuple[str, int]]:
    """Return catalog categories with the number of nodes scored in each.

    Raises:
        SearchError: If the store cannot be read.
    """
    try:
        return store.category_usage()
    except StoreError as e:
        raise SearchError(f"Failed to list categories: {e}") from e
