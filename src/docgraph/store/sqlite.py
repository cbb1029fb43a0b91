"""SQLite index store with FTS5 full-text tables.

Documents and sections live in FTS5 virtual tables so they can be queried
with ``MATCH``; relationships, the keyword catalog and node/category
scores are plain tables. ``node_primary_category`` is a view that
aggregates scores per node and category; it is recomputed on read and
never stored.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING

from docgraph.exceptions import StoreError
from docgraph.store.base import BaseIndexStore
from docgraph.types import (
    CategoryScore,
    Document,
    Relationship,
    RelationshipType,
    SearchHit,
    Section,
)

if TYPE_CHECKING:
    from pathlib import Path

__all__ = ["SCHEMA", "SqliteIndexStore"]

logger = logging.getLogger(__name__)

SCHEMA = """
-- Documents: full-text searchable, keyed by relative path
CREATE VIRTUAL TABLE IF NOT EXISTS docs USING fts5(
    path,               -- Path relative to the docs directory
    content,            -- Full document content
    title,              -- First level-1 heading
    tags,               -- Front-matter tags, comma separated
    section_path        -- All section titles joined with " > "
);

-- Sections: full-text searchable
CREATE VIRTUAL TABLE IF NOT EXISTS sections USING fts5(
    doc_path,           -- Owning document
    section_id,         -- <doc_path>#<slug>
    title,
    content,
    level UNINDEXED,    -- Header level (1-6)
    parent_id UNINDEXED,
    section_path        -- Breadcrumb "Doc > Parent > Self"
);

CREATE TABLE IF NOT EXISTS relationships (
    source_id TEXT NOT NULL,
    target_id TEXT NOT NULL,
    relationship_type TEXT NOT NULL
);

-- Keyword catalog: one row per category (term == category)
CREATE TABLE IF NOT EXISTS keywords (
    id INTEGER PRIMARY KEY,
    term TEXT NOT NULL UNIQUE,
    category TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS node_keywords (
    node_id TEXT NOT NULL,
    keyword_id INTEGER NOT NULL REFERENCES keywords(id),
    count INTEGER NOT NULL,
    score REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_relationships_source ON relationships(source_id);
CREATE INDEX IF NOT EXISTS idx_relationships_target ON relationships(target_id);
CREATE INDEX IF NOT EXISTS idx_node_keywords_node ON node_keywords(node_id);

CREATE VIEW IF NOT EXISTS node_primary_category AS
SELECT
    nk.node_id AS node_id,
    k.category AS category,
    SUM(nk.count) AS category_count,
    MAX(nk.score) AS match_score,
    MIN(k.id) AS keyword_rank
FROM node_keywords nk
JOIN keywords k ON nk.keyword_id = k.id
GROUP BY nk.node_id, k.category;
"""

_CLEAR = """
DELETE FROM docs;
DELETE FROM sections;
DELETE FROM relationships;
DELETE FROM node_keywords;
DELETE FROM keywords;
"""

_CATEGORY_FILTER = """
    AND {column} IN (
        SELECT nk.node_id
        FROM node_keywords nk
        JOIN keywords k ON nk.keyword_id = k.id
        WHERE k.category = ?
    )
"""

# Characters of context on each side of a substring match.
_SNIPPET_RADIUS = 100


def _like_pattern(text: str) -> str:
    """Substring pattern for ``LIKE ... ESCAPE '\\'`` with wildcards taken literally."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _make_snippet(content: str, text: str) -> str:
    """Cut a single-line excerpt around the first occurrence of ``text``."""
    index = content.lower().find(text.lower())
    if index < 0:
        snippet = content[: 2 * _SNIPPET_RADIUS]
        return snippet.replace("\n", " ") + ("..." if len(content) > len(snippet) else "")
    start = max(0, index - _SNIPPET_RADIUS)
    end = min(len(content), index + len(text) + _SNIPPET_RADIUS)
    snippet = content[start:end].replace("\n", " ")
    if start > 0:
        snippet = "..." + snippet
    if end < len(content):
        snippet = snippet + "..."
    return snippet


class SqliteIndexStore(BaseIndexStore):
    """Index store backed by a single SQLite database file.

    The connection runs in autocommit mode; ``begin_batch()`` opens an
    explicit ``BEGIN IMMEDIATE`` transaction that is closed by ``commit()``
    or ``rollback()``.

    Usage::

        store = SqliteIndexStore(project_root / ".docgraph" / "docs.db")
        with store.batch():
            store.insert_document(doc)
        hits = store.search_documents('"api"*')
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = str(db_path)
        try:
            self._conn = sqlite3.connect(self._db_path, isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to initialize index store at {db_path}: {e}") from e

        logger.info("SQLite index store opened at %s", self._db_path)

    def __enter__(self) -> SqliteIndexStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ── write side ──────────────────────────────────────────────────

    def begin_batch(self) -> None:
        if self._conn.in_transaction:
            raise StoreError("An index batch is already open")
        try:
            self._conn.execute("BEGIN IMMEDIATE")
            for statement in _CLEAR.strip().splitlines():
                self._conn.execute(statement)
        except sqlite3.Error as e:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise StoreError(f"Failed to begin index batch: {e}") from e
        logger.debug("Index batch started")

    def insert_document(self, document: Document) -> None:
        self._write(
            "INSERT INTO docs (path, content, title, tags, section_path) VALUES (?, ?, ?, ?, ?)",
            (
                document.path,
                document.content,
                document.title,
                document.tags,
                document.section_path,
            ),
        )

    def insert_section(self, section: Section) -> None:
        self._write(
            "INSERT INTO sections "
            "(doc_path, section_id, title, content, level, parent_id, section_path) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                section.doc_path,
                section.section_id,
                section.title,
                section.content,
                section.level,
                section.parent_id,
                section.section_path,
            ),
        )

    def insert_relationship(self, relationship: Relationship) -> None:
        self._write(
            "INSERT INTO relationships (source_id, target_id, relationship_type) VALUES (?, ?, ?)",
            (
                relationship.source_id,
                relationship.target_id,
                relationship.relationship_type.value,
            ),
        )

    def insert_keyword(self, category: str) -> int:
        self._write(
            "INSERT OR IGNORE INTO keywords (term, category) VALUES (?, ?)",
            (category, category),
        )
        row = self._read_one("SELECT id FROM keywords WHERE category = ?", (category,))
        if row is None:
            raise StoreError(f"Keyword row for {category!r} missing after insert")
        return int(row["id"])

    def insert_node_category_score(self, score: CategoryScore, keyword_id: int) -> None:
        self._write(
            "INSERT INTO node_keywords (node_id, keyword_id, count, score) VALUES (?, ?, ?, ?)",
            (score.node_id, keyword_id, score.count, score.score),
        )

    def commit(self) -> None:
        if not self._conn.in_transaction:
            raise StoreError("No index batch is open")
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            raise StoreError(f"Failed to commit index batch: {e}") from e
        logger.info("Index batch committed")

    def rollback(self) -> None:
        if not self._conn.in_transaction:
            return
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            raise StoreError(f"Failed to roll back index batch: {e}") from e
        logger.info("Index batch rolled back")

    # ── read side ───────────────────────────────────────────────────

    def documents(self) -> list[Document]:
        rows = self._read(
            "SELECT path, title, content, tags, section_path FROM docs ORDER BY rowid"
        )
        return [
            Document(
                path=r["path"],
                title=r["title"] or "",
                content=r["content"] or "",
                tags=r["tags"] or "",
                section_path=r["section_path"] or "",
            )
            for r in rows
        ]

    def sections(self) -> list[Section]:
        rows = self._read(
            "SELECT doc_path, section_id, title, content, level, parent_id, section_path "
            "FROM sections ORDER BY rowid"
        )
        return [
            Section(
                section_id=r["section_id"],
                doc_path=r["doc_path"],
                title=r["title"] or "",
                content=r["content"] or "",
                level=int(r["level"]),
                parent_id=r["parent_id"],
                section_path=r["section_path"] or "",
            )
            for r in rows
        ]

    def relationships(self) -> list[Relationship]:
        rows = self._read(
            "SELECT source_id, target_id, relationship_type FROM relationships ORDER BY rowid"
        )
        return [
            Relationship(
                source_id=r["source_id"],
                target_id=r["target_id"],
                relationship_type=RelationshipType(r["relationship_type"]),
            )
            for r in rows
        ]

    def keywords(self) -> list[tuple[int, str, str]]:
        rows = self._read("SELECT id, term, category FROM keywords ORDER BY id")
        return [(int(r["id"]), r["term"], r["category"]) for r in rows]

    def category_rankings(self) -> list[CategoryScore]:
        rows = self._read(
            "SELECT node_id, category, category_count, match_score "
            "FROM node_primary_category "
            "ORDER BY node_id, category_count DESC, keyword_rank"
        )
        return [
            CategoryScore(
                node_id=r["node_id"],
                category=r["category"],
                count=int(r["category_count"]),
                score=float(r["match_score"]),
            )
            for r in rows
        ]

    def category_usage(self) -> list[tuple[str, int]]:
        rows = self._read(
            "SELECT k.category AS category, COUNT(DISTINCT nk.node_id) AS nodes "
            "FROM keywords k LEFT JOIN node_keywords nk ON nk.keyword_id = k.id "
            "GROUP BY k.id ORDER BY nodes DESC, k.id"
        )
        return [(r["category"], int(r["nodes"])) for r in rows]

    def search_documents(
        self, query: str, category: str | None = None, limit: int = 10
    ) -> list[SearchHit]:
        sql = (
            "SELECT path, title, section_path, "
            "snippet(docs, 1, '**', '**', '...', 24) AS snippet "
            "FROM docs WHERE docs MATCH ?"
        )
        params: list[object] = [query]
        if category:
            sql += _CATEGORY_FILTER.format(column="path")
            params.append(category)
        sql += " ORDER BY rank LIMIT ?"
        params.append(limit)

        rows = self._read(sql, tuple(params))
        return [
            SearchHit(
                kind="document",
                node_id=r["path"],
                doc_path=r["path"],
                title=r["title"] or "",
                section_path=r["section_path"] or "",
                snippet=r["snippet"] or "",
            )
            for r in rows
        ]

    def search_sections(
        self, query: str, category: str | None = None, limit: int = 10
    ) -> list[SearchHit]:
        sql = (
            "SELECT doc_path, section_id, title, section_path, "
            "snippet(sections, 3, '**', '**', '...', 24) AS snippet "
            "FROM sections WHERE sections MATCH ?"
        )
        params: list[object] = [query]
        if category:
            sql += _CATEGORY_FILTER.format(column="section_id")
            params.append(category)
        sql += " ORDER BY rank LIMIT ?"
        params.append(limit)

        rows = self._read(sql, tuple(params))
        return [
            SearchHit(
                kind="section",
                node_id=r["section_id"],
                doc_path=r["doc_path"],
                title=r["title"] or "",
                section_path=r["section_path"] or "",
                snippet=r["snippet"] or "",
            )
            for r in rows
        ]

    def scan_documents(
        self, text: str, category: str | None = None, limit: int = 10
    ) -> list[SearchHit]:
        pattern = _like_pattern(text)
        sql = (
            "SELECT path, title, content, section_path FROM docs "
            "WHERE (content LIKE ? ESCAPE '\\' OR title LIKE ? ESCAPE '\\')"
        )
        params: list[object] = [pattern, pattern]
        if category:
            sql += _CATEGORY_FILTER.format(column="path")
            params.append(category)
        sql += " ORDER BY rowid LIMIT ?"
        params.append(limit)

        rows = self._read(sql, tuple(params))
        return [
            SearchHit(
                kind="document",
                node_id=r["path"],
                doc_path=r["path"],
                title=r["title"] or "",
                section_path=r["section_path"] or "",
                snippet=_make_snippet(r["content"] or "", text),
            )
            for r in rows
        ]

    def scan_sections(
        self, text: str, category: str | None = None, limit: int = 10
    ) -> list[SearchHit]:
        pattern = _like_pattern(text)
        sql = (
            "SELECT doc_path, section_id, title, content, section_path FROM sections "
            "WHERE (content LIKE ? ESCAPE '\\' OR title LIKE ? ESCAPE '\\')"
        )
        params: list[object] = [pattern, pattern]
        if category:
            sql += _CATEGORY_FILTER.format(column="section_id")
            params.append(category)
        sql += " ORDER BY rowid LIMIT ?"
        params.append(limit)

        rows = self._read(sql, tuple(params))
        return [
            SearchHit(
                kind="section",
                node_id=r["section_id"],
                doc_path=r["doc_path"],
                title=r["title"] or "",
                section_path=r["section_path"] or "",
                snippet=_make_snippet(r["content"] or "", text),
            )
            for r in rows
        ]

    def counts(self) -> dict[str, int]:
        tables = {
            "documents": "docs",
            "sections": "sections",
            "relationships": "relationships",
            "keywords": "keywords",
            "scores": "node_keywords",
        }
        result: dict[str, int] = {}
        for key, table in tables.items():
            row = self._read_one(f"SELECT COUNT(*) AS n FROM {table}")  # noqa: S608
            result[key] = int(row["n"]) if row is not None else 0
        return result

    def close(self) -> None:
        try:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            self._conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to close index store: {e}") from e

    # ── helpers ─────────────────────────────────────────────────────

    def _write(self, sql: str, params: tuple[object, ...]) -> None:
        if not self._conn.in_transaction:
            raise StoreError("Writes require an open index batch (call begin_batch first)")
        try:
            self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(f"Index write failed: {e}") from e

    def _read(self, sql: str, params: tuple[object, ...] = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Index query failed: {e}") from e

    def _read_one(self, sql: str, params: tuple[object, ...] = ()) -> sqlite3.Row | None:
        try:
            return self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Index query failed: {e}") from e
