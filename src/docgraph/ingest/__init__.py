"""Ingestion: reading markdown sources from a docs directory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docgraph.ingest.base import BaseParser
from docgraph.ingest.markdown import MarkdownParser, extract_title

if TYPE_CHECKING:
    from pathlib import Path

__all__ = ["BaseParser", "MarkdownParser", "discover_documents", "extract_title"]

logger = logging.getLogger(__name__)


def discover_documents(root: Path, extension: str = ".md") -> list[Path]:
    """Return all files under ``root`` with the given extension, sorted by path.

    Sorting by relative POSIX path keeps indexing order, and therefore row
    order in the store, stable across runs and platforms.
    """
    if not root.is_dir():
        return []
    suffix = extension.lower()
    files = [p for p in root.rglob("*") if p.is_file() and p.suffix.lower() == suffix]
    files.sort(key=lambda p: p.relative_to(root).as_posix())
    logger.info("Discovered %d %s file(s) under %s", len(files), extension, root)
    return files
