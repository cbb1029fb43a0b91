"""Abstract base class for document parsers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from docgraph.types import SourceDocument

__all__ = ["BaseParser"]

logger = logging.getLogger(__name__)


class BaseParser(ABC):
    """Base class for all source document parsers.

    Subclasses must implement ``parse``.
    """

    @abstractmethod
    def parse(self, path: Path, root: Path) -> SourceDocument:
        """Read a document file into a ``SourceDocument``.

        Args:
            path: Path to the document file.
            root: Docs root; the document key is ``path`` relative to it.

        Returns:
            SourceDocument with raw content, title and tags.

        Raises:
            ParseError: If the document cannot be read.
        """
