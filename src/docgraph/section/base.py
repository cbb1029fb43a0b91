"""Abstract base class for section parsers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docgraph.types import Section

__all__ = ["BaseSectionParser"]

logger = logging.getLogger(__name__)


class BaseSectionParser(ABC):
    """Base class for all section parsers.

    Subclasses split one document's raw text into an ordered list of
    ``Section`` records forming a forest by header level.
    """

    @abstractmethod
    def parse(self, doc_path: str, content: str) -> list[Section]:
        """Split a document into sections.

        Args:
            doc_path: Key of the owning document.
            content: Raw document text.

        Returns:
            Sections in document order.

        Raises:
            SectionError: If the document cannot be sectioned.
        """
