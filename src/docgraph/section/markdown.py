"""Header-level section parser for markdown.

Scans a document line by line and builds a forest of sections:
- A header (1-6 ``#`` then whitespace) closes the current section and opens a new one
- A closed section is emitted only if it accumulated at least one line
- Parent is the nearest still-open, emitted ancestor of strictly lower level
- Headers inside fenced code blocks are plain content
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from docgraph.exceptions import SectionError
from docgraph.section.base import BaseSectionParser
from docgraph.types import Section

if TYPE_CHECKING:
    from collections.abc import Iterator

__all__ = ["MarkdownSectionParser", "iter_lines", "make_section_id", "slugify"]

logger = logging.getLogger(__name__)

# Heading line: "## Title". The title may be empty after trimming.
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)$")

# Fenced code block: ``` or ~~~ with optional language
_FENCE_RE = re.compile(r"^(`{3,}|~{3,})")

_WHITESPACE_RE = re.compile(r"\s+")

PATH_SEPARATOR = " > "


def _closes_fence(line: str, fence: str) -> bool:
    """Check whether ``line`` closes a block opened with ``fence``."""
    return re.match(rf"^{re.escape(fence[0])}{{{len(fence)},}}\s*$", line) is not None


def iter_lines(content: str) -> Iterator[tuple[str, bool]]:
    """Yield each line with a flag telling whether it is fenced code.

    Fence delimiter lines count as fenced.
    """
    fence: str | None = None
    for line in content.splitlines():
        if fence is not None:
            if _closes_fence(line, fence):
                fence = None
            yield line, True
            continue
        fence_match = _FENCE_RE.match(line)
        if fence_match:
            fence = fence_match.group(1)
            yield line, True
            continue
        yield line, False


def slugify(title: str) -> str:
    """Lowercase a title and replace whitespace runs with ``-``."""
    return _WHITESPACE_RE.sub("-", title.lower())


def make_section_id(doc_path: str, title: str) -> str:
    """Build the synthetic id of a section: ``<doc_path>#<slug>``."""
    return f"{doc_path}#{slugify(title)}"


@dataclass
class _OpenSection:
    """A header seen but not yet closed."""

    level: int
    title: str
    parent_id: str | None
    path: list[str]
    lines: list[str] = field(default_factory=list)
    section_id: str | None = None


class _SectionBuilder:
    """Accumulates emitted sections for one document and assigns unique ids."""

    def __init__(self, doc_path: str) -> None:
        self._doc_path = doc_path
        self._seen: dict[str, int] = {}
        self._used: set[str] = set()
        self.sections: list[Section] = []

    def _unique_id(self, title: str) -> str:
        base = make_section_id(self._doc_path, title)
        n = self._seen.get(base, 0)
        candidate = base if n == 0 else f"{base}-{n}"
        while candidate in self._used:
            n += 1
            candidate = f"{base}-{n}"
        self._seen[base] = n + 1
        self._used.add(candidate)
        return candidate

    def close(self, open_section: _OpenSection | None) -> None:
        if open_section is None or not open_section.lines:
            return
        section_id = self._unique_id(open_section.title)
        open_section.section_id = section_id
        self.sections.append(
            Section(
                section_id=section_id,
                doc_path=self._doc_path,
                title=open_section.title,
                content="\n".join(open_section.lines),
                level=open_section.level,
                parent_id=open_section.parent_id,
                section_path=PATH_SEPARATOR.join(open_section.path),
            )
        )


class MarkdownSectionParser(BaseSectionParser):
    """Stack-based markdown section parser."""

    def parse(self, doc_path: str, content: str) -> list[Section]:
        """Split markdown content into nested sections.

        Args:
            doc_path: Key of the owning document.
            content: Raw markdown text.

        Returns:
            Sections in document order; empty when there are no headers.

        Raises:
            SectionError: If parsing fails.
        """
        try:
            sections = self._do_parse(doc_path, content)
        except SectionError:
            raise
        except Exception as e:
            logger.error("Failed to section document %s: %s", doc_path, e)
            raise SectionError(f"Failed to section document {doc_path}: {e}") from e

        logger.debug("Sectioned %s into %d sections", doc_path, len(sections))
        return sections

    def _do_parse(self, doc_path: str, content: str) -> list[Section]:
        builder = _SectionBuilder(doc_path)
        stack: list[_OpenSection] = []
        current: _OpenSection | None = None

        for line, fenced in iter_lines(content):
            heading = None if fenced else _HEADING_RE.match(line)
            if heading is None:
                # Lines before the first header belong to no section
                if current is not None:
                    current.lines.append(line)
                continue

            builder.close(current)

            level = len(heading.group(1))
            title = heading.group(2).strip()

            while stack and stack[-1].level >= level:
                stack.pop()

            parent_id = next(
                (s.section_id for s in reversed(stack) if s.section_id is not None),
                None,
            )
            current = _OpenSection(
                level=level,
                title=title,
                parent_id=parent_id,
                path=[*(s.title for s in stack), title],
            )
            stack.append(current)

        builder.close(current)
        return builder.sections
