"""Markdown file parser: raw content with front-matter and title extraction.

Reads markdown files as-is (only a leading BOM is dropped), extracts the
document title from the first level-1 heading and tags from YAML
front-matter. Content is not normalized: the section parser and the
categorizer both work on the exact text that gets stored.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import yaml

from docgraph.exceptions import ParseError
from docgraph.ingest.base import BaseParser
from docgraph.section.markdown import iter_lines
from docgraph.types import SourceDocument

if TYPE_CHECKING:
    from pathlib import Path

__all__ = ["MarkdownParser", "extract_title"]

logger = logging.getLogger(__name__)

MAX_FILE_SIZE: int = 50 * 1024 * 1024  # 50 MB

# First-level heading only: "# Title", matched one line at a time
_TITLE_RE = re.compile(r"^#[ \t]+(.*)$")


class MarkdownParser(BaseParser):
    """Parser for markdown documentation files."""

    def parse(self, path: Path, root: Path) -> SourceDocument:
        """Read a markdown file into a SourceDocument.

        Args:
            path: Path to the markdown file.
            root: Docs root the document key is relative to.

        Returns:
            SourceDocument keyed by the POSIX path relative to ``root``.

        Raises:
            ParseError: If the file is missing, too large or unreadable.
        """
        if not path.exists():
            msg = f"Markdown file not found: {path}"
            raise ParseError(msg)

        if not path.is_file():
            msg = f"Not a file: {path}"
            raise ParseError(msg)

        _check_file_size(path, MAX_FILE_SIZE)

        logger.debug("Parsing markdown file: %s", path)

        try:
            raw = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            msg = f"Markdown file {path.name} is not valid UTF-8: {e}"
            raise ParseError(msg) from e
        except OSError as e:
            msg = f"Cannot read markdown file {path.name}: {e}"
            raise ParseError(msg) from e

        # Strip BOM if present
        if raw.startswith("\ufeff"):
            raw = raw[1:]

        frontmatter = _split_frontmatter(raw)
        meta = _parse_frontmatter(frontmatter) if frontmatter is not None else {}

        return SourceDocument(
            path=_relative_key(path, root),
            content=raw,
            title=extract_title(raw),
            tags=_extract_tags(meta),
        )


# ── Module-level helpers ────────────────────────────────────────────


def extract_title(content: str) -> str:
    """Return the text of the first ``# heading``, or an empty string.

    Lines inside fenced code blocks are never headings.
    """
    for line, fenced in iter_lines(content):
        if fenced:
            continue
        match = _TITLE_RE.match(line)
        if match:
            return match.group(1).strip()
    return ""


def _relative_key(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.name


def _check_file_size(path: Path, max_size: int) -> None:
    """Validate file size.

    Raises:
        ParseError: If the file exceeds the size limit.
    """
    file_size = path.stat().st_size
    if file_size > max_size:
        msg = (
            f"Markdown file {path.name} ({file_size} bytes) "
            f"exceeds maximum size ({max_size} bytes)"
        )
        raise ParseError(msg)


def _split_frontmatter(text: str) -> str | None:
    """Return the YAML front-matter block, or None when there is none.

    Front-matter must start with ``---`` on the first line and end with
    a second ``---`` on its own line.
    """
    if not text.startswith("---"):
        return None

    end_idx = text.find("\n---", 3)
    if end_idx == -1:
        return None

    return text[3:end_idx].strip()


def _parse_frontmatter(fm_text: str) -> dict[str, object]:
    """Parse YAML front-matter text; invalid YAML yields an empty dict."""
    try:
        data = yaml.safe_load(fm_text)
    except yaml.YAMLError:
        logger.debug("Invalid YAML front-matter, ignoring")
        return {}

    if not isinstance(data, dict):
        return {}

    return {str(k): v for k, v in data.items()}


def _extract_tags(meta: dict[str, object]) -> tuple[str, ...]:
    """Normalize a ``tags`` front-matter value (list or comma string)."""
    raw = meta.get("tags")
    if raw is None:
        return ()
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, list):
        items = [str(t) for t in raw]
    else:
        items = [str(raw)]
    return tuple(t.strip() for t in items if t.strip())
