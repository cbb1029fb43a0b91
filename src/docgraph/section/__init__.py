"""Section parsing: header-level decomposition of markdown documents."""

from docgraph.section.base import BaseSectionParser
from docgraph.section.markdown import MarkdownSectionParser, make_section_id, slugify

__all__ = ["BaseSectionParser", "MarkdownSectionParser", "make_section_id", "slugify"]
