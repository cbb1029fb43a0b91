"""Keyword categorization: vocabulary, scoring and primary-category resolution."""

from docgraph.categorize.resolver import resolve_categories
from docgraph.categorize.scorer import KeywordCategorizer, normalized_score
from docgraph.categorize.vocabulary import (
    DEFAULT_CATEGORIES,
    Vocabulary,
    default_vocabulary,
    load_vocabulary,
    read_vocabulary_file,
)

__all__ = [
    "DEFAULT_CATEGORIES",
    "KeywordCategorizer",
    "Vocabulary",
    "default_vocabulary",
    "load_vocabulary",
    "normalized_score",
    "read_vocabulary_file",
    "resolve_categories",
]
