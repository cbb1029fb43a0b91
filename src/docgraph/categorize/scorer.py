"""Deterministic keyword-count scoring of text against a category vocabulary.

For every category a single case-insensitive, word-bounded alternation of
its terms is matched against the text. The raw count is normalized by
the square root of a length-scaled denominator::

    score = min(count / sqrt(max(len(text), 1) / 100), 1)

which dampens the advantage of long texts without removing it and keeps
scores in [0, 1].
"""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING

from docgraph.types import CategoryMatch, CategoryScore

if TYPE_CHECKING:
    from docgraph.categorize.vocabulary import Vocabulary

__all__ = ["KeywordCategorizer", "build_category_pattern", "normalized_score"]

logger = logging.getLogger(__name__)

# Characters per unit of the length denominator.
_LENGTH_UNIT = 100


def build_category_pattern(terms: tuple[str, ...] | list[str]) -> re.Pattern[str]:
    """Compile ``\\b(?:t1|t2|...)\\b`` for a category, longest term first."""
    ordered = sorted(terms, key=lambda t: (-len(t), t))
    alternation = "|".join(re.escape(t) for t in ordered)
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


def normalized_score(count: int, text_length: int) -> float:
    """Length-dampened, clamped score for ``count`` matches in a text."""
    if count <= 0:
        return 0.0
    denominator = math.sqrt(max(text_length, 1) / _LENGTH_UNIT)
    return min(count / denominator, 1.0)


class KeywordCategorizer:
    """Scores text units (documents, sections) against a fixed vocabulary.

    Patterns are compiled once per vocabulary; the categorizer holds no
    other state, so one instance can score any number of texts.

    Usage::

        categorizer = KeywordCategorizer(default_vocabulary())
        matches = categorizer.score("REST api endpoints")
        # {"Integration": CategoryMatch(count=3, score=1.0)}
    """

    def __init__(self, vocabulary: Vocabulary) -> None:
        self.vocabulary = vocabulary
        self._patterns: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
            (name, build_category_pattern(terms)) for name, terms in vocabulary
        )

    def score(self, text: str) -> dict[str, CategoryMatch]:
        """Count category matches in ``text``.

        Returns:
            Mapping of category → match, in vocabulary order. Categories
            without a match are absent.
        """
        if not text:
            return {}

        length = len(text)
        result: dict[str, CategoryMatch] = {}
        for name, pattern in self._patterns:
            count = len(pattern.findall(text))
            if count:
                result[name] = CategoryMatch(count=count, score=normalized_score(count, length))
        return result

    def score_node(self, node_id: str, text: str) -> list[CategoryScore]:
        """Score ``text`` and tag each match with ``node_id``."""
        return [
            CategoryScore(node_id=node_id, category=name, count=m.count, score=m.score)
            for name, m in self.score(text).items()
        ]
