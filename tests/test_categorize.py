"""Tests for docgraph.categorize: vocabulary, scorer and resolver."""

from __future__ import annotations

import json
import math
from typing import TYPE_CHECKING

import pytest

from docgraph.categorize import (
    DEFAULT_CATEGORIES,
    KeywordCategorizer,
    Vocabulary,
    default_vocabulary,
    load_vocabulary,
    normalized_score,
    read_vocabulary_file,
    resolve_categories,
)
from docgraph.categorize.scorer import build_category_pattern
from docgraph.config import DocgraphConfig
from docgraph.exceptions import VocabularyError
from docgraph.types import CategoryScore

if TYPE_CHECKING:
    from pathlib import Path


# ── Vocabulary ──────────────────────────────────────────────────────


class TestVocabulary:
    def test_default_has_six_categories(self):
        vocab = default_vocabulary()
        assert len(vocab) == 6
        assert vocab.names == tuple(DEFAULT_CATEGORIES)

    def test_declaration_order_is_rank(self):
        vocab = Vocabulary.from_mapping({"B": ["b"], "A": ["a"]})
        assert vocab.rank("B") == 0
        assert vocab.rank("A") == 1

    def test_unknown_category_ranks_last(self):
        vocab = Vocabulary.from_mapping({"B": ["b"], "A": ["a"]})
        assert vocab.rank("Z") == 2

    def test_terms_are_deduplicated(self):
        vocab = Vocabulary.from_mapping({"A": ["x", "x", " y ", ""]})
        assert vocab.terms("A") == ("x", "y")

    def test_string_terms_accepted(self):
        vocab = Vocabulary.from_mapping({"A": "x"})
        assert vocab.terms("A") == ("x",)

    def test_contains(self):
        assert "Integration" in default_vocabulary()
        assert "Nope" not in default_vocabulary()

    def test_empty_mapping_rejected(self):
        with pytest.raises(VocabularyError):
            Vocabulary.from_mapping({})

    def test_category_without_terms_rejected(self):
        with pytest.raises(VocabularyError, match="no terms"):
            Vocabulary.from_mapping({"A": []})

    @pytest.mark.parametrize("terms", [None, 5, {"x": 1}])
    def test_non_list_terms_rejected(self, terms: object):
        with pytest.raises(VocabularyError, match="must be a list"):
            Vocabulary.from_mapping({"A": terms})  # type: ignore[dict-item]


class TestVocabularyFiles:
    def test_reads_yaml(self, tmp_path: Path):
        path = tmp_path / "vocab.yaml"
        path.write_text("Billing:\n  - invoice\n  - payment\n", encoding="utf-8")
        vocab = read_vocabulary_file(path)
        assert vocab.terms("Billing") == ("invoice", "payment")

    def test_reads_toml_categories_key(self, tmp_path: Path):
        path = tmp_path / "vocab.toml"
        path.write_text('[categories]\nBilling = ["invoice"]\n', encoding="utf-8")
        assert read_vocabulary_file(path).names == ("Billing",)

    def test_reads_json(self, tmp_path: Path):
        path = tmp_path / "vocab.json"
        path.write_text(json.dumps({"Billing": ["invoice"]}), encoding="utf-8")
        assert read_vocabulary_file(path).names == ("Billing",)

    def test_invalid_yaml_raises(self, tmp_path: Path):
        path = tmp_path / "vocab.yaml"
        path.write_text("a: [unclosed\n", encoding="utf-8")
        with pytest.raises(VocabularyError):
            read_vocabulary_file(path)

    def test_non_mapping_raises(self, tmp_path: Path):
        path = tmp_path / "vocab.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(VocabularyError, match="mapping"):
            read_vocabulary_file(path)


class TestLoadVocabulary:
    def test_default_when_nothing_configured(self, tmp_path: Path):
        assert load_vocabulary(DocgraphConfig(), tmp_path) == default_vocabulary()

    def test_inline_categories_win(self, tmp_path: Path):
        config = DocgraphConfig()
        config.categories = {"Billing": ["invoice"]}
        config.vocabulary.path = "vocab.yaml"
        (tmp_path / "vocab.yaml").write_text("Other:\n  - x\n", encoding="utf-8")
        assert load_vocabulary(config, tmp_path).names == ("Billing",)

    def test_file_used_when_present(self, tmp_path: Path):
        config = DocgraphConfig()
        config.vocabulary.path = "vocab.yaml"
        (tmp_path / "vocab.yaml").write_text("Other:\n  - x\n", encoding="utf-8")
        assert load_vocabulary(config, tmp_path).names == ("Other",)

    def test_missing_file_falls_back(self, tmp_path: Path):
        config = DocgraphConfig()
        config.vocabulary.path = "missing.yaml"
        assert load_vocabulary(config, tmp_path) == default_vocabulary()

    def test_broken_file_falls_back(self, tmp_path: Path):
        config = DocgraphConfig()
        config.vocabulary.path = "vocab.yaml"
        (tmp_path / "vocab.yaml").write_text("Other: []\n", encoding="utf-8")
        assert load_vocabulary(config, tmp_path) == default_vocabulary()

    @pytest.mark.parametrize("body", ["Data:\nUI: [view]\n", "Data: 5\nUI: [view]\n"])
    def test_null_or_scalar_terms_fall_back(self, tmp_path: Path, body: str):
        config = DocgraphConfig()
        config.vocabulary.path = "vocab.yaml"
        (tmp_path / "vocab.yaml").write_text(body, encoding="utf-8")
        assert load_vocabulary(config, tmp_path) == default_vocabulary()

    def test_null_inline_terms_fall_back(self, tmp_path: Path):
        config = DocgraphConfig()
        config.categories = {"Data": None}  # type: ignore[dict-item]
        assert load_vocabulary(config, tmp_path) == default_vocabulary()


# ── Scorer ──────────────────────────────────────────────────────────


class TestNormalizedScore:
    def test_api_api_api_clamps_to_one(self):
        categorizer = KeywordCategorizer(default_vocabulary())
        match = categorizer.score("api api api")["Integration"]
        assert match.count == 3
        assert match.score == 1.0

    def test_formula(self):
        assert normalized_score(1, 10_000) == pytest.approx(1 / math.sqrt(100))

    def test_zero_count_scores_zero(self):
        assert normalized_score(0, 500) == 0.0

    def test_zero_length_does_not_divide_by_zero(self):
        assert normalized_score(1, 0) == 1.0

    @pytest.mark.parametrize("length", [1, 50, 100, 1_000, 100_000])
    @pytest.mark.parametrize("count", [1, 2, 5, 40])
    def test_range(self, count: int, length: int):
        assert 0.0 <= normalized_score(count, length) <= 1.0

    def test_monotonic_in_count(self):
        scores = [normalized_score(c, 40_000) for c in range(1, 30)]
        assert scores == sorted(scores)


class TestKeywordCategorizer:
    @pytest.fixture
    def categorizer(self) -> KeywordCategorizer:
        return KeywordCategorizer(default_vocabulary())

    def test_case_insensitive(self, categorizer: KeywordCategorizer):
        assert categorizer.score("API Api api")["Integration"].count == 3

    def test_word_boundaries(self, categorizer: KeywordCategorizer):
        assert "Integration" not in categorizer.score("rapid capital")

    def test_plural_term_counted_once(self, categorizer: KeywordCategorizer):
        assert categorizer.score("webhooks")["Integration"].count == 1

    def test_zero_count_categories_omitted(self, categorizer: KeywordCategorizer):
        assert set(categorizer.score("the user logs in")) == {"User"}

    def test_empty_text(self, categorizer: KeywordCategorizer):
        assert categorizer.score("") == {}

    def test_result_in_vocabulary_order(self, categorizer: KeywordCategorizer):
        result = categorizer.score("server data api user")
        assert list(result) == ["User", "Integration", "Data", "System"]

    def test_score_node_tags_node_id(self, categorizer: KeywordCategorizer):
        scores = categorizer.score_node("a.md", "api")
        assert scores == [CategoryScore("a.md", "Integration", 1, 1.0)]

    def test_regex_metacharacters_escaped(self):
        categorizer = KeywordCategorizer(Vocabulary.from_mapping({"Lang": ["c++", "c#"]}))
        assert build_category_pattern(["c++"]).pattern.startswith(r"\b(?:c\+\+")
        assert "Lang" not in categorizer.score("ccc")

    def test_same_text_same_result(self, categorizer: KeywordCategorizer):
        text = "workflow state release api user data"
        assert categorizer.score(text) == categorizer.score(text)


# ── Resolver ────────────────────────────────────────────────────────


class TestResolveCategories:
    def test_primary_is_highest_count(self, vocabulary: Vocabulary):
        scores = [
            CategoryScore("a.md", "User", 1, 0.1),
            CategoryScore("a.md", "Data", 4, 0.4),
        ]
        resolved = resolve_categories(scores, vocabulary)
        assert resolved["a.md"].primary == "Data"
        assert [c.category for c in resolved["a.md"].categories] == ["Data", "User"]

    def test_tie_broken_by_vocabulary_order(self, vocabulary: Vocabulary):
        scores = [
            CategoryScore("a.md", "System", 2, 0.9),
            CategoryScore("a.md", "User", 2, 0.1),
        ]
        assert resolve_categories(scores, vocabulary)["a.md"].primary == "User"

    def test_tie_independent_of_input_order(self, vocabulary: Vocabulary):
        scores = [
            CategoryScore("a.md", "UI", 2, 0.2),
            CategoryScore("a.md", "Integration", 2, 0.2),
        ]
        forward = resolve_categories(scores, vocabulary)
        backward = resolve_categories(list(reversed(scores)), vocabulary)
        assert forward == backward
        assert forward["a.md"].primary == "Integration"

    def test_counts_summed_and_best_score_kept(self, vocabulary: Vocabulary):
        scores = [
            CategoryScore("a.md", "Data", 1, 0.3),
            CategoryScore("a.md", "Data", 2, 0.5),
        ]
        top = resolve_categories(scores, vocabulary)["a.md"].categories[0]
        assert top.count == 3
        assert top.score == 0.5

    def test_zero_counts_ignored(self, vocabulary: Vocabulary):
        resolved = resolve_categories([CategoryScore("a.md", "Data", 0, 0.0)], vocabulary)
        assert resolved == {}

    def test_primary_score(self, vocabulary: Vocabulary):
        resolved = resolve_categories([CategoryScore("a.md", "Data", 1, 0.25)], vocabulary)
        assert resolved["a.md"].primary_score == 0.25

    def test_nodes_resolved_independently(self, vocabulary: Vocabulary):
        scores = [
            CategoryScore("a.md", "Data", 1, 0.1),
            CategoryScore("b.md", "User", 1, 0.1),
        ]
        resolved = resolve_categories(scores, vocabulary)
        assert resolved["a.md"].primary == "Data"
        assert resolved["b.md"].primary == "User"
