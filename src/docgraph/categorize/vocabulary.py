"""Category vocabulary: fixed catalog of category name → match terms.

The vocabulary is read-only configuration loaded once per indexing run.
Declaration order matters: it breaks ties between equally-counted
categories, so it is preserved from the source mapping.
"""

from __future__ import annotations

import json
import logging
import tomllib
from dataclasses import dataclass
from typing import TYPE_CHECKING

import yaml

from docgraph.exceptions import VocabularyError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence
    from pathlib import Path

    from docgraph.config import DocgraphConfig

__all__ = [
    "DEFAULT_CATEGORIES",
    "Vocabulary",
    "default_vocabulary",
    "load_vocabulary",
    "read_vocabulary_file",
]

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: dict[str, list[str]] = {
    "User": [
        "user",
        "users",
        "role",
        "roles",
        "permission",
        "permissions",
        "account",
        "login",
        "profile",
        "team",
        "owner",
    ],
    "Integration": [
        "api",
        "integration",
        "webhook",
        "webhooks",
        "rest",
        "endpoint",
        "endpoints",
        "token",
        "plugin",
        "mashup",
        "sync",
    ],
    "Process": [
        "workflow",
        "process",
        "state",
        "states",
        "sprint",
        "release",
        "iteration",
        "backlog",
        "planning",
        "epic",
        "feature",
    ],
    "Data": [
        "data",
        "query",
        "field",
        "fields",
        "entity",
        "entities",
        "report",
        "export",
        "import",
        "filter",
        "metric",
    ],
    "UI": [
        "view",
        "views",
        "board",
        "dashboard",
        "layout",
        "card",
        "cards",
        "button",
        "screen",
        "visualization",
    ],
    "System": [
        "system",
        "server",
        "configuration",
        "settings",
        "performance",
        "security",
        "install",
        "deploy",
        "backup",
        "log",
    ],
}


@dataclass(frozen=True)
class Vocabulary:
    """Immutable, ordered category → terms mapping."""

    entries: tuple[tuple[str, tuple[str, ...]], ...]

    @classmethod
    def from_mapping(cls, categories: Mapping[str, Sequence[str] | str]) -> Vocabulary:
        """Build a vocabulary, validating names and term lists.

        Raises:
            VocabularyError: If the mapping is empty or a category has no usable
                terms (null, scalar or blank).
        """
        if not categories:
            raise VocabularyError("Vocabulary must define at least one category")

        entries: list[tuple[str, tuple[str, ...]]] = []
        for name, terms in categories.items():
            name = str(name).strip()
            if not name:
                raise VocabularyError("Category names must be non-empty")
            if isinstance(terms, str):
                terms = [terms]
            elif not isinstance(terms, (list, tuple)):
                kind = type(terms).__name__
                raise VocabularyError(f"Category {name!r} terms must be a list, not {kind}")
            cleaned = tuple(dict.fromkeys(str(t).strip() for t in terms if str(t).strip()))
            if not cleaned:
                raise VocabularyError(f"Category {name!r} has no terms")
            entries.append((name, cleaned))
        return cls(entries=tuple(entries))

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.entries)

    def terms(self, category: str) -> tuple[str, ...]:
        for name, terms in self.entries:
            if name == category:
                return terms
        raise KeyError(category)

    def rank(self, category: str) -> int:
        """Declaration index of ``category``; unknown names sort after all known ones."""
        try:
            return self.names.index(category)
        except ValueError:
            return len(self.entries)

    def __iter__(self) -> Iterator[tuple[str, tuple[str, ...]]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, category: object) -> bool:
        return category in self.names


def default_vocabulary() -> Vocabulary:
    """Return the built-in six-category vocabulary."""
    return Vocabulary.from_mapping(DEFAULT_CATEGORIES)


def read_vocabulary_file(path: Path) -> Vocabulary:
    """Read a vocabulary from a YAML, TOML or JSON file.

    The file holds either a top-level mapping of category → terms or
    a ``categories`` key containing one.

    Raises:
        VocabularyError: If the file cannot be read or has the wrong shape.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise VocabularyError(f"Cannot read vocabulary file {path}: {e}") from e

    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            data = tomllib.loads(text)
        elif suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise VocabularyError(f"Invalid vocabulary file {path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("categories"), dict):
        data = data["categories"]
    if not isinstance(data, dict):
        raise VocabularyError(f"Vocabulary file {path} must contain a mapping")

    vocabulary = Vocabulary.from_mapping(data)
    logger.info("Loaded %d categories from %s", len(vocabulary), path)
    return vocabulary


def load_vocabulary(config: DocgraphConfig, root: Path) -> Vocabulary:
    """Resolve the vocabulary for a run, falling back to the default.

    Priority: inline ``[categories]`` table > ``[vocabulary] path`` file
    (relative to ``root``) > built-in default. A missing or invalid source
    logs a warning and falls through to the next one.
    """
    if config.categories:
        try:
            return Vocabulary.from_mapping(config.categories)
        except VocabularyError as e:
            logger.warning("Ignoring inline [categories]: %s", e)

    if config.vocabulary.path:
        path = root / config.vocabulary.path
        if path.is_file():
            try:
                return read_vocabulary_file(path)
            except VocabularyError as e:
                logger.warning("%s; using default vocabulary", e)
        else:
            logger.warning("Vocabulary file not found: %s; using default vocabulary", path)

    return default_vocabulary()
