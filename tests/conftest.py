"""Shared fixtures for docgraph tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from docgraph.categorize import KeywordCategorizer, default_vocabulary
from docgraph.config import DocgraphConfig, save_config
from docgraph.graph import RelationshipSynthesizer
from docgraph.ingest import MarkdownParser
from docgraph.pipeline import Indexer
from docgraph.project import CONFIG_FILE, PROJECT_DIR
from docgraph.section import MarkdownSectionParser
from docgraph.store import SqliteIndexStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from docgraph.categorize import Vocabulary

GUIDE_MD = "# Guide\n## Setup\ncontent\n## Usage\ncontent\n"

INTEGRATION_MD = """\
# Payments API

The payments api exposes a REST endpoint and a webhook.

## Authentication

Every api request needs a token.
"""

WEBHOOKS_MD = """\
---
tags: [integration, events]
---
# Webhooks

Webhook callbacks reach your endpoint through the api gateway.

## Retries

See the [payments guide](payments.md) and [the site](https://example.com/x.md).
"""

USERS_MD = """\
# Accounts

A user profile belongs to one customer account.

## Roles

Each user has a role and permission set.
"""


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """Undo handlers installed by ``docgraph --verbose`` between tests."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def vocabulary() -> Vocabulary:
    return default_vocabulary()


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """A small docs tree with two Integration documents and one User document."""
    docs = tmp_path / "docs"
    (docs / "api").mkdir(parents=True)
    (docs / "guide.md").write_text(GUIDE_MD, encoding="utf-8")
    (docs / "api" / "payments.md").write_text(INTEGRATION_MD, encoding="utf-8")
    (docs / "api" / "webhooks.md").write_text(WEBHOOKS_MD, encoding="utf-8")
    (docs / "users.md").write_text(USERS_MD, encoding="utf-8")
    return docs


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SqliteIndexStore]:
    s = SqliteIndexStore(tmp_path / "index.db")
    yield s
    s.close()


@pytest.fixture
def indexer(store: SqliteIndexStore, vocabulary: Vocabulary) -> Indexer:
    return Indexer(
        parser=MarkdownParser(),
        section_parser=MarkdownSectionParser(),
        categorizer=KeywordCategorizer(vocabulary),
        synthesizer=RelationshipSynthesizer(),
        store=store,
        config=DocgraphConfig(),
    )


@pytest.fixture
def initialized_project(tmp_path: Path, docs_dir: Path) -> Path:
    """A temporary project with .docgraph/ initialized and a docs tree."""
    project = tmp_path / PROJECT_DIR
    project.mkdir()

    config = DocgraphConfig()
    config.project.name = "test-project"
    save_config(config, project / CONFIG_FILE)

    return tmp_path
