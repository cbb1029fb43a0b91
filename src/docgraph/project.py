"""Project manager for docgraph.

Handles project initialization, status reporting, and project root discovery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from docgraph.config import DocgraphConfig, default_config, load_config, save_config
from docgraph.exceptions import ConfigError
from docgraph.store import SqliteIndexStore

if TYPE_CHECKING:
    from docgraph.store.base import BaseIndexStore

__all__ = [
    "CONFIG_FILE",
    "PROJECT_DIR",
    "ProjectManager",
    "ProjectStatus",
]

logger = logging.getLogger(__name__)

PROJECT_DIR = ".docgraph"
CONFIG_FILE = "config.toml"


@dataclass
class ProjectStatus:
    """Summary of the current project state."""

    initialized: bool
    root: Path
    document_count: int
    section_count: int
    relationship_count: int
    category_count: int
    config: DocgraphConfig | None


class ProjectManager:
    """Manages docgraph project lifecycle."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = root or Path.cwd()

    @property
    def project_dir(self) -> Path:
        return self.root / PROJECT_DIR

    @property
    def config_path(self) -> Path:
        return self.project_dir / CONFIG_FILE

    @property
    def is_initialized(self) -> bool:
        return self.project_dir.is_dir() and self.config_path.exists()

    def db_path(self, config: DocgraphConfig) -> Path:
        return self.project_dir / config.index.db_file

    def docs_path(self, config: DocgraphConfig) -> Path:
        return self.root / config.source.docs_dir

    def open_store(self, config: DocgraphConfig) -> BaseIndexStore:
        """Open the configured index store for this project.

        Raises:
            ConfigError: If ``[index] backend`` names an unsupported store.
        """
        if config.index.backend != "sqlite":
            msg = f"Unsupported index backend '{config.index.backend}'. Available: ['sqlite']"
            raise ConfigError(msg)
        return SqliteIndexStore(self.db_path(config))

    def init(self, name: str = "", docs_dir: str = "") -> Path:
        """Initialize a new docgraph project.

        Creates the .docgraph/ directory and a default config. Safe to call
        on an already-initialized project (idempotent).

        Returns the .docgraph/ directory path.
        """
        self.project_dir.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            config = load_config(self.config_path)
            logger.info("Existing config found at %s", self.config_path)
        else:
            config = default_config()

        if name:
            config.project.name = name
        elif not config.project.name:
            config.project.name = self.root.name
        if docs_dir:
            config.source.docs_dir = docs_dir

        docs_path = self.docs_path(config)
        if not docs_path.is_dir():
            logger.warning("Docs directory %s does not exist yet", docs_path)

        save_config(config, self.config_path)

        logger.info("Initialized docgraph project at %s", self.project_dir)
        return self.project_dir

    def status(self) -> ProjectStatus:
        """Get current project status.

        Counts are read from the index database; a project that has never
        been built reports zeros.
        """
        if not self.is_initialized:
            return ProjectStatus(
                initialized=False,
                root=self.root,
                document_count=0,
                section_count=0,
                relationship_count=0,
                category_count=0,
                config=None,
            )

        config = load_config(self.config_path)
        counts: dict[str, int] = {}
        if self.db_path(config).exists():
            store = self.open_store(config)
            try:
                counts = store.counts()
            finally:
                store.close()

        return ProjectStatus(
            initialized=True,
            root=self.root,
            document_count=counts.get("documents", 0),
            section_count=counts.get("sections", 0),
            relationship_count=counts.get("relationships", 0),
            category_count=counts.get("keywords", 0),
            config=config,
        )

    @staticmethod
    def find_project_root(start: Path | None = None) -> Path | None:
        """Walk up from start directory to find a .docgraph/ directory.

        Returns the project root (parent of .docgraph/) or None if not found.
        """
        current = (start or Path.cwd()).resolve()
        while True:
            if (current / PROJECT_DIR).is_dir():
                return current
            parent = current.parent
            if parent == current:
                return None
            current = parent
