"""Configuration system for docgraph.

Manages project configuration via .docgraph/config.toml with typed dataclasses
and sensible defaults for all values.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

import tomli_w

from docgraph.exceptions import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

_T = TypeVar("_T")

__all__ = [
    "DocgraphConfig",
    "IndexConfig",
    "ProjectConfig",
    "SearchConfig",
    "ServerConfig",
    "SourceConfig",
    "VocabularyConfig",
    "default_config",
    "load_config",
    "save_config",
]

logger = logging.getLogger(__name__)


@dataclass
class ProjectConfig:
    """[project] section."""

    name: str = ""
    description: str = ""


@dataclass
class SourceConfig:
    """[source] section."""

    docs_dir: str = "docs"
    extension: str = ".md"


@dataclass
class IndexConfig:
    """[index] section."""

    backend: str = "sqlite"
    db_file: str = "docs.db"
    category_doc_limit: int = 10
    category_section_limit: int = 5


@dataclass
class VocabularyConfig:
    """[vocabulary] section."""

    path: str = ""


@dataclass
class SearchConfig:
    """[search] section."""

    limit: int = 10
    exact: bool = False


@dataclass
class ServerConfig:
    """[server] section."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class DocgraphConfig:
    """Root configuration combining all sections.

    ``categories`` holds an optional inline vocabulary (``[categories]``
    table mapping category name to a list of terms).
    """

    project: ProjectConfig = field(default_factory=ProjectConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    vocabulary: VocabularyConfig = field(default_factory=VocabularyConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    categories: dict[str, list[str]] = field(default_factory=dict)


_SECTIONS: dict[str, type] = {
    "project": ProjectConfig,
    "source": SourceConfig,
    "index": IndexConfig,
    "vocabulary": VocabularyConfig,
    "search": SearchConfig,
    "server": ServerConfig,
}


def default_config() -> DocgraphConfig:
    """Return a config with all default values."""
    return DocgraphConfig()


def _section_to_dict(obj: object) -> dict[str, object]:
    """Convert a dataclass instance to a dict for TOML serialization."""
    return dict(vars(obj))


def _config_to_dict(config: DocgraphConfig) -> dict[str, object]:
    """Convert DocgraphConfig to a nested dict suitable for TOML serialization."""
    result: dict[str, object] = {}
    for section_name in _SECTIONS:
        result[section_name] = _section_to_dict(getattr(config, section_name))
    if config.categories:
        result["categories"] = {k: list(v) for k, v in config.categories.items()}
    return result


def save_config(config: DocgraphConfig, path: Path) -> None:
    """Save configuration to a TOML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = _config_to_dict(config)
    try:
        with path.open("wb") as f:
            tomli_w.dump(data, f)
        logger.info("Saved config to %s", path)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise ConfigError(f"Failed to save config to {path}: {e}") from e


def _load_section(cls: type[_T], data: dict[str, object]) -> _T:
    """Load a dataclass section from a dict, ignoring unknown keys."""
    known_fields = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
    filtered = {k: v for k, v in data.items() if k in known_fields}
    return cls(**filtered)


def _load_categories(data: object) -> dict[str, list[str]]:
    """Validate the inline ``[categories]`` table."""
    if not isinstance(data, dict):
        raise ConfigError("[categories] must be a table of category = [terms]")
    categories: dict[str, list[str]] = {}
    for name, terms in data.items():
        if isinstance(terms, str):
            terms = [terms]
        if not isinstance(terms, list):
            raise ConfigError(f"Terms for category {name!r} must be a list of strings")
        categories[str(name)] = [str(t) for t in terms]
    return categories


def load_config(path: Path) -> DocgraphConfig:
    """Load configuration from a TOML file.

    Missing sections or keys get default values.
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_bytes()
        data = tomllib.loads(raw.decode("utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    config = DocgraphConfig()
    for name, cls in _SECTIONS.items():
        if name in data:
            setattr(config, name, _load_section(cls, data[name]))

    if "categories" in data:
        config.categories = _load_categories(data["categories"])

    logger.info("Loaded config from %s", path)
    return config
