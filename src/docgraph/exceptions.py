"""Custom exception hierarchy for docgraph."""

__all__ = [
    "ConfigError",
    "DocgraphError",
    "ExportError",
    "ParseError",
    "PipelineError",
    "ProjectError",
    "SearchError",
    "SectionError",
    "StoreError",
    "VocabularyError",
]


class DocgraphError(Exception):
    """Base exception for all docgraph errors."""


class ConfigError(DocgraphError):
    """Raised when configuration loading or validation fails."""


class ProjectError(DocgraphError):
    """Raised when project initialization or discovery fails."""


class ParseError(DocgraphError):
    """Raised when a source document cannot be read."""


class SectionError(DocgraphError):
    """Raised when a document cannot be split into sections."""


class VocabularyError(DocgraphError):
    """Raised when a category vocabulary is structurally invalid."""


class StoreError(DocgraphError):
    """Raised when index store operations fail."""


class SearchError(DocgraphError):
    """Raised when a full-text query cannot be built or executed."""


class ExportError(DocgraphError):
    """Raised when the graph payload cannot be produced."""


class PipelineError(DocgraphError):
    """Raised when an indexing run fails."""
