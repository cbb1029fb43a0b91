"""docgraph: markdown documentation indexer and relationship graph builder."""

__version__ = "0.1.0"
