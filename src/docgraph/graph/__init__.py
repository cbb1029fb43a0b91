"""Relationship synthesis and graph export."""

from docgraph.graph.export import GraphExporter
from docgraph.graph.relationships import RelationshipSynthesizer, find_internal_links

__all__ = ["GraphExporter", "RelationshipSynthesizer", "find_internal_links"]
