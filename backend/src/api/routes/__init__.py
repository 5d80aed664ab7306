"""HTTP API route handlers."""

from . import graph, links, notes, system, topics

__all__ = ["topics", "notes", "links", "graph", "system"]
