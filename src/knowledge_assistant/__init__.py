"""Knowledge Assistant: Drive indexing, semantic search and meeting briefs."""

__version__ = "0.1.0"
