"""Clients for Google APIs and the Qdrant vector store."""
