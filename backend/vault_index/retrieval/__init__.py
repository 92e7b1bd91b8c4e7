"""Retrieval components."""

from .vector_store import VectorStore, cosine_similarity
from .search import ChatReply, QueryService, build_context

__all__ = [
    "VectorStore",
    "cosine_similarity",
    "QueryService",
    "ChatReply",
    "build_context",
]
