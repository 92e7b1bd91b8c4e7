"""Query orchestration: query text to ranked notes and grounded replies."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Sequence

from vault_index.core.config import Settings
from vault_index.core.errors import ProviderError
from vault_index.core.logging import get_logger
from vault_index.ingest.types import ChatMessage, EmbeddingProvider
from vault_index.models.entities import SearchResult
from vault_index.retrieval.vector_store import VectorStore

logger = get_logger(__name__)


@dataclass(slots=True)
class ChatReply:
    reply: str
    sources: list[SearchResult]


class QueryService:
    """Embeds query text and searches the store; optionally asks for a reply."""

    def __init__(self, store: VectorStore, provider: EmbeddingProvider, settings: Settings) -> None:
        self.store = store
        self.provider = provider
        self.settings = settings

    def query(self, query_text: str, k: int | None = None) -> list[SearchResult]:
        start_time = time.perf_counter()
        top_k = self.settings.top_k if k is None else k
        try:
            vector = self.provider.embed(query_text)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"Failed to embed query: {exc}") from exc
        results = self.store.search(vector, top_k)
        logger.debug(
            "Query returned %s results in %.3fs",
            len(results),
            time.perf_counter() - start_time,
        )
        return results

    def chat(self, messages: Sequence[ChatMessage], k: int | None = None) -> ChatReply:
        question = next((msg.content for msg in reversed(messages) if msg.role == "user"), "")
        results = self.query(question, k) if question.strip() else []
        context = build_context(results)
        try:
            reply = self.provider.chat(messages, context)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"Chat failed: {exc}") from exc
        return ChatReply(reply=reply, sources=results)


def build_context(results: Sequence[SearchResult]) -> list[str]:
    """Render search hits as context strings for the generation provider."""
    return [f'Note: "{result.entry.title}" ({result.entry.id})\n{result.entry.content}' for result in results]


__all__ = ["QueryService", "ChatReply", "build_context"]
