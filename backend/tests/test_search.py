"""Tests for query and chat orchestration."""

from __future__ import annotations

import pytest

from vault_index.ingest.types import ChatMessage
from vault_index.models.entities import Entry
from vault_index.retrieval.search import QueryService, build_context
from vault_index.retrieval.vector_store import VectorStore


@pytest.fixture
def service(settings, source, provider) -> QueryService:
    store = VectorStore(settings.store_path, source=source)
    for idx, text in enumerate(["bread and soup recipes", "vector search notes", "garden planning", "travel log"]):
        store.upsert(
            Entry(
                id=f"note{idx}.md",
                embedding=provider.embed(text),
                content=text,
                title=f"note{idx}",
                modified=1_000,
            )
        )
    settings.top_k = 3
    return QueryService(store=store, provider=provider, settings=settings)


def test_query_uses_default_result_count(service: QueryService) -> None:
    assert len(service.query("vector search")) == 3


def test_query_honours_explicit_k(service: QueryService) -> None:
    results = service.query("vector search", k=1)
    assert [result.entry.id for result in results] == ["note1.md"]
    assert service.query("vector search", k=0) == []
    assert service.query("vector search", k=-2) == []


def test_chat_uses_last_user_message(service: QueryService) -> None:
    messages = [
        ChatMessage(role="user", content="travel log"),
        ChatMessage(role="assistant", content="ok"),
        ChatMessage(role="user", content="bread recipes"),
    ]
    reply = service.chat(messages, k=1)
    assert [result.entry.id for result in reply.sources] == ["note0.md"]
    assert 'Note: "note0" (note0.md)' in reply.reply


def test_build_context_format(service: QueryService) -> None:
    results = service.query("garden planning", k=1)
    assert build_context(results) == ['Note: "note2" (note2.md)\ngarden planning']
