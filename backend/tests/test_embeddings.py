"""Tests for embedding providers."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from vault_index.core.config import Settings
from vault_index.core.errors import ProviderError
from vault_index.ingest.embeddings import (
    GeminiProvider,
    HashedEmbeddingProvider,
    build_provider,
    format_context,
)
from vault_index.ingest.types import ChatMessage


class FakeModels:
    def __init__(self, fail: bool = False, drop_one: bool = False) -> None:
        self.requests: list[dict] = []
        self.fail = fail
        self.drop_one = drop_one

    def embed_content(self, model: str, contents: list[str]):
        self.requests.append({"model": model, "contents": contents})
        if self.fail:
            raise RuntimeError("quota exceeded")
        embeddings = [SimpleNamespace(values=[float(len(text)), 1.0]) for text in contents]
        if self.drop_one:
            embeddings = embeddings[:-1]
        return SimpleNamespace(embeddings=embeddings)


class FakeChats:
    def __init__(self) -> None:
        self.created: dict = {}
        self.sent: list[str] = []

    def create(self, model: str, config, history):
        self.created = {"model": model, "config": config, "history": history}
        return self

    def send_message(self, message: str):
        self.sent.append(message)
        return SimpleNamespace(text="grounded answer")


def _client(**kwargs) -> SimpleNamespace:
    return SimpleNamespace(models=FakeModels(**kwargs), chats=FakeChats())


def test_hashed_provider_is_normalized_and_deterministic() -> None:
    provider = HashedEmbeddingProvider(dim=32)
    vectors = provider.embed_batch(["hello", "world"])
    assert len(vectors) == 2
    assert all(len(vec) == provider.dim for vec in vectors)
    assert abs(sum(value * value for value in vectors[0]) - 1.0) < 1e-6
    assert provider.embed("hello") == vectors[0]
    assert provider.embed("   ") == []


def test_hashed_provider_truncates_input() -> None:
    provider = HashedEmbeddingProvider(dim=32, text_cap=5)
    assert provider.embed("hello world") == provider.embed("hello")


def test_gemini_embed_batch_is_one_request() -> None:
    client = _client()
    provider = GeminiProvider(api_key="k", embedding_model="text-embedding-004", text_cap=4, client=client)

    vectors = provider.embed_batch(["  abcdefgh  ", "xy", "z"])
    assert vectors == [[4.0, 1.0], [2.0, 1.0], [1.0, 1.0]]
    assert client.models.requests == [{"model": "text-embedding-004", "contents": ["abcd", "xy", "z"]}]
    assert provider.embed_batch([]) == []


def test_gemini_failures_raise_provider_error() -> None:
    provider = GeminiProvider(api_key="k", client=_client(fail=True))
    with pytest.raises(ProviderError):
        provider.embed_batch(["a", "b"])
    assert provider.test_connection() is False

    short = GeminiProvider(api_key="k", client=_client(drop_one=True))
    with pytest.raises(ProviderError):
        short.embed_batch(["a", "b"])


def test_gemini_chat_primes_history_with_context() -> None:
    client = _client()
    provider = GeminiProvider(api_key="k", chat_model="gemini-2.0-flash", temperature=0.3, client=client)
    messages = [
        ChatMessage(role="user", content="earlier question"),
        ChatMessage(role="assistant", content="earlier answer"),
        ChatMessage(role="user", content="what about the roadmap?"),
    ]

    reply = provider.chat(messages, ['Note: "plan" (plan.md)\nShip it'])
    assert reply == "grounded answer"
    assert client.chats.sent == ["what about the roadmap?"]
    history = client.chats.created["history"]
    assert [content.role for content in history] == ["user", "model", "user", "model"]
    assert "[Note 1]: Note: \"plan\" (plan.md)" in history[0].parts[0].text
    assert client.chats.created["config"].temperature == 0.3


def test_format_context_numbers_notes() -> None:
    assert format_context(["a", "b"]) == "[Note 1]: a\n\n[Note 2]: b"


def test_build_provider_from_settings() -> None:
    hashed = build_provider(Settings(provider="hashed", embedding_dim=12))
    assert isinstance(hashed, HashedEmbeddingProvider)
    assert hashed.dim == 12

    gemini = build_provider(Settings(provider="gemini", gemini_api_key="key", embedding_model="m"))
    assert isinstance(gemini, GeminiProvider)
    assert gemini.embedding_model == "m"
