"""Embedding and generation providers."""

from __future__ import annotations

import hashlib
import logging
import math
import re
from typing import Any, Sequence

from vault_index.core.config import Settings
from vault_index.core.errors import ProviderError
from vault_index.ingest.types import ChatMessage, EmbeddingProvider

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")

SYSTEM_PRIMER = (
    "You are a helpful assistant that answers questions about the user's notes.\n"
    "Use the following relevant note excerpts to answer the user's question.\n"
    "Always cite which notes you're referencing when providing information. "
    "If you are not using notes then say that you are not.\n\n"
    "Relevant notes context:\n{context}\n\n"
    "Now answer the user's question based on the above context."
)
PRIMER_ACK = "I understand. I'll answer questions based on the provided note excerpts and cite my sources."


def clip_text(text: str, cap: int) -> str:
    """Trim and truncate text to what a provider accepts."""
    return text.strip()[:cap]


def format_context(context: Sequence[str]) -> str:
    return "\n\n".join(f"[Note {idx + 1}]: {note}" for idx, note in enumerate(context))


class HashedEmbeddingProvider:
    """Lightweight hashed embedding model with deterministic output.

    Needs no network access; replies to chat requests by listing the notes it
    was given, which keeps the whole pipeline usable offline.
    """

    name = "hashed"

    def __init__(self, dim: int = 384, text_cap: int = 10000) -> None:
        self._dim = dim
        self.text_cap = text_cap

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        clean = clip_text(text, self.text_cap)
        if not clean:
            return []
        vector = [0.0] * self._dim
        for token in _tokenize(clean):
            vector[_hash_token(token, self._dim)] += 1.0
        _normalize(vector)
        return vector

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        return [self.embed(text) for text in texts]

    def chat(self, messages: Sequence[ChatMessage], context: Sequence[str]) -> str:
        if not messages:
            raise ProviderError("Chat needs at least one message")
        if not context:
            return "I could not find any notes related to your question, so I am not using notes."
        titles = [note.splitlines()[0] for note in context if note.strip()]
        return "Relevant notes:\n" + "\n".join(f"- {title}" for title in titles)

    def test_connection(self) -> bool:
        return len(self.embed("test")) > 0


class GeminiProvider:
    """Provider backed by Google Gemini through the google-genai SDK."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        embedding_model: str = "text-embedding-004",
        chat_model: str = "gemini-2.0-flash",
        temperature: float = 0.7,
        text_cap: int = 10000,
        client: Any = None,
    ) -> None:
        self._api_key = api_key
        self.embedding_model = embedding_model
        self.chat_model = chat_model
        self.temperature = temperature
        self.text_cap = text_cap
        self._client = client

    def _get_client(self) -> Any:
        """Get or create the Gemini client."""
        if self._client is None:
            try:
                from google import genai
            except ImportError as exc:
                raise ImportError(
                    "google-genai package is required for Gemini provider. "
                    "Install with: pip install google-genai"
                ) from exc
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def embed(self, text: str) -> list[float]:
        clean = clip_text(text, self.text_cap)
        if not clean:
            return []
        return self._embed_contents([clean])[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed a batch with one coalesced request; order follows ``texts``."""
        if not texts:
            return []
        return self._embed_contents([clip_text(text, self.text_cap) for text in texts])

    def _embed_contents(self, contents: list[str]) -> list[list[float]]:
        client = self._get_client()
        try:
            result = client.models.embed_content(model=self.embedding_model, contents=contents)
        except Exception as exc:
            logger.debug("Gemini embedding failed: %s: %s", type(exc).__name__, exc)
            raise ProviderError(f"Failed to generate embeddings: {exc}") from exc
        vectors = [list(embedding.values or []) for embedding in (result.embeddings or [])]
        if len(vectors) != len(contents):
            raise ProviderError(f"Expected {len(contents)} embeddings, provider returned {len(vectors)}")
        return vectors

    def chat(self, messages: Sequence[ChatMessage], context: Sequence[str]) -> str:
        if not messages:
            raise ProviderError("Chat needs at least one message")
        from google.genai import types

        history = [
            types.Content(role="user" if msg.role == "user" else "model", parts=[types.Part(text=msg.content)])
            for msg in messages[:-1]
        ]
        if context:
            primer = SYSTEM_PRIMER.format(context=format_context(context))
            history[:0] = [
                types.Content(role="user", parts=[types.Part(text=primer)]),
                types.Content(role="model", parts=[types.Part(text=PRIMER_ACK)]),
            ]
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            top_k=40,
            top_p=0.95,
            max_output_tokens=8192,
        )
        client = self._get_client()
        try:
            session = client.chats.create(model=self.chat_model, config=config, history=history)
            response = session.send_message(messages[-1].content)
        except Exception as exc:
            logger.debug("Gemini chat failed: %s: %s", type(exc).__name__, exc)
            raise ProviderError(f"Chat failed: {exc}") from exc
        return response.text or ""

    def test_connection(self) -> bool:
        try:
            return len(self.embed("test")) > 0
        except (ProviderError, ImportError) as exc:
            logger.warning("Connection test failed: %s", exc)
            return False


def build_provider(settings: Settings) -> EmbeddingProvider:
    """Instantiate the provider named in settings."""
    if settings.provider == "hashed":
        return HashedEmbeddingProvider(dim=settings.embedding_dim, text_cap=settings.embed_text_cap)
    if not settings.gemini_api_key:
        logger.warning("Gemini API key not configured; provider calls will fail until it is set")
    return GeminiProvider(
        api_key=settings.gemini_api_key or "",
        embedding_model=settings.embedding_model,
        chat_model=settings.chat_model,
        temperature=settings.temperature,
        text_cap=settings.embed_text_cap,
    )


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "HashedEmbeddingProvider",
    "GeminiProvider",
    "build_provider",
    "clip_text",
    "format_context",
]
