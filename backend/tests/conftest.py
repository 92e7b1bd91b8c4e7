"""Test fixtures for Vault Index."""

from __future__ import annotations

import sys
from pathlib import Path, PurePosixPath
from typing import Callable, Sequence

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from vault_index.core.config import Settings  # noqa: E402
from vault_index.core.errors import ProviderError  # noqa: E402
from vault_index.ingest.embeddings import HashedEmbeddingProvider  # noqa: E402
from vault_index.models.entities import DocumentInfo  # noqa: E402


class MemorySource:
    """In-memory document source with switchable read failures."""

    def __init__(self) -> None:
        self.docs: dict[str, tuple[str, int]] = {}
        self.failing: set[str] = set()

    def add(self, doc_id: str, text: str, modified: int = 1_000) -> None:
        self.docs[doc_id] = (text, modified)

    def delete(self, doc_id: str) -> None:
        self.docs.pop(doc_id, None)

    def touch(self, doc_id: str, modified: int) -> None:
        text, _ = self.docs[doc_id]
        self.docs[doc_id] = (text, modified)

    def list_all(self) -> list[DocumentInfo]:
        return [
            DocumentInfo(id=doc_id, title=PurePosixPath(doc_id).stem, modified=modified)
            for doc_id, (_, modified) in self.docs.items()
        ]

    def read(self, doc_id: str) -> str:
        if doc_id in self.failing:
            raise OSError(f"cannot read {doc_id}")
        return self.docs[doc_id][0]

    def exists(self, doc_id: str) -> bool:
        return doc_id in self.docs


class RecordingProvider(HashedEmbeddingProvider):
    """Hashed provider that records batches and can fail chosen ones."""

    def __init__(self, fail_batches: Sequence[int] = ()) -> None:
        super().__init__(dim=64)
        self.calls: list[list[str]] = []
        self.fail_batches = set(fail_batches)
        self.on_batch: Callable[[], None] | None = None

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        number = len(self.calls)
        self.calls.append(list(texts))
        if self.on_batch is not None:
            self.on_batch()
        if number in self.fail_batches:
            raise ProviderError(f"batch {number} unavailable")
        return super().embed_batch(texts)


def _reset_singletons() -> None:
    from vault_index.api import dependencies as deps
    from vault_index.core.config import get_settings

    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._SOURCE = None
    deps._PROVIDER = None
    deps._STORE = None
    deps._INDEXER = None
    deps._QUERY_SERVICE = None
    deps._WATCHER = None


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    vault = tmp_path / "vault"
    vault.mkdir()
    monkeypatch.setenv("VIDX_VAULT_PATH", str(vault))
    monkeypatch.setenv("VIDX_STORE_PATH", str(tmp_path / "store" / "vectors.json"))
    monkeypatch.setenv("VIDX_PROVIDER", "hashed")
    monkeypatch.setenv("VIDX_BATCH_DELAY_MS", "0")
    monkeypatch.setenv("VIDX_AUTO_INDEX", "false")
    monkeypatch.setenv("VIDX_WATCH", "false")
    monkeypatch.delenv("VIDX_CONFIG", raising=False)
    monkeypatch.delenv("VIDX_GEMINI_API_KEY", raising=False)
    _reset_singletons()
    yield
    _reset_singletons()


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    return tmp_path / "vault"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        vault_path=tmp_path / "vault",
        store_path=tmp_path / "store" / "vectors.json",
        provider="hashed",
        embedding_dim=64,
        batch_delay_ms=0,
    )


@pytest.fixture
def source() -> MemorySource:
    return MemorySource()


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def make_provider() -> Callable[..., RecordingProvider]:
    return RecordingProvider
