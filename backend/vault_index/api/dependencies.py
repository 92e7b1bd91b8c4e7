"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from vault_index.core.config import Settings, get_settings
from vault_index.ingest.embeddings import build_provider
from vault_index.ingest.indexer import Indexer
from vault_index.ingest.sources import FilesystemSource
from vault_index.ingest.types import EmbeddingProvider
from vault_index.ingest.watcher import VaultWatcher
from vault_index.retrieval import QueryService, VectorStore

_SOURCE: FilesystemSource | None = None
_PROVIDER: EmbeddingProvider | None = None
_STORE: VectorStore | None = None
_INDEXER: Indexer | None = None
_QUERY_SERVICE: QueryService | None = None
_WATCHER: VaultWatcher | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_source() -> FilesystemSource:
    global _SOURCE
    if _SOURCE is None:
        settings = get_app_settings()
        _SOURCE = FilesystemSource(settings.vault_path, settings.include_glob, settings.exclude_glob)
    return _SOURCE


def get_provider() -> EmbeddingProvider:
    global _PROVIDER
    if _PROVIDER is None:
        _PROVIDER = build_provider(get_app_settings())
    return _PROVIDER


def get_store() -> VectorStore:
    global _STORE
    if _STORE is None:
        settings = get_app_settings()
        _STORE = VectorStore(
            settings.store_path,
            source=get_source(),
            sample_size=settings.staleness_sample_size,
        )
    return _STORE


def get_indexer() -> Indexer:
    global _INDEXER
    if _INDEXER is None:
        _INDEXER = Indexer(
            store=get_store(),
            source=get_source(),
            provider=get_provider(),
            settings=get_app_settings(),
        )
    return _INDEXER


def get_query_service() -> QueryService:
    global _QUERY_SERVICE
    if _QUERY_SERVICE is None:
        _QUERY_SERVICE = QueryService(
            store=get_store(),
            provider=get_provider(),
            settings=get_app_settings(),
        )
    return _QUERY_SERVICE


def get_watcher() -> VaultWatcher:
    global _WATCHER
    if _WATCHER is None:
        _WATCHER = VaultWatcher(get_indexer(), get_source())
    return _WATCHER


__all__ = [
    "get_app_settings",
    "get_source",
    "get_provider",
    "get_store",
    "get_indexer",
    "get_query_service",
    "get_watcher",
]
