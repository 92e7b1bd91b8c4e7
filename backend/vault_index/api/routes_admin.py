"""Administrative routes for Vault Index."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from vault_index.api.dependencies import get_indexer, get_provider, get_store
from vault_index.core.metrics import metrics_response
from vault_index.ingest.indexer import Indexer
from vault_index.ingest.types import EmbeddingProvider
from vault_index.models.dto import ClearResponse, ProviderHealthResponse, StatsResponse
from vault_index.retrieval.vector_store import VectorStore

router = APIRouter()


@router.get("/stats", response_model=StatsResponse, summary="Vector store statistics")
async def get_stats(
    store: VectorStore = Depends(get_store),
    indexer: Indexer = Depends(get_indexer),
) -> StatsResponse:
    stats = store.stats()
    return StatsResponse(
        total_entries=stats.total_entries,
        last_updated=stats.last_updated,
        indexing=indexer.is_indexing,
        last_run=indexer.last_run.to_dict() if indexer.last_run is not None else None,
    )


@router.post("/clear", response_model=ClearResponse, summary="Remove every stored vector")
async def clear_store(store: VectorStore = Depends(get_store)) -> ClearResponse:
    store.clear()
    return ClearResponse(status="ok")


@router.get("/health/provider", response_model=ProviderHealthResponse, summary="Check the embedding provider")
def provider_health(provider: EmbeddingProvider = Depends(get_provider)) -> ProviderHealthResponse:
    return ProviderHealthResponse(ok=provider.test_connection(), provider=provider.name)


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
