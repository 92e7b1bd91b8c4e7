"""Indexing API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from vault_index.api.dependencies import get_indexer
from vault_index.ingest.indexer import Indexer
from vault_index.models.dto import IndexRequest, IndexResponse

router = APIRouter()


@router.post("", response_model=IndexResponse, summary="Run a full or incremental index")
def trigger_index(
    request: IndexRequest,
    indexer: Indexer = Depends(get_indexer),
) -> IndexResponse:
    stats = indexer.run(request.mode)
    if stats.rejected:
        return IndexResponse(indexed=0, rejected=True)
    return IndexResponse(indexed=stats.processed, stats=stats.to_dict())
