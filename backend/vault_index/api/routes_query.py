"""Query and chat API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from vault_index.api.dependencies import get_app_settings, get_query_service
from vault_index.core.config import Settings
from vault_index.ingest.types import ChatMessage
from vault_index.models.dto import ChatRequest, ChatResponse, NoteResult, QueryRequest, QueryResponse
from vault_index.retrieval.search import QueryService

router = APIRouter()


@router.post("/query", response_model=QueryResponse, summary="Find the notes closest to a query")
def run_query(
    request: QueryRequest,
    service: QueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> QueryResponse:
    results = service.query(request.query, k=request.k)
    return QueryResponse(
        results=[NoteResult.from_result(result, include_content=settings.show_debug_info) for result in results]
    )


@router.post("/chat", response_model=ChatResponse, summary="Answer a conversation using the closest notes")
def run_chat(
    request: ChatRequest,
    service: QueryService = Depends(get_query_service),
) -> ChatResponse:
    messages = [ChatMessage(role=msg.role, content=msg.content) for msg in request.messages]
    answer = service.chat(messages, k=request.k)
    return ChatResponse(
        reply=answer.reply,
        sources=[NoteResult.from_result(result) for result in answer.sources],
    )
