"""FastAPI application setup for Vault Index."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vault_index.api.dependencies import (
    get_app_settings,
    get_indexer,
    get_provider,
    get_query_service,
    get_source,
    get_store,
    get_watcher,
)
from vault_index.api.routes_admin import router as admin_router
from vault_index.api.routes_index import router as index_router
from vault_index.api.routes_query import router as query_router
from vault_index.core.errors import ProviderError, StoreWriteError, VaultIndexError
from vault_index.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Vault Index",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5174",
        "http://localhost:5174",
        "app://obsidian.md",
    ],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(index_router, prefix="/index", tags=["index"])
app.include_router(query_router, prefix="", tags=["query"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.exception_handler(StoreWriteError)
async def store_write_error_handler(request: Request, exc: StoreWriteError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons, catch up on vault changes, start watching."""
    settings = get_app_settings()
    get_source()
    get_provider()
    store = get_store()
    indexer = get_indexer()
    get_query_service()

    if settings.auto_index and store.needs_full_reindex():
        logger.info("Auto-indexing vault at %s", settings.vault_path)
        try:
            indexer.index_all()
        except VaultIndexError as exc:
            logger.error("Auto-indexing failed: %s", exc)
    if settings.watch:
        get_watcher().start()


@app.on_event("shutdown")
async def shutdown() -> None:
    if get_app_settings().watch:
        get_watcher().stop()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
