"""Exception hierarchy shared across Vault Index."""

from __future__ import annotations


class VaultIndexError(Exception):
    """Base class for errors surfaced to callers."""


class StoreWriteError(VaultIndexError):
    """Flushing the vector store to durable storage failed."""


class ProviderError(VaultIndexError):
    """The embedding/generation provider failed for a whole request."""


__all__ = ["VaultIndexError", "StoreWriteError", "ProviderError"]
