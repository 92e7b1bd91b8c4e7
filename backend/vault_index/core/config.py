"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "VIDX_"
DEFAULT_CONFIG_PATH = Path("~/.config/vault-index/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("vault", "path"): "vault_path",
    ("vault", "include_glob"): "include_glob",
    ("vault", "exclude_glob"): "exclude_glob",
    ("vault", "watch"): "watch",
    ("storage", "path"): "store_path",
    ("provider", "name"): "provider",
    ("provider", "api_key"): "gemini_api_key",
    ("provider", "chat_model"): "chat_model",
    ("provider", "embedding_model"): "embedding_model",
    ("provider", "embedding_dim"): "embedding_dim",
    ("provider", "temperature"): "temperature",
    ("indexing", "batch_size"): "batch_size",
    ("indexing", "batch_delay_ms"): "batch_delay_ms",
    ("indexing", "content_cap"): "content_cap",
    ("indexing", "embed_text_cap"): "embed_text_cap",
    ("indexing", "staleness_sample_size"): "staleness_sample_size",
    ("indexing", "auto_index"): "auto_index",
    ("retrieval", "top_k"): "top_k",
    ("retrieval", "show_debug_info"): "show_debug_info",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    vault_path: Path = Field(default=Path.cwd())
    include_glob: str = "**/*.md"
    exclude_glob: str = ".obsidian/**,.git/**,.trash/**"
    watch: bool = False
    store_path: Path = Field(default=Path.home() / ".vault-index" / "vectors.json")
    provider: Literal["gemini", "hashed"] = "gemini"
    gemini_api_key: str | None = None
    chat_model: str = "gemini-2.0-flash"
    embedding_model: str = "text-embedding-004"
    embedding_dim: int = Field(default=384, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    top_k: int = Field(default=5, ge=1, le=20)
    batch_size: int = Field(default=5, ge=1)
    batch_delay_ms: int = Field(default=200, ge=0)
    content_cap: int = Field(default=3000, ge=1)
    embed_text_cap: int = Field(default=10000, ge=1)
    staleness_sample_size: int = 10
    auto_index: bool = True
    show_debug_info: bool = False

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("vault_path", "store_path", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("path settings must be a path or string")

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with VIDX_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
