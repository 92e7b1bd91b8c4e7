"""Tests for the filesystem document source."""

from __future__ import annotations

import os
from pathlib import Path

from vault_index.ingest.sources import FilesystemSource


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_lists_markdown_documents(vault_dir: Path) -> None:
    _write(vault_dir / "a.md", "alpha")
    _write(vault_dir / "sub" / "b.md", "beta")
    _write(vault_dir / ".obsidian" / "workspace.md", "ignored")
    _write(vault_dir / "notes.txt", "not markdown")
    os.utime(vault_dir / "a.md", (1_700_000_000, 1_700_000_000))

    source = FilesystemSource(vault_dir, include="**/*.md", exclude=".obsidian/**,.git/**")
    documents = {document.id: document for document in source.list_all()}

    assert sorted(documents) == ["a.md", "sub/b.md"]
    assert documents["sub/b.md"].title == "b"
    assert documents["a.md"].modified == 1_700_000_000_000
    assert source.read("sub/b.md") == "beta"


def test_exists_and_id_mapping(vault_dir: Path) -> None:
    _write(vault_dir / "a.md", "alpha")
    source = FilesystemSource(vault_dir, exclude=".obsidian/**")

    assert source.exists("a.md") is True
    assert source.exists("missing.md") is False
    assert source.id_for(vault_dir / "a.md") == "a.md"
    assert source.id_for(vault_dir.parent / "outside.md") is None


def test_brace_patterns_expand(vault_dir: Path) -> None:
    _write(vault_dir / "a.md", "alpha")
    _write(vault_dir / "b.markdown", "beta")
    _write(vault_dir / "c.txt", "gamma")
    source = FilesystemSource(vault_dir, include="**/*.{md,markdown}")

    assert sorted(document.id for document in source.list_all()) == ["a.md", "b.markdown"]


def test_missing_vault_lists_nothing(tmp_path: Path) -> None:
    assert FilesystemSource(tmp_path / "nowhere").list_all() == []
