"""Filesystem-backed document source."""

from __future__ import annotations

import fnmatch
from pathlib import Path

from vault_index.core.logging import get_logger
from vault_index.models.entities import DocumentInfo

logger = get_logger(__name__)


class FilesystemSource:
    """Expose the markdown files under a vault folder as documents.

    Document ids are paths relative to the vault root in POSIX form, so the
    same vault yields the same ids on every platform.
    """

    def __init__(self, root: Path, include: str | None = "**/*.md", exclude: str | None = None) -> None:
        self.root = root.expanduser().resolve()
        self.include = include
        self.exclude = exclude

    def list_all(self) -> list[DocumentInfo]:
        if not self.root.is_dir():
            logger.warning("Vault folder %s does not exist", self.root)
            return []
        documents: list[DocumentInfo] = []
        for file_path in sorted(self.root.rglob("*")):
            if not file_path.is_file():
                continue
            doc_id = file_path.relative_to(self.root).as_posix()
            if not self.matches(doc_id):
                continue
            try:
                documents.append(self._describe(doc_id, file_path))
            except OSError as exc:
                logger.warning("Could not stat %s: %s", file_path, exc)
        return documents

    def read(self, doc_id: str) -> str:
        return self.path_for(doc_id).read_text(encoding="utf-8", errors="ignore")

    def exists(self, doc_id: str) -> bool:
        return self.path_for(doc_id).is_file() and self.matches(doc_id)

    def info(self, doc_id: str) -> DocumentInfo:
        return self._describe(doc_id, self.path_for(doc_id))

    def path_for(self, doc_id: str) -> Path:
        return self.root / Path(doc_id)

    def id_for(self, path: Path) -> str | None:
        """Map an absolute path back to a document id, if it lives in the vault."""
        try:
            return path.expanduser().resolve().relative_to(self.root).as_posix()
        except ValueError:
            return None

    def matches(self, doc_id: str) -> bool:
        if self.exclude and any(_match(doc_id, pattern) for pattern in _expand_patterns(self.exclude)):
            return False
        if self.include:
            return any(_match(doc_id, pattern) for pattern in _expand_patterns(self.include))
        return True

    @staticmethod
    def _describe(doc_id: str, path: Path) -> DocumentInfo:
        stat = path.stat()
        return DocumentInfo(id=doc_id, title=path.stem, modified=int(stat.st_mtime * 1000))


def _match(doc_id: str, pattern: str) -> bool:
    # A leading slash lets "**/x" patterns also match files at the vault root.
    return fnmatch.fnmatch(doc_id, pattern) or fnmatch.fnmatch(f"/{doc_id}", pattern)


def _expand_patterns(pattern: str) -> list[str]:
    patterns = []
    for part in _split_top_level(pattern):
        part = part.strip()
        if not part:
            continue
        if "{" in part and "}" in part:
            prefix = part[: part.index("{")]
            suffix = part[part.index("}") + 1 :]
            options = part[part.index("{") + 1 : part.index("}")].split(",")
            for option in options:
                patterns.append(f"{prefix}{option}{suffix}")
        else:
            patterns.append(part)
    return patterns or [pattern]


def _split_top_level(pattern: str) -> list[str]:
    """Split on commas that are not inside a brace group."""
    parts: list[str] = []
    depth = 0
    current = ""
    for char in pattern:
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += char
    parts.append(current)
    return parts


__all__ = ["FilesystemSource"]
