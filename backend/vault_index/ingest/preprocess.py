"""Markdown preprocessing and tag extraction applied before embedding."""

from __future__ import annotations

import re
from typing import Iterable

import yaml

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\n(.*?)\n?---[ \t]*(?:\n|\Z)", re.DOTALL)
_CODE_BLOCK_RE = re.compile(r"```.*?```", re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`[^`\n]+`")
_HEADING_RE = re.compile(r"^#+\s+", re.MULTILINE)
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]+\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_BOLD_STAR_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_STAR_RE = re.compile(r"\*([^*]+)\*")
_BOLD_UNDERSCORE_RE = re.compile(r"__([^_]+)__")
_ITALIC_UNDERSCORE_RE = re.compile(r"_([^_]+)_")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_HASHTAG_RE = re.compile(r"#([\w-]+)")
_INLINE_TAG_LIST_RE = re.compile(r"tags:\s*\[(.*?)\]")

CODE_BLOCK_MARKER = "[code block]"
INLINE_CODE_MARKER = "[inline code]"


def split_front_matter(text: str) -> tuple[str | None, str]:
    """Return the raw front-matter block (if any) and the remaining body."""
    text = text.replace("\r\n", "\n")
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return None, text
    return match.group(1), text[match.end() :]


def preprocess_content(text: str, title: str, doc_id: str) -> str:
    """Turn raw markdown into the plain text that gets embedded.

    The title and path header is always present, so a note with nothing but
    front matter still gets an entry and a watermark in the store.
    """
    _, content = split_front_matter(text)
    content = _CODE_BLOCK_RE.sub(CODE_BLOCK_MARKER, content)
    content = _INLINE_CODE_RE.sub(INLINE_CODE_MARKER, content)
    content = _HEADING_RE.sub("", content)
    content = _IMAGE_RE.sub(r"[image: \1]", content)
    content = _LINK_RE.sub(r"\1", content)
    content = _BOLD_STAR_RE.sub(r"\1", content)
    content = _ITALIC_STAR_RE.sub(r"\1", content)
    content = _BOLD_UNDERSCORE_RE.sub(r"\1", content)
    content = _ITALIC_UNDERSCORE_RE.sub(r"\1", content)
    content = f"Title: {title}\nPath: {doc_id}\n\n{content}"
    content = _BLANK_RUN_RE.sub("\n\n", content)
    return content.strip()


def extract_tags(processed: str, raw: str | None = None) -> list[str]:
    """Collect hashtags from processed text and front-matter tags from raw text."""
    tags = [match for match in _HASHTAG_RE.findall(processed)]
    if raw is not None:
        front_matter, _ = split_front_matter(raw)
        if front_matter:
            tags.extend(_front_matter_tags(front_matter))
    return _dedupe(tags)


def _front_matter_tags(front_matter: str) -> list[str]:
    try:
        parsed = yaml.safe_load(front_matter)
    except yaml.YAMLError:
        parsed = None
    if isinstance(parsed, dict):
        value = parsed.get("tags")
        if isinstance(value, list):
            return _clean_tags(str(item) for item in value if item is not None)
        if isinstance(value, str):
            return _clean_tags(value.split(","))
        return []
    # Broken YAML still gets the inline list form.
    match = _INLINE_TAG_LIST_RE.search(front_matter)
    if match is None:
        return []
    return _clean_tags(match.group(1).split(","))


def _clean_tags(values: Iterable[str]) -> list[str]:
    cleaned = []
    for value in values:
        tag = value.strip().replace('"', "").replace("'", "")
        if tag:
            cleaned.append(tag)
    return cleaned


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


__all__ = [
    "CODE_BLOCK_MARKER",
    "INLINE_CODE_MARKER",
    "split_front_matter",
    "preprocess_content",
    "extract_tags",
]
