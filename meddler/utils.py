"""Utility helpers for slug normalization, identifiers and path handling."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

_DOUBLE_HYPHEN = re.compile(r"--+")
_POSSESSIVE = re.compile(r"-s-")
_SLUG_DISALLOWED = re.compile(r"[^a-z0-9-]")
_EDGE_HYPHENS = re.compile(r"^-+|-+$")


def _normalize_once(raw: str) -> str:
    slug = _DOUBLE_HYPHEN.sub("-", raw)
    slug = _POSSESSIVE.sub("s-", slug)
    slug = slug.lower()
    slug = _SLUG_DISALLOWED.sub("", slug)
    return _EDGE_HYPHENS.sub("", slug)


def normalize_slug(raw: str) -> str:
    """Turn an exported title segment into a URL slug.

    The order matters: double hyphens encode punctuation and are collapsed
    before the ``-s-`` possessive artifact is repaired, and both happen
    before case folding. The pass repeats until the slug is stable, since
    stripping characters can expose new hyphen runs. May return an empty
    string.
    """
    slug = _normalize_once(raw)
    while True:
        again = _normalize_once(slug)
        if again == slug:
            return slug
        slug = again


def split_trailing_id(value: str) -> tuple:
    """Split ``title-words-<id>`` into (``title-words``, ``id``).

    Without a hyphen the whole value is both the slug and the id.
    """
    head, sep, tail = value.rpartition("-")
    if not sep:
        return value, value
    return head, tail


def medium_id_from_url(url: str) -> str:
    """Return the identifier suffix of a post URL path, or an empty string."""
    last_segment = url.split("/")[-1]
    head, sep, tail = last_segment.rpartition("-")
    return tail if sep else ""


def list_html_files(directory: Path) -> List[Path]:
    """Return the ``.html`` files of a directory sorted by filename."""
    if not directory.is_dir():
        return []
    return sorted(
        (p for p in directory.iterdir() if p.is_file() and p.name.endswith(".html")),
        key=lambda p: p.name,
    )


def read_html_files(directory: Path) -> List[str]:
    """Read every paginated HTML file of a dataset directory in filename order."""
    return [p.read_text(encoding="utf-8") for p in list_html_files(directory)]
