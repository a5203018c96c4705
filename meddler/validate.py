"""Export validation and input path resolution."""

from __future__ import annotations

import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ExportError
from .utils import list_html_files

logger = logging.getLogger("meddler")

README = "README.html"
EXTRACT_DIRNAME = ".meddler-extracted"
SUPPLEMENTARY_DIRS = ("profile", "bookmarks", "claps", "lists", "partner-program", "interests")

_ARCHIVE_OWNER = re.compile(r"Archive for ([^<]+)")


@dataclass
class ValidationResult:
    valid: bool
    message: str
    export_path: Path
    warning: Optional[str] = None
    author_name: Optional[str] = None
    published_count: int = 0
    draft_count: int = 0


def validate_export(export_path: Path) -> ValidationResult:
    """Check that a directory looks like an exported archive and count its posts."""
    result = ValidationResult(valid=False, message="", export_path=export_path)

    readme = export_path / README
    if not readme.is_file():
        result.message = f"This doesn't look like an export. No {README} found."
        return result

    try:
        match = _ARCHIVE_OWNER.search(readme.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Could not read %s: %s", readme, exc)
        match = None
    if match:
        result.author_name = match.group(1).strip()

    posts_dir = export_path / "posts"
    if not posts_dir.is_dir():
        if any((export_path / name).exists() for name in SUPPLEMENTARY_DIRS):
            result.valid = True
            result.warning = "No posts/ directory found. Only supplementary data will be processed."
            result.message = "Valid export (supplementary data only)."
        else:
            result.message = "This export doesn't contain any posts or supplementary data."
        return result

    post_files = list_html_files(posts_dir)
    if not post_files:
        result.warning = "The posts/ directory is empty. Only supplementary data will be processed."
    for path in post_files:
        if path.name.startswith("draft_"):
            result.draft_count += 1
        else:
            result.published_count += 1

    result.valid = True
    result.message = "Valid export."
    return result


def _find_export_root(directory: Path) -> Optional[Path]:
    if (directory / README).is_file():
        return directory
    for child in sorted(directory.iterdir()):
        if child.is_dir() and (child / README).is_file():
            return child
    return None


def resolve_input_path(input_path: Path) -> Path:
    """Return the export root for a directory or ``.zip`` archive.

    Archives are extracted next to themselves into ``.meddler-extracted``.
    """
    resolved = input_path.expanduser().resolve()
    if not resolved.exists():
        raise ExportError(f"Input path not found: {resolved}")

    if resolved.is_dir():
        return _find_export_root(resolved) or resolved

    if resolved.suffix.lower() == ".zip":
        target = resolved.parent / EXTRACT_DIRNAME
        logger.info("Extracting %s to %s", resolved, target)
        try:
            with zipfile.ZipFile(resolved) as archive:
                archive.extractall(target)
        except (zipfile.BadZipFile, OSError) as exc:
            raise ExportError(f"Failed to extract {resolved}: {exc}") from exc
        return _find_export_root(target) or target

    raise ExportError(f"Unsupported input: {resolved} (expected a directory or .zip file)")
