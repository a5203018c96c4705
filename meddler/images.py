"""Image downloading and validation utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import requests
from filetype import guess

from .models import ImageRef

logger = logging.getLogger("meddler")

DEFAULT_TIMEOUT = 30.0


@dataclass
class DownloadResult:
    """Outcome of fetching one distinct image URL."""

    url: str
    destinations: List[Path]
    ok: bool
    error: Optional[str] = None


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect the payload type using filetype; returns the MIME type or None."""
    kind = guess(data)
    return kind.mime if kind else None


def group_images(images: Sequence[ImageRef]) -> Dict[str, List[str]]:
    """Map each localized source URL to its distinct local paths, in order."""
    groups: Dict[str, List[str]] = {}
    for image in images:
        if not image.local_path:
            continue
        paths = groups.setdefault(image.original_url, [])
        if image.local_path not in paths:
            paths.append(image.local_path)
    return groups


def download_image(
    session: requests.Session,
    url: str,
    destinations: Sequence[Path],
    timeout: float = DEFAULT_TIMEOUT,
) -> DownloadResult:
    """Fetch a single image once and write it to every path in ``destinations``."""
    destinations = list(destinations)
    try:
        resp = session.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Failed to fetch image %s: %s", url, exc)
        return DownloadResult(url, destinations, ok=False, error=str(exc))

    data = resp.content
    mime = detect_image_format(data)
    # SVG and other text formats are not detected; only reject known non-images.
    if mime and not mime.startswith("image/"):
        logger.warning("Skipping %s: response is %s, not an image", url, mime)
        return DownloadResult(url, destinations, ok=False, error=f"Unexpected content type {mime}")

    for destination in destinations:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(data)
        except OSError as exc:
            logger.warning("Failed to write image %s: %s", destination, exc)
            return DownloadResult(url, destinations, ok=False, error=str(exc))
        logger.debug("Saved image %s to %s", url, destination)
    return DownloadResult(url, destinations, ok=True)


def download_images(
    images: Sequence[ImageRef],
    output_dir: Path,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[DownloadResult]:
    """Download each distinct image URL once, saving it under every local path that uses it."""
    groups = group_images(images)
    if not groups:
        return []
    session = session or requests.Session()
    results: List[DownloadResult] = []
    for url, local_paths in groups.items():
        destinations = [output_dir / path for path in local_paths]
        results.append(download_image(session, url, destinations, timeout))
    return results
