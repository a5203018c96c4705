"""Filename decoding and post metadata extraction."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from bs4 import BeautifulSoup, Tag

from .models import PostMetadata
from .utils import normalize_slug, split_trailing_id

DRAFT_PREFIX = "draft_"
BODY_SELECTOR = 'section[data-field="body"]'

_DATED_NAME = re.compile(r"^(\d{4}-\d{2}-\d{2})_(.+)$")
_USERNAME = re.compile(r"@([^/]+)")

_PARAGRAPH_SELECTOR = 'p.graf--p, p[class*="graf--p"]'
_HEADING_SELECTOR = "h3:not(.graf--title), h4:not(.graf--subtitle), h2"
_IMAGE_SELECTOR = "figure.graf--figure, img.graf-image"


@dataclass(frozen=True)
class ParsedFilename:
    date: Optional[str]
    slug: str
    medium_id: str
    is_draft: bool


def parse_filename(filename: str) -> ParsedFilename:
    """Decode date, slug and identifier from an exported post filename.

    Published posts are named ``YYYY-MM-DD_<Title-Slug>-<id>.html`` and
    drafts ``draft_<Title-Slug>-<id>.html``.
    """
    base = filename[: -len(".html")] if filename.endswith(".html") else filename
    is_draft = base.startswith(DRAFT_PREFIX)

    date: Optional[str] = None
    if is_draft:
        remainder = base[len(DRAFT_PREFIX):]
    else:
        match = _DATED_NAME.match(base)
        if match:
            date, remainder = match.group(1), match.group(2)
        else:
            remainder = base

    raw_slug, medium_id = split_trailing_id(remainder)
    slug = normalize_slug(raw_slug) or medium_id or "untitled"
    return ParsedFilename(date=date, slug=slug, medium_id=medium_id, is_draft=is_draft)


@dataclass(frozen=True)
class ResponseThresholds:
    """Upper bounds under which a post reads as a short response."""

    max_paragraphs: int = 3
    max_headings: int = 0
    max_images: int = 0
    max_text_length: int = 500


DEFAULT_RESPONSE_THRESHOLDS = ResponseThresholds()


@dataclass(frozen=True)
class BodyStats:
    paragraphs: int
    headings: int
    images: int
    text_length: int


def collect_body_stats(body: Tag) -> BodyStats:
    """Count the structural features the response heuristic looks at."""
    return BodyStats(
        paragraphs=len(body.select(_PARAGRAPH_SELECTOR)),
        headings=len(body.select(_HEADING_SELECTOR)),
        images=len(body.select(_IMAGE_SELECTOR)),
        text_length=len(body.get_text().strip()),
    )


def is_response(
    stats: BodyStats, thresholds: ResponseThresholds = DEFAULT_RESPONSE_THRESHOLDS
) -> bool:
    """Return True when every count stays within the response thresholds.

    This is a heuristic with no ground truth; short posts can be
    misclassified.
    """
    return (
        stats.paragraphs <= thresholds.max_paragraphs
        and stats.headings <= thresholds.max_headings
        and stats.images <= thresholds.max_images
        and stats.text_length <= thresholds.max_text_length
    )


def _as_soup(doc: Union[str, BeautifulSoup]) -> BeautifulSoup:
    if isinstance(doc, BeautifulSoup):
        return doc
    return BeautifulSoup(doc, "html.parser")


def detect_response(
    doc: Union[str, BeautifulSoup],
    thresholds: ResponseThresholds = DEFAULT_RESPONSE_THRESHOLDS,
) -> bool:
    """Classify a post as a short response/comment from its body shape."""
    body = _as_soup(doc).select_one(BODY_SELECTOR)
    if body is None:
        return False
    return is_response(collect_body_stats(body), thresholds)


def _text(node: Optional[Tag]) -> str:
    return node.get_text().strip() if node is not None else ""


def _parse_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def extract_images(html: str) -> List[Dict[str, Any]]:
    """List the images of a post body in document order."""
    body = _as_soup(html).select_one(BODY_SELECTOR)
    if body is None:
        return []
    images: List[Dict[str, Any]] = []
    for img in body.find_all("img"):
        src = img.get("src")
        if not src:
            continue
        images.append(
            {
                "url": src,
                "alt": image_alt_text(img),
                "width": _parse_int(img.get("data-width")),
                "height": _parse_int(img.get("data-height")),
                "data_image_id": img.get("data-image-id") or None,
            }
        )
    return images


def image_alt_text(img: Tag) -> str:
    """Prefer the enclosing figure's caption over the alt attribute."""
    figure = img.find_parent("figure")
    caption = _text(figure.find("figcaption")) if figure is not None else ""
    return caption or img.get("alt") or ""


def extract_metadata(html: str, filename: str) -> PostMetadata:
    """Extract all metadata from an exported post's HTML and filename."""
    soup = _as_soup(html)
    parsed = parse_filename(filename)

    title = _text(soup.select_one("h1.p-name")) or _text(soup.title) or "Untitled"
    subtitle = _text(soup.select_one('section[data-field="subtitle"]'))

    date = parsed.date
    time_el = soup.select_one("footer time.dt-published")
    if time_el is not None and time_el.get("datetime"):
        date = time_el["datetime"]

    canonical_el = soup.select_one("a.p-canonical")
    canonical_url = (canonical_el.get("href") or None) if canonical_el is not None else None

    author: Optional[str] = None
    author_username: Optional[str] = None
    author_el = soup.select_one("a.p-author")
    if author_el is not None:
        author = _text(author_el)
        match = _USERNAME.search(author_el.get("href") or "")
        if match:
            author_username = match.group(1)

    image: Optional[str] = None
    image_caption: Optional[str] = None
    body = soup.select_one(BODY_SELECTOR)
    first_figure = body.find("figure") if body is not None else None
    if first_figure is not None:
        first_img = first_figure.find("img")
        if first_img is not None:
            image = first_img.get("src") or None
        image_caption = _text(first_figure.find("figcaption")) or None

    if parsed.is_draft:
        post_type = "draft"
    elif detect_response(soup):
        post_type = "response"
    else:
        post_type = "published"

    return PostMetadata(
        title=title,
        subtitle=subtitle,
        date=date,
        slug=parsed.slug,
        canonical_url=canonical_url,
        author=author,
        author_username=author_username,
        medium_id=parsed.medium_id,
        draft=parsed.is_draft,
        type=post_type,
        filename=filename,
        image=image,
        image_caption=image_caption,
    )
