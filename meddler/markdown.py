"""Markdown generation for exported post bodies."""

from __future__ import annotations

import html as html_lib
import logging
import re
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional, Sequence

from bs4 import BeautifulSoup, Tag
from markdownify import ASTERISK, ATX, MarkdownConverter

from .config import MeddlerConfig
from .models import ImageRef, PostMetadata
from .parser import BODY_SELECTOR, image_alt_text

logger = logging.getLogger("meddler")

_INDEX_ATTR = "data-meddler-index"
_EXCESS_NEWLINES = re.compile(r"\n{3,}")

_YOUTUBE = re.compile(r"youtube\.com/embed/([a-zA-Z0-9_-]+)")
_GIST = re.compile(r"gist\.github\.com/([^/]+)/([a-f0-9]+)")
_TWEET = re.compile(r"(?:^|[/.])(?:twitter|x)\.com/[^/]+/status/(\d+)")

SECTION_SEPARATORS = {"hr": "<hr>", "spacing": "<br><br>", "none": ""}


@dataclass
class BodyConversion:
    markdown: str
    images: List[ImageRef]


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    """A custom rendering for elements of ``tags`` that satisfy ``matches``."""

    name: str
    tags: FrozenSet[str]
    matches: Callable[[Tag], bool]
    render: Callable[[Tag, str], str]


def _has_class(el: Tag, name: str) -> bool:
    return name in (el.get("class") or [])


def _render_mixtape(el: Tag, text: str) -> str:
    anchor = el.find("a")
    if anchor is None:
        return ""
    href = anchor.get("href") or ""
    strong = el.find("strong")
    em = el.find("em")
    title = strong.get_text() if strong is not None else ""
    description = em.get_text() if em is not None else ""
    if title and description:
        return f"\n[**{title}** — *{description}*]({href})\n"
    if title:
        return f"\n[**{title}**]({href})\n"
    return f"\n[{anchor.get_text() or href}]({href})\n"


def detect_shortcode(src: str, target: str) -> Optional[str]:
    """Return an SSG shortcode for a known embed URL, or None."""
    match = _YOUTUBE.search(src)
    if match:
        video_id = match.group(1)
        if target == "hugo":
            return f'{{{{< youtube "{video_id}" >}}}}'
        return f'{{% youtube "{video_id}" %}}'

    match = _GIST.search(src)
    if match:
        user, gist_id = match.groups()
        if target == "hugo":
            return f'{{{{< gist "{user}" "{gist_id}" >}}}}'
        return f'<script src="https://gist.github.com/{user}/{gist_id}.js"></script>'

    match = _TWEET.search(src)
    if match:
        tweet_id = match.group(1)
        if target == "hugo":
            return f'{{{{< tweet "{tweet_id}" >}}}}'
        return f'{{% tweet "{tweet_id}" %}}'

    return None


def iframe_renderer(mode: str, shortcode_format: str) -> Callable[[Tag, str], str]:
    """Build the iframe renderer for an embed mode."""

    def render(el: Tag, text: str) -> str:
        src = el.get("src") or ""
        if mode == "placeholders":
            return f"\n[Embedded content]({src})\n"
        if mode == "shortcodes":
            shortcode = detect_shortcode(src, shortcode_format)
            if shortcode:
                return f"\n{shortcode}\n"
        width = el.get("width") or "100%"
        height = el.get("height") or "400"
        return (
            f'\n<iframe src="{src}" width="{width}" height="{height}" '
            'frameborder="0"></iframe>\n'
        )

    return render


def build_rules(config: MeddlerConfig) -> List[Rule]:
    """Custom rules in precedence order; the first match wins."""
    return [
        Rule(
            name="drop_cap",
            tags=frozenset({"span"}),
            matches=lambda el: _has_class(el, "graf-dropCap"),
            render=lambda el, text: text,
        ),
        Rule(
            name="section_divider",
            tags=frozenset({"hr"}),
            matches=lambda el: _has_class(el, "section-divider"),
            render=lambda el, text: "",
        ),
        Rule(
            name="mixtape_embed",
            tags=frozenset({"div"}),
            matches=lambda el: "mixtapeEmbed" in " ".join(el.get("class") or []),
            render=_render_mixtape,
        ),
        Rule(
            name="iframe_embed",
            tags=frozenset({"iframe"}),
            matches=lambda el: True,
            render=iframe_renderer(config.embeds.mode, config.embeds.shortcode_format),
        ),
    ]


class PostMarkdownConverter(MarkdownConverter):
    """markdownify converter that consults an ordered rule list first."""

    def __init__(self, rules: Sequence[Rule] = (), **options) -> None:
        super().__init__(**options)
        self.rules = tuple(rules)

    def apply_rules(self, el, text, parent_tags, default):
        for rule in self.rules:
            if el.name in rule.tags and rule.matches(el):
                return rule.render(el, text)
        return default(el, text, parent_tags)

    def _passthrough(self, el, text, parent_tags):
        return text

    def _block(self, el, text, parent_tags):
        text = text.strip()
        return f"\n\n{text}\n\n" if text else ""

    def convert_span(self, el, text, parent_tags=None):
        return self.apply_rules(el, text, parent_tags, self._passthrough)

    def convert_hr(self, el, text, parent_tags=None):
        return self.apply_rules(el, text, parent_tags, super().convert_hr)

    def convert_div(self, el, text, parent_tags=None):
        return self.apply_rules(el, text, parent_tags, super().convert_div)

    def convert_iframe(self, el, text, parent_tags=None):
        return self.apply_rules(el, text, parent_tags, self._passthrough)

    def convert_figcaption(self, el, text, parent_tags=None):
        return self._block(el, text, parent_tags)

    convert_figure = convert_figcaption


def render_markdown(html: str, config: MeddlerConfig) -> str:
    converter = PostMarkdownConverter(
        build_rules(config),
        heading_style=ATX,
        bullets="-",
        strong_em_symbol=ASTERISK,
    )
    return converter.convert(html)


# ---------------------------------------------------------------------------
# Body extraction
# ---------------------------------------------------------------------------


def guess_image_extension(url: str) -> str:
    lower = url.lower()
    for ext in ("png", "gif", "webp", "svg"):
        if f".{ext}" in lower:
            return ext
    return "jpeg"


def image_local_path(config: MeddlerConfig, slug: str, index: int, url: str) -> str:
    """Local path for the ``index``-th (1-based) image of a post."""
    ext = guess_image_extension(url)
    if config.images.per_post_dirs:
        return f"{config.images.output_dir}/{slug}/{index:02d}.{ext}"
    return f"{config.images.output_dir}/{slug}-{index:02d}.{ext}"


def _parse_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def collect_images(body: Tag, config: MeddlerConfig, slug: str) -> List[ImageRef]:
    """Build one ImageRef per ``<img>`` in document order, before any mutation.

    When images are localized, each tag is tagged with its position so the
    later ``src`` rewrite stays aligned even if elements are removed.
    """
    localize = config.images.mode != "reference"
    images: List[ImageRef] = []
    for img in body.find_all("img"):
        src = img.get("src")
        if not src:
            continue
        local_path = None
        if localize:
            local_path = image_local_path(config, slug, len(images) + 1, src)
            img[_INDEX_ATTR] = str(len(images))
        images.append(
            ImageRef(
                original_url=src,
                local_path=local_path,
                alt=image_alt_text(img),
                width=_parse_int(img.get("data-width")),
                height=_parse_int(img.get("data-height")),
                data_image_id=img.get("data-image-id") or None,
            )
        )
    return images


def rewrite_image_sources(body: Tag, images: Sequence[ImageRef]) -> None:
    for img in body.find_all("img", attrs={_INDEX_ATTR: True}):
        ref = images[int(img[_INDEX_ATTR])]
        del img[_INDEX_ATTR]
        if ref.local_path:
            img["src"] = ref.local_path


def inner_sections(body: Tag, separator: str) -> Optional[str]:
    """Every ``.section-inner`` across the body, joined by the separator."""
    parts = [inner.decode_contents() for inner in body.select(".section-inner")]
    joined = separator.join(part for part in parts if part.strip())
    return joined or None


def body_sections(body: Tag, separator: str) -> Optional[str]:
    """Per top-level body section: inner content, else content wrapper, else raw."""
    parts: List[str] = []
    for section in body.select("section.section--body"):
        inners = section.select(".section-inner")
        if inners:
            content = "".join(inner.decode_contents() for inner in inners)
        else:
            wrapper = section.select_one(".section-content")
            content = (wrapper.decode_contents() if wrapper is not None else "") or (
                section.decode_contents()
            )
        if content.strip():
            parts.append(content)
    joined = separator.join(parts)
    return joined or None


def whole_body(body: Tag, separator: str) -> Optional[str]:
    return body.decode_contents() or None


EXTRACTION_STRATEGIES = (inner_sections, body_sections, whole_body)


def extract_body_html(body: Tag, separator: str) -> str:
    """Try each extraction strategy in order; the first non-empty result wins."""
    for strategy in EXTRACTION_STRATEGIES:
        content = strategy(body, separator)
        if content:
            logger.debug("Body extracted with %s", strategy.__name__)
            return content
    return ""


def convert_body(html: str, config: MeddlerConfig, slug: str) -> BodyConversion:
    """Convert a post's body section to Markdown and list its images."""
    soup = BeautifulSoup(html, "html.parser")
    body = soup.select_one(BODY_SELECTOR)
    if body is None:
        return BodyConversion(markdown="", images=[])

    images = collect_images(body, config, slug)

    for duplicate in body.select("h3.graf--title, h4.graf--subtitle"):
        duplicate.decompose()

    if config.images.extract_featured and config.images.remove_featured_from_body:
        featured = body.find("figure")
        if featured is not None:
            featured.decompose()

    for divider in body.select("div.section-divider"):
        divider.decompose()

    if config.images.mode != "reference":
        rewrite_image_sources(body, images)

    separator = SECTION_SEPARATORS[config.content.section_breaks]
    content_html = extract_body_html(body, separator)

    markdown = render_markdown(content_html, config)
    markdown = _EXCESS_NEWLINES.sub("\n\n", markdown).strip()
    return BodyConversion(markdown=markdown, images=images)


# ---------------------------------------------------------------------------
# Document assembly
# ---------------------------------------------------------------------------


def compose_markdown(metadata: PostMetadata, front_matter: str, body: str) -> str:
    """Join front matter and body; without front matter the title leads."""
    if front_matter:
        return f"{front_matter}\n\n{body}\n"
    return f"# {metadata.title}\n\n{body}\n"


def build_clean_html(html: str, metadata: PostMetadata) -> str:
    """Standalone HTML document holding the post body without export chrome."""
    soup = BeautifulSoup(html, "html.parser")
    for style in soup.find_all("style"):
        style.decompose()
    body = soup.select_one(BODY_SELECTOR)
    body_html = body.decode_contents() if body is not None else ""

    title = html_lib.escape(metadata.title)
    subtitle = (
        f"<p><em>{html_lib.escape(metadata.subtitle)}</em></p>" if metadata.subtitle else ""
    )
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        f"  <title>{title}</title>\n"
        "</head>\n"
        "<body>\n"
        "  <article>\n"
        f"    <h1>{title}</h1>\n"
        f"    {subtitle}\n"
        f"    {body_html}\n"
        "  </article>\n"
        "</body>\n"
        "</html>\n"
    )
