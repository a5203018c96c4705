"""Configuration objects and constants for the converter."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError

TOOL_NAME = "meddler"
TOOL_VERSION = "1.0.2"
DEFAULT_OUTPUT_DIR = "meddler-output"
REPORT_FILENAME = "meddler-report.json"

FRONT_MATTER_FORMATS = ("yaml", "toml", "json", "none")
OUTPUT_FORMATS = ("markdown", "html", "structured-json")
SSG_TARGETS = ("generic", "hugo", "eleventy", "jekyll", "astro")
IMAGE_MODES = ("reference", "download", "optimize")
EMBED_MODES = ("raw_html", "shortcodes", "placeholders")
SECTION_BREAK_MODES = ("hr", "none", "spacing")
DATE_FORMATS = ("iso8601", "yyyy-mm-dd", "unix")


@dataclass(frozen=True)
class FrontMatterOptions:
    """How post metadata is rendered into the front matter block."""

    extra_fields: Mapping[str, str] = field(default_factory=dict)
    date_format: str = "iso8601"
    inject_earnings: bool = False
    unquoted_dates: bool = False


@dataclass(frozen=True)
class ImageOptions:
    mode: str = "reference"
    output_dir: str = "images"
    per_post_dirs: bool = True
    extract_featured: bool = True
    remove_featured_from_body: bool = False


@dataclass(frozen=True)
class EmbedOptions:
    mode: str = "raw_html"
    shortcode_format: str = "hugo"


@dataclass(frozen=True)
class ContentOptions:
    section_breaks: str = "hr"


@dataclass(frozen=True)
class SupplementaryOptions:
    """Toggles for each exported dataset besides posts."""

    profile: bool = True
    bookmarks: bool = True
    claps: bool = True
    highlights: bool = True
    interests: bool = True
    lists: bool = True
    earnings: bool = True
    social_graph: bool = True

    def any_enabled(self) -> bool:
        return any(
            (
                self.profile,
                self.bookmarks,
                self.claps,
                self.highlights,
                self.interests,
                self.lists,
                self.earnings,
                self.social_graph,
            )
        )


@dataclass(frozen=True)
class MeddlerConfig:
    """Top-level settings snapshot shared by every stage of a run."""

    output_root: Path = Path(DEFAULT_OUTPUT_DIR)
    format: str = "yaml"
    output_format: str = "markdown"
    target: str = "generic"
    include_drafts: bool = True
    include_responses: bool = False
    separate_drafts: bool = True
    front_matter: FrontMatterOptions = field(default_factory=FrontMatterOptions)
    images: ImageOptions = field(default_factory=ImageOptions)
    embeds: EmbedOptions = field(default_factory=EmbedOptions)
    content: ContentOptions = field(default_factory=ContentOptions)
    supplementary: SupplementaryOptions = field(default_factory=SupplementaryOptions)

    def summary(self) -> Dict[str, Any]:
        """Subset of settings recorded in the conversion report."""
        return {
            "format": self.format,
            "output_format": self.output_format,
            "target": self.target,
            "include_drafts": self.include_drafts,
            "include_responses": self.include_responses,
        }


def _check_choice(name: str, value: str, choices: tuple) -> None:
    if value not in choices:
        raise ConfigError(
            f"Invalid {name} {value!r}; expected one of: {', '.join(choices)}"
        )


def validate_config(config: MeddlerConfig) -> None:
    """Raise ConfigError if any enumerated setting holds an unknown value."""
    _check_choice("front matter format", config.format, FRONT_MATTER_FORMATS)
    _check_choice("output format", config.output_format, OUTPUT_FORMATS)
    _check_choice("target", config.target, SSG_TARGETS)
    _check_choice("image mode", config.images.mode, IMAGE_MODES)
    _check_choice("embed mode", config.embeds.mode, EMBED_MODES)
    _check_choice("shortcode format", config.embeds.shortcode_format, SSG_TARGETS)
    _check_choice("section break mode", config.content.section_breaks, SECTION_BREAK_MODES)
    _check_choice("date format", config.front_matter.date_format, DATE_FORMATS)


def apply_target_defaults(config: MeddlerConfig) -> MeddlerConfig:
    """Return a copy of ``config`` with the SSG-specific overrides applied."""
    fmt = config.format
    embeds = config.embeds
    if config.target == "hugo":
        if fmt == "yaml":
            fmt = "toml"
        mode = "shortcodes" if embeds.mode == "raw_html" else embeds.mode
        embeds = replace(embeds, mode=mode, shortcode_format="hugo")
    else:
        if config.target in ("jekyll", "eleventy", "astro") and fmt == "toml":
            fmt = "yaml"
        embeds = replace(embeds, shortcode_format=config.target)
    return replace(config, format=fmt, embeds=embeds)


def build_config(
    output_root: Optional[Path] = None,
    *,
    front_matter: Optional[FrontMatterOptions] = None,
    images: Optional[ImageOptions] = None,
    embeds: Optional[EmbedOptions] = None,
    content: Optional[ContentOptions] = None,
    supplementary: Optional[SupplementaryOptions] = None,
    **settings: Any,
) -> MeddlerConfig:
    """Assemble, validate and finalize a configuration snapshot.

    Target defaults are applied here, once; the returned value is what every
    component of a run receives.
    """
    config = MeddlerConfig(
        output_root=Path(output_root) if output_root else Path(DEFAULT_OUTPUT_DIR),
        front_matter=front_matter or FrontMatterOptions(),
        images=images or ImageOptions(),
        embeds=embeds or EmbedOptions(),
        content=content or ContentOptions(),
        supplementary=supplementary or SupplementaryOptions(),
        **settings,
    )
    validate_config(config)
    return apply_target_defaults(config)
