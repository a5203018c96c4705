"""High-level orchestration for converting an export into SSG content."""

from __future__ import annotations

import datetime as dt
import json
import logging
from dataclasses import asdict, is_dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config import REPORT_FILENAME, TOOL_NAME, TOOL_VERSION, MeddlerConfig
from .errors import OutputError
from .frontmatter import generate_front_matter, parse_date
from .images import DownloadResult, download_images
from .markdown import build_clean_html, compose_markdown, convert_body
from .models import ConversionReport, ConvertedPost, ImageRef, PostMetadata, ProfileData
from .parser import extract_metadata
from .supplementary import (
    build_earnings_map,
    parse_about,
    parse_bookmarks,
    parse_claps,
    parse_earnings,
    parse_following,
    parse_highlights,
    parse_interests,
    parse_list,
    parse_profile,
    parse_publications,
)
from .utils import list_html_files, read_html_files

logger = logging.getLogger("meddler")

ImageDownloader = Callable[[Sequence[ImageRef], Path], List[DownloadResult]]

_OUTPUT_EXTENSIONS = {"markdown": "md", "html": "html", "structured-json": "json"}
_IMAGE_BASE_PATHS = {"hugo": "static", "jekyll": "assets", "astro": "public"}
_DATA_DIRS = {"hugo": "data", "jekyll": "_data", "eleventy": "_data", "astro": "src/data"}


def get_output_path(metadata: PostMetadata, config: MeddlerConfig) -> str:
    """Relative path of a post's output file under the target's conventions."""
    ext = _OUTPUT_EXTENSIONS[config.output_format]
    slug = metadata.slug or metadata.medium_id
    drafted = metadata.draft and config.separate_drafts

    if config.target == "hugo":
        base = "content/drafts" if drafted else "content/posts"
        return str(PurePosixPath(base, slug, f"index.{ext}"))
    if config.target == "jekyll":
        if drafted:
            return str(PurePosixPath("_drafts", f"{slug}.{ext}"))
        parsed = parse_date(metadata.date) if metadata.date else None
        prefix = parsed.date().isoformat() if parsed else "0000-00-00"
        return str(PurePosixPath("_posts", f"{prefix}-{slug}.{ext}"))
    if config.target == "astro":
        base = "src/content/drafts" if drafted else "src/content/posts"
        return str(PurePosixPath(base, f"{slug}.{ext}"))
    base = "drafts" if drafted else "posts"
    return str(PurePosixPath(base, f"{slug}.{ext}"))


def images_base_path(config: MeddlerConfig) -> str:
    return _IMAGE_BASE_PATHS.get(config.target, "")


def data_dir(config: MeddlerConfig) -> str:
    return _DATA_DIRS.get(config.target, "data")


def skip_reason(metadata: PostMetadata, config: MeddlerConfig) -> Optional[str]:
    if metadata.draft and not config.include_drafts:
        return "draft"
    if metadata.type == "response" and not config.include_responses:
        return "response"
    return None


def structured_metadata(metadata: PostMetadata) -> Dict[str, Any]:
    """Metadata block of the structured-json output; empty fields are omitted."""
    data = {
        "title": metadata.title,
        "subtitle": metadata.subtitle or None,
        "date": metadata.date,
        "slug": metadata.slug,
        "canonical_url": metadata.canonical_url,
        "author": metadata.author,
        "medium_id": metadata.medium_id,
        "draft": metadata.draft,
        "tags": list(metadata.tags),
        "type": metadata.type,
        "earnings": metadata.earnings,
    }
    return {key: value for key, value in data.items() if value is not None}


def convert_post(html: str, metadata: PostMetadata, config: MeddlerConfig) -> ConvertedPost:
    """Render one post's body, front matter and final file content."""
    body = convert_body(html, config, metadata.slug)
    front_matter = generate_front_matter(metadata, config)

    if config.output_format == "html":
        content = build_clean_html(html, metadata)
    elif config.output_format == "structured-json":
        content = json.dumps(
            {"metadata": structured_metadata(metadata), "content": body.markdown},
            indent=2,
            ensure_ascii=False,
        )
    else:
        content = compose_markdown(metadata, front_matter, body.markdown)

    return ConvertedPost(
        metadata=metadata,
        front_matter=front_matter,
        body=body.markdown,
        content=content,
        output_path=get_output_path(metadata, config),
        images=body.images,
    )


def new_report(config: MeddlerConfig) -> ConversionReport:
    generated_at = (
        dt.datetime.now(dt.timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z")
    )
    return ConversionReport(
        generated_at=generated_at,
        tool=TOOL_NAME,
        version=TOOL_VERSION,
        config=config.summary(),
    )


def load_earnings_map(export_root: Path) -> Dict[str, float]:
    pages = read_html_files(export_root / "partner-program")
    return build_earnings_map(parse_earnings(pages))


def _jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(_jsonable(payload), indent=2, ensure_ascii=False), encoding="utf-8")


def _write_post(post: ConvertedPost, output_root: Path) -> None:
    destination = output_root / post.output_path
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(post.content, encoding="utf-8")
    logger.debug("Saved %s", destination)


def _process_post(
    path: Path,
    config: MeddlerConfig,
    earnings: Dict[str, float],
    report: ConversionReport,
    dry_run: bool,
) -> List[ImageRef]:
    html = path.read_text(encoding="utf-8")
    metadata = extract_metadata(html, path.name)
    if metadata.medium_id in earnings:
        metadata.earnings = earnings[metadata.medium_id]

    reason = skip_reason(metadata, config)
    summary = report.summary
    if reason:
        summary.posts_skipped += 1
        if reason == "draft":
            summary.drafts_skipped += 1
        else:
            summary.responses_skipped += 1
        logger.debug("Skipping %s (%s)", path.name, reason)
        return []

    post = convert_post(html, metadata, config)
    if not dry_run:
        _write_post(post, config.output_root)

    if metadata.draft:
        summary.drafts_converted += 1
    else:
        summary.posts_converted += 1
        if metadata.type == "response":
            summary.responses_included += 1
    return post.images


def _download_post_images(
    images: Sequence[ImageRef],
    config: MeddlerConfig,
    report: ConversionReport,
    downloader: ImageDownloader,
) -> None:
    destination_root = config.output_root / images_base_path(config)
    for result in downloader(images, destination_root):
        if result.ok:
            report.summary.images_downloaded += 1
        else:
            report.summary.images_failed += 1
            report.add_warning(result.url, f"Image download failed: {result.error}")


def _profile_outputs(export_root: Path) -> Dict[str, Any]:
    profile_dir = export_root / "profile"
    if not profile_dir.is_dir():
        return {}
    profile_file = profile_dir / "profile.html"
    about_file = profile_dir / "about.html"
    publications_file = profile_dir / "publications.html"

    profile = (
        parse_profile(profile_file.read_text(encoding="utf-8"))
        if profile_file.is_file()
        else ProfileData()
    )
    if about_file.is_file():
        profile.bio = parse_about(about_file.read_text(encoding="utf-8"))

    outputs: Dict[str, Any] = {"author.json": profile}
    if publications_file.is_file():
        roles = parse_publications(publications_file.read_text(encoding="utf-8"))
        if roles:
            outputs["publications.json"] = roles
    return outputs


def _paged_outputs(dirname: str, filename: str, parse: Callable[[List[str]], Any]):
    def outputs(export_root: Path) -> Dict[str, Any]:
        pages = read_html_files(export_root / dirname)
        return {filename: parse(pages)} if pages else {}

    return outputs


def _interests_outputs(export_root: Path) -> Dict[str, Any]:
    interests_dir = export_root / "interests"
    if not interests_dir.is_dir():
        return {}

    def read(name: str) -> Optional[str]:
        path = interests_dir / name
        return path.read_text(encoding="utf-8") if path.is_file() else None

    interests = parse_interests(
        tags=read("tags.html"),
        topics=read("topics.html"),
        publications=read("publications.html"),
        writers=read("writers.html"),
    )
    return {"interests.json": interests}


def _lists_outputs(export_root: Path) -> Dict[str, Any]:
    return {
        f"lists/{path.stem}.json": parse_list(path.read_text(encoding="utf-8"), path.name)
        for path in list_html_files(export_root / "lists")
    }


def _following_outputs(export_root: Path) -> Dict[str, Any]:
    users = read_html_files(export_root / "users-following")
    publications = read_html_files(export_root / "pubs-following")
    topics = read_html_files(export_root / "topics-following")
    if not (users or publications or topics):
        return {}
    return {"following.json": parse_following(users, publications, topics)}


def supplementary_datasets(config: MeddlerConfig):
    """Enabled datasets as (report label, output builder) pairs, in run order."""
    toggles = config.supplementary
    datasets = [
        (toggles.profile, "profile/", _profile_outputs),
        (toggles.bookmarks, "bookmarks/", _paged_outputs("bookmarks", "bookmarks.json", parse_bookmarks)),
        (toggles.claps, "claps/", _paged_outputs("claps", "claps.json", parse_claps)),
        (toggles.highlights, "highlights/", _paged_outputs("highlights", "highlights.json", parse_highlights)),
        (toggles.interests, "interests/", _interests_outputs),
        (toggles.lists, "lists/", _lists_outputs),
        (toggles.earnings, "partner-program/", _paged_outputs("partner-program", "earnings.json", parse_earnings)),
        (toggles.social_graph, "following/", _following_outputs),
    ]
    return [(label, build) for enabled, label, build in datasets if enabled]


def convert_supplementary(
    export_root: Path,
    config: MeddlerConfig,
    report: ConversionReport,
    dry_run: bool = False,
) -> None:
    """Write each enabled dataset; a failing dataset only produces a warning."""
    target_dir = config.output_root / data_dir(config)
    for label, build in supplementary_datasets(config):
        try:
            outputs = build(export_root)
            for relative, payload in outputs.items():
                if not dry_run:
                    write_json(target_dir / relative, payload)
                report.summary.supplementary_files += 1
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Skipping %s: %s", label, exc)
            logger.debug("Supplementary failure for %s", label, exc_info=True)
            report.add_warning(label, str(exc))


def write_report(report: ConversionReport, output_root: Path) -> Path:
    path = output_root / REPORT_FILENAME
    write_json(path, report.to_dict())
    return path


def run_conversion(
    export_root: Path,
    config: MeddlerConfig,
    *,
    dry_run: bool = False,
    downloader: ImageDownloader = download_images,
) -> ConversionReport:
    """Convert every post sequentially, then supplementary data, then report."""
    report = new_report(config)

    if not dry_run:
        try:
            config.output_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputError(f"Cannot create output directory {config.output_root}: {exc}") from exc

    earnings: Dict[str, float] = {}
    if config.front_matter.inject_earnings:
        try:
            earnings = load_earnings_map(export_root)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Could not load earnings: %s", exc)
            report.add_warning("partner-program/", str(exc))

    post_files = list_html_files(export_root / "posts")
    if not post_files:
        logger.warning("No posts found in %s; only supplementary data will be processed", export_root)
    report.summary.posts_found = len(post_files)

    pending_images: List[ImageRef] = []
    for path in post_files:
        try:
            pending_images.extend(_process_post(path, config, earnings, report, dry_run))
        except Exception as exc:  # pylint: disable=broad-except
            message = str(exc) or exc.__class__.__name__
            logger.warning("Failed to convert %s: %s", path.name, message)
            logger.debug("Conversion failure for %s", path.name, exc_info=True)
            report.add_error(path.name, message)

    if config.images.mode != "reference" and pending_images and not dry_run:
        _download_post_images(pending_images, config, report, downloader)

    if config.supplementary.any_enabled():
        convert_supplementary(export_root, config, report, dry_run)

    if not dry_run:
        path = write_report(report, config.output_root)
        logger.info("Report written to %s", path)
    return report
