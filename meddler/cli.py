"""Command-line entry point for the export converter."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Dict, List, Sequence

from .config import (
    DATE_FORMATS,
    DEFAULT_OUTPUT_DIR,
    EMBED_MODES,
    FRONT_MATTER_FORMATS,
    IMAGE_MODES,
    OUTPUT_FORMATS,
    REPORT_FILENAME,
    SECTION_BREAK_MODES,
    SSG_TARGETS,
    TOOL_VERSION,
    ContentOptions,
    EmbedOptions,
    FrontMatterOptions,
    ImageOptions,
    MeddlerConfig,
    SupplementaryOptions,
    build_config,
)
from .converter import run_conversion
from .errors import ConfigError, MeddlerError
from .validate import resolve_input_path, validate_export

logger = logging.getLogger("meddler.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="meddler",
        description=(
            "Convert a Medium data export into clean, portable files for static site generators."
        ),
    )
    parser.add_argument("input", type=Path, help="Extracted export folder or .zip file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {TOOL_VERSION}")
    parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_OUTPUT_DIR,
        type=Path,
        help="Directory where converted files should be written",
    )
    parser.add_argument(
        "-f",
        "--format",
        default="yaml",
        choices=FRONT_MATTER_FORMATS,
        help="Front matter format",
    )
    parser.add_argument(
        "--output-format",
        default="markdown",
        choices=OUTPUT_FORMATS,
        help="Post file format",
    )
    parser.add_argument(
        "-t",
        "--target",
        default="generic",
        choices=SSG_TARGETS,
        help="Static site generator layout to follow",
    )
    parser.add_argument(
        "--no-drafts",
        dest="include_drafts",
        action="store_false",
        help="Exclude draft posts",
    )
    parser.add_argument(
        "--responses",
        dest="include_responses",
        action="store_true",
        help="Include short responses/comments",
    )
    parser.add_argument(
        "--no-separate-drafts",
        dest="separate_drafts",
        action="store_false",
        help="Write drafts next to published posts instead of a drafts directory",
    )
    parser.add_argument(
        "--images",
        default="reference",
        choices=IMAGE_MODES,
        help="Keep remote image URLs or download images locally",
    )
    parser.add_argument(
        "--flat-images",
        action="store_true",
        help="Name images <slug>-NN.ext instead of one directory per post",
    )
    parser.add_argument(
        "--remove-featured",
        action="store_true",
        help="Drop the featured image from the body (it stays in front matter)",
    )
    parser.add_argument(
        "--embeds",
        default="raw_html",
        choices=EMBED_MODES,
        help="How iframe embeds are rendered",
    )
    parser.add_argument(
        "--section-breaks",
        default="hr",
        choices=SECTION_BREAK_MODES,
        help="Separator between post sections",
    )
    parser.add_argument(
        "--date-format",
        default="iso8601",
        choices=DATE_FORMATS,
        help="Date style in front matter",
    )
    parser.add_argument(
        "--earnings",
        action="store_true",
        help="Inject partner program earnings into front matter",
    )
    parser.add_argument(
        "--unquoted-dates",
        action="store_true",
        help="Emit YAML dates without quotes (Eleventy compatibility)",
    )
    parser.add_argument(
        "--extra-field",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Additional front matter field; may be repeated",
    )
    parser.add_argument(
        "--no-supplementary",
        dest="supplementary",
        action="store_false",
        help="Skip bookmarks, claps, profile and other non-post data",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the conversion without writing any files",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def parse_extra_fields(values: List[str]) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for value in values:
        key, sep, field_value = value.partition("=")
        if not sep or not key.strip():
            raise ConfigError(f"Extra field must look like KEY=VALUE, got {value!r}")
        fields[key.strip()] = field_value
    return fields


def config_from_args(args: argparse.Namespace) -> MeddlerConfig:
    enabled = bool(args.supplementary)
    return build_config(
        Path(args.output).resolve(),
        format=args.format,
        output_format=args.output_format,
        target=args.target,
        include_drafts=args.include_drafts,
        include_responses=args.include_responses,
        separate_drafts=args.separate_drafts,
        front_matter=FrontMatterOptions(
            extra_fields=parse_extra_fields(args.extra_field),
            date_format=args.date_format,
            inject_earnings=args.earnings,
            unquoted_dates=args.unquoted_dates,
        ),
        images=ImageOptions(
            mode=args.images,
            per_post_dirs=not args.flat_images,
            remove_featured_from_body=args.remove_featured,
        ),
        embeds=EmbedOptions(mode=args.embeds),
        content=ContentOptions(section_breaks=args.section_breaks),
        supplementary=SupplementaryOptions(
            profile=enabled,
            bookmarks=enabled,
            claps=enabled,
            highlights=enabled,
            interests=enabled,
            lists=enabled,
            earnings=enabled,
            social_graph=enabled,
        ),
    )


def _run(args: argparse.Namespace) -> int:
    config = config_from_args(args)
    export_root = resolve_input_path(args.input)

    validation = validate_export(export_root)
    if not validation.valid:
        logger.error("%s", validation.message)
        return 1
    if validation.warning:
        logger.warning("%s", validation.warning)
    logger.info(
        "Export%s: %d published, %d drafts",
        f" for {validation.author_name}" if validation.author_name else "",
        validation.published_count,
        validation.draft_count,
    )

    overall_start = time.perf_counter()
    report = run_conversion(export_root, config, dry_run=args.dry_run)
    total_elapsed = time.perf_counter() - overall_start

    summary = report.summary
    logger.info(
        "Finished in %.2fs: %d published, %d drafts converted (%d skipped)",
        total_elapsed,
        summary.posts_converted,
        summary.drafts_converted,
        summary.posts_skipped,
    )
    if summary.responses_skipped:
        logger.info("Responses skipped: %d", summary.responses_skipped)
    if summary.responses_included:
        logger.info("Responses included: %d", summary.responses_included)
    if config.images.mode != "reference":
        logger.info(
            "Images: %d downloaded, %d failed",
            summary.images_downloaded,
            summary.images_failed,
        )
    if summary.supplementary_files:
        logger.info("Supplementary files: %d", summary.supplementary_files)
    if report.errors:
        logger.warning("Errors: %d (see %s)", len(report.errors), REPORT_FILENAME)
    if not args.dry_run:
        logger.info("Output: %s", config.output_root)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    try:
        return _run(args)
    except MeddlerError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
