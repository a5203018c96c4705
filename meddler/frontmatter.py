"""Front matter construction and serialization."""

from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import tomli_w
import yaml
from dateutil import parser as date_parser

from .config import MeddlerConfig
from .models import PostMetadata

YAML_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


def parse_date(value: str) -> Optional[datetime]:
    """Parse an ISO 8601 export timestamp as an aware UTC datetime, or None.

    Naive values are read as UTC so output does not depend on the local zone.
    Partial or free-form dates are rejected rather than completed from today.
    """
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_date(value: Optional[str], date_format: str) -> Optional[str]:
    """Render a date in the configured style; unparseable input passes through."""
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        return value
    if date_format == "yyyy-mm-dd":
        return parsed.date().isoformat()
    if date_format == "unix":
        return str(math.floor(parsed.timestamp()))
    return parsed.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_front_matter_data(metadata: PostMetadata, config: MeddlerConfig) -> Dict[str, Any]:
    """Map post metadata to front matter fields in their fixed order."""
    data: Dict[str, Any] = {"title": metadata.title}

    if metadata.subtitle:
        data["subtitle"] = metadata.subtitle

    date = format_date(metadata.date, config.front_matter.date_format)
    if date:
        data["date"] = date

    data["slug"] = metadata.slug
    if metadata.canonical_url:
        data["canonical_url"] = metadata.canonical_url
    if metadata.author:
        data["author"] = metadata.author
    data["medium_id"] = metadata.medium_id
    data["draft"] = metadata.draft
    if metadata.tags:
        data["tags"] = list(metadata.tags)

    if config.images.extract_featured and metadata.image:
        data["image"] = metadata.image
        if metadata.image_caption:
            data["image_caption"] = metadata.image_caption

    if metadata.type == "response":
        data["type"] = "response"

    if config.front_matter.inject_earnings and metadata.earnings is not None:
        data["earnings"] = metadata.earnings

    for key, value in config.front_matter.extra_fields.items():
        data[key] = value

    return data


class _PlainDate(str):
    """Marks a string that should be emitted as an unquoted YAML timestamp."""


class FrontMatterDumper(yaml.SafeDumper):
    pass


def _represent_plain_date(dumper: yaml.SafeDumper, value: _PlainDate) -> yaml.Node:
    text = str(value)
    if dumper.resolve(yaml.ScalarNode, text, (True, False)) == YAML_TIMESTAMP_TAG:
        return dumper.represent_scalar(YAML_TIMESTAMP_TAG, text)
    return dumper.represent_str(text)


FrontMatterDumper.add_representer(_PlainDate, _represent_plain_date)


def serialize_yaml(data: Dict[str, Any], unquoted_dates: bool = False) -> str:
    # SafeDumper quotes any string that would resolve to another type on load,
    # so dates stay strings unless explicitly unquoted.
    if unquoted_dates and isinstance(data.get("date"), str):
        data = {**data, "date": _PlainDate(data["date"])}
    body = yaml.dump(
        data,
        Dumper=FrontMatterDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    ).strip()
    return f"---\n{body}\n---"


def strip_nulls(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values recursively; TOML has no null."""
    result: Dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            result[key] = strip_nulls(value)
        else:
            result[key] = value
    return result


def serialize_toml(data: Dict[str, Any]) -> str:
    body = tomli_w.dumps(strip_nulls(data)).strip()
    return f"+++\n{body}\n+++"


def serialize_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def generate_front_matter(metadata: PostMetadata, config: MeddlerConfig) -> str:
    """Serialize a post's front matter; the ``none`` format yields ``""``."""
    if config.format == "none":
        return ""
    data = build_front_matter_data(metadata, config)
    if config.format == "toml":
        return serialize_toml(data)
    if config.format == "json":
        return serialize_json(data)
    return serialize_yaml(data, unquoted_dates=config.front_matter.unquoted_dates)
