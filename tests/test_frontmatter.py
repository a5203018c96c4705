from __future__ import annotations

import json
import tomllib
from dataclasses import replace
from datetime import date, datetime

import pytest
import yaml

from conftest import POST_FILENAME, POST_HTML
from meddler.config import FrontMatterOptions, ImageOptions, build_config
from meddler.frontmatter import (
    build_front_matter_data,
    format_date,
    generate_front_matter,
    serialize_toml,
    serialize_yaml,
    strip_nulls,
)
from meddler.parser import extract_metadata


@pytest.fixture
def metadata():
    return extract_metadata(POST_HTML, POST_FILENAME)


def _yaml_body(text: str) -> dict:
    assert text.startswith("---\n") and text.endswith("\n---")
    return yaml.safe_load(text[4:-4])


def test_front_matter_keys_follow_fixed_order(metadata) -> None:
    data = build_front_matter_data(metadata, build_config())
    assert list(data) == [
        "title",
        "subtitle",
        "date",
        "slug",
        "canonical_url",
        "author",
        "medium_id",
        "draft",
        "image",
        "image_caption",
    ]
    assert data["draft"] is False


def test_optional_keys_are_omitted_when_empty(metadata) -> None:
    bare = replace(
        metadata,
        subtitle="",
        date=None,
        canonical_url=None,
        author=None,
        image=None,
        image_caption=None,
    )
    data = build_front_matter_data(bare, build_config())
    assert list(data) == ["title", "slug", "medium_id", "draft"]


def test_tags_and_response_type(metadata) -> None:
    tagged = replace(metadata, tags=["python", "life"], type="response")
    data = build_front_matter_data(tagged, build_config())
    assert data["tags"] == ["python", "life"]
    assert data["type"] == "response"
    assert list(data).index("tags") < list(data).index("image")


def test_featured_image_can_be_disabled(metadata) -> None:
    config = build_config(images=ImageOptions(extract_featured=False))
    data = build_front_matter_data(metadata, config)
    assert "image" not in data
    assert "image_caption" not in data


def test_earnings_only_when_injection_enabled(metadata) -> None:
    paid = replace(metadata, earnings=12.5)
    assert "earnings" not in build_front_matter_data(paid, build_config())
    config = build_config(front_matter=FrontMatterOptions(inject_earnings=True))
    assert build_front_matter_data(paid, config)["earnings"] == 12.5
    assert "earnings" not in build_front_matter_data(metadata, config)


def test_extra_fields_come_last_and_overwrite(metadata) -> None:
    config = build_config(
        front_matter=FrontMatterOptions(extra_fields={"layout": "post", "title": "Override"})
    )
    data = build_front_matter_data(metadata, config)
    assert data["title"] == "Override"
    assert list(data)[-1] == "layout"


@pytest.mark.parametrize(
    "date_format, expected",
    [
        ("iso8601", "2020-05-14T10:20:30.123Z"),
        ("yyyy-mm-dd", "2020-05-14"),
        ("unix", "1589451630"),
    ],
)
def test_format_date(date_format: str, expected: str) -> None:
    assert format_date("2020-05-14T10:20:30.123Z", date_format) == expected


def test_format_date_from_filename_date() -> None:
    assert format_date("2018-03-04", "iso8601") == "2018-03-04T00:00:00.000Z"


def test_format_date_normalizes_offsets_to_utc() -> None:
    assert format_date("2020-05-14T12:20:30+02:00", "iso8601") == "2020-05-14T10:20:30.000Z"


def test_format_date_passes_unparseable_values_through() -> None:
    assert format_date("garbage", "yyyy-mm-dd") == "garbage"
    assert format_date(None, "iso8601") is None
    assert format_date("", "iso8601") is None


def test_yaml_dates_stay_strings(metadata) -> None:
    text = generate_front_matter(metadata, build_config())
    loaded = _yaml_body(text)
    assert loaded["date"] == "2020-05-14T10:20:30.123Z"
    assert loaded["title"] == "How I Learned to Stop Worrying"
    assert loaded["draft"] is False
    assert text.index("title:") < text.index("slug:") < text.index("draft:")


def test_yaml_unquoted_dates_load_as_timestamps(metadata) -> None:
    config = build_config(front_matter=FrontMatterOptions(unquoted_dates=True))
    text = generate_front_matter(metadata, config)
    assert "date: 2020-05-14T10:20:30.123Z\n" in text
    assert isinstance(_yaml_body(text)["date"], datetime)


def test_yaml_unquoted_short_dates() -> None:
    text = serialize_yaml({"title": "x", "date": "2020-05-14"}, unquoted_dates=True)
    assert _yaml_body(text)["date"] == date(2020, 5, 14)


def test_yaml_unquoted_leaves_non_dates_quoted() -> None:
    text = serialize_yaml({"date": "garbage: yes"}, unquoted_dates=True)
    assert _yaml_body(text)["date"] == "garbage: yes"


def test_yaml_keeps_unicode() -> None:
    text = serialize_yaml({"title": "Café ☕"})
    assert "Café ☕" in text


def test_toml_front_matter(metadata) -> None:
    text = generate_front_matter(metadata, build_config(format="toml"))
    assert text.startswith("+++\n") and text.endswith("\n+++")
    loaded = tomllib.loads(text[4:-4])
    assert loaded["title"] == "How I Learned to Stop Worrying"
    assert loaded["date"] == "2020-05-14T10:20:30.123Z"
    assert loaded["draft"] is False


def test_hugo_target_defaults_to_toml(metadata) -> None:
    assert generate_front_matter(metadata, build_config(target="hugo")).startswith("+++")


def test_toml_drops_nulls() -> None:
    text = serialize_toml({"title": "x", "missing": None, "nested": {"a": 1, "b": None}})
    loaded = tomllib.loads(text[4:-4])
    assert loaded == {"title": "x", "nested": {"a": 1}}


def test_strip_nulls_is_recursive() -> None:
    assert strip_nulls({"a": None, "b": {"c": None, "d": 0}}) == {"b": {"d": 0}}


def test_json_front_matter(metadata) -> None:
    text = generate_front_matter(metadata, build_config(format="json"))
    loaded = json.loads(text)
    assert loaded["slug"] == "how-i-learned-to-stop-worrying"
    assert list(loaded)[0] == "title"
    assert '\n  "title"' in text


def test_none_format_produces_nothing(metadata) -> None:
    assert generate_front_matter(metadata, build_config(format="none")) == ""


@pytest.mark.parametrize("value", ["May", "March 2020", "May 14, 2020"])
def test_format_date_never_completes_partial_dates(value: str) -> None:
    assert format_date(value, "iso8601") == value
    assert format_date(value, "unix") == value
