from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import requests

from meddler.images import detect_image_format, download_image, download_images, group_images
from meddler.models import ImageRef

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PDF_BYTES = b"%PDF-1.4\n" + b"\x00" * 32


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, responses: Dict[str, object]) -> None:
        self.responses = responses
        self.calls: List[str] = []

    def get(self, url: str, timeout: float = 0) -> FakeResponse:
        self.calls.append(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def _ref(url: str, local_path=None) -> ImageRef:
    return ImageRef(original_url=url, local_path=local_path, alt="")


def test_detect_image_format() -> None:
    assert detect_image_format(PNG_BYTES) == "image/png"
    assert detect_image_format(PDF_BYTES) == "application/pdf"
    assert detect_image_format(b"<svg></svg>") is None


def test_download_image_writes_file(tmp_path: Path) -> None:
    session = FakeSession({"https://x/a.png": FakeResponse(PNG_BYTES)})
    destination = tmp_path / "images" / "post" / "01.png"
    result = download_image(session, "https://x/a.png", [destination])
    assert result.ok
    assert destination.read_bytes() == PNG_BYTES


def test_download_image_accepts_undetected_payloads(tmp_path: Path) -> None:
    session = FakeSession({"https://x/a.svg": FakeResponse(b"<svg></svg>")})
    result = download_image(session, "https://x/a.svg", [tmp_path / "a.svg"])
    assert result.ok


def test_download_image_rejects_non_images(tmp_path: Path) -> None:
    session = FakeSession({"https://x/a.png": FakeResponse(PDF_BYTES)})
    destination = tmp_path / "a.png"
    result = download_image(session, "https://x/a.png", [destination])
    assert not result.ok
    assert "application/pdf" in result.error
    assert not destination.exists()


def test_download_image_reports_http_errors(tmp_path: Path) -> None:
    session = FakeSession(
        {
            "https://x/missing.png": FakeResponse(b"", status_code=404),
            "https://x/down.png": requests.ConnectionError("connection refused"),
        }
    )
    missing = download_image(session, "https://x/missing.png", [tmp_path / "m.png"])
    down = download_image(session, "https://x/down.png", [tmp_path / "d.png"])
    assert not missing.ok and "404" in missing.error
    assert not down.ok and "connection refused" in down.error


def test_group_images_collects_every_local_path() -> None:
    images = [
        _ref("https://x/a.png", "images/one/01.png"),
        _ref("https://x/b.png"),
        _ref("https://x/a.png", "images/two/01.png"),
        _ref("https://x/c.png", "images/two/02.png"),
        _ref("https://x/a.png", "images/one/01.png"),
    ]
    assert group_images(images) == {
        "https://x/a.png": ["images/one/01.png", "images/two/01.png"],
        "https://x/c.png": ["images/two/02.png"],
    }


def test_download_images_fetches_each_url_once(tmp_path: Path) -> None:
    session = FakeSession({"https://x/a.png": FakeResponse(PNG_BYTES)})
    images = [
        _ref("https://x/a.png", "images/one/01.png"),
        _ref("https://x/a.png", "images/two/01.png"),
    ]
    results = download_images(images, tmp_path, session=session)
    assert session.calls == ["https://x/a.png"]
    assert [r.ok for r in results] == [True]
    assert (tmp_path / "images" / "one" / "01.png").read_bytes() == PNG_BYTES
    assert (tmp_path / "images" / "two" / "01.png").read_bytes() == PNG_BYTES


def test_repeated_image_in_one_post_fills_every_slot(tmp_path: Path) -> None:
    session = FakeSession({"https://x/a.png": FakeResponse(PNG_BYTES)})
    images = [
        _ref("https://x/a.png", "images/s/01.png"),
        _ref("https://x/a.png", "images/s/02.png"),
    ]
    download_images(images, tmp_path, session=session)
    assert session.calls == ["https://x/a.png"]
    assert (tmp_path / "images" / "s" / "01.png").is_file()
    assert (tmp_path / "images" / "s" / "02.png").is_file()


def test_failed_fetch_is_one_result_per_url(tmp_path: Path) -> None:
    session = FakeSession({"https://x/a.png": requests.Timeout("timed out")})
    images = [
        _ref("https://x/a.png", "images/one/01.png"),
        _ref("https://x/a.png", "images/two/01.png"),
    ]
    [result] = download_images(images, tmp_path, session=session)
    assert not result.ok
    assert result.destinations == [
        tmp_path / "images" / "one" / "01.png",
        tmp_path / "images" / "two" / "01.png",
    ]


def test_download_images_without_local_paths() -> None:
    assert download_images([_ref("https://x/a.png")], Path("unused")) == []
