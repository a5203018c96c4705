"""Parsers for the exported datasets that accompany posts."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from .models import (
    BookmarkEntry,
    ClapEntry,
    ConnectedAccounts,
    EarningsEntry,
    FollowingData,
    HighlightEntry,
    InterestsData,
    LinkEntry,
    ListData,
    ProfileData,
    PublicationRole,
)
from .utils import medium_id_from_url

_USERNAME = re.compile(r"@([^/]+)")
_TWITTER_HANDLE = re.compile(r"twitter\.com/([^/]+)")
_MEMBERSHIP = re.compile(r"Became a Medium member at (.+)")
_OWNERSHIP_NOTE = re.compile(r"\(([^)]+)\)")
_CLAP_COUNT = re.compile(r"^\+(\d+)")
_EARNINGS_AMOUNT = re.compile(r"\$([0-9,.]+)\s*$")


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _text(node: Optional[Tag]) -> str:
    return node.get_text().strip() if node is not None else ""


def _labelled_value(soup: BeautifulSoup, label: str) -> Optional[str]:
    """Value of the ``<li>`` whose text starts with ``label``.

    Every matching item is visited, so the last one wins on duplicates.
    """
    value: Optional[str] = None
    for item in soup.find_all("li"):
        text = item.get_text().lstrip()
        if text.startswith(label):
            value = text[len(label):].strip()
    return value


def _twitter_handle(soup: BeautifulSoup) -> Optional[str]:
    handle: Optional[str] = None
    for item in soup.find_all("li"):
        text = item.get_text().lstrip()
        if not text.startswith("X:"):
            continue
        link = item.find("a")
        match = _TWITTER_HANDLE.search((link.get("href") or "") if link is not None else "")
        handle = match.group(1) if match else text[2:].strip()
    return handle


def parse_profile(html: str) -> ProfileData:
    """Extract the account profile from ``profile/profile.html``."""
    soup = _soup(html)

    username: Optional[str] = None
    profile_link = soup.select_one("a.u-url")
    match = _USERNAME.search((profile_link.get("href") or "") if profile_link is not None else "")
    if match:
        username = match.group(1)

    avatar = soup.select_one("img.u-photo")

    membership_date: Optional[str] = None
    sections_text = "".join(section.get_text() for section in soup.find_all("section"))
    match = _MEMBERSHIP.search(sections_text)
    if match:
        membership_date = match.group(1).strip()

    return ProfileData(
        display_name=_text(soup.select_one("h3.p-name")) or None,
        username=username,
        email=_labelled_value(soup, "Email address:"),
        medium_user_id=_labelled_value(soup, "Medium user ID:"),
        avatar_url=(avatar.get("src") or None) if avatar is not None else None,
        created_at=_labelled_value(soup, "Created at:"),
        connected_accounts=ConnectedAccounts(
            twitter=_twitter_handle(soup),
            twitter_id=_labelled_value(soup, "X account ID:"),
            facebook=_labelled_value(soup, "Facebook display name:"),
            facebook_id=_labelled_value(soup, "Facebook account ID:"),
        ),
        membership_date=membership_date,
    )


def parse_about(html: str) -> str:
    """Bio paragraphs from ``profile/about.html``, separated by blank lines."""
    body = _soup(html).select_one('section[data-field="body"]')
    if body is None:
        return ""
    paragraphs = [_text(p) for p in body.find_all("p")]
    return "\n\n".join(p for p in paragraphs if p)


def parse_publications(html: str) -> List[PublicationRole]:
    """Editor/writer roles listed under ``<h4>`` headings."""
    roles: List[PublicationRole] = []
    for heading in _soup(html).find_all("h4"):
        role = _text(heading).lower()
        listing = heading.find_next_sibling()
        if listing is None or listing.name != "ul":
            continue
        for item in listing.find_all("li"):
            link = item.find("a")
            note = _OWNERSHIP_NOTE.search(item.get_text())
            roles.append(
                PublicationRole(
                    name=_text(link),
                    url=(link.get("href") or "") if link is not None else "",
                    role=role,
                    ownership_note=note.group(1) if note else None,
                )
            )
    return roles


def parse_bookmarks(pages: Iterable[str]) -> List[BookmarkEntry]:
    entries: List[BookmarkEntry] = []
    for html in pages:
        for item in _soup(html).find_all("li"):
            link = item.select_one("a.h-cite")
            if link is None:
                continue
            entries.append(
                BookmarkEntry(
                    title=_text(link),
                    url=link.get("href") or "",
                    date_bookmarked=_text(item.select_one("time.dt-published")) or None,
                )
            )
    return entries


def parse_claps(pages: Iterable[str]) -> List[ClapEntry]:
    """Clapped posts; an entry without a ``+N`` prefix counts as one clap."""
    entries: List[ClapEntry] = []
    for html in pages:
        for item in _soup(html).select("li.h-entry"):
            link = item.select_one("a.h-cite")
            if link is None:
                continue
            match = _CLAP_COUNT.match(item.get_text().lstrip())
            entries.append(
                ClapEntry(
                    title=_text(link),
                    url=link.get("href") or "",
                    claps=int(match.group(1)) if match else 1,
                    date=_text(item.select_one("time.dt-published")) or None,
                )
            )
    return entries


def parse_highlights(pages: Iterable[str]) -> List[HighlightEntry]:
    entries: List[HighlightEntry] = []
    for html in pages:
        for item in _soup(html).select("li.h-entry"):
            marked = item.select('span.markup--highlight, span[name="selection"]')
            if marked:
                quote = "".join(span.get_text() for span in marked).strip()
            else:
                quote = "".join(p.get_text() for p in item.find_all("p")).strip()
            if not quote:
                continue
            entries.append(
                HighlightEntry(
                    quote=quote,
                    date=_text(item.select_one("time.dt-published")) or None,
                )
            )
    return entries


def parse_list(html: str, filename: str) -> ListData:
    """A single reading list from ``lists/<name>.html``."""
    soup = _soup(html)
    name = (
        _text(soup.select_one("h1.p-name"))
        or _text(soup.select_one("h2.p-summary"))
        or Path(filename).name.replace(".html", "")
    )

    date: Optional[str] = None
    time_el = soup.select_one("time.dt-published")
    if time_el is not None:
        date = time_el.get("datetime") or _text(time_el)

    list_link = soup.select_one('footer a[href*="list"]')
    list_url = (list_link.get("href") or None) if list_link is not None else None

    posts: List[LinkEntry] = []
    for item in soup.select('li[data-field="post"]'):
        link = item.find("a")
        if link is not None:
            posts.append(LinkEntry(name=_text(link), url=link.get("href") or ""))
    return ListData(name=name, date=date, list_url=list_url, posts=posts)


def parse_earnings(pages: Iterable[str]) -> List[EarningsEntry]:
    """Partner program earnings per post, keyed by the post identifier."""
    entries: List[EarningsEntry] = []
    for html in pages:
        for item in _soup(html).select("li.h-entry"):
            link = item.find("a")
            if link is None:
                continue
            href = link.get("href") or ""
            match = _EARNINGS_AMOUNT.search(item.get_text())
            amount = 0.0
            if match:
                try:
                    amount = float(match.group(1).replace(",", ""))
                except ValueError:
                    amount = 0.0
            entries.append(
                EarningsEntry(
                    title=_text(link),
                    url=href,
                    medium_id=medium_id_from_url(href),
                    earnings=amount,
                )
            )
    return entries


def _links(pages: Iterable[str]) -> List[LinkEntry]:
    items: List[LinkEntry] = []
    for html in pages:
        for item in _soup(html).find_all("li"):
            link = item.find("a")
            if link is not None:
                items.append(LinkEntry(name=_text(link), url=link.get("href") or ""))
    return items


def parse_following(
    users_pages: Sequence[str],
    publications_pages: Sequence[str],
    topics_pages: Sequence[str],
) -> FollowingData:
    return FollowingData(
        users=_links(users_pages),
        publications=_links(publications_pages),
        topics=_links(topics_pages),
    )


def parse_interests(
    tags: Optional[str] = None,
    topics: Optional[str] = None,
    publications: Optional[str] = None,
    writers: Optional[str] = None,
) -> InterestsData:
    def links(html: Optional[str]) -> List[LinkEntry]:
        return _links([html]) if html else []

    return InterestsData(
        tags=links(tags),
        topics=links(topics),
        publications=links(publications),
        writers=links(writers),
    )


def build_earnings_map(entries: Iterable[EarningsEntry]) -> dict:
    """Identifier to earnings lookup; later entries overwrite earlier ones."""
    return {entry.medium_id: entry.earnings for entry in entries if entry.medium_id}
