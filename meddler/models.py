"""Data models used throughout the conversion pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

POST_TYPES = ("published", "draft", "response")


@dataclass
class PostMetadata:
    """Metadata extracted from a single exported post file."""

    title: str
    subtitle: str
    date: Optional[str]
    slug: str
    canonical_url: Optional[str]
    author: Optional[str]
    author_username: Optional[str]
    medium_id: str
    draft: bool
    type: str
    filename: str
    tags: List[str] = field(default_factory=list)
    image: Optional[str] = None
    image_caption: Optional[str] = None
    earnings: Optional[float] = None


@dataclass
class ImageRef:
    """Image discovered in a post body, with its local path when downloading."""

    original_url: str
    local_path: Optional[str]
    alt: str
    width: Optional[int] = None
    height: Optional[int] = None
    data_image_id: Optional[str] = None


@dataclass
class ConvertedPost:
    """A post rendered into its final file content."""

    metadata: PostMetadata
    front_matter: str
    body: str
    content: str
    output_path: str
    images: List[ImageRef]


@dataclass
class ConnectedAccounts:
    twitter: Optional[str] = None
    twitter_id: Optional[str] = None
    facebook: Optional[str] = None
    facebook_id: Optional[str] = None


@dataclass
class ProfileData:
    display_name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    medium_user_id: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[str] = None
    connected_accounts: ConnectedAccounts = field(default_factory=ConnectedAccounts)
    membership_date: Optional[str] = None


@dataclass
class PublicationRole:
    name: str
    url: str
    role: str
    ownership_note: Optional[str] = None


@dataclass
class BookmarkEntry:
    title: str
    url: str
    date_bookmarked: Optional[str] = None


@dataclass
class ClapEntry:
    title: str
    url: str
    claps: int
    date: Optional[str] = None


@dataclass
class HighlightEntry:
    quote: str
    date: Optional[str] = None


@dataclass
class LinkEntry:
    """Named link used by lists, interests and the social graph."""

    name: str
    url: str


@dataclass
class ListData:
    name: str
    date: Optional[str]
    list_url: Optional[str]
    posts: List[LinkEntry] = field(default_factory=list)


@dataclass
class EarningsEntry:
    """Partner program earnings for one post, joined on ``medium_id``."""

    title: str
    url: str
    medium_id: str
    earnings: float


@dataclass
class FollowingData:
    users: List[LinkEntry] = field(default_factory=list)
    publications: List[LinkEntry] = field(default_factory=list)
    topics: List[LinkEntry] = field(default_factory=list)


@dataclass
class InterestsData:
    tags: List[LinkEntry] = field(default_factory=list)
    topics: List[LinkEntry] = field(default_factory=list)
    publications: List[LinkEntry] = field(default_factory=list)
    writers: List[LinkEntry] = field(default_factory=list)


@dataclass
class ReportMessage:
    file: str
    message: str


@dataclass
class ReportSummary:
    posts_found: int = 0
    posts_converted: int = 0
    posts_skipped: int = 0
    drafts_converted: int = 0
    drafts_skipped: int = 0
    responses_skipped: int = 0
    responses_included: int = 0
    images_downloaded: int = 0
    images_failed: int = 0
    supplementary_files: int = 0


@dataclass
class ConversionReport:
    """Append-only record of a conversion run."""

    generated_at: str
    tool: str
    version: str
    config: Dict[str, Any]
    summary: ReportSummary = field(default_factory=ReportSummary)
    warnings: List[ReportMessage] = field(default_factory=list)
    errors: List[ReportMessage] = field(default_factory=list)

    def add_warning(self, file: str, message: str) -> None:
        self.warnings.append(ReportMessage(file=file, message=message))

    def add_error(self, file: str, message: str) -> None:
        self.errors.append(ReportMessage(file=file, message=message))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
