"""Pydantic v2 models for the Google Reader client and MCP server."""

from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from .constants import (
    DEFAULT_COUNT,
    DEFAULT_SESSION_LIFETIME,
    MAX_BATCH_SIZE,
    MAX_COUNT,
    READING_LIST,
    STATE_READ,
    STATE_STARRED,
    WRITE_TOKEN_LIFETIME,
)


# =============================================================================
# Authentication state
# =============================================================================


class Credentials(BaseModel):
    """Server URL and account used for ClientLogin.

    The server URL is the API root, e.g. ``https://example.com/api/greader.php``
    for FreshRSS. A trailing slash is dropped.
    """

    model_config = ConfigDict(frozen=True)

    server_url: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password: SecretStr

    @field_validator("server_url")
    @classmethod
    def _normalize_server_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("server_url must start with http:// or https://")
        return value.rstrip("/")


class Session(BaseModel):
    """Tokens returned by ClientLogin plus the lazily fetched write token."""

    auth_token: str = Field(..., repr=False)
    session_token: Optional[str] = Field(default=None, repr=False)
    issued_at: datetime
    expires_in: timedelta = DEFAULT_SESSION_LIFETIME
    write_token: Optional[str] = Field(default=None, repr=False)
    write_token_issued_at: Optional[datetime] = None
    revoked: bool = False

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + self.expires_in

    def is_expired(self, now: datetime) -> bool:
        return now - self.issued_at >= self.expires_in

    def has_write_token(self, now: datetime) -> bool:
        if self.write_token is None or self.write_token_issued_at is None:
            return False
        return now - self.write_token_issued_at < WRITE_TOKEN_LIFETIME


class SyncCursor(BaseModel):
    """Position in a paginated stream listing."""

    continuation_token: Optional[str] = None
    last_fetched_at: Optional[datetime] = None


# =============================================================================
# API responses
# =============================================================================


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Link(_Wire):
    href: str
    type: Optional[str] = None


class Summary(_Wire):
    content: Optional[str] = None
    author: Optional[str] = None


class Origin(_Wire):
    stream_id: Optional[str] = Field(default=None, alias="streamId")
    title: Optional[str] = None
    html_url: Optional[str] = Field(default=None, alias="htmlUrl")


class Item(_Wire):
    """A single entry from a stream."""

    id: str
    crawl_time_msec: Optional[str] = Field(default=None, alias="crawlTimeMsec")
    timestamp_usec: Optional[str] = Field(default=None, alias="timestampUsec")
    published: Optional[int] = None
    updated: Optional[int] = None
    title: str = ""
    author: Optional[str] = None
    canonical: List[Link] = Field(default_factory=list)
    alternate: List[Link] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    origin: Origin = Field(default_factory=Origin)
    summary: Summary = Field(default_factory=Summary)

    @property
    def url(self) -> Optional[str]:
        for links in (self.canonical, self.alternate):
            if links:
                return links[0].href
        return None

    @property
    def is_read(self) -> bool:
        return any(c.endswith("/state/com.google/read") for c in self.categories)

    @property
    def is_starred(self) -> bool:
        return any(c.endswith("/state/com.google/starred") for c in self.categories)


class StreamContents(_Wire):
    id: str = ""
    updated: Optional[int] = None
    items: List[Item] = Field(default_factory=list)
    continuation: Optional[str] = None


class Category(_Wire):
    id: str
    label: Optional[str] = None


class Subscription(_Wire):
    id: str
    title: str = ""
    categories: List[Category] = Field(default_factory=list)
    url: Optional[str] = None
    html_url: Optional[str] = Field(default=None, alias="htmlUrl")
    icon_url: Optional[str] = Field(default=None, alias="iconUrl")


class SubscriptionList(_Wire):
    subscriptions: List[Subscription] = Field(default_factory=list)


class Tag(_Wire):
    id: str
    type: Optional[str] = None
    unread_count: Optional[int] = None

    @property
    def label(self) -> str:
        return self.id.rsplit("/", 1)[-1]


class TagList(_Wire):
    tags: List[Tag] = Field(default_factory=list)


class UnreadCount(_Wire):
    id: str
    count: int = 0
    newest_item_timestamp_usec: Optional[str] = Field(
        default=None, alias="newestItemTimestampUsec"
    )


class UnreadCountList(_Wire):
    max: Optional[int] = None
    unreadcounts: List[UnreadCount] = Field(default_factory=list)

    @property
    def total(self) -> int:
        # Feeds only; labels and states repeat the same items.
        return sum(c.count for c in self.unreadcounts if c.id.startswith("feed/"))


class UserInfo(_Wire):
    user_id: Optional[str] = Field(default=None, alias="userId")
    user_name: Optional[str] = Field(default=None, alias="userName")
    user_profile_id: Optional[str] = Field(default=None, alias="userProfileId")
    user_email: Optional[str] = Field(default=None, alias="userEmail")


# =============================================================================
# MCP tool inputs
# =============================================================================


class ResponseFormat(str, Enum):
    """Output format for tool responses."""

    MARKDOWN = "markdown"
    JSON = "json"


class GetStreamContentsInput(BaseModel):
    """Input for fetching items from a stream."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    stream_id: str = Field(
        default=READING_LIST,
        description="Stream ID: 'feed/ID' for feeds, 'user/-/label/NAME' for folders, "
        f"'{STATE_STARRED}' for starred items, '{READING_LIST}' for everything",
        min_length=1,
    )
    count: Optional[int] = Field(
        default=None,
        ge=1,
        le=MAX_COUNT,
        description=f"Number of items to return (1-{MAX_COUNT}, default "
        f"GOOGLE_READER_PAGE_SIZE or {DEFAULT_COUNT})",
    )
    unread_only: bool = Field(
        default=True,
        description=f"Exclude items tagged '{STATE_READ}' (default: True)",
    )
    continuation: Optional[str] = Field(
        default=None,
        description="Continuation token for pagination",
    )
    oldest_first: bool = Field(
        default=False,
        description="Return oldest items first instead of newest",
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' for human-readable or 'json' for machine-readable",
    )


class EditItemsInput(BaseModel):
    """Input for tools that change the state of items."""

    model_config = ConfigDict(extra="forbid")

    item_ids: List[str] = Field(
        ...,
        min_length=1,
        max_length=MAX_BATCH_SIZE,
        description=f"List of item IDs (max {MAX_BATCH_SIZE})",
    )


class MarkStreamAsReadInput(BaseModel):
    """Input for marking an entire stream as read."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    stream_id: str = Field(
        ...,
        description="Stream ID (format: 'feed/ID' or 'user/-/label/NAME')",
        min_length=1,
    )
    older_than: Optional[int] = Field(
        default=None,
        description="Mark only items older than this timestamp (epoch seconds)",
    )


class SimpleResponseFormatInput(BaseModel):
    """Input for tools that only need response format."""

    model_config = ConfigDict(extra="forbid")

    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' for human-readable or 'json' for machine-readable",
    )
