"""Async client for the Google Reader API as served by FreshRSS and friends."""

from .client import GoogleReaderClient
from .cursor import iter_items, next_page
from .exceptions import ApiError, AuthError, GoogleReaderError, NetworkError
from .models import (
    Credentials,
    Item,
    Session,
    StreamContents,
    Subscription,
    SubscriptionList,
    SyncCursor,
    Tag,
    TagList,
    UnreadCount,
    UnreadCountList,
    UserInfo,
)
from .session import SessionManager

__all__ = [
    "ApiError",
    "AuthError",
    "Credentials",
    "GoogleReaderClient",
    "GoogleReaderError",
    "Item",
    "NetworkError",
    "Session",
    "SessionManager",
    "StreamContents",
    "Subscription",
    "SubscriptionList",
    "SyncCursor",
    "Tag",
    "TagList",
    "UnreadCount",
    "UnreadCountList",
    "UserInfo",
    "iter_items",
    "next_page",
]

__version__ = "0.1.0"
