"""Async client for the Google Reader API (FreshRSS and compatible servers)."""

import logging
from datetime import timedelta
from typing import Any, Optional, Sequence, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from .constants import (
    API_PREFIX,
    BAD_TOKEN_HEADER,
    DEFAULT_COUNT,
    DEFAULT_SESSION_LIFETIME,
    READING_LIST,
    STATE_READ,
    STATE_STARRED,
)
from .exceptions import ApiError, AuthError, NetworkError
from .http_client import build_async_client
from .models import (
    Credentials,
    Session,
    StreamContents,
    SubscriptionList,
    TagList,
    UnreadCountList,
    UserInfo,
)
from .session import SessionManager

logger = logging.getLogger(__name__)


class GoogleReaderClient:
    """Async client for the Google Reader API.

    Every call goes through ``call``, which makes sure a valid session exists
    first. When the server rejects the auth token the session is dropped and
    ``AuthError`` is raised; the next call logs in again.

    One client is meant for one caller. Sharing it between tasks needs an
    external lock because re-authentication replaces the token state.
    """

    def __init__(
        self,
        credentials: Credentials,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        session_lifetime: timedelta = DEFAULT_SESSION_LIFETIME,
        sessions: Optional[SessionManager] = None,
        page_size: int = DEFAULT_COUNT,
    ):
        self.credentials = credentials
        self.page_size = page_size
        self.timeout = timeout
        self.transport = transport
        self.sessions = sessions or SessionManager(
            credentials,
            timeout=timeout,
            transport=transport,
            default_lifetime=session_lifetime,
        )

    @property
    def base_url(self) -> str:
        return self.credentials.server_url

    async def authenticate(self) -> Session:
        return await self.sessions.authenticate()

    async def call(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        *,
        method: str = "GET",
        data: Optional[dict] = None,
        write: bool = False,
        model: Optional[type[BaseModel]] = None,
    ) -> Any:
        """Make an authenticated request to the API.

        Args:
            endpoint: Path below the server URL, e.g. ``/reader/api/0/tag/list``
            params: Query string parameters
            method: HTTP method
            data: Form fields for POST requests
            write: Attach the write token as form field ``T``
            model: Validate the JSON body into this model

        Returns:
            An instance of ``model`` when given; otherwise parsed JSON for
            JSON responses, None for 204, text otherwise.

        Raises:
            AuthError: the server rejected the session or write token
            ApiError: any other non-2xx response, or a body that does not
                match ``model``
            NetworkError: the request could not be completed
        """
        session = await self.sessions.ensure_session()
        if write:
            data = dict(data or {})
            data["T"] = await self.get_write_token()

        logger.debug("%s %s params=%s", method, endpoint, params)
        try:
            async with build_async_client(self.timeout, self.transport) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{endpoint}",
                    params=params,
                    data=data,
                    headers=self.sessions.auth_headers(session),
                )
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request to {endpoint} timed out") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Request to {endpoint} failed: {e}") from e

        self._raise_for_status(response)
        body = self._decode(response)
        if model is None:
            return body
        try:
            return model.model_validate(body)
        except ValidationError as e:
            logger.warning("%s: unexpected %s body", endpoint, model.__name__)
            raise ApiError(response.status_code, response.text) from e

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        status = response.status_code
        if response.headers.get(BAD_TOKEN_HEADER, "").lower() == "true":
            logger.info("Write token rejected, dropping it")
            self.sessions.invalidate_write_token()
            raise AuthError("Write token rejected. Try again.", status)
        if status == 401:
            logger.info("Session rejected by server, dropping it")
            self.sessions.invalidate()
            raise AuthError(
                "Authentication rejected. Call again to log in with fresh tokens.",
                status,
            )
        raise ApiError(status, response.text)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204:
            return None
        if "json" in response.headers.get("content-type", ""):
            try:
                return response.json()
            except ValueError as e:
                raise ApiError(response.status_code, response.text) from e
        return response.text

    async def get_write_token(self) -> str:
        """Get the short-lived token required by state-changing calls."""
        session = await self.sessions.ensure_session()
        if session.has_write_token(self.sessions.clock()):
            return session.write_token
        body = await self.call(f"{API_PREFIX}/token")
        token = str(body).strip()
        self.sessions.store_write_token(token)
        return token

    async def user_info(self) -> UserInfo:
        """Get the account the session belongs to."""
        return await self.call(
            f"{API_PREFIX}/user-info", {"output": "json"}, model=UserInfo
        )

    async def subscription_list(self) -> SubscriptionList:
        """List all feed subscriptions."""
        return await self.call(
            f"{API_PREFIX}/subscription/list", {"output": "json"}, model=SubscriptionList
        )

    async def tag_list(self) -> TagList:
        """List folders, labels and states."""
        return await self.call(
            f"{API_PREFIX}/tag/list", {"output": "json"}, model=TagList
        )

    async def unread_count(self) -> UnreadCountList:
        """Get unread counts per stream."""
        return await self.call(
            f"{API_PREFIX}/unread-count", {"output": "json"}, model=UnreadCountList
        )

    async def stream_contents(
        self,
        stream_id: str = READING_LIST,
        count: Optional[int] = None,
        continuation: Optional[str] = None,
        exclude_read: bool = False,
        newest_first: bool = True,
        since: Optional[int] = None,
    ) -> StreamContents:
        """Fetch one page of items from a stream.

        Args:
            stream_id: Stream ID ('feed/ID', 'user/-/label/NAME', a state, ...)
            count: Maximum number of items on the page (default ``page_size``)
            continuation: Token from the previous page
            exclude_read: Leave out items tagged as read
            newest_first: Sort order
            since: Only items newer than this timestamp (epoch seconds)

        Returns:
            StreamContents with ``items`` and an optional ``continuation``
        """
        params: dict[str, Union[str, int]] = {
            "output": "json",
            "n": count if count is not None else self.page_size,
        }
        if continuation:
            params["c"] = continuation
        if exclude_read:
            params["xt"] = STATE_READ
        if not newest_first:
            params["r"] = "o"
        if since is not None:
            params["ot"] = since

        return await self.call(
            f"{API_PREFIX}/stream/contents/{quote(stream_id, safe='/-')}",
            params,
            model=StreamContents,
        )

    async def unread_items(
        self, continuation: Optional[str] = None, count: Optional[int] = None
    ) -> StreamContents:
        """Unread items from the reading list, newest first."""
        return await self.stream_contents(
            READING_LIST, count=count, continuation=continuation, exclude_read=True
        )

    async def edit_tag(
        self,
        item_ids: Sequence[str],
        add: Optional[str] = None,
        remove: Optional[str] = None,
    ) -> str:
        """Add and/or remove a tag on a batch of items."""
        if not item_ids:
            raise ValueError("item_ids must not be empty")
        if add is None and remove is None:
            raise ValueError("edit_tag needs a tag to add or remove")

        data: dict[str, Any] = {"i": list(item_ids)}
        if add is not None:
            data["a"] = add
        if remove is not None:
            data["r"] = remove
        return await self.call(
            f"{API_PREFIX}/edit-tag", method="POST", data=data, write=True
        )

    async def mark_read(self, item_ids: Sequence[str]) -> str:
        return await self.edit_tag(item_ids, add=STATE_READ)

    async def mark_unread(self, item_ids: Sequence[str]) -> str:
        return await self.edit_tag(item_ids, remove=STATE_READ)

    async def star(self, item_ids: Sequence[str]) -> str:
        return await self.edit_tag(item_ids, add=STATE_STARRED)

    async def unstar(self, item_ids: Sequence[str]) -> str:
        return await self.edit_tag(item_ids, remove=STATE_STARRED)

    async def mark_all_as_read(
        self, stream_id: str, older_than: Optional[int] = None
    ) -> str:
        """Mark every item in a stream as read.

        Args:
            stream_id: Stream ID (feed, label or state)
            older_than: Mark only items older than this timestamp (epoch seconds)
        """
        data: dict[str, Any] = {"s": stream_id}
        if older_than is not None:
            # The API takes microseconds.
            data["ts"] = str(older_than * 1_000_000)
        return await self.call(
            f"{API_PREFIX}/mark-all-as-read", method="POST", data=data, write=True
        )
