"""Paging through stream listings with continuation tokens."""

import logging
from typing import AsyncIterator, List, Optional, Tuple

from .client import GoogleReaderClient
from .constants import READING_LIST
from .models import Item, SyncCursor

logger = logging.getLogger(__name__)


async def next_page(
    client: GoogleReaderClient,
    cursor: Optional[SyncCursor] = None,
    stream_id: str = READING_LIST,
    count: Optional[int] = None,
    exclude_read: bool = True,
    newest_first: bool = True,
) -> Tuple[List[Item], Optional[SyncCursor]]:
    """Fetch the page at ``cursor`` (None starts from the top).

    Returns the items and the cursor for the following page, or None when
    the server sent no continuation token and there is nothing left to read.
    Items are passed through as the server ordered them.
    """
    sent = cursor.continuation_token if cursor else None
    contents = await client.stream_contents(
        stream_id,
        count=count,
        continuation=sent,
        exclude_read=exclude_read,
        newest_first=newest_first,
    )

    token = contents.continuation or None
    if token is not None and token == sent:
        logger.warning(
            "Server repeated continuation %r for %s, stopping", token, stream_id
        )
        token = None

    logger.debug("%s: %d items, continuation=%s", stream_id, len(contents.items), token)
    if token is None:
        return contents.items, None
    return contents.items, SyncCursor(
        continuation_token=token, last_fetched_at=client.sessions.clock()
    )


async def iter_items(
    client: GoogleReaderClient,
    stream_id: str = READING_LIST,
    count: Optional[int] = None,
    exclude_read: bool = True,
    newest_first: bool = True,
) -> AsyncIterator[Item]:
    """Yield every item of a stream, following continuation tokens.

    Stops when a continuation token comes back a second time, so a server
    cycling through tokens cannot keep the loop going.
    """
    seen: set[str] = set()
    cursor: Optional[SyncCursor] = None
    while True:
        items, cursor = await next_page(
            client,
            cursor,
            stream_id=stream_id,
            count=count,
            exclude_read=exclude_read,
            newest_first=newest_first,
        )
        for item in items:
            yield item
        if cursor is None:
            return
        if cursor.continuation_token in seen:
            logger.warning(
                "Continuation %r for %s already visited, stopping",
                cursor.continuation_token,
                stream_id,
            )
            return
        seen.add(cursor.continuation_token)
