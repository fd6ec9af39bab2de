#!/usr/bin/env python3
"""MCP Server for Google Reader API (FreshRSS) integration."""

import json
import logging
from datetime import datetime
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .client import GoogleReaderClient
from .config import ReaderSettings
from .constants import CHARACTER_LIMIT
from .exceptions import GoogleReaderError
from .log import setup_logging
from .models import (
    EditItemsInput,
    GetStreamContentsInput,
    Item,
    MarkStreamAsReadInput,
    ResponseFormat,
    SimpleResponseFormatInput,
    StreamContents,
    SubscriptionList,
    TagList,
    UnreadCountList,
    UserInfo,
)

mcp = FastMCP("google_reader_mcp")

_client: Optional[GoogleReaderClient] = None


def get_client() -> GoogleReaderClient:
    """Get the process-wide client so the session is reused across tools."""
    global _client
    if _client is None:
        settings = ReaderSettings()
        if not settings.is_configured:
            raise GoogleReaderError(
                "GOOGLE_READER_SERVER, GOOGLE_READER_USERNAME and "
                "GOOGLE_READER_PASSWORD environment variables must be set"
            )
        _client = GoogleReaderClient(
            settings.credentials(),
            timeout=settings.timeout,
            page_size=settings.page_size,
        )
    return _client


def _handle_error(e: Exception) -> str:
    """Consistent error formatting."""
    if isinstance(e, GoogleReaderError):
        return f"Error: {e.message}"
    return f"Error: {type(e).__name__}: {str(e)}"


def _truncate_response(content: str) -> str:
    """Truncate response to character limit."""
    if len(content) <= CHARACTER_LIMIT:
        return content
    return content[: CHARACTER_LIMIT - 50] + "\n\n... [Response truncated at 25000 characters]"


def _format_timestamp(timestamp: Optional[int]) -> str:
    """Format epoch seconds to a date string."""
    if timestamp is None:
        return "Unknown"
    try:
        return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M")
    except (ValueError, OSError, OverflowError):
        return "Unknown"


def _truncate_text(text: Optional[str], max_length: int = 300) -> str:
    """Truncate text with ellipsis."""
    if text is None:
        return ""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def _dump(model) -> str:
    return json.dumps(model.model_dump(mode="json", by_alias=True), indent=2)


def _format_item_markdown(item: Item) -> str:
    """Format a single item as markdown."""
    feed = item.origin.title or item.origin.stream_id or "Unknown feed"
    lines = [
        f"### {item.title or 'Untitled'}",
        f"**Feed:** {feed} | **Author:** {item.author or 'Unknown author'} | "
        f"**Published:** {_format_timestamp(item.published)}",
        f"**Read:** {'Yes' if item.is_read else 'No'} | "
        f"**Starred:** {'Yes' if item.is_starred else 'No'}",
        f"**ID:** `{item.id}`",
    ]
    if item.url:
        lines.append(f"**URL:** [{item.url}]({item.url})")

    summary = _truncate_text(item.summary.content)
    if summary:
        lines.append(f"\n**Summary:** {summary}")

    return "\n".join(lines)


def _format_stream_contents(data: StreamContents, response_format: ResponseFormat) -> str:
    """Format stream contents response."""
    if response_format == ResponseFormat.JSON:
        return _dump(data)

    lines = [f"## Items ({len(data.items)} found)\n"]
    if data.items:
        lines.append("\n\n---\n\n".join(_format_item_markdown(i) for i in data.items))
    else:
        lines.append("No items found.")

    if data.continuation:
        lines.append(
            f"\n\n---\n**More items available.** Use continuation token: `{data.continuation}`"
        )

    return "\n".join(lines)


def _format_user_info_markdown(info: UserInfo) -> str:
    """Format user info as markdown."""
    return f"""## Google Reader Account

**User ID:** `{info.user_id or 'Unknown'}`
**Name:** {info.user_name or 'Not available'}
**Email:** {info.user_email or 'Not available'}
"""


def _format_subscriptions_markdown(data: SubscriptionList) -> str:
    """Format subscriptions list as markdown."""
    if not data.subscriptions:
        return "No subscriptions found."

    lines = [f"## Subscriptions ({len(data.subscriptions)} feeds)\n"]
    for sub in data.subscriptions:
        categories = [c.label or c.id for c in sub.categories]
        lines.append(f"### {sub.title or 'Untitled'}")
        lines.append(f"**Feed ID:** `{sub.id}`")
        if sub.html_url:
            lines.append(f"**Website:** [{sub.html_url}]({sub.html_url})")
        lines.append(f"**Folders:** {', '.join(categories) if categories else 'None'}")
        lines.append("")

    return "\n".join(lines)


def _format_tags_markdown(data: TagList) -> str:
    """Format tags list as markdown."""
    if not data.tags:
        return "No tags found."

    lines = [f"## Tags ({len(data.tags)} found)\n"]
    for tag in data.tags:
        kind = f" ({tag.type})" if tag.type else ""
        lines.append(f"- **{tag.label}**{kind}")
        lines.append(f"  - ID: `{tag.id}`")

    return "\n".join(lines)


def _format_unread_counts_markdown(data: UnreadCountList) -> str:
    """Format unread counts as markdown."""
    if not data.unreadcounts:
        return "No unread counts available."

    lines = [f"## Unread Counts ({data.total} unread in feeds)\n"]
    for entry in sorted(data.unreadcounts, key=lambda c: c.count, reverse=True):
        if entry.id.startswith("feed/"):
            kind = "Feed"
        elif "/label/" in entry.id:
            kind = "Folder"
        else:
            kind = "Stream"
        lines.append(f"- **{entry.id}** ({kind}): {entry.count} unread")

    return "\n".join(lines)


# =============================================================================
# Tools
# =============================================================================

_READ_ONLY = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True,
}


@mcp.tool(name="greader_get_user_info", annotations={"title": "Get Account Info", **_READ_ONLY})
async def greader_get_user_info(params: SimpleResponseFormatInput) -> str:
    """Get the Google Reader account the server credentials belong to.

    Use this tool to verify authentication.

    Args:
        params (SimpleResponseFormatInput): Validated input containing:
            - response_format (str): 'markdown' for human-readable or 'json' for machine-readable

    Returns:
        str: User ID, name and email.
    """
    try:
        info = await get_client().user_info()

        if params.response_format == ResponseFormat.JSON:
            return _truncate_response(_dump(info))

        return _truncate_response(_format_user_info_markdown(info))
    except Exception as e:
        return _handle_error(e)


@mcp.tool(name="greader_get_subscriptions", annotations={"title": "Get Feed Subscriptions", **_READ_ONLY})
async def greader_get_subscriptions(params: SimpleResponseFormatInput) -> str:
    """List all feed subscriptions.

    Use this tool to discover available feeds and their stream IDs.

    Args:
        params (SimpleResponseFormatInput): Validated input containing:
            - response_format (str): 'markdown' for human-readable or 'json' for machine-readable

    Returns:
        str: List of subscriptions with feed ID, title, website, and folders.
    """
    try:
        subscriptions = await get_client().subscription_list()

        if params.response_format == ResponseFormat.JSON:
            return _truncate_response(_dump(subscriptions))

        return _truncate_response(_format_subscriptions_markdown(subscriptions))
    except Exception as e:
        return _handle_error(e)


@mcp.tool(name="greader_get_tags", annotations={"title": "Get Folders and Tags", **_READ_ONLY})
async def greader_get_tags(params: SimpleResponseFormatInput) -> str:
    """List folders, labels and states.

    Args:
        params (SimpleResponseFormatInput): Validated input containing:
            - response_format (str): 'markdown' for human-readable or 'json' for machine-readable

    Returns:
        str: List of tags with ID and type.

    Examples:
        - Folder IDs have format 'user/-/label/NAME'
    """
    try:
        tags = await get_client().tag_list()

        if params.response_format == ResponseFormat.JSON:
            return _truncate_response(_dump(tags))

        return _truncate_response(_format_tags_markdown(tags))
    except Exception as e:
        return _handle_error(e)


@mcp.tool(name="greader_get_unread_counts", annotations={"title": "Get Unread Counts", **_READ_ONLY})
async def greader_get_unread_counts(params: SimpleResponseFormatInput) -> str:
    """Get unread item counts per stream, sorted by count descending.

    Args:
        params (SimpleResponseFormatInput): Validated input containing:
            - response_format (str): 'markdown' for human-readable or 'json' for machine-readable
    """
    try:
        counts = await get_client().unread_count()

        if params.response_format == ResponseFormat.JSON:
            return _truncate_response(_dump(counts))

        return _truncate_response(_format_unread_counts_markdown(counts))
    except Exception as e:
        return _handle_error(e)


@mcp.tool(name="greader_get_stream_contents", annotations={"title": "Get Stream Contents", **_READ_ONLY})
async def greader_get_stream_contents(params: GetStreamContentsInput) -> str:
    """Fetch items from a stream (feed, folder, or state).

    Supports pagination via continuation token.

    Args:
        params (GetStreamContentsInput): Validated input containing:
            - stream_id (str): Stream ID (default: the whole reading list)
            - count (int): Items to return (default: GOOGLE_READER_PAGE_SIZE)
            - unread_only (bool): Only unread items (default: True)
            - continuation (str): Pagination token
            - oldest_first (bool): Sort order
            - response_format (str): 'markdown' or 'json'

    Returns:
        str: Items with id, title, feed, published date, summary, and URL.
             Includes continuation token if more items are available.
    """
    try:
        data = await get_client().stream_contents(
            stream_id=params.stream_id,
            count=params.count,
            continuation=params.continuation,
            exclude_read=params.unread_only,
            newest_first=not params.oldest_first,
        )
        return _truncate_response(_format_stream_contents(data, params.response_format))
    except Exception as e:
        return _handle_error(e)


_EDIT = {
    "readOnlyHint": False,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True,
}


@mcp.tool(name="greader_mark_as_read", annotations={"title": "Mark Items as Read", **_EDIT})
async def greader_mark_as_read(params: EditItemsInput) -> str:
    """Mark items as read by their IDs.

    Args:
        params (EditItemsInput): Validated input containing:
            - item_ids (list[str]): Item IDs (max 1000)
    """
    try:
        await get_client().mark_read(params.item_ids)
        return f"Successfully marked {len(params.item_ids)} item(s) as read."
    except Exception as e:
        return _handle_error(e)


@mcp.tool(name="greader_mark_as_unread", annotations={"title": "Mark Items as Unread", **_EDIT})
async def greader_mark_as_unread(params: EditItemsInput) -> str:
    """Mark items as unread (undo mark as read)."""
    try:
        await get_client().mark_unread(params.item_ids)
        return f"Successfully marked {len(params.item_ids)} item(s) as unread."
    except Exception as e:
        return _handle_error(e)


@mcp.tool(name="greader_star", annotations={"title": "Star Items", **_EDIT})
async def greader_star(params: EditItemsInput) -> str:
    """Star items by their IDs."""
    try:
        await get_client().star(params.item_ids)
        return f"Successfully starred {len(params.item_ids)} item(s)."
    except Exception as e:
        return _handle_error(e)


@mcp.tool(name="greader_unstar", annotations={"title": "Unstar Items", **_EDIT})
async def greader_unstar(params: EditItemsInput) -> str:
    """Remove the star from items."""
    try:
        await get_client().unstar(params.item_ids)
        return f"Successfully unstarred {len(params.item_ids)} item(s)."
    except Exception as e:
        return _handle_error(e)


@mcp.tool(
    name="greader_mark_stream_as_read",
    annotations={"title": "Mark Stream as Read", **_EDIT, "destructiveHint": True},
)
async def greader_mark_stream_as_read(params: MarkStreamAsReadInput) -> str:
    """Mark all items in a feed or folder as read.

    Args:
        params (MarkStreamAsReadInput): Validated input containing:
            - stream_id (str): Stream ID ('feed/ID' or 'user/-/label/NAME')
            - older_than (int, optional): Mark only items older than this timestamp (epoch seconds)

    Examples:
        - Mark feed as read: stream_id="feed/12"
        - Mark older items: stream_id="user/-/label/Tech", older_than=1704067200
    """
    try:
        await get_client().mark_all_as_read(params.stream_id, params.older_than)
        msg = f"Successfully marked stream as read: {params.stream_id}"
        if params.older_than:
            msg += f" (items before {_format_timestamp(params.older_than)})"
        return msg
    except Exception as e:
        return _handle_error(e)


def main():
    """Entry point for the MCP server."""
    setup_logging(logging.INFO)
    mcp.run()


if __name__ == "__main__":
    main()
