"""Tests against a real server, configured through GOOGLE_READER_* variables."""

import logging

import pytest

from google_reader.client import GoogleReaderClient
from google_reader.config import ReaderSettings
from google_reader.cursor import next_page

settings = ReaderSettings()

pytestmark = pytest.mark.skipif(
    not settings.is_configured,
    reason="GOOGLE_READER_SERVER, GOOGLE_READER_USERNAME and GOOGLE_READER_PASSWORD not set",
)

logger = logging.getLogger(__name__)


@pytest.fixture
def live_client():
    return GoogleReaderClient(settings.credentials(), timeout=settings.timeout)


async def test_subscription_list(live_client):
    await live_client.authenticate()
    subs = await live_client.subscription_list()

    logger.info("Got %d subscriptions", len(subs.subscriptions))
    assert live_client.sessions.is_valid(live_client.sessions.session)


async def test_get_write_token(live_client):
    assert await live_client.get_write_token()


async def test_unread_items(live_client):
    items, cursor = await next_page(live_client, None, count=settings.page_size)

    logger.info("Got %d items, more: %s", len(items), cursor is not None)
    assert all(not item.is_read for item in items)
