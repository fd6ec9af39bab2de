from google_reader.cursor import iter_items, next_page
from google_reader.models import SyncCursor


async def test_next_page_walks_to_terminal_state(client):
    pages = []
    cursor = None
    while True:
        items, cursor = await next_page(client, cursor, count=2)
        pages.append([i.title for i in items])
        if cursor is None:
            break

    assert pages == [["Item 0", "Item 1"], ["Item 2", "Item 3"], ["Item 4"]]


async def test_next_page_stamps_cursor_with_session_clock(client, clock):
    clock.advance(minutes=5)

    items, cursor = await next_page(client, None, count=2)

    assert len(items) == 2
    assert cursor.continuation_token == "2"
    assert cursor.last_fetched_at == clock.now


async def test_next_page_sends_continuation(client, fake_reader):
    await next_page(client, SyncCursor(continuation_token="4"), count=2)

    request = fake_reader.calls_to("/reading-list")[0]
    assert request.url.params["c"] == "4"
    assert request.url.params["xt"] == "user/-/state/com.google/read"


async def test_repeated_continuation_is_terminal(client, fake_reader):
    fake_reader.repeat_continuation = True

    _, cursor = await next_page(client, None, count=2)
    items, cursor = await next_page(client, cursor, count=2)

    assert [i.title for i in items] == ["Item 2", "Item 3"]
    assert cursor is None


async def test_iter_items_yields_every_item(client, fake_reader):
    titles = [item.title async for item in iter_items(client, count=2)]

    assert titles == [f"Item {n}" for n in range(5)]
    assert len(fake_reader.calls_to("/reading-list")) == 3
    assert fake_reader.logins == 1


async def test_iter_items_oldest_first(client):
    titles = [item.title async for item in iter_items(client, count=3, newest_first=False)]

    assert titles == [f"Item {n}" for n in reversed(range(5))]


async def test_iter_items_empty_stream(client, fake_reader):
    fake_reader.items = []

    assert [item async for item in iter_items(client)] == []


async def test_iter_items_stops_on_token_cycle(client, fake_reader):
    fake_reader.token_cycle = ["A", "B"]

    titles = [item.title async for item in iter_items(client)]

    assert titles == ["Item 0", "Item 1", "Item 2"]
    requests = fake_reader.calls_to("/reading-list")
    assert [r.url.params.get("c") for r in requests] == [None, "A", "B"]


async def test_iter_items_uses_client_page_size(client, fake_reader):
    client.page_size = 4

    titles = [item.title async for item in iter_items(client)]

    assert len(titles) == 5
    assert len(fake_reader.calls_to("/reading-list")) == 2
