from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from google_reader.client import GoogleReaderClient
from google_reader.models import Credentials
from google_reader.session import SessionManager

SERVER = "https://reader.example.com/api/greader.php"
USERNAME = "alice"
PASSWORD = "s3cret"
WRITE_TOKEN = "write-token-1"


def make_item(n: int, read: bool = False) -> dict:
    categories = ["user/-/state/com.google/reading-list"]
    if read:
        categories.append("user/-/state/com.google/read")
    return {
        "id": f"tag:google.com,2005:reader/item/{n:016x}",
        "crawlTimeMsec": str(1700000000000 + n),
        "timestampUsec": str(1700000000000000 + n),
        "published": 1700000000 + n,
        "title": f"Item {n}",
        "canonical": [{"href": f"https://blog.example.com/{n}"}],
        "alternate": [{"href": f"https://blog.example.com/{n}", "type": "text/html"}],
        "categories": categories,
        "origin": {"streamId": "feed/1", "title": "Example Blog", "htmlUrl": "https://blog.example.com"},
        "summary": {"content": f"<p>Body {n}</p>"},
        "author": "Bob",
    }


class FakeReader:
    """Minimal FreshRSS-like Google Reader API behind an httpx.MockTransport."""

    def __init__(self, items=None, page_size=2):
        self.items = items if items is not None else [make_item(n) for n in range(5)]
        self.page_size = page_size
        self.requests: list[httpx.Request] = []
        self.logins = 0
        self.valid_tokens: set[str] = set()
        self.write_token = WRITE_TOKEN
        self.login_body_extra = ""
        self.repeat_continuation = False
        self.token_cycle: list[str] = []
        self.bad_token_status = 401
        self.edits: list[dict] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def revoke_all(self) -> None:
        self.valid_tokens.clear()

    def calls_to(self, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.split("/api/greader.php", 1)[1]

        if path == "/accounts/ClientLogin":
            return self._login(request)

        auth = request.headers.get("Authorization", "")
        if auth.removeprefix("GoogleLogin auth=") not in self.valid_tokens:
            return httpx.Response(401, text="Unauthorized!")

        if path == "/reader/api/0/token":
            return httpx.Response(200, text=self.write_token + "\n")
        if path == "/reader/api/0/user-info":
            return httpx.Response(
                200, json={"userId": "1", "userName": USERNAME, "userProfileId": "1", "userEmail": ""}
            )
        if path == "/reader/api/0/subscription/list":
            return httpx.Response(200, json={"subscriptions": [
                {
                    "id": "feed/1",
                    "title": "Example Blog",
                    "categories": [{"id": "user/-/label/Tech", "label": "Tech"}],
                    "url": "https://blog.example.com/feed.xml",
                    "htmlUrl": "https://blog.example.com",
                    "iconUrl": "",
                },
            ]})
        if path == "/reader/api/0/tag/list":
            return httpx.Response(200, json={"tags": [
                {"id": "user/-/state/com.google/starred"},
                {"id": "user/-/label/Tech", "type": "folder", "unread_count": 3},
            ]})
        if path == "/reader/api/0/unread-count":
            return httpx.Response(200, json={"max": 150, "unreadcounts": [
                {"id": "feed/1", "count": 3, "newestItemTimestampUsec": "1700000000000004"},
                {"id": "feed/2", "count": 4, "newestItemTimestampUsec": "1700000000000002"},
                {"id": "user/-/label/Tech", "count": 7, "newestItemTimestampUsec": "1700000000000004"},
            ]})
        if path.startswith("/reader/api/0/stream/contents/"):
            return self._stream(request, path)
        if path in ("/reader/api/0/edit-tag", "/reader/api/0/mark-all-as-read"):
            form = parse_qs(request.content.decode())
            if form.get("T") != [self.write_token]:
                return httpx.Response(
                    self.bad_token_status, text="Unauthorized!", headers={"X-Reader-Google-Bad-Token": "true"}
                )
            self.edits.append({"path": path, **form})
            return httpx.Response(200, text="OK")

        return httpx.Response(404, text="Not found")

    def _login(self, request: httpx.Request) -> httpx.Response:
        form = parse_qs(request.content.decode())
        if form.get("Email") != [USERNAME] or form.get("Passwd") != [PASSWORD]:
            return httpx.Response(401, text="Error=BadAuthentication\n")
        self.logins += 1
        token = f"{USERNAME}/auth-{self.logins}"
        self.valid_tokens.add(token)
        return httpx.Response(
            200,
            text=f"SID={token}\nLSID=null\nAuth={token}\n{self.login_body_extra}",
        )

    def _stream(self, request: httpx.Request, path: str) -> httpx.Response:
        params = request.url.params
        items = self.items
        if self.token_cycle:
            calls = len(self.calls_to("/reading-list")) - 1
            return httpx.Response(200, json={
                "items": items[calls:calls + 1],
                "continuation": self.token_cycle[calls % len(self.token_cycle)],
            })
        if params.get("xt") == "user/-/state/com.google/read":
            items = [i for i in items if "user/-/state/com.google/read" not in i["categories"]]
        if params.get("r") == "o":
            items = list(reversed(items))
        start = int(params.get("c", "0"))
        count = int(params.get("n", str(self.page_size)))
        page = items[start:start + count]
        body = {
            "id": path.removeprefix("/reader/api/0/stream/contents/"),
            "updated": 1700000100,
            "items": page,
        }
        if self.repeat_continuation and start:
            body["continuation"] = str(start)
        elif start + count < len(items):
            body["continuation"] = str(start + count)
        return httpx.Response(200, json=body)


class Clock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def fake_reader():
    return FakeReader()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def credentials():
    return Credentials(server_url=SERVER + "/", username=USERNAME, password=PASSWORD)


@pytest.fixture
def sessions(credentials, fake_reader, clock):
    return SessionManager(credentials, transport=fake_reader.transport(), clock=clock)


@pytest.fixture
def client(credentials, fake_reader, sessions):
    return GoogleReaderClient(
        credentials, transport=fake_reader.transport(), sessions=sessions
    )
