"""httpx wrapper shared by the session manager and the request dispatcher."""

from typing import Optional

import httpx

from .constants import USER_AGENT


def build_async_client(
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with the client's defaults.

    `transport` is passed straight through, which lets tests plug in an
    `httpx.MockTransport`.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        transport=transport,
        headers={"User-Agent": USER_AGENT},
    )
