"""ClientLogin authentication and session lifetime tracking."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import httpx

from .constants import CLIENT_LOGIN_PATH, DEFAULT_SESSION_LIFETIME
from .exceptions import AuthError
from .http_client import build_async_client
from .models import Credentials, Session

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_client_login(body: str) -> dict[str, str]:
    """Parse the ``key=value`` lines of a ClientLogin response body."""
    fields: dict[str, str] = {}
    for line in body.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key:
            fields[key] = value.strip()
    return fields


class SessionManager:
    """Owns the single session for one set of credentials.

    ``authenticate`` always talks to the server; ``ensure_session`` only does
    so when there is no session or the current one has expired. Nothing here
    retries: a failed login is raised to the caller as ``AuthError``.
    """

    def __init__(
        self,
        credentials: Credentials,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        default_lifetime: timedelta = DEFAULT_SESSION_LIFETIME,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.credentials = credentials
        self.timeout = timeout
        self.transport = transport
        self.default_lifetime = default_lifetime
        self.clock = clock
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    async def authenticate(self) -> Session:
        """Exchange username/password for a new session.

        Raises:
            AuthError: credentials rejected, no ``Auth`` token in the
                response, or the server could not be reached.
        """
        url = f"{self.credentials.server_url}{CLIENT_LOGIN_PATH}"
        logger.debug("Login URL: %s", url)

        try:
            async with build_async_client(self.timeout, self.transport) as client:
                response = await client.post(
                    url,
                    data={
                        "Email": self.credentials.username,
                        "Passwd": self.credentials.password.get_secret_value(),
                    },
                )
        except httpx.TransportError as e:
            raise AuthError(f"Could not reach {url}: {e}") from e

        fields = parse_client_login(response.text)
        if not response.is_success:
            reason = fields.get("Error") or response.reason_phrase
            raise AuthError(
                f"Login rejected for {self.credentials.username}: {reason}",
                response.status_code,
            )

        auth_token = fields.get("Auth")
        if not auth_token:
            raise AuthError(
                "Login response did not contain an Auth token", response.status_code
            )

        self.invalidate()
        self._session = Session(
            auth_token=auth_token,
            session_token=fields.get("SID") or None,
            issued_at=self.clock(),
            expires_in=self._lifetime(fields),
        )
        logger.info(
            "Authenticated %s, session valid until %s",
            self.credentials.username,
            self._session.expires_at.isoformat(),
        )
        return self._session

    def is_valid(self, session: Optional[Session]) -> bool:
        if session is None or session.revoked:
            return False
        return not session.is_expired(self.clock())

    async def ensure_session(self) -> Session:
        """Return the current session, logging in again if it has expired."""
        if self.is_valid(self._session):
            return self._session
        if self._session is not None:
            logger.info("Session expired, re-authenticating")
        return await self.authenticate()

    def invalidate(self) -> None:
        """Revoke the current session so the next call logs in again."""
        if self._session is not None:
            self._session.revoked = True
            self._session = None

    def store_write_token(self, token: str) -> None:
        if self._session is not None:
            self._session.write_token = token
            self._session.write_token_issued_at = self.clock()

    def invalidate_write_token(self) -> None:
        if self._session is not None:
            self._session.write_token = None
            self._session.write_token_issued_at = None

    @staticmethod
    def auth_headers(session: Session) -> dict[str, str]:
        return {"Authorization": f"GoogleLogin auth={session.auth_token}"}

    def _lifetime(self, fields: dict[str, str]) -> timedelta:
        advertised = fields.get("expires_in")
        if advertised:
            try:
                seconds = int(advertised)
            except ValueError:
                logger.warning("Ignoring malformed expires_in %r", advertised)
            else:
                if seconds > 0:
                    return timedelta(seconds=seconds)
        return self.default_lifetime
