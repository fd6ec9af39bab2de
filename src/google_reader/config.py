"""Settings read from the environment (``GOOGLE_READER_*``) or a ``.env`` file.

The client itself never reads the environment; the MCP server and the live
tests build ``Credentials`` from these settings.
"""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_COUNT, MAX_COUNT
from .models import Credentials


class ReaderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_READER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: Optional[str] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    timeout: float = Field(default=30.0, gt=0)
    page_size: int = Field(default=DEFAULT_COUNT, ge=1, le=MAX_COUNT)

    @property
    def is_configured(self) -> bool:
        return bool(self.server and self.username and self.password)

    def credentials(self) -> Credentials:
        missing = [
            f"GOOGLE_READER_{name.upper()}"
            for name in ("server", "username", "password")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"Missing settings: {', '.join(missing)}")
        return Credentials(
            server_url=self.server,
            username=self.username,
            password=self.password,
        )
