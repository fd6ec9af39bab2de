"""Constants for the Google Reader client."""

from datetime import timedelta

CLIENT_LOGIN_PATH = "/accounts/ClientLogin"
API_PREFIX = "/reader/api/0"

READING_LIST = "user/-/state/com.google/reading-list"
STATE_READ = "user/-/state/com.google/read"
STATE_STARRED = "user/-/state/com.google/starred"

DEFAULT_SESSION_LIFETIME = timedelta(hours=24)
WRITE_TOKEN_LIFETIME = timedelta(minutes=30)
BAD_TOKEN_HEADER = "X-Reader-Google-Bad-Token"

CHARACTER_LIMIT = 25000  # Max response size
DEFAULT_COUNT = 20  # Default items per page
MAX_COUNT = 1000  # Max items per page
MAX_BATCH_SIZE = 1000  # Max items for edit-tag

USER_AGENT = "google-reader-python/0.1"
