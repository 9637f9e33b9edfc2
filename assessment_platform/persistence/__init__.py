"""Platform-owned persistence layer (device database and stores)."""

from .database import MEMORY_DB, SCHEMA_VERSION, get_connection, init_db
from .progress_store import ProgressStore
from .session_store import SessionStore
