"""
Configuration constants for the SRI assessment system.
"""

import os
from pathlib import Path

# Assessment variants. "quick" uses the short-form scales, "full" the long forms.
ASSESSMENT_TYPES = ("quick", "full")
DEFAULT_ASSESSMENT_TYPE = "quick"

# Single progress record per device; the record carries its own type.
PROGRESS_KEY = "sri_assessment_progress"

SESSION_ID_PREFIX = "session"

# Presentation pacing only: how long the clients show the processing screen
# before moving on to the results view.
DEFAULT_REDIRECT_DELAY_SECONDS = 2.0

DEFAULT_LOG_LEVEL = "INFO"

_DB_PATH_ENV = "SRI_ASSESSMENT_DB_PATH"
_ASSESSMENT_TYPE_ENV = "SRI_ASSESSMENT_TYPE"
_LOG_LEVEL_ENV = "SRI_ASSESSMENT_LOG_LEVEL"
_REDIRECT_DELAY_ENV = "SRI_ASSESSMENT_REDIRECT_DELAY"

DB_FILE = "assessment.db"


def _to_float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def get_db_path() -> Path:
    """Return the device-scoped store location.

    Supports an override via ``SRI_ASSESSMENT_DB_PATH`` (used by tests and
    by the web app when several local profiles are needed).
    """
    override = os.environ.get(_DB_PATH_ENV, "").strip()
    if override:
        return Path(override)

    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))
        return base / "sri-assessment" / DB_FILE

    return Path.home() / ".sri-assessment" / DB_FILE


def get_default_assessment_type() -> str:
    raw = os.environ.get(_ASSESSMENT_TYPE_ENV, "").strip().lower()
    return raw if raw in ASSESSMENT_TYPES else DEFAULT_ASSESSMENT_TYPE


def get_log_level(default: str = DEFAULT_LOG_LEVEL) -> str:
    return os.environ.get(_LOG_LEVEL_ENV, "").strip().upper() or default


def get_redirect_delay() -> float:
    return _to_float_env(_REDIRECT_DELAY_ENV, DEFAULT_REDIRECT_DELAY_SECONDS)


def resolve_assessment_type(value: str | None) -> str:
    """Normalise an assessment type, falling back to the configured default.

    Unknown values fall back the same way a missing ``?type=`` query did in
    the web front-end.
    """
    if value and value.strip().lower() in ASSESSMENT_TYPES:
        return value.strip().lower()
    return get_default_assessment_type()
