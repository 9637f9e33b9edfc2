"""Progress store adapter over the device key-value table."""

import json
import logging
import sqlite3
from typing import Optional

from assessment_platform.config import PROGRESS_KEY
from assessment_platform.models import (
    AssessmentSession,
    Demographics,
    PendingProgress,
    Response,
    format_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)


class ProgressStore:
    """Load, save and clear the in-progress assessment record.

    There is one record per device. Every write replaces the whole record in
    a single statement, so a reader never observes a partial write.
    """

    def __init__(self, conn: sqlite3.Connection, key: str = PROGRESS_KEY):
        self.conn = conn
        self.key = key

    def read_raw(self) -> Optional[str]:
        """Return the stored record text, or None if absent."""
        row = self.conn.execute(
            "SELECT value FROM progress WHERE key = ?", (self.key,)
        ).fetchone()
        return row["value"] if row is not None else None

    def exists(self) -> bool:
        return self.read_raw() is not None

    def load(self, assessment_type: str) -> Optional[PendingProgress]:
        """Load the stored record as a resume candidate.

        Returns None when nothing is stored, when the record belongs to
        another assessment type, when it carries neither demographics nor
        responses, or when it cannot be parsed. Never raises for bad content.
        """
        try:
            raw = self.read_raw()
        except (sqlite3.DataError, sqlite3.OperationalError) as e:
            logger.warning("Ignoring unreadable progress record: %s", e)
            return None
        if raw is None:
            return None

        try:
            data = json.loads(raw)
            candidate = self._parse(data, assessment_type)
        except (json.JSONDecodeError, TypeError, ValueError, KeyError, RecursionError) as e:
            logger.warning("Ignoring malformed progress record: %s", e)
            return None

        if candidate is None or candidate.is_empty:
            return None
        return candidate

    def save(self, session: AssessmentSession, current_page: int = 0) -> None:
        """Persist the session's demographics and responses as progress."""
        self.write(session.type, session.demographics, session.responses, current_page)

    def write(self, assessment_type: str, demographics: Optional[Demographics],
              responses: list[Response], current_page: int = 0) -> None:
        """Replace the stored record.

        Rewriting identical content leaves the existing record (and its
        timestamp) untouched.
        """
        now = utc_now()
        record = {
            "type": assessment_type,
            "demographics": demographics.to_dict() if demographics is not None else None,
            "responses": [r.to_dict() for r in responses],
            "currentPage": int(current_page),
            "timestamp": format_timestamp(now),
        }
        if self._same_content(record):
            logger.debug("Progress record unchanged; skipping write")
            return
        self.conn.execute(
            "INSERT OR REPLACE INTO progress (key, value, updated_at) VALUES (?, ?, ?)",
            (self.key, json.dumps(record), now.isoformat()),
        )
        self.conn.commit()

    def clear(self) -> bool:
        """Erase the record entirely. Returns True if one was present."""
        cursor = self.conn.execute("DELETE FROM progress WHERE key = ?", (self.key,))
        self.conn.commit()
        return cursor.rowcount > 0

    def _same_content(self, record: dict) -> bool:
        try:
            raw = self.read_raw()
        except (sqlite3.DataError, sqlite3.OperationalError):
            return False
        if raw is None:
            return False
        try:
            existing = json.loads(raw)
        except (json.JSONDecodeError, RecursionError):
            return False
        if not isinstance(existing, dict):
            return False
        existing = {k: v for k, v in existing.items() if k != "timestamp"}
        return existing == {k: v for k, v in record.items() if k != "timestamp"}

    @staticmethod
    def _parse(data, assessment_type: str) -> Optional[PendingProgress]:
        if not isinstance(data, dict):
            raise TypeError("progress record is not an object")

        if data.get("type") != assessment_type:
            logger.info(
                "Stored progress is for a %r assessment; active type is %r",
                data.get("type"), assessment_type,
            )
            return None

        raw_demographics = data.get("demographics")
        demographics = None
        if raw_demographics is not None:
            demographics = Demographics.from_dict(raw_demographics)
            if demographics.is_empty:
                demographics = None

        raw_responses = data.get("responses")
        if not isinstance(raw_responses, list):
            raw_responses = []
        responses = [Response.from_dict(item) for item in raw_responses]

        current_page = data.get("currentPage", 0)
        if isinstance(current_page, bool) or not isinstance(current_page, int) or current_page < 0:
            current_page = 0

        return PendingProgress(
            responses=responses,
            demographics=demographics,
            current_page=current_page,
            origin="resume",
        )


__all__ = ["ProgressStore"]
